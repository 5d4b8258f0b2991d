"""Tests for environment-driven settings."""

from pathlib import Path

import pytest

from agridex.config import (
    DEFAULT_AGRICOLACARDS_URL,
    DEFAULT_NORGE_URL,
    DEFAULT_PLAY_AGRICOLA_URLS,
    Settings,
)


class TestUrlOverrides:
    def test_valid_override(self) -> None:
        assert Settings(norge_url=" https://norge.test/x ").norge_url == "https://norge.test/x"

    @pytest.mark.parametrize("value", ["", "   ", "not a url", "/relative/path"])
    def test_invalid_override_uses_default(self, value: str) -> None:
        config = Settings(agricolacards_url=value, norge_url=value)

        assert config.agricolacards_url == DEFAULT_AGRICOLACARDS_URL
        assert config.norge_url == DEFAULT_NORGE_URL

    def test_agricoladb_is_optional(self) -> None:
        assert Settings(agricoladb_url="nope").agricoladb_url == ""
        assert Settings(agricoladb_url="https://db.test").agricoladb_url == "https://db.test"

    def test_reads_environment(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("NORGE_URL", "https://env.test/stats")

        assert Settings().norge_url == "https://env.test/stats"

    def test_play_agricola_url_list(self) -> None:
        config = Settings(play_agricola_urls="https://a.test/1, bad ,https://b.test/2,")

        assert config.play_agricola_url_list == ["https://a.test/1", "https://b.test/2"]

    def test_play_agricola_url_list_default(self) -> None:
        assert Settings(play_agricola_urls="bad").play_agricola_url_list == [
            DEFAULT_PLAY_AGRICOLA_URLS
        ]


class TestTimeout:
    @pytest.mark.parametrize("value", ["abc", "-5", "0", ""])
    def test_invalid_timeout_uses_default(
        self, monkeypatch: pytest.MonkeyPatch, value: str
    ) -> None:
        monkeypatch.setenv("HTTP_TIMEOUT", value)

        assert Settings().http_timeout == 30.0

    def test_valid_timeout(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("HTTP_TIMEOUT", "12.5")

        assert Settings().http_timeout == 12.5


class TestPaths:
    def test_layout_under_root(self, tmp_path: Path) -> None:
        config = Settings(root_dir=tmp_path)

        assert config.datasets_dir == tmp_path / "public" / "datasets"
        assert config.raw_data_dir == tmp_path / "data" / "raw"
        assert config.reports_dir == tmp_path / "reports"
        assert config.imports_dir == tmp_path / "datasets" / "_imports"
        assert config.bgg_imports_dir == tmp_path / "datasets" / "_bgg"
        assert config.alias_path == tmp_path / "datasets" / "_aliases.json"

    def test_required_dataset_ids(self) -> None:
        config = Settings(required_dataset_ids=" a, ,b ")

        assert config.required_dataset_id_set == frozenset({"a", "b"})

    def test_default_required_dataset_ids(self) -> None:
        assert Settings().required_dataset_id_set == frozenset(
            {"agricolacards_get_cards_local", "agricola_norge_full_4p_play_agricola"}
        )
