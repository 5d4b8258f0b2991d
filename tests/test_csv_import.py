"""Tests for the manual CSV importer."""

from pathlib import Path

import pytest

from agridex.importers.csv_import import (
    as_integer,
    as_number,
    csv_rows_to_dataset_records,
    import_csv_directory,
    import_csv_file,
)
from agridex.importers.source_chain import SourceMode
from agridex.models.contracts import CardType, Edition
from agridex.models.failure import FailureKind, MissingColumnError
from agridex.parsers.delimited import parse_csv_rows
from agridex.services.dataset_store import load_package
from agridex.services.validator import validate_dataset_package

HEADER = "name,card_type,deck,edition,win_pct,pwr"


def _records(text: str):
    return csv_rows_to_dataset_records(parse_csv_rows(text))


class TestCellValues:
    @pytest.mark.parametrize(
        ("raw", "expected"),
        [("25.0", 25.0), ("24,5", 24.5), (" 1.2 ", 1.2), ("", None), ("abc", None), ("nan", None)],
    )
    def test_as_number(self, raw: str, expected: float | None) -> None:
        assert as_number(raw) == expected

    def test_as_number_rejects_infinity(self) -> None:
        assert as_number("inf") is None

    def test_as_integer_rounds(self) -> None:
        assert as_integer("12.6") == 13
        assert as_integer("") is None


class TestCsvRowsToDatasetRecords:
    def test_end_to_end_row(self) -> None:
        records = _records(f"{HEADER}\nClay Worker,occupation,I,old,25.0,1.2\n")

        card = records.cards[0]
        assert card.canonical_id == "old:occupation:clay_worker"
        assert card.card_type is CardType.OCCUPATION
        assert card.edition is Edition.OLD
        assert card.deck == "I"

        stat = records.stats[0]
        assert stat.canonical_id == "old:occupation:clay_worker"
        assert stat.win_pct == 25.0
        assert stat.pwr == 1.2
        assert stat.metric_set == "csv_import"

    def test_missing_required_column(self) -> None:
        with pytest.raises(MissingColumnError) as exc_info:
            _records("name,deck,edition\nClay Worker,I,old\n")

        assert exc_info.value.kind == FailureKind.MISSING_REQUIRED
        assert exc_info.value.column == "card_type"
        assert "missing required column" in exc_info.value.message

    def test_explicit_headers_are_checked_without_rows(self) -> None:
        with pytest.raises(MissingColumnError) as exc_info:
            csv_rows_to_dataset_records([], ["name", "card_type", "deck"])

        assert exc_info.value.column == "edition"

    def test_edition_from_deck(self) -> None:
        records = _records("name,card_type,deck,edition\nField Watchman,occupation,A,\n")

        assert records.cards[0].canonical_id == "revised:occupation:field_watchman"

    def test_aliases_and_text(self) -> None:
        text = (
            "name,card_type,deck,edition,aliases,text,prerequisites\n"
            'Plow Driver,occupation,E,old,Plough Driver; Ploughman ,"Plow 1 field, then rest.",\n'
        )

        card = _records(text).cards[0]

        assert card.aliases == ["Plough Driver", "Ploughman"]
        assert card.text == "Plow 1 field, then rest."
        assert card.prerequisites is None

    def test_rows_without_metrics_have_no_stat(self) -> None:
        records = _records(f"{HEADER}\nLoom,minor,E,old,,\n")

        assert len(records.cards) == 1
        assert records.stats == []

    def test_skipped_rows(self) -> None:
        records = _records(f"{HEADER}\n,occupation,I,old,1,1\nToken,fortune,I,old,1,1\n")

        assert records.cards == []
        assert records.skipped_rows == 2

    def test_same_card_under_two_metric_sets(self) -> None:
        """One card, published once, with a stat per metric set."""
        text = (
            "name,card_type,deck,edition,metric_set,win_pct\n"
            "Loom,minor,E,old,4p_comp,20\n"
            "Loom,minor,E,old,3p_comp,30\n"
        )

        records = _records(text)

        assert [card.canonical_id for card in records.cards] == ["old:minor_improvement:loom"]
        assert [(stat.canonical_id, stat.metric_set) for stat in records.stats] == [
            ("old:minor_improvement:loom", "4p_comp"),
            ("old:minor_improvement:loom", "3p_comp"),
        ]

    def test_colliding_cards_get_deck_suffix(self) -> None:
        text = (
            "name,card_type,deck,edition,win_pct\n"
            "Loom,minor,E,old,20\n"
            "Loom,minor,I,old,30\n"
        )

        records = _records(text)

        assert [card.canonical_id for card in records.cards] == [
            "old:minor_improvement:loom",
            "old:minor_improvement:loom_i",
        ]
        assert [stat.canonical_id for stat in records.stats] == [
            "old:minor_improvement:loom",
            "old:minor_improvement:loom_i",
        ]

    def test_repeated_metric_set_is_a_new_card(self) -> None:
        text = "name,card_type,deck,edition,win_pct\nLoom,minor,E,old,20\nLoom,minor,E,old,30\n"

        records = _records(text)

        assert [card.canonical_id for card in records.cards] == [
            "old:minor_improvement:loom",
            "old:minor_improvement:loom_e",
        ]

    def test_counts_and_notes(self) -> None:
        text = (
            "name,card_type,deck,edition,dealt_count,sample_size,notes\n"
            "Loom,minor,E,old,1250.4,980, hand-counted \n"
        )

        stat = _records(text).stats[0]

        assert stat.dealt_count == 1250
        assert stat.sample_size == 980
        assert stat.notes == "hand-counted"


class TestImportCsvFile:
    def test_writes_valid_package(self, tmp_path: Path, timestamp: str) -> None:
        source = tmp_path / "My Stats.csv"
        source.write_text(f"{HEADER}\nClay Worker,occupation,I,old,25.0,1.2\nLoom,minor,E,old,,\n")
        datasets_dir = tmp_path / "public"

        result = import_csv_file(source, datasets_dir, timestamp)

        assert result.ok
        assert result.dataset_id == "custom_my_stats"
        assert result.source_mode is SourceMode.LOCAL_FILE
        assert result.source_rows == 2
        assert result.imported_cards == 2
        assert result.output_path == datasets_dir / "custom_my_stats.json"

        package = load_package(result.output_path)
        assert validate_dataset_package(package) == []
        assert package.manifest.label == "Custom CSV: My Stats.csv"
        assert package.manifest.source_url == "https://local-import.invalid/My%20Stats.csv"
        assert package.manifest.comparability_group == "custom_my_stats"
        assert package.manifest.edition is Edition.MIXED
        assert package.manifest.version == "2026-01-15"
        assert package.manifest.has_stats
        assert not package.manifest.has_full_card_text

    def test_missing_column_writes_nothing(self, tmp_path: Path, timestamp: str) -> None:
        source = tmp_path / "broken.csv"
        source.write_text("name,deck\nLoom,E\n")

        result = import_csv_file(source, tmp_path / "public", timestamp)

        assert not result.ok
        assert "missing required column" in result.error
        assert result.output_path is None
        assert not (tmp_path / "public").exists()

    def test_header_only_file_is_checked(self, tmp_path: Path, timestamp: str) -> None:
        """A file with no data rows still needs every required column."""
        source = tmp_path / "bad.csv"
        source.write_text("name,deck,edition\n")

        result = import_csv_file(source, tmp_path / "public", timestamp)

        assert not result.ok
        assert '"card_type"' in result.error
        assert result.source_rows == 0
        assert not (tmp_path / "public").exists()

    def test_header_only_template_writes_empty_package(
        self, tmp_path: Path, timestamp: str
    ) -> None:
        source = tmp_path / "empty.csv"
        source.write_text(f"{HEADER}\n")

        result = import_csv_file(source, tmp_path / "public", timestamp)

        assert result.ok
        assert result.imported_cards == 0
        assert load_package(result.output_path).cards == []

    def test_undecodable_file_is_reported(self, tmp_path: Path, timestamp: str) -> None:
        source = tmp_path / "latin1.csv"
        source.write_bytes(f"{HEADER}\nCaf\xe9 Owner,occupation,I,old,25,\n".encode("latin-1"))

        result = import_csv_file(source, tmp_path / "public", timestamp)

        assert not result.ok
        assert result.error.startswith("Unreadable file:")
        assert result.output_path is None
        assert not (tmp_path / "public").exists()


class TestImportCsvDirectory:
    def test_skips_template(self, tmp_path: Path, timestamp: str) -> None:
        imports_dir = tmp_path / "_imports"
        imports_dir.mkdir()
        (imports_dir / "template.csv").write_text(f"{HEADER}\n")
        (imports_dir / "b.csv").write_text(f"{HEADER}\nLoom,minor,E,old,20,\n")
        (imports_dir / "a.csv").write_text(f"{HEADER}\nClay Worker,occupation,I,old,25,\n")
        (imports_dir / "notes.txt").write_text("ignored")

        results = import_csv_directory(imports_dir, tmp_path / "public", timestamp)

        assert [result.dataset_id for result in results] == ["custom_a", "custom_b"]
        assert sorted(path.name for path in (tmp_path / "public").iterdir()) == [
            "custom_a.json",
            "custom_b.json",
        ]

    def test_missing_directory(self, tmp_path: Path, timestamp: str) -> None:
        assert import_csv_directory(tmp_path / "nope", tmp_path / "public", timestamp) == []
