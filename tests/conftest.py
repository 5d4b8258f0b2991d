from pathlib import Path

import pytest

from agridex.config import Settings
from agridex.models.contracts import (
    CardRecord,
    CardType,
    DatasetManifest,
    DatasetPackage,
    Edition,
    StatRecord,
)

FIXTURES_DIR = Path(__file__).parent / "fixtures"
FIXED_TIMESTAMP = "2026-01-15T12:00:00.000Z"


@pytest.fixture
def fixtures_dir() -> Path:
    return FIXTURES_DIR


@pytest.fixture
def norge_html() -> str:
    return (FIXTURES_DIR / "norge_4p_stats.html").read_text()


@pytest.fixture
def play_agricola_html() -> str:
    return (FIXTURES_DIR / "play_agricola_stats.html").read_text()


@pytest.fixture
def timestamp() -> str:
    return FIXED_TIMESTAMP


@pytest.fixture
def test_settings(tmp_path: Path) -> Settings:
    """Settings rooted in a temporary working tree."""
    return Settings(
        root_dir=tmp_path,
        agricolacards_url="https://cards.test/get-cards",
        agricoladb_url="",
        norge_url="https://norge.test/stats/",
        play_agricola_urls="https://play.test/cards?id=1",
        bgg_source_url="https://bgg.test/files",
        generated_at=FIXED_TIMESTAMP,
    )


@pytest.fixture
def reference_cards() -> list[CardRecord]:
    """A small AgricolaCards-style reference catalog."""
    return [
        CardRecord(
            canonical_id="mixed:occupation:clay_worker",
            name="Clay Worker",
            card_type=CardType.OCCUPATION,
            text="At any time, you can exchange 1 reed for 1 clay.",
        ),
        CardRecord(
            canonical_id="mixed:minor_improvement:loom",
            name="Loom",
            card_type=CardType.MINOR_IMPROVEMENT,
            text="At the end of each harvest, you can convert 2 sheep to 3 food.",
        ),
        CardRecord(
            canonical_id="mixed:occupation:plow_driver",
            name="Plow Driver",
            card_type=CardType.OCCUPATION,
            text="Each time another player plows a field, you may plow 1 field.",
        ),
    ]


@pytest.fixture
def sample_package() -> DatasetPackage:
    """A package that passes validation."""
    manifest = DatasetManifest(
        id="sample_stats",
        label="Sample Stats",
        version="2026-01-15",
        source_name="Sample",
        source_url="https://example.com/stats",
        edition=Edition.OLD,
        comparability_group="sample",
        generated_at=FIXED_TIMESTAMP,
        license_note="Test data.",
        has_full_card_text=True,
        has_stats=True,
    )
    cards = [
        CardRecord(
            canonical_id="old:occupation:clay_worker",
            name="Clay Worker",
            card_type=CardType.OCCUPATION,
            deck="I",
            edition=Edition.OLD,
            text="At any time, you can exchange 1 reed for 1 clay.",
        ),
        CardRecord(
            canonical_id="old:minor_improvement:loom",
            name="Loom",
            card_type=CardType.MINOR_IMPROVEMENT,
            deck="E",
            edition=Edition.OLD,
            text="At the end of each harvest, you can convert 2 sheep to 3 food.",
        ),
    ]
    stats = [
        StatRecord(canonical_id="old:occupation:clay_worker", metric_set="4p_comp", win_pct=25.0),
        StatRecord(canonical_id="old:minor_improvement:loom", metric_set="4p_comp", dealt_count=980),
    ]
    return DatasetPackage(manifest=manifest, cards=cards, stats=stats)
