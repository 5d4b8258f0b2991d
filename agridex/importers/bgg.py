"""
BoardGameGeek manual export importer.

BGG file exports have no fixed layout. Each row is mapped onto the
template.csv columns by probing loose column names (FIELD_KEYS), then
imported with the CSV mapping. Card type and edition are guessed leniently
because these exports use free-form labels.
"""

import csv
import logging
from pathlib import Path

from agridex.config import settings
from agridex.importers.base import ImportResult
from agridex.importers.csv_import import (
    TEMPLATE_FILE,
    build_csv_package,
    csv_rows_to_dataset_records,
)
from agridex.importers.source_chain import SourceMode
from agridex.models.contracts import CardType, Edition
from agridex.parsers.delimited import parse_csv_rows
from agridex.services.dataset_store import generated_at, safe_id, write_json, write_package
from agridex.services.normalizer import DECK_EDITIONS

logger = logging.getLogger(__name__)

REPORT_FILE = "bgg_import_report.json"
DEFAULT_METRIC_SET = "bgg_import"
UNKNOWN_DECK = "UNK"

# Extra old-edition deck codes seen in BGG exports
EXTRA_OLD_DECKS = frozenset({"X", "O", "Z"})

# Template column -> loose export column names, in probe order
FIELD_KEYS: dict[str, tuple[str, ...]] = {
    "text": ("text", "description", "effect"),
    "prerequisites": ("prerequisites", "prerequisite"),
    "aliases": ("aliases", "alias"),
    "metric_set": ("metric_set", "metric", "source_metric"),
    "deal_pct": ("deal_pct", "deal%", "dealt_pct"),
    "played_pct": ("played_pct", "played%", "play_pct"),
    "win_pct": ("win_pct", "win%", "won_pct"),
    "dealt_count": ("dealt_count", "dealt", "deal_count"),
    "drafted_count": ("drafted_count", "drafted"),
    "played_count": ("played_count", "played", "play_count"),
    "won_count": ("won_count", "won", "win_count"),
    "banned_count": ("banned_count", "banned"),
    "adp": ("adp",),
    "pwr": ("pwr",),
    "pwr_no_log": ("pwr_no_log", "pwr_nolog"),
    "sample_size": ("sample_size", "sample", "n"),
    "notes": ("notes", "note", "comment"),
}

NAME_KEYS = ("name", "card_name", "card", "title")
DECK_KEYS = ("deck", "card_deck", "deck_code")
CARD_TYPE_KEYS = ("card_type", "type", "cardtype")
EDITION_KEYS = ("edition", "revision", "version")


def pick(row: dict[str, str], keys: tuple[str, ...]) -> str | None:
    """First non-blank value among keys (column names compared case-insensitively)."""
    lowered = {key.strip().lower(): value for key, value in row.items()}
    for key in keys:
        value = lowered.get(key)
        if value and value.strip():
            return value.strip()
    return None


def loose_card_type(value: str | None) -> CardType:
    """Guess a card type from a free-form label. Defaults to occupation."""
    lowered = (value or "").lower()
    if "major" in lowered:
        return CardType.MAJOR_IMPROVEMENT
    if "minor" in lowered or "improvement" in lowered:
        return CardType.MINOR_IMPROVEMENT
    return CardType.OCCUPATION


def loose_edition(value: str | None, deck: str) -> Edition:
    lowered = (value or "").lower()
    deck_edition = DECK_EDITIONS.get(deck.upper())
    if deck.upper() in EXTRA_OLD_DECKS:
        deck_edition = Edition.OLD

    if "revised" in lowered or deck_edition is Edition.REVISED:
        return Edition.REVISED
    if "old" in lowered or deck_edition is Edition.OLD:
        return Edition.OLD
    return Edition.MIXED


def to_template_rows(rows: list[dict[str, str]]) -> list[dict[str, str]]:
    """Map export rows onto template.csv columns. Rows without a name are dropped."""
    template_rows: list[dict[str, str]] = []
    for row in rows:
        name = pick(row, NAME_KEYS)
        if not name:
            continue
        deck = pick(row, DECK_KEYS) or UNKNOWN_DECK

        template_row = {
            "name": name,
            "card_type": loose_card_type(pick(row, CARD_TYPE_KEYS)).value,
            "deck": deck,
            "edition": loose_edition(pick(row, EDITION_KEYS), deck).value,
        }
        for column, keys in FIELD_KEYS.items():
            template_row[column] = pick(row, keys) or ""
        template_row["metric_set"] = template_row["metric_set"] or DEFAULT_METRIC_SET

        template_rows.append(template_row)
    return template_rows


def import_bgg_file(
    path: Path, datasets_dir: Path, source_url: str, timestamp: str
) -> tuple[ImportResult, dict[str, int | str]]:
    """
    Import one export file. Returns the result and its report entry.

    An unreadable file is reported in both and nothing is written.
    """
    dataset_id = f"bgg_{safe_id(path.name)}"
    result = ImportResult(
        source="bgg",
        dataset_id=dataset_id,
        source_mode=SourceMode.LOCAL_FILE,
    )

    try:
        input_rows = parse_csv_rows(path.read_text(encoding="utf-8"))
    except (OSError, ValueError, csv.Error) as e:
        logger.error("bgg_import: cannot read %s: %s", path.name, e)
        result.error = f"Unreadable file: {e}"
        return result, {"file": path.name, "error": result.error}

    template_rows = to_template_rows(input_rows)
    result.source_rows = len(input_rows)
    result.skipped_rows = len(input_rows) - len(template_rows)

    records = csv_rows_to_dataset_records(template_rows)

    package = build_csv_package(
        path.name,
        records,
        dataset_id=dataset_id,
        label=f"BGG Import: {path.name}",
        source_name="BoardGameGeek (manual export)",
        license_note="Manual BoardGameGeek export.",
        timestamp=timestamp,
        source_url=source_url,
        comparability_group="bgg_manual_import",
    )
    result.output_path = write_package(datasets_dir, package)
    result.imported_cards = len(package.cards)
    result.skipped_rows += records.skipped_rows
    logger.info("bgg_import: wrote %s.json with %d cards", dataset_id, len(package.cards))

    entry: dict[str, int | str] = {
        "file": path.name,
        "inputRows": len(input_rows),
        "normalizedRows": len(template_rows),
        "cards": len(package.cards),
        "stats": len(package.stats),
    }
    return result, entry


def import_bgg_directory(
    bgg_dir: Path | None = None,
    datasets_dir: Path | None = None,
    reports_dir: Path | None = None,
    source_url: str | None = None,
    timestamp: str | None = None,
) -> list[ImportResult]:
    """Import every BGG export under datasets/_bgg and write the import report."""
    bgg_dir = bgg_dir or settings.bgg_imports_dir
    datasets_dir = datasets_dir or settings.datasets_dir
    reports_dir = reports_dir or settings.reports_dir
    source_url = source_url or settings.bgg_source_url
    timestamp = generated_at(timestamp or settings.generated_at)

    if not bgg_dir.is_dir():
        logger.info("bgg_import: %s not found, skipping", bgg_dir)
        return []

    files = sorted(
        path
        for path in bgg_dir.iterdir()
        if path.suffix.lower() == ".csv" and path.name.lower() != TEMPLATE_FILE
    )
    if not files:
        logger.info("bgg_import: no CSV files found")
        return []

    results: list[ImportResult] = []
    report: list[dict[str, int | str]] = []
    for path in files:
        result, entry = import_bgg_file(path, datasets_dir, source_url, timestamp)
        results.append(result)
        report.append(entry)

    write_json(reports_dir / REPORT_FILE, report)
    return results
