"""
Manual CSV importer.

Every datasets/_imports/*.csv file (template.csv excepted) becomes its own
dataset package "custom_<file>". Columns follow template.csv:

    name, card_type, deck, edition          required
    aliases                                 ";"-separated
    text, prerequisites, metric_set, notes
    deal_pct, played_pct, win_pct           percentages
    dealt_count, drafted_count, played_count, won_count, banned_count, sample_size
    adp, pwr, pwr_no_log

A file missing a required column is rejected as a whole. Rows without a
name or with an unsupported card type are skipped.

A stat is emitted only for rows carrying at least one metric. When two
rows describe the same card under different metric sets, the card is
published once with both stats.
"""

import csv
import logging
import math
from dataclasses import dataclass, field
from pathlib import Path
from urllib.parse import quote

from agridex.config import settings
from agridex.importers.base import ImportResult, build_package
from agridex.importers.source_chain import SourceMode
from agridex.models.contracts import CardRecord, DatasetPackage, Edition, StatRecord
from agridex.models.failure import MissingColumnError, UnsupportedCardTypeError
from agridex.parsers.delimited import csv_headers, parse_csv_rows
from agridex.services.canonical_ids import CanonicalIdRegistry, canonical_id_from_parts, row_suffix
from agridex.services.dataset_store import generated_at, safe_id, write_package
from agridex.services.normalizer import normalize_card_type, normalize_edition

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS = ("name", "card_type", "deck", "edition")
TEMPLATE_FILE = "template.csv"
DEFAULT_METRIC_SET = "csv_import"

DECIMAL_COLUMNS = ("deal_pct", "played_pct", "win_pct", "adp", "pwr", "pwr_no_log")
INTEGER_COLUMNS = (
    "dealt_count",
    "drafted_count",
    "played_count",
    "won_count",
    "banned_count",
    "sample_size",
)


def as_number(value: str | None) -> float | None:
    """Parse a decimal cell; a comma is read as the decimal point."""
    if not value:
        return None
    normalized = value.strip().replace(",", ".", 1)
    if not normalized:
        return None
    try:
        number = float(normalized)
    except ValueError:
        return None
    return number if math.isfinite(number) else None


def as_integer(value: str | None) -> int | None:
    """Parse a count cell, rounding fractional values."""
    number = as_number(value)
    if number is None:
        return None
    return round(number)


def ensure_columns(headers: list[str]) -> None:
    """
    Check the header of a file.

    Raises:
        MissingColumnError: For the first required column that is absent
    """
    for column in REQUIRED_COLUMNS:
        if column not in headers:
            raise MissingColumnError(column)


def row_to_stat(row: dict[str, str], canonical_id: str) -> StatRecord:
    metrics: dict[str, float | int] = {}
    for column in DECIMAL_COLUMNS:
        decimal = as_number(row.get(column))
        if decimal is not None:
            metrics[column] = decimal
    for column in INTEGER_COLUMNS:
        integer = as_integer(row.get(column))
        if integer is not None:
            metrics[column] = integer

    return StatRecord(
        canonical_id=canonical_id,
        metric_set=(row.get("metric_set") or "").strip() or DEFAULT_METRIC_SET,
        notes=(row.get("notes") or "").strip() or None,
        **metrics,
    )


@dataclass
class CsvRecords:
    """Cards and stats built from one file's rows."""

    cards: list[CardRecord] = field(default_factory=list)
    stats: list[StatRecord] = field(default_factory=list)
    skipped_rows: int = 0


def csv_rows_to_dataset_records(
    rows: list[dict[str, str]], headers: list[str] | None = None
) -> CsvRecords:
    """
    Map parsed CSV rows onto cards and stats.

    headers defaults to the keys of the first row. Nothing is checked
    when there are neither headers nor rows.

    Raises:
        MissingColumnError: If a required column is absent
    """
    if headers is None and rows:
        headers = list(rows[0])
    if headers is not None:
        ensure_columns(headers)

    registry = CanonicalIdRegistry()
    records = CsvRecords()
    # Base id -> (published card, metric sets already attached to it)
    published: dict[str, tuple[CardRecord, set[str]]] = {}

    for row in rows:
        name = (row.get("name") or "").strip()
        if not name:
            records.skipped_rows += 1
            continue

        try:
            card_type = normalize_card_type(row.get("card_type") or "")
        except UnsupportedCardTypeError as e:
            logger.debug("Skipping %r: %s", name, e.message)
            records.skipped_rows += 1
            continue

        deck = (row.get("deck") or "").strip()
        edition = normalize_edition(row.get("edition"), deck)
        base_id = canonical_id_from_parts(edition, card_type, name)
        aliases = [alias.strip() for alias in (row.get("aliases") or "").split(";") if alias.strip()]

        candidate = CardRecord(
            canonical_id=base_id,
            name=name,
            aliases=aliases,
            card_type=card_type,
            deck=deck or None,
            edition=edition,
            text=(row.get("text") or "").strip(),
            prerequisites=(row.get("prerequisites") or "").strip() or None,
        )
        stat = row_to_stat(row, base_id)

        existing = published.get(base_id)
        if existing is not None:
            earlier, attached = existing
            same_card = earlier.model_copy(update={"canonical_id": base_id}) == candidate
            if same_card and stat.has_metrics and stat.metric_set not in attached:
                records.stats.append(stat.model_copy(update={"canonical_id": earlier.canonical_id}))
                attached.add(stat.metric_set)
                continue

        canonical_id = registry.claim(base_id, row_suffix(deck))
        card = candidate
        if canonical_id != base_id:
            card = candidate.model_copy(update={"canonical_id": canonical_id})
            stat = stat.model_copy(update={"canonical_id": canonical_id})

        records.cards.append(card)
        metric_sets: set[str] = set()
        if stat.has_metrics:
            records.stats.append(stat)
            metric_sets.add(stat.metric_set)
        published.setdefault(base_id, (card, metric_sets))

    return records


def build_csv_package(
    file_name: str,
    records: CsvRecords,
    *,
    dataset_id: str,
    label: str,
    source_name: str,
    license_note: str,
    timestamp: str,
    source_url: str | None = None,
    comparability_group: str | None = None,
) -> DatasetPackage:
    """
    Assemble the package for one imported file.

    Without a source URL the file gets a placeholder under local-import.invalid.
    Without a comparability group the dataset is only comparable with itself.
    """
    return build_package(
        dataset_id=dataset_id,
        label=label,
        source_name=source_name,
        source_url=source_url or f"https://local-import.invalid/{quote(file_name)}",
        edition=Edition.MIXED,
        comparability_group=comparability_group or dataset_id,
        timestamp=timestamp,
        cards=records.cards,
        stats=records.stats,
        license_note=license_note,
    )


def import_csv_file(path: Path, datasets_dir: Path, timestamp: str) -> ImportResult:
    """
    Import one CSV file. An unreadable file or a missing required column
    is reported in the result and nothing is written.
    """
    dataset_id = f"custom_{safe_id(path.name)}"
    result = ImportResult(
        source="csv",
        dataset_id=dataset_id,
        source_mode=SourceMode.LOCAL_FILE,
    )

    try:
        text = path.read_text(encoding="utf-8")
        rows = parse_csv_rows(text)
        result.source_rows = len(rows)
        records = csv_rows_to_dataset_records(rows, csv_headers(text))
    except MissingColumnError as e:
        logger.error("csv_import: %s rejected: %s", path.name, e.message)
        result.error = e.message
        return result
    except (OSError, ValueError, csv.Error) as e:
        logger.error("csv_import: cannot read %s: %s", path.name, e)
        result.error = f"Unreadable file: {e}"
        return result

    package = build_csv_package(
        path.name,
        records,
        dataset_id=dataset_id,
        label=f"Custom CSV: {path.name}",
        source_name="Manual CSV Import",
        license_note="Manual CSV import.",
        timestamp=timestamp,
    )
    result.output_path = write_package(datasets_dir, package)
    result.imported_cards = len(package.cards)
    result.skipped_rows = records.skipped_rows
    logger.info("csv_import: wrote %s.json with %d cards", dataset_id, len(package.cards))
    return result


def import_csv_directory(
    imports_dir: Path | None = None,
    datasets_dir: Path | None = None,
    timestamp: str | None = None,
) -> list[ImportResult]:
    """Import every CSV file of the imports directory except the template."""
    imports_dir = imports_dir or settings.imports_dir
    datasets_dir = datasets_dir or settings.datasets_dir
    timestamp = generated_at(timestamp or settings.generated_at)

    if not imports_dir.is_dir():
        logger.info("csv_import: %s not found, skipping", imports_dir)
        return []

    files = sorted(
        path
        for path in imports_dir.iterdir()
        if path.suffix.lower() == ".csv" and path.name != TEMPLATE_FILE
    )
    if not files:
        logger.info("csv_import: no CSV files found")

    return [import_csv_file(path, datasets_dir, timestamp) for path in files]
