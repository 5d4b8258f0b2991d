"""
Agricola Norge importer.

Publishes the 4-player Play-Agricola statistics table hosted by Agricola
Norge. The table carries raw counts (dealt, drafted, played, won, banned)
plus ADP and PWR scores; every row becomes a card and one "4p_comp" stat.

Rows are not matched against a reference: Norge is its own catalog. Rows
whose type is not a supported card family are skipped and listed in
reports/unmatched_cards_norge.json.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path

import httpx

from agridex.config import settings
from agridex.importers.base import ImportResult, build_package
from agridex.importers.source_chain import SourceChain, fetch_text, http_client
from agridex.models.contracts import (
    CardRecord,
    CardType,
    Edition,
    ImportStatus,
    StatRecord,
    UnmatchedCard,
)
from agridex.models.failure import UnsupportedCardTypeError
from agridex.parsers.html_table import ParsedStatRow, parse_stats_html
from agridex.services.canonical_ids import CanonicalIdRegistry, canonical_id_from_parts, uuid_suffix
from agridex.services.card_matcher import mint_card
from agridex.services.dataset_store import generated_at, write_json, write_package, write_text
from agridex.services.normalizer import normalize_edition, normalize_name, source_card_type

logger = logging.getLogger(__name__)

DATASET_ID = "agricola_norge_full_4p_play_agricola"
RAW_FILE = "agricola_norge_play_agricola_4p.html"
REPORT_FILE = "unmatched_cards_norge.json"
METRIC_SET = "4p_comp"


def fallback_rows() -> list[ParsedStatRow]:
    """Embedded one-row sample."""
    return [
        ParsedStatRow(
            name="Abandoned Willow",
            source_card_type="MinorImprovement",
            stat={
                "banned_count": 0,
                "dealt_count": 1343,
                "drafted_count": 874,
                "played_count": 560,
                "won_count": 172,
                "adp": 5.2,
                "pwr": 1.8,
            },
        )
    ]


def _row_metadata(row: ParsedStatRow) -> dict[str, str | int | float | bool]:
    metadata: dict[str, str | int | float | bool] = {"source": "Agricola Norge"}
    if row.source_card_uuid:
        metadata["sourceCardUuid"] = row.source_card_uuid
    if row.source_play_agricola_card_name:
        metadata["sourcePlayAgricolaCardName"] = row.source_play_agricola_card_name
    if row.source_card_type:
        metadata["sourceCardType"] = row.source_card_type
    return metadata


@dataclass
class NorgeRecords:
    cards: list[CardRecord] = field(default_factory=list)
    stats: list[StatRecord] = field(default_factory=list)
    skipped: list[UnmatchedCard] = field(default_factory=list)


def rows_to_records(rows: list[ParsedStatRow]) -> NorgeRecords:
    """
    Turn parsed Norge rows into cards and stats.

    Edition comes from the deck hint (E/I/K old, A/B/C/D revised) and is
    "mixed" otherwise. Missing types default to occupation.
    """
    registry = CanonicalIdRegistry()
    records = NorgeRecords()

    for row in rows:
        try:
            card_type = source_card_type(row.source_card_type) or CardType.OCCUPATION
        except UnsupportedCardTypeError as e:
            logger.debug("Skipping %r: %s", row.name, e.message)
            records.skipped.append(
                UnmatchedCard(
                    name=row.name,
                    normalized_name=normalize_name(row.name),
                    source_card_type=row.source_card_type,
                    source_card_uuid=row.source_card_uuid,
                    source_play_agricola_card_name=row.source_play_agricola_card_name,
                )
            )
            continue

        edition = normalize_edition(None, row.deck_hint)
        canonical_id = registry.claim(
            canonical_id_from_parts(edition, card_type, row.name),
            uuid_suffix(row.source_card_uuid),
        )
        records.cards.append(
            mint_card(row, canonical_id, card_type, edition, metadata=_row_metadata(row))
        )
        records.stats.append(
            StatRecord(canonical_id=canonical_id, metric_set=METRIC_SET, **row.stat)
        )

    return records


def import_agricola_norge(
    *,
    url: str | None = None,
    raw_dir: Path | None = None,
    datasets_dir: Path | None = None,
    reports_dir: Path | None = None,
    client: httpx.Client | None = None,
    timestamp: str | None = None,
) -> ImportResult:
    """Import the Agricola Norge 4-player statistics."""
    url = url or settings.norge_url
    raw_dir = raw_dir or settings.raw_data_dir
    datasets_dir = datasets_dir or settings.datasets_dir
    reports_dir = reports_dir or settings.reports_dir
    timestamp = generated_at(timestamp or settings.generated_at)
    raw_path = raw_dir / RAW_FILE

    def load_cache() -> list[ParsedStatRow] | None:
        if not raw_path.exists():
            return None
        return parse_stats_html(raw_path.read_text(encoding="utf-8"))

    def fetch(http: httpx.Client) -> list[ParsedStatRow]:
        html = fetch_text(url, http)
        write_text(raw_path, html)
        return parse_stats_html(html)

    with http_client(client, settings.http_timeout) as http:
        chain: SourceChain[list[ParsedStatRow]] = SourceChain(
            name="agricola_norge",
            load_cache=load_cache,
            fetch=lambda: fetch(http),
            fallback=fallback_rows,
            accept=bool,
            cache_location=str(raw_path),
            fetch_location=url,
        )
        source = chain.resolve()

    rows = source.value
    records = rows_to_records(rows)

    note = None
    if source.fallback_used:
        note = "Live/local source unavailable; fallback sample emitted."
    elif records.skipped:
        note = f"Rows skipped for unsupported card type: {len(records.skipped)}."

    package = build_package(
        dataset_id=DATASET_ID,
        label="Agricola Norge Full 4P (Play-Agricola Source)",
        source_name="Agricola Norge",
        source_url=url,
        edition=Edition.MIXED,
        comparability_group="norge_4p_play_agricola_counts",
        timestamp=timestamp,
        cards=records.cards,
        stats=records.stats,
        license_note="Approved for publication.",
        version="fallback" if source.fallback_used else None,
        import_status=ImportStatus(
            source_mode=source.mode.value,
            source_rows=len(rows),
            imported_cards=len(records.cards),
            fallback_used=source.fallback_used,
            note=note,
        ),
    )

    output_path = write_package(datasets_dir, package)
    write_json(reports_dir / REPORT_FILE, records.skipped)
    logger.info(
        "agricola_norge: wrote %d stat rows using %s mode", len(package.stats), source.mode.value
    )

    return ImportResult(
        source="norge",
        dataset_id=DATASET_ID,
        output_path=output_path,
        source_mode=source.mode,
        source_rows=len(rows),
        imported_cards=len(package.cards),
        skipped_rows=len(records.skipped),
        attempts=source.attempts,
    )
