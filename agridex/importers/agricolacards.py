"""
AgricolaCards importer.

Builds the metadata reference dataset from the AgricolaCards "get-cards"
JSON endpoint. Every card is published with edition "mixed" because the
endpoint does not say which rules edition a card belongs to.

The raw payload is cached as a snapshot document:

    {"fetchedAt": ..., "sourceMode": "network", "sourceUrl": ..., "payload": [...]}
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import httpx

from agridex.config import settings
from agridex.importers.base import ImportResult, build_package
from agridex.importers.source_chain import SourceChain, fetch_json, http_client
from agridex.models.contracts import CardRecord, CardType, Edition, ImportStatus
from agridex.models.failure import UnsupportedCardTypeError
from agridex.parsers.json_payload import as_string
from agridex.services.canonical_ids import (
    CanonicalIdRegistry,
    canonical_id_from_parts,
    row_suffix,
)
from agridex.services.dataset_store import (
    generated_at,
    read_json,
    write_json,
    write_package,
)
from agridex.services.normalizer import normalize_card_type

logger = logging.getLogger(__name__)

DATASET_ID = "agricolacards_get_cards_local"
SNAPSHOT_FILE = "agricolacards_get_cards_snapshot.json"


@dataclass
class ParsedCards:
    """Cards parsed from one payload."""

    cards: list[CardRecord] = field(default_factory=list)
    source_rows: int = 0
    invalid_rows: int = 0


def row_to_card(row: dict[str, Any], registry: CanonicalIdRegistry) -> CardRecord | None:
    """
    Convert one get-cards row. Returns None for rows without a title,
    without a type, or with an unsupported type.
    """
    name = as_string(row.get("card_title"))
    type_raw = as_string(row.get("type"))
    if not name or not type_raw:
        return None

    try:
        card_type = normalize_card_type(type_raw)
    except UnsupportedCardTypeError as e:
        logger.debug("Skipping %r: %s", name, e.message)
        return None

    expansion = as_string(row.get("base_expansion"))
    cost = as_string(row.get("cost"))
    players = as_string(row.get("players"))

    canonical_id = registry.claim(
        canonical_id_from_parts(Edition.MIXED, card_type, name),
        row_suffix(expansion, players, cost),
    )

    metadata: dict[str, str | int | float | bool] = {}
    if expansion:
        metadata["expansion"] = expansion
    if cost:
        metadata["cost"] = cost
    if players:
        metadata["playerCount"] = players
    metadata["type"] = type_raw

    return CardRecord(
        canonical_id=canonical_id,
        name=name,
        card_type=card_type,
        text=as_string(row.get("text")) or "",
        metadata=metadata,
    )


def parse_payload(payload: Any) -> ParsedCards:
    """Parse a get-cards payload (a JSON array of row objects)."""
    if not isinstance(payload, list):
        return ParsedCards()

    rows = [row for row in payload if isinstance(row, dict)]
    registry = CanonicalIdRegistry()
    parsed = ParsedCards(source_rows=len(rows))
    for row in rows:
        card = row_to_card(row, registry)
        if card is None:
            parsed.invalid_rows += 1
        else:
            parsed.cards.append(card)
    return parsed


def fallback_cards() -> ParsedCards:
    """Embedded sample used when neither the snapshot nor the endpoint yields cards."""
    academic = CardRecord(
        canonical_id="mixed:occupation:academic",
        name="Academic",
        card_type=CardType.OCCUPATION,
        text=(
            "This card counts as 2 Occupations for Minor Improvements and when "
            'scoring the "Reeve" Occupation card.'
        ),
        metadata={"expansion": "Base", "cost": "", "playerCount": "3+", "type": "Occupation"},
    )
    return ParsedCards(cards=[academic])


def import_agricolacards(
    *,
    url: str | None = None,
    raw_dir: Path | None = None,
    datasets_dir: Path | None = None,
    client: httpx.Client | None = None,
    timestamp: str | None = None,
) -> ImportResult:
    """
    Import the AgricolaCards reference dataset.

    Args:
        url: get-cards endpoint (defaults to settings)
        raw_dir: Snapshot directory (defaults to settings)
        datasets_dir: Output directory (defaults to settings)
        client: HTTP client to reuse (one is created if omitted)
        timestamp: Fixed generation timestamp

    Returns:
        ImportResult describing the written package
    """
    url = url or settings.agricolacards_url
    raw_dir = raw_dir or settings.raw_data_dir
    datasets_dir = datasets_dir or settings.datasets_dir
    timestamp = generated_at(timestamp or settings.generated_at)
    snapshot_path = raw_dir / SNAPSHOT_FILE

    def load_cache() -> ParsedCards | None:
        if not snapshot_path.exists():
            return None
        snapshot = read_json(snapshot_path)
        if not isinstance(snapshot, dict):
            return None
        return parse_payload(snapshot.get("payload"))

    def fetch(http: httpx.Client) -> ParsedCards:
        payload = fetch_json(url, http)
        write_json(
            snapshot_path,
            {
                "fetchedAt": timestamp,
                "sourceMode": "network",
                "sourceUrl": url,
                "payload": payload,
            },
        )
        return parse_payload(payload)

    with http_client(client, settings.http_timeout) as http:
        chain: SourceChain[ParsedCards] = SourceChain(
            name="agricolacards",
            load_cache=load_cache,
            fetch=lambda: fetch(http),
            fallback=fallback_cards,
            accept=lambda parsed: bool(parsed.cards),
            cache_location=str(snapshot_path),
            fetch_location=url,
        )
        source = chain.resolve()

    parsed = source.value
    package = build_package(
        dataset_id=DATASET_ID,
        label="AgricolaCards Snapshot (get-cards)",
        source_name="AgricolaCards",
        source_url=url,
        edition=Edition.MIXED,
        comparability_group="metadata_reference",
        timestamp=timestamp,
        cards=parsed.cards,
        stats=[],
        import_status=ImportStatus(
            source_mode=source.mode.value,
            source_rows=parsed.source_rows,
            imported_cards=len(parsed.cards),
            fallback_used=source.fallback_used,
            note=(
                "Included fields: expansion, card title, cost, player count, text, type. "
                f"Invalid rows skipped: {parsed.invalid_rows}."
            ),
        ),
    )

    output_path = write_package(datasets_dir, package)
    logger.info(
        "agricolacards: wrote %d cards using %s mode", len(package.cards), source.mode.value
    )

    return ImportResult(
        source="agricolacards",
        dataset_id=DATASET_ID,
        output_path=output_path,
        source_mode=source.mode,
        source_rows=parsed.source_rows,
        imported_cards=len(package.cards),
        skipped_rows=parsed.invalid_rows,
        attempts=source.attempts,
    )
