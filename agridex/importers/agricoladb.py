"""
AgricolaDB importer.

AgricolaDB has no stable public endpoint, so its payload shape is not
fixed. The card array is located with pick_card_array and each candidate
object is probed for the first field carrying each attribute.

Japanese names become aliases when an English name exists. Source ids
(printedID, literalID, playAgricolaCardID) are kept as metadata and
disambiguate colliding canonical ids.
"""

import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import httpx

from agridex.config import settings
from agridex.importers.base import ImportResult, build_package
from agridex.importers.source_chain import SourceChain, fetch_json, http_client
from agridex.models.contracts import CardRecord, CardType, Edition, ImportStatus
from agridex.models.failure import UnsupportedCardTypeError
from agridex.parsers.json_payload import as_record, as_string, as_string_list, pick_card_array
from agridex.services.canonical_ids import CanonicalIdRegistry, canonical_id_from_parts, row_suffix
from agridex.services.dataset_store import generated_at, read_json, write_json, write_package
from agridex.services.normalizer import normalize_card_type, normalize_edition

logger = logging.getLogger(__name__)

DATASET_ID = "agricoladb_cards"
SNAPSHOT_FILE = "agricoladb_cards_snapshot.json"
PLACEHOLDER_URL = "https://agricoladb.invalid/cards"

UNKNOWN_DECK = "UNK"
UNKNOWN_PREREQUISITES = "Not available."

NAME_KEYS = ("nameEn", "name", "title", "cardName", "nameJa")
TEXT_KEYS = ("text", "description", "effect")
PREREQUISITE_KEYS = ("prerequisite", "prerequisites")
METADATA_ID_KEYS = ("playAgricolaCardID", "literalID", "printedID")

# Type keys such as "occupation_a" or "minor_improvement_x"
_TYPE_KEY_PREFIXES = tuple(card_type.value for card_type in CardType)
_DECK_NAME = re.compile(r"^([A-Z]+)-Deck$", re.IGNORECASE)
_REVISION_EDITIONS = {"AG1": Edition.OLD, "AG2": Edition.REVISED}


def _first_string(candidate: dict[str, Any], keys: tuple[str, ...]) -> str | None:
    for key in keys:
        value = as_string(candidate.get(key))
        if value:
            return value
    return None


def _card_type_from_key(value: str) -> CardType:
    key = value.lower().strip()
    for prefix in _TYPE_KEY_PREFIXES:
        if key.startswith(prefix):
            return CardType(prefix)
    return normalize_card_type(key)


def candidate_card_type(candidate: dict[str, Any]) -> CardType:
    """
    Read the card type from cardType / card_type / type.

    The value is a label or a {"key": ..., "nameEn": ...} object. A
    missing type means occupation.

    Raises:
        UnsupportedCardTypeError: If the type is not recognised
    """
    raw = candidate.get("cardType") or candidate.get("card_type") or candidate.get("type")
    direct = as_string(raw)
    if direct:
        return _card_type_from_key(direct)

    record = as_record(raw) or {}
    key = as_string(record.get("key")) or as_string(record.get("nameEn"))
    return _card_type_from_key(key or CardType.OCCUPATION.value)


def candidate_deck(candidate: dict[str, Any]) -> str:
    """Read the deck code: deck / cardSet label, deck.key suffix, or "X-Deck" name."""
    direct = as_string(candidate.get("deck")) or as_string(candidate.get("cardSet"))
    if direct:
        return direct

    deck_record = as_record(candidate.get("deck")) or {}
    deck_key = as_string(deck_record.get("key"))
    if deck_key:
        short = deck_key.split("_")[-1]
        if short:
            return short.upper()

    deck_name = as_string(deck_record.get("nameEn"))
    if deck_name:
        match = _DECK_NAME.match(deck_name)
        if match:
            return match.group(1).upper()

    return UNKNOWN_DECK


def candidate_edition(candidate: dict[str, Any], deck: str) -> Edition:
    """Edition from revision.key (AG1 / AG2), else edition / version / deck."""
    revision = as_record(candidate.get("revision")) or {}
    revision_key = as_string(revision.get("key"))
    if revision_key in _REVISION_EDITIONS:
        return _REVISION_EDITIONS[revision_key]

    label = as_string(candidate.get("edition")) or as_string(candidate.get("version"))
    return normalize_edition(label, deck)


def parse_candidate(candidate: dict[str, Any], registry: CanonicalIdRegistry) -> CardRecord | None:
    """
    Convert one payload object into a card.

    Returns None when the object has no usable name or an unsupported type.
    """
    name = _first_string(candidate, NAME_KEYS)
    if not name:
        return None

    try:
        card_type = candidate_card_type(candidate)
    except UnsupportedCardTypeError as e:
        logger.debug("Skipping %r: %s", name, e.message)
        return None

    deck = candidate_deck(candidate)
    edition = candidate_edition(candidate, deck)

    aliases = as_string_list(candidate.get("aliases"))
    name_ja = as_string(candidate.get("nameJa"))
    if name_ja and name_ja != name and name_ja not in aliases:
        aliases.append(name_ja)

    metadata: dict[str, str | int | float | bool] = {}
    for key in METADATA_ID_KEYS:
        value = as_string(candidate.get(key))
        if value:
            metadata[key] = value
    revision_key = as_string((as_record(candidate.get("revision")) or {}).get("key"))
    if revision_key:
        metadata["revisionKey"] = revision_key

    canonical_id = registry.claim(
        canonical_id_from_parts(edition, card_type, name),
        row_suffix(*(as_string(candidate.get(key)) for key in reversed(METADATA_ID_KEYS))),
    )

    return CardRecord(
        canonical_id=canonical_id,
        name=name,
        aliases=aliases,
        card_type=card_type,
        deck=deck,
        edition=edition,
        text=_first_string(candidate, TEXT_KEYS) or "",
        prerequisites=_first_string(candidate, PREREQUISITE_KEYS) or UNKNOWN_PREREQUISITES,
        metadata=metadata or None,
    )


@dataclass
class ParsedCandidates:
    cards: list[CardRecord] = field(default_factory=list)
    source_rows: int = 0
    invalid_rows: int = 0


def parse_payload(payload: Any) -> ParsedCandidates:
    """Parse every card candidate of an AgricolaDB payload."""
    rows = pick_card_array(payload)
    registry = CanonicalIdRegistry()
    parsed = ParsedCandidates(source_rows=len(rows))
    for row in rows:
        card = parse_candidate(row, registry) if isinstance(row, dict) else None
        if card is None:
            parsed.invalid_rows += 1
        else:
            parsed.cards.append(card)
    return parsed


def _sample(
    canonical_id: str,
    name: str,
    card_type: CardType,
    deck: str,
    text: str,
    prerequisites: str,
    aliases: list[str] | None = None,
) -> CardRecord:
    return CardRecord(
        canonical_id=canonical_id,
        name=name,
        aliases=aliases or [],
        card_type=card_type,
        deck=deck,
        edition=Edition(canonical_id.split(":", 1)[0]),
        text=text,
        prerequisites=prerequisites,
    )


def fallback_cards() -> ParsedCandidates:
    """Embedded cross-edition sample."""
    occupation = CardType.OCCUPATION
    minor = CardType.MINOR_IMPROVEMENT
    cards = [
        _sample(
            "old:occupation:brushwood_collector",
            "Brushwood Collector",
            occupation,
            "E",
            "When you build fences, you need 1 less wood than usual.",
            "none",
            ["Brush Collector"],
        ),
        _sample(
            "old:occupation:clay_worker",
            "Clay Worker",
            occupation,
            "I",
            "At any time, you can exchange 1 reed for 1 clay.",
            "none",
        ),
        _sample(
            "old:occupation:plow_driver",
            "Plow Driver",
            occupation,
            "K",
            "Each time another player plows a field, you may plow 1 field.",
            "none",
            ["Plough Driver"],
        ),
        _sample(
            "old:minor_improvement:loom",
            "Loom",
            minor,
            "E",
            "At the end of each harvest, you can convert 2 sheep to 3 food.",
            "Pay 2 wood",
        ),
        _sample(
            "old:minor_improvement:piglet_shelter",
            "Piglet Shelter",
            minor,
            "I",
            "When you play this, immediately place 1 boar in your home.",
            "Pay 1 wood, 1 reed",
        ),
        _sample(
            "revised:occupation:field_watchman",
            "Field Watchman",
            occupation,
            "A",
            "When you take a sowing action, gain 1 grain from the supply.",
            "none",
        ),
        _sample(
            "revised:occupation:sheep_whisperer",
            "Sheep Whisperer",
            occupation,
            "B",
            "Each time you gain sheep, gain 1 extra sheep (max once per round).",
            "none",
        ),
        _sample(
            "revised:minor_improvement:clay_oven",
            "Clay Oven",
            minor,
            "D",
            "Bake up to 2 grain for 5 food each when using a baking action.",
            "Pay 3 clay, 1 stone",
        ),
        _sample(
            "revised:major_improvement:cooking_hearth",
            "Cooking Hearth",
            CardType.MAJOR_IMPROVEMENT,
            "M",
            "Bake bread and convert animals to food at improved rates.",
            "Pay 4 clay",
        ),
    ]
    return ParsedCandidates(cards=cards)


def import_agricoladb(
    *,
    url: str | None = None,
    raw_dir: Path | None = None,
    datasets_dir: Path | None = None,
    client: httpx.Client | None = None,
    timestamp: str | None = None,
) -> ImportResult:
    """
    Import the AgricolaDB card reference.

    The live fetch runs only when an AgricolaDB URL is configured.
    """
    url = url if url is not None else settings.agricoladb_url
    raw_dir = raw_dir or settings.raw_data_dir
    datasets_dir = datasets_dir or settings.datasets_dir
    timestamp = generated_at(timestamp or settings.generated_at)
    snapshot_path = raw_dir / SNAPSHOT_FILE

    def load_cache() -> ParsedCandidates | None:
        if not snapshot_path.exists():
            return None
        snapshot = read_json(snapshot_path)
        if isinstance(snapshot, dict) and "payload" in snapshot:
            return parse_payload(snapshot["payload"])
        return parse_payload(snapshot)

    def fetch(http: httpx.Client) -> ParsedCandidates:
        payload = fetch_json(url, http)
        write_json(
            snapshot_path,
            {"fetchedAt": timestamp, "sourceMode": "network", "sourceUrl": url, "payload": payload},
        )
        return parse_payload(payload)

    with http_client(client, settings.http_timeout) as http:
        chain: SourceChain[ParsedCandidates] = SourceChain(
            name="agricoladb",
            load_cache=load_cache,
            fetch=(lambda: fetch(http)) if url else None,
            fallback=fallback_cards,
            accept=lambda parsed: bool(parsed.cards),
            cache_location=str(snapshot_path),
            fetch_location=url,
        )
        source = chain.resolve()

    parsed = source.value
    package = build_package(
        dataset_id=DATASET_ID,
        label="AgricolaDB Card Reference",
        source_name="AgricolaDB",
        source_url=url or PLACEHOLDER_URL,
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
            note=f"Invalid rows skipped: {parsed.invalid_rows}.",
        ),
    )

    output_path = write_package(datasets_dir, package)
    logger.info("agricoladb: wrote %d cards using %s mode", len(package.cards), source.mode.value)

    return ImportResult(
        source="agricoladb",
        dataset_id=DATASET_ID,
        output_path=output_path,
        source_mode=source.mode,
        source_rows=parsed.source_rows,
        imported_cards=len(package.cards),
        skipped_rows=parsed.invalid_rows,
        attempts=source.attempts,
    )
