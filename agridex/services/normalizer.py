"""
Text normalization shared by every importer.

Name slugs double as identity keys and as the human-legible segment of
canonical ids. Card type and edition lookups are driven by the tables
below so the heuristics can be audited in one place.
"""

import re
import unicodedata

from agridex.models.contracts import CardType, Edition
from agridex.models.failure import UnsupportedCardTypeError

# Keys are lowercase with hyphens and underscores read as written
CARD_TYPE_ALIASES: dict[str, CardType] = {
    "occupation": CardType.OCCUPATION,
    "occ": CardType.OCCUPATION,
    "occupations": CardType.OCCUPATION,
    "minor": CardType.MINOR_IMPROVEMENT,
    "minor improvement": CardType.MINOR_IMPROVEMENT,
    "minor_improvement": CardType.MINOR_IMPROVEMENT,
    "minorimprovement": CardType.MINOR_IMPROVEMENT,
    "major": CardType.MAJOR_IMPROVEMENT,
    "major improvement": CardType.MAJOR_IMPROVEMENT,
    "major_improvement": CardType.MAJOR_IMPROVEMENT,
    "majorimprovement": CardType.MAJOR_IMPROVEMENT,
}

# Deck code -> edition. Heuristic: decks not listed resolve to MIXED.
DECK_EDITIONS: dict[str, Edition] = {
    "E": Edition.OLD,
    "I": Edition.OLD,
    "K": Edition.OLD,
    "A": Edition.REVISED,
    "B": Edition.REVISED,
    "C": Edition.REVISED,
    "D": Edition.REVISED,
    "M": Edition.REVISED,
    "L": Edition.REVISED,
    "CD": Edition.REVISED,
}

_EDITION_NAMES: dict[str, Edition] = {edition.value: edition for edition in Edition}

_NON_NAME_CHARS = re.compile(r"[^\w\s-]")
_WHITESPACE = re.compile(r"\s+")
_CAMEL_BOUNDARY = re.compile(r"([a-z])([A-Z])")


def normalize_name(value: str) -> str:
    """
    Convert a display name into a slug.

    "Brushwood Collector" -> "brushwood_collector"
    "Café Owner!" -> "cafe_owner"

    Idempotent: normalize_name(normalize_name(x)) == normalize_name(x).
    Distinct names may collide; collisions are resolved by the
    canonical id registry, not here.
    """
    decomposed = unicodedata.normalize("NFKD", value)
    # Lowercasing can reintroduce decomposable characters (e.g. "İ")
    lowered = unicodedata.normalize("NFKD", decomposed.lower())
    stripped = _NON_NAME_CHARS.sub("", lowered).strip()
    return _WHITESPACE.sub("_", stripped)


def split_camel_case(value: str) -> str:
    """Split CamelCase source labels: "MinorImprovement" -> "Minor Improvement"."""
    return _CAMEL_BOUNDARY.sub(r"\1 \2", value).strip()


def normalize_card_type(value: str) -> CardType:
    """
    Map a raw card type label onto a CardType.

    Raises:
        UnsupportedCardTypeError: If the label is not a known alias.
            Callers skip the row; this never aborts a run.
    """
    key = _WHITESPACE.sub(" ", value.strip().lower().replace("-", " "))
    card_type = CARD_TYPE_ALIASES.get(key)
    if card_type is None:
        raise UnsupportedCardTypeError(value)
    return card_type


def normalize_edition(value: str | None, deck_hint: str | None = None) -> Edition:
    """
    Resolve an edition from an explicit label or a deck code.

    An exact "old" / "revised" / "mixed" label wins. Otherwise the deck
    code is looked up in DECK_EDITIONS. Anything else is MIXED.
    Never raises.
    """
    explicit = _EDITION_NAMES.get((value or "").strip().lower())
    if explicit is not None:
        return explicit

    if deck_hint:
        by_deck = DECK_EDITIONS.get(deck_hint.strip().upper())
        if by_deck is not None:
            return by_deck

    return Edition.MIXED


def source_card_type(value: str | None) -> CardType | None:
    """
    Read the card type column of a scraped statistics row.

    Accepts CamelCase labels ("MinorImprovement"). Returns None when the
    source gives no type.

    Raises:
        UnsupportedCardTypeError: If a type is given but not recognised
    """
    if not value or not value.strip():
        return None
    return normalize_card_type(split_camel_case(value))
