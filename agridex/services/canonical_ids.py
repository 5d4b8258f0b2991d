"""
Canonical identifier derivation and collision resolution.

A canonical id is "{edition}:{card_type}:{normalized_name}", optionally
followed by a disambiguator. Collisions within one import run resolve
in a fixed order:

1. The preferred id, if unused.
2. "{id}_{disambiguator}", where the disambiguator is a normalized digest
   of distinguishing source fields (expansion/players/cost or a UUID).
3. "{id}_2", "{id}_3", ... the first unused counter.

Readable disambiguators come first because ids also appear in URLs.

The set of used ids belongs to a single import run (CanonicalIdRegistry).
There is no process-wide registry.
"""

import re
from collections.abc import Iterable

from agridex.models.contracts import CardType, Edition
from agridex.services.normalizer import normalize_name

ROW_SUFFIX_LIMIT = 20
UUID_SUFFIX_LIMIT = 10

_NON_ALNUM = re.compile(r"[^a-z0-9]")


def canonical_id_from_parts(edition: Edition, card_type: CardType, name: str) -> str:
    """Derive the canonical id for a card. Pure and deterministic."""
    return f"{edition.value}:{card_type.value}:{normalize_name(name)}"


def row_suffix(*parts: str | None, limit: int = ROW_SUFFIX_LIMIT) -> str:
    """
    Build a readable disambiguator from distinguishing source fields.

    row_suffix("Base", "3+", "2 wood") -> "base_3_2_wood"

    Returns an empty string when no part is present.
    """
    present = [part.strip() for part in parts if part and part.strip()]
    if not present:
        return ""
    return normalize_name("_".join(present))[:limit]


def uuid_suffix(source_uuid: str | None, limit: int = UUID_SUFFIX_LIMIT) -> str:
    """Build a disambiguator from a source UUID: lowercase alphanumerics, truncated."""
    if not source_uuid:
        return ""
    return _NON_ALNUM.sub("", source_uuid.lower())[:limit]


def ensure_unique_canonical_id(
    preferred: str,
    used: set[str] | frozenset[str],
    disambiguator: str | None = None,
) -> str:
    """
    Resolve a canonical id against the ids already used in this run.

    Does not record the result; see CanonicalIdRegistry.claim.

    Args:
        preferred: Id derived from the card's own fields
        used: Ids already taken in this run
        disambiguator: Optional readable suffix (already normalized)

    Returns:
        An id not present in used
    """
    if preferred not in used:
        return preferred

    if disambiguator:
        candidate = f"{preferred}_{disambiguator}"
        if candidate not in used:
            return candidate

    index = 2
    while f"{preferred}_{index}" in used:
        index += 1
    return f"{preferred}_{index}"


class CanonicalIdRegistry:
    """
    The ids used so far within one import run.

    Create one per importer invocation. Never share between runs.
    """

    def __init__(self, used: Iterable[str] = ()) -> None:
        self._used: set[str] = set(used)

    def __contains__(self, canonical_id: str) -> bool:
        return canonical_id in self._used

    def __len__(self) -> int:
        return len(self._used)

    def claim(self, preferred: str, disambiguator: str | None = None) -> str:
        """Resolve preferred against used ids and record the result."""
        canonical_id = ensure_unique_canonical_id(preferred, self._used, disambiguator)
        self._used.add(canonical_id)
        return canonical_id
