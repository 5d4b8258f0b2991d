"""
Alias resolution for known card-name variants.

The alias file maps alternate display names to canonical display names:

    {"aliases": {"Plough Driver": "Plow Driver"}}

Both sides are stored normalized, so lookups are case- and
diacritic-insensitive.
"""

import json
import logging
from collections.abc import Mapping
from pathlib import Path

from agridex.services.normalizer import normalize_name

logger = logging.getLogger(__name__)


class AliasResolver:
    """Maps normalized alias names onto normalized canonical names."""

    def __init__(self, aliases: Mapping[str, str] | None = None) -> None:
        self._aliases: dict[str, str] = {}
        for alias, canonical in (aliases or {}).items():
            self._aliases[normalize_name(alias)] = normalize_name(canonical)

    def __len__(self) -> int:
        return len(self._aliases)

    def __contains__(self, name: str) -> bool:
        return normalize_name(name) in self._aliases

    def resolve(self, normalized_name: str) -> str:
        """Return the canonical normalized name, or the input if not an alias."""
        return self._aliases.get(normalized_name, normalized_name)


def load_alias_resolver(path: Path) -> AliasResolver:
    """
    Load the alias map from disk.

    A missing, unreadable or malformed file degrades to an empty
    resolver rather than failing the run.

    Args:
        path: Path to the alias JSON file

    Returns:
        AliasResolver (possibly empty)
    """
    try:
        with open(path, encoding="utf-8") as f:
            payload = json.load(f)
    except FileNotFoundError:
        logger.info("No alias file at %s; continuing without aliases", path)
        return AliasResolver()
    except (OSError, ValueError) as e:
        logger.warning("Ignoring unreadable alias file %s: %s", path, e)
        return AliasResolver()

    aliases = payload.get("aliases") if isinstance(payload, dict) else None
    if not isinstance(aliases, dict):
        logger.warning("Alias file %s has no 'aliases' object; ignoring", path)
        return AliasResolver()

    entries = {
        str(alias): str(canonical)
        for alias, canonical in aliases.items()
        if isinstance(canonical, str)
    }
    resolver = AliasResolver(entries)
    logger.debug("Loaded %d aliases from %s", len(resolver), path)
    return resolver
