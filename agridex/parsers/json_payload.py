"""
Locate the card array inside an arbitrarily nested API payload.

Supported shapes:
- A top-level list
- {"cards": [...]}, {"data": [...]}, {"cardList": [...]},
  {"items": [...]}, {"results": [...]}
- GraphQL connections: {"cards": {"edges": [{"node": {...}}]}}
- Any of the above nested under "data"
"""

from typing import Any

CARD_ARRAY_KEYS = ("cards", "data", "cardList", "items", "results")


def pick_card_array(payload: Any) -> list[Any]:
    """
    Return the list of card candidates held by a payload.

    Probes CARD_ARRAY_KEYS in order. Returns an empty list when no
    candidate array exists. Pure.
    """
    if isinstance(payload, list):
        return payload

    if not isinstance(payload, dict):
        return []

    for key in CARD_ARRAY_KEYS:
        value = payload.get(key)
        if isinstance(value, list):
            return value

        if isinstance(value, dict):
            edges = value.get("edges")
            if isinstance(edges, list):
                return [
                    edge["node"]
                    for edge in edges
                    if isinstance(edge, dict) and isinstance(edge.get("node"), dict) and edge["node"]
                ]

    if "data" in payload:
        return pick_card_array(payload["data"])

    return []


def as_string(value: Any) -> str | None:
    """Return a trimmed string, or None for non-strings."""
    return value.strip() if isinstance(value, str) else None


def as_record(value: Any) -> dict[str, Any] | None:
    return value if isinstance(value, dict) else None


def as_string_list(value: Any) -> list[str]:
    if not isinstance(value, list):
        return []
    return [item.strip() for item in value if isinstance(item, str)]
