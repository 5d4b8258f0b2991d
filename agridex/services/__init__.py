"""
agridex services.

Normalization, canonical ids, cross-dataset matching, storage and
validation shared by every importer.
"""

from agridex.services.aliases import AliasResolver, load_alias_resolver
from agridex.services.canonical_ids import (
    CanonicalIdRegistry,
    canonical_id_from_parts,
    ensure_unique_canonical_id,
)
from agridex.services.card_matcher import CardMatcher, MatchOutcome
from agridex.services.normalizer import (
    normalize_card_type,
    normalize_edition,
    normalize_name,
)
from agridex.services.validator import (
    IndexBuildResult,
    build_dataset_index,
    ensure_publishable,
    publish_dataset_index,
    validate_dataset_package,
)

__all__ = [
    "AliasResolver",
    "CanonicalIdRegistry",
    "CardMatcher",
    "IndexBuildResult",
    "MatchOutcome",
    "build_dataset_index",
    "canonical_id_from_parts",
    "ensure_publishable",
    "ensure_unique_canonical_id",
    "load_alias_resolver",
    "normalize_card_type",
    "normalize_edition",
    "normalize_name",
    "publish_dataset_index",
    "validate_dataset_package",
]
