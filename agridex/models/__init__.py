from agridex.models.contracts import (
    COUNT_FIELDS,
    PERCENT_FIELDS,
    SCORE_FIELDS,
    UNRESOLVED_PREFIX,
    CardRecord,
    CardType,
    DatasetIndexEntry,
    DatasetManifest,
    DatasetPackage,
    Edition,
    ImportStatus,
    StatRecord,
    UnmatchedCard,
)
from agridex.models.failure import (
    DatasetValidationError,
    FailureKind,
    KnownError,
    MissingColumnError,
    SourceUnavailableError,
    UnsupportedCardTypeError,
)

__all__ = [
    "COUNT_FIELDS",
    "CardRecord",
    "CardType",
    "DatasetIndexEntry",
    "DatasetManifest",
    "DatasetPackage",
    "DatasetValidationError",
    "Edition",
    "FailureKind",
    "ImportStatus",
    "KnownError",
    "MissingColumnError",
    "PERCENT_FIELDS",
    "SCORE_FIELDS",
    "SourceUnavailableError",
    "StatRecord",
    "UNRESOLVED_PREFIX",
    "UnmatchedCard",
    "UnsupportedCardTypeError",
]
