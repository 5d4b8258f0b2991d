"""
Failure classification for the import pipeline.

Every failure the pipeline can raise is a KnownError with a FailureKind.
Where it is caught decides what it means:

- Row-level (UNSUPPORTED_CARD_TYPE, INVALID_ROW): caught at the row
  boundary and converted to a skip. Never aborts a run.
- File-level (MISSING_REQUIRED): aborts the one input file.
- Source-level (SOURCE_UNAVAILABLE, EMPTY_RESULT): caught at the source
  boundary and converted to the next fallback tier.
- Validation-level (VALIDATION_FAILED): blocks publication of the index.
"""

from enum import Enum


class FailureKind(str, Enum):
    """Classification of failure types."""

    # Row failures
    INVALID_ROW = "invalid_row"
    UNSUPPORTED_CARD_TYPE = "unsupported_card_type"

    # File failures
    MISSING_REQUIRED = "missing_required"

    # Source failures
    SOURCE_UNAVAILABLE = "source_unavailable"
    EMPTY_RESULT = "empty_result"

    # Publication failures
    VALIDATION_FAILED = "validation_failed"


class KnownError(Exception):
    """
    Exception for failures the pipeline knows how to classify.

    Attributes:
        kind: Failure classification
        message: Human-readable explanation
        detail: Additional technical detail (optional)
        suggestion: Suggested operator action (optional)
    """

    def __init__(
        self,
        kind: FailureKind,
        message: str,
        detail: str | None = None,
        suggestion: str | None = None,
    ) -> None:
        super().__init__(message)
        self.kind = kind
        self.message = message
        self.detail = detail
        self.suggestion = suggestion


class UnsupportedCardTypeError(KnownError):
    """Raised when a raw card type is not in the alias table."""

    def __init__(self, raw_type: str) -> None:
        super().__init__(
            kind=FailureKind.UNSUPPORTED_CARD_TYPE,
            message=f'Unsupported card type: "{raw_type}"',
        )
        self.raw_type = raw_type


class MissingColumnError(KnownError):
    """Raised when a delimited file lacks a required column."""

    def __init__(self, column: str) -> None:
        super().__init__(
            kind=FailureKind.MISSING_REQUIRED,
            message=f'CSV is missing required column "{column}".',
            suggestion="Start from datasets/_imports/template.csv.",
        )
        self.column = column


class SourceUnavailableError(KnownError):
    """Raised when a source could not be read or fetched."""

    def __init__(self, source: str, detail: str | None = None) -> None:
        super().__init__(
            kind=FailureKind.SOURCE_UNAVAILABLE,
            message=f"Source unavailable: {source}",
            detail=detail,
        )
        self.source = source


class DatasetValidationError(KnownError):
    """Raised when a dataset package must not be published."""

    def __init__(self, problems: list[str]) -> None:
        super().__init__(
            kind=FailureKind.VALIDATION_FAILED,
            message=f"Dataset validation failed with {len(problems)} problem(s).",
            detail="; ".join(problems[:5]),
            suggestion="Fix every reported problem and re-run validation.",
        )
        self.problems = problems
