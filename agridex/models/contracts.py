"""
Dataset Package Models.

This module defines the published dataset schema shared by every importer
and consumed by the lookup UI.

INVARIANTS (checked by the validator, not at construction):
- canonical_id is unique among the cards of one package
- (canonical_id, metric_set) is unique among the stats of one package
- Every stat references a card of the same package
- has_stats implies stats is non-empty
- has_full_card_text implies every card has non-empty text

Attribute names are snake_case; serialized JSON uses camelCase.
Records are frozen. Re-keying a card before publication goes through
model_copy(update={"canonical_id": ...}).
"""

from datetime import datetime
from enum import Enum
from typing import Any
from urllib.parse import urlparse

from pydantic import BaseModel, ConfigDict, Field, NonNegativeInt, field_validator
from pydantic.alias_generators import to_camel

UNRESOLVED_PREFIX = "unresolved:"

PERCENT_FIELDS = ("deal_pct", "played_pct", "win_pct")
COUNT_FIELDS = (
    "dealt_count",
    "drafted_count",
    "played_count",
    "won_count",
    "banned_count",
    "sample_size",
)
SCORE_FIELDS = ("adp", "pwr", "pwr_no_log")


class CardType(str, Enum):
    """The three card families of the game."""

    OCCUPATION = "occupation"
    MINOR_IMPROVEMENT = "minor_improvement"
    MAJOR_IMPROVEMENT = "major_improvement"


class Edition(str, Enum):
    """Rules edition a card belongs to."""

    OLD = "old"
    REVISED = "revised"
    MIXED = "mixed"


class ContractModel(BaseModel):
    """Base for all published records: camelCase on the wire, immutable."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )

    def to_json_dict(self) -> dict[str, Any]:
        """Serialize with stable camelCase field names, omitting absent fields."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class CardRecord(ContractModel):
    """
    A single distinct card concept.

    Attributes:
        canonical_id: edition:type:normalized_name[_disambiguator]
        name: Display name
        aliases: Alternate display names (order kept for display)
        card_type: Card family
        deck: Short deck code (E, I, K, A, ...)
        edition: Rules edition
        text: Ability text, may be empty
        prerequisites: Cost / prerequisite text
        metadata: Source-specific attributes
    """

    canonical_id: str = Field(min_length=1)
    name: str = Field(min_length=1)
    aliases: list[str] = Field(default_factory=list)
    card_type: CardType
    deck: str | None = Field(default=None, min_length=1)
    edition: Edition | None = None
    text: str = ""
    prerequisites: str | None = None
    metadata: dict[str, str | int | float | bool] | None = None


class StatRecord(ContractModel):
    """One statistics observation about a card under one metric methodology."""

    canonical_id: str = Field(min_length=1)
    metric_set: str = Field(min_length=1)

    # Percentages; the [0, 100] range is a validator check
    deal_pct: float | None = None
    played_pct: float | None = None
    win_pct: float | None = None

    # Counts; non-negativity is a validator check
    dealt_count: int | None = None
    drafted_count: int | None = None
    played_count: int | None = None
    won_count: int | None = None
    banned_count: int | None = None
    sample_size: int | None = None

    adp: float | None = None
    pwr: float | None = None
    pwr_no_log: float | None = None

    notes: str | None = None

    @property
    def has_metrics(self) -> bool:
        """True if any metric or note is present."""
        names = (*PERCENT_FIELDS, *COUNT_FIELDS, *SCORE_FIELDS, "notes")
        return any(getattr(self, name) is not None for name in names)


class ImportStatus(ContractModel):
    """Summary of the import run that produced a package."""

    source_mode: str | None = Field(default=None, min_length=1)
    source_rows: NonNegativeInt | None = None
    imported_cards: NonNegativeInt | None = None
    matched_cards: NonNegativeInt | None = None
    unmatched_cards: NonNegativeInt | None = None
    fallback_used: bool | None = None
    note: str | None = None


class DatasetManifest(ContractModel):
    """Provenance and QA metadata for one dataset package."""

    id: str = Field(min_length=1)
    label: str = Field(min_length=1)
    version: str = Field(min_length=1)
    source_name: str = Field(min_length=1)
    source_url: str
    edition: Edition
    comparability_group: str = Field(min_length=1)
    generated_at: str
    license_note: str = Field(min_length=1)
    has_full_card_text: bool
    has_stats: bool
    import_status: ImportStatus | None = None

    @field_validator("source_url")
    @classmethod
    def _absolute_url(cls, value: str) -> str:
        parsed = urlparse(value)
        if not parsed.scheme or not parsed.netloc:
            raise ValueError("Invalid url")
        return value

    @field_validator("generated_at")
    @classmethod
    def _offset_datetime(cls, value: str) -> str:
        try:
            parsed = datetime.fromisoformat(value)
        except ValueError as e:
            raise ValueError("Invalid datetime") from e
        if parsed.tzinfo is None:
            raise ValueError("Invalid datetime: offset required")
        return value


class DatasetPackage(ContractModel):
    """The unit of publication: manifest + cards + stats."""

    manifest: DatasetManifest
    cards: list[CardRecord]
    stats: list[StatRecord]


class DatasetIndexEntry(ContractModel):
    """One row of public/datasets/index.json."""

    id: str
    file: str
    manifest: DatasetManifest


class UnmatchedCard(ContractModel):
    """Side-report entry for a source row with no reference match."""

    name: str
    normalized_name: str
    source_card_type: str | None = None
    source_card_uuid: str | None = None
    source_play_agricola_card_name: str | None = None
