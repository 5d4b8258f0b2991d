"""
Shared result type and manifest helpers for the source importers.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from agridex.importers.source_chain import SourceMode
from agridex.models.contracts import (
    CardRecord,
    DatasetManifest,
    DatasetPackage,
    Edition,
    ImportStatus,
    StatRecord,
)
from agridex.services.dataset_store import sort_cards_by_name, version_from_timestamp

DEFAULT_LICENSE_NOTE = "Check source terms before redistribution."


@dataclass
class ImportResult:
    """
    Outcome of one importer invocation.

    Attributes:
        source: Importer name (as accepted by the import job's --only)
        dataset_id: Manifest id of the written package
        output_path: Where the package was written; None if nothing was
        source_mode: Which tier of the source chain produced the data
        source_rows: Rows read from the source
        imported_cards: Cards in the written package
        skipped_rows: Rows dropped as invalid or unsupported
        attempts: Source chain log
        error: File-level failure that prevented the import
    """

    source: str
    dataset_id: str
    output_path: Path | None = None
    source_mode: SourceMode | None = None
    source_rows: int = 0
    imported_cards: int = 0
    skipped_rows: int = 0
    attempts: list[str] = field(default_factory=list)
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def summary(self) -> dict[str, Any]:
        """Entry for reports/import_summary.json."""
        return {
            "source": self.source,
            "datasetId": self.dataset_id,
            "outputPath": str(self.output_path) if self.output_path else None,
            "sourceMode": self.source_mode.value if self.source_mode else None,
            "sourceRows": self.source_rows,
            "importedCards": self.imported_cards,
            "skippedRows": self.skipped_rows,
            "attempts": self.attempts,
            "error": self.error,
        }


def build_package(
    *,
    dataset_id: str,
    label: str,
    source_name: str,
    source_url: str,
    edition: Edition,
    comparability_group: str,
    timestamp: str,
    cards: list[CardRecord],
    stats: list[StatRecord],
    import_status: ImportStatus | None = None,
    license_note: str = DEFAULT_LICENSE_NOTE,
    version: str | None = None,
) -> DatasetPackage:
    """
    Assemble a package with the manifest flags derived from its content.

    hasStats is true when any stat is present; hasFullCardText when every
    card has non-blank text.
    """
    ordered = sort_cards_by_name(cards)
    manifest = DatasetManifest(
        id=dataset_id,
        label=label,
        version=version or version_from_timestamp(timestamp),
        source_name=source_name,
        source_url=source_url,
        edition=edition,
        comparability_group=comparability_group,
        generated_at=timestamp,
        license_note=license_note,
        has_full_card_text=bool(ordered) and all(card.text.strip() for card in ordered),
        has_stats=bool(stats),
        import_status=import_status,
    )
    return DatasetPackage(manifest=manifest, cards=ordered, stats=stats)
