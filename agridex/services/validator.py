"""
Dataset package validation.

A package is publishable only when validate_dataset_package reports zero
problems. Every check runs and every problem is reported; nothing
short-circuits except a schema failure, after which typed checks cannot
run.

The validator never raises for bad data. Structural problems come back
as "Schema: <path>: <message>" entries.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from pydantic import ValidationError
from pydantic.alias_generators import to_camel

from agridex.models.contracts import (
    COUNT_FIELDS,
    PERCENT_FIELDS,
    UNRESOLVED_PREFIX,
    DatasetIndexEntry,
    DatasetPackage,
)
from agridex.models.failure import DatasetValidationError
from agridex.services.dataset_store import read_json, write_json

logger = logging.getLogger(__name__)

INDEX_FILE_NAME = "index.json"
PERCENT_RANGE = (0.0, 100.0)


def _schema_problems(error: ValidationError) -> list[str]:
    problems: list[str] = []
    for issue in error.errors():
        path = ".".join(str(part) for part in issue["loc"])
        problems.append(f"Schema: {path}: {issue['msg']}")
    return problems


def _coerce_package(dataset: DatasetPackage | dict[str, Any]) -> DatasetPackage | list[str]:
    """Re-validate the package structure. Returns the typed package or schema problems."""
    if isinstance(dataset, DatasetPackage):
        # Records may have been re-keyed with model_copy, which skips validation
        raw: Any = dataset.model_dump(mode="json", by_alias=True, exclude_none=True, warnings=False)
    else:
        raw = dataset

    try:
        return DatasetPackage.model_validate(raw)
    except ValidationError as e:
        return _schema_problems(e)


def validate_dataset_package(dataset: DatasetPackage | dict[str, Any]) -> list[str]:
    """
    Check one dataset package against the schema and cross-field invariants.

    Args:
        dataset: Typed package, or raw JSON-decoded package

    Returns:
        Human-readable problems. Empty means publishable.
    """
    coerced = _coerce_package(dataset)
    if isinstance(coerced, list):
        return coerced
    package = coerced

    problems: list[str] = []

    card_ids: set[str] = set()
    for card in package.cards:
        if card.canonical_id in card_ids:
            problems.append(f'Duplicate card canonicalId "{card.canonical_id}"')
        card_ids.add(card.canonical_id)

        if card.canonical_id.startswith(UNRESOLVED_PREFIX):
            problems.append(f'Unresolved card canonicalId "{card.canonical_id}"')

    stat_keys: set[str] = set()
    for stat in package.stats:
        stat_key = f"{stat.canonical_id}:{stat.metric_set}"
        if stat_key in stat_keys:
            problems.append(f'Duplicate stat key "{stat_key}"')
        stat_keys.add(stat_key)

        low, high = PERCENT_RANGE
        for name in PERCENT_FIELDS:
            value = getattr(stat, name)
            if value is not None and not low <= value <= high:
                problems.append(f'Invalid {to_camel(name)} for "{stat.canonical_id}"')

        for name in COUNT_FIELDS:
            value = getattr(stat, name)
            if value is not None and value < 0:
                problems.append(f'Invalid {to_camel(name)} for "{stat.canonical_id}"')

        if stat.canonical_id.startswith(UNRESOLVED_PREFIX):
            problems.append(f'Unresolved stat canonicalId "{stat.canonical_id}"')
        elif stat.canonical_id not in card_ids:
            problems.append(f'Dangling stat canonicalId "{stat.canonical_id}" has no card')

    manifest = package.manifest
    if manifest.has_stats and not package.stats:
        problems.append("Manifest says hasStats=true but stats is empty.")
    if manifest.has_full_card_text and any(not card.text.strip() for card in package.cards):
        problems.append(
            "Manifest says hasFullCardText=true but one or more cards have empty text."
        )

    return problems


def ensure_publishable(dataset: DatasetPackage | dict[str, Any]) -> None:
    """
    Raise if a package must not be published.

    Raises:
        DatasetValidationError: Carrying every problem found
    """
    problems = validate_dataset_package(dataset)
    if problems:
        raise DatasetValidationError(problems)


@dataclass
class IndexBuildResult:
    """Outcome of validating every dataset file of a directory."""

    entries: list[DatasetIndexEntry] = field(default_factory=list)
    """Index entries sorted by manifest label."""

    problems: list[str] = field(default_factory=list)
    """Problems prefixed with the file name they were found in."""

    @property
    def publishable(self) -> bool:
        return not self.problems


def build_dataset_index(
    datasets_dir: Path,
    required_ids: frozenset[str] = frozenset(),
    url_prefix: str = "/datasets",
) -> IndexBuildResult:
    """
    Validate every dataset file in a directory and assemble the index.

    Args:
        datasets_dir: Directory holding <id>.json packages
        required_ids: Dataset ids that must be present
        url_prefix: Prefix of the "file" field of each entry

    Returns:
        IndexBuildResult with sorted entries and all problems
    """
    result = IndexBuildResult()
    files: list[Path] = []
    if datasets_dir.is_dir():
        files = sorted(p for p in datasets_dir.glob("*.json") if p.name != INDEX_FILE_NAME)

    if not files:
        result.problems.append(f"No dataset JSON files found in {datasets_dir}.")
        return result

    seen_ids: set[str] = set()
    for path in files:
        try:
            payload = read_json(path)
        except (OSError, ValueError) as e:
            result.problems.append(f"{path.name}: unreadable dataset file: {e}")
            continue

        coerced = _coerce_package(payload)
        if isinstance(coerced, list):
            result.problems.extend(f"{path.name}: {problem}" for problem in coerced)
            continue

        result.problems.extend(
            f"{path.name}: {problem}" for problem in validate_dataset_package(coerced)
        )

        manifest = coerced.manifest
        if manifest.id in seen_ids:
            result.problems.append(f'{path.name}: duplicate dataset manifest id "{manifest.id}".')
        seen_ids.add(manifest.id)

        result.entries.append(
            DatasetIndexEntry(id=manifest.id, file=f"{url_prefix}/{path.name}", manifest=manifest)
        )

    for required_id in sorted(required_ids - seen_ids):
        result.problems.append(f'Missing required dataset "{required_id}".')

    result.entries.sort(key=lambda entry: entry.manifest.label.casefold())
    return result


def publish_dataset_index(
    datasets_dir: Path,
    required_ids: frozenset[str] = frozenset(),
) -> IndexBuildResult:
    """
    Validate all datasets and write index.json only if none has a problem.

    Dataset files already written are never deleted.
    """
    result = build_dataset_index(datasets_dir, required_ids)
    if not result.publishable:
        logger.error("Dataset validation failed with %d problem(s)", len(result.problems))
        for problem in result.problems:
            logger.error(" - %s", problem)
        return result

    write_json(datasets_dir / INDEX_FILE_NAME, {"datasets": result.entries})
    logger.info("Dataset validation passed for %d datasets", len(result.entries))
    return result
