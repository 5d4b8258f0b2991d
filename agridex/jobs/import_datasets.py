"""
Job to run the source importers.

Importers that depend on nothing run concurrently in worker threads; the
Play-Agricola importer runs afterwards because it matches against the
AgricolaCards reference package. A source that raises is logged and recorded as
a failed result; the run goes on. Writes reports/import_summary.json.

Usage:
    python -m agridex.jobs.import_datasets
    python -m agridex.jobs.import_datasets --only norge --only csv
"""

import argparse
import asyncio
import logging
from collections.abc import Callable

from agridex.config import Settings, settings
from agridex.importers.agricola_norge import import_agricola_norge
from agridex.importers.agricolacards import import_agricolacards
from agridex.importers.agricoladb import import_agricoladb
from agridex.importers.base import ImportResult
from agridex.importers.bgg import import_bgg_directory
from agridex.importers.csv_import import import_csv_directory
from agridex.importers.play_agricola import import_play_agricola
from agridex.services.dataset_store import generated_at, write_json

logger = logging.getLogger(__name__)

SUMMARY_FILE = "import_summary.json"

INDEPENDENT_SOURCES = ("agricolacards", "agricoladb", "norge", "csv", "bgg")
DEPENDENT_SOURCES = ("play_agricola",)
VALID_SOURCES = INDEPENDENT_SOURCES + DEPENDENT_SOURCES


def _importers(config: Settings, timestamp: str) -> dict[str, Callable[[], list[ImportResult]]]:
    return {
        "agricolacards": lambda: [
            import_agricolacards(
                url=config.agricolacards_url,
                raw_dir=config.raw_data_dir,
                datasets_dir=config.datasets_dir,
                timestamp=timestamp,
            )
        ],
        "agricoladb": lambda: [
            import_agricoladb(
                url=config.agricoladb_url,
                raw_dir=config.raw_data_dir,
                datasets_dir=config.datasets_dir,
                timestamp=timestamp,
            )
        ],
        "norge": lambda: [
            import_agricola_norge(
                url=config.norge_url,
                raw_dir=config.raw_data_dir,
                datasets_dir=config.datasets_dir,
                reports_dir=config.reports_dir,
                timestamp=timestamp,
            )
        ],
        "csv": lambda: import_csv_directory(
            imports_dir=config.imports_dir,
            datasets_dir=config.datasets_dir,
            timestamp=timestamp,
        ),
        "bgg": lambda: import_bgg_directory(
            bgg_dir=config.bgg_imports_dir,
            datasets_dir=config.datasets_dir,
            reports_dir=config.reports_dir,
            source_url=config.bgg_source_url,
            timestamp=timestamp,
        ),
        "play_agricola": lambda: [
            import_play_agricola(
                urls=config.play_agricola_url_list,
                raw_dir=config.raw_data_dir,
                datasets_dir=config.datasets_dir,
                reports_dir=config.reports_dir,
                alias_path=config.alias_path,
                timestamp=timestamp,
            )
        ],
    }


def run_source(name: str, importer: Callable[[], list[ImportResult]]) -> list[ImportResult]:
    """
    Run one importer. An unexpected error is logged and recorded as a
    failed result so the other sources still run.
    """
    try:
        return importer()
    except Exception as e:
        logger.error("Error importing %s: %s", name, e)
        return [ImportResult(source=name, dataset_id=name, error=f"Import failed: {e}")]


async def run_imports(
    sources: list[str] | None = None,
    config: Settings = settings,
) -> list[ImportResult]:
    """
    Run all or the selected importers.

    Args:
        sources: Source names to run. If None, runs every source.
        config: Settings providing URLs and directories

    Returns:
        One ImportResult per written (or rejected) dataset
    """
    selected = list(VALID_SOURCES) if sources is None else sources
    for name in selected:
        if name not in VALID_SOURCES:
            logger.warning("Skipping unknown source: %s", name)

    timestamp = generated_at(config.generated_at)
    importers = _importers(config, timestamp)

    independent = [name for name in INDEPENDENT_SOURCES if name in selected]
    batches = await asyncio.gather(
        *(asyncio.to_thread(run_source, name, importers[name]) for name in independent)
    )

    results = [result for batch in batches for result in batch]
    for name in DEPENDENT_SOURCES:
        if name in selected:
            results.extend(await asyncio.to_thread(run_source, name, importers[name]))

    write_json(
        config.reports_dir / SUMMARY_FILE,
        {"generatedAt": timestamp, "results": [result.summary() for result in results]},
    )

    failed = [result for result in results if not result.ok]
    logger.info(
        "Import complete: %d datasets written, %d rejected",
        len(results) - len(failed),
        len(failed),
    )
    return results


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Import card datasets from every source.")
    parser.add_argument(
        "--only",
        action="append",
        choices=VALID_SOURCES,
        help="Run only this source (repeatable)",
    )
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> None:
    """CLI entry point."""
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    args = parse_args(argv)
    asyncio.run(run_imports(args.only))


if __name__ == "__main__":
    main()
