"""
Job to validate published datasets and write the dataset index.

Every package under public/datasets/ is validated. index.json is written
only when no package has a problem; otherwise every problem is logged and
the job exits with status 1.
"""

import logging
import sys

from agridex.config import Settings, settings
from agridex.services.validator import IndexBuildResult, publish_dataset_index

logger = logging.getLogger(__name__)


def run_validation(config: Settings = settings) -> IndexBuildResult:
    """Validate every dataset of the configured directory and publish the index."""
    logger.info("Validating datasets in %s...", config.datasets_dir)
    return publish_dataset_index(config.datasets_dir, config.required_dataset_id_set)


def main() -> None:
    """CLI entry point."""
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    result = run_validation()
    if not result.publishable:
        sys.exit(1)


if __name__ == "__main__":
    main()
