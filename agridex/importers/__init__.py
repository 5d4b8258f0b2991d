"""
Source importers.

One module per source. Each importer reads its raw input through a
SourceChain (cache -> fetch -> fallback), maps rows to cards and stats with
its own canonical id registry, and writes one dataset package.
"""

from agridex.importers.agricola_norge import import_agricola_norge
from agridex.importers.agricolacards import import_agricolacards
from agridex.importers.agricoladb import import_agricoladb
from agridex.importers.base import ImportResult
from agridex.importers.bgg import import_bgg_directory
from agridex.importers.csv_import import csv_rows_to_dataset_records, import_csv_directory
from agridex.importers.play_agricola import import_play_agricola
from agridex.importers.source_chain import ChainState, SourceChain, SourceMode, SourceResult

__all__ = [
    "ChainState",
    "ImportResult",
    "SourceChain",
    "SourceMode",
    "SourceResult",
    "csv_rows_to_dataset_records",
    "import_agricola_norge",
    "import_agricolacards",
    "import_agricoladb",
    "import_bgg_directory",
    "import_csv_directory",
    "import_play_agricola",
]
