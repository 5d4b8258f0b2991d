from agridex.parsers.delimited import csv_headers, parse_csv_rows
from agridex.parsers.html_table import ParsedStatRow, parse_stats_html
from agridex.parsers.json_payload import pick_card_array

__all__ = [
    "ParsedStatRow",
    "csv_headers",
    "parse_csv_rows",
    "parse_stats_html",
    "pick_card_array",
]
