"""
Parser for delimited text exports (CSV).

The first line is the header. Each following line becomes a dict keyed by
header name. Values are trimmed strings; a blank or missing cell is "".
No type inference and no required-column checks happen here; both belong
to the mapping layer of each importer.
"""

import csv
from io import StringIO


def parse_csv_rows(text: str, delimiter: str = ",") -> list[dict[str, str]]:
    """
    Parse delimited text into header-keyed rows.

    Args:
        text: Raw file contents
        delimiter: Field separator

    Returns:
        List of rows in file order. Blank lines are skipped.
    """
    reader = csv.DictReader(StringIO(text.lstrip("\ufeff")), delimiter=delimiter)

    if not reader.fieldnames:
        return []

    headers = [header.strip() for header in reader.fieldnames]
    rows: list[dict[str, str]] = []

    for raw in reader:
        values = [raw.get(original) for original in reader.fieldnames]
        if all(value is None or not value.strip() for value in values):
            continue
        rows.append(
            {
                header: (value or "").strip()
                for header, value in zip(headers, values, strict=True)
            }
        )

    return rows


def csv_headers(text: str, delimiter: str = ",") -> list[str]:
    """Return the trimmed header names of delimited text (empty if none)."""
    reader = csv.reader(StringIO(text.lstrip("\ufeff")), delimiter=delimiter)
    for header_row in reader:
        if any(cell.strip() for cell in header_row):
            return [cell.strip() for cell in header_row]
    return []
