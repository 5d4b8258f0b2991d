"""
Statistics table parser for scraped HTML pages.

Reads the first <table> of a document and maps its columns onto a fixed
logical schema (card name, type, UUID, Play-Agricola name, deck and the
per-metric columns). Column resolution is data-driven: COLUMN_LABELS lists,
per logical column, the exact header labels tried first and the substrings
tried after that.

Some sources publish percentages where others publish raw counts, and
the same header can carry either. A value is a percentage only when its
cell contains a literal "%". A dedicated percentage column wins. Without
one, the percentage is read from the paired count column, which then
does not also yield a count.

Note: Mixed formatting inside one column ("25%" on one row, "1250" on the
next) yields a percentage for the first row and a count for the second.
There is no per-column reconciliation.

Parsing is pure: no I/O, no state kept between calls.
"""

import re
from dataclasses import dataclass, field

from bs4 import BeautifulSoup, Tag

_WHITESPACE = re.compile(r"\s+")
_HEADER_STRIP = re.compile(r"[^a-z0-9_ ]")
_DECIMAL = re.compile(r"[+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?")
_INTEGER = re.compile(r"\d+")
# A separator followed by exactly three digits groups thousands
_THOUSANDS = re.compile(r"(?<=\d)[.,\s](?=\d{3}(?!\d))")
_FRACTION = re.compile(r"\d[.,]\d")


@dataclass(frozen=True, slots=True)
class ColumnLabels:
    """Header labels that identify one logical column."""

    exact: tuple[str, ...] = ()
    contains: tuple[str, ...] = ()


# Order matters only for readability; each logical column resolves independently.
COLUMN_LABELS: dict[str, ColumnLabels] = {
    "card_name": ColumnLabels(exact=("card_name", "card name", "name"), contains=("card name",)),
    "card_type": ColumnLabels(exact=("card_type", "card type", "type")),
    "card_uuid": ColumnLabels(exact=("card_uuid", "card uuid", "uuid")),
    "play_agricola_card_name": ColumnLabels(contains=("play_agricola_card_name",)),
    "deck": ColumnLabels(contains=("deck",)),
    "deal_pct": ColumnLabels(exact=("deal pct", "deal_pct", "dealt pct", "dealt_pct")),
    "played_pct": ColumnLabels(exact=("played pct", "played_pct", "play pct")),
    "win_pct": ColumnLabels(exact=("win pct", "win_pct", "won pct")),
    "dealt_count": ColumnLabels(exact=("dealt",)),
    "drafted_count": ColumnLabels(exact=("drafted",)),
    "played_count": ColumnLabels(exact=("played",)),
    "won_count": ColumnLabels(exact=("won",)),
    "banned_count": ColumnLabels(exact=("banned",)),
    "adp": ColumnLabels(exact=("adp",)),
    "pwr": ColumnLabels(exact=("pwr",)),
    "pwr_no_log": ColumnLabels(exact=("pwr_no_log", "pwr no log")),
    "sample_size": ColumnLabels(contains=("sample",)),
}

# Percentage column -> count column it may be inferred from
PERCENT_COUNT_PAIRS: dict[str, str] = {
    "deal_pct": "dealt_count",
    "played_pct": "played_count",
    "win_pct": "won_count",
}

INTEGER_COLUMNS = ("dealt_count", "drafted_count", "played_count", "won_count", "banned_count")
DECIMAL_COLUMNS = ("adp", "pwr", "pwr_no_log")

# Play-Agricola card name prefix -> deck code
DECK_PREFIXES: tuple[tuple[str, str], ...] = (
    ("xoccup-", "X"),
    ("xminor-", "X"),
    ("lfoccup-", "LF"),
    ("lfminor-", "LF"),
    ("eoccup-", "E"),
    ("eminor-", "E"),
    ("ioccup-", "I"),
    ("iminor-", "I"),
    ("koccup-", "K"),
    ("kminor-", "K"),
)


@dataclass(frozen=True, slots=True)
class ParsedStatRow:
    """
    One statistics row in the uniform row shape.

    Attributes:
        name: Card display name (never empty)
        source_card_type: Raw type label, if the table has a type column
        source_card_uuid: Source-provided UUID
        source_play_agricola_card_name: Play-Agricola internal card name
        deck_hint: Deck code from a deck column or the Play-Agricola name
        stat: Parsed metrics keyed by StatRecord field name (absent metrics omitted)
    """

    name: str
    source_card_type: str | None = None
    source_card_uuid: str | None = None
    source_play_agricola_card_name: str | None = None
    deck_hint: str | None = None
    stat: dict[str, int | float] = field(default_factory=dict)


def normalize_header(value: str) -> str:
    """Lowercase, collapse whitespace, trim, strip characters outside [a-z0-9_ ]."""
    collapsed = _WHITESPACE.sub(" ", value.lower()).strip()
    return _HEADER_STRIP.sub("", collapsed)


def header_label(value: str) -> str:
    """Normalize a raw header cell, reading a literal "%" as the word "pct"."""
    return normalize_header(value.replace("%", " pct "))


def clean_cell_text(value: str) -> str:
    return _WHITESPACE.sub(" ", value).strip()


def parse_decimal(value: str) -> float | None:
    """Parse a decimal, accepting a comma as the decimal point."""
    normalized = _WHITESPACE.sub("", value.replace(",", ".", 1))
    if not _DECIMAL.fullmatch(normalized):
        return None
    return float(normalized)


def parse_integer(value: str) -> int | None:
    """
    Parse a count, dropping thousands separators and stray characters.

    "1,250" -> 1250, "1 250" -> 1250, "1.250.000" -> 1250000. A cell
    containing "%" is a percentage, never a count. Counts are never
    negative, so "-5" is rejected, and so is a fraction such as "12.5"
    whose separator is not followed by a three-digit group.
    """
    if "%" in value:
        return None
    stripped = value.strip()
    if stripped.startswith("-"):
        return None
    grouped = _THOUSANDS.sub("", stripped)
    if _FRACTION.search(grouped):
        return None
    cleaned = re.sub(r"\D", "", grouped)
    if not _INTEGER.fullmatch(cleaned):
        return None
    return int(cleaned)


def parse_percent(value: str) -> float | None:
    """Parse a percentage. Requires a literal "%" in the cell."""
    if "%" not in value:
        return None
    return parse_decimal(value.replace("%", ""))


def resolve_column_indexes(headers: list[str]) -> dict[str, int]:
    """
    Map logical column names onto header positions.

    Args:
        headers: Header labels already passed through header_label

    Returns:
        Dict of logical column -> index. "card_name" is always present
        (defaults to the first column).
    """
    indexes: dict[str, int] = {}
    for column, labels in COLUMN_LABELS.items():
        index = _find_exact(headers, labels.exact)
        if index is None:
            index = _find_containing(headers, labels.contains)
        if index is not None:
            indexes[column] = index

    indexes.setdefault("card_name", 0)
    return indexes


def _find_exact(headers: list[str], labels: tuple[str, ...]) -> int | None:
    for label in labels:
        if label in headers:
            return headers.index(label)
    return None


def _find_containing(headers: list[str], fragments: tuple[str, ...]) -> int | None:
    for fragment in fragments:
        for index, header in enumerate(headers):
            if fragment in header:
                return index
    return None


def infer_deck_from_play_agricola_name(value: str | None) -> str | None:
    """Derive a deck code from a Play-Agricola card name prefix."""
    if not value:
        return None
    lowered = value.lower()
    for prefix, deck in DECK_PREFIXES:
        if lowered.startswith(prefix):
            return deck
    return None


def parse_row_cells(cells: list[str], indexes: dict[str, int]) -> ParsedStatRow | None:
    """
    Map one row of cell texts onto a ParsedStatRow.

    Returns None when the name cell is empty. Rows shorter than the
    header simply lack the missing values.
    """

    def cell(column: str) -> str | None:
        index = indexes.get(column)
        if index is None or index >= len(cells):
            return None
        return cells[index].strip()

    name = cell("card_name")
    if not name:
        return None

    stat: dict[str, int | float] = {}
    for column in INTEGER_COLUMNS:
        raw = cell(column)
        parsed_int = parse_integer(raw) if raw is not None else None
        if parsed_int is not None:
            stat[column] = parsed_int

    for pct_column, count_column in PERCENT_COUNT_PAIRS.items():
        source = pct_column if pct_column in indexes else count_column
        raw = cell(source)
        parsed_pct = parse_percent(raw) if raw is not None else None
        if parsed_pct is not None:
            stat[pct_column] = parsed_pct

    for column in DECIMAL_COLUMNS:
        raw = cell(column)
        parsed_decimal = parse_decimal(raw) if raw is not None else None
        if parsed_decimal is not None:
            stat[column] = parsed_decimal

    if "sample_size" in indexes:
        raw = cell("sample_size")
        sample = parse_integer(raw) if raw is not None else None
        if sample is not None:
            stat["sample_size"] = sample
    elif "dealt_count" in stat:
        stat["sample_size"] = stat["dealt_count"]

    play_agricola_name = cell("play_agricola_card_name") or None
    deck_hint = cell("deck") or infer_deck_from_play_agricola_name(play_agricola_name)

    return ParsedStatRow(
        name=name,
        source_card_type=cell("card_type") or None,
        source_card_uuid=cell("card_uuid") or None,
        source_play_agricola_card_name=play_agricola_name,
        deck_hint=deck_hint,
        stat=stat,
    )


def _row_cells(row: Tag) -> list[str]:
    return [clean_cell_text(cell.get_text()) for cell in row.find_all(["td", "th"])]


def table_to_cells(html: str) -> tuple[list[str], list[list[str]]]:
    """
    Extract raw header texts and body cell texts from the first table.

    Returns:
        (headers, rows). headers is empty when the table has no <thead> <th>.
    """
    soup = BeautifulSoup(html, "html.parser")
    table = soup.find("table")
    if not isinstance(table, Tag):
        return [], []

    thead = table.find("thead")
    headers: list[str] = []
    if isinstance(thead, Tag):
        headers = [clean_cell_text(th.get_text()) for th in thead.find_all("th")]

    tbody = table.find("tbody")
    body_rows = tbody.find_all("tr") if isinstance(tbody, Tag) else []
    if not body_rows:
        body_rows = [tr for tr in table.find_all("tr") if tr.find_parent("thead") is None]

    return headers, [_row_cells(row) for row in body_rows]


def parse_stats_html(html: str) -> list[ParsedStatRow]:
    """
    Parse the statistics table of an HTML document.

    When the table has no <thead> headers, the first body row is the header.
    Rows with an empty name cell are dropped; callers count them.

    Args:
        html: Raw HTML document

    Returns:
        Parsed rows in table order
    """
    headers, rows = table_to_cells(html)
    if not rows:
        return []

    if not headers:
        headers = rows[0]
        rows = rows[1:]

    indexes = resolve_column_indexes([header_label(header) for header in headers])

    parsed: list[ParsedStatRow] = []
    for cells in rows:
        row = parse_row_cells(cells, indexes)
        if row is not None:
            parsed.append(row)
    return parsed
