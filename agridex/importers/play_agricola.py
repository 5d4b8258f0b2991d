"""
Play-Agricola importer.

Binds Play-Agricola card statistics to the AgricolaCards reference
dataset. Every cached HTML file under data/raw/play_agricola/ is a
candidate source, and so is every configured URL; within a tier the
candidate with the most parsed rows wins.

The reference dataset must be imported first. Without it every row is
minted as a new card and reported as unmatched.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path

import httpx

from agridex.config import settings
from agridex.importers.agricolacards import DATASET_ID as REFERENCE_DATASET_ID
from agridex.importers.base import ImportResult, build_package
from agridex.importers.source_chain import SourceChain, fetch_text, http_client
from agridex.models.contracts import CardRecord, Edition, ImportStatus
from agridex.models.failure import SourceUnavailableError
from agridex.parsers.html_table import ParsedStatRow, parse_stats_html
from agridex.services.aliases import load_alias_resolver
from agridex.services.card_matcher import CardMatcher
from agridex.services.dataset_store import (
    dataset_path,
    generated_at,
    load_package,
    write_json,
    write_package,
    write_text,
)
from agridex.services.normalizer import normalize_name

logger = logging.getLogger(__name__)

DATASET_ID = "play_agricola_full_cards"
LOCAL_DIR_NAME = "play_agricola"
REPORT_FILE = "unmatched_cards_play_agricola.json"
METRIC_SET = "play_agricola"

FALLBACK_HTML = """\
<table>
  <thead>
    <tr><th>Card Name</th><th>Card Type</th><th>Deck</th><th>Dealt</th><th>Played</th><th>Won</th><th>ADP</th><th>PWR</th></tr>
  </thead>
  <tbody>
    <tr><td>Clay Worker</td><td>Occupation</td><td>I</td><td>1,250</td><td>410</td><td>102</td><td>4.8</td><td>1.1</td></tr>
    <tr><td>Loom</td><td>MinorImprovement</td><td>E</td><td>980</td><td>322</td><td>91</td><td>5.6</td><td>0.9</td></tr>
  </tbody>
</table>
"""


@dataclass
class HtmlCandidate:
    """One parsed HTML source."""

    location: str
    rows: list[ParsedStatRow] = field(default_factory=list)


def best_candidate(candidates: list[HtmlCandidate]) -> HtmlCandidate | None:
    """The candidate with the most parsed rows; the first one on ties."""
    best: HtmlCandidate | None = None
    for candidate in candidates:
        if best is None or len(candidate.rows) > len(best.rows):
            best = candidate
    return best


def load_local_candidates(local_dir: Path) -> HtmlCandidate | None:
    """Parse every cached *.html file and keep the richest one."""
    if not local_dir.is_dir():
        return None

    candidates = [
        HtmlCandidate(f"local:{path.name}", parse_stats_html(path.read_text(encoding="utf-8")))
        for path in sorted(local_dir.iterdir())
        if path.suffix.lower() == ".html"
    ]
    return best_candidate(candidates)


def fetch_candidates(urls: list[str], local_dir: Path, client: httpx.Client) -> HtmlCandidate:
    """
    Fetch every configured URL once and keep the richest page.

    Each fetched page is cached under local_dir.

    Raises:
        SourceUnavailableError: If no URL could be fetched
    """
    candidates: list[HtmlCandidate] = []
    for url in urls:
        try:
            html = fetch_text(url, client)
        except httpx.HTTPError as e:
            logger.warning("play_agricola: fetch of %s failed: %s", url, e)
            continue
        write_text(local_dir / f"{normalize_name(url)}.html", html)
        candidates.append(HtmlCandidate(url, parse_stats_html(html)))

    best = best_candidate(candidates)
    if best is None:
        raise SourceUnavailableError("play_agricola", detail=", ".join(urls))
    return best


def fallback_candidate() -> HtmlCandidate:
    return HtmlCandidate("embedded sample", parse_stats_html(FALLBACK_HTML))


def load_reference_cards(datasets_dir: Path) -> list[CardRecord]:
    """Cards of the AgricolaCards reference dataset; empty when unavailable."""
    path = dataset_path(datasets_dir, REFERENCE_DATASET_ID)
    try:
        return load_package(path).cards
    except FileNotFoundError:
        logger.warning("play_agricola: reference dataset %s not found", path)
    except ValueError as e:
        logger.warning("play_agricola: reference dataset %s is invalid: %s", path, e)
    return []


def import_play_agricola(
    *,
    urls: list[str] | None = None,
    raw_dir: Path | None = None,
    datasets_dir: Path | None = None,
    reports_dir: Path | None = None,
    alias_path: Path | None = None,
    client: httpx.Client | None = None,
    timestamp: str | None = None,
) -> ImportResult:
    """Import Play-Agricola statistics matched against the reference cards."""
    urls = urls or settings.play_agricola_url_list
    raw_dir = raw_dir or settings.raw_data_dir
    datasets_dir = datasets_dir or settings.datasets_dir
    reports_dir = reports_dir or settings.reports_dir
    alias_path = alias_path or settings.alias_path
    timestamp = generated_at(timestamp or settings.generated_at)
    local_dir = raw_dir / LOCAL_DIR_NAME

    with http_client(client, settings.http_timeout) as http:
        chain: SourceChain[HtmlCandidate] = SourceChain(
            name="play_agricola",
            load_cache=lambda: load_local_candidates(local_dir),
            fetch=lambda: fetch_candidates(urls, local_dir, http),
            fallback=fallback_candidate,
            accept=lambda candidate: bool(candidate.rows),
            cache_location=str(local_dir),
            fetch_location=", ".join(urls),
        )
        source = chain.resolve()

    matcher = CardMatcher(load_reference_cards(datasets_dir), load_alias_resolver(alias_path))
    outcome = matcher.match_rows(source.value.rows, METRIC_SET, default_edition=Edition.OLD)

    location = source.value.location
    package = build_package(
        dataset_id=DATASET_ID,
        label="Play-Agricola Full Card Stats",
        source_name="Play-Agricola",
        source_url=location if location.startswith(("http://", "https://")) else urls[0],
        edition=Edition.OLD,
        comparability_group="play_agricola_counts",
        timestamp=timestamp,
        cards=outcome.cards,
        stats=outcome.stats,
        license_note="Derived from source tables. Verify source terms before redistribution.",
        import_status=ImportStatus(
            source_mode=source.mode.value,
            source_rows=len(source.value.rows),
            imported_cards=len(outcome.cards),
            matched_cards=outcome.matched_count,
            unmatched_cards=len(outcome.unmatched),
            fallback_used=source.fallback_used,
            note=(
                f"Source: {location}. "
                f"Rows skipped for unsupported card type: {outcome.skipped_count}."
            ),
        ),
    )

    output_path = write_package(datasets_dir, package)
    write_json(reports_dir / REPORT_FILE, outcome.unmatched)
    logger.info(
        "play_agricola: wrote %d rows (%d unmatched)", len(package.stats), len(outcome.unmatched)
    )

    return ImportResult(
        source="play_agricola",
        dataset_id=DATASET_ID,
        output_path=output_path,
        source_mode=source.mode,
        source_rows=len(source.value.rows),
        imported_cards=len(package.cards),
        skipped_rows=outcome.skipped_count,
        attempts=source.attempts,
    )
