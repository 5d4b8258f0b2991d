"""
Source fallback chain.

Each importer reads its raw input through an ordered chain of attempts:

    TRY_CACHE -> TRY_FETCH -> USE_FALLBACK

- TRY_CACHE: a previously saved raw snapshot
- TRY_FETCH: one live fetch (the loader persists the snapshot on success)
- USE_FALLBACK: a small embedded sample, which always succeeds

An attempt succeeds when it returns a value the chain accepts (for example,
at least one parsed row). A raised read/fetch error, a None result or an
unaccepted value moves the chain to the next state. A failed fetch is
never retried within a run.
"""

import logging
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Generic, TypeVar

import httpx

from agridex.models.failure import KnownError

logger = logging.getLogger(__name__)

USER_AGENT = "agridex/1.0 (+dataset import)"

T = TypeVar("T")


class SourceMode(str, Enum):
    """Which tier of the chain produced the data."""

    LOCAL_FILE = "local_file"
    NETWORK = "network"
    FALLBACK = "fallback"


class ChainState(str, Enum):
    TRY_CACHE = "try_cache"
    TRY_FETCH = "try_fetch"
    USE_FALLBACK = "use_fallback"


# State reached after a failed attempt
_NEXT_STATE: dict[ChainState, ChainState] = {
    ChainState.TRY_CACHE: ChainState.TRY_FETCH,
    ChainState.TRY_FETCH: ChainState.USE_FALLBACK,
}

# Errors that mean "this tier is unavailable" rather than a bug
RECOVERABLE_ERRORS = (OSError, ValueError, httpx.HTTPError, KnownError)


@dataclass
class SourceResult(Generic[T]):
    """Value produced by the chain plus how it was obtained."""

    value: T
    mode: SourceMode
    location: str
    attempts: list[str] = field(default_factory=list)

    @property
    def fallback_used(self) -> bool:
        return self.mode is SourceMode.FALLBACK


def _always(_: Any) -> bool:
    return True


@dataclass
class SourceChain(Generic[T]):
    """
    Ordered cache -> fetch -> fallback strategy for one source.

    Attributes:
        name: Source name for logs
        load_cache: Reads the cached snapshot; None when there is none
        fetch: Performs the live fetch; None disables the tier
        fallback: Returns the embedded sample
        accept: Decides whether an attempt's value is usable
        cache_location: Human-readable cache location
        fetch_location: Human-readable fetch location (URL)
    """

    name: str
    load_cache: Callable[[], T | None]
    fetch: Callable[[], T | None] | None
    fallback: Callable[[], T]
    accept: Callable[[T], bool] = _always
    cache_location: str = "cache"
    fetch_location: str = ""

    def _attempt(self, loader: Callable[[], T | None], label: str, attempts: list[str]) -> T | None:
        try:
            value = loader()
        except RECOVERABLE_ERRORS as e:
            attempts.append(f"{label} failed: {e}.")
            logger.warning("%s: %s failed: %s", self.name, label, e)
            return None

        if value is None:
            attempts.append(f"{label}: nothing available.")
            return None
        if not self.accept(value):
            attempts.append(f"{label}: no usable rows.")
            logger.warning("%s: %s produced no usable rows", self.name, label)
            return None
        return value

    def _finish(self, result: SourceResult[T]) -> SourceResult[T]:
        logger.info("%s: using %s (%s)", self.name, result.mode.value, result.location)
        return result

    def resolve(self) -> SourceResult[T]:
        """Run the chain until a tier succeeds. Always returns a result."""
        attempts: list[str] = []
        state = ChainState.TRY_CACHE

        while state is not ChainState.USE_FALLBACK:
            if state is ChainState.TRY_CACHE:
                value = self._attempt(self.load_cache, "Cached snapshot", attempts)
                if value is not None:
                    attempts.append(f"Loaded cached snapshot from {self.cache_location}.")
                    return self._finish(
                        SourceResult(value, SourceMode.LOCAL_FILE, self.cache_location, attempts)
                    )

            elif self.fetch is None:
                attempts.append("Live fetch disabled.")

            else:
                value = self._attempt(self.fetch, "Live fetch", attempts)
                if value is not None:
                    attempts.append(f"Fetched {self.fetch_location} from network.")
                    return self._finish(
                        SourceResult(value, SourceMode.NETWORK, self.fetch_location, attempts)
                    )

            state = _NEXT_STATE[state]

        attempts.append("Fallback sample emitted.")
        return self._finish(
            SourceResult(self.fallback(), SourceMode.FALLBACK, "embedded sample", attempts)
        )


@contextmanager
def http_client(client: httpx.Client | None, timeout: float) -> Iterator[httpx.Client]:
    """Yield the caller's client, or a new one that is closed on exit."""
    if client is not None:
        yield client
        return

    with httpx.Client(
        headers={"User-Agent": USER_AGENT},
        follow_redirects=True,
        timeout=timeout,
    ) as owned:
        yield owned


def fetch_text(url: str, client: httpx.Client | None = None) -> str:
    """
    Fetch a page as text.

    Raises:
        httpx.HTTPError: If the request fails or returns an error status
    """
    if client:
        response = client.get(url)
    else:
        response = httpx.get(url, headers={"User-Agent": USER_AGENT}, follow_redirects=True)

    response.raise_for_status()
    return response.text


def fetch_json(url: str, client: httpx.Client | None = None) -> Any:
    """
    Fetch and decode a JSON document.

    Raises:
        httpx.HTTPError: If the request fails or returns an error status
        ValueError: If the body is not JSON
    """
    if client:
        response = client.get(url)
    else:
        response = httpx.get(url, headers={"User-Agent": USER_AGENT}, follow_redirects=True)

    response.raise_for_status()
    return response.json()
