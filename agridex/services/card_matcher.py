"""
Cross-Dataset Matching Service.

Binds statistics rows from one source to cards already known from an
independently imported reference dataset, before minting new ids.

INVARIANTS:
1. Type-scoped lookup ALWAYS precedes name-only lookup. An occupation and
   a minor improvement sharing a name are never merged when the row
   carries a type.
2. Alias resolution happens before both lookups, so an alias and its
   canonical spelling bind to the same reference card.
3. Every emitted canonical id goes through the run's registry, so two
   rows matching one reference card get distinct ids.
4. Rows without a match are minted as new cards AND reported as unmatched.
"""

import logging
from dataclasses import dataclass, field

from agridex.models.contracts import CardRecord, CardType, Edition, StatRecord, UnmatchedCard
from agridex.models.failure import UnsupportedCardTypeError
from agridex.parsers.html_table import ParsedStatRow
from agridex.services.aliases import AliasResolver
from agridex.services.canonical_ids import (
    CanonicalIdRegistry,
    canonical_id_from_parts,
    uuid_suffix,
)
from agridex.services.normalizer import normalize_edition, normalize_name, source_card_type

logger = logging.getLogger(__name__)

UNMATCHED_NOTE = "No direct metadata-reference match; card added from source row."
UNKNOWN_DECK = "UNK"
UNKNOWN_PREREQUISITES = "Not available."


@dataclass
class MatchOutcome:
    """Result of matching statistics rows against a reference card list."""

    cards: list[CardRecord]
    """Matched (copied) and minted cards, sorted by name."""

    stats: list[StatRecord]
    """One stat per accepted row, in row order."""

    unmatched: list[UnmatchedCard] = field(default_factory=list)
    """Rows that had no reference match (also present in cards)."""

    matched_count: int = 0
    """Rows bound to a reference card."""

    skipped_count: int = 0
    """Rows dropped for an unsupported card type."""

    @property
    def all_matched(self) -> bool:
        """True if every accepted row bound to a reference card."""
        return len(self.unmatched) == 0


def mint_card(
    row: ParsedStatRow,
    canonical_id: str,
    card_type: CardType,
    edition: Edition | None = None,
    *,
    deck_default: str | None = None,
    prerequisites: str | None = None,
    metadata: dict[str, str | int | float | bool] | None = None,
) -> CardRecord:
    """Build a card for a statistics row that has no reference card."""
    aliases: list[str] = []
    alt_name = row.source_play_agricola_card_name
    if alt_name and alt_name != row.name:
        aliases.append(alt_name)

    return CardRecord(
        canonical_id=canonical_id,
        name=row.name,
        aliases=aliases,
        card_type=card_type,
        deck=(row.deck_hint or "").strip() or deck_default,
        edition=edition,
        text="",
        prerequisites=prerequisites,
        metadata=metadata,
    )


def _type_name_key(card_type: CardType, normalized_name: str) -> str:
    return f"{card_type.value}:{normalized_name}"


class CardMatcher:
    """
    Matches incoming rows to reference cards by normalized name.

    Indices are built once per instance from the reference list. Build a
    new matcher for every import run.
    """

    def __init__(
        self,
        reference_cards: list[CardRecord],
        aliases: AliasResolver | None = None,
    ) -> None:
        """
        Initialize matcher with a reference card list.

        Args:
            reference_cards: Cards of the reference dataset
            aliases: Alias resolver applied to incoming names
        """
        self._aliases = aliases or AliasResolver()
        self._by_name: dict[str, CardRecord] = {}
        self._by_type_and_name: dict[str, CardRecord] = {}
        self._build_indices(reference_cards)

    def _build_indices(self, cards: list[CardRecord]) -> None:
        """Index every card by its name and aliases. First card wins a key."""
        for card in cards:
            for display_name in (card.name, *card.aliases):
                normalized = normalize_name(display_name)
                if not normalized:
                    continue
                self._by_name.setdefault(normalized, card)
                self._by_type_and_name.setdefault(
                    _type_name_key(card.card_type, normalized), card
                )

    def find(self, name: str, card_type: CardType | None = None) -> CardRecord | None:
        """
        Look up the reference card for a display name.

        Probes (card_type, name) first when a type is given, then name only.
        """
        lookup_name = self._aliases.resolve(normalize_name(name))

        if card_type is not None:
            scoped = self._by_type_and_name.get(_type_name_key(card_type, lookup_name))
            if scoped is not None:
                return scoped

        return self._by_name.get(lookup_name)

    def match_rows(
        self,
        rows: list[ParsedStatRow],
        metric_set: str,
        registry: CanonicalIdRegistry | None = None,
        *,
        default_edition: Edition = Edition.OLD,
    ) -> MatchOutcome:
        """
        Match statistics rows and build the cards and stats of a package.

        Args:
            rows: Parsed statistics rows
            metric_set: Metric set name for every emitted StatRecord
            registry: Run-scoped id registry (a fresh one if omitted)
            default_edition: Edition label for minted cards

        Returns:
            MatchOutcome with cards, stats and the unmatched side report
        """
        registry = registry or CanonicalIdRegistry()
        cards: dict[str, CardRecord] = {}
        stats: list[StatRecord] = []
        unmatched: list[UnmatchedCard] = []
        matched_count = 0
        skipped_count = 0

        for row in rows:
            try:
                row_type = source_card_type(row.source_card_type)
            except UnsupportedCardTypeError as e:
                logger.debug("Skipping %r: %s", row.name, e.message)
                skipped_count += 1
                continue

            disambiguator = uuid_suffix(row.source_card_uuid)
            reference = self.find(row.name, row_type)

            if reference is not None:
                canonical_id = registry.claim(reference.canonical_id, disambiguator)
                card = reference
                if canonical_id != reference.canonical_id:
                    card = reference.model_copy(update={"canonical_id": canonical_id})
                cards[canonical_id] = card
                stats.append(
                    StatRecord(canonical_id=canonical_id, metric_set=metric_set, **row.stat)
                )
                matched_count += 1
                continue

            card_type = row_type or CardType.OCCUPATION
            edition = normalize_edition(default_edition.value, row.deck_hint)
            canonical_id = registry.claim(
                canonical_id_from_parts(edition, card_type, row.name), disambiguator
            )
            cards[canonical_id] = mint_card(
                row,
                canonical_id,
                card_type,
                edition,
                deck_default=UNKNOWN_DECK,
                prerequisites=UNKNOWN_PREREQUISITES,
            )
            stats.append(
                StatRecord(
                    canonical_id=canonical_id,
                    metric_set=metric_set,
                    notes=UNMATCHED_NOTE,
                    **row.stat,
                )
            )
            unmatched.append(
                UnmatchedCard(
                    name=row.name,
                    normalized_name=normalize_name(row.name),
                    source_card_type=row.source_card_type,
                    source_card_uuid=row.source_card_uuid,
                    source_play_agricola_card_name=row.source_play_agricola_card_name,
                )
            )

        logger.info(
            "Matched %d of %d rows for %s (%d unmatched, %d skipped)",
            matched_count,
            len(rows),
            metric_set,
            len(unmatched),
            skipped_count,
        )

        return MatchOutcome(
            cards=sorted(cards.values(), key=lambda card: card.name.casefold()),
            stats=stats,
            unmatched=unmatched,
            matched_count=matched_count,
            skipped_count=skipped_count,
        )
