"""Tests for cross-dataset card matching."""

from pathlib import Path

import pytest

from agridex.models.contracts import CardRecord, CardType, Edition
from agridex.parsers.html_table import ParsedStatRow
from agridex.services.aliases import AliasResolver, load_alias_resolver
from agridex.services.canonical_ids import CanonicalIdRegistry
from agridex.services.card_matcher import UNMATCHED_NOTE, CardMatcher


@pytest.fixture
def loom_cards() -> list[CardRecord]:
    """Two reference cards sharing the name "Loom"."""
    return [
        CardRecord(
            canonical_id="mixed:occupation:loom",
            name="Loom",
            card_type=CardType.OCCUPATION,
        ),
        CardRecord(
            canonical_id="mixed:minor_improvement:loom",
            name="Loom",
            card_type=CardType.MINOR_IMPROVEMENT,
        ),
    ]


class TestAliasResolver:
    def test_resolves_normalized_names(self) -> None:
        resolver = AliasResolver({"Plough Driver": "Plow Driver"})

        assert resolver.resolve("plough_driver") == "plow_driver"
        assert resolver.resolve("clay_worker") == "clay_worker"
        assert "PLOUGH  driver" in resolver
        assert len(resolver) == 1

    def test_loads_alias_file(self, tmp_path: Path) -> None:
        path = tmp_path / "_aliases.json"
        path.write_text('{"aliases": {"Clay Labourer": "Clay Worker", "Bad": 3}}')

        resolver = load_alias_resolver(path)

        assert resolver.resolve("clay_labourer") == "clay_worker"
        assert len(resolver) == 1

    def test_missing_file_is_empty(self, tmp_path: Path) -> None:
        assert len(load_alias_resolver(tmp_path / "missing.json")) == 0

    def test_malformed_file_is_empty(self, tmp_path: Path) -> None:
        path = tmp_path / "_aliases.json"
        path.write_text("{not json")

        assert len(load_alias_resolver(path)) == 0

    def test_wrong_shape_is_empty(self, tmp_path: Path) -> None:
        path = tmp_path / "_aliases.json"
        path.write_text('["Plough Driver", "Plow Driver"]')

        assert len(load_alias_resolver(path)) == 0


class TestFind:
    def test_type_scoped_lookup_wins(self, loom_cards: list[CardRecord]) -> None:
        """A typed row binds to the card of its own type."""
        matcher = CardMatcher(loom_cards)

        assert matcher.find("Loom", CardType.MINOR_IMPROVEMENT) is loom_cards[1]
        assert matcher.find("Loom", CardType.OCCUPATION) is loom_cards[0]

    def test_name_only_lookup_without_type(self, loom_cards: list[CardRecord]) -> None:
        """Without a type, the first reference card for the name wins."""
        matcher = CardMatcher(loom_cards)

        assert matcher.find("loom") is loom_cards[0]

    def test_falls_back_to_name_when_type_differs(self, reference_cards: list[CardRecord]) -> None:
        matcher = CardMatcher(reference_cards)

        found = matcher.find("Clay Worker", CardType.MAJOR_IMPROVEMENT)

        assert found is not None
        assert found.canonical_id == "mixed:occupation:clay_worker"

    def test_alias_resolution(self, reference_cards: list[CardRecord]) -> None:
        """An alias and its canonical spelling bind to the same card."""
        matcher = CardMatcher(reference_cards, AliasResolver({"Clay Labourer": "Clay Worker"}))

        assert matcher.find("Clay Labourer", CardType.OCCUPATION) is matcher.find("Clay Worker")

    def test_reference_aliases_are_indexed(self) -> None:
        card = CardRecord(
            canonical_id="old:occupation:plow_driver",
            name="Plow Driver",
            aliases=["Plough Driver"],
            card_type=CardType.OCCUPATION,
        )
        matcher = CardMatcher([card])

        assert matcher.find("Plough Driver") is card

    def test_unknown_name(self, reference_cards: list[CardRecord]) -> None:
        assert CardMatcher(reference_cards).find("Nobody") is None


class TestMatchRows:
    def test_matched_rows_reuse_reference_ids(self, reference_cards: list[CardRecord]) -> None:
        matcher = CardMatcher(reference_cards)
        rows = [ParsedStatRow(name="Clay Worker", source_card_type="Occupation", stat={"won_count": 5})]

        outcome = matcher.match_rows(rows, "play_agricola")

        assert outcome.matched_count == 1
        assert outcome.all_matched
        assert outcome.cards == [reference_cards[0]]
        assert outcome.stats[0].canonical_id == "mixed:occupation:clay_worker"
        assert outcome.stats[0].metric_set == "play_agricola"
        assert outcome.stats[0].won_count == 5

    def test_alias_row_binds_to_canonical_card(self, reference_cards: list[CardRecord]) -> None:
        """Clay Labourer (alias) and Clay Worker get distinct ids for one reference card."""
        matcher = CardMatcher(reference_cards, AliasResolver({"Clay Labourer": "Clay Worker"}))
        rows = [
            ParsedStatRow(name="Clay Worker", source_card_type="Occupation"),
            ParsedStatRow(name="Clay Labourer", source_card_type="Occupation", source_card_uuid="AB-12"),
        ]

        outcome = matcher.match_rows(rows, "play_agricola")

        ids = [stat.canonical_id for stat in outcome.stats]
        assert ids == ["mixed:occupation:clay_worker", "mixed:occupation:clay_worker_ab12"]
        assert outcome.matched_count == 2
        assert {card.name for card in outcome.cards} == {"Clay Worker"}

    def test_type_scoped_rows_stay_apart(self, loom_cards: list[CardRecord]) -> None:
        matcher = CardMatcher(loom_cards)
        rows = [
            ParsedStatRow(name="Loom", source_card_type="MinorImprovement"),
            ParsedStatRow(name="Loom", source_card_type="Occupation"),
        ]

        outcome = matcher.match_rows(rows, "4p_comp")

        assert [stat.canonical_id for stat in outcome.stats] == [
            "mixed:minor_improvement:loom",
            "mixed:occupation:loom",
        ]

    def test_unmatched_rows_are_minted_and_reported(self, reference_cards: list[CardRecord]) -> None:
        matcher = CardMatcher(reference_cards)
        rows = [
            ParsedStatRow(
                name="Brand New Card",
                source_card_type="MinorImprovement",
                source_play_agricola_card_name="kminor-brand-new",
                deck_hint="K",
                stat={"dealt_count": 10},
            )
        ]

        outcome = matcher.match_rows(rows, "play_agricola")

        card = outcome.cards[0]
        assert card.canonical_id == "old:minor_improvement:brand_new_card"
        assert card.edition is Edition.OLD
        assert card.deck == "K"
        assert card.aliases == ["kminor-brand-new"]
        assert card.prerequisites == "Not available."
        assert outcome.stats[0].notes == UNMATCHED_NOTE
        assert outcome.unmatched[0].normalized_name == "brand_new_card"
        assert not outcome.all_matched

    def test_unmatched_defaults(self) -> None:
        """No type means occupation; no deck means the default edition and deck UNK."""
        outcome = CardMatcher([]).match_rows(
            [ParsedStatRow(name="Mystery")], "play_agricola", default_edition=Edition.REVISED
        )

        card = outcome.cards[0]
        assert card.canonical_id == "revised:occupation:mystery"
        assert card.deck == "UNK"

    def test_unsupported_type_is_skipped(self, reference_cards: list[CardRecord]) -> None:
        matcher = CardMatcher(reference_cards)
        rows = [
            ParsedStatRow(name="Clay Worker", source_card_type="Occupation"),
            ParsedStatRow(name="Begging Card", source_card_type="BeggingCard"),
        ]

        outcome = matcher.match_rows(rows, "play_agricola")

        assert outcome.skipped_count == 1
        assert len(outcome.stats) == 1
        assert outcome.unmatched == []

    def test_shared_registry(self, reference_cards: list[CardRecord]) -> None:
        """Ids already claimed in the run are never reused."""
        registry = CanonicalIdRegistry(["mixed:occupation:clay_worker"])
        outcome = CardMatcher(reference_cards).match_rows(
            [ParsedStatRow(name="Clay Worker", source_card_type="Occupation")],
            "play_agricola",
            registry,
        )

        assert outcome.stats[0].canonical_id == "mixed:occupation:clay_worker_2"
        assert outcome.cards[0].canonical_id == "mixed:occupation:clay_worker_2"

    def test_cards_sorted_by_name(self, reference_cards: list[CardRecord]) -> None:
        rows = [
            ParsedStatRow(name="Plow Driver", source_card_type="Occupation"),
            ParsedStatRow(name="clay worker", source_card_type="Occupation"),
            ParsedStatRow(name="Loom", source_card_type="MinorImprovement"),
        ]

        outcome = CardMatcher(reference_cards).match_rows(rows, "play_agricola")

        assert [card.name for card in outcome.cards] == ["Clay Worker", "Loom", "Plow Driver"]
