"""Tests for canonical id derivation and collision resolution."""

from agridex.models.contracts import CardType, Edition
from agridex.services.canonical_ids import (
    CanonicalIdRegistry,
    canonical_id_from_parts,
    ensure_unique_canonical_id,
    row_suffix,
    uuid_suffix,
)


class TestCanonicalIdFromParts:
    def test_format(self) -> None:
        """Ids are edition:type:normalized_name."""
        canonical_id = canonical_id_from_parts(Edition.OLD, CardType.OCCUPATION, "Clay Worker")

        assert canonical_id == "old:occupation:clay_worker"

    def test_deterministic(self) -> None:
        """The same inputs always give the same id."""
        first = canonical_id_from_parts(Edition.REVISED, CardType.MINOR_IMPROVEMENT, "Clay Oven")
        second = canonical_id_from_parts(Edition.REVISED, CardType.MINOR_IMPROVEMENT, "Clay Oven")

        assert first == second == "revised:minor_improvement:clay_oven"

    def test_type_and_edition_separate_ids(self) -> None:
        """A shared name never collides across type or edition."""
        ids = {
            canonical_id_from_parts(Edition.OLD, CardType.OCCUPATION, "Loom"),
            canonical_id_from_parts(Edition.OLD, CardType.MINOR_IMPROVEMENT, "Loom"),
            canonical_id_from_parts(Edition.REVISED, CardType.MINOR_IMPROVEMENT, "Loom"),
        }
        assert len(ids) == 3


class TestSuffixes:
    def test_row_suffix_joins_present_parts(self) -> None:
        assert row_suffix("Base", "3+", "2 wood") == "base_3_2_wood"

    def test_row_suffix_skips_blank_parts(self) -> None:
        assert row_suffix(None, "  ", "E") == "e"

    def test_row_suffix_empty(self) -> None:
        assert row_suffix(None, "") == ""

    def test_row_suffix_truncates(self) -> None:
        assert len(row_suffix("A very long expansion name", "1-4 players")) == 20

    def test_uuid_suffix(self) -> None:
        """Only lowercase alphanumerics are kept, at most 10 of them."""
        assert uuid_suffix("9F8E-7D6C-5B4A-3210") == "9f8e7d6c5b"
        assert uuid_suffix(None) == ""


class TestEnsureUniqueCanonicalId:
    def test_unused_preferred_is_kept(self) -> None:
        assert ensure_unique_canonical_id("old:occupation:a", set()) == "old:occupation:a"

    def test_disambiguator_comes_before_counter(self) -> None:
        used = {"old:occupation:a"}

        assert ensure_unique_canonical_id("old:occupation:a", used, "deck_e") == "old:occupation:a_deck_e"

    def test_counter_when_disambiguator_taken(self) -> None:
        used = {"old:occupation:a", "old:occupation:a_x"}

        assert ensure_unique_canonical_id("old:occupation:a", used, "x") == "old:occupation:a_2"

    def test_counter_skips_used_values(self) -> None:
        used = {"old:occupation:a", "old:occupation:a_2", "old:occupation:a_3"}

        assert ensure_unique_canonical_id("old:occupation:a", used) == "old:occupation:a_4"


class TestCanonicalIdRegistry:
    def test_claims_are_unique(self) -> None:
        """Every claim in a run yields a distinct id."""
        registry = CanonicalIdRegistry()
        claimed = [registry.claim("mixed:occupation:academic") for _ in range(5)]

        assert len(set(claimed)) == 5
        assert claimed[0] == "mixed:occupation:academic"
        assert claimed[1] == "mixed:occupation:academic_2"
        assert len(registry) == 5

    def test_records_claims(self) -> None:
        registry = CanonicalIdRegistry()
        registry.claim("old:occupation:a", "x")
        registry.claim("old:occupation:a", "x")

        assert "old:occupation:a" in registry
        assert "old:occupation:a_x" in registry

    def test_registries_are_independent(self) -> None:
        """Two runs never see each other's ids."""
        first = CanonicalIdRegistry()
        second = CanonicalIdRegistry()
        first.claim("old:occupation:a")

        assert second.claim("old:occupation:a") == "old:occupation:a"
