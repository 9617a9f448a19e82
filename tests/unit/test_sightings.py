"""Tests for core/sightings.py and core/aggregator.py."""

from __future__ import annotations

from scanwatch.core.aggregator import aggregate
from scanwatch.core.sightings import SightingSet


class TestSightingSet:
    def test_add_counts_new_names(self):
        sightings = SightingSet()
        assert sightings.add(["Alice", "Bob"]) == 2
        assert len(sightings) == 2

    def test_case_variants_are_separate_entries(self):
        sightings = SightingSet()
        sightings.add(["Notch"])
        assert sightings.add(["notch", "NOTCH", "Notch"]) == 2
        assert len(sightings) == 3
        assert sightings.distinct_count() == 1

    def test_first_spelling_kept_for_display(self):
        sightings = SightingSet()
        sightings.add(["Alice"])
        sightings.add(["ALICE"])
        assert list(sightings) == ["Alice", "ALICE"]
        assert sightings.display_name("alice") == "Alice"
        assert sightings.display_name("Alex") is None

    def test_blank_names_ignored(self):
        sightings = SightingSet()
        assert sightings.add(["", "   ", " Bob "]) == 1
        assert list(sightings) == ["Bob"]

    def test_limit_ignores_new_spellings(self):
        sightings = SightingSet(limit=2)
        assert sightings.add(["a", "b", "c"]) == 2
        assert sightings.full
        assert sightings.add(["a", "d"]) == 0
        assert list(sightings) == ["a", "b"]

    def test_clear(self):
        sightings = SightingSet(limit=2)
        sightings.add(["a", "b"])
        sightings.clear()
        assert len(sightings) == 0
        assert sightings.distinct_count() == 0
        assert not sightings.full
        assert list(sightings) == []


class TestAggregate:
    def test_intersection_case_insensitive(self):
        sightings = SightingSet()
        sightings.add(["notch", "Herobrine"])
        assert aggregate(sightings, ["Notch", "Jeb"]) == ["notch"]

    def test_ordered_by_watched_list(self):
        sightings = SightingSet()
        sightings.add(["Bob", "Alice", "Carol"])
        assert aggregate(sightings, ["carol", "alice"]) == ["Carol", "Alice"]

    def test_duplicate_watched_names_reported_once(self):
        sightings = SightingSet()
        sightings.add(["Alice"])
        assert aggregate(sightings, ["alice", "ALICE", "Alice"]) == ["Alice"]

    def test_empty_inputs(self):
        assert aggregate(SightingSet(), ["Notch"]) == []
        sightings = SightingSet()
        sightings.add(["Notch"])
        assert aggregate(sightings, []) == []

    def test_case_variants_display_first_spelling(self):
        sightings = SightingSet()
        sightings.add(["alice", "Alice"])
        assert aggregate(sightings, ["Alice"]) == ["alice"]
