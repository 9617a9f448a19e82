"""Sighting set: names reported by agents during the current session."""

from __future__ import annotations

from typing import Iterable, Iterator, Optional


class SightingSet:
    """One entry per exact spelling, with a case-insensitive lookup index.

    The index maps each case-folded name to the first spelling ingested, which
    is what aggregation displays. ``limit`` caps the number of stored entries;
    once reached, further new spellings are ignored until the set is cleared.
    """

    def __init__(self, limit: Optional[int] = None) -> None:
        self.limit = limit
        self._names: dict[str, None] = {}
        self._first: dict[str, str] = {}

    @property
    def full(self) -> bool:
        return self.limit is not None and len(self._names) >= self.limit

    def add(self, names: Iterable[str]) -> int:
        """Merge names into the set. Returns how many new entries were stored."""
        added = 0
        for raw in names:
            name = raw.strip()
            if not name or name in self._names:
                continue
            if self.full:
                break
            self._names[name] = None
            self._first.setdefault(name.casefold(), name)
            added += 1
        return added

    def distinct_count(self) -> int:
        """Number of names ignoring case."""
        return len(self._first)

    def display_name(self, name: str) -> str | None:
        return self._first.get(name.strip().casefold())

    def clear(self) -> None:
        self._names.clear()
        self._first.clear()

    def __len__(self) -> int:
        return len(self._names)

    def __iter__(self) -> Iterator[str]:
        return iter(self._names)
