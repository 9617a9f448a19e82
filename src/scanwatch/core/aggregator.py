"""Intersection of the watched list with the current sightings."""

from __future__ import annotations

from typing import Iterable

from .sightings import SightingSet


def aggregate(sightings: SightingSet, watched_names: Iterable[str]) -> list[str]:
    """Return watched names that were sighted.

    Ordered by the watched list, compared case-insensitively, and displayed
    with the spelling the agents reported.
    """
    online: list[str] = []
    seen: set[str] = set()
    for watched in watched_names:
        key = watched.strip().casefold()
        if not key or key in seen:
            continue
        display = sightings.display_name(watched)
        if display is not None:
            seen.add(key)
            online.append(display)
    return online
