"""Memoization of digit resolution.

Resolution is deterministic, so entries never go stale: the do
specification is part of the key, and a key computed twice yields equal
notes. Nothing is evicted; the key space is small.
"""

import logging
from typing import Dict, Iterable, List, Tuple

from solfret.constants import NUM_DEGREES
from solfret.fretboard import STANDARD_FRETBOARD, Fretboard
from solfret.resolver import DoSpec, MappedNote, resolve_digit

CacheKey = Tuple[int, str]
"""A digit paired with a canonical do serialization."""


def cache_key(digit: int, spec: DoSpec) -> CacheKey:
    return (digit, spec.key())


class MappingCache:
    """Write-once memo of resolved notes keyed by digit and do spec.

    Instances are independent, so tests and alternate fretboards each get
    their own.
    """

    def __init__(self, fretboard: Fretboard = STANDARD_FRETBOARD) -> None:
        self._fretboard = fretboard
        self._entries: Dict[CacheKey, MappedNote] = {}
        self._hits = 0
        self._misses = 0

    @property
    def hits(self) -> int:
        return self._hits

    @property
    def misses(self) -> int:
        return self._misses

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: CacheKey) -> bool:
        return key in self._entries

    def get(self, digit: int, spec: DoSpec) -> MappedNote:
        """Resolve a digit, computing and storing it on first use."""
        key = cache_key(digit, spec)
        note = self._entries.get(key)
        if note is not None:
            self._hits += 1
            return note
        self._misses += 1
        note = resolve_digit(digit, spec, self._fretboard)
        logging.debug("cache miss %s -> %s", key, note.position)
        # setdefault keeps the first writer's value if two computations race
        return self._entries.setdefault(key, note)

    def get_all(self, digits: Iterable[int], spec: DoSpec) -> List[MappedNote]:
        return [self.get(d, spec) for d in digits]

    def warm(self, spec: DoSpec) -> None:
        """Precompute all seven degrees for a do spec."""
        for digit in range(1, NUM_DEGREES + 1):
            self.get(digit, spec)
