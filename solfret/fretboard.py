"""Fretboard geometry for a standard-tuned six-string instrument.

A position is a (string, fret) pair. String 1 is the highest-pitched string,
fret 0 the open string. Every position maps to exactly one pitch, while a
pitch is usually reachable from several positions.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Generator, List, Optional

from solfret import constants


@dataclass(frozen=True)
class Position:
    """A playable point on the fretboard."""

    string: int
    """String number, 1 (highest pitch) to the string count."""
    fret: int
    """Fret number, 0 (open) to the maximum fret."""

    def __iter__(self) -> Generator[int, None, None]:
        yield self.string
        yield self.fret

    def __str__(self) -> str:
        return f"{self.string}:{self.fret}"

    @staticmethod
    def parse(text: str) -> Position:
        """Parse ``STRING:FRET`` as written by ``str()``.

        Raises:
            ValueError: If the text is not two colon-separated integers.
        """
        parts = text.split(":")
        if len(parts) != 2:
            raise ValueError(f"Expected STRING:FRET, got {text!r}")
        return Position(string=int(parts[0]), fret=int(parts[1]))


@dataclass(frozen=True)
class Fretboard:
    """Instrument geometry: open pitches by string and the fret range.

    The default instance describes standard tuning with fourteen frets.
    """

    tuning: List[int]
    """Open-string pitches, indexed by string number - 1."""
    max_fret: int
    """Highest reachable fret (inclusive)."""

    @property
    def num_strings(self) -> int:
        return len(self.tuning)

    def open_pitch(self, string: int) -> int:
        """Pitch of an open string.

        Raises:
            ValueError: If the string number is out of range.
        """
        if string < 1 or string > self.num_strings:
            raise ValueError(f"No string {string} on a {self.num_strings}-string board")
        return self.tuning[string - 1]

    def position_to_pitch(self, pos: Position) -> int:
        """Pitch sounded at a position: open pitch plus fret."""
        return self.open_pitch(pos.string) + pos.fret

    def __contains__(self, pos: Position) -> bool:
        return (
            pos.string >= 1
            and pos.string <= self.num_strings
            and pos.fret >= 0
            and pos.fret <= self.max_fret
        )

    def fret_for(self, string: int, pitch: int) -> Optional[int]:
        """Fret sounding a pitch on a string, or None if out of reach."""
        fret = pitch - self.open_pitch(string)
        if fret < 0 or fret > self.max_fret:
            return None
        return fret

    def candidates(self, pitch: int) -> List[Position]:
        """All positions sounding a pitch, from string 1 downwards."""
        found: List[Position] = []
        for string in range(1, self.num_strings + 1):
            fret = self.fret_for(string, pitch)
            if fret is not None:
                found.append(Position(string=string, fret=fret))
        return found

    def lowest_pitch(self) -> int:
        return min(self.tuning)

    def highest_pitch(self) -> int:
        return max(self.tuning) + self.max_fret

    def iter_positions(self) -> Generator[Position, None, None]:
        """Every position on the board, string by string, frets ascending."""
        for string in range(1, self.num_strings + 1):
            for fret in range(self.max_fret + 1):
                yield Position(string=string, fret=fret)

    def markers(self) -> List[int]:
        """Frets carrying an inlay dot, for renderers."""
        return [f for f in constants.FRET_MARKERS if f <= self.max_fret]

    def is_double_marker(self, fret: int) -> bool:
        return fret in constants.DOUBLE_FRET_MARKERS


STANDARD_FRETBOARD = Fretboard(
    tuning=list(constants.STANDARD_TUNING), max_fret=constants.MAX_FRET
)
"""Standard-tuned six-string board with fourteen frets."""
