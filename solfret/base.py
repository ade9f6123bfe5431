"""Shared base classes and exceptions for solfret.

The timer loop, audio backends and player hold resources (pending timers,
open MIDI ports, sounding notes) that must be released explicitly, so they
implement the small lifecycle interfaces defined here.
"""

from __future__ import annotations

from abc import ABCMeta, abstractmethod
from typing import Any


class Closeable(metaclass=ABCMeta):
    """Something holding timers or ports that must be released."""

    @abstractmethod
    def close(self) -> None:
        """Release held resources and deny further use."""
        raise NotImplementedError()


class Resettable(metaclass=ABCMeta):
    """Something that can return to its initial state without being rebuilt."""

    @abstractmethod
    def reset(self) -> None:
        """Return to the initial state."""
        raise NotImplementedError()


class MatchException(Exception):
    """Raised when an enum or variant branch is not handled."""

    def __init__(self, value: Any) -> None:
        super().__init__(f"Failed to match value: {value}")


class UnreachablePitchError(Exception):
    """No string can reach a pitch within the fret range.

    This signals a misconfigured tuning table or a target outside the
    instrument's range. It is a defect, never a user-facing condition.
    """

    def __init__(self, pitch: int, max_fret: int) -> None:
        super().__init__(f"Pitch {pitch} is unreachable within frets 0..{max_fret}")
        self.pitch = pitch
        self.max_fret = max_fret
