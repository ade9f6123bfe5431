"""Resolution of solfege digits to fretboard positions.

A digit names a major-scale degree relative to a movable "do". The do is
given either as a note name (``PitchAnchored``), transposing a fixed home
fingering, or as a physical position (``PositionAnchored``), in which case
every other degree is searched for around that point.

Because one pitch is usually playable in several places, the search picks
the candidate closest to a reference position, where moving across strings
is judged farther than sliding along one.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Union

from solfret import constants
from solfret.base import MatchException, UnreachablePitchError
from solfret.fretboard import STANDARD_FRETBOARD, Fretboard, Position
from solfret.scale import (
    NoteName,
    ScaleClassifier,
    degree_steps,
    parse_note_name,
    pitch_identifier,
    pitch_to_note_name,
)

HOME_DO = parse_note_name(constants.HOME_DO_NAME)
"""Tonal center resolved through the fixed home fingering table."""


@dataclass(frozen=True)
class PitchAnchored:
    """Do is a note name; the whole home fingering is transposed to it."""

    do_name: NoteName

    def key(self) -> str:
        """Canonical serialization, used as part of cache keys."""
        return f"pitch:{self.do_name}"


@dataclass(frozen=True)
class PositionAnchored:
    """Do is a physical position; other degrees are found around it."""

    do_position: Position

    def key(self) -> str:
        """Canonical serialization, used as part of cache keys."""
        return f"position:{self.do_position}"


DoSpec = Union[PitchAnchored, PositionAnchored]
"""Where "do" sits, by name or by position."""


@dataclass(frozen=True)
class DistanceWeights:
    """Cost of moving one fret and one string away from a reference.

    A string change must cost strictly more than a fret change so that the
    search prefers sliding along the current string.
    """

    fret: float
    string: float

    def __post_init__(self) -> None:
        if not self.string > self.fret:
            raise ValueError(
                f"String weight {self.string} must exceed fret weight {self.fret}"
            )

    def score(self, cand: Position, ref: Position) -> float:
        return self.fret * abs(cand.fret - ref.fret) + self.string * abs(
            cand.string - ref.string
        )


PITCH_WEIGHTS = DistanceWeights(fret=1.0, string=2.0)
"""Weights for transposing the home fingering to another do name."""

POSITION_WEIGHTS = DistanceWeights(fret=1.5, string=2.0)
"""Weights for searching around a position-anchored do."""


@dataclass(frozen=True)
class MappedNote:
    """A fully resolved, playable unit: digit, position and pitch."""

    digit: int
    """Scale degree 1-7, or 0 for a tapped pitch outside the scale."""
    position: Position
    pitch: int
    """Absolute pitch as a MIDI note number."""
    note_name: NoteName

    @property
    def pitch_id(self) -> str:
        """Pitch identifier for audio backends, e.g. ``C3``."""
        return pitch_identifier(self.pitch)


def find_best_position(
    pitch: int,
    reference: Position,
    weights: DistanceWeights,
    fretboard: Fretboard = STANDARD_FRETBOARD,
) -> Position:
    """Find the playable position for a pitch closest to a reference.

    Exact ties go to the lowest fret.

    Args:
        pitch: The target pitch.
        reference: The position distances are measured from.
        weights: The distance policy.
        fretboard: The instrument geometry.

    Returns:
        The chosen position, always within the board's bounds.

    Raises:
        UnreachablePitchError: If no string reaches the pitch.
    """
    candidates = fretboard.candidates(pitch)
    if not candidates:
        logging.error(
            "pitch %d unreachable on tuning %s with %d frets",
            pitch,
            fretboard.tuning,
            fretboard.max_fret,
        )
        raise UnreachablePitchError(pitch, fretboard.max_fret)
    return min(candidates, key=lambda c: (weights.score(c, reference), c.fret))


def home_position(digit: int) -> Position:
    """Home-fingering position for a degree."""
    degree_steps(digit)
    string, fret = constants.HOME_POSITIONS[digit]
    return Position(string=string, fret=fret)


def do_root(spec: DoSpec, fretboard: Fretboard = STANDARD_FRETBOARD) -> NoteName:
    """Pitch class of do under a specification."""
    if isinstance(spec, PitchAnchored):
        return spec.do_name
    elif isinstance(spec, PositionAnchored):
        return pitch_to_note_name(fretboard.position_to_pitch(spec.do_position))
    else:
        raise MatchException(spec)


def resolve_digit(
    digit: int, spec: DoSpec, fretboard: Fretboard = STANDARD_FRETBOARD
) -> MappedNote:
    """Resolve a scale degree under a do specification.

    Resolution is pure and deterministic: the same inputs always give an
    equal result.

    Args:
        digit: Scale degree 1-7.
        spec: Where do sits.
        fretboard: The instrument geometry.

    Returns:
        The mapped note.

    Raises:
        ValueError: If the digit is not a degree 1-7.
        UnreachablePitchError: If the target pitch is out of the board's range.
    """
    steps = degree_steps(digit)
    if isinstance(spec, PitchAnchored):
        home = home_position(digit)
        home_pitch = fretboard.position_to_pitch(home)
        shift = spec.do_name.steps_above(HOME_DO)
        pitch = home_pitch + shift
        if shift == 0:
            position = home
        else:
            position = find_best_position(pitch, home, PITCH_WEIGHTS, fretboard)
    elif isinstance(spec, PositionAnchored):
        pitch = fretboard.position_to_pitch(spec.do_position) + steps
        position = find_best_position(
            pitch, spec.do_position, POSITION_WEIGHTS, fretboard
        )
    else:
        raise MatchException(spec)
    return MappedNote(
        digit=digit,
        position=position,
        pitch=pitch,
        note_name=pitch_to_note_name(pitch),
    )


def tap_note(
    position: Position, spec: DoSpec, fretboard: Fretboard = STANDARD_FRETBOARD
) -> MappedNote:
    """Describe a tapped position relative to the active scale.

    The digit is inferred from the pitch class distance to do; pitches
    outside the major scale get digit 0.

    Raises:
        ValueError: If the position is off the board.
    """
    if position not in fretboard:
        raise ValueError(f"Position {position} is off the board")
    pitch = fretboard.position_to_pitch(position)
    classifier = ScaleClassifier(do_root(spec, fretboard))
    return MappedNote(
        digit=classifier.digit_of(pitch),
        position=position,
        pitch=pitch,
        note_name=pitch_to_note_name(pitch),
    )


def scale_reachable(
    do_position: Position, fretboard: Fretboard = STANDARD_FRETBOARD
) -> bool:
    """Whether a position can anchor a full major scale on this board."""
    if do_position not in fretboard:
        return False
    do_pitch = fretboard.position_to_pitch(do_position)
    return all(
        fretboard.candidates(do_pitch + steps)
        for steps in constants.MAJOR_SCALE_STEPS
    )
