"""Chromatic note names, pitch arithmetic and major-scale classification.

Pitches are MIDI note numbers: unbounded integers for ordering and
distance, reduced modulo 12 only when deriving a note name. Names are
spelled with sharps only, so every pitch class has exactly one name.
"""

import re
from enum import Enum, unique
from typing import Dict, Optional, Tuple

from solfret.constants import MAJOR_SCALE_STEPS, OFF_SCALE_DIGIT


@unique
class NoteName(Enum):
    """The twelve chromatic note names.

    Values are semitone offsets from C within an octave. Accidentals are
    always sharps; member names use an ``s`` suffix since ``#`` is not a
    valid identifier, while ``str()`` gives the conventional spelling.
    """

    C = 0
    Cs = 1
    D = 2
    Ds = 3
    E = 4
    F = 5
    Fs = 6
    G = 7
    Gs = 8
    A = 9
    As = 10
    B = 11

    def __str__(self) -> str:
        return self.name.replace("s", "#")

    def add_steps(self, steps: int) -> "NoteName":
        """Add semitone steps to this note name.

        Args:
            steps: Number of semitones to add (can be negative).

        Returns:
            The resulting note name after adding the steps.
        """
        return index_to_note_name(self.value + steps)

    def steps_above(self, other: "NoteName") -> int:
        """Semitones (0-11) from ``other`` up to this name."""
        return (self.value - other.value) % MAX_NOTES


MAX_NOTES = 12
"""Number of distinct note names in the chromatic scale."""


def _build_note_lookup() -> Dict[int, NoteName]:
    d: Dict[int, NoteName] = {}
    for n in NoteName:
        d[n.value] = n
    assert len(d) == MAX_NOTES
    return d


NOTE_LOOKUP = _build_note_lookup()
"""Lookup table from semitone offset (0-11) to NoteName."""

_SPELLING_LOOKUP: Dict[str, NoteName] = {str(n): n for n in NoteName}

_PITCH_ID_RE = re.compile(r"^([A-G]#?)(-?\d+)$")


def note_name_to_index(name: NoteName) -> int:
    """Semitone index (0-11) of a note name, with C at 0."""
    return name.value


def index_to_note_name(index: int) -> NoteName:
    """Note name for any semitone index, wrapping modulo 12.

    Negative indices wrap too, so ``index_to_note_name(-1)`` is B.
    """
    return NOTE_LOOKUP[index % MAX_NOTES]


def pitch_to_note_name(pitch: int) -> NoteName:
    """Note name of an absolute pitch. Total over all integers."""
    return index_to_note_name(pitch)


def parse_note_name(text: str) -> NoteName:
    """Parse a note name spelled either ``C#`` or ``Cs``.

    Raises:
        ValueError: If the text names no chromatic note.
    """
    found = _SPELLING_LOOKUP.get(text)
    if found is not None:
        return found
    try:
        return NoteName[text]
    except KeyError:
        raise ValueError(f"Unknown note name: {text!r}") from None


def name_and_octave_from_pitch(pitch: int) -> Tuple[NoteName, int]:
    """Split a pitch into its name and scientific-pitch octave.

    Middle C (60) is C4.
    """
    return pitch_to_note_name(pitch), pitch // MAX_NOTES - 1


def pitch_identifier(pitch: int) -> str:
    """Pitch identifier understood by audio backends, e.g. ``D#3``."""
    name, octave = name_and_octave_from_pitch(pitch)
    return f"{name}{octave}"


def parse_pitch_identifier(ident: str) -> int:
    """Inverse of :func:`pitch_identifier`.

    Raises:
        ValueError: If the identifier is not ``<name><octave>``.
    """
    m = _PITCH_ID_RE.match(ident)
    if m is None:
        raise ValueError(f"Malformed pitch identifier: {ident!r}")
    name = parse_note_name(m.group(1))
    octave = int(m.group(2))
    return (octave + 1) * MAX_NOTES + name.value


class ScaleClassifier:
    """Classifies pitches against a major scale rooted at a pitch class.

    Used for tap results: a tapped pitch is either one of the seven degrees
    of the active scale or off-scale.
    """

    def __init__(self, root: NoteName) -> None:
        self._root = root
        self._degrees: Dict[int, int] = {
            steps: i + 1 for i, steps in enumerate(MAJOR_SCALE_STEPS)
        }

    @property
    def root(self) -> NoteName:
        return self._root

    def degree_of(self, pitch: int) -> Optional[int]:
        """Scale degree (1-7) of a pitch, or None if it is off-scale."""
        steps = pitch_to_note_name(pitch).steps_above(self._root)
        return self._degrees.get(steps)

    def digit_of(self, pitch: int) -> int:
        """Like :meth:`degree_of` but reports off-scale pitches as digit 0."""
        degree = self.degree_of(pitch)
        return OFF_SCALE_DIGIT if degree is None else degree

    def is_root(self, pitch: int) -> bool:
        return pitch_to_note_name(pitch) == self._root

    def is_member(self, pitch: int) -> bool:
        return self.degree_of(pitch) is not None


def degree_steps(digit: int) -> int:
    """Semitones above do for a scale degree.

    Raises:
        ValueError: If the digit is not a degree 1-7.
    """
    if digit < 1 or digit > len(MAJOR_SCALE_STEPS):
        raise ValueError(f"Not a scale degree: {digit}")
    return MAJOR_SCALE_STEPS[digit - 1]
