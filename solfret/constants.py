"""Constants for the solfret trainer.

Instrument geometry, scale tables, and the defaults and bounds applied to
user settings all live here so that every module agrees on them.
"""

from typing import Dict, List, Tuple

STRING_COUNT = 6
"""Number of strings on the instrument."""

MAX_FRET = 14
"""Highest reachable fret (inclusive). Fret 0 is the open string."""

STANDARD_TUNING: List[int] = [64, 59, 55, 50, 45, 40]
"""Open-string pitches in MIDI note numbers, indexed by string number - 1.

String 1 is the highest-pitched string (E4) and string 6 the lowest (E2).
"""

MAJOR_SCALE_STEPS: List[int] = [0, 2, 4, 5, 7, 9, 11]
"""Semitones above the tonal center for scale degrees 1 through 7."""

NUM_DEGREES = len(MAJOR_SCALE_STEPS)
"""Number of degrees in the major scale."""

OFF_SCALE_DIGIT = 0
"""Digit reported for a tapped pitch outside the active major scale."""

HOME_DO_NAME = "C"
"""Tonal center whose fingering comes from a fixed table."""

HOME_POSITIONS: Dict[int, Tuple[int, int]] = {
    1: (5, 3),  # C
    2: (4, 0),  # D
    3: (4, 2),  # E
    4: (4, 3),  # F
    5: (3, 0),  # G
    6: (3, 2),  # A
    7: (2, 0),  # B
}
"""Open-position C major fingering as (string, fret) per scale degree."""

FRET_MARKERS: List[int] = [3, 5, 7, 9, 12]
"""Frets carrying an inlay dot."""

DOUBLE_FRET_MARKERS: List[int] = [12]
"""Frets carrying a double inlay dot."""

MIN_BPM = 40
"""Slowest accepted tempo."""
MAX_BPM = 200
"""Fastest accepted tempo."""
DEFAULT_BPM = 90
"""Tempo used when none is configured."""

MIN_SEQUENCE_LENGTH = NUM_DEGREES
"""Shortest sequence; every degree must appear at least once."""
MAX_SEQUENCE_LENGTH = 50
"""Longest sequence the settings layer accepts."""
DEFAULT_SEQUENCE_LENGTH = 10
"""Sequence length used when none is configured."""

MAX_PREPARE_DELAY_MS = 10000
"""Longest accepted pre-roll delay in milliseconds."""
DEFAULT_PREPARE_DELAY_MS = 2000
"""Pre-roll delay used when none is configured."""

DEFAULT_DO_POSITION: Tuple[int, int] = (5, 3)
"""Position-anchored do used when none is configured (string, fret)."""

DEFAULT_DURATION_HINT = "4n"
"""Nominal note length handed to the audio backend (a quarter note)."""

TAP_HIGHLIGHT_MS = 1500.0
"""How long a tapped position stays highlighted."""

MS_PER_MINUTE = 60000.0
"""Milliseconds in one minute, for tempo arithmetic."""

DEFAULT_PORT_NAME = "solfret"
"""Default name for a virtual MIDI output port."""

DEFAULT_VELOCITY = 96
"""MIDI velocity used for note triggers."""

DEFAULT_MIDI_CHANNEL = 0
"""MIDI channel (0-based, as mido expects) used for note triggers."""
