"""Trainer settings: defaults, bounds, serialization and storage.

Settings are an immutable snapshot. Editing produces a new snapshot which
components receive through ``handle_settings``. Out-of-range numbers are
clamped rather than rejected; structurally malformed input is rejected.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, replace
from enum import Enum, unique
from pathlib import Path
from typing import Any, Dict, Union

from solfret import constants
from solfret.base import MatchException
from solfret.fretboard import STANDARD_FRETBOARD, Fretboard, Position
from solfret.resolver import DoSpec, PitchAnchored, PositionAnchored, scale_reachable
from solfret.scale import NoteName, parse_note_name


@unique
class DoMode(Enum):
    """How do is specified. Values are the serialized forms."""

    Pitch = "pitch"  # By note name, transposing the home fingering
    Position = "position"  # By a physical position on the board


@dataclass(frozen=True)
class Settings:
    """Everything the trainer reads from the user."""

    do_mode: DoMode
    do_note_name: NoteName
    do_position: Position
    bpm: int
    sequence_length: int
    prepare_delay_ms: int

    @property
    def do_spec(self) -> DoSpec:
        """The do specification selected by ``do_mode``."""
        if self.do_mode == DoMode.Pitch:
            return PitchAnchored(self.do_note_name)
        elif self.do_mode == DoMode.Position:
            return PositionAnchored(self.do_position)
        else:
            raise MatchException(self.do_mode)


def init_settings() -> Settings:
    """Default settings: C by name, quarter notes at 90 bpm, two second pre-roll."""
    string, fret = constants.DEFAULT_DO_POSITION
    return Settings(
        do_mode=DoMode.Pitch,
        do_note_name=parse_note_name(constants.HOME_DO_NAME),
        do_position=Position(string=string, fret=fret),
        bpm=constants.DEFAULT_BPM,
        sequence_length=constants.DEFAULT_SEQUENCE_LENGTH,
        prepare_delay_ms=constants.DEFAULT_PREPARE_DELAY_MS,
    )


def _clamp(name: str, value: int, low: int, high: int) -> int:
    clamped = max(low, min(high, value))
    if clamped != value:
        logging.warning("clamped %s from %d to %d", name, value, clamped)
    return clamped


def normalize_settings(
    settings: Settings, fretboard: Fretboard = STANDARD_FRETBOARD
) -> Settings:
    """Bring settings within bounds.

    Numbers are clamped to their ranges. A do position that is off the
    board, or too high to hold a full major scale, is replaced by the
    default position.
    """
    do_position = settings.do_position
    if not scale_reachable(do_position, fretboard):
        fallback = init_settings().do_position
        logging.warning(
            "do position %s cannot hold a full scale, using %s", do_position, fallback
        )
        do_position = fallback
    return replace(
        settings,
        do_position=do_position,
        bpm=_clamp("bpm", settings.bpm, constants.MIN_BPM, constants.MAX_BPM),
        sequence_length=_clamp(
            "sequence length",
            settings.sequence_length,
            constants.MIN_SEQUENCE_LENGTH,
            constants.MAX_SEQUENCE_LENGTH,
        ),
        prepare_delay_ms=_clamp(
            "prepare delay",
            settings.prepare_delay_ms,
            0,
            constants.MAX_PREPARE_DELAY_MS,
        ),
    )


def settings_to_dict(settings: Settings) -> Dict[str, Any]:
    """JSON-ready form of settings, using the persisted key names."""
    return {
        "doMode": settings.do_mode.value,
        "doNoteName": str(settings.do_note_name),
        "doPosition": {
            "string": settings.do_position.string,
            "fret": settings.do_position.fret,
        },
        "bpm": settings.bpm,
        "sequenceLength": settings.sequence_length,
        "prepareDelayMs": settings.prepare_delay_ms,
    }


def _get_int(raw: Dict[str, Any], key: str, default: int) -> int:
    value = raw.get(key, default)
    # bool is an int subclass but never a meaningful setting here
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"Setting {key!r} must be an integer, got {value!r}")
    return value


def settings_from_dict(raw: Dict[str, Any]) -> Settings:
    """Parse persisted settings. Missing keys take their defaults.

    The result is not normalized; pass it through
    :func:`normalize_settings` before use.

    Raises:
        ValueError: If a value has the wrong type or names nothing known.
    """
    if not isinstance(raw, dict):
        raise ValueError(f"Settings must be an object, got {type(raw).__name__}")
    defaults = init_settings()
    mode_text = raw.get("doMode", defaults.do_mode.value)
    try:
        do_mode = DoMode(mode_text)
    except ValueError:
        raise ValueError(f"Unknown do mode: {mode_text!r}") from None
    name_text = raw.get("doNoteName", str(defaults.do_note_name))
    if not isinstance(name_text, str):
        raise ValueError(f"Setting 'doNoteName' must be a string, got {name_text!r}")
    raw_pos = raw.get("doPosition")
    if raw_pos is None:
        do_position = defaults.do_position
    elif isinstance(raw_pos, dict):
        do_position = Position(
            string=_get_int(raw_pos, "string", defaults.do_position.string),
            fret=_get_int(raw_pos, "fret", defaults.do_position.fret),
        )
    else:
        raise ValueError(f"Setting 'doPosition' must be an object, got {raw_pos!r}")
    return Settings(
        do_mode=do_mode,
        do_note_name=parse_note_name(name_text),
        do_position=do_position,
        bpm=_get_int(raw, "bpm", defaults.bpm),
        sequence_length=_get_int(raw, "sequenceLength", defaults.sequence_length),
        prepare_delay_ms=_get_int(raw, "prepareDelayMs", defaults.prepare_delay_ms),
    )


class SettingsStore:
    """Settings persisted as a JSON file."""

    def __init__(self, path: Union[str, Path]) -> None:
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> Settings:
        """Load and normalize settings; a missing file gives the defaults.

        Raises:
            ValueError: If the file exists but does not hold valid settings.
        """
        if not self._path.exists():
            logging.info("no settings at %s, using defaults", self._path)
            return init_settings()
        try:
            raw = json.loads(self._path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as e:
            raise ValueError(f"Settings file {self._path} is not JSON: {e}") from e
        settings = normalize_settings(settings_from_dict(raw))
        logging.info("loaded settings from %s", self._path)
        return settings

    def save(self, settings: Settings) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._path.write_text(
            json.dumps(settings_to_dict(settings), indent=2) + "\n", encoding="utf-8"
        )
        logging.info("saved settings to %s", self._path)
