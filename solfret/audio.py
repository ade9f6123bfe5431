"""Audio backends that sound pitches for the trainer.

The trainer hands a backend a pitch identifier such as ``C4`` and a note
length hint such as ``4n`` (a quarter note). Returning from
:meth:`AudioBackend.play_pitch` is the completion signal: the note has been
triggered and sequencing may continue. How the sound is produced is up to
the backend.
"""

from __future__ import annotations

import logging
import re
from abc import ABCMeta, abstractmethod
from typing import Dict, List, Optional

from solfret import constants
from solfret.base import Closeable
from solfret.midi import MidiSink, note_off_msg, note_on_msg
from solfret.scale import parse_pitch_identifier
from solfret.timer import TimerHandle, TimerLoop

_HINT_RE = re.compile(r"^(\d+)n(\.?)$")

_BEATS_PER_WHOLE = 4


def duration_hint_ms(hint: str, bpm: float) -> float:
    """Length of a note-value hint at a tempo, where one beat is a quarter.

    ``4n`` is one beat, ``8n`` half a beat and ``1n`` four beats; a trailing
    dot adds half again.

    Raises:
        ValueError: If the hint is malformed or the tempo is not positive.
    """
    if bpm <= 0:
        raise ValueError(f"Tempo must be positive, got {bpm}")
    m = _HINT_RE.match(hint)
    if m is None or int(m.group(1)) == 0:
        raise ValueError(f"Malformed duration hint: {hint!r}")
    beats = _BEATS_PER_WHOLE / int(m.group(1))
    if m.group(2):
        beats *= 1.5
    return beats * constants.MS_PER_MINUTE / bpm


class AudioBackend(metaclass=ABCMeta):
    """Something that can sound a pitch."""

    @abstractmethod
    def play_pitch(self, pitch_id: str, duration_hint: str) -> None:
        """Trigger a pitch.

        Args:
            pitch_id: Pitch in scientific notation, e.g. ``D#3``.
            duration_hint: Note value such as ``4n`` or ``8n``.
        """
        raise NotImplementedError()


class LogBackend(AudioBackend):
    """Backend that only logs, for running without a synth."""

    def play_pitch(self, pitch_id: str, duration_hint: str) -> None:
        logging.info("play %s (%s)", pitch_id, duration_hint)


class MidiBackend(AudioBackend, Closeable):
    """Backend sounding pitches as MIDI notes.

    A note-on is sent immediately and the matching note-off is scheduled on
    the timer loop after the hinted duration at the current tempo.
    Retriggering a sounding note ends it first.
    """

    def __init__(
        self,
        sink: MidiSink,
        timers: TimerLoop,
        bpm: float = constants.DEFAULT_BPM,
        velocity: int = constants.DEFAULT_VELOCITY,
        channel: int = constants.DEFAULT_MIDI_CHANNEL,
    ) -> None:
        self._sink = sink
        self._timers = timers
        self._bpm = bpm
        self._velocity = velocity
        self._channel = channel
        self._sounding: Dict[int, TimerHandle] = {}

    def set_bpm(self, bpm: float) -> None:
        self._bpm = bpm

    def sounding(self) -> List[int]:
        """MIDI notes currently held on, in ascending order."""
        return sorted(self._sounding)

    def play_pitch(self, pitch_id: str, duration_hint: str) -> None:
        note = parse_pitch_identifier(pitch_id)
        if note < 0 or note > 127:
            raise ValueError(f"Pitch {pitch_id} is outside the MIDI range")
        length_ms = duration_hint_ms(duration_hint, self._bpm)
        self._end(note)
        self._sink.send_msg(note_on_msg(note, self._velocity, self._channel))
        self._sounding[note] = self._timers.call_later(
            length_ms, lambda: self._release(note)
        )

    def _release(self, note: int) -> None:
        self._sounding.pop(note, None)
        self._sink.send_msg(note_off_msg(note, self._channel))

    def _end(self, note: int) -> None:
        handle: Optional[TimerHandle] = self._sounding.pop(note, None)
        if handle is not None:
            handle.cancel()
            self._sink.send_msg(note_off_msg(note, self._channel))

    def close(self) -> None:
        """End every sounding note."""
        for note in list(self._sounding):
            self._end(note)
