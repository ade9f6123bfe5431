"""Timer-driven playback of a mapped sequence.

The player is a state machine over Idle, Playing and Paused. It owns at
most one pending timer: either the one-shot pre-roll before the first note
of a from-scratch play, or the advance to the next note. Every operation
that changes state cancels that timer before deciding what to schedule, so
a stale callback can never advance the cursor twice.

Transitions are reported to an observer as ``PlaybackEvent`` values so a
UI can render the highlighted note and progress.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum, auto, unique
from typing import Callable, List, Optional, Sequence, Type, override

from solfret import constants
from solfret.audio import AudioBackend
from solfret.base import Closeable
from solfret.component import SettingsSlice, SlicedComponent
from solfret.config import Settings
from solfret.resolver import MappedNote
from solfret.timer import TimerHandle, TimerLoop


@unique
class PlaybackState(Enum):
    """Where the player is in its lifecycle."""

    Idle = auto()  # Nothing scheduled, no cursor
    Playing = auto()  # Advancing, or waiting out the pre-roll
    Paused = auto()  # Holding the cursor, nothing scheduled


@dataclass(frozen=True)
class PlaybackEvent:
    """A snapshot sent to observers after every transition."""

    state: PlaybackState
    cursor: Optional[int]
    """Index of the last triggered note, or None before the first."""
    note: Optional[MappedNote]
    """The note at the cursor, if any."""


PlaybackObserver = Callable[[PlaybackEvent], None]


def note_delay_ms(bpm: float) -> float:
    """Time between consecutive note triggers at a tempo.

    Fractional milliseconds are kept so long sequences do not drift.
    """
    return constants.MS_PER_MINUTE / bpm


@dataclass(frozen=True)
class PlaybackConfig(SettingsSlice[Settings]):
    """The settings the player depends on."""

    bpm: int
    prepare_delay_ms: int

    @classmethod
    def extract(cls: Type[PlaybackConfig], settings: Settings) -> PlaybackConfig:
        return cls(
            bpm=settings.bpm,
            prepare_delay_ms=settings.prepare_delay_ms,
        )


class Player(SlicedComponent[Settings, PlaybackConfig, None], Closeable):
    """Walks a list of mapped notes forward on a timer loop.

    Out-of-place calls (pausing while idle, seeking past the end) are
    ignored rather than raised, since they can legitimately race with a
    new sequence being loaded.
    """

    @classmethod
    def extract_slice(cls, settings: Settings) -> PlaybackConfig:
        return PlaybackConfig.extract(settings)

    def __init__(
        self,
        config: PlaybackConfig,
        timers: TimerLoop,
        backend: AudioBackend,
        observer: Optional[PlaybackObserver] = None,
        duration_hint: str = constants.DEFAULT_DURATION_HINT,
    ) -> None:
        """Initialize an idle player with no sequence.

        Args:
            config: Tempo and pre-roll settings.
            timers: The loop that runs pre-roll and advance callbacks.
            backend: Where triggered notes are sounded.
            observer: Receives an event after every transition.
            duration_hint: Note value passed to the backend with each pitch.
        """
        super().__init__(config)
        self._timers = timers
        self._backend = backend
        self._observer = observer
        self._duration_hint = duration_hint
        self._sequence: List[int] = []
        self._notes: List[MappedNote] = []
        self._state = PlaybackState.Idle
        self._cursor: Optional[int] = None
        self._pending: Optional[TimerHandle] = None
        # Bumped on every cancellation; a trigger only schedules if unchanged
        self._epoch = 0

    @property
    def config(self) -> PlaybackConfig:
        return self._slice

    @property
    def state(self) -> PlaybackState:
        return self._state

    @property
    def cursor(self) -> Optional[int]:
        return self._cursor

    @property
    def sequence(self) -> List[int]:
        return list(self._sequence)

    @property
    def notes(self) -> List[MappedNote]:
        return list(self._notes)

    @property
    def current_note(self) -> Optional[MappedNote]:
        return None if self._cursor is None else self._notes[self._cursor]

    def has_pending(self) -> bool:
        """Whether a pre-roll or advance timer is outstanding."""
        return self._pending is not None and self._pending.active

    def set_observer(self, observer: Optional[PlaybackObserver]) -> None:
        self._observer = observer

    @override
    def handle_slice(self, settings_slice: PlaybackConfig) -> None:
        # Notes already scheduled keep their delay; later ones use the new tempo
        logging.debug("player config %s", settings_slice)
        self._slice = settings_slice

    def load(self, sequence: Sequence[int], notes: Sequence[MappedNote]) -> None:
        """Replace the sequence, cancelling any playback.

        Args:
            sequence: The digits, in play order.
            notes: The mapped note for each digit.

        Raises:
            ValueError: If the lists differ in length.
        """
        if len(sequence) != len(notes):
            raise ValueError(
                f"Sequence has {len(sequence)} digits but {len(notes)} notes"
            )
        self._cancel_pending()
        self._sequence = list(sequence)
        self._notes = list(notes)
        self._state = PlaybackState.Idle
        self._cursor = None
        logging.info("loaded sequence of %d notes", len(self._notes))
        self._emit()

    def play(self) -> None:
        """Play from the beginning, waiting out the pre-roll first if set."""
        self._cancel_pending()
        if not self._notes:
            logging.debug("play ignored: no sequence")
            return
        self._state = PlaybackState.Playing
        self._cursor = None
        self._emit()
        delay = self._slice.prepare_delay_ms
        if delay > 0:
            logging.info("preparing for %d ms", delay)
            self._pending = self._timers.call_later(delay, self._on_pre_roll)
        else:
            self._trigger(0)

    def play_from_index(self, index: int) -> None:
        """Jump to a note and play on from it with no pre-roll.

        Out-of-range indices are ignored.
        """
        if index < 0 or index >= len(self._notes):
            logging.debug("seek to %d ignored: %d notes", index, len(self._notes))
            return
        self._cancel_pending()
        self._state = PlaybackState.Playing
        self._trigger(index)

    def pause(self) -> None:
        """Hold at the current note. Ignored unless playing."""
        if self._state != PlaybackState.Playing:
            return
        self._cancel_pending()
        self._state = PlaybackState.Paused
        logging.info("paused at %s", self._cursor)
        self._emit()

    def resume(self) -> None:
        """Continue with the note after the cursor. Ignored unless paused."""
        if self._state != PlaybackState.Paused:
            return
        self._cancel_pending()
        self._state = PlaybackState.Playing
        next_index = 0 if self._cursor is None else self._cursor + 1
        logging.info("resuming at %d", next_index)
        self._trigger(next_index)

    def stop(self) -> None:
        """Cancel everything and return to idle, from any state."""
        self._cancel_pending()
        self._state = PlaybackState.Idle
        self._cursor = None
        self._emit()

    def close(self) -> None:
        self._cancel_pending()
        self._state = PlaybackState.Idle
        self._cursor = None

    def _cancel_pending(self) -> None:
        self._timers.cancel(self._pending)
        self._pending = None
        self._epoch += 1

    def _emit(self) -> None:
        if self._observer is not None:
            self._observer(PlaybackEvent(self._state, self._cursor, self.current_note))

    def _on_pre_roll(self) -> None:
        self._pending = None
        if self._state == PlaybackState.Playing:
            self._trigger(0)

    def _on_advance(self, index: int) -> None:
        self._pending = None
        if self._state == PlaybackState.Playing:
            self._trigger(index)

    def _trigger(self, index: int) -> None:
        if index >= len(self._notes):
            self._finish()
            return
        epoch = self._epoch
        note = self._notes[index]
        self._cursor = index
        logging.debug("trigger %d: digit %d at %s", index, note.digit, note.position)
        self._emit()
        # The observer may have paused, stopped or seeked
        if self._state != PlaybackState.Playing or self._epoch != epoch:
            return
        try:
            self._backend.play_pitch(note.pitch_id, self._duration_hint)
        except Exception:
            logging.exception("audio backend failed on %s", note.pitch_id)
        # Likewise the backend
        if self._state == PlaybackState.Playing and self._epoch == epoch:
            self._pending = self._timers.call_later(
                note_delay_ms(self._slice.bpm), lambda: self._on_advance(index + 1)
            )

    def _finish(self) -> None:
        self._state = PlaybackState.Idle
        self._cursor = None
        logging.info("sequence finished")
        self._emit()
