"""Main controller coordinating settings, sequences, playback and taps.

The trainer turns settings into a generated sequence, resolves each digit
through the mapping cache, and hands the result to the player. It also
answers taps on the fretboard: sounding the tapped pitch and reporting its
scale degree, or, when armed, moving the position-anchored do there.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from random import Random
from typing import List, Optional

from solfret import constants
from solfret.audio import AudioBackend, MidiBackend
from solfret.base import Closeable
from solfret.cache import MappingCache
from solfret.config import Settings, normalize_settings
from solfret.fretboard import STANDARD_FRETBOARD, Fretboard, Position
from solfret.playback import PlaybackObserver, PlaybackState, Player
from solfret.resolver import (
    HOME_DO,
    MappedNote,
    PitchAnchored,
    scale_reachable,
    tap_note,
)
from solfret.sequence import generate_sequence
from solfret.timer import TimerHandle, TimerLoop


class Trainer(Closeable):
    """The sight-reading trainer.

    All calls happen on the thread running the timer loop.
    """

    def __init__(
        self,
        settings: Settings,
        timers: TimerLoop,
        backend: AudioBackend,
        cache: Optional[MappingCache] = None,
        rng: Optional[Random] = None,
        observer: Optional[PlaybackObserver] = None,
        fretboard: Fretboard = STANDARD_FRETBOARD,
    ) -> None:
        """Initialize the trainer and warm the cache for the home key.

        Args:
            settings: Initial settings; they are normalized first.
            timers: Loop driving playback and tap highlights.
            backend: Where notes are sounded.
            cache: Mapping cache to share; a fresh one by default.
            rng: Randomness for sequence generation.
            observer: Receives playback events.
            fretboard: The instrument geometry.
        """
        self._fretboard = fretboard
        self._settings = normalize_settings(settings, fretboard)
        self._timers = timers
        self._backend = backend
        self._cache = cache if cache is not None else MappingCache(fretboard)
        self._rng = rng if rng is not None else Random()
        self._player = Player(
            Player.extract_slice(self._settings), timers, backend, observer
        )
        self._selecting_do = False
        self._highlight: Optional[MappedNote] = None
        self._highlight_timer: Optional[TimerHandle] = None
        if isinstance(backend, MidiBackend):
            backend.set_bpm(self._settings.bpm)
        self._cache.warm(PitchAnchored(HOME_DO))

    @property
    def settings(self) -> Settings:
        return self._settings

    @property
    def cache(self) -> MappingCache:
        return self._cache

    @property
    def player(self) -> Player:
        return self._player

    @property
    def state(self) -> PlaybackState:
        return self._player.state

    @property
    def sequence(self) -> List[int]:
        return self._player.sequence

    @property
    def highlight(self) -> Optional[MappedNote]:
        """The most recent tap result, until its highlight expires."""
        return self._highlight

    @property
    def selecting_do(self) -> bool:
        return self._selecting_do

    def update_settings(self, settings: Settings) -> None:
        """Adopt new settings.

        Notes already mapped are kept; a changed do only affects the next
        generated sequence, and a changed tempo only notes not yet scheduled.
        """
        self._settings = normalize_settings(settings, self._fretboard)
        self._player.handle_settings(self._settings, reset=False)
        if isinstance(self._backend, MidiBackend):
            self._backend.set_bpm(self._settings.bpm)

    def generate(self) -> List[int]:
        """Stop playback and load a fresh sequence under the current settings."""
        self._player.stop()
        spec = self._settings.do_spec
        sequence = generate_sequence(self._settings.sequence_length, self._rng)
        notes = self._cache.get_all(sequence, spec)
        logging.info("generated %s under %s", sequence, spec.key())
        self._player.load(sequence, notes)
        return sequence

    def play(self) -> None:
        self._player.play()

    def play_from_index(self, index: int) -> None:
        self._player.play_from_index(index)

    def pause(self) -> None:
        self._player.pause()

    def resume(self) -> None:
        self._player.resume()

    def stop(self) -> None:
        self._player.stop()

    def begin_do_selection(self) -> None:
        """Make the next tap choose the position-anchored do."""
        self._selecting_do = True

    def cancel_do_selection(self) -> None:
        self._selecting_do = False

    def tap(self, position: Position) -> Optional[MappedNote]:
        """Handle a tap on the fretboard.

        Returns:
            The tapped note relative to the active scale, or None when the
            tap was consumed choosing a new do position.

        Raises:
            ValueError: If the position is off the board.
        """
        if self._selecting_do:
            self._select_do(position)
            return None
        note = tap_note(position, self._settings.do_spec, self._fretboard)
        try:
            self._backend.play_pitch(note.pitch_id, constants.DEFAULT_DURATION_HINT)
        except Exception:
            logging.exception("audio backend failed on tap %s", note.pitch_id)
        self._timers.cancel(self._highlight_timer)
        self._highlight = note
        self._highlight_timer = self._timers.call_later(
            constants.TAP_HIGHLIGHT_MS, self._clear_highlight
        )
        return note

    def _select_do(self, position: Position) -> None:
        if not scale_reachable(position, self._fretboard):
            logging.warning("do position %s cannot hold a full scale", position)
            return
        self._selecting_do = False
        logging.info("do position set to %s", position)
        self.update_settings(replace(self._settings, do_position=position))

    def _clear_highlight(self) -> None:
        self._highlight = None
        self._highlight_timer = None

    def close(self) -> None:
        self._player.close()
        self._timers.cancel(self._highlight_timer)
        self._highlight_timer = None
        self._highlight = None
        if isinstance(self._backend, Closeable):
            self._backend.close()
