import logging

import pytest

from solfret.audio import LogBackend, MidiBackend, duration_hint_ms
from solfret.midi import note_off_msg, note_on_msg
from solfret.timer import ManualClock, TimerLoop
from tests.solfret.fakes import ListSink


@pytest.mark.parametrize(
    "hint, bpm, ms",
    [
        ("4n", 60, 1000),
        ("4n", 120, 500),
        ("8n", 120, 250),
        ("1n", 60, 4000),
        ("2n.", 60, 3000),
        ("16n", 60, 250),
    ],
)
def test_duration_hint(hint: str, bpm: float, ms: float) -> None:
    assert duration_hint_ms(hint, bpm) == pytest.approx(ms)


@pytest.mark.parametrize("hint", ["4", "n", "0n", "4m", "quarter", ""])
def test_malformed_hint(hint: str) -> None:
    with pytest.raises(ValueError):
        duration_hint_ms(hint, 90)


def test_non_positive_tempo() -> None:
    with pytest.raises(ValueError):
        duration_hint_ms("4n", 0)


class MidiRig:
    def __init__(self, bpm: float = 120) -> None:
        self.loop = TimerLoop(ManualClock())
        self.sink = ListSink()
        self.backend = MidiBackend(self.sink, self.loop, bpm=bpm)


def test_midi_note_on_then_off() -> None:
    rig = MidiRig()
    rig.backend.play_pitch("C4", "4n")
    assert rig.sink.messages == [note_on_msg(60, 96, 0)]
    assert rig.backend.sounding() == [60]
    rig.loop.advance(499)
    assert len(rig.sink.messages) == 1
    rig.loop.advance(1)
    assert rig.sink.messages[-1] == note_off_msg(60, 0)
    assert rig.backend.sounding() == []


def test_midi_retrigger_ends_note_first() -> None:
    rig = MidiRig()
    rig.backend.play_pitch("E2", "4n")
    rig.loop.advance(100)
    rig.backend.play_pitch("E2", "4n")
    assert [m.type for m in rig.sink.messages] == ["note_on", "note_off", "note_on"]
    rig.loop.advance(450)
    assert len(rig.sink.messages) == 3
    rig.loop.advance(50)
    assert rig.sink.messages[-1] == note_off_msg(40, 0)


def test_midi_tempo_change() -> None:
    rig = MidiRig(bpm=60)
    rig.backend.set_bpm(240)
    rig.backend.play_pitch("A#4", "4n")
    assert rig.sink.messages[0].note == 70
    rig.loop.advance(250)
    assert rig.backend.sounding() == []


def test_midi_close_ends_everything() -> None:
    rig = MidiRig()
    rig.backend.play_pitch("C3", "1n")
    rig.backend.play_pitch("G3", "1n")
    rig.backend.close()
    assert rig.backend.sounding() == []
    offs = [m.note for m in rig.sink.messages if m.type == "note_off"]
    assert sorted(offs) == [48, 55]
    assert rig.loop.pending() == 0


@pytest.mark.parametrize("pitch_id", ["G#9", "C-2", "H4", "C"])
def test_midi_rejects_bad_pitch(pitch_id: str) -> None:
    rig = MidiRig()
    with pytest.raises(ValueError):
        rig.backend.play_pitch(pitch_id, "4n")
    assert rig.sink.messages == []


def test_log_backend(caplog: pytest.LogCaptureFixture) -> None:
    with caplog.at_level(logging.INFO):
        LogBackend().play_pitch("D#3", "4n")
    assert "D#3" in caplog.text
