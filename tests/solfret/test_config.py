import json
from dataclasses import replace
from pathlib import Path
from typing import Any, Dict

import pytest

from solfret.config import (
    DoMode,
    SettingsStore,
    init_settings,
    normalize_settings,
    settings_from_dict,
    settings_to_dict,
)
from solfret.fretboard import Position
from solfret.resolver import PitchAnchored, PositionAnchored
from solfret.scale import NoteName


def test_defaults() -> None:
    settings = init_settings()
    assert settings.do_mode == DoMode.Pitch
    assert settings.do_note_name == NoteName.C
    assert settings.do_position == Position(5, 3)
    assert settings.bpm == 90
    assert settings.sequence_length == 10
    assert settings.prepare_delay_ms == 2000
    assert settings.do_spec == PitchAnchored(NoteName.C)


def test_do_spec_follows_mode() -> None:
    settings = replace(
        init_settings(), do_mode=DoMode.Position, do_position=Position(6, 3)
    )
    assert settings.do_spec == PositionAnchored(Position(6, 3))


@pytest.mark.parametrize(
    "field, given, expected",
    [
        ("bpm", 500, 200),
        ("bpm", 10, 40),
        ("bpm", 120, 120),
        ("sequence_length", 3, 7),
        ("sequence_length", 99, 50),
        ("prepare_delay_ms", -5, 0),
        ("prepare_delay_ms", 20000, 10000),
    ],
)
def test_normalize_clamps(field: str, given: int, expected: int) -> None:
    settings = normalize_settings(replace(init_settings(), **{field: given}))
    assert getattr(settings, field) == expected


@pytest.mark.parametrize("pos", [Position(1, 14), Position(9, 0), Position(2, -1)])
def test_normalize_replaces_unusable_do_position(pos: Position) -> None:
    settings = normalize_settings(replace(init_settings(), do_position=pos))
    assert settings.do_position == Position(5, 3)


def test_dict_form_uses_persisted_names() -> None:
    settings = replace(
        init_settings(),
        do_mode=DoMode.Position,
        do_note_name=NoteName.Fs,
        do_position=Position(6, 3),
    )
    raw = settings_to_dict(settings)
    assert raw == {
        "doMode": "position",
        "doNoteName": "F#",
        "doPosition": {"string": 6, "fret": 3},
        "bpm": 90,
        "sequenceLength": 10,
        "prepareDelayMs": 2000,
    }
    assert settings_from_dict(raw) == settings


def test_missing_keys_take_defaults() -> None:
    assert settings_from_dict({}) == init_settings()
    partial = settings_from_dict({"bpm": 120, "doPosition": {"fret": 5}})
    assert partial.bpm == 120
    assert partial.do_position == Position(5, 5)


@pytest.mark.parametrize(
    "raw",
    [
        {"bpm": "fast"},
        {"bpm": True},
        {"bpm": 90.5},
        {"doMode": "chord"},
        {"doNoteName": "H"},
        {"doNoteName": 3},
        {"doPosition": "5:3"},
        {"doPosition": {"string": "five"}},
    ],
)
def test_malformed_dicts_are_rejected(raw: Dict[str, Any]) -> None:
    with pytest.raises(ValueError):
        settings_from_dict(raw)


def test_non_object_is_rejected() -> None:
    with pytest.raises(ValueError):
        settings_from_dict([1, 2, 3])  # type: ignore[arg-type]


class TestSettingsStore:
    def test_missing_file_gives_defaults(self, tmp_path: Path) -> None:
        store = SettingsStore(tmp_path / "absent.json")
        assert store.load() == init_settings()

    def test_save_then_load(self, tmp_path: Path) -> None:
        store = SettingsStore(tmp_path / "nested" / "settings.json")
        settings = replace(init_settings(), do_note_name=NoteName.G, bpm=120)
        store.save(settings)
        assert store.path.exists()
        assert json.loads(store.path.read_text())["doNoteName"] == "G"
        assert store.load() == settings

    def test_load_normalizes(self, tmp_path: Path) -> None:
        path = tmp_path / "settings.json"
        path.write_text(json.dumps({"bpm": 1000, "sequenceLength": 2}))
        settings = SettingsStore(path).load()
        assert settings.bpm == 200
        assert settings.sequence_length == 7

    def test_invalid_json(self, tmp_path: Path) -> None:
        path = tmp_path / "settings.json"
        path.write_text("{not json")
        with pytest.raises(ValueError):
            SettingsStore(str(path)).load()
