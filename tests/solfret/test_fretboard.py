import pytest

from solfret import constants
from solfret.fretboard import STANDARD_FRETBOARD, Fretboard, Position
from solfret.scale import NoteName, pitch_to_note_name


@pytest.mark.parametrize(
    "pos, pitch",
    [
        (Position(1, 0), 64),
        (Position(2, 0), 59),
        (Position(5, 3), 48),
        (Position(6, 0), 40),
        (Position(6, 14), 54),
        (Position(1, 14), 78),
    ],
)
def test_position_to_pitch(pos: Position, pitch: int) -> None:
    assert STANDARD_FRETBOARD.position_to_pitch(pos) == pitch


def test_home_do_names_c() -> None:
    pitch = STANDARD_FRETBOARD.position_to_pitch(Position(5, 3))
    assert pitch_to_note_name(pitch) == NoteName.C


def test_iter_positions_covers_board() -> None:
    assert STANDARD_FRETBOARD.num_strings == constants.STRING_COUNT
    positions = list(STANDARD_FRETBOARD.iter_positions())
    assert len(positions) == 6 * 15
    assert positions[0] == Position(1, 0)
    assert positions[-1] == Position(6, 14)
    assert all(p in STANDARD_FRETBOARD for p in positions)


@pytest.mark.parametrize(
    "pos", [Position(0, 0), Position(7, 0), Position(1, -1), Position(1, 15)]
)
def test_off_board(pos: Position) -> None:
    assert pos not in STANDARD_FRETBOARD


def test_candidates_for_e4() -> None:
    assert STANDARD_FRETBOARD.candidates(64) == [
        Position(1, 0),
        Position(2, 5),
        Position(3, 9),
        Position(4, 14),
    ]


def test_candidates_out_of_range() -> None:
    assert STANDARD_FRETBOARD.candidates(39) == []
    assert STANDARD_FRETBOARD.candidates(79) == []
    assert STANDARD_FRETBOARD.lowest_pitch() == 40
    assert STANDARD_FRETBOARD.highest_pitch() == 78


def test_open_pitch_rejects_missing_string() -> None:
    with pytest.raises(ValueError):
        STANDARD_FRETBOARD.open_pitch(7)


def test_short_board_limits_reach() -> None:
    board = Fretboard(tuning=[64, 59, 55, 50, 45, 40], max_fret=5)
    assert board.fret_for(1, 70) is None
    assert board.fret_for(1, 69) == 5
    assert board.markers() == [3, 5]
    assert STANDARD_FRETBOARD.markers() == [3, 5, 7, 9, 12]
    assert STANDARD_FRETBOARD.is_double_marker(12)


def test_position_parse_and_str() -> None:
    pos = Position.parse("5:3")
    assert pos == Position(string=5, fret=3)
    assert str(pos) == "5:3"
    assert tuple(pos) == (5, 3)


@pytest.mark.parametrize("text", ["5", "5:3:1", "a:b", ""])
def test_position_parse_rejects(text: str) -> None:
    with pytest.raises(ValueError):
        Position.parse(text)
