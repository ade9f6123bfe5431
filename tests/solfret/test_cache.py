from solfret.cache import MappingCache, cache_key
from solfret.fretboard import Position
from solfret.resolver import PitchAnchored, PositionAnchored, resolve_digit
from solfret.scale import NoteName


def test_miss_then_hit() -> None:
    cache = MappingCache()
    spec = PitchAnchored(NoteName.G)
    first = cache.get(5, spec)
    second = cache.get(5, spec)
    assert first is second
    assert first == resolve_digit(5, spec)
    assert cache.misses == 1
    assert cache.hits == 1
    assert len(cache) == 1


def test_key_includes_spec() -> None:
    cache = MappingCache()
    by_name = cache.get(1, PitchAnchored(NoteName.C))
    by_pos = cache.get(1, PositionAnchored(Position(5, 3)))
    assert by_name.position == by_pos.position
    assert len(cache) == 2
    assert cache_key(1, PitchAnchored(NoteName.C)) == (1, "pitch:C")
    assert cache_key(1, PositionAnchored(Position(5, 3))) == (1, "position:5:3")
    assert (1, "pitch:C") in cache


def test_sharp_key_uses_sharp_spelling() -> None:
    assert cache_key(2, PitchAnchored(NoteName.Fs)) == (2, "pitch:F#")


def test_warm_fills_all_degrees() -> None:
    cache = MappingCache()
    spec = PositionAnchored(Position(6, 3))
    cache.warm(spec)
    assert len(cache) == 7
    assert cache.misses == 7
    notes = cache.get_all([1, 7, 1], spec)
    assert [n.digit for n in notes] == [1, 7, 1]
    assert cache.hits == 3
    assert cache.misses == 7


def test_instances_are_independent() -> None:
    one = MappingCache()
    two = MappingCache()
    one.warm(PitchAnchored(NoteName.C))
    assert len(two) == 0
