from minnow.rng import get_random_engine


def test_engines_are_independently_seeded():
    first = [get_random_engine().getrandbits(64) for _ in range(4)]
    second = [get_random_engine().getrandbits(64) for _ in range(4)]
    assert first != second
    assert len(set(first + second)) == 8


def test_values_in_requested_range():
    engine = get_random_engine()
    values = [engine.randrange(10) for _ in range(200)]
    assert all(0 <= v < 10 for v in values)


def test_state_replays_sequence():
    engine = get_random_engine()
    state = engine.getstate()
    expected = [engine.getrandbits(32) for _ in range(5)]
    engine.setstate(state)
    assert [engine.getrandbits(32) for _ in range(5)] == expected