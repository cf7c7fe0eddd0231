import numpy as np
import pytest

from fpsengine.timing import DeltaTimer, SmoothTransform
from fpsengine.transform import Transform


def make_clock(values):
    it = iter(values)
    return lambda: next(it)


def test_first_tick_is_zero_then_deltas():
    times = [10.0, 10.25, 11.0]
    timer = DeltaTimer(make_clock(times))
    assert timer.tick() == 0.0
    assert timer.tick() == pytest.approx(times[1] - times[0])
    assert timer.tick() == pytest.approx(times[2] - times[1])


def test_default_clock_non_negative():
    timer = DeltaTimer()
    timer.tick()
    assert timer.tick() >= 0.0


@pytest.fixture
def smooth():
    return SmoothTransform(Transform((0, 0, 0)), Transform((2, 4, 8)), 0.5)


def test_starts_at_start(smooth):
    np.testing.assert_allclose(smooth.current().position, smooth.start.position)


def test_clamps_to_end(smooth):
    smooth.update(10.0)
    assert smooth.time == smooth.duration
    np.testing.assert_allclose(smooth.current().position, smooth.end.position)


def test_negative_update_clamps_to_start(smooth):
    smooth.update(0.1)
    smooth.update(-5.0)
    assert smooth.time == 0.0
    np.testing.assert_allclose(smooth.current().position, smooth.start.position)


def test_halfway(smooth):
    smooth.update(smooth.duration / 2)
    np.testing.assert_allclose(
        smooth.current().position, (smooth.start.position + smooth.end.position) / 2
    )


def test_reset(smooth):
    smooth.update(0.3)
    smooth.reset()
    assert smooth.time == 0.0


def test_zero_duration_rejected():
    with pytest.raises(ValueError):
        SmoothTransform(Transform(), Transform(), 0)