# SPDX-FileCopyrightText: Copyright (c) 2026 Adafruit Industries
#
# SPDX-License-Identifier: MIT
import random

import pytest

from adafruit_bme680_iaq.donchian import DonchianChannel


def test_capacity_must_be_at_least_two():
    with pytest.raises(ValueError):
        DonchianChannel(1)


def test_tracks_min_max_and_midpoint():
    channel = DonchianChannel(4)
    for value in (3.0, 7.0, 5.0):
        channel.track(value)
    assert channel.current == 5.0
    assert channel.min == 3.0
    assert channel.max == 7.0
    assert channel.average == 5.0
    assert len(channel) == 3
    assert not channel.full


def test_oldest_value_drops_out_of_lookback():
    channel = DonchianChannel(3)
    for value in (10.0, 1.0, 2.0, 3.0):
        channel.track(value)
    assert channel.full
    assert channel.min == 1.0
    assert channel.max == 3.0
    channel.track(4.0)
    assert channel.min == 2.0
    assert channel.max == 4.0
    assert channel.average == 3.0


def test_average_between_min_and_max():
    rng = random.Random(680)
    channel = DonchianChannel(7, range_limit=5.0)
    for _ in range(500):
        channel.track(rng.uniform(-20.0, 20.0))
        assert channel.min <= channel.average <= channel.max
        assert channel.max - channel.min <= 5.0 + 1e-9


def test_upward_breakout_pins_min():
    channel = DonchianChannel(5, range_limit=10.0)
    for value in (0.0, 0.0, 0.0):
        channel.track(value)
    channel.track(20.0)
    assert channel.max == 20.0
    assert channel.min == 10.0
    assert channel.average == 15.0


def test_downward_breakout_pins_max():
    channel = DonchianChannel(5, range_limit=10.0)
    for value in (0.0, 0.0, 0.0):
        channel.track(value)
    channel.track(-20.0)
    assert channel.min == -20.0
    assert channel.max == -10.0
    assert channel.average == -15.0


def test_breakout_truncates_lookback_not_data():
    channel = DonchianChannel(5, range_limit=10.0)
    for value in (0.0, 8.0, 12.0):
        channel.track(value)
    assert channel.min == 2.0
    assert channel.max == 12.0
    channel.track(12.5)
    assert channel.min == 2.5
    assert channel.max == 12.5
    channel.track(9.0)
    assert channel.min == 2.5
    assert channel.max == 12.5


def test_unlimited_range():
    channel = DonchianChannel(3)
    channel.track(-100.0)
    channel.track(100.0)
    assert channel.min == -100.0
    assert channel.max == 100.0
    assert channel.average == 0.0


def test_reset():
    channel = DonchianChannel(3)
    channel.track(1.0)
    channel.reset()
    assert len(channel) == 0
    assert channel.average is None


def test_peek_matches_track_without_tracking():
    channel = DonchianChannel(3, range_limit=10.0)
    for value in (0.0, 4.0, 8.0):
        channel.track(value)
    assert channel.peek(12.0) == 8.0
    assert len(channel) == 3
    assert channel.current == 8.0
    assert channel.average == 4.0
    channel.track(12.0)
    assert channel.average == 8.0
