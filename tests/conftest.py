# SPDX-FileCopyrightText: Copyright (c) 2026 Adafruit Industries
#
# SPDX-License-Identifier: MIT
import pytest

from adafruit_bme680_iaq import IAQEngine, RawSample


class FakeClock:
    """Monotonic milliseconds advanced by hand"""

    def __init__(self, start=0):
        self.now = start

    def __call__(self):
        return self.now & 0xFFFFFFFF

    def advance(self, ms):
        self.now += ms


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def engine(clock):
    return IAQEngine(
        clock,
        init_time_ms=1000,
        burnin_time_ms=2000,
        decay_time_ms=120000,
    )


def sample(gas_resistance, temperature=25.0, humidity=40.0, timestamp_ms=0):
    return RawSample(temperature, humidity, gas_resistance, timestamp_ms)


def leave_init(engine, clock, low=120000):
    """Feed a settled resistance curve until the engine reaches burn-in"""
    engine.step(sample(low + 5000))
    engine.step(sample(low))
    clock.advance(engine.init_time_ms)
    for rise in (1000, 2000, 3000):
        engine.step(sample(low + rise))
