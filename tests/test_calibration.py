# SPDX-FileCopyrightText: Copyright (c) 2026 Adafruit Industries
#
# SPDX-License-Identifier: MIT
import pytest

from adafruit_bme680_iaq.calibration import CalibrationBuffer, ticks_diff


def test_empty_buffer():
    buffer = CalibrationBuffer()
    assert len(buffer) == 100
    assert buffer.populated == 0
    assert not buffer.full
    assert buffer.ceiling == 0
    assert buffer.range == 0


def test_identical_values():
    buffer = CalibrationBuffer()
    for _ in range(100):
        buffer.write(50000.0)
    assert buffer.full
    assert buffer.ceiling == 50000.0
    assert buffer.range == 0


def test_ceiling_ignores_empty_slots():
    buffer = CalibrationBuffer(10)
    buffer.append(100.0)
    buffer.append(300.0)
    assert buffer.populated == 2
    assert buffer.ceiling == 200.0
    assert buffer.range == pytest.approx(2.0 / 3.0)


def test_append_wraps_around():
    buffer = CalibrationBuffer(3)
    for value in (1.0, 2.0, 3.0, 4.0):
        buffer.append(value)
    assert list(buffer) == [4.0, 2.0, 3.0]


def test_replace_smallest_keeps_high_water_values():
    buffer = CalibrationBuffer(3)
    for value in (5.0, 3.0, 4.0):
        buffer.write(value)
    assert buffer.write(6.0)
    assert sorted(buffer) == [4.0, 5.0, 6.0]
    assert not buffer.write(2.0)
    assert sorted(buffer) == [4.0, 5.0, 6.0]
    assert buffer.ceiling == 5.0


def test_forced_replace_smallest():
    buffer = CalibrationBuffer(3)
    for value in (5.0, 3.0, 4.0):
        buffer.write(value)
    assert buffer.replace_smallest(1.0, force=True)
    assert sorted(buffer) == [1.0, 4.0, 5.0]
    assert buffer.range == pytest.approx(0.8)


def test_clear():
    buffer = CalibrationBuffer(2)
    buffer.write(1.0)
    buffer.clear()
    assert buffer.populated == 0
    assert buffer.ceiling == 0


def test_ticks_diff_wraps():
    assert ticks_diff(1500, 500) == 1000
    assert ticks_diff(500, 0xFFFFFFFF - 499) == 1000
