# SPDX-FileCopyrightText: Copyright (c) 2026 Adafruit Industries
#
# SPDX-License-Identifier: MIT
"""
`adafruit_bme680_iaq.donchian`
================================================================================

Rolling min/max (Donchian channel) smoothing for oscillating sensor signals,
such as the temperature swings caused by an air conditioner or heater cycling.

See https://www.investopedia.com/terms/d/donchianchannels.asp

"""


class DonchianChannel:
    """
    Track the minimum, maximum and midpoint of the last ``capacity`` values.

    :param int capacity: The number of values to look back over. Must be at least 2.
    :param float range_limit: The largest allowed spread between `min` and `max`.
        When a new value breaks out of this range the lookback is truncated so the
        channel follows the breakout instead of averaging over it. Defaults to
        :const:`0`, which means unlimited.
    """

    def __init__(self, capacity, range_limit=0):
        if capacity < 2:
            raise ValueError("Donchian channel capacity must be at least 2")
        if range_limit < 0:
            raise ValueError("Donchian channel range limit must not be negative")
        self._data = [0.0] * capacity
        self._capacity = capacity
        self._range_limit = range_limit
        self._cursor = 0
        self._full = False

        self.current = None
        self.min = None
        self.max = None
        self.average = None

    @property
    def capacity(self):
        """The lookback length"""
        return self._capacity

    @property
    def range_limit(self):
        """The maximum spread between `min` and `max`, or :const:`0` for unlimited"""
        return self._range_limit

    @property
    def full(self):
        """True once the lookback has wrapped around"""
        return self._full

    def __len__(self):
        return self._capacity if self._full else self._cursor

    def _window(self, value):
        # walk backwards from the new value so a range breakout drops the oldest data;
        # the slot at the cursor is the one the new value will overwrite
        low = high = value
        newest = self._cursor - 1
        for offset in range(min(len(self), self._capacity - 1)):
            point = self._data[(newest - offset) % self._capacity]
            if point < low:
                low = point
            elif point > high:
                high = point
            if self._range_limit and high - low > self._range_limit:
                if high - value < value - low:
                    low = high - self._range_limit
                else:
                    high = low + self._range_limit
                break
        return low, high

    def peek(self, value):
        """The `average` that tracking ``value`` would give, without tracking it

        :param float value: The candidate data point
        """
        low, high = self._window(value)
        return (low + high) / 2.0

    def track(self, value):
        """Add a value and recompute `min`, `max` and `average`

        :param float value: The new data point
        """
        low, high = self._window(value)

        self.current = value
        self._data[self._cursor] = value
        self._cursor += 1
        if self._cursor >= self._capacity:
            self._cursor = 0
            self._full = True

        self.min = low
        self.max = high
        self.average = (low + high) / 2.0

    def reset(self):
        """Forget all tracked values"""
        self._cursor = 0
        self._full = False
        self.current = None
        self.min = None
        self.max = None
        self.average = None
