# SPDX-FileCopyrightText: Copyright (c) 2026 Adafruit Industries
#
# SPDX-License-Identifier: MIT
"""
`adafruit_bme680_iaq.calibration`
================================================================================

Gas calibration stages and the high-water calibration buffer used to track the
"good air" gas resistance ceiling.

"""

STAGE_INIT = 0
STAGE_BURN_IN = 1
STAGE_NORMAL = 2

STAGE_NAMES = ("init", "burn-in", "normal")

GAS_CALIBRATION_DATA_POINTS = 100

TICKS_MASK = 0xFFFFFFFF


def ticks_diff(end, start):
    """Milliseconds from ``start`` to ``end`` on a 32 bit clock that may have wrapped"""
    return (end - start) & TICKS_MASK


class CalibrationBuffer:
    """
    Fixed size store of the highest compensated gas resistance readings.

    Empty slots hold :const:`0`, which is never a valid resistance. The `ceiling`
    (mean of the populated slots) and `range` (``(max - min) / max`` of the
    populated slots) are recomputed after every write. Iterating over the buffer
    yields every slot in storage order, empty ones included.

    :param int capacity: The number of readings kept. Defaults to :const:`100`
    """

    def __init__(self, capacity=GAS_CALIBRATION_DATA_POINTS):
        if capacity < 1:
            raise ValueError("Calibration buffer capacity must be at least 1")
        self._data = [0.0] * capacity
        self._index = 0
        self.ceiling = 0.0
        self.range = 0.0

    def __len__(self):
        return len(self._data)

    def __iter__(self):
        return iter(self._data)

    @property
    def populated(self):
        """The number of slots holding a reading"""
        count = 0
        for value in self._data:
            if value > 0:
                count += 1
        return count

    @property
    def full(self):
        """True when every slot holds a reading"""
        return self.populated == len(self)

    def clear(self):
        """Empty every slot"""
        for i in range(len(self._data)):
            self._data[i] = 0.0
        self._index = 0
        self.ceiling = 0.0
        self.range = 0.0

    def append(self, value):
        """Overwrite the next slot in sequence, wrapping around at the end"""
        self._data[self._index] = value
        self._index = (self._index + 1) % len(self._data)
        self._recalculate()

    def replace_smallest(self, value, force=False):
        """
        Replace the smallest reading with ``value`` if ``value`` is larger.

        :param float value: The new reading
        :param bool force: Replace the smallest reading even if ``value`` is not
            larger, used to let the ceiling decay
        :return: True if a slot was written
        """
        smallest = None
        for i, entry in enumerate(self._data):
            if entry > 0 and (smallest is None or entry < self._data[smallest]):
                smallest = i
        if smallest is None:
            self.append(value)
            return True
        if not force and value <= self._data[smallest]:
            return False
        self._data[smallest] = value
        self._recalculate()
        return True

    def write(self, value):
        """Append while filling up, then keep only the highest readings"""
        if self.full:
            return self.replace_smallest(value)
        self.append(value)
        return True

    def _recalculate(self):
        total = 0.0
        count = 0
        low = high = 0.0
        for value in self._data:
            if value > 0:
                if not count:
                    low = high = value
                elif value < low:
                    low = value
                elif value > high:
                    high = value
                total += value
                count += 1
        if not count:
            return
        self.ceiling = total / count
        self.range = (high - low) / high
