# SPDX-FileCopyrightText: Copyright (c) 2026 Adafruit Industries
#
# SPDX-License-Identifier: MIT
"""
`adafruit_bme680_iaq`
================================================================================

Self-calibrating relative Indoor Air Quality (IAQ) for the BME680 / BME688
metal-oxide gas sensor, with temperature, humidity and dew point compensation.


Implementation Notes
--------------------

**Hardware:**

* Adafruit BME680 Temperature, Humidity, Pressure and Gas Sensor <https://www.adafruit.com/product/3660>
* Adafruit BME688 Temperature, Humidity, Pressure and Gas Sensor <https://www.adafruit.com/product/5046>

**Software and Dependencies:**

* Adafruit CircuitPython firmware for the supported boards:
  https://github.com/adafruit/circuitpython/releases

 * Adafruit's BME680 library: https://github.com/adafruit/Adafruit_CircuitPython_BME680
 * Adafruit's Logging library: https://github.com/adafruit/Adafruit_CircuitPython_Logging

"""
import math
import time
from collections import namedtuple

import adafruit_logging as logging

from adafruit_bme680_iaq import compensation, iaq
from adafruit_bme680_iaq.calibration import (
    STAGE_BURN_IN,
    STAGE_INIT,
    STAGE_NAMES,
    STAGE_NORMAL,
    TICKS_MASK,
    CalibrationBuffer,
    ticks_diff,
)
from adafruit_bme680_iaq.donchian import DonchianChannel

__version__ = "0.0.0-auto.0"
__repo__ = "https://github.com/adafruit/Adafruit_CircuitPython_BME680_IAQ.git"

_logger = logging.getLogger(__name__)

GAS_RESISTANCE_LIMIT_MIN = 30000
GAS_RESISTANCE_LIMIT_MAX = 2000000

INIT_TIME_MIN = 1000
BURNIN_TIME_MIN_AFTER_INIT = 1000
DECAY_TIME_MIN_AFTER_BURNIN = 60000

DONCHIAN_PERIODS_DEFAULT = 30

# added to the stabilization wait for every reading above the gas resistance limit
_OVER_LIMIT_PENALTY_MS = 1000

# hysteresis: rising readings needed before the init stage may end
_HIGHER_LOWS_REQUIRED = 3

RawSample = namedtuple(
    "RawSample", ("temperature", "humidity", "gas_resistance", "timestamp_ms")
)
RawSample.__doc__ = """One completed measurement: Celsius, %RH, Ohms and clock milliseconds"""

EngineOutputs = namedtuple(
    "EngineOutputs",
    (
        "iaq",
        "iaq_accuracy",
        "stage",
        "calibration_accuracy",
        "gas_resistance_compensated",
        "temperature",
        "humidity",
        "dew_point",
    ),
)


def _monotonic_ms():
    return (time.monotonic_ns() // 1000000) & TICKS_MASK


class NoSmoothing:
    """Pass readings through unchanged"""

    enabled = False

    def peek(self, temperature, humidity, gas_resistance):
        """Return the readings as given"""
        return temperature, humidity, gas_resistance

    track = peek

    def reset(self):
        """Nothing to forget"""


class DonchianSmoothing:
    """
    Smooth temperature, humidity and gas resistance with one `DonchianChannel` each.

    :param int periods: The lookback length of every channel, at least 2
    :param float temperature_range: Range limit of the temperature channel, 0 for unlimited
    :param float humidity_range: Range limit of the humidity channel, 0 for unlimited
    :param float gas_range: Range limit of the gas resistance channel, 0 for unlimited
    """

    enabled = True

    def __init__(self, periods, temperature_range=0, humidity_range=0, gas_range=0):
        self.temperature = DonchianChannel(periods, temperature_range)
        self.humidity = DonchianChannel(periods, humidity_range)
        self.gas_resistance = DonchianChannel(periods, gas_range)

    def peek(self, temperature, humidity, gas_resistance):
        """The channel averages tracking the readings would give, without tracking them"""
        return (
            self.temperature.peek(temperature),
            self.humidity.peek(humidity),
            self.gas_resistance.peek(gas_resistance),
        )

    def track(self, temperature, humidity, gas_resistance):
        """Track the readings and return the channel averages"""
        self.temperature.track(temperature)
        self.humidity.track(humidity)
        self.gas_resistance.track(gas_resistance)
        return (
            self.temperature.average,
            self.humidity.average,
            self.gas_resistance.average,
        )

    def reset(self):
        """Forget all tracked readings"""
        self.temperature.reset()
        self.humidity.reset()
        self.gas_resistance.reset()


class IAQEngine:
    """
    Relative indoor air quality from a drifting, uncalibrated gas resistance.

    The engine learns a "ceiling" of good-air gas resistance from the sensor's own
    history in three stages: initialization (waiting for the heated sensor's
    resistance to stop falling), burn-in (collecting the highest readings) and
    normal operation (ratcheting the ceiling up on new highs and letting it decay
    to follow sensor drift). Feed it one `RawSample` per completed measurement.

    :param clock: A function returning monotonic milliseconds, wrapping at 32 bits.
        Defaults to :func:`time.monotonic_ns` based milliseconds.
    :param float temperature_offset: Celsius added to the raw temperature. Defaults to :const:`-1.5`
    :param float slope_factor: Humidity compensation slope of the gas resistance.
        Defaults to :const:`0.03`
    :param int gas_resistance_limit_min: Lowest gas resistance in Ohms used for the ceiling.
        Defaults to :const:`100000`
    :param int gas_resistance_limit_max: Readings above this many Ohms are ignored.
        Defaults to :const:`175000`
    :param int init_time_ms: Minimum initialization stage length. Defaults to 30 seconds
    :param int burnin_time_ms: Minimum burn-in stage length. Defaults to 5 minutes
    :param int decay_time_ms: Interval after which the ceiling decays. Defaults to 30 minutes


    **Quickstart: Importing and using the IAQ engine**

        .. code-block:: python

            import board
            from adafruit_bme680_iaq import BME680Source, IAQEngine

            source = BME680Source.from_i2c(board.I2C())
            engine = IAQEngine()
            source.begin_measurement()

        Then poll the engine in your main loop

        .. code-block:: python

            outputs = engine.poll(source)
            if outputs:
                print(outputs.iaq, outputs.iaq_accuracy)

    .. note::
        The IAQ is relative to the best air this particular sensor has seen, 100%
        being as good as the ceiling. It is not an absolute measurement and should
        not be trusted while :attr:`iaq_accuracy` is :const:`0`.

    """

    def __init__(
        self,
        clock=None,
        *,
        temperature_offset=-1.5,
        slope_factor=0.03,
        gas_resistance_limit_min=100000,
        gas_resistance_limit_max=175000,
        init_time_ms=30 * 1000,
        burnin_time_ms=5 * 60 * 1000,
        decay_time_ms=30 * 60 * 1000
    ):
        self._clock = clock or _monotonic_ms
        self._temperature_offset = temperature_offset
        self._slope_factor = slope_factor
        self._gas_resistance_limit_min = 0
        self._gas_resistance_limit_max = 0
        self._init_time_ms = 0
        self._burnin_time_ms = 0
        self._decay_time_ms = 0
        if not self.set_gas_resistance_limits(
            gas_resistance_limit_min, gas_resistance_limit_max
        ):
            raise ValueError("Invalid gas resistance limits")
        if not self.set_gas_calibration_timings(
            init_time_ms, burnin_time_ms, decay_time_ms
        ):
            raise ValueError("Invalid gas calibration timings")

        self._smoothing = NoSmoothing()
        self._buffer = CalibrationBuffer()
        self.initialize()

    def initialize(self):
        """Forget all calibration data and start over in the initialization stage"""
        self._buffer.clear()
        self._smoothing.reset()

        self._stage = STAGE_INIT
        self._stage_started_ms = self._clock()
        self._stage_penalty_ms = 0
        self._last_update_ms = self._stage_started_ms
        self._last_low_resistance = None
        self._consecutive_higher_lows = 0
        self._sensor_uptime = 0

        self._iaq = iaq.IAQ_DEFAULT
        self._iaq_accuracy = iaq.ACCURACY_UNRELIABLE
        self._gas_resistance_compensated = None
        self._temperature_compensated = None
        self._humidity_compensated = None
        self._dew_point = None

    def step(self, sample):
        """
        Process one completed measurement.

        :param RawSample sample: The raw temperature, humidity and gas resistance
        :return: The updated `EngineOutputs`
        """
        now = self._clock()
        self._update_compensation(sample.temperature, sample.humidity)
        self._update_calibration(
            now, sample.temperature, sample.humidity, sample.gas_resistance
        )
        self._iaq_accuracy = iaq.accuracy(
            self._stage, self._buffer.range, self._sensor_uptime
        )
        return self.outputs

    def poll(self, source):
        """
        Process the next measurement of a raw sample source if one is ready.

        The source must provide ``begin_measurement()``, ``is_ready()`` and
        ``read()``. Call ``source.begin_measurement()`` once before the first poll;
        every processed sample starts the next measurement.

        :return: The updated `EngineOutputs`, or None if no sample was ready
        """
        if not source.is_ready():
            return None
        outputs = self.step(source.read())
        source.begin_measurement()
        return outputs

    def _update_compensation(self, temperature, humidity):
        self._temperature_compensated = compensation.compensate_temperature(
            temperature, self._temperature_offset
        )
        try:
            self._humidity_compensated = compensation.compensate_humidity(
                temperature, humidity, self._temperature_compensated
            )
        except ArithmeticError:
            self._humidity_compensated = math.nan
        try:
            self._dew_point = compensation.dew_point(temperature, humidity)
        except (ArithmeticError, ValueError):
            self._dew_point = math.nan

    def _compensate_gas(self, temperature, humidity, gas_resistance):
        try:
            humidity_absolute = compensation.absolute_humidity(temperature, humidity)
        except ArithmeticError:
            return None
        gas = compensation.compensate_gas_resistance(
            gas_resistance, self._slope_factor, humidity_absolute
        )
        gas_min = compensation.compensate_gas_resistance(
            self._gas_resistance_limit_min, self._slope_factor, humidity_absolute
        )
        if not (math.isfinite(gas) and math.isfinite(gas_min)):
            return None
        return gas, gas_min

    def _update_calibration(self, now, temperature, humidity, gas_resistance):
        if gas_resistance > self._gas_resistance_limit_max:
            if self._stage < STAGE_NORMAL:
                self._stage_penalty_ms += _OVER_LIMIT_PENALTY_MS
            _logger.debug(
                "Ignoring gas resistance %s above limit %s",
                gas_resistance,
                self._gas_resistance_limit_max,
            )
            return

        raw = (temperature, humidity, gas_resistance)
        smoothing = self._stage >= STAGE_BURN_IN
        if smoothing:
            temperature, humidity, gas_resistance = self._smoothing.peek(*raw)

        compensated = self._compensate_gas(temperature, humidity, gas_resistance)
        if compensated is None:
            _logger.debug("Ignoring non-finite compensated gas resistance")
            return
        if smoothing:
            self._smoothing.track(*raw)
        gas, gas_min = compensated
        self._gas_resistance_compensated = gas

        if self._stage == STAGE_INIT:
            self._track_higher_lows(raw[2])
            if (
                self._stage_elapsed(now) >= self._init_time_ms
                and self._consecutive_higher_lows >= _HIGHER_LOWS_REQUIRED
            ):
                self._advance_stage(now)
        elif self._stage == STAGE_BURN_IN:
            self._buffer.write(max(gas, gas_min))
            if (
                self._stage_elapsed(now) >= self._burnin_time_ms
                and self._buffer.full
            ):
                self._advance_stage(now)
        elif gas > gas_min:
            if gas > self._buffer.ceiling:
                if self._buffer.replace_smallest(gas):
                    self._last_update_ms = now
            elif ticks_diff(now, self._last_update_ms) >= self._decay_time_ms:
                self._buffer.replace_smallest(gas, force=True)
                self._last_update_ms = now
                self._sensor_uptime += 1
                _logger.debug(
                    "Gas ceiling decayed to %s after %d intervals",
                    self._buffer.ceiling,
                    self._sensor_uptime,
                )

        quality = iaq.air_quality(gas, self._buffer.ceiling)
        if quality is not None:
            self._iaq = quality

    def _track_higher_lows(self, gas_resistance):
        if (
            self._last_low_resistance is None
            or gas_resistance < self._last_low_resistance
        ):
            self._last_low_resistance = gas_resistance
            self._consecutive_higher_lows = 0
        elif gas_resistance > self._last_low_resistance:
            self._consecutive_higher_lows += 1

    def _stage_elapsed(self, now):
        elapsed = ticks_diff(now, self._stage_started_ms) - self._stage_penalty_ms
        return max(elapsed, 0)

    def _advance_stage(self, now):
        self._stage += 1
        self._stage_started_ms = now
        self._stage_penalty_ms = 0
        self._last_update_ms = now
        _logger.info(
            "Gas calibration entering %s stage, ceiling %s",
            STAGE_NAMES[self._stage],
            self._buffer.ceiling,
        )

    def set_temperature_compensation(self, degrees_c):
        """Set the offset in degrees Celsius added to the raw temperature. The offset
        is also used to compensate humidity."""
        self._temperature_offset = degrees_c

    def set_temperature_compensation_f(self, degrees_f):
        """Set the temperature offset as a difference in degrees Fahrenheit"""
        self.set_temperature_compensation(
            compensation.fahrenheit_delta_to_celsius(degrees_f)
        )

    def set_gas_resistance_limits(self, minimum, maximum):
        """
        Set the gas resistance range used for calibration.

        :param int minimum: Ohms, at least :const:`30000`
        :param int maximum: Ohms, at most :const:`2000000` and not below ``minimum``
        :return: True if the limits were applied, False if they were rejected and
            the previous limits are still in use
        """
        if (
            minimum < GAS_RESISTANCE_LIMIT_MIN
            or maximum > GAS_RESISTANCE_LIMIT_MAX
            or minimum > maximum
        ):
            _logger.warning(
                "Rejected gas resistance limits %s-%s", minimum, maximum
            )
            return False
        self._gas_resistance_limit_min = minimum
        self._gas_resistance_limit_max = maximum
        return True

    def set_gas_calibration_timings(self, init_time_ms, burnin_time_ms, decay_time_ms):
        """
        Set the stage timings in milliseconds.

        The timings must be ordered ``init < burnin <= decay``. They are then raised
        to at least 1 second of initialization, 1 more second of burn-in and 1 more
        minute of decay.

        :return: True if the timings were applied, False if they were rejected and
            the previous timings are still in use
        """
        if not init_time_ms < burnin_time_ms <= decay_time_ms:
            _logger.warning(
                "Rejected gas calibration timings %s, %s, %s",
                init_time_ms,
                burnin_time_ms,
                decay_time_ms,
            )
            return False
        init_time_ms = max(init_time_ms, INIT_TIME_MIN)
        burnin_time_ms = max(burnin_time_ms, init_time_ms + BURNIN_TIME_MIN_AFTER_INIT)
        decay_time_ms = max(decay_time_ms, burnin_time_ms + DECAY_TIME_MIN_AFTER_BURNIN)
        self._init_time_ms = init_time_ms
        self._burnin_time_ms = burnin_time_ms
        self._decay_time_ms = decay_time_ms
        return True

    def set_smoothing(
        self,
        enabled,
        periods=DONCHIAN_PERIODS_DEFAULT,
        temperature_range=0,
        humidity_range=0,
        gas_range=0,
    ):
        """
        Enable or disable Donchian smoothing of the readings fed to calibration.
        Smoothing only starts once the burn-in stage is reached.

        :param bool enabled: Whether to smooth
        :param int periods: Lookback length of each channel, at least 2
        :param float temperature_range: Largest temperature swing tracked, 0 for unlimited
        :param float humidity_range: Largest humidity swing tracked, 0 for unlimited
        :param float gas_range: Largest gas resistance swing tracked, 0 for unlimited
        :return: True if applied, False if rejected
        """
        if not enabled:
            self._smoothing = NoSmoothing()
            return True
        if periods < 2 or min(temperature_range, humidity_range, gas_range) < 0:
            _logger.warning("Rejected smoothing over %s periods", periods)
            return False
        self._smoothing = DonchianSmoothing(
            periods, temperature_range, humidity_range, gas_range
        )
        return True

    @property
    def smoothing(self):
        """The smoothing in use, `NoSmoothing` or `DonchianSmoothing`"""
        return self._smoothing

    @property
    def slope_factor(self):
        """The humidity compensation slope of the gas resistance. This strongly depends
        on the heater profile and polling rate; extreme values make the compensation
        degenerate."""
        return self._slope_factor

    @slope_factor.setter
    def slope_factor(self, value):
        self._slope_factor = value

    @property
    def temperature_offset(self):
        """The temperature offset in degrees Celsius"""
        return self._temperature_offset

    @property
    def gas_resistance_limit_min(self):
        """Lowest gas resistance in Ohms used for the ceiling"""
        return self._gas_resistance_limit_min

    @property
    def gas_resistance_limit_max(self):
        """Readings above this many Ohms are ignored for calibration"""
        return self._gas_resistance_limit_max

    @property
    def init_time_ms(self):
        """Minimum length of the initialization stage"""
        return self._init_time_ms

    @property
    def burnin_time_ms(self):
        """Minimum length of the burn-in stage"""
        return self._burnin_time_ms

    @property
    def decay_time_ms(self):
        """Interval without new highs after which the ceiling decays"""
        return self._decay_time_ms

    @property
    def iaq(self):
        """Indoor air quality, 0-100% (bad to good). :const:`50` until calibrated"""
        return self._iaq

    @property
    def iaq_accuracy(self):
        """Accuracy of `iaq`: 0 = unreliable, 1 = low, 2 = medium, 3 = high, 4 = very high"""
        return self._iaq_accuracy

    @property
    def stage(self):
        """Gas calibration stage: 0 = initialization, 1 = burn-in, 2 = normal operation"""
        return self._stage

    @property
    def gas_ceiling(self):
        """The average of the highest compensated gas resistances, 0 until burn-in"""
        return self._buffer.ceiling

    @property
    def calibration_range(self):
        """Spread of the calibration data, ``(max - min) / max``"""
        return self._buffer.range

    @property
    def calibration_accuracy(self):
        """Stability of the calibration data as a percentage"""
        if not self._buffer.populated:
            return 0.0
        return (1.0 - self._buffer.range) * 100.0

    @property
    def calibration_data(self):
        """A copy of the populated calibration buffer slots"""
        return tuple(value for value in self._buffer if value > 0)

    @property
    def sensor_uptime(self):
        """The number of ceiling decay intervals survived in normal operation"""
        return self._sensor_uptime

    @property
    def gas_resistance_compensated(self):
        """The last humidity compensated gas resistance in Ohms"""
        return self._gas_resistance_compensated

    @property
    def temperature_compensated(self):
        """The last offset-compensated temperature in Celsius"""
        return self._temperature_compensated

    @property
    def humidity_compensated(self):
        """The last relative humidity in % at the compensated temperature"""
        return self._humidity_compensated

    @property
    def dew_point(self):
        """The last dew point in Celsius"""
        return self._dew_point

    @property
    def outputs(self):
        """The current `EngineOutputs`"""
        return EngineOutputs(
            self._iaq,
            self._iaq_accuracy,
            self._stage,
            self.calibration_accuracy,
            self._gas_resistance_compensated,
            self._temperature_compensated,
            self._humidity_compensated,
            self._dew_point,
        )


class BME680Source:
    """
    Raw sample source reading a BME680 / BME688 through the Adafruit driver.

    :param sensor: An ``adafruit_bme680.Adafruit_BME680`` instance, I2C or SPI
    :param clock: A function returning monotonic milliseconds used to timestamp samples
    """

    def __init__(self, sensor, clock=None):
        self._sensor = sensor
        self._clock = clock or _monotonic_ms
        self._sample = None

    @classmethod
    def from_i2c(cls, i2c, address=0x77, clock=None):
        """Create a source for a BME680 on the I2C bus

        :param ~busio.I2C i2c: The I2C bus the sensor is connected to
        :param int address: The I2C address of the sensor. Defaults to :const:`0x77`
        """
        # import the driver only when talking to real hardware
        # pylint: disable=import-outside-toplevel
        import adafruit_bme680

        return cls(adafruit_bme680.Adafruit_BME680_I2C(i2c, address), clock)

    @classmethod
    def from_spi(cls, spi, cs, clock=None):
        """Create a source for a BME680 on the SPI bus

        :param ~busio.SPI spi: The SPI bus the sensor is connected to. A bit-banged
            ``bitbangio.SPI`` works the same way
        :param ~digitalio.DigitalInOut cs: The chip select pin
        """
        # pylint: disable=import-outside-toplevel
        import adafruit_bme680

        return cls(adafruit_bme680.Adafruit_BME680_SPI(spi, cs), clock)

    @property
    def sensor(self):
        """The wrapped driver"""
        return self._sensor

    def begin_measurement(self):
        """Take a measurement. The driver waits for the gas heater to finish."""
        sensor = self._sensor
        self._sample = RawSample(
            sensor.temperature, sensor.relative_humidity, sensor.gas, self._clock()
        )

    def is_ready(self):
        """True when a measured sample has not been read yet"""
        return self._sample is not None

    def read(self):
        """Return the measured sample and clear it, None if there is none"""
        sample = self._sample
        self._sample = None
        return sample
