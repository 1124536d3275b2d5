# SPDX-FileCopyrightText: Copyright (c) 2026 Adafruit Industries
#
# SPDX-License-Identifier: MIT
"""
`adafruit_bme680_iaq.compensation`
================================================================================

Stateless temperature, humidity and gas resistance compensation math.

All vapor pressure relations use the Magnus formula with the coefficients
recommended by Alduchov and Eskridge (1996). See
https://en.wikipedia.org/wiki/Dew_point#Calculating_the_dew_point

"""
import math

_MAGNUS_B = 17.625
_MAGNUS_C = 243.04  # degrees Celsius
_MAGNUS_SVP = 6.112  # hPa

_WATER_VAPOR_GAS_CONSTANT = 461.52  # J/(kg K)
_KELVIN = 273.15


def _magnus_gamma(temperature):
    return _MAGNUS_B * temperature / (_MAGNUS_C + temperature)


def saturation_vapor_pressure(temperature):
    """Saturation vapor pressure over water in hPa at the given temperature in Celsius"""
    return _MAGNUS_SVP * math.exp(_magnus_gamma(temperature))


def saturation_vapor_density(temperature):
    """
    Saturation water vapor density in kg/m^3 at the given temperature in Celsius,
    which is the water content of air at 100% relative humidity
    """
    return (saturation_vapor_pressure(temperature) * 100.0) / (
        _WATER_VAPOR_GAS_CONSTANT * (temperature + _KELVIN)
    )


def absolute_humidity(temperature, relative_humidity):
    """Absolute humidity in g/m^3 from temperature in Celsius and relative humidity in %"""
    return relative_humidity * 10.0 * saturation_vapor_density(temperature)


def compensate_gas_resistance(gas_resistance, slope_factor, humidity_absolute):
    """
    Remove the exponential impact of humidity on a MOX gas sensor resistance.

    :param float gas_resistance: The gas resistance in Ohms
    :param float slope_factor: The slope of the log resistance against absolute humidity
    :param float humidity_absolute: The absolute humidity in g/m^3

    Returns :const:`inf` when the correction overflows so callers can discard it
    like any other non-finite value.
    """
    try:
        return gas_resistance * math.exp(slope_factor * humidity_absolute)
    except OverflowError:
        return math.inf


def dew_point(temperature, relative_humidity):
    """
    Dew point in Celsius from temperature in Celsius and relative humidity in %.

    The dew point is the same whether raw or offset-compensated temperature and
    humidity are used, since both calculations share the Magnus transformation.
    Returns :const:`nan` for a humidity of zero or less.
    """
    if relative_humidity <= 0:
        return math.nan
    gamma = math.log(relative_humidity / 100.0) + _magnus_gamma(temperature)
    return _MAGNUS_C * gamma / (_MAGNUS_B - gamma)


def fahrenheit_delta_to_celsius(degrees_f):
    """Convert a temperature difference (not an absolute temperature) from Fahrenheit"""
    return degrees_f * 5.0 / 9.0


def compensate_temperature(temperature, offset):
    """The raw temperature shifted by the offset, both in Celsius"""
    return temperature + offset


def compensate_humidity(temperature, relative_humidity, temperature_compensated):
    """
    Relative humidity at the compensated temperature.

    The actual vapor pressure is derived from the raw readings and then related to
    the saturation vapor pressure at the compensated temperature.
    """
    vapor_pressure = relative_humidity / 100.0 * saturation_vapor_pressure(temperature)
    return vapor_pressure / saturation_vapor_pressure(temperature_compensated) * 100.0
