# SPDX-FileCopyrightText: Copyright (c) 2026 Adafruit Industries
#
# SPDX-License-Identifier: MIT
"""
`adafruit_bme680_iaq.iaq`
================================================================================

Relative indoor air quality score and its accuracy tier.

References:

* https://github.com/thstielow/raspi-bme680-iaq
* https://forums.pimoroni.com/t/bme680-observed-gas-ohms-readings/6608/18

"""
from adafruit_bme680_iaq.calibration import STAGE_BURN_IN, STAGE_NORMAL

IAQ_DEFAULT = 50.0

ACCURACY_UNRELIABLE = 0
ACCURACY_LOW = 1
ACCURACY_MEDIUM = 2
ACCURACY_HIGH = 3
ACCURACY_VERY_HIGH = 4

# (accuracy, calibration range below, decay intervals at least)
_ACCURACY_TIERS = (
    (ACCURACY_MEDIUM, 0.075, 0),
    (ACCURACY_HIGH, 0.035, 2),
    (ACCURACY_VERY_HIGH, 0.02, 100),
)


def air_quality(gas_resistance, gas_ceiling):
    """
    Air quality on a 0-100% scale (bad to good) from the compensated gas resistance
    relative to the gas ceiling.

    The ratio is squared so the score stays flat near the ceiling and falls off
    steeply on real excursions. Returns None when there is no ceiling yet.
    """
    if gas_ceiling <= 0:
        return None
    quality = (gas_resistance / gas_ceiling) ** 2 * 100.0
    return min(quality, 100.0)


def accuracy(stage, calibration_range, sensor_uptime):
    """
    IAQ accuracy tier for the calibration stage.

    :param int stage: The gas calibration stage
    :param float calibration_range: The spread of the calibration buffer
    :param int sensor_uptime: The number of decay intervals survived in normal operation
    :return: 0 (unreliable) to 4 (very high)
    """
    if stage < STAGE_BURN_IN:
        return ACCURACY_UNRELIABLE
    if stage < STAGE_NORMAL:
        return ACCURACY_LOW
    tier = ACCURACY_LOW
    for candidate, range_below, uptime_at_least in _ACCURACY_TIERS:
        if calibration_range < range_below and sensor_uptime >= uptime_at_least:
            tier = candidate
    return tier
