# SPDX-FileCopyrightText: 2026 Adafruit Industries
#
# SPDX-License-Identifier: Unlicense
import time
import board
from adafruit_bme680_iaq import BME680Source, IAQEngine

i2c = board.I2C()  # uses board.SCL and board.SDA
source = BME680Source.from_i2c(i2c)

engine = IAQEngine()
# Compensate for the sensor heating itself up
engine.set_temperature_compensation(-1.5)
# Smooth out heater and air conditioner cycles once burn-in starts
engine.set_smoothing(True, periods=30, temperature_range=2, humidity_range=5)

source.begin_measurement()
while True:
    outputs = engine.poll(source)
    if outputs:
        print("Temperature: %0.1f C" % outputs.temperature)
        print("Humidity: %0.1f %%" % outputs.humidity)
        print("Dew point: %0.1f C" % outputs.dew_point)
        print("IAQ: %0.1f %% (accuracy %d)" % (outputs.iaq, outputs.iaq_accuracy))
        print("")
    time.sleep(1)
