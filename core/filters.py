#!/usr/bin/env python3
# GPSTimer - GPS speedometer and performance timer
# Copyright (C) 2024 GPSTimer Contributors
#
# This program is free software: you can redistribute it and/or modify
# it under the terms of the GNU Affero General Public License as published by
# the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.
#
# This program is distributed in the hope that it will be useful,
# but WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE. See the
# GNU Affero General Public License for more details.
#
# You should have received a copy of the GNU Affero General Public License
# along with this program. If not, see <https://www.gnu.org/licenses/>.

"""
GPS data filtering module.
Contains the altitude moving-average window and the per-fix screens that
reject GPS jitter and implausible speed spikes before they reach the
speed estimator.
"""
from collections import deque

import numpy as np

# Import config for default values
try:
    from .. import config
except ImportError:
    import config

try:
    from .structures import FIX_JITTER, FIX_OUTLIER
except ImportError:  # pragma: no cover - fallback for direct script execution
    from core.structures import FIX_JITTER, FIX_OUTLIER


class AltitudeWindow:
    """
    Moving average of the last N altitude readings.

    GPS altitude is much noisier than horizontal position; averaging a few
    readings suppresses the vertical noise before slopes are computed.
    Oldest reading is evicted when the window is full.
    """

    def __init__(self, size=None):
        if size is None:
            size = getattr(config, 'ALTITUDE_SMOOTHING_WINDOW', 5)
        size = int(validate_param('ALTITUDE_SMOOTHING_WINDOW', size, 5))
        self._history = deque(maxlen=size)

    def add(self, altitude):
        """Push a reading and return the smoothed altitude (metres)."""
        self._history.append(float(altitude))
        return float(np.mean(self._history))

    def clear(self):
        self._history.clear()

    @property
    def history(self):
        return list(self._history)

    def __len__(self):
        return len(self._history)


def screen_displacement(distance_km, dt_seconds, min_distance_km=None, min_time_s=None):
    """
    Check a fix-to-fix displacement for GPS jitter.

    Args:
        distance_km: great-circle distance between fixes
        dt_seconds: time between fixes
        min_distance_km: distance floor (default: config.JITTER_MIN_DISTANCE_KM)
        min_time_s: time floor (default: config.JITTER_MIN_TIME_S)

    Returns:
        FIX_JITTER if the displacement must be ignored, otherwise None
    """
    if min_distance_km is None:
        min_distance_km = getattr(config, 'JITTER_MIN_DISTANCE_KM', 0.001)
    if min_time_s is None:
        min_time_s = getattr(config, 'JITTER_MIN_TIME_S', 0.5)

    if distance_km < min_distance_km or dt_seconds < min_time_s:
        return FIX_JITTER
    return None


def screen_speed(speed_kmh, max_speed_kmh=None):
    """
    Check a computed speed for physical plausibility.

    Returns:
        FIX_OUTLIER if the speed is a sensor glitch, otherwise None
    """
    if max_speed_kmh is None:
        max_speed_kmh = getattr(config, 'MAX_PLAUSIBLE_SPEED_KMH', 500.0)

    if speed_kmh > max_speed_kmh:
        return FIX_OUTLIER
    return None


def validate_param(name, value, default, min_value=0.0, max_value=None):
    """
    Validates parameter and replaces with default if invalid.

    Args:
        name: parameter name
        value: value to validate
        default: default value
        min_value: minimum allowed value
        max_value: maximum allowed value

    Returns:
        valid parameter value
    """
    if value is None or (isinstance(value, (int, float)) and value <= min_value) or (max_value is not None and value > max_value):
        return default
    return value
