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
Road incline estimation.

A timed run recorded while descending a slope is not comparable with one
on flat ground, so every milestone carries the downhill flag that was in
effect when it was reached.
"""
import logging
import math

try:
    from .. import config
except ImportError:
    import config

from .filters import AltitudeWindow
from .helpers import haversine
from .structures import KM_TO_M

logger = logging.getLogger(__name__)


def calculate_incline(altitude_change_m, horizontal_distance_km, min_baseline_km=None):
    """
    Incline angle between two fixes.

    Args:
        altitude_change_m: smoothed altitude difference (metres)
        horizontal_distance_km: great-circle distance (km)
        min_baseline_km: shorter baselines return 0 (default: config.MIN_INCLINE_BASELINE_KM)

    Returns:
        float: angle in degrees, negative = downhill
    """
    if min_baseline_km is None:
        min_baseline_km = getattr(config, 'MIN_INCLINE_BASELINE_KM', 0.01)

    if horizontal_distance_km < min_baseline_km:
        return 0.0

    distance_m = horizontal_distance_km * KM_TO_M
    return math.degrees(math.atan(altitude_change_m / distance_m))


class InclineEstimator:
    """
    Tracks smoothed altitude and the downhill flag across fixes.

    Attributes:
        current_angle: last computed incline (degrees)
        on_downhill: True while angle <= -threshold
    """

    def __init__(self, threshold_deg=None, max_altitude_accuracy_m=None,
                 window_size=None, min_baseline_km=None):
        if threshold_deg is None:
            threshold_deg = getattr(config, 'INCLINE_THRESHOLD_DEG', 2.0)
        if max_altitude_accuracy_m is None:
            max_altitude_accuracy_m = getattr(config, 'MAX_ALTITUDE_ACCURACY_M', 50.0)
        if min_baseline_km is None:
            min_baseline_km = getattr(config, 'MIN_INCLINE_BASELINE_KM', 0.01)

        self.threshold_deg = threshold_deg
        self.max_altitude_accuracy_m = max_altitude_accuracy_m
        self.min_baseline_km = min_baseline_km
        self.window = AltitudeWindow(window_size)
        self.current_angle = 0.0
        self.on_downhill = False
        self.last_altitude = None

    def has_usable_altitude(self, fix):
        return (fix.altitude is not None and fix.altitude_accuracy is not None
                and fix.altitude_accuracy < self.max_altitude_accuracy_m)

    def update(self, fix, previous_fix):
        """
        Feed one locked fix.

        Args:
            fix: current PositionFix
            previous_fix: previous locked PositionFix or None

        Returns:
            bool: current downhill flag
        """
        if not self.has_usable_altitude(fix):
            return self.on_downhill

        smoothed = self.window.add(fix.altitude)

        if self.last_altitude is not None and previous_fix is not None:
            distance_km = haversine(previous_fix.latitude, previous_fix.longitude,
                                    fix.latitude, fix.longitude)
            # Short baselines keep the previous verdict
            if distance_km >= self.min_baseline_km:
                self.current_angle = calculate_incline(
                    smoothed - self.last_altitude, distance_km, self.min_baseline_km
                )
                was_downhill = self.on_downhill
                self.on_downhill = self.current_angle <= -self.threshold_deg
                if self.on_downhill != was_downhill:
                    logger.debug(f"Downhill flag -> {self.on_downhill} ({self.current_angle:.2f} deg)")

        self.last_altitude = smoothed
        return self.on_downhill
