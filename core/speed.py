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
Instantaneous speed from consecutive position fixes.

Speed is distance over time between the previous fix and the current one.
Two screens guard the signal: stationary jitter (tiny displacement or tiny
time step) and outlier spikes (physically impossible speed). Rejected fixes
still move the position/time cursor so the next delta is measured from the
most recent fix.
"""
import logging

try:
    from .. import config
except ImportError:
    import config

from .filters import screen_displacement, screen_speed
from .helpers import haversine
from .structures import SpeedSample, FIX_FIRST, FIX_ACCEPTED

logger = logging.getLogger(__name__)


class SpeedEstimator:
    """
    Converts locked fixes into accepted speed samples.

    Attributes:
        previous_fix: position/time cursor
        current_speed: last accepted speed (km/h)
        last_speed: accepted speed before current_speed (km/h)
        counts: dict of results seen, keyed by FIX_* status
    """

    def __init__(self, min_distance_km=None, min_time_s=None, max_speed_kmh=None):
        if min_distance_km is None:
            min_distance_km = getattr(config, 'JITTER_MIN_DISTANCE_KM', 0.001)
        if min_time_s is None:
            min_time_s = getattr(config, 'JITTER_MIN_TIME_S', 0.5)
        if max_speed_kmh is None:
            max_speed_kmh = getattr(config, 'MAX_PLAUSIBLE_SPEED_KMH', 500.0)
        self.min_distance_km = min_distance_km
        self.min_time_s = min_time_s
        self.max_speed_kmh = max_speed_kmh
        self.seconds_per_hour = getattr(config, 'SECONDS_PER_HOUR', 3600.0)

        self.previous_fix = None
        self.current_speed = 0.0
        self.last_speed = 0.0
        self.counts = {}

    def update(self, fix):
        """
        Process one locked fix.

        Args:
            fix: PositionFix

        Returns:
            tuple: (status, sample, distance_km, dt_seconds)
                status - FIX_FIRST, FIX_JITTER, FIX_OUTLIER or FIX_ACCEPTED
                sample - SpeedSample for accepted fixes, otherwise None
        """
        previous = self.previous_fix
        self.previous_fix = fix

        if previous is None:
            return self._count(FIX_FIRST, None, 0.0, 0.0)

        distance_km = haversine(previous.latitude, previous.longitude,
                                fix.latitude, fix.longitude)
        dt = fix.timestamp - previous.timestamp

        rejected = screen_displacement(distance_km, dt, self.min_distance_km, self.min_time_s)
        if rejected:
            logger.debug(f"Ignored jitter: {distance_km * 1000:.1f} m in {dt:.2f} s")
            return self._count(rejected, None, distance_km, dt)

        raw_speed = (distance_km / dt) * self.seconds_per_hour

        rejected = screen_speed(raw_speed, self.max_speed_kmh)
        if rejected:
            logger.debug(f"Ignored implausible speed: {raw_speed:.1f} km/h")
            return self._count(rejected, None, distance_km, dt)

        self.last_speed = self.current_speed
        self.current_speed = raw_speed
        sample = SpeedSample(raw_speed, fix.timestamp, fix)
        return self._count(FIX_ACCEPTED, sample, distance_km, dt)

    def _count(self, status, sample, distance_km, dt):
        self.counts[status] = self.counts.get(status, 0) + 1
        return status, sample, distance_km, dt
