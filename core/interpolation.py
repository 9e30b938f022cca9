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
Display speed interpolation between GPS fixes.

GPS fixes arrive at roughly 1 Hz while the display refreshes at 10 Hz.
Between fixes the display moves from the previous accepted speed toward
the current one: linearly when accelerating, along an exponential decay
when decelerating (aerodynamic drag grows with speed, so a coasting car
sheds speed fastest at the start).
"""
import math

try:
    from .. import config
except ImportError:
    import config


def interpolate_speed(v0, v1, elapsed, expected_interval=None, min_decay_speed=None):
    """
    Interpolate display speed.

    Args:
        v0: previous accepted speed (km/h)
        v1: current accepted speed (km/h)
        elapsed: seconds since the last fix
        expected_interval: assumed fix interval (default: config.EXPECTED_GPS_INTERVAL_S)
        min_decay_speed: below this v1 the decay model falls back to linear
            (default: config.INTERPOLATION_MIN_DECAY_SPEED_KMH)

    Returns:
        float: display speed (km/h); t is not clamped, so a late fix
        extrapolates past v1
    """
    if expected_interval is None:
        expected_interval = getattr(config, 'EXPECTED_GPS_INTERVAL_S', 1.0)
    if min_decay_speed is None:
        min_decay_speed = getattr(config, 'INTERPOLATION_MIN_DECAY_SPEED_KMH', 0.1)

    if expected_interval == 0:
        return v0
    t = elapsed / expected_interval

    if v1 >= v0:
        return v0 + (v1 - v0) * t

    # log(v1 / v0) is unstable near zero
    if v1 < min_decay_speed or v0 <= 0:
        return max(0.0, v0 * (1 - t))

    k = -math.log(v1 / v0) / expected_interval
    return v0 * math.exp(-k * elapsed)


class Interpolator:
    """
    Produces the display speed on every tick.

    Reads last/current speed from the speed estimator; never writes
    authoritative state (vmax, distances and timers come from accepted
    GPS samples only).
    """

    def __init__(self, expected_interval=None, tick_ms=None):
        if expected_interval is None:
            expected_interval = getattr(config, 'EXPECTED_GPS_INTERVAL_S', 1.0)
        if tick_ms is None:
            tick_ms = getattr(config, 'INTERPOLATION_TICK_MS', 100)
        self.expected_interval = expected_interval
        self.tick_interval = tick_ms / 1000.0
        self.display_speed = 0.0

    def tick(self, estimator, now):
        """
        Recompute the display speed.

        Args:
            estimator: SpeedEstimator providing last/current speed and the fix cursor
            now: current time (epoch seconds)

        Returns:
            float or None: display speed, None until a fix has been seen
        """
        cursor = estimator.previous_fix
        if cursor is None:
            return None

        elapsed = max(0.0, now - cursor.timestamp)
        self.display_speed = interpolate_speed(
            estimator.last_speed, estimator.current_speed, elapsed, self.expected_interval
        )
        return self.display_speed

    def snap(self, speed):
        """Reset display to an accepted GPS speed."""
        self.display_speed = speed
