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
Performance timer state machine.

A run starts on the first accepted speed sample at or above the moving
threshold and ends (auto-reset) on an accepted sample below it once any
milestone was reached. Speed milestones record the elapsed time when the
target speed is first met; distance milestones record elapsed time and
speed when the run distance first reaches the mark. First crossing wins.
"""
import logging

try:
    from .. import config
except ImportError:
    import config

from .structures import TIMER_TIME, TIMER_INVALID, TIMER_SPEED_AT_MARK

logger = logging.getLogger(__name__)


class TimerEngine:
    """
    Milestone timers for one run.

    Attributes:
        timers: milestone name -> timer entry
        timer_start: run start (epoch seconds) or None while idle
        run_distance: distance since run start (km)
    """

    def __init__(self, speed_milestones=None, distance_milestones=None, moving_threshold=None):
        if speed_milestones is None:
            speed_milestones = getattr(config, 'SPEED_MILESTONES', {})
        if distance_milestones is None:
            distance_milestones = getattr(config, 'DISTANCE_MILESTONES', {})
        if moving_threshold is None:
            moving_threshold = getattr(config, 'MOVING_SPEED_THRESHOLD_KMH', 1.0)

        self.speed_milestones = {name: float(target) for name, target in speed_milestones.items()}
        self.distance_milestones = dict(distance_milestones)
        self.moving_threshold = moving_threshold

        self.timers = {}
        self.timer_start = None
        self.run_distance = 0.0

    @property
    def running(self):
        return self.timer_start is not None

    def update(self, speed, distance_km, now, on_downhill):
        """
        Feed one accepted speed sample.

        Args:
            speed: accepted speed (km/h)
            distance_km: distance covered since the previous accepted sample
            now: sample time (epoch seconds)
            on_downhill: current downhill flag, copied into new entries

        Returns:
            list: names of milestones recorded by this sample
        """
        self.run_distance += distance_km

        if speed < self.moving_threshold:
            if self.timers:
                logger.info(f"Vehicle stopped, clearing {len(self.timers)} timers")
                self.stop()
            return []

        if self.timer_start is None:
            self.timer_start = now
            logger.info("Run started")

        elapsed = now - self.timer_start
        recorded = []

        for name, target_kmh in self.speed_milestones.items():
            if name not in self.timers and speed >= target_kmh:
                self.timers[name] = {
                    TIMER_TIME: elapsed,
                    TIMER_INVALID: on_downhill,
                }
                recorded.append(name)

        for name, target_km in self.distance_milestones.items():
            if name not in self.timers and self.run_distance >= target_km:
                self.timers[name] = {
                    TIMER_TIME: elapsed,
                    TIMER_INVALID: on_downhill,
                    TIMER_SPEED_AT_MARK: speed,
                }
                recorded.append(name)

        for name in recorded:
            logger.debug(f"Milestone {name}: {self.timers[name][TIMER_TIME]:.2f} s")
        return recorded

    def has_invalid(self):
        return any(entry.get(TIMER_INVALID) for entry in self.timers.values())

    def stop(self):
        """Clear the run: timers, start time and run distance."""
        self.timers = {}
        self.timer_start = None
        self.run_distance = 0.0
