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
Main GPSTimer speed/session engine.
Contains SpeedSessionEngine, the single owner of all speed, incline, timer
and session state.

Fixes must be fed strictly in arrival order through handle_fix; the 10 Hz
display loop calls tick. Both run on the same logical thread. Callers on
multi-threaded platforms must serialize access to an engine instance.
"""
import logging
import time

try:
    from ..locales.strings import LABELS
except ImportError:
    from locales.strings import LABELS

from .collaborators import dispatch, OP_LOG_SPEED, OP_SAVE_SESSION
from .helpers import calculate_bearing, kmh_to_mph, resolve_settings, to_iso8601
from .incline import InclineEstimator
from .interpolation import Interpolator
from .normalizer import normalize_fix, is_gps_locked
from .session import should_save_session, build_session_record
from .speed import SpeedEstimator
from .timers import TimerEngine
from .structures import (
    STATE_ACQUIRING,
    STATE_IDLE,
    STATE_RUNNING,
    FIX_UNLOCKED,
    FIX_JITTER,
    FIX_ACCEPTED,
)

logger = logging.getLogger(__name__)


class SpeedSessionEngine:
    """
    GPS speedometer and performance timer for one device.

    Args:
        device_id: identifier passed to collaborators
        log_speed: callable(device_id, speed, timestamp_iso) or None
        save_session: callable(record) or None
        settings: dict overriding config values named in config.TUNABLE_SETTINGS
    """

    def __init__(self, device_id, log_speed=None, save_session=None, settings=None):
        self.device_id = device_id
        self.log_speed = log_speed
        self.save_session = save_session
        self.settings = resolve_settings(settings)
        s = self.settings

        self.speed = SpeedEstimator(
            min_distance_km=s['JITTER_MIN_DISTANCE_KM'],
            min_time_s=s['JITTER_MIN_TIME_S'],
            max_speed_kmh=s['MAX_PLAUSIBLE_SPEED_KMH'],
        )
        self.incline = InclineEstimator(
            threshold_deg=s['INCLINE_THRESHOLD_DEG'],
            max_altitude_accuracy_m=s['MAX_ALTITUDE_ACCURACY_M'],
            window_size=s['ALTITUDE_SMOOTHING_WINDOW'],
            min_baseline_km=s['MIN_INCLINE_BASELINE_KM'],
        )
        self.interpolator = Interpolator(
            expected_interval=s['EXPECTED_GPS_INTERVAL_S'],
            tick_ms=s['INTERPOLATION_TICK_MS'],
        )
        self.timers = TimerEngine(
            speed_milestones=s['SPEED_MILESTONES'],
            distance_milestones=s['DISTANCE_MILESTONES'],
            moving_threshold=s['MOVING_SPEED_THRESHOLD_KMH'],
        )

        self.locked = False
        self.closed = False
        self.session_start = None
        self.vmax = 0.0
        self.heading = None
        self.session_distance = 0.0
        # Sticky: survives auto-reset of the run timers
        self.incline_flag = False

        self.last_log_time = None
        self.dispatched = []
        self.fix_count = 0
        self.locked_count = 0

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def state(self):
        if not self.locked:
            return STATE_ACQUIRING
        if self.timers.running:
            return STATE_RUNNING
        return STATE_IDLE

    @property
    def running_since(self):
        return self.timers.timer_start

    @property
    def current_speed(self):
        return self.speed.current_speed

    @property
    def run_distance(self):
        return self.timers.run_distance

    @property
    def on_downhill(self):
        return self.incline.on_downhill

    # ------------------------------------------------------------------
    # Event handlers
    # ------------------------------------------------------------------

    def handle_fix(self, raw):
        """
        Process one position fix.

        Args:
            raw: PositionFix or mapping accepted by normalize_fix

        Returns:
            str: FIX_* status, or None if the engine was torn down

        Raises:
            InvalidFixError: raw fix has missing or out-of-range fields
        """
        if self.closed:
            logger.debug("Fix ignored: engine torn down")
            return None

        fix = normalize_fix(raw)
        self.fix_count += 1

        was_locked = self.locked
        self.locked = is_gps_locked(
            fix,
            max_accuracy_m=self.settings['MAX_HORIZONTAL_ACCURACY_M'],
            min_satellites=self.settings['MIN_SATELLITES'],
        )
        if self.locked != was_locked:
            logger.info("GPS lock acquired" if self.locked else "GPS lock lost")
        if not self.locked:
            return FIX_UNLOCKED
        self.locked_count += 1

        previous = self.speed.previous_fix
        on_downhill = self.incline.update(fix, previous)
        status, sample, distance_km, _ = self.speed.update(fix)

        if status == FIX_JITTER:
            return status
        if status == FIX_ACCEPTED:
            self.heading = calculate_bearing(previous.latitude, previous.longitude,
                                             fix.latitude, fix.longitude)
            self._accept(sample, distance_km, on_downhill)

        self._log_speed(fix.timestamp)
        return status

    def _accept(self, sample, distance_km, on_downhill):
        self.interpolator.snap(sample.value)
        self.session_distance += distance_km
        self.vmax = max(self.vmax, sample.value)

        recorded = self.timers.update(sample.value, distance_km, sample.timestamp, on_downhill)
        if self.timers.running and self.session_start is None:
            self.session_start = self.timers.timer_start
            logger.info("Session started")
        if any(self.timers.timers[name]['invalid'] for name in recorded):
            self.incline_flag = True

    def _log_speed(self, now):
        interval = self.settings['SPEED_LOG_INTERVAL_S']
        if self.last_log_time is not None and now - self.last_log_time < interval:
            return
        self.last_log_time = now
        self.dispatched.append(dispatch(
            OP_LOG_SPEED, self.log_speed, self.device_id, self.speed.current_speed, to_iso8601(now)
        ))

    def tick(self, now=None):
        """
        Display refresh: interpolated speed between fixes.

        Args:
            now: epoch seconds (default: wall clock)

        Returns:
            float or None: display speed, None before the first fix
        """
        if self.closed:
            return None
        if now is None:
            now = time.time()
        return self.interpolator.tick(self.speed, now)

    def reset(self, now=None):
        """
        Explicit user reset: finalize the session and zero session state.

        The session record is handed to save_session only if the session
        is worth keeping. State is cleared regardless of the save outcome.

        Args:
            now: epoch seconds (default: wall clock)

        Returns:
            dict or None: the session record that was dispatched
        """
        if now is None:
            now = time.time()

        record = None
        if should_save_session(self.session_start, self.vmax, self.session_distance,
                               self.settings['SESSION_MIN_VMAX_KMH'],
                               self.settings['SESSION_MIN_DISTANCE_KM']):
            on_incline = self.incline_flag or self.timers.has_invalid() or self.incline.on_downhill
            record = build_session_record(
                self.device_id, self.session_start, now, self.vmax,
                self.session_distance, self.timers.timers, on_incline,
            )
            self.dispatched.append(dispatch(OP_SAVE_SESSION, self.save_session, record))
            logger.info(f"Session finalized: vmax {self.vmax:.1f} km/h, {self.session_distance:.3f} km")
        else:
            logger.debug("Session discarded: below save thresholds")

        self.timers.stop()
        self.session_start = None
        self.vmax = 0.0
        self.session_distance = 0.0
        self.incline_flag = False
        return record

    def teardown(self):
        """Stop accepting fixes and ticks."""
        self.closed = True

    def snapshot(self):
        """Current engine values for display or reporting."""
        return {
            'state': self.state,
            'label': LABELS[self.state],
            'locked': self.locked,
            'speed_kmh': self.speed.current_speed,
            'speed_mph': kmh_to_mph(self.speed.current_speed),
            'heading_deg': self.heading,
            'display_speed_kmh': self.interpolator.display_speed,
            'vmax_kmh': self.vmax,
            'run_distance_km': self.run_distance,
            'session_distance_km': self.session_distance,
            'incline_deg': self.incline.current_angle,
            'on_downhill': self.incline.on_downhill,
            'timers': dict(self.timers.timers),
            'session_start': self.session_start,
        }
