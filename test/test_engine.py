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
Scenario tests for SpeedSessionEngine.

Fixes travel due north from latitude 0 so distances are exact; a fix
helper takes the cumulative distance in km and the time offset in seconds.
"""
import math
import os
import sys

import pytest

# Add parent directory to path for imports
PARENT_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if PARENT_DIR not in sys.path:
    sys.path.insert(0, PARENT_DIR)

from core.engine import SpeedSessionEngine
from core.normalizer import InvalidFixError
from core.structures import (
    PositionFix,
    STATE_ACQUIRING,
    STATE_IDLE,
    STATE_RUNNING,
    FIX_UNLOCKED,
    FIX_FIRST,
    FIX_JITTER,
    FIX_OUTLIER,
    FIX_ACCEPTED,
)
import config

T0 = 1717243200.0


def north(km):
    return math.degrees(km / config.EARTH_RADIUS_KM)


def fix_at(km, t, altitude=None, accuracy=5.0, sats=None):
    altitude_accuracy = 5.0 if altitude is not None else None
    return PositionFix(north(km), 0.0, altitude, altitude_accuracy, accuracy, sats, T0 + t)


def constant_run(speed_kmh, count, altitude_drop_m=None):
    """Fixes one second apart at a constant speed."""
    step = speed_kmh / 3600.0
    fixes = []
    for i in range(count):
        altitude = None if altitude_drop_m is None else 500.0 - altitude_drop_m * i
        fixes.append(fix_at(step * i, i, altitude))
    return fixes


class Recorder:
    """Collects collaborator calls."""

    def __init__(self):
        self.speed_logs = []
        self.sessions = []

    def log_speed(self, device_id, speed, timestamp):
        self.speed_logs.append((device_id, speed, timestamp))

    def save_session(self, record):
        self.sessions.append(record)


def make_engine(**settings):
    recorder = Recorder()
    engine = SpeedSessionEngine('device-1', recorder.log_speed, recorder.save_session,
                                settings=settings or None)
    return engine, recorder


def feed(engine, fixes):
    return [engine.handle_fix(fix) for fix in fixes]


# ---------------------------------------------------------------------------
# Lock and state
# ---------------------------------------------------------------------------

def test_initial_state():
    engine, _ = make_engine()
    assert engine.state == STATE_ACQUIRING
    assert engine.snapshot()['label'] == "Acquiring GPS..."
    assert engine.tick(T0) is None


def test_unlocked_fix_pauses_processing():
    engine, recorder = make_engine()
    status = engine.handle_fix(fix_at(0, 0, accuracy=50.0, sats=2))
    assert status == FIX_UNLOCKED
    assert engine.state == STATE_ACQUIRING
    assert engine.speed.previous_fix is None
    assert recorder.speed_logs == []


def test_lock_then_idle():
    engine, _ = make_engine()
    assert engine.handle_fix(fix_at(0, 0)) == FIX_FIRST
    assert engine.state == STATE_IDLE
    assert engine.snapshot()['label'] == "Ready"


def test_unlocked_fix_does_not_move_cursor():
    engine, _ = make_engine()
    engine.handle_fix(fix_at(0, 0))
    engine.handle_fix(fix_at(1.0, 1, accuracy=100.0, sats=2))
    status = engine.handle_fix(fix_at(0.0556, 2))

    assert status == FIX_ACCEPTED
    assert engine.current_speed == pytest.approx(100.08, rel=1e-6)


def test_browser_shaped_fixes():
    engine, _ = make_engine()
    for km, t in ((0.0, 0), (0.02, 1)):
        engine.handle_fix({
            'coords': {'latitude': north(km), 'longitude': 0.0, 'accuracy': 4.0},
            'timestamp': (T0 + t) * 1000,
        })
    assert engine.current_speed == pytest.approx(72.0, rel=1e-6)


def test_invalid_fix_raises():
    engine, _ = make_engine()
    with pytest.raises(InvalidFixError):
        engine.handle_fix({'latitude': 123.0, 'longitude': 0.0, 'timestamp': T0})
    assert engine.fix_count == 0


# ---------------------------------------------------------------------------
# Speed and timers
# ---------------------------------------------------------------------------

def test_hundred_kmh_scenario():
    engine, _ = make_engine()
    engine.handle_fix(fix_at(0, 0))
    status = engine.handle_fix(fix_at(0.0278, 1))

    assert status == FIX_ACCEPTED
    assert engine.current_speed == pytest.approx(100.08, rel=1e-6)
    assert engine.vmax == pytest.approx(100.08, rel=1e-6)
    assert engine.session_distance == pytest.approx(0.0278, rel=1e-6)
    assert engine.state == STATE_RUNNING
    assert engine.snapshot()['label'] == "Timing"
    assert engine.session_start == T0 + 1
    assert engine.running_since == T0 + 1
    assert '0-100kmh' in engine.timers.timers
    assert '0-100' not in engine.timers.timers, "0-100 is a 100 mph milestone"


def test_snapshot_reports_heading_and_mph():
    engine, _ = make_engine()
    engine.handle_fix(fix_at(0, 0))
    assert engine.snapshot()['heading_deg'] is None

    engine.handle_fix(fix_at(0.0278, 1))
    snapshot = engine.snapshot()
    assert snapshot['heading_deg'] == pytest.approx(0.0, abs=1e-6), "Fixes travel due north"
    assert snapshot['speed_mph'] == pytest.approx(100.08 * config.KMH_TO_MPH, rel=1e-6)


def test_jitter_leaves_state_unchanged():
    engine, _ = make_engine()
    engine.handle_fix(fix_at(0, 0))
    engine.handle_fix(fix_at(0.01, 1))
    before = (engine.current_speed, engine.vmax, engine.session_distance, dict(engine.timers.timers))

    jitter_fix = fix_at(0.0105, 2)
    assert engine.handle_fix(jitter_fix) == FIX_JITTER
    assert (engine.current_speed, engine.vmax, engine.session_distance,
            dict(engine.timers.timers)) == before
    assert engine.speed.previous_fix == jitter_fix


def test_outlier_never_updates_speed():
    engine, _ = make_engine()
    engine.handle_fix(fix_at(0, 0))
    engine.handle_fix(fix_at(0.01, 1))
    assert engine.handle_fix(fix_at(0.2, 2)) == FIX_OUTLIER
    assert engine.current_speed == pytest.approx(36.0, rel=1e-6)
    assert engine.vmax == pytest.approx(36.0, rel=1e-6)
    assert engine.session_distance == pytest.approx(0.01, rel=1e-6)


def test_auto_reset_keeps_session():
    engine, _ = make_engine()
    feed(engine, constant_run(120.0, 5))
    assert engine.timers.timers

    # 2 m in 10 s is 0.72 km/h
    assert engine.handle_fix(fix_at(4 * 120.0 / 3600 + 0.002, 14)) == FIX_ACCEPTED
    assert engine.timers.timers == {}
    assert engine.state == STATE_IDLE
    assert engine.run_distance == 0.0
    assert engine.session_start == T0 + 1
    assert engine.vmax == pytest.approx(120.0, rel=1e-6)


def test_session_distance_spans_runs():
    engine, recorder = make_engine()
    # Two 0.06 km runs at 108 km/h with a stop in between
    feed(engine, [fix_at(0.0, 0), fix_at(0.03, 1), fix_at(0.06, 2)])
    assert engine.run_distance == pytest.approx(0.06, rel=1e-6)

    engine.handle_fix(fix_at(0.062, 12))
    assert engine.timers.timers == {}
    assert engine.run_distance == 0.0
    assert engine.session_distance == pytest.approx(0.062, rel=1e-6)

    feed(engine, [fix_at(0.092, 13), fix_at(0.122, 14)])
    assert engine.run_distance == pytest.approx(0.06, rel=1e-6)

    record = engine.reset(T0 + 20)
    assert recorder.sessions == [record]
    assert record['distance'] == pytest.approx(0.122, rel=1e-6)
    assert record['vMax'] == pytest.approx(108.0, rel=1e-6)


def test_tick_interpolates_between_fixes():
    engine, _ = make_engine()
    engine.handle_fix(fix_at(0, 0))
    engine.handle_fix(fix_at(0.0278, 1))
    assert engine.tick(T0 + 1.5) == pytest.approx(50.04, rel=1e-6)
    assert engine.vmax == pytest.approx(100.08, rel=1e-6), "Ticks never touch vmax"


def test_settings_override():
    engine, _ = make_engine(INCLINE_THRESHOLD_DEG=5.0, INTERPOLATION_TICK_MS=200)
    assert engine.incline.threshold_deg == 5.0
    assert engine.interpolator.tick_interval == pytest.approx(0.2)

    with pytest.raises(ValueError):
        SpeedSessionEngine('device-1', settings={'BOGUS': 1})


# ---------------------------------------------------------------------------
# Collaborators and sessions
# ---------------------------------------------------------------------------

def test_speed_log_is_throttled():
    engine, recorder = make_engine()
    feed(engine, constant_run(36.0, 21))

    assert len(recorder.speed_logs) == 3
    device_id, speed, timestamp = recorder.speed_logs[0]
    assert device_id == 'device-1'
    assert speed == 0.0
    assert timestamp == '2024-06-01T12:00:00.000Z'
    assert recorder.speed_logs[1][1] == pytest.approx(36.0, rel=1e-6)
    assert recorder.speed_logs[2][2] == '2024-06-01T12:00:20.000Z'


def test_jitter_is_not_logged():
    engine, recorder = make_engine()
    engine.handle_fix(fix_at(0, 0))
    engine.handle_fix(fix_at(0.0002, 15))
    assert len(recorder.speed_logs) == 1


def test_small_session_is_not_saved():
    engine, recorder = make_engine()
    engine.session_start = T0
    engine.vmax = 4.0
    engine.session_distance = 0.05

    assert engine.reset(T0 + 60) is None
    assert recorder.sessions == []
    assert engine.session_start is None
    assert engine.vmax == 0.0


def test_downhill_session_is_flagged():
    engine, recorder = make_engine()
    statuses = feed(engine, constant_run(120.0, 16, altitude_drop_m=5.0))
    assert statuses.count(FIX_ACCEPTED) == 15
    assert engine.on_downhill

    record = engine.reset(T0 + 20)

    assert recorder.sessions == [record]
    assert record['deviceId'] == 'device-1'
    assert record['vMax'] == pytest.approx(120.0, rel=1e-6)
    assert record['distance'] == pytest.approx(0.5, rel=1e-6)
    assert record['onIncline'] is True
    assert record['timers']['0-100kmh']['invalid'] is True
    assert record['startTime'] == '2024-06-01T12:00:01.000Z'
    assert record['duration'] == 19


def test_flat_session_is_not_flagged():
    engine, recorder = make_engine()
    feed(engine, constant_run(120.0, 16))
    record = engine.reset(T0 + 20)
    assert record['onIncline'] is False
    assert record['timers']['1/8 mile']['speed_at_mark'] == pytest.approx(120.0, rel=1e-6)


def test_incline_flag_survives_auto_reset():
    engine, recorder = make_engine()
    feed(engine, constant_run(120.0, 16, altitude_drop_m=5.0))
    engine.handle_fix(fix_at(15 * 120.0 / 3600 + 0.002, 25))
    assert engine.timers.timers == {}
    assert engine.incline_flag

    record = engine.reset(T0 + 30)
    assert record['onIncline'] is True
    assert record['timers'] == {}


def test_reset_clears_state():
    engine, _ = make_engine()
    feed(engine, constant_run(120.0, 16, altitude_drop_m=5.0))
    engine.reset(T0 + 20)

    assert engine.timers.timers == {}
    assert engine.session_start is None
    assert engine.vmax == 0.0
    assert engine.session_distance == 0.0
    assert engine.run_distance == 0.0
    assert engine.incline_flag is False
    assert engine.state == STATE_IDLE


def test_collaborator_failures_are_swallowed():
    def broken_log(*args):
        raise ConnectionError("offline")

    def broken_save(record):
        raise ConnectionError("offline")

    engine = SpeedSessionEngine('device-1', broken_log, broken_save)
    statuses = feed(engine, constant_run(120.0, 16))
    assert statuses[-1] == FIX_ACCEPTED

    record = engine.reset(T0 + 20)
    assert record is not None
    assert engine.vmax == 0.0, "Reset completes even if saving fails"
    assert engine.dispatched[-1].ok is False
    assert "offline" in engine.dispatched[-1].error


def test_teardown_stops_processing():
    engine, recorder = make_engine()
    engine.handle_fix(fix_at(0, 0))
    engine.teardown()
    assert engine.handle_fix(fix_at(0.0278, 1)) is None
    assert engine.tick(T0 + 1.5) is None
    assert engine.fix_count == 1
