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
Tests for road incline estimation.

Sign convention: negative angle = downhill.
"""
import math
import os
import sys

import pytest

# Add parent directory to path for imports
PARENT_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if PARENT_DIR not in sys.path:
    sys.path.insert(0, PARENT_DIR)

from core.incline import calculate_incline, InclineEstimator
from core.structures import PositionFix
import config


def north(km):
    return math.degrees(km / config.EARTH_RADIUS_KM)


def fix_at(km, t, altitude, altitude_accuracy=5.0):
    return PositionFix(north(km), 0.0, altitude, altitude_accuracy, 5.0, 8, 1000.0 + t)


@pytest.mark.parametrize("change_m,distance_km,expected", [
    (-10.0, 0.1, math.degrees(math.atan(-0.1))),
    (10.0, 0.1, math.degrees(math.atan(0.1))),
    (0.0, 0.1, 0.0),
])
def test_calculate_incline_sign(change_m, distance_km, expected):
    assert calculate_incline(change_m, distance_km) == pytest.approx(expected)


def test_calculate_incline_downhill_is_negative():
    assert calculate_incline(-5.0, 0.05) < 0
    assert calculate_incline(5.0, 0.05) > 0


def test_calculate_incline_short_baseline_is_flat():
    assert calculate_incline(-10.0, 0.005) == 0.0


def feed(estimator, fixes):
    previous = None
    result = None
    for fix in fixes:
        result = estimator.update(fix, previous)
        previous = fix
    return result


def test_downhill_detected():
    estimator = InclineEstimator(window_size=1)
    on_downhill = feed(estimator, [fix_at(0, 0, 100.0), fix_at(0.1, 1, 90.0)])
    assert on_downhill is True
    assert estimator.current_angle == pytest.approx(math.degrees(math.atan(-0.1)))


def test_uphill_and_flat_are_not_downhill():
    estimator = InclineEstimator(window_size=1)
    assert feed(estimator, [fix_at(0, 0, 100.0), fix_at(0.1, 1, 110.0)]) is False
    assert estimator.current_angle > 0

    estimator = InclineEstimator(window_size=1)
    assert feed(estimator, [fix_at(0, 0, 100.0), fix_at(0.1, 1, 100.0)]) is False


def test_gentle_descent_below_threshold():
    # atan(-1 / 100) is about -0.57 degrees
    estimator = InclineEstimator(threshold_deg=2.0, window_size=1)
    assert feed(estimator, [fix_at(0, 0, 100.0), fix_at(0.1, 1, 99.0)]) is False
    estimator = InclineEstimator(threshold_deg=0.5, window_size=1)
    assert feed(estimator, [fix_at(0, 0, 100.0), fix_at(0.1, 1, 99.0)]) is True


def test_inaccurate_altitude_is_ignored():
    estimator = InclineEstimator(window_size=1)
    fixes = [fix_at(0, 0, 100.0), fix_at(0.1, 1, 50.0, altitude_accuracy=80.0)]
    assert feed(estimator, fixes) is False
    assert estimator.last_altitude == 100.0
    assert len(estimator.window) == 1


def test_missing_altitude_keeps_verdict():
    estimator = InclineEstimator(window_size=1)
    fixes = [fix_at(0, 0, 100.0), fix_at(0.1, 1, 90.0), fix_at(0.2, 2, None, None)]
    assert feed(estimator, fixes) is True


def test_short_baseline_keeps_previous_verdict():
    estimator = InclineEstimator(window_size=1)
    fixes = [fix_at(0, 0, 100.0), fix_at(0.1, 1, 90.0), fix_at(0.105, 2, 95.0)]
    assert feed(estimator, fixes) is True
    assert estimator.last_altitude == 95.0


def test_smoothing_damps_single_spike():
    estimator = InclineEstimator(window_size=5)
    fixes = [fix_at(0.05 * i, i, 100.0) for i in range(5)]
    fixes.append(fix_at(0.25, 5, 97.0))
    # Smoothed drop is 0.6 m over 50 m, well under 2 degrees
    assert feed(estimator, fixes) is False
