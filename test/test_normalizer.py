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
Tests for position fix normalization and GPS lock detection.
"""
import os
import sys

import pytest

# Add parent directory to path for imports
PARENT_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if PARENT_DIR not in sys.path:
    sys.path.insert(0, PARENT_DIR)

from core.normalizer import normalize_fix, is_gps_locked, InvalidFixError
from core.structures import PositionFix


def make_fix(accuracy=5.0, sats=None):
    return PositionFix(48.0, 11.0, None, None, accuracy, sats, 1000.0)


def test_browser_shaped_fix():
    raw = {
        'coords': {
            'latitude': 48.1,
            'longitude': 11.5,
            'altitude': 520.0,
            'altitudeAccuracy': 10.0,
            'accuracy': 4.0,
        },
        'timestamp': 1717243200500,
    }
    fix = normalize_fix(raw)
    assert fix.latitude == 48.1
    assert fix.longitude == 11.5
    assert fix.altitude == 520.0
    assert fix.altitude_accuracy == 10.0
    assert fix.horizontal_accuracy == 4.0
    assert fix.satellite_count is None
    assert fix.timestamp == pytest.approx(1717243200.5), "Browser timestamps are milliseconds"


def test_flat_fix_uses_seconds():
    raw = {'latitude': -33.9, 'longitude': 151.2, 'satellite_count': '7', 'timestamp': 12.25}
    fix = normalize_fix(raw)
    assert fix.satellite_count == 7
    assert fix.timestamp == 12.25
    assert fix.altitude is None


def test_position_fix_passes_through():
    original = PositionFix(1.0, 2.0, 3.0, 4.0, 5.0, 6, 7.0)
    assert normalize_fix(original) == original


@pytest.mark.parametrize("raw", [
    {'latitude': 91.0, 'longitude': 0.0, 'timestamp': 1.0},
    {'latitude': 0.0, 'longitude': -180.5, 'timestamp': 1.0},
    {'latitude': 0.0, 'timestamp': 1.0},
    {'latitude': 'north', 'longitude': 0.0, 'timestamp': 1.0},
    {'latitude': 0.0, 'longitude': 0.0},
    {'coords': {'latitude': 0.0, 'longitude': 0.0}},
    [48.0, 11.0],
])
def test_invalid_fixes_raise(raw):
    with pytest.raises(InvalidFixError):
        normalize_fix(raw)


def test_invalid_fix_is_value_error():
    assert issubclass(InvalidFixError, ValueError)


def test_non_finite_optionals_become_none():
    raw = {'latitude': 0.0, 'longitude': 0.0, 'altitude': float('nan'),
           'horizontal_accuracy': float('inf'), 'satellite_count': 'many', 'timestamp': 1.0}
    fix = normalize_fix(raw)
    assert fix.altitude is None
    assert fix.horizontal_accuracy is None
    assert fix.satellite_count is None


@pytest.mark.parametrize("accuracy,sats,expected", [
    (5.0, None, True),
    (19.9, None, True),
    (20.0, None, False),
    (35.0, None, False),
    (None, 4, True),
    (35.0, 6, True),
    (35.0, 3, False),
    (None, None, False),
])
def test_gps_lock(accuracy, sats, expected):
    assert is_gps_locked(make_fix(accuracy, sats)) is expected


def test_gps_lock_custom_thresholds():
    fix = make_fix(accuracy=8.0, sats=5)
    assert not is_gps_locked(fix, max_accuracy_m=5.0, min_satellites=6)
    assert is_gps_locked(fix, max_accuracy_m=10.0, min_satellites=6)
