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
Shared data structures and constants.

Position fix (``PositionFix``)
------------------------------
Produced by ``core.normalizer.normalize_fix`` or
``parsers.nmea_handler.extract_position_fixes``::

    (
        latitude,             # 0 – degrees, WGS84
        longitude,            # 1 – degrees, WGS84
        altitude,             # 2 – metres above sea level (float or None)
        altitude_accuracy,    # 3 – vertical accuracy, metres (float or None)
        horizontal_accuracy,  # 4 – horizontal accuracy, metres (float or None)
        satellite_count,      # 5 – satellites used (int or None)
        timestamp,            # 6 – epoch seconds (float)
    )

Speed sample (``SpeedSample``)
------------------------------
Produced by ``core.speed.SpeedEstimator.update`` for accepted fixes::

    (
        value,        # 0 – speed in km/h
        timestamp,    # 1 – epoch seconds of the fix that produced it
        source_fix,   # 2 – the PositionFix
    )

Timer entry (values of the timer map)
-------------------------------------
``{'time': elapsed_seconds, 'invalid': bool}``; distance milestones also
carry ``'speed_at_mark'`` (km/h).
"""
from collections import namedtuple

PositionFix = namedtuple(
    'PositionFix',
    ['latitude', 'longitude', 'altitude', 'altitude_accuracy',
     'horizontal_accuracy', 'satellite_count', 'timestamp'],
)

SpeedSample = namedtuple('SpeedSample', ['value', 'timestamp', 'source_fix'])

# Engine state tags
STATE_ACQUIRING = 'acquiring'
STATE_IDLE = 'idle'
STATE_RUNNING = 'running'

# Speed estimator results
FIX_UNLOCKED = 'unlocked'
FIX_FIRST = 'first'
FIX_JITTER = 'jitter'
FIX_OUTLIER = 'outlier'
FIX_ACCEPTED = 'accepted'

# Timer entry keys
TIMER_TIME = 'time'
TIMER_INVALID = 'invalid'
TIMER_SPEED_AT_MARK = 'speed_at_mark'

# Unit conversion constants
KM_TO_M = 1000.0  # kilometres to metres
MS_TO_S = 1000.0  # milliseconds to seconds conversion factor
