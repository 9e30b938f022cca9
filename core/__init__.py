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

"""GPSTimer core: speed estimation, incline detection, timers and sessions."""

from .engine import SpeedSessionEngine
from .helpers import haversine
from .interpolation import interpolate_speed
from .normalizer import normalize_fix, is_gps_locked, InvalidFixError
from .structures import PositionFix, SpeedSample

__all__ = [
    'SpeedSessionEngine',
    'haversine',
    'interpolate_speed',
    'normalize_fix',
    'is_gps_locked',
    'InvalidFixError',
    'PositionFix',
    'SpeedSample',
]
