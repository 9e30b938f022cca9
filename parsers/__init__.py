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

"""Position sources: NMEA replay and position watch."""

from .nmea_handler import (
    analyze_nmea_timestamps,
    extract_position_fixes,
    calculate_gps_frequency,
    analyze_nmea_file,
)
from .position_source import watch_position

__all__ = [
    # NMEA functions
    'analyze_nmea_timestamps',
    'extract_position_fixes',
    'calculate_gps_frequency',
    'analyze_nmea_file',
    # Position watch
    'watch_position',
]
