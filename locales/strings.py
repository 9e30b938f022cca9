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
Localization strings for GPSTimer.
English dictionary for user-facing messages.
"""

# Error messages
ERRORS = {
    'file_not_found': "File not found: {file_path}",
    'no_fixes': "No position fixes found in {file_path}",
    'replay_failed': "Replay failed: {error}",
}

# Warnings - results are not comparable
WARNINGS = {
    'downhill': "Some results were recorded on a downhill of {threshold:.0f}° or more",
    'low_lock_ratio': "GPS lock held for only {ratio:.0%} of fixes",
    'outliers': "{ratio:.1%} of fixes produced implausible speeds ({count} fixes)",
    'low_gps_frequency': "Low GPS update rate: {freq:.2f} Hz (below {threshold} Hz)",
    'log_issue': "Log integrity problem: {count} gaps in GPS data",
}

# Cautions - minor remarks
CAUTIONS = {
    'jitter': "{ratio:.1%} of fixes were ignored as GPS jitter ({count} fixes)",
    'low_lock_ratio': "GPS lock was lost for {ratio:.0%} of fixes",
    'log_issue': "{count} gaps found in GPS data",
    'session_not_saved': "Session was not saved: vMax or distance below minimum",
}

# Display labels
LABELS = {
    'acquiring': "Acquiring GPS...",
    'idle': "Ready",
    'running': "Timing",
}
