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
Configuration file for GPSTimer.
Contains all constants and tunable thresholds for speed estimation,
incline detection, interpolation and performance timers.

Note: transport settings (server URL, device storage) belong to the
collaborators that persist data, not to this module.
"""

# Physical Constants
EARTH_RADIUS_KM = 6371.0  # Mean Earth radius used by haversine, km

# Unit Conversion
KMH_TO_MPH = 0.621371      # km/h to mph conversion factor
MILE_KM = 1.609344         # One statute mile in km
SECONDS_PER_HOUR = 3600.0  # km/s to km/h

# ============================================================
# GPS Lock (fix quality gate)
# ============================================================
MAX_HORIZONTAL_ACCURACY_M = 20.0  # Fix locked if accuracy below this (m)
MIN_SATELLITES = 4                # ...or if at least this many satellites

# ============================================================
# Speed Estimation
# ============================================================
JITTER_MIN_DISTANCE_KM = 0.001   # Displacements below this are GPS jitter
JITTER_MIN_TIME_S = 0.5          # Time deltas below this are GPS jitter
MAX_PLAUSIBLE_SPEED_KMH = 500.0  # Faster than this = sensor glitch
MOVING_SPEED_THRESHOLD_KMH = 1.0  # Below this the vehicle is stopped

# ============================================================
# Incline Estimation
# ============================================================
INCLINE_THRESHOLD_DEG = 2.0        # Downhill if angle <= -threshold
MAX_ALTITUDE_ACCURACY_M = 50.0     # Ignore altitude with worse accuracy
ALTITUDE_SMOOTHING_WINDOW = 5      # Moving average window (samples)
MIN_INCLINE_BASELINE_KM = 0.01     # Minimum horizontal run for an angle

# ============================================================
# Display Interpolation
# ============================================================
INTERPOLATION_TICK_MS = 100           # Display refresh period (10 Hz)
EXPECTED_GPS_INTERVAL_S = 1.0         # Assumed time between GPS fixes
INTERPOLATION_MIN_DECAY_SPEED_KMH = 0.1  # Below this, decay model is unstable

# ============================================================
# Collaborators and Sessions
# ============================================================
SPEED_LOG_INTERVAL_S = 10.0     # log_speed at most once per interval
SESSION_MIN_VMAX_KMH = 5.0      # Save session only above this vMax
SESSION_MIN_DISTANCE_KM = 0.1   # ...and above this distance

# ============================================================
# Milestone Tables
# ============================================================
# Milestone name -> target speed in km/h, timed from the start of the run.
# Names without a "kmh" suffix are mph milestones converted to km/h; older
# app builds compared the bare numbers against km/h ("0-60" at 60 km/h).
SPEED_MILESTONES = {
    '0-60': 60 * MILE_KM,
    '0-100': 100 * MILE_KM,
    '0-150': 150 * MILE_KM,
    '0-200': 200 * MILE_KM,
    '30-60': 60 * MILE_KM,
    '60-120': 120 * MILE_KM,
    '60-130': 130 * MILE_KM,
    '100-150': 150 * MILE_KM,
    '0-100kmh': 100.0,
    '0-160kmh': 160.0,
    '0-250kmh': 250.0,
    '0-320kmh': 320.0,
    '100-200kmh': 200.0,
    '160-240kmh': 240.0,
}

# Milestone name -> distance in km
DISTANCE_MILESTONES = {
    '1/8 mile': MILE_KM / 8,
    '1/4 mile': MILE_KM / 4,
    '1/2 mile': MILE_KM / 2,
    'standing mile': MILE_KM,
}

# ============================================================
# NMEA Replay
# ============================================================
NMEA_UERE_M = 5.0            # User equivalent range error: accuracy = HDOP * UERE
NMEA_ALTITUDE_UERE_M = 8.0   # Vertical error per unit of HDOP
GAP_THRESHOLD = 1.5          # Gap between fixes (seconds) reported by the parser
MAX_GPS_INTERVAL_MS = 5000   # Intervals above this are ignored for frequency

# ============================================================
# Warning Thresholds
# ============================================================
JITTER_CAUTION_RATIO = 0.3       # Caution if >30% of fixes were jitter
OUTLIER_WARNING_RATIO = 0.05     # Warn if >5% of fixes were outliers
LOCK_WARNING_RATIO = 0.5         # Warn if <50% of fixes had GPS lock
LOCK_CAUTION_RATIO = 0.9         # Caution if <90% of fixes had GPS lock
LOW_GPS_FREQUENCY_HZ = 0.5       # Warn below this fix rate
LOG_GAP_WARNING_COUNT = 10       # Warn above this many gaps

# Settings an engine instance may override
TUNABLE_SETTINGS = (
    'MOVING_SPEED_THRESHOLD_KMH',
    'JITTER_MIN_DISTANCE_KM',
    'JITTER_MIN_TIME_S',
    'MAX_PLAUSIBLE_SPEED_KMH',
    'INCLINE_THRESHOLD_DEG',
    'MAX_ALTITUDE_ACCURACY_M',
    'ALTITUDE_SMOOTHING_WINDOW',
    'MIN_INCLINE_BASELINE_KM',
    'INTERPOLATION_TICK_MS',
    'EXPECTED_GPS_INTERVAL_S',
    'MIN_SATELLITES',
    'MAX_HORIZONTAL_ACCURACY_M',
    'SPEED_LOG_INTERVAL_S',
    'SESSION_MIN_VMAX_KMH',
    'SESSION_MIN_DISTANCE_KM',
    'SPEED_MILESTONES',
    'DISTANCE_MILESTONES',
)
