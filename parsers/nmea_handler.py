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
NMEA file handler - turns recorded NMEA logs into position fixes.

RMC sentences carry position, date and validity; GGA sentences carry
altitude, satellite count and HDOP. Sentences sharing a time of day form
one epoch, which becomes one PositionFix.
"""
import pynmea2
import logging
import os
import sys
from datetime import datetime, timezone

import numpy as np

# Add parent directory to path for config import
PARENT_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if PARENT_DIR not in sys.path:
    sys.path.insert(0, PARENT_DIR)

import config
from core.structures import PositionFix, MS_TO_S

logger = logging.getLogger('nmea_handler')

MS_PER_DAY = 24 * 3600 * 1000


def _time_of_day_ms(timestamp):
    return (timestamp.hour * 3600000 + timestamp.minute * 60000 +
            timestamp.second * 1000 + timestamp.microsecond // 1000)


def _to_int(value):
    if value in (None, ''):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def _to_float(value):
    if value in (None, ''):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _iter_messages(file_path):
    """Yield (line_number, line, msg) for parseable RMC/GGA sentences."""
    with open(file_path, 'r', errors='replace') as f:
        for idx, line in enumerate(f, start=1):
            stripped = line.strip()
            if not stripped.startswith('$'):
                continue
            try:
                msg = pynmea2.parse(stripped)
            except pynmea2.ParseError as e:
                logger.debug(f"NMEA line parse error: {stripped} - {e}")
                continue
            if getattr(msg, 'sentence_type', None) in ('RMC', 'GGA'):
                yield idx, stripped, msg


def analyze_nmea_timestamps(file_path):
    """
    Analyzes timestamps in NMEA file to find gaps.

    Returns:
        tuple: (timestamps as "HH:MM:SS.mmm" strings, list of gap dicts)
    """
    all_timestamps = []
    try:
        for _, line, msg in _iter_messages(file_path):
            ts = getattr(msg, 'timestamp', None)
            if ts is None:
                continue
            ms = _time_of_day_ms(ts)
            if all_timestamps and all_timestamps[-1][1] == ms:
                continue
            time_str = f"{ts.hour:02d}:{ts.minute:02d}:{ts.second:02d}.{ts.microsecond // 1000:03d}"
            all_timestamps.append((time_str, ms, line))
    except OSError as e:
        logger.error(f"Error analyzing timestamps: {e}", exc_info=True)
        return [], []

    gap_threshold = getattr(config, 'GAP_THRESHOLD', 1.5)
    gaps = []
    for i in range(1, len(all_timestamps)):
        diff_ms = all_timestamps[i][1] - all_timestamps[i - 1][1]
        if diff_ms < 0:
            diff_ms += MS_PER_DAY
        duration = diff_ms / MS_TO_S
        if duration > gap_threshold:
            gaps.append({
                'index': i,
                'time_before': all_timestamps[i - 1][0],
                'time_after': all_timestamps[i][0],
                'duration': duration,
                'nmea_before': all_timestamps[i - 1][2],
                'nmea_after': all_timestamps[i][2],
            })

    return [t[0] for t in all_timestamps], gaps


def _epoch_to_fix(epoch, base_date):
    rmc = epoch.get('rmc')
    gga = epoch.get('gga')

    source = None
    for msg in (rmc, gga):
        if msg is not None and getattr(msg, 'lat', '') and getattr(msg, 'lon', ''):
            if msg is rmc and getattr(msg, 'status', 'A') == 'V' and gga is not None:
                continue
            source = msg
            break
    if source is None:
        return None

    altitude = sats = hdop = None
    if gga is not None:
        altitude = _to_float(getattr(gga, 'altitude', None))
        sats = _to_int(getattr(gga, 'num_sats', None))
        hdop = _to_float(getattr(gga, 'horizontal_dil', None))
        if _to_int(getattr(gga, 'gps_qual', None)) == 0:
            sats, hdop = 0, None
    elif getattr(rmc, 'status', 'A') == 'V':
        # Void RMC without GGA: position is unreliable
        sats, hdop = 0, None

    uere = getattr(config, 'NMEA_UERE_M', 5.0)
    alt_uere = getattr(config, 'NMEA_ALTITUDE_UERE_M', 8.0)
    midnight = datetime.combine(base_date, datetime.min.time()).replace(tzinfo=timezone.utc)

    return PositionFix(
        latitude=source.latitude,
        longitude=source.longitude,
        altitude=altitude,
        altitude_accuracy=hdop * alt_uere if (hdop is not None and altitude is not None) else None,
        horizontal_accuracy=hdop * uere if hdop is not None else None,
        satellite_count=sats,
        timestamp=midnight.timestamp() + epoch['ms'] / MS_TO_S,
    )


def extract_position_fixes(file_path):
    """
    Extracts position fixes from NMEA file.

    Horizontal accuracy is estimated as HDOP * config.NMEA_UERE_M; vertical
    accuracy as HDOP * config.NMEA_ALTITUDE_UERE_M. A time of day smaller
    than the previous one by more than 12 hours is a midnight rollover.

    Args:
        file_path: path to NMEA file

    Returns:
        list of PositionFix in file order
    """
    epochs = {}
    base_date = None
    day_offset = 0
    previous_ms = None

    for _, _, msg in _iter_messages(file_path):
        ts = getattr(msg, 'timestamp', None)
        if ts is None:
            continue
        if base_date is None and getattr(msg, 'datestamp', None):
            base_date = msg.datestamp

        ms = _time_of_day_ms(ts)
        if previous_ms is not None and ms < previous_ms - MS_PER_DAY // 2:
            day_offset += 1
        previous_ms = ms

        key = day_offset * MS_PER_DAY + ms
        epoch = epochs.setdefault(key, {'ms': key})
        kind = msg.sentence_type.lower()
        if kind not in epoch:
            epoch[kind] = msg

    if base_date is None:
        base_date = datetime.now(timezone.utc).date()
        logger.debug(f"No RMC date in {file_path}, assuming {base_date.isoformat()}")

    fixes = []
    for epoch in epochs.values():
        fix = _epoch_to_fix(epoch, base_date)
        if fix is not None:
            fixes.append(fix)
    return fixes


def calculate_gps_frequency(timestamp_milliseconds):
    """
    Calculates GPS frequency in Hz from timestamps in milliseconds.
    """
    if len(timestamp_milliseconds) < 2:
        return 0

    max_interval = getattr(config, 'MAX_GPS_INTERVAL_MS', 5000)
    intervals = np.diff(np.asarray(timestamp_milliseconds, dtype=float))
    valid_intervals = intervals[(intervals > 0) & (intervals < max_interval)]
    if len(valid_intervals) == 0:
        return 0

    average_interval = float(np.mean(valid_intervals))
    return round(1000 / average_interval, 2)


def analyze_nmea_file(nmea_file_path):
    """
    Parse an NMEA log for replay.

    Returns:
        dict: {
            'fixes': list of PositionFix,
            'gps_frequency': float (Hz),
            'gaps': list of gap dicts,
            'first_timestamp': float or None (epoch seconds),
            'duration_s': float,
        }
    """
    fixes = extract_position_fixes(nmea_file_path)
    _, gaps = analyze_nmea_timestamps(nmea_file_path)
    timestamps_ms = [fix.timestamp * MS_TO_S for fix in fixes]

    return {
        'fixes': fixes,
        'gps_frequency': calculate_gps_frequency(timestamps_ms),
        'gaps': gaps,
        'first_timestamp': fixes[0].timestamp if fixes else None,
        'duration_s': fixes[-1].timestamp - fixes[0].timestamp if fixes else 0.0,
    }
