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
Session record assembly and stored timer handling.

A session is packaged for persistence only if it contains a meaningful
amount of driving; parking-lot shuffles are discarded. Stored timers are
read back tolerantly: older records keep timers as display strings and
some rows contain broken JSON.
"""
import copy
import json
import logging
import re

try:
    from .. import config
except ImportError:
    import config

from .helpers import to_iso8601
from .structures import TIMER_TIME, TIMER_INVALID, TIMER_SPEED_AT_MARK

logger = logging.getLogger(__name__)

# "9.87s @ 238.2 km/h" or "2.41s"
_TIMER_TEXT = re.compile(r'^\s*(\d+(?:\.\d+)?)\s*s(?:\s*@\s*(\d+(?:\.\d+)?)\s*km/h)?\s*$')


def should_save_session(session_start, vmax, session_distance, min_vmax=None, min_distance=None):
    """True if a session is worth persisting."""
    if min_vmax is None:
        min_vmax = getattr(config, 'SESSION_MIN_VMAX_KMH', 5.0)
    if min_distance is None:
        min_distance = getattr(config, 'SESSION_MIN_DISTANCE_KM', 0.1)
    return session_start is not None and vmax > min_vmax and session_distance > min_distance


def build_session_record(device_id, session_start, now, vmax, distance, timers, on_incline):
    """
    Package session state for the save_session collaborator.

    Args:
        device_id: device identifier
        session_start: session start (epoch seconds)
        now: session end (epoch seconds)
        vmax: session maximum speed (km/h)
        distance: cumulative session distance (km)
        timers: timer map (copied)
        on_incline: True if any result was achieved downhill

    Returns:
        dict: session record
    """
    return {
        'deviceId': device_id,
        'startTime': to_iso8601(session_start),
        'endTime': to_iso8601(now),
        'vMax': vmax,
        'distance': distance,
        'duration': int(now - session_start),
        'timers': copy.deepcopy(timers),
        'onIncline': bool(on_incline),
    }


def format_timer(entry):
    """
    Display string for a timer entry: "2.41s" or "9.87s @ 238.2 km/h".
    """
    text = f"{entry[TIMER_TIME]:.2f}s"
    if entry.get(TIMER_SPEED_AT_MARK) is not None:
        text += f" @ {entry[TIMER_SPEED_AT_MARK]:.1f} km/h"
    return text


def _parse_timer_entry(value):
    if isinstance(value, dict):
        raw_time = value.get(TIMER_TIME)
        invalid = bool(value.get(TIMER_INVALID, False))
        speed = value.get(TIMER_SPEED_AT_MARK)
    else:
        raw_time, invalid, speed = value, False, None

    if isinstance(raw_time, str):
        match = _TIMER_TEXT.match(raw_time)
        if not match:
            raise ValueError(f"Unrecognized timer value: {raw_time!r}")
        raw_time = match.group(1)
        if match.group(2) is not None and speed is None:
            speed = match.group(2)

    entry = {TIMER_TIME: float(raw_time), TIMER_INVALID: invalid}
    if speed is not None:
        entry[TIMER_SPEED_AT_MARK] = float(speed)
    return entry


def parse_timers(raw):
    """
    Read back a stored timer map.

    Accepts a JSON string or a dict whose values are timer entries or
    legacy display strings. Any malformed input yields an empty map.

    Returns:
        dict: milestone name -> timer entry
    """
    if raw is None:
        return {}
    try:
        data = json.loads(raw) if isinstance(raw, (str, bytes)) else raw
        if not isinstance(data, dict):
            raise ValueError(f"Timer data is not a mapping: {type(data).__name__}")
        return {str(name): _parse_timer_entry(value) for name, value in data.items()}
    except (TypeError, ValueError) as e:
        logger.warning(f"Discarding malformed timer data: {e}")
        return {}


def best_times(records):
    """
    Best (lowest) time per milestone across stored session records.

    Args:
        records: iterable of session records (dicts with a 'timers' field)

    Returns:
        dict: milestone name -> best time in seconds
    """
    best = {}
    for record in records:
        for name, entry in parse_timers(record.get('timers')).items():
            value = entry[TIMER_TIME]
            if name not in best or value < best[name]:
                best[name] = value
    return best


def format_duration(seconds):
    """Format seconds as "1h 2m 3s", "2m 3s" or "3s"."""
    seconds = int(seconds)
    hrs = seconds // 3600
    mins = (seconds % 3600) // 60
    secs = seconds % 60

    if hrs > 0:
        return f"{hrs}h {mins}m {secs}s"
    if mins > 0:
        return f"{mins}m {secs}s"
    return f"{secs}s"
