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
Deterministic replay of a recorded fix stream through an engine.

Fix timestamps drive a simulated clock: display ticks are issued at the
engine's tick interval between consecutive fixes, so a replay reproduces
what the live display would have shown.
"""
import logging

from .helpers import track_distance
from .session import format_timer
from .structures import FIX_UNLOCKED, FIX_FIRST, FIX_JITTER, FIX_OUTLIER, FIX_ACCEPTED

logger = logging.getLogger(__name__)


def replay_fixes(engine, fixes, reset_at_end=True, collect_display=False):
    """
    Feed fixes through an engine on a simulated clock.

    Args:
        engine: SpeedSessionEngine
        fixes: iterable of PositionFix in arrival order
        reset_at_end: finalize the session after the last fix
        collect_display: keep the (time, display speed) trace

    Returns:
        dict: {
            'status_counts': dict FIX_* -> count,
            'fix_count': int,
            'locked_ratio': float,
            'vmax_kmh': float,
            'session_distance_km': float,
            'track_distance_km': float,
            'timers': dict name -> timer entry (last run, before reset),
            'timers_formatted': dict name -> display string,
            'incline_invalid': bool,
            'records': list of dispatched session records,
            'display_trace': list of (time, speed) or None,
        }
    """
    counts = {status: 0 for status in (FIX_UNLOCKED, FIX_FIRST, FIX_JITTER, FIX_OUTLIER, FIX_ACCEPTED)}
    trace = [] if collect_display else None
    records = []
    lats, lons = [], []
    tick_interval = engine.interpolator.tick_interval
    next_tick = None
    last_time = None

    for fix in fixes:
        if next_tick is not None and tick_interval > 0:
            while next_tick < fix.timestamp:
                speed = engine.tick(next_tick)
                if trace is not None and speed is not None:
                    trace.append((next_tick, speed))
                next_tick += tick_interval

        status = engine.handle_fix(fix)
        if status is None:
            break
        counts[status] = counts.get(status, 0) + 1
        if status != FIX_UNLOCKED:
            lats.append(fix.latitude)
            lons.append(fix.longitude)
        last_time = fix.timestamp
        if next_tick is None or next_tick < fix.timestamp:
            next_tick = fix.timestamp + tick_interval

    timers = dict(engine.timers.timers)
    incline_invalid = engine.incline_flag or engine.timers.has_invalid()
    summary = {
        'vmax_kmh': engine.vmax,
        'session_distance_km': engine.session_distance,
    }

    if reset_at_end and last_time is not None:
        record = engine.reset(last_time)
        if record is not None:
            records.append(record)

    fix_count = sum(counts.values())
    locked = fix_count - counts[FIX_UNLOCKED]
    report = {
        'status_counts': counts,
        'fix_count': fix_count,
        'locked_ratio': locked / fix_count if fix_count else 0.0,
        'track_distance_km': track_distance(lats, lons),
        'timers': timers,
        'timers_formatted': {name: format_timer(entry) for name, entry in sorted(timers.items())},
        'incline_invalid': incline_invalid,
        'records': records,
        'display_trace': trace,
    }
    report.update(summary)
    logger.debug(f"Replayed {fix_count} fixes, {counts[FIX_ACCEPTED]} accepted")
    return report
