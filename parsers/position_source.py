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
Position watch over a recorded or live fix stream.
"""
import logging
import os
import sys

# Add parent directory to path for core import
PARENT_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if PARENT_DIR not in sys.path:
    sys.path.insert(0, PARENT_DIR)

from core.normalizer import normalize_fix, InvalidFixError

logger = logging.getLogger('position_source')


def watch_position(fixes, on_fix, on_error=None, options=None):
    """
    Deliver fixes to a handler in arrival order.

    Each raw item is normalized first; items that fail validation go to
    on_error and the watch continues.

    Args:
        fixes: iterable of raw fixes (PositionFix or mappings)
        on_fix: callable(PositionFix)
        on_error: callable(exception) or None
        options: dict; 'limit' stops after that many delivered fixes

    Returns:
        int: number of fixes delivered to on_fix
    """
    options = options or {}
    limit = options.get('limit')
    delivered = 0

    for raw in fixes:
        if limit is not None and delivered >= limit:
            break
        try:
            fix = normalize_fix(raw)
        except InvalidFixError as e:
            logger.debug(f"Malformed fix skipped: {e}")
            if on_error is not None:
                on_error(e)
            continue
        on_fix(fix)
        delivered += 1

    return delivered
