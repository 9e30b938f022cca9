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

"""Fire-and-forget calls to external collaborators (speed log, session store)."""
import logging
from dataclasses import dataclass
from typing import Optional

logger = logging.getLogger(__name__)

OP_LOG_SPEED = 'log_speed'
OP_SAVE_SESSION = 'save_session'


@dataclass
class DispatchResult:
    """Outcome of one collaborator call."""
    operation: str
    ok: bool
    error: Optional[str] = None


def dispatch(operation, func, *args):
    """
    Call a collaborator without letting its failure reach the caller.

    Args:
        operation: operation name (OP_LOG_SPEED, OP_SAVE_SESSION)
        func: collaborator callable or None (not configured)
        *args: call arguments

    Returns:
        DispatchResult
    """
    if func is None:
        return DispatchResult(operation, ok=False, error='not configured')
    try:
        func(*args)
    except Exception as e:
        logger.warning(f"{operation} failed: {e}")
        return DispatchResult(operation, ok=False, error=str(e))
    return DispatchResult(operation, ok=True)
