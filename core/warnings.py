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
Warning and notification generation module.
Single point for all run-quality warning logic.
"""

import logging

# Import config for threshold values
try:
    from .. import config
    from ..locales.strings import WARNINGS, CAUTIONS
except ImportError:
    import config
    from locales.strings import WARNINGS, CAUTIONS

from .structures import FIX_JITTER, FIX_OUTLIER

logger = logging.getLogger(__name__)


def compute_warnings(report, gps_frequency=None, gaps=None, incline_threshold=None):
    """
    Unified function for computing all warnings.

    Args:
        report: dict produced by core.replay.replay_fixes
        gps_frequency: float, GPS frequency in Hz
        gaps: list of gap dicts from parsers.nmea_handler.analyze_nmea_timestamps
        incline_threshold: downhill threshold used for the run (default: config.INCLINE_THRESHOLD_DEG)

    Returns:
        tuple: (warnings: dict, cautions: dict)
    """
    warnings = {}
    cautions = {}

    # 1. Downhill results
    _check_incline(report, warnings, incline_threshold)

    # 2. GPS lock
    _check_lock(report, warnings, cautions)

    # 3. Rejected fixes
    _check_rejections(report, warnings, cautions)

    # 4. GPS frequency
    _check_gps_frequency(gps_frequency, warnings)

    # 5. Log gaps
    _check_gaps(gaps, warnings, cautions)

    # 6. Session persistence
    if report.get('fix_count') and not report.get('records'):
        cautions['session_not_saved'] = CAUTIONS['session_not_saved']

    return warnings, cautions


def _check_incline(report, warnings, threshold=None):
    if report.get('incline_invalid'):
        if threshold is None:
            threshold = getattr(config, 'INCLINE_THRESHOLD_DEG', 2.0)
        warnings['downhill'] = WARNINGS['downhill'].format(threshold=threshold)


def _check_lock(report, warnings, cautions):
    """Check share of fixes with GPS lock."""
    if not report.get('fix_count'):
        return

    ratio = report.get('locked_ratio', 0.0)
    if ratio < getattr(config, 'LOCK_WARNING_RATIO', 0.5):
        warnings['gps_lock'] = WARNINGS['low_lock_ratio'].format(ratio=ratio)
    elif ratio < getattr(config, 'LOCK_CAUTION_RATIO', 0.9):
        cautions['gps_lock'] = CAUTIONS['low_lock_ratio'].format(ratio=1 - ratio)


def _check_rejections(report, warnings, cautions):
    """Check jitter and outlier statistics."""
    total = report.get('fix_count', 0)
    if not total:
        return

    counts = report.get('status_counts', {})

    outliers = counts.get(FIX_OUTLIER, 0)
    outlier_ratio = outliers / total
    if outlier_ratio > getattr(config, 'OUTLIER_WARNING_RATIO', 0.05):
        warnings['outliers'] = WARNINGS['outliers'].format(ratio=outlier_ratio, count=outliers)

    jitter = counts.get(FIX_JITTER, 0)
    jitter_ratio = jitter / total
    if jitter_ratio > getattr(config, 'JITTER_CAUTION_RATIO', 0.3):
        cautions['jitter'] = CAUTIONS['jitter'].format(ratio=jitter_ratio, count=jitter)


def _check_gps_frequency(gps_frequency, warnings):
    """Check GPS frequency."""
    if not gps_frequency:
        return

    low_freq = getattr(config, 'LOW_GPS_FREQUENCY_HZ', 0.5)
    if gps_frequency < low_freq:
        warnings['gps_frequency'] = WARNINGS['low_gps_frequency'].format(
            freq=gps_frequency, threshold=low_freq
        )


def _check_gaps(gaps, warnings, cautions):
    """Check gaps in the GPS log."""
    if not gaps:
        return

    gap_count = len(gaps)
    if gap_count > getattr(config, 'LOG_GAP_WARNING_COUNT', 10):
        warnings['log_issue'] = WARNINGS['log_issue'].format(count=gap_count)
    else:
        cautions['log_issue'] = CAUTIONS['log_issue'].format(count=gap_count)
    logger.debug(f"{gap_count} gaps in GPS log")
