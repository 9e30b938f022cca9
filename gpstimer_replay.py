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
GPSTimer CLI entry point.

Replays a recorded NMEA log through the speed/session engine and prints
the timers and session records it produces as JSON.
"""
import json
import os
import sys
import argparse
import logging

# Add script directory to path for imports
SCRIPT_DIR = os.path.dirname(os.path.abspath(__file__))
if SCRIPT_DIR not in sys.path:
    sys.path.insert(0, SCRIPT_DIR)

from core.engine import SpeedSessionEngine
from core.helpers import kmh_to_mph
from core.replay import replay_fixes
from core.session import format_duration
from core.warnings import compute_warnings
from parsers.nmea_handler import analyze_nmea_file
from locales.strings import ERRORS

logging.basicConfig(
    level=logging.ERROR,
    format='%(levelname)s: %(message)s',
    stream=sys.stderr
)
logger = logging.getLogger('gpstimer_replay')

def format_json_response(report, nmea_result, warnings_dict=None, cautions_dict=None):
    """
    Format JSON response for CLI output.

    Args:
        report: replay report from core.replay.replay_fixes
        nmea_result: parsed file from parsers.nmea_handler.analyze_nmea_file
        warnings_dict: warnings
        cautions_dict: cautions

    Returns:
        dict with JSON response
    """
    duration_s = nmea_result.get('duration_s', 0.0)
    response = {
        "success": True,
        "session": {
            "fix_count": report['fix_count'],
            "locked_ratio": round(report['locked_ratio'], 3),
            "status_counts": report['status_counts'],
            "vmax_kmh": round(report['vmax_kmh'], 2),
            "vmax_mph": round(kmh_to_mph(report['vmax_kmh']), 2),
            "distance_km": round(report['session_distance_km'], 3),
            "track_distance_km": round(report['track_distance_km'], 3),
            "duration_s": round(duration_s, 1),
            "duration_formatted": format_duration(duration_s),
        },
        "timers": report['timers_formatted'],
        "records": report['records'],
    }

    if nmea_result.get('gps_frequency'):
        response["gps_frequency"] = nmea_result['gps_frequency']

    if warnings_dict:
        response["warning"] = warnings_dict

    if cautions_dict:
        response["caution"] = cautions_dict

    return response

def _fail(message):
    print(json.dumps({"success": False, "error": message}, ensure_ascii=False, indent=2))
    sys.exit(1)

def main():
    """CLI entry point."""
    parser = argparse.ArgumentParser(description='Performance timer replay from NMEA data')
    parser.add_argument('nmea_file', help='Path to NMEA file')
    parser.add_argument('--device-id', dest='device_id', help='Device identifier for session records', default='replay')
    parser.add_argument('--incline-threshold', dest='incline_threshold', type=float,
                        help='Downhill threshold in degrees', default=None)
    parser.add_argument('--tick-ms', dest='tick_ms', type=int, help='Display refresh period in ms', default=None)
    parser.add_argument('--verbose', action='store_true', help='Log debug output to stderr')
    args = parser.parse_args()

    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    try:
        if not os.path.exists(args.nmea_file):
            _fail(ERRORS['file_not_found'].format(file_path=args.nmea_file))

        nmea_result = analyze_nmea_file(args.nmea_file)
        if not nmea_result['fixes']:
            _fail(ERRORS['no_fixes'].format(file_path=args.nmea_file))

        settings = {}
        if args.incline_threshold is not None:
            settings['INCLINE_THRESHOLD_DEG'] = args.incline_threshold
        if args.tick_ms is not None:
            settings['INTERPOLATION_TICK_MS'] = args.tick_ms

        engine = SpeedSessionEngine(args.device_id, settings=settings)
        report = replay_fixes(engine, nmea_result['fixes'])
        engine.teardown()

        warnings_dict, cautions_dict = compute_warnings(
            report,
            nmea_result.get('gps_frequency'),
            nmea_result.get('gaps'),
            incline_threshold=engine.settings['INCLINE_THRESHOLD_DEG'],
        )

        response = format_json_response(report, nmea_result, warnings_dict, cautions_dict)
        print(json.dumps(response, ensure_ascii=False, indent=2))

    except Exception as e:
        logger.debug("Replay failed", exc_info=True)
        _fail(ERRORS['replay_failed'].format(error=str(e)))

if __name__ == "__main__":
    main()
