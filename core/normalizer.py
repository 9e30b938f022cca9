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
Position fix normalization and GPS lock detection.

Raw fixes arrive either as PositionFix tuples (NMEA replay) or as mappings
shaped like the browser Geolocation API::

    {'coords': {'latitude': .., 'longitude': .., 'altitude': ..,
                'altitudeAccuracy': .., 'accuracy': .., 'satellites': ..},
     'timestamp': <epoch ms>}

Flat mappings with snake_case keys and a timestamp in seconds are also
accepted.
"""
import math

try:
    from .. import config
except ImportError:
    import config

from .structures import PositionFix, MS_TO_S

# Browser-style key -> PositionFix field
_CAMEL_KEYS = {
    'latitude': 'latitude',
    'longitude': 'longitude',
    'altitude': 'altitude',
    'altitudeAccuracy': 'altitude_accuracy',
    'accuracy': 'horizontal_accuracy',
    'satellites': 'satellite_count',
}


class InvalidFixError(ValueError):
    """Raised when a raw fix cannot be turned into a PositionFix."""


def _optional_float(value, name):
    if value is None:
        return None
    try:
        result = float(value)
    except (TypeError, ValueError):
        raise InvalidFixError(f"{name} is not a number: {value!r}")
    if not math.isfinite(result):
        return None
    return result


def _required_float(value, name):
    result = _optional_float(value, name)
    if result is None:
        raise InvalidFixError(f"{name} is missing")
    return result


def normalize_fix(raw):
    """
    Validate a raw fix and convert it to a PositionFix.

    Args:
        raw: PositionFix, browser-style mapping or flat snake_case mapping

    Returns:
        PositionFix

    Raises:
        InvalidFixError: missing or out-of-range coordinates / timestamp
    """
    if isinstance(raw, PositionFix):
        fields = raw._asdict()
    elif isinstance(raw, dict) and 'coords' in raw:
        coords = raw['coords'] or {}
        fields = {field: coords.get(key) for key, field in _CAMEL_KEYS.items()}
        # Browser timestamps are epoch milliseconds
        ts = raw.get('timestamp')
        fields['timestamp'] = None if ts is None else _required_float(ts, 'timestamp') / MS_TO_S
    elif isinstance(raw, dict):
        fields = {field: raw.get(field) for field in PositionFix._fields}
    else:
        raise InvalidFixError(f"Unsupported fix type: {type(raw).__name__}")

    lat = _required_float(fields['latitude'], 'latitude')
    lon = _required_float(fields['longitude'], 'longitude')
    if not -90.0 <= lat <= 90.0:
        raise InvalidFixError(f"latitude out of range: {lat}")
    if not -180.0 <= lon <= 180.0:
        raise InvalidFixError(f"longitude out of range: {lon}")

    sats = fields['satellite_count']
    if sats is not None:
        try:
            sats = int(sats)
        except (TypeError, ValueError):
            sats = None

    return PositionFix(
        latitude=lat,
        longitude=lon,
        altitude=_optional_float(fields['altitude'], 'altitude'),
        altitude_accuracy=_optional_float(fields['altitude_accuracy'], 'altitude_accuracy'),
        horizontal_accuracy=_optional_float(fields['horizontal_accuracy'], 'horizontal_accuracy'),
        satellite_count=sats,
        timestamp=_required_float(fields['timestamp'], 'timestamp'),
    )


def is_gps_locked(fix, max_accuracy_m=None, min_satellites=None):
    """
    Decide whether a fix is trustworthy enough for speed processing.

    Most devices don't expose satellite count, so horizontal accuracy is
    used as a proxy; satellite count is used when available.

    Args:
        fix: PositionFix
        max_accuracy_m: accuracy ceiling (default: config.MAX_HORIZONTAL_ACCURACY_M)
        min_satellites: satellite floor (default: config.MIN_SATELLITES)

    Returns:
        bool
    """
    if max_accuracy_m is None:
        max_accuracy_m = getattr(config, 'MAX_HORIZONTAL_ACCURACY_M', 20.0)
    if min_satellites is None:
        min_satellites = getattr(config, 'MIN_SATELLITES', 4)

    good_accuracy = fix.horizontal_accuracy is not None and fix.horizontal_accuracy < max_accuracy_m
    enough_sats = fix.satellite_count is not None and fix.satellite_count >= min_satellites
    return good_accuracy or enough_sats
