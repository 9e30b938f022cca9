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
Geodesy and unit helpers.
Great-circle distance, bearing, unit conversion and settings resolution.
"""
import copy
import math
from datetime import datetime, timezone

import numpy as np

try:
    from .. import config
except ImportError:
    import config


def haversine(lat1, lon1, lat2, lon2, radius_km=None):
    """
    Great-circle distance between two coordinates.

    Args:
        lat1: Latitude of first point (degrees)
        lon1: Longitude of first point (degrees)
        lat2: Latitude of second point (degrees)
        lon2: Longitude of second point (degrees)
        radius_km: Earth radius (default: config.EARTH_RADIUS_KM)

    Returns:
        float: distance in km
    """
    if radius_km is None:
        radius_km = getattr(config, 'EARTH_RADIUS_KM', 6371.0)

    dlat = math.radians(lat2 - lat1)
    dlon = math.radians(lon2 - lon1)
    a = (math.sin(dlat / 2) ** 2 +
         math.cos(math.radians(lat1)) * math.cos(math.radians(lat2)) *
         math.sin(dlon / 2) ** 2)
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return radius_km * c


def haversine_array(lats, lons, radius_km=None):
    """
    Vectorized haversine over consecutive points of a track.

    Args:
        lats: array of latitudes (degrees)
        lons: array of longitudes (degrees)
        radius_km: Earth radius (default: config.EARTH_RADIUS_KM)

    Returns:
        np.ndarray: segment distances in km (length n-1)
    """
    if radius_km is None:
        radius_km = getattr(config, 'EARTH_RADIUS_KM', 6371.0)

    lats = np.radians(np.asarray(lats, dtype=float))
    lons = np.radians(np.asarray(lons, dtype=float))
    if len(lats) < 2:
        return np.zeros(0)

    dlat = np.diff(lats)
    dlon = np.diff(lons)
    a = np.sin(dlat / 2) ** 2 + np.cos(lats[:-1]) * np.cos(lats[1:]) * np.sin(dlon / 2) ** 2
    # Clip guards sqrt(1 - a) against rounding above 1
    a = np.clip(a, 0.0, 1.0)
    return radius_km * 2 * np.arctan2(np.sqrt(a), np.sqrt(1 - a))


def track_distance(lats, lons):
    """Total path length of a track in km."""
    return float(np.sum(haversine_array(lats, lons)))


def calculate_bearing(lat1, lon1, lat2, lon2):
    """
    Calculate initial bearing from point 1 to point 2.

    Convention: navigation bearing, 0° = North, 90° = East.

    Returns:
        float: Bearing in degrees (0-360)
    """
    lat1_rad = math.radians(lat1)
    lat2_rad = math.radians(lat2)
    dlon_rad = math.radians(lon2 - lon1)

    y = math.sin(dlon_rad) * math.cos(lat2_rad)
    x = (math.cos(lat1_rad) * math.sin(lat2_rad) -
         math.sin(lat1_rad) * math.cos(lat2_rad) * math.cos(dlon_rad))

    bearing_deg = math.degrees(math.atan2(y, x))
    return (bearing_deg + 360) % 360


def kmh_to_mph(kmh):
    return kmh * getattr(config, 'KMH_TO_MPH', 0.621371)


def to_iso8601(timestamp):
    """Epoch seconds -> ISO-8601 UTC string with milliseconds."""
    dt = datetime.fromtimestamp(timestamp, tz=timezone.utc)
    return dt.isoformat(timespec='milliseconds').replace('+00:00', 'Z')


def resolve_settings(overrides=None):
    """
    Build the effective settings dict for an engine instance.

    Starts from the module-level values in config for every name in
    config.TUNABLE_SETTINGS and applies overrides on top.

    Args:
        overrides: dict of setting name -> value (upper-case config names)

    Returns:
        dict: setting name -> value

    Raises:
        ValueError: if an override names an unknown setting
    """
    settings = {
        name: copy.deepcopy(getattr(config, name))
        for name in config.TUNABLE_SETTINGS
    }
    for name, value in (overrides or {}).items():
        if name not in settings:
            raise ValueError(f"Unknown setting: {name}")
        settings[name] = value
    return settings
