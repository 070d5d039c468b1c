"""
Geofence
--------

Decides whether a user is close enough to the front door to open it,
using the great-circle (haversine) distance between two points.

Locations are :class:`~shapely.geometry.Point` objects in GeoJSON
order, meaning ``Point(longitude, latitude)``.
"""

from dataclasses import dataclass
from math import radians, sin, cos, atan2, sqrt

from shapely.geometry import Point

EARTH_RADIUS_KM = 6371.0
"""The mean radius of the earth."""

DEFAULT_THRESHOLD_KM = 0.05
"""The default radius around the door in which it can be unlocked (50 meters)."""


@dataclass(frozen=True)
class GeofenceResult:
    granted: bool
    distance: float
    """The distance between the client and the site, in kilometers."""
    site: Point


def distance(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Gets the great-circle distance in kilometers between two coordinates."""
    d_lat = radians(lat2 - lat1)
    d_lon = radians(lon2 - lon1)

    a = sin(d_lat / 2) ** 2 + cos(radians(lat1)) * cos(radians(lat2)) * sin(d_lon / 2) ** 2
    c = 2 * atan2(sqrt(a), sqrt(1 - a))

    return EARTH_RADIUS_KM * c


def authorize(
    client_lat: float, client_lon: float, site_lat: float, site_lon: float,
    threshold_km: float = DEFAULT_THRESHOLD_KM
) -> GeofenceResult:
    """Grants access iff the client is within ``threshold_km`` of the site."""
    client_distance = distance(client_lat, client_lon, site_lat, site_lon)
    return GeofenceResult(client_distance <= threshold_km, client_distance, Point(site_lon, site_lat))


class Geofence:
    """A geofence around a fixed site, such as the studio's front door."""

    def __init__(self, site: Point, threshold_km: float = DEFAULT_THRESHOLD_KM):
        self.site = site
        self.threshold_km = threshold_km

    def authorize(self, latitude: float, longitude: float) -> GeofenceResult:
        return authorize(latitude, longitude, self.site.y, self.site.x, self.threshold_km)
