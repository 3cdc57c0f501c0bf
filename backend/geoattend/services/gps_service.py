# backend/geoattend/services/gps_service.py
"""GPS verification service."""
import math
from typing import Dict

EARTH_RADIUS_METERS = 6371000

class GPSService:
    """Service for GPS and location verification."""

    @staticmethod
    def distance_meters(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
        """Great-circle (Haversine) distance between two GPS points in meters.

        Inputs are not validated; callers check them with
        ``Validator.validate_coordinates`` first.
        """
        lat1_rad = math.radians(lat1)
        lat2_rad = math.radians(lat2)
        delta_lat = math.radians(lat2 - lat1)
        delta_lon = math.radians(lon2 - lon1)

        a = (math.sin(delta_lat/2) ** 2 +
             math.cos(lat1_rad) * math.cos(lat2_rad) *
             math.sin(delta_lon/2) ** 2)
        c = 2 * math.atan2(math.sqrt(a), math.sqrt(1-a))

        return EARTH_RADIUS_METERS * c

    @staticmethod
    def check_geofence(latitude: float, longitude: float, geofence) -> Dict:
        """Verify if a point lies inside a circular geofence (boundary included)."""
        distance = GPSService.distance_meters(
            latitude, longitude,
            geofence.lat, geofence.lon
        )

        return {
            'is_inside': distance <= geofence.radius,
            'distance': distance,
            'radius': geofence.radius,
            'center': {
                'latitude': geofence.lat,
                'longitude': geofence.lon
            }
        }
