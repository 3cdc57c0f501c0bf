"""Tests for distance and geofence checks."""
import math

import pytest

from geoattend.services.gps_service import GPSService
from geoattend.services.qr_service import Geofence
from geoattend.utils.errors import ValidationError
from geoattend.utils.validators import Validator

PAIRS = [
    ((12.0, 77.0), (12.0003, 77.0)),
    ((51.5074, -0.1278), (48.8566, 2.3522)),
    ((-33.8688, 151.2093), (40.7128, -74.0060)),
    ((0.0, 179.9), (0.0, -179.9)),
]

@pytest.mark.parametrize('a,b', PAIRS)
def test_distance_is_symmetric(a, b):
    assert GPSService.distance_meters(*a, *b) == pytest.approx(GPSService.distance_meters(*b, *a))

@pytest.mark.parametrize('a,_', PAIRS)
def test_distance_to_self_is_zero(a, _):
    assert GPSService.distance_meters(*a, *a) == 0

def test_known_distances():
    # 0.0003 degrees of latitude
    assert GPSService.distance_meters(12.0, 77.0, 12.0003, 77.0) == pytest.approx(33.358, abs=0.01)
    # One degree of longitude on the equator
    one_degree = 6371000 * math.pi / 180
    assert GPSService.distance_meters(0, 0, 0, 1) == pytest.approx(one_degree, rel=1e-9)

def test_check_geofence_includes_boundary():
    distance = GPSService.distance_meters(12.0003, 77.0, 12.0, 77.0)

    inside = GPSService.check_geofence(12.0003, 77.0, Geofence(12.0, 77.0, distance))
    assert inside['is_inside'] is True
    assert inside['distance'] == distance

    outside = GPSService.check_geofence(12.0003, 77.0, Geofence(12.0, 77.0, distance - 1))
    assert outside['is_inside'] is False
    assert outside['radius'] == distance - 1

@pytest.mark.parametrize('lat,lon', [
    (91, 0), (-90.5, 0), (0, 180.01), (float('nan'), 0),
    (0, float('inf')), ('north', 0), (True, 0), (None, 0),
])
def test_validate_coordinates_rejects_bad_input(lat, lon):
    with pytest.raises(ValidationError):
        Validator.validate_coordinates(lat, lon)

def test_validate_coordinates_accepts_numeric_strings():
    assert Validator.validate_coordinates('12.5', -77) == (12.5, -77.0)
