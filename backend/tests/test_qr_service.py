"""Tests for QR token issue, verification and parsing."""
import json
from dataclasses import replace

import pytest

from conftest import FakeClock
from geoattend.services.qr_service import Geofence, QRTokenService
from geoattend.utils.errors import Expired, InvalidFormat, InvalidSignature

GEOFENCE = Geofence(12.0, 77.0, 50.0)

@pytest.fixture
def clock():
    return FakeClock(1_700_000_000.0)

@pytest.fixture
def service(clock):
    return QRTokenService('unit-test-secret', clock=clock)

@pytest.fixture
def token(service):
    return service.issue_token('session-1', 'course-1', 'faculty-1', GEOFENCE, validity_seconds=300)

def test_issue_stamps_time_and_expiry(token):
    assert token.timestamp == 1_700_000_000_000
    assert token.expires_at == token.timestamp + 300 * 1000
    assert len(token.signature) == 64

def test_token_valid_right_after_issue(service, token):
    result = service.verify_token(token)
    assert result.valid is True
    assert result.reason is None

def test_token_expires_at_exact_instant(service, clock, token):
    clock.now = 1_700_000_299.999
    assert service.verify_token(token).valid is True

    clock.now = 1_700_000_300.0
    result = service.verify_token(token)
    assert result.valid is False
    assert result.reason == QRTokenService.EXPIRED

def test_expiry_is_monotonic(service, clock, token):
    clock.advance(301)
    for _ in range(5):
        assert service.verify_token(token).valid is False
        clock.advance(60)

@pytest.mark.parametrize('changes', [
    {'session_id': 'session-2'},
    {'course_id': 'course-2'},
    {'faculty_id': 'faculty-2'},
    {'timestamp': 1_700_000_000_001},
    {'expires_at': 1_800_000_000_000},
    {'geofence': Geofence(12.0, 77.0, 5000.0)},
    {'geofence': None},
    {'signature': '0' * 64},
])
def test_tampering_breaks_signature(service, token, changes):
    result = service.verify_token(replace(token, **changes))
    assert result.valid is False
    assert result.reason == QRTokenService.INVALID_SIGNATURE

def test_signature_checked_before_expiry(service, clock, token):
    clock.advance(1000)
    result = service.verify_token(replace(token, session_id='other'))
    assert result.reason == QRTokenService.INVALID_SIGNATURE

def test_other_secret_rejects_token(clock, token):
    other = QRTokenService('another-secret', clock=clock)
    assert other.verify_token(token).reason == QRTokenService.INVALID_SIGNATURE

def test_ensure_valid_raises_typed_errors(service, clock, token):
    with pytest.raises(InvalidSignature):
        service.ensure_valid(replace(token, session_id='other'))

    clock.advance(300)
    with pytest.raises(Expired):
        service.ensure_valid(token)

def test_serialized_payload_has_wire_fields(token):
    payload = json.loads(QRTokenService.serialize(token))

    assert set(payload) == {
        'sessionId', 'courseId', 'facultyId', 'timestamp',
        'expiresAt', 'geofence', 'signature'
    }
    assert payload['geofence'] == {'lat': 12.0, 'lon': 77.0, 'radius': 50.0}

def test_parsed_token_still_verifies(service, token):
    raw = QRTokenService.serialize(token)
    parsed = QRTokenService.parse_token(raw)

    assert parsed == token
    assert service.verify_token(parsed).valid is True

def test_parse_accepts_reordered_keys(service, token):
    payload = token.to_payload()
    reordered = json.dumps(dict(reversed(list(payload.items()))))
    assert service.verify_token(QRTokenService.parse_token(reordered)).valid is True

def test_token_without_geofence(service):
    token = service.issue_token('session-1', 'course-1', 'faculty-1', None)
    parsed = QRTokenService.parse_token(QRTokenService.serialize(token))

    assert parsed.geofence is None
    assert service.verify_token(parsed).valid is True

@pytest.mark.parametrize('raw', [
    'not json',
    '[]',
    '"just a string"',
    None,
    json.dumps({'sessionId': 's', 'courseId': 'c', 'facultyId': 'f',
                'timestamp': 1, 'expiresAt': 2}),
    json.dumps({'sessionId': 's', 'courseId': 'c', 'facultyId': 'f',
                'timestamp': '1', 'expiresAt': 2, 'signature': 'x'}),
    json.dumps({'sessionId': 's', 'courseId': 'c', 'facultyId': 'f',
                'timestamp': True, 'expiresAt': 2, 'signature': 'x'}),
    json.dumps({'sessionId': 's', 'courseId': 'c', 'facultyId': 'f',
                'timestamp': 1, 'expiresAt': 2, 'signature': 'x',
                'geofence': {'lat': 1, 'lon': 'east', 'radius': 5}}),
])
def test_parse_rejects_malformed_payloads(raw):
    with pytest.raises(InvalidFormat):
        QRTokenService.parse_token(raw)

def test_render_qr_image_is_png_data_uri(token):
    image = QRTokenService.render_qr_image(QRTokenService.serialize(token))
    assert image.startswith('data:image/png;base64,')

def test_secret_is_required():
    with pytest.raises(ValueError):
        QRTokenService('')
