# backend/geoattend/services/qr_service.py
"""QR token generation and verification service.

A token is the JSON object embedded in the scannable code::

    {"sessionId": ..., "courseId": ..., "facultyId": ...,
     "timestamp": <ms>, "expiresAt": <ms>,
     "geofence": {"lat": ..., "lon": ..., "radius": ...} | null,
     "signature": <hex HMAC-SHA256>}

The signature covers every other field, so verification needs nothing but
the token itself and the server secret.
"""
import base64
import hashlib
import hmac
import io
import json
import time
from dataclasses import dataclass, replace
from typing import Any, Callable, Dict, Optional, Union

import qrcode
from flask import current_app

from geoattend.utils.errors import Expired, InvalidFormat, InvalidSignature

@dataclass(frozen=True)
class Geofence:
    """Circular zone within which a scan is accepted."""

    lat: float
    lon: float
    radius: float

    def to_dict(self) -> Dict[str, float]:
        return {'lat': self.lat, 'lon': self.lon, 'radius': self.radius}

@dataclass(frozen=True)
class QRToken:
    """Signed, expiring attendance credential for one session."""

    session_id: str
    course_id: str
    faculty_id: str
    timestamp: int
    expires_at: int
    geofence: Optional[Geofence]
    signature: str = ''

    def signed_fields(self) -> Dict[str, Any]:
        return {
            'sessionId': self.session_id,
            'courseId': self.course_id,
            'facultyId': self.faculty_id,
            'timestamp': self.timestamp,
            'expiresAt': self.expires_at,
            'geofence': self.geofence.to_dict() if self.geofence else None,
        }

    def to_payload(self) -> Dict[str, Any]:
        payload = self.signed_fields()
        payload['signature'] = self.signature
        return payload

@dataclass(frozen=True)
class VerificationResult:
    valid: bool
    reason: Optional[str] = None

class QRTokenService:
    """Issues and verifies QR tokens with an injected secret and clock."""

    INVALID_SIGNATURE = 'invalid_signature'
    EXPIRED = 'expired'

    def __init__(self, secret: str, clock: Callable[[], float] = time.time):
        if not secret:
            raise ValueError("QR_SECRET must be configured")
        self._secret = secret.encode('utf-8')
        self._clock = clock

    def now_ms(self) -> int:
        """Current time in epoch milliseconds."""
        return int(self._clock() * 1000)

    def sign(self, token: QRToken) -> str:
        message = json.dumps(token.signed_fields(), sort_keys=True, separators=(',', ':'))
        return hmac.new(self._secret, message.encode('utf-8'), hashlib.sha256).hexdigest()

    def issue_token(
        self,
        session_id: str,
        course_id: str,
        faculty_id: str,
        geofence: Optional[Geofence],
        validity_seconds: int = 300
    ) -> QRToken:
        """Create a signed token valid for ``validity_seconds`` from now."""
        issued_at = self.now_ms()
        token = QRToken(
            session_id=session_id,
            course_id=course_id,
            faculty_id=faculty_id,
            timestamp=issued_at,
            expires_at=issued_at + int(validity_seconds * 1000),
            geofence=geofence
        )
        return replace(token, signature=self.sign(token))

    def verify_token(self, token: QRToken) -> VerificationResult:
        """Check signature, then expiry. Fails closed."""
        expected = self.sign(token)
        if not hmac.compare_digest(expected.encode('utf-8'), token.signature.encode('utf-8')):
            return VerificationResult(False, self.INVALID_SIGNATURE)

        if self.now_ms() >= token.expires_at:
            return VerificationResult(False, self.EXPIRED)

        return VerificationResult(True)

    def ensure_valid(self, token: QRToken) -> None:
        """Raise the typed error matching a failed verification."""
        result = self.verify_token(token)
        if result.reason == self.INVALID_SIGNATURE:
            raise InvalidSignature("Invalid QR signature")
        if result.reason == self.EXPIRED:
            raise Expired("QR code has expired")

    @staticmethod
    def serialize(token: QRToken) -> str:
        return json.dumps(token.to_payload(), separators=(',', ':'))

    @staticmethod
    def parse_token(raw: Union[str, bytes, Dict]) -> QRToken:
        """Parse the scanned payload; raises InvalidFormat when malformed."""
        if isinstance(raw, dict):
            data = raw
        else:
            try:
                data = json.loads(raw)
            except (TypeError, ValueError):
                raise InvalidFormat("Invalid QR code format")

        if not isinstance(data, dict):
            raise InvalidFormat("Invalid QR code format")

        for field in ('sessionId', 'courseId', 'facultyId', 'signature'):
            if not isinstance(data.get(field), str) or not data[field]:
                raise InvalidFormat(f"Invalid QR code format: missing {field}")

        for field in ('timestamp', 'expiresAt'):
            if not _is_integer(data.get(field)):
                raise InvalidFormat(f"Invalid QR code format: missing {field}")

        geofence = data.get('geofence')
        if geofence is not None:
            if not isinstance(geofence, dict) or not all(
                _is_number(geofence.get(key)) for key in ('lat', 'lon', 'radius')
            ):
                raise InvalidFormat("Invalid QR code format: bad geofence")
            geofence = Geofence(
                float(geofence['lat']), float(geofence['lon']), float(geofence['radius'])
            )

        return QRToken(
            session_id=data['sessionId'],
            course_id=data['courseId'],
            faculty_id=data['facultyId'],
            timestamp=data['timestamp'],
            expires_at=data['expiresAt'],
            geofence=geofence,
            signature=data['signature']
        )

    @staticmethod
    def render_qr_image(qr_string: str) -> str:
        """Render the payload as a PNG data URI."""
        qr = qrcode.QRCode(
            version=None,  # Auto-determine size
            error_correction=qrcode.constants.ERROR_CORRECT_H,
            box_size=10,
            border=4,
        )
        qr.add_data(qr_string)
        qr.make(fit=True)

        img = qr.make_image(fill_color="black", back_color="white")

        buffered = io.BytesIO()
        img.save(buffered, format="PNG")
        img_str = base64.b64encode(buffered.getvalue()).decode()

        return f"data:image/png;base64,{img_str}"

def _is_integer(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)

def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)

def current_qr_service() -> QRTokenService:
    """Token service bound to the running application."""
    return current_app.extensions['qr_tokens']
