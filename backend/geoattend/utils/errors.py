"""Typed errors raised by the attendance services."""
from typing import Any, Dict


class AttendanceError(Exception):
    """Base error carrying an HTTP status and a user-facing message."""

    kind = 'error'
    status_code = 400

    def __init__(self, message: str, status_code: int = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code

    def to_dict(self) -> Dict[str, Any]:
        return {
            'error': True,
            'kind': self.kind,
            'message': self.message,
            'status_code': self.status_code
        }


class NotFound(AttendanceError):
    kind = 'not_found'
    status_code = 404


class Forbidden(AttendanceError):
    kind = 'forbidden'
    status_code = 403


class InvalidFormat(AttendanceError):
    kind = 'invalid_format'


class InvalidSignature(AttendanceError):
    kind = 'invalid_signature'


class Expired(AttendanceError):
    kind = 'expired'


class AlreadyMarked(AttendanceError):
    kind = 'already_marked'
    status_code = 409


class AlreadyEnrolled(AttendanceError):
    kind = 'already_enrolled'
    status_code = 409


class ValidationError(AttendanceError):
    kind = 'validation_error'


class Unavailable(AttendanceError):
    """Storage failure; the caller may retry."""

    kind = 'unavailable'
    status_code = 503


class OutOfRange(AttendanceError):
    """Scan made outside the session geofence."""

    kind = 'out_of_range'

    def __init__(self, distance: float, radius: float):
        message = (
            f"You are too far from class location "
            f"({round(distance)}m away, max {radius:g}m allowed)"
        )
        super().__init__(message)
        self.distance = distance
        self.radius = radius

    def to_dict(self) -> Dict[str, Any]:
        result = super().to_dict()
        result['distance'] = round(self.distance)
        result['max_distance'] = self.radius
        return result
