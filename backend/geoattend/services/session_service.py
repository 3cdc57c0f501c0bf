# backend/geoattend/services/session_service.py
"""Attendance session lifecycle: start, refresh QR, stop."""
import logging
from typing import Optional, Tuple

from flask import current_app

from geoattend import db
from geoattend.models.course import Course
from geoattend.models.attendance_session import AttendanceSession, ActiveQR
from geoattend.services.qr_service import Geofence, QRToken, QRTokenService, current_qr_service
from geoattend.utils.errors import Expired, Forbidden, NotFound, ValidationError
from geoattend.utils.helpers import utcnow
from geoattend.utils.validators import Validator

logger = logging.getLogger(__name__)

class SessionService:
    """Service for session start/stop and QR issuance."""

    @staticmethod
    def get_owned_session(faculty_id: str, session_id: str) -> AttendanceSession:
        """Load a session and check the caller owns it."""
        session = db.session.get(AttendanceSession, session_id)
        if not session:
            raise NotFound("Session not found")
        if not session.is_owned_by(faculty_id):
            raise Forbidden("Not authorized for this session")
        return session

    @staticmethod
    def _validity(validity_seconds) -> int:
        config = current_app.config
        if validity_seconds is None:
            validity_seconds = config['QR_DEFAULT_VALIDITY_SECONDS']
        return Validator.validate_validity(
            validity_seconds,
            config['QR_MIN_VALIDITY_SECONDS'],
            config['QR_MAX_VALIDITY_SECONDS']
        )

    @staticmethod
    def _store_active_qr(token: QRToken) -> None:
        """Replace the persisted copy; the previous token stops being accepted."""
        active = db.session.get(ActiveQR, token.session_id)
        if active is None:
            active = ActiveQR(id=token.session_id)
            db.session.add(active)

        active.course_id = token.course_id
        active.faculty_id = token.faculty_id
        active.timestamp = token.timestamp
        active.expires_at = token.expires_at
        active.latitude = token.geofence.lat if token.geofence else None
        active.longitude = token.geofence.lon if token.geofence else None
        active.radius = token.geofence.radius if token.geofence else None
        active.signature = token.signature

    @staticmethod
    def start_session(
        faculty_id: str,
        course_id: str,
        latitude,
        longitude,
        radius=None,
        validity_seconds=None,
        room_number: Optional[str] = None,
        qr_service: Optional[QRTokenService] = None
    ) -> Tuple[AttendanceSession, QRToken]:
        """Create an active session for a course and issue its first QR token."""
        if not course_id:
            raise ValidationError("courseId is required")
        if latitude is None or longitude is None:
            raise ValidationError("location.latitude and location.longitude are required")

        lat, lon = Validator.validate_coordinates(latitude, longitude)
        config = current_app.config
        if radius is None:
            radius = config['DEFAULT_GEOFENCE_RADIUS']
        radius = Validator.validate_radius(radius, config['MAX_GEOFENCE_RADIUS'])
        validity = SessionService._validity(validity_seconds)

        course = db.session.get(Course, course_id)
        if not course or not course.is_active:
            raise NotFound("Course not found")
        if not course.is_owned_by(faculty_id):
            raise Forbidden("You are not authorized to create sessions for this course")

        now = utcnow()
        session = AttendanceSession(
            course_id=course.id,
            course_name=course.name,
            course_code=course.code,
            faculty_id=faculty_id,
            date=now,
            start_time=now.strftime('%H:%M'),
            room_number=Validator.optional_str(room_number),
            latitude=lat,
            longitude=lon,
            geofence_radius=radius,
            present_count=0,
            total_students=course.enrolled_count or 0,
            is_active=True
        )
        db.session.add(session)
        db.session.flush()  # Get session.id

        qr_service = qr_service or current_qr_service()
        token = qr_service.issue_token(
            session_id=session.id,
            course_id=course.id,
            faculty_id=faculty_id,
            geofence=Geofence(lat, lon, radius),
            validity_seconds=validity
        )
        SessionService._store_active_qr(token)
        db.session.commit()

        logger.info("Session %s started for course %s by %s", session.id, course.id, faculty_id)
        return session, token

    @staticmethod
    def refresh_qr(
        faculty_id: str,
        session_id: str,
        validity_seconds=None,
        qr_service: Optional[QRTokenService] = None
    ) -> QRToken:
        """Issue a fresh token for an active session, revoking the previous one."""
        session = SessionService.get_owned_session(faculty_id, session_id)
        if not session.is_active:
            raise ValidationError("Session has been stopped")

        validity = SessionService._validity(validity_seconds)
        geofence = None
        if session.has_geofence:
            geofence = Geofence(session.latitude, session.longitude, session.geofence_radius)

        qr_service = qr_service or current_qr_service()
        token = qr_service.issue_token(
            session_id=session.id,
            course_id=session.course_id,
            faculty_id=session.faculty_id,
            geofence=geofence,
            validity_seconds=validity
        )
        SessionService._store_active_qr(token)
        db.session.commit()

        logger.info("QR refreshed for session %s", session.id)
        return token

    @staticmethod
    def stop_session(faculty_id: str, session_id: str) -> AttendanceSession:
        """Stop a session and discard its active token. Stopping twice is a no-op."""
        session = SessionService.get_owned_session(faculty_id, session_id)
        if not session.is_active:
            return session

        session.is_active = False
        session.ended_at = utcnow()

        active = db.session.get(ActiveQR, session.id)
        if active is not None:
            db.session.delete(active)
        db.session.commit()

        logger.info("Session %s stopped", session.id)
        return session

    @staticmethod
    def ensure_token_active(session: AttendanceSession, token: QRToken) -> None:
        """Reject tokens revoked by a stop or a later refresh."""
        active = db.session.get(ActiveQR, session.id)
        if not session.is_active or active is None or active.signature != token.signature:
            raise Expired("This QR code is no longer active")
