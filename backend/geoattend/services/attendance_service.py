# backend/geoattend/services/attendance_service.py
"""Attendance recording: student QR scans and faculty manual reconciliation."""
import logging
from typing import Dict, List, Optional

from sqlalchemy.exc import IntegrityError

from geoattend import db
from geoattend.models.attendance import AttendanceRecord, AttendanceStatus, MarkedBy
from geoattend.models.attendance_session import AttendanceSession
from geoattend.models.course import Enrollment
from geoattend.services.gps_service import GPSService
from geoattend.services.qr_service import QRTokenService, current_qr_service
from geoattend.services.session_service import SessionService
from geoattend.utils.errors import (
    AlreadyMarked, Forbidden, NotFound, OutOfRange, Unavailable, ValidationError
)
from geoattend.utils.helpers import utcnow
from geoattend.utils.validators import Validator

logger = logging.getLogger(__name__)

class AttendanceService:
    """Service for marking attendance."""

    @staticmethod
    def _bump_present_count(session_id: str, delta: int) -> None:
        """Atomic counter update at the storage layer."""
        AttendanceSession.query.filter_by(id=session_id).update(
            {AttendanceSession.present_count: AttendanceSession.present_count + delta},
            synchronize_session=False
        )

    @staticmethod
    def has_present_record(session_id: str, student_id: str) -> bool:
        return db.session.query(
            AttendanceRecord.query.filter_by(
                session_id=session_id,
                student_id=student_id,
                status=AttendanceStatus.PRESENT
            ).exists()
        ).scalar()

    @staticmethod
    def record_scan(
        student_id: str,
        raw_token,
        latitude=None,
        longitude=None,
        accuracy=None,
        device_id: Optional[str] = None,
        qr_service: Optional[QRTokenService] = None
    ) -> AttendanceRecord:
        """Validate a scanned QR token and mark the student present."""
        qr_service = qr_service or current_qr_service()

        # Step 1: Parse, then verify signature and expiry
        token = QRTokenService.parse_token(raw_token)
        qr_service.ensure_valid(token)

        # Step 2: Session must exist and the token must still be its active one
        session = db.session.get(AttendanceSession, token.session_id)
        if not session:
            raise NotFound("Session not found")
        SessionService.ensure_token_active(session, token)

        # Step 3: Enrollment
        enrolled = Enrollment.query.filter_by(
            student_id=student_id,
            course_id=token.course_id,
            is_active=True
        ).first()
        if not enrolled:
            raise Forbidden("You are not enrolled in this course")

        # Step 4: Duplicate check
        if AttendanceService.has_present_record(session.id, student_id):
            raise AlreadyMarked("Attendance already marked for this session")

        # Step 5: Geofence
        distance = None
        lat = lon = None
        if latitude is not None or longitude is not None:
            lat, lon = Validator.validate_coordinates(latitude, longitude)

        if token.geofence is not None:
            if lat is None:
                raise ValidationError("latitude and longitude are required for this session")
            check = GPSService.check_geofence(lat, lon, token.geofence)
            distance = check['distance']
            if not check['is_inside']:
                logger.warning(
                    "Scan rejected for %s in session %s: %.1fm away (max %sm)",
                    student_id, session.id, distance, token.geofence.radius
                )
                raise OutOfRange(distance, token.geofence.radius)

        # Step 6: Record and count in one transaction
        record = AttendanceRecord(
            session_id=session.id,
            course_id=token.course_id,
            student_id=student_id,
            status=AttendanceStatus.PRESENT,
            marked_at=utcnow(),
            marked_by=MarkedBy.STUDENT,
            manual=False,
            location_verified=True,
            student_latitude=lat,
            student_longitude=lon,
            distance_from_class=distance,
            accuracy=Validator.to_float(accuracy, 'accuracy') if accuracy is not None else None,
            qr_timestamp=token.timestamp,
            device_id=device_id or 'unknown'
        )
        try:
            db.session.add(record)
            AttendanceService._bump_present_count(session.id, 1)
            db.session.commit()
        except IntegrityError:
            # A concurrent scan for the same (session, student) won
            db.session.rollback()
            raise AlreadyMarked("Attendance already marked for this session")

        logger.info("Student %s marked present in session %s", student_id, session.id)
        return record

    @staticmethod
    def apply_manual_attendance(
        faculty_id: str,
        session_id: str,
        present_student_ids: List[str]
    ) -> Dict[str, int]:
        """Reconcile the present set of a session with the faculty's list.

        Only the difference is written: missing students get new present
        records, students no longer listed have their present record patched
        to absent. Everything else is left untouched.
        """
        requested = Validator.validate_id_list(present_student_ids, 'presentStudentIds')
        session = SessionService.get_owned_session(faculty_id, session_id)

        current_records = AttendanceRecord.query.filter_by(
            session_id=session.id,
            status=AttendanceStatus.PRESENT
        ).all()
        current_present = {record.student_id: record for record in current_records}
        requested_set = set(requested)

        to_add = [student_id for student_id in requested if student_id not in current_present]
        to_remove = [record for student_id, record in current_present.items()
                     if student_id not in requested_set]

        now = utcnow()
        for student_id in to_add:
            db.session.add(AttendanceRecord(
                session_id=session.id,
                course_id=session.course_id,
                student_id=student_id,
                status=AttendanceStatus.PRESENT,
                marked_at=now,
                marked_by=MarkedBy.FACULTY,
                manual=True,
                location_verified=False
            ))

        for record in to_remove:
            record.status = AttendanceStatus.ABSENT
            record.marked_by = MarkedBy.FACULTY
            record.manual = True
            record.updated_at = now

        delta = len(to_add) - len(to_remove)
        try:
            if delta:
                AttendanceService._bump_present_count(session.id, delta)
            db.session.commit()
        except IntegrityError:
            db.session.rollback()
            raise Unavailable("Attendance changed while saving, please retry")

        logger.info(
            "Manual attendance for session %s: %d added, %d removed",
            session.id, len(to_add), len(to_remove)
        )
        return {'added': len(to_add), 'removed': len(to_remove)}
