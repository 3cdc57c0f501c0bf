"""Attendance record model with verification details."""
from geoattend import db
from geoattend.models.base import BaseModel
from geoattend.utils.helpers import utcnow

class AttendanceStatus:
    PRESENT = 'present'
    ABSENT = 'absent'

class MarkedBy:
    STUDENT = 'student'
    FACULTY = 'faculty'

class AttendanceRecord(BaseModel):
    """One status entry per (session, student); patched, never deleted."""
    
    __tablename__ = 'attendance'
    
    session_id = db.Column(db.String(32), db.ForeignKey('sessions.id'), nullable=False, index=True)
    course_id = db.Column(db.String(32), nullable=False, index=True)
    student_id = db.Column(db.String(128), nullable=False, index=True)
    status = db.Column(db.String(10), default=AttendanceStatus.PRESENT, nullable=False)
    marked_at = db.Column(db.DateTime, default=utcnow, nullable=False)
    
    # Verification details
    marked_by = db.Column(db.String(10), default=MarkedBy.STUDENT, nullable=False)
    manual = db.Column(db.Boolean, default=False, nullable=False)
    location_verified = db.Column(db.Boolean, default=False, nullable=False)
    
    # Location where check-in happened
    student_latitude = db.Column(db.Float, nullable=True)
    student_longitude = db.Column(db.Float, nullable=True)
    distance_from_class = db.Column(db.Float, nullable=True)
    accuracy = db.Column(db.Float, nullable=True)
    
    qr_timestamp = db.Column(db.BigInteger, nullable=True)
    device_id = db.Column(db.String(128), nullable=True)
    
    # At most one present record per (session, student)
    __table_args__ = (
        db.Index(
            'uq_attendance_present_session_student', session_id, student_id, unique=True,
            sqlite_where=db.text("status = 'present'"),
            postgresql_where=db.text("status = 'present'"),
        ),
    )
    
    @property
    def is_present(self) -> bool:
        return self.status == AttendanceStatus.PRESENT
    
    def __repr__(self):
        return f'<AttendanceRecord {self.student_id}-{self.session_id} {self.status}>'
