"""Models package with all models."""
from .base import BaseModel
from .profile import StudentProfile, FacultyProfile
from .course import Course, Enrollment, EnrollmentSource
from .attendance_session import AttendanceSession, ActiveQR
from .attendance import AttendanceRecord, AttendanceStatus, MarkedBy

__all__ = [
    'BaseModel', 'StudentProfile', 'FacultyProfile',
    'Course', 'Enrollment', 'EnrollmentSource',
    'AttendanceSession', 'ActiveQR',
    'AttendanceRecord', 'AttendanceStatus', 'MarkedBy'
]
