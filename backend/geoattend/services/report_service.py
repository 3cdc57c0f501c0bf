# backend/geoattend/services/report_service.py
"""Read-side views: dashboards, history and rosters.

Related entities are fetched with one ``IN (...)`` query per entity type
and joined in memory.
"""
from datetime import timedelta
from typing import Dict, Iterable, List, Optional

from geoattend import db
from geoattend.models.attendance import AttendanceRecord, AttendanceStatus
from geoattend.models.attendance_session import AttendanceSession
from geoattend.models.course import Course, Enrollment
from geoattend.models.profile import StudentProfile
from geoattend.services.course_service import CourseService
from geoattend.services.session_service import SessionService
from geoattend.utils.errors import NotFound
from geoattend.utils.helpers import isoformat, utcnow

def _by_id(model, ids: Iterable[str]) -> Dict[str, object]:
    """Batched point lookups."""
    ids = list(set(ids))
    if not ids:
        return {}
    return {row.id: row for row in model.query.filter(model.id.in_(ids)).all()}

class ReportService:
    """Pure reads over courses, sessions, enrollments and attendance."""

    @staticmethod
    def attendance_stats(student_id: str) -> Dict:
        """Percentage over every record the student has, present or absent."""
        statuses = [
            status for (status,) in db.session.query(AttendanceRecord.status)
            .filter(AttendanceRecord.student_id == student_id).all()
        ]
        total = len(statuses)
        present = sum(1 for status in statuses if status == AttendanceStatus.PRESENT)
        percentage = round(present / total * 100, 1) if total else 0.0

        return {
            'total_classes': total,
            'present_count': present,
            'absent_count': total - present,
            'attendance_percentage': percentage
        }

    @staticmethod
    def student_dashboard(student_id: str) -> Dict:
        student = db.session.get(StudentProfile, student_id)
        if not student:
            raise NotFound("Student profile not found")

        course_ids = [
            course_id for (course_id,) in db.session.query(Enrollment.course_id)
            .filter_by(student_id=student_id, is_active=True).all()
        ]
        courses = [
            course for course in _by_id(Course, course_ids).values() if course.is_active
        ]

        today_sessions = []
        if course_ids:
            start = utcnow().replace(hour=0, minute=0, second=0, microsecond=0)
            today_sessions = AttendanceSession.query.filter(
                AttendanceSession.course_id.in_(course_ids),
                AttendanceSession.date >= start,
                AttendanceSession.date < start + timedelta(days=1)
            ).order_by(AttendanceSession.date.asc()).all()

        return {
            'student': student.to_dict(),
            'courses': [course.to_dict() for course in sorted(courses, key=lambda c: c.code)],
            'today_sessions': [session.to_dict() for session in today_sessions],
            'stats': ReportService.attendance_stats(student_id)
        }

    @staticmethod
    def attendance_history(student_id: str, course_id: Optional[str] = None) -> List[Dict]:
        query = AttendanceRecord.query.filter_by(student_id=student_id)
        if course_id:
            query = query.filter_by(course_id=course_id)
        records = query.order_by(AttendanceRecord.marked_at.desc()).all()

        sessions = _by_id(AttendanceSession, (record.session_id for record in records))

        history = []
        for record in records:
            session = sessions.get(record.session_id)
            item = record.to_dict()
            item.update({
                'session_date': isoformat(session.date) if session else None,
                'session_time': session.start_time if session else None,
                'course_name': session.course_name if session else None
            })
            history.append(item)
        return history

    @staticmethod
    def session_attendance(faculty_id: str, session_id: str) -> Dict:
        """Live roster of a session, most recent mark first."""
        session = SessionService.get_owned_session(faculty_id, session_id)

        records = AttendanceRecord.query.filter_by(session_id=session.id).order_by(
            AttendanceRecord.marked_at.desc()
        ).all()
        students = _by_id(StudentProfile, (record.student_id for record in records))

        attendees = []
        for record in records:
            student = students.get(record.student_id)
            attendees.append({
                'id': record.id,
                'student_id': record.student_id,
                'student_name': (student.name if student else None) or 'Unknown',
                'roll_no': (student.roll_no if student else None) or 'N/A',
                'status': record.status,
                'marked_at': isoformat(record.marked_at),
                'marked_by': record.marked_by,
                'manual': record.manual,
                'distance': round(record.distance_from_class) if record.distance_from_class is not None else None
            })

        return {
            'session': session.to_dict(),
            'attendees': attendees,
            'present_count': sum(1 for record in records if record.is_present),
            'total_attendees': len(attendees)
        }

    @staticmethod
    def course_students(faculty_id: str, course_id: str, session_id: Optional[str] = None) -> List[Dict]:
        """Enrolled roster, optionally flagged with presence in one session."""
        course = CourseService.get_owned_course(faculty_id, course_id)

        student_ids = [
            student_id for (student_id,) in db.session.query(Enrollment.student_id)
            .filter_by(course_id=course.id, is_active=True).all()
        ]
        students = _by_id(StudentProfile, student_ids)

        present = set()
        if session_id:
            present = {
                student_id for (student_id,) in db.session.query(AttendanceRecord.student_id)
                .filter_by(session_id=session_id, status=AttendanceStatus.PRESENT).all()
            }

        roster = [
            {
                'id': student.id,
                'name': student.name or 'Unknown',
                'roll_no': student.roll_no or 'N/A',
                'email': student.email,
                'present': student.id in present
            }
            for student in students.values()
        ]
        return sorted(roster, key=lambda s: (s['roll_no'], s['name']))
