"""Course and enrollment models."""
import secrets
from geoattend import db
from geoattend.models.base import BaseModel
from geoattend.utils.helpers import utcnow

JOIN_CODE_ALPHABET = 'ABCDEFGHJKLMNPQRSTUVWXYZ23456789'
JOIN_CODE_LENGTH = 6

class EnrollmentSource:
    DIRECT = 'direct'
    JOIN_CODE = 'join-code'
    ROSTER = 'roster'

class Course(BaseModel):
    """Course owned by a single faculty member."""

    __tablename__ = 'courses'

    faculty_id = db.Column(db.String(128), nullable=False, index=True)
    code = db.Column(db.String(50), nullable=False)
    name = db.Column(db.String(255), nullable=False)
    department = db.Column(db.String(100), nullable=False)
    academic_year = db.Column(db.String(20), nullable=True)
    credits = db.Column(db.Integer, nullable=True)
    semester = db.Column(db.String(20), nullable=True)
    term = db.Column(db.String(20), nullable=True)
    class_name = db.Column(db.String(100), nullable=True)
    section = db.Column(db.String(10), nullable=True)
    timetable = db.Column(db.JSON, default=list)

    # Stored upper-case; unique among active courses
    join_code = db.Column(db.String(JOIN_CODE_LENGTH), nullable=True)
    enrolled_count = db.Column(db.Integer, default=0, nullable=False)
    is_active = db.Column(db.Boolean, default=True, nullable=False)

    __table_args__ = (
        db.Index(
            'uq_courses_active_join_code', join_code, unique=True,
            sqlite_where=db.text('is_active'),
            postgresql_where=db.text('is_active'),
        ),
    )

    @staticmethod
    def generate_join_code(length: int = JOIN_CODE_LENGTH,
                           alphabet: str = JOIN_CODE_ALPHABET) -> str:
        """Generate a random join code from the unambiguous alphabet."""
        return ''.join(secrets.choice(alphabet) for _ in range(length))

    def is_owned_by(self, faculty_id: str) -> bool:
        return self.faculty_id == faculty_id

    def to_dict(self, exclude: list = None):
        data = super().to_dict(exclude=exclude)
        data['timetable'] = self.timetable or []
        return data

    def __repr__(self):
        return f'<Course {self.code}>'

class Enrollment(BaseModel):
    """Links a student to a course."""

    __tablename__ = 'enrollments'

    student_id = db.Column(db.String(128), nullable=False, index=True)
    course_id = db.Column(db.String(32), db.ForeignKey('courses.id'), nullable=False, index=True)
    is_active = db.Column(db.Boolean, default=True, nullable=False)
    source = db.Column(db.String(20), default=EnrollmentSource.DIRECT, nullable=False)
    enrolled_at = db.Column(db.DateTime, default=utcnow, nullable=False)

    course = db.relationship('Course', backref=db.backref('enrollments', lazy='dynamic'))

    # At most one active enrollment per (student, course)
    __table_args__ = (
        db.Index(
            'uq_enrollments_active_student_course', student_id, course_id, unique=True,
            sqlite_where=db.text('is_active'),
            postgresql_where=db.text('is_active'),
        ),
    )

    def __repr__(self):
        return f'<Enrollment {self.student_id}-{self.course_id}>'
