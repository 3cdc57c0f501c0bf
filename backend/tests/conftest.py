"""Shared fixtures."""
import pytest
from flask_jwt_extended import create_access_token

from geoattend import create_app, db
from geoattend.models.profile import StudentProfile
from geoattend.services.course_service import CourseService

FACULTY_ID = 'faculty-1'
CENTER = (12.0000, 77.0000)

class FakeClock:
    """Controllable epoch-seconds clock."""

    def __init__(self, start: float = 1_700_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds

@pytest.fixture
def clock():
    return FakeClock()

@pytest.fixture
def app(clock):
    """Create test app."""
    app = create_app('testing', clock=clock)
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()

@pytest.fixture
def client(app):
    """Create test client."""
    return app.test_client()

@pytest.fixture
def qr_service(app):
    return app.extensions['qr_tokens']

@pytest.fixture
def make_student(app):
    """Create a student profile."""
    def _make(student_id='student-1', email=None, name=None, roll_no=None):
        student = StudentProfile(
            id=student_id,
            email=email or f'{student_id}@example.edu',
            name=name or student_id.replace('-', ' ').title(),
            roll_no=roll_no
        )
        return student.save()
    return _make

@pytest.fixture
def make_course(app):
    """Create a course owned by FACULTY_ID unless told otherwise."""
    def _make(faculty_id=FACULTY_ID, code='CS101', name='Algorithms'):
        return CourseService.create_course(
            faculty_id=faculty_id,
            code=code,
            name=name,
            department='CSE',
            academic_year='2'
        )
    return _make

@pytest.fixture
def course(make_course):
    return make_course()

@pytest.fixture
def enrolled_student(make_student, course):
    """A student enrolled in ``course`` through its join code."""
    student = make_student('student-1', roll_no='24CSE001')
    CourseService.join_course(student.id, course.join_code)
    return student

@pytest.fixture
def auth_headers(app):
    """Bearer headers for a principal."""
    def _headers(principal_id, email=None):
        claims = {'email': email} if email else {}
        token = create_access_token(identity=principal_id, additional_claims=claims)
        return {'Authorization': f'Bearer {token}'}
    return _headers
