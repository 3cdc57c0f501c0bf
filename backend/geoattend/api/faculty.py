# backend/geoattend/api/faculty.py
"""Faculty API endpoints: courses, sessions and attendance."""
from flask import Blueprint, request
from flask_jwt_extended import jwt_required
from geoattend import limiter
from geoattend.services.attendance_service import AttendanceService
from geoattend.services.course_service import CourseService
from geoattend.services.profile_service import ProfileService
from geoattend.services.qr_service import QRTokenService
from geoattend.services.report_service import ReportService
from geoattend.services.session_service import SessionService
from geoattend.utils.decorators import current_principal
from geoattend.utils.helpers import success_response, error_response

faculty_bp = Blueprint('faculty', __name__)

def _qr_response(token) -> dict:
    qr_string = QRTokenService.serialize(token)
    return {
        'session_id': token.session_id,
        'qr_data': qr_string,
        'qr_payload': token.to_payload(),
        'qr_image': QRTokenService.render_qr_image(qr_string),
        'expires_at': token.expires_at,
        'expires_in': (token.expires_at - token.timestamp) // 1000
    }

def _validity_seconds(data: dict):
    if data.get('validitySeconds') is not None:
        return data['validitySeconds']
    return data.get('expiresIn')

@faculty_bp.route('/health', methods=['GET'])
def health_check():
    """Health check endpoint."""
    return success_response(message='Faculty service is running')

@faculty_bp.route('/profile', methods=['POST'])
@jwt_required()
def save_profile():
    """Create or update the caller's faculty profile."""
    data = request.get_json(silent=True)
    if data is None:
        return error_response("Request body must be JSON", 400)

    profile = ProfileService.upsert_faculty_profile(current_principal(), data)
    return success_response(
        data={'faculty': profile.to_dict()},
        message="Faculty profile saved"
    )

# =================== COURSES ===================

@faculty_bp.route('/courses', methods=['POST'])
@jwt_required()
def create_course():
    """Create a course with a join code.

    Accepts both the short form (code, name, department, academicYear) and
    the full-class form (courseCode, courseName, branch, year, timetable).
    """
    data = request.get_json(silent=True) or {}

    course = CourseService.create_course(
        faculty_id=current_principal().id,
        code=data.get('code') or data.get('courseCode'),
        name=data.get('name') or data.get('courseName'),
        department=data.get('department') or data.get('branch'),
        academic_year=data.get('academicYear') or data.get('year'),
        credits=data.get('credits'),
        semester=data.get('semester'),
        term=data.get('session'),
        class_name=data.get('className'),
        section=data.get('section', 'A'),
        timetable=data.get('timetable')
    )
    return success_response(
        data={'course': course.to_dict()},
        message="Course created successfully",
        status_code=201
    )

@faculty_bp.route('/courses', methods=['GET'])
@jwt_required()
def list_courses():
    """List the caller's active courses."""
    courses = CourseService.list_courses(current_principal().id)
    return success_response(data={'courses': [course.to_dict() for course in courses]})

@faculty_bp.route('/courses/<course_id>', methods=['DELETE'])
@jwt_required()
def delete_course(course_id):
    """Deactivate a course and its enrollments."""
    CourseService.delete_course(current_principal().id, course_id)
    return success_response(message="Course deleted successfully")

@faculty_bp.route('/enroll-student', methods=['POST'])
@jwt_required()
def enroll_student():
    """Enroll a student in a course by email."""
    data = request.get_json(silent=True) or {}
    student_email = data.get('studentEmail') or data.get('studentId') or data.get('email')

    enrollment = CourseService.enroll_student(
        current_principal().id,
        data.get('courseId'),
        student_email
    )
    return success_response(
        data={'enrollment_id': enrollment.id},
        message="Student enrolled successfully",
        status_code=201
    )

@faculty_bp.route('/courses/<course_id>/roster', methods=['POST'])
@jwt_required()
def upload_roster(course_id):
    """Enroll students from an uploaded CSV/Excel roster."""
    if 'file' not in request.files:
        return error_response("Roster file is required", 400)

    df = CourseService.read_roster(request.files['file'])
    results = CourseService.enroll_students_bulk(current_principal().id, course_id, df)
    enrolled = len([r for r in results if r['success']])

    return success_response(
        data={
            'results': results,
            'summary': {
                'total': len(results),
                'enrolled': enrolled,
                'failed': len(results) - enrolled
            }
        },
        message=f"Enrolled {enrolled} students"
    )

@faculty_bp.route('/course/<course_id>/students', methods=['GET'])
@jwt_required()
def course_students(course_id):
    """List enrolled students, optionally with presence in a session."""
    students = ReportService.course_students(
        current_principal().id,
        course_id,
        session_id=request.args.get('sessionId')
    )
    return success_response(data={'students': students})

# =================== SESSIONS ===================

@faculty_bp.route('/generate-qr', methods=['POST'])
@jwt_required()
@limiter.limit("30 per hour")
def generate_qr():
    """Start a session and generate its QR code."""
    data = request.get_json(silent=True) or {}
    location = data.get('location') or {}

    latitude = data['latitude'] if data.get('latitude') is not None else location.get('latitude')
    longitude = data['longitude'] if data.get('longitude') is not None else location.get('longitude')
    radius = data.get('radius')
    if radius is None:
        radius = data.get('geofenceRadius', location.get('radius'))

    session, token = SessionService.start_session(
        faculty_id=current_principal().id,
        course_id=data.get('courseId'),
        latitude=latitude,
        longitude=longitude,
        radius=radius,
        validity_seconds=_validity_seconds(data),
        room_number=data.get('roomNumber')
    )

    response = _qr_response(token)
    response['session'] = session.to_dict()
    return success_response(data=response, message="QR code generated successfully", status_code=201)

@faculty_bp.route('/session/<session_id>/refresh-qr', methods=['POST'])
@jwt_required()
@limiter.limit("60 per hour")
def refresh_qr(session_id):
    """Issue a new QR code for a running session."""
    data = request.get_json(silent=True) or {}

    token = SessionService.refresh_qr(
        current_principal().id,
        session_id,
        validity_seconds=_validity_seconds(data)
    )
    return success_response(
        data=_qr_response(token),
        message="QR code refreshed successfully"
    )

@faculty_bp.route('/session/<session_id>/attendance', methods=['GET'])
@jwt_required()
def session_attendance(session_id):
    """Live attendance for a session."""
    data = ReportService.session_attendance(current_principal().id, session_id)
    return success_response(data=data)

@faculty_bp.route('/session/<session_id>/stop', methods=['POST'])
@jwt_required()
def stop_session(session_id):
    """Stop a session and retire its QR code."""
    session = SessionService.stop_session(current_principal().id, session_id)
    return success_response(
        data={'session': session.to_dict()},
        message="Session stopped successfully"
    )

@faculty_bp.route('/session/<session_id>/manual-attendance', methods=['POST'])
@jwt_required()
def manual_attendance(session_id):
    """Reconcile the present set of a session."""
    data = request.get_json(silent=True) or {}

    result = AttendanceService.apply_manual_attendance(
        current_principal().id,
        session_id,
        data.get('presentStudentIds')
    )
    return success_response(data=result, message="Manual attendance saved")
