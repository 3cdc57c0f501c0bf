# backend/geoattend/api/student.py
"""Student API endpoints."""
from flask import Blueprint, current_app, request
from flask_jwt_extended import jwt_required
from geoattend import db, limiter
from geoattend.models.profile import StudentProfile
from geoattend.services.attendance_service import AttendanceService
from geoattend.services.course_service import CourseService
from geoattend.services.profile_service import ProfileService
from geoattend.services.report_service import ReportService
from geoattend.utils.decorators import current_principal, student_profile_required
from geoattend.utils.helpers import success_response, error_response

student_bp = Blueprint('student', __name__)

@student_bp.route('/health', methods=['GET'])
def health_check():
    """Health check endpoint."""
    return success_response(message='Student service is running')

@student_bp.route('/profile', methods=['POST'])
@jwt_required()
def save_profile():
    """Create or update the caller's student profile."""
    data = request.get_json(silent=True)
    if data is None:
        return error_response("Request body must be JSON", 400)

    profile = ProfileService.upsert_student_profile(current_principal(), data)
    return success_response(
        data={'student': profile.to_dict()},
        message="Student profile saved"
    )

@student_bp.route('/dashboard', methods=['GET'])
@jwt_required()
@student_profile_required
def dashboard():
    """Today's classes and attendance stats."""
    data = ReportService.student_dashboard(current_principal().id)
    return success_response(data=data, message="Dashboard retrieved successfully")

@student_bp.route('/scan-qr', methods=['POST'])
@jwt_required()
@limiter.limit("30 per minute")
def scan_qr():
    """Scan QR and mark attendance."""
    data = request.get_json(silent=True)
    if not data or 'qrData' not in data:
        return error_response("qrData is required", 400)

    principal = current_principal()
    record = AttendanceService.record_scan(
        student_id=principal.id,
        raw_token=data['qrData'],
        latitude=data.get('latitude'),
        longitude=data.get('longitude'),
        accuracy=data.get('accuracy'),
        device_id=request.headers.get('X-Device-Id')
    )

    student = db.session.get(StudentProfile, principal.id)
    attendance = record.to_dict()
    attendance.update({
        'student_name': (student.name if student else None) or 'Unknown',
        'course_name': record.session.course_name or 'Unknown Course',
        'distance': round(record.distance_from_class) if record.distance_from_class is not None else 0
    })
    current_app.logger.info("Attendance marked: %s", record.id)

    return success_response(
        data={'attendance': attendance},
        message="Attendance marked successfully!"
    )

@student_bp.route('/attendance-history', methods=['GET'])
@jwt_required()
def attendance_history():
    """Get the caller's attendance history, newest first."""
    records = ReportService.attendance_history(
        current_principal().id,
        course_id=request.args.get('courseId')
    )
    return success_response(data={'attendance_records': records})

@student_bp.route('/join-course', methods=['POST'])
@jwt_required()
def join_course():
    """Join a course with its join code."""
    data = request.get_json(silent=True) or {}

    enrollment = CourseService.join_course(current_principal().id, data.get('joinCode'))
    return success_response(
        data={
            'enrollment_id': enrollment.id,
            'course': enrollment.course.to_dict()
        },
        message="Joined course successfully",
        status_code=201
    )
