# backend/geoattend/services/course_service.py
"""Course management, join codes and enrollment."""
import logging
from typing import Dict, List, Optional

import pandas as pd
from flask import current_app
from sqlalchemy.exc import IntegrityError

from geoattend import db
from geoattend.models.course import Course, Enrollment, EnrollmentSource
from geoattend.models.profile import StudentProfile
from geoattend.utils.errors import AlreadyEnrolled, Forbidden, NotFound, Unavailable, ValidationError
from geoattend.utils.validators import Validator

logger = logging.getLogger(__name__)

class CourseService:
    """Service for managing courses and enrollments."""

    @staticmethod
    def get_owned_course(faculty_id: str, course_id: str) -> Course:
        course = db.session.get(Course, course_id)
        if not course or not course.is_active:
            raise NotFound("Course not found")
        if not course.is_owned_by(faculty_id):
            raise Forbidden("Not authorized for this course")
        return course

    @staticmethod
    def _join_code_taken(code: str) -> bool:
        return Course.query.filter_by(join_code=code, is_active=True).first() is not None

    @staticmethod
    def allocate_join_code() -> str:
        """Draw codes until one is unused among active courses."""
        config = current_app.config
        for _ in range(config['JOIN_CODE_MAX_ATTEMPTS']):
            code = Course.generate_join_code(
                config['JOIN_CODE_LENGTH'], config['JOIN_CODE_ALPHABET']
            )
            if not CourseService._join_code_taken(code):
                return code
        raise Unavailable("Could not allocate a unique join code, please retry")

    @staticmethod
    def create_course(
        faculty_id: str,
        code: str,
        name: str,
        department: str,
        academic_year: Optional[str] = None,
        credits: Optional[int] = None,
        semester: Optional[str] = None,
        term: Optional[str] = None,
        class_name: Optional[str] = None,
        section: str = 'A',
        timetable: Optional[List] = None,
        with_join_code: bool = True
    ) -> Course:
        """Create a course owned by ``faculty_id``."""
        Validator.require_fields(
            {'code': code, 'name': name, 'department': department},
            ['code', 'name', 'department']
        )
        if credits is not None:
            credits = int(Validator.to_float(credits, 'credits'))

        attempts = current_app.config['JOIN_CODE_MAX_ATTEMPTS']
        for _ in range(attempts):
            course = Course(
                faculty_id=faculty_id,
                code=code.strip(),
                name=name.strip(),
                department=department.strip(),
                academic_year=Validator.optional_str(academic_year),
                credits=credits,
                semester=Validator.optional_str(semester),
                term=Validator.optional_str(term),
                class_name=Validator.optional_str(class_name) or f"{department.strip()}{academic_year or ''}",
                section=section or 'A',
                timetable=timetable if isinstance(timetable, list) else [],
                join_code=CourseService.allocate_join_code() if with_join_code else None,
                enrolled_count=0,
                is_active=True
            )
            db.session.add(course)
            try:
                db.session.commit()
            except IntegrityError:
                # Another course took the same code between check and insert
                db.session.rollback()
                continue

            logger.info("Course %s created by %s", course.id, faculty_id)
            return course

        raise Unavailable("Could not allocate a unique join code, please retry")

    @staticmethod
    def list_courses(faculty_id: str) -> List[Course]:
        return Course.query.filter_by(
            faculty_id=faculty_id, is_active=True
        ).order_by(Course.created_at.desc()).all()

    @staticmethod
    def delete_course(faculty_id: str, course_id: str) -> None:
        """Deactivate a course and its enrollments; history is kept."""
        course = CourseService.get_owned_course(faculty_id, course_id)
        course.is_active = False
        Enrollment.query.filter_by(course_id=course.id, is_active=True).update(
            {'is_active': False}, synchronize_session=False
        )
        db.session.commit()
        logger.info("Course %s deactivated", course.id)

    @staticmethod
    def _enroll(student_id: str, course: Course, source: str) -> Enrollment:
        """Create an enrollment and bump the course counter atomically."""
        existing = Enrollment.query.filter_by(
            student_id=student_id, course_id=course.id, is_active=True
        ).first()
        if existing:
            raise AlreadyEnrolled("Student already enrolled")

        enrollment = Enrollment(
            student_id=student_id,
            course_id=course.id,
            is_active=True,
            source=source
        )
        db.session.add(enrollment)
        try:
            Course.query.filter_by(id=course.id).update(
                {Course.enrolled_count: Course.enrolled_count + 1},
                synchronize_session=False
            )
            db.session.commit()
        except IntegrityError:
            db.session.rollback()
            raise AlreadyEnrolled("Student already enrolled")
        return enrollment

    @staticmethod
    def find_student_by_email(email: str) -> StudentProfile:
        student = StudentProfile.query.filter_by(email=email.strip()).first()
        if not student:
            raise NotFound("Student not found")
        return student

    @staticmethod
    def enroll_student(faculty_id: str, course_id: str, student_email: str) -> Enrollment:
        """Faculty enrolls a student by email."""
        if not course_id or not student_email:
            raise ValidationError("courseId and student email are required")

        course = CourseService.get_owned_course(faculty_id, course_id)
        student = CourseService.find_student_by_email(student_email)
        return CourseService._enroll(student.id, course, EnrollmentSource.DIRECT)

    @staticmethod
    def join_course(student_id: str, join_code: str) -> Enrollment:
        """Student self-enrolls with a join code (case-insensitive)."""
        if not join_code or not str(join_code).strip():
            raise ValidationError("joinCode is required")

        course = Course.query.filter_by(
            join_code=str(join_code).strip().upper(),
            is_active=True
        ).first()
        if not course:
            raise NotFound("Invalid join code")

        return CourseService._enroll(student_id, course, EnrollmentSource.JOIN_CODE)

    @staticmethod
    def enroll_students_bulk(faculty_id: str, course_id: str, df: pd.DataFrame) -> List[Dict]:
        """Enroll every student listed in the ``email`` column of a roster."""
        course = CourseService.get_owned_course(faculty_id, course_id)

        columns = {str(column).strip().lower(): column for column in df.columns}
        if 'email' not in columns:
            raise ValidationError("Roster must contain an 'email' column")

        results = []
        for index, row in df.iterrows():
            value = row[columns['email']]
            email = '' if pd.isna(value) else str(value).strip()
            try:
                if not email:
                    raise ValidationError("Email is empty")
                student = CourseService.find_student_by_email(email)
                CourseService._enroll(student.id, course, EnrollmentSource.ROSTER)
                results.append({
                    'row': index + 2,  # Spreadsheet row number
                    'email': email,
                    'success': True,
                    'student_id': student.id
                })
            except (NotFound, AlreadyEnrolled, ValidationError) as e:
                results.append({
                    'row': index + 2,
                    'email': email,
                    'success': False,
                    'error': e.message
                })

        return results

    @staticmethod
    def read_roster(file_storage) -> pd.DataFrame:
        """Parse an uploaded CSV or Excel roster."""
        filename = (file_storage.filename or '').lower()
        extension = filename.rsplit('.', 1)[-1] if '.' in filename else ''
        if extension not in current_app.config['ALLOWED_EXTENSIONS']:
            raise ValidationError("Roster must be a CSV or Excel file")

        try:
            if extension == 'csv':
                return pd.read_csv(file_storage.stream)
            return pd.read_excel(file_storage.stream)
        except (ValueError, pd.errors.ParserError) as e:
            raise ValidationError(f"Could not read roster: {e}")
