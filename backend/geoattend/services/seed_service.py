# File: backend/geoattend/services/seed_service.py
"""Database seeding service for demo data."""
from geoattend import db
from geoattend.models.course import Course
from geoattend.models.profile import FacultyProfile, StudentProfile
from geoattend.services.course_service import CourseService
from geoattend.utils.errors import AlreadyEnrolled

DEMO_FACULTY_ID = 'demo-faculty'

class SeedService:
    """Service to seed database with demo data."""

    @staticmethod
    def seed_all():
        """Seed all demo data and return a summary."""
        SeedService.seed_faculty()
        students = SeedService.seed_students()
        course = SeedService.seed_course()
        SeedService.seed_enrollments(course, students)

        return {
            'course_code': course.code,
            'join_code': course.join_code,
            'students': len(students)
        }

    @staticmethod
    def seed_faculty():
        """Seed the demo faculty member."""
        if not db.session.get(FacultyProfile, DEMO_FACULTY_ID):
            db.session.add(FacultyProfile(
                id=DEMO_FACULTY_ID,
                email='faculty@demo.edu',
                name='Dr. Demo Faculty',
                department='CSE',
                designation='Assistant Professor'
            ))
            db.session.commit()

    @staticmethod
    def seed_students(count: int = 10):
        """Seed demo students."""
        students = []
        for number in range(1, count + 1):
            student_id = f'demo-student-{number:02d}'
            student = db.session.get(StudentProfile, student_id)
            if student is None:
                student = StudentProfile(
                    id=student_id,
                    email=f'student{number:02d}@demo.edu',
                    name=f'Demo Student {number:02d}',
                    roll_no=f'24CSE{number:03d}',
                    department='CSE',
                    year='2'
                )
                db.session.add(student)
            students.append(student)

        db.session.commit()
        return students

    @staticmethod
    def seed_course():
        """Seed the demo course."""
        course = Course.query.filter_by(
            faculty_id=DEMO_FACULTY_ID, code='CS201', is_active=True
        ).first()
        if course:
            return course

        return CourseService.create_course(
            faculty_id=DEMO_FACULTY_ID,
            code='CS201',
            name='Data Structures',
            department='CSE',
            academic_year='2',
            credits=4,
            timetable=[
                {'day': 'Monday', 'time': '09:00', 'type': 'lecture'},
                {'day': 'Wednesday', 'time': '11:00', 'type': 'lab'}
            ]
        )

    @staticmethod
    def seed_enrollments(course, students):
        """Enroll every demo student."""
        for student in students:
            try:
                CourseService.enroll_student(DEMO_FACULTY_ID, course.id, student.email)
            except AlreadyEnrolled:
                continue
