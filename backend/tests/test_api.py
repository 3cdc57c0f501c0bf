"""Test the student and faculty HTTP endpoints."""
import io
import json
from datetime import timedelta

import pytest
from flask_jwt_extended import create_access_token
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session

from conftest import CENTER, FACULTY_ID
from geoattend.services.course_service import CourseService

STUDENT_ID = 'student-1'

@pytest.fixture
def faculty(auth_headers):
    return auth_headers(FACULTY_ID, 'prof@example.edu')

@pytest.fixture
def student(auth_headers):
    return auth_headers(STUDENT_ID, 'asha@example.edu')

@pytest.fixture
def course_data(client, faculty):
    """Course created over HTTP."""
    response = client.post('/api/faculty/courses', headers=faculty, json={
        'courseCode': 'CS101',
        'courseName': 'Algorithms',
        'branch': 'CSE',
        'year': '2',
        'timetable': [{'day': 'Monday', 'time': '09:00'}]
    })
    assert response.status_code == 201
    return json.loads(response.data)['data']['course']

@pytest.fixture
def joined(client, student, course_data):
    """Student profile saved and course joined over HTTP."""
    client.post('/api/student/profile', headers=student,
                json={'name': 'Asha', 'rollNo': '24CSE001'})
    response = client.post('/api/student/join-course', headers=student,
                           json={'joinCode': course_data['join_code'].lower()})
    assert response.status_code == 201
    return course_data

def start_session(client, headers, course_id, **extra):
    body = {
        'courseId': course_id,
        'location': {'latitude': CENTER[0], 'longitude': CENTER[1], 'radius': 50},
        'validitySeconds': 120
    }
    body.update(extra)
    return client.post('/api/faculty/generate-qr', headers=headers, json=body)

def scan(client, headers, qr_data, lat=CENTER[0], lon=CENTER[1]):
    return client.post('/api/student/scan-qr', headers=headers, json={
        'qrData': qr_data, 'latitude': lat, 'longitude': lon, 'accuracy': 10
    })

def test_health_checks(client):
    """Test health endpoints."""
    assert json.loads(client.get('/health').data)['status'] == 'healthy'

    response = client.get('/api/student/health')
    assert json.loads(response.data)['message'] == 'Student service is running'

    response = client.get('/api/faculty/health')
    assert json.loads(response.data)['message'] == 'Faculty service is running'

def test_missing_token(client):
    """Protected endpoints need a bearer token."""
    response = client.get('/api/faculty/courses')
    assert response.status_code == 401
    data = json.loads(response.data)
    assert data['kind'] == 'unauthenticated'

def test_expired_token(app, client):
    token = create_access_token(identity=STUDENT_ID, expires_delta=timedelta(seconds=-1))
    response = client.get('/api/student/attendance-history',
                          headers={'Authorization': f'Bearer {token}'})

    assert response.status_code == 401
    assert json.loads(response.data)['kind'] == 'expired'

def test_dashboard_needs_profile(client, student):
    response = client.get('/api/student/dashboard', headers=student)
    assert response.status_code == 404

def test_create_course_validation(client, faculty):
    response = client.post('/api/faculty/courses', headers=faculty, json={'code': 'CS101'})

    assert response.status_code == 400
    data = json.loads(response.data)
    assert data['kind'] == 'validation_error'
    assert 'name' in data['message']

def test_attendance_flow(client, faculty, student, joined, clock):
    """Full class: start, scan, reports, stop."""
    response = start_session(client, faculty, joined['id'])
    assert response.status_code == 201
    qr = json.loads(response.data)['data']
    assert qr['expires_in'] == 120
    assert qr['qr_image'].startswith('data:image/png;base64,')
    assert qr['session']['is_active'] is True
    session_id = qr['session_id']

    # Too far away
    response = scan(client, student, qr['qr_data'], lat=12.01)
    assert response.status_code == 400
    data = json.loads(response.data)
    assert data['kind'] == 'out_of_range'
    assert data['distance'] > 1000
    assert data['max_distance'] == 50

    # Within the geofence
    response = scan(client, student, qr['qr_data'], lat=12.0003)
    assert response.status_code == 200
    attendance = json.loads(response.data)['data']['attendance']
    assert attendance['student_name'] == 'Asha'
    assert attendance['course_name'] == 'Algorithms'
    assert attendance['distance'] == 33

    response = scan(client, student, qr['qr_data'])
    assert response.status_code == 409
    assert json.loads(response.data)['kind'] == 'already_marked'

    response = client.get(f'/api/faculty/session/{session_id}/attendance', headers=faculty)
    report = json.loads(response.data)['data']
    assert report['present_count'] == 1
    assert report['attendees'][0]['roll_no'] == '24CSE001'

    response = client.get('/api/student/dashboard', headers=student)
    stats = json.loads(response.data)['data']['stats']
    assert stats['attendance_percentage'] == 100.0

    response = client.get(
        f'/api/student/attendance-history?courseId={joined["id"]}', headers=student
    )
    assert len(json.loads(response.data)['data']['attendance_records']) == 1

    response = client.post(f'/api/faculty/session/{session_id}/stop', headers=faculty)
    assert response.status_code == 200
    assert json.loads(response.data)['data']['session']['is_active'] is False

    response = scan(client, student, qr['qr_data'])
    assert response.status_code == 400
    assert json.loads(response.data)['kind'] == 'expired'

def test_expired_qr_over_http(client, faculty, student, joined, clock):
    qr = json.loads(start_session(client, faculty, joined['id']).data)['data']
    clock.advance(120)

    response = scan(client, student, qr['qr_data'])
    assert response.status_code == 400
    assert json.loads(response.data)['kind'] == 'expired'

def test_scan_requires_qr_data(client, student):
    response = client.post('/api/student/scan-qr', headers=student, json={})
    assert response.status_code == 400

def test_scan_garbage(client, student):
    response = client.post('/api/student/scan-qr', headers=student, json={'qrData': 'garbage'})
    assert response.status_code == 400
    assert json.loads(response.data)['kind'] == 'invalid_format'

def test_generate_qr_validation(client, faculty, course_data):
    response = client.post('/api/faculty/generate-qr', headers=faculty,
                           json={'courseId': course_data['id']})
    assert response.status_code == 400
    assert json.loads(response.data)['kind'] == 'validation_error'

    response = start_session(client, faculty, course_data['id'], validitySeconds=5)
    assert response.status_code == 400

def test_generate_qr_other_faculty(client, auth_headers, course_data):
    response = start_session(client, auth_headers('faculty-2'), course_data['id'])
    assert response.status_code == 403
    assert json.loads(response.data)['kind'] == 'forbidden'

def test_refresh_qr_over_http(client, faculty, student, joined):
    first = json.loads(start_session(client, faculty, joined['id']).data)['data']

    response = client.post(f"/api/faculty/session/{first['session_id']}/refresh-qr",
                           headers=faculty, json={'expiresIn': 60})
    assert response.status_code == 200
    second = json.loads(response.data)['data']
    assert second['expires_in'] == 60

    assert json.loads(scan(client, student, first['qr_data']).data)['kind'] == 'expired'
    assert scan(client, student, second['qr_data']).status_code == 200

def test_manual_attendance_over_http(client, faculty, student, joined):
    qr = json.loads(start_session(client, faculty, joined['id']).data)['data']
    session_id = qr['session_id']
    scan(client, student, qr['qr_data'])

    url = f'/api/faculty/session/{session_id}/manual-attendance'
    response = client.post(url, headers=faculty, json={'presentStudentIds': ['student-9']})
    assert response.status_code == 200
    assert json.loads(response.data)['data'] == {'added': 1, 'removed': 1}

    response = client.post(url, headers=faculty, json={'presentStudentIds': 'student-9'})
    assert response.status_code == 400

    response = client.get(
        f"/api/faculty/course/{joined['id']}/students?sessionId={session_id}", headers=faculty
    )
    students = json.loads(response.data)['data']['students']
    assert [(s['id'], s['present']) for s in students] == [(STUDENT_ID, False)]

def test_enroll_and_roster_upload(client, faculty, auth_headers, course_data):
    for n in (2, 3):
        client.post('/api/student/profile', headers=auth_headers(f'student-{n}'),
                    json={'email': f's{n}@example.edu', 'name': f'Student {n}'})

    response = client.post('/api/faculty/enroll-student', headers=faculty,
                           json={'courseId': course_data['id'], 'studentEmail': 's2@example.edu'})
    assert response.status_code == 201

    response = client.post('/api/faculty/enroll-student', headers=faculty,
                           json={'courseId': course_data['id'], 'studentEmail': 's2@example.edu'})
    assert response.status_code == 409

    roster = b'email\ns2@example.edu\ns3@example.edu\nnobody@example.edu\n'
    response = client.post(
        f"/api/faculty/courses/{course_data['id']}/roster",
        headers=faculty,
        data={'file': (io.BytesIO(roster), 'roster.csv')},
        content_type='multipart/form-data'
    )
    assert response.status_code == 200
    summary = json.loads(response.data)['data']['summary']
    assert summary == {'total': 3, 'enrolled': 1, 'failed': 2}

    response = client.get('/api/faculty/courses', headers=faculty)
    courses = json.loads(response.data)['data']['courses']
    assert courses[0]['enrolled_count'] == 2

def test_delete_course_over_http(client, faculty, student, joined):
    response = client.delete(f"/api/faculty/courses/{joined['id']}", headers=faculty)
    assert response.status_code == 200

    response = client.get('/api/faculty/courses', headers=faculty)
    assert json.loads(response.data)['data']['courses'] == []

    response = start_session(client, faculty, joined['id'])
    assert response.status_code == 404

def test_storage_failure_is_unavailable(client, faculty, monkeypatch):
    """Database errors surface as a retryable 503 after a rollback."""
    def locked(faculty_id):
        raise OperationalError('SELECT 1', {}, Exception('database is locked'))

    rollbacks = []
    rollback = Session.rollback

    def spy(session):
        rollbacks.append(session)
        return rollback(session)

    monkeypatch.setattr(CourseService, 'list_courses', staticmethod(locked))
    monkeypatch.setattr(Session, 'rollback', spy)

    response = client.get('/api/faculty/courses', headers=faculty)

    assert response.status_code == 503
    data = json.loads(response.data)
    assert data['kind'] == 'unavailable'
    assert data['error'] is True
    assert rollbacks

def test_profile_with_bad_field_type(client, student):
    """Malformed profile fields are a client error, not a storage failure."""
    response = client.post('/api/student/profile', headers=student, json={'name': {'a': 1}})

    assert response.status_code == 400
    assert json.loads(response.data)['kind'] == 'validation_error'

    response = client.post('/api/student/profile', headers=student, json=['Asha'])
    assert response.status_code == 400
