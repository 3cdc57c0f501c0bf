"""Attendance session and its active QR credential."""
from geoattend import db
from geoattend.models.base import BaseModel
from geoattend.utils.helpers import utcnow, isoformat

class AttendanceSession(BaseModel):
    """A single class meeting; outlives its QR tokens."""
    
    __tablename__ = 'sessions'
    
    course_id = db.Column(db.String(32), db.ForeignKey('courses.id'), nullable=False, index=True)
    faculty_id = db.Column(db.String(128), nullable=False, index=True)
    
    # Snapshot of the course at start time
    course_name = db.Column(db.String(255), nullable=True)
    course_code = db.Column(db.String(50), nullable=True)
    
    date = db.Column(db.DateTime, default=utcnow, nullable=False, index=True)
    start_time = db.Column(db.String(10), nullable=True)
    ended_at = db.Column(db.DateTime, nullable=True)
    room_number = db.Column(db.String(50), nullable=True)
    
    # Geofence center and radius
    latitude = db.Column(db.Float, nullable=True)
    longitude = db.Column(db.Float, nullable=True)
    geofence_radius = db.Column(db.Float, default=50, nullable=False)
    
    # Stats
    present_count = db.Column(db.Integer, default=0, nullable=False)
    total_students = db.Column(db.Integer, default=0, nullable=False)
    is_active = db.Column(db.Boolean, default=True, nullable=False)
    
    # Relationships
    course = db.relationship('Course', backref=db.backref('sessions', lazy='dynamic'))
    records = db.relationship('AttendanceRecord', backref='session', lazy='dynamic')
    
    @property
    def has_geofence(self) -> bool:
        return self.latitude is not None and self.longitude is not None
    
    def is_owned_by(self, faculty_id: str) -> bool:
        return self.faculty_id == faculty_id
    
    def to_dict(self):
        """Convert to dictionary."""
        return {
            'id': self.id,
            'course_id': self.course_id,
            'course_name': self.course_name,
            'course_code': self.course_code,
            'faculty_id': self.faculty_id,
            'date': isoformat(self.date),
            'start_time': self.start_time,
            'ended_at': isoformat(self.ended_at),
            'room_number': self.room_number,
            'location': {
                'latitude': self.latitude,
                'longitude': self.longitude,
                'radius': self.geofence_radius
            },
            'present_count': self.present_count,
            'total_students': self.total_students,
            'is_active': self.is_active,
            'created_at': isoformat(self.created_at)
        }

class ActiveQR(BaseModel):
    """Persisted copy of the current token; id is the session id."""
    
    __tablename__ = 'active_qrs'
    
    course_id = db.Column(db.String(32), nullable=False)
    faculty_id = db.Column(db.String(128), nullable=False)
    timestamp = db.Column(db.BigInteger, nullable=False)
    expires_at = db.Column(db.BigInteger, nullable=False)
    latitude = db.Column(db.Float, nullable=True)
    longitude = db.Column(db.Float, nullable=True)
    radius = db.Column(db.Float, nullable=True)
    signature = db.Column(db.String(64), nullable=False)
    
    @property
    def session_id(self) -> str:
        return self.id
