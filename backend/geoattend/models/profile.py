"""Student and faculty profiles keyed by the authenticated principal."""
from typing import Dict, Any
from geoattend import db
from geoattend.models.base import BaseModel
from geoattend.utils.errors import ValidationError

class ProfileMixin:
    """Upsert-merge behaviour shared by both profile kinds."""

    # Maps request keys to column names
    FIELD_ALIASES: Dict[str, str] = {}
    EDITABLE_FIELDS: tuple = ()

    def merge(self, data: Dict[str, Any]) -> None:
        """Write only the provided, non-null fields; unset fields are preserved."""
        updates = {}
        for key, value in data.items():
            field = self.FIELD_ALIASES.get(key, key)
            if field not in self.EDITABLE_FIELDS or value is None:
                continue
            if isinstance(value, bool) or not isinstance(value, (str, int, float)):
                raise ValidationError(f"{key} must be a string or a number")
            updates[field] = str(value)

        for field, value in updates.items():
            setattr(self, field, value)

class StudentProfile(ProfileMixin, BaseModel):
    """Student profile document."""

    __tablename__ = 'students'

    # The principal id issued by the identity provider
    id = db.Column(db.String(128), primary_key=True)

    FIELD_ALIASES = {
        'rollNo': 'roll_no',
        'rollNumber': 'roll_no',
        'programId': 'program_id',
    }
    EDITABLE_FIELDS = (
        'email', 'name', 'roll_no', 'program_id', 'year',
        'batch', 'semester', 'department',
    )

    email = db.Column(db.String(255), nullable=True, index=True)
    name = db.Column(db.String(255), nullable=True)
    roll_no = db.Column(db.String(50), nullable=True)
    program_id = db.Column(db.String(50), nullable=True)
    year = db.Column(db.String(20), nullable=True)
    batch = db.Column(db.String(20), nullable=True)
    semester = db.Column(db.String(20), nullable=True)
    department = db.Column(db.String(100), nullable=True)

    def to_dict(self, exclude: list = None) -> Dict[str, Any]:
        data = super().to_dict(exclude=exclude)
        data['user_id'] = self.id
        return data

class FacultyProfile(ProfileMixin, BaseModel):
    """Faculty profile document."""

    __tablename__ = 'faculty'

    id = db.Column(db.String(128), primary_key=True)

    EDITABLE_FIELDS = (
        'email', 'name', 'employee_id', 'designation',
        'department', 'specialization',
    )
    FIELD_ALIASES = {
        'employeeId': 'employee_id',
    }

    email = db.Column(db.String(255), nullable=True, index=True)
    name = db.Column(db.String(255), nullable=True)
    employee_id = db.Column(db.String(50), nullable=True)
    designation = db.Column(db.String(100), nullable=True)
    department = db.Column(db.String(100), nullable=True)
    specialization = db.Column(db.String(255), nullable=True)

    def to_dict(self, exclude: list = None) -> Dict[str, Any]:
        data = super().to_dict(exclude=exclude)
        data['user_id'] = self.id
        return data
