# backend/geoattend/services/profile_service.py
"""Student and faculty profile upserts."""
from typing import Dict, Type

from geoattend import db
from geoattend.models.profile import FacultyProfile, StudentProfile
from geoattend.utils.decorators import Principal
from geoattend.utils.errors import ValidationError

class ProfileService:
    """Owner-only profile writes with merge semantics."""

    @staticmethod
    def _upsert(model: Type, principal: Principal, data: Dict):
        if not isinstance(data, dict):
            raise ValidationError("Profile must be a JSON object")
        data = dict(data)
        # The verified email wins over the one in the body
        data['email'] = principal.email or data.get('email')

        profile = db.session.get(model, principal.id)
        if profile is None:
            profile = model(id=principal.id)

        profile.merge(data)
        db.session.add(profile)
        db.session.commit()
        return profile

    @staticmethod
    def upsert_student_profile(principal: Principal, data: Dict) -> StudentProfile:
        return ProfileService._upsert(StudentProfile, principal, data)

    @staticmethod
    def upsert_faculty_profile(principal: Principal, data: Dict) -> FacultyProfile:
        return ProfileService._upsert(FacultyProfile, principal, data)
