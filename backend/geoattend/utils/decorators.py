# backend/geoattend/utils/decorators.py
"""Identity helpers and authorization decorators."""
from dataclasses import dataclass
from functools import wraps
from typing import Optional
from flask_jwt_extended import get_jwt, get_jwt_identity
from geoattend import db
from geoattend.utils.helpers import error_response

@dataclass(frozen=True)
class Principal:
    """Verified caller as reported by the identity provider."""
    id: str
    email: Optional[str] = None

def current_principal() -> Principal:
    """Principal of the current request; call inside ``jwt_required``."""
    return Principal(
        id=str(get_jwt_identity()),
        email=get_jwt().get('email')
    )

def student_profile_required(f):
    """Decorator to require an existing student profile."""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        from geoattend.models.profile import StudentProfile

        if not db.session.get(StudentProfile, current_principal().id):
            return error_response("Student profile not found", 404)

        return f(*args, **kwargs)
    return decorated_function
