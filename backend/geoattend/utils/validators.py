"""Validation utilities for the application."""
import math
from typing import Dict, List, Any, Optional

from geoattend.utils.errors import ValidationError

class Validator:
    """Validation helper class."""

    @staticmethod
    def validate_required_fields(data: Dict, required_fields: List[str]) -> Dict[str, Any]:
        """Validate required fields in data."""
        errors = []

        for field in required_fields:
            value = data.get(field)
            if value is None or (isinstance(value, str) and not value.strip()):
                errors.append(f"{field} is required")

        return {
            "is_valid": len(errors) == 0,
            "errors": errors
        }

    @staticmethod
    def require_fields(data: Dict, required_fields: List[str]) -> None:
        """Raise ValidationError listing every missing field."""
        missing = [
            field for field in required_fields
            if not Validator.validate_required_fields(data or {}, [field])["is_valid"]
        ]
        if missing:
            raise ValidationError(f"Missing required fields: {', '.join(missing)}")

    @staticmethod
    def to_float(value: Any, name: str) -> float:
        """Coerce a finite number, rejecting booleans and NaN/inf."""
        if isinstance(value, bool):
            raise ValidationError(f"{name} must be a number")
        try:
            number = float(value)
        except (TypeError, ValueError):
            raise ValidationError(f"{name} must be a number")
        if not math.isfinite(number):
            raise ValidationError(f"{name} must be a finite number")
        return number

    @staticmethod
    def validate_coordinates(latitude: Any, longitude: Any) -> tuple:
        """Return (lat, lon) as floats or raise ValidationError."""
        lat = Validator.to_float(latitude, 'latitude')
        lon = Validator.to_float(longitude, 'longitude')

        if not -90 <= lat <= 90:
            raise ValidationError("latitude must be between -90 and 90")
        if not -180 <= lon <= 180:
            raise ValidationError("longitude must be between -180 and 180")

        return lat, lon

    @staticmethod
    def validate_radius(radius: Any, maximum: float) -> float:
        value = Validator.to_float(radius, 'radius')
        if value <= 0 or value > maximum:
            raise ValidationError(f"radius must be between 0 and {maximum:g} meters")
        return value

    @staticmethod
    def validate_validity(seconds: Any, minimum: int, maximum: int) -> int:
        """Validate a QR validity window in seconds."""
        value = Validator.to_float(seconds, 'validitySeconds')
        if value < minimum or value > maximum:
            raise ValidationError(
                f"validitySeconds must be between {minimum} and {maximum} seconds"
            )
        return int(value)

    @staticmethod
    def validate_id_list(values: Any, name: str) -> List[str]:
        """Validate a list of identifiers, dropping duplicates in order."""
        if not isinstance(values, list):
            raise ValidationError(f"{name} must be an array")

        seen: Dict[str, None] = {}
        for value in values:
            if not isinstance(value, str) or not value.strip():
                raise ValidationError(f"{name} must contain non-empty strings")
            seen.setdefault(value, None)
        return list(seen)

    @staticmethod
    def optional_str(value: Any) -> Optional[str]:
        if value is None:
            return None
        return str(value).strip() or None
