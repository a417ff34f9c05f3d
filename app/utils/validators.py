import re
from datetime import datetime, timezone
from typing import Optional, Tuple
from config.config import Config


AGE_GROUP_CODES = ('RK', 'DR', 'AR', 'ER')


def validate_email(email: str) -> Tuple[bool, Optional[str]]:
    """Validate email format"""
    pattern = r'^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$'
    if not email:
        return False, "Email is required"
    if not re.match(pattern, email):
        return False, "Invalid email format"
    return True, None


def validate_password(password: str) -> Tuple[bool, Optional[str]]:
    """Validate password strength"""
    if len(password) < 8:
        return False, "Password must be at least 8 characters long"
    if not re.search(r'[A-Z]', password):
        return False, "Password must contain at least one uppercase letter"
    if not re.search(r'[a-z]', password):
        return False, "Password must contain at least one lowercase letter"
    if not re.search(r'\d', password):
        return False, "Password must contain at least one number"
    return True, None


def validate_rotation_year(year) -> Tuple[bool, Optional[str]]:
    """Validate rotation year range"""
    if year is None or isinstance(year, bool) or not isinstance(year, int):
        return False, "Rotation year is required"
    if year < Config.MIN_ROTATION_YEAR or year > Config.MAX_ROTATION_YEAR:
        return False, f"Rotation year must be between {Config.MIN_ROTATION_YEAR} and {Config.MAX_ROTATION_YEAR}"
    return True, None


def validate_quarter(quarter) -> Tuple[bool, Optional[str]]:
    """Validate rotation quarter (1-4)"""
    if isinstance(quarter, bool) or not isinstance(quarter, int) or not 1 <= quarter <= 4:
        return False, "Rotation quarter must be an integer between 1 and 4"
    return True, None


def validate_age_group(age_group: str, label: str = 'Age group') -> Tuple[bool, Optional[str]]:
    """Validate age group code"""
    if not age_group:
        return False, f"{label} is required"
    if age_group not in AGE_GROUP_CODES:
        return False, f"{label} must be one of: {', '.join(AGE_GROUP_CODES)}"
    return True, None


def validate_required_text(value, label: str) -> Tuple[bool, Optional[str]]:
    """Require a string that is not blank after trimming"""
    if not isinstance(value, str) or not value.strip():
        return False, f"{label} is required"
    return True, None


def parse_datetime(value) -> Optional[datetime]:
    """Accept a datetime, an ISO 8601 string or epoch milliseconds"""
    if value is None or value == '':
        return None
    if isinstance(value, datetime):
        return value
    if isinstance(value, bool):
        raise ValueError("Invalid date value")
    if isinstance(value, (int, float)):
        try:
            return datetime.utcfromtimestamp(value / 1000)
        except (OverflowError, OSError):
            raise ValueError("Date out of range")
    if isinstance(value, str):
        parsed = datetime.fromisoformat(value.replace('Z', '+00:00'))
        if parsed.tzinfo is not None:
            parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
        return parsed
    raise ValueError("Invalid date value")
