# Overview: Password hashing, user creation and credential checks.

"""
Authentication Service

Every mutation in the dashboard is attributed to a user, so accounts are
personal and passwords are stored as bcrypt hashes.

SECURITY NOTES:
- Passwords hashed with bcrypt (cost factor 12)
- Minimum 8 characters, upper, lower, digit and special character
- Session tokens managed separately (see session_service.py)
"""

import re

import bcrypt

from ..extensions import db
from ..errors import ConflictError, ValidationError
from ..models import User
from ..models.auth import USER_ROLES
from ..time_utils import utcnow


class PasswordValidationError(ValidationError):
    """Raised when password doesn't meet strength requirements."""
    pass


def validate_password_strength(password: str) -> None:
    """
    Validate password meets strength requirements.

    Raises PasswordValidationError if requirements not met.
    """
    if len(password) < 8:
        raise PasswordValidationError("Password must be at least 8 characters long")

    if not re.search(r'[A-Z]', password):
        raise PasswordValidationError("Password must contain at least one uppercase letter")

    if not re.search(r'[a-z]', password):
        raise PasswordValidationError("Password must contain at least one lowercase letter")

    if not re.search(r'\d', password):
        raise PasswordValidationError("Password must contain at least one digit")

    if not re.search(r"[!@#$%^&*(),.'\":{}|<>]", password):
        raise PasswordValidationError("Password must contain at least one special character")


def hash_password(password: str, *, rounds: int = 12) -> str:
    """Validate strength, then hash with bcrypt."""
    validate_password_strength(password)
    salt = bcrypt.gensalt(rounds=rounds)
    hashed = bcrypt.hashpw(password.encode('utf-8'), salt)
    return hashed.decode('utf-8')


def verify_password(password: str, password_hash: str) -> bool:
    """
    Verify password against bcrypt hash.

    bcrypt.checkpw() is timing-safe. A malformed stored hash counts as a
    mismatch rather than an error.
    """
    try:
        return bcrypt.checkpw(password.encode('utf-8'), password_hash.encode('utf-8'))
    except ValueError:
        return False


def normalize_email(email: str) -> str:
    return (email or "").strip().lower()


def create_user(name: str, email: str, password: str, role: str = "staff", *, rounds: int = 12) -> User:
    """
    Create a user account.

    Raises:
        ValidationError: missing name/email, unknown role, weak password
        ConflictError: email already registered
    """
    name = (name or "").strip()
    email = normalize_email(email)
    if not name or not email:
        raise ValidationError("name and email are required")
    if role not in USER_ROLES:
        raise ValidationError(f"role must be one of: {', '.join(USER_ROLES)}")

    existing = db.session.query(User).filter_by(email=email).first()
    if existing:
        raise ConflictError("A user with this email already exists", retry=False)

    user = User(
        name=name,
        email=email,
        password_hash=hash_password(password, rounds=rounds),
        role=role,
        is_active=True,
    )
    db.session.add(user)
    db.session.commit()
    return user


def authenticate(email: str, password: str) -> User | None:
    """
    Return the active user matching the credentials, or None.

    Stamps last_login_at on success.
    """
    user = db.session.query(User).filter_by(email=normalize_email(email)).first()
    if not user or not user.is_active:
        return None
    if not verify_password(password or "", user.password_hash):
        return None

    user.last_login_at = utcnow()
    db.session.commit()
    return user
