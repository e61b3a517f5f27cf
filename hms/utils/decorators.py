from dataclasses import dataclass
from functools import wraps
from typing import Optional

from flask import jsonify
from flask_jwt_extended import get_jwt_identity, get_jwt

from hms.extensions import db
from hms.models import User


@dataclass(frozen=True)
class AuthContext:
    """Authenticated identity passed explicitly into services."""
    user_id: int
    role: str
    hospital_id: Optional[int]
    patient_id: Optional[int] = None

    @classmethod
    def for_user(cls, user):
        return cls(user_id=user.id, role=user.role, hospital_id=user.hospital_id, patient_id=user.patient_id)

    @property
    def is_staff(self):
        return self.role in ('admin', 'doctor', 'receptionist')

    def can_overbook(self):
        return self.role in ('admin', 'doctor')


def get_auth_context() -> AuthContext:
    """Build the AuthContext from the current JWT claims."""
    claims = get_jwt()
    return AuthContext(
        user_id=int(get_jwt_identity()),
        role=claims.get('role'),
        hospital_id=claims.get('hospital_id'),
        patient_id=claims.get('patient_id'),
    )


def require_role(*roles):
    """
    Decorator to require specific roles
    Usage: @require_role('doctor', 'receptionist')
    """
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            """
            Require that the current JWT-authenticated user has one of the given roles.
            Must be used together with @jwt_required() on the route.
            """
            try:
                user_id = int(get_jwt_identity())
                user = db.session.get(User, user_id)
            except (TypeError, ValueError):
                return jsonify({
                    'success': False,
                    'error': 'Authentication required'
                }), 401

            if not user or not user.is_active:
                return jsonify({
                    'success': False,
                    'error': 'Authentication required'
                }), 401

            if user.role not in roles:
                return jsonify({
                    'success': False,
                    'error': f'Permission denied. Required roles: {", ".join(roles)}'
                }), 403

            return f(*args, **kwargs)
        return decorated_function
    return decorator
