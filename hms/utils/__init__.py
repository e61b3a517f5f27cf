from .decorators import AuthContext, require_role, get_auth_context

from .audit import log_audit

__all__ = [
    # Decorators
    "AuthContext",
    "require_role",
    "get_auth_context",
    # Audit
    "log_audit",
]
