from .auth import auth_bp
from .appointment import appointment_bp
from .analytics import analytics_bp
from .health import health_bp

__all__ = ['auth_bp', 'appointment_bp', 'analytics_bp', 'health_bp']
