"""
CORS Configuration
Origins come from CORS_ORIGINS (comma separated); '*' when unset
"""
import os

CORS_CONFIG = {
    "methods": ["GET", "POST", "PUT", "DELETE", "OPTIONS", "PATCH"],
    "allow_headers": [
        "Content-Type",
        "Authorization",
        "X-Requested-With",
        "Accept",
        "Origin",
    ],
    "expose_headers": [
        "Content-Type",
        "Content-Disposition",
    ],
    "max_age": 86400,  # 24 hours
}


def cors_origins():
    raw = os.getenv('CORS_ORIGINS', '*').strip()
    if raw == '*':
        return '*'
    return [origin.strip() for origin in raw.split(',') if origin.strip()]


def init_cors(app):
    """
    Initialize CORS for the API blueprints
    """
    from flask_cors import CORS

    origins = cors_origins()
    CORS(app,
         resources={r"/api/*": {"origins": origins}, r"/health/*": {"origins": "*"}},
         methods=CORS_CONFIG["methods"],
         allow_headers=CORS_CONFIG["allow_headers"],
         expose_headers=CORS_CONFIG["expose_headers"],
         # Credentials are never combined with a wildcard origin
         supports_credentials=origins != '*',
         max_age=CORS_CONFIG["max_age"])

    app.logger.info("CORS enabled for origins: %s", origins)
