from flask import Flask, jsonify, request
from werkzeug.exceptions import HTTPException
from .extensions import db, migrate, bcrypt, jwt, celery
from .exceptions import HospitalError
import logging
import os

# Setup basic logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s %(levelname)s: %(message)s'
)
logger = logging.getLogger(__name__)


def init_celery(app):
    """Bind the shared Celery instance to this app's config and context"""
    celery.conf.update(
        broker_url=app.config['CELERY_BROKER_URL'],
        result_backend=app.config['CELERY_RESULT_BACKEND'],
        task_serializer=app.config['CELERY_TASK_SERIALIZER'],
        accept_content=app.config['CELERY_ACCEPT_CONTENT'],
        result_serializer=app.config['CELERY_RESULT_SERIALIZER'],
        timezone=app.config['CELERY_TIMEZONE'],
        enable_utc=app.config['CELERY_ENABLE_UTC'],
        task_always_eager=app.config.get('CELERY_TASK_ALWAYS_EAGER', False),
    )

    class FlaskAppContextTask(celery.Task):
        """Make celery tasks work with Flask app context."""
        def __call__(self, *args, **kwargs):
            with app.app_context():
                return self.run(*args, **kwargs)

    celery.Task = FlaskAppContextTask
    return celery


def create_app(config_name=None):
    """Create Flask application factory"""
    app = Flask(__name__)

    # Load configuration
    from hms.config import config, get_config
    config_class = config.get(config_name, config['default']) if config_name else get_config()
    app.config.from_object(config_class)

    # Ensure production mode if FLASK_ENV is production
    if os.getenv('FLASK_ENV') == 'production' and not config_name:
        config_class.validate()
        app.config['DEBUG'] = False
        app.config['TESTING'] = False

    # Initialize extensions first (before error handlers)
    db.init_app(app)
    migrate.init_app(app, db)
    bcrypt.init_app(app)
    jwt.init_app(app)

    from hms.utils.cors import init_cors
    init_cors(app)

    init_celery(app)

    @jwt.unauthorized_loader
    def missing_token(reason):
        return jsonify({'success': False, 'error': 'Authentication required'}), 401

    @jwt.invalid_token_loader
    def invalid_token(reason):
        return jsonify({'success': False, 'error': f'Invalid token: {reason}'}), 401

    @jwt.expired_token_loader
    def expired_token(jwt_header, jwt_payload):
        return jsonify({'success': False, 'error': 'Token has expired'}), 401

    # Domain errors raised by services
    @app.errorhandler(HospitalError)
    def handle_hospital_error(error):
        if error.status_code >= 500:
            logger.error(f"{error.code}: {error.message}")
        return jsonify(error.to_dict()), error.status_code

    # Global error handler
    @app.errorhandler(500)
    def internal_error(error):
        logger.error(f"Internal Server Error: {error}", exc_info=True)
        return jsonify({
            'success': False,
            'error': 'Internal server error. Check server logs for details.'
        }), 500

    @app.errorhandler(404)
    def not_found(error):
        return jsonify({
            'success': False,
            'error': 'Endpoint not found'
        }), 404

    @app.errorhandler(Exception)
    def handle_exception(e):
        if isinstance(e, HTTPException):
            return jsonify({'success': False, 'error': e.description}), e.code
        logger.error(f"Unhandled exception: {e}", exc_info=True)
        return jsonify({
            'success': False,
            'error': 'Internal server error. Check server logs for details.'
        }), 500

    # Setup logging
    if not app.debug and not app.testing:
        from logging.handlers import RotatingFileHandler

        log_file = app.config.get('LOG_FILE', 'logs/app.log')
        log_dir = os.path.dirname(log_file)
        if log_dir and not os.path.exists(log_dir):
            os.makedirs(log_dir)

        file_handler = RotatingFileHandler(
            log_file,
            maxBytes=10240000,
            backupCount=10
        )
        file_handler.setFormatter(logging.Formatter(
            '%(asctime)s %(levelname)s: %(message)s [in %(pathname)s:%(lineno)d]'
        ))
        file_handler.setLevel(app.config.get('LOG_LEVEL', 'INFO'))
        app.logger.addHandler(file_handler)
        app.logger.setLevel(app.config.get('LOG_LEVEL', 'INFO'))
        app.logger.info('Application startup')

    # Security headers middleware
    @app.after_request
    def set_security_headers(response):
        """Add security headers to all responses"""
        if not app.debug:
            response.headers['X-Content-Type-Options'] = 'nosniff'
            response.headers['X-Frame-Options'] = 'DENY'
            response.headers['Referrer-Policy'] = 'strict-origin-when-cross-origin'
            # Only add HSTS if using HTTPS
            if request.is_secure:
                response.headers['Strict-Transport-Security'] = 'max-age=31536000; includeSubDomains'
        return response

    # Import models to register them with SQLAlchemy
    with app.app_context():
        from . import models  # noqa: F401

        from .routes import auth_bp, appointment_bp, analytics_bp, health_bp
        app.register_blueprint(health_bp)  # Register health check first
        app.register_blueprint(auth_bp)
        app.register_blueprint(appointment_bp)
        app.register_blueprint(analytics_bp)

    return app
