import os
from datetime import timedelta
from dotenv import load_dotenv

load_dotenv()


class Config:
    """Base configuration"""
    SECRET_KEY = os.getenv('SECRET_KEY') or 'dev-secret-key-change-in-production'
    JWT_SECRET_KEY = os.getenv('JWT_SECRET_KEY') or SECRET_KEY
    JWT_ACCESS_TOKEN_EXPIRES = timedelta(hours=int(os.getenv('JWT_ACCESS_HOURS', '1')))

    SQLALCHEMY_DATABASE_URI = os.getenv('DATABASE_URL', 'sqlite:///hospital.db')
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_ENGINE_OPTIONS = {
        'pool_pre_ping': True,
        'pool_recycle': 300,
    }

    # Hospital display defaults (used in notifications and PDFs)
    HOSPITAL_DISPLAY_NAME = os.getenv('HOSPITAL_DISPLAY_NAME', 'Harmony Medical')
    HOSPITAL_SUPPORT_PHONE = os.getenv('HOSPITAL_SUPPORT_PHONE', '')
    CURRENCY_SYMBOL = os.getenv('CURRENCY_SYMBOL', 'Rs.')

    # Celery Configuration
    CELERY_BROKER_URL = os.getenv('REDIS_URL', 'redis://localhost:6379/0')
    CELERY_RESULT_BACKEND = os.getenv('REDIS_URL', 'redis://localhost:6379/0')
    CELERY_ACCEPT_CONTENT = ['json']
    CELERY_TASK_SERIALIZER = 'json'
    CELERY_RESULT_SERIALIZER = 'json'
    CELERY_TIMEZONE = os.getenv('REMINDER_TIMEZONE', 'Asia/Kolkata')
    CELERY_ENABLE_UTC = True
    CELERY_TASK_ALWAYS_EAGER = os.getenv('CELERY_TASK_ALWAYS_EAGER', 'false').lower() == 'true'

    # WhatsApp Cloud API
    WHATSAPP_API_BASE = os.getenv('WHATSAPP_API_BASE', 'https://graph.facebook.com')
    WHATSAPP_API_VERSION = os.getenv('WHATSAPP_API_VERSION', 'v22.0')
    WHATSAPP_PHONE_NUMBER_ID = os.getenv('WHATSAPP_PHONE_NUMBER_ID')
    WHATSAPP_ACCESS_TOKEN = os.getenv('WHATSAPP_ACCESS_TOKEN')
    WHATSAPP_TIMEOUT = float(os.getenv('WHATSAPP_TIMEOUT', '30'))
    WHATSAPP_DEFAULT_COUNTRY_CODE = os.getenv('WHATSAPP_DEFAULT_COUNTRY_CODE', '91')
    # Dispatch notifications through Celery (True) or inline after commit (False)
    NOTIFICATIONS_ASYNC = os.getenv('NOTIFICATIONS_ASYNC', 'true').lower() == 'true'

    # Logging
    LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO')
    LOG_FILE = os.getenv('LOG_FILE', 'logs/app.log')


class DevelopmentConfig(Config):
    """Development configuration"""
    DEBUG = True
    TESTING = False


class ProductionConfig(Config):
    """Production configuration"""
    DEBUG = False
    TESTING = False

    # Security
    SESSION_COOKIE_SECURE = True
    SESSION_COOKIE_HTTPONLY = True
    SESSION_COOKIE_SAMESITE = 'Lax'

    SQLALCHEMY_ENGINE_OPTIONS = {
        'pool_pre_ping': True,
        'pool_recycle': 3600,
        'pool_size': 20,
        'max_overflow': 40,
    }

    LOG_LEVEL = os.getenv('LOG_LEVEL', 'WARNING')

    @classmethod
    def validate(cls):
        """Refuse to boot with the development secret"""
        secret = os.getenv('SECRET_KEY')
        if not secret or secret == 'dev-secret-key-change-in-production':
            raise ValueError("SECRET_KEY environment variable must be set in production and must not be the default value")


class TestingConfig(Config):
    """Testing configuration"""
    TESTING = True
    DEBUG = True
    SECRET_KEY = 'testing-secret-key-with-enough-length-for-hs256'
    JWT_SECRET_KEY = SECRET_KEY
    SQLALCHEMY_DATABASE_URI = os.getenv('TEST_DATABASE_URL', 'sqlite:///:memory:')
    SQLALCHEMY_ENGINE_OPTIONS = {}
    BCRYPT_LOG_ROUNDS = 4
    CELERY_TASK_ALWAYS_EAGER = True
    NOTIFICATIONS_ASYNC = False
    WHATSAPP_PHONE_NUMBER_ID = None
    WHATSAPP_ACCESS_TOKEN = None


# Configuration mapping
config = {
    'development': DevelopmentConfig,
    'production': ProductionConfig,
    'testing': TestingConfig,
    'default': DevelopmentConfig
}


def get_config():
    """Get configuration based on FLASK_ENV"""
    env = os.getenv('FLASK_ENV', 'development')
    return config.get(env, config['default'])
