"""
WSGI entry point for production deployment
Run with: gunicorn -w 4 -b 0.0.0.0:8000 wsgi:application
Set FLASK_ENV=production so the production config (and its SECRET_KEY check) is used.
"""
from hms import create_app

application = app = create_app()
