"""
Development server entry point
Run the Flask application with: python run.py
"""
import os

from hms import create_app

app = create_app()

if __name__ == '__main__':
    host = os.getenv('FLASK_HOST', '0.0.0.0')
    port = int(os.getenv('FLASK_PORT', 5000))
    debug = os.getenv('FLASK_ENV', 'development') == 'development'
    whatsapp = bool(app.config.get('WHATSAPP_PHONE_NUMBER_ID') and app.config.get('WHATSAPP_ACCESS_TOKEN'))

    print(f"""
    ========================================
    Hospital Backend
    ========================================
    Listening: http://{host}:{port}
    Debug: {debug}
    Database: {app.config['SQLALCHEMY_DATABASE_URI'].split('@')[-1]}
    WhatsApp: {'configured' if whatsapp else 'not configured (notifications skipped)'}
    Notifications: {'celery worker' if app.config.get('NOTIFICATIONS_ASYNC') else 'inline'}
    ========================================
    """)

    app.run(host=host, port=port, debug=debug, threaded=True)
