from flask import Blueprint, request, jsonify, current_app
from flask_jwt_extended import (
    create_access_token,
    create_refresh_token,
    jwt_required,
    get_jwt_identity,
)
from hms.models import User
from hms.extensions import db
from hms.utils.audit import log_audit
from hms.utils.decorators import AuthContext
from datetime import datetime

auth_bp = Blueprint('auth', __name__, url_prefix='/api/auth')


def token_claims(user):
    """Claims every service reads through AuthContext"""
    return {
        'username': user.username,
        'role': user.role,
        'hospital_id': user.hospital_id,
        'patient_id': user.patient_id,
    }


@auth_bp.route('/login', methods=['POST'])
def login():
    """Login endpoint - authenticates a user and returns JWT tokens"""
    data = request.get_json(silent=True)

    if not data:
        return jsonify({
            'success': False,
            'error': 'Request body must be JSON'
        }), 400

    username = data.get('username')
    password = data.get('password')

    if not username or not password:
        return jsonify({
            'success': False,
            'error': 'Username and password required'
        }), 400

    user = User.query.filter_by(username=username).first()

    if not user or not user.check_password(password):
        return jsonify({
            'success': False,
            'error': 'Invalid username or password'
        }), 401

    if not user.is_active:
        return jsonify({
            'success': False,
            'error': 'Account is deactivated'
        }), 403

    # Update login tracking
    user.last_login = datetime.utcnow()
    user.login_count = (user.login_count or 0) + 1
    db.session.commit()

    # Identity must be a string for the JWT "sub" claim
    identity = str(user.id)
    claims = token_claims(user)
    access_token = create_access_token(identity=identity, additional_claims=claims, fresh=True)
    refresh_token = create_refresh_token(identity=identity, additional_claims=claims)

    log_audit(db.session, AuthContext.for_user(user), 'user', 'login', user.id)

    expires = current_app.config.get('JWT_ACCESS_TOKEN_EXPIRES')
    return jsonify({
        'success': True,
        'data': user.to_dict(),
        'access_token': access_token,
        'refresh_token': refresh_token,
        'token_type': 'bearer',
        'expires_in': int(expires.total_seconds()) if expires else None
    }), 200


@auth_bp.route('/refresh', methods=['POST'])
@jwt_required(refresh=True)
def refresh():
    """Exchange a refresh token for a new access token"""
    user = db.session.get(User, int(get_jwt_identity()))
    if not user or not user.is_active:
        return jsonify({'success': False, 'error': 'Authentication required'}), 401

    access_token = create_access_token(identity=str(user.id), additional_claims=token_claims(user))
    return jsonify({'success': True, 'access_token': access_token, 'token_type': 'bearer'}), 200


@auth_bp.route('/me', methods=['GET'])
@jwt_required()
def get_current_user():
    """Get current logged-in user information using JWT"""
    user = db.session.get(User, int(get_jwt_identity()))

    if not user:
        return jsonify({'success': False, 'error': 'User not found'}), 404

    data = user.to_dict()
    data['last_login'] = user.last_login.isoformat() if user.last_login else None
    data['login_count'] = user.login_count
    return jsonify({'success': True, 'data': data}), 200
