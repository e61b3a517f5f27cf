"""
Dashboard analytics endpoints
All endpoints accept ?branch_id=<id|all> and ?time_range=30days|3months|6months|1year|all
"""
from flask import Blueprint, request, jsonify
from flask_jwt_extended import jwt_required

from hms.extensions import db
from hms.services.analytics_service import get_analytics_section
from hms.utils.decorators import require_role, get_auth_context

analytics_bp = Blueprint('analytics', __name__, url_prefix='/api/analytics')


def _section_response(section, **extra):
    data = get_analytics_section(
        db.session,
        get_auth_context(),
        section,
        branch_id=request.args.get('branch_id', 'all', type=str),
        time_range=request.args.get('time_range', 'all', type=str),
        **extra
    )
    return jsonify({'success': True, 'data': data}), 200


@analytics_bp.route('/trends', methods=['GET'])
@jwt_required()
@require_role('admin', 'doctor', 'receptionist')
def trends():
    """Weekly, monthly and yearly appointment counts"""
    return _section_response('trends')


@analytics_bp.route('/revenue', methods=['GET'])
@jwt_required()
@require_role('admin', 'doctor')
def revenue():
    """Revenue summary, by doctor, payment methods, 12-month series and prediction"""
    return _section_response('revenue')


@analytics_bp.route('/conditions', methods=['GET'])
@jwt_required()
@require_role('admin', 'doctor')
def conditions():
    """Common conditions; ?top_n=6 for pie charts, 8 (default) for summaries"""
    return _section_response('conditions', top_n=request.args.get('top_n', type=int))


@analytics_bp.route('/medicines', methods=['GET'])
@jwt_required()
@require_role('admin', 'doctor')
def medicines():
    """Most prescribed medicines"""
    return _section_response('medicines', top_n=request.args.get('top_n', type=int))


@analytics_bp.route('/doctors', methods=['GET'])
@jwt_required()
@require_role('admin')
def doctors():
    """Doctor performance scorecards"""
    return _section_response('doctors')


@analytics_bp.route('/receptionists', methods=['GET'])
@jwt_required()
@require_role('admin')
def receptionists():
    """Booking sources and receptionist scorecards"""
    return _section_response('receptionists')
