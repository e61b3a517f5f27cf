import io
import logging
from datetime import datetime

from flask import Blueprint, request, jsonify, current_app, send_file
from flask_jwt_extended import jwt_required

from hms.extensions import db
from hms.models import Appointment, Patient
from hms.models.appointment import APPOINTMENT_STATUSES
from hms.services import reservation_service
from hms.utils.audit import log_audit
from hms.utils.decorators import require_role, get_auth_context
from hms.utils.pdf_utils import generate_confirmation_pdf, generate_prescription_pdf, generate_invoice_pdf

logger = logging.getLogger(__name__)

appointment_bp = Blueprint('appointment', __name__, url_prefix='/api/appointments')

STAFF_ROLES = ('admin', 'doctor', 'receptionist')


def _json_body():
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        return None
    return data


def _flag(value):
    return value in (True, 1, '1', 'true', 'True', 'yes')


@appointment_bp.route('/reserve', methods=['POST'])
@jwt_required()
@require_role('patient', 'receptionist', 'doctor', 'admin')
def reserve_appointment():
    """
    Reserve a doctor's slot and create the appointment.
    Access: patient (own record only), receptionist, doctor, admin

    Body:
        doctor_id, appointment_date (YYYY-MM-DD), appointment_time,
        patient_id, patient_name, and optionally patient_phone,
        chief_complaint, branch_id, booking_type, payment_amount,
        total_consultation_fee, payment_method, payment_status,
        created_by, overbooking_allowed (doctor/admin only)
    """
    data = _json_body()
    if data is None:
        return jsonify({
            'success': False,
            'error': 'Request body must be JSON'
        }), 400

    auth = get_auth_context()
    appointment = reservation_service.reserve_and_create(
        db.session,
        auth,
        data.get('doctor_id'),
        data.get('appointment_date'),
        data.get('appointment_time'),
        data,
        overbooking_allowed=_flag(data.get('overbooking_allowed')),
    )

    return jsonify({
        'success': True,
        'id': appointment.id,
        'data': appointment.to_dict(),
        'message': 'Appointment booked successfully'
    }), 201


@appointment_bp.route('/whatsapp-requests', methods=['POST'])
@jwt_required()
@require_role('receptionist', 'admin')
def record_whatsapp_request():
    """
    Record a booking request received over WhatsApp as whatsapp_pending.
    The slot is claimed later with PUT /<id>/status {"status": "confirmed"}.
    Access: receptionist, admin
    """
    data = _json_body()
    if data is None:
        return jsonify({
            'success': False,
            'error': 'Request body must be JSON'
        }), 400

    appointment = reservation_service.record_whatsapp_request(
        db.session,
        get_auth_context(),
        data.get('doctor_id'),
        data.get('appointment_date'),
        data.get('appointment_time'),
        data,
    )
    return jsonify({
        'success': True,
        'id': appointment.id,
        'data': appointment.to_dict(),
        'message': 'WhatsApp booking request recorded'
    }), 201


@appointment_bp.route('/check-slot', methods=['GET'])
@jwt_required()
def check_slot():
    """
    Check whether a slot is still free.
    Query params: doctor_id, date (YYYY-MM-DD), time
    """
    doctor_id = request.args.get('doctor_id', type=int)
    slot_date = request.args.get('date', type=str)
    slot_time = request.args.get('time', type=str)
    if not doctor_id or not slot_date or not slot_time:
        return jsonify({
            'success': False,
            'error': 'doctor_id, date and time are required'
        }), 400

    auth = get_auth_context()
    available = reservation_service.is_slot_available(db.session, auth.hospital_id, doctor_id, slot_date, slot_time)
    if not available:
        return jsonify({
            'success': False,
            'available': False,
            'error': 'SLOT_ALREADY_BOOKED',
            'message': 'This time slot has already been booked. Please select another slot.'
        }), 409
    return jsonify({'success': True, 'available': True}), 200


@appointment_bp.route('/available-slots', methods=['GET'])
@jwt_required()
def available_slots():
    """
    Free 15-minute slots for a doctor on a date.
    Query params: doctor_id, date (YYYY-MM-DD)
    """
    doctor_id = request.args.get('doctor_id', type=int)
    slot_date = request.args.get('date', type=str)
    if not doctor_id or not slot_date:
        return jsonify({
            'success': False,
            'error': 'doctor_id and date are required'
        }), 400

    auth = get_auth_context()
    slots = reservation_service.list_available_slots(db.session, auth.hospital_id, doctor_id, slot_date)
    return jsonify({
        'success': True,
        'data': slots,
        'date': slot_date,
        'doctor_id': doctor_id
    }), 200


@appointment_bp.route('', methods=['GET'])
@jwt_required()
@require_role(*STAFF_ROLES)
def list_appointments():
    """
    List appointments of the caller's hospital with filters and pagination.
    Query params:
        date: YYYY-MM-DD (optional)
        doctor_id, patient_id, status, branch_id (optional)
        page, limit: Pagination
    Doctors only see their own appointments.
    """
    auth = get_auth_context()

    page = request.args.get('page', 1, type=int)
    limit = request.args.get('limit', 20, type=int)
    filter_date = request.args.get('date', type=str)
    doctor_id = request.args.get('doctor_id', type=int)
    patient_id = request.args.get('patient_id', type=int)
    branch_id = request.args.get('branch_id', type=int)
    status = request.args.get('status', type=str)

    if page < 1:
        page = 1
    if limit < 1 or limit > 100:
        limit = 20

    query = Appointment.query.filter(Appointment.hospital_id == auth.hospital_id)

    if auth.role == 'doctor':
        doctor_id = auth.user_id

    if filter_date:
        try:
            filter_date_obj = datetime.strptime(filter_date, '%Y-%m-%d').date()
        except ValueError:
            return jsonify({
                'success': False,
                'error': 'Invalid date format. Use YYYY-MM-DD'
            }), 400
        query = query.filter(Appointment.appointment_date == filter_date_obj)

    if doctor_id:
        query = query.filter(Appointment.doctor_id == doctor_id)
    if patient_id:
        query = query.filter(Appointment.patient_id == patient_id)
    if branch_id:
        query = query.filter(Appointment.branch_id == branch_id)
    if status:
        if status not in APPOINTMENT_STATUSES:
            return jsonify({
                'success': False,
                'error': f'Invalid status. Must be one of: {", ".join(APPOINTMENT_STATUSES)}'
            }), 400
        query = query.filter(Appointment.status == status)

    total = query.count()
    appointments = query.order_by(
        Appointment.appointment_date.desc(),
        Appointment.appointment_time.asc()
    ).paginate(page=page, per_page=limit, error_out=False)

    return jsonify({
        'success': True,
        'data': [appointment.to_dict() for appointment in appointments.items],
        'pagination': {
            'page': page,
            'limit': limit,
            'total': total,
            'pages': appointments.pages,
            'has_next': appointments.has_next,
            'has_prev': appointments.has_prev
        }
    }), 200


@appointment_bp.route('/<int:appointment_id>', methods=['GET'])
@jwt_required()
def get_appointment(appointment_id):
    """Get single appointment by ID (patients: own appointments only)"""
    appointment = reservation_service.get_appointment(db.session, get_auth_context(), appointment_id)
    return jsonify({'success': True, 'data': appointment.to_dict()}), 200


@appointment_bp.route('/<int:appointment_id>/status', methods=['PUT'])
@jwt_required()
@require_role('doctor', 'receptionist', 'admin')
def update_appointment_status(appointment_id):
    """
    Update appointment status
    Access: doctor, receptionist, admin
    Body: {"status": "completed" | "cancelled" | "not_attended" | ...}
    """
    data = _json_body()
    if not data or not data.get('status'):
        return jsonify({
            'success': False,
            'error': 'Field "status" is required'
        }), 400

    appointment = reservation_service.update_status(
        db.session, get_auth_context(), appointment_id, data['status']
    )
    return jsonify({
        'success': True,
        'data': appointment.to_dict(),
        'message': f'Appointment status updated to {appointment.status}'
    }), 200


@appointment_bp.route('/<int:appointment_id>/complete', methods=['POST'])
@jwt_required()
@require_role('doctor')
def complete_appointment(appointment_id):
    """
    Complete a consultation
    Access: doctor
    Body: medicine, doctor_notes, payment_status, payment_method, payment_amount (all optional)
    """
    data = _json_body() or {}
    appointment = reservation_service.complete_appointment(
        db.session,
        get_auth_context(),
        appointment_id,
        medicine=data.get('medicine'),
        doctor_notes=data.get('doctor_notes'),
        payment_status=data.get('payment_status'),
        payment_method=data.get('payment_method'),
        payment_amount=data.get('payment_amount'),
    )
    return jsonify({
        'success': True,
        'data': appointment.to_dict(),
        'message': 'Appointment completed'
    }), 200


@appointment_bp.route('/<int:appointment_id>/reschedule', methods=['POST'])
@jwt_required()
@require_role('patient', 'receptionist', 'admin')
def reschedule_appointment(appointment_id):
    """
    Move an appointment to another slot
    Access: patient (own appointments), receptionist, admin
    Body: {"appointment_date": "YYYY-MM-DD", "appointment_time": "HH:MM"}
    """
    data = _json_body()
    if not data or not data.get('appointment_date') or not data.get('appointment_time'):
        return jsonify({
            'success': False,
            'error': 'appointment_date and appointment_time are required'
        }), 400

    appointment = reservation_service.reschedule_appointment(
        db.session,
        get_auth_context(),
        appointment_id,
        data['appointment_date'],
        data['appointment_time'],
    )
    return jsonify({
        'success': True,
        'data': appointment.to_dict(),
        'message': 'Appointment rescheduled successfully'
    }), 200


def _pdf_response(appointment, document, render):
    auth = get_auth_context()
    try:
        pdf_bytes = render()
    except Exception as e:
        logger.error("Failed to render %s PDF for appointment %s: %s", document, appointment.id, e, exc_info=True)
        return jsonify({
            'success': False,
            'error': f'Failed to generate {document} PDF'
        }), 500

    log_audit(db.session, auth, 'appointment', 'export', appointment.id, document=document)
    return send_file(
        io.BytesIO(pdf_bytes),
        mimetype='application/pdf',
        as_attachment=True,
        download_name=f'{document}_{appointment.id}.pdf'
    )


@appointment_bp.route('/<int:appointment_id>/confirmation-pdf', methods=['GET'])
@jwt_required()
def confirmation_pdf(appointment_id):
    """Download appointment confirmation"""
    appointment = reservation_service.get_appointment(db.session, get_auth_context(), appointment_id)
    cfg = current_app.config
    return _pdf_response(appointment, 'confirmation', lambda: generate_confirmation_pdf(
        appointment.to_dict(),
        hospital_name=cfg.get('HOSPITAL_DISPLAY_NAME', ''),
        currency=cfg.get('CURRENCY_SYMBOL', 'Rs.'),
    ))


@appointment_bp.route('/<int:appointment_id>/prescription-pdf', methods=['GET'])
@jwt_required()
def prescription_pdf(appointment_id):
    """Download prescription (completed appointments only)"""
    appointment = reservation_service.get_appointment(db.session, get_auth_context(), appointment_id)
    if appointment.status != 'completed':
        return jsonify({
            'success': False,
            'error': 'Prescription is available after the appointment is completed'
        }), 400

    patient = db.session.get(Patient, appointment.patient_id)
    return _pdf_response(appointment, 'prescription', lambda: generate_prescription_pdf(
        appointment.to_dict(),
        patient=patient.to_dict() if patient else None,
        hospital_name=current_app.config.get('HOSPITAL_DISPLAY_NAME', ''),
    ))


@appointment_bp.route('/<int:appointment_id>/invoice-pdf', methods=['GET'])
@jwt_required()
def invoice_pdf(appointment_id):
    """Download consultation invoice"""
    appointment = reservation_service.get_appointment(db.session, get_auth_context(), appointment_id)
    cfg = current_app.config
    return _pdf_response(appointment, 'invoice', lambda: generate_invoice_pdf(
        appointment.to_dict(),
        hospital_name=cfg.get('HOSPITAL_DISPLAY_NAME', ''),
        currency=cfg.get('CURRENCY_SYMBOL', 'Rs.'),
    ))
