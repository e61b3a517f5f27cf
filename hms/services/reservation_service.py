"""
Reservation Service
Slot locking and appointment lifecycle: reserve, reschedule, status changes
"""
import re
import logging
from datetime import datetime, date
from typing import Optional, Dict, Any, Iterable, List, Callable

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from hms.exceptions import (
    ValidationError,
    AccessDenied,
    AppointmentNotFound,
    SlotAlreadyBooked,
    BookingWriteFailed,
)
from hms.models import Appointment, SlotLock, Patient, User, Branch
from hms.models.appointment import APPOINTMENT_STATUSES, BOOKING_SOURCES, OVERBOOKING_TYPES
from hms.utils.audit import log_audit

logger = logging.getLogger(__name__)

SLOT_DURATION_MINUTES = 15

_TIME_24H = re.compile(r'^([01]\d|2[0-3]):[0-5]\d$')
_TIME_12H = re.compile(r'^(\d{1,2})[:\-]?(\d{2})(AM|PM)$')
_KEY_UNSAFE = re.compile(r'[:\s]')

ALLOWED_TRANSITIONS = {
    'confirmed': {'completed', 'cancelled', 'rescheduled', 'not_attended'},
    'rescheduled': {'completed', 'cancelled', 'not_attended', 'rescheduled'},
    'whatsapp_pending': {'confirmed', 'cancelled'},
}

RESCHEDULABLE_STATUSES = ('confirmed', 'rescheduled')

# Default visiting hours (9 AM - 5 PM with 1-2 PM lunch break)
DEFAULT_VISITING_HOURS = {
    'monday': {'is_available': True, 'slots': [{'start': '09:00', 'end': '13:00'}, {'start': '14:00', 'end': '17:00'}]},
    'tuesday': {'is_available': True, 'slots': [{'start': '09:00', 'end': '13:00'}, {'start': '14:00', 'end': '17:00'}]},
    'wednesday': {'is_available': True, 'slots': [{'start': '09:00', 'end': '13:00'}, {'start': '14:00', 'end': '17:00'}]},
    'thursday': {'is_available': True, 'slots': [{'start': '09:00', 'end': '13:00'}, {'start': '14:00', 'end': '17:00'}]},
    'friday': {'is_available': True, 'slots': [{'start': '09:00', 'end': '13:00'}, {'start': '14:00', 'end': '17:00'}]},
    'saturday': {'is_available': True, 'slots': [{'start': '09:00', 'end': '13:00'}]},
    'sunday': {'is_available': False, 'slots': []},
}

_WEEKDAY_NAMES = ('monday', 'tuesday', 'wednesday', 'thursday', 'friday', 'saturday', 'sunday')

# Staff role -> created_by recorded on the appointment
_ROLE_BOOKING_SOURCE = {
    'patient': 'patient',
    'receptionist': 'receptionist',
    'admin': 'receptionist',
    'doctor': 'doctor',
}


def normalize_time(value) -> str:
    """
    Canonicalize a time of day to 24-hour HH:MM.

    Accepts "9:5", "09:05", "09-05" and 12-hour forms such as "9:30 AM".
    Unrecognized input comes back trimmed and upper-cased so validation
    can reject it.
    """
    if value is None:
        return ''
    text = re.sub(r'\s+', '', str(value)).upper()

    match = _TIME_12H.match(text)
    if match:
        hours = int(match.group(1)) % 12
        if match.group(3) == 'PM':
            hours += 12
        return f"{hours:02d}:{int(match.group(2)):02d}"

    if 'AM' in text or 'PM' in text:
        return text

    parts = text.replace('-', ':').split(':')
    if len(parts) == 2 and all(p.isdigit() and 1 <= len(p) <= 2 for p in parts):
        return f"{int(parts[0]):02d}:{int(parts[1]):02d}"
    return text


def is_valid_time(value: str) -> bool:
    return bool(value) and bool(_TIME_24H.match(value))


def parse_appointment_date(value) -> date:
    """Parse YYYY-MM-DD (or a date) into a date, raising ValidationError."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return datetime.strptime(str(value).strip(), '%Y-%m-%d').date()
    except (TypeError, ValueError):
        raise ValidationError('Invalid date format. Use YYYY-MM-DD', details={'field': 'appointment_date'})


def derive_slot_key(doctor_id, appointment_date, appointment_time) -> str:
    """
    Deterministic lock key for (doctor, date, time).
    Times are normalized first; ':' and whitespace become '-'.
    """
    if isinstance(appointment_date, date):
        date_text = appointment_date.isoformat()
    else:
        date_text = str(appointment_date).strip()
    key = f"{doctor_id}_{date_text}_{normalize_time(appointment_time)}"
    return _KEY_UNSAFE.sub('-', key)


def _validated_slot(appointment_date, appointment_time):
    slot_date = parse_appointment_date(appointment_date)
    slot_time = normalize_time(appointment_time)
    if not is_valid_time(slot_time):
        raise ValidationError(
            'Invalid time format. Use HH:MM (e.g., 10:30)',
            details={'field': 'appointment_time', 'value': appointment_time},
        )
    return slot_date, slot_time


def find_slot_lock(session, slot_key: str) -> Optional[SlotLock]:
    """Read the lock row for update (row lock where the dialect supports it)."""
    return (
        session.query(SlotLock)
        .filter(SlotLock.slot_key == slot_key)
        .with_for_update()
        .first()
    )


def reserve_key_or_fail(session, slot_key: str, appointment: Appointment) -> SlotLock:
    """
    Insert the lock for slot_key in the caller's transaction.

    The primary key on slot_locks.slot_key makes this a compare-and-set:
    a concurrent winner turns the flush into an IntegrityError. The whole
    transaction is then rolled back (the appointment written with it is
    discarded) and SlotAlreadyBooked is raised.
    """
    lock = SlotLock(
        slot_key=slot_key,
        hospital_id=appointment.hospital_id,
        appointment_id=appointment.id,
        doctor_id=appointment.doctor_id,
        appointment_date=appointment.appointment_date,
        appointment_time=appointment.appointment_time,
    )
    session.add(lock)
    try:
        session.flush()
    except IntegrityError as e:
        session.rollback()
        raise SlotAlreadyBooked(details={'slot_key': slot_key}) from e
    return lock


def is_slot_available(session, hospital_id: int, doctor_id, appointment_date, appointment_time) -> bool:
    """True when no lock exists for the normalized (doctor, date, time)."""
    slot_date, slot_time = _validated_slot(appointment_date, appointment_time)
    slot_key = derive_slot_key(doctor_id, slot_date, slot_time)
    lock = session.get(SlotLock, slot_key)
    if lock is not None and lock.hospital_id != hospital_id:
        logger.warning("Slot key %s held by another hospital (%s)", slot_key, lock.hospital_id)
    return lock is None


def get_appointment(session, auth, appointment_id) -> Appointment:
    """Load an appointment inside the caller's hospital, enforcing patient ownership."""
    appointment = session.query(Appointment).filter(
        Appointment.id == appointment_id,
        Appointment.hospital_id == auth.hospital_id,
    ).first()
    if not appointment:
        raise AppointmentNotFound()
    if auth.role == 'patient' and appointment.patient_id != auth.patient_id:
        raise AccessDenied('You can only access your own appointments')
    if auth.role == 'doctor' and appointment.doctor_id != auth.user_id:
        raise AccessDenied('You can only access your own appointments')
    return appointment


def _load_doctor(session, hospital_id, doctor_id) -> User:
    try:
        doctor_id = int(doctor_id)
    except (TypeError, ValueError):
        raise ValidationError('doctor_id must be an integer', details={'field': 'doctor_id'})
    doctor = session.query(User).filter(
        User.id == doctor_id,
        User.hospital_id == hospital_id,
        User.role == 'doctor',
        User.is_active.is_(True),
    ).first()
    if not doctor:
        raise ValidationError(f'Doctor with ID {doctor_id} not found', details={'field': 'doctor_id'})
    return doctor


def _load_patient(session, hospital_id, patient_id) -> Patient:
    try:
        patient_id = int(patient_id)
    except (TypeError, ValueError):
        raise ValidationError('patient_id must be an integer', details={'field': 'patient_id'})
    patient = session.query(Patient).filter(
        Patient.id == patient_id,
        Patient.hospital_id == hospital_id,
    ).first()
    if not patient:
        raise ValidationError(f'Patient with ID {patient_id} not found', details={'field': 'patient_id'})
    return patient


def _optional_amount(payload, field):
    value = payload.get(field)
    if value in (None, ''):
        return None
    try:
        amount = float(value)
    except (TypeError, ValueError):
        raise ValidationError(f'{field} must be a number', details={'field': field})
    if amount < 0:
        raise ValidationError(f'{field} cannot be negative', details={'field': field})
    return amount


def _resolve_booking_source(auth, payload) -> str:
    requested = payload.get('created_by')
    if requested and auth.is_staff:
        if requested not in BOOKING_SOURCES:
            raise ValidationError(f'Invalid created_by. Must be one of: {", ".join(BOOKING_SOURCES)}')
        return requested
    return _ROLE_BOOKING_SOURCE.get(auth.role, 'patient')


def _notify_safely(notifier, appointment, event):
    try:
        notifier(appointment, event)
    except Exception as e:
        logger.warning("Notification for appointment %s (%s) failed: %s", appointment.id, event, e, exc_info=True)


def _default_notifier(appointment, event):
    from hms.services.notification_service import dispatch_appointment_notification
    dispatch_appointment_notification(appointment, event)


def _prepare_booking(session, auth, doctor_id, appointment_date, appointment_time, payload, overbooking_allowed):
    """Validate a booking request and resolve the appointment column values and slot key."""
    missing = [name for name, value in (
        ('doctor_id', doctor_id),
        ('appointment_date', appointment_date),
        ('appointment_time', appointment_time),
        ('patient_id', payload.get('patient_id')),
    ) if value in (None, '')]
    if missing:
        raise ValidationError(f'Missing required fields: {", ".join(missing)}', details={'missing': missing})

    slot_date, slot_time = _validated_slot(appointment_date, appointment_time)

    booking_type = (payload.get('booking_type') or 'regular').lower()
    if booking_type not in ('regular',) + OVERBOOKING_TYPES:
        raise ValidationError('Invalid booking_type. Must be one of: regular, emergency, recheck')
    if overbooking_allowed and not auth.can_overbook():
        raise AccessDenied('Only doctors and admins can overbook a slot')
    if booking_type in OVERBOOKING_TYPES and not auth.is_staff:
        raise AccessDenied(f'{booking_type.title()} bookings are made by hospital staff')
    overbooking = bool(overbooking_allowed) or booking_type in OVERBOOKING_TYPES

    if auth.role == 'patient' and str(payload.get('patient_id')) != str(auth.patient_id):
        raise AccessDenied('Patients can only book appointments for themselves')

    doctor = _load_doctor(session, auth.hospital_id, doctor_id)
    patient = _load_patient(session, auth.hospital_id, payload.get('patient_id'))
    patient_name = (payload.get('patient_name') or patient.full_name or '').strip()
    if not patient_name:
        raise ValidationError('Missing required fields: patient_name', details={'missing': ['patient_name']})

    branch = None
    if payload.get('branch_id'):
        branch = session.query(Branch).filter(
            Branch.id == payload.get('branch_id'),
            Branch.hospital_id == auth.hospital_id,
        ).first()
        if not branch:
            raise ValidationError(f'Branch with ID {payload.get("branch_id")} not found')

    consultation_fee = _optional_amount(payload, 'total_consultation_fee')
    if consultation_fee is None:
        consultation_fee = doctor.consultation_fee or 0
    payment_amount = _optional_amount(payload, 'payment_amount')

    fields = dict(
        hospital_id=auth.hospital_id,
        branch_id=branch.id if branch else None,
        branch_name=branch.name if branch else None,
        patient_id=patient.id,
        patient_name=patient_name,
        patient_phone=payload.get('patient_phone') or patient.phone,
        doctor_id=doctor.id,
        doctor_name=doctor.display_name,
        doctor_specialization=doctor.specialization,
        appointment_date=slot_date,
        appointment_time=slot_time,
        status='confirmed',
        booking_type=booking_type,
        is_overbooked=overbooking,
        payment_amount=payment_amount or 0,
        total_consultation_fee=consultation_fee,
        payment_status=payload.get('payment_status') or 'pending',
        payment_method=payload.get('payment_method'),
        created_by=_resolve_booking_source(auth, payload),
        chief_complaint=payload.get('chief_complaint'),
    )
    return fields, derive_slot_key(doctor.id, slot_date, slot_time)


def _write_booking(session, fields, slot_key, overbooking) -> Appointment:
    """
    One transaction: read the lock, insert the appointment, take the lock
    when it was free, commit. Raises SlotAlreadyBooked with the transaction
    rolled back.
    """
    existing = find_slot_lock(session, slot_key)
    if existing is not None and not overbooking:
        raise SlotAlreadyBooked(details={'slot_key': slot_key})

    appointment = Appointment(**fields)
    session.add(appointment)
    session.flush()

    if existing is None:
        reserve_key_or_fail(session, slot_key, appointment)

    session.commit()
    return appointment


def reserve_and_create(
    session,
    auth,
    doctor_id,
    appointment_date,
    appointment_time,
    payload: Dict[str, Any],
    overbooking_allowed: bool = False,
    notifier: Optional[Callable] = None,
) -> Appointment:
    """
    Reserve the (doctor, date, time) slot and create the appointment atomically.

    Args:
        session: SQLAlchemy session
        auth: AuthContext of the caller
        doctor_id: Doctor user ID
        appointment_date: YYYY-MM-DD
        appointment_time: any accepted time form, stored normalized
        payload: patient_id, patient_name and optional booking details
        overbooking_allowed: explicit doctor/admin override of the lock
        notifier: callable(appointment, event); defaults to WhatsApp dispatch

    Returns:
        Appointment: the committed appointment

    Raises:
        ValidationError, AccessDenied, SlotAlreadyBooked, BookingWriteFailed
    """
    payload = payload or {}

    # Step 1: Validate before touching the lock
    fields, slot_key = _prepare_booking(
        session, auth, doctor_id, appointment_date, appointment_time, payload, overbooking_allowed
    )
    overbooking = fields['is_overbooked']

    # Step 2: Lock, insert, commit
    try:
        try:
            appointment = _write_booking(session, fields, slot_key, overbooking)
        except SlotAlreadyBooked:
            if not overbooking:
                raise
            # Lost the lock to a concurrent booking; write again next to the winner's lock
            logger.info("Overbooked request for slot %s lost the lock race; retrying without it", slot_key)
            appointment = _write_booking(session, fields, slot_key, overbooking)
    except SlotAlreadyBooked:
        session.rollback()
        logger.info("Slot %s already booked; request by user %s rejected", slot_key, auth.user_id)
        log_audit(session, auth, 'slot', 'conflict', slot_key, patient_id=fields['patient_id'])
        raise
    except SQLAlchemyError as e:
        session.rollback()
        logger.error("Failed to create appointment for slot %s: %s", slot_key, e, exc_info=True)
        raise BookingWriteFailed() from e

    logger.info("Appointment %s booked for slot %s (overbooked=%s)", appointment.id, slot_key, overbooking)
    log_audit(session, auth, 'appointment', 'book', appointment.id,
              slot_key=slot_key, patient_id=fields['patient_id'], overbooked=overbooking)

    # Step 3: Best-effort confirmation; never affects the booking
    _notify_safely(notifier or _default_notifier, appointment, 'booked')
    return appointment


def record_whatsapp_request(session, auth, doctor_id, appointment_date, appointment_time,
                            payload: Dict[str, Any]) -> Appointment:
    """
    Store a booking request received over WhatsApp as `whatsapp_pending`.
    No slot lock is taken; the slot is claimed when staff confirm it.
    """
    payload = dict(payload or {})
    payload.pop('booking_type', None)
    fields, slot_key = _prepare_booking(
        session, auth, doctor_id, appointment_date, appointment_time, payload, False
    )
    fields.update(status='whatsapp_pending', created_by=payload.get('created_by') or 'whatsapp')
    if fields['created_by'] not in ('whatsapp', 'whatsapp_flow'):
        raise ValidationError('created_by must be whatsapp or whatsapp_flow')

    appointment = Appointment(**fields)
    session.add(appointment)
    try:
        session.commit()
    except SQLAlchemyError as e:
        session.rollback()
        logger.error("Failed to record WhatsApp request for slot %s: %s", slot_key, e, exc_info=True)
        raise BookingWriteFailed('Failed to record booking request') from e

    logger.info("WhatsApp request %s recorded for slot %s", appointment.id, slot_key)
    log_audit(session, auth, 'appointment', 'whatsapp_request', appointment.id, slot_key=slot_key)
    return appointment


def reschedule_appointment(
    session,
    auth,
    appointment_id,
    new_date,
    new_time,
    notifier: Optional[Callable] = None,
) -> Appointment:
    """
    Move an appointment to a new slot, moving its lock with it.
    The appointment ends up with status 'rescheduled'.
    """
    appointment = get_appointment(session, auth, appointment_id)
    if appointment.status not in RESCHEDULABLE_STATUSES:
        raise ValidationError(
            f'Cannot reschedule an appointment with status "{appointment.status}"',
            details={'status': appointment.status},
        )

    slot_date, slot_time = _validated_slot(new_date, new_time)
    old_key = derive_slot_key(appointment.doctor_id, appointment.appointment_date, appointment.appointment_time)
    new_key = derive_slot_key(appointment.doctor_id, slot_date, slot_time)
    if new_key == old_key:
        raise ValidationError('Appointment is already scheduled for this slot')

    previous = {
        'appointment_date': appointment.appointment_date.isoformat(),
        'appointment_time': appointment.appointment_time,
    }
    overbooked = appointment.is_overbooked

    try:
        try:
            _write_move(session, appointment, old_key, new_key, slot_date, slot_time, overbooked)
        except SlotAlreadyBooked:
            if not overbooked:
                raise
            logger.info("Overbooked appointment %s lost the lock on %s; moving without it", appointment_id, new_key)
            _write_move(session, appointment, old_key, new_key, slot_date, slot_time, overbooked)
    except SlotAlreadyBooked:
        session.rollback()
        logger.info("Reschedule of appointment %s to %s rejected: slot taken", appointment_id, new_key)
        log_audit(session, auth, 'slot', 'conflict', new_key, appointment_id=appointment_id)
        raise
    except SQLAlchemyError as e:
        session.rollback()
        logger.error("Failed to reschedule appointment %s: %s", appointment_id, e, exc_info=True)
        raise BookingWriteFailed('Failed to reschedule appointment') from e

    log_audit(session, auth, 'appointment', 'reschedule', appointment.id, previous=previous, to_slot=new_key)

    _notify_safely(notifier or _default_notifier, appointment, 'rescheduled')
    return appointment


def _write_move(session, appointment, old_key, new_key, slot_date, slot_time, overbooked):
    """One transaction: take the new slot's lock when free, move the appointment, drop its old lock."""
    existing = find_slot_lock(session, new_key)
    if existing is not None and not overbooked:
        raise SlotAlreadyBooked(details={'slot_key': new_key})

    appointment.appointment_date = slot_date
    appointment.appointment_time = slot_time
    appointment.status = 'rescheduled'
    appointment.reminder_sent_at = None
    session.flush()

    if existing is None:
        reserve_key_or_fail(session, new_key, appointment)

    old_lock = session.get(SlotLock, old_key)
    if old_lock is not None and old_lock.appointment_id == appointment.id:
        session.delete(old_lock)

    session.commit()


def can_transition(current_status: str, new_status: str) -> bool:
    return new_status in ALLOWED_TRANSITIONS.get(current_status, set())


def _apply_transition(appointment, new_status):
    if new_status not in APPOINTMENT_STATUSES:
        raise ValidationError(f'Invalid status. Must be one of: {", ".join(APPOINTMENT_STATUSES)}')
    if not can_transition(appointment.status, new_status):
        raise ValidationError(
            f'Cannot change status from "{appointment.status}" to "{new_status}"',
            details={'from': appointment.status, 'to': new_status},
        )
    appointment.status = new_status


def _confirm_pending(session, auth, appointment, notifier=None) -> Appointment:
    """Claim the slot of a whatsapp_pending appointment and mark it confirmed."""
    slot_key = derive_slot_key(appointment.doctor_id, appointment.appointment_date, appointment.appointment_time)
    appointment_id = appointment.id
    try:
        existing = find_slot_lock(session, slot_key)
        if existing is not None and existing.appointment_id != appointment_id:
            raise SlotAlreadyBooked(details={'slot_key': slot_key})

        _apply_transition(appointment, 'confirmed')
        session.flush()
        if existing is None:
            reserve_key_or_fail(session, slot_key, appointment)
        session.commit()
    except SlotAlreadyBooked:
        session.rollback()
        logger.info("Confirmation of WhatsApp request %s rejected: slot %s taken", appointment_id, slot_key)
        log_audit(session, auth, 'slot', 'conflict', slot_key, appointment_id=appointment_id)
        raise
    except SQLAlchemyError as e:
        session.rollback()
        logger.error("Failed to confirm appointment %s: %s", appointment_id, e, exc_info=True)
        raise BookingWriteFailed('Failed to confirm appointment') from e

    log_audit(session, auth, 'appointment', 'status', appointment_id,
              previous='whatsapp_pending', current='confirmed', slot_key=slot_key)
    _notify_safely(notifier or _default_notifier, appointment, 'booked')
    return appointment


def confirm_whatsapp_request(session, auth, appointment_id, notifier: Optional[Callable] = None) -> Appointment:
    """
    Confirm a booking that arrived over WhatsApp. The slot is claimed the
    same way a direct booking claims it; a taken slot raises SlotAlreadyBooked.
    """
    appointment = get_appointment(session, auth, appointment_id)
    if appointment.status != 'whatsapp_pending':
        raise ValidationError('This appointment is not a WhatsApp pending booking',
                              details={'status': appointment.status})
    return _confirm_pending(session, auth, appointment, notifier)


def update_status(session, auth, appointment_id, new_status: str,
                  notifier: Optional[Callable] = None) -> Appointment:
    """
    Apply a validated status transition. Cancelling does not release the slot lock;
    confirming a whatsapp_pending appointment claims its slot.
    """
    appointment = get_appointment(session, auth, appointment_id)
    if appointment.status == 'whatsapp_pending' and new_status == 'confirmed':
        return _confirm_pending(session, auth, appointment, notifier)

    old_status = appointment.status
    _apply_transition(appointment, new_status)

    try:
        session.commit()
    except SQLAlchemyError as e:
        session.rollback()
        logger.error("Failed to update status of appointment %s: %s", appointment_id, e, exc_info=True)
        raise BookingWriteFailed('Failed to update appointment status') from e

    log_audit(session, auth, 'appointment', 'status', appointment.id, previous=old_status, current=new_status)
    return appointment


def complete_appointment(
    session,
    auth,
    appointment_id,
    medicine: Optional[str] = None,
    doctor_notes: Optional[str] = None,
    payment_status: Optional[str] = None,
    payment_method: Optional[str] = None,
    payment_amount=None,
) -> Appointment:
    """Mark an appointment completed with its prescription and payment details."""
    appointment = get_appointment(session, auth, appointment_id)
    _apply_transition(appointment, 'completed')

    if medicine is not None:
        appointment.medicine = medicine.strip() or None
    if doctor_notes is not None:
        appointment.doctor_notes = doctor_notes
    if payment_status:
        appointment.payment_status = payment_status
    if payment_method:
        appointment.payment_method = payment_method
    amount = _optional_amount({'payment_amount': payment_amount}, 'payment_amount')
    if amount is not None:
        appointment.payment_amount = amount

    try:
        session.commit()
    except SQLAlchemyError as e:
        session.rollback()
        logger.error("Failed to complete appointment %s: %s", appointment_id, e, exc_info=True)
        raise BookingWriteFailed('Failed to complete appointment') from e

    log_audit(session, auth, 'appointment', 'complete', appointment.id,
              payment_status=appointment.payment_status)
    return appointment


def _to_minutes(value: str) -> int:
    hours, minutes = normalize_time(value).split(':')
    return int(hours) * 60 + int(minutes)


def _to_time(minutes: int) -> str:
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def visiting_hours_for(day: date, visiting_hours: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    schedule = visiting_hours or DEFAULT_VISITING_HOURS
    return schedule.get(_WEEKDAY_NAMES[day.weekday()], {'is_available': False, 'slots': []})


def generate_available_slots(day_schedule: Dict[str, Any], booked_times: Iterable[str] = (),
                             slot_minutes: int = SLOT_DURATION_MINUTES) -> List[str]:
    """
    15-minute slots inside the day's visiting windows, minus booked times.
    A booked time blocks [time, time + slot_minutes).
    """
    if not day_schedule or not day_schedule.get('is_available'):
        return []

    candidates = set()
    for window in day_schedule.get('slots', []):
        start = _to_minutes(window['start'])
        end = _to_minutes(window['end'])
        for minutes in range(start, end, slot_minutes):
            candidates.add(minutes)

    booked = []
    for value in booked_times:
        normalized = normalize_time(value)
        if is_valid_time(normalized):
            booked.append(_to_minutes(normalized))

    free = [
        m for m in candidates
        if not any(b <= m < b + slot_minutes for b in booked)
    ]
    return [_to_time(m) for m in sorted(free)]


def list_available_slots(session, hospital_id, doctor_id, appointment_date) -> List[str]:
    """Free slots for a doctor on a date, from default visiting hours and held locks."""
    slot_date = parse_appointment_date(appointment_date)
    locks = session.query(SlotLock).filter(
        SlotLock.hospital_id == hospital_id,
        SlotLock.doctor_id == doctor_id,
        SlotLock.appointment_date == slot_date,
    ).all()
    return generate_available_slots(visiting_hours_for(slot_date), [lock.appointment_time for lock in locks])


def appointments_due_on(session, target_date: date, statuses=('confirmed', 'rescheduled')):
    """Appointments on target_date that have not been reminded yet."""
    return session.query(Appointment).filter(
        Appointment.appointment_date == target_date,
        Appointment.status.in_(statuses),
        Appointment.reminder_sent_at.is_(None),
    ).order_by(Appointment.appointment_time.asc()).all()
