"""
WhatsApp notification service (Meta Graph API)
Best-effort delivery: every public call returns a result dict and never raises.
"""
import re
import logging
from datetime import date, datetime
from typing import Any, Dict, Iterable, Optional

import httpx
from flask import current_app

logger = logging.getLogger(__name__)

_NON_DIGITS = re.compile(r'\D')


def _settings() -> Dict[str, Any]:
    cfg = current_app.config
    return {
        'base_url': cfg.get('WHATSAPP_API_BASE', 'https://graph.facebook.com'),
        'version': cfg.get('WHATSAPP_API_VERSION', 'v22.0'),
        'phone_number_id': cfg.get('WHATSAPP_PHONE_NUMBER_ID'),
        'access_token': cfg.get('WHATSAPP_ACCESS_TOKEN'),
        'timeout': cfg.get('WHATSAPP_TIMEOUT', 30.0),
        'country_code': cfg.get('WHATSAPP_DEFAULT_COUNTRY_CODE', '91'),
    }


def normalize_recipient(number, default_country_code: str = '91') -> Optional[str]:
    """
    Digits-only E.164 without '+'. Local 10-digit numbers get the default
    country code; a leading trunk '0' is dropped first.
    """
    if not number:
        return None
    digits = _NON_DIGITS.sub('', str(number))
    if digits.startswith('00'):
        digits = digits[2:]
    if len(digits) == 11 and digits.startswith('0'):
        digits = digits[1:]
    if len(digits) == 10:
        digits = f"{default_country_code}{digits}"
    if len(digits) < 8 or len(digits) > 15:
        return None
    return digits


def _post_message(settings: Dict[str, Any], to: str, message: str) -> Dict[str, Any]:
    url = f"{settings['base_url']}/{settings['version']}/{settings['phone_number_id']}/messages"
    headers = {
        'Authorization': f"Bearer {settings['access_token']}",
        'Content-Type': 'application/json',
    }
    payload = {
        'messaging_product': 'whatsapp',
        'recipient_type': 'individual',
        'to': to,
        'type': 'text',
        'text': {'body': message},
    }

    try:
        with httpx.Client(timeout=settings['timeout']) as client:
            response = client.post(url, json=payload, headers=headers)
    except httpx.TimeoutException:
        logger.error("Timeout talking to WhatsApp API for %s", to)
        return {'success': False, 'error': 'Timeout talking to WhatsApp API', 'retryable': True}
    except httpx.HTTPError as e:
        logger.error("WhatsApp API connection error for %s: %s", to, e)
        return {'success': False, 'error': f'Connection error: {e}', 'retryable': True}

    if response.status_code == 200:
        data = response.json()
        message_id = None
        if isinstance(data, dict) and data.get('messages'):
            message_id = data['messages'][0].get('id')
        logger.info("WhatsApp message sent to %s (id=%s)", to, message_id)
        return {'success': True, 'message_id': message_id, 'to': to}

    try:
        error_message = response.json().get('error', {}).get('message', response.text)
    except ValueError:
        error_message = response.text
    logger.error("WhatsApp API error %s for %s: %s", response.status_code, to, error_message)
    return {
        'success': False,
        'error': f'HTTP {response.status_code}: {error_message}',
        'status_code': response.status_code,
        'retryable': response.status_code == 429 or response.status_code >= 500,
    }


def send_notification(to, message: str, fallback_recipients: Iterable = ()) -> Dict[str, Any]:
    """
    Send a WhatsApp text message, trying fallback numbers in order.

    Returns:
        dict: {'success': bool, ...}; never raises
    """
    try:
        if not message:
            return {'success': False, 'error': 'Message is required'}

        settings = _settings()
        if not settings['phone_number_id'] or not settings['access_token']:
            logger.warning("WhatsApp not configured. Skipping notification.")
            return {'success': False, 'error': 'WhatsApp not configured'}

        candidates = []
        for number in [to, *fallback_recipients]:
            normalized = normalize_recipient(number, settings['country_code'])
            if normalized and normalized not in candidates:
                candidates.append(normalized)
        if not candidates:
            logger.warning("No valid WhatsApp recipient in %r", [to, *fallback_recipients])
            return {'success': False, 'error': 'No valid recipient'}

        result = {'success': False, 'error': 'Not sent'}
        for number in candidates:
            result = _post_message(settings, number, message)
            if result.get('success'):
                return result
        return result
    except Exception as e:
        logger.error("Unexpected error sending WhatsApp notification: %s", e, exc_info=True)
        return {'success': False, 'error': str(e)}


def format_date_display(value) -> str:
    """'2024-06-03' -> 'Monday, 3 June 2024'"""
    if isinstance(value, str):
        try:
            value = datetime.strptime(value, '%Y-%m-%d').date()
        except ValueError:
            return value
    if not isinstance(value, date):
        return str(value or '')
    return f"{value.strftime('%A')}, {value.day} {value.strftime('%B %Y')}"


def format_time_display(value) -> str:
    """'14:30' -> '2:30 PM'"""
    try:
        hours, minutes = (int(part) for part in str(value).split(':'))
    except (TypeError, ValueError):
        return str(value or '')
    suffix = 'AM' if hours < 12 else 'PM'
    return f"{hours % 12 or 12}:{minutes:02d} {suffix}"


def build_booking_message(appointment: Dict[str, Any], hospital_name: str = '', currency: str = 'Rs.',
                          support_phone: str = '') -> str:
    doctor = appointment.get('doctor_name') or 'your doctor'
    if appointment.get('doctor_specialization'):
        doctor = f"{doctor} ({appointment['doctor_specialization']})"
    amount = appointment.get('payment_amount') or appointment.get('total_consultation_fee') or 0
    paid = appointment.get('payment_status') == 'paid'

    lines = [
        "*Appointment Successfully Booked!*",
        "",
        f"Hi {appointment.get('patient_name', '')},",
        "",
        f"Your appointment{f' at {hospital_name}' if hospital_name else ''} is confirmed.",
        "",
        "*Appointment Details:*",
        f"- Doctor: {doctor}",
        f"- Date: {format_date_display(appointment.get('appointment_date'))}",
        f"- Time: {format_time_display(appointment.get('appointment_time'))}",
        f"- Appointment ID: {appointment.get('id')}",
    ]
    if appointment.get('chief_complaint'):
        lines.append(f"- Reason: {appointment['chief_complaint']}")
    lines += [
        "",
        "*Payment Information:*",
        f"- Method: {appointment.get('payment_method') or 'Pay at hospital'}",
        f"- Amount: {currency}{amount:g}",
        f"- Status: {'Paid' if paid else 'Pending'}",
        "",
    ]
    if support_phone:
        lines.append(f"To reschedule or for any questions, reply here or call us at {support_phone}.")
    else:
        lines.append("To reschedule or for any questions, reply to this message.")
    lines += ["", "See you soon!"]
    return "\n".join(lines)


def build_reschedule_message(appointment: Dict[str, Any], hospital_name: str = '') -> str:
    return "\n".join([
        "*Appointment Rescheduled*",
        "",
        f"Hi {appointment.get('patient_name', '')},",
        "",
        f"Your appointment{f' at {hospital_name}' if hospital_name else ''} with "
        f"{appointment.get('doctor_name') or 'your doctor'} has been moved to "
        f"{format_date_display(appointment.get('appointment_date'))} at "
        f"{format_time_display(appointment.get('appointment_time'))}.",
        "",
        f"Appointment ID: {appointment.get('id')}",
    ])


def build_reminder_message(appointment: Dict[str, Any]) -> str:
    time_label = ''
    if appointment.get('appointment_time'):
        time_label = f" at {format_time_display(appointment['appointment_time'])}"
    return (
        f"Reminder: Your appointment with {appointment.get('doctor_name') or 'your doctor'} "
        f"is today{time_label}. Please arrive a few minutes early."
    )


def build_message(appointment: Dict[str, Any], event: str) -> str:
    cfg = current_app.config
    hospital_name = cfg.get('HOSPITAL_DISPLAY_NAME', '')
    if event == 'booked':
        return build_booking_message(
            appointment,
            hospital_name=hospital_name,
            currency=cfg.get('CURRENCY_SYMBOL', 'Rs.'),
            support_phone=cfg.get('HOSPITAL_SUPPORT_PHONE', ''),
        )
    if event == 'rescheduled':
        return build_reschedule_message(appointment, hospital_name=hospital_name)
    if event == 'reminder':
        return build_reminder_message(appointment)
    raise ValueError(f"Unknown notification event: {event}")


def appointment_recipients(appointment):
    """Primary phone plus fallbacks from the patient record."""
    primary = appointment.patient_phone
    fallbacks = []
    patient = getattr(appointment, 'patient', None)
    if patient is not None and patient.phone and patient.phone != primary:
        fallbacks.append(patient.phone)
    if not primary and fallbacks:
        primary = fallbacks.pop(0)
    return primary, fallbacks


def dispatch_appointment_notification(appointment, event: str) -> Optional[Dict[str, Any]]:
    """
    Queue (Celery) or send inline the WhatsApp message for an appointment event.
    """
    primary, fallbacks = appointment_recipients(appointment)
    if not primary:
        logger.warning("No phone number for appointment %s; skipping %s notification", appointment.id, event)
        return None

    message = build_message(appointment.to_dict(), event)
    if current_app.config.get('NOTIFICATIONS_ASYNC', True):
        from tasks.notification_tasks import send_whatsapp_notification_task
        send_whatsapp_notification_task.delay(primary, message, fallbacks)
        logger.info("Queued %s notification for appointment %s", event, appointment.id)
        return {'success': True, 'queued': True}
    return send_notification(primary, message, fallbacks)
