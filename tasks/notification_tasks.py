"""
Celery tasks for WhatsApp notifications
"""
import logging
from datetime import datetime

from hms.extensions import celery, db
from hms.services.notification_service import send_notification, build_message, appointment_recipients
from hms.services.reservation_service import appointments_due_on, parse_appointment_date

logger = logging.getLogger(__name__)


@celery.task(bind=True, name='tasks.send_whatsapp_notification', max_retries=3, default_retry_delay=60)
def send_whatsapp_notification_task(self, to, message, fallback_recipients=None):
    """
    Deliver a WhatsApp message outside the request that triggered it.

    Args:
        to: Primary recipient phone number
        message: Message body
        fallback_recipients: Numbers tried in order when the primary fails

    Returns:
        dict: Result of send_notification
    """
    result = send_notification(to, message, fallback_recipients or ())
    if not result.get('success') and result.get('retryable'):
        logger.warning("WhatsApp delivery failed (attempt %s): %s", self.request.retries + 1, result.get('error'))
        raise self.retry()
    return result


@celery.task(name='tasks.send_daily_reminders')
def send_daily_reminders_task(target_date=None, dry_run=False):
    """
    Send same-day reminders for confirmed and rescheduled appointments.

    Args:
        target_date: YYYY-MM-DD (default: today)
        dry_run: Build messages without sending or stamping reminder_sent_at

    Returns:
        dict: processed / sent counts
    """
    day = parse_appointment_date(target_date) if target_date else datetime.now().date()
    appointments = appointments_due_on(db.session, day)

    sent = 0
    for appointment in appointments:
        primary, fallbacks = appointment_recipients(appointment)
        if not primary:
            logger.warning("Appointment %s has no phone number; reminder skipped", appointment.id)
            continue

        message = build_message(appointment.to_dict(), 'reminder')
        if dry_run:
            logger.info("[dry-run] reminder for appointment %s to %s", appointment.id, primary)
            continue

        result = send_notification(primary, message, fallbacks)
        if result.get('success'):
            appointment.reminder_sent_at = datetime.utcnow()
            db.session.commit()
            sent += 1
        else:
            logger.warning("Reminder for appointment %s failed: %s", appointment.id, result.get('error'))

    logger.info("Daily reminders for %s: %s processed, %s sent", day.isoformat(), len(appointments), sent)
    return {
        'date': day.isoformat(),
        'processed': len(appointments),
        'sent': sent,
        'dry_run': bool(dry_run),
    }
