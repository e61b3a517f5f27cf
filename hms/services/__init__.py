from . import reservation_service, notification_service, analytics_service

from .reservation_service import (
    derive_slot_key,
    normalize_time,
    is_slot_available,
    reserve_and_create,
    record_whatsapp_request,
    confirm_whatsapp_request,
    reschedule_appointment,
    update_status,
    complete_appointment,
    list_available_slots,
)

from .notification_service import send_notification, dispatch_appointment_notification

from .analytics_service import get_analytics_section

__all__ = [
    "reservation_service",
    "notification_service",
    "analytics_service",
    # Reservation
    "derive_slot_key",
    "normalize_time",
    "is_slot_available",
    "reserve_and_create",
    "record_whatsapp_request",
    "confirm_whatsapp_request",
    "reschedule_appointment",
    "update_status",
    "complete_appointment",
    "list_available_slots",
    # Notifications
    "send_notification",
    "dispatch_appointment_notification",
    # Analytics
    "get_analytics_section",
]
