from .hospital import Hospital
from .branch import Branch
from .patient import Patient
from .user import User
from .appointment import Appointment
from .slot_lock import SlotLock
from .audit_log import AuditLog

__all__ = ["Hospital", "Branch", "Patient", "User", "Appointment", "SlotLock", "AuditLog"]
