"""
Domain errors. Routes let these propagate; the app factory renders them
into the standard {'success': False, 'error': ..., 'code': ...} envelope.
"""


class HospitalError(Exception):
    status_code = 500
    code = 'INTERNAL_ERROR'

    def __init__(self, message=None, details=None):
        super().__init__(message or self.__class__.__doc__ or self.code)
        self.message = message or (self.__class__.__doc__ or self.code).strip()
        self.details = details

    def to_dict(self):
        payload = {
            'success': False,
            'error': self.message,
            'code': self.code,
        }
        if self.details:
            payload['details'] = self.details
        return payload


class ValidationError(HospitalError):
    """Invalid request data"""
    status_code = 400
    code = 'VALIDATION_ERROR'


class AccessDenied(HospitalError):
    """You cannot access this resource"""
    status_code = 403
    code = 'ACCESS_DENIED'


class AppointmentNotFound(HospitalError):
    """Appointment not found"""
    status_code = 404
    code = 'APPOINTMENT_NOT_FOUND'


class SlotAlreadyBooked(HospitalError):
    """This time slot has already been booked. Please select another slot."""
    status_code = 409
    code = 'SLOT_ALREADY_BOOKED'

    def to_dict(self):
        # Clients key off the error code to offer an alternate slot
        return {
            'success': False,
            'error': self.code,
            'code': self.code,
            'message': self.message,
        }


class BookingWriteFailed(HospitalError):
    """Failed to create appointment"""
    status_code = 500
    code = 'BOOKING_WRITE_FAILED'
