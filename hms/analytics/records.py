"""
Typed analytics input records.

parse_appointment_records() is the single boundary between raw rows
(ORM to_dict() output, JSON exports, camelCase documents) and the pure
aggregation functions: rows that cannot describe an appointment are
rejected here, soft fields (dates, amounts) degrade to None.
"""
import logging
from datetime import date, datetime
from typing import Any, Iterable, List, Literal, Mapping, Optional, Type, TypeVar

from pydantic import BaseModel, ConfigDict, ValidationError, field_validator
from pydantic.alias_generators import to_camel

logger = logging.getLogger(__name__)

AppointmentStatus = Literal[
    'confirmed', 'completed', 'cancelled', 'rescheduled', 'not_attended', 'whatsapp_pending'
]
BookingSource = Literal['patient', 'receptionist', 'doctor', 'whatsapp', 'whatsapp_flow']


def coerce_datetime(value: Any) -> Optional[datetime]:
    if value is None or value == '':
        return None
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    if isinstance(value, str):
        text = value.strip()
        try:
            return datetime.fromisoformat(text.replace('Z', '+00:00'))
        except ValueError:
            pass
        try:
            return datetime.strptime(text[:10], '%Y-%m-%d')
        except ValueError:
            return None
    return None


def coerce_date(value: Any) -> Optional[date]:
    if isinstance(value, date) and not isinstance(value, datetime):
        return value
    parsed = coerce_datetime(value)
    return parsed.date() if parsed else None


def coerce_amount(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def coerce_text(value: Any) -> Optional[str]:
    if value is None or value == '':
        return None
    return str(value)


class _Record(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra='ignore',
        frozen=True,
    )


class AppointmentRecord(_Record):
    id: Optional[str] = None
    hospital_id: Optional[str] = None
    patient_id: Optional[str] = None
    patient_name: Optional[str] = None
    doctor_id: Optional[str] = None
    doctor_name: Optional[str] = None
    doctor_specialization: Optional[str] = None
    appointment_date: Optional[date] = None
    appointment_time: Optional[str] = None
    status: AppointmentStatus
    payment_amount: Optional[float] = None
    total_consultation_fee: Optional[float] = None
    payment_status: Optional[str] = None
    payment_method: Optional[str] = None
    created_by: Optional[BookingSource] = None
    chief_complaint: Optional[str] = None
    medicine: Optional[str] = None
    branch_id: Optional[str] = None
    branch_name: Optional[str] = None
    created_at: Optional[datetime] = None

    @field_validator('id', 'hospital_id', 'patient_id', 'doctor_id', 'branch_id', 'appointment_time', mode='before')
    @classmethod
    def _text(cls, value):
        return coerce_text(value)

    @field_validator('created_by', mode='before')
    @classmethod
    def _empty_source(cls, value):
        return value or None

    @field_validator('appointment_date', mode='before')
    @classmethod
    def _date(cls, value):
        return coerce_date(value)

    @field_validator('created_at', mode='before')
    @classmethod
    def _datetime(cls, value):
        return coerce_datetime(value)

    @field_validator('payment_amount', 'total_consultation_fee', mode='before')
    @classmethod
    def _amount(cls, value):
        return coerce_amount(value)


class PatientRecord(_Record):
    id: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    created_by: Optional[str] = None
    created_at: Optional[datetime] = None

    @field_validator('id', mode='before')
    @classmethod
    def _text(cls, value):
        return coerce_text(value)

    @field_validator('created_at', mode='before')
    @classmethod
    def _datetime(cls, value):
        return coerce_datetime(value)


class ReceptionistRecord(_Record):
    id: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    email: Optional[str] = None

    @field_validator('id', mode='before')
    @classmethod
    def _text(cls, value):
        return coerce_text(value)

    @property
    def name(self) -> str:
        return f"{self.first_name or ''} {self.last_name or ''}".strip()


RecordT = TypeVar('RecordT', bound=_Record)


def _parse(model: Type[RecordT], rows: Iterable[Any]) -> List[RecordT]:
    records = []
    for index, row in enumerate(rows or ()):
        if isinstance(row, model):
            records.append(row)
            continue
        if not isinstance(row, Mapping):
            logger.debug("Skipping %s row %d: not a mapping (%s)", model.__name__, index, type(row).__name__)
            continue
        try:
            records.append(model.model_validate(row))
        except ValidationError as e:
            logger.debug("Skipping %s row %d: %s", model.__name__, index, e.errors())
    return records


def parse_appointment_records(rows: Iterable[Any]) -> List[AppointmentRecord]:
    return _parse(AppointmentRecord, rows)


def parse_patient_records(rows: Iterable[Any]) -> List[PatientRecord]:
    return _parse(PatientRecord, rows)


def parse_receptionist_records(rows: Iterable[Any]) -> List[ReceptionistRecord]:
    return _parse(ReceptionistRecord, rows)
