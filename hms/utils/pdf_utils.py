"""
PDF Generation Utilities using ReportLab
Appointment confirmation, prescription and invoice documents rendered to bytes
"""
import io
import logging
from datetime import datetime
from xml.sax.saxutils import escape

from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import getSampleStyleSheet, ParagraphStyle
from reportlab.lib.units import cm
from reportlab.platypus import SimpleDocTemplate, Paragraph, Spacer, Table, TableStyle

from hms.analytics.frequency import extract_medicines

logger = logging.getLogger(__name__)

BRAND_COLOR = colors.HexColor('#0066cc')

_LABEL_TABLE_STYLE = TableStyle([
    ('BACKGROUND', (0, 0), (0, -1), colors.HexColor('#f5f5f5')),
    ('TEXTCOLOR', (0, 0), (-1, -1), colors.black),
    ('FONTNAME', (0, 0), (0, -1), 'Helvetica-Bold'),
    ('FONTSIZE', (0, 0), (-1, -1), 10),
    ('GRID', (0, 0), (-1, -1), 0.5, colors.grey),
    ('VALIGN', (0, 0), (-1, -1), 'MIDDLE'),
])

_HEADER_TABLE_STYLE = TableStyle([
    ('BACKGROUND', (0, 0), (-1, 0), BRAND_COLOR),
    ('TEXTCOLOR', (0, 0), (-1, 0), colors.white),
    ('FONTNAME', (0, 0), (-1, 0), 'Helvetica-Bold'),
    ('FONTSIZE', (0, 0), (-1, -1), 10),
    ('GRID', (0, 0), (-1, -1), 0.5, colors.grey),
    ('VALIGN', (0, 0), (-1, -1), 'TOP'),
])


def _styles():
    styles = getSampleStyleSheet()
    return {
        'title': ParagraphStyle(
            name='DocumentTitle',
            parent=styles['Heading1'],
            fontSize=22,
            textColor=BRAND_COLOR,
            spaceAfter=6,
            alignment=1,
        ),
        'heading': ParagraphStyle(
            name='SectionHeading',
            parent=styles['Heading2'],
            fontSize=14,
            textColor=BRAND_COLOR,
            spaceAfter=8,
        ),
        'normal': styles['Normal'],
        'footer': ParagraphStyle(
            name='Footer', parent=styles['Normal'], fontSize=9, textColor=colors.grey, alignment=1
        ),
    }


def _text(value, default='N/A'):
    if value is None or value == '':
        return default
    return str(value)


def _cell(value, style):
    return Paragraph(escape(_text(value)), style)


def _label_table(rows, style):
    table = Table([[label, _cell(value, style)] for label, value in rows], colWidths=[5 * cm, 11 * cm])
    table.setStyle(_LABEL_TABLE_STYLE)
    return table


def _header(story, styles, hospital_name, title):
    story.append(Paragraph(escape(hospital_name or 'Hospital'), styles['title']))
    story.append(Paragraph(escape(title), styles['heading']))
    story.append(Paragraph(f"Generated on {datetime.now().strftime('%d-%m-%Y %H:%M')}", styles['normal']))
    story.append(Spacer(1, 16))


def _render(story) -> bytes:
    buffer = io.BytesIO()
    doc = SimpleDocTemplate(
        buffer, pagesize=A4,
        leftMargin=2 * cm, rightMargin=2 * cm, topMargin=2 * cm, bottomMargin=2 * cm,
    )
    doc.build(story)
    return buffer.getvalue()


def _appointment_rows(appointment):
    doctor = _text(appointment.get('doctor_name'))
    if appointment.get('doctor_specialization'):
        doctor = f"{doctor} ({appointment['doctor_specialization']})"
    return [
        ("Appointment ID:", appointment.get('id')),
        ("Patient Name:", appointment.get('patient_name')),
        ("Phone:", appointment.get('patient_phone')),
        ("Doctor:", doctor),
        ("Date:", appointment.get('appointment_date')),
        ("Time:", appointment.get('appointment_time')),
        ("Branch:", appointment.get('branch_name')),
        ("Status:", _text(appointment.get('status')).replace('_', ' ').title()),
    ]


def generate_confirmation_pdf(appointment: dict, hospital_name: str = '', currency: str = 'Rs.') -> bytes:
    """Appointment confirmation slip"""
    styles = _styles()
    story = []
    _header(story, styles, hospital_name, "Appointment Confirmation")

    story.append(Paragraph("Appointment Details", styles['heading']))
    story.append(_label_table(_appointment_rows(appointment), styles['normal']))
    story.append(Spacer(1, 20))

    if appointment.get('chief_complaint'):
        story.append(Paragraph("Reason for Visit", styles['heading']))
        story.append(Paragraph(escape(appointment['chief_complaint']), styles['normal']))
        story.append(Spacer(1, 20))

    amount = appointment.get('payment_amount') or appointment.get('total_consultation_fee') or 0
    story.append(Paragraph("Payment", styles['heading']))
    story.append(_label_table([
        ("Consultation Fee:", f"{currency}{amount:,.2f}"),
        ("Method:", appointment.get('payment_method')),
        ("Status:", _text(appointment.get('payment_status')).title()),
    ], styles['normal']))
    story.append(Spacer(1, 30))
    story.append(Paragraph(
        "<i>Please arrive 10 minutes before your appointment time and bring this confirmation.</i>",
        styles['footer'],
    ))
    return _render(story)


def generate_prescription_pdf(appointment: dict, patient: dict = None, hospital_name: str = '') -> bytes:
    """Prescription written at completion; medicine lines listed as the doctor entered them"""
    styles = _styles()
    story = []
    _header(story, styles, hospital_name, "Prescription")

    patient = patient or {}
    story.append(Paragraph("Patient Information", styles['heading']))
    story.append(_label_table([
        ("Patient Name:", appointment.get('patient_name')),
        ("Gender:", patient.get('gender')),
        ("Date of Birth:", patient.get('date_of_birth')),
        ("Allergies:", patient.get('allergies')),
        ("Visit Date:", appointment.get('appointment_date')),
    ], styles['normal']))
    story.append(Spacer(1, 20))

    story.append(Paragraph("Prescription Details", styles['heading']))
    lines = [line.strip() for line in (appointment.get('medicine') or '').splitlines() if line.strip()]
    if lines:
        rows = [["#", "Instructions"]]
        rows += [[str(index), _cell(line, styles['normal'])] for index, line in enumerate(lines, start=1)]
        table = Table(rows, colWidths=[1.5 * cm, 14.5 * cm])
        table.setStyle(_HEADER_TABLE_STYLE)
        story.append(table)
    else:
        story.append(Paragraph("No medicines prescribed.", styles['normal']))

    medicines = extract_medicines(appointment.get('medicine'))
    if medicines:
        story.append(Spacer(1, 10))
        story.append(Paragraph(f"<b>Medicines:</b> {escape(', '.join(medicines))}", styles['normal']))

    if appointment.get('doctor_notes'):
        story.append(Spacer(1, 16))
        story.append(Paragraph("Doctor's Notes", styles['heading']))
        story.append(Paragraph(escape(appointment['doctor_notes']), styles['normal']))

    story.append(Spacer(1, 40))
    story.append(Paragraph("<b>Prescribed by:</b>", styles['normal']))
    story.append(Paragraph(
        f'<font color="#0066cc" size="14"><b>{escape(_text(appointment.get("doctor_name"), "Doctor"))}</b></font>',
        styles['normal'],
    ))
    story.append(Spacer(1, 30))
    story.append(Paragraph("_" * 30, styles['normal']))
    story.append(Spacer(1, 30))
    story.append(Paragraph(
        "<i>This is a computer-generated prescription. Please follow the dosage instructions carefully.</i>",
        styles['footer'],
    ))
    return _render(story)


def generate_invoice_pdf(appointment: dict, hospital_name: str = '', currency: str = 'Rs.') -> bytes:
    """Consultation invoice"""
    styles = _styles()
    story = []
    _header(story, styles, hospital_name, f"Invoice INV-{_text(appointment.get('id'), '0')}")

    story.append(_label_table(_appointment_rows(appointment)[:6], styles['normal']))
    story.append(Spacer(1, 20))

    fee = appointment.get('total_consultation_fee') or 0
    paid = appointment.get('payment_amount') or 0
    balance = max(fee - paid, 0) if appointment.get('payment_status') != 'paid' else 0
    rows = [
        ["Description", "Amount"],
        [f"Consultation - {_text(appointment.get('doctor_name'), 'Doctor')}", f"{currency}{fee:,.2f}"],
        ["Paid", f"{currency}{paid:,.2f}"],
        ["Balance Due", f"{currency}{balance:,.2f}"],
    ]
    table = Table(rows, colWidths=[11 * cm, 5 * cm])
    table.setStyle(_HEADER_TABLE_STYLE)
    story.append(table)
    story.append(Spacer(1, 12))
    story.append(Paragraph(
        f"Payment method: {escape(_text(appointment.get('payment_method')))} | "
        f"Status: {escape(_text(appointment.get('payment_status')).title())}",
        styles['normal'],
    ))
    story.append(Spacer(1, 30))
    story.append(Paragraph("<i>Thank you for choosing us.</i>", styles['footer']))
    return _render(story)

