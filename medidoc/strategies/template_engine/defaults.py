"""Built-in V1 templates and the variable vocabulary offered to authors."""

from medidoc.strategies.template_engine.models import (
    DEFAULT_PAGE_SETTINGS,
    PageSettings,
    TemplateContent,
    TemplateStyles,
)

AVAILABLE_VARIABLES: dict[str, list[str]] = {
    "doctor": [
        "doctor.name",
        "doctor.email",
        "doctor.phone",
        "doctor.specialization",
        "doctor.license_number",
        "doctor.clinic_name",
        "doctor.clinic_address",
    ],
    "patient": [
        "patient.name",
        "patient.email",
        "patient.phone",
        "patient.date_of_birth",
        "patient.age",
        "patient.gender",
        "patient.blood_group",
        "patient.address",
        "patient.emergency_contact",
        "patient.emergency_phone",
    ],
    "appointment": [
        "appointment.appointment_date",
        "appointment.appointment_time",
        "appointment.duration_minutes",
        "appointment.chief_complaint",
        "appointment.diagnosis",
        "appointment.notes",
    ],
    "document": [
        "document.date",
        "document.id",
        "document.created_at",
    ],
}


PRESCRIPTION_CONTENT = """PRESCRIPTION

Dr. {{doctor.name}}
{{doctor.specialization}}
License No: {{doctor.license_number}}

{{doctor.clinic_name}}
{{doctor.clinic_address}}
Phone: {{doctor.phone}}

---

Date: {{document.date}}

Patient Name: {{patient.name}}
Age: {{patient.age}} years
Gender: {{patient.gender}}

Diagnosis: {{appointment.diagnosis}}

Rx:

1. [Medicine name, dosage, frequency]
2. [Medicine name, dosage, frequency]
3. [Medicine name, dosage, frequency]

Instructions:
- Take medicines as prescribed
- Follow up after [duration]

---

Dr. {{doctor.name}}
(Signature)"""


MEDICAL_CERTIFICATE_CONTENT = """MEDICAL CERTIFICATE

This is to certify that {{patient.name}}, age {{patient.age}} years, was examined and treated by me on {{appointment.appointment_date}}.

Diagnosis: {{appointment.diagnosis}}

The patient is advised rest for [number] days from {{document.date}}.

Date: {{document.date}}

Dr. {{doctor.name}}
{{doctor.specialization}}
License No: {{doctor.license_number}}
{{doctor.clinic_name}}

(Signature)"""


DEFAULT_TEMPLATES: dict[str, TemplateContent] = {
    "prescription": TemplateContent(
        variables=[
            "doctor.name",
            "doctor.specialization",
            "doctor.license_number",
            "doctor.clinic_name",
            "doctor.clinic_address",
            "doctor.phone",
            "patient.name",
            "patient.age",
            "patient.gender",
            "appointment.appointment_date",
            "appointment.diagnosis",
            "document.date",
        ],
        content=PRESCRIPTION_CONTENT,
        styles=TemplateStyles(
            font_size=12, font_family="Helvetica", line_height=1.5, page_margins=(40, 60, 40, 60)
        ),
        page_settings=PageSettings(size="A4", orientation="portrait"),
    ),
    "medical_certificate": TemplateContent(
        variables=[
            "doctor.name",
            "doctor.specialization",
            "doctor.license_number",
            "doctor.clinic_name",
            "patient.name",
            "patient.age",
            "appointment.appointment_date",
            "appointment.diagnosis",
            "document.date",
        ],
        content=MEDICAL_CERTIFICATE_CONTENT,
        styles=TemplateStyles(
            font_size=12, font_family="Helvetica", line_height=1.6, page_margins=(50, 80, 50, 80)
        ),
        page_settings=DEFAULT_PAGE_SETTINGS,
    ),
}
