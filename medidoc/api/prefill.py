"""Builder prefill API routes.

Everything here is recomputed from live, owner-scoped records; nothing a
client sends as prefill data is trusted.
"""

import logging
import uuid

from fastapi import APIRouter, Depends

from medidoc.api.appointments import load_appointment
from medidoc.api.deps import get_current_doctor, get_record_store, require_builder_v2
from medidoc.api.patients import load_patient
from medidoc.api.schemas import (
    PrefillFormRequest,
    PrefillFormResponse,
    SubmissionValidateRequest,
)
from medidoc.api.templates import load_builder_schema, load_template
from medidoc.core.config import Settings, get_settings
from medidoc.db.models import Doctor
from medidoc.interfaces.record_store import BaseRecordStore
from medidoc.strategies.builder import (
    PrefillData,
    SubmissionResult,
    initial_form_values,
    is_field_read_only,
    load_prefill_data,
    sanitize_submission,
)

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/prefill",
    tags=["prefill"],
    dependencies=[Depends(require_builder_v2)],
)


async def _prefill_for(
    store: BaseRecordStore,
    doctor: Doctor,
    patient_id: uuid.UUID | None,
    appointment_id: uuid.UUID | None,
    place: str | None,
) -> PrefillData:
    # Unknown ids are a 404 here rather than an empty section.
    if patient_id is not None:
        await load_patient(store, doctor.id, patient_id)
    if appointment_id is not None:
        await load_appointment(store, doctor.id, appointment_id)

    return await load_prefill_data(store, doctor.id, patient_id, appointment_id, place)


@router.get("", response_model=PrefillData)
async def get_prefill_data(
    patient_id: uuid.UUID | None = None,
    appointment_id: uuid.UUID | None = None,
    place: str | None = None,
    doctor: Doctor = Depends(get_current_doctor),
    store: BaseRecordStore = Depends(get_record_store),
    settings: Settings = Depends(get_settings),
) -> PrefillData:
    """Prefill context for the given patient and appointment."""
    return await _prefill_for(
        store, doctor, patient_id, appointment_id, place or settings.default_place
    )


@router.post("/form", response_model=PrefillFormResponse)
async def get_form_values(
    form_request: PrefillFormRequest,
    doctor: Doctor = Depends(get_current_doctor),
    store: BaseRecordStore = Depends(get_record_store),
    settings: Settings = Depends(get_settings),
) -> PrefillFormResponse:
    """Initial values for a builder template's form.

    Includes author defaults for fields without prefill, and lists the
    fields the client must render as read-only.
    """
    template = await load_template(store, doctor.id, form_request.template_id, active_only=True)
    schema = load_builder_schema(template)
    prefill_data = await _prefill_for(
        store,
        doctor,
        form_request.patient_id,
        form_request.appointment_id,
        form_request.place or settings.default_place,
    )

    return PrefillFormResponse(
        prefill_data=prefill_data,
        values=initial_form_values(schema, prefill_data),
        read_only_fields=[
            element.name for element in schema.elements if is_field_read_only(element.prefill)
        ],
    )


@router.post("/validate", response_model=SubmissionResult)
async def validate_form(
    form_request: SubmissionValidateRequest,
    doctor: Doctor = Depends(get_current_doctor),
    store: BaseRecordStore = Depends(get_record_store),
    settings: Settings = Depends(get_settings),
) -> SubmissionResult:
    """Dry-run the submission checks without creating a document."""
    template = await load_template(store, doctor.id, form_request.template_id, active_only=True)
    schema = load_builder_schema(template)
    prefill_data = await _prefill_for(
        store,
        doctor,
        form_request.patient_id,
        form_request.appointment_id,
        form_request.place or settings.default_place,
    )

    result = sanitize_submission(schema, form_request.form_data, prefill_data)
    logger.info(f"Validated submission for template {template.id}: valid={result.valid}")
    return result
