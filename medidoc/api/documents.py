"""Document generation API routes.

Documents are immutable once created: there is no update route and
deletion is refused. Each document stores a resolved copy of everything
needed to render it, never a reference to the live template.
"""

import datetime
import logging
import uuid
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi.responses import FileResponse
from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from medidoc.api.appointments import load_appointment
from medidoc.api.deps import (
    get_current_doctor,
    get_db,
    get_factory,
    get_record_store,
    require_builder_v2,
)
from medidoc.api.patients import load_patient
from medidoc.api.schemas import (
    BuilderDocumentCreate,
    DocumentCreate,
    DocumentListResponse,
    DocumentResponse,
)
from medidoc.api.templates import load_builder_schema, load_template, load_template_content
from medidoc.core.config import Settings, get_settings
from medidoc.core.factory import ComponentFactory
from medidoc.db.models import Appointment, Doctor, Document, Gender, Patient
from medidoc.interfaces.record_store import BaseRecordStore
from medidoc.interfaces.renderer import RenderError, RenderMetadata
from medidoc.strategies.builder import BuilderSchema, validate_submission
from medidoc.strategies.template_engine import (
    calculate_age,
    find_missing_variables,
    format_long_date,
    prepare_document_data,
    substitute_variables,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/documents", tags=["documents"])


# =============================================================================
# Helpers
# =============================================================================


async def _load_document(
    session: AsyncSession, doctor_id: uuid.UUID, document_id: uuid.UUID
) -> Document:
    result = await session.execute(
        select(Document).where(Document.id == document_id, Document.doctor_id == doctor_id)
    )
    document = result.scalar_one_or_none()
    if document is None:
        logger.warning(f"Document not found: {document_id}")
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Document not found",
        )
    return document


async def _save(document: Document, session: AsyncSession) -> DocumentResponse:
    try:
        session.add(document)
        await session.commit()
        await session.refresh(document)

        logger.info(f"Created document: {document.id} from template {document.template_id}")
        return DocumentResponse.model_validate(document)

    except SQLAlchemyError as e:
        logger.error(f"Database error creating document: {e}", exc_info=True)
        await session.rollback()
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to create document",
        ) from e


def _patient_info(patient: Patient, today: datetime.date) -> dict[str, Any]:
    return {
        "id": str(patient.id),
        "name": patient.name,
        "phone": patient.phone,
        "email": patient.email,
        "date_of_birth": patient.date_of_birth.isoformat() if patient.date_of_birth else None,
        "gender": Gender(patient.gender).value if patient.gender else None,
        "age": calculate_age(patient.date_of_birth, today) if patient.date_of_birth else None,
        "blood_group": patient.blood_group,
        "address": patient.address,
    }


def _appointment_info(appointment: Appointment | None) -> dict[str, Any] | None:
    if appointment is None:
        return None
    return {
        "id": str(appointment.id),
        "appointment_date": appointment.appointment_date.date().isoformat(),
        "appointment_time": appointment.appointment_date.strftime("%H:%M"),
        "chief_complaint": appointment.chief_complaint,
    }


# =============================================================================
# Creation
# =============================================================================


@router.post("", response_model=DocumentResponse, status_code=status.HTTP_201_CREATED)
async def create_document(
    document_data: DocumentCreate,
    doctor: Doctor = Depends(get_current_doctor),
    store: BaseRecordStore = Depends(get_record_store),
    session: AsyncSession = Depends(get_db),
) -> DocumentResponse:
    """Generate a document from an active V1 template.

    The template text is substituted against the assembled patient,
    doctor and appointment data unless ``custom_content`` is supplied.
    """
    template = await load_template(store, doctor.id, document_data.template_id, active_only=True)
    content = load_template_content(template)
    patient = await load_patient(store, doctor.id, document_data.patient_id)
    appointment = None
    if document_data.appointment_id is not None:
        appointment = await load_appointment(store, doctor.id, document_data.appointment_id)

    data = prepare_document_data(doctor, patient, appointment)

    missing = find_missing_variables(content, data)
    if missing:
        logger.info(f"Template {template.id} variables not provided: {missing}")

    generated = document_data.custom_content or substitute_variables(content.content, data)

    document = Document(
        doctor_id=doctor.id,
        patient_id=patient.id,
        appointment_id=appointment.id if appointment else None,
        template_id=template.id,
        document_name=template.name,
        document_type=template.category,
        data_json={
            "content": generated,
            "template": content.to_storage(),
            "generated_data": data.model_dump(mode="json"),
        },
        created_by=doctor.id,
    )
    return await _save(document, session)


@router.post(
    "/builder",
    response_model=DocumentResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_builder_v2)],
)
async def create_builder_document(
    document_data: BuilderDocumentCreate,
    doctor: Doctor = Depends(get_current_doctor),
    store: BaseRecordStore = Depends(get_record_store),
    session: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
) -> DocumentResponse:
    """Generate a document from an active builder template.

    The submission is re-validated server-side: locked prefill fields are
    reset from live records and calculated fields are recomputed.

    Raises:
        HTTPException: 422 with ``errors`` and ``sanitized_data`` when the
            submission is invalid.
    """
    template = await load_template(store, doctor.id, document_data.template_id, active_only=True)
    schema = load_builder_schema(template)
    patient = await load_patient(store, doctor.id, document_data.patient_id)
    appointment = None
    if document_data.appointment_id is not None:
        appointment = await load_appointment(store, doctor.id, document_data.appointment_id)

    result = await validate_submission(
        schema,
        document_data.form_data,
        store,
        doctor.id,
        patient_id=patient.id,
        appointment_id=appointment.id if appointment else None,
        place=document_data.place or settings.default_place,
    )
    if not result.valid:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail={
                "message": "Submission is invalid",
                "errors": result.errors,
                "sanitized_data": result.sanitized_data,
            },
        )

    now = datetime.datetime.now()
    document = Document(
        doctor_id=doctor.id,
        patient_id=patient.id,
        appointment_id=appointment.id if appointment else None,
        template_id=template.id,
        document_name=template.name,
        document_type=template.category,
        data_json={
            "builder_version": 2,
            "form_data": result.sanitized_data,
            "template_schema": schema.to_storage(),
            "patient_info": _patient_info(patient, now.date()),
            "doctor_info": {
                "id": str(doctor.id),
                "name": doctor.name,
                "clinic_name": doctor.clinic_name,
            },
            "appointment_info": _appointment_info(appointment),
            "created_at": now.isoformat(),
        },
        created_by=doctor.id,
    )
    return await _save(document, session)


# =============================================================================
# Reading
# =============================================================================


@router.get("", response_model=DocumentListResponse)
async def list_documents(
    patient_id: uuid.UUID | None = None,
    skip: int = 0,
    limit: int = 100,
    doctor: Doctor = Depends(get_current_doctor),
    session: AsyncSession = Depends(get_db),
) -> DocumentListResponse:
    """List the current doctor's documents, newest first."""
    try:
        query = select(Document).where(Document.doctor_id == doctor.id)
        if patient_id is not None:
            query = query.where(Document.patient_id == patient_id)

        count_result = await session.execute(select(func.count()).select_from(query.subquery()))
        total = count_result.scalar_one()

        result = await session.execute(
            query.order_by(Document.created_at.desc()).offset(skip).limit(limit)
        )

        return DocumentListResponse(
            documents=[DocumentResponse.model_validate(d) for d in result.scalars().all()],
            total=total,
        )

    except SQLAlchemyError as e:
        logger.error(f"Database error listing documents: {e}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to list documents",
        ) from e


@router.get("/{document_id}", response_model=DocumentResponse)
async def get_document(
    document_id: uuid.UUID,
    doctor: Doctor = Depends(get_current_doctor),
    session: AsyncSession = Depends(get_db),
) -> DocumentResponse:
    document = await _load_document(session, doctor.id, document_id)
    return DocumentResponse.model_validate(document)


@router.get("/{document_id}/render")
async def render_document(
    document_id: uuid.UUID,
    output_format: str | None = Query(default=None, alias="format"),
    doctor: Doctor = Depends(get_current_doctor),
    session: AsyncSession = Depends(get_db),
    factory: ComponentFactory = Depends(get_factory),
    settings: Settings = Depends(get_settings),
) -> FileResponse:
    """Render a stored document to a file.

    Args:
        output_format: Renderer to use ('docx' or 'text'); defaults to settings.
    """
    document = await _load_document(session, doctor.id, document_id)

    try:
        renderer = factory.get_renderer(output_format)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e

    data = document.data_json
    output_path = settings.output_dir / f"{document.id}{renderer.extension}"

    try:
        if data.get("builder_version") == 2:
            doctor_info = data.get("doctor_info") or {}
            metadata = RenderMetadata(
                title=document.document_name,
                clinic_name=doctor_info.get("clinic_name"),
                doctor_name=doctor_info.get("name"),
                date=format_long_date(document.created_at),
                extra={"patient_name": (data.get("patient_info") or {}).get("name")},
            )
            schema = BuilderSchema.model_validate(data.get("template_schema") or {})
            renderer.render_form(metadata, schema.elements, data.get("form_data") or {}, output_path)
        else:
            doctor_section = (data.get("generated_data") or {}).get("doctor") or {}
            metadata = RenderMetadata(
                title=document.document_name,
                clinic_name=doctor_section.get("clinic_name"),
                doctor_name=doctor_section.get("name"),
                date=format_long_date(document.created_at),
            )
            renderer.render_text(metadata, data.get("content", ""), output_path)

    except RenderError as e:
        logger.error(f"Rendering failed for document {document.id}: {e}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to render document",
        ) from e

    return FileResponse(
        output_path,
        media_type=renderer.media_type,
        filename=f"{document.document_name}{renderer.extension}",
    )


@router.delete("/{document_id}")
async def delete_document(
    document_id: uuid.UUID,
    doctor: Doctor = Depends(get_current_doctor),
    session: AsyncSession = Depends(get_db),
) -> None:
    """Documents are immutable and cannot be deleted."""
    await _load_document(session, doctor.id, document_id)
    logger.warning(f"Refused to delete immutable document: {document_id}")
    raise HTTPException(
        status_code=status.HTTP_409_CONFLICT,
        detail="Documents cannot be deleted (immutable)",
    )
