"""Patient management API routes.

Patients are never hard-deleted; DELETE marks them inactive and
``/restore`` reactivates them.
"""

import logging
import uuid

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from medidoc.api.deps import get_current_doctor, get_db, get_record_store
from medidoc.api.schemas import (
    PatientCreate,
    PatientListResponse,
    PatientResponse,
    PatientUpdate,
)
from medidoc.db.models import Doctor, Patient
from medidoc.interfaces.record_store import BaseRecordStore

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/patients", tags=["patients"])


async def load_patient(
    store: BaseRecordStore, doctor_id: uuid.UUID, patient_id: uuid.UUID
) -> Patient:
    """Fetch an owned patient or raise 404."""
    patient = await store.get_patient(doctor_id, patient_id)
    if patient is None:
        logger.warning(f"Patient not found: {patient_id}")
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Patient not found",
        )
    return patient


@router.post("", response_model=PatientResponse, status_code=status.HTTP_201_CREATED)
async def create_patient(
    patient_data: PatientCreate,
    doctor: Doctor = Depends(get_current_doctor),
    session: AsyncSession = Depends(get_db),
) -> PatientResponse:
    """Create a patient owned by the current doctor."""
    try:
        patient = Patient(doctor_id=doctor.id, **patient_data.model_dump())

        session.add(patient)
        await session.commit()
        await session.refresh(patient)

        logger.info(f"Created patient: {patient.id}")
        return PatientResponse.model_validate(patient)

    except SQLAlchemyError as e:
        logger.error(f"Database error creating patient: {e}", exc_info=True)
        await session.rollback()
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to create patient",
        ) from e


@router.get("", response_model=PatientListResponse)
async def list_patients(
    search: str | None = None,
    include_inactive: bool = False,
    skip: int = 0,
    limit: int = 100,
    doctor: Doctor = Depends(get_current_doctor),
    session: AsyncSession = Depends(get_db),
) -> PatientListResponse:
    """List the current doctor's patients.

    Args:
        search: Case-insensitive substring of the patient name.
        include_inactive: Include soft-deleted patients.
        skip: Number of records to skip.
        limit: Maximum number of records to return.
    """
    try:
        query = select(Patient).where(Patient.doctor_id == doctor.id)
        if not include_inactive:
            query = query.where(Patient.is_active.is_(True))
        if search:
            query = query.where(func.lower(Patient.name).contains(search.lower()))

        count_result = await session.execute(select(func.count()).select_from(query.subquery()))
        total = count_result.scalar_one()

        result = await session.execute(query.order_by(Patient.name).offset(skip).limit(limit))
        patients = result.scalars().all()

        return PatientListResponse(
            patients=[PatientResponse.model_validate(p) for p in patients],
            total=total,
        )

    except SQLAlchemyError as e:
        logger.error(f"Database error listing patients: {e}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to list patients",
        ) from e


@router.get("/{patient_id}", response_model=PatientResponse)
async def get_patient(
    patient_id: uuid.UUID,
    doctor: Doctor = Depends(get_current_doctor),
    store: BaseRecordStore = Depends(get_record_store),
) -> PatientResponse:
    patient = await load_patient(store, doctor.id, patient_id)
    return PatientResponse.model_validate(patient)


@router.put("/{patient_id}", response_model=PatientResponse)
async def update_patient(
    patient_id: uuid.UUID,
    patient_data: PatientUpdate,
    doctor: Doctor = Depends(get_current_doctor),
    store: BaseRecordStore = Depends(get_record_store),
    session: AsyncSession = Depends(get_db),
) -> PatientResponse:
    """Update a patient. Omitted fields are unchanged."""
    patient = await load_patient(store, doctor.id, patient_id)

    try:
        for key, value in patient_data.model_dump(exclude_unset=True).items():
            setattr(patient, key, value)

        session.add(patient)
        await session.commit()
        await session.refresh(patient)

        logger.info(f"Updated patient: {patient.id}")
        return PatientResponse.model_validate(patient)

    except SQLAlchemyError as e:
        logger.error(f"Database error updating patient: {e}", exc_info=True)
        await session.rollback()
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to update patient",
        ) from e


async def _set_active(
    patient: Patient, is_active: bool, session: AsyncSession
) -> PatientResponse:
    try:
        patient.is_active = is_active
        session.add(patient)
        await session.commit()
        await session.refresh(patient)

        logger.info(f"Patient {patient.id} is_active={is_active}")
        return PatientResponse.model_validate(patient)

    except SQLAlchemyError as e:
        logger.error(f"Database error changing patient status: {e}", exc_info=True)
        await session.rollback()
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to update patient status",
        ) from e


@router.delete("/{patient_id}", response_model=PatientResponse)
async def delete_patient(
    patient_id: uuid.UUID,
    doctor: Doctor = Depends(get_current_doctor),
    store: BaseRecordStore = Depends(get_record_store),
    session: AsyncSession = Depends(get_db),
) -> PatientResponse:
    """Soft-delete a patient. Their documents and appointments are kept."""
    patient = await load_patient(store, doctor.id, patient_id)
    return await _set_active(patient, False, session)


@router.post("/{patient_id}/restore", response_model=PatientResponse)
async def restore_patient(
    patient_id: uuid.UUID,
    doctor: Doctor = Depends(get_current_doctor),
    store: BaseRecordStore = Depends(get_record_store),
    session: AsyncSession = Depends(get_db),
) -> PatientResponse:
    patient = await load_patient(store, doctor.id, patient_id)
    return await _set_active(patient, True, session)
