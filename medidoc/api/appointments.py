"""Appointment API routes."""

import datetime
import logging
import uuid

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from medidoc.api.deps import get_current_doctor, get_db, get_record_store
from medidoc.api.patients import load_patient
from medidoc.api.schemas import (
    AppointmentCreate,
    AppointmentListResponse,
    AppointmentResponse,
    AppointmentStatusUpdate,
    AppointmentUpdate,
)
from medidoc.db.models import Appointment, AppointmentStatus, Doctor
from medidoc.interfaces.record_store import BaseRecordStore

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/appointments", tags=["appointments"])


async def load_appointment(
    store: BaseRecordStore, doctor_id: uuid.UUID, appointment_id: uuid.UUID
) -> Appointment:
    """Fetch an owned appointment or raise 404."""
    appointment = await store.get_appointment(doctor_id, appointment_id)
    if appointment is None:
        logger.warning(f"Appointment not found: {appointment_id}")
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Appointment not found",
        )
    return appointment


async def _save(appointment: Appointment, session: AsyncSession, action: str) -> AppointmentResponse:
    try:
        session.add(appointment)
        await session.commit()
        await session.refresh(appointment)

        logger.info(f"{action} appointment: {appointment.id}")
        return AppointmentResponse.model_validate(appointment)

    except SQLAlchemyError as e:
        logger.error(f"Database error saving appointment: {e}", exc_info=True)
        await session.rollback()
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to save appointment",
        ) from e


@router.post("", response_model=AppointmentResponse, status_code=status.HTTP_201_CREATED)
async def create_appointment(
    appointment_data: AppointmentCreate,
    doctor: Doctor = Depends(get_current_doctor),
    store: BaseRecordStore = Depends(get_record_store),
    session: AsyncSession = Depends(get_db),
) -> AppointmentResponse:
    """Book an appointment for one of the current doctor's patients."""
    await load_patient(store, doctor.id, appointment_data.patient_id)

    appointment = Appointment(
        doctor_id=doctor.id,
        patient_id=appointment_data.patient_id,
        appointment_date=datetime.datetime.combine(
            appointment_data.appointment_date, appointment_data.appointment_time
        ),
        **appointment_data.model_dump(
            exclude={"patient_id", "appointment_date", "appointment_time"}
        ),
    )
    return await _save(appointment, session, "Created")


@router.get("", response_model=AppointmentListResponse)
async def list_appointments(
    patient_id: uuid.UUID | None = None,
    appointment_status: AppointmentStatus | None = Query(default=None, alias="status"),
    skip: int = 0,
    limit: int = 100,
    doctor: Doctor = Depends(get_current_doctor),
    session: AsyncSession = Depends(get_db),
) -> AppointmentListResponse:
    """List appointments, most recent first, optionally by patient or status."""
    try:
        query = select(Appointment).where(Appointment.doctor_id == doctor.id)
        if patient_id is not None:
            query = query.where(Appointment.patient_id == patient_id)
        if appointment_status is not None:
            query = query.where(Appointment.status == appointment_status)

        count_result = await session.execute(select(func.count()).select_from(query.subquery()))
        total = count_result.scalar_one()

        result = await session.execute(
            query.order_by(Appointment.appointment_date.desc()).offset(skip).limit(limit)
        )

        return AppointmentListResponse(
            appointments=[AppointmentResponse.model_validate(a) for a in result.scalars().all()],
            total=total,
        )

    except SQLAlchemyError as e:
        logger.error(f"Database error listing appointments: {e}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to list appointments",
        ) from e


@router.get("/{appointment_id}", response_model=AppointmentResponse)
async def get_appointment(
    appointment_id: uuid.UUID,
    doctor: Doctor = Depends(get_current_doctor),
    store: BaseRecordStore = Depends(get_record_store),
) -> AppointmentResponse:
    appointment = await load_appointment(store, doctor.id, appointment_id)
    return AppointmentResponse.model_validate(appointment)


@router.put("/{appointment_id}", response_model=AppointmentResponse)
async def update_appointment(
    appointment_id: uuid.UUID,
    appointment_data: AppointmentUpdate,
    doctor: Doctor = Depends(get_current_doctor),
    store: BaseRecordStore = Depends(get_record_store),
    session: AsyncSession = Depends(get_db),
) -> AppointmentResponse:
    """Update an appointment. A new date or time keeps the other half."""
    appointment = await load_appointment(store, doctor.id, appointment_id)

    changes = appointment_data.model_dump(exclude_unset=True)
    new_date = changes.pop("appointment_date", None)
    new_time = changes.pop("appointment_time", None)
    if new_date is not None or new_time is not None:
        current = appointment.appointment_date
        appointment.appointment_date = datetime.datetime.combine(
            new_date or current.date(),
            new_time or current.time(),
        )

    for key, value in changes.items():
        setattr(appointment, key, value)

    return await _save(appointment, session, "Updated")


@router.patch("/{appointment_id}/status", response_model=AppointmentResponse)
async def update_appointment_status(
    appointment_id: uuid.UUID,
    status_data: AppointmentStatusUpdate,
    doctor: Doctor = Depends(get_current_doctor),
    store: BaseRecordStore = Depends(get_record_store),
    session: AsyncSession = Depends(get_db),
) -> AppointmentResponse:
    appointment = await load_appointment(store, doctor.id, appointment_id)
    appointment.status = status_data.status
    return await _save(appointment, session, f"Marked {status_data.status.value}")
