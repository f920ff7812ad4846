"""Doctor profile API routes."""

import logging

from fastapi import APIRouter, Depends, Header, HTTPException, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from medidoc.api.deps import get_current_doctor, get_db, parse_doctor_id
from medidoc.api.schemas import DoctorCreate, DoctorResponse, DoctorUpdate
from medidoc.db.models import Doctor

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/doctors", tags=["doctors"])


@router.post("", response_model=DoctorResponse, status_code=status.HTTP_201_CREATED)
async def create_doctor(
    doctor_data: DoctorCreate,
    x_doctor_id: str | None = Header(default=None),
    session: AsyncSession = Depends(get_db),
) -> DoctorResponse:
    """Register the profile for an authenticated user.

    The profile id is taken from the X-Doctor-ID header when present,
    then from the body, and is generated otherwise.

    Raises:
        HTTPException: 409 if a profile already exists for the id.
    """
    try:
        values = doctor_data.model_dump(exclude={"id"})
        doctor = Doctor(**values)
        if x_doctor_id:
            doctor.id = parse_doctor_id(x_doctor_id)
        elif doctor_data.id is not None:
            doctor.id = doctor_data.id

        existing = await session.get(Doctor, doctor.id)
        if existing is not None:
            logger.warning(f"Doctor profile already exists: {doctor.id}")
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="Doctor profile already exists",
            )

        session.add(doctor)
        await session.commit()
        await session.refresh(doctor)

        logger.info(f"Registered doctor: {doctor.id}")
        return DoctorResponse.model_validate(doctor)

    except HTTPException:
        raise
    except SQLAlchemyError as e:
        logger.error(f"Database error creating doctor: {e}", exc_info=True)
        await session.rollback()
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to create doctor profile",
        ) from e


@router.get("/me", response_model=DoctorResponse)
async def get_me(doctor: Doctor = Depends(get_current_doctor)) -> DoctorResponse:
    return DoctorResponse.model_validate(doctor)


@router.put("/me", response_model=DoctorResponse)
async def update_me(
    doctor_data: DoctorUpdate,
    doctor: Doctor = Depends(get_current_doctor),
    session: AsyncSession = Depends(get_db),
) -> DoctorResponse:
    """Update the current doctor's profile. Omitted fields are unchanged."""
    try:
        for key, value in doctor_data.model_dump(exclude_unset=True).items():
            setattr(doctor, key, value)

        session.add(doctor)
        await session.commit()
        await session.refresh(doctor)

        logger.info(f"Updated doctor profile: {doctor.id}")
        return DoctorResponse.model_validate(doctor)

    except SQLAlchemyError as e:
        logger.error(f"Database error updating doctor: {e}", exc_info=True)
        await session.rollback()
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to update doctor profile",
        ) from e
