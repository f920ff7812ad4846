"""Record store backed by an async SQLAlchemy session."""

import logging
import uuid

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from medidoc.db.models import Appointment, Doctor, Patient, Template
from medidoc.interfaces.record_store import BaseRecordStore

logger = logging.getLogger(__name__)


class SQLRecordStore(BaseRecordStore):
    """Owner-scoped lookups over the practice tables.

    Every query filters on ``doctor_id`` so a record belonging to another
    doctor is indistinguishable from a missing one.
    """

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get_doctor(self, doctor_id: uuid.UUID) -> Doctor | None:
        result = await self._session.execute(select(Doctor).where(Doctor.id == doctor_id))
        return result.scalar_one_or_none()

    async def get_patient(self, doctor_id: uuid.UUID, patient_id: uuid.UUID) -> Patient | None:
        query = select(Patient).where(
            Patient.id == patient_id,
            Patient.doctor_id == doctor_id,
        )
        result = await self._session.execute(query)
        return result.scalar_one_or_none()

    async def get_appointment(
        self, doctor_id: uuid.UUID, appointment_id: uuid.UUID
    ) -> Appointment | None:
        query = select(Appointment).where(
            Appointment.id == appointment_id,
            Appointment.doctor_id == doctor_id,
        )
        result = await self._session.execute(query)
        return result.scalar_one_or_none()

    async def get_template(
        self,
        doctor_id: uuid.UUID,
        template_id: uuid.UUID,
        active_only: bool = False,
    ) -> Template | None:
        query = select(Template).where(
            Template.id == template_id,
            Template.doctor_id == doctor_id,
        )
        if active_only:
            query = query.where(Template.is_active.is_(True))

        result = await self._session.execute(query)
        template = result.scalar_one_or_none()

        if template is None:
            logger.debug(f"Template {template_id} not found for doctor {doctor_id}")
        return template
