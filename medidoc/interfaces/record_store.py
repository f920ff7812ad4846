"""Abstract base class for record lookups.

The document engine reads doctors, patients, appointments and templates
only through this interface. Every lookup is scoped to the acting doctor.
"""

import uuid
from abc import ABC, abstractmethod

from medidoc.db.models import Appointment, Doctor, Patient, Template


class BaseRecordStore(ABC):
    """Owner-scoped, read-only access to practice records.

    Implementations return ``None`` when a record does not exist or
    belongs to another doctor; they never reveal which of the two it was.
    """

    @abstractmethod
    async def get_doctor(self, doctor_id: uuid.UUID) -> Doctor | None:
        """Fetch the doctor's own profile."""

    @abstractmethod
    async def get_patient(self, doctor_id: uuid.UUID, patient_id: uuid.UUID) -> Patient | None:
        """Fetch a patient owned by ``doctor_id``."""

    @abstractmethod
    async def get_appointment(
        self, doctor_id: uuid.UUID, appointment_id: uuid.UUID
    ) -> Appointment | None:
        """Fetch an appointment owned by ``doctor_id``."""

    @abstractmethod
    async def get_template(
        self,
        doctor_id: uuid.UUID,
        template_id: uuid.UUID,
        active_only: bool = False,
    ) -> Template | None:
        """Fetch a template owned by ``doctor_id``.

        Args:
            doctor_id: The acting doctor.
            template_id: The template to fetch.
            active_only: When True, deactivated templates resolve to None.
        """
