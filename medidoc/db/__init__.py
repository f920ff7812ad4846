"""Database models and session management."""

from medidoc.db.models import (
    Appointment,
    AppointmentStatus,
    Doctor,
    Document,
    Gender,
    Patient,
    Template,
)
from medidoc.db.session import (
    AsyncSession,
    close_db,
    create_all_tables,
    get_async_session,
    init_db,
)

__all__ = [
    # Models
    "Doctor",
    "Patient",
    "Appointment",
    "AppointmentStatus",
    "Template",
    "Document",
    "Gender",
    # Session
    "AsyncSession",
    "get_async_session",
    "create_all_tables",
    "close_db",
    "init_db",
]
