"""API routes and dependencies."""

from medidoc.api.appointments import router as appointments_router
from medidoc.api.doctors import router as doctors_router
from medidoc.api.documents import router as documents_router
from medidoc.api.patients import router as patients_router
from medidoc.api.prefill import router as prefill_router
from medidoc.api.templates import router as templates_router

__all__ = [
    "appointments_router",
    "doctors_router",
    "documents_router",
    "patients_router",
    "prefill_router",
    "templates_router",
]
