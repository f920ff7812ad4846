"""FastAPI dependencies for dependency injection.

Provides reusable dependencies for routes including:
- Database sessions
- The acting doctor (opaque current-user identity)
- Record store and renderer strategies
- The builder feature flag
"""

import logging
import uuid
from collections.abc import AsyncGenerator

from fastapi import Depends, Header, HTTPException, Request, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from medidoc.core.config import Settings, get_settings
from medidoc.core.factory import ComponentFactory
from medidoc.db.models import Doctor
from medidoc.db.session import get_async_session
from medidoc.interfaces.record_store import BaseRecordStore

logger = logging.getLogger(__name__)


async def get_db(
    settings: Settings = Depends(get_settings),
) -> AsyncGenerator[AsyncSession, None]:
    """Dependency for getting async database sessions.

    Args:
        settings: Application settings.

    Yields:
        An async database session.
    """
    async for session in get_async_session(settings):
        yield session


def get_factory(request: Request) -> ComponentFactory:
    """Return the application's component factory."""
    return request.app.state.factory


def get_record_store(
    session: AsyncSession = Depends(get_db),
    factory: ComponentFactory = Depends(get_factory),
) -> BaseRecordStore:
    return factory.get_record_store(session)


def parse_doctor_id(x_doctor_id: str | None) -> uuid.UUID:
    """Parse the X-Doctor-ID header value.

    Raises:
        HTTPException: 401 if missing, 400 if not a UUID.
    """
    if not x_doctor_id:
        logger.warning("X-Doctor-ID header is missing")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
        )

    try:
        return uuid.UUID(x_doctor_id)
    except ValueError as e:
        logger.warning(f"Invalid doctor ID format: {x_doctor_id}")
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid doctor ID format",
        ) from e


async def get_current_doctor(
    x_doctor_id: str | None = Header(default=None, description="Authenticated doctor ID"),
    store: BaseRecordStore = Depends(get_record_store),
) -> Doctor:
    """Dependency for the acting doctor.

    Authentication itself happens upstream; this service trusts the
    identity in the X-Doctor-ID header and only checks that a profile
    exists for it.

    Returns:
        The doctor's profile.

    Raises:
        HTTPException: 401 if the header is missing or names no profile,
            400 if it is malformed, 500 on database errors.
    """
    doctor_id = parse_doctor_id(x_doctor_id)

    try:
        doctor = await store.get_doctor(doctor_id)
    except SQLAlchemyError as e:
        logger.error(f"Database error loading doctor {doctor_id}: {e}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Error loading doctor profile",
        ) from e

    if doctor is None:
        logger.warning(f"No profile for doctor: {doctor_id}")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Doctor profile not found",
        )

    return doctor


def require_builder_v2(settings: Settings = Depends(get_settings)) -> None:
    """Hide builder endpoints when the builder feature flag is off."""
    if not settings.enable_builder_v2:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Form builder is not enabled",
        )
