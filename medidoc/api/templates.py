"""Template management API routes.

Handles both template formats:
- V1: flat text with ``{{section.field}}`` placeholders
- V2: builder schemas of typed form elements (behind the builder flag)
"""

import logging
import uuid

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import ValidationError
from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from medidoc.api.deps import get_current_doctor, get_db, get_record_store, require_builder_v2
from medidoc.api.schemas import (
    BuilderTemplateCreate,
    BuilderTemplateUpdate,
    DefaultTemplateResponse,
    TemplateActiveUpdate,
    TemplateCreate,
    TemplateListResponse,
    TemplateMigrationResponse,
    TemplateResponse,
    TemplateUpdate,
)
from medidoc.db.models import Doctor, Template
from medidoc.interfaces.record_store import BaseRecordStore
from medidoc.strategies.builder import (
    PREFILL_FIELDS,
    BuilderElement,
    BuilderSchema,
    SchemaValidationError,
    convert_legacy_schema,
    ensure_valid_schema,
)
from medidoc.strategies.template_engine import (
    AVAILABLE_VARIABLES,
    DEFAULT_TEMPLATES,
    TemplateCategory,
    TemplateContent,
    ensure_valid_template_content,
    is_valid_template_content,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/templates", tags=["templates"])


# =============================================================================
# Helpers
# =============================================================================


def parse_variables(raw: str) -> list[str]:
    """Split a comma-separated variable list, dropping blanks."""
    return [part.strip() for part in raw.split(",") if part.strip()]


async def load_template(
    store: BaseRecordStore,
    doctor_id: uuid.UUID,
    template_id: uuid.UUID,
    active_only: bool = False,
) -> Template:
    """Fetch an owned template or raise 404."""
    template = await store.get_template(doctor_id, template_id, active_only=active_only)
    if template is None:
        logger.warning(f"Template not found: {template_id}")
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Template not found",
        )
    return template


def load_template_content(template: Template) -> TemplateContent:
    """Parse a V1 template's stored content or raise 409."""
    if template.builder_version != 1 or not is_valid_template_content(template.content_json):
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Template is not a text (V1) template",
        )
    return TemplateContent.model_validate(template.content_json)


def load_builder_schema(template: Template) -> BuilderSchema:
    """Parse a V2 template's stored schema or raise 409."""
    if template.builder_version != 2:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Template is not a builder (V2) template",
        )
    try:
        return BuilderSchema.model_validate(template.content_json)
    except ValidationError as e:
        logger.error(f"Stored builder schema is invalid for {template.id}: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Stored template schema is invalid",
        ) from e


def _checked_content(content: TemplateContent) -> dict:
    storage = content.to_storage()
    ensure_valid_template_content(storage)
    return storage


def _checked_schema(elements: list[BuilderElement]) -> dict:
    if not elements:
        raise SchemaValidationError(["Template must have at least one element"])

    schema = BuilderSchema(elements=elements)
    ensure_valid_schema(schema)
    return schema.to_storage()


async def _save(template: Template, session: AsyncSession, action: str) -> TemplateResponse:
    try:
        session.add(template)
        await session.commit()
        await session.refresh(template)

        logger.info(f"{action} template: {template.id} (v{template.builder_version})")
        return TemplateResponse.model_validate(template)

    except SQLAlchemyError as e:
        logger.error(f"Database error saving template: {e}", exc_info=True)
        await session.rollback()
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to save template",
        ) from e


# =============================================================================
# Reference data
# =============================================================================


@router.get("/defaults", response_model=list[DefaultTemplateResponse])
async def list_default_templates() -> list[DefaultTemplateResponse]:
    """Built-in V1 templates authors can start from."""
    return [
        DefaultTemplateResponse(key=key, category=TemplateCategory(key), content=content)
        for key, content in DEFAULT_TEMPLATES.items()
    ]


@router.get("/variables", response_model=dict[str, list[str]])
async def list_available_variables() -> dict[str, list[str]]:
    """Dotted variable paths usable in V1 templates, grouped by section."""
    return AVAILABLE_VARIABLES


@router.get(
    "/prefill-fields",
    response_model=dict[str, dict[str, str]],
    dependencies=[Depends(require_builder_v2)],
)
async def list_prefill_fields() -> dict[str, dict[str, str]]:
    """Prefill keys and labels per source for builder elements."""
    return {source.value: fields for source, fields in PREFILL_FIELDS.items()}


# =============================================================================
# V1 templates
# =============================================================================


@router.post("", response_model=TemplateResponse, status_code=status.HTTP_201_CREATED)
async def create_template(
    template_data: TemplateCreate,
    doctor: Doctor = Depends(get_current_doctor),
    session: AsyncSession = Depends(get_db),
) -> TemplateResponse:
    """Create a V1 text template."""
    content = TemplateContent(
        variables=parse_variables(template_data.variables),
        content=template_data.content,
        styles=template_data.styles,
        page_settings=template_data.page_settings,
    )

    template = Template(
        doctor_id=doctor.id,
        name=template_data.name,
        description=template_data.description,
        category=template_data.category.value if template_data.category else None,
        content_json=_checked_content(content),
        builder_version=1,
    )
    return await _save(template, session, "Created")


@router.put("/{template_id}", response_model=TemplateResponse)
async def update_template(
    template_id: uuid.UUID,
    template_data: TemplateUpdate,
    doctor: Doctor = Depends(get_current_doctor),
    store: BaseRecordStore = Depends(get_record_store),
    session: AsyncSession = Depends(get_db),
) -> TemplateResponse:
    """Update a V1 template. Omitted fields are unchanged."""
    template = await load_template(store, doctor.id, template_id)
    current = load_template_content(template)

    changes = template_data.model_dump(exclude_unset=True)
    content_updates = {
        key: getattr(template_data, key)
        for key in ("content", "styles", "page_settings")
        if key in changes
    }
    if template_data.variables is not None:
        content_updates["variables"] = parse_variables(template_data.variables)
    if content_updates.get("content") is None:
        content_updates.pop("content", None)

    if "name" in changes:
        template.name = template_data.name
    if "description" in changes:
        template.description = template_data.description
    if "category" in changes:
        template.category = template_data.category.value if template_data.category else None

    content = TemplateContent.model_validate({**current.model_dump(), **content_updates})
    template.content_json = _checked_content(content)
    return await _save(template, session, "Updated")


# =============================================================================
# V2 builder templates
# =============================================================================


@router.post(
    "/builder",
    response_model=TemplateResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_builder_v2)],
)
async def create_builder_template(
    template_data: BuilderTemplateCreate,
    doctor: Doctor = Depends(get_current_doctor),
    session: AsyncSession = Depends(get_db),
) -> TemplateResponse:
    """Create a V2 builder template. Field names must be unique."""
    template = Template(
        doctor_id=doctor.id,
        name=template_data.name,
        description=template_data.description,
        category=template_data.category.value if template_data.category else None,
        content_json=_checked_schema(template_data.elements),
        builder_version=2,
    )
    return await _save(template, session, "Created")


@router.put(
    "/builder/{template_id}",
    response_model=TemplateResponse,
    dependencies=[Depends(require_builder_v2)],
)
async def update_builder_template(
    template_id: uuid.UUID,
    template_data: BuilderTemplateUpdate,
    doctor: Doctor = Depends(get_current_doctor),
    store: BaseRecordStore = Depends(get_record_store),
    session: AsyncSession = Depends(get_db),
) -> TemplateResponse:
    """Update a V2 builder template. Omitted fields are unchanged."""
    template = await load_template(store, doctor.id, template_id)
    load_builder_schema(template)

    changes = template_data.model_dump(exclude_unset=True)
    if "name" in changes:
        template.name = template_data.name
    if "description" in changes:
        template.description = template_data.description
    if "category" in changes:
        template.category = template_data.category.value if template_data.category else None
    if template_data.elements is not None:
        template.content_json = _checked_schema(template_data.elements)

    return await _save(template, session, "Updated")


@router.post(
    "/{template_id}/migrate",
    response_model=TemplateMigrationResponse,
    dependencies=[Depends(require_builder_v2)],
)
async def migrate_template(
    template_id: uuid.UUID,
    doctor: Doctor = Depends(get_current_doctor),
    store: BaseRecordStore = Depends(get_record_store),
    session: AsyncSession = Depends(get_db),
) -> TemplateMigrationResponse:
    """Upgrade a V1 template to a builder template in place.

    Declared variables become form fields; prefill rules are inferred from
    their dotted paths. The V1 text body is discarded.
    """
    template = await load_template(store, doctor.id, template_id)
    content = load_template_content(template)

    result = convert_legacy_schema(content.model_dump(by_alias=True))
    template.content_json = _checked_schema(result.schema.elements)
    template.builder_version = 2

    saved = await _save(template, session, "Migrated")
    return TemplateMigrationResponse(
        template=saved,
        changes=result.changes,
        warnings=result.warnings,
    )


# =============================================================================
# Shared
# =============================================================================


@router.get("", response_model=TemplateListResponse)
async def list_templates(
    category: TemplateCategory | None = None,
    builder_version: int | None = None,
    include_inactive: bool = True,
    doctor: Doctor = Depends(get_current_doctor),
    session: AsyncSession = Depends(get_db),
) -> TemplateListResponse:
    """List the current doctor's templates, newest first."""
    try:
        query = select(Template).where(Template.doctor_id == doctor.id)
        if category is not None:
            query = query.where(Template.category == category.value)
        if builder_version is not None:
            query = query.where(Template.builder_version == builder_version)
        if not include_inactive:
            query = query.where(Template.is_active.is_(True))

        count_result = await session.execute(select(func.count()).select_from(query.subquery()))
        total = count_result.scalar_one()

        result = await session.execute(query.order_by(Template.created_at.desc()))

        return TemplateListResponse(
            templates=[TemplateResponse.model_validate(t) for t in result.scalars().all()],
            total=total,
        )

    except SQLAlchemyError as e:
        logger.error(f"Database error listing templates: {e}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to list templates",
        ) from e


@router.get("/{template_id}", response_model=TemplateResponse)
async def get_template(
    template_id: uuid.UUID,
    doctor: Doctor = Depends(get_current_doctor),
    store: BaseRecordStore = Depends(get_record_store),
) -> TemplateResponse:
    template = await load_template(store, doctor.id, template_id)
    return TemplateResponse.model_validate(template)


@router.patch("/{template_id}/active", response_model=TemplateResponse)
async def set_template_active(
    template_id: uuid.UUID,
    active_data: TemplateActiveUpdate,
    doctor: Doctor = Depends(get_current_doctor),
    store: BaseRecordStore = Depends(get_record_store),
    session: AsyncSession = Depends(get_db),
) -> TemplateResponse:
    """Activate or deactivate a template. Inactive templates cannot generate documents."""
    template = await load_template(store, doctor.id, template_id)
    template.is_active = active_data.is_active
    return await _save(template, session, "Activated" if active_data.is_active else "Deactivated")
