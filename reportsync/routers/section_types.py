"""Read-only access to the built-in section field schemas."""

from __future__ import annotations

from fastapi import APIRouter, HTTPException, status
from pydantic import BaseModel

from ..services.field_schema import (
    SectionSchema,
    get_all_field_paths,
    get_section_schema,
    registered_section_types,
)

router = APIRouter(prefix="/api", tags=["section-types"])


class SectionFieldsResponse(BaseModel):
    section_type: str
    title: str
    field_paths: list[str]


@router.get("/section-types", response_model=list[str])
def list_section_types() -> list[str]:
    return registered_section_types()


def _schema_or_404(section_type: str) -> SectionSchema:
    schema = get_section_schema(section_type)
    if schema is None:
        raise HTTPException(
            status.HTTP_404_NOT_FOUND,
            detail=f"Unknown section type: {section_type}",
        )
    return schema


@router.get("/section-types/{section_type}", response_model=SectionSchema)
def read_section_schema(section_type: str) -> SectionSchema:
    """Return the full field tree for ``section_type``."""

    return _schema_or_404(section_type)


@router.get("/section-types/{section_type}/fields", response_model=SectionFieldsResponse)
def read_section_fields(section_type: str) -> SectionFieldsResponse:
    """Return every leaf path an update may target for ``section_type``."""

    schema = _schema_or_404(section_type)
    return SectionFieldsResponse(
        section_type=section_type,
        title=schema.title,
        field_paths=get_all_field_paths(schema),
    )


__all__ = ["router"]
