"""
schemas/common.py

Schemas shared across routers (pydantic v2):
  1) error body: ErrorDetail, ErrorResponse
  2) paging: Pagination, MetaInfo, make_meta()
"""

from __future__ import annotations

from datetime import datetime, timezone
from math import ceil
from typing import Optional

from pydantic import BaseModel, Field, ConfigDict

from config.settings import settings


# =========================================================
# 1) Error body
# =========================================================

class ErrorDetail(BaseModel):
    code: str = Field(..., description="machine-readable code (e.g. GRADE_PUBLISHED, ATTENDANCE_LOCKED)")
    message: str = Field(..., description="human-readable message")


class ErrorResponse(BaseModel):
    """Body returned by every handler in middlewares/error_handler.py."""
    success: bool = False
    error: ErrorDetail
    generated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    model_config = ConfigDict(extra="ignore")


# =========================================================
# 2) Paging
# =========================================================

class Pagination(BaseModel):
    """
    Paging query parameters for list endpoints.
    - page starts at 1
    - size is capped by settings.PAGE_SIZE_MAX
    """
    page: int = Field(1, ge=1, description="current page (1-based)")
    size: int = Field(settings.PAGE_SIZE_DEFAULT, ge=1, le=settings.PAGE_SIZE_MAX, description="items per page")

    model_config = ConfigDict(extra="ignore")

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.size


class MetaInfo(BaseModel):
    total: int = Field(..., ge=0)
    page: int = Field(..., ge=1)
    size: int = Field(..., ge=1)
    pages: int = Field(..., ge=1)


def make_meta(total: int, page: int, size: int) -> MetaInfo:
    """
    Build paging meta.
    - pages is at least 1 even when total is 0
    """
    pages = max(1, ceil(total / max(1, size)))
    return MetaInfo(total=total, page=page, size=size, pages=pages)
