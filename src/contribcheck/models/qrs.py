# Copyright (c) Syntropy Systems
"""Pydantic models for Qlik Sense Repository Service responses."""

from __future__ import annotations

from pydantic import Field

from .base import ContribBaseModel


class AboutResponse(ContribBaseModel):
    """Response from ``GET /qrs/about``."""

    build_version: str = Field(alias="buildVersion")
    build_date: str | None = Field(default=None, alias="buildDate")
    database_provider: str | None = Field(default=None, alias="databaseProvider")
    node_type: int | None = Field(default=None, alias="nodeType")


class ErrorResponse(ContribBaseModel):
    """Error body some repository endpoints return."""

    message: str = Field(alias="Message")
