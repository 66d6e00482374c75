# Copyright (c) Syntropy Systems
"""Shared Pydantic model helpers for contribcheck."""

from __future__ import annotations

from typing import ClassVar

from pydantic import BaseModel, ConfigDict


class ContribBaseModel(BaseModel):
    """Base model for repository payloads."""

    model_config: ClassVar[ConfigDict] = ConfigDict(
        extra="ignore",
        populate_by_name=True,
    )


class FrozenModel(BaseModel):
    """Immutable base model for measurements and derived metrics."""

    model_config: ClassVar[ConfigDict] = ConfigDict(
        extra="forbid",
        frozen=True,
    )
