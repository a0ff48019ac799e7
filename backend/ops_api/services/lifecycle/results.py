"""
Value types reported by the lifecycle engine.

Validation failures never raise: they are collected into these objects and
returned so callers can explain a refusal in full.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, computed_field

from ops_shared.config.settings import settings


class ErrorItem(BaseModel):
    """
    One error or warning.

    code is drawn from ErrorCodes; any extra keyword becomes kind-specific
    metadata (entity_kind, entity_id, counts, offending ids...).
    """

    model_config = ConfigDict(extra="allow")

    code: str
    message: str
    field: str | None = None

    @property
    def metadata(self) -> dict[str, Any]:
        return dict(self.model_extra or {})


class ValidationResult(BaseModel):
    """Outcome of validate_deletion / validate_restoration."""

    errors: list[ErrorItem] = Field(default_factory=list)
    warnings: list[ErrorItem] = Field(default_factory=list)

    @computed_field
    @property
    def valid(self) -> bool:
        return not self.errors

    def error_codes(self) -> list[str]:
        return [item.code for item in self.errors]

    def warning_codes(self) -> list[str]:
        return [item.code for item in self.warnings]


class CascadeOptions(BaseModel):
    """Caller flags for one cascade call."""

    skip_validation: bool = False
    # Delete only: proceed past hard errors (they are still reported)
    force: bool = False
    depth: int = Field(default=0, ge=0)
    max_depth: int = Field(default_factory=lambda: settings.cascade_max_depth, ge=1)


class CascadeResult(BaseModel):
    """Aggregated outcome of cascade_delete / cascade_restore."""

    success: bool = False
    affected_count: int = 0
    warnings: list[ErrorItem] = Field(default_factory=list)
    errors: list[ErrorItem] = Field(default_factory=list)

    def error_codes(self) -> list[str]:
        return [item.code for item in self.errors]

    def warning_codes(self) -> list[str]:
        return [item.code for item in self.warnings]
