"""
Multi-Tenant Support

This module provides tenant identification and isolation checks for serving
many websites from a single deployment.

Architecture
------------
- Each website is identified by a unique `tenant_id` (e.g., "shop-alpha")
- Every stored vector record carries its tenant_id
- Every read and write is scoped by tenant_id
- Records of another tenant surfacing in a scoped operation are an invariant
  failure (TenantIsolationViolation), not a user error

Validation
----------
- Only alphanumeric characters, hyphens, and underscores allowed
- Maximum 64 characters
"""

from __future__ import annotations

import re

from pydantic import BaseModel, Field, field_validator

from .core.errors import TenantIsolationViolation


# ---------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------

TENANT_ID_PATTERN = re.compile(r"^[a-zA-Z0-9_-]{1,64}$")


# ---------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------

class InvalidTenantError(ValueError):
    """Raised when a tenant_id is missing or malformed."""


# ---------------------------------------------------------------------
# Tenant Context Model
# ---------------------------------------------------------------------

def validate_tenant_id(value: str) -> str:
    """
    Validate and normalize a tenant identifier.

    Raises
    ------
    InvalidTenantError
        If the identifier is empty or contains disallowed characters.
    """
    if not value or not isinstance(value, str):
        raise InvalidTenantError("tenant_id is required")

    value = value.strip()

    if not TENANT_ID_PATTERN.match(value):
        raise InvalidTenantError(
            f"Invalid tenant_id '{value}': must be 1-64 alphanumeric chars, hyphens, or underscores"
        )

    return value


class TenantContext(BaseModel):
    """
    Represents an isolated website tenant.
    """

    tenant_id: str = Field(
        ...,
        min_length=1,
        max_length=64,
        description="Unique identifier for the tenant website.",
    )

    @field_validator("tenant_id", mode="before")
    @classmethod
    def _validate_tenant_id(cls, v: str) -> str:
        return validate_tenant_id(v)


# ---------------------------------------------------------------------
# Isolation Checks
# ---------------------------------------------------------------------

def ensure_same_tenant(expected: str, actual: str, what: str) -> None:
    """
    Assert that a record touched on behalf of `expected` belongs to it.

    Raises
    ------
    TenantIsolationViolation
        If the record belongs to a different tenant.
    """
    if expected != actual:
        raise TenantIsolationViolation(
            f"{what} belongs to tenant '{actual}', not '{expected}'"
        )
