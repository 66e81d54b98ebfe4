"""
Error Taxonomy and Global Error Handling

This module defines the pipeline's exception hierarchy and the application-wide
exception handlers registered with FastAPI.

Taxonomy
--------
- ConfigError: missing or invalid configuration. Fatal, never retried.
- EmbeddingError: any failure producing an embedding.
    - EmbeddingConfigError: provider model/credentials missing (also a ConfigError).
    - ProviderFormatError: the provider answered with something that is not a vector.
    - ProviderHTTPError: the provider call failed at the HTTP/transport level.
        - ProviderTransientError: rate limited, 500/503 or timed out. Retried.
- VectorStoreError: a storage backend read/write failed or exceeded its deadline.
- TenantIsolationViolation: a record of another tenant was touched. Invariant
  failure, never a user error.

Handler Goals
-------------
- Never leak internal exception details to clients
- Always return deterministic, machine-readable error responses
- Log full stack traces internally for debugging
"""

from __future__ import annotations

import logging
from typing import Dict, Any, Optional

from fastapi import Request
from fastapi.responses import JSONResponse

logger = logging.getLogger("semsearch.errors")


# ---------------------------------------------------------------------
# Exception Hierarchy
# ---------------------------------------------------------------------

class SemsearchError(Exception):
    """Base class for all pipeline errors."""


class ConfigError(SemsearchError):
    """Raised when required configuration is missing or invalid."""


class EmbeddingError(SemsearchError):
    """Raised when embedding generation fails."""


class EmbeddingConfigError(EmbeddingError, ConfigError):
    """Raised when the embedding provider model or credentials are missing."""


class ProviderFormatError(EmbeddingError):
    """Raised when the provider response is not a usable numeric vector."""


class ProviderHTTPError(EmbeddingError):
    """Raised when the provider call fails at the HTTP or transport level."""

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class ProviderTransientError(ProviderHTTPError):
    """Raised for provider failures that are worth retrying."""


class VectorStoreError(SemsearchError):
    """Raised when a vector storage operation fails."""


class TenantIsolationViolation(RuntimeError):
    """Raised when an operation touches a record belonging to another tenant."""


# ---------------------------------------------------------------------
# Public Exception Handlers
# ---------------------------------------------------------------------

def _error_response(status_code: int, error: str, detail: str) -> JSONResponse:
    payload: Dict[str, Any] = {
        "error": error,
        "detail": detail,
    }
    return JSONResponse(status_code=status_code, content=payload)


async def config_error_handler(request: Request, exc: ConfigError) -> JSONResponse:
    """
    Report configuration problems as 503: the service cannot serve the
    request until an operator fixes its environment.
    """
    logger.error(
        "Configuration error during request %s %s: %s",
        request.method,
        request.url.path,
        exc,
    )
    return _error_response(503, "configuration_error", str(exc))


async def embedding_error_handler(request: Request, exc: EmbeddingError) -> JSONResponse:
    logger.error(
        "Embedding provider failure during request %s %s: %s",
        request.method,
        request.url.path,
        exc,
    )
    return _error_response(502, "embedding_provider_error", "Embedding provider failure")


async def invalid_tenant_handler(request: Request, exc: ValueError) -> JSONResponse:
    return _error_response(400, "invalid_tenant", str(exc))


async def unhandled_exception_handler(
    request: Request,
    exc: Exception,
) -> JSONResponse:
    """
    Catch-all handler for uncaught exceptions.

    This handler should be registered with FastAPI as the final safety net
    for any exception not otherwise handled by route-level or framework-level
    handlers.

    Parameters
    ----------
    request : Request
        The incoming HTTP request that triggered the exception.

    exc : Exception
        The uncaught exception instance.

    Returns
    -------
    JSONResponse
        A JSON 500 response with a minimal error payload.
    """

    # Log full traceback internally (never returned to client)
    logger.exception(
        "Unhandled exception during request: %s %s",
        request.method,
        request.url.path,
        exc_info=exc,
    )

    return _error_response(500, "internal_server_error", "Internal server error")
