"""
Embedding Client

This module implements the embedding client used by both the write path
(chunk and catalog ingestion) and the read path (query embedding). It calls a
Hugging Face style feature-extraction endpoint and is responsible for:

- Failing fast when the provider model or credentials are missing
- Retrying rate limiting and transient server errors with exponential backoff
- Strict response validation and normalization to a flat float vector

The client performs no caching and holds no connections between calls; one
instance is constructed at startup and injected into the stores.
"""

from __future__ import annotations

import asyncio
import logging
import math
from typing import Any, Awaitable, Callable, List, Optional
from urllib.parse import quote

import httpx

from ..config import Settings
from ..core.errors import (
    EmbeddingConfigError,
    ProviderFormatError,
    ProviderHTTPError,
    ProviderTransientError,
)
from ..core.retry import retry_async

logger = logging.getLogger("semsearch.embedder")

RETRYABLE_STATUS_CODES = frozenset({429, 500, 503})


def is_retryable(exc: BaseException) -> bool:
    return isinstance(exc, ProviderTransientError)


def normalize_embedding(data: Any) -> List[float]:
    """
    Normalize a provider response to a flat vector.

    Accepts a flat vector ``[v1..vD]`` or a singleton batch ``[[v1..vD]]``.

    Raises
    ------
    ProviderFormatError
        If the payload is not a non-empty array of finite numbers.
    """
    if not isinstance(data, list):
        raise ProviderFormatError(
            f"Invalid response format: expected array, got {type(data).__name__}"
        )

    if not data:
        raise ProviderFormatError("Empty embedding array received")

    if isinstance(data[0], list):
        data = data[0]
        if not data:
            raise ProviderFormatError("Empty embedding vector received")

    vector: List[float] = []
    for index, value in enumerate(data):
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise ProviderFormatError(
                f"Invalid embedding format: expected numeric value at index {index}"
            )
        if not math.isfinite(value):
            raise ProviderFormatError(f"Non-finite embedding value at index {index}")
        vector.append(float(value))

    return vector


class EmbeddingClient:
    """
    Asynchronous single-text embedding client with retry.
    """

    def __init__(
        self,
        model: Optional[str],
        credentials: Optional[str],
        base_url: str = "https://api-inference.huggingface.co/models",
        timeout: float = 30.0,
        max_retries: int = 3,
        initial_backoff: float = 1.0,
        expected_dimension: Optional[int] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        """
        Initialize an EmbeddingClient.

        Parameters
        ----------
        model : Optional[str]
            Provider model identifier. Missing values surface as
            EmbeddingConfigError on the first embed() call.

        credentials : Optional[str]
            Provider API token.

        base_url : str
            Base URL of the feature-extraction endpoint; the model id is
            appended as a URL-quoted path segment.

        timeout : float
            HTTP timeout applied to each attempt independently.

        max_retries : int
            Retries for rate limited / transient failures.

        initial_backoff : float
            First retry delay in seconds; doubled per retry.

        expected_dimension : Optional[int]
            If set, vectors of any other length are rejected.

        transport : Optional[httpx.AsyncBaseTransport]
            Custom transport, mainly for tests.

        sleep : Callable[[float], Awaitable[None]]
            Sleep used between retries, mainly for tests.
        """
        self.model = model
        self._credentials = credentials
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.max_retries = max_retries
        self.initial_backoff = initial_backoff
        self.expected_dimension = expected_dimension
        self._transport = transport
        self._sleep = sleep

    @classmethod
    def from_settings(cls, settings: Settings, **overrides: Any) -> "EmbeddingClient":
        credentials = settings.embedding_provider_credentials
        kwargs = dict(
            model=settings.embedding_model,
            credentials=credentials.get_secret_value() if credentials else None,
            base_url=settings.embedding_api_base_url,
            timeout=settings.embedding_timeout,
            max_retries=settings.embedding_max_retries,
            expected_dimension=settings.embedding_dimension,
        )
        kwargs.update(overrides)
        return cls(**kwargs)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def validate_configuration(self) -> None:
        """
        Raises
        ------
        EmbeddingConfigError
            If the model or credentials are not configured.
        """
        if not self._credentials:
            raise EmbeddingConfigError("EMBEDDING_PROVIDER_CREDENTIALS is not configured")
        if not self.model:
            raise EmbeddingConfigError("EMBEDDING_MODEL is not configured")

    async def embed(self, text: str) -> List[float]:
        """
        Generate the embedding vector for a single text.

        Returns
        -------
        List[float]
            The flat embedding vector.

        Raises
        ------
        EmbeddingConfigError
            Model or credentials missing (never retried).
        ProviderFormatError
            The provider answered with something that is not a vector.
        ProviderHTTPError
            The provider failed; transient failures are raised only after
            the retry budget is exhausted.
        """
        self.validate_configuration()

        data = await retry_async(
            lambda: self._request(text),
            is_retryable=is_retryable,
            max_retries=self.max_retries,
            initial_delay=self.initial_backoff,
            sleep=self._sleep,
            description="embedding request",
        )

        vector = normalize_embedding(data)

        if self.expected_dimension is not None and len(vector) != self.expected_dimension:
            raise ProviderFormatError(
                f"Embedding dimension {len(vector)} does not match expected {self.expected_dimension}"
            )

        return vector

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    @property
    def endpoint(self) -> str:
        return f"{self.base_url}/{quote(self.model or '', safe='')}"

    async def _request(self, text: str) -> Any:
        headers = {
            "Authorization": f"Bearer {self._credentials}",
            "Content-Type": "application/json",
        }

        async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
            try:
                response = await client.post(
                    self.endpoint,
                    json={"inputs": text},
                    headers=headers,
                )
                response.raise_for_status()
            except httpx.HTTPStatusError as exc:
                status = exc.response.status_code
                logger.error(
                    "Embedding request failed: status=%d, text length=%d",
                    status,
                    len(text),
                )
                error_cls = (
                    ProviderTransientError if status in RETRYABLE_STATUS_CODES else ProviderHTTPError
                )
                raise error_cls(
                    f"Embedding provider returned HTTP {status}", status_code=status
                ) from exc
            except httpx.TimeoutException as exc:
                logger.error("Embedding request timed out after %.1fs", self.timeout)
                raise ProviderTransientError("Embedding provider timed out") from exc
            except httpx.HTTPError as exc:
                logger.error(
                    "Embedding request failed (%s): %s",
                    type(exc).__name__,
                    str(exc),
                )
                raise ProviderHTTPError(
                    f"Embedding generation failed: {type(exc).__name__}"
                ) from exc

        try:
            return response.json()
        except ValueError as exc:
            raise ProviderFormatError("Embedding response is not valid JSON") from exc
