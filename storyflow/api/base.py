"""
Base Generation Service
=======================

Shared transport for the remote generation capabilities: client management,
headers, and failure classification.

A service performs exactly one HTTP round trip per call and never retries.
Failures are raised as one of:

- TransportError: connection problems and timeouts
- ServerRejectedError: non-2xx responses (the body's message is kept verbatim)
- MalformedResponseError: 2xx responses that are not JSON or miss required fields
"""

import asyncio
import logging
import os
from abc import ABC, abstractmethod
from typing import Optional, Dict, Any

import httpx

from ..core.exceptions import (
    TransportError,
    ServerRejectedError,
    MalformedResponseError,
)
from ..core.security import redact_api_key

logger = logging.getLogger(__name__)


DEFAULT_TIMEOUT = 120.0


class BaseGenerationService(ABC):
    """
    Abstract base class for one remote generation capability.

    Subclasses define the capability name and a typed coroutine that builds the
    request payload, calls :meth:`_post` and parses the response.
    """

    def __init__(
        self,
        endpoint: str,
        api_key: Optional[str] = None,
        timeout: float = DEFAULT_TIMEOUT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize the service.

        Args:
            endpoint: URL the capability is served at
            api_key: Optional bearer token (or read from environment)
            timeout: Request timeout in seconds
            transport: Custom httpx transport (used by tests and proxies)
        """
        self.endpoint = endpoint
        self.api_key = api_key or os.getenv(self.env_key_name)
        self.timeout = timeout
        self._transport = transport

        # HTTP client with lock so concurrent first calls share one client
        self._client: Optional[httpx.AsyncClient] = None
        self._client_lock = asyncio.Lock()

    @property
    @abstractmethod
    def capability_name(self) -> str:
        """Return the capability name."""
        pass

    @property
    def env_key_name(self) -> str:
        """Environment variable holding the service API key."""
        return "STORYFLOW_API_KEY"

    # -------------------------------------------------------------------------
    # Transport
    # -------------------------------------------------------------------------

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create the HTTP client."""
        async with self._client_lock:
            if self._client is None:
                self._client = httpx.AsyncClient(
                    timeout=httpx.Timeout(self.timeout),
                    headers=self._get_headers(),
                    transport=self._transport,
                )
            return self._client

    def _get_headers(self) -> Dict[str, str]:
        """Get default headers for requests."""
        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        return headers

    async def _post(self, payload: Dict[str, Any]) -> Any:
        """
        Issue a single POST request and return the decoded JSON body.

        Raises:
            TransportError: If the service could not be reached
            ServerRejectedError: If the service answered with a non-2xx status
            MalformedResponseError: If a 2xx body is not valid JSON
        """
        client = await self._get_client()
        logger.info(f"Calling {self.capability_name} at {self.endpoint}")

        try:
            response = await client.post(self.endpoint, json=payload)
        except httpx.TimeoutException as e:
            logger.error(f"{self.capability_name} timed out: {redact_api_key(str(e))}")
            raise TransportError(
                f"{self.capability_name} timed out",
                capability=self.capability_name,
                timeout_seconds=self.timeout,
            )
        except httpx.TransportError as e:
            logger.error(f"{self.capability_name} unreachable: {redact_api_key(str(e))}")
            raise TransportError(
                f"Could not reach {self.capability_name}: {redact_api_key(str(e))}",
                capability=self.capability_name,
            )

        if not response.is_success:
            message = self._extract_error(response)
            logger.error(f"{self.capability_name} rejected request ({response.status_code}): {message}")
            raise ServerRejectedError(
                message,
                capability=self.capability_name,
                status_code=response.status_code,
                response_body=response.text,
            )

        try:
            return response.json()
        except ValueError:
            raise MalformedResponseError(
                f"{self.capability_name} returned a body that is not JSON",
                capability=self.capability_name,
            )

    def _extract_error(self, response: httpx.Response) -> str:
        """Extract the error message from a rejected response."""
        try:
            data = response.json()
        except ValueError:
            data = None

        if isinstance(data, dict):
            message = self._message_from_body(data)
            if message:
                return message
        elif isinstance(data, str) and data.strip():
            return data.strip()

        text = response.text.strip()
        if text and data is None:
            return text[:500]
        return f"{self.capability_name} failed with status {response.status_code}"

    @staticmethod
    def _message_from_body(data: Dict[str, Any]) -> Optional[str]:
        """Pull a human-readable message out of an error body."""
        for key in ("error", "error_message", "message", "detail"):
            value = data.get(key)
            if isinstance(value, str) and value.strip():
                return value.strip()
            if isinstance(value, dict):
                nested = value.get("message")
                if isinstance(nested, str) and nested.strip():
                    return nested.strip()
        return None

    def _require(self, data: Dict[str, Any], key: str) -> Any:
        """Return a required response field or raise MalformedResponseError."""
        value = data.get(key) if isinstance(data, dict) else None
        if value in (None, ""):
            raise MalformedResponseError(
                f"{self.capability_name} response has no {key}",
                capability=self.capability_name,
                missing_field=key,
            )
        return value

    # -------------------------------------------------------------------------
    # Context Manager Protocol
    # -------------------------------------------------------------------------

    async def close(self) -> None:
        """Close the HTTP client."""
        async with self._client_lock:
            if self._client:
                await self._client.aclose()
                self._client = None

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()
