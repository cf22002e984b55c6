"""HTTP transport to the remote crowny execution service."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Protocol

import httpx

from crowny.config import DEFAULT_BASE_URL, DEFAULT_TIMEOUT
from crowny.header import (
    PROTOCOL_VERSION,
    TRIT_HEADER_FIELD,
    VERSION_HEADER_FIELD,
    ProtocolHeader,
)

logger = logging.getLogger(__name__)

RUN_ENDPOINT = "/run"
PING_ENDPOINT = "/"


class TransportError(Exception):
    """Raised when a call to the remote service cannot produce a usable body."""

    pass


@dataclass
class TransportResponse:
    """Decoded response from the remote service."""

    body: dict[str, Any]
    header: ProtocolHeader | None = None


class Transport(Protocol):
    """Collaborator that carries one task to the remote service."""

    def send(self, body: dict[str, Any], header: ProtocolHeader) -> TransportResponse:
        ...

    def ping(self) -> Any:
        ...


class HttpTransport:
    """JSON-over-HTTP transport built on httpx.

    Every failure (connection, timeout, error status, undecodable body) is
    raised as TransportError.
    """

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = DEFAULT_TIMEOUT,
        transport: httpx.BaseTransport | None = None,
    ):
        """Initialize the transport.

        Args:
            base_url: Root URL of the remote service
            timeout: Per-request timeout in seconds
            transport: Optional httpx transport (e.g. httpx.MockTransport)
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._transport = transport

    def _client(self) -> httpx.Client:
        return httpx.Client(
            base_url=self.base_url,
            timeout=self.timeout,
            transport=self._transport,
        )

    def send(self, body: dict[str, Any], header: ProtocolHeader) -> TransportResponse:
        """POST a task body and decode the JSON reply.

        Args:
            body: Task request body
            header: Protocol header sent with the request

        Returns:
            TransportResponse with the decoded body and any response header
        """
        headers = {
            "Content-Type": "application/json",
            TRIT_HEADER_FIELD: header.serialize(),
            VERSION_HEADER_FIELD: PROTOCOL_VERSION,
        }

        try:
            with self._client() as client:
                response = client.post(RUN_ENDPOINT, json=body, headers=headers)
                response.raise_for_status()

        except httpx.ConnectError as e:
            logger.error(f"Failed to connect to {self.base_url}: {e}")
            raise TransportError(f"Connection to {self.base_url} failed: {e}") from e

        except httpx.TimeoutException as e:
            logger.warning(f"Request to {self.base_url} timed out after {self.timeout}s")
            raise TransportError(f"Request timed out after {self.timeout}s") from e

        except httpx.HTTPStatusError as e:
            logger.error(f"Service HTTP error: {e}")
            raise TransportError(f"Service returned error: {e.response.status_code}") from e

        except httpx.HTTPError as e:
            logger.error(f"Transport error: {e}")
            raise TransportError(f"Transport error: {e}") from e

        return TransportResponse(
            body=_decode_body(response),
            header=_response_header(response),
        )

    def ping(self) -> Any:
        """GET the service root and return its decoded reply."""
        try:
            with self._client() as client:
                response = client.get(PING_ENDPOINT)
                response.raise_for_status()
        except httpx.HTTPError as e:
            raise TransportError(f"Service unreachable: {e}") from e

        try:
            return response.json()
        except ValueError:
            return response.text


def _decode_body(response: httpx.Response) -> dict[str, Any]:
    """Decode a JSON object body, rejecting anything else."""
    try:
        data = response.json()
    except ValueError as e:
        raise TransportError(f"Response is not valid JSON: {e}") from e

    if not isinstance(data, dict):
        raise TransportError(f"Response body is not a JSON object: {type(data).__name__}")
    return data


def _response_header(response: httpx.Response) -> ProtocolHeader | None:
    value = response.headers.get(TRIT_HEADER_FIELD)
    if not value:
        return None
    return ProtocolHeader.parse(value.strip())
