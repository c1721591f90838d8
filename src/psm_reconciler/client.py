"""HTTP client for the policy manager REST API.

A thin wrapper over httpx.Client that attaches the session cookie. There
is no retry: a failed call surfaces immediately as TransportError.
"""
import json
import logging
from typing import Any, Optional

import httpx

from .errors import TransportError

logger = logging.getLogger(__name__)

SESSION_COOKIE = "sid"

# Keys whose values never reach the logs.
REDACTED_KEYS = {"pre-shared-key"}


def redact(document: Any) -> Any:
    """Copy of a JSON document with secret values masked."""
    if isinstance(document, dict):
        return {
            k: "***" if k in REDACTED_KEYS else redact(v)
            for k, v in document.items()
        }
    if isinstance(document, list):
        return [redact(v) for v in document]
    return document


class PSMClient:
    """Session-authenticated client.

    Usage:
        with PSMClient("https://psm.example.com", sid) as client:
            resp = client.request("GET", "/configs/security/v1/tenant/default/networksecuritypolicies/p1")
    """

    def __init__(
        self,
        server: str,
        sid: str,
        timeout: float = 30,
        verify_ssl: bool = True,
        tenant: str = "default",
        transport: Optional[httpx.BaseTransport] = None,
    ):
        """
        Initialize the client.

        Args:
            server: Base URL, e.g. https://psm.example.com
            sid: Session identifier from an external login flow
            timeout: Per-request timeout in seconds
            verify_ssl: Verify the server certificate
            tenant: Tenant for objects whose config names none
            transport: Optional httpx transport (tests use httpx.MockTransport)
        """
        self.server = server.rstrip("/")
        self.tenant = tenant
        self._http = httpx.Client(
            base_url=self.server,
            timeout=httpx.Timeout(timeout),
            verify=verify_ssl,
            transport=transport,
            cookies={SESSION_COOKIE: sid},
            headers={
                "Content-Type": "application/json",
                "Accept": "application/json",
            },
        )

    @classmethod
    def from_settings(cls, settings, transport: Optional[httpx.BaseTransport] = None) -> "PSMClient":
        """Build a client from ProviderSettings."""
        return cls(
            server=settings.server,
            sid=settings.get_sid(),
            timeout=settings.timeout,
            verify_ssl=settings.verify_ssl,
            tenant=settings.tenant,
            transport=transport,
        )

    def url(self, path: str) -> str:
        return f"{self.server}{path}"

    def request(
        self,
        method: str,
        path: str,
        json_body: Optional[dict[str, Any]] = None,
    ) -> httpx.Response:
        """
        Send one request with the session cookie attached.

        Args:
            method: HTTP method
            path: Path below the server URL
            json_body: Document to send as the request body

        Returns:
            The response, whatever its status code

        Raises:
            TransportError: If the request could not be completed
        """
        logger.debug(f"{method} {self.url(path)}")
        if json_body is not None:
            logger.debug(f"Request body: {json.dumps(redact(json_body))}")

        try:
            resp = self._http.request(
                method,
                path,
                json=json_body,
            )
        except httpx.TransportError as e:
            raise TransportError(f"{method} {self.url(path)} failed: {e}") from e

        logger.debug(f"{method} {self.url(path)} -> HTTP {resp.status_code}")
        return resp

    def close(self) -> None:
        self._http.close()

    def __enter__(self) -> "PSMClient":
        return self

    def __exit__(self, *exc) -> None:
        self.close()
