# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""HTTP client for the viewer host API.

This module provides ViewerClient for programmatic access to the host:
the presentation layer uses access() to obtain a document URL, operators
use the capabilities sub-API.

Features:
    - Async API over httpx
    - Persistent connection registration for REPL use
    - Typed dataclasses for Access and Capability responses
    - X-API-Token authentication for management routes

Example:
    Async usage::

        client = ViewerClient("http://localhost:8080", token="secret")
        grant = await client.access()
        frame_src = grant.document_url
        live = await client.capabilities.list()

    Registered connection::

        register_connection("prod", "https://viewer.example.com", token="...")
        client = connect("prod")  # Uses registered URL/token
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any
from urllib.parse import quote

import httpx

# Connection registry for REPL convenience
_connections: dict[str, dict[str, Any]] = {}


def register_connection(name: str, url: str, token: str | None = None) -> None:
    """Register a named connection for easy reuse.

    Args:
        name: Connection name for later reference.
        url: Viewer host base URL.
        token: Optional management API token.
    """
    _connections[name] = {"url": url, "token": token}


def connect(url_or_name: str, token: str | None = None) -> ViewerClient:
    """Create a ViewerClient, optionally using a registered connection.

    Args:
        url_or_name: Either a URL or a registered connection name.
        token: API token (ignored if using registered connection).
    """
    if url_or_name in _connections:
        conn = _connections[url_or_name]
        return ViewerClient(conn["url"], token=conn["token"])
    return ViewerClient(url_or_name, token=token)


def _file_path(file_id: str) -> str:
    return f"/wopi/files/{quote(file_id, safe='')}"


class ViewerClientError(Exception):
    """Error response from the viewer host."""

    def __init__(self, status_code: int, error: str, message: str | None = None):
        super().__init__(f"{status_code}: {error}" + (f" ({message})" if message else ""))
        self.status_code = status_code
        self.error = error
        self.message = message


@dataclass
class AccessGrant:
    """Access endpoint response."""

    file_id: str
    access_token: str
    document_url: str
    access_token_ttl: int | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> AccessGrant:
        """Create AccessGrant from API response dict."""
        return cls(
            file_id=data["fileId"],
            access_token=data["accessToken"],
            document_url=data["documentUrl"],
            access_token_ttl=data.get("accessTokenTtl"),
        )


@dataclass
class CapabilityInfo:
    """Live capability as listed by the management API."""

    fingerprint: str
    file_id: str
    subject: str
    created_at: float
    expires_at: float

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> CapabilityInfo:
        return cls(
            fingerprint=data["fingerprint"],
            file_id=data["file_id"],
            subject=data["subject"],
            created_at=data["created_at"],
            expires_at=data["expires_at"],
        )


class CapabilitiesAPI:
    """Capabilities endpoint API wrapper."""

    def __init__(self, client: ViewerClient):
        self._client = client

    async def list(self, file_id: str | None = None) -> list[CapabilityInfo]:
        """List active capabilities."""
        params = {"file_id": file_id} if file_id else None
        data = await self._client._get("/capabilities/list", params=params)
        return [CapabilityInfo.from_dict(c) for c in data]

    async def revoke(self, fingerprint: str) -> bool:
        """Revoke a capability by fingerprint."""
        result = await self._client._post("/capabilities/revoke", {"fingerprint": fingerprint})
        return bool(result.get("ok", False))

    async def cleanup(self, dry_run: bool = False) -> dict[str, Any]:
        """Remove expired capabilities."""
        return await self._client._post("/capabilities/cleanup", {"dry_run": dry_run})


class ViewerClient:
    """HTTP client for the viewer host API.

    Attributes:
        capabilities: CapabilitiesAPI for capability management

    Example:
        >>> client = ViewerClient("http://localhost:8080", token="secret")
        >>> grant = await client.access()
        >>> info = await client.check_file_info(grant.file_id, grant.access_token)
    """

    def __init__(
        self,
        base_url: str,
        token: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """Initialize client.

        Args:
            base_url: Viewer host base URL.
            token: Optional management API token.
            transport: Optional httpx transport (tests, custom networking).
        """
        self.base_url = base_url.rstrip("/")
        self.token = token
        self._transport = transport

        # Sub-APIs
        self.capabilities = CapabilitiesAPI(self)

    def _headers(self) -> dict[str, str]:
        """Build request headers with optional auth token."""
        headers: dict[str, str] = {}
        if self.token:
            headers["X-API-Token"] = self.token
        return headers

    def _http(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(base_url=self.base_url, transport=self._transport)

    @staticmethod
    def _raise_for_status(resp: httpx.Response) -> None:
        if resp.is_success:
            return
        try:
            body = resp.json()
        except ValueError:
            body = {}
        error = body.get("error") or body.get("detail") or resp.reason_phrase
        raise ViewerClientError(resp.status_code, str(error), body.get("message"))

    async def _get(self, path: str, params: dict[str, Any] | None = None) -> Any:
        """Perform GET request."""
        async with self._http() as http:
            resp = await http.get(path, params=params, headers=self._headers())
            self._raise_for_status(resp)
            return resp.json()

    async def _post(self, path: str, payload: dict[str, Any]) -> Any:
        """Perform POST request."""
        async with self._http() as http:
            resp = await http.post(path, json=payload, headers=self._headers())
            self._raise_for_status(resp)
            return resp.json()

    async def access(self, file_id: str | None = None) -> AccessGrant:
        """Request a capability and the provider URL for a document.

        Raises:
            ViewerClientError: 404 if the document is missing or empty.
        """
        params = {"file_id": file_id} if file_id else None
        data = await self._get("/wopi/api/document/access", params=params)
        return AccessGrant.from_dict(data)

    async def check_file_info(self, file_id: str, access_token: str) -> dict[str, Any]:
        """Call CheckFileInfo as a WOPI client would."""
        return await self._get(_file_path(file_id), params={"access_token": access_token})

    async def get_file(self, file_id: str, access_token: str) -> bytes:
        """Call GetFile as a WOPI client would."""
        async with self._http() as http:
            resp = await http.get(
                f"{_file_path(file_id)}/contents", params={"access_token": access_token}
            )
            self._raise_for_status(resp)
            return resp.content

    async def status(self) -> dict[str, Any]:
        """Get service status (management token required when configured)."""
        return await self._get("/instance/status")

    async def health(self) -> dict[str, Any]:
        """Health check (unauthenticated)."""
        async with self._http() as http:
            resp = await http.get("/health")
            self._raise_for_status(resp)
            return resp.json()


__all__ = [
    "AccessGrant",
    "CapabilitiesAPI",
    "CapabilityInfo",
    "ViewerClient",
    "ViewerClientError",
    "connect",
    "register_connection",
]
