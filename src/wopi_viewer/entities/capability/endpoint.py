# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Capability management REST API endpoint.

Operators can inspect and revoke live capabilities. Raw tokens are never
returned: capabilities are identified by their fingerprint.

Example:
    Routes auto-generated::

        GET  /capabilities/list[?file_id=sample-document]
        POST /capabilities/revoke   {"fingerprint": "..."}
        POST /capabilities/cleanup  {"dry_run": true}
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from ...capabilities.store import fingerprint
from ...interface.endpoint_base import POST, BaseEndpoint

if TYPE_CHECKING:
    from ...capabilities.store import CapabilityStore

logger = logging.getLogger(__name__)


class CapabilityEndpoint(BaseEndpoint):
    """REST API endpoint for capability management.

    Attributes:
        name: Endpoint name used in URL paths ("capabilities").
        store: CapabilityStore holding live capabilities.
    """

    name = "capabilities"

    def __init__(self, store: CapabilityStore):
        super().__init__(store)

    async def list(self, file_id: str | None = None) -> list[dict[str, Any]]:
        """List active (non-expired) capabilities.

        Args:
            file_id: Optional filter by bound file.

        Returns:
            List of dicts with fingerprint, file_id, subject, created_at,
            expires_at. Ordered by creation time, newest first.
        """
        now = self.store.clock()
        result = [
            {"fingerprint": fingerprint(token), **entry.to_dict()}
            for token, entry in self.store.items()
            if not entry.is_expired(now) and (file_id is None or entry.file_id == file_id)
        ]
        result.sort(key=lambda c: c["created_at"], reverse=True)
        return result

    @POST
    async def revoke(self, fingerprint: str) -> dict[str, Any]:
        """Revoke a capability before it expires.

        Args:
            fingerprint: Fingerprint as returned by list.

        Returns:
            Dict with ok=True if a capability was removed.
        """
        removed = self.store.delete_fingerprint(fingerprint)
        if removed:
            logger.info(f"Revoked capability {fingerprint}")
        return {"ok": removed, "fingerprint": fingerprint}

    @POST
    async def cleanup(self, dry_run: bool = False) -> dict[str, Any]:
        """Remove expired capabilities now, without waiting for the sweeper.

        Args:
            dry_run: If True, only count without deleting.

        Returns:
            Dict with 'deleted' count (and 'would_delete' in dry-run mode).
        """
        if dry_run:
            return {"deleted": 0, "would_delete": self.store.count_expired()}
        return {"deleted": self.store.sweep()}


__all__ = ["CapabilityEndpoint"]
