# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Instance REST API endpoint for service-level operations.

Operations include:
    - health: Container orchestration health check (unauthenticated)
    - status: Authenticated service status
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import TYPE_CHECKING

from ...interface.endpoint_base import BaseEndpoint

if TYPE_CHECKING:
    from ...capabilities.store import CapabilityStore


class InstanceEndpoint(BaseEndpoint):
    """REST API endpoint for instance-level operations.

    Attributes:
        name: Endpoint name used in URL paths ("instance").
        store: CapabilityStore, for reporting live capability counts.
        proxy: Optional ViewerProxy instance for service state.
    """

    name = "instance"

    def __init__(self, store: CapabilityStore, proxy: object | None = None):
        super().__init__(store)
        self.proxy = proxy

    async def health(self) -> dict:
        """Health check for container orchestration.

        Lightweight liveness probe. Does not require authentication
        and does not touch the capability store.

        Returns:
            Dict with status "ok" and an ISO-8601 UTC timestamp.
        """
        return {"status": "ok", "timestamp": datetime.now(timezone.utc).isoformat()}

    async def status(self) -> dict:
        """Authenticated service status.

        Returns:
            Dict with ok=True, active flag, instance name and the number of
            registered capabilities.
        """
        active = True
        name = None
        if self.proxy is not None:
            active = getattr(self.proxy, "active", True)
            name = self.proxy.config.instance_name
        return {"ok": True, "active": active, "instance": name, "capabilities": len(self.store)}


__all__ = ["InstanceEndpoint"]
