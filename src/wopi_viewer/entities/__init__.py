# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Viewer host entity modules.

This package contains the management entities of the viewer host:
    - capability: Live access capabilities (list, revoke, cleanup)
    - instance: Service health and status
"""

from .capability import CapabilityEndpoint
from .instance import InstanceEndpoint

__all__ = ["CapabilityEndpoint", "InstanceEndpoint"]
