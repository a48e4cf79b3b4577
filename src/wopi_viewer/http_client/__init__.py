# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""HTTP client for the viewer host API."""

from .client import (
    AccessGrant,
    CapabilitiesAPI,
    CapabilityInfo,
    ViewerClient,
    ViewerClientError,
    connect,
    register_connection,
)

__all__ = [
    "AccessGrant",
    "CapabilitiesAPI",
    "CapabilityInfo",
    "ViewerClient",
    "ViewerClientError",
    "connect",
    "register_connection",
]
