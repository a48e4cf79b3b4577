# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Capability entity: live access capability management."""

from .endpoint import CapabilityEndpoint

__all__ = ["CapabilityEndpoint"]
