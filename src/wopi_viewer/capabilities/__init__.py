# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Capability lifecycle: store, issuer, validator, sweeper.

Usage:
    store = CapabilityStore()
    issuer = CapabilityIssuer(store, secret="s3cret", ttl=3600)
    validator = CapabilityValidator(store, secret="s3cret")

    capability = issuer.issue("sample-document")
    grant = validator.validate_for(capability.token, "sample-document")
"""

from .issuer import Capability, CapabilityIssuer
from .store import CapabilityEntry, CapabilityStore, fingerprint
from .sweeper import CapabilitySweeper
from .validator import CapabilityValidator, Grant

__all__ = [
    "Capability",
    "CapabilityEntry",
    "CapabilityIssuer",
    "CapabilityStore",
    "CapabilitySweeper",
    "CapabilityValidator",
    "Grant",
    "fingerprint",
]
