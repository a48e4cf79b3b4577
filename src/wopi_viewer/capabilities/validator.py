# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Capability validation gate.

Every Metadata and Content call passes through CapabilityValidator before
the document store is touched. A capability is honoured only when all of
the following hold:

    1. The JWT signature verifies and all required claims are present.
    2. The token is registered in the CapabilityStore.
    3. The store's expires_at has not passed (otherwise the entry is evicted).
    4. The embedded exp claim has not passed (otherwise the entry is evicted).

Any failure raises Unauthorized carrying a RejectReason. Validation never
renews or extends an expiry: an expired capability requires a fresh Access.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

import jwt

from ..errors import RejectReason, Unauthorized
from .store import CapabilityStore, fingerprint

logger = logging.getLogger(__name__)

_REQUIRED_CLAIMS = ["fid", "sub", "iat", "exp", "jti"]


@dataclass(frozen=True)
class Grant:
    """Identity and file bound to a validated capability."""

    file_id: str
    subject: str


class CapabilityValidator:
    """Verifies capabilities presented on inbound protocol calls."""

    def __init__(
        self,
        store: CapabilityStore,
        secret: str,
        algorithm: str = "HS256",
    ):
        self.store = store
        self._secret = secret
        self.algorithm = algorithm

    def validate(self, token: str | None) -> Grant:
        """Validate a capability.

        Args:
            token: The access_token presented by the caller.

        Returns:
            Grant with the bound file_id and subject.

        Raises:
            Unauthorized: With reason MALFORMED, UNKNOWN, EXPIRED or
                SIGNATURE_EXPIRED.
        """
        if not token:
            raise Unauthorized(RejectReason.MALFORMED)

        # Expiry is compared against the store clock below, not wall time.
        try:
            claims = jwt.decode(
                token,
                self._secret,
                algorithms=[self.algorithm],
                options={
                    "verify_exp": False,
                    "verify_iat": False,
                    "require": _REQUIRED_CLAIMS,
                },
            )
        except jwt.InvalidTokenError as e:
            logger.debug(f"Capability decode failed: {e}")
            raise Unauthorized(RejectReason.MALFORMED) from e

        entry = self.store.get(token)
        if entry is None:
            raise Unauthorized(RejectReason.UNKNOWN)

        now = self.store.clock()
        if entry.is_expired(now):
            self.store.delete(token)
            raise Unauthorized(RejectReason.EXPIRED)

        if now >= claims["exp"]:
            self.store.delete(token)
            raise Unauthorized(RejectReason.SIGNATURE_EXPIRED)

        if claims["fid"] != entry.file_id:
            logger.warning(f"Capability {fingerprint(token)} claims disagree with store entry")
            raise Unauthorized(RejectReason.MALFORMED)

        return Grant(file_id=entry.file_id, subject=entry.subject)

    def validate_for(self, token: str | None, file_id: str) -> Grant:
        """Validate a capability and check it is scoped to file_id.

        Raises:
            Unauthorized: As validate(), or FILE_MISMATCH when the capability
                was issued for a different file.
        """
        grant = self.validate(token)
        if grant.file_id != file_id:
            raise Unauthorized(RejectReason.FILE_MISMATCH)
        return grant


__all__ = ["CapabilityValidator", "Grant"]
