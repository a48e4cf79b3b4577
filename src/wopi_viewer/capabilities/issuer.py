# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Capability minting.

A capability is a JWT signed with the host secret and carrying:
    fid: bound file id
    sub: subject (anonymous unless the upstream boundary supplied one)
    iat: issue time
    jti: random nonce, so repeated issuances never collide
    exp: embedded expiry

The same clock reading feeds both the embedded exp claim and the store's
expires_at, and both hold the same whole-second value.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass

import jwt

from ..viewer_config import ANONYMOUS_SUBJECT
from .store import CapabilityEntry, CapabilityStore, fingerprint

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Capability:
    """A freshly issued capability."""

    token: str
    file_id: str
    subject: str
    issued_at: float
    expires_at: float

    @property
    def fingerprint(self) -> str:
        return fingerprint(self.token)


class CapabilityIssuer:
    """Mints signed capabilities and registers them in the store."""

    def __init__(
        self,
        store: CapabilityStore,
        secret: str,
        ttl: int = 3600,
        algorithm: str = "HS256",
    ):
        """Initialize issuer.

        Args:
            store: Registry receiving each new capability.
            secret: HMAC signing secret.
            ttl: Capability lifetime in seconds.
            algorithm: JWT algorithm.
        """
        if not secret:
            raise ValueError("Capability signing secret must not be empty")
        self.store = store
        self._secret = secret
        self.ttl = ttl
        self.algorithm = algorithm

    def issue(self, file_id: str, subject: str | None = None) -> Capability:
        """Mint a capability for one file.

        Args:
            file_id: File the capability grants access to.
            subject: Identity to bind. Defaults to the anonymous subject.

        Returns:
            The new Capability. Its token is already registered in the store.
        """
        if not file_id:
            raise ValueError("file_id is required")
        subject = subject or ANONYMOUS_SUBJECT

        issued_at = self.store.clock()
        exp = int(issued_at) + self.ttl
        expires_at = float(exp)
        payload = {
            "fid": file_id,
            "sub": subject,
            "iat": int(issued_at),
            "exp": exp,
            "jti": uuid.uuid4().hex,
        }
        token = jwt.encode(payload, self._secret, algorithm=self.algorithm)

        self.store.put(
            token,
            CapabilityEntry(
                file_id=file_id,
                subject=subject,
                created_at=issued_at,
                expires_at=expires_at,
            ),
        )
        capability = Capability(token, file_id, subject, issued_at, expires_at)
        logger.info(
            f"Issued capability {capability.fingerprint} for file_id={file_id} "
            f"subject={subject} ttl={self.ttl}s"
        )
        return capability


__all__ = ["Capability", "CapabilityIssuer"]
