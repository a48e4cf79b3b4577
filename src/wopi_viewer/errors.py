# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Exception taxonomy for the viewer host.

Components:
    RejectReason: Why a capability was refused (logged, never returned).
    ViewerError: Base class for all host errors.
    DocumentNotFound: Document missing or empty (HTTP 404).
    Unauthorized: Capability refused for any reason (HTTP 401).
    InternalFailure: Unexpected store or I/O fault (HTTP 500).

Note:
    Every capability rejection surfaces as the same Unauthorized response.
    The reason is kept on the exception for logging only, so a remote caller
    cannot tell a forged token from an expired or mismatched one.
"""

from __future__ import annotations

from enum import Enum


class RejectReason(str, Enum):
    """Reason a capability was rejected by the validator."""

    MALFORMED = "malformed"
    SIGNATURE_EXPIRED = "signature_expired"
    UNKNOWN = "unknown"
    EXPIRED = "expired"
    FILE_MISMATCH = "file_mismatch"


class ViewerError(Exception):
    """Base class for viewer host errors."""

    status_code: int = 500
    public_message: str = "Internal server error"


class DocumentNotFound(ViewerError):
    """The requested document does not exist or has no content."""

    status_code = 404
    public_message = "Document not found or empty"

    def __init__(self, file_id: str):
        super().__init__(f"Document '{file_id}' not found or empty")
        self.file_id = file_id


class Unauthorized(ViewerError):
    """A capability was presented but could not be honoured."""

    status_code = 401
    public_message = "Invalid or expired access token"

    def __init__(self, reason: RejectReason):
        super().__init__(f"Capability rejected: {reason.value}")
        self.reason = reason


class InternalFailure(ViewerError):
    """Unexpected failure while serving a request."""

    status_code = 500
    public_message = "Internal server error"


__all__ = [
    "DocumentNotFound",
    "InternalFailure",
    "RejectReason",
    "Unauthorized",
    "ViewerError",
]
