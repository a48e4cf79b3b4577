# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Tests for CapabilityIssuer and CapabilityValidator.

Tests cover the capability lifecycle: issue-then-validate, uniqueness,
expiry through lazy eviction and through the sweep, unknown and forged
tokens, and file scoping.
"""

from __future__ import annotations

import jwt
import pytest

from wopi_viewer.capabilities import (
    CapabilityEntry,
    CapabilityIssuer,
    CapabilityStore,
    CapabilityValidator,
)
from wopi_viewer.errors import RejectReason, Unauthorized
from wopi_viewer.viewer_config import ANONYMOUS_SUBJECT


@pytest.fixture
def store(clock):
    return CapabilityStore(clock=clock)


@pytest.fixture
def issuer(store, secret):
    return CapabilityIssuer(store, secret, ttl=3600)


@pytest.fixture
def validator(store, secret):
    return CapabilityValidator(store, secret)


def _reason(validator: CapabilityValidator, token: str | None) -> RejectReason:
    with pytest.raises(Unauthorized) as exc_info:
        validator.validate(token)
    return exc_info.value.reason


class TestIssue:
    """Tests for capability issuance."""

    def test_issue_registers_entry(self, issuer, store, clock):
        """Issued capability is recorded with file, subject and expiry."""
        capability = issuer.issue("doc-a", "alice")

        entry = store.get(capability.token)
        assert entry is not None
        assert entry.file_id == "doc-a"
        assert entry.subject == "alice"
        assert entry.created_at == clock.now
        assert entry.expires_at == clock.now + 3600

    def test_issue_defaults_to_anonymous(self, issuer):
        """Subject defaults to the anonymous identity."""
        assert issuer.issue("doc-a").subject == ANONYMOUS_SUBJECT

    def test_embedded_claims(self, issuer, store, secret):
        """Token carries fid, sub, iat, exp and jti; exp matches the store."""
        capability = issuer.issue("doc-a", "alice")
        claims = jwt.decode(
            capability.token,
            secret,
            algorithms=["HS256"],
            options={"verify_exp": False, "verify_iat": False},
        )

        assert claims["fid"] == "doc-a"
        assert claims["sub"] == "alice"
        assert claims["jti"]
        assert claims["exp"] == store.get(capability.token).expires_at

    def test_issue_twice_produces_distinct_capabilities(self, issuer, validator, store):
        """Two issuances for the same file/subject never collide."""
        first = issuer.issue("doc-a", "alice")
        second = issuer.issue("doc-a", "alice")

        assert first.token != second.token
        assert len(store) == 2
        assert validator.validate(first.token).file_id == "doc-a"
        assert validator.validate(second.token).file_id == "doc-a"

    def test_issue_requires_file_id(self, issuer):
        """Empty file_id is rejected."""
        with pytest.raises(ValueError):
            issuer.issue("")

    def test_empty_secret_rejected(self, store):
        """An issuer cannot be built without a secret."""
        with pytest.raises(ValueError):
            CapabilityIssuer(store, "")


class TestValidate:
    """Tests for the validation gate."""

    def test_validate_after_issue(self, issuer, validator):
        """Validate right after Issue returns the same file and subject."""
        capability = issuer.issue("doc-a", "alice")

        grant = validator.validate(capability.token)

        assert grant.file_id == "doc-a"
        assert grant.subject == "alice"

    def test_validate_does_not_mutate(self, issuer, validator, store):
        """Successful validation leaves the store entry untouched."""
        capability = issuer.issue("doc-a")
        before = store.get(capability.token)

        validator.validate(capability.token)
        validator.validate(capability.token)

        assert store.get(capability.token) == before

    @pytest.mark.parametrize("token", [None, "", "not-a-jwt", "a.b.c"])
    def test_garbage_is_malformed(self, validator, token):
        """Missing or undecodable tokens are MALFORMED."""
        assert _reason(validator, token) is RejectReason.MALFORMED

    def test_wrong_signature_is_malformed(self, clock, store, validator):
        """A token signed with another secret is MALFORMED even if registered."""
        forged = jwt.encode(
            {"fid": "doc-a", "sub": "x", "iat": 1, "exp": int(clock.now) + 60, "jti": "n"},
            "another-secret-0123456789abcdef0123",
            algorithm="HS256",
        )
        store.put(forged, CapabilityEntry("doc-a", "x", clock.now, clock.now + 60))

        assert _reason(validator, forged) is RejectReason.MALFORMED

    def test_missing_claims_is_malformed(self, validator, secret):
        """A correctly signed token without the required claims is MALFORMED."""
        token = jwt.encode({"fid": "doc-a"}, secret, algorithm="HS256")

        assert _reason(validator, token) is RejectReason.MALFORMED

    def test_never_issued_is_unknown(self, clock, validator, secret):
        """A well-formed, correctly signed but never-issued token is UNKNOWN."""
        token = jwt.encode(
            {"fid": "doc-a", "sub": "x", "iat": int(clock.now),
             "exp": int(clock.now) + 3600, "jti": "nonce"},
            secret,
            algorithm="HS256",
        )

        assert _reason(validator, token) is RejectReason.UNKNOWN

    def test_revoked_is_unknown(self, issuer, validator, store):
        """Removal from the store revokes a capability with a valid signature."""
        capability = issuer.issue("doc-a")
        store.delete(capability.token)

        assert _reason(validator, capability.token) is RejectReason.UNKNOWN


class TestExpiry:
    """Tests for expiry via lazy eviction and sweep."""

    def test_lazy_eviction_on_read(self, issuer, validator, store, clock):
        """Reading after TTL, before any sweep, rejects EXPIRED and evicts."""
        capability = issuer.issue("doc-a")
        clock.advance(3601)

        assert _reason(validator, capability.token) is RejectReason.EXPIRED
        assert store.get(capability.token) is None
        assert _reason(validator, capability.token) is RejectReason.UNKNOWN

    def test_expiry_boundary(self, issuer, validator, clock):
        """Valid one second before TTL, rejected exactly at TTL."""
        capability = issuer.issue("doc-a")

        clock.advance(3599)
        assert validator.validate(capability.token).file_id == "doc-a"

        clock.advance(1)
        assert _reason(validator, capability.token) is RejectReason.EXPIRED

    def test_swept_is_unknown(self, issuer, validator, store, clock):
        """After a sweep past TTL, the capability is UNKNOWN."""
        capability = issuer.issue("doc-a")
        clock.advance(3600 + 300)

        assert store.sweep() == 1
        assert _reason(validator, capability.token) is RejectReason.UNKNOWN

    def test_no_renewal(self, issuer, validator, store, clock):
        """Validation never extends the recorded expiry."""
        capability = issuer.issue("doc-a")
        expires_at = store.get(capability.token).expires_at

        for _ in range(3):
            clock.advance(1000)
            validator.validate(capability.token)

        assert store.get(capability.token).expires_at == expires_at
        clock.advance(1000)
        assert _reason(validator, capability.token) is RejectReason.EXPIRED

    def test_embedded_expiry_enforced(self, validator, store, clock, secret):
        """A store entry outliving the signed exp claim is still refused."""
        token = jwt.encode(
            {"fid": "doc-a", "sub": "x", "iat": int(clock.now),
             "exp": int(clock.now) + 10, "jti": "nonce"},
            secret,
            algorithm="HS256",
        )
        store.put(token, CapabilityEntry("doc-a", "x", clock.now, clock.now + 3600))
        clock.advance(20)

        assert _reason(validator, token) is RejectReason.SIGNATURE_EXPIRED
        assert store.get(token) is None


class TestFileScope:
    """Tests for per-file scoping."""

    def test_validate_for_matching_file(self, issuer, validator):
        """validate_for() accepts the bound file."""
        capability = issuer.issue("doc-a")

        assert validator.validate_for(capability.token, "doc-a").file_id == "doc-a"

    def test_validate_for_other_file(self, issuer, validator):
        """A capability for A is refused on B, even if B has its own capability."""
        capability_a = issuer.issue("doc-a")
        issuer.issue("doc-b")

        with pytest.raises(Unauthorized) as exc_info:
            validator.validate_for(capability_a.token, "doc-b")

        assert exc_info.value.reason is RejectReason.FILE_MISMATCH
