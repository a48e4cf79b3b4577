# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Tests for CapabilityStore.

Tests cover put/get/delete semantics, idempotent deletion, sweeping and
fingerprint-based removal.
"""

from __future__ import annotations

import threading

from wopi_viewer.capabilities.store import CapabilityEntry, CapabilityStore, fingerprint


def _entry(created: float = 1000.0, ttl: float = 60.0, file_id: str = "doc") -> CapabilityEntry:
    return CapabilityEntry(
        file_id=file_id, subject="anonymous", created_at=created, expires_at=created + ttl
    )


class TestStoreBasics:
    """Tests for put/get/delete."""

    def test_put_and_get(self):
        """Stored entries are returned by exact key."""
        store = CapabilityStore()
        entry = _entry()
        store.put("tok-1", entry)

        assert store.get("tok-1") == entry
        assert "tok-1" in store
        assert len(store) == 1

    def test_get_missing_returns_none(self):
        """Unknown keys return None."""
        assert CapabilityStore().get("missing") is None

    def test_delete_returns_true_once(self):
        """Deleting twice is a no-op, never an error."""
        store = CapabilityStore()
        store.put("tok-1", _entry())

        assert store.delete("tok-1") is True
        assert store.delete("tok-1") is False
        assert store.get("tok-1") is None

    def test_entries_are_not_coalesced(self):
        """Same file/subject under different keys are separate entries."""
        store = CapabilityStore()
        store.put("tok-1", _entry())
        store.put("tok-2", _entry())

        assert len(store) == 2

    def test_clear(self):
        """clear() removes everything."""
        store = CapabilityStore()
        store.put("tok-1", _entry())
        store.clear()

        assert len(store) == 0


class TestStoreSweep:
    """Tests for TTL sweeping."""

    def test_sweep_removes_only_expired(self):
        """sweep() removes entries whose expires_at has passed."""
        store = CapabilityStore()
        store.put("old", _entry(created=0.0, ttl=10.0))
        store.put("new", _entry(created=0.0, ttl=100.0))

        removed = store.sweep(now=50.0)

        assert removed == 1
        assert store.get("old") is None
        assert store.get("new") is not None

    def test_sweep_uses_store_clock(self):
        """Without an explicit time, sweep() reads the store clock."""
        now = [0.0]
        store = CapabilityStore(clock=lambda: now[0])
        store.put("tok", _entry(created=0.0, ttl=10.0))

        assert store.sweep() == 0
        now[0] = 10.0
        assert store.sweep() == 1

    def test_count_expired(self):
        """count_expired() does not delete."""
        store = CapabilityStore()
        store.put("old", _entry(created=0.0, ttl=10.0))

        assert store.count_expired(now=20.0) == 1
        assert len(store) == 1

    def test_sweep_after_delete_is_safe(self):
        """Lazy deletion followed by a sweep does not fail."""
        store = CapabilityStore()
        store.put("tok", _entry(created=0.0, ttl=10.0))
        store.delete("tok")

        assert store.sweep(now=100.0) == 0


class TestStoreFingerprint:
    """Tests for fingerprint-based revocation."""

    def test_fingerprint_is_stable_and_short(self):
        """Fingerprint is deterministic and does not contain the token."""
        fp = fingerprint("secret-token")

        assert fp == fingerprint("secret-token")
        assert len(fp) == 16
        assert "secret" not in fp

    def test_delete_fingerprint(self):
        """delete_fingerprint() removes the matching token only."""
        store = CapabilityStore()
        store.put("tok-1", _entry())
        store.put("tok-2", _entry())

        assert store.delete_fingerprint(fingerprint("tok-1")) is True
        assert store.get("tok-1") is None
        assert store.get("tok-2") is not None
        assert store.delete_fingerprint(fingerprint("tok-1")) is False


class TestStoreConcurrency:
    """Concurrent writers, readers and sweeps."""

    def test_concurrent_put_delete_sweep(self):
        """Parallel operations leave the store consistent."""
        store = CapabilityStore()
        errors: list[BaseException] = []

        def writer(prefix: str) -> None:
            try:
                for i in range(200):
                    key = f"{prefix}-{i}"
                    store.put(key, _entry(created=0.0, ttl=float(i % 2)))
                    store.get(key)
                    if i % 3 == 0:
                        store.delete(key)
            except BaseException as e:  # pragma: no cover - surfaced below
                errors.append(e)

        def sweeper() -> None:
            try:
                for _ in range(50):
                    store.sweep(now=0.5)
            except BaseException as e:  # pragma: no cover - surfaced below
                errors.append(e)

        threads = [threading.Thread(target=writer, args=(p,)) for p in "abcd"]
        threads.append(threading.Thread(target=sweeper))
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert errors == []
        store.sweep(now=0.5)
        assert all(not e.is_expired(0.5) for _, e in store.items())
