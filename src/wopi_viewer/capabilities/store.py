# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""In-memory capability registry.

The store maps a signed capability token to the entry recorded when it was
issued. It is the only shared mutable state of the host: the issuer inserts,
the validator reads and lazily evicts, the sweeper removes expired entries.

Every public method takes the lock for a single map operation only, so a
stalled request can never block the sweeper for longer than one dict access.

Example:
    store = CapabilityStore()
    store.put(token, CapabilityEntry("doc-1", "anonymous", now, now + 3600))
    entry = store.get(token)
    store.delete(token)
    store.delete(token)  # no-op
"""

from __future__ import annotations

import hashlib
import threading
import time
from collections.abc import Callable
from dataclasses import asdict, dataclass

Clock = Callable[[], float]


def fingerprint(token: str) -> str:
    """Short, non-reversible identifier for a token (management API, logs)."""
    return hashlib.sha256(token.encode("utf-8")).hexdigest()[:16]


@dataclass(frozen=True)
class CapabilityEntry:
    """Metadata recorded for an issued capability.

    Attributes:
        file_id: File the capability is bound to.
        subject: Identity the capability was issued for.
        created_at: Issuance time (epoch seconds).
        expires_at: Expiry time (epoch seconds).
    """

    file_id: str
    subject: str
    created_at: float
    expires_at: float

    def is_expired(self, now: float) -> bool:
        return now >= self.expires_at

    def to_dict(self) -> dict:
        return asdict(self)


class CapabilityStore:
    """Thread-safe token -> CapabilityEntry registry with TTL sweep.

    Attributes:
        clock: Callable returning current epoch seconds.
    """

    def __init__(self, clock: Clock | None = None):
        self.clock: Clock = clock or time.time
        self._entries: dict[str, CapabilityEntry] = {}
        self._lock = threading.Lock()

    def put(self, token: str, entry: CapabilityEntry) -> None:
        with self._lock:
            self._entries[token] = entry

    def get(self, token: str) -> CapabilityEntry | None:
        with self._lock:
            return self._entries.get(token)

    def delete(self, token: str) -> bool:
        """Remove a capability. Returns False if it was already gone."""
        with self._lock:
            return self._entries.pop(token, None) is not None

    def delete_fingerprint(self, token_fingerprint: str) -> bool:
        """Remove the capability whose token has the given fingerprint."""
        with self._lock:
            for token in list(self._entries):
                if fingerprint(token) == token_fingerprint:
                    del self._entries[token]
                    return True
        return False

    def sweep(self, now: float | None = None) -> int:
        """Remove every expired entry.

        Args:
            now: Reference time. Defaults to the store clock.

        Returns:
            Number of entries removed.
        """
        now = self.clock() if now is None else now
        with self._lock:
            expired = [t for t, e in self._entries.items() if e.is_expired(now)]
            for token in expired:
                del self._entries[token]
        return len(expired)

    def count_expired(self, now: float | None = None) -> int:
        now = self.clock() if now is None else now
        with self._lock:
            return sum(1 for e in self._entries.values() if e.is_expired(now))

    def items(self) -> list[tuple[str, CapabilityEntry]]:
        """Snapshot of (token, entry) pairs."""
        with self._lock:
            return list(self._entries.items())

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, token: object) -> bool:
        with self._lock:
            return token in self._entries


__all__ = ["CapabilityEntry", "CapabilityStore", "Clock", "fingerprint"]
