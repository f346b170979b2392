"""Holds a Raft peer's persistent state and an optional service snapshot."""

from __future__ import annotations

import threading


class Persister:
    """Thread-safe in-memory store for Raft state and snapshots."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._raft_state: bytes = b""
        self._snapshot: bytes = b""

    def copy(self) -> "Persister":
        """Return a new persister holding the same state and snapshot."""
        with self._lock:
            clone = Persister()
            clone._raft_state = self._raft_state
            clone._snapshot = self._snapshot
            return clone

    def save_raft_state(self, state: bytes) -> None:
        with self._lock:
            self._raft_state = state

    def read_raft_state(self) -> bytes:
        with self._lock:
            return self._raft_state

    def raft_state_size(self) -> int:
        with self._lock:
            return len(self._raft_state)

    def save_state_and_snapshot(self, state: bytes, snapshot: bytes) -> None:
        """Save the Raft state and the snapshot as one atomic action."""
        with self._lock:
            self._raft_state = state
            self._snapshot = snapshot

    def read_snapshot(self) -> bytes:
        with self._lock:
            return self._snapshot

    def snapshot_size(self) -> int:
        with self._lock:
            return len(self._snapshot)