"""Shard master replica built on a Raft peer."""

from __future__ import annotations

import queue
from typing import Any, Sequence

from shardraft.master_common import Config
from shardraft.persister import Persister
from shardraft.raft import Raft, make_raft


class ShardMaster:
    """A replica of the shard master service."""

    def __init__(self, me: int) -> None:
        self.me = me
        self.configs: list[Config] = [Config()]
        self.apply_ch: queue.Queue = queue.Queue()
        self.rf: Raft | None = None

    def kill(self) -> None:
        """Stop this replica's Raft peer."""
        if self.rf is not None:
            self.rf.kill()

    def raft(self) -> Raft | None:
        """Return the underlying Raft peer."""
        return self.rf


def start_server(servers: Sequence[Any], me: int, persister: Persister) -> ShardMaster:
    """Create a shard master replica and start its Raft peer."""
    sm = ShardMaster(me)
    sm.rf = make_raft(servers, me, persister, sm.apply_ch)
    return sm