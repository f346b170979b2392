"""Sharded key/value server replica built on a Raft peer."""

from __future__ import annotations

import queue
from typing import Any, Callable, Sequence

from shardraft.persister import Persister
from shardraft.raft import Raft, make_raft


class ShardKV:
    """A replica in one key/value replica group."""

    def __init__(
        self,
        me: int,
        maxraftstate: int,
        gid: int,
        masters: Sequence[Any],
        make_end: Callable[[str], Any],
    ) -> None:
        self.me = me
        self.maxraftstate = maxraftstate
        self.gid = gid
        self.masters = list(masters)
        self.make_end = make_end
        self.apply_ch: queue.Queue = queue.Queue()
        self.rf: Raft | None = None

    def kill(self) -> None:
        """Stop this replica's Raft peer."""
        if self.rf is not None:
            self.rf.kill()


def start_server(
    servers: Sequence[Any],
    me: int,
    persister: Persister,
    maxraftstate: int,
    gid: int,
    masters: Sequence[Any],
    make_end: Callable[[str], Any],
) -> ShardKV:
    """Create a replica of group ``gid`` and start its Raft peer.

    ``maxraftstate`` is the Raft state size at which to snapshot, or -1
    for never.
    """
    kv = ShardKV(me, maxraftstate, gid, masters, make_end)
    kv.rf = make_raft(servers, me, persister, kv.apply_ch)
    return kv