"""Client for the shard master service."""

from __future__ import annotations

import secrets
import time
from typing import Any, Sequence

from shardraft.master_common import (
    Config,
    JoinArgs,
    LeaveArgs,
    MoveArgs,
    QueryArgs,
)

RETRY_INTERVAL = 0.1


def nrand() -> int:
    """Return a random non-negative integer below 2**62."""
    return secrets.randbelow(1 << 62)


class Clerk:
    """Talks to a set of shard master replicas, retrying until one answers.

    Each server is an object with ``call(method, args)`` returning the reply,
    or ``None`` if the request or reply was lost.
    """

    def __init__(self, servers: Sequence[Any]) -> None:
        self._servers = list(servers)

    def _call(self, method: str, args: Any) -> Any:
        while True:
            for server in self._servers:
                reply = server.call(method, args)
                if reply is not None and not reply.wrong_leader:
                    return reply
            time.sleep(RETRY_INTERVAL)

    def query(self, num: int) -> Config:
        """Fetch configuration ``num``, or the latest one if ``num`` is -1."""
        return self._call("ShardMaster.Query", QueryArgs(num=num)).config

    def join(self, servers: dict[int, list[str]]) -> None:
        """Add replica groups, given as a gid -> server names mapping."""
        self._call("ShardMaster.Join", JoinArgs(servers=servers))

    def leave(self, gids: Sequence[int]) -> None:
        """Remove the given replica groups."""
        self._call("ShardMaster.Leave", LeaveArgs(gids=list(gids)))

    def move(self, shard: int, gid: int) -> None:
        """Hand ``shard`` over to group ``gid``."""
        self._call("ShardMaster.Move", MoveArgs(shard=shard, gid=gid))