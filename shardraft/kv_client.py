"""Client for the sharded key/value service.

The client asks the shard master which group holds a key's shard, then
talks to that group, refreshing the configuration whenever it fails.
"""

from __future__ import annotations

import secrets
import time
from typing import Any, Callable, Container, Sequence

from shardraft import master_client
from shardraft.kv_common import APPEND, PUT, Err, GetArgs, PutAppendArgs
from shardraft.master_common import NSHARDS, Config

RETRY_INTERVAL = 0.1


def key2shard(key: str) -> int:
    """Return the shard a key belongs to, from its first byte."""
    data = key.encode()
    shard = data[0] if data else 0
    return shard % NSHARDS


def nrand() -> int:
    """Return a random non-negative integer below 2**62."""
    return secrets.randbelow(1 << 62)


class Clerk:
    """Routes Get, Put and Append requests to the group owning each key.

    ``make_end(name)`` turns a server name from a configuration into an
    object with ``call(method, args)``, which returns the reply or ``None``.
    """

    def __init__(self, masters: Sequence[Any], make_end: Callable[[str], Any]) -> None:
        self._sm = master_client.Clerk(masters)
        self._config = Config()
        self._make_end = make_end

    def _request(self, method: str, args: Any, done: Container[Err]) -> Any:
        while True:
            gid = self._config.shards[key2shard(args.key)]
            for name in self._config.groups.get(gid, ()):
                reply = self._make_end(name).call(method, args)
                if reply is None:
                    continue
                if reply.err in done:
                    return reply
                if reply.err is Err.WRONG_GROUP:
                    break
            time.sleep(RETRY_INTERVAL)
            self._config = self._sm.query(-1)

    def get(self, key: str) -> str:
        """Fetch the value for ``key``; return "" if it does not exist."""
        reply = self._request("ShardKV.Get", GetArgs(key=key), (Err.OK, Err.NO_KEY))
        return reply.value

    def put_append(self, key: str, value: str, op: str) -> None:
        """Store or append ``value`` under ``key``; ``op`` is "Put" or "Append"."""
        args = PutAppendArgs(key=key, value=value, op=op)
        self._request("ShardKV.PutAppend", args, (Err.OK,))

    def put(self, key: str, value: str) -> None:
        self.put_append(key, value, PUT)

    def append(self, key: str, value: str) -> None:
        self.put_append(key, value, APPEND)