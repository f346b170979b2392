"""Raft consensus peers, shard master and sharded key/value clients and replicas."""

__version__ = "0.1.0"
__all__ = [
    "persister",
    "raft",
    "master_common",
    "master_client",
    "master_server",
    "kv_common",
    "kv_client",
    "kv_server",
]