"""Shared definitions for the shard master service.

The master assigns each of :data:`NSHARDS` shards to a replica group.
Configurations are numbered; configuration 0 has no groups and assigns
every shard to group 0, the invalid group.
"""

from __future__ import annotations

from dataclasses import dataclass, field

NSHARDS = 10
OK = "OK"


def _unassigned() -> list[int]:
    return [0] * NSHARDS


@dataclass
class Config:
    """An assignment of shards to replica groups."""

    num: int = 0
    shards: list[int] = field(default_factory=_unassigned)
    groups: dict[int, list[str]] = field(default_factory=dict)

    def __post_init__(self) -> None:
        self.shards = list(self.shards)
        if len(self.shards) != NSHARDS:
            raise ValueError(
                f"a configuration assigns exactly {NSHARDS} shards, got {len(self.shards)}"
            )

    def copy(self) -> "Config":
        """Return a deep copy that shares no mutable state with this one."""
        return Config(
            num=self.num,
            shards=list(self.shards),
            groups={gid: list(servers) for gid, servers in self.groups.items()},
        )


@dataclass
class JoinArgs:
    servers: dict[int, list[str]] = field(default_factory=dict)


@dataclass
class JoinReply:
    wrong_leader: bool = False
    err: str = ""


@dataclass
class LeaveArgs:
    gids: list[int] = field(default_factory=list)


@dataclass
class LeaveReply:
    wrong_leader: bool = False
    err: str = ""


@dataclass
class MoveArgs:
    shard: int = 0
    gid: int = 0


@dataclass
class MoveReply:
    wrong_leader: bool = False
    err: str = ""


@dataclass
class QueryArgs:
    num: int = -1


@dataclass
class QueryReply:
    wrong_leader: bool = False
    err: str = ""
    config: Config = field(default_factory=Config)