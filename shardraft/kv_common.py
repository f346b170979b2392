"""Shared definitions for the sharded key/value service."""

from __future__ import annotations

import enum
from dataclasses import dataclass

PUT = "Put"
APPEND = "Append"


class Err(str, enum.Enum):
    OK = "OK"
    NO_KEY = "ErrNoKey"
    WRONG_GROUP = "ErrWrongGroup"
    WRONG_LEADER = "ErrWrongLeader"


@dataclass
class PutAppendArgs:
    key: str
    value: str
    op: str


@dataclass
class PutAppendReply:
    err: Err | None = None


@dataclass
class GetArgs:
    key: str


@dataclass
class GetReply:
    err: Err | None = None
    value: str = ""