from shardraft.master_client import Clerk, nrand
from shardraft.master_common import (
    NSHARDS,
    Config,
    JoinReply,
    LeaveReply,
    MoveReply,
    QueryReply,
)


class FakeServer:
    def __init__(self, replies=(), default=None):
        self.replies = list(replies)
        self.default = default
        self.calls = []

    def call(self, method, args):
        self.calls.append((method, args))
        if self.replies:
            return self.replies.pop(0)
        return self.default


def test_query_skips_lost_and_wrong_leader_replies():
    config = Config(num=2, shards=[1] * NSHARDS, groups={1: ["x", "y", "z"]})
    lost = FakeServer(default=None)
    follower = FakeServer(default=QueryReply(wrong_leader=True))
    leader = FakeServer(default=QueryReply(config=config))
    clerk = Clerk([lost, follower, leader])
    assert clerk.query(-1) == config
    method, args = leader.calls[0]
    assert method == "ShardMaster.Query"
    assert args.num == -1


def test_query_retries_after_a_failed_round():
    config = Config(num=5)
    server = FakeServer(replies=[None, QueryReply(config=config)])
    clerk = Clerk([server])
    assert clerk.query(5) == config
    assert len(server.calls) == 2


def test_join_sends_servers():
    server = FakeServer(default=JoinReply())
    Clerk([server]).join({1: ["x", "y", "z"]})
    method, args = server.calls[0]
    assert method == "ShardMaster.Join"
    assert args.servers == {1: ["x", "y", "z"]}


def test_leave_sends_gids():
    server = FakeServer(default=LeaveReply())
    Clerk([server]).leave([1, 3])
    method, args = server.calls[0]
    assert method == "ShardMaster.Leave"
    assert args.gids == [1, 3]


def test_move_sends_shard_and_gid():
    follower = FakeServer(default=MoveReply(wrong_leader=True))
    leader = FakeServer(default=MoveReply())
    Clerk([follower, leader]).move(4, 503)
    method, args = leader.calls[0]
    assert method == "ShardMaster.Move"
    assert (args.shard, args.gid) == (4, 503)
    assert len(follower.calls) == 1


def test_nrand_range():
    values = [nrand() for _ in range(50)]
    assert all(0 <= v < (1 << 62) for v in values)
    assert len(set(values)) > 1