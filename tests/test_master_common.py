import pytest

from shardraft.master_common import (
    NSHARDS,
    Config,
    JoinArgs,
    LeaveReply,
    QueryReply,
)


def test_initial_config_assigns_every_shard_to_group_zero():
    config = Config()
    assert config.num == 0
    assert config.shards == [0] * NSHARDS
    assert config.groups == {}


def test_wrong_shard_count_rejected():
    with pytest.raises(ValueError):
        Config(shards=[1, 2, 3])


def test_copy_is_equal_and_independent():
    original = Config(num=3, shards=[7] * NSHARDS, groups={7: ["x", "y", "z"]})
    clone = original.copy()
    assert clone == original
    clone.groups[7].append("w")
    clone.shards[0] = 9
    clone.groups[8] = ["a"]
    assert original.groups == {7: ["x", "y", "z"]}
    assert original.shards == [7] * NSHARDS


def test_shards_given_as_tuple_become_list():
    config = Config(shards=tuple(range(NSHARDS)))
    config.shards[0] = 42
    assert config.shards[0] == 42


def test_reply_defaults():
    reply = QueryReply()
    assert reply.wrong_leader is False
    assert reply.config == Config()
    assert LeaveReply().wrong_leader is False


def test_join_args_hold_servers():
    args = JoinArgs(servers={1: ["x", "y", "z"]})
    assert args.servers[1] == ["x", "y", "z"]