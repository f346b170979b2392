from shardraft.master_common import NSHARDS
from shardraft.master_server import start_server
from shardraft.persister import Persister


class SilentEnd:
    def call(self, method, args):
        return None


def test_initial_configuration():
    sm = start_server([SilentEnd()], 0, Persister())
    try:
        assert len(sm.configs) == 1
        assert sm.configs[0].num == 0
        assert sm.configs[0].groups == {}
        assert sm.configs[0].shards == [0] * NSHARDS
        assert sm.me == 0
    finally:
        sm.kill()


def test_kill_stops_raft():
    sm = start_server([SilentEnd()], 0, Persister())
    assert sm.raft().killed() is False
    sm.kill()
    assert sm.raft().killed() is True


def test_raft_is_the_started_peer():
    sm = start_server([SilentEnd()], 0, Persister())
    try:
        term, _ = sm.raft().get_state()
        assert term >= 0
        assert sm.raft() is sm.rf
    finally:
        sm.kill()