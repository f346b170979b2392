from shardraft.kv_server import start_server
from shardraft.persister import Persister


class SilentEnd:
    def call(self, method, args):
        return None


def make_end(name):
    return SilentEnd()


def test_start_server_records_settings():
    masters = [SilentEnd()]
    kv = start_server([SilentEnd()], 0, Persister(), -1, 100, masters, make_end)
    try:
        assert kv.gid == 100
        assert kv.me == 0
        assert kv.maxraftstate == -1
        assert kv.masters == masters
        assert kv.make_end is make_end
    finally:
        kv.kill()


def test_kill_stops_raft():
    kv = start_server([SilentEnd()], 0, Persister(), 1000, 101, [], make_end)
    assert kv.rf.killed() is False
    kv.kill()
    assert kv.rf.killed() is True