# shardraft

Building blocks for a replicated, sharded key/value system in pure Python:

- `shardraft.persister` – `Persister`, a thread-safe in-memory store for a
  Raft peer's state bytes and a service snapshot.
- `shardraft.raft` – `Raft`, a consensus peer with leader election, log
  replication, commit tracking and persistence of its log, term and vote.
- `shardraft.master_common`, `shardraft.master_client`,
  `shardraft.master_server` – configuration types, a client `Clerk` and a
  replica `ShardMaster` for the shard master service.
- `shardraft.kv_common`, `shardraft.kv_client`, `shardraft.kv_server` –
  request/reply types, a routing client `Clerk` and a replica `ShardKV`
  for the sharded key/value service.

The package has no dependencies outside the standard library.

## Transport

Peers and servers are reached through "client end" objects you supply.
Each must provide `call(method, args)`, returning the reply object, or
`None` when the request or the reply was lost. Raft uses the method names
`"Raft.RequestVote"` and `"Raft.AppendEntries"`; route them to
`Raft.request_vote(args)` and `Raft.append_entries(args)`, which take the
argument dataclass and return the reply dataclass. No transport or
simulated network is included.

## Installation

```
pip install .
```

To run the tests:

```
pip install ".[test]"
pytest
```

## Persister

```python
from shardraft.persister import Persister

p = Persister()
p.save_raft_state(b"state")
p.save_state_and_snapshot(b"state2", b"snap")
assert p.read_raft_state() == b"state2"
assert p.read_snapshot() == b"snap"
assert p.raft_state_size() == 6 and p.snapshot_size() == 4
clone = p.copy()   # a new Persister holding the same bytes
```

Everything is kept in memory; nothing is written to disk.

## Raft

```python
import queue
from shardraft.persister import Persister
from shardraft.raft import make_raft

apply_ch = queue.Queue()
rf = make_raft(peers, 0, Persister(), apply_ch)  # starts a daemon thread

term, is_leader = rf.get_state()
index, term, is_leader = rf.start("command")  # (-1, term, False) on a non-leader
msg = apply_ch.get()   # ApplyMsg(command_valid, command, command_index)
rf.kill()
assert rf.killed()
```

`peers` holds one client end per server, this one included, in the same
order on every server. The apply channel may be any object with a `put`
method. Election timeouts are 500–599 ms and the leader sends heartbeats
every 100 ms. The log starts with a sentinel entry at index 0, so the first
command goes to index 1.

State is pickled into the persister as the log, the current term and the
vote; a peer created on a persister with saved state resumes from it, and
raises `ValueError` if the saved bytes cannot be decoded. Debug output goes
to the `shardraft.raft` logger at DEBUG level. `more_up_to_date(args, log)`
exposes the election restriction check on its own.

## Shard master

`master_common.Config` assigns each of `NSHARDS` (10) shards to a group id
and maps group ids to server names; `Config()` is configuration 0, with no
groups and every shard on group 0.

```python
from shardraft.master_client import Clerk as MasterClerk

mck = MasterClerk(master_ends)
mck.join({100: ["server-100-0", "server-100-1"]})
mck.move(3, 100)
mck.leave([100])
config = mck.query(-1)   # -1 asks for the latest configuration
```

Each call tries every server in turn until one returns a reply whose
`wrong_leader` is false, sleeping 0.1 s between rounds, and retries for
ever.

`master_server.start_server(servers, me, persister)` creates a
`ShardMaster` holding configuration 0 and starts its Raft peer;
`ShardMaster.raft()` returns that peer and `kill()` stops it.

## Key/value client

```python
from shardraft.kv_client import Clerk, key2shard

ck = Clerk(master_ends, make_end)   # make_end(server_name) -> client end
ck.put("k", "v")
ck.append("k", "w")
value = ck.get("k")                 # "" if the key does not exist
shard = key2shard("k")              # first byte of the key, modulo NSHARDS
```

The clerk looks up the group owning the key's shard and tries its servers
with `"ShardKV.Get"` or `"ShardKV.PutAppend"`. A reply of `Err.OK` (or
`Err.NO_KEY` for a get) ends the call; `Err.WRONG_GROUP` stops trying that
group. After each failed round it waits 0.1 s and fetches the latest
configuration from the shard master, retrying for ever.

`kv_server.start_server(servers, me, persister, maxraftstate, gid, masters,
make_end)` creates a `ShardKV` replica and starts its Raft peer;
`ShardKV.kill()` stops it.

## What this package does not do

- `ShardMaster` and `ShardKV` have no request handlers: they do not answer
  Join, Leave, Move, Query, Get or PutAppend, and they do not read the
  committed commands from their apply channels. The clerks therefore have
  nothing to talk to unless you provide servers that implement those
  methods.
- There is no shard migration between groups, no duplicate-request
  detection and no snapshotting; `maxraftstate` is stored but not used,
  and Raft never trims its log.
- There is no network, RPC layer, test harness or command-line program.