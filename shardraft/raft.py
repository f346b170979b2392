"""A Raft consensus peer: leader election, log replication and persistence.

Peers are reached through objects exposing ``call(method, args)``, which
returns the handler's reply, or ``None`` when the request or reply was lost.
Committed entries are delivered as :class:`ApplyMsg` values through the
``put`` method of the apply channel (for example a :class:`queue.Queue`).
"""

from __future__ import annotations

import enum
import logging
import pickle
import random
import threading
import time
from dataclasses import dataclass, field
from typing import Any, Sequence

from shardraft.persister import Persister

logger = logging.getLogger(__name__)

HEARTBEAT_INTERVAL_MS = 100
ELECTION_TIMEOUT_MS = 500
ELECTION_TIMEOUT_RANDOM_RANGE_MS = 100

REQUEST_VOTE = "Raft.RequestVote"
APPEND_ENTRIES = "Raft.AppendEntries"


class Role(enum.IntEnum):
    FOLLOWER = 0
    CANDIDATE = 1
    LEADER = 2


@dataclass
class ApplyMsg:
    command_valid: bool
    command: Any
    command_index: int


@dataclass(frozen=True)
class Entry:
    term: int
    command: Any = None
    index: int = 0


@dataclass
class RequestVoteArgs:
    term: int
    candidate_id: int
    last_log_index: int
    last_log_term: int


@dataclass
class RequestVoteReply:
    term: int = 0
    vote_granted: bool = False


@dataclass
class AppendEntriesArgs:
    term: int
    leader_id: int
    prev_log_index: int
    prev_log_term: int
    leader_commit: int
    entries: list[Entry] = field(default_factory=list)


@dataclass
class AppendEntriesReply:
    term: int = 0
    success: bool = False
    x_term: int = 0
    x_index: int = 0


def more_up_to_date(args: RequestVoteArgs, log: Sequence[Entry]) -> bool:
    """Whether the candidate's log is at least as up to date as ``log``."""
    last = log[-1]
    return args.last_log_term > last.term or (
        args.last_log_term == last.term and args.last_log_index >= last.index
    )


class Raft:
    """A single Raft peer. Use :func:`make_raft` to create and start one."""

    def __init__(self, peers: Sequence[Any], me: int, persister: Persister, apply_ch: Any) -> None:
        self._lock = threading.Lock()
        self._peers = list(peers)
        self._persister = persister
        self._me = me
        self._dead = threading.Event()
        self._apply_ch = apply_ch

        self._current_term = 0
        self._voted_for = -1
        self._log: list[Entry] = [Entry(term=0)]

        self._commit_index = 0
        self._last_applied = 0
        self._next_index = [1] * len(self._peers)
        self._match_index = [0] * len(self._peers)

        self._role = Role.FOLLOWER
        self._vote_count = 0
        self._timestamp = time.monotonic()
        self._election_timeout = (
            ELECTION_TIMEOUT_MS + random.randrange(ELECTION_TIMEOUT_RANDOM_RANGE_MS)
        ) / 1000.0
        logger.debug("Creating raft %s", me)
        self._read_persist(persister.read_raft_state())

    # ----- state -------------------------------------------------------

    def get_state(self) -> tuple[int, bool]:
        """Return the current term and whether this peer believes it leads."""
        with self._lock:
            return self._current_term, self._role is Role.LEADER

    def _persist(self) -> None:
        data = pickle.dumps((self._log, self._current_term, self._voted_for))
        self._persister.save_raft_state(data)

    def _read_persist(self, data: bytes) -> None:
        if not data:
            return
        try:
            log, current_term, voted_for = pickle.loads(data)
        except Exception as exc:
            raise ValueError("decode error") from exc
        self._log = list(log)
        self._current_term = current_term
        self._voted_for = voted_for

    def _convert_to(self, role: Role) -> None:
        logger.debug(
            "Convert server %s from %s to %s on term %s",
            self._me, self._role.name, role.name, self._current_term,
        )
        self._role = role
        if role is Role.FOLLOWER:
            self._voted_for = -1

    # ----- RPC handlers ------------------------------------------------

    def request_vote(self, args: RequestVoteArgs) -> RequestVoteReply:
        """Handle a RequestVote RPC."""
        with self._lock:
            try:
                reply = RequestVoteReply(vote_granted=False)
                if args.term > self._current_term:
                    self._current_term = args.term
                    self._convert_to(Role.FOLLOWER)
                if self._voted_for in (-1, args.candidate_id) and more_up_to_date(args, self._log):
                    self._voted_for = args.candidate_id
                    self._timestamp = time.monotonic()
                    reply.vote_granted = True
                    logger.debug(
                        "Server %s votes for candidate %s", self._me, args.candidate_id
                    )
                reply.term = self._current_term
                return reply
            finally:
                self._persist()

    def append_entries(self, args: AppendEntriesArgs) -> AppendEntriesReply:
        """Handle an AppendEntries RPC (heartbeat or replication)."""
        with self._lock:
            try:
                if args.term < self._current_term:
                    return AppendEntriesReply(term=self._current_term, success=False)

                reply = AppendEntriesReply(success=True)
                if args.prev_log_index >= len(self._log):
                    reply.success = False
                    reply.x_index = len(self._log)
                    reply.x_term = -1
                elif self._log[args.prev_log_index].term != args.prev_log_term:
                    reply.success = False
                    reply.x_term = self._log[args.prev_log_index].term
                    x_index = args.prev_log_index
                    while x_index > 0 and self._log[x_index - 1].term == reply.x_term:
                        x_index -= 1
                    reply.x_index = x_index
                else:
                    if args.entries:
                        for entry in args.entries:
                            if entry.index < len(self._log):
                                if self._log[entry.index].term != entry.term:
                                    del self._log[entry.index:]
                                    self._log.append(entry)
                            else:
                                self._log.append(entry)
                        self._next_index[self._me] = len(self._log)
                        self._match_index[self._me] = len(self._log) - 1
                    if args.leader_commit > self._commit_index:
                        self._commit_index = min(args.leader_commit, len(self._log) - 1)

                if args.term > self._current_term:
                    self._current_term = args.term
                    self._convert_to(Role.FOLLOWER)

                if self._commit_index > self._last_applied:
                    self._send_apply_msg()

                reply.term = self._current_term
                self._timestamp = time.monotonic()
                return reply
            finally:
                self._persist()

    # ----- applying ----------------------------------------------------

    def _send_apply_msg(self) -> None:
        if self._commit_index > self._last_applied:
            entries = self._log[self._last_applied + 1 : self._commit_index + 1]
            threading.Thread(target=self._deliver, args=(entries,), daemon=True).start()

    def _deliver(self, entries: list[Entry]) -> None:
        for entry in entries:
            msg = ApplyMsg(command_valid=True, command=entry.command, command_index=entry.index)
            self._apply_ch.put(msg)
            with self._lock:
                if self._last_applied < msg.command_index:
                    self._last_applied = msg.command_index

    # ----- client interface --------------------------------------------

    def start(self, command: Any) -> tuple[int, int, bool]:
        """Propose ``command``; return (index, term, is_leader)."""
        with self._lock:
            term = self._current_term
            if self._role is not Role.LEADER:
                return -1, term, False
            index = len(self._log)
            self._log.append(Entry(term=term, command=command, index=index))
            self._persist()
            self._next_index[self._me] = len(self._log)
            self._match_index[self._me] = len(self._log) - 1
            logger.debug("New entry %s", index)
            return index, term, True

    def kill(self) -> None:
        self._dead.set()

    def killed(self) -> bool:
        return self._dead.is_set()

    # ----- main loop ---------------------------------------------------

    def _is_election_timeout(self) -> bool:
        with self._lock:
            timestamp = self._timestamp
            timeout = self._election_timeout
        return time.monotonic() - timestamp > timeout

    def run(self) -> None:
        """Drive the peer until it is killed."""
        handlers = {
            Role.LEADER: self._run_leader,
            Role.FOLLOWER: self._run_follower,
            Role.CANDIDATE: self._run_candidate,
        }
        while not self.killed():
            with self._lock:
                role = self._role
            handlers[role]()

    def _run_leader(self) -> None:
        self._send_heartbeat()
        self._dead.wait(HEARTBEAT_INTERVAL_MS / 1000.0)

    def _run_follower(self) -> None:
        if self._is_election_timeout():
            with self._lock:
                self._convert_to(Role.CANDIDATE)
            self._start_election()
        self._dead.wait(0.01)

    def _run_candidate(self) -> None:
        if self._is_election_timeout():
            self._start_election()
        with self._lock:
            if self._vote_count > len(self._peers) // 2:
                self._convert_to(Role.LEADER)
        self._dead.wait(0.01)

    def _send_heartbeat(self) -> None:
        for index in range(len(self._peers)):
            if index != self._me:
                threading.Thread(target=self._replicate_to, args=(index,), daemon=True).start()

        with self._lock:
            own_match = self._match_index[self._me]
            if self._commit_index < own_match:
                counter = 0
                min_n = own_match
                for match in self._match_index:
                    if match > self._commit_index:
                        counter += 1
                        min_n = min(min_n, match)
                if counter > len(self._peers) // 2 and self._log[min_n].term == self._current_term:
                    self._commit_index = min_n
                    self._send_apply_msg()
                logger.debug("Setting commit index on leader to %s", self._commit_index)

    def _replicate_to(self, index: int) -> None:
        with self._lock:
            if self._role is not Role.LEADER:
                return
            prev_log_index = self._next_index[index] - 1
            args = AppendEntriesArgs(
                term=self._current_term,
                leader_id=self._me,
                prev_log_index=prev_log_index,
                prev_log_term=self._log[prev_log_index].term,
                leader_commit=self._commit_index,
                entries=list(self._log[prev_log_index + 1 :]),
            )

        reply = self._peers[index].call(APPEND_ENTRIES, args)
        if reply is None:
            return

        with self._lock:
            if self._role is not Role.LEADER:
                return
            if reply.term > self._current_term:
                self._current_term = reply.term
                self._convert_to(Role.FOLLOWER)
                self._persist()
            elif not reply.success:
                self._next_index[index] = reply.x_index
                if reply.x_term != -1:
                    for i in range(min(args.prev_log_index, len(self._log)), 0, -1):
                        if self._log[i - 1].term == reply.x_term:
                            self._next_index[index] = i
                            break
            else:
                # Use what was sent, not the current log, which may have grown since.
                self._match_index[index] = args.prev_log_index + len(args.entries)
                self._next_index[index] = self._match_index[index] + 1

    def _start_election(self) -> None:
        logger.debug("Server %s: start election", self._me)
        with self._lock:
            self._current_term += 1
            self._voted_for = self._me
            self._timestamp = time.monotonic()
            self._vote_count = 1
            self._persist()

        for index in range(len(self._peers)):
            if index == self._me:
                continue
            with self._lock:
                role = self._role
            if role is not Role.CANDIDATE:
                return
            threading.Thread(target=self._solicit_vote, args=(index,), daemon=True).start()

    def _solicit_vote(self, index: int) -> None:
        with self._lock:
            args = RequestVoteArgs(
                term=self._current_term,
                candidate_id=self._me,
                last_log_index=len(self._log) - 1,
                last_log_term=self._log[-1].term,
            )
        reply = self._peers[index].call(REQUEST_VOTE, args)
        if reply is None:
            return
        with self._lock:
            if reply.vote_granted:
                self._vote_count += 1
            elif reply.term > self._current_term:
                self._current_term = reply.term
                self._convert_to(Role.FOLLOWER)
                self._persist()


def make_raft(peers: Sequence[Any], me: int, persister: Persister, apply_ch: Any) -> Raft:
    """Create a Raft peer and start its background loop."""
    rf = Raft(peers, me, persister, apply_ch)
    threading.Thread(target=rf.run, name=f"raft-{me}", daemon=True).start()
    return rf