"""Session registry: keyed storage, per-session locking, and expiry."""

from __future__ import annotations

import asyncio
import time
from typing import TYPE_CHECKING

import structlog

from arcade.logic.enums import SessionPhase
from arcade.logic.exceptions import (
    SessionConflictError,
    SessionNotFoundError,
    SessionStateError,
)
from arcade.logic.state import GameSession, SessionKey, require_id
from arcade.logic.types import RegistryStats

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator

    from arcade.logic.types import MoveResult, SessionView

logger = structlog.get_logger()


class SessionRegistry:
    """Own every live session and serialize mutation per session.

    Sessions are keyed by (channel_id, creator_id). Each session has its own
    asyncio.Lock; every mutation, removal, and the expiry sweep acquire it and
    re-validate that the session is still registered before acting. Dict
    operations on _sessions and _session_locks never span an await, so the
    key set cannot change between a check and the insert or removal that
    follows it.

    Construct one registry per process and call close() on shutdown.
    """

    def __init__(self, *, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._sessions: dict[SessionKey, GameSession] = {}
        self._session_locks: dict[SessionKey, asyncio.Lock] = {}

    # --- Public API ---

    @property
    def session_count(self) -> int:
        return len(self._sessions)

    async def create_session(self, creator_id: str, channel_id: str) -> SessionView:
        """Create a WAITING session owned by creator_id in channel_id."""
        key = SessionKey(
            channel_id=require_id(channel_id, "channel_id"),
            creator_id=require_id(creator_id, "creator_id"),
        )
        if key in self._sessions:
            raise SessionConflictError("you already have an active game in this channel")
        if self._find_participant_session(channel_id, creator_id) is not None:
            raise SessionConflictError("you are already playing a game in this channel")

        session = GameSession(key=key, created_at=self._clock())
        self._sessions[key] = session
        self._session_locks[key] = asyncio.Lock()
        logger.info("session created", channel_id=channel_id, creator_id=creator_id)
        return session.snapshot()

    async def join_session(self, joiner_id: str, channel_id: str, target_creator_id: str) -> SessionView:
        """Join the session created by target_creator_id in channel_id.

        A player takes part in at most one session per channel, so moves and
        quits always resolve to the game they joined.
        """
        key = SessionKey(
            channel_id=require_id(channel_id, "channel_id"),
            creator_id=require_id(target_creator_id, "target_creator_id"),
        )
        require_id(joiner_id, "joiner_id")
        lock = self._session_locks.get(key)
        if lock is None:
            raise SessionNotFoundError("no active game found for that player")

        async with lock:
            session = self._require_registered(key, lock)
            self._reject_if_seated_elsewhere(channel_id, joiner_id, session)
            session.join(joiner_id)
            view = session.snapshot()

        logger.info(
            "player joined session",
            channel_id=channel_id,
            creator_id=target_creator_id,
            player_id=joiner_id,
        )
        return view

    async def apply_move(self, player_id: str, channel_id: str, position: int) -> MoveResult:
        """Apply a move to the caller's session in channel_id.

        A move that finishes the game removes the session before the lock is
        released, so no other operation can observe a FINISHED entry.
        """
        require_id(player_id, "player_id")
        require_id(channel_id, "channel_id")
        session = self._find_participant_session(channel_id, player_id)
        if session is None:
            raise SessionNotFoundError("you are not in any active game in this channel")

        key = session.key
        lock = self._session_locks[key]
        async with lock:
            session = self._require_registered(key, lock)
            result = session.move(player_id, position, self._clock())
            if session.is_finished:
                self._remove(key)

        logger.info(
            "move applied",
            channel_id=channel_id,
            creator_id=key.creator_id,
            player_id=player_id,
            position=position,
            outcome=result.outcome,
        )
        if session.is_finished:
            logger.info("session finished", session_key=key, winner_id=session.winner_id)
        return result

    def get_session(self, channel_id: str, creator_id: str | None = None) -> SessionView | None:
        """Return a snapshot by direct key, or of the first session in the channel."""
        if creator_id is not None:
            session = self._sessions.get(SessionKey(channel_id=channel_id, creator_id=creator_id))
        else:
            session = next(self._iter_channel(channel_id), None)
        return session.snapshot() if session is not None else None

    def find_player_session(self, channel_id: str, player_id: str) -> SessionView | None:
        """Return a snapshot of the session player_id takes part in, if any."""
        session = self._find_participant_session(channel_id, player_id)
        return session.snapshot() if session is not None else None

    def list_sessions(self, channel_id: str | None = None) -> list[SessionView]:
        sessions = self._sessions.values() if channel_id is None else self._iter_channel(channel_id)
        return [s.snapshot() for s in sessions]

    def get_stats(self) -> RegistryStats:
        phases = [s.phase for s in self._sessions.values()]
        return RegistryStats(
            total=len(phases),
            waiting=phases.count(SessionPhase.WAITING),
            playing=phases.count(SessionPhase.PLAYING),
            finished=phases.count(SessionPhase.FINISHED),
        )

    async def quit_session(self, player_id: str, channel_id: str) -> bool:
        """Remove the caller's session in channel_id regardless of its phase."""
        require_id(player_id, "player_id")
        require_id(channel_id, "channel_id")
        if next(self._iter_channel(channel_id), None) is None:
            raise SessionNotFoundError("no active game in this channel")
        session = self._find_participant_session(channel_id, player_id)
        if session is None:
            raise SessionStateError("you are not a player in the current game")

        key = session.key
        lock = self._session_locks[key]
        async with lock:
            self._require_registered(key, lock)
            self._remove(key)

        logger.info("session quit", session_key=key, player_id=player_id, phase=session.phase)
        return True

    async def sweep_expired(self, now: float, timeout: float) -> list[SessionKey]:
        """Remove every session idle for longer than timeout. Return the removed keys.

        Candidates are snapshotted first, then each is re-checked under its
        lock so a session mid-mutation is never removed on stale data.
        """
        candidates = [key for key, s in list(self._sessions.items()) if s.is_expired(now, timeout)]
        removed: list[SessionKey] = []
        for key in candidates:
            lock = self._session_locks.get(key)
            if lock is None:
                continue
            async with lock:
                session = self._sessions.get(key)
                if session is None or self._session_locks.get(key) is not lock:
                    continue
                if not session.is_expired(now, timeout):
                    continue
                self._remove(key)
            removed.append(key)
            logger.info(
                "session expired",
                session_key=key,
                phase=session.phase,
                idle_seconds=round(now - session.last_move_at, 1),
            )
        return removed

    def close(self) -> None:
        """Drop every session. Called once when the hosting process shuts down."""
        if self._sessions:
            logger.info("registry closed", dropped=len(self._sessions))
        self._sessions.clear()
        self._session_locks.clear()

    # --- Internal helpers ---

    def _iter_channel(self, channel_id: str) -> Iterator[GameSession]:
        return (s for s in self._sessions.values() if s.channel_id == channel_id)

    def _find_participant_session(self, channel_id: str, player_id: str) -> GameSession | None:
        return next((s for s in self._iter_channel(channel_id) if s.is_participant(player_id)), None)

    def _reject_if_seated_elsewhere(self, channel_id: str, player_id: str, target: GameSession) -> None:
        for session in self._iter_channel(channel_id):
            if session is not target and session.is_participant(player_id):
                raise SessionConflictError("you are already playing a game in this channel")

    def _require_registered(self, key: SessionKey, lock: asyncio.Lock) -> GameSession:
        """Re-validate after acquiring a lock.

        The session may have been removed while we waited, and a new session
        may since have been created under the same key with a fresh lock.
        """
        session = self._sessions.get(key)
        if session is None or self._session_locks.get(key) is not lock:
            raise SessionNotFoundError("no active game found for that player")
        return session

    def _remove(self, key: SessionKey) -> None:
        # Callers hold the session lock; dropping it from the map is safe because
        # late waiters re-validate against _sessions after acquiring it.
        self._sessions.pop(key, None)
        self._session_locks.pop(key, None)
