"""Races between moves, quits, and the expiry sweep on a single session.

Each test holds the session lock while scheduling the competing operations,
so they queue on the lock and are released in FIFO order.
"""

import asyncio

import pytest

from arcade.logic.enums import Mark
from arcade.logic.exceptions import SessionError, SessionNotFoundError, SessionStateError, SessionValidationError
from arcade.logic.state import SessionKey
from arcade.logic.types import ContinueResult

KEY = SessionKey(channel_id="C1", creator_id="A")


async def _queue_behind_lock(registry, *coros):
    """Start coros while the session lock is held, then release it and gather results."""
    lock = registry._session_locks[KEY]
    await lock.acquire()
    tasks = [asyncio.create_task(c) for c in coros]
    await asyncio.sleep(0)  # let every task block on the lock
    lock.release()
    return await asyncio.gather(*tasks, return_exceptions=True)


class TestConcurrentMoves:
    async def test_same_player_same_cell_exactly_one_wins(self, playing):
        results = await _queue_behind_lock(
            playing,
            playing.apply_move("A", "C1", 5),
            playing.apply_move("A", "C1", 5),
        )

        successes = [r for r in results if isinstance(r, ContinueResult)]
        failures = [r for r in results if isinstance(r, SessionError)]
        assert len(successes) == 1
        assert len(failures) == 1
        assert isinstance(failures[0], (SessionStateError, SessionValidationError))

        view = playing.get_session("C1", "A")
        assert view.board.count(Mark.X) == 1
        assert view.board.count(Mark.O) == 0
        assert view.current_player_id == "B"

    async def test_both_players_same_cell(self, playing):
        await playing.apply_move("A", "C1", 1)

        results = await _queue_behind_lock(
            playing,
            playing.apply_move("B", "C1", 5),
            playing.apply_move("A", "C1", 5),
        )

        assert isinstance(results[0], ContinueResult)
        assert isinstance(results[1], SessionValidationError)
        view = playing.get_session("C1", "A")
        assert view.board[4] == Mark.O
        assert view.current_player_id == "A"

    async def test_many_racing_moves_never_duplicate_a_turn(self, playing):
        coros = [playing.apply_move(p, "C1", pos) for p in ("A", "B") for pos in (1, 2, 3)]
        results = await _queue_behind_lock(playing, *coros)

        assert all(isinstance(r, (ContinueResult, SessionError)) for r in results)
        view = playing.get_session("C1", "A")
        x_count = view.board.count(Mark.X)
        o_count = view.board.count(Mark.O)
        assert x_count - o_count in (0, 1)
        assert sum(isinstance(r, ContinueResult) for r in results) == x_count + o_count


class TestMoveVersusRemoval:
    async def test_move_queued_behind_quit_sees_not_found(self, playing):
        results = await _queue_behind_lock(
            playing,
            playing.quit_session("B", "C1"),
            playing.apply_move("A", "C1", 5),
        )

        assert results[0] is True
        assert isinstance(results[1], SessionNotFoundError)
        assert playing.session_count == 0

    async def test_waiter_does_not_touch_recreated_session(self, playing):
        lock = playing._session_locks[KEY]
        await lock.acquire()
        move = asyncio.create_task(playing.apply_move("A", "C1", 5))
        await asyncio.sleep(0)

        # Quit and recreate under the same key while the move is still queued.
        playing._remove(KEY)
        await playing.create_session("A", "C1")
        lock.release()

        with pytest.raises(SessionNotFoundError):
            await move
        assert playing.get_session("C1", "A").board == (Mark.EMPTY,) * 9


class TestSweepVersusMove:
    async def test_sweep_first_removes_then_move_not_found(self, playing, clock):
        now = clock.advance(301)
        results = await _queue_behind_lock(
            playing,
            playing.sweep_expired(now, 300),
            playing.apply_move("A", "C1", 5),
        )

        assert results[0] == [KEY]
        assert isinstance(results[1], SessionNotFoundError)

    async def test_move_first_refreshes_and_sweep_skips(self, playing, clock):
        now = clock.advance(301)
        results = await _queue_behind_lock(
            playing,
            playing.apply_move("A", "C1", 5),
            playing.sweep_expired(now, 300),
        )

        assert isinstance(results[0], ContinueResult)
        assert results[1] == []
        assert playing.get_session("C1", "A").board[4] == Mark.X
