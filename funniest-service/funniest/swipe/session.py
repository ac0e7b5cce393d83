"""
session.py — asyncio driver for the swipe reducer
=================================================
Owns one SwipeState, feeds it events and runs the resulting effects:

  StartAnimation  sleep the exit animation, then AnimationComplete
  SubmitVote      create/update via the client, result ignored
  FetchUnvoted    refill; success or failure is fed back as an event

Effects run as background tasks and are never awaited by the transition
that produced them, so the queue advances regardless of network outcome.
Vote failures are logged and dropped; there is no retry or rollback.
In-flight calls are not cancelled or de-duplicated either: a slow
response can land after the user has moved on.
"""
from __future__ import annotations

import asyncio
import logging
from typing import Callable, Iterable, List, Optional, Protocol, Set

from .machine import (
    AnimationComplete,
    CheckBuffer,
    Decide,
    Direction,
    DragMove,
    DragRelease,
    DragStart,
    Effect,
    Event,
    FetchFailed,
    FetchSucceeded,
    FetchUnvoted,
    Pair,
    StartAnimation,
    SubmitVote,
    SwipeState,
    Undo,
    VoteMode,
    initial_state,
    reduce,
)

logger = logging.getLogger(__name__)

# Exit animation length before the decision commits (seconds)
ANIMATION_DELAY = 0.3


class VoteBackend(Protocol):
    async def fetch_unvoted(self) -> List[Pair]: ...

    async def create_vote(self, caption_id: str, vote_value: int) -> dict: ...

    async def update_vote(self, caption_id: str, vote_value: int) -> dict: ...


class SwipeSession:
    """One voting session: state, event dispatch and background effects."""

    def __init__(
        self,
        backend: VoteBackend,
        initial_pairs: Iterable[Pair] = (),
        *,
        animation_delay: float = ANIMATION_DELAY,
        on_change: Optional[Callable[[SwipeState], None]] = None,
    ) -> None:
        self.backend = backend
        self.state = initial_state(initial_pairs)
        self.animation_delay = animation_delay
        self.on_change = on_change
        self._tasks: Set[asyncio.Task] = set()

    # -- public gestures ---------------------------------------------------

    def start(self) -> None:
        """Run the first low-buffer check. Needs a running event loop."""
        self.dispatch(CheckBuffer())

    def refresh(self) -> None:
        """Ask for more pairs even if the last refill came back empty."""
        self.dispatch(CheckBuffer())

    def decide(self, direction: Direction) -> None:
        self.dispatch(Decide(direction))

    def upvote(self) -> None:
        self.decide(Direction.UP)

    def downvote(self) -> None:
        self.decide(Direction.DOWN)

    def undo(self) -> None:
        self.dispatch(Undo())

    def drag_start(self) -> None:
        self.dispatch(DragStart())

    def drag_move(self, dx: float) -> None:
        self.dispatch(DragMove(dx))

    def drag_release(self) -> None:
        self.dispatch(DragRelease())

    # -- core --------------------------------------------------------------

    def dispatch(self, event: Event) -> SwipeState:
        transition = reduce(self.state, event)
        self.state = transition.state
        if self.on_change is not None:
            self.on_change(self.state)
        for effect in transition.effects:
            self._spawn(self._run(effect))
        return self.state

    async def drain(self) -> None:
        """Wait until no background effect is left running."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    def _spawn(self, coro) -> None:
        task = asyncio.get_running_loop().create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _run(self, effect: Effect) -> None:
        if isinstance(effect, StartAnimation):
            await asyncio.sleep(self.animation_delay)
            self.dispatch(AnimationComplete())
        elif isinstance(effect, SubmitVote):
            await self._submit(effect)
        elif isinstance(effect, FetchUnvoted):
            await self._fetch()

    async def _submit(self, effect: SubmitVote) -> None:
        try:
            if effect.mode is VoteMode.UPDATE:
                await self.backend.update_vote(effect.caption_id, effect.vote_value)
            else:
                await self.backend.create_vote(effect.caption_id, effect.vote_value)
        except Exception as exc:
            logger.debug("vote %s for %s dropped: %s", effect.mode.value, effect.caption_id, exc)

    async def _fetch(self) -> None:
        try:
            pairs = await self.backend.fetch_unvoted()
        except Exception as exc:
            logger.debug("refill failed: %s", exc)
            self.dispatch(FetchFailed(str(exc)))
            return
        self.dispatch(FetchSucceeded(tuple(pairs)))
