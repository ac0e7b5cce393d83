"""
machine.py — Swipe queue and single-level undo as a pure reducer
================================================================
``reduce(state, event) -> Transition(state, effects)``

State is immutable; effects are plain data describing network calls the
driver should start in the background. Nothing here awaits, sleeps or
touches the network, so every transition can be tested directly.

Phases:
  idle       head present, accepting decisions
  animating  exit animation running, decisions locked
  empty      nothing left to show

  idle      --Decide-------------> animating
  animating --AnimationComplete--> idle | empty   (+ SubmitVote)
  idle|empty --Undo--------------> idle            (+ SubmitVote update)

After every transition a queue shorter than LOW_BUFFER requests a
refill (FetchUnvoted) unless one is already in flight or the last
refill came back empty. CheckBuffer always re-checks.
"""
from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Tuple, Union

# Refill when fewer than this many pairs are queued
LOW_BUFFER = 3
# Horizontal drag (px) that commits a decision
SWIPE_THRESHOLD = 100.0

UP = 1
DOWN = -1


class Phase(str, Enum):
    IDLE = "idle"
    ANIMATING = "animating"
    EMPTY = "empty"


class Direction(str, Enum):
    UP = "up"        # swipe right
    DOWN = "down"    # swipe left

    @property
    def vote_value(self) -> int:
        return UP if self is Direction.UP else DOWN


@dataclass(frozen=True)
class Pair:
    """A caption with its image, as queued for voting."""
    id: str
    content: Optional[str]
    image_id: str
    image_url: Optional[str]
    image_description: Optional[str] = None

    @property
    def is_complete(self) -> bool:
        return bool(self.content) and bool(self.image_url)

    @classmethod
    def from_payload(cls, payload: Dict[str, Any]) -> "Pair":
        image = payload.get("images") or {}
        return cls(
            id=str(payload["id"]),
            content=payload.get("content"),
            image_id=str(payload.get("image_id", image.get("id", ""))),
            image_url=image.get("url"),
            image_description=image.get("image_description"),
        )


@dataclass(frozen=True)
class LastVote:
    pair: Pair
    vote_value: int


@dataclass(frozen=True)
class SwipeState:
    queue: Tuple[Pair, ...] = ()
    voted_ids: frozenset = frozenset()
    last_vote: Optional[LastVote] = None
    phase: Phase = Phase.EMPTY
    pending_vote: Optional[int] = None
    drag_x: float = 0.0
    dragging: bool = False
    fetching: bool = False
    # Set when a refill came back with nothing new. Automatic refills stop
    # until a decision, an undo or an explicit CheckBuffer clears it.
    exhausted: bool = False

    @property
    def head(self) -> Optional[Pair]:
        return self.queue[0] if self.queue else None

    @property
    def can_undo(self) -> bool:
        return self.last_vote is not None and self.phase is not Phase.ANIMATING

    @property
    def known_ids(self) -> frozenset:
        return self.voted_ids | {p.id for p in self.queue}


# ---------------------------------------------------------------------------
# Events
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Decide:
    direction: Direction


@dataclass(frozen=True)
class AnimationComplete:
    pass


@dataclass(frozen=True)
class Undo:
    pass


@dataclass(frozen=True)
class DragStart:
    pass


@dataclass(frozen=True)
class DragMove:
    dx: float


@dataclass(frozen=True)
class DragRelease:
    pass


@dataclass(frozen=True)
class FetchSucceeded:
    pairs: Tuple[Pair, ...]


@dataclass(frozen=True)
class FetchFailed:
    error: str = ""


@dataclass(frozen=True)
class CheckBuffer:
    """Explicit poll: forgets an exhausted feed, then runs the low-buffer check."""


Event = Union[
    Decide, AnimationComplete, Undo, DragStart, DragMove, DragRelease,
    FetchSucceeded, FetchFailed, CheckBuffer,
]


# ---------------------------------------------------------------------------
# Effects
# ---------------------------------------------------------------------------

class VoteMode(str, Enum):
    CREATE = "create"
    UPDATE = "update"


@dataclass(frozen=True)
class SubmitVote:
    caption_id: str
    vote_value: int
    mode: VoteMode


@dataclass(frozen=True)
class FetchUnvoted:
    pass


@dataclass(frozen=True)
class StartAnimation:
    direction: Direction


Effect = Union[SubmitVote, FetchUnvoted, StartAnimation]


@dataclass(frozen=True)
class Transition:
    state: SwipeState
    effects: Tuple[Effect, ...] = field(default_factory=tuple)


# ---------------------------------------------------------------------------
# Reducer
# ---------------------------------------------------------------------------

def initial_state(pairs: Iterable[Pair] = ()) -> SwipeState:
    queue = tuple(p for p in pairs if p.is_complete)
    return SwipeState(queue=queue, phase=Phase.IDLE if queue else Phase.EMPTY)


def _settle(state: SwipeState) -> SwipeState:
    """Recompute idle/empty after the queue changed (never leaves animating)."""
    if state.phase is Phase.ANIMATING:
        return state
    return replace(state, phase=Phase.IDLE if state.queue else Phase.EMPTY)


def _decide(state: SwipeState, direction: Direction) -> Transition:
    if state.phase is not Phase.IDLE or state.head is None:
        return Transition(state)
    new = replace(
        state,
        phase=Phase.ANIMATING,
        pending_vote=direction.vote_value,
        dragging=False,
        exhausted=False,
    )
    return Transition(new, (StartAnimation(direction),))


def _complete(state: SwipeState) -> Transition:
    if state.phase is not Phase.ANIMATING or state.head is None or state.pending_vote is None:
        return Transition(state)
    head, value = state.head, state.pending_vote
    mode = VoteMode.UPDATE if head.id in state.voted_ids else VoteMode.CREATE
    rest = state.queue[1:]
    new = replace(
        state,
        queue=rest,
        voted_ids=state.voted_ids | {head.id},
        last_vote=LastVote(pair=head, vote_value=value),
        phase=Phase.IDLE if rest else Phase.EMPTY,
        pending_vote=None,
        drag_x=0.0,
        dragging=False,
    )
    return Transition(new, (SubmitVote(head.id, value, mode),))


def _undo(state: SwipeState) -> Transition:
    if not state.can_undo:
        return Transition(state)
    last = state.last_vote
    new = replace(
        state,
        queue=(last.pair,) + state.queue,
        last_vote=None,
        phase=Phase.IDLE,
        drag_x=0.0,
        exhausted=False,
    )
    flipped = -last.vote_value
    return Transition(new, (SubmitVote(last.pair.id, flipped, VoteMode.UPDATE),))


def _release(state: SwipeState) -> Transition:
    if not state.dragging:
        return Transition(state)
    released = replace(state, dragging=False)
    if state.drag_x > SWIPE_THRESHOLD:
        return _decide(released, Direction.UP)
    if state.drag_x < -SWIPE_THRESHOLD:
        return _decide(released, Direction.DOWN)
    return Transition(replace(released, drag_x=0.0))


def _merge_fetched(state: SwipeState, pairs: Iterable[Pair]) -> Transition:
    known = set(state.known_ids)
    fresh: List[Pair] = []
    for pair in pairs:
        if pair.id in known or not pair.is_complete:
            continue
        known.add(pair.id)
        fresh.append(pair)
    new = replace(
        state,
        queue=state.queue + tuple(fresh),
        fetching=False,
        exhausted=not fresh,
    )
    return Transition(_settle(new))


def _apply(state: SwipeState, event: Event) -> Transition:
    if isinstance(event, Decide):
        return _decide(state, event.direction)
    if isinstance(event, AnimationComplete):
        return _complete(state)
    if isinstance(event, Undo):
        return _undo(state)
    if isinstance(event, DragStart):
        if state.phase is not Phase.IDLE:
            return Transition(state)
        return Transition(replace(state, dragging=True, drag_x=0.0))
    if isinstance(event, DragMove):
        if not state.dragging:
            return Transition(state)
        return Transition(replace(state, drag_x=float(event.dx)))
    if isinstance(event, DragRelease):
        return _release(state)
    if isinstance(event, FetchSucceeded):
        return _merge_fetched(state, event.pairs)
    if isinstance(event, FetchFailed):
        return Transition(replace(state, fetching=False))
    if isinstance(event, CheckBuffer):
        return Transition(replace(state, exhausted=False))
    raise TypeError(f"Unknown swipe event: {event!r}")


def reduce(state: SwipeState, event: Event) -> Transition:
    """Apply one event, then request a refill if the buffer ran low."""
    transition = _apply(state, event)
    new = transition.state
    effects = transition.effects
    # A failed fetch is retried at the next check, not in the same breath
    if isinstance(event, FetchFailed):
        return Transition(new, effects)
    if len(new.queue) < LOW_BUFFER and not new.fetching and not new.exhausted:
        new = replace(new, fetching=True)
        effects = effects + (FetchUnvoted(),)
    return Transition(new, effects)
