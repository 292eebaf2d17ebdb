"""Actor lifecycle management on top of engine subscriptions.

Actors are effectful units (network, storage, timers) that observe
committed state and may feed new events back into the engine. The engine
never runs them during a step: they are notified after a commit through
the engine's ordinary subscription mechanism.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Callable, Dict, List, Optional, Protocol, Set

from ..core.errors import ActorError
from ..core.protocol import State

if TYPE_CHECKING:  # pragma: no cover - typing only
    from .engine import LogicEngine

LOGGER = logging.getLogger(__name__)

StateListener = Callable[[State], None]
Unsubscribe = Callable[[], None]


class Actor(Protocol):
    """Structural interface implemented by actors.

    ``on_start``, ``on_state_change`` and ``on_stop`` are looked up with
    ``getattr`` so an actor only needs to define the hooks it uses.
    """

    id: str
    description: str


class ActorManager:
    """Registers actors, drives their lifecycle and forwards state changes."""

    def __init__(self) -> None:
        self._actors: Dict[str, Actor] = {}
        self._active: Set[str] = set()
        self._engine: Optional["LogicEngine"] = None
        self._unsubscribe: Optional[Unsubscribe] = None

    # ------------------------------------------------------------ registration
    def register(self, actor: Actor) -> None:
        if actor.id in self._actors:
            raise ActorError(f"Actor with id '{actor.id}' already registered")
        self._actors[actor.id] = actor

    def unregister(self, actor_id: str) -> None:
        if actor_id in self._active:
            raise ActorError(f"Cannot unregister active actor '{actor_id}'. Stop it first.")
        self._actors.pop(actor_id, None)

    # ----------------------------------------------------------------- engine
    def attach_engine(self, engine: "LogicEngine") -> None:
        """Subscribe to ``engine`` so active actors see every commit."""

        self.detach_engine()
        self._engine = engine
        self._unsubscribe = engine.subscribe(self.notify_state_change)

    def detach_engine(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
        self._unsubscribe = None
        self._engine = None

    # -------------------------------------------------------------- lifecycle
    def start(self, actor_id: str) -> None:
        actor = self._require(actor_id)
        if actor_id in self._active:
            raise ActorError(f"Actor '{actor_id}' is already started")
        if self._engine is None:
            raise ActorError("Actor manager not attached to an engine")
        self._active.add(actor_id)
        hook = getattr(actor, "on_start", None)
        if hook is not None:
            hook(self._engine)

    def stop(self, actor_id: str) -> None:
        actor = self._require(actor_id)
        if actor_id not in self._active:
            return
        self._active.discard(actor_id)
        hook = getattr(actor, "on_stop", None)
        if hook is not None:
            hook()

    def start_all(self) -> None:
        for actor_id in list(self._actors):
            if actor_id not in self._active:
                self.start(actor_id)

    def stop_all(self) -> None:
        for actor_id in [actor_id for actor_id in self._actors if actor_id in self._active]:
            self.stop(actor_id)

    def notify_state_change(self, state: State) -> None:
        """Forward ``state`` to every active actor in registration order.

        A failing actor is logged and does not prevent the others from
        being notified.
        """

        if self._engine is None:
            return
        for actor_id, actor in list(self._actors.items()):
            if actor_id not in self._active:
                continue
            hook = getattr(actor, "on_state_change", None)
            if hook is None:
                continue
            try:
                hook(state, self._engine)
            except Exception:
                LOGGER.exception("Actor '%s' failed while handling a state change", actor_id)

    # ---------------------------------------------------------------- queries
    def actor_ids(self) -> List[str]:
        return list(self._actors)

    def active_actor_ids(self) -> List[str]:
        return [actor_id for actor_id in self._actors if actor_id in self._active]

    def is_active(self, actor_id: str) -> bool:
        return actor_id in self._active

    def _require(self, actor_id: str) -> Actor:
        try:
            return self._actors[actor_id]
        except KeyError as exc:
            raise ActorError(f"Actor '{actor_id}' not found") from exc


__all__ = ["Actor", "ActorManager", "StateListener", "Unsubscribe"]
