"""Logic engine, history and actor notification."""

from .actors import Actor, ActorManager, StateListener, Unsubscribe
from .engine import ContextUpdater, DraftState, EngineOptions, LogicEngine, create_engine
from .history import DEFAULT_MAX_HISTORY_SIZE, HistoryStack

__all__ = [
    "Actor",
    "ActorManager",
    "ContextUpdater",
    "DEFAULT_MAX_HISTORY_SIZE",
    "DraftState",
    "EngineOptions",
    "HistoryStack",
    "LogicEngine",
    "StateListener",
    "Unsubscribe",
    "create_engine",
]
