"""Execution engine running registered rules and constraints over state."""

from __future__ import annotations

import copy
import logging
from dataclasses import dataclass, field, replace
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple, Union

from pydantic import ValidationError

from ..core.errors import EngineBusyError
from ..core.protocol import PROTOCOL_VERSION, Diagnostic, Event, Fact, State, StepResult
from ..rules.descriptors import ConstraintDescriptor, RuleDescriptor
from ..rules.registry import PraxisRegistry
from .actors import StateListener, Unsubscribe
from .history import DEFAULT_MAX_HISTORY_SIZE, HistoryStack

LOGGER = logging.getLogger(__name__)

EventLike = Union[Event, Mapping[str, Any]]
FactLike = Union[Fact, Mapping[str, Any]]
ContextUpdater = Callable[[Any], Any]


@dataclass(frozen=True)
class EngineOptions:
    """Configuration of a :class:`LogicEngine`.

    ``strict`` selects the commit policy. With the default (``False``)
    constraint violations are advisory and every step commits. With
    ``strict=True`` a step producing any ``error`` severity violation is
    rolled back and its result reports ``committed=False``.
    """

    initial_context: Any = None
    registry: PraxisRegistry = field(default_factory=PraxisRegistry)
    initial_facts: Sequence[FactLike] = ()
    initial_meta: Mapping[str, Any] = field(default_factory=dict)
    enable_history: bool = False
    max_history_size: int = DEFAULT_MAX_HISTORY_SIZE
    strict: bool = False
    protocol_version: str = PROTOCOL_VERSION


@dataclass
class DraftState:
    """Exclusively owned working copy handed to rules and constraints.

    ``context`` is a deep copy of the committed context; rules mutate it
    in place. ``facts`` lists the committed facts followed by the facts
    emitted so far in the current step.
    """

    context: Any
    committed_facts: Tuple[Fact, ...]
    new_facts: List[Fact]
    meta: Dict[str, Any]
    protocol_version: str

    @property
    def facts(self) -> List[Fact]:
        return [*self.committed_facts, *self.new_facts]


class LogicEngine:
    """Owns one committed state and advances it one step at a time.

    The engine is synchronous and not reentrant: calling a mutating
    operation from inside a rule or constraint raises
    :class:`~praxis.core.errors.EngineBusyError`. Subscribers run after
    the step has finished, so they may call :meth:`step` again.
    """

    def __init__(self, options: EngineOptions) -> None:
        self._listeners: List[StateListener] = []
        self._stepping = False
        self._configure(options)

    # --------------------------------------------------------------- accessors
    @property
    def options(self) -> EngineOptions:
        return self._options

    @property
    def registry(self) -> PraxisRegistry:
        return self._options.registry

    @property
    def is_stepping(self) -> bool:
        return self._stepping

    @property
    def can_undo(self) -> bool:
        return self._history is not None and self._history.can_undo

    @property
    def can_redo(self) -> bool:
        return self._history is not None and self._history.can_redo

    def get_state(self) -> State:
        return self._state.model_copy(deep=True)

    def get_context(self) -> Any:
        return copy.deepcopy(self._state.context)

    def get_facts(self) -> List[Fact]:
        return [fact.model_copy(deep=True) for fact in self._state.facts]

    # ------------------------------------------------------------------- step
    def step(self, events: Iterable[EventLike]) -> StepResult:
        """Run every rule, then every constraint, and commit per the policy."""

        return self.step_with_config(events, self.registry.rule_ids(), self.registry.constraint_ids())

    def step_with_config(
        self,
        events: Iterable[EventLike],
        rule_ids: Sequence[str],
        constraint_ids: Sequence[str],
    ) -> StepResult:
        """Run only the given rules and constraints, in the given order.

        An id missing from the registry is reported as a ``rule-error``
        diagnostic and skipped. Commit, history and notification behave
        exactly as in :meth:`step`.
        """

        self._guard("step")
        batch = tuple(_to_event(event) for event in events)
        diagnostics: List[Diagnostic] = []
        self._stepping = True
        try:
            draft = self._draft()
            for rule_id in rule_ids:
                rule = self.registry.get_rule(rule_id)
                if rule is None:
                    diagnostics.append(Diagnostic.rule_error(rule_id, f"Rule '{rule_id}' not found in registry"))
                    continue
                self._run_rule(rule, draft, batch, diagnostics)
            for constraint_id in constraint_ids:
                constraint = self.registry.get_constraint(constraint_id)
                if constraint is None:
                    diagnostics.append(
                        Diagnostic.constraint_error(constraint_id, f"Constraint '{constraint_id}' not found in registry")
                    )
                    continue
                self._check_constraint(constraint, draft, diagnostics)
            committed = not (self._options.strict and _has_blocking_violation(diagnostics))
            if committed:
                self._commit(self._state_from(draft))
            else:
                LOGGER.info("Strict mode: step rolled back after %d diagnostic(s)", len(diagnostics))
        finally:
            self._stepping = False
        if committed:
            self._notify()
        return StepResult(state=self.get_state(), diagnostics=diagnostics, committed=committed)

    # ------------------------------------------------------- direct mutation
    def update_context(self, updater: ContextUpdater) -> State:
        """Change the context without running rules or constraints.

        ``updater`` receives a private copy of the context. It may mutate
        that copy and return ``None`` or return a replacement context.
        """

        self._guard("update_context")
        context = copy.deepcopy(self._state.context)
        result = updater(context)
        if result is not None:
            context = copy.deepcopy(result)
        return self._apply(context=context)

    def add_facts(self, facts: Iterable[FactLike]) -> State:
        self._guard("add_facts")
        return self._apply(facts=[*self._state.facts, *(_to_fact(fact) for fact in facts)])

    def clear_facts(self) -> State:
        self._guard("clear_facts")
        return self._apply(facts=[])

    # ---------------------------------------------------------------- history
    def undo(self) -> bool:
        """Restore the previous committed state. No-op when unavailable."""

        self._guard("undo")
        if self._history is None:
            return False
        previous = self._history.undo(self._state)
        if previous is None:
            return False
        self._state = previous
        self._notify()
        return True

    def redo(self) -> bool:
        self._guard("redo")
        if self._history is None:
            return False
        following = self._history.redo(self._state)
        if following is None:
            return False
        self._state = following
        self._notify()
        return True

    def reset(self, options: Optional[EngineOptions] = None, **changes: Any) -> None:
        """Reinitialise state and history from ``options``.

        Without ``options`` the current options are reused; keyword
        arguments override individual fields.
        """

        self._guard("reset")
        base = options or self._options
        if changes:
            base = replace(base, **changes)
        self._configure(base)
        self._notify()

    # ----------------------------------------------------------- subscriptions
    def subscribe(self, listener: StateListener) -> Unsubscribe:
        """Call ``listener`` with a copy of every newly committed state."""

        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    # ---------------------------------------------------------------- helpers
    def _configure(self, options: EngineOptions) -> None:
        self._options = options
        self._state = State(
            context=copy.deepcopy(options.initial_context),
            facts=[_to_fact(fact) for fact in options.initial_facts],
            meta=dict(options.initial_meta),
            protocol_version=options.protocol_version,
        )
        self._history = HistoryStack(options.max_history_size) if options.enable_history else None

    def _guard(self, operation: str) -> None:
        if self._stepping:
            raise EngineBusyError(operation)

    def _draft(self) -> DraftState:
        return DraftState(
            context=copy.deepcopy(self._state.context),
            committed_facts=tuple(fact.model_copy(deep=True) for fact in self._state.facts),
            new_facts=[],
            meta=copy.deepcopy(self._state.meta),
            protocol_version=self._options.protocol_version,
        )

    def _state_from(self, draft: DraftState) -> State:
        return State(
            context=draft.context,
            facts=draft.facts,
            meta=draft.meta,
            protocol_version=self._options.protocol_version,
        )

    def _run_rule(
        self,
        rule: RuleDescriptor,
        draft: DraftState,
        events: Tuple[Event, ...],
        diagnostics: List[Diagnostic],
    ) -> None:
        try:
            produced = rule.impl(draft, events)
            facts = _to_facts(produced)
        except Exception as exc:
            message = f"Error executing rule '{rule.id}': {exc}"
            LOGGER.warning(message)
            diagnostics.append(Diagnostic.rule_error(rule.id, message, error=type(exc).__name__))
            return
        draft.new_facts.extend(facts)

    def _check_constraint(
        self,
        constraint: ConstraintDescriptor,
        draft: DraftState,
        diagnostics: List[Diagnostic],
    ) -> None:
        try:
            outcome = constraint.impl(draft)
        except Exception as exc:
            message = f"Error checking constraint '{constraint.id}': {exc}"
            LOGGER.warning(message)
            diagnostics.append(Diagnostic.constraint_error(constraint.id, message, error=type(exc).__name__))
            return
        if outcome is True:
            return
        if outcome is False or isinstance(outcome, str):
            message = outcome or f"Constraint '{constraint.id}' violated"
            diagnostics.append(
                Diagnostic.constraint_violation(
                    constraint.id,
                    message,
                    constraint.severity,
                    description=constraint.description,
                )
            )
            return
        diagnostics.append(
            Diagnostic.constraint_error(
                constraint.id,
                f"Constraint '{constraint.id}' returned {type(outcome).__name__}, expected True or a message",
            )
        )

    def _apply(self, *, context: Any = None, facts: Optional[List[Fact]] = None) -> State:
        current = self._state
        self._commit(
            State(
                context=current.context if context is None else context,
                facts=current.facts if facts is None else facts,
                meta=copy.deepcopy(current.meta),
                protocol_version=self._options.protocol_version,
            )
        )
        self._notify()
        return self.get_state()

    def _commit(self, state: State) -> None:
        if self._history is not None:
            self._history.record(self._state)
        self._state = state
        LOGGER.debug("Committed state with %d fact(s)", len(state.facts))

    def _notify(self) -> None:
        for listener in list(self._listeners):
            try:
                listener(self.get_state())
            except Exception:
                LOGGER.exception("State listener %r failed", listener)


def create_engine(options: Optional[EngineOptions] = None, **kwargs: Any) -> LogicEngine:
    """Create a :class:`LogicEngine` from options and/or keyword overrides."""

    if options is None:
        options = EngineOptions(**kwargs)
    elif kwargs:
        options = replace(options, **kwargs)
    return LogicEngine(options)


def _has_blocking_violation(diagnostics: Sequence[Diagnostic]) -> bool:
    return any(
        diagnostic.kind == "constraint-violation" and diagnostic.severity == "error"
        for diagnostic in diagnostics
    )


def _to_event(event: EventLike) -> Event:
    if not isinstance(event, Event):
        event = Event.model_validate(event)
    return event.model_copy(deep=True)


def _to_fact(fact: FactLike) -> Fact:
    # Payloads are mutable; the engine never keeps a caller's object.
    if not isinstance(fact, Fact):
        fact = Fact.model_validate(fact)
    return fact.model_copy(deep=True)


def _to_facts(produced: Any) -> List[Fact]:
    if produced is None:
        return []
    if isinstance(produced, (str, bytes, Mapping)) or not isinstance(produced, Iterable):
        raise TypeError(f"rule returned {type(produced).__name__}, expected a list of facts")
    try:
        return [_to_fact(fact) for fact in produced]
    except ValidationError as exc:
        raise TypeError(f"rule returned an invalid fact: {exc.errors()[0]['msg']}") from exc


__all__ = ["ContextUpdater", "DraftState", "EngineOptions", "LogicEngine", "create_engine"]
