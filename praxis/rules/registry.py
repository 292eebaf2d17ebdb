"""Registry holding rule and constraint descriptors keyed by id."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Literal, Mapping, Optional, Sequence, Tuple, TypeVar, Union

from ..ledger.contracts import (
    DEFAULT_REQUIRED_FIELDS,
    Contract,
    ContractGap,
    GapSeverity,
    get_contract,
    missing_fields,
)
from .descriptors import (
    ConstraintDescriptor,
    ConstraintSeverity,
    PraxisModule,
    RuleDescriptor,
)
from .errors import RegistrationError

LOGGER = logging.getLogger(__name__)

FuncT = TypeVar("FuncT", bound=Callable[..., Any])
Descriptor = Union[RuleDescriptor, ConstraintDescriptor]
DuplicatePolicy = Literal["replace", "error"]


@dataclass(frozen=True)
class RegistryCompliance:
    """Contract compliance checking performed at registration time."""

    enabled: bool = False
    required_fields: Sequence[str] = DEFAULT_REQUIRED_FIELDS
    missing_severity: GapSeverity = "warning"
    incomplete_severity: GapSeverity = "warning"


class PraxisRegistry:
    """Ordered store of rule and constraint descriptors.

    Rules and constraints live in separate namespaces. Registering an id
    twice replaces the earlier descriptor in place (last write wins) so
    modules can be re-registered on hot reload; pass
    ``on_duplicate="error"`` to reject duplicates instead.
    """

    def __init__(
        self,
        *,
        compliance: Optional[RegistryCompliance] = None,
        on_duplicate: DuplicatePolicy = "replace",
    ) -> None:
        self._rules: Dict[str, RuleDescriptor] = {}
        self._constraints: Dict[str, ConstraintDescriptor] = {}
        self._gaps: List[ContractGap] = []
        self._replacements: List[Tuple[str, str]] = []
        self._module_count = 0
        self.compliance = compliance or RegistryCompliance()
        self.on_duplicate = on_duplicate

    # ------------------------------------------------------------- registration
    def register_rule(self, descriptor: RuleDescriptor) -> None:
        self._store("rule", self._rules, descriptor)

    def register_constraint(self, descriptor: ConstraintDescriptor) -> None:
        self._store("constraint", self._constraints, descriptor)

    def register_module(self, module: PraxisModule) -> None:
        for rule in module.rules:
            self.register_rule(rule)
        for constraint in module.constraints:
            self.register_constraint(constraint)
        self._module_count += 1

    def rule(
        self,
        rule_id: str,
        description: str = "",
        *,
        contract: Optional[Contract | Mapping[str, Any]] = None,
        meta: Optional[Mapping[str, Any]] = None,
    ) -> Callable[[FuncT], FuncT]:
        """Decorator registering the wrapped function as a rule."""

        def decorator(func: FuncT) -> FuncT:
            self.register_rule(
                RuleDescriptor(
                    id=rule_id,
                    description=description or _first_doc_line(func),
                    impl=func,
                    contract=contract,
                    meta=meta or {},
                )
            )
            return func

        return decorator

    def constraint(
        self,
        constraint_id: str,
        description: str = "",
        *,
        severity: ConstraintSeverity = "error",
        contract: Optional[Contract | Mapping[str, Any]] = None,
        meta: Optional[Mapping[str, Any]] = None,
    ) -> Callable[[FuncT], FuncT]:
        """Decorator registering the wrapped function as a constraint."""

        def decorator(func: FuncT) -> FuncT:
            self.register_constraint(
                ConstraintDescriptor(
                    id=constraint_id,
                    description=description or _first_doc_line(func),
                    impl=func,
                    severity=severity,
                    contract=contract,
                    meta=meta or {},
                )
            )
            return func

        return decorator

    # ------------------------------------------------------------------- access
    def get_rule(self, rule_id: str) -> Optional[RuleDescriptor]:
        return self._rules.get(rule_id)

    def get_constraint(self, constraint_id: str) -> Optional[ConstraintDescriptor]:
        return self._constraints.get(constraint_id)

    def get_all_rules(self) -> List[RuleDescriptor]:
        """Return rules in execution order.

        Higher ``meta["priority"]`` runs first; equal priorities keep
        registration order.
        """

        return _ordered(self._rules.values())

    def get_all_constraints(self) -> List[ConstraintDescriptor]:
        return _ordered(self._constraints.values())

    def rule_ids(self) -> List[str]:
        return [rule.id for rule in self.get_all_rules()]

    def constraint_ids(self) -> List[str]:
        return [constraint.id for constraint in self.get_all_constraints()]

    @property
    def module_count(self) -> int:
        return self._module_count

    @property
    def replacements(self) -> List[Tuple[str, str]]:
        """``(kind, id)`` pairs for every descriptor that replaced another."""

        return list(self._replacements)

    # --------------------------------------------------------------------- gaps
    def get_contract_gaps(self) -> List[ContractGap]:
        return list(self._gaps)

    def clear_contract_gaps(self) -> None:
        self._gaps.clear()

    # ------------------------------------------------------------------ helpers
    def _store(self, kind: str, store: Dict[str, Any], descriptor: Descriptor) -> None:
        descriptor_id = getattr(descriptor, "id", None)
        if not isinstance(descriptor_id, str) or not descriptor_id.strip():
            raise RegistrationError(f"{kind.capitalize()} id must be a non-empty string, got {descriptor_id!r}")
        if descriptor_id in store:
            if self.on_duplicate == "error":
                raise RegistrationError(f"{kind.capitalize()} with id '{descriptor_id}' already registered")
            LOGGER.warning("Replacing already registered %s '%s'", kind, descriptor_id)
            self._replacements.append((kind, descriptor_id))
        store[descriptor_id] = descriptor
        self._check_compliance(kind, descriptor)

    def _check_compliance(self, kind: str, descriptor: Descriptor) -> None:
        if not self.compliance.enabled:
            return
        contract = get_contract(descriptor)
        if contract is None:
            gap = ContractGap(
                rule_id=descriptor.id,
                missing=["contract"],
                severity=self.compliance.missing_severity,
                kind=kind,
                message=f"{kind.capitalize()} '{descriptor.id}' has no contract",
            )
        else:
            missing = missing_fields(contract, self.compliance.required_fields)
            if not missing:
                return
            gap = ContractGap(
                rule_id=descriptor.id,
                missing=missing,
                severity=self.compliance.incomplete_severity,
                kind=kind,
                message=f"{kind.capitalize()} '{descriptor.id}' contract is incomplete: missing {', '.join(missing)}",
            )
        LOGGER.info("Contract gap recorded for %s '%s': %s", kind, descriptor.id, ", ".join(gap.missing))
        self._gaps.append(gap)


def _ordered(descriptors: Any) -> List[Any]:
    # sorted() is stable, so equal priorities keep insertion order.
    return sorted(descriptors, key=lambda descriptor: -descriptor.priority)


def _first_doc_line(func: Callable[..., Any]) -> str:
    doc = (func.__doc__ or "").strip()
    return doc.splitlines()[0] if doc else func.__name__


__all__ = ["DuplicatePolicy", "PraxisRegistry", "RegistryCompliance"]
