"""Read-only views over a registry for generators and tooling."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Literal, Optional

from ..core.protocol import PROTOCOL_VERSION
from .descriptors import ConstraintDescriptor, RuleDescriptor
from .registry import PraxisRegistry

EdgeType = Literal["triggers", "constrains", "depends-on"]

#: Metadata keys that declare edges, mapped to the edge type they produce.
_EDGE_KEYS: Dict[str, EdgeType] = {
    "triggers": "triggers",
    "constrains": "constrains",
    "dependsOn": "depends-on",
    "depends_on": "depends-on",
}


@dataclass(frozen=True)
class RegistryStats:
    rule_count: int
    constraint_count: int
    module_count: int
    rule_ids: List[str]
    constraint_ids: List[str]


@dataclass(frozen=True)
class GraphNode:
    id: str
    type: Literal["rule", "constraint"]
    description: str


@dataclass(frozen=True)
class GraphEdge:
    source: str
    target: str
    type: EdgeType


@dataclass
class RegistryGraph:
    nodes: List[GraphNode] = field(default_factory=list)
    edges: List[GraphEdge] = field(default_factory=list)


class RegistryIntrospector:
    """Exposes statistics, schema and graph exports for a registry."""

    def __init__(self, registry: PraxisRegistry) -> None:
        self._registry = registry

    def stats(self) -> RegistryStats:
        return RegistryStats(
            rule_count=len(self._registry.get_all_rules()),
            constraint_count=len(self._registry.get_all_constraints()),
            module_count=self._registry.module_count,
            rule_ids=self._registry.rule_ids(),
            constraint_ids=self._registry.constraint_ids(),
        )

    def generate_schema(self, protocol_version: str = PROTOCOL_VERSION) -> Dict[str, Any]:
        """Return a JSON friendly description of every descriptor."""

        rules = [_describe(rule, "rule") for rule in self._registry.get_all_rules()]
        constraints = [_describe(constraint, "constraint") for constraint in self._registry.get_all_constraints()]
        return {
            "protocolVersion": protocol_version,
            "rules": rules,
            "constraints": constraints,
            "meta": {"ruleCount": len(rules), "constraintCount": len(constraints)},
        }

    def generate_graph(self) -> RegistryGraph:
        graph = RegistryGraph()
        for rule in self._registry.get_all_rules():
            graph.nodes.append(GraphNode(rule.id, "rule", rule.description))
            graph.edges.extend(_edges(rule.id, rule.meta))
        for constraint in self._registry.get_all_constraints():
            graph.nodes.append(GraphNode(constraint.id, "constraint", constraint.description))
            graph.edges.extend(_edges(constraint.id, constraint.meta))
        return graph

    def export_dot(self) -> str:
        graph = self.generate_graph()
        lines = ["digraph PraxisRegistry {", "  rankdir=LR;"]
        for node in graph.nodes:
            shape = "box" if node.type == "rule" else "diamond"
            label = _escape(f"{node.id}\\n{node.description}")
            lines.append(f'  "{_escape(node.id)}" [shape={shape}, label="{label}"];')
        for edge in graph.edges:
            lines.append(f'  "{_escape(edge.source)}" -> "{_escape(edge.target)}" [label="{edge.type}"];')
        lines.append("}")
        return "\n".join(lines)

    def export_mermaid(self) -> str:
        graph = self.generate_graph()
        lines = ["graph LR"]
        for node in graph.nodes:
            node_id = _mermaid_id(node.id)
            if node.type == "rule":
                lines.append(f'  {node_id}["{node.id}"]')
            else:
                lines.append(f'  {node_id}{{"{node.id}"}}')
        for edge in graph.edges:
            lines.append(f"  {_mermaid_id(edge.source)} -->|{edge.type}| {_mermaid_id(edge.target)}")
        return "\n".join(lines)

    def get_rule_info(self, rule_id: str) -> Optional[RuleDescriptor]:
        return self._registry.get_rule(rule_id)

    def get_constraint_info(self, constraint_id: str) -> Optional[ConstraintDescriptor]:
        return self._registry.get_constraint(constraint_id)

    def search_rules(self, query: str) -> List[RuleDescriptor]:
        return [rule for rule in self._registry.get_all_rules() if _matches(rule, query)]

    def search_constraints(self, query: str) -> List[ConstraintDescriptor]:
        return [
            constraint for constraint in self._registry.get_all_constraints() if _matches(constraint, query)
        ]


def _describe(descriptor: Any, kind: str) -> Dict[str, Any]:
    entry: Dict[str, Any] = {
        "id": descriptor.id,
        "type": kind,
        "description": descriptor.description,
        "hasContract": descriptor.contract is not None or "contract" in descriptor.meta,
    }
    meta = {key: value for key, value in descriptor.meta.items() if key != "contract"}
    if meta:
        entry["meta"] = meta
    if kind == "constraint":
        entry["severity"] = descriptor.severity
    return entry


def _edges(source: str, meta: Any) -> Iterable[GraphEdge]:
    for key, edge_type in _EDGE_KEYS.items():
        targets = meta.get(key)
        if targets is None:
            continue
        if isinstance(targets, str):
            targets = [targets]
        for target in targets:
            yield GraphEdge(source, str(target), edge_type)


def _matches(descriptor: Any, query: str) -> bool:
    needle = query.lower()
    return needle in descriptor.id.lower() or needle in descriptor.description.lower()


def _escape(value: str) -> str:
    return value.replace('"', '\\"')


def _mermaid_id(value: str) -> str:
    return "".join(char if char.isalnum() or char == "_" else "_" for char in value)


__all__ = [
    "GraphEdge",
    "GraphNode",
    "RegistryGraph",
    "RegistryIntrospector",
    "RegistryStats",
]
