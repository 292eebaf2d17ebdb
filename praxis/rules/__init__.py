"""Public package interface for the rule/constraint registry."""

from .descriptors import (
    ConstraintDescriptor,
    ConstraintFn,
    ConstraintSeverity,
    PraxisModule,
    RuleDescriptor,
    RuleFn,
)
from .errors import RegistrationError, RegistryLoadError
from .introspection import GraphEdge, GraphNode, RegistryGraph, RegistryIntrospector, RegistryStats
from .loader import load_registry
from .registry import DuplicatePolicy, PraxisRegistry, RegistryCompliance

__all__ = [
    "ConstraintDescriptor",
    "ConstraintFn",
    "ConstraintSeverity",
    "DuplicatePolicy",
    "GraphEdge",
    "GraphNode",
    "PraxisModule",
    "PraxisRegistry",
    "RegistrationError",
    "RegistryCompliance",
    "RegistryGraph",
    "RegistryIntrospector",
    "RegistryLoadError",
    "RegistryStats",
    "RuleDescriptor",
    "RuleFn",
    "load_registry",
]
