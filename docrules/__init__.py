"""
docrules package initialization.

Authorization rules for a hierarchical document store: path-template
matching, ownership checks and the one-time "claim root admin" bootstrap.
Build one registry with :func:`build_registry` and pass it to
:func:`evaluate` for every request.
"""

from docrules.evaluator import AccessRequest, evaluate, evaluate_request
from docrules.model import AuthContext, Decision, DenyReason, DocumentSnapshot, Operation
from docrules.registry import Rule, RuleRegistry, RegistryError, build_registry

__all__ = [
    "AccessRequest",
    "AuthContext",
    "Decision",
    "DenyReason",
    "DocumentSnapshot",
    "Operation",
    "RegistryError",
    "Rule",
    "RuleRegistry",
    "build_registry",
    "evaluate",
    "evaluate_request",
]
