"""
Policy evaluator for the document-store rules engine.

Features
--------
* Resolves a document path to its rule via the registry's template matcher.
* Runs the rule's predicate for the requested operation against the path
  bindings, the caller's identity, the *before* snapshot and the proposed
  data.
* Fail-closed: an unmatched path, or an operation the rule does not
  declare, is ``Deny(NoMatchingRule)``.

:func:`evaluate` is pure. It performs no I/O, holds no state and never
raises for an authorization failure, so one registry can serve concurrent
callers without locking. Auditing and logging belong to the callers.

Store contract
--------------
For writes, the caller must commit *only if* the document still matches the
``before`` snapshot that was evaluated (a transactional read-then-write).
Without that, two first-writers to ``/settings/admins`` could both observe a
missing roster and both be allowed.
"""

from __future__ import annotations

from typing import Any, Dict, Mapping, Optional, Sequence, Union

from pydantic import BaseModel, ConfigDict, Field

from docrules.model import (
    AuthContext,
    Decision,
    DenyReason,
    DocumentSnapshot,
    Operation,
    PathLike,
    split_path,
)
from docrules.predicates import deny_reason
from docrules.registry import RuleRegistry


class AccessRequest(BaseModel):
    """One request descriptor as assembled by the store's request path."""

    model_config = ConfigDict(frozen=True)

    path: Union[str, Sequence[str]]
    operation: Operation
    auth: AuthContext = Field(default_factory=AuthContext)
    before: DocumentSnapshot = Field(default_factory=DocumentSnapshot)
    proposed: Optional[Dict[str, Any]] = None


def evaluate(
    registry: RuleRegistry,
    path: PathLike,
    operation: Union[Operation, str],
    auth: Optional[AuthContext] = None,
    before: Optional[DocumentSnapshot] = None,
    proposed: Optional[Mapping[str, Any]] = None,
) -> Decision:
    """Decide **Allow** or **Deny(reason)** for one request.

    ``auth=None`` is an unauthenticated caller and ``before=None`` a missing
    document. A path with empty segments cannot name a document and is
    ``Deny(NoMatchingRule)``. An unknown *operation* name raises
    ``ValueError``; that is a caller bug, not a denial.
    """
    op = Operation(operation)
    try:
        segments = split_path(path)
    except ValueError:
        return Decision.deny(DenyReason.NO_MATCHING_RULE)
    auth = auth if auth is not None else AuthContext.anonymous()
    before = before if before is not None else DocumentSnapshot.missing()

    resolved = registry.resolve(segments)
    if resolved is None:
        return Decision.deny(DenyReason.NO_MATCHING_RULE)
    rule, bindings = resolved

    pred = rule.predicate_for(op)
    if pred is None:
        return Decision.deny(DenyReason.NO_MATCHING_RULE)

    if pred(bindings, auth, before, proposed):
        return Decision.allow()
    return Decision.deny(deny_reason(pred, bindings, auth, before, proposed))


def evaluate_request(registry: RuleRegistry, request: AccessRequest) -> Decision:
    return evaluate(
        registry,
        request.path,
        request.operation,
        request.auth,
        request.before,
        request.proposed,
    )
