"""
Shared fixtures: an in-memory document store that consults the rules engine.

``RulesTestEnvironment`` plays the hosting store. Every client call reads the
``before`` snapshot, evaluates, and commits under one lock, i.e. the
transactional check-and-write the evaluator relies on. ``seed`` writes with
rules disabled, like fixture setup in an emulator.
"""

from __future__ import annotations

import threading
from typing import Any, Dict, Optional, Tuple

import pytest

from docrules.evaluator import evaluate
from docrules.model import AuthContext, Decision, DocumentSnapshot, Operation, split_path
from docrules.registry import RuleRegistry, build_registry

USERS = {
    "apple": ({"name": "apple", "no": 1}, {"email": "apple@email.com", "phoneNumber": "000-1111-1111"}),
    "banana": ({"name": "banana", "no": 2}, {"email": "banana@email.com", "phoneNumber": "000-2222-2222"}),
    "cherry": ({"name": "cherry", "no": 3}, {"email": "cherry@email.com", "phoneNumber": "000-3333-3333"}),
    "durian": ({"name": "durian", "no": 4}, {"email": "durian@email.com", "phoneNumber": "000-4444-4444"}),
}


class RulesTestEnvironment:
    def __init__(self, registry: RuleRegistry) -> None:
        self.registry = registry
        self._docs: Dict[Tuple[str, ...], Dict[str, Any]] = {}
        self._lock = threading.Lock()

    def clear(self) -> None:
        with self._lock:
            self._docs.clear()

    def seed(self, path: str, data: Dict[str, Any]) -> None:
        """Write without consulting the rules."""
        with self._lock:
            self._docs[split_path(path)] = dict(data)

    def data(self, path: str) -> Optional[Dict[str, Any]]:
        doc = self._docs.get(split_path(path))
        return dict(doc) if doc is not None else None

    def snapshot(self, path: str) -> DocumentSnapshot:
        doc = self._docs.get(split_path(path))
        return DocumentSnapshot(exists=doc is not None, fields=dict(doc or {}))

    def client(self, uid: Optional[str] = None, **claims: Any) -> "Client":
        return Client(self, AuthContext(uid=uid, claims=claims))


class Client:
    """Per-identity view of the store; each call returns the Decision."""

    def __init__(self, env: RulesTestEnvironment, auth: AuthContext) -> None:
        self.env = env
        self.auth = auth

    def _run(self, path: str, op: Optional[Operation], proposed=None, commit=None) -> Decision:
        with self.env._lock:
            before = self.env.snapshot(path)
            if op is None:  # set(): create or overwrite
                op = Operation.UPDATE if before.exists else Operation.CREATE
            decision = evaluate(self.env.registry, path, op, self.auth, before, proposed)
            if decision.allowed and commit is not None:
                commit(split_path(path), before)
            return decision

    def get(self, path: str) -> Decision:
        return self._run(path, Operation.READ)

    def set(self, path: str, data: Dict[str, Any]) -> Decision:
        def commit(key, before):
            self.env._docs[key] = dict(data)

        return self._run(path, None, data, commit)

    def update(self, path: str, data: Dict[str, Any]) -> Decision:
        def commit(key, before):
            if not before.exists:
                raise KeyError(path)
            self.env._docs[key] = {**before.fields, **data}

        return self._run(path, Operation.UPDATE, data, commit)

    def delete(self, path: str) -> Decision:
        def commit(key, before):
            self.env._docs.pop(key, None)

        return self._run(path, Operation.DELETE, commit=commit)


def assert_succeeds(decision: Decision) -> None:
    assert decision.allowed, f"expected Allow, got {decision}"


def assert_fails(decision: Decision) -> None:
    assert not decision.allowed, f"expected Deny, got {decision}"


@pytest.fixture
def registry() -> RuleRegistry:
    return build_registry()


@pytest.fixture
def env(registry) -> RulesTestEnvironment:
    e = RulesTestEnvironment(registry)
    for uid, (public, private) in USERS.items():
        e.seed(f"users/{uid}", public)
        e.seed(f"users/{uid}/user_meta/private", private)
    return e
