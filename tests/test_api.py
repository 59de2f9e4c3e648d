"""
API tests for the ``/decision``, ``/rules``, ``/healthz`` and ``/audit`` endpoints.

Each test gets its own app with the audit log redirected to a temp file.
"""

import pytest
from fastapi.testclient import TestClient

from docrules.api import create_app
from docrules.audit_log import verify
from docrules.config import Settings


@pytest.fixture
def client(tmp_path):
    settings = Settings(audit_path=tmp_path / "audit.jsonl", log_level="warning")
    with TestClient(create_app(settings)) as c:
        yield c


def test_decision_endpoint_allow(client):
    """Expect **Allow** for an anonymous read of a public profile."""
    resp = client.post(
        "/decision",
        json={"path": "/users/apple", "operation": "read", "before": {"exists": True}},
    )
    assert resp.status_code == 200
    assert resp.json() == {"allowed": True, "decision": "Allow", "reason": None}


def test_decision_endpoint_claim_root(client):
    resp = client.post(
        "/decision",
        json={
            "path": "/settings/admins",
            "operation": "create",
            "uid": "apple",
            "proposed": {"banana": ["root"]},
        },
    )
    assert resp.json() == {
        "allowed": False,
        "decision": "Deny(MalformedAdminPayload)",
        "reason": "MalformedAdminPayload",
    }


def test_decision_endpoint_rejects_unknown_operation(client):
    resp = client.post("/decision", json={"path": "/users/apple", "operation": "list"})
    assert resp.status_code == 422


def test_decision_endpoint_rejects_bad_path(client):
    resp = client.post("/decision", json={"path": "users//apple", "operation": "read"})
    assert resp.status_code == 422


def test_rules_and_health(client):
    rules = client.get("/rules").json()
    assert [r["template"] for r in rules][0] == "/users/{uid}"
    assert client.get("/healthz").json() == {"status": "ok", "rules": 4}


def test_decisions_are_audited(client):
    client.post("/decision", json={"path": "/users/apple", "operation": "delete", "uid": "apple"})
    client.post("/decision", json={"path": "/users/apple", "operation": "read"})
    entries = client.get("/audit/").json()
    assert [e["decision"] for e in entries] == ["Deny", "Allow"]
    assert entries[0]["reason"] == "DeleteForbidden"
    assert verify(entries)


def test_audit_can_be_disabled(tmp_path):
    settings = Settings(audit_path=tmp_path / "audit.jsonl", audit_enabled=False)
    with TestClient(create_app(settings)) as c:
        c.post("/decision", json={"path": "/users/apple", "operation": "read"})
        assert c.get("/audit/").json() == []
