"""
Audit trail for authorization decisions.

Keeps an append-only, tamper-evident JSON-Lines log of every decision made
through the API or CLI and exposes a FastAPI router that returns the
complete ordered stream. Each record carries a SHA-256 ``digest`` of its
body and a ``chain`` hash over the previous record's chain, so any edit or
deletion breaks :func:`verify`.

The evaluator itself never writes here.
"""

from __future__ import annotations

import hashlib
import json
import threading
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterable, List

from fastapi import APIRouter, Request

from docrules.evaluator import AccessRequest
from docrules.model import Decision, split_path

router = APIRouter(tags=["audit"])

# serialises read-last-chain + append across request threads
_WRITE_LOCK = threading.Lock()


@router.get("/", summary="Full ordered audit log")
def full_audit(request: Request) -> List[dict]:
    """Return every audit entry in write order."""
    return read_all(request.app.state.settings.audit_path)


def read_all(log_path: Path) -> List[dict]:
    if not log_path.exists():
        return []
    with log_path.open("r", encoding="utf-8") as fh:
        return [json.loads(line) for line in fh if line.strip()]


def _last_chain(log_path: Path) -> str:
    if not log_path.exists():
        return ""
    last = ""
    with log_path.open("r", encoding="utf-8") as fh:
        for line in fh:
            if line.strip():
                last = line
    return json.loads(last)["chain"] if last else ""


def _chain(prev: str, digest: str) -> str:
    return hashlib.sha256((prev + digest).encode()).hexdigest()


def write(log_path: Path, *, request: AccessRequest, decision: Decision) -> dict:
    """Append one record for *decision* and return it."""
    record = {
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "path": "/" + "/".join(split_path(request.path)),
        "operation": request.operation.value,
        "uid": request.auth.uid,
        "before_exists": request.before.exists,
        "decision": "Allow" if decision.allowed else "Deny",
        "reason": decision.reason.value if decision.reason else None,
    }

    body_json = json.dumps(record, separators=(",", ":"), sort_keys=True).encode()
    record["digest"] = hashlib.sha256(body_json).hexdigest()
    log_path.parent.mkdir(parents=True, exist_ok=True)
    with _WRITE_LOCK:
        record["chain"] = _chain(_last_chain(log_path), record["digest"])
        with log_path.open("a", encoding="utf-8", buffering=1) as fh:
            fh.write(json.dumps(record, separators=(",", ":")) + "\n")
    return record


def verify(entries: Iterable[dict]) -> bool:
    """Recompute digests and the hash chain; ``False`` on any mismatch."""
    prev = ""
    for entry in entries:
        body = {k: v for k, v in entry.items() if k not in ("digest", "chain")}
        body_json = json.dumps(body, separators=(",", ":"), sort_keys=True).encode()
        if hashlib.sha256(body_json).hexdigest() != entry.get("digest"):
            return False
        prev = _chain(prev, entry["digest"])
        if prev != entry.get("chain"):
            return False
    return True
