"""
FastAPI wrapper around the document-store rules engine.

Exposes a decision endpoint for the store's request path, a read-only view
of the rule table, and the audit log router. The rule registry is built in
the lifespan handler, so an invalid rule table stops the app from starting
instead of failing requests.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Any, Dict, Optional

from fastapi import FastAPI, HTTPException, Request
from pydantic import BaseModel, Field

from docrules import audit_log
from docrules.config import Settings, get_settings
from docrules.evaluator import AccessRequest, evaluate_request
from docrules.log import configure_logging, get_logger
from docrules.model import AuthContext, DenyReason, DocumentSnapshot, Operation, split_path
from docrules.registry import build_registry

log = get_logger(__name__)


# Pydantic models
class SnapshotIn(BaseModel):
    exists: bool = False
    fields: Dict[str, Any] = Field(default_factory=dict)


class DecisionRequest(BaseModel):
    path: str = Field(..., description="Document path, e.g. /users/apple")
    operation: Operation
    uid: Optional[str] = Field(None, description="Authenticated uid; omit for anonymous")
    claims: Dict[str, Any] = Field(default_factory=dict)
    before: SnapshotIn = Field(default_factory=SnapshotIn)
    proposed: Optional[Dict[str, Any]] = None


class DecisionResponse(BaseModel):
    allowed: bool
    decision: str
    reason: Optional[DenyReason] = None


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        configure_logging(settings.log_level, json=settings.log_json)
        app.state.settings = settings
        app.state.registry = build_registry()
        yield

    app = FastAPI(title="Document rules PDP", lifespan=lifespan)
    app.include_router(audit_log.router, prefix="/audit", tags=["audit"])

    @app.post("/decision", response_model=DecisionResponse)
    def decide(req: DecisionRequest, request: Request) -> DecisionResponse:
        try:
            split_path(req.path)
        except ValueError as exc:
            raise HTTPException(status_code=422, detail=str(exc))

        access = AccessRequest(
            path=req.path,
            operation=req.operation,
            auth=AuthContext(uid=req.uid, claims=req.claims),
            before=DocumentSnapshot(exists=req.before.exists, fields=req.before.fields),
            proposed=req.proposed,
        )
        decision = evaluate_request(request.app.state.registry, access)
        log.debug(
            "decision",
            path=req.path,
            operation=req.operation.value,
            uid=req.uid,
            result=str(decision),
        )
        if settings.audit_enabled:
            audit_log.write(settings.audit_path, request=access, decision=decision)
        return DecisionResponse(
            allowed=decision.allowed, decision=str(decision), reason=decision.reason
        )

    @app.get("/rules")
    def rules(request: Request) -> list:
        return request.app.state.registry.describe()

    @app.get("/healthz")
    def healthz(request: Request) -> dict:
        return {"status": "ok", "rules": len(request.app.state.registry)}

    return app


app = create_app()
