"""
Command-line interface (CLI) for the document-store rules engine.

Example – claim root on an empty roster
---------------------------------------
    docrulesctl eval /settings/admins create \
           --uid apple \
           --missing \
           --proposed '{"apple": ["root"]}'

Prints ``Allow`` or ``Deny(<reason>)`` and exits *0* on Allow, *1* on Deny.
"""

from __future__ import annotations

import json
from typing import Any, Optional

import typer

from docrules import audit_log
from docrules.config import get_settings
from docrules.evaluator import AccessRequest, evaluate_request
from docrules.log import configure_logging, get_logger
from docrules.model import AuthContext, DocumentSnapshot, Operation, split_path
from docrules.registry import build_registry

app = typer.Typer(
    add_completion=False,
    help="Document-store rules evaluator (prints Allow or Deny).",
)
log = get_logger(__name__)


def _json_object(raw: Optional[str], option: str) -> Optional[dict]:
    if raw is None:
        return None
    try:
        value: Any = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise typer.BadParameter(f"not valid JSON: {exc.msg}", param_hint=option)
    if not isinstance(value, dict):
        raise typer.BadParameter("expected a JSON object", param_hint=option)
    return value


@app.command("eval")
def eval_cmd(
    path: str = typer.Argument(..., help="Document path, e.g. /users/apple"),
    operation: Operation = typer.Argument(..., help="read, create, update or delete"),
    uid: Optional[str] = typer.Option(
        None, "--uid", "-u", help="Authenticated uid (omit for anonymous)"
    ),
    claims: Optional[str] = typer.Option(None, "--claims", help="Auth claims as JSON"),
    exists: bool = typer.Option(
        True, "--exists/--missing", help="Whether the document exists before the write"
    ),
    fields: Optional[str] = typer.Option(
        None, "--fields", "-f", help="Current document fields as JSON"
    ),
    proposed: Optional[str] = typer.Option(
        None, "--proposed", "-d", help="Data being written, as JSON"
    ),
) -> None:
    """Evaluate one request and exit with *0* for Allow, *1* for Deny."""
    settings = get_settings()
    configure_logging(settings.log_level, json=settings.log_json)

    try:
        split_path(path)
    except ValueError as exc:
        raise typer.BadParameter(str(exc), param_hint="PATH")

    request = AccessRequest(
        path=path,
        operation=operation,
        auth=AuthContext(uid=uid, claims=_json_object(claims, "--claims") or {}),
        before=DocumentSnapshot(exists=exists, fields=_json_object(fields, "--fields") or {}),
        proposed=_json_object(proposed, "--proposed"),
    )
    decision = evaluate_request(build_registry(), request)
    log.debug("decision", path=path, operation=operation.value, uid=uid, result=str(decision))
    if settings.audit_enabled:
        audit_log.write(settings.audit_path, request=request, decision=decision)

    typer.echo(str(decision))
    if not decision.allowed:
        raise typer.Exit(code=1)


@app.command("rules")
def rules_cmd() -> None:
    """Print the rule table, one template per block."""
    settings = get_settings()
    configure_logging(settings.log_level, json=settings.log_json)
    for entry in build_registry().describe():
        typer.echo(entry["template"])
        for op, name in entry["operations"].items():
            typer.echo(f"  {op:<7} {name}")


def main() -> None:  # pragma: no cover
    """Entry-point for the ``docrulesctl`` script."""
    app()


if __name__ == "__main__":
    app()
