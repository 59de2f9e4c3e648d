"""
Reusable rule predicates.

A predicate is a pure function ``(bindings, auth, before, proposed) -> bool``.
The :func:`predicate` decorator tags it with the :class:`DenyReason` reported
when it returns ``False``; the reason may itself be a function of the same
inputs when one predicate can fail in more than one way.

Admin roster
------------
``/settings/admins`` maps identities to role lists. While the document does
not exist, any authenticated identity may create it naming *only itself*
(the "claim root" bootstrap). Once it exists, only an identity already
holding ``root`` may write it. The check reads ``before`` and the commit
writes the same document, so the hosting store must run both inside one
transaction; this module cannot prevent two first-writers racing on a
non-transactional store.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any, Callable, Optional, Union

from docrules.model import AuthContext, DenyReason, DocumentSnapshot

ROOT_ROLE = "root"

Predicate = Callable[..., bool]
ReasonFn = Callable[..., DenyReason]


def predicate(reason: Union[DenyReason, ReasonFn]) -> Callable[[Predicate], Predicate]:
    """Attach a deny *reason* to a predicate function."""

    def wrap(fn: Predicate) -> Predicate:
        fn.deny_reason = reason  # type: ignore[attr-defined]
        return fn

    return wrap


def deny_reason(
    pred: Predicate,
    bindings: Mapping[str, str],
    auth: AuthContext,
    before: DocumentSnapshot,
    proposed: Optional[Mapping[str, Any]],
) -> DenyReason:
    """Return the reason *pred* reports when it rejects a request."""
    reason = getattr(pred, "deny_reason", DenyReason.NO_MATCHING_RULE)
    if isinstance(reason, DenyReason):
        return reason
    return reason(bindings, auth, before, proposed)


# Static policies

@predicate(reason=DenyReason.NO_MATCHING_RULE)
def allow_any(bindings, auth, before, proposed) -> bool:
    """Public: any identity, authenticated or not."""
    return True


@predicate(reason=DenyReason.DELETE_FORBIDDEN)
def deny_delete(bindings, auth, before, proposed) -> bool:
    """The document can never be deleted."""
    return False


# Ownership

@predicate(reason=DenyReason.NOT_OWNER)
def ownership(bindings, auth, before=None, proposed=None) -> bool:
    """True iff the caller is signed in as the ``{uid}`` bound from the path."""
    return auth.uid is not None and auth.uid == bindings.get("uid")


# Admin bootstrap

def is_role_list(value: Any) -> bool:
    """A non-empty list/tuple of non-empty role strings."""
    if isinstance(value, (str, bytes)) or not isinstance(value, Sequence):
        return False
    return len(value) > 0 and all(isinstance(r, str) and r for r in value)


def holds_root(roster: Mapping[str, Any], uid: Optional[str]) -> bool:
    if uid is None or uid not in roster:
        return False
    roles = roster[uid]
    return is_role_list(roles) and ROOT_ROLE in roles


def _bootstrap_reason(bindings, auth, before, proposed) -> DenyReason:
    if before.exists:
        return DenyReason.ROOT_ALREADY_CLAIMED
    return DenyReason.MALFORMED_ADMIN_PAYLOAD


def is_self_claim(auth: AuthContext, proposed: Optional[Mapping[str, Any]]) -> bool:
    """First write: exactly one entry, keyed by the caller, with a role list."""
    if auth.uid is None or not isinstance(proposed, Mapping) or len(proposed) != 1:
        return False
    (key, roles), = proposed.items()
    return key == auth.uid and is_role_list(roles)


@predicate(reason=_bootstrap_reason)
def admin_bootstrap(bindings, auth, before, proposed) -> bool:
    """Compare-and-set write rule for the admin roster."""
    if not before.exists:
        return is_self_claim(auth, proposed)
    return holds_root(before.fields, auth.uid)
