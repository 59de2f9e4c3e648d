"""
Core data-model classes for the document-store rules engine.

Includes:
* **Operation**, **DenyReason** enums
* **AuthContext**, **DocumentSnapshot**, **Decision** request/result models
* Helper for normalising document paths into segment tuples.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, Optional, Sequence, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator

PathLike = Union[str, Sequence[str]]


# Helper functions

def split_path(path: PathLike) -> Tuple[str, ...]:
    """Return *path* as a tuple of segments.

    Strings are split on ``/`` with leading and trailing slashes ignored, so
    ``"/users/apple"`` and ``"users/apple/"`` are the same document.
    """
    if isinstance(path, str):
        segments = tuple(path.strip("/").split("/"))
    else:
        segments = tuple(path)
    if not segments or any(not isinstance(s, str) or not s for s in segments):
        raise ValueError(f"invalid document path: {path!r}")
    if any("/" in s for s in segments):
        raise ValueError(f"path segment contains '/': {path!r}")
    return segments


# Enums

class Operation(str, Enum):
    READ = "read"
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"


class DenyReason(str, Enum):
    """Fixed taxonomy of reasons attached to a Deny."""

    NO_MATCHING_RULE = "NoMatchingRule"
    NOT_OWNER = "NotOwner"
    DELETE_FORBIDDEN = "DeleteForbidden"
    ROOT_ALREADY_CLAIMED = "RootAlreadyClaimed"
    MALFORMED_ADMIN_PAYLOAD = "MalformedAdminPayload"


# Request context

class AuthContext(BaseModel):
    """Identity supplied by the authentication layer; ``uid=None`` is anonymous."""

    model_config = ConfigDict(frozen=True)

    uid: Optional[str] = None
    claims: Dict[str, Any] = Field(default_factory=dict)

    @property
    def is_authenticated(self) -> bool:
        return self.uid is not None

    @classmethod
    def anonymous(cls) -> "AuthContext":
        return cls()


class DocumentSnapshot(BaseModel):
    """Document state as read by the store *before* the operation."""

    model_config = ConfigDict(frozen=True)

    exists: bool = False
    fields: Dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def missing(cls) -> "DocumentSnapshot":
        return cls(exists=False)


# Result

class Decision(BaseModel):
    """``Allow`` or ``Deny(reason)``.

    An Allow never carries a reason and a Deny always does; both are enforced
    on construction so a half-built decision cannot leave the evaluator.
    """

    model_config = ConfigDict(frozen=True)

    allowed: bool
    reason: Optional[DenyReason] = None

    @model_validator(mode="after")
    def _reason_matches_outcome(self) -> "Decision":
        if self.allowed and self.reason is not None:
            raise ValueError("an Allow decision cannot carry a deny reason")
        if not self.allowed and self.reason is None:
            raise ValueError("a Deny decision requires a reason")
        return self

    @classmethod
    def allow(cls) -> "Decision":
        return cls(allowed=True)

    @classmethod
    def deny(cls, reason: DenyReason) -> "Decision":
        return cls(allowed=False, reason=reason)

    def __str__(self) -> str:
        if self.allowed:
            return "Allow"
        if self.reason is None:
            return "Deny"
        return f"Deny({self.reason.value})"
