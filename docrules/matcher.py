"""
Path-template matching for hierarchical document paths.

A template such as ``/users/{uid}/user_meta/private`` is a sequence of
segments, each either a *literal* (must match exactly) or a ``{variable}``
(binds the concrete segment). A template only matches paths of the same
length.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Dict, Iterable, Optional, Tuple

from docrules.model import PathLike, split_path

_VARIABLE = re.compile(r"^\{([A-Za-z_][A-Za-z0-9_]*)\}$")

Bindings = Dict[str, str]


@dataclass(frozen=True)
class Segment:
    value: str
    is_variable: bool = False

    def __str__(self) -> str:
        return f"{{{self.value}}}" if self.is_variable else self.value


@dataclass(frozen=True)
class PathTemplate:
    """Immutable, parsed path template."""

    segments: Tuple[Segment, ...]

    @classmethod
    def parse(cls, raw: str) -> "PathTemplate":
        """Build a template from ``/a/{b}/c`` notation."""
        parts = split_path(raw)
        segments = []
        seen: set[str] = set()
        for part in parts:
            m = _VARIABLE.match(part)
            if m:
                name = m.group(1)
                if name in seen:
                    raise ValueError(f"duplicate variable {{{name}}} in template {raw!r}")
                seen.add(name)
                segments.append(Segment(name, is_variable=True))
            elif "{" in part or "}" in part:
                raise ValueError(f"malformed template segment {part!r} in {raw!r}")
            else:
                segments.append(Segment(part))
        return cls(tuple(segments))

    @property
    def specificity(self) -> int:
        """Number of literal segments; higher wins when templates overlap."""
        return sum(1 for s in self.segments if not s.is_variable)

    @property
    def variables(self) -> Tuple[str, ...]:
        return tuple(s.value for s in self.segments if s.is_variable)

    def bind(self, path: PathLike) -> Optional[Bindings]:
        """Return the variable bindings for *path*, or ``None`` on mismatch."""
        concrete = split_path(path)
        if len(concrete) != len(self.segments):
            return None
        bindings: Bindings = {}
        for seg, value in zip(self.segments, concrete):
            if seg.is_variable:
                bindings[seg.value] = value
            elif seg.value != value:
                return None
        return bindings

    def __str__(self) -> str:
        return "/" + "/".join(str(s) for s in self.segments)


def overlaps(a: PathTemplate, b: PathTemplate) -> bool:
    """True iff at least one concrete path matches both *a* and *b*."""
    if len(a.segments) != len(b.segments):
        return False
    for x, y in zip(a.segments, b.segments):
        if x.is_variable or y.is_variable:
            continue
        if x.value != y.value:
            return False
    return True


def match(
    path: PathLike, templates: Iterable[PathTemplate]
) -> Optional[Tuple[PathTemplate, Bindings]]:
    """Resolve *path* to the most specific matching template.

    Ties between equally specific templates are rejected when the registry is
    built, so the first best candidate found here is the only one.
    """
    concrete = split_path(path)
    best: Optional[Tuple[PathTemplate, Bindings]] = None
    for template in templates:
        bindings = template.bind(concrete)
        if bindings is None:
            continue
        if best is None or template.specificity > best[0].specificity:
            best = (template, bindings)
    return best
