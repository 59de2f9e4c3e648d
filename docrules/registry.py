"""
Immutable rule registry.

A :class:`RuleRegistry` is validated once when it is built and never
changes afterwards, so one instance can be shared by any number of
concurrent evaluations. Construction fails with :class:`RegistryError` for:

* two rules with the same template,
* two overlapping templates with equal specificity (ambiguous match),
* a rule missing a predicate for one of the required operations.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Dict, Iterable, Iterator, List, Mapping, Optional, Tuple, Union

from docrules import predicates as p
from docrules.log import get_logger
from docrules.matcher import Bindings, PathTemplate, match, overlaps
from docrules.model import Operation, PathLike

log = get_logger(__name__)


class RegistryError(ValueError):
    """The rule table is inconsistent; raised at construction, never per request."""


@dataclass(frozen=True)
class Rule:
    template: PathTemplate
    predicates: Mapping[Operation, p.Predicate] = field(default_factory=dict)

    def __post_init__(self) -> None:
        # freeze the caller's dict so the rule cannot change after registration
        object.__setattr__(self, "predicates", MappingProxyType(dict(self.predicates)))

    @classmethod
    def of(cls, template: Union[str, PathTemplate], **ops: p.Predicate) -> "Rule":
        """``Rule.of("/users/{uid}", read=allow_any, delete=deny_delete)``.

        ``write=`` is shorthand for the same predicate on create and update.
        """
        if isinstance(template, str):
            template = PathTemplate.parse(template)
        table: Dict[Operation, p.Predicate] = {}
        write = ops.pop("write", None)
        if write is not None:
            table[Operation.CREATE] = write
            table[Operation.UPDATE] = write
        for name, pred in ops.items():
            table[Operation(name)] = pred
        return cls(template, table)

    def predicate_for(self, operation: Operation) -> Optional[p.Predicate]:
        return self.predicates.get(operation)


class RuleRegistry:
    """Ordered, validated, read-only collection of :class:`Rule` objects."""

    def __init__(
        self,
        rules: Iterable[Rule],
        required_operations: Iterable[Operation] = tuple(Operation),
    ) -> None:
        self._rules: Tuple[Rule, ...] = tuple(rules)
        self._required = tuple(required_operations)
        try:
            self._validate()
        except RegistryError as exc:
            log.error("registry.invalid", error=str(exc))
            raise
        self._by_template = {r.template: r for r in self._rules}
        log.info("registry.built", rules=len(self._rules))

    def _validate(self) -> None:
        seen: set[PathTemplate] = set()
        for rule in self._rules:
            if rule.template in seen:
                raise RegistryError(f"duplicate rule for template {rule.template}")
            seen.add(rule.template)
            missing = [op.value for op in self._required if op not in rule.predicates]
            if missing:
                raise RegistryError(
                    f"rule {rule.template} has no predicate for: {', '.join(missing)}"
                )
        for i, a in enumerate(self._rules):
            for b in self._rules[i + 1:]:
                if (
                    overlaps(a.template, b.template)
                    and a.template.specificity == b.template.specificity
                ):
                    raise RegistryError(
                        f"ambiguous templates {a.template} and {b.template}"
                    )

    @property
    def templates(self) -> Tuple[PathTemplate, ...]:
        return tuple(r.template for r in self._rules)

    def resolve(self, path: PathLike) -> Optional[Tuple[Rule, Bindings]]:
        """Return the rule governing *path* and its bindings, or ``None``."""
        found = match(path, self.templates)
        if found is None:
            return None
        template, bindings = found
        return self._by_template[template], bindings

    def describe(self) -> List[dict]:
        """Rule table as plain data: template plus predicate name per operation."""
        return [
            {
                "template": str(rule.template),
                "operations": {
                    op.value: rule.predicates[op].__name__
                    for op in Operation
                    if op in rule.predicates
                },
            }
            for rule in self._rules
        ]

    def __iter__(self) -> Iterator[Rule]:
        return iter(self._rules)

    def __len__(self) -> int:
        return len(self._rules)


def build_registry() -> RuleRegistry:
    """Build the rule table for user profiles, user metadata and the admin roster."""
    return RuleRegistry(
        [
            Rule.of(
                "/users/{uid}",
                read=p.allow_any,
                write=p.ownership,
                delete=p.deny_delete,
            ),
            Rule.of(
                "/users/{uid}/user_meta/private",
                read=p.ownership,
                write=p.ownership,
                delete=p.deny_delete,
            ),
            Rule.of(
                "/users/{uid}/user_meta/settings",
                read=p.allow_any,
                write=p.ownership,
                delete=p.deny_delete,
            ),
            Rule.of(
                "/settings/admins",
                read=p.allow_any,
                write=p.admin_bootstrap,
                delete=p.deny_delete,
            ),
        ]
    )
