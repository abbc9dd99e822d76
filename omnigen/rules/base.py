"""Constraint rules and the ordered, freezable rule set.

A rule is a pure predicate over a :class:`PlatformVariant`: it returns
``True`` when the variant satisfies the constraint. Rules never touch the
network or the filesystem, so evaluating the same variant twice always
produces the same answer.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Iterator, Optional

from omnigen.errors import RegistryFrozenError
from omnigen.models import PlatformVariant, Severity

Predicate = Callable[[PlatformVariant], bool]


@dataclass(frozen=True)
class ConstraintRule:
    """A named compliance check with a fixed severity."""

    rule_id: str
    severity: Severity
    message: str
    predicate: Predicate
    category: str = "general"

    @property
    def blocking(self) -> bool:
        return self.severity == Severity.BLOCKING

    def check(self, variant: PlatformVariant) -> bool:
        return bool(self.predicate(variant))


class RuleSet:
    """Append-only list of rules, evaluated in registration order."""

    def __init__(self, rules: Optional[list[ConstraintRule]] = None) -> None:
        self._rules: list[ConstraintRule] = []
        self._frozen = False
        for rule in rules or []:
            self.add_rule(rule)

    def add_rule(self, rule: ConstraintRule) -> None:
        """Append *rule*.

        Raises:
            RegistryFrozenError: If called after :meth:`freeze`.
            ValueError: If a rule with the same id is already present.
        """
        if self._frozen:
            raise RegistryFrozenError(f"Cannot add rule {rule.rule_id!r}: rule set is frozen")
        if any(existing.rule_id == rule.rule_id for existing in self._rules):
            raise ValueError(f"Rule {rule.rule_id!r} is already registered")
        self._rules.append(rule)

    def freeze(self) -> None:
        self._frozen = True

    @property
    def frozen(self) -> bool:
        return self._frozen

    def get(self, rule_id: str) -> Optional[ConstraintRule]:
        for rule in self._rules:
            if rule.rule_id == rule_id:
                return rule
        return None

    def rule_ids(self) -> list[str]:
        return [rule.rule_id for rule in self._rules]

    def __iter__(self) -> Iterator[ConstraintRule]:
        return iter(list(self._rules))

    def __len__(self) -> int:
        return len(self._rules)
