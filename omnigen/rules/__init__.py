"""Compliance rules: the rule interface, the ordered rule set and the
built-in pack.
"""

from omnigen.rules.base import ConstraintRule, Predicate, RuleSet
from omnigen.rules.builtin import builtin_rules, register_builtin_rules

__all__ = [
    "ConstraintRule",
    "Predicate",
    "RuleSet",
    "builtin_rules",
    "register_builtin_rules",
]
