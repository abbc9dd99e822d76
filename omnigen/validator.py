"""Compliance validator: applies the rule set to a variant.

Validation is a pure function of the variant and the frozen rule set.
Compliance-stage violations are recomputed from scratch on every call, so
re-validating a variant yields the same violations and status. Violations
from earlier stages (expansion, orchestration) are carried over unchanged,
which keeps a rejected variant rejected.
"""

from __future__ import annotations

from omnigen.models import (
    RULE_ERROR,
    PlatformVariant,
    Severity,
    VariantStatus,
    Violation,
    ViolationStage,
)
from omnigen.rules.base import RuleSet


class ComplianceValidator:
    """Evaluates every rule in registration order."""

    def __init__(self, rules: RuleSet) -> None:
        self.rules = rules

    def evaluate(self, variant: PlatformVariant) -> list[Violation]:
        """Return the compliance violations for *variant*, in rule order."""
        if variant.source_artifact is None:
            return []
        violations: list[Violation] = []
        for rule in self.rules:
            try:
                passed = rule.check(variant)
            except Exception as exc:
                violations.append(
                    Violation(
                        code=RULE_ERROR,
                        severity=Severity.BLOCKING,
                        message=f"Rule {rule.rule_id!r} raised {type(exc).__name__}: {exc}",
                        stage=ViolationStage.COMPLIANCE,
                    )
                )
                continue
            if not passed:
                violations.append(
                    Violation(
                        code=rule.rule_id,
                        severity=rule.severity,
                        message=rule.message,
                        stage=ViolationStage.COMPLIANCE,
                    )
                )
        return violations

    def annotate(self, variant: PlatformVariant) -> PlatformVariant:
        """Return a ``validated`` copy with compliance violations attached."""
        carried = [v for v in variant.violations if v.stage != ViolationStage.COMPLIANCE]
        return variant.model_copy(
            update={
                "violations": carried + self.evaluate(variant),
                "status": VariantStatus.VALIDATED,
            }
        )

    def decide(self, variant: PlatformVariant) -> PlatformVariant:
        status = VariantStatus.REJECTED if variant.has_blocking else VariantStatus.ACCEPTED
        return variant.model_copy(update={"status": status})

    def validate(self, variant: PlatformVariant) -> PlatformVariant:
        """Annotate and settle *variant* as ``accepted`` or ``rejected``."""
        return self.decide(self.annotate(variant))
