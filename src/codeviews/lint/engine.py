"""
Lint engine: resolves which rules run, with what severity and options, and
applies fixes on request.

Rule settings are layered, later wins:
    1. the rule's defaults
    2. the rule's entry in the project rc file
    3. --enable / --disable for the current run
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence

from codeviews.config import validate_project_config
from codeviews.lint.models import LintResult
from codeviews.lint.rules import LintRule, RuleContext, StaleReferencesRule, available_rules
from codeviews.repository import RepositoryContext

logger = logging.getLogger(__name__)


def _option_type_ok(rule: LintRule, key: str, value: Any) -> bool:
    """Configured options must have the type of the rule's default; unknown keys pass."""
    if key not in rule.default_options:
        return True
    default = rule.default_options[key]
    if isinstance(default, bool) or not isinstance(default, int):
        return isinstance(value, type(default))
    return isinstance(value, int) and not isinstance(value, bool)


class LintEngine:
    """
    Runs the registered lint rules against a repository.

    Usage:
        engine = LintEngine(ctx)
        result = engine.lint(disabled_rules=["require-references"])
        for v in result.violations:
            print(v.rule_id, v.message)
    """

    def __init__(self, ctx: RepositoryContext, rules: Optional[Sequence[LintRule]] = None):
        self.ctx = ctx
        if rules is None:
            rules = [cls() for cls in available_rules().values()]
        self.rules: Dict[str, LintRule] = {rule.id: rule for rule in rules}

    def get_all_rules(self) -> Dict[str, LintRule]:
        return dict(self.rules)

    def config_warnings(self) -> List[str]:
        warnings = validate_project_config(self.ctx.project_config, self.rules)
        for configured in self.ctx.project_config.context.rules:
            rule = self.rules.get(configured.id)
            if rule is None:
                continue
            for key, value in configured.options.items():
                if not _option_type_ok(rule, key, value):
                    expected = type(rule.default_options[key]).__name__
                    warnings.append(
                        f"Option '{key}' of rule '{rule.id}' must be {expected}, got {value!r}; "
                        f"using the default"
                    )
        return warnings

    def is_enabled(
        self,
        rule: LintRule,
        enabled_rules: Sequence[str] = (),
        disabled_rules: Sequence[str] = (),
    ) -> bool:
        if rule.id in disabled_rules:
            return False
        if rule.id in enabled_rules:
            return True
        configured = self.ctx.project_config.rule(rule.id)
        return configured.enabled if configured is not None else rule.enabled

    def rule_context(self, rule: LintRule, now: Optional[datetime] = None) -> RuleContext:
        options = dict(rule.default_options)
        if isinstance(rule, StaleReferencesRule):
            options["maxAgeDays"] = self.ctx.settings.stale_days
        severity = rule.severity
        configured = self.ctx.project_config.rule(rule.id)
        if configured is not None:
            options.update(
                (key, value) for key, value in configured.options.items()
                if _option_type_ok(rule, key, value)
            )
            if configured.severity is not None:
                severity = configured.severity
        return RuleContext(
            repo=self.ctx,
            views=self.ctx.store.list(self.ctx.root),
            severity=severity,
            options=options,
            now=now,
        )

    def lint(
        self,
        enabled_rules: Optional[Sequence[str]] = None,
        disabled_rules: Optional[Sequence[str]] = None,
        fix: bool = False,
        now: Optional[datetime] = None,
    ) -> LintResult:
        """
        Run every enabled rule.

        With ``fix``, fixable violations are handed back to their rule; the
        ones it fixes are left out of the result.
        """
        enabled_rules = list(enabled_rules or [])
        disabled_rules = list(disabled_rules or [])
        for rule_id in (*enabled_rules, *disabled_rules):
            if rule_id not in self.rules:
                logger.warning(f"Unknown lint rule: {rule_id}")

        result = LintResult()
        for rule in self.rules.values():
            if not self.is_enabled(rule, enabled_rules, disabled_rules):
                logger.debug(f"Skipping disabled rule {rule.id}")
                continue
            rule_ctx = self.rule_context(rule, now)
            violations = rule.check(rule_ctx)
            logger.debug(f"Rule {rule.id}: {len(violations)} violation(s)")

            for violation in violations:
                if fix and violation.fixable and rule.fix(rule_ctx, violation):
                    result.fixes_applied += 1
                    continue
                result.violations.append(violation)
        return result
