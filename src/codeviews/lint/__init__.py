"""
Context-quality lint rules for stored views.

Example usage:
    from codeviews.lint import LintEngine

    result = LintEngine(ctx).lint(fix=True)
    print(result.error_count, result.fixes_applied)
"""

from codeviews.lint.engine import LintEngine
from codeviews.lint.models import LintResult, LintViolation
from codeviews.lint.rules import (
    FILENAME_STYLES,
    DocumentOrganizationRule,
    FilenameConventionRule,
    LintRule,
    OrphanedReferencesRule,
    RequireReferencesRule,
    RuleContext,
    StaleReferencesRule,
    available_rules,
    convert_filename_stem,
    register_rule,
)

__all__ = [
    "LintEngine",
    "LintResult",
    "LintViolation",
    "FILENAME_STYLES",
    "DocumentOrganizationRule",
    "FilenameConventionRule",
    "LintRule",
    "OrphanedReferencesRule",
    "RequireReferencesRule",
    "RuleContext",
    "StaleReferencesRule",
    "available_rules",
    "convert_filename_stem",
    "register_rule",
]
