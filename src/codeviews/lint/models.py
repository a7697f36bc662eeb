"""
Lint result types.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from codeviews.models import IssueSeverity


@dataclass
class LintViolation:
    """One problem reported by a lint rule."""
    rule_id: str
    severity: IssueSeverity
    message: str
    file: Optional[str] = None
    line: Optional[int] = None
    impact: str = ""
    fixable: bool = False
    view_id: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "ruleId": self.rule_id,
            "severity": self.severity.value,
            "message": self.message,
            "impact": self.impact,
            "fixable": self.fixable,
        }
        if self.file is not None:
            data["file"] = self.file
        if self.line is not None:
            data["line"] = self.line
        if self.view_id is not None:
            data["viewId"] = self.view_id
        return data


@dataclass
class LintResult:
    """Violations left after a lint run, plus the number of fixes applied."""
    violations: List[LintViolation] = field(default_factory=list)
    fixes_applied: int = 0

    def _count(self, severity: IssueSeverity) -> int:
        return sum(1 for v in self.violations if v.severity == severity)

    @property
    def error_count(self) -> int:
        return self._count(IssueSeverity.ERROR)

    @property
    def warning_count(self) -> int:
        return self._count(IssueSeverity.WARNING)

    @property
    def info_count(self) -> int:
        return self._count(IssueSeverity.INFO)

    @property
    def fixable_count(self) -> int:
        return sum(1 for v in self.violations if v.fixable)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "violations": [v.to_dict() for v in self.violations],
            "errorCount": self.error_count,
            "warningCount": self.warning_count,
            "infoCount": self.info_count,
            "fixableCount": self.fixable_count,
            "fixesApplied": self.fixes_applied,
        }
