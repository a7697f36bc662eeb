"""Tests for codeviews.lint.engine."""

import logging
from datetime import datetime, timezone

import pytest

from codeviews.analyzer import RepositoryAnalyzer
from codeviews.config import ProjectConfig, get_settings
from codeviews.lint import LintEngine, LintResult, LintViolation
from codeviews.models import CodebaseView, IssueSeverity, ReferenceGroup

NOW = datetime(2025, 3, 1, tzinfo=timezone.utc)


def _view(name, overview, timestamp="2025-02-25T00:00:00+00:00", files=("src/a.ts",)):
    return CodebaseView(
        name=name,
        overview_path=overview,
        timestamp=timestamp,
        reference_groups={"Core": ReferenceGroup(coordinates=[0, 0], files=list(files))},
    )


def _rule_ids(result):
    return sorted({v.rule_id for v in result.violations})


class TestLintEngine:
    def test_clean_repository(self, memory_ctx, write):
        write("src/a.ts")
        write("docs/a.md")
        memory_ctx.store.save(memory_ctx.root, _view("A", "docs/a.md"))
        result = LintEngine(memory_ctx).lint(now=NOW)
        assert result.violations == []
        assert result.error_count == 0

    def test_reports_across_rules(self, memory_ctx, write):
        write("docs/a.md")
        write("docs/untracked.md")
        memory_ctx.store.save(memory_ctx.root, _view(
            "A", "docs/a.md", timestamp="2024-01-01T00:00:00+00:00", files=["src/gone.ts"]
        ))
        result = LintEngine(memory_ctx).lint(now=NOW)
        assert _rule_ids(result) == [
            "orphaned-references", "require-references", "stale-references",
        ]
        assert result.error_count == 2
        assert result.warning_count == 1
        assert result.fixable_count == 1

    def test_disable_beats_enable(self, memory_ctx, write):
        write("docs/untracked.md")
        engine = LintEngine(memory_ctx)
        rule = engine.rules["require-references"]
        assert engine.is_enabled(rule)
        assert not engine.is_enabled(rule, disabled_rules=["require-references"])
        assert not engine.is_enabled(
            rule, enabled_rules=["require-references"], disabled_rules=["require-references"]
        )
        result = engine.lint(disabled_rules=["require-references"], now=NOW)
        assert result.violations == []

    def test_config_disables_and_cli_reenables(self, memory_ctx, write):
        write("docs/untracked.md")
        memory_ctx.project_config = ProjectConfig.model_validate(
            {"context": {"rules": [{"id": "require-references", "enabled": False}]}}
        )
        engine = LintEngine(memory_ctx)
        assert engine.lint(now=NOW).violations == []
        assert _rule_ids(engine.lint(enabled_rules=["require-references"], now=NOW)) == [
            "require-references",
        ]

    def test_config_severity_and_options(self, memory_ctx, write):
        write("src/a.ts")
        write("docs/a.md")
        memory_ctx.store.save(memory_ctx.root, _view(
            "A", "docs/a.md", timestamp="2025-02-01T00:00:00+00:00"
        ))
        memory_ctx.project_config = ProjectConfig.model_validate({"context": {"rules": [
            {"id": "stale-references", "severity": "info", "options": {"maxAgeDays": 7}},
        ]}})
        result = LintEngine(memory_ctx).lint(now=NOW)
        (violation,) = result.violations
        assert violation.rule_id == "stale-references"
        assert violation.severity is IssueSeverity.INFO
        assert result.info_count == 1

    def test_stale_days_setting(self, repo, write):
        from codeviews.repository import RepositoryContext
        from codeviews.storage import MemoryViewStore

        write("src/a.ts")
        write("docs/a.md")
        ctx = RepositoryContext.open(
            repo, settings=get_settings(stale_days=3), store=MemoryViewStore()
        )
        ctx.store.save(ctx.root, _view("A", "docs/a.md"))
        assert _rule_ids(LintEngine(ctx).lint(now=NOW)) == ["stale-references"]

    def test_fix_removes_fixed_violations(self, memory_ctx, write):
        write("src/a.ts")
        write("docs/a.md")
        memory_ctx.store.save(memory_ctx.root, _view(
            "A", "docs/a.md", timestamp="2024-01-01T00:00:00+00:00"
        ))
        engine = LintEngine(memory_ctx)
        result = engine.lint(fix=True, now=NOW)
        assert result.fixes_applied == 1
        assert result.violations == []
        # a second run (real clock) has nothing left to fix
        assert engine.lint().violations == []

    def test_unknown_rule_logged(self, memory_ctx, caplog):
        with caplog.at_level(logging.WARNING, logger="codeviews"):
            LintEngine(memory_ctx).lint(enabled_rules=["no-such-rule"], now=NOW)
        assert "Unknown lint rule: no-such-rule" in caplog.text

    def test_config_warnings(self, memory_ctx):
        memory_ctx.project_config = ProjectConfig.model_validate(
            {"context": {"rules": [{"id": "no-such-rule"}]}}
        )
        (warning,) = LintEngine(memory_ctx).config_warnings()
        assert "Unknown rule 'no-such-rule'" in warning

    @pytest.mark.parametrize("max_age", ["abc", None, 2.5, True])
    def test_mistyped_option_falls_back_to_default(self, memory_ctx, write, max_age):
        write("src/a.ts")
        write("docs/a.md")
        memory_ctx.store.save(memory_ctx.root, _view(
            "A", "docs/a.md", timestamp="2025-02-01T00:00:00+00:00"
        ))
        memory_ctx.project_config = ProjectConfig.model_validate({"context": {"rules": [
            {"id": "stale-references", "options": {"maxAgeDays": max_age}},
        ]}})
        engine = LintEngine(memory_ctx)
        # 28 days old is within the default 30
        assert engine.lint(now=NOW).violations == []
        (warning,) = engine.config_warnings()
        assert "Option 'maxAgeDays' of rule 'stale-references' must be int" in warning
        assert "using the default" in warning

    def test_analyzer_delegates(self, memory_ctx, write):
        write("docs/untracked.md")
        result = RepositoryAnalyzer(memory_ctx).lint(now=NOW)
        assert _rule_ids(result) == ["require-references"]


class TestLintResult:
    def test_to_dict(self):
        result = LintResult(
            violations=[
                LintViolation("r1", IssueSeverity.ERROR, "bad", file="a.md", fixable=True),
                LintViolation("r2", IssueSeverity.WARNING, "meh", view_id="v"),
            ],
            fixes_applied=2,
        )
        data = result.to_dict()
        assert data["errorCount"] == 1
        assert data["warningCount"] == 1
        assert data["fixableCount"] == 1
        assert data["fixesApplied"] == 2
        assert data["violations"][0] == {
            "ruleId": "r1",
            "severity": "error",
            "message": "bad",
            "impact": "",
            "fixable": True,
            "file": "a.md",
        }
        assert data["violations"][1]["viewId"] == "v"
