"""
Built-in lint rules.

Each rule inspects the stored views (and, for some rules, the repository's
markdown documents) and returns LintViolations. Rules never modify
anything unless the engine calls ``fix`` for one of their fixable
violations.

Adding a rule:
    @register_rule
    class MyRule(LintRule):
        id = "my-rule"
        ...
        def check(self, ctx):
            return [self.violation(ctx, "...")]
"""

from __future__ import annotations

import logging
import posixpath
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, Type

from codeviews.builder import list_documents
from codeviews.capabilities import strip_leading_slash
from codeviews.lint.models import LintViolation
from codeviews.models import CodebaseView, IssueSeverity, parse_timestamp
from codeviews.repository import RepositoryContext, stamp_view, strip_dot_slash

logger = logging.getLogger(__name__)


@dataclass
class RuleContext:
    """What a rule sees during one lint run."""
    repo: RepositoryContext
    views: List[CodebaseView]
    severity: IssueSeverity
    options: Dict[str, Any] = field(default_factory=dict)
    now: Optional[datetime] = None

    def overview_documents(self) -> List[str]:
        """Distinct overview paths of all views, sorted."""
        return sorted({strip_dot_slash(v.overview_path) for v in self.views if v.overview_path})


class LintRule(ABC):
    """Base class for lint rules."""

    id: str = ""
    name: str = ""
    description: str = ""
    severity: IssueSeverity = IssueSeverity.WARNING
    category: str = "quality"
    impact: str = ""
    fixable: bool = False
    enabled: bool = True
    default_options: Dict[str, Any] = {}

    @abstractmethod
    def check(self, ctx: RuleContext) -> List[LintViolation]:
        pass

    def fix(self, ctx: RuleContext, violation: LintViolation) -> bool:
        """Apply the fix for one violation; returns whether it was fixed."""
        return False

    def violation(
        self,
        ctx: RuleContext,
        message: str,
        file: Optional[str] = None,
        view_id: Optional[str] = None,
        line: Optional[int] = None,
    ) -> LintViolation:
        return LintViolation(
            rule_id=self.id,
            severity=ctx.severity,
            message=message,
            file=file,
            line=line,
            impact=self.impact,
            fixable=self.fixable,
            view_id=view_id,
        )


# Rule registry, in registration order
_RULES: Dict[str, Type[LintRule]] = {}


def register_rule(cls: Type[LintRule]) -> Type[LintRule]:
    """Decorator to register a lint rule."""
    _RULES[cls.id] = cls
    return cls


def available_rules() -> Dict[str, Type[LintRule]]:
    return dict(_RULES)


@register_rule
class StaleReferencesRule(LintRule):
    id = "stale-references"
    name = "Stale References"
    description = "Views that have not been refreshed within the allowed age"
    severity = IssueSeverity.WARNING
    category = "freshness"
    impact = "Outdated views may describe code that has since changed"
    fixable = True
    default_options = {"maxAgeDays": 30}

    def check(self, ctx: RuleContext) -> List[LintViolation]:
        max_age = int(ctx.options.get("maxAgeDays", 30))
        now = ctx.now or datetime.now().astimezone()
        violations = []
        for view in ctx.views:
            file = view.overview_path or None
            stamped = parse_timestamp(view.timestamp)
            if stamped is None:
                violations.append(self.violation(
                    ctx,
                    f"View '{view.name or view.id}' has an invalid timestamp: {view.timestamp!r}",
                    file=file,
                    view_id=view.id,
                ))
                continue
            age_days = (now - stamped).days
            if age_days > max_age:
                violations.append(self.violation(
                    ctx,
                    f"View '{view.name or view.id}' was last updated {age_days} days ago "
                    f"(max {max_age})",
                    file=file,
                    view_id=view.id,
                ))
        return violations

    def fix(self, ctx: RuleContext, violation: LintViolation) -> bool:
        if not violation.view_id:
            return False
        return stamp_view(ctx.repo.store, ctx.repo.root, violation.view_id)


def _split_words(stem: str) -> List[str]:
    spaced = re.sub(r"([a-z0-9])([A-Z])", r"\1 \2", stem)
    return [w for w in re.split(r"[^A-Za-z0-9]+", spaced) if w]


_STYLES: Dict[str, tuple[str, Callable[[List[str]], str]]] = {
    "kebab-case": (
        r"^[a-z0-9]+(?:-[a-z0-9]+)*$",
        lambda words: "-".join(w.lower() for w in words),
    ),
    "snake_case": (
        r"^[a-z0-9]+(?:_[a-z0-9]+)*$",
        lambda words: "_".join(w.lower() for w in words),
    ),
    "camelCase": (
        r"^[a-z][a-zA-Z0-9]*$",
        lambda words: words[0].lower() + "".join(w.capitalize() for w in words[1:]) if words else "",
    ),
    "PascalCase": (
        r"^[A-Z][a-zA-Z0-9]*$",
        lambda words: "".join(w.capitalize() for w in words),
    ),
    "lowercase": (
        r"^[a-z0-9]+$",
        lambda words: "".join(w.lower() for w in words),
    ),
}

FILENAME_STYLES = tuple(_STYLES)


def convert_filename_stem(stem: str, style: str) -> str:
    """Rewrite a filename stem in the given naming style."""
    return _STYLES[style][1](_split_words(stem))


def _in_folder(path: str, folders: List[str]) -> bool:
    parts = path.split("/")[:-1]
    return any(folder.strip("/") in parts for folder in folders)


@register_rule
class FilenameConventionRule(LintRule):
    id = "filename-convention"
    name = "Filename Convention"
    description = "Overview documents must follow a consistent filename style"
    severity = IssueSeverity.WARNING
    category = "structure"
    impact = "Inconsistent names make documentation harder to find"
    default_options = {
        "style": "kebab-case",
        "extensions": [".md", ".mdx"],
        "exceptions": [
            "README.md", "CHANGELOG.md", "AGENTS.md", "CONTRIBUTING.md",
            "LICENSE.md", "CODE_OF_CONDUCT.md", "SECURITY.md",
        ],
        "documentFoldersOnly": False,
        "documentFolders": ["docs"],
    }

    def check(self, ctx: RuleContext) -> List[LintViolation]:
        style = ctx.options.get("style", "kebab-case")
        if style not in _STYLES:
            logger.warning(f"Unknown filename style '{style}', using kebab-case")
            style = "kebab-case"
        pattern = re.compile(_STYLES[style][0])
        extensions = [e.lower() for e in ctx.options.get("extensions", [])]
        exceptions = set(ctx.options.get("exceptions", []))
        folders_only = bool(ctx.options.get("documentFoldersOnly", False))
        folders = list(ctx.options.get("documentFolders", []))

        violations = []
        for path in ctx.overview_documents():
            base = posixpath.basename(path)
            stem, ext = posixpath.splitext(base)
            if ext.lower() not in extensions or base in exceptions:
                continue
            if folders_only and not _in_folder(path, folders):
                continue
            if not pattern.match(stem):
                suggestion = convert_filename_stem(stem, style) + ext
                violations.append(self.violation(
                    ctx,
                    f"Filename '{base}' does not follow {style} (suggested: {suggestion})",
                    file=path,
                ))
        return violations


@register_rule
class DocumentOrganizationRule(LintRule):
    id = "document-organization"
    name = "Document Organization"
    description = "Overview documents should live in a documentation folder"
    severity = IssueSeverity.WARNING
    category = "structure"
    impact = "Scattered documents are hard to discover"
    default_options = {
        "documentFolders": ["docs"],
        "rootExceptions": ["README.md", "AGENTS.md", "CHANGELOG.md", "CONTRIBUTING.md", "LICENSE.md"],
        "checkNested": True,
    }

    def check(self, ctx: RuleContext) -> List[LintViolation]:
        folders = list(ctx.options.get("documentFolders", ["docs"]))
        root_exceptions = set(ctx.options.get("rootExceptions", []))
        check_nested = bool(ctx.options.get("checkNested", True))
        expected = ", ".join(f"{f.strip('/')}/" for f in folders)

        violations = []
        for path in ctx.overview_documents():
            if "/" not in path:
                if path in root_exceptions:
                    continue
            elif not check_nested or _in_folder(path, folders):
                continue
            violations.append(self.violation(
                ctx,
                f"Document '{path}' should be in a documentation folder ({expected})",
                file=path,
            ))
        return violations


@register_rule
class OrphanedReferencesRule(LintRule):
    id = "orphaned-references"
    name = "Orphaned References"
    description = "Views must not reference files that no longer exist"
    severity = IssueSeverity.ERROR
    category = "integrity"
    impact = "Readers are pointed at code that is gone"

    def check(self, ctx: RuleContext) -> List[LintViolation]:
        fs = ctx.repo.fs
        violations = []
        for view in ctx.views:
            for label, group in view.reference_groups.items():
                for path in group.files:
                    if fs.exists(posixpath.join(ctx.repo.root.as_posix(), strip_leading_slash(path))):
                        continue
                    violations.append(self.violation(
                        ctx,
                        f"View '{view.name or view.id}' references missing file '{path}' in '{label}'",
                        file=view.overview_path or None,
                        view_id=view.id,
                    ))
        return violations


@register_rule
class RequireReferencesRule(LintRule):
    id = "require-references"
    name = "Require References"
    description = "Every markdown document must be the overview of some view"
    severity = IssueSeverity.ERROR
    category = "coverage"
    impact = "Untracked documents are invisible to codebase views"
    default_options = {"excludeFiles": []}

    def check(self, ctx: RuleContext) -> List[LintViolation]:
        documents = list_documents(ctx.repo, ctx.options.get("excludeFiles", []))
        tracked = set(ctx.overview_documents())
        return [
            self.violation(ctx, f"Markdown file '{doc}' is not the overview of any view", file=doc)
            for doc in documents
            if doc not in tracked
        ]
