"""Tests for codeviews.builder."""

import pytest

from codeviews.builder import (
    ViewBuilder,
    ViewCreationFailure,
    ViewCreationOptions,
    ViewCreationSuccess,
    creation_stats,
    find_untracked_documents,
    generate_view_name_from_path,
)
from codeviews.config import ProjectConfig
from codeviews.models import GenerationType


class TestGenerateViewNameFromPath:
    @pytest.mark.parametrize("path,expected", [
        ("README.md", "README"),
        ("getting_started.md", "Getting Started"),
        ("docs/getting-started.md", "Docs - Getting Started"),
        ("docs/api_v2/auth.md", "Docs Api V2 - Auth"),
        ("packages/core-lib/docs/overview.mdx", "Packages Core Lib Docs - Overview"),
    ])
    def test_names(self, path, expected):
        assert generate_view_name_from_path(path) == expected


@pytest.fixture
def doc_repo(repo, write):
    write("src/a.ts")
    write("docs/storage.md", (
        "# Storage Layer\n"
        "Where views live.\n"
        "\n"
        "## Backends\n"
        "`src/a.ts` and `src/missing.ts`\n"
    ))
    write("docs/untitled.md", "## Only\n`src/a.ts`\n")
    return repo


class TestBuildView:
    def test_build_and_save(self, memory_ctx, doc_repo):
        result = ViewBuilder(memory_ctx).build_view("docs/storage.md")
        assert isinstance(result, ViewCreationSuccess)
        view = result.view
        assert view.id == "storage-layer"
        assert view.name == "Storage Layer"
        assert view.description == "Where views live."
        assert view.overview_path == "docs/storage.md"
        assert view.category == "docs"
        # references to missing files are filtered out while building
        assert view.reference_groups["Backends"].files == ["src/a.ts"]
        assert view.metadata.generation_type is GenerationType.USER
        assert (view.metadata.ui.rows, view.metadata.ui.cols) == (view.rows, view.cols)
        assert result.saved
        assert result.issues == 0
        assert memory_ctx.store.get(memory_ctx.root, "storage-layer") is not None

    def test_absolute_path(self, memory_ctx, doc_repo):
        result = ViewBuilder(memory_ctx).build_view(doc_repo / "docs" / "storage.md")
        assert result.success
        assert result.file == "docs/storage.md"

    def test_name_and_description_fallbacks(self, memory_ctx, doc_repo):
        result = ViewBuilder(memory_ctx).build_view("docs/untitled.md")
        assert result.view.name == "Docs - Untitled"
        assert result.view.id == "docs-untitled"
        assert result.view.description == "Documentation-based view for docs/untitled.md"

    def test_explicit_options_win(self, memory_ctx, doc_repo):
        options = ViewCreationOptions(name="Custom", description="Mine", category="guides")
        view = ViewBuilder(memory_ctx).build_view("docs/storage.md", options).view
        assert (view.id, view.name, view.description, view.category) == (
            "custom", "Custom", "Mine", "guides",
        )

    def test_dry_run_does_not_save(self, memory_ctx, doc_repo):
        result = ViewBuilder(memory_ctx).build_view(
            "docs/storage.md", ViewCreationOptions(dry_run=True)
        )
        assert result.success and not result.saved
        assert memory_ctx.store.list(memory_ctx.root) == []

    def test_skip_validation_saves(self, memory_ctx, doc_repo):
        result = ViewBuilder(memory_ctx).build_view(
            "docs/storage.md", ViewCreationOptions(skip_validation=True)
        )
        assert result.validation is None
        assert memory_ctx.store.get(memory_ctx.root, "storage-layer") is not None

    def test_issue_count_reported(self, memory_ctx, doc_repo, write):
        write("docs/empty.md", "# Empty\n")
        result = ViewBuilder(memory_ctx).build_view("docs/empty.md")
        # no reference groups -> one info issue
        assert result.issues == 1

    def test_outside_repository(self, memory_ctx, doc_repo, tmp_path):
        outside = tmp_path / "outside.md"
        outside.write_text("# Out\n", encoding="utf-8")
        result = ViewBuilder(memory_ctx).build_view(outside)
        assert isinstance(result, ViewCreationFailure)
        assert result.error.startswith("File must be within repository")

    def test_missing_document(self, memory_ctx, doc_repo):
        result = ViewBuilder(memory_ctx).build_view("docs/nope.md")
        assert isinstance(result, ViewCreationFailure)
        assert result.error == "File not found: docs/nope.md"

    def test_unreadable_document(self, memory_ctx, doc_repo):
        (doc_repo / "docs" / "binary.md").write_bytes(b"\xff\xfe\x00bad")
        result = ViewBuilder(memory_ctx).build_view("docs/binary.md")
        assert isinstance(result, ViewCreationFailure)
        assert result.error.startswith("Cannot read file")


class TestBatch:
    def test_build_views_and_stats(self, memory_ctx, doc_repo):
        results = ViewBuilder(memory_ctx).build_views(
            ["docs/storage.md", "docs/nope.md", "docs/untitled.md"]
        )
        assert [r.success for r in results] == [True, False, True]
        stats = creation_stats(results)
        assert stats.to_dict() == {
            "successful": 2,
            "failed": 1,
            "total": 3,
            "totalIssues": 0,
            "totalFiles": 2,
            "totalCells": 2,
        }
        assert [f.file for f in stats.failures] == ["docs/nope.md"]

    def test_find_untracked_documents(self, memory_ctx, doc_repo, write):
        write("README.md", "# Readme\n")
        write(".gitignore", "ignored.md\n")
        write("ignored.md")
        assert find_untracked_documents(memory_ctx) == [
            "README.md", "docs/storage.md", "docs/untitled.md",
        ]
        ViewBuilder(memory_ctx).build_view("docs/storage.md")
        assert find_untracked_documents(memory_ctx) == ["README.md", "docs/untitled.md"]

    def test_untracked_documents_follow_project_config(self, memory_ctx, doc_repo, write):
        write("tmp/scratch.md")
        write(".gitignore", "ignored.md\n")
        write("ignored.md")
        memory_ctx.project_config = ProjectConfig.model_validate(
            {"context": {"patterns": {"exclude": ["tmp/**"]}}}
        )
        assert find_untracked_documents(memory_ctx) == ["docs/storage.md", "docs/untitled.md"]

        memory_ctx.project_config = ProjectConfig.model_validate(
            {"context": {"patterns": {"exclude": ["tmp/**"]}, "useGitignore": False}}
        )
        assert find_untracked_documents(memory_ctx) == [
            "docs/storage.md", "docs/untitled.md", "ignored.md",
        ]

    def test_dot_slash_overview_counts_as_tracked(self, memory_ctx, doc_repo):
        view = ViewBuilder(memory_ctx).build_view(
            "docs/untitled.md", ViewCreationOptions(dry_run=True)
        ).view
        view.overview_path = "./docs/untitled.md"
        memory_ctx.store.save(memory_ctx.root, view)
        assert "docs/untitled.md" not in find_untracked_documents(memory_ctx)
