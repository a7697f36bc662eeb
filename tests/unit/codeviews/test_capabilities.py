"""Tests for codeviews.capabilities."""

import os

import pytest

from codeviews.capabilities import (
    FileSystem,
    GitignoreRules,
    GlobMatcher,
    LocalFileSystem,
    PathGlobMatcher,
    strip_leading_slash,
)
from codeviews.errors import RepositoryNotFoundError


@pytest.fixture
def matcher():
    return PathGlobMatcher()


class TestPathGlobMatcher:
    @pytest.mark.parametrize("pattern,path,expected", [
        ("*.ts", "a.ts", True),
        ("*.ts", "src/a.ts", False),
        ("**/*.ts", "a.ts", True),
        ("**/*.ts", "src/deep/a.ts", True),
        ("src/**", "src/a/b.ts", True),
        ("src/**", "lib/a.ts", False),
        ("**/node_modules/**", "node_modules/x/index.js", True),
        ("**/node_modules/**", "pkg/node_modules/x.js", True),
        ("doc?.md", "docs.md", True),
        ("doc?.md", "doc/.md", False),
        ("[ab].ts", "a.ts", True),
        ("[!ab].ts", "a.ts", False),
        ("[!ab].ts", "c.ts", True),
        ("build/", "build", True),
        ("build/", "build/out.js", True),
        ("build/", "builder/out.js", False),
        ("a.b", "axb", False),
    ])
    def test_matches(self, matcher, pattern, path, expected):
        assert matcher.matches(pattern, path) is expected

    def test_matches_any(self, matcher):
        assert matcher.matches_any(["*.md", "*.ts"], "a.ts")
        assert not matcher.matches_any([], "a.ts")

    def test_satisfies_protocol(self, matcher):
        assert isinstance(matcher, GlobMatcher)


class TestGitignoreRules:
    def test_basic_rules(self):
        rules = GitignoreRules(["# comment", "", "*.log", "/dist", "tmp/"])
        assert rules.ignores("app.log")
        assert rules.ignores("nested/app.log")
        assert rules.ignores("dist", is_dir=True)
        assert rules.ignores("dist/bundle.js")
        assert not rules.ignores("src/dist/bundle.js")
        assert rules.ignores("tmp", is_dir=True)
        assert rules.ignores("a/tmp/file.txt")
        assert not rules.ignores("tmp")

    def test_negation(self):
        rules = GitignoreRules(["*.md", "!keep.md"])
        assert rules.ignores("notes.md")
        assert not rules.ignores("keep.md")

    def test_load_missing_file(self, repo):
        assert GitignoreRules.load(repo).rules == []


class TestLocalFileSystem:
    def test_satisfies_protocol(self):
        assert isinstance(LocalFileSystem(), FileSystem)

    def test_exists_and_read(self, repo, write):
        write("a.txt", "hello")
        fs = LocalFileSystem()
        assert fs.exists(repo / "a.txt")
        assert not fs.exists(repo / "b.txt")
        assert fs.is_directory(repo)
        assert fs.read_file(repo / "a.txt") == "hello"
        with pytest.raises(FileNotFoundError):
            fs.read_file(repo / "b.txt")

    def test_list_files(self, repo, write):
        for path in ("README.md", "docs/a.md", "src/x.ts", "node_modules/p/r.md", "out.log"):
            write(path)
        write(".git/HEAD.md")
        files = LocalFileSystem().list_files(
            repo, ["**/*.md", "**/*.ts"], exclude_patterns=["**/node_modules/**"]
        )
        assert files == ["README.md", "docs/a.md", "src/x.ts"]

    def test_list_files_respects_gitignore(self, repo, write):
        write(".gitignore", "generated/\nsecret.md\n")
        write("generated/g.md")
        write("secret.md")
        write("public.md")
        fs = LocalFileSystem()
        assert fs.list_files(repo, ["**/*.md"]) == ["public.md"]
        assert fs.list_files(repo, ["**/*.md"], respect_gitignore=False) == [
            "generated/g.md", "public.md", "secret.md",
        ]

    def test_list_files_missing_root(self, tmp_path):
        with pytest.raises(RepositoryNotFoundError):
            LocalFileSystem().list_files(tmp_path / "missing", ["**/*"])

    def test_list_files_walk_error_raised(self, repo, write, monkeypatch):
        write("a.md")

        def failing_walk(top, topdown=True, onerror=None, followlinks=False):
            onerror(PermissionError(13, "Permission denied", str(top)))
            return iter(())

        monkeypatch.setattr(os, "walk", failing_walk)
        with pytest.raises(PermissionError):
            LocalFileSystem().list_files(repo, ["**/*.md"])


@pytest.mark.parametrize("path,expected", [
    ("/src/a.ts", "src/a.ts"),
    ("//src/a.ts", "/src/a.ts"),
    ("src/a.ts", "src/a.ts"),
    ("./src/a.ts", "./src/a.ts"),
])
def test_strip_leading_slash(path, expected):
    assert strip_leading_slash(path) == expected
