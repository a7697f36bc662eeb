"""
codeviews - Map markdown documentation onto the code it describes.

A CodebaseView is a JSON record that groups repository files under the
sections of an overview document, laid out on a small grid. This package
extracts views from markdown, validates them against the repository, stores
them under ``.codeviews/views/`` and measures how well they cover the code.

Example usage:
    from codeviews import RepositoryContext, ViewBuilder

    ctx = RepositoryContext.open(".")
    result = ViewBuilder(ctx).build_view("docs/architecture.md")
    if result.success:
        print(result.view.id, list(result.view.reference_groups))
"""

__version__ = "0.1.0"
__all__ = [
    "CodebaseView",
    "ReferenceGroup",
    "RepositoryContext",
    "ViewBuilder",
    "ViewValidator",
    "RepositoryAnalyzer",
    "extract_structure_from_markdown",
    "stamp_view",
    "__version__",
]


# Lazy imports keep ``import codeviews`` cheap for the CLI
def __getattr__(name: str):
    if name in ("CodebaseView", "ReferenceGroup"):
        from codeviews import models
        return getattr(models, name)
    if name in ("RepositoryContext", "stamp_view"):
        from codeviews import repository
        return getattr(repository, name)
    if name == "ViewBuilder":
        from codeviews.builder import ViewBuilder
        return ViewBuilder
    if name == "ViewValidator":
        from codeviews.validation import ViewValidator
        return ViewValidator
    if name == "RepositoryAnalyzer":
        from codeviews.analyzer import RepositoryAnalyzer
        return RepositoryAnalyzer
    if name == "extract_structure_from_markdown":
        from codeviews.parsing import extract_structure_from_markdown
        return extract_structure_from_markdown
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
