"""Tests for codeviews.validation."""

import json

import pytest

from codeviews.errors import RepositoryNotFoundError
from codeviews.models import CodebaseView, IssueSeverity, ReferenceGroup
from codeviews.parsing import extract_structure_from_markdown
from codeviews.validation import (
    ViewValidated,
    ViewValidationFailed,
    ViewValidator,
    find_view,
    parse_view,
    validate_specific_views,
    validate_views,
)


def _view(**overrides) -> CodebaseView:
    base = dict(
        name="Core",
        rows=1,
        cols=2,
        reference_groups={
            "A": ReferenceGroup(coordinates=[0, 0], files=["src/a.ts"]),
            "B": ReferenceGroup(coordinates=[0, 1], files=["src/b.ts"]),
        },
        overview_path="docs/core.md",
    )
    base.update(overrides)
    return CodebaseView(**base)


@pytest.fixture
def populated(repo, write):
    write("src/a.ts")
    write("src/b.ts")
    write("docs/core.md", "# Core\n")
    return repo


@pytest.fixture
def validator():
    return ViewValidator()


def _types(result):
    return [i.type for i in result.issues]


class TestViewValidator:
    def test_valid_view(self, validator, populated):
        result = validator.validate(_view(), populated)
        assert result.is_valid
        assert result.issues == []
        assert result.summary == {"errors": 0, "warnings": 0, "info": 0}
        assert result.validated_view is not None

    def test_missing_file(self, validator, populated):
        (populated / "src/b.ts").unlink()
        result = validator.validate(_view(), populated)
        assert not result.is_valid
        assert result.error_count == 1
        issue = result.issues[0]
        assert issue.message == "File not found: src/b.ts"
        assert issue.location == "B"

    def test_leading_slash_resolved_against_root(self, validator, populated):
        view = _view(reference_groups={"A": ReferenceGroup(coordinates=[0, 0], files=["/src/a.ts"])})
        assert validator.validate(view, populated).is_valid

    def test_only_one_leading_slash_stripped(self, validator, populated):
        view = _view(reference_groups={"A": ReferenceGroup(coordinates=[0, 0], files=["//src/a.ts"])})
        result = validator.validate(view, populated)
        assert _types(result) == ["missing_file"]

    def test_missing_overview(self, validator, populated):
        result = validator.validate(_view(overview_path="docs/gone.md"), populated)
        assert _types(result) == ["missing_overview"]
        assert result.issues[0].severity is IssueSeverity.ERROR

    def test_empty_overview_is_warning(self, validator, populated):
        result = validator.validate(_view(overview_path=""), populated)
        assert result.is_valid
        assert result.warning_count == 1

    def test_missing_name(self, validator, populated):
        result = validator.validate(_view(name="", id="core"), populated)
        assert _types(result) == ["missing_field"]

    def test_out_of_bounds(self, validator, populated):
        view = _view(cols=1)
        result = validator.validate(view, populated)
        assert _types(result) == ["coordinate_bounds"]
        assert result.issues[0].location == "B"

    def test_duplicate_coordinates(self, validator, populated):
        view = _view(reference_groups={
            "A": ReferenceGroup(coordinates=[0, 0], files=["src/a.ts"]),
            "B": ReferenceGroup(coordinates=[0, 0], files=["src/b.ts"]),
        })
        result = validator.validate(view, populated)
        assert _types(result) == ["duplicate_coordinates"]

    def test_non_positive_grid(self, validator, populated):
        view = _view(rows=0, reference_groups={})
        result = validator.validate(view, populated)
        assert "invalid_grid" in _types(result)
        assert not result.is_valid

    def test_non_positive_grid_clamped_for_bounds(self, validator, populated):
        result = validator.validate(_view(rows=0), populated)
        assert _types(result) == ["invalid_grid"]

    def test_empty_group_is_info(self, validator, populated):
        view = _view(reference_groups={"A": ReferenceGroup(coordinates=[0, 0], files=[])})
        result = validator.validate(view, populated)
        assert result.is_valid
        assert result.info_count == 1

    def test_no_groups_is_info(self, validator, populated):
        result = validator.validate(_view(reference_groups={}), populated)
        assert result.is_valid
        assert _types(result) == ["empty_view"]

    def test_missing_root_raises(self, validator, tmp_path):
        with pytest.raises(RepositoryNotFoundError):
            validator.validate(_view(), tmp_path / "missing")

    def test_dict_input_goes_through_parse(self, validator, populated):
        data = _view().to_dict()
        data["referenceGroups"]["A"]["coordinates"] = "0,0"
        result = validator.validate(data, populated)
        assert not result.is_valid
        assert list(result.validated_view.reference_groups) == ["B"]

    def test_my_view_scenario(self, validator, repo, write, my_view_markdown):
        write("src/a.ts")
        write("docs/my-view.md", my_view_markdown)
        structure = extract_structure_from_markdown(my_view_markdown)
        view = CodebaseView(
            name=structure.name,
            rows=structure.rows,
            cols=structure.cols,
            reference_groups=structure.reference_groups,
            overview_path="docs/my-view.md",
        )
        result = validator.validate(view, repo)
        assert result.error_count == 1
        assert result.issues[0].message == "File not found: src/b.ts"

    def test_json_roundtrip_preserves_result(self, validator, populated):
        (populated / "src/b.ts").unlink()
        view = _view(rows=1, cols=1)
        before = validator.validate(view, populated)
        restored = CodebaseView.from_dict(json.loads(json.dumps(view.to_dict())))
        after = validator.validate(restored, populated)
        assert before.is_valid == after.is_valid
        assert len(before.issues) == len(after.issues)

    def test_to_dict(self, validator, populated):
        (populated / "src/a.ts").unlink()
        data = validator.validate(_view(), populated).to_dict()
        assert data["isValid"] is False
        assert data["summary"]["errors"] == 1
        assert data["issues"][0]["type"] == "missing_file"


class TestParseView:
    def test_non_object(self):
        parsed = parse_view(["not", "a", "view"])
        assert parsed.view is None
        assert parsed.issues[0].severity is IssueSeverity.ERROR
        assert "Example" in parsed.issues[0].context

    def test_missing_reference_groups(self):
        parsed = parse_view({"name": "V"})
        assert parsed.view is not None
        assert parsed.view.reference_groups == {}
        assert [i.type for i in parsed.issues] == ["missing_field"]

    def test_reference_groups_not_object(self):
        parsed = parse_view({"name": "V", "referenceGroups": []})
        assert parsed.issues[0].location == "referenceGroups"
        assert "coordinates" in parsed.issues[0].context

    @pytest.mark.parametrize("group", [
        "nope",
        {"files": ["a.ts"]},
        {"coordinates": [0], "files": ["a.ts"]},
        {"coordinates": [0, "1"], "files": ["a.ts"]},
        {"coordinates": [True, 0], "files": ["a.ts"]},
    ])
    def test_unplaceable_group_dropped(self, group):
        parsed = parse_view({"name": "V", "referenceGroups": {"G": group}})
        assert parsed.view.reference_groups == {}
        assert parsed.issues[0].severity is IssueSeverity.ERROR
        assert parsed.issues[0].location == "G"

    def test_bad_files_reported_group_kept(self):
        parsed = parse_view({"name": "V", "referenceGroups": {
            "G": {"coordinates": [0, 0], "files": ["a.ts", 3]},
        }})
        assert parsed.view.reference_groups["G"].files == ["a.ts"]
        assert len(parsed.issues) == 1

    def test_wrong_scalar_types(self):
        parsed = parse_view({"name": 5, "rows": "2", "displayOrder": "x", "referenceGroups": {}})
        severities = sorted(i.severity.value for i in parsed.issues)
        assert severities == ["error", "error", "warning"]
        assert parsed.view.rows == 1

    @pytest.mark.parametrize("view_id", ["../../../escaped", "a/b", ".hidden", "x..y", "a b"])
    def test_unsafe_id_rejected(self, view_id):
        parsed = parse_view({"id": view_id, "name": "Escaped View", "referenceGroups": {}})
        (issue,) = [i for i in parsed.issues if i.location == "id"]
        assert issue.severity is IssueSeverity.ERROR
        assert parsed.view.id == "escaped-view"

    def test_slug_id_kept(self):
        parsed = parse_view({"id": "api_v2.core-view", "name": "X", "referenceGroups": {}})
        assert parsed.issues == []
        assert parsed.view.id == "api_v2.core-view"

    def test_never_raises_on_garbage(self):
        for data in (None, 3, "x", {"referenceGroups": {"G": None}}, {"timestamp": 5}):
            parsed = parse_view(data)
            assert parsed.issues


class TestBatch:
    def test_validate_views_one_outcome_per_view(self, validator, populated):
        views = [_view(), _view(name="Broken", overview_path="docs/nope.md")]
        summary = validate_views(views, validator, populated)
        assert summary.total_views == 2
        assert summary.valid_views == 1
        assert summary.invalid_views == 1
        assert summary.to_dict()["errorCount"] == 1

    def test_unknown_identifier_is_failure_entry(self, validator, populated):
        summary = validate_specific_views([_view()], ["core", "ghost"], validator, populated)
        assert isinstance(summary.results[0], ViewValidated)
        assert isinstance(summary.results[1], ViewValidationFailed)
        assert summary.results[1].error == "View not found: ghost"

    def test_find_view_by_id_then_name(self):
        views = [_view(), _view(name="Other", id="other")]
        assert find_view(views, "core").name == "Core"
        assert find_view(views, "Other").id == "other"
        assert find_view(views, "missing") is None
