"""Tests for codeviews.config."""

import pytest
from pydantic import ValidationError

from codeviews.config import (
    CONFIG_VERSION,
    CodeviewsSettings,
    ProjectConfig,
    find_config_file,
    get_settings,
    load_project_config,
    reset_settings,
    validate_project_config,
)
from codeviews.errors import ConfigError
from codeviews.models import IssueSeverity


class TestSettings:
    def test_defaults(self):
        settings = CodeviewsSettings()
        assert settings.data_dir == ".codeviews"
        assert settings.views_dir == "views"
        assert settings.storage_type == "file"
        assert settings.log_level == "warning"
        assert settings.stale_days == 30

    def test_environment(self, monkeypatch):
        monkeypatch.setenv("CODEVIEWS_DATA_DIR", "/.views/")
        monkeypatch.setenv("CODEVIEWS_LOG_LEVEL", "debug")
        monkeypatch.setenv("CODEVIEWS_STALE_DAYS", "7")
        settings = CodeviewsSettings()
        assert settings.data_dir == ".views"
        assert settings.log_level == "debug"
        assert settings.stale_days == 7

    def test_rejects_empty_directory(self):
        with pytest.raises(ValidationError):
            CodeviewsSettings(data_dir="/")

    def test_rejects_non_positive_stale_days(self):
        with pytest.raises(ValidationError):
            CodeviewsSettings(stale_days=0)

    def test_singleton(self):
        first = get_settings()
        assert get_settings() is first
        overridden = get_settings(storage_type="memory")
        assert overridden.storage_type == "memory"
        assert get_settings() is overridden
        reset_settings()
        assert get_settings().storage_type == "file"


class TestProjectConfig:
    def test_missing_file_gives_defaults(self, repo):
        config = load_project_config(repo)
        assert config.version == CONFIG_VERSION
        assert config.use_gitignore is True
        assert config.exclude_patterns == []
        assert config.source_path is None

    def test_json_file(self, repo, write):
        write(".codeviewsrc.json", (
            '{"version": "1.0.0", "context": {"useGitignore": false,'
            ' "patterns": {"exclude": ["tmp/**"]},'
            ' "rules": [{"id": "stale-references", "severity": "info",'
            ' "options": {"maxAgeDays": 14}}]}}'
        ))
        config = load_project_config(repo)
        assert config.use_gitignore is False
        assert config.exclude_patterns == ["tmp/**"]
        rule = config.rule("stale-references")
        assert rule.severity is IssueSeverity.INFO
        assert rule.options == {"maxAgeDays": 14}
        assert config.rule("missing") is None
        assert config.source_path.endswith(".codeviewsrc.json")

    def test_yaml_file(self, repo, write):
        write(".codeviewsrc.yaml", (
            "context:\n"
            "  rules:\n"
            "    - id: require-references\n"
            "      enabled: false\n"
        ))
        config = load_project_config(repo)
        assert config.rule("require-references").enabled is False

    def test_json_preferred_over_yaml(self, repo, write):
        write(".codeviewsrc.yaml", "version: '2.0.0'\n")
        write(".codeviewsrc.json", '{"version": "1.0.0"}')
        assert find_config_file(repo).name == ".codeviewsrc.json"

    def test_empty_file(self, repo, write):
        write(".codeviewsrc.yml", "")
        assert load_project_config(repo).version == CONFIG_VERSION

    @pytest.mark.parametrize("content", [
        "context: [unclosed\n",
        "- just\n- a list\n",
        '{"context": {"rules": [{"severity": "error"}]}}',
        '{"context": {"rules": [{"id": "x", "severity": "fatal"}]}}',
        '{"context": {"rules": [{"id": "x", "unknown": 1}]}}',
    ])
    def test_invalid_files(self, repo, write, content):
        write(".codeviewsrc.yaml", content)
        with pytest.raises(ConfigError):
            load_project_config(repo)

    def test_source_path_not_serialized(self):
        config = ProjectConfig(source_path="/x/.codeviewsrc.json")
        assert "source_path" not in config.model_dump()


class TestValidateProjectConfig:
    def test_clean_config(self):
        config = ProjectConfig.model_validate(
            {"context": {"rules": [{"id": "stale-references"}]}}
        )
        assert validate_project_config(config, ["stale-references"]) == []

    def test_warnings(self):
        config = ProjectConfig.model_validate({
            "version": "0.9.0",
            "context": {"rules": [
                {"id": "stale-references"},
                {"id": "stale-references"},
                {"id": "no-such-rule"},
            ]},
        })
        warnings = validate_project_config(config, ["stale-references"])
        assert len(warnings) == 3
        assert any("configured more than once" in w for w in warnings)
        assert any("Unknown rule 'no-such-rule'" in w for w in warnings)
        assert any("0.9.0" in w for w in warnings)
