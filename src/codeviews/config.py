"""
Configuration for codeviews.

Two layers:

1. ``CodeviewsSettings``: process settings from environment variables
   (``CODEVIEWS_*``) or a ``.env`` file, via pydantic-settings.
2. ``ProjectConfig``: the per-repository rc file
   (``.codeviewsrc.json`` / ``.codeviewsrc.yaml``) holding exclude patterns
   and lint rule configuration.

Example .codeviewsrc.yaml:
    version: "1.0.0"
    context:
      useGitignore: true
      patterns:
        exclude: ["tmp/**"]
      rules:
        - id: stale-references
          severity: info
          options:
            maxAgeDays: 14
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, Iterable, List, Literal, Optional

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from codeviews.errors import ConfigError
from codeviews.models import IssueSeverity

logger = logging.getLogger(__name__)

CONFIG_FILENAMES = (".codeviewsrc.json", ".codeviewsrc.yaml", ".codeviewsrc.yml")
CONFIG_VERSION = "1.0.0"


class CodeviewsSettings(BaseSettings):
    """
    Process-level settings.

    Example:
        export CODEVIEWS_LOG_LEVEL=debug
        export CODEVIEWS_DATA_DIR=.views
    """

    model_config = SettingsConfigDict(
        env_prefix="CODEVIEWS_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    data_dir: str = Field(
        default=".codeviews",
        description="Directory (relative to the repository root) holding codeviews data",
    )
    views_dir: str = Field(
        default="views",
        description="Sub-directory of data_dir holding one JSON file per view",
    )
    storage_type: Literal["file", "memory"] = Field(
        default="file",
        description="View store backend",
    )
    log_level: Literal["debug", "info", "warning", "error"] = Field(
        default="warning",
        description="Logging level for codeviews",
    )
    log_format: Literal["json", "text"] = Field(
        default="text",
        description="Log output format",
    )
    stale_days: int = Field(
        default=30,
        ge=1,
        description="Default age threshold for the stale-references lint rule",
    )

    @field_validator("data_dir", "views_dir")
    @classmethod
    def relative_dir(cls, v: str) -> str:
        """Strip surrounding slashes so the directory stays inside the repository."""
        v = v.strip().strip("/")
        if not v:
            raise ValueError("directory name must not be empty")
        return v


_settings: Optional[CodeviewsSettings] = None


def get_settings(**overrides: Any) -> CodeviewsSettings:
    """
    Get the process-wide settings instance.

    Creates a singleton on first call. Subsequent calls return the same
    instance unless overrides are provided.
    """
    global _settings

    if overrides or _settings is None:
        _settings = CodeviewsSettings(**overrides)

    return _settings


def reset_settings() -> None:
    """Reset the cached settings (for testing)."""
    global _settings
    _settings = None


class RuleConfig(BaseModel):
    """Configuration of a single lint rule."""
    model_config = ConfigDict(extra="forbid")

    id: str = Field(..., description="Rule identifier, e.g. 'stale-references'")
    severity: Optional[IssueSeverity] = Field(None, description="Overrides the rule's default")
    enabled: bool = Field(True)
    options: Dict[str, Any] = Field(default_factory=dict)


class PatternsConfig(BaseModel):
    exclude: List[str] = Field(default_factory=list)


class ContextConfig(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    use_gitignore: bool = Field(default=True, alias="useGitignore")
    patterns: PatternsConfig = Field(default_factory=PatternsConfig)
    rules: List[RuleConfig] = Field(default_factory=list)


class ProjectConfig(BaseModel):
    """Contents of a repository's .codeviewsrc file."""
    model_config = ConfigDict(populate_by_name=True, extra="allow")

    version: str = Field(default=CONFIG_VERSION)
    context: ContextConfig = Field(default_factory=ContextConfig)
    source_path: Optional[str] = Field(default=None, exclude=True)

    @property
    def exclude_patterns(self) -> List[str]:
        return list(self.context.patterns.exclude)

    @property
    def use_gitignore(self) -> bool:
        return self.context.use_gitignore

    def rule(self, rule_id: str) -> Optional[RuleConfig]:
        for rule in self.context.rules:
            if rule.id == rule_id:
                return rule
        return None


def find_config_file(repository_root: str | Path) -> Optional[Path]:
    """Return the first rc file present at the repository root."""
    for name in CONFIG_FILENAMES:
        path = Path(repository_root) / name
        if path.is_file():
            return path
    return None


def load_project_config(repository_root: str | Path) -> ProjectConfig:
    """
    Load the repository rc file, or defaults when there is none.

    YAML is a superset of JSON, so one loader handles both formats.

    Raises:
        ConfigError: the file cannot be read, is not valid YAML/JSON, or
            does not match the expected structure.
    """
    path = find_config_file(repository_root)
    if path is None:
        return ProjectConfig()

    try:
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except OSError as e:
        raise ConfigError(f"Cannot read {path.name}: {e}") from e
    except yaml.YAMLError as e:
        raise ConfigError(f"Failed to parse {path.name}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigError(f"{path.name} must contain an object at the top level")

    try:
        config = ProjectConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"Invalid configuration in {path.name}:\n{e}") from e

    config.source_path = str(path)
    logger.debug(f"Loaded project config from {path}")
    return config


def validate_project_config(config: ProjectConfig, known_rule_ids: Iterable[str]) -> List[str]:
    """Return human-readable warnings for a structurally valid config."""
    known = set(known_rule_ids)
    warnings = []
    seen = set()
    for rule in config.context.rules:
        if rule.id not in known:
            warnings.append(
                f"Unknown rule '{rule.id}' (available: {', '.join(sorted(known))})"
            )
        if rule.id in seen:
            warnings.append(f"Rule '{rule.id}' is configured more than once; the first entry wins")
        seen.add(rule.id)
    if config.version != CONFIG_VERSION:
        warnings.append(f"Config version {config.version} differs from {CONFIG_VERSION}")
    return warnings
