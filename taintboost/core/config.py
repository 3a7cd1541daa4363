"""
Hierarchical settings for taintboost.

Priority (highest to lowest):
1. Explicit overrides
2. Environment variables (TAINTBOOST_*)
3. Project config (.taintboost.yml)
4. User config (~/.taintboost/config.yml)
5. Default values
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Optional

import yaml
from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from taintboost.endpoints.configuration import QueryKind

PROJECT_CONFIG_NAME = ".taintboost.yml"


class ClassificationConfig(BaseModel):
    """Configuration for the classification pass."""

    queries: list[str] = Field(default_factory=lambda: [k.value for k in QueryKind])
    max_workers: Optional[int] = None
    include_labels: bool = True

    @field_validator("queries")
    @classmethod
    def validate_queries(cls, v: list[str]) -> list[str]:
        """Validate query ids."""
        valid = {k.value for k in QueryKind}
        normalized = [q.lower().replace("_", "-") for q in v]
        for query in normalized:
            if query not in valid:
                raise ValueError(f"Invalid query: {query}. Must be one of {sorted(valid)}")
        return normalized

    @field_validator("max_workers")
    @classmethod
    def validate_workers(cls, v: Optional[int]) -> Optional[int]:
        if v is not None and v < 1:
            raise ValueError("max_workers must be at least 1")
        return v


class ScoringConfig(BaseModel):
    """Configuration for the ML scorer boundary."""

    batch_size: int = 32
    max_concurrency: int = 4

    @field_validator("batch_size", "max_concurrency")
    @classmethod
    def validate_positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError("must be at least 1")
        return v


class LoggingConfig(BaseModel):
    """Configuration for logging."""

    level: str = "INFO"
    file: Optional[Path] = None
    json_format: bool = False
    max_file_size_mb: int = 10
    backup_count: int = 5

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        """Validate logging level."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        v_upper = v.upper()
        if v_upper not in valid_levels:
            raise ValueError(f"Invalid log level: {v}. Must be one of {valid_levels}")
        return v_upper

    @field_validator("file", mode="before")
    @classmethod
    def validate_file(cls, v: Any) -> Optional[Path]:
        """Ensure file is a Path or None."""
        if v is None:
            return None
        if isinstance(v, str):
            return Path(v)
        return v


class TaintBoostSettings(BaseSettings):
    """Main settings model with hierarchical loading."""

    model_config = SettingsConfigDict(
        env_prefix="TAINTBOOST_",
        env_nested_delimiter="__",
        extra="ignore",
    )

    classification: ClassificationConfig = Field(default_factory=ClassificationConfig)
    scoring: ScoringConfig = Field(default_factory=ScoringConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @classmethod
    def load(
        cls,
        overrides: Optional[dict[str, Any]] = None,
        project_path: Optional[Path] = None,
    ) -> TaintBoostSettings:
        """
        Load settings from files, environment and overrides.

        Args:
            overrides: Nested settings with the highest priority
            project_path: Directory holding .taintboost.yml

        Returns:
            Merged settings
        """
        config_dict: dict[str, Any] = {}
        project_path = project_path or Path.cwd()

        user_config_path = Path.home() / ".taintboost" / "config.yml"
        if user_config_path.exists():
            config_dict = _deep_merge(config_dict, _read_yaml(user_config_path))

        project_config_path = project_path / PROJECT_CONFIG_NAME
        if project_config_path.exists():
            config_dict = _deep_merge(config_dict, _read_yaml(project_config_path))

        # Environment variables are applied by pydantic-settings, but init
        # kwargs would shadow them, so drop file values the env overrides
        config_dict = _drop_env_overridden(config_dict, cls.model_config["env_prefix"])

        if overrides:
            config_dict = _deep_merge(config_dict, overrides)

        return cls(**config_dict)

    def to_yaml(self, path: Path) -> None:
        """Write settings to a YAML file."""
        with open(path, "w") as f:
            yaml.dump(self.model_dump(mode="json"), f, default_flow_style=False, sort_keys=False)


def _read_yaml(path: Path) -> dict[str, Any]:
    with open(path) as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Config file {path} must contain a mapping")
    return data


def _drop_env_overridden(config: dict[str, Any], prefix: str) -> dict[str, Any]:
    result: dict[str, Any] = {}
    for section, values in config.items():
        if isinstance(values, dict):
            kept = {
                key: value
                for key, value in values.items()
                if f"{prefix}{section}__{key}".upper() not in os.environ
            }
            if kept:
                result[section] = kept
        elif f"{prefix}{section}".upper() not in os.environ:
            result[section] = values
    return result


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """
    Deep merge two dictionaries.

    Args:
        base: Base dictionary
        override: Dictionary with values to override

    Returns:
        Merged dictionary
    """
    result = base.copy()
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def get_default_settings() -> TaintBoostSettings:
    """Get settings with all defaults."""
    return TaintBoostSettings()


def validate_settings(settings: TaintBoostSettings) -> list[str]:
    """
    Validate settings and return a list of warnings.

    Returns:
        List of warning messages (empty if all valid)
    """
    warnings: list[str] = []

    if not settings.classification.queries:
        warnings.append("No queries enabled; classification will do nothing")
    if len(set(settings.classification.queries)) != len(settings.classification.queries):
        warnings.append("Duplicate query ids in classification.queries")
    if settings.classification.max_workers == 1:
        warnings.append("classification.max_workers=1 disables parallel classification")

    return warnings
