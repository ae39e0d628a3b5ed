"""Configuration management for bizcontext."""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, ValidationError

from bizcontext.exceptions import ConfigError

BIZCONTEXT_DIR = ".bizcontext"
CONFIG_FILE = "config.json"


class LLMConfig(BaseModel):
    """LLM provider configuration."""

    provider: str = "anthropic"
    model: str = "claude-sonnet-4-5-20250929"
    api_key_env: str = ""
    max_tokens: int = 1024
    temperature: float = 0.0
    base_url: str | None = None
    embedding_model: str = "text-embedding-3-small"

    @property
    def api_key(self) -> str | None:
        if self.api_key_env:
            return os.environ.get(self.api_key_env)
        # Try common env vars
        env_map = {
            "openai": "OPENAI_API_KEY",
            "anthropic": "ANTHROPIC_API_KEY",
        }
        env_var = env_map.get(self.provider, "")
        return os.environ.get(env_var)


class AnalysisConfig(BaseModel):
    """Question interpretation settings."""

    cache_ttl_seconds: int = 30 * 60
    term_match_threshold: float = 0.8
    min_term_length: int = 4


class PrioritizationConfig(BaseModel):
    """Context prioritization settings."""

    cache_ttl_seconds: int = 30 * 60
    value_scale: int = 1000  # knapsack value quantization
    relationship_relevance: float = 0.6
    default_strategy: str = "balanced"
    max_tokens: int = 4000
    reserved_response_tokens: int = 500


class ProjectConfig(BaseModel):
    """Full project configuration."""

    name: str = ""
    root_path: str = "."
    llm: LLMConfig = Field(default_factory=LLMConfig)
    analysis: AnalysisConfig = Field(default_factory=AnalysisConfig)
    prioritization: PrioritizationConfig = Field(default_factory=PrioritizationConfig)


def find_project_root(start: Path | None = None) -> Path | None:
    """Walk up from `start` looking for a .bizcontext directory."""
    current = (start or Path.cwd()).resolve()
    while current != current.parent:
        if (current / BIZCONTEXT_DIR).is_dir():
            return current
        current = current.parent
    if (current / BIZCONTEXT_DIR).is_dir():
        return current
    return None


def get_bizcontext_dir(root: Path) -> Path:
    """Get the .bizcontext directory for a project root."""
    return root / BIZCONTEXT_DIR


def load_config(root: Path) -> ProjectConfig:
    """Load configuration from .bizcontext/config.json."""
    config_path = get_bizcontext_dir(root) / CONFIG_FILE
    if config_path.exists():
        try:
            data = json.loads(config_path.read_text())
            return ProjectConfig(**data)
        except (json.JSONDecodeError, ValidationError) as e:
            raise ConfigError(f"Invalid config file {config_path}: {e}") from e
    return ProjectConfig(name=root.name, root_path=str(root))


def save_config(root: Path, config: ProjectConfig) -> None:
    """Save configuration to .bizcontext/config.json."""
    cfg_dir = get_bizcontext_dir(root)
    cfg_dir.mkdir(parents=True, exist_ok=True)
    config_path = cfg_dir / CONFIG_FILE
    config_path.write_text(json.dumps(config.model_dump(), indent=2))


def set_config_value(config: ProjectConfig, key: str, value: Any) -> ProjectConfig:
    """Set a nested config value using dot notation (e.g., 'llm.provider')."""
    parts = key.split(".")
    data = config.model_dump()
    target = data
    for part in parts[:-1]:
        if part not in target or not isinstance(target[part], dict):
            raise KeyError(f"Invalid config key: {key}")
        target = target[part]
    if parts[-1] not in target:
        raise KeyError(f"Invalid config key: {key}")
    target[parts[-1]] = value
    return ProjectConfig(**data)
