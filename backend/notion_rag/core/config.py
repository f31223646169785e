"""Application configuration handling."""

from __future__ import annotations

import os
import re
from functools import lru_cache
from pathlib import Path
from typing import Any, Literal, Mapping

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

from notion_rag.core.errors import ConfigError

ENV_PREFIX = "NRAG_"
DEFAULT_CONFIG_PATH = Path("./config/notion-config.yaml")

_ENV_PLACEHOLDER_RE = re.compile(r"\$\{([^}]+)\}")

_YAML_KEY_MAP: Mapping[tuple[str, ...], str] = {
    ("auth", "api_token"): "notion_api_token",
    ("auth", "notion_version"): "notion_version",
    ("sources", "pages"): "pages",
    ("sources", "databases"): "databases",
    ("storage", "db_path"): "db_path",
    ("embeddings", "backend"): "embedding_backend",
    ("embeddings", "model"): "embedding_model",
    ("embeddings", "api_key"): "google_api_key",
    ("embeddings", "dim"): "hashed_dim",
    ("processing", "chunk_max_chars"): "chunk_max_chars",
    ("processing", "chunk_failure_policy"): "chunk_failure_policy",
    ("retrieval", "threshold"): "similarity_threshold",
    ("retrieval", "limit"): "retrieval_limit",
    ("sync", "skip_unchanged"): "skip_unchanged",
    ("http", "timeout"): "request_timeout",
}

# Environment variables read when neither YAML nor NRAG_* provide a value.
_FALLBACK_ENV: Mapping[str, str] = {
    "notion_api_token": "NOTION_API_TOKEN",
    "google_api_key": "GOOGLE_API_KEY",
}


class PageSource(BaseModel):
    """A single page to ingest together with its subtree."""

    id: str
    name: str | None = None


class DatabaseSource(BaseModel):
    """A database whose rows are each ingested as a page."""

    id: str
    name: str | None = None
    filter: dict[str, Any] | None = None


class Settings(BaseModel):
    """Runtime configuration loaded from YAML file and environment variables."""

    db_path: Path = Field(default=Path.home() / ".notion-rag" / "nrag.db")
    notion_api_token: str = ""
    notion_version: str = "2022-06-28"
    embedding_backend: Literal["gemini", "hashed"] = "gemini"
    embedding_model: str = "embedding-001"
    google_api_key: str = ""
    hashed_dim: int = Field(default=384, gt=0)
    chunk_max_chars: int = Field(default=1000, gt=0)
    chunk_failure_policy: Literal["fail_fast", "skip"] = "fail_fast"
    similarity_threshold: float = Field(default=0.3, ge=-1.0, le=1.0)
    retrieval_limit: int = Field(default=5, ge=1)
    skip_unchanged: bool = False
    request_timeout: float = Field(default=30.0, gt=0)
    pages: list[PageSource] = Field(default_factory=list)
    databases: list[DatabaseSource] = Field(default_factory=list)

    model_config = {
        "validate_assignment": True,
        "extra": "ignore",
    }

    @field_validator("db_path", mode="before")
    @classmethod
    def _expand_db_path(cls, value: Any) -> Path:
        if isinstance(value, Path):
            return value.expanduser()
        if isinstance(value, str):
            return Path(value).expanduser()
        raise TypeError("db_path must be a path or string")

    @classmethod
    def from_yaml(cls, path: Path | None = None) -> "Settings":
        """Load YAML config and overlay env vars; fall back to defaults."""
        config_path = cls._resolve_config_path(path)
        data: dict[str, Any] = {}
        if config_path is not None:
            if not config_path.exists():
                raise ConfigError(f"Config file not found: {config_path}")
            try:
                with config_path.open("r", encoding="utf-8") as fh:
                    raw = yaml.safe_load(fh) or {}
            except yaml.YAMLError as exc:
                raise ConfigError(f"Invalid YAML in {config_path}: {exc}") from exc
            if not isinstance(raw, Mapping):
                raise ConfigError(f"Config root must be a mapping: {config_path}")
            data.update(_flatten_yaml(raw))
        data.update(_load_env_overrides())
        for field_name, env_name in _FALLBACK_ENV.items():
            if not data.get(field_name) and os.environ.get(env_name):
                data[field_name] = os.environ[env_name]
        try:
            return cls(**data)
        except ValidationError as exc:
            raise ConfigError(f"Invalid configuration: {exc}") from exc

    @staticmethod
    def _resolve_config_path(path: Path | None) -> Path | None:
        if path is not None:
            return path.expanduser()
        env_path = os.environ.get(f"{ENV_PREFIX}CONFIG")
        if env_path:
            return Path(env_path).expanduser()
        resolved_default = DEFAULT_CONFIG_PATH.expanduser()
        return resolved_default if resolved_default.exists() else None

    def require_notion_token(self) -> str:
        if not self.notion_api_token:
            raise ConfigError("A Notion API token is required (auth.api_token or NOTION_API_TOKEN)")
        return self.notion_api_token


def resolve_env_placeholders(value: str) -> str:
    """Replace ``${VAR}`` placeholders with environment values (empty when unset)."""
    return _ENV_PLACEHOLDER_RE.sub(lambda match: os.environ.get(match.group(1), ""), value)


def _flatten_yaml(raw: Mapping[str, Any], prefix: tuple[str, ...] = ()) -> dict[str, Any]:
    """Flatten nested YAML configuration to Settings field names."""
    flat: dict[str, Any] = {}
    for key, value in raw.items():
        next_prefix = prefix + (key,)
        if isinstance(value, Mapping):
            flat.update(_flatten_yaml(value, prefix=next_prefix))
            continue
        if isinstance(value, str):
            value = resolve_env_placeholders(value)
        mapped_key = _YAML_KEY_MAP.get(next_prefix)
        if mapped_key:
            flat[mapped_key] = value
        elif key in Settings.model_fields:
            flat[key] = value
    return flat


def _load_env_overrides() -> dict[str, Any]:
    """Map environment variables with NRAG_ prefix into Settings fields."""
    overrides: dict[str, Any] = {}
    for key, value in os.environ.items():
        if not key.startswith(ENV_PREFIX):
            continue
        field_name = key[len(ENV_PREFIX) :].lower()
        if field_name in Settings.model_fields and field_name not in {"pages", "databases"}:
            overrides[field_name] = value
    return overrides


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Cached settings accessor for the API composition root."""
    return Settings.from_yaml()


__all__ = [
    "DatabaseSource",
    "PageSource",
    "Settings",
    "get_settings",
    "resolve_env_placeholders",
]
