"""Application configuration handling."""

from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path
from typing import Any, Literal, Mapping

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator

from letters_rag.core.errors import ConfigurationError

ENV_PREFIX = "LRAG_"
DEFAULT_CONFIG_PATH = Path("~/.config/letters-rag/config.yaml")

LOCAL_EMBEDDING_DIM = 384
SEMANTIC_EMBEDDING_DIM = 1536

_YAML_KEY_MAP: Mapping[tuple[str, ...], str] = {
    ("storage", "db_path"): "db_path",
    ("storage", "data_dir"): "data_dir",
    ("embeddings", "backend"): "embedding_backend",
    ("embeddings", "model"): "embedding_model",
    ("embeddings", "dim"): "embedding_dim",
    ("generation", "model"): "llm_model",
    ("generation", "temperature"): "llm_temperature",
    ("generation", "corpus_name"): "corpus_name",
    ("generation", "base_url"): "openai_base_url",
    ("generation", "timeout"): "request_timeout",
    ("chunking", "size"): "chunk_size",
    ("chunking", "overlap"): "chunk_overlap",
    ("chunking", "min_chars"): "min_chunk_chars",
    ("retrieval", "top_k"): "top_k",
    ("logging", "level"): "log_level",
    ("logging", "json"): "log_json",
}


class Settings(BaseModel):
    """Runtime configuration loaded from YAML file and environment variables."""

    db_path: Path = Field(default=Path.home() / ".letters-rag" / "letters.db")
    data_dir: Path = Field(default=Path("data"))
    embedding_backend: Literal["local", "openai"] = "local"
    embedding_model: str = "text-embedding-3-small"
    embedding_dim: int | None = Field(default=None, gt=0)
    openai_api_key: str | None = None
    openai_base_url: str | None = None
    llm_model: str = "gpt-4o-mini"
    llm_temperature: float = Field(default=0.2, ge=0.0, le=2.0)
    corpus_name: str = "Berkshire Hathaway shareholder letters"
    request_timeout: float = Field(default=30.0, gt=0)
    chunk_size: int = Field(default=1000, gt=0)
    chunk_overlap: int = Field(default=200, ge=0)
    min_chunk_chars: int = Field(default=20, ge=1)
    top_k: int = Field(default=5, ge=1, le=50)
    log_level: str = "INFO"
    log_json: bool = True

    model_config = {
        "validate_assignment": True,
        "extra": "ignore",
    }

    @field_validator("db_path", "data_dir", mode="before")
    @classmethod
    def _expand_path(cls, value: Any) -> Path:
        if isinstance(value, Path):
            return value.expanduser()
        if isinstance(value, str):
            return Path(value).expanduser()
        raise TypeError("paths must be a path or string")

    @model_validator(mode="after")
    def _check_chunking(self) -> "Settings":
        if self.chunk_overlap >= self.chunk_size:
            raise ValueError("chunk_overlap must be smaller than chunk_size")
        return self

    @property
    def vector_width(self) -> int:
        """Width of the vectors produced by the configured embedding backend."""
        if self.embedding_backend == "local":
            return LOCAL_EMBEDDING_DIM
        return self.embedding_dim or SEMANTIC_EMBEDDING_DIM

    def require_openai_key(self) -> str:
        if not self.openai_api_key:
            raise ConfigurationError(
                f"An OpenAI API key is required; set {ENV_PREFIX}OPENAI_API_KEY or OPENAI_API_KEY"
            )
        return self.openai_api_key

    def client_api_key(self) -> str:
        """Key passed to OpenAI clients.

        Self-hosted OpenAI-compatible servers (``openai_base_url``) usually ignore
        the key, so a placeholder is sent when none is configured.
        """
        if self.openai_base_url:
            return self.openai_api_key or "EMPTY"
        return self.require_openai_key()

    @classmethod
    def from_yaml(cls, path: Path | None = None) -> "Settings":
        """Load YAML config and overlay env vars; fall back to defaults."""
        config_path = cls._resolve_config_path(path)
        data: dict[str, Any] = {}
        if config_path and config_path.exists():
            with config_path.open("r", encoding="utf-8") as fh:
                raw = yaml.safe_load(fh) or {}
            data.update(_flatten_yaml(raw))
        data.update(_load_env_overrides())
        try:
            return cls(**data)
        except ValidationError as exc:
            raise ConfigurationError(f"Invalid configuration: {exc}") from exc

    @staticmethod
    def _resolve_config_path(path: Path | None) -> Path | None:
        if path is not None:
            return path.expanduser()
        env_path = os.environ.get(f"{ENV_PREFIX}CONFIG")
        if env_path:
            return Path(env_path).expanduser()
        resolved_default = DEFAULT_CONFIG_PATH.expanduser()
        return resolved_default if resolved_default.exists() else None


def _flatten_yaml(raw: Mapping[str, Any], prefix: tuple[str, ...] = ()) -> dict[str, Any]:
    """Flatten nested YAML configuration to Settings field names."""
    flat: dict[str, Any] = {}
    for key, value in raw.items():
        next_prefix = prefix + (key,)
        if isinstance(value, Mapping):
            flat.update(_flatten_yaml(value, prefix=next_prefix))
        else:
            mapped_key = _YAML_KEY_MAP.get(next_prefix)
            if mapped_key:
                flat[mapped_key] = value
            elif key in Settings.model_fields:
                flat[key] = value
    return flat


def _load_env_overrides() -> dict[str, Any]:
    """Map environment variables with LRAG_ prefix into Settings fields."""
    overrides: dict[str, Any] = {}
    for key, value in os.environ.items():
        if not key.startswith(ENV_PREFIX):
            continue
        field_name = key[len(ENV_PREFIX) :].lower()
        if field_name in Settings.model_fields:
            overrides[field_name] = value
    if "openai_api_key" not in overrides and os.environ.get("OPENAI_API_KEY"):
        overrides["openai_api_key"] = os.environ["OPENAI_API_KEY"]
    return overrides


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Cached settings accessor for dependency injection."""
    return Settings.from_yaml()


__all__ = ["Settings", "get_settings", "LOCAL_EMBEDDING_DIM", "SEMANTIC_EMBEDDING_DIM"]
