# === FILE: blog_scout/config.py ===
"""
Loading and validation of BlogScout settings.
Pydantic describes the schema; YAML and JSON files are both accepted.
"""
from __future__ import annotations

import errno
import json
import os
from pathlib import Path
from typing import Any, Union

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator


class FetchConfig(BaseModel):
    """Settings of the retrying HTTP fetcher used during discovery."""
    model_config = ConfigDict(extra="forbid", frozen=True)

    timeout: float = Field(10.0, gt=0, description="Per-request timeout (seconds).")
    max_attempts: int = Field(3, ge=1, description="Total requests per URL, first one included.")
    backoff_base: float = Field(1.0, ge=0, description="First backoff delay (seconds), doubled per attempt.")
    backoff_cap: float = Field(5.0, ge=0, description="Upper bound of the computed backoff (seconds).")
    max_retry_after: float = Field(30.0, ge=0, description="Upper bound for a server Retry-After (seconds).")
    user_agent: str = Field("BlogScoutBot/1.0", min_length=1, description="User-Agent header.")

    @model_validator(mode="after")
    def _check_backoff(self) -> FetchConfig:
        if self.backoff_cap < self.backoff_base:
            raise ValueError("backoff_cap must be >= backoff_base")
        return self


class DiscoveryConfig(BaseModel):
    """Settings of the discovery engine."""
    model_config = ConfigDict(extra="forbid", frozen=True)

    fetch: FetchConfig = Field(default_factory=FetchConfig)
    sitemap_concurrency: int = Field(5, ge=1, description="Parallel sitemap fetches.")
    max_sitemap_depth: int = Field(5, ge=0, description="How deep nested sitemap indexes are followed.")
    default_limit: int = Field(50, ge=1, description="Posts returned when no limit is given.")


class BatchConfig(BaseModel):
    """Settings of the batch scheduler."""
    model_config = ConfigDict(extra="forbid", frozen=True)

    concurrency: int = Field(3, ge=1, description="Items analyzed at once (chunk size).")
    item_timeout: float = Field(30.0, gt=0, description="Time budget of one item (seconds).")


class ScoutConfig(BaseModel):
    """Top-level configuration for one discovery-plus-analysis run."""
    model_config = ConfigDict(extra="forbid", frozen=True)

    discovery: DiscoveryConfig = Field(default_factory=DiscoveryConfig)
    batch: BatchConfig = Field(default_factory=BatchConfig)


_DEFAULT_CFG = Path("configs/default.yaml")


def _read_yaml(path: Path) -> dict[str, Any]:
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as exc:
        raise ValueError(f"Malformed YAML in {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise TypeError(f"Top level of YAML must be a mapping, got {type(data).__name__}")
    return data


def _read_json(path: Path) -> dict[str, Any]:
    try:
        data = json.loads(path.read_text(encoding="utf-8")) or {}
    except json.JSONDecodeError as exc:
        raise ValueError(f"Malformed JSON in {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise TypeError(f"Top level of JSON must be a mapping, got {type(data).__name__}")
    return data


def load_config(path: Union[str, Path, None]) -> ScoutConfig:
    """
    Read YAML or JSON and return a validated ScoutConfig.
    Raises FileNotFoundError when the file (or the default one) is missing.
    """
    if path is None:
        if not _DEFAULT_CFG.exists():
            raise FileNotFoundError(errno.ENOENT, os.strerror(errno.ENOENT), str(_DEFAULT_CFG))
        path_obj = _DEFAULT_CFG
    else:
        path_obj = Path(path).expanduser().resolve()
        if not path_obj.is_file():
            raise FileNotFoundError(errno.ENOENT, os.strerror(errno.ENOENT), str(path_obj))

    suffix = path_obj.suffix.lower()
    if suffix in (".yaml", ".yml"):
        data = _read_yaml(path_obj)
    elif suffix == ".json":
        data = _read_json(path_obj)
    else:
        raise ValueError(f"Unsupported config format: {suffix}")

    return ScoutConfig(**data)


__all__ = [
    "FetchConfig",
    "DiscoveryConfig",
    "BatchConfig",
    "ScoutConfig",
    "ValidationError",
    "load_config",
]
