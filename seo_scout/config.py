"""
Loading and validation of the SEOScout crawler configuration.
Pydantic describes the schema and validates the data; YAML and JSON files are accepted.
"""
from __future__ import annotations

import errno
import json
import os
from pathlib import Path
from typing import Any, Literal, Union

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator


class IssueChecks(BaseModel):
    """Which SEO checks run on every fetched page."""
    model_config = ConfigDict(extra="forbid", frozen=True)

    keywords: bool = Field(False, description="Report pages without <meta name=keywords>.")
    og_image: bool = Field(True, description="Report pages without og:image.")
    og_site_name: bool = Field(False, description="Report pages without og:site_name.")
    title_max_length: int = Field(60, ge=1)
    description_max_length: int = Field(160, ge=1)


class ServerConfig(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    host: str = "127.0.0.1"
    port: int = Field(8080, ge=1, le=65535)


class CrawlerConfig(BaseModel):
    """Configuration for one sitemap crawl."""
    model_config = ConfigDict(extra="forbid", frozen=True)

    request_timeout: float = Field(10.0, gt=0, description="Timeout of one request (seconds).")
    max_redirects: int = Field(5, ge=0, description="Redirects followed per request.")
    max_retries: int = Field(3, ge=1, description="Attempts per page before giving up.")
    concurrency: int = Field(5, ge=1, description="Batch size / parallel requests.")
    rate_limit_cooldown: float = Field(1.0, ge=0, description="Pause after HTTP 429 (seconds).")
    min_delay: float = Field(0.2, ge=0, description="Lower bound of the adaptive delay (seconds).")
    max_delay: float = Field(10.0, ge=0, description="Upper bound of the adaptive delay (seconds).")
    delay_step_down: float = Field(0.05, ge=0, description="Decrease after a clean success.")
    delay_step_up: float = Field(0.1, ge=0, description="Increase after a failure.")
    user_agent: str = Field("SEOScoutBot/1.0", min_length=1, description="User-Agent header.")
    sitemap_max_depth: int = Field(5, ge=0, description="Nesting limit for sitemap indexes.")
    progress_total: Literal["fixed", "incremental"] = Field(
        "fixed", description="Report the total once known, or while sitemaps resolve."
    )
    stop_on_disconnect: bool = Field(
        False, description="Stop between batches once the progress consumer is gone."
    )

    checks: IssueChecks = Field(default_factory=IssueChecks)
    server: ServerConfig = Field(default_factory=ServerConfig)

    @model_validator(mode="after")
    def _check_delay_bounds(self) -> CrawlerConfig:
        if self.max_delay < self.min_delay:
            raise ValueError("max_delay must be >= min_delay")
        return self


_DEFAULT_CFG = Path("configs/default.yaml")


def _read_yaml(path: Path) -> dict[str, Any]:
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as exc:
        raise ValueError(f"Invalid YAML in {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise TypeError(f"Top level of YAML must be a mapping, got {type(data).__name__}")
    return data


def _read_json(path: Path) -> dict[str, Any]:
    try:
        data = json.loads(path.read_text(encoding="utf-8")) or {}
    except json.JSONDecodeError as exc:
        raise ValueError(f"Invalid JSON in {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise TypeError(f"Top level of JSON must be a mapping, got {type(data).__name__}")
    return data


def load_config(path: Union[str, Path, None]) -> CrawlerConfig:
    """
    Read YAML or JSON and return a validated CrawlerConfig.

    With ``path=None`` the ``configs/default.yaml`` file is used when present,
    otherwise the built-in defaults. An explicit path that does not exist
    raises FileNotFoundError.
    """
    if path is None:
        if not _DEFAULT_CFG.is_file():
            return CrawlerConfig()
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

    return CrawlerConfig(**data)


__all__ = ["CrawlerConfig", "IssueChecks", "ServerConfig", "load_config", "ValidationError"]
