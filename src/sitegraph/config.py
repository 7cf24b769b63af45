"""
sitegraph configuration

Configuration is an immutable value threaded through every scan, extraction and
reconciliation step. It is loaded from:
1. Keyword arguments (CLI flags, tests)
2. Environment variables (prefixed with SITEGRAPH_)
3. A .env file in the working directory

Key settings:
- SITEGRAPH_CONTENT_ROOT: Markdown/MDX content directory
- SITEGRAPH_BASE_PATH: Site base path prepended to every page id
- SITEGRAPH_TRAILING_SLASH: "always" or "never"
- SITEGRAPH_PAGE_INCLUSION_RULES: JSON list of globs restricting scanned files
"""

from __future__ import annotations

from enum import Enum
from functools import lru_cache
from pathlib import Path
import re
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

NodeStyleValue = Union[str, Dict[str, Any]]


class TrailingSlash(str, Enum):
    """Trailing-slash policy applied to every canonical id."""

    ALWAYS = "always"
    NEVER = "never"


class MergePolicy(str, Enum):
    """Which side wins content-derived fields when reconciling sitemaps."""

    CRAWLED = "crawled"
    PROVIDED = "provided"


class StyleRule(BaseModel):
    """Assign a node style to every page whose id matches a glob."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    pattern: str = Field(..., min_length=1, description="Glob matched against page ids")
    node_style: NodeStyleValue = Field(..., alias="nodeStyle")


class SiteGraphConfig(BaseSettings):
    """Settings for a single graph build."""

    model_config = SettingsConfigDict(
        env_prefix="SITEGRAPH_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        frozen=True,
        populate_by_name=True,
    )

    content_root: Optional[Path] = Field(
        default=None, description="Directory holding Markdown/MDX sources"
    )
    base_path: str = Field(default="", description="Site base path, e.g. 'docs'")
    trailing_slash: TrailingSlash = Field(
        default=TrailingSlash.ALWAYS,
        description="Whether canonical ids end with '/'",
    )
    page_inclusion_rules: List[str] = Field(
        default_factory=list,
        description="Globs (relative to the scanned folder) selecting pages; '!' negates",
    )
    link_inclusion_rules: List[str] = Field(
        default_factory=list,
        description="Globs over target ids selecting which internal links are kept",
    )
    include_external_links: bool = True
    tag_renames: Dict[str, str] = Field(default_factory=dict)
    style_rules: List[StyleRule] = Field(default_factory=list)
    max_workers: int = Field(
        default=16, ge=1, le=256, description="Concurrent file reads per pass"
    )
    merge_policy: MergePolicy = MergePolicy.CRAWLED
    merge_provided_sitemap: bool = Field(
        default=False,
        description="Crawl content and merge it with a supplied sitemap instead of using it as-is",
    )
    debug: bool = Field(default=False, description="Pretty-print the sitemap artifact")

    @field_validator("content_root", mode="before")
    @classmethod
    def _normalize_content_root(cls, value: str | Path | None) -> Optional[Path]:
        if value is None or value == "":
            return None
        path = value if isinstance(value, Path) else Path(value)
        return path.expanduser().resolve()

    @field_validator("base_path", mode="before")
    @classmethod
    def _normalize_base_path(cls, value: Optional[str]) -> str:
        if value is None:
            return ""
        cleaned = re.sub(r"/{2,}", "/", str(value).strip())
        return cleaned.strip("/")

    @field_validator("trailing_slash", mode="before")
    @classmethod
    def _coerce_trailing_slash(cls, value: Any) -> Any:
        # Anything other than an explicit "never" behaves like "always".
        if isinstance(value, bool):
            return TrailingSlash.ALWAYS if value else TrailingSlash.NEVER
        if isinstance(value, str) and value.strip().lower() in {"ignore", "true", "1", "yes"}:
            return TrailingSlash.ALWAYS
        if isinstance(value, str) and value.strip().lower() in {"false", "0", "no"}:
            return TrailingSlash.NEVER
        return value

    @field_validator("tag_renames", mode="after")
    @classmethod
    def _lowercase_tag_renames(cls, value: Dict[str, str]) -> Dict[str, str]:
        return {key.strip().lower(): target.strip().lower() for key, target in value.items()}

    @property
    def add_trailing_slash(self) -> bool:
        return self.trailing_slash is TrailingSlash.ALWAYS


@lru_cache(maxsize=1)
def get_config() -> SiteGraphConfig:
    """Load and cache configuration from the environment."""
    return SiteGraphConfig()


def reload_config() -> SiteGraphConfig:
    """Clear cached config (useful for tests) and reload."""
    get_config.cache_clear()
    return get_config()


__all__ = [
    "MergePolicy",
    "NodeStyleValue",
    "SiteGraphConfig",
    "StyleRule",
    "TrailingSlash",
    "get_config",
    "reload_config",
]
