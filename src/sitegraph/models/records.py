"""Intermediate records passed between scan, extraction and assembly."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import List, Optional, Tuple

from ..config import NodeStyleValue
from .sitemap import Link


class ContentFormat(str, Enum):
    MARKDOWN = "markdown"
    HTML = "html"

    @property
    def extensions(self) -> Tuple[str, ...]:
        if self is ContentFormat.MARKDOWN:
            return (".md", ".mdx", ".markdown")
        return (".html", ".htm")


@dataclass(frozen=True)
class FileRecord:
    """Raw file read by the content scanner."""
    path: Path
    relative_path: str  # POSIX path relative to the pass root
    text: str
    content_format: ContentFormat


@dataclass
class ExtractedRecord:
    """Result of scanning one file for front matter, links and tags.

    ``title``, ``tags`` and ``node_style`` are ``None`` when the file does not
    declare them (rendered HTML usually carries no front matter).
    """
    id: str
    source_path: str
    content_format: ContentFormat
    title: Optional[str] = None
    tags: Optional[List[str]] = None
    node_style: Optional[NodeStyleValue] = None
    links: List[Link] = field(default_factory=list)
    excluded: bool = False


__all__ = ["ContentFormat", "ExtractedRecord", "FileRecord"]
