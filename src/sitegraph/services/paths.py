"""Canonical id normalization for content files and link targets."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path, PurePosixPath
import posixpath
import re
from typing import Optional, Tuple, Union
from urllib.parse import unquote

from ..config import TrailingSlash
from .errors import InvalidPathError

CONTENT_EXTENSIONS = (".mdx", ".md", ".markdown", ".html", ".htm")
ASSET_EXTENSIONS = {
    ".png", ".jpg", ".jpeg", ".gif", ".svg", ".webp", ".avif", ".ico",
    ".pdf", ".zip", ".gz", ".css", ".js", ".mjs", ".json", ".xml", ".txt",
    ".mp3", ".mp4", ".webm", ".woff", ".woff2",
}
EXTERNAL_URL_PATTERN = re.compile(r"^(?:https?:)?//", re.IGNORECASE)
SCHEME_PATTERN = re.compile(r"^[a-zA-Z][a-zA-Z0-9+.-]*:")
ROOT_ID = "/"

RawPath = Union[str, Path]


@dataclass(frozen=True)
class ResolvedTarget:
    """A link target mapped into canonical id space."""

    id: str
    external: bool = False
    fragment: Optional[str] = None


def trim_slashes(value: str | None) -> str:
    """Collapse repeated slashes and strip leading/trailing ones."""
    if not value:
        return ""
    return re.sub(r"/{2,}", "/", value).strip("/")


def split_fragment(target: str) -> Tuple[str, Optional[str]]:
    """Split ``path?query#fragment`` into ``(path, fragment)``; the query is dropped."""
    path, _, fragment = target.partition("#")
    path = path.split("?", 1)[0]
    return path, (fragment or None)


def is_external_url(target: str) -> bool:
    return bool(EXTERNAL_URL_PATTERN.match(target.strip()))


def _strip_extension(slug: str) -> str:
    lowered = slug.lower()
    for extension in CONTENT_EXTENSIONS:
        if lowered.endswith(extension):
            return slug[: -len(extension)]
    return slug


def _collapse_index(slug: str) -> str:
    parts = slug.split("/")
    if parts and parts[-1].lower() == "index":
        parts = parts[:-1]
    return "/".join(parts)


def _clean_segments(raw: str) -> str:
    if not raw:
        return ""
    normalized = posixpath.normpath(raw)
    if normalized == ".":
        return ""
    if normalized == ".." or normalized.startswith("../"):
        raise InvalidPathError(raw)
    return normalized.strip("/")


def _strip_base(slug: str, base: str) -> str:
    if base and (slug == base or slug.startswith(base + "/")):
        return slug[len(base):].lstrip("/")
    return slug


def _relative_to_root(raw_path: RawPath, content_root: RawPath | None) -> str:
    raw = str(raw_path).replace("\\", "/")
    if content_root is None:
        return raw
    root = Path(content_root).as_posix().rstrip("/")
    if raw == root:
        return ""
    if raw.startswith(root + "/"):
        return raw[len(root) + 1:]
    if isinstance(raw_path, Path) and raw_path.is_absolute():
        raise InvalidPathError(raw, "File is outside the content root")
    return raw


def canonical_id(slug: str, base_path: str = "", trailing_slash: TrailingSlash = TrailingSlash.ALWAYS) -> str:
    """Join a root-relative slug with the base path and apply the slash policy."""
    slug = trim_slashes(slug)
    base = trim_slashes(base_path)
    joined = f"{base}/{slug}" if base and slug else (base or slug)
    if not joined:
        return ROOT_ID
    if trailing_slash is TrailingSlash.ALWAYS:
        return joined + "/"
    return joined


def normalize(
    raw_path: RawPath,
    content_root: RawPath | None = None,
    base_path: str = "",
    trailing_slash: TrailingSlash = TrailingSlash.ALWAYS,
    *,
    strip_base: bool = True,
) -> str:
    """
    Convert a file path or root-relative page path into a canonical id.

    Strings with a leading slash are treated as site-absolute. ``Path`` objects
    outside ``content_root`` and paths climbing above it raise InvalidPathError.

    With ``strip_base`` (the default) input that already carries the base path
    is not prefixed twice, so ids and site-absolute URLs normalize idempotently.
    Scanned file paths are relative to the content root and never carry the
    base; pass ``strip_base=False`` for them.
    """
    relative = _relative_to_root(raw_path, content_root)
    slug = _clean_segments(relative.lstrip("/"))
    slug = _collapse_index(_strip_extension(slug))
    base = trim_slashes(base_path)
    if strip_base:
        slug = _strip_base(slug, base)
    return canonical_id(slug, base, trailing_slash)


def resolve_link(
    target: str,
    source_dir: str,
    base_path: str = "",
    trailing_slash: TrailingSlash = TrailingSlash.ALWAYS,
) -> Optional[ResolvedTarget]:
    """
    Resolve an in-document link target relative to its source file's directory.

    Returns None for targets that never name a page: fragment-only anchors,
    non-http schemes (mailto:, javascript:, ...) and static assets.
    """
    raw = (target or "").strip()
    if raw.startswith("<") and raw.endswith(">"):
        raw = raw[1:-1].strip()
    if not raw:
        return None

    if is_external_url(raw):
        url, _, fragment = raw.partition("#")
        if url.startswith("//"):
            url = "https:" + url
        return ResolvedTarget(id=url, external=True, fragment=fragment or None)
    if SCHEME_PATTERN.match(raw):
        return None

    path, fragment = split_fragment(raw)
    if not path:
        return None
    path = unquote(path)
    if PurePosixPath(path).suffix.lower() in ASSET_EXTENSIONS:
        return None

    # Site-absolute URLs carry the base; relative ones live in content-root space.
    site_absolute = path.startswith("/")
    if site_absolute:
        joined = path
    else:
        joined = posixpath.join(trim_slashes(source_dir), path)
    return ResolvedTarget(
        id=normalize(joined, None, base_path, trailing_slash, strip_base=site_absolute),
        fragment=fragment,
    )


__all__ = [
    "ROOT_ID",
    "ResolvedTarget",
    "canonical_id",
    "is_external_url",
    "normalize",
    "resolve_link",
    "split_fragment",
    "trim_slashes",
]
