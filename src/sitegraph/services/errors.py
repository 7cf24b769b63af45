"""Exception hierarchy for graph construction."""

from __future__ import annotations


class SiteGraphError(Exception):
    """Base class for all sitegraph errors."""

    pass


class InvalidPathError(SiteGraphError):
    """Raised when a path escapes the content root or cannot be normalized."""

    def __init__(self, raw_path: str, reason: str = "Path escapes content root") -> None:
        super().__init__(f"{reason}: {raw_path}")
        self.raw_path = raw_path
        self.reason = reason


class ContentRootMissingError(SiteGraphError):
    """Raised when a scan pass cannot access its root directory."""

    def __init__(self, root: str) -> None:
        super().__init__(f"Content directory not found: {root}")
        self.root = root


class FileParseError(SiteGraphError):
    """Raised when a single content file cannot be parsed."""

    def __init__(self, path: str, cause: str) -> None:
        super().__init__(f"Failed to parse {path}: {cause}")
        self.path = path
        self.cause = cause


class MalformedSitemapError(SiteGraphError):
    """Raised when a supplied sitemap violates the node/link invariants."""

    pass


class SitemapWriteError(SiteGraphError):
    """Raised when the sitemap artifact cannot be persisted."""

    pass


class BuilderStateError(SiteGraphError):
    """Raised when builder configuration changes after scanning started."""

    pass


__all__ = [
    "SiteGraphError",
    "InvalidPathError",
    "ContentRootMissingError",
    "FileParseError",
    "MalformedSitemapError",
    "SitemapWriteError",
    "BuilderStateError",
]
