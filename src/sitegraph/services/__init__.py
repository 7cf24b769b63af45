"""Graph construction services."""

from .assembler import GraphAccumulator
from .builder import ProcessedSitemap, SiteMapBuilder
from .deriver import build_sitemap, finalize, tag_node_id
from .errors import (
    BuilderStateError,
    ContentRootMissingError,
    FileParseError,
    InvalidPathError,
    MalformedSitemapError,
    SiteGraphError,
    SitemapWriteError,
)
from .extractor import extract, normalize_tags
from .paths import normalize, resolve_link, trim_slashes
from .pipeline import BuildReport, build_site_graph
from .reconciler import process_sitemap, reconcile, validate_sitemap
from .scanner import ContentScanner, scan
from .storage import load_sitemap, write_sitemap

__all__ = [
    "GraphAccumulator",
    "ProcessedSitemap",
    "SiteMapBuilder",
    "build_sitemap",
    "finalize",
    "tag_node_id",
    "BuilderStateError",
    "ContentRootMissingError",
    "FileParseError",
    "InvalidPathError",
    "MalformedSitemapError",
    "SiteGraphError",
    "SitemapWriteError",
    "extract",
    "normalize_tags",
    "normalize",
    "resolve_link",
    "trim_slashes",
    "BuildReport",
    "build_site_graph",
    "process_sitemap",
    "reconcile",
    "validate_sitemap",
    "ContentScanner",
    "scan",
    "load_sitemap",
    "write_sitemap",
]
