"""Pydantic models and intermediate records for the site graph."""

from .records import ContentFormat, ExtractedRecord, FileRecord
from .sitemap import Link, LinkClassification, Node, NodeKind, Sitemap

__all__ = [
    "ContentFormat",
    "ExtractedRecord",
    "FileRecord",
    "Link",
    "LinkClassification",
    "Node",
    "NodeKind",
    "Sitemap",
]
