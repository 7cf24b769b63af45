"""Persisting and loading the sitemap artifact."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict

from ..models.sitemap import Sitemap
from .errors import MalformedSitemapError, SitemapWriteError

logger = logging.getLogger(__name__)

SITEMAP_DIRNAME = "sitegraph"
SITEMAP_FILENAME = "sitemap.json"


def sitemap_path(output_dir: Path | str) -> Path:
    return Path(output_dir) / SITEMAP_DIRNAME / SITEMAP_FILENAME


def write_sitemap(sitemap: Sitemap, output_dir: Path | str, *, debug: bool = False) -> Path:
    """
    Write ``<output_dir>/sitegraph/sitemap.json``.

    Raises SitemapWriteError on disk or permission failures; callers must let it
    propagate since a missing artifact breaks the visualization.
    """
    target = sitemap_path(output_dir)
    try:
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(sitemap.to_json(debug=debug), encoding="utf-8")
    except OSError as exc:
        logger.error(
            "Failed to write sitemap file to disk",
            extra={"path": str(target), "error": str(exc)},
        )
        raise SitemapWriteError(f"Failed to write sitemap to {target}: {exc}") from exc

    logger.info(
        "Sitemap written",
        extra={
            "path": str(target),
            "nodes": len(sitemap.nodes),
            "links": len(sitemap.links),
        },
    )
    return target


def load_sitemap(path: Path | str) -> Dict[str, Any]:
    """Read a supplied sitemap JSON document (validation happens in the reconciler)."""
    source = Path(path)
    try:
        payload = json.loads(source.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise MalformedSitemapError(f"Sitemap {source} is not valid JSON: {exc}") from exc
    if not isinstance(payload, dict):
        raise MalformedSitemapError(f"Sitemap {source} must contain a JSON object")
    return payload


__all__ = ["SITEMAP_DIRNAME", "SITEMAP_FILENAME", "load_sitemap", "sitemap_path", "write_sitemap"]
