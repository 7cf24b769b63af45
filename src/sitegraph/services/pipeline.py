"""End-to-end build: crawl or accept a supplied sitemap, then persist it."""

from __future__ import annotations

from dataclasses import dataclass, field
import logging
from pathlib import Path
from typing import List, Optional

from ..config import SiteGraphConfig, get_config
from ..models.sitemap import Sitemap
from .builder import SiteMapBuilder
from .reconciler import SitemapInput, process_sitemap, reconcile
from .storage import write_sitemap

logger = logging.getLogger(__name__)


@dataclass
class BuildReport:
    """Outcome of a build, including degraded-mode signals."""
    sitemap: Sitemap
    degraded: bool = False
    warnings: List[str] = field(default_factory=list)
    output_path: Optional[Path] = None


async def build_site_graph(
    config: Optional[SiteGraphConfig] = None,
    *,
    html_dir: Path | str | None = None,
    provided: Optional[SitemapInput] = None,
    output_dir: Path | str | None = None,
) -> BuildReport:
    """
    Run the Markdown and HTML passes (or process a supplied sitemap) and write
    the artifact when ``output_dir`` is given.

    Recoverable problems end up in ``BuildReport.warnings``; only
    SitemapWriteError escapes.
    """
    config = config or get_config()
    warnings: List[str] = []
    degraded = False

    if provided is not None and not config.merge_provided_sitemap:
        logger.info("Using supplied sitemap")
        sitemap = process_sitemap(provided, config, warnings)
    else:
        builder = SiteMapBuilder(config)
        logger.info(
            "Retrieving links from Markdown content",
            extra={"content_root": str(config.content_root), "rules": config.page_inclusion_rules},
        )
        await builder.add_md_content_folder()

        if html_dir is not None:
            if Path(html_dir).is_dir():
                logger.info("Retrieving links from generated HTML content", extra={"html_dir": str(html_dir)})
                await builder.add_html_content_folder(html_dir)
            else:
                message = (
                    f"Generated HTML content not found at {html_dir}; "
                    "falling back to Markdown-only sitemap"
                )
                logger.warning(message)
                warnings.append(message)

        degraded = builder.degraded
        warnings = builder.warnings + warnings
        sitemap = builder.process().to_sitemap()
        if provided is not None:
            sitemap = reconcile(sitemap, provided, config, warnings)

    if degraded:
        logger.warning(
            "Site graph is running in DEGRADED MODE; the graph will be empty or partial "
            "until content is available",
            extra={"reasons": warnings},
        )

    output_path = None
    if output_dir is not None:
        output_path = write_sitemap(sitemap, output_dir, debug=config.debug)

    logger.info(
        "Site graph build finished",
        extra={"nodes": len(sitemap.nodes), "links": len(sitemap.links), "degraded": degraded},
    )
    return BuildReport(sitemap=sitemap, degraded=degraded, warnings=warnings, output_path=output_path)


__all__ = ["BuildReport", "build_site_graph"]
