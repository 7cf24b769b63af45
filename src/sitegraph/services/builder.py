"""Site map builder: scan passes, concurrent extraction, single-writer assembly."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
import time
from typing import Any, List, Optional, Sequence

from ..config import SiteGraphConfig, get_config
from ..models.records import ContentFormat, ExtractedRecord
from ..models.sitemap import Sitemap
from .assembler import GraphAccumulator
from .deriver import finalize
from .errors import BuilderStateError, ContentRootMissingError, FileParseError
from .extractor import extract
from .scanner import ContentScanner

logger = logging.getLogger(__name__)


class ProcessedSitemap:
    """Finalized result of ``SiteMapBuilder.process()``."""

    def __init__(self, sitemap: Sitemap) -> None:
        self._sitemap = sitemap

    def to_sitemap(self) -> Sitemap:
        return self._sitemap


class SiteMapBuilder:
    """
    Build a sitemap from Markdown sources and rendered HTML.

    Each ``add_*_content_folder`` call is one pass: files are read and extracted
    concurrently (bounded by ``config.max_workers``), then applied to the
    accumulator one by one in path order. Later passes supersede earlier ones
    for the same canonical id.

    Example:
        >>> builder = SiteMapBuilder(SiteGraphConfig(content_root="docs"))
        >>> await builder.add_md_content_folder()
        >>> sitemap = builder.process().to_sitemap()
    """

    def __init__(self, config: Optional[SiteGraphConfig] = None) -> None:
        self.config = config or get_config()
        self._accumulator = GraphAccumulator(self.config)
        self.warnings: List[str] = []
        self._degraded = False

    @property
    def degraded(self) -> bool:
        """True when a pass could not access its root directory."""
        return self._degraded

    # ------------------------------------------------------------------
    # Configuration
    # ------------------------------------------------------------------

    def _update_config(self, **changes: Any) -> None:
        if self._accumulator.pass_count:
            raise BuilderStateError("Builder configuration cannot change after scanning started")
        self.config = type(self.config)(**{**self.config.model_dump(), **changes})
        self._accumulator = GraphAccumulator(self.config)

    def set_content_root(self, path: Path | str) -> None:
        self._update_config(content_root=path)

    def set_trailing_slash(self, add_trailing_slash: bool) -> None:
        self._update_config(trailing_slash=add_trailing_slash)

    def set_base_path(self, path: Optional[str]) -> None:
        self._update_config(base_path=path)

    # ------------------------------------------------------------------
    # Passes
    # ------------------------------------------------------------------

    async def add_md_content_folder(
        self,
        root: Path | str | None = None,
        inclusion_rules: Optional[Sequence[str]] = None,
    ) -> "SiteMapBuilder":
        """Scan Markdown/MDX sources (defaults to the configured content root)."""
        return await self._add_pass(root, inclusion_rules, ContentFormat.MARKDOWN)

    async def add_html_content_folder(
        self,
        root: Path | str | None = None,
        inclusion_rules: Optional[Sequence[str]] = None,
    ) -> "SiteMapBuilder":
        """Scan rendered HTML output; results supersede the Markdown pass."""
        return await self._add_pass(root, inclusion_rules, ContentFormat.HTML)

    def _mark_degraded(self, message: str) -> None:
        self._degraded = True
        self.warnings.append(message)
        logger.warning(
            "Site graph is running in degraded mode",
            extra={"reason": message},
        )

    async def _add_pass(
        self,
        root: Path | str | None,
        inclusion_rules: Optional[Sequence[str]],
        content_format: ContentFormat,
    ) -> "SiteMapBuilder":
        start_time = time.time()
        root = root if root is not None else self.config.content_root
        rules = list(inclusion_rules) if inclusion_rules is not None else self.config.page_inclusion_rules

        if root is None:
            self._accumulator.add_pass([])
            self._mark_degraded("No content directory configured")
            return self

        scanner = ContentScanner(root, rules, content_format)
        try:
            paths = await asyncio.to_thread(scanner.discover)
        except ContentRootMissingError as exc:
            self._accumulator.add_pass([])
            self._mark_degraded(str(exc))
            return self

        semaphore = asyncio.Semaphore(self.config.max_workers)

        async def _extract_one(path: Path) -> Optional[ExtractedRecord]:
            async with semaphore:
                record = await scanner.aread(path)
                if record is None:
                    return None
                try:
                    return await asyncio.to_thread(extract, record, self.config)
                except FileParseError as exc:
                    logger.warning(
                        "Skipping file that failed to parse",
                        extra={"path": exc.path, "error": exc.cause},
                    )
                except Exception:
                    logger.warning(
                        "Skipping file after unexpected extraction failure",
                        extra={"path": record.relative_path},
                        exc_info=True,
                    )
                return None

        results = await asyncio.gather(*(_extract_one(path) for path in paths))
        applied = self._accumulator.add_pass(result for result in results if result is not None)

        duration_ms = (time.time() - start_time) * 1000
        logger.info(
            "Content pass complete",
            extra={
                "root": str(root),
                "format": content_format.value,
                "files": len(paths),
                "pages": applied,
                "duration_ms": f"{duration_ms:.2f}",
            },
        )
        return self

    def process(self) -> ProcessedSitemap:
        """Finalize the accumulated graph."""
        return ProcessedSitemap(finalize(self._accumulator))


__all__ = ["ProcessedSitemap", "SiteMapBuilder"]
