"""In-progress graph accumulated across scan passes."""

from __future__ import annotations

from dataclasses import replace
import logging
from typing import Dict, Iterable, Tuple

from ..config import SiteGraphConfig
from ..models.records import ExtractedRecord
from ..models.sitemap import Link

logger = logging.getLogger(__name__)


class GraphAccumulator:
    """
    Pages and outbound edge sets keyed by canonical id.

    Every upsert replaces the page and its whole edge set (last writer wins).
    When a record from a different format supersedes a page (HTML after
    Markdown), fields it leaves undeclared carry over from the earlier record.
    Only ``finalize()`` in the deriver reads this state.
    """

    def __init__(self, config: SiteGraphConfig) -> None:
        self.config = config
        self._pages: Dict[str, ExtractedRecord] = {}
        self._pass_count = 0

    @property
    def pass_count(self) -> int:
        return self._pass_count

    def __len__(self) -> int:
        return len(self._pages)

    def __contains__(self, node_id: object) -> bool:
        return node_id in self._pages

    def upsert(self, record: ExtractedRecord) -> None:
        if record.excluded:
            if self._pages.pop(record.id, None) is not None:
                logger.debug("Excluded page removed", extra={"node_id": record.id})
            return

        previous = self._pages.get(record.id)
        if previous is not None and previous.content_format is not record.content_format:
            record = replace(
                record,
                title=record.title if record.title is not None else previous.title,
                tags=record.tags if record.tags is not None else previous.tags,
                node_style=record.node_style if record.node_style is not None else previous.node_style,
            )

        links: Dict[Tuple[str, str, object], Link] = {}
        for link in record.links:
            links.setdefault(link.key, link)
        self._pages[record.id] = replace(record, links=list(links.values()))

    def add_pass(self, records: Iterable[ExtractedRecord]) -> int:
        """Apply one pass's records in order; returns how many were applied."""
        applied = 0
        for record in records:
            self.upsert(record)
            applied += 1
        self._pass_count += 1
        return applied

    def pages(self) -> Tuple[ExtractedRecord, ...]:
        return tuple(self._pages.values())


__all__ = ["GraphAccumulator"]
