"""Finalize an accumulated graph: resolution, placeholders, tags, backlinks."""

from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Set

from ..config import NodeStyleValue, StyleRule
from ..models.sitemap import Link, LinkClassification, Node, NodeKind, Sitemap
from .assembler import GraphAccumulator
from .paths import trim_slashes
from .scanner import matches_rules

logger = logging.getLogger(__name__)

TAG_ID_PREFIX = "tag:"


def tag_node_id(tag: str) -> str:
    return f"{TAG_ID_PREFIX}{tag}"


def style_for(node_id: str, rules: Sequence[StyleRule]) -> Optional[NodeStyleValue]:
    """Return the node style of the first rule whose glob matches the id."""
    slug = trim_slashes(node_id)
    for rule in rules:
        if matches_rules(slug, [rule.pattern]):
            return rule.node_style
    return None


def classify(link: Link, page_ids: Set[str]) -> Link:
    """Resolve an internal link against the final set of page ids."""
    if not link.classification.is_internal:
        return link
    classification = (
        LinkClassification.INTERNAL_RESOLVED
        if link.target in page_ids
        else LinkClassification.INTERNAL_UNRESOLVED
    )
    if classification is link.classification:
        return link
    return link.model_copy(update={"classification": classification})


def _placeholder(node_id: str, kind: NodeKind, previous: Mapping[str, Node]) -> Node:
    existing = previous.get(node_id)
    if existing is not None and existing.kind is not NodeKind.PAGE:
        if existing.kind is kind:
            return existing
        return existing.model_copy(update={"kind": kind})
    return Node(id=node_id, title=node_id, kind=kind)


def build_sitemap(
    pages: Sequence[Node],
    links: Iterable[Link],
    style_rules: Sequence[StyleRule] = (),
    previous: Optional[Mapping[str, Node]] = None,
) -> Sitemap:
    """
    Assemble a finalized Sitemap from page nodes and their outbound links.

    Tag edges in ``links`` are ignored and re-synthesized from page tags.
    ``previous`` supplies placeholder/tag nodes whose extension fields survive.
    """
    previous = previous or {}
    nodes: Dict[str, Node] = {}
    for page in pages:
        if page.node_style is None:
            style = style_for(page.id, style_rules)
            if style is not None:
                page = page.model_copy(update={"node_style": style})
        nodes[page.id] = page
    page_ids = set(nodes)

    final_links: List[Link] = []
    seen = set()
    placeholders: Dict[str, Node] = {}
    for link in links:
        if link.classification is LinkClassification.TAG:
            continue
        if link.source not in page_ids:
            logger.debug("Dropping link from non-page node", extra={"source": link.source})
            continue
        link = classify(link, page_ids)
        if link.key in seen:
            continue
        seen.add(link.key)
        final_links.append(link)
        if link.target in page_ids or link.target in placeholders:
            continue
        kind = (
            NodeKind.EXTERNAL
            if link.classification is LinkClassification.EXTERNAL
            else NodeKind.UNRESOLVED
        )
        placeholders[link.target] = _placeholder(link.target, kind, previous)
    nodes.update(placeholders)

    tag_links: List[Link] = []
    tag_names: Set[str] = set()
    for page in pages:
        for tag in nodes[page.id].tags:
            tag_names.add(tag)
            tag_links.append(
                Link(source=page.id, target=tag_node_id(tag), classification=LinkClassification.TAG)
            )
    for tag in sorted(tag_names):
        tag_id = tag_node_id(tag)
        existing = previous.get(tag_id)
        if existing is not None and existing.kind is NodeKind.TAG:
            nodes[tag_id] = existing
        else:
            nodes[tag_id] = Node(id=tag_id, title=tag, kind=NodeKind.TAG)

    return Sitemap(nodes=nodes, links=final_links + tag_links)


def finalize(accumulator: GraphAccumulator) -> Sitemap:
    """Produce the Sitemap for the accumulator's current state (pure, deterministic)."""
    records = accumulator.pages()
    pages = [
        Node(
            id=record.id,
            title=record.title or record.id,
            tags=list(record.tags or []),
            node_style=record.node_style,
            kind=NodeKind.PAGE,
        )
        for record in records
    ]
    links = [link for record in records for link in record.links]
    sitemap = build_sitemap(pages, links, accumulator.config.style_rules)
    logger.debug(
        "Sitemap finalized",
        extra={"nodes": len(sitemap.nodes), "links": len(sitemap.links)},
    )
    return sitemap


__all__ = ["TAG_ID_PREFIX", "build_sitemap", "classify", "finalize", "style_for", "tag_node_id"]
