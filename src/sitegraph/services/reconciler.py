"""Validation and merging of supplied sitemaps."""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union

from pydantic import ValidationError

from ..config import MergePolicy, SiteGraphConfig
from ..models.sitemap import Link, Node, NodeKind, Sitemap
from .deriver import build_sitemap
from .errors import MalformedSitemapError
from .extractor import normalize_tags

logger = logging.getLogger(__name__)

SitemapInput = Union[Sitemap, Mapping[str, Any]]


def _warn(warnings: Optional[List[str]], message: str) -> None:
    logger.warning(message)
    if warnings is not None:
        warnings.append(message)


def _node_items(raw_nodes: Any) -> List[Tuple[Optional[str], Any]]:
    if isinstance(raw_nodes, Mapping):
        return [(key, entry) for key, entry in raw_nodes.items()]
    if isinstance(raw_nodes, list):
        return [(None, entry) for entry in raw_nodes]
    raise MalformedSitemapError("'nodes' must be an object keyed by id or a list of nodes")


def validate_sitemap(data: SitemapInput) -> Sitemap:
    """
    Check a sitemap against the node/link invariants and return it as a model.

    Raises MalformedSitemapError for a wrong shape, duplicate or mismatched
    node ids, unknown kind/classification values, duplicate links, or links
    whose source is not a node.
    """
    if isinstance(data, Sitemap):
        data = data.model_dump(mode="json", by_alias=True)
    if not isinstance(data, Mapping):
        raise MalformedSitemapError("Sitemap must be an object with 'nodes' and 'links'")

    nodes: Dict[str, Node] = {}
    for key, entry in _node_items(data.get("nodes") or {}):
        if isinstance(entry, Node):
            entry = entry.model_dump(mode="json", by_alias=True)
        if not isinstance(entry, Mapping):
            raise MalformedSitemapError(f"Node '{key}' must be an object")
        payload = dict(entry)
        if key is not None:
            payload.setdefault("id", key)
        node_id = payload.get("id")
        if not isinstance(node_id, str) or not node_id:
            raise MalformedSitemapError("Every node needs a non-empty string id")
        if key is not None and node_id != key:
            raise MalformedSitemapError(f"Node key '{key}' does not match its id '{node_id}'")
        if node_id in nodes:
            raise MalformedSitemapError(f"Duplicate node id '{node_id}'")
        payload.setdefault("title", node_id)
        try:
            nodes[node_id] = Node.model_validate(payload)
        except ValidationError as exc:
            raise MalformedSitemapError(f"Invalid node '{node_id}': {exc}") from exc

    raw_links = data.get("links") or []
    if not isinstance(raw_links, list):
        raise MalformedSitemapError("'links' must be a list")
    links: List[Link] = []
    seen = set()
    for entry in raw_links:
        try:
            link = entry if isinstance(entry, Link) else Link.model_validate(entry)
        except ValidationError as exc:
            raise MalformedSitemapError(f"Invalid link {entry!r}: {exc}") from exc
        if link.source not in nodes:
            raise MalformedSitemapError(f"Link source '{link.source}' is not a node")
        if link.key in seen:
            raise MalformedSitemapError(
                f"Duplicate link {link.source} -> {link.target} ({link.classification.value})"
            )
        seen.add(link.key)
        links.append(link)

    return Sitemap(nodes=nodes, links=links)


def merge_node(crawled: Node, supplied: Optional[Node], policy: MergePolicy) -> Node:
    """Field-level merge of one node; extension fields are unioned."""
    if supplied is None:
        return crawled
    extras = {**supplied.extension_fields, **crawled.extension_fields}
    if policy is MergePolicy.PROVIDED:
        title = supplied.title
        tags = list(supplied.tags)
        node_style = supplied.node_style if supplied.node_style is not None else crawled.node_style
    else:
        title = crawled.title
        tags = list(crawled.tags)
        node_style = crawled.node_style if crawled.node_style is not None else supplied.node_style
    return Node(
        id=crawled.id,
        title=title,
        tags=tags,
        node_style=node_style,
        kind=crawled.kind,
        **extras,
    )


def reconcile(
    crawled: SitemapInput,
    provided: Optional[SitemapInput],
    settings: SiteGraphConfig,
    warnings: Optional[List[str]] = None,
) -> Sitemap:
    """
    Merge a crawled sitemap with an optional supplied one.

    Content-derived fields follow ``settings.merge_policy``; supplied-only nodes,
    their links and extension fields are preserved. A malformed supplied
    sitemap is reported through ``warnings`` and the crawled sitemap is returned.
    """
    crawled_map = validate_sitemap(crawled)
    if provided is None:
        return crawled_map

    try:
        supplied = validate_sitemap(provided)
    except MalformedSitemapError as exc:
        _warn(warnings, f"Supplied sitemap is malformed, using crawled sitemap only: {exc}")
        return crawled_map

    policy = settings.merge_policy
    pages: List[Node] = []
    crawled_page_ids = set()
    for node in crawled_map.nodes.values():
        if node.kind is NodeKind.PAGE:
            crawled_page_ids.add(node.id)
            pages.append(merge_node(node, supplied.nodes.get(node.id), policy))
    for node in supplied.nodes.values():
        if node.kind is NodeKind.PAGE and node.id not in crawled_page_ids:
            pages.append(node)

    links = list(crawled_map.links) + [
        link for link in supplied.links if link.source not in crawled_page_ids
    ]

    previous: Dict[str, Node] = dict(supplied.nodes)
    for node in crawled_map.nodes.values():
        if node.kind is not NodeKind.PAGE:
            previous[node.id] = merge_node(node, supplied.nodes.get(node.id), policy)

    merged = build_sitemap(pages, links, settings.style_rules, previous)
    logger.info(
        "Reconciled crawled and supplied sitemaps",
        extra={
            "policy": policy.value,
            "crawled_nodes": len(crawled_map.nodes),
            "supplied_nodes": len(supplied.nodes),
            "merged_nodes": len(merged.nodes),
        },
    )
    return merged


def process_sitemap(
    sitemap: SitemapInput,
    settings: SiteGraphConfig,
    warnings: Optional[List[str]] = None,
) -> Sitemap:
    """
    Prepare a supplied sitemap used instead of crawling.

    Applies tag renames and style rules and re-resolves internal links. A
    malformed sitemap yields an empty one plus a warning.
    """
    try:
        supplied = validate_sitemap(sitemap)
    except MalformedSitemapError as exc:
        _warn(warnings, f"Supplied sitemap is malformed, continuing with an empty sitemap: {exc}")
        return Sitemap.empty()

    pages = [
        node.model_copy(update={"tags": normalize_tags(node.tags, settings.tag_renames)})
        for node in supplied.nodes.values()
        if node.kind is NodeKind.PAGE
    ]
    return build_sitemap(pages, supplied.links, settings.style_rules, supplied.nodes)


__all__ = ["merge_node", "process_sitemap", "reconcile", "validate_sitemap"]
