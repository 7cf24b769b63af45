"""Sitemap graph models."""

from __future__ import annotations

from enum import Enum
from typing import Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field

from ..config import NodeStyleValue


class NodeKind(str, Enum):
    PAGE = "page"
    TAG = "tag"
    EXTERNAL = "external"
    UNRESOLVED = "unresolved"


class LinkClassification(str, Enum):
    INTERNAL_RESOLVED = "internal-resolved"
    INTERNAL_UNRESOLVED = "internal-unresolved"
    EXTERNAL = "external"
    TAG = "tag"

    @property
    def is_internal(self) -> bool:
        return self in (
            LinkClassification.INTERNAL_RESOLVED,
            LinkClassification.INTERNAL_UNRESOLVED,
        )


class Node(BaseModel):
    """A content page, a synthetic tag, or a placeholder for a link target."""

    model_config = ConfigDict(
        extra="allow",
        frozen=True,
        populate_by_name=True,
        json_schema_extra={
            "example": {
                "id": "guide/setup",
                "title": "Setup",
                "tags": ["install"],
                "nodeStyle": {"shape": "square"},
                "kind": "page",
            }
        },
    )

    id: str = Field(..., description="Canonical path id")
    title: str = Field(..., description="Display title")
    tags: List[str] = Field(default_factory=list)
    node_style: Optional[NodeStyleValue] = Field(None, alias="nodeStyle")
    kind: NodeKind = NodeKind.PAGE

    @property
    def extension_fields(self) -> Dict[str, object]:
        """Fields not known to the model (curated metadata from a supplied sitemap)."""
        return dict(self.__pydantic_extra__ or {})


class Link(BaseModel):
    """Directed edge between two node ids."""

    model_config = ConfigDict(frozen=True)

    source: str
    target: str
    classification: LinkClassification
    fragment: Optional[str] = Field(None, description="Anchor fragment of the original target")

    @property
    def key(self) -> Tuple[str, str, LinkClassification]:
        return (self.source, self.target, self.classification)

    @property
    def is_self_link(self) -> bool:
        return self.source == self.target


class Sitemap(BaseModel):
    """Finalized node/link graph consumed by the visualization."""

    model_config = ConfigDict(frozen=True)

    nodes: Dict[str, Node] = Field(default_factory=dict)
    links: List[Link] = Field(default_factory=list)

    @classmethod
    def empty(cls) -> "Sitemap":
        return cls(nodes={}, links=[])

    @property
    def backlinks(self) -> Dict[str, List[str]]:
        """Target id -> sorted source ids, derived from resolved non-self links."""
        index: Dict[str, set] = {}
        for link in self.links:
            if link.classification is not LinkClassification.INTERNAL_RESOLVED:
                continue
            if link.is_self_link:
                continue
            index.setdefault(link.target, set()).add(link.source)
        return {target: sorted(sources) for target, sources in sorted(index.items())}

    def outbound(self, source: str) -> List[Link]:
        return [link for link in self.links if link.source == source]

    def to_json(self, *, debug: bool = False) -> str:
        return self.model_dump_json(
            by_alias=True,
            exclude_none=True,
            indent=2 if debug else None,
        )


__all__ = ["Link", "LinkClassification", "Node", "NodeKind", "Sitemap"]
