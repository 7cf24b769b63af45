"""Front matter, link and tag extraction for Markdown and rendered HTML."""

from __future__ import annotations

import logging
import posixpath
import re
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

from bs4 import BeautifulSoup
import frontmatter
import yaml

from ..config import NodeStyleValue, SiteGraphConfig
from ..models.records import ContentFormat, ExtractedRecord, FileRecord
from ..models.sitemap import Link, LinkClassification
from .errors import FileParseError, InvalidPathError
from .paths import normalize, resolve_link, split_fragment, trim_slashes
from .scanner import matches_rules

logger = logging.getLogger(__name__)

H1_PATTERN = re.compile(r"^\s*#\s+(.+?)\s*#*\s*$", re.MULTILINE)
FENCED_CODE_PATTERN = re.compile(
    r"^ {0,3}(`{3,}|~{3,})[^\n]*\n.*?^ {0,3}\1[`~]*[ \t]*$",
    re.MULTILINE | re.DOTALL,
)
INLINE_CODE_PATTERN = re.compile(r"``[^\n]*?``|`[^`\n]*`")
INLINE_LINK_PATTERN = re.compile(
    r"(?<!!)\[(?:[^\[\]]|\[[^\[\]]*\])*\]"
    r"\(\s*(<[^>\n]*>|[^\s()]+(?:\([^\s()]*\)[^\s()]*)*)"
    r"(?:\s+(?:\"[^\"]*\"|'[^']*'|\([^)]*\)))?\s*\)"
)
REFERENCE_DEF_PATTERN = re.compile(r"^ {0,3}\[([^\]^][^\]]*)\]:\s*(<[^>\n]*>|\S+)", re.MULTILINE)
AUTOLINK_PATTERN = re.compile(r"<(https?://[^>\s]+)>", re.IGNORECASE)
WIKILINK_PATTERN = re.compile(r"(?<!!)\[\[([^\]]+)\]\]")


def normalize_tag(tag: Any, renames: Mapping[str, str] | None = None) -> str:
    if not isinstance(tag, (str, int, float)) or isinstance(tag, bool):
        return ""
    cleaned = str(tag).strip().lower()
    if renames:
        cleaned = renames.get(cleaned, cleaned)
    return cleaned


def normalize_tags(values: Iterable[Any], renames: Mapping[str, str] | None = None) -> List[str]:
    """Lower-case, rename and deduplicate tags, keeping declaration order."""
    normalized: List[str] = []
    for value in values:
        if isinstance(value, str) and "," in value:
            candidates: Iterable[Any] = value.split(",")
        else:
            candidates = [value]
        for candidate in candidates:
            cleaned = normalize_tag(candidate, renames)
            if cleaned and cleaned not in normalized:
                normalized.append(cleaned)
    return normalized


def _as_list(value: Any) -> List[Any]:
    if value is None:
        return []
    if isinstance(value, (list, tuple, set)):
        return list(value)
    return [value]


def _blank_code(body: str) -> str:
    body = FENCED_CODE_PATTERN.sub("\n", body)
    return INLINE_CODE_PATTERN.sub(" ", body)


def _wiki_target(inner: str) -> str:
    target = inner.split("|", 1)[0].strip()
    path, fragment = split_fragment(target)
    path = re.sub(r"\s+", "-", path.strip()).lower()
    if fragment:
        return f"{path}#{fragment}"
    return path


def find_markdown_links(body: str) -> List[str]:
    """Return raw link targets in document order (inline, reference, autolink, wiki)."""
    text = _blank_code(body or "")
    found: List[Tuple[int, str]] = []
    for match in INLINE_LINK_PATTERN.finditer(text):
        found.append((match.start(), match.group(1)))
    for match in REFERENCE_DEF_PATTERN.finditer(text):
        found.append((match.start(), match.group(2)))
    for match in AUTOLINK_PATTERN.finditer(text):
        found.append((match.start(), match.group(1)))
    for match in WIKILINK_PATTERN.finditer(text):
        target = _wiki_target(match.group(1))
        if target:
            found.append((match.start(), target))
    found.sort(key=lambda item: item[0])
    return [target for _, target in found]


def find_html_links(soup: BeautifulSoup) -> List[str]:
    """Return ``href`` values inside the main content region of a page."""
    container = soup.find("main") or soup.find("article") or soup.body or soup
    return [anchor["href"] for anchor in container.find_all("a", href=True)]


def _derive_title(metadata: Mapping[str, Any], sitemap_meta: Mapping[str, Any], body: str) -> Optional[str]:
    for candidate in (metadata.get("title"), sitemap_meta.get("title")):
        if isinstance(candidate, (str, int, float)) and str(candidate).strip():
            return str(candidate).strip()
    match = H1_PATTERN.search(_blank_code(body or ""))
    if match:
        return match.group(1).strip()
    return None


def _node_style(metadata: Mapping[str, Any], sitemap_meta: Mapping[str, Any]) -> Optional[NodeStyleValue]:
    for candidate in (
        metadata.get("nodeStyle"),
        metadata.get("node_style"),
        sitemap_meta.get("nodeStyle"),
        sitemap_meta.get("node_style"),
    ):
        if isinstance(candidate, (str, dict)) and candidate:
            return candidate
    return None


def build_links(
    source_id: str,
    source_path: str,
    targets: Iterable[str],
    config: SiteGraphConfig,
) -> List[Link]:
    """Resolve raw targets into provisional links, deduplicated per (target, classification)."""
    source_dir = posixpath.dirname(source_path)
    links: List[Link] = []
    seen = set()
    for raw in targets:
        try:
            resolved = resolve_link(raw, source_dir, config.base_path, config.trailing_slash)
        except InvalidPathError as exc:
            logger.debug(
                "Link escapes content root, recording as external",
                extra={"source": source_id, "target": raw, "error": str(exc)},
            )
            target_id = split_fragment(raw.strip())[0] or raw.strip()
            link = Link(source=source_id, target=target_id, classification=LinkClassification.EXTERNAL)
        else:
            if resolved is None:
                continue
            if resolved.external:
                classification = LinkClassification.EXTERNAL
            else:
                if config.link_inclusion_rules and not matches_rules(
                    trim_slashes(resolved.id), config.link_inclusion_rules
                ):
                    continue
                classification = LinkClassification.INTERNAL_UNRESOLVED
            link = Link(
                source=source_id,
                target=resolved.id,
                classification=classification,
                fragment=resolved.fragment,
            )

        if link.classification is LinkClassification.EXTERNAL and not config.include_external_links:
            continue
        key = (link.target, link.classification)
        if key in seen:
            continue
        seen.add(key)
        links.append(link)
    return links


def extract_markdown(record: FileRecord, config: SiteGraphConfig) -> ExtractedRecord:
    node_id = normalize(
        record.relative_path, None, config.base_path, config.trailing_slash, strip_base=False
    )
    try:
        post = frontmatter.loads(record.text)
    except (yaml.YAMLError, ValueError, TypeError) as exc:
        raise FileParseError(record.relative_path, f"invalid front matter ({exc})") from exc

    metadata: Dict[str, Any] = dict(post.metadata or {})
    sitemap_meta = metadata.get("sitemap")
    if not isinstance(sitemap_meta, dict):
        sitemap_meta = {}
    body = post.content or ""

    excluded = bool(sitemap_meta.get("exclude")) or metadata.get("draft") is True
    tags = normalize_tags(
        _as_list(metadata.get("tags")) + _as_list(sitemap_meta.get("tags")),
        config.tag_renames,
    )
    return ExtractedRecord(
        id=node_id,
        source_path=record.relative_path,
        content_format=record.content_format,
        title=_derive_title(metadata, sitemap_meta, body) or node_id,
        tags=tags,
        node_style=_node_style(metadata, sitemap_meta),
        links=build_links(node_id, record.relative_path, find_markdown_links(body), config),
        excluded=excluded,
    )


def extract_html(record: FileRecord, config: SiteGraphConfig) -> ExtractedRecord:
    node_id = normalize(
        record.relative_path, None, config.base_path, config.trailing_slash, strip_base=False
    )
    soup = BeautifulSoup(record.text, "html.parser")

    title: Optional[str] = None
    heading = soup.find("h1")
    if heading is not None and heading.get_text(strip=True):
        title = heading.get_text(" ", strip=True)
    elif soup.title is not None and soup.title.string and soup.title.string.strip():
        title = soup.title.string.strip()

    tags: Optional[List[str]] = None
    keywords = soup.find("meta", attrs={"name": "keywords"})
    if keywords is not None and keywords.get("content"):
        tags = normalize_tags([keywords["content"]], config.tag_renames)

    return ExtractedRecord(
        id=node_id,
        source_path=record.relative_path,
        content_format=record.content_format,
        title=title,
        tags=tags,
        links=build_links(node_id, record.relative_path, find_html_links(soup), config),
    )


def extract(record: FileRecord, config: SiteGraphConfig) -> ExtractedRecord:
    """
    Extract title, tags, node style and outbound links from one file.

    Raises FileParseError when the file cannot be parsed.
    """
    if record.content_format is ContentFormat.HTML:
        return extract_html(record, config)
    return extract_markdown(record, config)


__all__ = [
    "extract",
    "extract_html",
    "extract_markdown",
    "find_html_links",
    "find_markdown_links",
    "normalize_tag",
    "normalize_tags",
]
