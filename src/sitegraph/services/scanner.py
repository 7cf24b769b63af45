"""Filesystem traversal for a single scan pass."""

from __future__ import annotations

import asyncio
from fnmatch import fnmatchcase
import logging
import os
from pathlib import Path
from typing import Dict, FrozenSet, Iterator, List, Optional, Sequence, Tuple

from ..models.records import ContentFormat, FileRecord
from .errors import ContentRootMissingError

logger = logging.getLogger(__name__)


def _match_segments(parts: Sequence[str], pattern_parts: Sequence[str]) -> bool:
    if not pattern_parts:
        return not parts
    head, rest = pattern_parts[0], pattern_parts[1:]
    if head == "**":
        # Any number of segments, including none.
        return any(_match_segments(parts[index:], rest) for index in range(len(parts) + 1))
    return bool(parts) and fnmatchcase(parts[0], head) and _match_segments(parts[1:], rest)


def _glob_matches(path: str, pattern: str) -> bool:
    """Segment-wise glob: ``*`` stays within one path segment, ``**`` spans segments."""
    parts = [part for part in path.split("/") if part]
    pattern_parts = [part for part in pattern.split("/") if part]
    return _match_segments(parts, pattern_parts)


def split_rules(rules: Sequence[str] | None) -> Tuple[List[str], List[str]]:
    """Split inclusion rules into (positive, negated) glob lists."""
    positive: List[str] = []
    negative: List[str] = []
    for rule in rules or []:
        cleaned = rule.strip()
        if not cleaned:
            continue
        if cleaned.startswith("!"):
            negative.append(cleaned[1:].lstrip("/"))
        else:
            positive.append(cleaned.lstrip("/"))
    return positive, negative


def matches_rules(path: str, rules: Sequence[str] | None) -> bool:
    """
    Check a POSIX path against inclusion rules.

    A path passes when it matches at least one positive glob (or there are none)
    and no '!'-negated glob.
    """
    positive, negative = split_rules(rules)
    if positive and not any(_glob_matches(path, pattern) for pattern in positive):
        return False
    return not any(_glob_matches(path, pattern) for pattern in negative)


class ContentScanner:
    """Enumerate and read the content files of one pass."""

    def __init__(
        self,
        root_dir: Path | str,
        inclusion_rules: Optional[Sequence[str]] = None,
        content_format: ContentFormat = ContentFormat.MARKDOWN,
    ) -> None:
        self.root_dir = Path(root_dir).expanduser()
        self.inclusion_rules = list(inclusion_rules or [])
        self.content_format = content_format

    def discover(self) -> List[Path]:
        """
        Return matching files under the root, sorted by relative path.

        Raises ContentRootMissingError if the root is missing or not a directory.
        """
        if not self.root_dir.is_dir():
            raise ContentRootMissingError(str(self.root_dir))

        root = self.root_dir.resolve()
        extensions = self.content_format.extensions
        # Real paths of the directories above each pending directory.
        lineages: Dict[str, FrozenSet[str]] = {str(root): frozenset()}
        found: List[Tuple[str, Path]] = []

        def _on_error(error: OSError) -> None:
            logger.warning(
                "Skipping unreadable directory",
                extra={"path": getattr(error, "filename", None), "error": str(error)},
            )

        for dirpath, dirnames, filenames in os.walk(root, followlinks=True, onerror=_on_error):
            real = os.path.realpath(dirpath)
            ancestors = lineages.pop(dirpath, frozenset())
            if real in ancestors:
                logger.warning(
                    "Skipping symbolic link cycle",
                    extra={"path": dirpath, "target": real},
                )
                dirnames[:] = []
                continue
            dirnames.sort()
            lineage = ancestors | {real}
            for dirname in dirnames:
                lineages[os.path.join(dirpath, dirname)] = lineage

            for filename in filenames:
                if not filename.lower().endswith(extensions):
                    continue
                file_path = Path(dirpath) / filename
                relative = file_path.relative_to(root).as_posix()
                if not matches_rules(relative, self.inclusion_rules):
                    continue
                found.append((relative, file_path))

        found.sort(key=lambda item: item[0])
        logger.debug(
            "Discovered content files",
            extra={
                "root": str(root),
                "format": self.content_format.value,
                "count": len(found),
            },
        )
        return [path for _, path in found]

    def read(self, path: Path) -> Optional[FileRecord]:
        """Read one file; unreadable or undecodable files are skipped with a warning."""
        try:
            text = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            logger.warning(
                "Skipping unreadable file",
                extra={"path": str(path), "error": str(exc)},
            )
            return None
        return FileRecord(
            path=path,
            relative_path=path.relative_to(self.root_dir.resolve()).as_posix(),
            text=text,
            content_format=self.content_format,
        )

    async def aread(self, path: Path) -> Optional[FileRecord]:
        return await asyncio.to_thread(self.read, path)

    def scan(self) -> Iterator[FileRecord]:
        """Lazily yield records for every matching, readable file."""
        for path in self.discover():
            record = self.read(path)
            if record is not None:
                yield record


def scan(
    root_dir: Path | str,
    inclusion_rules: Optional[Sequence[str]] = None,
    content_format: ContentFormat = ContentFormat.MARKDOWN,
) -> Iterator[FileRecord]:
    """Convenience wrapper returning a fresh lazy scan over ``root_dir``."""
    return ContentScanner(root_dir, inclusion_rules, content_format).scan()


__all__ = ["ContentScanner", "matches_rules", "scan", "split_rules"]
