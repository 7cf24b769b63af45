import os
from pathlib import Path

import pytest

from sitegraph.models.records import ContentFormat
from sitegraph.services.errors import ContentRootMissingError
from sitegraph.services.scanner import ContentScanner, matches_rules, scan


@pytest.fixture()
def content_dir(tmp_path: Path) -> Path:
    root = tmp_path / "docs"
    (root / "guide").mkdir(parents=True)
    (root / "a.md").write_text("# A", encoding="utf-8")
    (root / "guide" / "b.mdx").write_text("# B", encoding="utf-8")
    (root / "guide" / "c.html").write_text("<h1>C</h1>", encoding="utf-8")
    (root / "notes.txt").write_text("not content", encoding="utf-8")
    return root


def _relative_paths(root: Path, rules=None, content_format=ContentFormat.MARKDOWN) -> list:
    return [record.relative_path for record in scan(root, rules, content_format)]


def test_scan_includes_all_markdown_without_rules(content_dir: Path) -> None:
    assert _relative_paths(content_dir) == ["a.md", "guide/b.mdx"]


def test_scan_html_pass_only_reads_html(content_dir: Path) -> None:
    records = list(scan(content_dir, [], ContentFormat.HTML))

    assert [record.relative_path for record in records] == ["guide/c.html"]
    assert records[0].content_format is ContentFormat.HTML
    assert records[0].text == "<h1>C</h1>"


def test_scan_applies_inclusion_rules(content_dir: Path) -> None:
    assert _relative_paths(content_dir, ["guide/**"]) == ["guide/b.mdx"]
    assert _relative_paths(content_dir, ["**/*.md"]) == ["a.md"]
    assert _relative_paths(content_dir, ["!guide/*"]) == ["a.md"]


def test_matches_rules_negation_wins() -> None:
    assert matches_rules("guide/a.md", [])
    assert matches_rules("guide/a.md", ["guide/*"])
    assert not matches_rules("guide/a.md", ["guide/*", "!guide/a.md"])
    assert not matches_rules("other/a.md", ["guide/*"])


def test_scan_missing_root_raises(tmp_path: Path) -> None:
    with pytest.raises(ContentRootMissingError):
        list(scan(tmp_path / "missing"))


def test_scan_skips_undecodable_files(content_dir: Path) -> None:
    (content_dir / "broken.md").write_bytes(b"\xff\xfe\xfa not utf-8")

    assert _relative_paths(content_dir) == ["a.md", "guide/b.mdx"]


def test_scan_survives_symlink_cycle(content_dir: Path) -> None:
    try:
        os.symlink(content_dir, content_dir / "guide" / "loop", target_is_directory=True)
    except (OSError, NotImplementedError):
        pytest.skip("symlinks not supported")

    assert _relative_paths(content_dir) == ["a.md", "guide/b.mdx"]


def test_discover_is_sorted_and_restartable(content_dir: Path) -> None:
    scanner = ContentScanner(content_dir)

    first = [record.relative_path for record in scanner.scan()]
    second = [record.relative_path for record in scanner.scan()]

    assert first == second == ["a.md", "guide/b.mdx"]


def test_single_star_stays_within_one_directory(content_dir: Path) -> None:
    (content_dir / "guide" / "deep").mkdir()
    (content_dir / "guide" / "deep" / "nested.md").write_text("# Nested", encoding="utf-8")

    assert _relative_paths(content_dir, ["*.md"]) == ["a.md"]
    assert _relative_paths(content_dir, ["guide/**"]) == ["guide/b.mdx", "guide/deep/nested.md"]
    assert matches_rules("guide/deep/nested.md", ["**/nested.md"])
    assert not matches_rules("guide/deep/nested.md", ["guide/*.md"])


def test_sibling_symlinks_to_same_directory_are_both_scanned(tmp_path: Path) -> None:
    root = tmp_path / "site"
    shared = tmp_path / "shared"
    root.mkdir()
    shared.mkdir()
    (shared / "page.md").write_text("# Page", encoding="utf-8")
    try:
        os.symlink(shared, root / "a", target_is_directory=True)
        os.symlink(shared, root / "b", target_is_directory=True)
    except (OSError, NotImplementedError):
        pytest.skip("symlinks not supported")

    assert _relative_paths(root) == ["a/page.md", "b/page.md"]
