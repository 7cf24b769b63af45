from pathlib import Path

import pytest

from sitegraph.config import TrailingSlash
from sitegraph.services.errors import InvalidPathError
from sitegraph.services.paths import normalize, resolve_link, trim_slashes

NEVER = TrailingSlash.NEVER
ALWAYS = TrailingSlash.ALWAYS


def test_trim_slashes_collapses_duplicates() -> None:
    assert trim_slashes("//docs//guide/") == "docs/guide"
    assert trim_slashes(None) == ""


@pytest.mark.parametrize(
    "raw, policy, expected",
    [
        ("guide/setup.md", NEVER, "guide/setup"),
        ("guide/setup.mdx", ALWAYS, "guide/setup/"),
        ("guide/index.md", NEVER, "guide"),
        ("guide/index.html", ALWAYS, "guide/"),
        ("index.md", NEVER, "/"),
        ("index.md", ALWAYS, "/"),
        ("README.MD", NEVER, "README"),
    ],
)
def test_normalize_strips_extension_and_index(raw: str, policy: TrailingSlash, expected: str) -> None:
    assert normalize(raw, None, "", policy) == expected


def test_normalize_prefixes_base_path_once() -> None:
    assert normalize("guide/a.md", None, "/docs/", ALWAYS) == "docs/guide/a/"
    assert normalize("docs/guide/a/", None, "docs", ALWAYS) == "docs/guide/a/"
    assert normalize("index.md", None, "docs", NEVER) == "docs"


def test_normalize_file_path_keeps_directory_named_like_base() -> None:
    assert normalize("docs/intro.md", None, "docs", NEVER, strip_base=False) == "docs/docs/intro"
    assert normalize("intro.md", None, "docs", NEVER, strip_base=False) == "docs/intro"


def test_resolve_relative_link_does_not_strip_base() -> None:
    assert resolve_link("./docs/intro", "", "docs", NEVER).id == "docs/docs/intro"
    assert resolve_link("/docs/docs/intro", "", "docs", NEVER).id == "docs/docs/intro"


def test_normalize_strips_content_root(tmp_path: Path) -> None:
    file_path = tmp_path / "content" / "a" / "b.md"

    assert normalize(file_path, tmp_path / "content", "", NEVER) == "a/b"


def test_normalize_rejects_paths_outside_root(tmp_path: Path) -> None:
    with pytest.raises(InvalidPathError):
        normalize(Path("/elsewhere/page.md"), tmp_path, "", NEVER)

    with pytest.raises(InvalidPathError):
        normalize("../outside.md", None, "", NEVER)


@pytest.mark.parametrize("policy", [NEVER, ALWAYS])
@pytest.mark.parametrize("base", ["", "docs", "/nested/base/"])
@pytest.mark.parametrize(
    "raw",
    ["a.md", "a/b/index.md", "index.mdx", "guide/", "/guide/setup", "x/./y/../z.html"],
)
def test_normalize_is_idempotent(raw: str, base: str, policy: TrailingSlash) -> None:
    once = normalize(raw, None, base, policy)

    assert normalize(once, None, base, policy) == once


def test_resolve_relative_link_against_source_directory() -> None:
    assert resolve_link("./b", "", "", NEVER).id == "b"
    assert resolve_link("../b/", "guide/a", "", NEVER).id == "guide/b"
    assert resolve_link("b.md", "guide", "", ALWAYS).id == "guide/b/"
    assert resolve_link("b%20c.md", "", "", NEVER).id == "b c"


def test_resolve_site_absolute_link_strips_base_and_fragment() -> None:
    target = resolve_link("/docs/guide/#intro", "anything", "docs", NEVER)

    assert target.id == "docs/guide"
    assert target.fragment == "intro"
    assert target.external is False


def test_resolve_external_links() -> None:
    target = resolve_link("https://example.com/page#part", "", "", NEVER)
    assert target.external is True
    assert target.id == "https://example.com/page"
    assert target.fragment == "part"

    assert resolve_link("//cdn.example.com/x", "", "", NEVER).id == "https://cdn.example.com/x"


@pytest.mark.parametrize("raw", ["#top", "mailto:team@example.com", "javascript:void(0)", "./diagram.png", "  "])
def test_resolve_ignores_non_page_targets(raw: str) -> None:
    assert resolve_link(raw, "", "", NEVER) is None


def test_resolve_traversal_raises() -> None:
    with pytest.raises(InvalidPathError):
        resolve_link("../../outside", "guide", "", NEVER)
