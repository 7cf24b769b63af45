import pytest

from sitegraph.config import MergePolicy, SiteGraphConfig
from sitegraph.models.sitemap import Link, LinkClassification, Node, NodeKind, Sitemap
from sitegraph.services.deriver import build_sitemap, tag_node_id
from sitegraph.services.errors import MalformedSitemapError
from sitegraph.services.reconciler import process_sitemap, reconcile, validate_sitemap

RESOLVED = LinkClassification.INTERNAL_RESOLVED
UNRESOLVED = LinkClassification.INTERNAL_UNRESOLVED


@pytest.fixture()
def settings() -> SiteGraphConfig:
    return SiteGraphConfig(trailing_slash="never")


@pytest.fixture()
def crawled() -> Sitemap:
    pages = [
        Node(id="a", title="Fresh", tags=["x"]),
        Node(id="b", title="B"),
    ]
    links = [Link(source="a", target="b", classification=UNRESOLVED)]
    return build_sitemap(pages, links)


def _supplied() -> dict:
    return {
        "nodes": {
            "a": {"title": "Curated", "tags": ["old"], "kind": "page", "color": "red"},
            "z": {"id": "z", "title": "Manual page", "kind": "page"},
        },
        "links": [
            {"source": "z", "target": "a", "classification": "internal-unresolved"},
            {"source": "a", "target": "z", "classification": "internal-resolved"},
        ],
    }


@pytest.mark.parametrize(
    "payload",
    [
        [],
        {"nodes": "nope", "links": []},
        {"nodes": [{"id": "a", "title": "A"}, {"id": "a", "title": "Again"}], "links": []},
        {"nodes": {"a": {"id": "b", "title": "B"}}, "links": []},
        {"nodes": {"a": {"title": "A", "kind": "planet"}}, "links": []},
        {"nodes": {"a": {"title": "A"}}, "links": [{"source": "a", "target": "b", "classification": "weird"}]},
        {"nodes": {"a": {"title": "A"}}, "links": [{"source": "ghost", "target": "a", "classification": "external"}]},
        {
            "nodes": {"a": {"title": "A"}},
            "links": [
                {"source": "a", "target": "b", "classification": "external"},
                {"source": "a", "target": "b", "classification": "external"},
            ],
        },
    ],
)
def test_validate_sitemap_rejects_invariant_violations(payload) -> None:
    with pytest.raises(MalformedSitemapError):
        validate_sitemap(payload)


def test_validate_sitemap_accepts_list_nodes_and_fills_titles() -> None:
    sitemap = validate_sitemap({"nodes": [{"id": "a"}], "links": []})

    assert sitemap.nodes["a"].title == "a"
    assert sitemap.nodes["a"].kind is NodeKind.PAGE


def test_reconcile_without_supplied_sitemap_passes_through(crawled: Sitemap, settings: SiteGraphConfig) -> None:
    assert reconcile(crawled, None, settings) == crawled


def test_reconcile_prefers_crawled_content_and_keeps_extensions(
    crawled: Sitemap, settings: SiteGraphConfig
) -> None:
    merged = reconcile(crawled, _supplied(), settings)
    node = merged.nodes["a"]

    assert node.title == "Fresh"
    assert node.tags == ["x"]
    assert node.extension_fields == {"color": "red"}
    assert merged.nodes["z"].title == "Manual page"
    assert [(link.target, link.classification) for link in merged.outbound("a") if link.classification.is_internal] == [
        ("b", RESOLVED)
    ]
    assert [(link.target, link.classification) for link in merged.outbound("z")] == [("a", RESOLVED)]
    assert merged.backlinks == {"a": ["z"], "b": ["a"]}
    assert tag_node_id("x") in merged.nodes
    assert tag_node_id("old") not in merged.nodes


def test_reconcile_provided_policy_overrides_content_fields(crawled: Sitemap) -> None:
    settings = SiteGraphConfig(trailing_slash="never", merge_policy=MergePolicy.PROVIDED)

    merged = reconcile(crawled, _supplied(), settings)

    assert merged.nodes["a"].title == "Curated"
    assert merged.nodes["a"].tags == ["old"]


def test_reconcile_keeps_curated_style_when_crawl_has_none(settings: SiteGraphConfig) -> None:
    crawled = build_sitemap([Node(id="a", title="A")], [])
    supplied = {"nodes": {"a": {"title": "A", "nodeStyle": {"shape": "star"}}}, "links": []}

    merged = reconcile(crawled, supplied, settings)

    assert merged.nodes["a"].node_style == {"shape": "star"}


def test_reconcile_crawled_style_wins_under_crawled_policy(settings: SiteGraphConfig) -> None:
    crawled = build_sitemap([Node(id="a", title="A", node_style="fill-blue")], [])
    supplied = {"nodes": {"a": {"title": "A", "nodeStyle": {"shape": "star"}}}, "links": []}

    merged = reconcile(crawled, supplied, settings)

    assert merged.nodes["a"].node_style == "fill-blue"


def test_reconcile_falls_back_to_crawled_on_malformed_input(
    crawled: Sitemap, settings: SiteGraphConfig
) -> None:
    warnings: list = []

    merged = reconcile(crawled, {"nodes": {"a": {"id": "other"}}, "links": []}, settings, warnings)

    assert merged == crawled
    assert len(warnings) == 1
    assert "malformed" in warnings[0]


def test_process_sitemap_reclassifies_and_renames_tags() -> None:
    settings = SiteGraphConfig(trailing_slash="never", tag_renames={"js": "javascript"})
    supplied = {
        "nodes": {
            "a": {"title": "A", "tags": ["JS"]},
            "tag:js": {"title": "js", "kind": "tag"},
        },
        "links": [
            {"source": "a", "target": "missing", "classification": "internal-resolved"},
            {"source": "a", "target": "tag:js", "classification": "tag"},
        ],
    }

    sitemap = process_sitemap(supplied, settings)

    assert sitemap.nodes["a"].tags == ["javascript"]
    assert "tag:js" not in sitemap.nodes
    assert sitemap.nodes[tag_node_id("javascript")].kind is NodeKind.TAG
    assert sitemap.nodes["missing"].kind is NodeKind.UNRESOLVED
    assert [(link.target, link.classification) for link in sitemap.links] == [
        ("missing", UNRESOLVED),
        ("tag:javascript", LinkClassification.TAG),
    ]


def test_process_sitemap_malformed_returns_empty(settings: SiteGraphConfig) -> None:
    warnings: list = []

    sitemap = process_sitemap({"nodes": 5}, settings, warnings)

    assert sitemap == Sitemap.empty()
    assert warnings
