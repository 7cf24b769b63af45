"""sitegraph: link graphs for documentation sites."""

from .config import SiteGraphConfig, get_config, reload_config
from .models import Link, LinkClassification, Node, NodeKind, Sitemap
from .services import SiteMapBuilder, build_site_graph, process_sitemap, reconcile

__version__ = "0.1.0"

__all__ = [
    "SiteGraphConfig",
    "get_config",
    "reload_config",
    "Link",
    "LinkClassification",
    "Node",
    "NodeKind",
    "Sitemap",
    "SiteMapBuilder",
    "build_site_graph",
    "process_sitemap",
    "reconcile",
]
