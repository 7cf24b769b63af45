import asyncio
import json
import logging
from pathlib import Path
from typing import List, Optional

import typer
from dotenv import load_dotenv
from pydantic import ValidationError
from rich import print
from rich.table import Table

from sitegraph.config import MergePolicy, SiteGraphConfig, TrailingSlash
from sitegraph.models.sitemap import NodeKind
from sitegraph.services.errors import MalformedSitemapError, SitemapWriteError
from sitegraph.services.pipeline import build_site_graph
from sitegraph.services.reconciler import validate_sitemap
from sitegraph.services.storage import load_sitemap

logger = logging.getLogger(__name__)

APP_HELP = """
sitegraph: link graphs for documentation sites.

Scans Markdown/MDX sources (and optionally the rendered HTML output) for
links, wiki links and front-matter tags, and writes a sitemap.json with
pages, tags, links and their classification for a graph view.
"""

app = typer.Typer(name="sitegraph", help=APP_HELP, no_args_is_help=True)


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


@app.command("build")
def build(
    content_root: Optional[Path] = typer.Option(None, "--content-root", "-c", help="Markdown/MDX content directory"),
    html_dir: Optional[Path] = typer.Option(None, "--html-dir", help="Rendered HTML output to scan after the Markdown pass"),
    output_dir: Path = typer.Option(Path("dist"), "--output-dir", "-o", help="Build output directory; writes sitegraph/sitemap.json"),
    base_path: Optional[str] = typer.Option(None, "--base", help="Site base path, e.g. /docs"),
    trailing_slash: Optional[TrailingSlash] = typer.Option(None, "--trailing-slash", help="Trailing-slash policy for page ids"),
    include: List[str] = typer.Option([], "--include", "-i", help="Page inclusion glob (repeatable, '!' negates)"),
    sitemap: Optional[Path] = typer.Option(None, "--sitemap", help="Supplied sitemap JSON used instead of crawling"),
    merge: bool = typer.Option(False, "--merge", help="Crawl anyway and merge with the supplied sitemap"),
    merge_policy: Optional[MergePolicy] = typer.Option(None, "--merge-policy", help="Which side wins content fields when merging"),
    debug: bool = typer.Option(False, "--debug", help="Pretty-print the sitemap"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging"),
):
    """
    Build the site graph and write it to OUTPUT_DIR/sitegraph/sitemap.json.

    Examples:
        sitegraph build -c src/content/docs -o dist
        sitegraph build -c docs --html-dir dist --base /handbook --trailing-slash never
    """
    _configure_logging(verbose)

    overrides = {"debug": debug, "merge_provided_sitemap": merge}
    if content_root is not None:
        overrides["content_root"] = content_root
    if base_path is not None:
        overrides["base_path"] = base_path
    if trailing_slash is not None:
        overrides["trailing_slash"] = trailing_slash
    if include:
        overrides["page_inclusion_rules"] = include
    if merge_policy is not None:
        overrides["merge_policy"] = merge_policy

    try:
        config = SiteGraphConfig(**overrides)
    except ValidationError as exc:
        print(f"[red]Invalid configuration:[/red] {exc}")
        raise typer.Exit(code=2)

    provided = None
    if sitemap is not None:
        try:
            provided = load_sitemap(sitemap)
        except (OSError, MalformedSitemapError) as exc:
            print(f"[yellow]Ignoring supplied sitemap:[/yellow] {exc}")

    try:
        report = asyncio.run(
            build_site_graph(config, html_dir=html_dir, provided=provided, output_dir=output_dir)
        )
    except SitemapWriteError as exc:
        print(f"[red]{exc}[/red]")
        print("[dim]Check disk space and write permissions for the output directory.[/dim]")
        raise typer.Exit(code=1)

    for warning in report.warnings:
        print(f"[yellow]warning:[/yellow] {warning}")
    if report.degraded:
        print("[yellow]Site graph built in DEGRADED MODE; the graph will be empty or partial.[/yellow]")
    print(
        f"[green]Sitemap created at {report.output_path} with "
        f"{len(report.sitemap.nodes)} nodes and {len(report.sitemap.links)} links[/green]"
    )


@app.command("show")
def show(
    sitemap_file: Path = typer.Argument(..., help="Path to a sitemap.json"),
    kind: Optional[NodeKind] = typer.Option(None, "--kind", "-k", help="Only list nodes of this kind"),
    json_output: bool = typer.Option(False, "--json", help="Output the backlink index as JSON"),
):
    """Summarize a sitemap: node kinds, links and backlinks per node."""
    try:
        sitemap = validate_sitemap(load_sitemap(sitemap_file))
    except (OSError, MalformedSitemapError) as exc:
        print(f"[red]Cannot read sitemap:[/red] {exc}")
        raise typer.Exit(code=1)

    backlinks = sitemap.backlinks
    if json_output:
        typer.echo(json.dumps(backlinks, indent=2))
        return

    table = Table(title=f"{sitemap_file} ({len(sitemap.nodes)} nodes, {len(sitemap.links)} links)")
    table.add_column("Id", style="cyan")
    table.add_column("Kind")
    table.add_column("Title")
    table.add_column("Tags", justify="right")
    table.add_column("Backlinks", justify="right")
    for node in sitemap.nodes.values():
        if kind is not None and node.kind is not kind:
            continue
        table.add_row(
            node.id,
            node.kind.value,
            node.title,
            str(len(node.tags)),
            str(len(backlinks.get(node.id, []))),
        )
    print(table)


def main() -> None:
    load_dotenv()
    app()


if __name__ == "__main__":
    main()
