"""Main CLI entry point for serial-seo."""

import json
import sys
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.panel import Panel

app = typer.Typer(
    name="serial-seo",
    help="Crawler pre-rendering and sitemap service for the TV serial catalog",
    no_args_is_help=True,
)
# Documents go to stdout; status lines to stderr
console = Console(stderr=True)


@app.callback()
def main(
    ctx: typer.Context,
    config: Optional[Path] = typer.Option(
        None,
        "--config",
        "-c",
        help="Path to config file (default: config/serial_seo.yaml)",
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose logging"),
):
    """Serial SEO: pre-rendered pages and sitemaps for crawlers."""
    ctx.ensure_object(dict)
    ctx.obj["config"] = config or Path("config/serial_seo.yaml")
    ctx.obj["verbose"] = verbose


def _load(ctx: typer.Context):
    from .core.exceptions import ConfigurationError
    from .core.logger import setup_logging
    from .core.settings import get_settings

    try:
        settings = get_settings(ctx.obj["config"])
    except ConfigurationError as e:
        console.print(f"[red]✗[/red] {e}")
        raise typer.Exit(code=1)

    level = "DEBUG" if ctx.obj["verbose"] else settings.log_level
    setup_logging(settings.log_dir, level, settings.log_format, to_file=settings.log_to_file)
    return settings


def _store(settings):
    from .core.store import ContentStore
    return ContentStore(settings.database_url, echo=settings.database_echo)


@app.command()
def version():
    """Show version information."""
    from . import __version__
    console.print(f"[bold cyan]serial-seo[/bold cyan] version [green]{__version__}[/green]")


@app.command("init-db")
def init_db(ctx: typer.Context):
    """Create the content tables in the configured database."""
    settings = _load(ctx)
    _store(settings).init_db()
    console.print(f"[green]✓[/green] Tables created in {settings.database_url}")


@app.command()
def serve(
    ctx: typer.Context,
    host: Optional[str] = typer.Option(None, "--host", help="Bind host"),
    port: Optional[int] = typer.Option(None, "--port", "-p", help="Bind port"),
    reload: bool = typer.Option(False, "--reload", help="Auto-reload on code changes"),
):
    """Run the HTTP service."""
    from .api.server import run_server

    settings = _load(ctx)
    console.print(Panel.fit(
        f"[bold]Serial SEO[/bold]\n{settings.site.site_url}",
        border_style="cyan"
    ))
    run_server(host=host, port=port, config_path=ctx.obj["config"], reload=reload)


@app.command()
def render(
    ctx: typer.Context,
    path: str = typer.Argument("/", help="SPA path to render"),
    user_agent: str = typer.Option("Googlebot/2.1", "--user-agent", "-u", help="User-Agent to classify"),
):
    """Print the document a crawler would receive for PATH."""
    from .core.exceptions import SerialSeoError
    from .seo.bots import is_bot
    from .seo.renderer import NOT_BOT_RESPONSE, SeoRenderer

    settings = _load(ctx)

    if not is_bot(user_agent):
        print(json.dumps(NOT_BOT_RESPONSE))
        return

    try:
        document = SeoRenderer(_store(settings), settings.site).render(path)
    except SerialSeoError as e:
        console.print(f"[red]✗[/red] {e}")
        raise typer.Exit(code=1)

    sys.stdout.write(document + "\n")


@app.command()
def sitemap(
    ctx: typer.Context,
    sitemap_type: str = typer.Option("index", "--type", "-t", help="index, pages, shows, categories, episodes"),
    page: int = typer.Option(1, "--page", "-p", help="Episode sitemap page"),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Write XML to this file"),
):
    """Generate one sitemap document."""
    from .core.exceptions import SerialSeoError
    from .sitemap.generator import SitemapGenerator

    settings = _load(ctx)

    try:
        xml = SitemapGenerator(_store(settings), settings.site).generate(sitemap_type, page)
    except SerialSeoError as e:
        console.print(f"[red]✗[/red] {e}")
        raise typer.Exit(code=1)

    if output:
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_text(xml, encoding="utf-8")
        console.print(f"[green]✓[/green] Wrote {output}")
    else:
        sys.stdout.write(xml + "\n")


if __name__ == "__main__":
    app()
