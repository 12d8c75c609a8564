"""Command-line interface: ``quire build|watch|serve|copy-readme``."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Annotated

import typer

from quire.build import Site
from quire.config import QuireSettings, RunMode
from quire.logging_setup import configure_logging
from quire.readme import copy_readme
from quire.ready import ReadyGate
from quire.server.app import create_app
from quire.watch import SiteWatcher

logger = logging.getLogger(__name__)

app = typer.Typer(
    name="quire",
    help="Build a static site from Markdown, Jinja layouts, SCSS and JavaScript.",
    add_completion=False,
    no_args_is_help=True,
)

RootOption = Annotated[
    Path,
    typer.Option("--root", "-r", help="Site root containing quire.toml and the input directory."),
]


def _load_site(root: Path, run_mode: RunMode) -> Site:
    settings = QuireSettings.load(root)
    return Site(settings, run_mode=run_mode)


@app.callback()
def main(
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Log every written file.")] = False,
) -> None:
    configure_logging(logging.DEBUG if verbose else None)


@app.command()
def build(root: RootOption = Path(".")) -> None:
    """Build the site once. Drafts are skipped unless BUILD_DRAFTS is set."""
    site = _load_site(root, RunMode.BUILD)
    result = site.build()
    typer.echo(f"Built {len(result.written)} pages into {site.settings.abs_output_dir}")


@app.command()
def watch(root: RootOption = Path(".")) -> None:
    """Build, then rebuild on every change. Drafts are included."""
    watcher = SiteWatcher(_load_site(root, RunMode.WATCH))
    try:
        watcher.run()
    except KeyboardInterrupt:
        watcher.stop()


@app.command()
def serve(
    root: RootOption = Path("."),
    host: Annotated[str | None, typer.Option(help="Bind address (defaults to HOST or 127.0.0.1).")] = None,
    port: Annotated[int | None, typer.Option(help="Port (defaults to PORT or 8080).")] = None,
) -> None:
    """Watch and serve the output directory. Drafts are included."""
    site = _load_site(root, RunMode.SERVE)
    settings = site.settings
    host = host or settings.host
    port = port or settings.port

    ready = ReadyGate()
    ready.execute_when_ready(lambda: logger.info("Serving %s at http://%s:%d/", settings.abs_output_dir, host, port))
    watcher = SiteWatcher(site, ready=ready)
    watcher.start_in_background()
    try:
        create_app(settings.abs_output_dir).run(host=host, port=port, use_reloader=False)
    finally:
        watcher.stop()


@app.command("copy-readme")
def copy_readme_command(root: RootOption = Path(".")) -> None:
    """Copy README.md into the input directory as a page."""
    settings = QuireSettings.load(root)
    destination = copy_readme(settings.root / "README.md", settings.abs_input_dir / "README.md")
    typer.echo(f"README.md copied to {destination}")
