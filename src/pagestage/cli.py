"""CLI interface for Pagestage.

Command-line tool for resolving layouts, composing page URLs and serving
the preview API.
"""

import json
import logging
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import NoReturn

import click

from pagestage.config import Config
from pagestage.core.composition import Origin, ResolvedElement, resolve_page
from pagestage.core.models import RegularKind, Snapshot
from pagestage.core.routing import build_url, check_parent_assignment
from pagestage.core.slots import index_slots
from pagestage.core.tree import build_forest
from pagestage.snapshot import SnapshotLoader


@dataclass
class CliContext:
    """Options shared by all commands."""

    config_path: Path | None
    snapshot_path: Path | None

    def load_config(self) -> Config:
        config = Config.load(self.config_path)
        return config.with_overrides(snapshot_path=self.snapshot_path)

    def load_snapshot(self) -> Snapshot:
        return SnapshotLoader(self.load_config().snapshot.path).load()


pass_context = click.make_pass_decorator(CliContext)


@click.group()
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=True, path_type=Path),
    default=None,
    help="Path to configuration file (default: auto-discover pagestage.toml)",
)
@click.option(
    "--snapshot",
    "-s",
    "snapshot_path",
    type=click.Path(path_type=Path, dir_okay=False),
    default=None,
    help="Snapshot JSON file (overrides config)",
)
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
@click.pass_context
def cli(
    ctx: click.Context,
    config_path: Path | None,
    snapshot_path: Path | None,
    verbose: bool,
) -> None:
    """Pagestage - Layout composition and nested routes for page builders."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    ctx.obj = CliContext(config_path=config_path, snapshot_path=snapshot_path)


@cli.command("resolve")
@click.argument("page_id")
@click.option("--json", "as_json", is_flag=True, help="Print the full result as JSON")
@pass_context
def resolve_command(context: CliContext, page_id: str, as_json: bool) -> None:
    """Print the resolved element tree of a page."""
    snapshot = _load_or_exit(context)
    if snapshot.page(page_id) is None:
        _fail(f"page not found: {page_id}")

    result = resolve_page(snapshot, page_id)

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        return

    if not result.has_layout:
        click.echo("Layout: none")
    _print_tree(result.resolved_tree)

    for name in result.unused_slot_names:
        click.echo(
            click.style(f'Warning: content targets unknown slot "{name}"', fg="yellow"),
        )
    if result.dropped_element_ids:
        click.echo(
            click.style(
                f"Warning: {len(result.dropped_element_ids)} element(s) dropped, "
                "layout has no slots",
                fg="yellow",
            ),
        )
    for error in result.validation_errors:
        click.echo(click.style(f"Warning: {error.message}", fg="yellow"))


@cli.command("url")
@click.argument("page_id")
@pass_context
def url_command(context: CliContext, page_id: str) -> None:
    """Print the composed URL of a page."""
    snapshot = _load_or_exit(context)
    page = snapshot.page(page_id)
    if page is None:
        _fail(f"page not found: {page_id}")

    click.echo(build_url(page, snapshot.layout_for(page), snapshot.pages))


@cli.command("slots")
@click.argument("layout_id")
@pass_context
def slots_command(context: CliContext, layout_id: str) -> None:
    """List the slots of a layout."""
    snapshot = _load_or_exit(context)
    layout = snapshot.layout(layout_id)
    if layout is None:
        _fail(f"layout not found: {layout_id}")

    slot_index = index_slots(build_forest(snapshot.elements_for_layout(layout.id)))
    if not len(slot_index):
        click.echo(f"Layout {layout.name} has no slots")
        return

    for descriptor in slot_index:
        flag = " (required)" if descriptor.required else ""
        line = f"{descriptor.name}{flag}"
        if descriptor.description:
            line += f" - {descriptor.description}"
        click.echo(line)
    for name in slot_index.duplicates:
        click.echo(
            click.style(f'Warning: slot name "{name}" is declared twice', fg="yellow"),
        )


@cli.command("check-parent")
@click.argument("page_id")
@click.argument("candidate_id")
@pass_context
def check_parent_command(context: CliContext, page_id: str, candidate_id: str) -> None:
    """Check whether CANDIDATE_ID may become the parent of PAGE_ID."""
    config = _load_config_or_exit(context)
    snapshot = _load_or_exit(context)
    if snapshot.page(page_id) is None:
        _fail(f"page not found: {page_id}")

    check = check_parent_assignment(
        page_id,
        candidate_id,
        snapshot.pages,
        max_depth=config.routing.max_nesting_depth,
    )
    if check.allowed:
        click.echo(click.style(f"Allowed (depth {check.depth})", fg="green"))
        return

    click.echo(click.style(f"Refused: {check.reason}", fg="red"))
    sys.exit(1)


@cli.command()
@click.option("--host", default=None, help="Host to bind to (overrides config)")
@click.option(
    "--port",
    "-p",
    type=int,
    default=None,
    help="Port to bind to (overrides config)",
)
@click.option(
    "--live-reload/--no-live-reload",
    default=None,
    help="Enable/disable live reload (overrides config, default: enabled)",
)
@pass_context
def serve(
    context: CliContext,
    host: str | None,
    port: int | None,
    live_reload: bool | None,
) -> None:
    """Start the preview API server."""
    from pagestage.server import run_server

    config = _load_config_or_exit(context).with_overrides(
        host=host,
        port=port,
        live_reload_enabled=live_reload,
    )

    click.echo(f"Starting server on {config.server.host}:{config.server.port}")
    click.echo(f"Snapshot: {config.snapshot.path}")
    if config.live_reload.enabled:
        click.echo("Live reload: enabled")
    else:
        click.echo("Live reload: disabled")

    run_server(config)


def _print_tree(nodes: list[ResolvedElement]) -> None:
    stack = [(node, 0) for node in reversed(nodes)]
    while stack:
        node, depth = stack.pop()
        label = node.element.tag
        kind = node.element.kind
        if isinstance(kind, RegularKind) and isinstance(kind.properties.get("name"), str):
            label = f"{label} {kind.properties['name']}"
        origin = "layout" if node.origin is Origin.LAYOUT else "page"
        click.echo(f"{'  ' * depth}[{origin}] {label} ({node.element.id})")
        stack.extend((child, depth + 1) for child in reversed(node.children))


def _fail(message: str) -> NoReturn:
    click.echo(click.style(f"Error: {message}", fg="red"), err=True)
    sys.exit(1)


def _load_config_or_exit(context: CliContext) -> Config:
    try:
        return context.load_config()
    except (FileNotFoundError, ValueError) as e:
        _fail(str(e))


def _load_or_exit(context: CliContext) -> Snapshot:
    try:
        return context.load_snapshot()
    except (FileNotFoundError, ValueError) as e:
        _fail(str(e))


if __name__ == "__main__":
    cli()
