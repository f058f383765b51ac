"""
Root Typer application for the wirefilter CLI.

    wirefilter filter FILE      filter one red/green reading
    wirefilter simulate FILE    run ticks over an in-memory scenario
    wirefilter config show      print resolved settings
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import typer
from typer import Typer

from wirefilter.algebra import apply_filter
from wirefilter.cli.utils import console, fail, load_document, output_channels
from wirefilter.config import FilterConfig, parse_mode
from wirefilter.core.errors import InvalidConfigError
from wirefilter.core.logging import configure_logging
from wirefilter.core.settings import get_settings
from wirefilter.memory import MemorySinkFactory, MemoryWorld
from wirefilter.runtime import create_runtime
from wirefilter.signals import Signal, parse_signals
from wirefilter.sinks import read_slots

app = Typer(
    name="wirefilter",
    help="wirefilter: red/green wire signal filtering.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

config_app = typer.Typer(no_args_is_help=True)
app.add_typer(config_app, name="config", help="Configuration inspection.")


# ── Version callback ─────────────────────────────────────────────────────


def _version_callback(value: bool) -> None:
    if value:
        from wirefilter import __version__

        typer.echo(f"wirefilter {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool | None = typer.Option(
        None,
        "--version",
        "-V",
        help="Show version and exit.",
        callback=_version_callback,
        is_eager=True,
    ),
) -> None:
    """wirefilter CLI: filter wire readings and simulate filter nodes."""
    settings = get_settings()
    configure_logging(level=settings.log_level, json_format=settings.log_format == "json")


# ── Commands ─────────────────────────────────────────────────────────────


def _signals(raw: Any, where: str) -> list[Signal]:
    try:
        return parse_signals(raw)
    except (KeyError, TypeError, ValueError, AttributeError) as e:
        raise fail(f"invalid signal list in {where}: {e}") from e


@app.command("filter")
def filter_reading(
    path: Path = typer.Argument(..., exists=True, dir_okay=False, help="YAML/JSON with red and green lists"),
    mode: str = typer.Option("diff", "--mode", "-m", help="diff or inter"),
    ignore_quality: bool = typer.Option(False, "--ignore-quality", help="Match signals regardless of quality"),
    json_out: bool = typer.Option(False, "--json"),
) -> None:
    """Filter one red/green reading and print both outputs."""
    try:
        filter_mode = parse_mode(mode, strict=True)
    except InvalidConfigError as e:
        raise fail(e.message) from e

    doc = load_document(path)
    red = _signals(doc.get("red"), "red")
    green = _signals(doc.get("green"), "green")
    config = FilterConfig(mode=filter_mode, quality_sensitive=not ignore_quality)

    red_out, green_out = apply_filter(red, green, config)
    output_channels(
        {"red": red_out, "green": green_out},
        as_json=json_out,
        title=f"mode={config.mode.value} quality_sensitive={config.quality_sensitive}",
    )


@app.command("simulate")
def simulate(
    path: Path = typer.Argument(..., exists=True, dir_okay=False, help="Scenario YAML/JSON with a nodes list"),
    ticks: int = typer.Option(2, "--ticks", "-t", min=1, help="Number of ticks to run"),
    json_out: bool = typer.Option(False, "--json"),
) -> None:
    """Materialize the scenario's nodes, run ticks and print each node's sinks."""
    doc = load_document(path)
    world = MemoryWorld()
    runtime = create_runtime(
        sink_factory=MemorySinkFactory(),
        power=world.has_power,
        circuit=world.read_inputs,
        is_valid=world.is_valid,
        on_mode_changed=world.sync_display,
    )

    for index, node_doc in enumerate(doc.get("nodes") or []):
        if not isinstance(node_doc, dict) or "id" not in node_doc:
            raise fail(f"node #{index} needs an id")
        node_id = node_doc["id"]
        world.add_node(
            node_id,
            powered=bool(node_doc.get("powered", True)),
            red=_signals(node_doc.get("red"), f"node {node_id} red"),
            green=_signals(node_doc.get("green"), f"node {node_id} green"),
        )
        template = {k: node_doc[k] for k in ("mode", "quality_sensitive") if k in node_doc}
        runtime.orchestrator.materialize(node_id, template=template)

    for tick in range(1, ticks + 1):
        runtime.tick(tick)

    results: dict[str, Any] = {}
    for node_id in runtime.registry.live_ids():
        sink_red, sink_green = runtime.registry.sinks(node_id)
        results[str(node_id)] = {
            "config": runtime.registry.serialize_payload(node_id),
            "red": read_slots(sink_red),
            "green": read_slots(sink_green),
        }

    if json_out:
        payload = {
            node: {
                "config": data["config"],
                "red": [s.to_dict() for s in data["red"]],
                "green": [s.to_dict() for s in data["green"]],
            }
            for node, data in results.items()
        }
        console.print_json(json.dumps(payload))
        return

    for node, data in results.items():
        config = data["config"]
        output_channels(
            {"red": data["red"], "green": data["green"]},
            title=f"node {node} (mode={config['mode']} quality_sensitive={config['quality_sensitive']})",
        )
    console.print(f"[dim]{ticks} ticks, {runtime.scheduler.stats.passes} passes[/dim]")


@config_app.command("show")
def show_config(json_out: bool = typer.Option(False, "--json")) -> None:
    """Show current configuration."""
    settings = get_settings()

    if json_out:
        console.print_json(settings.model_dump_json())
        return

    from rich.table import Table

    table = Table()
    table.add_column("Setting")
    table.add_column("Value")
    for key, value in settings.model_dump().items():
        table.add_row(key, str(value))
    console.print(table)
