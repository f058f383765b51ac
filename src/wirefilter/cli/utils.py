"""
CLI utility helpers: document loading and output formatting.
"""

from __future__ import annotations

import json
from collections.abc import Mapping, Sequence
from pathlib import Path
from typing import Any

import typer
import yaml
from rich.console import Console
from rich.table import Table

from wirefilter.signals import Signal

console = Console()
err_console = Console(stderr=True)


def fail(message: str) -> typer.Exit:
    """Print an error and return the Exit to raise."""
    err_console.print(f"[bold red]Error[/bold red]: {message}")
    return typer.Exit(code=1)


def load_document(path: Path) -> dict[str, Any]:
    """Read a YAML (or JSON) mapping from ``path``."""
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as e:
        raise fail(f"cannot parse {path}: {e}") from e
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise fail(f"{path} must contain a mapping at the top level")
    return data


def output_channels(
    channels: Mapping[str, Sequence[Signal]],
    *,
    as_json: bool = False,
    title: str = "",
) -> None:
    """Render red/green signal lists."""
    if as_json:
        payload = {name: [s.to_dict() for s in signals] for name, signals in channels.items()}
        console.print_json(json.dumps(payload))
        return

    if title:
        console.print(f"[bold]{title}[/bold]")
    for name, signals in channels.items():
        _print_signals(signals, title=name)


def _print_signals(signals: Sequence[Signal], *, title: str) -> None:
    color = {"red": "red", "green": "green"}.get(title, "cyan")
    if not signals:
        console.print(f"[{color}]{title}[/{color}] [dim]no signals[/dim]")
        return
    table = Table(title=f"[{color}]{title}[/{color}]", show_lines=False, pad_edge=False)
    table.add_column("type")
    table.add_column("name", overflow="fold")
    table.add_column("quality")
    table.add_column("count", justify="right")
    for s in signals:
        table.add_row(s.category.value, s.name, s.quality or "", str(s.count))
    console.print(table)
