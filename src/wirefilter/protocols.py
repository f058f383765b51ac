"""
Collaborator protocols for wirefilter.

The filtering core owns no physical representation, power metering, wiring
or rendering. Everything it needs from the outside world is one of the
structural contracts below; any object (or plain function) with the right
shape works, which is how the in-memory collaborators in
:mod:`wirefilter.memory` plug in for tests and the CLI.

Architecture:
    ::

        protocols.py
        ├── Sink              - slot-addressed write target for one channel
        ├── SinkFactory       - creates a sink already wired to a node channel
        ├── PowerCheck        - node_id → has power
        ├── CircuitReader     - node_id → (red_in, green_in)
        ├── ValidityPredicate - node_id → still materialized
        ├── ModeChangedHook   - (node_id, mode) → display sync, fire-and-forget
        └── TemplateWriter    - attaches a payload to a template slot
"""

from __future__ import annotations

from collections.abc import Hashable, Sequence
from enum import Enum
from typing import Any, Protocol, runtime_checkable

from wirefilter.config import FilterMode
from wirefilter.signals import Signal

NodeId = Hashable


class Channel(str, Enum):
    """Wire color of a sink."""

    RED = "red"
    GREEN = "green"


@runtime_checkable
class Sink(Protocol):
    """Slot-addressed output target (1-based slots)."""

    @property
    def valid(self) -> bool:
        """False once the sink has been destroyed or otherwise lost."""
        ...

    @property
    def slot_count(self) -> int:
        """Highest slot index the sink has allocated so far."""
        ...

    def get_slot(self, index: int) -> Signal | None: ...

    def set_slot(self, index: int, signal: Signal) -> None: ...

    def clear_slot(self, index: int) -> None: ...

    def destroy(self) -> None: ...


@runtime_checkable
class SinkFactory(Protocol):
    """Creates the hidden output sinks of a node.

    Returns ``None`` or raises ``SinkCreationError`` when the sink cannot be
    created; either way the orchestrator treats it as a failed
    materialization.
    """

    def create_sink(self, node_id: NodeId, channel: Channel) -> Sink | None: ...


class PowerCheck(Protocol):
    def __call__(self, node_id: NodeId) -> bool: ...


class CircuitReader(Protocol):
    def __call__(self, node_id: NodeId) -> tuple[Sequence[Signal], Sequence[Signal]]: ...


class ValidityPredicate(Protocol):
    def __call__(self, node_id: NodeId) -> bool: ...


class ModeChangedHook(Protocol):
    def __call__(self, node_id: NodeId, mode: FilterMode) -> None: ...


@runtime_checkable
class TemplateWriter(Protocol):
    def set_tag(self, slot: Any, key: str, value: Any) -> None: ...
