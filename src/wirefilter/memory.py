"""
In-memory collaborators.

Single-process stand-ins for everything the core treats as external: sinks,
the sink factory, power/circuit/validity lookups and a template to capture
into. They back the CLI ``simulate`` command and the test suite.

Examples:
    >>> world = MemoryWorld()
    >>> world.add_node(1, red=[...], green=[...])
    >>> factory = MemorySinkFactory()
    >>> sink = factory.create_sink(1, Channel.RED)
    >>> sink.set_slot(1, Signal(SignalCategory.ITEM, "iron", count=3))
    >>> sink.slot_count
    1
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from typing import Any

from wirefilter.config import FilterMode
from wirefilter.core.errors import SinkCreationError
from wirefilter.protocols import Channel, NodeId
from wirefilter.signals import Signal


class MemorySink:
    """Dict-backed sink whose slot capacity grows on demand."""

    def __init__(self, node_id: NodeId = None, channel: Channel = Channel.RED) -> None:
        self.node_id = node_id
        self.channel = channel
        self._slots: dict[int, Signal] = {}
        self._slot_count = 0
        self._valid = True
        self.writes = 0

    @property
    def valid(self) -> bool:
        return self._valid

    @property
    def slot_count(self) -> int:
        return self._slot_count

    def get_slot(self, index: int) -> Signal | None:
        return self._slots.get(index)

    def set_slot(self, index: int, signal: Signal) -> None:
        if index < 1:
            raise IndexError(f"slot index must be >= 1, got {index}")
        self._slots[index] = signal
        self._slot_count = max(self._slot_count, index)
        self.writes += 1

    def clear_slot(self, index: int) -> None:
        if self._slots.pop(index, None) is not None:
            self.writes += 1

    def destroy(self) -> None:
        self._valid = False
        self._slots.clear()

    def contents(self) -> list[Signal]:
        return [self._slots[i] for i in sorted(self._slots)]

    def __repr__(self) -> str:
        state = "valid" if self._valid else "destroyed"
        return f"MemorySink(node_id={self.node_id!r}, channel={self.channel.value}, {state}, slots={len(self._slots)})"


class MemorySinkFactory:
    """Creates MemorySinks and keeps every one it made.

    ``fail_on`` lists channels whose creation raises SinkCreationError,
    which is how tests exercise partial materialization failures.
    """

    def __init__(self, fail_on: Iterable[Channel] = ()) -> None:
        self.fail_on = set(fail_on)
        self.created: list[MemorySink] = []

    def create_sink(self, node_id: NodeId, channel: Channel) -> MemorySink:
        if channel in self.fail_on:
            raise SinkCreationError(f"cannot create {channel.value} sink")
        sink = MemorySink(node_id, channel)
        self.created.append(sink)
        return sink

    def alive(self) -> list[MemorySink]:
        return [s for s in self.created if s.valid]


@dataclass
class NodeState:
    """What the outside world knows about one node."""

    powered: bool = True
    red: list[Signal] = field(default_factory=list)
    green: list[Signal] = field(default_factory=list)


class MemoryWorld:
    """Power, wire readings and validity for a set of nodes.

    Implements the PowerCheck, CircuitReader and ValidityPredicate
    protocols through its bound methods, and records display syncs.
    """

    def __init__(self) -> None:
        self.nodes: dict[NodeId, NodeState] = {}
        self.displayed: dict[NodeId, FilterMode] = {}

    def add_node(
        self,
        node_id: NodeId,
        *,
        powered: bool = True,
        red: Sequence[Signal] = (),
        green: Sequence[Signal] = (),
    ) -> NodeState:
        state = NodeState(powered=powered, red=list(red), green=list(green))
        self.nodes[node_id] = state
        return state

    def remove_node(self, node_id: NodeId) -> None:
        self.nodes.pop(node_id, None)

    def set_inputs(self, node_id: NodeId, red: Sequence[Signal], green: Sequence[Signal]) -> None:
        state = self.nodes[node_id]
        state.red = list(red)
        state.green = list(green)

    def has_power(self, node_id: NodeId) -> bool:
        state = self.nodes.get(node_id)
        return state is not None and state.powered

    def read_inputs(self, node_id: NodeId) -> tuple[list[Signal], list[Signal]]:
        state = self.nodes.get(node_id)
        if state is None:
            return [], []
        return list(state.red), list(state.green)

    def is_valid(self, node_id: NodeId) -> bool:
        return node_id in self.nodes

    def sync_display(self, node_id: NodeId, mode: FilterMode) -> None:
        self.displayed[node_id] = mode


class MemoryTemplate:
    """Template whose slots collect tags."""

    def __init__(self) -> None:
        self.tags: dict[Any, dict[str, Any]] = {}

    def set_tag(self, slot: Any, key: str, value: Any) -> None:
        self.tags.setdefault(slot, {})[key] = value

    def get_tag(self, slot: Any, key: str) -> Any:
        return self.tags.get(slot, {}).get(key)
