"""
Periodic compute-and-push pass over live filter nodes.

Every ``interval_ticks`` ticks the scheduler walks a snapshot of the live
node ids and, per node:

1. drops it right away (open views released, sinks destroyed) if it is no
   longer valid;
2. pushes empty outputs if it has no power;
3. otherwise reads both input wires, filters them with the node's config
   and reconciles the red then the green sink.

Nodes are independent and processed in registration order.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any

from wirefilter import sinks
from wirefilter.algebra import apply_filter
from wirefilter.core.logging import get_logger
from wirefilter.observers import ViewTracker
from wirefilter.protocols import CircuitReader, NodeId, PowerCheck, ValidityPredicate
from wirefilter.registry import NodeRegistry
from wirefilter.signals import Signal

logger = get_logger(__name__)

DEFAULT_INTERVAL_TICKS = 2


@dataclass
class PassReport:
    """Outcome of one pass."""

    processed: int = 0
    unpowered: int = 0
    removed: int = 0
    slot_writes: int = 0


@dataclass
class SchedulerStats:
    """Cumulative statistics for the scheduler."""

    tick_count: int = 0
    passes: int = 0
    nodes_processed: int = 0
    nodes_unpowered: int = 0
    nodes_removed: int = 0
    slot_writes: int = 0
    last_pass: datetime | None = None


class FilterScheduler:
    """Runs filter passes on a fixed tick cadence."""

    def __init__(
        self,
        registry: NodeRegistry,
        *,
        power: PowerCheck,
        circuit: CircuitReader,
        is_valid: ValidityPredicate,
        interval_ticks: int = DEFAULT_INTERVAL_TICKS,
        views: ViewTracker | None = None,
    ) -> None:
        if interval_ticks < 1:
            raise ValueError("interval_ticks must be >= 1")
        self.registry = registry
        self.power = power
        self.circuit = circuit
        self.is_valid = is_valid
        self.interval_ticks = interval_ticks
        self.views = views
        self.stats = SchedulerStats()

    def on_tick(self, tick: int) -> PassReport | None:
        """Run a pass when ``tick`` falls on the cadence."""
        self.stats.tick_count += 1
        if tick % self.interval_ticks:
            return None
        return self.run_pass()

    def run_pass(self) -> PassReport:
        report = PassReport()
        for node_id in self.registry.live_ids():
            if not self.is_valid(node_id):
                self._drop(node_id)
                report.removed += 1
                continue

            sink_red, sink_green = self.registry.sinks(node_id)
            if not self.power(node_id):
                red_out: list[Signal] = []
                green_out: list[Signal] = []
                report.unpowered += 1
            else:
                red_out, green_out = self._compute(node_id)
                report.processed += 1

            report.slot_writes += sinks.reconcile(sink_red, red_out)
            report.slot_writes += sinks.reconcile(sink_green, green_out)
            self.registry.record_outputs(node_id, red_out, green_out)

        self._account(report)
        return report

    def preview(self, node: Any) -> tuple[list[Signal], list[Signal]]:
        """What ``node`` outputs right now, without touching its sinks."""
        ref = self.registry.ref(node)
        if not ref.live or not self.power(ref.node_id):
            return [], []
        return self._compute(ref.node_id)

    def _compute(self, node_id: NodeId) -> tuple[list[Signal], list[Signal]]:
        red_in, green_in = self.circuit(node_id)
        return apply_filter(red_in or (), green_in or (), self.registry.get_config(node_id))

    def health(self) -> dict[str, Any]:
        return {
            "live_nodes": len(self.registry),
            "interval_ticks": self.interval_ticks,
            "tick_count": self.stats.tick_count,
            "passes": self.stats.passes,
            "nodes_removed": self.stats.nodes_removed,
            "slot_writes": self.stats.slot_writes,
            "last_pass": self.stats.last_pass.isoformat() if self.stats.last_pass else None,
        }

    def _drop(self, node_id: NodeId) -> None:
        if self.views is not None:
            self.views.release_node(node_id)
        sink_red, sink_green = self.registry.unregister_live(node_id)
        sinks.destroy(sink_red)
        sinks.destroy(sink_green)
        logger.info("scheduler.node_removed", node_id=node_id)

    def _account(self, report: PassReport) -> None:
        self.stats.passes += 1
        self.stats.nodes_processed += report.processed
        self.stats.nodes_unpowered += report.unpowered
        self.stats.nodes_removed += report.removed
        self.stats.slot_writes += report.slot_writes
        self.stats.last_pass = datetime.now(UTC)
