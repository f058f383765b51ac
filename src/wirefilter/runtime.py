"""Runtime wiring.

Builds one registry and one view tracker and hands the same instances to the
orchestrator and the scheduler; nothing is kept in module globals. A running
runtime is driven by a ThreadTickBackend at ``settings.ticks_per_second``;
lifecycle calls from other threads go through ``submit``.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

from wirefilter.backend import ThreadTickBackend
from wirefilter.core.settings import WireFilterSettings, get_settings
from wirefilter.lifecycle import LifecycleOrchestrator
from wirefilter.observers import ReleaseCallback, ViewTracker
from wirefilter.protocols import CircuitReader, ModeChangedHook, PowerCheck, SinkFactory, ValidityPredicate
from wirefilter.registry import NodeRegistry
from wirefilter.scheduler import FilterScheduler


@dataclass
class FilterRuntime:
    """The collaborating parts of one running filter system."""

    registry: NodeRegistry
    orchestrator: LifecycleOrchestrator
    scheduler: FilterScheduler
    views: ViewTracker
    settings: WireFilterSettings
    backend: ThreadTickBackend = field(default_factory=ThreadTickBackend)

    def tick(self, tick: int) -> None:
        self.scheduler.on_tick(tick)

    def start(self) -> None:
        """Tick in the background at the configured rate."""
        self.backend.start(self.tick, ticks_per_second=self.settings.ticks_per_second)

    def stop(self) -> None:
        self.backend.stop()

    def submit(self, fn: Callable[..., Any], *args: Any) -> None:
        """Run ``fn(*args)`` on the tick thread, or right away when not running."""
        if self.backend.is_running:
            self.backend.submit(fn, *args)
        else:
            fn(*args)

    @property
    def running(self) -> bool:
        return self.backend.is_running


def create_runtime(
    *,
    sink_factory: SinkFactory,
    power: PowerCheck,
    circuit: CircuitReader,
    is_valid: ValidityPredicate,
    on_mode_changed: ModeChangedHook | None = None,
    on_view_released: ReleaseCallback | None = None,
    settings: WireFilterSettings | None = None,
) -> FilterRuntime:
    settings = settings or get_settings()
    registry = NodeRegistry(on_mode_changed=on_mode_changed)
    views = ViewTracker(on_release=on_view_released)
    orchestrator = LifecycleOrchestrator(registry, sink_factory, is_valid=is_valid, views=views)
    scheduler = FilterScheduler(
        registry,
        power=power,
        circuit=circuit,
        is_valid=is_valid,
        interval_ticks=settings.update_interval_ticks,
        views=views,
    )
    return FilterRuntime(
        registry=registry,
        orchestrator=orchestrator,
        scheduler=scheduler,
        views=views,
        settings=settings,
    )
