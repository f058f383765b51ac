"""
wirefilter - red/green wire signal filtering with phase-transparent node state.

Compares the signals on a node's red and green input wires and emits, per
wire, either the signals unique to that wire (difference) or the signals
present on both (intersection).
"""

__version__ = "0.1.0"

from wirefilter.algebra import apply_filter, difference, intersection
from wirefilter.config import CONFIG_TAG, DEFAULT_CONFIG, FilterConfig, FilterMode, parse_mode
from wirefilter.lifecycle import LifecycleOrchestrator
from wirefilter.observers import ViewTracker
from wirefilter.protocols import Channel, Sink, SinkFactory
from wirefilter.registry import DraftNode, LiveNode, NodeRegistry
from wirefilter.runtime import FilterRuntime, create_runtime
from wirefilter.scheduler import FilterScheduler, PassReport
from wirefilter.signals import Signal, SignalCategory, signal_key

__all__ = [
    "__version__",
    "apply_filter",
    "difference",
    "intersection",
    "CONFIG_TAG",
    "DEFAULT_CONFIG",
    "FilterConfig",
    "FilterMode",
    "parse_mode",
    "LifecycleOrchestrator",
    "ViewTracker",
    "Channel",
    "Sink",
    "SinkFactory",
    "DraftNode",
    "LiveNode",
    "NodeRegistry",
    "FilterRuntime",
    "create_runtime",
    "FilterScheduler",
    "PassReport",
    "Signal",
    "SignalCategory",
    "signal_key",
]
