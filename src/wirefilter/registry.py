"""
Dual-state node registry.

A filter node is either a *draft* (a placeholder that is not materialized
yet and carries its configuration inline in its ``tags``) or *live*
(materialized, configuration and output sinks held in this registry under
the node id). ``NodeRegistry`` exposes one accessor surface for both phases;
callers hand in a ``DraftNode``, a ``LiveNode`` or a bare node id and never
branch on phase themselves.

ARCHITECTURE
────────────
::

    NodeRef = DraftNode(tags) | LiveNode(node_id)      (bare id → LiveNode)

    NodeRegistry
      ├── .register_live(id, red, green)   ─ entry with default config
      ├── .unregister_live(id)             ─ remove, hand back sinks
      ├── .get_config(ref) / .set_config(ref, **partial)
      ├── .serialize(ref) / .restore(ref, config)
      ├── .sweep_invalid(is_valid)         ─ drop stale entries, hand back sinks
      └── .record_outputs(id, red, green)  ─ last pushed outputs for display

Absence is a normal state: every accessor answers a missing entry with the
default config or a no-op. Removing an entry never destroys its sinks; the
caller receives them and owns their teardown.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any, ClassVar

from wirefilter.config import CONFIG_TAG, DEFAULT_CONFIG, FilterConfig, FilterMode, parse_mode
from wirefilter.core.logging import get_logger
from wirefilter.protocols import ModeChangedHook, NodeId, Sink, ValidityPredicate
from wirefilter.signals import Signal

logger = get_logger(__name__)


@dataclass(eq=False)
class DraftNode:
    """Placeholder for a node that has not been materialized.

    Its configuration lives in ``tags[CONFIG_TAG]``. Writes replace the whole
    ``tags`` dict so nothing holding the previous dict sees a half update.
    """

    tags: dict[str, Any] = field(default_factory=dict)

    live: ClassVar[bool] = False

    def load_config(self, registry: NodeRegistry) -> FilterConfig:
        return FilterConfig.from_payload(self.tags.get(CONFIG_TAG))

    def store_config(self, registry: NodeRegistry, config: FilterConfig) -> bool:
        self.tags = {**self.tags, CONFIG_TAG: config.to_payload()}
        return True


@dataclass(frozen=True)
class LiveNode:
    """Reference to a materialized node by id."""

    node_id: NodeId

    live: ClassVar[bool] = True

    def load_config(self, registry: NodeRegistry) -> FilterConfig:
        entry = registry.entry(self.node_id)
        return entry.config if entry else DEFAULT_CONFIG

    def store_config(self, registry: NodeRegistry, config: FilterConfig) -> bool:
        entry = registry.entry(self.node_id)
        if entry is None:
            return False
        entry.config = config
        return True


NodeRef = DraftNode | LiveNode


@dataclass
class RegistryEntry:
    """State of one live node."""

    node_id: NodeId
    sink_red: Sink
    sink_green: Sink
    config: FilterConfig = DEFAULT_CONFIG
    last_red_out: list[Signal] = field(default_factory=list)
    last_green_out: list[Signal] = field(default_factory=list)
    has_output: bool = False


class NodeRegistry:
    """Injectable registry of live filter nodes.

    Example:
        >>> registry = NodeRegistry(on_mode_changed=display.sync)
        >>> registry.register_live(7, red_sink, green_sink)
        FilterConfig(mode=<FilterMode.DIFFERENCE: 'diff'>, quality_sensitive=True)
        >>> registry.set_config(7, mode="inter")
        >>> registry.get_config(DraftNode()).mode
        <FilterMode.DIFFERENCE: 'diff'>
    """

    def __init__(self, on_mode_changed: ModeChangedHook | None = None) -> None:
        self._entries: dict[NodeId, RegistryEntry] = {}
        self._on_mode_changed = on_mode_changed

    # ── Live entries ─────────────────────────────────────────────

    def register_live(
        self,
        node_id: NodeId,
        sink_red: Sink | None,
        sink_green: Sink | None,
    ) -> FilterConfig | None:
        """Create an entry with the default config.

        Returns ``None`` without registering when the id is taken or either
        sink is missing.
        """
        if node_id is None or node_id in self._entries:
            return None
        if not _present(sink_red) or not _present(sink_green):
            return None

        entry = RegistryEntry(node_id=node_id, sink_red=sink_red, sink_green=sink_green)
        self._entries[node_id] = entry
        return entry.config

    def unregister_live(self, node_id: NodeId) -> tuple[Sink | None, Sink | None]:
        """Remove an entry and hand its sinks back for teardown."""
        entry = self._entries.pop(node_id, None)
        if entry is None:
            return None, None
        return entry.sink_red, entry.sink_green

    def sweep_invalid(self, is_valid: ValidityPredicate) -> list[tuple[NodeId, Sink, Sink]]:
        """Remove every entry whose node fails ``is_valid``.

        Returns ``(node_id, sink_red, sink_green)`` for each removed entry;
        the caller destroys the sinks.
        """
        stale = [node_id for node_id in self._entries if not is_valid(node_id)]
        removed = []
        for node_id in stale:
            entry = self._entries.pop(node_id)
            removed.append((node_id, entry.sink_red, entry.sink_green))
        if removed:
            logger.info("registry.swept", removed=len(removed), remaining=len(self._entries))
        return removed

    def entry(self, node_id: NodeId) -> RegistryEntry | None:
        return self._entries.get(node_id)

    def live_ids(self) -> list[NodeId]:
        return list(self._entries)

    def sinks(self, node: Any) -> tuple[Sink | None, Sink | None]:
        ref = self.ref(node)
        entry = self._entries.get(ref.node_id) if ref.live else None
        if entry is None:
            return None, None
        return entry.sink_red, entry.sink_green

    def __contains__(self, node_id: object) -> bool:
        return node_id in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    # ── Phase-transparent config access ──────────────────────────

    @staticmethod
    def ref(node: Any) -> NodeRef:
        """Normalize a DraftNode, LiveNode or bare id to a NodeRef."""
        if isinstance(node, (DraftNode, LiveNode)):
            return node
        return LiveNode(node)

    def get_config(self, node: Any) -> FilterConfig:
        return self.ref(node).load_config(self)

    def set_config(self, node: Any, **partial: Any) -> FilterConfig | None:
        """Merge ``partial`` into the node's config.

        Returns the new config, or ``None`` when there is nowhere to write
        (a live id with no entry).
        """
        ref = self.ref(node)
        current = ref.load_config(self)
        updated = current.merge(**partial)
        if not ref.store_config(self, updated):
            return None
        if ref.live and updated.mode is not current.mode:
            self._sync_display(ref.node_id, updated.mode)
        return updated

    def set_mode(self, node: Any, mode: Any) -> FilterConfig | None:
        """Set the mode; anything that is not a known mode means the default."""
        return self.set_config(node, mode=parse_mode(mode))

    def set_quality_sensitive(self, node: Any, quality_sensitive: bool | None) -> FilterConfig | None:
        if quality_sensitive is None:
            quality_sensitive = DEFAULT_CONFIG.quality_sensitive
        return self.set_config(node, quality_sensitive=quality_sensitive)

    def serialize(self, node: Any) -> FilterConfig:
        """Default-filled copy of the node's config."""
        return self.get_config(node)

    def serialize_payload(self, node: Any) -> dict[str, Any]:
        return self.serialize(node).to_payload()

    def restore(self, node: Any, config: FilterConfig | dict[str, Any] | None) -> FilterConfig | None:
        """Apply a possibly partial or foreign config, filling defaults.

        A live node additionally gets its display re-synced to the mode.
        """
        if config is None:
            return None
        restored = FilterConfig.from_payload(config)
        ref = self.ref(node)
        if not ref.store_config(self, restored):
            return None
        if ref.live:
            self._sync_display(ref.node_id, restored.mode)
        return restored

    def resync_display(self, node_id: NodeId) -> None:
        entry = self._entries.get(node_id)
        if entry is not None:
            self._sync_display(node_id, entry.config.mode)

    # ── Output bookkeeping ───────────────────────────────────────

    def record_outputs(
        self,
        node_id: NodeId,
        red_out: Sequence[Signal],
        green_out: Sequence[Signal],
    ) -> None:
        entry = self._entries.get(node_id)
        if entry is None:
            return
        entry.last_red_out = list(red_out)
        entry.last_green_out = list(green_out)
        entry.has_output = True

    def last_outputs(self, node: Any) -> tuple[list[Signal], list[Signal]]:
        """Outputs pushed on the most recent pass; empty for drafts and unknown ids."""
        ref = self.ref(node)
        entry = self._entries.get(ref.node_id) if ref.live else None
        if entry is None:
            return [], []
        return list(entry.last_red_out), list(entry.last_green_out)

    def _sync_display(self, node_id: NodeId, mode: FilterMode) -> None:
        if self._on_mode_changed is None:
            return
        try:
            self._on_mode_changed(node_id, mode)
        except Exception:
            logger.exception("registry.display_sync_failed", node_id=node_id, mode=mode.value)


def _present(sink: Sink | None) -> bool:
    return sink is not None and sink.valid
