"""
Node lifecycle orchestration.

Reacts to the events that move a node between its phases and keeps the
registry and the node's two output sinks in lock-step:

::

    Draft ──materialize──► Live ──destroy──► Gone
      │  ▲                  │  ▲
      └──┘ apply/paste      └──┘ clone/paste/apply

- materialize: create red and green sinks, register, restore the template
  payload if one came along. Any sink failure aborts the whole thing and
  destroys whatever was created.
- destroy: release open detail views, unregister, destroy both sinks.
- clone/paste/apply: serialize the source, restore onto the destination,
  whatever phase either is in.
- capture: read-only serialization of nodes into template slots.
- reconcile_state: post-migration sweep of stale entries plus a display
  re-sync of the survivors.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from wirefilter import sinks
from wirefilter.config import CONFIG_TAG, FilterConfig
from wirefilter.core.errors import SinkCreationError
from wirefilter.core.logging import get_logger
from wirefilter.observers import ViewTracker
from wirefilter.protocols import Channel, NodeId, Sink, SinkFactory, TemplateWriter, ValidityPredicate
from wirefilter.registry import DraftNode, NodeRegistry

logger = get_logger(__name__)


class LifecycleOrchestrator:
    """Applies lifecycle events to a registry and its sinks."""

    def __init__(
        self,
        registry: NodeRegistry,
        sink_factory: SinkFactory,
        *,
        is_valid: ValidityPredicate | None = None,
        views: ViewTracker | None = None,
    ) -> None:
        self.registry = registry
        self.sink_factory = sink_factory
        self.views = views if views is not None else ViewTracker()
        self._is_valid = is_valid

    # ── Draft ────────────────────────────────────────────────────

    def place_draft(self, draft: DraftNode, template: Any = None) -> FilterConfig:
        """A placeholder was placed, possibly from a template slot."""
        if template is not None:
            self.registry.restore(draft, template)
        return self.registry.get_config(draft)

    # ── Draft → Live ─────────────────────────────────────────────

    def materialize(self, node_id: NodeId, template: Any = None) -> FilterConfig | None:
        """Bring a node live with its two sinks.

        Returns the node's config, or ``None`` when nothing was registered.
        """
        if node_id in self.registry:
            logger.warning("node.already_live", node_id=node_id)
            return None

        sink_red = self._create_sink(node_id, Channel.RED)
        sink_green = self._create_sink(node_id, Channel.GREEN) if sink_red is not None else None
        if sink_red is None or sink_green is None:
            sinks.destroy(sink_red)
            sinks.destroy(sink_green)
            logger.warning("node.materialize_failed", node_id=node_id)
            return None

        config = self.registry.register_live(node_id, sink_red, sink_green)
        if config is None:
            sinks.destroy(sink_red)
            sinks.destroy(sink_green)
            logger.warning("node.register_failed", node_id=node_id)
            return None

        if template is not None:
            config = self.registry.restore(node_id, template) or config
        else:
            self.registry.resync_display(node_id)

        logger.info(
            "node.materialized",
            node_id=node_id,
            mode=config.mode.value,
            quality_sensitive=config.quality_sensitive,
        )
        return config

    def revive(self, draft: DraftNode, node_id: NodeId) -> FilterConfig | None:
        """Materialize a placeholder, carrying its inline config over."""
        return self.materialize(node_id, template=draft.tags.get(CONFIG_TAG))

    def _create_sink(self, node_id: NodeId, channel: Channel) -> Sink | None:
        try:
            sink = self.sink_factory.create_sink(node_id, channel)
        except SinkCreationError as exc:
            exc.with_context(node_id=node_id, channel=channel.value)
            logger.warning("sink.create_failed", **exc.to_dict())
            return None
        if sink is None or not sink.valid:
            logger.warning("sink.create_failed", node_id=node_id, channel=channel.value)
            return None
        return sink

    # ── Live → Gone ──────────────────────────────────────────────

    def destroy(self, node: Any) -> bool:
        """Tear a node down. Returns False when there was nothing live to remove."""
        ref = self.registry.ref(node)
        if not ref.live:
            return False

        self.views.release_node(ref.node_id)
        sink_red, sink_green = self.registry.unregister_live(ref.node_id)
        sinks.destroy(sink_red)
        sinks.destroy(sink_green)
        if sink_red is None and sink_green is None:
            return False
        logger.info("node.destroyed", node_id=ref.node_id)
        return True

    # ── Copy flows ───────────────────────────────────────────────

    def paste_settings(self, source: Any, destination: Any) -> FilterConfig | None:
        return self.registry.restore(destination, self.registry.serialize(source))

    def apply_template(self, node: Any, payload: Any) -> FilterConfig | None:
        return self.registry.restore(node, payload)

    def clone(self, source: Any, destination: Any) -> FilterConfig | None:
        """Copy ``source`` onto ``destination``, materializing it first if needed."""
        payload = self.registry.serialize(source)
        dest = self.registry.ref(destination)
        if dest.live and dest.node_id not in self.registry:
            return self.materialize(dest.node_id, template=payload)
        return self.registry.restore(dest, payload)

    def capture(
        self,
        mapping: Mapping[Any, Any],
        template: TemplateWriter | None = None,
    ) -> dict[Any, dict[str, Any]]:
        """Serialize nodes into template slots.

        ``mapping`` goes from template slot to node. Every node is captured
        with its default-filled config, so an unregistered live id yields the
        defaults. Nothing is modified.
        """
        captured: dict[Any, dict[str, Any]] = {}
        for slot, node in mapping.items():
            payload = self.registry.serialize_payload(node)
            captured[slot] = payload
            if template is not None:
                template.set_tag(slot, CONFIG_TAG, payload)
        return captured

    # ── Migration ────────────────────────────────────────────────

    def reconcile_state(self, is_valid: ValidityPredicate | None = None) -> list[NodeId]:
        """Drop entries for nodes that no longer exist and re-sync the rest.

        Returns the removed node ids.
        """
        predicate = is_valid or self._is_valid
        removed = self.registry.sweep_invalid(predicate) if predicate is not None else []
        for node_id, sink_red, sink_green in removed:
            self.views.release_node(node_id)
            sinks.destroy(sink_red)
            sinks.destroy(sink_green)

        for node_id in self.registry.live_ids():
            self.registry.resync_display(node_id)
        return [node_id for node_id, _, _ in removed]
