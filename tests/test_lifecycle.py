"""Tests for wirefilter.lifecycle - materialize, destroy and the copy flows."""

import pytest

from wirefilter.config import CONFIG_TAG, DEFAULT_CONFIG, FilterConfig, FilterMode
from wirefilter.lifecycle import LifecycleOrchestrator
from wirefilter.memory import MemorySinkFactory, MemoryTemplate
from wirefilter.observers import ViewTracker
from wirefilter.protocols import Channel
from wirefilter.registry import DraftNode, NodeRegistry

INTER_AGNOSTIC = FilterConfig(FilterMode.INTERSECTION, False)


class _NoneFactory:
    """Factory that reports failure by returning None."""

    def __init__(self):
        self.calls = []

    def create_sink(self, node_id, channel):
        self.calls.append(channel)
        return None


class TestMaterialize:
    """Draft -> Live."""

    def test_creates_two_sinks_and_registers(self, orchestrator, registry, factory, world):
        world.add_node(1)
        assert orchestrator.materialize(1) == DEFAULT_CONFIG
        red, green = registry.sinks(1)
        assert red.channel is Channel.RED
        assert green.channel is Channel.GREEN
        assert len(factory.alive()) == 2

    def test_syncs_display_without_template(self, orchestrator, world):
        orchestrator.materialize(1)
        assert world.displayed[1] is FilterMode.DIFFERENCE

    def test_template_is_restored(self, orchestrator, registry, world):
        config = orchestrator.materialize(1, template=INTER_AGNOSTIC.to_payload())
        assert config == INTER_AGNOSTIC
        assert registry.get_config(1) == INTER_AGNOSTIC
        assert world.displayed[1] is FilterMode.INTERSECTION

    def test_partial_template_fills_defaults(self, orchestrator, registry):
        orchestrator.materialize(1, template={"match_quality": False})
        assert registry.get_config(1) == FilterConfig(FilterMode.DIFFERENCE, False)

    def test_already_live_is_rejected(self, orchestrator, factory):
        orchestrator.materialize(1)
        assert orchestrator.materialize(1) is None
        assert len(factory.created) == 2

    def test_second_sink_failure_rolls_back(self, registry):
        """Green creation fails: nothing registered, red sink destroyed."""
        factory = MemorySinkFactory(fail_on={Channel.GREEN})
        orchestrator = LifecycleOrchestrator(registry, factory)

        assert orchestrator.materialize(1) is None
        assert 1 not in registry
        assert len(factory.created) == 1
        assert factory.created[0].channel is Channel.RED
        assert factory.alive() == []

    def test_first_sink_failure_skips_second(self, registry):
        factory = _NoneFactory()
        orchestrator = LifecycleOrchestrator(registry, factory)

        assert orchestrator.materialize(1) is None
        assert factory.calls == [Channel.RED]
        assert len(registry) == 0

    def test_revive_carries_draft_config(self, orchestrator, registry):
        draft = DraftNode()
        registry.set_config(draft, mode="inter")
        assert orchestrator.revive(draft, 9).mode is FilterMode.INTERSECTION
        assert registry.get_config(9).mode is FilterMode.INTERSECTION

    def test_revive_blank_draft(self, orchestrator, registry):
        assert orchestrator.revive(DraftNode(), 9) == DEFAULT_CONFIG


class TestPlaceDraft:
    def test_place_from_template(self, orchestrator):
        draft = DraftNode()
        assert orchestrator.place_draft(draft, {"mode": "inter"}).mode is FilterMode.INTERSECTION
        assert draft.tags[CONFIG_TAG]["mode"] == "inter"

    def test_place_without_template(self, orchestrator):
        draft = DraftNode()
        assert orchestrator.place_draft(draft) == DEFAULT_CONFIG
        assert CONFIG_TAG not in draft.tags


class TestDestroy:
    """Live -> Gone."""

    def test_destroy_removes_entry_and_sinks(self, orchestrator, registry, factory):
        orchestrator.materialize(1)
        assert orchestrator.destroy(1) is True
        assert 1 not in registry
        assert factory.alive() == []

    def test_destroy_twice(self, orchestrator):
        orchestrator.materialize(1)
        orchestrator.destroy(1)
        assert orchestrator.destroy(1) is False

    def test_destroy_draft_is_noop(self, orchestrator):
        assert orchestrator.destroy(DraftNode()) is False

    def test_empty_view_tracker_is_kept(self, registry, factory):
        views = ViewTracker()
        orchestrator = LifecycleOrchestrator(registry, factory, views=views)
        assert orchestrator.views is views

    def test_destroy_releases_views(self, registry, factory):
        released = []
        views = ViewTracker(on_release=lambda obs, node: released.append((obs, node)))
        orchestrator = LifecycleOrchestrator(registry, factory, views=views)
        orchestrator.materialize(1)
        orchestrator.materialize(2)
        views.open("alice", 1)
        views.open("bob", 2)

        orchestrator.destroy(1)

        assert released == [("alice", 1)]
        assert views.node_for("bob") == 2

    def test_config_reads_default_after_destroy(self, orchestrator, registry):
        orchestrator.materialize(1, template={"mode": "inter"})
        orchestrator.destroy(1)
        assert registry.get_config(1) == DEFAULT_CONFIG


class TestCopyFlows:
    """paste_settings, apply_template, clone and capture."""

    def test_paste_live_to_live(self, orchestrator, registry):
        orchestrator.materialize(1, template=INTER_AGNOSTIC.to_payload())
        orchestrator.materialize(2)
        assert orchestrator.paste_settings(1, 2) == INTER_AGNOSTIC
        assert registry.get_config(2) == INTER_AGNOSTIC

    def test_paste_draft_to_live(self, orchestrator, registry, world):
        draft = DraftNode()
        registry.restore(draft, INTER_AGNOSTIC)
        orchestrator.materialize(2)
        orchestrator.paste_settings(draft, 2)
        assert registry.get_config(2) == INTER_AGNOSTIC
        assert world.displayed[2] is FilterMode.INTERSECTION

    def test_paste_live_to_draft(self, orchestrator, registry):
        orchestrator.materialize(1, template=INTER_AGNOSTIC.to_payload())
        draft = DraftNode()
        orchestrator.paste_settings(1, draft)
        assert registry.get_config(draft) == INTER_AGNOSTIC

    def test_paste_onto_missing_live_is_noop(self, orchestrator, registry):
        assert orchestrator.paste_settings(DraftNode(), 5) is None
        assert 5 not in registry

    def test_apply_template(self, orchestrator, registry):
        orchestrator.materialize(1)
        orchestrator.apply_template(1, {"mode": "inter", "unknown": True})
        assert registry.get_config(1).mode is FilterMode.INTERSECTION

    def test_clone_materializes_missing_destination(self, orchestrator, registry):
        orchestrator.materialize(1, template=INTER_AGNOSTIC.to_payload())
        assert orchestrator.clone(1, 2) == INTER_AGNOSTIC
        assert 2 in registry

    def test_clone_onto_existing_destination(self, orchestrator, registry, factory):
        orchestrator.materialize(1, template=INTER_AGNOSTIC.to_payload())
        orchestrator.materialize(2)
        orchestrator.clone(1, 2)
        assert registry.get_config(2) == INTER_AGNOSTIC
        assert len(factory.created) == 4

    def test_clone_onto_draft(self, orchestrator):
        orchestrator.materialize(1, template=INTER_AGNOSTIC.to_payload())
        draft = DraftNode()
        assert orchestrator.clone(1, draft) == INTER_AGNOSTIC

    def test_capture_writes_template_tags(self, orchestrator, registry):
        orchestrator.materialize(1, template=INTER_AGNOSTIC.to_payload())
        draft = DraftNode()
        template = MemoryTemplate()

        captured = orchestrator.capture({"slot-a": 1, "slot-b": draft}, template)

        assert captured == {
            "slot-a": {"mode": "inter", "quality_sensitive": False},
            "slot-b": {"mode": "diff", "quality_sensitive": True},
        }
        assert template.get_tag("slot-a", CONFIG_TAG) == captured["slot-a"]

    def test_capture_unregistered_id_yields_defaults(self, orchestrator):
        template = MemoryTemplate()
        captured = orchestrator.capture({"slot": 404}, template)
        assert captured == {"slot": DEFAULT_CONFIG.to_payload()}
        assert template.get_tag("slot", CONFIG_TAG) == DEFAULT_CONFIG.to_payload()

    def test_capture_does_not_modify(self, orchestrator, registry):
        orchestrator.materialize(1)
        draft = DraftNode(tags={"x": 1})
        orchestrator.capture({1: 1, 2: draft})
        assert draft.tags == {"x": 1}
        assert registry.get_config(1) == DEFAULT_CONFIG


class TestReconcileState:
    """Post-migration sweep."""

    def test_removes_stale_and_destroys_sinks(self, orchestrator, registry, world, factory):
        world.add_node(1)
        world.add_node(2)
        orchestrator.materialize(1)
        orchestrator.materialize(2)
        stale_red, stale_green = registry.sinks(2)
        world.remove_node(2)

        assert orchestrator.reconcile_state() == [2]
        assert 2 not in registry
        assert not stale_red.valid and not stale_green.valid
        assert len(factory.alive()) == 2

    def test_resyncs_survivors(self, orchestrator, registry, world):
        world.add_node(1)
        orchestrator.materialize(1, template={"mode": "inter"})
        world.displayed.clear()

        orchestrator.reconcile_state()

        assert world.displayed == {1: FilterMode.INTERSECTION}

    def test_explicit_predicate_overrides(self, registry, factory):
        orchestrator = LifecycleOrchestrator(registry, factory)
        orchestrator.materialize(1)
        assert orchestrator.reconcile_state() == []
        assert orchestrator.reconcile_state(lambda node_id: False) == [1]

    def test_releases_views_of_removed(self, registry, factory, world):
        views = ViewTracker()
        orchestrator = LifecycleOrchestrator(registry, factory, is_valid=world.is_valid, views=views)
        orchestrator.materialize(1)
        views.open("alice", 1)
        orchestrator.reconcile_state()
        assert views.node_for("alice") is None


class TestSharedRegistry:
    def test_two_orchestrators_share_one_registry(self, factory):
        registry = NodeRegistry()
        first = LifecycleOrchestrator(registry, factory)
        second = LifecycleOrchestrator(registry, factory)
        first.materialize(1)
        assert second.destroy(1) is True
