"""Tests for wirefilter.scheduler - the periodic compute-and-push pass."""

import pytest

from wirefilter.memory import MemorySink
from wirefilter.observers import ViewTracker
from wirefilter.protocols import Channel
from wirefilter.registry import DraftNode
from wirefilter.scheduler import FilterScheduler
from wirefilter.signals import Signal, SignalCategory
from wirefilter.sinks import read_slots

ITEM = SignalCategory.ITEM
FLUID = SignalCategory.FLUID

IRON_43 = Signal(ITEM, "iron", None, 43)
COPPER_20 = Signal(ITEM, "copper", None, 20)
IRON_1 = Signal(ITEM, "iron", None, 1)
WATER_1 = Signal(FLUID, "water", None, 1)


@pytest.fixture
def node(world, orchestrator):
    """A powered live node with the reference reading on its wires."""
    world.add_node(1, red=[IRON_43, COPPER_20], green=[IRON_1, WATER_1])
    orchestrator.materialize(1)
    return 1


class TestCadence:
    """on_tick runs a pass every interval_ticks ticks."""

    def test_default_interval_is_two(self, scheduler):
        assert scheduler.interval_ticks == 2
        assert scheduler.on_tick(1) is None
        assert scheduler.on_tick(2) is not None
        assert scheduler.on_tick(3) is None
        assert scheduler.on_tick(4) is not None
        assert scheduler.stats.tick_count == 4
        assert scheduler.stats.passes == 2

    def test_custom_interval(self, registry, world):
        scheduler = FilterScheduler(
            registry,
            power=world.has_power,
            circuit=world.read_inputs,
            is_valid=world.is_valid,
            interval_ticks=3,
        )
        reports = [scheduler.on_tick(t) for t in range(1, 7)]
        assert [r is not None for r in reports] == [False, False, True, False, False, True]

    def test_interval_must_be_positive(self, registry, world):
        with pytest.raises(ValueError):
            FilterScheduler(
                registry,
                power=world.has_power,
                circuit=world.read_inputs,
                is_valid=world.is_valid,
                interval_ticks=0,
            )


class TestPass:
    """run_pass per-node behavior."""

    def test_difference_pushes_outputs(self, scheduler, registry, node):
        report = scheduler.run_pass()
        red, green = registry.sinks(node)
        assert read_slots(red) == [COPPER_20]
        assert read_slots(green) == [WATER_1]
        assert report.processed == 1
        assert report.slot_writes == 2

    def test_intersection_pushes_outputs(self, scheduler, registry, node):
        registry.set_config(node, mode="inter")
        scheduler.run_pass()
        red, green = registry.sinks(node)
        assert read_slots(red) == [IRON_43]
        assert read_slots(green) == [IRON_1]

    def test_stable_inputs_cost_no_writes(self, scheduler, node):
        scheduler.run_pass()
        assert scheduler.run_pass().slot_writes == 0

    def test_changing_inputs_clear_old_slots(self, scheduler, registry, world, node):
        scheduler.run_pass()
        world.set_inputs(node, red=[], green=[])
        scheduler.run_pass()
        red, green = registry.sinks(node)
        assert read_slots(red) == []
        assert read_slots(green) == []

    def test_no_power_pushes_empty_outputs(self, scheduler, registry, world, node):
        scheduler.run_pass()
        world.nodes[node].powered = False

        report = scheduler.run_pass()

        red, green = registry.sinks(node)
        assert read_slots(red) == []
        assert read_slots(green) == []
        assert report.unpowered == 1
        assert registry.last_outputs(node) == ([], [])

    @pytest.mark.parametrize("mode", ["diff", "inter"])
    def test_no_power_ignores_mode(self, scheduler, registry, world, mode):
        world.add_node(1, powered=False, red=[IRON_43], green=[IRON_1])
        registry.register_live(1, MemorySink(1, Channel.RED), MemorySink(1, Channel.GREEN))
        registry.set_mode(1, mode)
        scheduler.run_pass()
        assert registry.last_outputs(1) == ([], [])

    def test_invalid_node_is_dropped(self, scheduler, registry, world, factory, node):
        red, green = registry.sinks(node)
        world.remove_node(node)

        report = scheduler.run_pass()

        assert node not in registry
        assert not red.valid and not green.valid
        assert report.removed == 1
        assert factory.alive() == []

    def test_invalid_node_does_not_stop_others(self, scheduler, registry, world, orchestrator):
        world.add_node(1, red=[IRON_43])
        world.add_node(2, red=[COPPER_20])
        orchestrator.materialize(1)
        orchestrator.materialize(2)
        world.remove_node(1)

        report = scheduler.run_pass()

        assert report.removed == 1
        assert report.processed == 1
        assert read_slots(registry.sinks(2)[0]) == [COPPER_20]

    def test_records_last_outputs(self, scheduler, registry, node):
        scheduler.run_pass()
        assert registry.last_outputs(node) == ([COPPER_20], [WATER_1])
        assert registry.entry(node).has_output

    def test_quality_sensitivity_follows_config(self, scheduler, registry, world, orchestrator):
        rare = Signal(ITEM, "iron", "rare", 5)
        world.add_node(1, red=[rare], green=[IRON_1])
        orchestrator.materialize(1, template={"mode": "inter", "quality_sensitive": True})

        scheduler.run_pass()
        assert registry.last_outputs(1) == ([], [])

        registry.set_quality_sensitive(1, False)
        scheduler.run_pass()
        assert registry.last_outputs(1) == ([rare], [IRON_1])

    def test_empty_registry(self, scheduler):
        report = scheduler.run_pass()
        assert report.processed == 0
        assert scheduler.stats.passes == 1


class TestPreview:
    """preview computes outputs without touching sinks."""

    def test_preview_matches_pass(self, scheduler, registry, node):
        assert scheduler.preview(node) == ([COPPER_20], [WATER_1])
        red, _ = registry.sinks(node)
        assert read_slots(red) == []

    def test_preview_unpowered(self, scheduler, world, node):
        world.nodes[node].powered = False
        assert scheduler.preview(node) == ([], [])

    def test_preview_draft(self, scheduler):
        assert scheduler.preview(DraftNode()) == ([], [])


class TestHealth:
    def test_health_reports_stats(self, scheduler, node):
        scheduler.on_tick(1)
        scheduler.on_tick(2)
        health = scheduler.health()
        assert health["live_nodes"] == 1
        assert health["tick_count"] == 2
        assert health["passes"] == 1
        assert health["last_pass"] is not None

    def test_health_before_any_pass(self, scheduler):
        assert scheduler.health()["last_pass"] is None



class TestViewsAndPower:
    """Observer release on drop and one power lookup per node."""

    def test_drop_releases_views(self, registry, world, orchestrator):
        released = []
        views = ViewTracker(on_release=lambda obs, node: released.append((obs, node)))
        scheduler = FilterScheduler(
            registry,
            power=world.has_power,
            circuit=world.read_inputs,
            is_valid=world.is_valid,
            views=views,
        )
        world.add_node(1)
        orchestrator.materialize(1)
        views.open("alice", 1)
        world.remove_node(1)

        scheduler.run_pass()

        assert 1 not in registry
        assert views.node_for("alice") is None
        assert released == [("alice", 1)]

    def test_power_checked_once_per_node(self, registry, world, node):
        calls = []

        def power(node_id):
            calls.append(node_id)
            return world.has_power(node_id)

        scheduler = FilterScheduler(registry, power=power, circuit=world.read_inputs, is_valid=world.is_valid)
        scheduler.run_pass()
        assert calls == [node]
