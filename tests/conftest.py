"""
Shared pytest fixtures for wirefilter tests.

This module provides:
- Settings and structlog isolation per test
- In-memory collaborators (world, sink factory)
- A registry/orchestrator/scheduler trio wired to them

Usage:
    def test_something(orchestrator, world):
        world.add_node(1, red=[...])
        orchestrator.materialize(1)
"""

import sys
from pathlib import Path

import pytest
import structlog

# Ensure wirefilter package is importable
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from wirefilter.core.settings import clear_settings_cache
from wirefilter.lifecycle import LifecycleOrchestrator
from wirefilter.memory import MemorySinkFactory, MemoryWorld
from wirefilter.registry import NodeRegistry
from wirefilter.scheduler import FilterScheduler


# =============================================================================
# Test Markers Configuration
# =============================================================================


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    """Mark all tests without explicit markers as unit tests."""
    for item in items:
        markers = {mark.name for mark in item.iter_markers()}
        if not markers.intersection({"unit", "integration", "slow"}):
            item.add_marker(pytest.mark.unit)


# =============================================================================
# Settings and logging isolation
# =============================================================================


@pytest.fixture(autouse=True)
def clean_settings(monkeypatch):
    """Keep WIREFILTER_* env, the settings cache and structlog config out of each test."""
    monkeypatch.setenv("WIREFILTER_LOG_LEVEL", "WARNING")
    clear_settings_cache()
    yield
    clear_settings_cache()
    # CLI runs bind structlog to a runner-owned stream
    structlog.reset_defaults()


# =============================================================================
# Collaborators
# =============================================================================


@pytest.fixture
def world() -> MemoryWorld:
    return MemoryWorld()


@pytest.fixture
def factory() -> MemorySinkFactory:
    return MemorySinkFactory()


@pytest.fixture
def registry(world) -> NodeRegistry:
    return NodeRegistry(on_mode_changed=world.sync_display)


@pytest.fixture
def orchestrator(registry, factory, world) -> LifecycleOrchestrator:
    return LifecycleOrchestrator(registry, factory, is_valid=world.is_valid)


@pytest.fixture
def scheduler(registry, world) -> FilterScheduler:
    return FilterScheduler(
        registry,
        power=world.has_power,
        circuit=world.read_inputs,
        is_valid=world.is_valid,
    )
