"""Tracking of open detail views on live nodes.

An observer (typically a player's configuration window) holds a reference
to the node it is showing. When the node goes away every such view has to
be released, otherwise the view keeps pointing at a node that no longer
exists.
"""

from __future__ import annotations

from collections.abc import Callable, Hashable

from wirefilter.protocols import NodeId

ObserverId = Hashable
ReleaseCallback = Callable[[ObserverId, NodeId], None]


class ViewTracker:
    """Which observer is looking at which node (one node per observer)."""

    def __init__(self, on_release: ReleaseCallback | None = None) -> None:
        self._views: dict[ObserverId, NodeId] = {}
        self._on_release = on_release

    def open(self, observer_id: ObserverId, node_id: NodeId) -> None:
        self._views[observer_id] = node_id

    def close(self, observer_id: ObserverId) -> NodeId | None:
        return self._views.pop(observer_id, None)

    def node_for(self, observer_id: ObserverId) -> NodeId | None:
        return self._views.get(observer_id)

    def viewing(self, node_id: NodeId) -> list[ObserverId]:
        return [obs for obs, viewed in self._views.items() if viewed == node_id]

    def release_node(self, node_id: NodeId) -> list[ObserverId]:
        """Close every view on ``node_id``; returns the released observers."""
        released = self.viewing(node_id)
        for observer_id in released:
            del self._views[observer_id]
            if self._on_release is not None:
                self._on_release(observer_id, node_id)
        return released

    def __len__(self) -> int:
        return len(self._views)
