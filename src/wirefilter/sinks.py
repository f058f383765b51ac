"""
Incremental writes into output sinks.

A sink exposes 1-based slots, one signal each. ``reconcile`` makes the
occupied slots equal a desired list while touching as few slots as
possible: slot ``i`` receives ``desired[i-1]`` only when it does not already
hold that exact signal, and slots past the end of the list are cleared only
when occupied. A stable output therefore lands in the same slots every pass
and costs no writes at all.

Every function here is a no-op on ``None`` or an invalid sink.
"""

from __future__ import annotations

from collections.abc import Sequence

from wirefilter.protocols import Sink
from wirefilter.signals import Signal


def _usable(sink: Sink | None) -> bool:
    return sink is not None and sink.valid


def reconcile(sink: Sink | None, desired: Sequence[Signal]) -> int:
    """Make ``sink`` hold exactly ``desired``; returns slot writes performed."""
    if not _usable(sink):
        return 0

    previous = sink.slot_count
    writes = 0
    for index, signal in enumerate(desired, start=1):
        if sink.get_slot(index) != signal:
            sink.set_slot(index, signal)
            writes += 1

    for index in range(len(desired) + 1, previous + 1):
        if sink.get_slot(index) is not None:
            sink.clear_slot(index)
            writes += 1
    return writes


def clear(sink: Sink | None) -> int:
    """Empty every occupied slot."""
    return reconcile(sink, ())


def destroy(sink: Sink | None) -> None:
    if _usable(sink):
        sink.destroy()


def read_slots(sink: Sink | None) -> list[Signal]:
    """Occupied slots in slot order."""
    if not _usable(sink):
        return []
    slots = (sink.get_slot(i) for i in range(1, sink.slot_count + 1))
    return [s for s in slots if s is not None]
