"""
Filter policies over red/green signal lists.

Pure functions: no knowledge of nodes, sinks or time. Outputs are
sub-sequences of the inputs, so order and magnitudes are carried over
untouched.

    difference(red, green)    red signals whose key is not on green
    difference(green, red)    green signals whose key is not on red
    intersection(red, green)  (red signals keyed on green, green signals keyed on red)

Examples:
    >>> red = [Signal(SignalCategory.ITEM, "iron", count=43), Signal(SignalCategory.ITEM, "copper", count=20)]
    >>> green = [Signal(SignalCategory.ITEM, "iron", count=1), Signal(SignalCategory.FLUID, "water", count=1)]
    >>> [s.name for s in difference(red, green)]
    ['copper']
    >>> red_out, green_out = intersection(red, green)
    >>> [(s.name, s.count) for s in red_out], [(s.name, s.count) for s in green_out]
    ([('iron', 43)], [('iron', 1)])
"""

from __future__ import annotations

from collections.abc import Sequence

from wirefilter.config import FilterConfig, FilterMode
from wirefilter.signals import Signal, SignalKey, key_set, signal_key


def difference(
    source: Sequence[Signal],
    other: Sequence[Signal],
    quality_sensitive: bool = True,
) -> list[Signal]:
    """Signals of ``source`` whose key does not occur in ``other``."""
    if not source:
        return []
    if not other:
        return list(source)

    other_keys = key_set(other, quality_sensitive)
    return [s for s in source if signal_key(s, quality_sensitive) not in other_keys]


def _matched(
    side: Sequence[Signal],
    other_keys: set[SignalKey],
    quality_sensitive: bool,
) -> list[Signal]:
    # first occurrence per key wins
    seen: set[SignalKey] = set()
    out: list[Signal] = []
    for s in side:
        key = signal_key(s, quality_sensitive)
        if key in other_keys and key not in seen:
            seen.add(key)
            out.append(s)
    return out


def intersection(
    red_in: Sequence[Signal],
    green_in: Sequence[Signal],
    quality_sensitive: bool = True,
) -> tuple[list[Signal], list[Signal]]:
    """Signals present on both wires, each side keeping its own counts.

    Each side is turned into a key-set once, so the cost is linear in the
    two list lengths. Outputs are deduplicated by the active key.
    """
    if not red_in or not green_in:
        return [], []

    red_keys = key_set(red_in, quality_sensitive)
    green_keys = key_set(green_in, quality_sensitive)
    return (
        _matched(red_in, green_keys, quality_sensitive),
        _matched(green_in, red_keys, quality_sensitive),
    )


def apply_filter(
    red_in: Sequence[Signal],
    green_in: Sequence[Signal],
    config: FilterConfig,
) -> tuple[list[Signal], list[Signal]]:
    """Compute ``(red_out, green_out)`` for a node configured with ``config``."""
    sensitive = config.quality_sensitive
    if config.mode is FilterMode.INTERSECTION:
        return intersection(red_in, green_in, sensitive)
    return (
        difference(red_in, green_in, sensitive),
        difference(green_in, red_in, sensitive),
    )
