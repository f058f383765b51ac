"""
Signals and signal identity keys.

A signal is a typed quantity read off one wire: an identity
``(category, name, quality)`` plus an integer ``count``. Two signals are "the
same" for filtering purposes when their keys are equal, and the key either
includes quality or ignores it depending on the node's ``quality_sensitive``
setting.

Examples:
    >>> iron = Signal(SignalCategory.ITEM, "iron-plate", count=43)
    >>> signal_key(iron, quality_sensitive=True)
    ('item', 'iron-plate', 'normal')
    >>> signal_key(iron, quality_sensitive=False)
    ('item', 'iron-plate')
    >>> Signal.from_dict({"signal": {"name": "water", "type": "fluid"}, "count": 5})
    Signal(category=<SignalCategory.FLUID: 'fluid'>, name='water', quality=None, count=5)
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any

# Quality every unqualified signal carries once written out
DEFAULT_QUALITY = "normal"

SignalKey = tuple[str, ...]


class SignalCategory(str, Enum):
    """Signal type namespace."""

    ITEM = "item"
    FLUID = "fluid"
    VIRTUAL = "virtual"
    ENTITY = "entity"
    RECIPE = "recipe"
    SPACE_LOCATION = "space-location"
    ASTEROID_CHUNK = "asteroid-chunk"
    QUALITY = "quality"


@dataclass(frozen=True)
class Signal:
    """One typed quantity on a wire."""

    category: SignalCategory
    name: str
    quality: str | None = None
    count: int = 0

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Signal:
        """Build a signal from the flat or the nested ``{"signal": ..., "count": ...}`` form.

        A missing ``type`` means ``item``.
        """
        ident = data.get("signal", data)
        return cls(
            category=SignalCategory(ident.get("type") or SignalCategory.ITEM.value),
            name=ident["name"],
            quality=ident.get("quality"),
            count=int(data.get("count", 0)),
        )

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {"type": self.category.value, "name": self.name}
        if self.quality is not None:
            result["quality"] = self.quality
        result["count"] = self.count
        return result

    def __str__(self) -> str:
        quality = f"@{self.quality}" if self.quality else ""
        return f"{self.category.value}:{self.name}{quality}={self.count}"


def signal_key(signal: Signal, quality_sensitive: bool = True) -> SignalKey:
    """Identity key of ``signal`` under the chosen sensitivity."""
    if quality_sensitive:
        return (signal.category.value, signal.name, signal.quality or DEFAULT_QUALITY)
    return (signal.category.value, signal.name)


def key_set(signals: Iterable[Signal], quality_sensitive: bool = True) -> set[SignalKey]:
    return {signal_key(s, quality_sensitive) for s in signals}


def parse_signals(items: Iterable[Mapping[str, Any]] | None) -> list[Signal]:
    """Parse a list of signal dicts, keeping their order."""
    if not items:
        return []
    return [Signal.from_dict(item) for item in items]
