"""
Per-node filter configuration and its portable template payload.

``FilterConfig`` is the value every node carries: which policy to run and
whether quality takes part in signal identity. It is frozen, so handing one
out never exposes live registry state.

The template payload is the dict form that crosses the serialization
boundary (blueprint tags, clone/paste, placeholder tags)::

    {"mode": "diff" | "inter", "quality_sensitive": bool}

Reading a payload is default-filling and never fails: unknown keys are
ignored, missing or malformed values fall back to the defaults, and the
older ``match_quality`` key is read as ``quality_sensitive``.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, replace
from enum import Enum
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from wirefilter.core.errors import InvalidConfigError

# Key under which a placeholder or template slot carries its payload
CONFIG_TAG = "filter_config"


class FilterMode(str, Enum):
    """Filter policy."""

    DIFFERENCE = "diff"
    INTERSECTION = "inter"


DEFAULT_MODE = FilterMode.DIFFERENCE
DEFAULT_QUALITY_SENSITIVE = True


def parse_flag(value: Any) -> bool:
    """Only a real bool counts; anything else means the default."""
    return value if isinstance(value, bool) else DEFAULT_QUALITY_SENSITIVE


def parse_mode(value: Any, *, strict: bool = False) -> FilterMode:
    """Coerce ``value`` to a FilterMode.

    Accepts enum members, their values (``"diff"``/``"inter"``) and names
    (``"difference"``/``"intersection"``, any case). Anything else returns
    the default mode, or raises InvalidConfigError when ``strict``.
    """
    if isinstance(value, FilterMode):
        return value
    if isinstance(value, str):
        text = value.strip().lower()
        for mode in FilterMode:
            if text in (mode.value, mode.name.lower()):
                return mode
    if strict:
        raise InvalidConfigError("mode", value)
    return DEFAULT_MODE


@dataclass(frozen=True)
class FilterConfig:
    """Filter settings of one node."""

    mode: FilterMode = DEFAULT_MODE
    quality_sensitive: bool = DEFAULT_QUALITY_SENSITIVE

    def merge(self, **partial: Any) -> FilterConfig:
        """Copy with the given fields replaced; ``None`` values are ignored."""
        changes: dict[str, Any] = {}
        if partial.get("mode") is not None:
            changes["mode"] = parse_mode(partial["mode"])
        if partial.get("quality_sensitive") is not None:
            changes["quality_sensitive"] = parse_flag(partial["quality_sensitive"])
        return replace(self, **changes) if changes else self

    def to_payload(self) -> dict[str, Any]:
        return {"mode": self.mode.value, "quality_sensitive": self.quality_sensitive}

    @classmethod
    def from_payload(cls, payload: Any) -> FilterConfig:
        """Default-filling read of a template payload (or an existing config)."""
        if isinstance(payload, FilterConfig):
            return payload
        if not isinstance(payload, Mapping):
            return cls()
        parsed = TemplatePayload.model_validate(dict(payload))
        return cls(mode=parsed.mode, quality_sensitive=parsed.quality_sensitive)


DEFAULT_CONFIG = FilterConfig()


class TemplatePayload(BaseModel):
    """Validated shape of the portable payload."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    mode: FilterMode = DEFAULT_MODE
    quality_sensitive: bool = Field(
        default=DEFAULT_QUALITY_SENSITIVE,
        validation_alias=AliasChoices("quality_sensitive", "match_quality"),
    )

    @field_validator("mode", mode="before")
    @classmethod
    def _lenient_mode(cls, value: Any) -> FilterMode:
        return parse_mode(value)

    @field_validator("quality_sensitive", mode="before")
    @classmethod
    def _lenient_flag(cls, value: Any) -> bool:
        return parse_flag(value)
