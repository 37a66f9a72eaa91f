"""Margin-call policy configuration."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, fields
from typing import Any

from .orders import MARGIN_CALL_ORDER_TAG


@dataclass(frozen=True)
class MarginCallConfig:
    """Rules governing margin-call detection, sizing and execution.

    Attributes:
        margin_buffer: Fraction of portfolio value that margin used must exceed
            before a security is liquidated. `0.10` means orders are only sized
            once margin used is above 110% of portfolio value.
        warning_threshold: Fraction of portfolio value under which remaining
            margin raises a margin-call warning.
        minimum_leverage: Average holdings leverage at or below which no margin
            call can be issued.
        clamp_to_position: If True, a reducing order never exceeds the current
            holding (it can close the position but not flip it).
        wait_timeout_seconds: Bound on the wait for each liquidation order to
            reach a terminal state. `None` waits indefinitely.
        order_tag: Tag attached to every generated order.
    """

    margin_buffer: float = 0.10
    warning_threshold: float = 0.05
    minimum_leverage: float = 1.0
    clamp_to_position: bool = True
    wait_timeout_seconds: float | None = None
    order_tag: str = MARGIN_CALL_ORDER_TAG

    def __post_init__(self) -> None:
        if self.margin_buffer < 0:
            raise ValueError("margin_buffer must be >= 0")
        if not 0 <= self.warning_threshold <= 1:
            raise ValueError("warning_threshold must be in [0, 1]")
        if self.minimum_leverage < 0:
            raise ValueError("minimum_leverage must be >= 0")
        if self.wait_timeout_seconds is not None and self.wait_timeout_seconds <= 0:
            raise ValueError("wait_timeout_seconds must be > 0 or None")
        if not self.order_tag:
            raise ValueError("order_tag must not be empty")

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any] | None) -> MarginCallConfig:
        """Build a config from a plain mapping, ignoring `None` values."""
        if not data:
            return cls()
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ValueError(f"Unknown margin_call config keys: {unknown}")
        return cls(**{k: v for k, v in data.items() if v is not None})

    def to_dict(self) -> dict[str, Any]:
        return {f.name: getattr(self, f.name) for f in fields(self)}
