"""Order request and ticket records exchanged with the order-submission port."""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from typing import Any

import pandas as pd

from .types import OrderStatus, OrderType

MARGIN_CALL_ORDER_TAG = "Margin Call"


@dataclass
class OrderProperties:
    """Account-wide order defaults copied onto every generated request.

    Instances are mutable templates; requests always hold their own copy via
    :meth:`clone`.
    """

    time_in_force: str = "gtc"
    exchange: str | None = None
    extra: dict[str, Any] = field(default_factory=dict)

    def clone(self) -> OrderProperties:
        return copy.deepcopy(self)


@dataclass(frozen=True, slots=True)
class LiquidationOrderRequest:
    """Reducing market order generated by a margin call.

    Attributes:
        symbol: Target security.
        quantity: Signed quantity, always opposite in sign to the holding.
        time: UTC creation timestamp, taken from the security's local clock.
            Holdings without a local time fall back to the wall clock, so
            snapshots should carry one for reproducible requests.
        tag: Order tag identifying margin-call orders.
        properties: Owned copy of the default order properties (or None).
        security_type: Asset class label of the target security.
        order_type: Always MARKET for margin calls.
        limit_price: Zero for market execution.
        stop_price: Zero for market execution.
    """

    symbol: str
    quantity: float
    time: pd.Timestamp
    tag: str = MARGIN_CALL_ORDER_TAG
    properties: OrderProperties | None = None
    security_type: str = "equity"
    order_type: OrderType = OrderType.MARKET
    limit_price: float = 0.0
    stop_price: float = 0.0

    @property
    def direction(self) -> int:
        if self.quantity > 0:
            return 1
        if self.quantity < 0:
            return -1
        return 0

    def to_dict(self) -> dict[str, object]:
        """Flatten the request into a tabular row."""
        return {
            "symbol": self.symbol,
            "security_type": self.security_type,
            "order_type": str(self.order_type),
            "quantity": self.quantity,
            "limit_price": self.limit_price,
            "stop_price": self.stop_price,
            "time": self.time,
            "tag": self.tag,
        }


@dataclass(slots=True)
class OrderTicket:
    """Handle returned by the submission port, updated as the order progresses."""

    order_id: int
    request: LiquidationOrderRequest
    status: OrderStatus = OrderStatus.NEW
    filled_quantity: float = 0.0
    average_fill_price: float = 0.0

    @property
    def symbol(self) -> str:
        return self.request.symbol

    @property
    def is_terminal(self) -> bool:
        return self.status.is_terminal

    def to_dict(self) -> dict[str, object]:
        row = self.request.to_dict()
        row.update(
            {
                "order_id": self.order_id,
                "status": str(self.status),
                "filled_quantity": self.filled_quantity,
                "average_fill_price": self.average_fill_price,
            }
        )
        return row
