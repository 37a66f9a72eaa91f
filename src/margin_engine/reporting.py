"""Tabular views of margin-call orders, tickets and account holdings."""

from __future__ import annotations

from collections.abc import Sequence

import pandas as pd

from .contracts import AccountSnapshot
from .orders import LiquidationOrderRequest, OrderTicket

ORDER_COLUMNS = [
    "symbol",
    "security_type",
    "order_type",
    "quantity",
    "limit_price",
    "stop_price",
    "time",
    "tag",
]
TICKET_COLUMNS = [
    "order_id",
    *ORDER_COLUMNS,
    "status",
    "filled_quantity",
    "average_fill_price",
]
HOLDING_COLUMNS = [
    "symbol",
    "quantity",
    "price",
    "holdings_value",
    "unrealized_profit",
]


def orders_to_frame(orders: Sequence[LiquidationOrderRequest]) -> pd.DataFrame:
    """Convert margin-call requests into a DataFrame (one row per order)."""
    return pd.DataFrame([order.to_dict() for order in orders], columns=ORDER_COLUMNS)


def tickets_to_frame(tickets: Sequence[OrderTicket]) -> pd.DataFrame:
    """Convert submitted tickets into a DataFrame indexed by order id."""
    frame = pd.DataFrame(
        [ticket.to_dict() for ticket in tickets], columns=TICKET_COLUMNS
    )
    return frame.set_index("order_id")


def holdings_to_frame(account: AccountSnapshot) -> pd.DataFrame:
    """Invested holdings sorted losers first, as the executor would order them."""
    rows = [
        {
            "symbol": h.symbol,
            "quantity": h.quantity,
            "price": h.price,
            "holdings_value": h.holdings_value,
            "unrealized_profit": h.unrealized_profit,
        }
        for h in account.holdings()
        if h.invested
    ]
    frame = pd.DataFrame(rows, columns=HOLDING_COLUMNS)
    return frame.sort_values("unrealized_profit", kind="stable").reset_index(drop=True)
