"""Shared account/holding dataclasses and enums used by the margin-call engine."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING

import numpy as np
import pandas as pd

if TYPE_CHECKING:
    from .contracts import AccountSnapshot, BuyingPowerModel


class OrderType(StrEnum):
    """Order types emitted by the engine."""

    MARKET = "market"


class OrderStatus(StrEnum):
    """Order lifecycle states reported by an order-submission port."""

    NEW = "new"
    SUBMITTED = "submitted"
    PARTIALLY_FILLED = "partially_filled"
    FILLED = "filled"
    CANCELED = "canceled"
    INVALID = "invalid"

    @property
    def is_terminal(self) -> bool:
        return self in _TERMINAL_STATUSES


_TERMINAL_STATUSES = frozenset(
    {OrderStatus.FILLED, OrderStatus.CANCELED, OrderStatus.INVALID}
)


@dataclass(frozen=True, slots=True)
class SecurityHolding:
    """Point-in-time view of one security and the account's holding in it.

    All money-valued properties are expressed in account currency, i.e. after
    applying `conversion_rate` (quote currency -> account currency) and the
    contract multiplier.

    Attributes:
        symbol: Security identifier.
        quantity: Signed held quantity; positive is long, negative is short.
        price: Last traded price in quote currency.
        average_price: Average entry price in quote currency.
        conversion_rate: Quote-to-account currency rate. `0` means the quote
            currency cannot be converted yet.
        lot_size: Minimum tradable increment.
        contract_multiplier: Notional multiplier per unit of quantity.
        time_zone: IANA time zone of the security's exchange.
        local_time: Current exchange-local time (naive or tz-aware).
        security_type: Asset class label carried onto generated orders.
        buying_power_model: Margin capability of the security, if any.
    """

    symbol: str
    quantity: float
    price: float
    average_price: float = 0.0
    conversion_rate: float = 1.0
    lot_size: float = 1.0
    contract_multiplier: float = 1.0
    time_zone: str = "UTC"
    local_time: pd.Timestamp | None = None
    security_type: str = "equity"
    buying_power_model: BuyingPowerModel | None = None

    def __post_init__(self) -> None:
        if self.lot_size <= 0:
            raise ValueError("lot_size must be > 0")
        if self.contract_multiplier <= 0:
            raise ValueError("contract_multiplier must be > 0")
        if self.conversion_rate < 0:
            raise ValueError("conversion_rate must be >= 0")

    @property
    def is_long(self) -> bool:
        return self.quantity > 0

    @property
    def is_short(self) -> bool:
        return self.quantity < 0

    @property
    def invested(self) -> bool:
        return self.quantity != 0

    @property
    def has_price(self) -> bool:
        return bool(np.isfinite(self.price)) and self.price != 0

    @property
    def unit_value(self) -> float:
        """Account-currency value of one unit of quantity at the last price."""
        return self.price * self.conversion_rate * self.contract_multiplier

    @property
    def holdings_value(self) -> float:
        """Signed mark-to-market value of the holding."""
        return self.quantity * self.unit_value

    @property
    def absolute_holdings_cost(self) -> float:
        """Unsigned cost basis of the holding."""
        return abs(
            self.quantity
            * self.average_price
            * self.conversion_rate
            * self.contract_multiplier
        )

    @property
    def unrealized_profit(self) -> float:
        return (
            (self.price - self.average_price)
            * self.quantity
            * self.conversion_rate
            * self.contract_multiplier
        )

    def utc_time(self) -> pd.Timestamp:
        """Return the security's local time converted to UTC via its time zone.

        Falls back to the current wall-clock time when no local time is set;
        snapshots loaded by `margin_engine.io` always carry one.
        """
        if self.local_time is None:
            return pd.Timestamp.now(tz="UTC")
        local = pd.Timestamp(self.local_time)
        if local.tzinfo is None:
            local = local.tz_localize(self.time_zone)
        return local.tz_convert("UTC")


@dataclass(frozen=True, slots=True)
class PositionGroup:
    """Set of securities whose margin is computed jointly.

    The first symbol of `key` is the group's lead position: lot answers from a
    buying-power model are expressed in lots of that security.
    """

    key: tuple[str, ...]
    buying_power_model: BuyingPowerModel | None = None

    def __post_init__(self) -> None:
        if not self.key:
            raise ValueError("position group key must not be empty")

    @property
    def lead_symbol(self) -> str:
        return self.key[0]

    @property
    def is_default(self) -> bool:
        """True for the singleton group used when no explicit grouping exists."""
        return len(self.key) == 1

    def __contains__(self, symbol: object) -> bool:
        return symbol in self.key


@dataclass(frozen=True, slots=True)
class MaxLotsResult:
    """Answer of a buying-power model to a delta-buying-power request.

    Attributes:
        number_of_lots: Signed lot count; the sign is the order direction.
        reason: Human readable explanation when no lots are returned.
        is_error: True when the model could not answer (not a policy skip).
    """

    number_of_lots: int
    reason: str | None = None
    is_error: bool = False


@dataclass(frozen=True, slots=True)
class AccountMetrics:
    """Account-level margin figures read once from a snapshot."""

    total_margin_used: float
    total_absolute_holdings_cost: float
    total_portfolio_value: float
    margin_remaining: float

    @property
    def average_leverage(self) -> float:
        """Gross holdings cost per unit of margin used (NaN without margin)."""
        if self.total_margin_used <= 0:
            return float("nan")
        return self.total_absolute_holdings_cost / self.total_margin_used

    @classmethod
    def from_account(cls, account: AccountSnapshot) -> AccountMetrics:
        total_portfolio_value = float(account.total_portfolio_value)
        return cls(
            total_margin_used=float(account.total_margin_used),
            total_absolute_holdings_cost=float(account.total_absolute_holdings_cost),
            total_portfolio_value=total_portfolio_value,
            margin_remaining=float(account.margin_remaining(total_portfolio_value)),
        )
