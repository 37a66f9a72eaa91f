"""Canonical leverage-based buying-power model.

This is the reference margin capability used when no asset-class specific
model is plugged in. It is a pragmatic approximation, not a broker-legal
implementation:

- reserved buying power of a group is the sum of its members' absolute
  holdings value times the maintenance margin ratio
- a buying-power delta is converted into lots of the group's lead security,
  which alone absorbs the whole delta: reductions release maintenance margin,
  increases consume initial margin
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from math import ceil, floor

from .contracts import AccountSnapshot
from .types import MaxLotsResult, PositionGroup, SecurityHolding

logger = logging.getLogger(__name__)

# Guards ceil/floor against float noise such as 5.000000000001 lots.
_LOT_ROUNDING_DIGITS = 9


@dataclass(frozen=True)
class LeverageBuyingPowerModel:
    """Constant-leverage margin model.

    Attributes:
        initial_margin_ratio: Margin required to open one unit of notional
            (`0.5` is 2x leverage).
        maintenance_margin_ratio: Margin required to keep one unit of notional
            open. Defaults to `initial_margin_ratio`.
    """

    initial_margin_ratio: float = 1.0
    maintenance_margin_ratio: float | None = None

    def __post_init__(self) -> None:
        if not 0 < self.initial_margin_ratio <= 1:
            raise ValueError("initial_margin_ratio must be in (0, 1]")
        if self.maintenance_margin_ratio is not None and not (
            0 < self.maintenance_margin_ratio <= 1
        ):
            raise ValueError("maintenance_margin_ratio must be in (0, 1]")

    @classmethod
    def from_leverage(cls, leverage: float) -> LeverageBuyingPowerModel:
        if leverage < 1:
            raise ValueError("leverage must be >= 1")
        return cls(initial_margin_ratio=1.0 / leverage)

    @property
    def maintenance_ratio(self) -> float:
        if self.maintenance_margin_ratio is None:
            return self.initial_margin_ratio
        return self.maintenance_margin_ratio

    @property
    def leverage(self) -> float:
        return 1.0 / self.initial_margin_ratio

    def maintenance_margin(self, security: SecurityHolding) -> float:
        """Margin required to keep `security`'s holding open."""
        return abs(security.holdings_value) * self.maintenance_ratio

    def reserved_buying_power(
        self, account: AccountSnapshot, group: PositionGroup
    ) -> float:
        return sum(
            self.maintenance_margin(account.security(symbol)) for symbol in group.key
        )

    def maximum_lots_for_delta_buying_power(
        self,
        account: AccountSnapshot,
        group: PositionGroup,
        delta_buying_power: float,
        minimum_order_margin_portfolio_pct: float,
    ) -> MaxLotsResult:
        """Convert a buying-power change into signed lots of the lead security.

        The sign of the result is the sign of `delta_buying_power`: reserved
        buying power is signed like the holding, so a negative delta on a long
        and a positive delta on a short are both reductions. Reductions are
        rounded up to whole lots so the freed buying power covers the delta;
        increases are rounded down.
        """
        delta = float(delta_buying_power)
        if delta == 0:
            return MaxLotsResult(0, reason="buying power delta is zero")

        portfolio_value = float(account.total_portfolio_value)
        minimum_margin = minimum_order_margin_portfolio_pct * portfolio_value
        if minimum_order_margin_portfolio_pct > 0 and abs(delta) < minimum_margin:
            return MaxLotsResult(
                0,
                reason=(
                    f"order margin {abs(delta):.2f} is below the minimum of "
                    f"{minimum_order_margin_portfolio_pct:.2%} of portfolio value"
                ),
            )

        lead = account.security(group.lead_symbol)
        if not lead.has_price or lead.unit_value == 0:
            return MaxLotsResult(
                0,
                reason=f"{lead.symbol} has no usable price or conversion rate",
                is_error=True,
            )

        direction = 1 if delta > 0 else -1
        reducing = lead.invested and direction != (1 if lead.is_long else -1)
        ratio = self.maintenance_ratio if reducing else self.initial_margin_ratio
        quantity = abs(delta) / (abs(lead.unit_value) * ratio)

        raw_lots = round(quantity / lead.lot_size, _LOT_ROUNDING_DIGITS)
        lots = ceil(raw_lots) if reducing else floor(raw_lots)

        if lots == 0:
            return MaxLotsResult(
                0, reason=f"delta {delta:.2f} is smaller than one lot of {lead.symbol}"
            )
        logger.debug(
            "%s: %d lots for buying power delta %.2f",
            lead.symbol,
            direction * lots,
            delta,
        )
        return MaxLotsResult(direction * lots)
