"""Per-security margin-call order sizing.

Given an account in breach, :class:`DefaultOrderSizer` converts the account's
margin excess into a buying-power reduction for the security's position group
and asks the group's buying-power model how many lots achieve it:

1) skip while margin used is within `margin_buffer` of portfolio value
2) skip flat holdings and unconvertible quote currencies
3) delta = margin used - portfolio value (account currency)
4) keep `max(0, reserved - delta)` of the group's reserved buying power
5) request the difference, signed against the holding, with no minimum size
6) quantity = lots * lot size, clamped so the holding can close but not flip

Only a group's lead security is sized; other members yield no order.
"""

from __future__ import annotations

import logging
from math import copysign

from .config import MarginCallConfig
from .contracts import AccountSnapshot
from .orders import LiquidationOrderRequest, OrderProperties
from .types import SecurityHolding

logger = logging.getLogger(__name__)


class DefaultOrderSizer:
    """Default margin-call sizing step.

    Each generated request carries its own deep copy of
    `default_order_properties`, so later changes to the template never reach
    requests already created.
    """

    def __init__(
        self,
        config: MarginCallConfig | None = None,
        default_order_properties: OrderProperties | None = None,
    ):
        self.config = config or MarginCallConfig()
        self.default_order_properties = default_order_properties

    def generate_order(
        self,
        account: AccountSnapshot,
        security: SecurityHolding,
        total_portfolio_value: float,
        total_margin_used: float,
    ) -> LiquidationOrderRequest | None:
        """Return a reducing market order for `security`, or None."""
        if total_margin_used <= total_portfolio_value * (1 + self.config.margin_buffer):
            return None

        if not security.invested:
            return None

        if security.conversion_rate == 0:
            logger.debug("%s: quote currency not convertible, skipped", security.symbol)
            return None

        delta_account_currency = total_margin_used - total_portfolio_value

        group = account.group_resolver.resolve_or_create_default_group(
            account, security
        )
        model = group.buying_power_model
        if model is None:
            return None
        if security.symbol != group.lead_symbol:
            # Lot answers are in lead units; groups are liquidated through the lead.
            logger.debug(
                "%s: not the lead of group %s, skipped", security.symbol, group.key
            )
            return None

        currently_used = model.reserved_buying_power(account, group)
        buying_power_to_keep = max(0.0, currently_used - delta_account_currency)
        side = -1 if security.is_long else 1
        delta_buying_power = (currently_used - buying_power_to_keep) * side

        result = model.maximum_lots_for_delta_buying_power(
            account,
            group,
            delta_buying_power,
            minimum_order_margin_portfolio_pct=0.0,
        )
        if result.is_error:
            logger.warning(
                "%s: buying power model could not size margin call order: %s",
                security.symbol,
                result.reason,
            )
            return None

        quantity = result.number_of_lots * security.lot_size
        quantity = self._clamp(security, quantity)
        if quantity == 0:
            logger.debug(
                "%s: no lots to liquidate (%s)", security.symbol, result.reason
            )
            return None

        return LiquidationOrderRequest(
            symbol=security.symbol,
            quantity=quantity,
            time=security.utc_time(),
            tag=self.config.order_tag,
            properties=(
                self.default_order_properties.clone()
                if self.default_order_properties is not None
                else None
            ),
            security_type=security.security_type,
        )

    def _clamp(self, security: SecurityHolding, quantity: float) -> float:
        """Keep a reducing order from flipping the holding to the other side."""
        if not self.config.clamp_to_position or quantity == 0:
            return quantity
        if copysign(1.0, quantity) == copysign(1.0, security.quantity):
            # Same side as the holding: nothing to clamp.
            return quantity
        if abs(quantity) <= abs(security.quantity):
            return quantity
        logger.warning(
            "%s: margin call order of %s would flip holding of %s; clamped to close",
            security.symbol,
            quantity,
            security.quantity,
        )
        return -security.quantity
