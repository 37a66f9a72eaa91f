"""Margin-call decision procedure.

:class:`MarginCallEvaluator` reads one account snapshot and decides whether a
margin call is warranted:

1) no margin used -> nothing to do
2) average holdings leverage at or below `minimum_leverage` -> nothing to do
3) warn when remaining margin is within `warning_threshold` of portfolio value
4) remaining margin still positive -> no orders, warning only
5) otherwise size one reducing order per position group with a buying-power
   model, on the group's lead security when it is invested and priced

Disqualifying conditions are policy outcomes, not errors: they produce an
empty evaluation rather than an exception.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from .config import MarginCallConfig
from .contracts import AccountSnapshot, OrderSizer
from .orders import LiquidationOrderRequest, OrderProperties
from .sizing import DefaultOrderSizer
from .types import AccountMetrics

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MarginCallEvaluation:
    """Outcome of one evaluation pass.

    Attributes:
        orders: Reducing orders to execute, one per affected security.
        issue_warning: True when the account should be warned about margin.
        metrics: Account figures the decision was based on (None when the
            evaluation was not run against an account).
    """

    orders: list[LiquidationOrderRequest] = field(default_factory=list)
    issue_warning: bool = False
    metrics: AccountMetrics | None = None

    @property
    def is_margin_call(self) -> bool:
        return bool(self.orders)

    def __iter__(self):
        # Allows `orders, issue_warning = evaluator.evaluate()`.
        yield self.orders
        yield self.issue_warning


class MarginCallEvaluator:
    """Stateless evaluator of margin calls against an account snapshot."""

    def __init__(
        self,
        account: AccountSnapshot,
        *,
        config: MarginCallConfig | None = None,
        sizer: OrderSizer | None = None,
        default_order_properties: OrderProperties | None = None,
    ):
        self.account = account
        self.config = config or MarginCallConfig()
        self.sizer = sizer or DefaultOrderSizer(
            self.config, default_order_properties=default_order_properties
        )

    def evaluate(self) -> MarginCallEvaluation:
        """Return the margin-call orders and warning flag for the current state."""
        account = self.account
        total_margin_used = float(account.total_margin_used)
        if total_margin_used <= 0:
            return MarginCallEvaluation()

        metrics = AccountMetrics.from_account(account)
        if metrics.average_leverage <= self.config.minimum_leverage:
            logger.debug(
                "Average leverage %.4f <= %.2f, no margin call possible",
                metrics.average_leverage,
                self.config.minimum_leverage,
            )
            return MarginCallEvaluation(metrics=metrics)

        total_portfolio_value = metrics.total_portfolio_value
        margin_remaining = metrics.margin_remaining
        issue_warning = (
            margin_remaining <= total_portfolio_value * self.config.warning_threshold
        )
        if margin_remaining > 0:
            if issue_warning:
                logger.info(
                    "Margin warning: %.2f remaining on portfolio value %.2f",
                    margin_remaining,
                    total_portfolio_value,
                )
            return MarginCallEvaluation(issue_warning=issue_warning, metrics=metrics)

        orders: list[LiquidationOrderRequest] = []
        sized_groups: set[tuple[str, ...]] = set()
        for security in account.holdings():
            if not security.invested or not security.has_price:
                continue

            group = account.group_resolver.resolve_or_create_default_group(
                account, security
            )
            if group.buying_power_model is None:
                logger.debug("%s: no buying power model, skipped", security.symbol)
                continue
            if group.key in sized_groups:
                continue
            sized_groups.add(group.key)

            if security.symbol != group.lead_symbol:
                security = account.security(group.lead_symbol)
                if not security.invested or not security.has_price:
                    logger.debug(
                        "Group %s: lead %s is flat or unpriced, skipped",
                        group.key,
                        security.symbol,
                    )
                    continue

            order = self.sizer.generate_order(
                account,
                security,
                total_portfolio_value,
                metrics.total_margin_used,
            )
            if order is not None and order.quantity != 0:
                orders.append(order)

        if orders:
            logger.warning(
                "Margin call: remaining %.2f, margin used %.2f, portfolio value %.2f; "
                "%d liquidation order(s) generated",
                margin_remaining,
                metrics.total_margin_used,
                total_portfolio_value,
                len(orders),
            )
        return MarginCallEvaluation(
            orders=orders,
            issue_warning=bool(orders),
            metrics=metrics,
        )
