"""In-memory account snapshot used by the CLI, tests and simple simulators."""

from __future__ import annotations

import dataclasses
from collections.abc import Iterable

from .contracts import PositionGroupResolver
from .groups import RegistryGroupResolver
from .types import AccountMetrics, PositionGroup, SecurityHolding


class InMemoryAccount:
    """Cash plus a set of holdings; every figure is computed on read.

    Margin used is the reserved buying power summed over distinct position
    groups, so correlated members registered together are margined once.
    """

    def __init__(
        self,
        *,
        cash: float,
        holdings: Iterable[SecurityHolding] = (),
        group_resolver: PositionGroupResolver | None = None,
    ):
        self.cash = float(cash)
        self._holdings: dict[str, SecurityHolding] = {}
        for holding in holdings:
            if holding.symbol in self._holdings:
                raise ValueError(f"duplicate security: {holding.symbol}")
            self._holdings[holding.symbol] = holding
        self._group_resolver = group_resolver or RegistryGroupResolver()

    @property
    def group_resolver(self) -> PositionGroupResolver:
        return self._group_resolver

    def holdings(self) -> list[SecurityHolding]:
        return list(self._holdings.values())

    def security(self, symbol: str) -> SecurityHolding:
        return self._holdings[symbol]

    def __contains__(self, symbol: object) -> bool:
        return symbol in self._holdings

    def set_holding(self, holding: SecurityHolding) -> None:
        """Add or replace one holding."""
        self._holdings[holding.symbol] = holding

    def update_holding(self, symbol: str, **changes) -> SecurityHolding:
        """Replace fields of an existing holding and return the new view."""
        updated = dataclasses.replace(self._holdings[symbol], **changes)
        self._holdings[symbol] = updated
        return updated

    def position_groups(self) -> list[PositionGroup]:
        """Distinct groups covering every invested security."""
        groups: dict[tuple[str, ...], PositionGroup] = {}
        for holding in self._holdings.values():
            if not holding.invested:
                continue
            group = self._group_resolver.resolve_or_create_default_group(self, holding)
            groups.setdefault(group.key, group)
        return list(groups.values())

    @property
    def total_margin_used(self) -> float:
        total = 0.0
        for group in self.position_groups():
            if group.buying_power_model is None:
                continue
            total += group.buying_power_model.reserved_buying_power(self, group)
        return total

    @property
    def total_absolute_holdings_cost(self) -> float:
        return sum(h.absolute_holdings_cost for h in self._holdings.values())

    @property
    def total_holdings_value(self) -> float:
        return sum(h.holdings_value for h in self._holdings.values() if h.invested)

    @property
    def total_unrealized_profit(self) -> float:
        return sum(h.unrealized_profit for h in self._holdings.values() if h.invested)

    @property
    def total_portfolio_value(self) -> float:
        return self.cash + self.total_holdings_value

    def margin_remaining(self, total_portfolio_value: float | None = None) -> float:
        if total_portfolio_value is None:
            total_portfolio_value = self.total_portfolio_value
        return float(total_portfolio_value) - self.total_margin_used

    def metrics(self) -> AccountMetrics:
        return AccountMetrics.from_account(self)

