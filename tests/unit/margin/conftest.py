"""Test doubles for margin-call evaluation and execution."""

from __future__ import annotations

from dataclasses import dataclass, field

import pytest

from margin_engine import (
    InMemoryAccount,
    LiquidationOrderRequest,
    MaxLotsResult,
    OrderStatus,
    OrderTicket,
    PositionGroup,
    RegistryGroupResolver,
    SecurityHolding,
)


@dataclass
class StubAccount:
    """Account whose margin figures are set directly by the test."""

    total_margin_used: float
    total_portfolio_value: float
    total_absolute_holdings_cost: float
    securities: dict[str, SecurityHolding] = field(default_factory=dict)
    remaining_override: float | None = None
    group_resolver: RegistryGroupResolver = field(default_factory=RegistryGroupResolver)

    def margin_remaining(self, total_portfolio_value: float | None = None) -> float:
        if self.remaining_override is not None:
            return self.remaining_override
        if total_portfolio_value is None:
            total_portfolio_value = self.total_portfolio_value
        return total_portfolio_value - self.total_margin_used

    def holdings(self) -> list[SecurityHolding]:
        return list(self.securities.values())

    def security(self, symbol: str) -> SecurityHolding:
        return self.securities[symbol]

    def add(self, *holdings: SecurityHolding) -> StubAccount:
        for holding in holdings:
            self.securities[holding.symbol] = holding
        return self


class FixedLotsModel:
    """Buying-power model answering a fixed lot count and recording requests."""

    def __init__(
        self, *, reserved: float = 60.0, lots: int = -2, is_error: bool = False
    ):
        self.reserved = reserved
        self.lots = lots
        self.is_error = is_error
        self.calls: list[tuple[tuple[str, ...], float, float]] = []

    def reserved_buying_power(self, account, group: PositionGroup) -> float:
        _ = account
        return self.reserved

    def maximum_lots_for_delta_buying_power(
        self,
        account,
        group: PositionGroup,
        delta_buying_power: float,
        minimum_order_margin_portfolio_pct: float,
    ) -> MaxLotsResult:
        _ = account
        self.calls.append(
            (group.key, delta_buying_power, minimum_order_margin_portfolio_pct)
        )
        if self.is_error:
            return MaxLotsResult(0, reason="model failure", is_error=True)
        return MaxLotsResult(self.lots)


class RecordingPort:
    """Order port that records submissions and finishes each order on wait.

    `on_terminal` is called with the ticket after the order reaches its final
    status, which lets a test change account state mid-pass.
    """

    def __init__(
        self,
        *,
        final_status: OrderStatus = OrderStatus.FILLED,
        reaches_terminal: bool = True,
        on_terminal=None,
    ):
        self.final_status = final_status
        self.reaches_terminal = reaches_terminal
        self.on_terminal = on_terminal
        self.submitted: list[LiquidationOrderRequest] = []
        self.tickets: dict[int, OrderTicket] = {}
        self.wait_timeouts: list[float | None] = []

    @property
    def submitted_symbols(self) -> list[str]:
        return [request.symbol for request in self.submitted]

    def submit(self, request: LiquidationOrderRequest) -> OrderTicket:
        self.submitted.append(request)
        ticket = OrderTicket(
            order_id=len(self.submitted),
            request=request,
            status=OrderStatus.SUBMITTED,
        )
        self.tickets[ticket.order_id] = ticket
        return ticket

    def await_terminal(self, order_id: int, timeout: float | None = None) -> bool:
        self.wait_timeouts.append(timeout)
        if not self.reaches_terminal:
            return False
        ticket = self.tickets[order_id]
        ticket.status = self.final_status
        if self.final_status is OrderStatus.FILLED:
            ticket.filled_quantity = ticket.request.quantity
        if self.on_terminal is not None:
            self.on_terminal(ticket)
        return True


class FillingPort(RecordingPort):
    """Port that fills market orders at the last price of an in-memory account."""

    def __init__(self, account: InMemoryAccount, **kwargs):
        super().__init__(**kwargs)
        self.account = account

    def await_terminal(self, order_id: int, timeout: float | None = None) -> bool:
        ticket = self.tickets[order_id]
        holding = self.account.security(ticket.symbol)
        quantity = ticket.request.quantity
        self.account.cash -= quantity * holding.unit_value
        self.account.update_holding(
            ticket.symbol, quantity=holding.quantity + quantity
        )
        ticket.average_fill_price = holding.price
        return super().await_terminal(order_id, timeout)


def make_holding(
    symbol: str,
    quantity: float,
    price: float = 10.0,
    *,
    average_price: float | None = None,
    **kwargs,
) -> SecurityHolding:
    return SecurityHolding(
        symbol=symbol,
        quantity=quantity,
        price=price,
        average_price=price if average_price is None else average_price,
        **kwargs,
    )


@pytest.fixture
def holding():
    return make_holding


@pytest.fixture
def stub_account():
    def _make(
        *,
        margin_used: float,
        portfolio_value: float,
        holdings_cost: float = 1_000.0,
        remaining: float | None = None,
    ) -> StubAccount:
        return StubAccount(
            total_margin_used=margin_used,
            total_portfolio_value=portfolio_value,
            total_absolute_holdings_cost=holdings_cost,
            remaining_override=remaining,
        )

    return _make


@pytest.fixture
def lots_model():
    return FixedLotsModel


@pytest.fixture
def recording_port():
    return RecordingPort


@pytest.fixture
def filling_port():
    return FillingPort
