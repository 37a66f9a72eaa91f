"""Narrow contracts for the collaborators consumed by the margin-call engine.

The engine never depends on concrete account, margin or brokerage classes.
It only needs:

- an :class:`AccountSnapshot` to read margin figures and holdings,
- a :class:`BuyingPowerModel` per position group to size reductions,
- a :class:`PositionGroupResolver` to find the group of a security,
- an :class:`OrderSubmissionPort` to submit orders and wait for them.

Pluggable engine steps are expressed as :class:`OrderSizer` and
:class:`ExecutionStrategy`.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from typing import Protocol, runtime_checkable

from .orders import LiquidationOrderRequest, OrderTicket
from .types import MaxLotsResult, PositionGroup, SecurityHolding


@runtime_checkable
class BuyingPowerModel(Protocol):
    """Margin capability shared by the members of one position group."""

    def reserved_buying_power(
        self, account: AccountSnapshot, group: PositionGroup
    ) -> float:
        """Return buying power currently reserved by the group (account currency)."""
        ...

    def maximum_lots_for_delta_buying_power(
        self,
        account: AccountSnapshot,
        group: PositionGroup,
        delta_buying_power: float,
        minimum_order_margin_portfolio_pct: float,
    ) -> MaxLotsResult:
        """Return the signed lots achieving the requested buying-power change.

        Must be deterministic for a given account state and must answer zero
        lots (not fail) when the delta is already satisfied.
        """
        ...


@runtime_checkable
class PositionGroupResolver(Protocol):
    """Maps a held security to its margin-relevant position group."""

    def resolve_or_create_default_group(
        self, account: AccountSnapshot, security: SecurityHolding
    ) -> PositionGroup:
        """Return the group of `security`, or a singleton group if none exists."""
        ...


@runtime_checkable
class AccountSnapshot(Protocol):
    """Read-only account view; every read reflects the latest settled state."""

    @property
    def total_margin_used(self) -> float: ...

    @property
    def total_absolute_holdings_cost(self) -> float: ...

    @property
    def total_portfolio_value(self) -> float: ...

    @property
    def group_resolver(self) -> PositionGroupResolver: ...

    def margin_remaining(self, total_portfolio_value: float | None = None) -> float:
        """Return portfolio value minus margin used; negative means breach."""
        ...

    def holdings(self) -> Iterable[SecurityHolding]:
        """Return a fresh view of every security known to the account."""
        ...

    def security(self, symbol: str) -> SecurityHolding:
        """Return a fresh view of one security (KeyError if unknown)."""
        ...


@runtime_checkable
class OrderSubmissionPort(Protocol):
    """Order lifecycle collaborator used during liquidation."""

    def submit(self, request: LiquidationOrderRequest) -> OrderTicket:
        """Submit one request and return its ticket."""
        ...

    def await_terminal(self, order_id: int, timeout: float | None = None) -> bool:
        """Block until the order is filled, canceled or invalid.

        Returns False only when `timeout` elapsed first. Once this returns
        True, the order's effect on holdings and margin must be visible to
        subsequent account reads.
        """
        ...


@runtime_checkable
class OrderSizer(Protocol):
    """Per-security margin-call order sizing step."""

    def generate_order(
        self,
        account: AccountSnapshot,
        security: SecurityHolding,
        total_portfolio_value: float,
        total_margin_used: float,
    ) -> LiquidationOrderRequest | None:
        """Return a reducing order for `security`, or None when none is needed."""
        ...


@runtime_checkable
class ExecutionStrategy(Protocol):
    """Margin-call execution step."""

    def execute(
        self, requests: Sequence[LiquidationOrderRequest]
    ) -> list[OrderTicket]:
        """Submit requests until the account is compliant; return submitted tickets."""
        ...
