"""Sequential margin-call execution.

Liquidation is strictly one order at a time: every order must reach a
terminal state before margin is re-read, because buying-power figures are
only valid against a settled account. Orders are submitted losers first
(ascending unrealized profit) and the pass stops as soon as remaining margin
is back to zero or above.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Sequence

from .contracts import AccountSnapshot, OrderSubmissionPort
from .orders import LiquidationOrderRequest, OrderTicket
from .types import OrderStatus

logger = logging.getLogger(__name__)


class LiquidationTimeoutError(RuntimeError):
    """Raised when a liquidation order does not reach a terminal state in time."""

    def __init__(self, ticket: OrderTicket, timeout: float):
        super().__init__(
            f"margin call order {ticket.order_id} ({ticket.symbol}) did not reach a "
            f"terminal state within {timeout:g}s"
        )
        self.ticket = ticket
        self.timeout = timeout


class LiquidationExecutor:
    """Default execution strategy for margin-call orders.

    Not re-entrant: callers must serialize `execute` calls per account.

    Args:
        account: Snapshot re-read after every fill.
        port: Order lifecycle collaborator.
        wait_timeout_seconds: Optional bound on each terminal-state wait.
        cancel_event: Cooperative cancellation signal, checked between orders
            and cleared when a pass ends.
    """

    def __init__(
        self,
        account: AccountSnapshot,
        port: OrderSubmissionPort,
        *,
        wait_timeout_seconds: float | None = None,
        cancel_event: threading.Event | None = None,
    ):
        self.account = account
        self.port = port
        self.wait_timeout_seconds = wait_timeout_seconds
        self.cancel_event = cancel_event or threading.Event()

    def cancel(self) -> None:
        """Stop the running pass, or the next one if idle, before its next order."""
        self.cancel_event.set()

    def order_by_losers(
        self, requests: Sequence[LiquidationOrderRequest]
    ) -> list[LiquidationOrderRequest]:
        """Sort requests by their security's unrealized profit, ascending."""
        profits = {
            request.symbol: self.account.security(request.symbol).unrealized_profit
            for request in requests
        }
        return sorted(requests, key=lambda request: profits[request.symbol])

    def execute(
        self, requests: Sequence[LiquidationOrderRequest]
    ) -> list[OrderTicket]:
        """Submit `requests` losers first until the account is compliant.

        Returns the tickets of the orders actually submitted, a prefix of the
        sorted requests. A cancellation only applies to one pass.
        """
        try:
            return self._execute_pass(requests)
        finally:
            self.cancel_event.clear()

    def _execute_pass(
        self, requests: Sequence[LiquidationOrderRequest]
    ) -> list[OrderTicket]:
        if self.account.margin_remaining() >= 0:
            return []

        executed: list[OrderTicket] = []
        for request in self.order_by_losers(requests):
            if self.cancel_event.is_set():
                logger.warning(
                    "Margin call pass cancelled after %d order(s)", len(executed)
                )
                break

            ticket = self.port.submit(request)
            logger.info(
                "Margin call order %s submitted: %s %s",
                ticket.order_id,
                request.quantity,
                request.symbol,
            )
            if not self.port.await_terminal(
                ticket.order_id, timeout=self.wait_timeout_seconds
            ):
                raise LiquidationTimeoutError(ticket, self.wait_timeout_seconds or 0.0)
            executed.append(ticket)

            if ticket.status is not OrderStatus.FILLED:
                logger.warning(
                    "Margin call order %s for %s ended %s",
                    ticket.order_id,
                    request.symbol,
                    ticket.status,
                )

            margin_remaining = self.account.margin_remaining()
            if margin_remaining >= 0:
                logger.info(
                    "Margin restored (%.2f remaining) after %d order(s)",
                    margin_remaining,
                    len(executed),
                )
                break
        return executed
