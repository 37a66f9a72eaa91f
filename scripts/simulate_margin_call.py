#!/usr/bin/env python
"""
Simulate one margin-call pass against an account snapshot.

Orders are filled immediately at each security's last price, so the script
shows which liquidations would actually be submitted before the account is
compliant again.

Typical usage:
    python scripts/simulate_margin_call.py
"""

from __future__ import annotations

import logging
from pathlib import Path

from margin_engine import (
    InMemoryAccount,
    LiquidationOrderRequest,
    MarginCallConfig,
    MarginCallModel,
    OrderStatus,
    OrderTicket,
)
from margin_engine.io import load_account
from margin_engine.reporting import holdings_to_frame, tickets_to_frame
from margin_engine.utils import setup_logging


ACCOUNT_FILE = Path("config/margin_call/account.yml")
MARGIN_BUFFER = 0.10
WAIT_TIMEOUT_SECONDS = 5.0

LOG_LEVEL = "INFO"
LOG_FMT_CONSOLE = "%(asctime)s %(levelname)s %(shortname)s - %(message)s"
LOG_FILE = None
LOG_COLORED = True


class ImmediateFillPort:
    """Fill every market order at the security's last price."""

    def __init__(self, account: InMemoryAccount):
        self.account = account
        self.tickets: dict[int, OrderTicket] = {}

    def submit(self, request: LiquidationOrderRequest) -> OrderTicket:
        ticket = OrderTicket(
            order_id=len(self.tickets) + 1,
            request=request,
            status=OrderStatus.SUBMITTED,
        )
        self.tickets[ticket.order_id] = ticket
        return ticket

    def await_terminal(self, order_id: int, timeout: float | None = None) -> bool:
        ticket = self.tickets[order_id]
        holding = self.account.security(ticket.symbol)
        quantity = ticket.request.quantity

        self.account.cash -= quantity * holding.unit_value
        self.account.update_holding(ticket.symbol, quantity=holding.quantity + quantity)

        ticket.status = OrderStatus.FILLED
        ticket.filled_quantity = quantity
        ticket.average_fill_price = holding.price
        return True


def main() -> None:
    setup_logging(
        LOG_LEVEL,
        fmt_console=LOG_FMT_CONSOLE,
        log_file=LOG_FILE,
        colored=LOG_COLORED,
    )
    logger = logging.getLogger(__name__)

    account = load_account(ACCOUNT_FILE)
    config = MarginCallConfig(
        margin_buffer=MARGIN_BUFFER,
        wait_timeout_seconds=WAIT_TIMEOUT_SECONDS,
    )
    logger.info("Before:\n%s", holdings_to_frame(account).to_string(index=False))

    outcome = MarginCallModel(account, ImmediateFillPort(account), config=config).run()

    if not outcome.tickets:
        logger.info("No margin call orders submitted.")
        return

    logger.info("Tickets:\n%s", tickets_to_frame(outcome.tickets).to_string())
    logger.info("After:\n%s", holdings_to_frame(account).to_string(index=False))
    logger.info("Margin remaining: %.2f", account.margin_remaining())


if __name__ == "__main__":
    main()
