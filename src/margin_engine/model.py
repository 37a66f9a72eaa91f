"""Margin-call model facade invoked once per evaluation tick."""

from __future__ import annotations

import logging
import threading
from collections.abc import Sequence
from dataclasses import dataclass, field

from .config import MarginCallConfig
from .contracts import (
    AccountSnapshot,
    ExecutionStrategy,
    OrderSizer,
    OrderSubmissionPort,
)
from .evaluator import MarginCallEvaluation, MarginCallEvaluator
from .executor import LiquidationExecutor
from .orders import LiquidationOrderRequest, OrderProperties, OrderTicket

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MarginCallOutcome:
    """Result of one evaluate-and-execute pass."""

    evaluation: MarginCallEvaluation
    tickets: list[OrderTicket] = field(default_factory=list)

    @property
    def issue_warning(self) -> bool:
        return self.evaluation.issue_warning


class MarginCallModel:
    """Compose an evaluator and an execution strategy for one account.

    Sizing and execution are injected strategies; defaults are
    :class:`~margin_engine.sizing.DefaultOrderSizer` and
    :class:`~margin_engine.executor.LiquidationExecutor`.
    """

    def __init__(
        self,
        account: AccountSnapshot,
        port: OrderSubmissionPort | None = None,
        *,
        config: MarginCallConfig | None = None,
        default_order_properties: OrderProperties | None = None,
        sizer: OrderSizer | None = None,
        execution: ExecutionStrategy | None = None,
    ):
        if port is None and execution is None:
            raise ValueError("either port or execution must be provided")
        self.config = config or MarginCallConfig()
        self.evaluator = MarginCallEvaluator(
            account,
            config=self.config,
            sizer=sizer,
            default_order_properties=default_order_properties,
        )
        self.execution = execution or LiquidationExecutor(
            account,
            port,
            wait_timeout_seconds=self.config.wait_timeout_seconds,
        )
        self._lock = threading.Lock()

    def evaluate(self) -> MarginCallEvaluation:
        return self.evaluator.evaluate()

    def execute(
        self, requests: Sequence[LiquidationOrderRequest]
    ) -> list[OrderTicket]:
        with self._lock:
            return self.execution.execute(requests)

    def run(self) -> MarginCallOutcome:
        """Evaluate the account and execute any margin-call orders."""
        with self._lock:
            evaluation = self.evaluator.evaluate()
            if not evaluation.orders:
                return MarginCallOutcome(evaluation=evaluation)
            tickets = self.execution.execute(evaluation.orders)
        logger.info(
            "Margin call pass submitted %d of %d order(s)",
            len(tickets),
            len(evaluation.orders),
        )
        return MarginCallOutcome(evaluation=evaluation, tickets=tickets)


class NullMarginCallModel:
    """Margin-call model that never issues calls (cash accounts, research runs)."""

    def evaluate(self) -> MarginCallEvaluation:
        return MarginCallEvaluation()

    def execute(
        self, requests: Sequence[LiquidationOrderRequest]
    ) -> list[OrderTicket]:
        _ = requests
        return []

    def run(self) -> MarginCallOutcome:
        return MarginCallOutcome(evaluation=MarginCallEvaluation())
