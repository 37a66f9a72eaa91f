"""Margin-call and forced-liquidation engine."""

from .account import InMemoryAccount
from .buying_power import LeverageBuyingPowerModel
from .config import MarginCallConfig
from .contracts import (
    AccountSnapshot,
    BuyingPowerModel,
    ExecutionStrategy,
    OrderSizer,
    OrderSubmissionPort,
    PositionGroupResolver,
)
from .evaluator import MarginCallEvaluation, MarginCallEvaluator
from .executor import LiquidationExecutor, LiquidationTimeoutError
from .groups import RegistryGroupResolver
from .model import MarginCallModel, MarginCallOutcome, NullMarginCallModel
from .orders import (
    MARGIN_CALL_ORDER_TAG,
    LiquidationOrderRequest,
    OrderProperties,
    OrderTicket,
)
from .sizing import DefaultOrderSizer
from .types import (
    AccountMetrics,
    MaxLotsResult,
    OrderStatus,
    OrderType,
    PositionGroup,
    SecurityHolding,
)

__all__ = [
    "AccountMetrics",
    "AccountSnapshot",
    "BuyingPowerModel",
    "DefaultOrderSizer",
    "ExecutionStrategy",
    "InMemoryAccount",
    "LeverageBuyingPowerModel",
    "LiquidationExecutor",
    "LiquidationOrderRequest",
    "LiquidationTimeoutError",
    "MARGIN_CALL_ORDER_TAG",
    "MarginCallConfig",
    "MarginCallEvaluation",
    "MarginCallEvaluator",
    "MarginCallModel",
    "MarginCallOutcome",
    "MaxLotsResult",
    "NullMarginCallModel",
    "OrderProperties",
    "OrderSizer",
    "OrderStatus",
    "OrderSubmissionPort",
    "OrderTicket",
    "OrderType",
    "PositionGroup",
    "PositionGroupResolver",
    "RegistryGroupResolver",
    "SecurityHolding",
]
