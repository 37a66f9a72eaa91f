from __future__ import annotations

from margin_engine import (
    AccountSnapshot,
    BuyingPowerModel,
    DefaultOrderSizer,
    ExecutionStrategy,
    InMemoryAccount,
    LeverageBuyingPowerModel,
    LiquidationExecutor,
    MarginCallModel,
    OrderSizer,
    OrderSubmissionPort,
    PositionGroupResolver,
    RegistryGroupResolver,
)


def test_reference_collaborators_satisfy_contracts(recording_port) -> None:
    account = InMemoryAccount(cash=1_000.0)
    port = recording_port()

    assert isinstance(account, AccountSnapshot)
    assert isinstance(LeverageBuyingPowerModel(), BuyingPowerModel)
    assert isinstance(RegistryGroupResolver(), PositionGroupResolver)
    assert isinstance(port, OrderSubmissionPort)
    assert isinstance(DefaultOrderSizer(), OrderSizer)
    assert isinstance(LiquidationExecutor(account, port), ExecutionStrategy)


def test_model_defaults_to_sequential_executor(recording_port) -> None:
    account = InMemoryAccount(cash=1_000.0)

    model = MarginCallModel(account, recording_port())

    assert isinstance(model.execution, LiquidationExecutor)
    assert isinstance(model.evaluator.sizer, DefaultOrderSizer)
