from __future__ import annotations

import pandas as pd
import pytest

from margin_engine import (
    InMemoryAccount,
    LeverageBuyingPowerModel,
    PositionGroup,
    RegistryGroupResolver,
    SecurityHolding,
)


@pytest.fixture
def half_margin() -> LeverageBuyingPowerModel:
    return LeverageBuyingPowerModel(initial_margin_ratio=0.5)


def test_account_totals(half_margin) -> None:
    account = InMemoryAccount(
        cash=-6_000.0,
        holdings=[
            SecurityHolding("A", 100, 50.0, 80.0, buying_power_model=half_margin),
            SecurityHolding("B", 100, 50.0, 40.0, buying_power_model=half_margin),
        ],
    )

    assert account.total_holdings_value == pytest.approx(10_000.0)
    assert account.total_portfolio_value == pytest.approx(4_000.0)
    assert account.total_absolute_holdings_cost == pytest.approx(12_000.0)
    assert account.total_margin_used == pytest.approx(5_000.0)
    assert account.total_unrealized_profit == pytest.approx(-2_000.0)
    assert account.margin_remaining() == pytest.approx(-1_000.0)
    assert account.margin_remaining(5_500.0) == pytest.approx(500.0)

    metrics = account.metrics()
    assert metrics.average_leverage == pytest.approx(2.4)
    assert metrics.margin_remaining == pytest.approx(-1_000.0)


def test_grouped_securities_are_margined_once(half_margin) -> None:
    resolver = RegistryGroupResolver()
    resolver.add_group(["SPY", "IVV"], half_margin)
    account = InMemoryAccount(
        cash=0.0,
        holdings=[
            SecurityHolding("SPY", 10, 100.0, 100.0, buying_power_model=half_margin),
            SecurityHolding("IVV", 10, 100.0, 100.0, buying_power_model=half_margin),
        ],
        group_resolver=resolver,
    )

    assert [g.key for g in account.position_groups()] == [("SPY", "IVV")]
    assert account.total_margin_used == pytest.approx(1_000.0)


def test_non_marginable_and_flat_securities_use_no_margin(half_margin) -> None:
    account = InMemoryAccount(
        cash=1_000.0,
        holdings=[
            SecurityHolding("CASHONLY", 10, 100.0, 100.0),
            SecurityHolding("FLAT", 0, 100.0, 100.0, buying_power_model=half_margin),
        ],
    )

    assert account.total_margin_used == 0.0
    assert [g.key for g in account.position_groups()] == [("CASHONLY",)]
    assert account.total_portfolio_value == pytest.approx(2_000.0)


def test_duplicate_symbols_are_rejected() -> None:
    with pytest.raises(ValueError, match="duplicate security"):
        InMemoryAccount(
            cash=0.0,
            holdings=[SecurityHolding("A", 1, 1.0), SecurityHolding("A", 2, 1.0)],
        )


def test_update_holding_replaces_view() -> None:
    account = InMemoryAccount(cash=0.0, holdings=[SecurityHolding("A", 10, 5.0)])

    updated = account.update_holding("A", quantity=4)

    assert updated.quantity == 4
    assert account.security("A") is updated
    assert "A" in account
    assert "B" not in account


def test_resolver_rejects_overlapping_groups(half_margin) -> None:
    resolver = RegistryGroupResolver([PositionGroup(("SPY", "IVV"), half_margin)])

    with pytest.raises(ValueError, match="already grouped"):
        resolver.add_group(["IVV", "VOO"], half_margin)


def test_resolver_falls_back_to_singleton_group(half_margin) -> None:
    resolver = RegistryGroupResolver()
    holding = SecurityHolding("A", 1, 1.0, buying_power_model=half_margin)

    group = resolver.resolve_or_create_default_group(None, holding)

    assert group.key == ("A",)
    assert group.is_default
    assert group.buying_power_model is half_margin


def test_holding_valuation_with_fx_and_multiplier() -> None:
    holding = SecurityHolding(
        "ES",
        -2,
        5_000.0,
        average_price=5_100.0,
        conversion_rate=0.9,
        contract_multiplier=50.0,
    )

    assert holding.is_short
    assert holding.unit_value == pytest.approx(225_000.0)
    assert holding.holdings_value == pytest.approx(-450_000.0)
    assert holding.absolute_holdings_cost == pytest.approx(459_000.0)
    assert holding.unrealized_profit == pytest.approx(9_000.0)


def test_utc_time_localizes_exchange_time() -> None:
    holding = SecurityHolding(
        "7203",
        100,
        2_500.0,
        time_zone="Asia/Tokyo",
        local_time=pd.Timestamp("2024-03-01 09:30"),
    )

    assert holding.utc_time() == pd.Timestamp("2024-03-01 00:30", tz="UTC")


@pytest.mark.parametrize(
    "kwargs",
    [{"lot_size": 0.0}, {"contract_multiplier": -1.0}, {"conversion_rate": -0.5}],
)
def test_holding_validation(kwargs) -> None:
    with pytest.raises(ValueError):
        SecurityHolding("A", 1, 1.0, **kwargs)
