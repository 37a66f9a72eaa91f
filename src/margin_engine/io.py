"""Build in-memory accounts from mappings or YAML account files.

Expected layout (all money values in quote currency)::

    cash: -50000.0
    as_of: "2024-03-01 15:30"        # UTC clock of the snapshot, default: load time
    securities:
      - symbol: AAPL
        quantity: 100
        price: 150.0
        average_price: 180.0
        exchange: XNYS               # or `time_zone: America/New_York`
        initial_margin_ratio: 0.5    # omit with `marginable: false`
    groups:
      - symbols: [SPY, IVV]
        initial_margin_ratio: 0.25
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from functools import lru_cache
from pathlib import Path
from typing import Any

import exchange_calendars as xcals  # pip: exchange-calendars
import pandas as pd
from exchange_calendars.errors import InvalidCalendarName

from .account import InMemoryAccount
from .buying_power import LeverageBuyingPowerModel
from .cli.config import load_yaml_config
from .groups import RegistryGroupResolver
from .types import PositionGroup, SecurityHolding

logger = logging.getLogger(__name__)

_HOLDING_FIELDS = (
    "average_price",
    "conversion_rate",
    "lot_size",
    "contract_multiplier",
    "security_type",
)


@lru_cache(maxsize=None)
def exchange_time_zone(exchange: str) -> str:
    """Return the IANA time zone name of an exchange calendar code (e.g. XNYS)."""
    try:
        cal = xcals.get_calendar(exchange)
    except InvalidCalendarName as exc:
        raise ValueError(f"Unknown exchange calendar: {exchange!r}") from exc
    tz = cal.tz
    return str(getattr(tz, "key", None) or tz)


def _margin_model(payload: Mapping[str, Any]) -> LeverageBuyingPowerModel | None:
    if not payload.get("marginable", True):
        return None
    if "leverage" in payload:
        return LeverageBuyingPowerModel.from_leverage(float(payload["leverage"]))
    maintenance = payload.get("maintenance_margin_ratio")
    return LeverageBuyingPowerModel(
        initial_margin_ratio=float(payload.get("initial_margin_ratio", 1.0)),
        maintenance_margin_ratio=None if maintenance is None else float(maintenance),
    )


def _local_time(as_of: pd.Timestamp | None, time_zone: str) -> pd.Timestamp | None:
    if as_of is None:
        return None
    return as_of.tz_convert(time_zone).tz_localize(None)


def holding_from_mapping(
    payload: Mapping[str, Any],
    *,
    as_of: pd.Timestamp | None = None,
) -> SecurityHolding:
    """Build one :class:`SecurityHolding` from a YAML/JSON row."""
    try:
        symbol = str(payload["symbol"])
        quantity = float(payload["quantity"])
        price = float(payload["price"])
    except KeyError as exc:
        raise ValueError(f"security entry is missing required key {exc}") from exc

    if "exchange" in payload and payload["exchange"] is not None:
        time_zone = exchange_time_zone(str(payload["exchange"]))
    else:
        time_zone = str(payload.get("time_zone", "UTC"))

    extra = {key: payload[key] for key in _HOLDING_FIELDS if key in payload}
    for key in ("average_price", "conversion_rate", "lot_size", "contract_multiplier"):
        if key in extra:
            extra[key] = float(extra[key])
    extra.setdefault("average_price", price)

    return SecurityHolding(
        symbol=symbol,
        quantity=quantity,
        price=price,
        time_zone=time_zone,
        local_time=_local_time(as_of, time_zone),
        buying_power_model=_margin_model(payload),
        **extra,
    )


def _groups_from_rows(rows: Sequence[Mapping[str, Any]]) -> list[PositionGroup]:
    groups = []
    for row in rows:
        symbols = row.get("symbols")
        if not symbols:
            raise ValueError("group entry must list at least one symbol")
        groups.append(
            PositionGroup(
                key=tuple(str(s) for s in symbols),
                buying_power_model=_margin_model(row),
            )
        )
    return groups


def account_from_mapping(data: Mapping[str, Any]) -> InMemoryAccount:
    """Build an :class:`InMemoryAccount` from a plain mapping."""
    as_of_raw = data.get("as_of")
    if as_of_raw is None:
        # One clock reading per snapshot keeps repeated evaluations identical.
        as_of = pd.Timestamp.now(tz="UTC")
    else:
        as_of = pd.Timestamp(as_of_raw)
        if as_of.tzinfo is None:
            as_of = as_of.tz_localize("UTC")
        else:
            as_of = as_of.tz_convert("UTC")

    holdings = [
        holding_from_mapping(row, as_of=as_of) for row in data.get("securities") or []
    ]
    resolver = RegistryGroupResolver(_groups_from_rows(data.get("groups") or []))
    account = InMemoryAccount(
        cash=float(data.get("cash", 0.0)),
        holdings=holdings,
        group_resolver=resolver,
    )
    logger.debug("Loaded account with %d securities", len(holdings))
    return account


def load_account(path: str | Path) -> InMemoryAccount:
    """Load an account snapshot from a YAML file."""
    data = load_yaml_config(path)
    if not data:
        raise ValueError(f"Account file is empty: {path}")
    return account_from_mapping(data)
