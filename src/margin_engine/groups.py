"""Explicit-registry position-group resolver."""

from __future__ import annotations

from collections.abc import Iterable, Sequence

from .contracts import AccountSnapshot, BuyingPowerModel
from .types import PositionGroup, SecurityHolding


class RegistryGroupResolver:
    """Resolve securities to explicitly registered groups.

    Securities without a registered group fall back to a singleton group that
    shares the security's own buying-power model.
    """

    def __init__(self, groups: Iterable[PositionGroup] = ()):
        self._by_symbol: dict[str, PositionGroup] = {}
        for group in groups:
            self.register(group)

    @property
    def groups(self) -> list[PositionGroup]:
        seen: dict[tuple[str, ...], PositionGroup] = {}
        for group in self._by_symbol.values():
            seen.setdefault(group.key, group)
        return list(seen.values())

    def register(self, group: PositionGroup) -> None:
        """Register `group`; each symbol may belong to one group only."""
        clashes = [s for s in group.key if s in self._by_symbol]
        if clashes:
            raise ValueError(f"symbols already grouped: {clashes}")
        for symbol in group.key:
            self._by_symbol[symbol] = group

    def add_group(
        self,
        symbols: Sequence[str],
        buying_power_model: BuyingPowerModel | None,
    ) -> PositionGroup:
        group = PositionGroup(key=tuple(symbols), buying_power_model=buying_power_model)
        self.register(group)
        return group

    def resolve_or_create_default_group(
        self, account: AccountSnapshot, security: SecurityHolding
    ) -> PositionGroup:
        _ = account
        group = self._by_symbol.get(security.symbol)
        if group is not None:
            return group
        return PositionGroup(
            key=(security.symbol,),
            buying_power_model=security.buying_power_model,
        )
