"""Order examples: one-way markers and a partner-specific override."""

from __future__ import annotations

from dataclasses import dataclass

from mapwith import MapsFrom, MapsTo, ScopedProfile


@dataclass
class Order:
    id: int = 0
    total: float = 0.0


@dataclass
class OrderDto(MapsTo[Order]):
    id: int = 0
    total: float = 0.0


@dataclass
class OrderLine:
    sku: str = ""
    quantity: int = 0


@dataclass
class OrderLineDto(MapsFrom[OrderLine]):
    sku: str = ""
    amount: int = 0

    def configure_map(self, profile: ScopedProfile[OrderLine]) -> None:
        profile.register_from().for_member("amount", source="quantity")


class _DraftOrderDto(MapsTo[Order]):
    """Module-private; discovery does not collect it."""
