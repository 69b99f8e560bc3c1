"""A marker kind that only a custom catalog recognizes."""

from __future__ import annotations

from dataclasses import dataclass

from mapwith import Marker


class ExampleMapsTo(Marker):
    """Marker kind registered through MarkerCatalog.with_marker()."""


@dataclass
class Ledger:
    balance: int = 0


@dataclass
class LedgerView(ExampleMapsTo[Ledger]):
    balance: int = 0
