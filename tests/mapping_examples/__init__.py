"""Example mapping classes used by the discovery tests.

Layout:
- this package: Currency / CurrencyDto (bidirectional)
- orders: MapsTo and MapsFrom with an override routine
- customers.profiles: MapsWith plus a self-registering audit record
- custom_markers: a marker kind outside the default catalog
- broken: a module that fails to import
"""

from __future__ import annotations

from dataclasses import dataclass

from mapwith import MapsWith


@dataclass
class Currency:
    code: str = ""
    symbol: str = ""


@dataclass
class CurrencyDto(MapsWith[Currency]):
    code: str = ""
    symbol: str = ""
