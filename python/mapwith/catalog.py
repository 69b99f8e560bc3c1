"""Marker catalog: the vocabulary a classifier recognizes.

A catalog is a value handed to the classifier, so several configurations
with different marker vocabularies can coexist in one process.

Example:
    >>> class ConvertsTo(Marker):
    ...     pass
    >>> catalog = MarkerCatalog.default().with_marker(ConvertsTo, Direction.TO_PARTNER)
    >>> TypeClassifier(catalog).classify(InvoiceDto)
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from types import MappingProxyType

from .markers import HasCustomMap, MapsFrom, MapsTo, MapsWith, Marker, is_parametrized_marker
from .types import Direction

DEFAULT_OVERRIDE_NAME = "configure_map"
DEFAULT_SELF_REGISTRATION_NAME = "map"


def _default_directions() -> Mapping[type, Direction]:
    return MappingProxyType(
        {
            MapsTo: Direction.TO_PARTNER,
            MapsFrom: Direction.FROM_PARTNER,
            MapsWith: Direction.BIDIRECTIONAL,
        }
    )


@dataclass(frozen=True)
class MarkerCatalog:
    """Marker kinds and naming conventions used during classification.

    Attributes:
        directions: Marker kind -> direction it declares.
        self_registration_marker: Base class flagging self-registration
            (None disables self-registration).
        self_registration_name: Name of the self-registration callback.
        override_name: Name (or ``name_`` prefix) of override routines.
    """

    directions: Mapping[type, Direction] = field(default_factory=_default_directions)
    self_registration_marker: type | None = HasCustomMap
    self_registration_name: str = DEFAULT_SELF_REGISTRATION_NAME
    override_name: str = DEFAULT_OVERRIDE_NAME

    def __post_init__(self) -> None:
        for kind in self.directions:
            if not (isinstance(kind, type) and issubclass(kind, Marker)):
                raise TypeError(f"Marker kinds must subclass Marker, got {kind!r}")
            if is_parametrized_marker(kind):
                raise TypeError(f"Marker kinds must not be parametrized, got {kind.__name__}")
        object.__setattr__(self, "directions", MappingProxyType(dict(self.directions)))

    @classmethod
    def default(cls) -> MarkerCatalog:
        """Create the catalog for MapsTo / MapsFrom / MapsWith / HasCustomMap.

        Returns:
            The default catalog.
        """
        return cls()

    def with_marker(self, kind: type, direction: Direction) -> MarkerCatalog:
        """Return a copy recognizing one more marker kind.

        Args:
            kind: Marker subclass to add.
            direction: Direction the kind declares.

        Returns:
            New catalog; this one is left unchanged.
        """
        directions = dict(self.directions)
        directions[kind] = direction
        return replace(self, directions=directions)

    def without_marker(self, kind: type) -> MarkerCatalog:
        directions = {k: v for k, v in self.directions.items() if k is not kind}
        return replace(self, directions=directions)

    def direction_of(self, kind: type) -> Direction | None:
        """Direction declared by a marker kind, or None if not in the catalog."""
        return self.directions.get(kind)

    def is_vocabulary(self, cls: type) -> bool:
        """Check if ``cls`` belongs to the marker vocabulary itself."""
        return (
            cls is Marker
            or cls in self.directions
            or is_parametrized_marker(cls)
            or (self.self_registration_marker is not None and cls is self.self_registration_marker)
        )

    def is_override_name(self, name: str) -> bool:
        """Check if ``name`` follows the override routine naming contract."""
        return name == self.override_name or name.startswith(f"{self.override_name}_")

    def declares_self_registration(self, cls: type) -> bool:
        """Check if ``cls`` itself defines a self-registration callback.

        Inherited callbacks do not count, so a callback runs once for the
        class defining it.
        """
        marker = self.self_registration_marker
        if marker is None or cls is marker:
            return False
        try:
            if not issubclass(cls, marker):
                return False
        except TypeError:
            return False
        return self.self_registration_name in cls.__dict__

    def declared_markers(self, cls: type) -> list[type]:
        """Parametrized catalog markers reachable through ``cls``'s MRO."""
        return [
            klass
            for klass in cls.__mro__
            if is_parametrized_marker(klass) and klass.__dict__["__map_origin__"] in self.directions
        ]

    def declares_mapping(self, cls: type) -> bool:
        """Check if ``cls`` declares any mapping this catalog recognizes."""
        if not isinstance(cls, type) or self.is_vocabulary(cls):
            return False
        return bool(self.declared_markers(cls)) or self.declares_self_registration(cls)


__all__ = ["DEFAULT_OVERRIDE_NAME", "DEFAULT_SELF_REGISTRATION_NAME", "MarkerCatalog"]
