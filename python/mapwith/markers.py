"""Marker vocabulary classes declare their mapping intents with.

Markers are parametrized base classes. ``MapsTo[Order]`` is a real,
cached subclass of ``MapsTo`` carrying its partner, so one class can
declare several partners of the same kind side by side::

    class OrderDto(MapsFrom[Order], MapsFrom[LegacyOrder]):
        ...

    class CustomerDto(MapsWith[Customer]):
        def configure_map(self, profile: ScopedProfile[Customer]) -> None:
            profile.register_from().for_member("full_name", source="name")

    class AuditRecord(HasCustomMap):
        @staticmethod
        def map(profile) -> None:
            profile.register(Order, AuditRecord)

Partners may be given as strings; they are resolved against the declaring
class's module when the class is classified.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, Callable, ClassVar, TypeVar

if TYPE_CHECKING:
    from .surface import RegistrationSurface

F = TypeVar("F", bound=Callable[..., Any])

PARTNER_ATTRIBUTE = "__map_partner__"
ORIGIN_ATTRIBUTE = "__map_origin__"


class Marker:
    """Base for parametrizable mapping markers.

    Subclass it to add a marker kind to a custom MarkerCatalog. Only the
    parametrized form (``Kind[Partner]``) carries a declaration; the bare
    kinds are vocabulary.
    """

    __map_origin__: ClassVar[type | None] = None
    __map_partner__: ClassVar[type | str | None] = None

    _parametrized: ClassVar[dict[type | str, type]]

    def __init_subclass__(cls, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        cls._parametrized = {}

    def __class_getitem__(cls, partner: type | str) -> type:
        if any(is_parametrized_marker(klass) for klass in cls.__mro__):
            raise TypeError(f"{cls.__name__} is not a marker kind and cannot be parametrized")
        if cls is Marker:
            raise TypeError("Marker itself cannot be parametrized; subclass it first")
        if not isinstance(partner, (type, str)):
            raise TypeError(
                f"{cls.__name__}[...] expects a class or a string reference, got {partner!r}"
            )

        cached = cls._parametrized.get(partner)
        if cached is not None:
            return cached

        label = partner if isinstance(partner, str) else partner.__qualname__
        name = f"{cls.__name__}[{label}]"
        parametrized = type(
            name,
            (cls,),
            {
                ORIGIN_ATTRIBUTE: cls,
                PARTNER_ATTRIBUTE: partner,
                "__module__": cls.__module__,
                "__qualname__": f"{cls.__qualname__}[{label}]",
            },
        )
        cls._parametrized[partner] = parametrized
        return parametrized


class MapsWith(Marker):
    """Bidirectional marker: registers subject -> partner and the reverse."""


class MapsTo(MapsWith):
    """Registers subject -> partner."""


class MapsFrom(MapsWith):
    """Registers partner -> subject."""


class HasCustomMap(ABC):
    """Marker for classes that register their own mappings.

    The class must define a static (or class) ``map`` callback taking the
    registration surface. It is invoked once per build pass for every class
    that defines it directly; subclasses inheriting the callback do not run
    it again.
    """

    @staticmethod
    @abstractmethod
    def map(profile: RegistrationSurface) -> None:
        """Register arbitrary mappings on ``profile``."""
        ...


def map_override(partner: type | str) -> Callable[[F], F]:
    """Bind a routine as the override for one partner regardless of its name.

    Args:
        partner: Partner class (or string reference) the routine configures.

    Example:
        >>> class OrderDto(MapsFrom[Order], MapsFrom[LegacyOrder]):
        ...     @map_override(LegacyOrder)
        ...     def legacy(self, profile) -> None:
        ...         profile.register_from().for_member("id", source="legacy_id")
    """

    def decorator(routine: F) -> F:
        target = getattr(routine, "__func__", routine)
        setattr(target, PARTNER_ATTRIBUTE, partner)
        return routine

    return decorator


def is_parametrized_marker(cls: type) -> bool:
    """Check if ``cls`` is a parametrized marker such as ``MapsTo[Order]``."""
    return cls.__dict__.get(ORIGIN_ATTRIBUTE) is not None


__all__ = [
    "HasCustomMap",
    "MapsFrom",
    "MapsTo",
    "MapsWith",
    "Marker",
    "is_parametrized_marker",
    "map_override",
]
