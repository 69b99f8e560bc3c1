"""Registration surface contracts.

The mapping engine is an external collaborator. mapwith only needs a
surface that can register a source -> destination pair and hand back a
handle able to register the reverse pair. Everything else a handle offers
(per-member customization and the like) is opaque and passed through.
"""

from __future__ import annotations

from typing import Any, Generic, Protocol, TypeVar, runtime_checkable

P = TypeVar("P")


@runtime_checkable
class RegistrationHandle(Protocol):
    """Handle returned by ``RegistrationSurface.register``."""

    def reverse(self) -> Any:
        """Additionally register the inverse pair."""
        ...


@runtime_checkable
class RegistrationSurface(Protocol):
    """Configuration surface of the mapping engine.

    Treated as append-only: the resolver never reads registrations back.
    """

    def register(self, source: type, destination: type) -> RegistrationHandle:
        """Register a source -> destination mapping rule."""
        ...


class ScopedProfile(Generic[P]):
    """Registration surface scoped to one (subject, partner) pair.

    Handed to override routines. The parameter annotation
    ``ScopedProfile[Partner]`` is what binds a routine to a partner.

    Attributes:
        profile: The underlying registration surface.
        subject: Class declaring the marker.
        partner: Partner class the routine was bound to.

    Example:
        >>> class OrderDto(MapsTo[Order]):
        ...     def configure_map(self, profile: ScopedProfile[Order]) -> None:
        ...         profile.register_to().for_member("total", source="amount")
    """

    def __init__(self, profile: RegistrationSurface, subject: type, partner: type) -> None:
        self._profile = profile
        self._subject = subject
        self._partner = partner

    @property
    def profile(self) -> RegistrationSurface:
        return self._profile

    @property
    def subject(self) -> type:
        return self._subject

    @property
    def partner(self) -> type:
        return self._partner

    def register(self, source: type, destination: type) -> RegistrationHandle:
        """Register any pair on the underlying surface."""
        return self._profile.register(source, destination)

    def register_to(self) -> RegistrationHandle:
        """Register subject -> partner."""
        return self._profile.register(self._subject, self._partner)

    def register_from(self) -> RegistrationHandle:
        """Register partner -> subject."""
        return self._profile.register(self._partner, self._subject)

    def __repr__(self) -> str:
        return (
            f"ScopedProfile(subject={self._subject.__qualname__}, "
            f"partner={self._partner.__qualname__})"
        )


__all__ = ["RegistrationHandle", "RegistrationSurface", "ScopedProfile"]
