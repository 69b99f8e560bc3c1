"""In-memory configuration fragment produced by ``build_profile``.

A MappingProfile is itself a registration surface. It records every
registration made on it (by convention, by override routines or by
self-registration callbacks) and replays them, in order, onto the real
mapping engine's surface with ``apply_to``.

Customizations made on a registration handle are opaque: any public method
call is recorded with its arguments and replayed on the engine's handle.

Example:
    >>> profile = build_profile([OrderDto, CustomerDto])
    >>> profile.pairs()
    [(OrderDto, Order), (Customer, CustomerDto), (CustomerDto, Customer)]
    >>> profile.apply_to(engine_configuration)
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from .logging import log_debug, log_trace
from .types import qualified_name

if TYPE_CHECKING:
    from .surface import RegistrationSurface
    from .types import BuildReport


@dataclass(frozen=True)
class Customization:
    """One opaque call recorded on a registration handle."""

    method: str
    args: tuple[Any, ...] = ()
    kwargs: dict[str, Any] = field(default_factory=dict)

    def replay(self, handle: Any) -> Any:
        return getattr(handle, self.method)(*self.args, **self.kwargs)


class TypeMapRegistration:
    """Registration handle recorded by a MappingProfile.

    Attributes:
        source: Source class.
        destination: Destination class.
        customizations: Opaque calls recorded on this handle.
        reverse_registration: Registration created by ``reverse()``, if any.
    """

    def __init__(
        self,
        profile: MappingProfile,
        source: type,
        destination: type,
        reverse_of: TypeMapRegistration | None = None,
    ) -> None:
        self._profile = profile
        self.source = source
        self.destination = destination
        self.reverse_of = reverse_of
        self.reverse_registration: TypeMapRegistration | None = None
        self.customizations: list[Customization] = []

    @property
    def pair(self) -> tuple[type, type]:
        return (self.source, self.destination)

    def reverse(self) -> TypeMapRegistration:
        """Additionally register destination -> source.

        Calling it again returns the same reverse registration.

        Returns:
            Handle for the reverse registration.
        """
        if self.reverse_registration is None:
            self.reverse_registration = TypeMapRegistration(
                self._profile, self.destination, self.source, reverse_of=self
            )
            self._profile._record(self.reverse_registration)
        return self.reverse_registration

    def customize(self, method: str, *args: Any, **kwargs: Any) -> TypeMapRegistration:
        """Record an engine-specific customization call by name."""
        self.customizations.append(Customization(method, args, dict(kwargs)))
        return self

    def __getattr__(self, name: str) -> Any:
        if name.startswith("_"):
            raise AttributeError(name)

        def recorder(*args: Any, **kwargs: Any) -> TypeMapRegistration:
            return self.customize(name, *args, **kwargs)

        return recorder

    def __repr__(self) -> str:
        return (
            f"TypeMapRegistration({self.source.__qualname__} -> "
            f"{self.destination.__qualname__}, customizations={len(self.customizations)})"
        )


class MappingProfile:
    """Configuration fragment: an ordered record of registrations.

    Attributes:
        name: Optional profile name (package name for discovered profiles).
        report: Build report when the profile came from ``build_profile``.
    """

    def __init__(self, name: str | None = None) -> None:
        self.name = name
        self.report: BuildReport | None = None
        self._registrations: list[TypeMapRegistration] = []

    def register(self, source: type, destination: type) -> TypeMapRegistration:
        """Record a source -> destination registration.

        Returns:
            Handle for reverse registration and opaque customization.
        """
        registration = TypeMapRegistration(self, source, destination)
        self._record(registration)
        return registration

    def _record(self, registration: TypeMapRegistration) -> None:
        self._registrations.append(registration)
        log_trace(
            f"MappingProfile: Recorded {qualified_name(registration.source)} -> "
            f"{qualified_name(registration.destination)}"
        )

    @property
    def registrations(self) -> list[TypeMapRegistration]:
        """All registrations in recording order, reverse ones included."""
        return list(self._registrations)

    def pairs(self) -> list[tuple[type, type]]:
        """Ordered (source, destination) pairs in recording order."""
        return [r.pair for r in self._registrations]

    def has_mapping(self, source: type, destination: type) -> bool:
        return any(r.pair == (source, destination) for r in self._registrations)

    def find(self, source: type, destination: type) -> list[TypeMapRegistration]:
        """All registrations recorded for one ordered pair."""
        return [r for r in self._registrations if r.pair == (source, destination)]

    def apply_to(self, surface: RegistrationSurface) -> int:
        """Replay every registration onto another surface.

        Reverse registrations are replayed through ``reverse()`` on the
        engine handle of the registration they reverse, following chains of
        reverses; customizations are replayed on the handle they were
        recorded on.

        Args:
            surface: The mapping engine's registration surface.

        Returns:
            Number of registrations replayed.
        """
        replayed = 0
        for registration in self._registrations:
            if registration.reverse_of is not None:
                continue

            handle = surface.register(registration.source, registration.destination)
            current: TypeMapRegistration | None = registration
            while current is not None:
                replayed += 1
                for customization in current.customizations:
                    customization.replay(handle)

                current = current.reverse_registration
                if current is not None:
                    handle = handle.reverse()

        log_debug(
            f"MappingProfile: Applied {replayed} registrations",
            {"profile": self.name or "<anonymous>"},
        )
        return replayed

    def __len__(self) -> int:
        return len(self._registrations)

    def __iter__(self) -> Iterator[TypeMapRegistration]:
        return iter(self._registrations)

    def __repr__(self) -> str:
        return f"MappingProfile(name={self.name!r}, registrations={len(self._registrations)})"


# Name used for the configuration fragment at the host boundary.
ConfigurationFragment = MappingProfile


__all__ = ["ConfigurationFragment", "Customization", "MappingProfile", "TypeMapRegistration"]
