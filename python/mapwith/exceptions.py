"""Exception hierarchy for mapwith.

Every error raised by the resolver inherits from MappingError, so hosts can
fail configuration at startup with a single except clause. Errors raised by
user override routines and self-registration callbacks are never wrapped.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from .types import qualified_name


class MappingError(Exception):
    """Base class for all mapwith errors.

    Attributes:
        message: Human-readable error message.
        metadata: Additional error context.

    Example:
        >>> try:
        ...     profile = build_profile(candidate_types)
        ... except MappingError as e:
        ...     print(f"Mapping configuration failed: {e}")
    """

    def __init__(self, message: str, *, metadata: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.metadata = metadata or {}

    def to_dict(self) -> dict[str, Any]:
        """Convert to a dictionary for structured logging.

        Returns:
            Dictionary with error details.
        """
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "metadata": self.metadata,
        }


class AmbiguousOverrideError(MappingError):
    """More than one override routine is bound to the same partner.

    Raised while classifying the subject, so the whole batch is aborted
    before anything is registered.

    Example:
        >>> class OrderDto(MapsFrom[Order]):
        ...     def configure_map(self, profile: ScopedProfile[Order]) -> None: ...
        ...     @map_override(Order)
        ...     def customize(self, profile) -> None: ...
        >>> TypeClassifier().classify(OrderDto)
        Traceback (most recent call last):
        AmbiguousOverrideError: ...
    """

    def __init__(self, subject: type, partner: type, routines: Sequence[str]) -> None:
        self.subject = subject
        self.partner = partner
        self.routines = tuple(routines)
        super().__init__(
            f"Ambiguous override routines for {qualified_name(subject)} -> "
            f"{qualified_name(partner)}: {', '.join(self.routines)}",
            metadata={
                "subject": qualified_name(subject),
                "partner": qualified_name(partner),
                "routines": list(self.routines),
            },
        )


class DuplicateMappingConflictError(MappingError):
    """The same default source/destination pair was declared twice.

    Only raised when strict duplicate detection is enabled. Names the class
    that declared the pair last and every class that declared it before.

    Example:
        >>> options = MappingOptions(strict_duplicate_detection=True)
        >>> try:
        ...     build_profile([OrderDto, Order], options=options)
        ... except DuplicateMappingConflictError as e:
        ...     print(e.previously_declared_by)
    """

    def __init__(
        self,
        source: type,
        destination: type,
        declared_by: type,
        previously_declared_by: Sequence[type],
    ) -> None:
        self.source = source
        self.destination = destination
        self.declared_by = declared_by
        self.previously_declared_by = tuple(previously_declared_by)
        previous = ", ".join(qualified_name(t) for t in self.previously_declared_by)
        super().__init__(
            f"Duplicate mapping {qualified_name(source)} -> {qualified_name(destination)} "
            f"declared by {qualified_name(declared_by)}; previously declared by {previous}",
            metadata={
                "source": qualified_name(source),
                "destination": qualified_name(destination),
                "declared_by": qualified_name(declared_by),
                "previously_declared_by": [
                    qualified_name(t) for t in self.previously_declared_by
                ],
            },
        )

    @property
    def declaring_types(self) -> tuple[type, ...]:
        """All classes involved in the conflict, earliest first."""
        return (*self.previously_declared_by, self.declared_by)


class MarkerResolutionError(MappingError):
    """A string partner reference on a marker could not be resolved.

    Example:
        >>> class OrderDto(MapsTo["Missing"]):
        ...     pass
        >>> TypeClassifier().classify(OrderDto)
        Traceback (most recent call last):
        MarkerResolutionError: ...
    """

    def __init__(self, subject: type, reference: str) -> None:
        self.subject = subject
        self.reference = reference
        super().__init__(
            f"Cannot resolve partner reference {reference!r} declared on "
            f"{qualified_name(subject)}",
            metadata={"subject": qualified_name(subject), "reference": reference},
        )


class ConfigurationError(MappingError):
    """Mapping options could not be loaded or validated.

    Example:
        >>> os.environ["MAPWITH_STRICT_DUPLICATES"] = "maybe"
        >>> options_from_env()
        Traceback (most recent call last):
        ConfigurationError: ...
    """

    pass


__all__ = [
    "MappingError",
    "AmbiguousOverrideError",
    "DuplicateMappingConflictError",
    "MarkerResolutionError",
    "ConfigurationError",
]
