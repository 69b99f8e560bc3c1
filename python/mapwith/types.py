"""Core data types for mapwith.

Intents, override handles, construction results and build reports are
plain dataclasses created per configuration pass. Options and logging
context are Pydantic v2 models so they can be validated when loaded from
the environment or a YAML file.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field


def qualified_name(obj: Any) -> str:
    """Return a readable ``module.QualName`` for a class (or repr otherwise)."""
    if isinstance(obj, type):
        return f"{obj.__module__}.{obj.__qualname__}"
    return repr(obj)


class Direction(str, Enum):
    """Direction declared by a mapping marker, relative to its subject."""

    TO_PARTNER = "to_partner"
    """Register subject -> partner."""

    FROM_PARTNER = "from_partner"
    """Register partner -> subject."""

    BIDIRECTIONAL = "bidirectional"
    """Register subject -> partner and partner -> subject."""


class IntentKind(str, Enum):
    """What kind of declaration produced an intent."""

    MARKER = "marker"
    SELF_REGISTRATION = "self_registration"


class RoutineKind(str, Enum):
    """How an override routine is bound on its subject class."""

    INSTANCE = "instance"
    CLASS = "class"
    STATIC = "static"

    @property
    def needs_instance(self) -> bool:
        return self is RoutineKind.INSTANCE


@dataclass(frozen=True)
class OverrideHandle:
    """A partner-specific override routine found on a subject class.

    Attributes:
        name: Attribute name of the routine on the subject class.
        partner: Partner class the routine's parameter is typed for.
        kind: Instance, class or static routine.
    """

    name: str
    partner: type
    kind: RoutineKind


@dataclass(frozen=True)
class MappingIntent:
    """Normalized form of one declared marker on one subject class.

    Attributes:
        subject: The class carrying the declaration.
        partner: The class the marker pairs with (None for self-registration).
        direction: Marker direction (None for self-registration).
        kind: Marker intent or opaque self-registration intent.
        override: Override routine replacing the default registration.
        abstract: The subject is abstract (ABC, Protocol or marker class).

    Example:
        >>> intent = MappingIntent(OrderDto, Order, Direction.TO_PARTNER)
        >>> intent.default_pairs()
        [(OrderDto, Order)]
    """

    subject: type
    partner: type | None
    direction: Direction | None
    kind: IntentKind = IntentKind.MARKER
    override: OverrideHandle | None = None
    abstract: bool = False

    @classmethod
    def self_registration(cls, subject: type, abstract: bool = False) -> MappingIntent:
        """Create the opaque intent for a class carrying a self-registration callback."""
        return cls(
            subject=subject,
            partner=None,
            direction=None,
            kind=IntentKind.SELF_REGISTRATION,
            abstract=abstract,
        )

    @property
    def is_self_registration(self) -> bool:
        return self.kind is IntentKind.SELF_REGISTRATION

    @property
    def has_override(self) -> bool:
        return self.override is not None

    def default_pairs(self) -> list[tuple[type, type]]:
        """Ordered (source, destination) pairs the default convention registers.

        Returns:
            Pairs in registration order; empty for self-registration intents.
        """
        if self.is_self_registration or self.partner is None:
            return []

        if self.direction is Direction.TO_PARTNER:
            return [(self.subject, self.partner)]
        elif self.direction is Direction.FROM_PARTNER:
            return [(self.partner, self.subject)]
        elif self.direction is Direction.BIDIRECTIONAL:
            return [(self.subject, self.partner), (self.partner, self.subject)]

        raise ValueError(f"Unknown mapping direction: {self.direction!r}")

    def describe(self) -> str:
        if self.is_self_registration:
            return f"{qualified_name(self.subject)} (self-registration)"
        direction = self.direction.value if self.direction is not None else "undirected"
        return f"{qualified_name(self.subject)} {direction} {qualified_name(self.partner)}"


@dataclass(frozen=True)
class Construction:
    """Tagged result of trying to default-construct a subject class."""

    subject: type
    instance: Any = None
    error: BaseException | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def succeeded(cls, subject: type, instance: Any) -> Construction:
        return cls(subject=subject, instance=instance)

    @classmethod
    def failed(cls, subject: type, error: BaseException) -> Construction:
        return cls(subject=subject, error=error)


@dataclass
class RegistrationRequest:
    """Declarations seen for one unordered pair of classes during a pass.

    Attributes:
        pair: The two classes involved (a single class for self-maps).
        seen_directions: Ordered (source, destination) pairs already
            requested, each with the classes that declared it.
    """

    pair: frozenset[type]
    seen_directions: dict[tuple[type, type], list[type]] = field(default_factory=dict)

    def declared_by(self, source: type, destination: type) -> list[type]:
        return self.seen_directions.get((source, destination), [])

    def has_direction(self, source: type, destination: type) -> bool:
        return (source, destination) in self.seen_directions


@dataclass
class BuildReport:
    """Summary of what one build pass did.

    Attributes:
        defaults: Ordered (source, destination) pairs registered by convention.
        overrides: (subject, partner, routine name) for invoked overrides.
        self_registrations: Classes whose self-registration callback ran.
        fallbacks: (subject, partner) overrides replaced by the default
            registration because the subject could not be constructed.
        skipped: Abstract subjects whose marker intents were ignored.
        duplicates: Duplicate default declarations collapsed in lenient mode.
    """

    defaults: list[tuple[type, type]] = field(default_factory=list)
    overrides: list[tuple[type, type, str]] = field(default_factory=list)
    self_registrations: list[type] = field(default_factory=list)
    fallbacks: list[tuple[type, type]] = field(default_factory=list)
    skipped: list[type] = field(default_factory=list)
    duplicates: int = 0

    @property
    def registration_count(self) -> int:
        return len(self.defaults)

    def to_dict(self) -> dict[str, Any]:
        return {
            "defaults": [
                (qualified_name(s), qualified_name(d)) for s, d in self.defaults
            ],
            "overrides": [
                (qualified_name(s), qualified_name(p), name)
                for s, p, name in self.overrides
            ],
            "self_registrations": [qualified_name(s) for s in self.self_registrations],
            "fallbacks": [
                (qualified_name(s), qualified_name(p)) for s, p in self.fallbacks
            ],
            "skipped": [qualified_name(s) for s in self.skipped],
            "duplicates": self.duplicates,
        }


class MappingOptions(BaseModel):
    """Options controlling one profile build.

    Example:
        >>> options = MappingOptions(strict_duplicate_detection=True)
        >>> profile = build_profile([OrderDto], options=options)
    """

    strict_duplicate_detection: bool = Field(
        default=False,
        description="Raise DuplicateMappingConflictError when a default pair is declared twice.",
    )
    track_self_registrations: bool = Field(
        default=False,
        description=(
            "In strict mode, also check pairs registered by self-registration "
            "callbacks against default registrations and each other."
        ),
    )
    warn_on_override_fallback: bool = Field(
        default=True,
        description=(
            "Log a warning when an instance override is replaced by the default "
            "registration because its subject cannot be constructed."
        ),
    )
    skip_abstract: bool = Field(
        default=True,
        description="Ignore marker intents declared on abstract classes and protocols.",
    )

    model_config = {"extra": "forbid"}


class LogContext(BaseModel):
    """Context fields for structured logging.

    Example:
        >>> context = LogContext(subject="app.OrderDto", partner="app.Order")
        >>> log_debug("Registered default mapping", context)
    """

    subject: str | None = Field(
        default=None,
        description="Qualified name of the class being resolved.",
    )
    partner: str | None = Field(
        default=None,
        description="Qualified name of the partner class.",
    )
    direction: str | None = Field(
        default=None,
        description="Mapping direction.",
    )
    operation: str | None = Field(
        default=None,
        description="Operation being performed.",
    )
    profile: str | None = Field(
        default=None,
        description="Name of the profile being built.",
    )


__all__ = [
    "BuildReport",
    "Construction",
    "Direction",
    "IntentKind",
    "LogContext",
    "MappingIntent",
    "MappingOptions",
    "OverrideHandle",
    "RegistrationRequest",
    "RoutineKind",
    "qualified_name",
]
