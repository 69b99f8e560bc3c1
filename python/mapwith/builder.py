"""Profile builder: resolves intents into registrations.

A build pass runs in three phases so that every configuration error is
raised before the surface sees a single registration:

1. Classify every candidate class (ambiguous overrides abort here).
2. Plan: turn each intent into a default registration, an override
   invocation or a self-registration invocation, checking default pairs
   for duplicates (strict mode raises, lenient mode registers once).
3. Apply the plan to the surface: defaults, then overrides, then
   self-registrations.

The builder keeps no state between passes; each ``build`` call owns its
own request ledger.

Usage:
    # Build a standalone configuration fragment
    profile = build_profile([OrderDto, CustomerDto])
    profile.apply_to(engine_configuration)

    # Or register straight onto an engine surface
    report = ProfileBuilder(MappingOptions(strict_duplicate_detection=True)).build(
        candidate_types, engine_configuration
    )
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from typing import Any

from .catalog import MarkerCatalog
from .classifier import TypeClassifier
from .exceptions import DuplicateMappingConflictError
from .logging import log_debug, log_info, log_trace, log_warn
from .profile import MappingProfile
from .surface import RegistrationSurface, ScopedProfile
from .types import (
    BuildReport,
    Construction,
    Direction,
    LogContext,
    MappingIntent,
    MappingOptions,
    OverrideHandle,
    RegistrationRequest,
    qualified_name,
)


def can_construct(subject: type) -> Construction:
    """Try to default-construct ``subject``.

    Args:
        subject: Class to construct without arguments.

    Returns:
        Construction carrying the instance, or the error that prevented it.
    """
    try:
        instance = subject()
    except Exception as e:
        return Construction.failed(subject, e)
    return Construction.succeeded(subject, instance)


class RequestLedger:
    """Tracks which ordered pairs were requested during one pass.

    Keyed by the unordered pair of classes; each entry records the ordered
    directions requested so far and the classes that declared them.
    """

    def __init__(self, strict: bool) -> None:
        self._strict = strict
        self._requests: dict[frozenset[type], RegistrationRequest] = {}
        self.duplicates = 0

    @property
    def strict(self) -> bool:
        return self._strict

    def request(self, source: type, destination: type, declared_by: type) -> bool:
        """Record a request for source -> destination.

        Returns:
            True if the pair is new and should be registered.

        Raises:
            DuplicateMappingConflictError: In strict mode, if the pair was
                already requested.
        """
        key = frozenset((source, destination))
        entry = self._requests.get(key)
        if entry is None:
            entry = RegistrationRequest(pair=key)
            self._requests[key] = entry

        previous = entry.declared_by(source, destination)
        if previous:
            if self._strict:
                raise DuplicateMappingConflictError(source, destination, declared_by, previous)
            previous.append(declared_by)
            self.duplicates += 1
            log_debug(
                "RequestLedger: Duplicate default declaration collapsed",
                LogContext(
                    subject=qualified_name(declared_by),
                    partner=qualified_name(destination if source is declared_by else source),
                ),
            )
            return False

        entry.seen_directions[(source, destination)] = [declared_by]
        return True

    def get(self, source: type, destination: type) -> RegistrationRequest | None:
        return self._requests.get(frozenset((source, destination)))

    def __len__(self) -> int:
        return len(self._requests)


@dataclass
class _DefaultRegistration:
    source: type
    destination: type
    reverse: bool
    declared_by: type


@dataclass
class _OverrideInvocation:
    subject: type
    partner: type
    name: str
    routine: Callable[[ScopedProfile[Any]], Any]


@dataclass
class _BuildPlan:
    ledger: RequestLedger
    defaults: list[_DefaultRegistration] = field(default_factory=list)
    overrides: list[_OverrideInvocation] = field(default_factory=list)
    callbacks: list[MappingIntent] = field(default_factory=list)
    report: BuildReport = field(default_factory=BuildReport)


class ProfileBuilder:
    """Resolves the mapping intents of a batch of classes.

    Attributes:
        options: Build options.
        classifier: Classifier used for every candidate class.

    Example:
        >>> builder = ProfileBuilder()
        >>> report = builder.build([OrderDto], engine_configuration)
        >>> report.defaults
        [(OrderDto, Order)]
    """

    def __init__(
        self,
        options: MappingOptions | None = None,
        catalog: MarkerCatalog | None = None,
        classifier: TypeClassifier | None = None,
    ) -> None:
        self._options = options or MappingOptions()
        self._classifier = classifier or TypeClassifier(catalog)

    @property
    def options(self) -> MappingOptions:
        return self._options

    @property
    def classifier(self) -> TypeClassifier:
        return self._classifier

    def build(
        self,
        candidate_types: Iterable[type],
        surface: RegistrationSurface,
    ) -> BuildReport:
        """Classify, plan and apply the registrations for a batch.

        Args:
            candidate_types: Classes to resolve; duplicates are ignored.
            surface: Registration surface receiving every registration.

        Returns:
            Report of what was registered.

        Raises:
            AmbiguousOverrideError: From classification, before any registration.
            MarkerResolutionError: From classification, before any registration.
            DuplicateMappingConflictError: In strict mode, before any
                registration (or, with ``track_self_registrations``, while a
                self-registration callback runs).
        """
        subjects = list(dict.fromkeys(candidate_types))
        log_debug(
            f"ProfileBuilder: Building mappings for {len(subjects)} candidate types",
            {"strict": self._options.strict_duplicate_detection},
        )

        intents = [intent for subject in subjects for intent in self._classifier.classify(subject)]
        plan = self._plan(intents)
        self._apply(plan, surface)

        report = plan.report
        log_info(
            "ProfileBuilder: Mappings built",
            {
                "candidates": len(subjects),
                "defaults": len(report.defaults),
                "overrides": len(report.overrides),
                "self_registrations": len(report.self_registrations),
                "fallbacks": len(report.fallbacks),
            },
        )
        return report

    def _plan(self, intents: list[MappingIntent]) -> _BuildPlan:
        plan = _BuildPlan(ledger=RequestLedger(self._options.strict_duplicate_detection))
        constructions: dict[type, Construction] = {}

        for intent in intents:
            if intent.is_self_registration:
                plan.callbacks.append(intent)
                continue

            subject, partner, direction = intent.subject, intent.partner, intent.direction
            if partner is None or direction is None:
                raise ValueError(f"Marker intent without partner or direction: {intent!r}")

            if intent.abstract and self._options.skip_abstract:
                if subject not in plan.report.skipped:
                    plan.report.skipped.append(subject)
                    log_debug(
                        "ProfileBuilder: Skipping abstract subject",
                        LogContext(subject=qualified_name(subject)),
                    )
                continue

            handle = intent.override
            if handle is not None:
                routine = self._override_routine(subject, handle, constructions)
                if routine is not None:
                    plan.overrides.append(
                        _OverrideInvocation(subject, partner, handle.name, routine)
                    )
                    continue
                self._record_fallback(subject, partner, handle, constructions[subject], plan.report)

            self._plan_default(subject, partner, direction, plan)

        plan.report.duplicates = plan.ledger.duplicates
        return plan

    def _override_routine(
        self,
        subject: type,
        handle: OverrideHandle,
        constructions: dict[type, Construction],
    ) -> Callable[[ScopedProfile[Any]], Any] | None:
        if not handle.kind.needs_instance:
            return getattr(subject, handle.name)

        construction = constructions.get(subject)
        if construction is None:
            construction = can_construct(subject)
            constructions[subject] = construction

        if not construction.ok:
            return None
        return getattr(construction.instance, handle.name)

    def _record_fallback(
        self,
        subject: type,
        partner: type,
        handle: OverrideHandle,
        construction: Construction,
        report: BuildReport,
    ) -> None:
        report.fallbacks.append((subject, partner))

        message = (
            f"ProfileBuilder: Cannot construct {subject.__qualname__} to run "
            f"override '{handle.name}', using default mapping"
        )
        context = {
            "subject": qualified_name(subject),
            "partner": qualified_name(partner),
            "error": f"{type(construction.error).__name__}: {construction.error}",
        }
        if self._options.warn_on_override_fallback:
            log_warn(message, context)
        else:
            log_debug(message, context)

    def _plan_default(
        self,
        subject: type,
        partner: type,
        direction: Direction,
        plan: _BuildPlan,
    ) -> None:
        ledger = plan.ledger

        if direction is Direction.TO_PARTNER:
            if ledger.request(subject, partner, subject):
                plan.defaults.append(_DefaultRegistration(subject, partner, False, subject))
        elif direction is Direction.FROM_PARTNER:
            if ledger.request(partner, subject, subject):
                plan.defaults.append(_DefaultRegistration(partner, subject, False, subject))
        elif direction is Direction.BIDIRECTIONAL:
            forward = ledger.request(subject, partner, subject)
            backward = ledger.request(partner, subject, subject)
            if forward:
                plan.defaults.append(_DefaultRegistration(subject, partner, backward, subject))
            elif backward:
                plan.defaults.append(_DefaultRegistration(partner, subject, False, subject))
        else:
            raise ValueError(f"Unknown mapping direction: {direction!r}")

    def _apply(self, plan: _BuildPlan, surface: RegistrationSurface) -> None:
        report = plan.report

        for registration in plan.defaults:
            handle = surface.register(registration.source, registration.destination)
            report.defaults.append((registration.source, registration.destination))
            if registration.reverse:
                handle.reverse()
                report.defaults.append((registration.destination, registration.source))
            log_trace(
                f"ProfileBuilder: Registered default {qualified_name(registration.source)} -> "
                f"{qualified_name(registration.destination)}"
                + (" (with reverse)" if registration.reverse else "")
            )

        for invocation in plan.overrides:
            log_debug(
                f"ProfileBuilder: Invoking override '{invocation.name}'",
                LogContext(
                    subject=qualified_name(invocation.subject),
                    partner=qualified_name(invocation.partner),
                ),
            )
            invocation.routine(ScopedProfile(surface, invocation.subject, invocation.partner))
            report.overrides.append((invocation.subject, invocation.partner, invocation.name))

        tracking = (
            self._options.strict_duplicate_detection and self._options.track_self_registrations
        )
        callback_name = self._classifier.catalog.self_registration_name

        for intent in plan.callbacks:
            callback = getattr(intent.subject, callback_name)
            target: RegistrationSurface = (
                TrackingSurface(surface, plan.ledger, intent.subject) if tracking else surface
            )
            log_debug(
                "ProfileBuilder: Invoking self-registration callback",
                LogContext(subject=qualified_name(intent.subject)),
            )
            callback(target)
            report.self_registrations.append(intent.subject)


class TrackingSurface:
    """Surface wrapper checking callback registrations against the ledger.

    Used for self-registration callbacks when both strict duplicate
    detection and ``track_self_registrations`` are enabled.
    """

    def __init__(
        self,
        surface: RegistrationSurface,
        ledger: RequestLedger,
        declared_by: type,
    ) -> None:
        self._surface = surface
        self._ledger = ledger
        self._declared_by = declared_by

    def register(self, source: type, destination: type) -> TrackingHandle:
        self._ledger.request(source, destination, self._declared_by)
        handle = self._surface.register(source, destination)
        return TrackingHandle(handle, self._ledger, self._declared_by, source, destination)

    def __getattr__(self, name: str) -> Any:
        return getattr(self._surface, name)


class TrackingHandle:
    """Handle wrapper tracking ``reverse()`` and delegating everything else."""

    def __init__(
        self,
        handle: Any,
        ledger: RequestLedger,
        declared_by: type,
        source: type,
        destination: type,
    ) -> None:
        self._handle = handle
        self._ledger = ledger
        self._declared_by = declared_by
        self._source = source
        self._destination = destination

    def unwrap(self) -> Any:
        return self._handle

    def reverse(self) -> TrackingHandle:
        self._ledger.request(self._destination, self._source, self._declared_by)
        reversed_handle = self._handle.reverse()
        return TrackingHandle(
            reversed_handle, self._ledger, self._declared_by, self._destination, self._source
        )

    def __getattr__(self, name: str) -> Any:
        attr = getattr(self._handle, name)
        if not callable(attr):
            return attr

        def delegate(*args: Any, **kwargs: Any) -> Any:
            result = attr(*args, **kwargs)
            # keep chained customizations tracked
            return self if result is self._handle else result

        return delegate


def build_profile(
    candidate_types: Iterable[type],
    options: MappingOptions | None = None,
    catalog: MarkerCatalog | None = None,
    name: str | None = None,
) -> MappingProfile:
    """Build a configuration fragment for a batch of classes.

    Args:
        candidate_types: Classes to resolve.
        options: Build options (defaults to lenient mode).
        catalog: Marker vocabulary (defaults to MarkerCatalog.default()).
        name: Optional profile name.

    Returns:
        MappingProfile holding every registration, with ``report`` set.

    Example:
        >>> profile = build_profile([OrderDto])
        >>> profile.has_mapping(OrderDto, Order)
        True
    """
    profile = MappingProfile(name=name)
    profile.report = ProfileBuilder(options, catalog).build(candidate_types, profile)
    return profile


__all__ = [
    "ProfileBuilder",
    "RequestLedger",
    "TrackingHandle",
    "TrackingSurface",
    "build_profile",
    "can_construct",
]
