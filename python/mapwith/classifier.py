"""Type classifier: declared markers -> MappingIntent records.

Classification is a pure read of class metadata. It never constructs the
subject and never registers anything, so classifying the same class twice
yields equal intents.

Resolution Contract:
1. Walk the subject's MRO; every parametrized marker whose kind is in the
   catalog becomes one intent (inherited markers count).
2. String partners are resolved in the module of the class declaring the
   marker; a marker pointing at the subject itself is ignored.
3. Override routines are collected once per class: routines tagged with
   ``@map_override(Partner)`` or named after the catalog's override name
   whose single parameter is annotated ``ScopedProfile[Partner]``. When
   the routine's annotations cannot all be evaluated, the parameter's own
   annotation is read and its partner resolved among the routine's
   globals, closure and the declared partners; an unknown partner name
   is a resolution error.
4. More than one routine for a declared partner is ambiguous.
5. A class defining a self-registration callback gets one extra opaque
   intent.
"""

from __future__ import annotations

import inspect
import re
import sys
import typing
from collections.abc import Iterable, Iterator
from typing import Any, ForwardRef

from .catalog import MarkerCatalog
from .exceptions import AmbiguousOverrideError, MarkerResolutionError
from .logging import log_debug, log_trace
from .markers import ORIGIN_ATTRIBUTE, PARTNER_ATTRIBUTE
from .surface import ScopedProfile
from .types import (
    Direction,
    LogContext,
    MappingIntent,
    OverrideHandle,
    RoutineKind,
    qualified_name,
)


class TypeClassifier:
    """Turns one class into its declared mapping intents.

    Example:
        >>> classifier = TypeClassifier()
        >>> classifier.classify(OrderDto)
        (MappingIntent(subject=OrderDto, partner=Order, direction=<Direction.TO_PARTNER ...>),)
    """

    def __init__(self, catalog: MarkerCatalog | None = None) -> None:
        self._catalog = catalog or MarkerCatalog.default()

    @property
    def catalog(self) -> MarkerCatalog:
        return self._catalog

    def classify(self, subject: type) -> tuple[MappingIntent, ...]:
        """Classify one class.

        Args:
            subject: Any class; abstract classes and protocols are accepted.

        Returns:
            Intents in MRO declaration order, self-registration last.

        Raises:
            TypeError: If ``subject`` is not a class.
            AmbiguousOverrideError: If two routines override the same partner.
            MarkerResolutionError: If a string partner cannot be resolved.
        """
        if not isinstance(subject, type):
            raise TypeError(f"Only classes can be classified, got {subject!r}")

        abstract = self._is_abstract(subject)
        declared = self._declared_partners(subject)
        overrides = self._override_registry(subject, {p for _, p in declared}) if declared else {}

        intents = [
            MappingIntent(
                subject=subject,
                partner=partner,
                direction=direction,
                override=overrides.get(partner),
                abstract=abstract,
            )
            for direction, partner in declared
        ]

        if self._catalog.declares_self_registration(subject):
            intents.append(MappingIntent.self_registration(subject, abstract=abstract))

        for intent in intents:
            log_trace(f"TypeClassifier: {intent.describe()}")

        return tuple(intents)

    def classify_all(self, subjects: Iterable[type]) -> IntentSequence:
        """Lazy, restartable intent sequence over many classes."""
        return IntentSequence(self, subjects)

    def _is_abstract(self, subject: type) -> bool:
        return (
            inspect.isabstract(subject)
            or bool(getattr(subject, "_is_protocol", False))
            or self._catalog.is_vocabulary(subject)
        )

    def _declared_partners(self, subject: type) -> list[tuple[Direction, type]]:
        declared: list[tuple[Direction, type]] = []

        for marker in self._catalog.declared_markers(subject):
            direction = self._catalog.direction_of(marker.__dict__[ORIGIN_ATTRIBUTE])
            if direction is None:
                continue

            owner = self._declaring_class(subject, marker)
            partner = resolve_reference(owner, marker.__dict__[PARTNER_ATTRIBUTE])

            if partner is subject:
                log_debug(
                    "TypeClassifier: Ignoring marker pointing at its own subject",
                    LogContext(subject=qualified_name(subject), direction=direction.value),
                )
                continue

            declared.append((direction, partner))

        return declared

    @staticmethod
    def _declaring_class(subject: type, marker: type) -> type:
        for klass in subject.__mro__:
            if marker in klass.__bases__:
                return klass
        return subject

    def _override_registry(
        self,
        subject: type,
        partners: set[type],
    ) -> dict[type, OverrideHandle]:
        """Bind override routines to partners, once per class."""
        candidates: dict[type, list[OverrideHandle]] = {}

        for name in dir(subject):
            if name.startswith("__"):
                continue

            try:
                raw = inspect.getattr_static(subject, name)
            except AttributeError:
                continue

            routine, kind = _unwrap_routine(raw)
            if routine is None or kind is None:
                continue

            partner = self._routine_partner(subject, name, routine, kind, partners)
            if partner is None:
                continue

            if partner not in partners:
                log_debug(
                    f"TypeClassifier: Override '{name}' targets an undeclared partner, ignoring",
                    LogContext(subject=qualified_name(subject), partner=qualified_name(partner)),
                )
                continue

            candidates.setdefault(partner, []).append(OverrideHandle(name, partner, kind))

        registry: dict[type, OverrideHandle] = {}
        for partner, handles in candidates.items():
            if len(handles) > 1:
                raise AmbiguousOverrideError(subject, partner, [h.name for h in handles])
            registry[partner] = handles[0]
        return registry

    def _routine_partner(
        self,
        subject: type,
        name: str,
        routine: Any,
        kind: RoutineKind,
        partners: set[type],
    ) -> type | None:
        tagged = getattr(routine, PARTNER_ATTRIBUTE, None)
        if tagged is not None:
            return resolve_routine_reference(subject, routine, tagged, partners)

        if not self._catalog.is_override_name(name):
            return None

        partner = _annotated_partner(
            subject, routine, skip_first=kind is not RoutineKind.STATIC, partners=partners
        )
        if partner is None:
            log_debug(
                f"TypeClassifier: Routine '{name}' is not typed for a specific partner, ignoring",
                LogContext(subject=qualified_name(subject)),
            )
        return partner


class IntentSequence:
    """Restartable view over the intents of several classes.

    Each iteration re-classifies the classes, so iterating twice yields
    identical intents.
    """

    def __init__(self, classifier: TypeClassifier, subjects: Iterable[type]) -> None:
        self._classifier = classifier
        self._subjects = tuple(subjects)

    def __iter__(self) -> Iterator[MappingIntent]:
        for subject in self._subjects:
            yield from self._classifier.classify(subject)

    def __len__(self) -> int:
        return len(self._subjects)


def resolve_reference(owner: type, reference: Any) -> type:
    """Resolve a partner given as a class, string or ForwardRef.

    Strings are looked up in the module that defines ``owner``; dotted
    strings walk attributes from the first name.

    Raises:
        MarkerResolutionError: If the reference does not name a class.
    """
    if isinstance(reference, ForwardRef):
        reference = reference.__forward_arg__
    if isinstance(reference, type):
        return reference
    if not isinstance(reference, str):
        raise MarkerResolutionError(owner, repr(reference))

    module = sys.modules.get(owner.__module__)
    namespace: dict[str, Any] = dict(vars(module)) if module is not None else {}
    namespace.setdefault(owner.__name__, owner)

    resolved = _lookup(namespace, reference)
    if not isinstance(resolved, type):
        raise MarkerResolutionError(owner, reference)
    return resolved


def _lookup(namespace: dict[str, Any], reference: str) -> Any:
    head, *rest = reference.split(".")
    resolved = namespace.get(head)
    for attr in rest:
        resolved = getattr(resolved, attr, None)
    return resolved


def _routine_namespace(subject: type, routine: Any, partners: set[type]) -> dict[str, Any]:
    """Names visible to a routine's annotations.

    Routine globals, then the subject's module, then the routine's closure,
    then the declared partners by name (so classes local to a function
    still resolve).
    """
    namespace: dict[str, Any] = dict(getattr(routine, "__globals__", {}))

    module = sys.modules.get(subject.__module__)
    if module is not None:
        namespace.update(vars(module))

    if inspect.isfunction(routine):
        namespace.update(inspect.getclosurevars(routine).nonlocals)

    namespace.setdefault(subject.__name__, subject)
    namespace.update({partner.__name__: partner for partner in partners})
    return namespace


def resolve_routine_reference(
    subject: type,
    routine: Any,
    reference: Any,
    partners: set[type],
) -> type:
    """Resolve a partner reference attached to one of ``subject``'s routines.

    Raises:
        MarkerResolutionError: If the reference does not name a class.
    """
    if isinstance(reference, ForwardRef):
        reference = reference.__forward_arg__
    if isinstance(reference, type):
        return reference
    if not isinstance(reference, str):
        raise MarkerResolutionError(subject, repr(reference))

    resolved = _lookup(_routine_namespace(subject, routine, partners), reference.strip())
    if not isinstance(resolved, type):
        raise MarkerResolutionError(subject, reference)
    return resolved


def _unwrap_routine(raw: Any) -> tuple[Any, RoutineKind | None]:
    if isinstance(raw, staticmethod):
        return raw.__func__, RoutineKind.STATIC
    if isinstance(raw, classmethod):
        return raw.__func__, RoutineKind.CLASS
    if inspect.isfunction(raw):
        return raw, RoutineKind.INSTANCE
    return None, None


_SUBSCRIPT = re.compile(r"^\s*([\w.]+)\s*\[(.*)\]\s*$", re.DOTALL)
_DOTTED_NAME = re.compile(r"^[A-Za-z_][\w.]*$")


def _annotated_partner(
    subject: type,
    routine: Any,
    skip_first: bool,
    partners: set[type],
) -> type | None:
    """Partner from a ``ScopedProfile[Partner]`` parameter annotation.

    Raises:
        MarkerResolutionError: If the annotation is ``ScopedProfile[...]``
            but its argument names nothing visible to the routine.
    """
    try:
        params = list(inspect.signature(routine).parameters.values())
    except (TypeError, ValueError):
        return None
    if skip_first:
        params = params[1:]
    if len(params) != 1:
        return None

    name = params[0].name
    try:
        hint = typing.get_type_hints(routine).get(name)
    except (NameError, TypeError, AttributeError):
        # Some annotation of the routine cannot be evaluated (local or
        # TYPE_CHECKING-only names); read this parameter's own annotation.
        hint = getattr(routine, "__annotations__", {}).get(name)
        if isinstance(hint, str):
            return _partner_from_source(subject, routine, hint, partners)

    if hint is None or typing.get_origin(hint) is not ScopedProfile:
        return None

    args = typing.get_args(hint)
    if not args:
        return None

    partner = args[0]
    if isinstance(partner, (str, ForwardRef)):
        return resolve_routine_reference(subject, routine, partner, partners)
    if isinstance(partner, type):
        return partner
    # TypeVar / Any: partner-agnostic
    return None


def _partner_from_source(
    subject: type,
    routine: Any,
    annotation: str,
    partners: set[type],
) -> type | None:
    match = _SUBSCRIPT.match(annotation)
    if match is None:
        return None

    origin_name, argument = match.group(1), match.group(2).strip().strip("'\"")
    namespace = _routine_namespace(subject, routine, partners)

    origin = _lookup(namespace, origin_name)
    if origin is None:
        if origin_name.rsplit(".", 1)[-1] != ScopedProfile.__name__:
            return None
    elif origin is not ScopedProfile:
        return None

    if not _DOTTED_NAME.match(argument):
        return None

    partner = _lookup(namespace, argument)
    if partner is None:
        raise MarkerResolutionError(subject, argument)
    if isinstance(partner, type):
        return partner
    # TypeVar / Any: partner-agnostic
    return None


__all__ = ["IntentSequence", "TypeClassifier", "resolve_reference", "resolve_routine_reference"]
