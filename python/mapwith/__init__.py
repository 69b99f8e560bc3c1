"""
mapwith

Convention-based mapping configuration: classes declare which classes
they map to or from, and mapwith turns those declarations into
registrations on an object-to-object mapping engine.

Example:
    >>> from mapwith import MapsFrom, MapsTo, MapsWith, ScopedProfile, build_profile
    >>>
    >>> class OrderDto(MapsTo[Order]):
    ...     pass
    >>>
    >>> class CustomerDto(MapsWith[Customer]):
    ...     def configure_map(self, profile: ScopedProfile[Customer]) -> None:
    ...         profile.register_from().for_member("full_name", source="name")
    >>>
    >>> profile = build_profile([OrderDto, CustomerDto])
    >>> profile.apply_to(engine_configuration)

    >>> # Strict mode turns duplicate declarations into errors
    >>> from mapwith import MappingOptions
    >>> build_profile(types, options=MappingOptions(strict_duplicate_detection=True))

    >>> # Scan packages and apply straight onto the engine
    >>> from mapwith import add_mappings
    >>> add_mappings(engine_configuration, "myapp.dto")
"""

from __future__ import annotations

from mapwith.builder import ProfileBuilder, build_profile, can_construct
from mapwith.catalog import MarkerCatalog
from mapwith.classifier import IntentSequence, TypeClassifier
from mapwith.config import load_options, options_from_env
from mapwith.discovery import (
    add_all_mappings,
    add_mappings,
    discover_mapping_types,
    scan_module,
)
from mapwith.exceptions import (
    AmbiguousOverrideError,
    ConfigurationError,
    DuplicateMappingConflictError,
    MappingError,
    MarkerResolutionError,
)
from mapwith.logging import log_debug, log_error, log_info, log_trace, log_warn
from mapwith.markers import HasCustomMap, MapsFrom, MapsTo, MapsWith, Marker, map_override
from mapwith.profile import (
    ConfigurationFragment,
    MappingProfile,
    TypeMapRegistration,
)
from mapwith.surface import RegistrationHandle, RegistrationSurface, ScopedProfile
from mapwith.types import (
    BuildReport,
    Construction,
    Direction,
    IntentKind,
    LogContext,
    MappingIntent,
    MappingOptions,
    OverrideHandle,
    RoutineKind,
)

__version__ = "0.1.0"

__all__ = [
    "__version__",
    # Markers
    "HasCustomMap",
    "MapsFrom",
    "MapsTo",
    "MapsWith",
    "Marker",
    "map_override",
    # Resolver
    "MarkerCatalog",
    "TypeClassifier",
    "IntentSequence",
    "ProfileBuilder",
    "build_profile",
    "can_construct",
    # Surfaces and profiles
    "RegistrationHandle",
    "RegistrationSurface",
    "ScopedProfile",
    "ConfigurationFragment",
    "MappingProfile",
    "TypeMapRegistration",
    # Host glue
    "add_all_mappings",
    "add_mappings",
    "discover_mapping_types",
    "scan_module",
    # Configuration
    "MappingOptions",
    "load_options",
    "options_from_env",
    # Types
    "BuildReport",
    "Construction",
    "Direction",
    "IntentKind",
    "LogContext",
    "MappingIntent",
    "OverrideHandle",
    "RoutineKind",
    # Exceptions
    "MappingError",
    "AmbiguousOverrideError",
    "DuplicateMappingConflictError",
    "MarkerResolutionError",
    "ConfigurationError",
    # Logging
    "log_error",
    "log_warn",
    "log_info",
    "log_debug",
    "log_trace",
]
