"""Host glue: finding mapping classes and wiring profiles onto an engine.

Discovery modes:
- Package scanning via discover_mapping_types() / add_mappings()
- Already-imported modules via add_all_mappings()

Each scanned package becomes its own MappingProfile, built independently
and applied to the engine surface in the order the packages were given.

Example:
    >>> profiles = add_mappings(
    ...     engine_configuration,
    ...     "myapp.dto",
    ...     "myapp.reports",
    ...     configure=lambda cfg: cfg.register(Invoice, InvoiceView),
    ... )
"""

from __future__ import annotations

import importlib
import pkgutil
import sys
from collections.abc import Callable, Iterable
from types import ModuleType
from typing import Any

from .builder import build_profile
from .catalog import MarkerCatalog
from .logging import log_debug, log_error, log_info, log_warn
from .profile import MappingProfile
from .surface import RegistrationSurface
from .types import MappingOptions

# Top-level packages never scanned by add_all_mappings()
SKIPPED_PACKAGES = frozenset(
    {"builtins", "typing", "mapwith", "pydantic", "pydantic_core", "yaml", "pytest", "pluggy"}
)


def scan_module(module: ModuleType, catalog: MarkerCatalog | None = None) -> list[type]:
    """Collect mapping classes defined in one module.

    Classes merely imported into the module are not collected, so a class
    is found once, in the module defining it. Private (underscore) names
    are not collected either.

    Args:
        module: Module to scan.
        catalog: Marker vocabulary (defaults to MarkerCatalog.default()).

    Returns:
        Classes declaring at least one recognized marker, in name order.
    """
    catalog = catalog or MarkerCatalog.default()
    found: list[type] = []

    for name in dir(module):
        if name.startswith("_"):
            continue
        obj = getattr(module, name, None)
        if not isinstance(obj, type):
            continue
        if obj.__module__ != module.__name__:
            continue
        if catalog.declares_mapping(obj):
            found.append(obj)

    return found


def discover_mapping_types(
    package_name: str,
    catalog: MarkerCatalog | None = None,
) -> list[type]:
    """Discover mapping classes in a package and all its subpackages.

    Args:
        package_name: Package (or module) to scan, e.g. "myapp.dto".
        catalog: Marker vocabulary.

    Returns:
        Discovered classes, root package first, then submodules in walk order.
    """
    catalog = catalog or MarkerCatalog.default()

    try:
        package = importlib.import_module(package_name)
    except ImportError as e:
        log_error(f"Failed to import package {package_name}: {e}")
        return []

    discovered = scan_module(package, catalog)

    if not hasattr(package, "__path__"):
        log_debug(f"{package_name} has no __path__, not scanning submodules")
        return discovered

    for _importer, module_name, _is_pkg in pkgutil.walk_packages(
        package.__path__,
        prefix=f"{package_name}.",
    ):
        try:
            module = importlib.import_module(module_name)
        except Exception as e:
            log_warn(f"Failed to scan module {module_name}: {e}")
            continue
        discovered.extend(scan_module(module, catalog))

    unique = list(dict.fromkeys(discovered))
    log_info(f"Discovered {len(unique)} mapping types in {package_name}")
    return unique


def add_mappings(
    surface: RegistrationSurface,
    *packages: str,
    configure: Callable[[RegistrationSurface], Any] | None = None,
    options: MappingOptions | None = None,
    catalog: MarkerCatalog | None = None,
) -> list[MappingProfile]:
    """Build one profile per package and apply them to ``surface``.

    Packages without mapping classes are skipped. ``configure`` runs last,
    so explicit configuration is layered over the discovered profiles.

    Args:
        surface: The mapping engine's registration surface.
        *packages: Package names to scan.
        configure: Optional explicit configuration callback.
        options: Build options shared by every profile.
        catalog: Marker vocabulary.

    Returns:
        The profiles that were applied, in package order.
    """
    profiles: list[MappingProfile] = []

    for package_name in packages:
        types = discover_mapping_types(package_name, catalog)
        if not types:
            log_debug(f"No mapping types in {package_name}, skipping")
            continue
        profiles.append(build_profile(types, options=options, catalog=catalog, name=package_name))

    return _apply_profiles(surface, profiles, configure)


def add_all_mappings(
    surface: RegistrationSurface,
    configure: Callable[[RegistrationSurface], Any] | None = None,
    options: MappingOptions | None = None,
    catalog: MarkerCatalog | None = None,
) -> list[MappingProfile]:
    """Build profiles from every already-imported module.

    Modules are grouped by top-level package; each group becomes one
    profile. Standard library and infrastructure modules are skipped.

    Returns:
        The profiles that were applied, ordered by package name.
    """
    catalog = catalog or MarkerCatalog.default()
    grouped: dict[str, list[type]] = {}

    for module_name, module in list(sys.modules.items()):
        if module is None or not _is_scannable(module_name):
            continue
        try:
            types = scan_module(module, catalog)
        except Exception as e:
            log_debug(f"Skipping module {module_name}: {e}")
            continue
        if types:
            grouped.setdefault(module_name.split(".", 1)[0], []).extend(types)

    profiles = [
        build_profile(_unique(grouped[name]), options=options, catalog=catalog, name=name)
        for name in sorted(grouped)
    ]
    return _apply_profiles(surface, profiles, configure)


def _apply_profiles(
    surface: RegistrationSurface,
    profiles: list[MappingProfile],
    configure: Callable[[RegistrationSurface], Any] | None,
) -> list[MappingProfile]:
    for profile in profiles:
        profile.apply_to(surface)
        log_info(f"Applied mapping profile {profile.name}: {len(profile)} registrations")

    if configure is not None:
        configure(surface)

    return profiles


def _is_scannable(module_name: str) -> bool:
    if module_name.startswith("_"):
        return False
    top_level = module_name.split(".", 1)[0]
    return top_level not in SKIPPED_PACKAGES and top_level not in sys.stdlib_module_names


def _unique(types: Iterable[type]) -> list[type]:
    return list(dict.fromkeys(types))


__all__ = [
    "add_all_mappings",
    "add_mappings",
    "discover_mapping_types",
    "scan_module",
]
