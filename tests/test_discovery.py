"""Tests for mapping type discovery and host glue.

These tests verify:
- Package scanning finds mapping classes in submodules
- Modules that fail to import are skipped
- Classes are collected once, in the module defining them
- add_mappings builds one profile per package and layers configure() last
- add_all_mappings scans already-imported modules
"""

from __future__ import annotations

import logging

import pytest

from mapwith import (
    Direction,
    MappingOptions,
    MarkerCatalog,
    add_all_mappings,
    add_mappings,
    discover_mapping_types,
    scan_module,
)

EXAMPLES = "tests.mapping_examples"


@pytest.fixture
def examples():
    """Import the example package and its modules."""
    import tests.mapping_examples as package
    from tests.mapping_examples import orders
    from tests.mapping_examples.customers import profiles

    return package, orders, profiles


@pytest.fixture
def ledger_catalog() -> MarkerCatalog:
    """Catalog recognizing only the example marker kind."""
    from tests.mapping_examples.custom_markers import ExampleMapsTo

    return MarkerCatalog(
        directions={ExampleMapsTo: Direction.TO_PARTNER},
        self_registration_marker=None,
    )


@pytest.mark.discovery
class TestDiscoverMappingTypes:
    """Tests for discover_mapping_types()."""

    def test_discovers_package_and_submodules(self, examples):
        """Test mapping classes are found across the package tree."""
        package, orders, profiles = examples

        discovered = discover_mapping_types(EXAMPLES)

        assert discovered == [
            package.CurrencyDto,
            profiles.CustomerAudit,
            profiles.CustomerDto,
            orders.OrderDto,
            orders.OrderLineDto,
        ]

    def test_broken_module_skipped_with_warning(self, mapwith_logs):
        """Test a module failing on import is logged and skipped."""
        discover_mapping_types(EXAMPLES)

        warnings = [r for r in mapwith_logs.records if r.levelno == logging.WARNING]
        assert any("broken" in r.getMessage() for r in warnings)

    def test_missing_package_returns_empty(self, mapwith_logs):
        """Test an unknown package yields no classes and logs an error."""
        assert discover_mapping_types("tests.no_such_package") == []
        assert any(r.levelno == logging.ERROR for r in mapwith_logs.records)

    def test_single_module(self, examples):
        """Test a plain module is scanned without walking submodules."""
        _, orders, _ = examples

        assert discover_mapping_types(f"{EXAMPLES}.orders") == [orders.OrderDto, orders.OrderLineDto]

    def test_custom_catalog(self, ledger_catalog):
        """Test discovery follows the catalog it is given."""
        from tests.mapping_examples.custom_markers import LedgerView

        assert discover_mapping_types(f"{EXAMPLES}.custom_markers") == []
        assert discover_mapping_types(f"{EXAMPLES}.custom_markers", ledger_catalog) == [LedgerView]


@pytest.mark.discovery
class TestScanModule:
    """Tests for scan_module()."""

    def test_imported_classes_not_collected(self, examples):
        """Test classes imported into a module belong to their own module."""
        _, orders, profiles = examples

        assert orders.Order in vars(profiles).values()
        assert scan_module(profiles) == [profiles.CustomerAudit, profiles.CustomerDto]

    def test_private_classes_not_collected(self, examples):
        """Test underscore-prefixed classes are not exported mapping types."""
        _, orders, _ = examples

        assert MarkerCatalog.default().declares_mapping(orders._DraftOrderDto)
        assert orders._DraftOrderDto not in scan_module(orders)
        assert scan_module(orders) == [orders.OrderDto, orders.OrderLineDto]


@pytest.mark.discovery
class TestAddMappings:
    """Tests for add_mappings()."""

    def test_applies_one_profile_per_package(self, surface, examples):
        """Test each package becomes its own profile applied to the surface."""
        _, orders, profiles = examples

        applied = add_mappings(surface, f"{EXAMPLES}.orders", f"{EXAMPLES}.customers")

        assert [p.name for p in applied] == [f"{EXAMPLES}.orders", f"{EXAMPLES}.customers"]
        assert surface.pairs == [
            (orders.OrderDto, orders.Order),
            (orders.OrderLine, orders.OrderLineDto),
            (profiles.CustomerDto, profiles.Customer),
            (profiles.Customer, profiles.CustomerDto),
            (profiles.Customer, profiles.CustomerAudit),
            (orders.Order, profiles.CustomerAudit),
        ]

    def test_override_and_callback_customizations_reach_engine(self, surface, examples):
        """Test customizations recorded in profiles are replayed."""
        _, orders, profiles = examples

        add_mappings(surface, f"{EXAMPLES}.orders", f"{EXAMPLES}.customers")

        line = surface.map(orders.OrderLine(sku="A-1", quantity=4), orders.OrderLineDto)
        assert line == orders.OrderLineDto(sku="A-1", amount=4)

        audit = surface.map(orders.Order(id=1), profiles.CustomerAudit)
        assert audit == profiles.CustomerAudit(name="")

    def test_configure_runs_last(self, surface, examples):
        """Test explicit configuration is layered after discovered profiles."""
        _, orders, _ = examples
        calls = []

        def configure(cfg):
            calls.append(list(cfg.pairs))
            cfg.register(orders.Order, orders.OrderDto)

        add_mappings(surface, f"{EXAMPLES}.orders", configure=configure)

        assert calls == [[(orders.OrderDto, orders.Order), (orders.OrderLine, orders.OrderLineDto)]]
        assert surface.pairs[-1] == (orders.Order, orders.OrderDto)

    def test_empty_packages_skipped(self, surface):
        """Test packages without mapping classes produce no profile."""
        applied = add_mappings(surface, f"{EXAMPLES}.custom_markers", "tests.no_such_package")

        assert applied == []
        assert surface.pairs == []

    def test_options_are_passed_through(self, surface, examples):
        """Test build options apply to every profile."""
        options = MappingOptions(strict_duplicate_detection=True)

        applied = add_mappings(surface, f"{EXAMPLES}.orders", options=options)

        assert applied[0].report is not None
        assert applied[0].report.duplicates == 0


@pytest.mark.discovery
class TestAddAllMappings:
    """Tests for add_all_mappings()."""

    def test_scans_imported_modules(self, surface, ledger_catalog):
        """Test already-imported modules are grouped by top-level package."""
        from tests.mapping_examples.custom_markers import Ledger, LedgerView

        applied = add_all_mappings(surface, catalog=ledger_catalog)

        assert [p.name for p in applied] == ["tests"]
        assert surface.pairs == [(LedgerView, Ledger)]

    def test_configure_callback(self, surface, ledger_catalog):
        """Test configure() runs after the imported-module profiles."""
        from tests.mapping_examples.custom_markers import Ledger, LedgerView

        add_all_mappings(
            surface,
            configure=lambda cfg: cfg.register(Ledger, LedgerView),
            catalog=ledger_catalog,
        )

        assert surface.pairs == [(LedgerView, Ledger), (Ledger, LedgerView)]
