"""Exception hierarchy and logging tests.

These tests verify:
- MappingError is the base exception class
- All custom exceptions inherit correctly and carry their context
- Exceptions can be caught by base class
- Logging functions accept dict and LogContext fields
"""

from __future__ import annotations

import logging

import pytest


class Order:
    pass


class OrderDto:
    pass


class TestExceptionHierarchy:
    """Test exception class hierarchy."""

    def test_mapping_error_is_base(self):
        """Test MappingError is the base class."""
        from mapwith import (
            AmbiguousOverrideError,
            ConfigurationError,
            DuplicateMappingConflictError,
            MappingError,
            MarkerResolutionError,
        )

        assert issubclass(AmbiguousOverrideError, MappingError)
        assert issubclass(DuplicateMappingConflictError, MappingError)
        assert issubclass(MarkerResolutionError, MappingError)
        assert issubclass(ConfigurationError, MappingError)
        assert issubclass(MappingError, Exception)

    def test_can_catch_by_base_class(self):
        """Test exceptions can be caught by base class."""
        from mapwith import ConfigurationError, MappingError

        with pytest.raises(MappingError):
            raise ConfigurationError("Test error")

    def test_to_dict(self):
        """Test errors serialize for structured logging."""
        from mapwith import MappingError

        error = MappingError("Something failed", metadata={"subject": "app.OrderDto"})

        assert error.to_dict() == {
            "error_type": "MappingError",
            "message": "Something failed",
            "metadata": {"subject": "app.OrderDto"},
        }

    def test_ambiguous_override_context(self):
        """Test AmbiguousOverrideError names subject, partner and routines."""
        from mapwith import AmbiguousOverrideError

        error = AmbiguousOverrideError(OrderDto, Order, ["configure_map", "customize"])

        assert error.routines == ("configure_map", "customize")
        assert "configure_map, customize" in str(error)
        assert error.metadata["partner"].endswith(".Order")

    def test_duplicate_conflict_context(self):
        """Test DuplicateMappingConflictError names every declaring class."""
        from mapwith import DuplicateMappingConflictError

        error = DuplicateMappingConflictError(Order, OrderDto, OrderDto, [Order])

        assert error.declaring_types == (Order, OrderDto)
        assert error.to_dict()["error_type"] == "DuplicateMappingConflictError"
        assert error.metadata["previously_declared_by"] == [f"{__name__}.Order"]
        assert "previously declared by" in str(error)

    def test_marker_resolution_context(self):
        """Test MarkerResolutionError keeps the unresolved reference."""
        from mapwith import MarkerResolutionError

        error = MarkerResolutionError(OrderDto, "Missing")

        assert error.reference == "Missing"
        assert "'Missing'" in error.message


class TestLogging:
    """Test logging functions."""

    def test_log_functions_callable(self):
        """Test every level is callable with and without fields."""
        from mapwith import log_debug, log_error, log_info, log_trace, log_warn

        for log in (log_error, log_warn, log_info, log_debug, log_trace):
            log("Test message")
            log("Test with fields", {"key": "value"})

    def test_fields_attached_to_record(self, mapwith_logs):
        """Test fields are rendered into the message and kept on the record."""
        from mapwith import log_info

        log_info("Profile built", {"registrations": 3})

        (record,) = mapwith_logs.records
        assert record.getMessage() == "Profile built [registrations=3]"
        assert record.fields == {"registrations": "3"}
        assert record.name == "mapwith"

    def test_log_context_drops_empty_fields(self, mapwith_logs):
        """Test LogContext fields that are None are not logged."""
        from mapwith import LogContext, log_warn

        log_warn("Fallback", LogContext(subject="app.OrderDto", operation="build"))

        (record,) = mapwith_logs.records
        assert record.levelno == logging.WARNING
        assert record.fields == {"subject": "app.OrderDto", "operation": "build"}

    def test_trace_level(self, mapwith_logs):
        """Test TRACE is registered below DEBUG."""
        from mapwith import log_trace
        from mapwith.logging import TRACE

        log_trace("Recorded registration")

        (record,) = mapwith_logs.records
        assert record.levelno == TRACE < logging.DEBUG
        assert record.levelname == "TRACE"

    def test_disabled_level_not_emitted(self, caplog):
        """Test messages below the logger level are dropped."""
        from mapwith import log_debug

        with caplog.at_level(logging.INFO, logger="mapwith"):
            log_debug("Hidden")

        assert caplog.records == []
