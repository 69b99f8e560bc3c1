"""pytest configuration and fixtures for mapwith tests.

This module provides a recording fake of the mapping engine's registration
surface, a tiny field-copying mapper on top of it, and option fixtures.
"""

from __future__ import annotations

import dataclasses
import logging
from collections.abc import Generator
from typing import Any

import pytest


class RecordingHandle:
    """Engine handle double: records reverse() and customization calls."""

    def __init__(self, surface: RecordingSurface, source: type, destination: type) -> None:
        self.surface = surface
        self.source = source
        self.destination = destination
        self.customizations: list[tuple[str, tuple[Any, ...], dict[str, Any]]] = []

    def reverse(self) -> RecordingHandle:
        return self.surface.register(self.destination, self.source)

    def for_member(self, member: str, **options: Any) -> RecordingHandle:
        self.customizations.append(("for_member", (member,), options))
        return self

    def ignore(self, member: str) -> RecordingHandle:
        self.customizations.append(("ignore", (member,), {}))
        return self


class RecordingSurface:
    """Engine registration surface double.

    Records every registration in order. ``map()`` copies dataclass fields
    for registered pairs so round trips can be checked.
    """

    def __init__(self) -> None:
        self.handles: list[RecordingHandle] = []

    def register(self, source: type, destination: type) -> RecordingHandle:
        handle = RecordingHandle(self, source, destination)
        self.handles.append(handle)
        return handle

    @property
    def pairs(self) -> list[tuple[type, type]]:
        return [(h.source, h.destination) for h in self.handles]

    def count(self, source: type, destination: type) -> int:
        return self.pairs.count((source, destination))

    def handle_for(self, source: type, destination: type) -> RecordingHandle:
        for handle in self.handles:
            if (handle.source, handle.destination) == (source, destination):
                return handle
        raise LookupError(f"No registration for {source.__name__} -> {destination.__name__}")

    def map(self, obj: Any, destination: type) -> Any:
        handle = self.handle_for(type(obj), destination)
        ignored = {c[1][0] for c in handle.customizations if c[0] == "ignore"}
        renamed = {
            c[1][0]: c[2]["source"]
            for c in handle.customizations
            if c[0] == "for_member" and "source" in c[2]
        }
        values = {}
        for f in dataclasses.fields(destination):
            if f.name in ignored:
                continue
            attribute = renamed.get(f.name, f.name)
            if hasattr(obj, attribute):
                values[f.name] = getattr(obj, attribute)
        return destination(**values)


@pytest.fixture
def surface() -> RecordingSurface:
    """Provide a fresh recording engine surface."""
    return RecordingSurface()


@pytest.fixture
def strict_options():
    """Provide options with strict duplicate detection enabled."""
    from mapwith import MappingOptions

    return MappingOptions(strict_duplicate_detection=True)


@pytest.fixture
def mapwith_logs(caplog: pytest.LogCaptureFixture) -> Generator[pytest.LogCaptureFixture, None, None]:
    """Capture mapwith log records down to TRACE."""
    from mapwith.logging import LOGGER_NAME, TRACE

    with caplog.at_level(TRACE, logger=LOGGER_NAME):
        yield caplog


@pytest.fixture
def clean_mapwith_env(monkeypatch: pytest.MonkeyPatch) -> pytest.MonkeyPatch:
    """Remove MAPWITH_* variables from the environment."""
    import os

    for name in list(os.environ):
        if name.startswith("MAPWITH_"):
            monkeypatch.delenv(name, raising=False)
    return monkeypatch


def pytest_configure(config):
    """Configure custom pytest markers."""
    config.addinivalue_line(
        "markers",
        "discovery: marks tests that import the example mapping packages",
    )
    logging.getLogger("mapwith").setLevel(logging.DEBUG)
