"""Module that cannot be imported; discovery must skip it."""

raise ImportError("example module that fails on import")
