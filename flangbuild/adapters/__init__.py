"""Adapters — tool bindings for git, cmake, ninja and the filesystem.

Public re-exports for convenient access.
"""

from flangbuild.adapters.base import Adapter, ExecutionContext
from flangbuild.adapters.mock import MockAdapter
from flangbuild.adapters.registry import AdapterRegistry

__all__ = [
    "Adapter",
    "AdapterRegistry",
    "ExecutionContext",
    "MockAdapter",
]
