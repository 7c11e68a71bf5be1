"""Adapters — tool bindings for the compiler and the formatter.

Public re-exports for convenient access.
"""

from protobuild.adapters.base import Adapter, ExecutionContext
from protobuild.adapters.compilers.protoc import ProtocAdapter
from protobuild.adapters.formatters.formatter import FormatterAdapter
from protobuild.adapters.mock import MockAdapter
from protobuild.adapters.registry import AdapterRegistry
from protobuild.adapters.shell.command import ToolAdapter

__all__ = [
    "Adapter",
    "AdapterRegistry",
    "ExecutionContext",
    "FormatterAdapter",
    "MockAdapter",
    "ProtocAdapter",
    "ToolAdapter",
]
