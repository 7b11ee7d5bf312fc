"""Alias runtime - runs named command definitions as one supervised unit."""

__version__ = "0.1.0"

from alias_runtime.core.config import Settings
from alias_runtime.core.models import AttachMode, CommandAlias, CompositeAlias, parse_definitions

__all__ = ["Settings", "AttachMode", "CommandAlias", "CompositeAlias", "parse_definitions", "__version__"]
