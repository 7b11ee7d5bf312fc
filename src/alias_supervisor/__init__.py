"""Alias supervisor - launches, restarts and tears down groups of aliased commands."""

from .supervisor import Supervisor
from .runner import AliasRunner
from .dispatcher import CompositeDispatcher

__all__ = ["Supervisor", "AliasRunner", "CompositeDispatcher"]
