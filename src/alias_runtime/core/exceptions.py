"""Custom exceptions for the alias runtime."""

from typing import List, Optional


class AliasRuntimeError(Exception):
    """Base exception for all runtime errors."""
    
    def __init__(self, message: str, code: Optional[str] = None):
        super().__init__(message)
        self.code = code


class ConfigurationError(AliasRuntimeError):
    """Alias definitions are invalid."""
    pass


class AliasError(AliasRuntimeError):
    """Failure scoped to a single alias."""
    
    def __init__(self, alias: str, message: str, code: Optional[str] = None):
        super().__init__(message, code=code)
        self.alias = alias


class ExecutableNotFoundError(AliasError):
    """The alias command could not be located on the search path."""
    
    def __init__(self, alias: str, command: str):
        super().__init__(alias, f"executable '{command}' not found for alias '{alias}'", code="executable_not_found")
        self.command = command


class WorkingDirectoryError(AliasError):
    """The working directory could not be made absolute."""
    
    def __init__(self, alias: str, message: str):
        super().__init__(alias, message, code="working_directory")


class LaunchError(AliasError):
    """The OS refused to start the process."""
    
    def __init__(self, alias: str, message: str):
        super().__init__(alias, message, code="launch_failed")


class SignalDeliveryError(AliasError):
    """A termination request could not be delivered."""
    
    def __init__(self, alias: str, message: str):
        super().__init__(alias, message, code="signal_delivery")


class UndefinedMemberError(AliasRuntimeError):
    """A composite alias references aliases that do not exist."""
    
    def __init__(self, composite: str, missing: List[str]):
        names = ", ".join(f"'{name}'" for name in missing)
        super().__init__(f"undefined sub-alias {names} in '{composite}'", code="undefined_member")
        self.composite = composite
        self.missing = list(missing)
