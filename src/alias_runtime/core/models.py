"""Alias definition models."""

from enum import Enum
from typing import Any, Dict, List, Literal, Mapping, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, ValidationInfo, field_validator, model_validator

from alias_runtime.core.exceptions import ConfigurationError


class AttachMode(str, Enum):
    """How a command alias is connected to the launching sequence."""

    ATTACHED = "attached"
    DETACHED = "detached"


class _AliasBase(BaseModel):
    """Fields shared by every alias kind."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    name: str = Field(..., description="Alias name")
    description: Optional[str] = Field(None, alias="desc", description="Shown in alias listings")
    shortcut: Optional[str] = Field(None, description="Single-key shortcut")


class CommandAlias(_AliasBase):
    """An alias that runs its own executable."""

    kind: Literal["command"] = "command"
    command: str = Field(..., description="Executable name or path")
    args: str = Field("", description="Raw argument string")
    args_array: List[str] = Field(default_factory=list, alias="argsArray", description="Explicit arguments")
    working_directory: str = Field(".", alias="workingDirectory", description="Relative to the supervisor cwd")
    environment: Dict[str, str] = Field(default_factory=dict, description="Environment overrides")
    mode: AttachMode = Field(AttachMode.ATTACHED, description="Attached (foreground) or detached (background)")
    restart: bool = Field(False, description="Relaunch after the process exits")

    @model_validator(mode="before")
    @classmethod
    def map_background_flag(cls, data: Any) -> Any:
        """Translate the ``background`` flag into an attach mode."""
        if isinstance(data, dict) and "background" in data and "mode" not in data:
            data = dict(data)
            background = data.pop("background")
            data["mode"] = AttachMode.DETACHED if background else AttachMode.ATTACHED
        return data

    @field_validator("args", "working_directory", mode="before")
    @classmethod
    def none_as_default(cls, v: Any, info: ValidationInfo) -> Any:
        if v is None:
            return "." if info.field_name == "working_directory" else ""
        return v

    @field_validator("args_array", mode="before")
    @classmethod
    def stringify_args(cls, v: Any) -> Any:
        if v is None:
            return []
        return [str(item) for item in v]

    @field_validator("environment", mode="before")
    @classmethod
    def stringify_environment(cls, v: Any) -> Any:
        """Coerce environment values to strings (YAML yields ints and bools)."""
        if v is None:
            return {}
        return {str(key): "" if value is None else str(value) for key, value in dict(v).items()}

    @property
    def detached(self) -> bool:
        return self.mode == AttachMode.DETACHED


class CompositeAlias(_AliasBase):
    """An alias made of other aliases."""

    kind: Literal["composite"] = "composite"
    members: List[str] = Field(..., alias="aliases", description="Member alias names, in launch order")


AliasDefinition = Union[CommandAlias, CompositeAlias]


def parse_definition(name: str, raw: Mapping[str, Any]) -> AliasDefinition:
    """Validate one raw alias definition.

    Args:
        name: Alias name
        raw: Mapping as produced by a configuration loader

    Returns:
        A command or composite alias

    Raises:
        ConfigurationError: If the definition is invalid
    """
    if not isinstance(raw, Mapping):
        raise ConfigurationError(f"alias '{name}' must be a mapping, got {type(raw).__name__}")

    has_command = bool(raw.get("command"))
    has_members = raw.get("aliases") is not None
    if has_command and has_members:
        raise ConfigurationError(f"alias '{name}' defines both 'command' and 'aliases'")
    if not has_command and not has_members:
        raise ConfigurationError(f"alias '{name}' defines neither 'command' nor 'aliases'")

    data = {**raw, "name": name}
    model = CompositeAlias if has_members else CommandAlias
    try:
        return model.model_validate(data)
    except ValidationError as e:
        raise ConfigurationError(f"invalid alias '{name}': {e}") from e


def parse_definitions(raw: Mapping[str, Mapping[str, Any]]) -> Dict[str, AliasDefinition]:
    """Validate a full set of raw alias definitions."""
    return {name: parse_definition(name, entry) for name, entry in raw.items()}
