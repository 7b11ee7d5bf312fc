"""Expansion and launch of composite aliases."""

from collections import Counter
from typing import TYPE_CHECKING, List, Mapping, Optional, Tuple

import structlog

from alias_runtime.core.exceptions import ConfigurationError, UndefinedMemberError
from alias_runtime.core.models import AliasDefinition, CommandAlias, CompositeAlias

from .runner import AliasRunner

if TYPE_CHECKING:
    from .supervisor import Supervisor

logger = structlog.get_logger()


class CompositeDispatcher:
    """Launches the members of a composite alias in order.

    Attached members block the members after them. Attached members with a
    restart policy never finish on their own, so they are supervised
    concurrently instead.
    """

    def __init__(self, supervisor: "Supervisor", definitions: Optional[Mapping[str, AliasDefinition]] = None):
        self.supervisor = supervisor
        self.definitions = definitions if definitions is not None else supervisor.definitions

    def expand(self, composite: CompositeAlias) -> List[Tuple[str, CommandAlias]]:
        """Resolve members into ``(registry key, command alias)`` pairs.

        Nested composites are flattened depth-first. Repeated aliases get a
        ``#n`` suffix on their key.

        Raises:
            UndefinedMemberError: If any member name is unknown; nothing is launched
            ConfigurationError: If composites reference each other in a cycle
        """
        self._check_members(composite)
        members = self._flatten(composite, [composite.name])

        seen: Counter = Counter()
        expanded = []
        for alias in members:
            seen[alias.name] += 1
            key = alias.name if seen[alias.name] == 1 else f"{alias.name}#{seen[alias.name]}"
            expanded.append((key, alias))
        return expanded

    def _check_members(self, composite: CompositeAlias) -> None:
        missing = [name for name in composite.members if name not in self.definitions]
        if missing:
            raise UndefinedMemberError(composite.name, missing)

    def _flatten(self, composite: CompositeAlias, path: List[str]) -> List[CommandAlias]:
        members: List[CommandAlias] = []
        for name in composite.members:
            definition = self.definitions[name]
            if isinstance(definition, CompositeAlias):
                if name in path:
                    cycle = " -> ".join(path + [name])
                    raise ConfigurationError(f"composite alias cycle: {cycle}")
                self._check_members(definition)
                members.extend(self._flatten(definition, path + [name]))
            else:
                members.append(definition)
        return members

    async def dispatch(self, composite: CompositeAlias) -> None:
        """Validate, then launch every member in order."""
        members = self.expand(composite)
        logger.info(
            "Dispatching composite alias",
            alias=composite.name,
            members=[key for key, _ in members],
        )

        for key, alias in members:
            if self.supervisor.stopping:
                logger.info("Supervisor stopping, skipping remaining members", alias=composite.name)
                break

            runner = AliasRunner(self.supervisor, alias, key=key)
            if alias.detached:
                await runner.run_detached()
            elif alias.restart:
                self.supervisor.spawn(runner.run(), name=f"attached-{key}")
            else:
                await runner.run()
