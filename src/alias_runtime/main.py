"""Entry point for running an alias from already-loaded definitions."""

import asyncio
from typing import Any, Mapping, Optional, Sequence

import structlog

from alias_runtime.core.config import Settings
from alias_runtime.core.exceptions import ConfigurationError
from alias_runtime.core.models import parse_definitions
from alias_runtime.utils.logging import bind_run_context, setup_logging
from alias_supervisor.supervisor import (
    EXIT_FAILURE,
    EXIT_UNKNOWN_ALIAS,
    Supervisor,
    describe_aliases,
    parse_selection,
)

logger = structlog.get_logger()


def run_aliases(
    args: Sequence[str],
    definitions: Mapping[str, Mapping[str, Any]],
    settings: Optional[Settings] = None,
) -> int:
    """Run the alias selected by ``args``.

    Args:
        args: Command-line arguments; the first one names the alias
        definitions: Raw alias definitions as loaded from configuration
        settings: Runtime settings, read from the environment when omitted

    Returns:
        Exit code for the process
    """
    settings = settings or Settings()
    setup_logging(settings.log_level, settings.log_format)

    try:
        aliases = parse_definitions(definitions)
    except ConfigurationError as e:
        logger.error("Invalid alias definitions", error=str(e))
        return EXIT_FAILURE

    name, is_filter = parse_selection(args)
    if is_filter:
        for line in describe_aliases(aliases, prefix=name):
            logger.info(line)
        return EXIT_UNKNOWN_ALIAS

    bind_run_context(alias=name)
    supervisor = Supervisor(aliases, settings=settings)
    return asyncio.run(supervisor.run(name))
