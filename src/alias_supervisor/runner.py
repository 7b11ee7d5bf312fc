"""Runs a single command alias and applies its restart policy."""

import asyncio
import os
import shutil
from typing import TYPE_CHECKING, Dict, List, Optional

import structlog

from alias_runtime.core.exceptions import (
    AliasError,
    ExecutableNotFoundError,
    WorkingDirectoryError,
)
from alias_runtime.core.models import CommandAlias

from .models import ProcessState, RunningProcess
from .process_handle import ProcessHandle
from .tokenizer import build_argv

if TYPE_CHECKING:
    from .supervisor import Supervisor

logger = structlog.get_logger()

# Script wrappers that misbehave when handed a shared stdin
NO_STDIN_SUFFIXES = ("cmd", "bat")


def inherits_stdin(executable: str) -> bool:
    """Whether the supervisor's stdin should be connected to the child."""
    return not executable.lower().endswith(NO_STDIN_SUFFIXES)


class AliasRunner:
    """Materializes one command alias into supervised OS processes."""

    def __init__(self, supervisor: "Supervisor", alias: CommandAlias, key: Optional[str] = None):
        self.supervisor = supervisor
        self.alias = alias
        self.key = key or alias.name

    def resolve_executable(self) -> str:
        """Look up the alias command on the search path."""
        executable = shutil.which(self.alias.command)
        if executable is None:
            raise ExecutableNotFoundError(self.alias.name, self.alias.command)
        return executable

    def build_argv(self, executable: str) -> List[str]:
        return build_argv(executable, self.alias.args, self.alias.args_array)

    def build_environment(self) -> Dict[str, str]:
        """Supervisor environment with the alias overrides on top."""
        env = os.environ.copy()
        env.update(self.alias.environment)
        return env

    def resolve_working_directory(self) -> str:
        try:
            return os.path.abspath(os.path.join(os.getcwd(), self.alias.working_directory or "."))
        except OSError as e:
            raise WorkingDirectoryError(
                self.alias.name,
                f"cannot resolve working directory '{self.alias.working_directory}': {e}",
            ) from e

    def _prepare(self) -> ProcessHandle:
        executable = self.resolve_executable()
        argv = self.build_argv(executable)
        cwd = self.resolve_working_directory()
        attach = inherits_stdin(executable)
        if not attach:
            logger.info("Not inheriting stdin", alias=self.alias.name, executable=executable)
        return ProcessHandle(
            self.alias.name,
            argv,
            env=self.build_environment(),
            cwd=cwd,
            inherit_stdin=attach,
        )

    async def start(self, generation: int = 0) -> Optional[RunningProcess]:
        """Launch the alias and register it with the supervisor.

        Returns None when the supervisor is already stopping. Lookup and
        launch failures produce a registered, already-terminal process.
        """
        if self.supervisor.stopping:
            return None

        process = RunningProcess(key=self.key, alias=self.alias, generation=generation)

        try:
            process.handle = self._prepare()
        except AliasError as e:
            return self._register_failure(process, e)

        async with self.supervisor.lock:
            if self.supervisor.stopping:
                logger.info("Supervisor stopping, not launching", alias=self.alias.name)
                return None

            process.restart_eligible = self.alias.restart
            logger.info(
                "Starting process",
                alias=self.alias.name,
                argv=process.handle.argv,
                cwd=process.handle.cwd,
                environment=dict(self.alias.environment),
                restart=self.alias.restart,
                mode=self.alias.mode.value,
                generation=generation,
            )
            try:
                await process.handle.start()
            except AliasError as e:
                return self._register_failure(process, e)

            process.mark_running()
            self.supervisor.register(process)

        logger.info("Process started", alias=self.alias.name, pid=process.pid)
        return process

    def _register_failure(self, process: RunningProcess, error: AliasError) -> RunningProcess:
        logger.error("Failed to launch alias", alias=self.alias.name, code=error.code, error=str(error))
        process.mark_failed(str(error), code=error.code)
        self.supervisor.register(process)
        self.supervisor.complete(process)
        return process

    async def supervise(self, process: Optional[RunningProcess]) -> None:
        """Wait for the process and relaunch it while the restart policy allows."""
        while process is not None:
            if process.state == ProcessState.FAILED:
                return

            exit_code = await process.handle.wait()
            process.record_exit(exit_code)
            logger.info(
                "Process exited",
                alias=self.alias.name,
                pid=process.pid,
                exit_code=exit_code,
                status=process.exit_status.value,
            )

            if not process.restart_eligible or self.supervisor.stopping:
                self.supervisor.complete(process)
                return

            process.handle.ensure_stopped()
            logger.info("Restarting process", alias=self.alias.name, generation=process.generation + 1)
            successor = await self.start(generation=process.generation + 1)
            # successor is registered first so the barrier never reaches zero in between
            self.supervisor.complete(process)
            process = successor

    async def run(self) -> None:
        """Attached mode: block until the alias is finished."""
        process = await self.start()
        await self.supervise(process)

    async def run_detached(self) -> Optional[asyncio.Task]:
        """Detached mode: return once the process has started."""
        process = await self.start()
        if process is None or process.state == ProcessState.FAILED:
            return None
        return self.supervisor.spawn(self.supervise(process), name=f"supervise-{self.key}")
