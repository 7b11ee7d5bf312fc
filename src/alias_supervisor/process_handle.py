"""OS process lifecycle for a single launch."""

import asyncio
import signal
import subprocess
from typing import Dict, List, Optional

import structlog

from alias_runtime.core.exceptions import LaunchError, SignalDeliveryError

logger = structlog.get_logger()


class ProcessHandle:
    """Launches, waits on and signals one child process.

    Standard output and error are always inherited from the supervisor.
    """

    def __init__(
        self,
        alias: str,
        argv: List[str],
        env: Optional[Dict[str, str]],
        cwd: str,
        inherit_stdin: bool = True,
    ):
        self.alias = alias
        self.argv = list(argv)
        self.env = env
        self.cwd = cwd
        self.inherit_stdin = inherit_stdin
        self._proc: Optional[asyncio.subprocess.Process] = None

    async def start(self) -> None:
        """Spawn the process.

        Raises:
            LaunchError: If the OS refuses to start it
        """
        try:
            self._proc = await asyncio.create_subprocess_exec(
                *self.argv,
                env=self.env,
                cwd=self.cwd,
                stdin=None if self.inherit_stdin else subprocess.DEVNULL,
                stdout=None,
                stderr=None,
            )
        except OSError as e:
            raise LaunchError(self.alias, f"failed to start '{self.argv[0]}': {e}") from e
        # the child has its own copy now
        self.env = None

    @property
    def pid(self) -> Optional[int]:
        return self._proc.pid if self._proc else None

    @property
    def returncode(self) -> Optional[int]:
        return self._proc.returncode if self._proc else None

    @property
    def is_running(self) -> bool:
        return self._proc is not None and self._proc.returncode is None

    async def wait(self) -> int:
        """Wait for the process to exit and return its exit code."""
        if self._proc is None:
            raise RuntimeError("process was never started")
        return await self._proc.wait()

    def send_signal(self, sig: int) -> None:
        """Deliver a signal.

        Raises:
            SignalDeliveryError: If the process is gone or was never started
        """
        if self._proc is None or self._proc.returncode is not None:
            raise SignalDeliveryError(self.alias, f"cannot signal '{self.alias}': process is not running")
        try:
            self._proc.send_signal(sig)
        except ProcessLookupError as e:
            raise SignalDeliveryError(self.alias, f"cannot signal '{self.alias}': {e}") from e

    def terminate(self) -> None:
        self.send_signal(signal.SIGTERM)

    def kill(self) -> None:
        if self._proc is None or self._proc.returncode is not None:
            raise SignalDeliveryError(self.alias, f"cannot kill '{self.alias}': process is not running")
        try:
            self._proc.kill()
        except ProcessLookupError as e:
            raise SignalDeliveryError(self.alias, f"cannot kill '{self.alias}': {e}") from e

    def ensure_stopped(self) -> None:
        """Kill the process if it is still running."""
        if self.is_running:
            logger.warning("Killing lingering process", alias=self.alias, pid=self.pid)
            try:
                self.kill()
            except SignalDeliveryError as e:
                logger.warning("Failed to kill lingering process", alias=self.alias, error=str(e))
