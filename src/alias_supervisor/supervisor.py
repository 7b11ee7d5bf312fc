"""Alias supervisor: group lifecycle and shutdown cascade."""

import asyncio
import signal
from collections import deque
from typing import Coroutine, Deque, Dict, List, Mapping, Optional, Sequence, Set, Tuple

import structlog

from alias_runtime.core.config import Settings
from alias_runtime.core.exceptions import ConfigurationError, SignalDeliveryError, UndefinedMemberError
from alias_runtime.core.models import AliasDefinition, CompositeAlias

from .barrier import CompletionBarrier
from .dispatcher import CompositeDispatcher
from .models import RunningProcess
from .runner import AliasRunner

logger = structlog.get_logger()

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_UNKNOWN_ALIAS = 66

# Launches kept for inspection; a crash-looping restart alias would grow it forever
HISTORY_LIMIT = 100

SHUTDOWN_SIGNALS = (signal.SIGTERM, signal.SIGINT)


def parse_selection(args: Sequence[str]) -> Tuple[str, bool]:
    """Split command-line arguments into ``(name, is_filter)``.

    No arguments select everything; a trailing ``*`` turns the name into a
    prefix filter.
    """
    if not args:
        return "", True
    name = args[0]
    if name.endswith("*"):
        return name[:-1], True
    return name, False


def describe_aliases(definitions: Mapping[str, AliasDefinition], prefix: str = "") -> List[str]:
    """Format described aliases as aligned ``name: description`` lines."""
    keys = sorted(
        name for name, definition in definitions.items()
        if definition.description and name.startswith(prefix)
    )
    if not keys:
        return []
    width = 1 + max(len(key) for key in keys)
    return [f"{key:<{width}}: {definitions[key].description}" for key in keys]


class Supervisor:
    """Owns the tracked processes of one run and tears them down together."""

    def __init__(
        self,
        definitions: Mapping[str, AliasDefinition],
        settings: Optional[Settings] = None,
        grace_period: Optional[float] = None,
        history_limit: int = HISTORY_LIMIT,
    ):
        self.definitions = definitions
        self.settings = settings or Settings()
        self.grace_period = grace_period if grace_period is not None else self.settings.grace_period_seconds

        self.processes: Dict[str, RunningProcess] = {}
        self.history: Deque[RunningProcess] = deque(maxlen=history_limit)
        self.launches = 0
        self.lock = asyncio.Lock()
        self._stopping = False
        self._barrier = CompletionBarrier()
        self._tasks: Set[asyncio.Task] = set()
        self._cascade_task: Optional[asyncio.Task] = None
        self._signals_installed: List[int] = []

    @property
    def stopping(self) -> bool:
        return self._stopping

    # --- Registry ---

    def register(self, process: RunningProcess) -> None:
        """Track a process; it counts towards completion until ``complete``."""
        self.processes[process.key] = process
        self.history.append(process)
        self.launches += 1
        self._barrier.add()

    def complete(self, process: RunningProcess) -> None:
        """Mark a process terminal with no restart pending."""
        if process.done:
            return
        process.done = True
        if process.handle is not None:
            process.handle.env = None
        if self.processes.get(process.key) is process:
            del self.processes[process.key]
        self._barrier.done()

    def live_processes(self) -> List[RunningProcess]:
        return [p for p in self.processes.values() if not p.done and not p.has_exited]

    def spawn(self, coro: Coroutine, name: Optional[str] = None) -> asyncio.Task:
        """Run a coroutine as a supervisor-owned task that holds the barrier open."""
        task = asyncio.create_task(coro, name=name)
        self._tasks.add(task)
        self._barrier.add()
        task.add_done_callback(self._task_done)
        return task

    def _task_done(self, task: asyncio.Task) -> None:
        self._barrier.done()
        if not task.cancelled() and task.exception() is not None:
            logger.error("Supervisor task failed", task=task.get_name(), error=str(task.exception()))

    async def wait(self) -> None:
        """Block until every tracked process and task has finished."""
        await self._barrier.wait()
        tasks = list(self._tasks)
        self._tasks.clear()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)

    # --- Shutdown ---

    def request_shutdown(self, sig: Optional[int] = None) -> asyncio.Task:
        """Start the shutdown cascade once; later requests return the same task."""
        if self._cascade_task is None:
            self._barrier.add()
            self._cascade_task = asyncio.create_task(self._cascade(sig), name="shutdown-cascade")
            self._cascade_task.add_done_callback(lambda _: self._barrier.done())
        else:
            logger.info("Shutdown already in progress", signal=_signal_name(sig))
        return self._cascade_task

    async def _cascade(self, sig: Optional[int]) -> None:
        async with self.lock:
            self._stopping = True
            logger.info(
                "Caught shutdown signal",
                signal=_signal_name(sig),
                processes=len(self.live_processes()),
            )
            self._signal_live("terminate")

        logger.info("Waiting before kill", grace_sec=self.grace_period)
        try:
            await asyncio.wait_for(self._all_exited(), timeout=self.grace_period)
        except asyncio.TimeoutError:
            self._signal_live("kill")

        logger.info("Shutdown cascade done")

    async def _all_exited(self) -> None:
        while self.live_processes():
            await asyncio.sleep(0.05)

    def _signal_live(self, action: str) -> None:
        """Disable restarts and deliver ``terminate`` or ``kill`` to live processes."""
        for process in self.live_processes():
            process.restart_eligible = False
            logger.info("Signalling process", action=action, alias=process.name, pid=process.pid)
            try:
                getattr(process.handle, action)()
            except SignalDeliveryError as e:
                logger.warning("Signal delivery failed", action=action, alias=process.name, error=str(e))

    def _install_signal_handlers(self) -> None:
        loop = asyncio.get_running_loop()
        for sig in SHUTDOWN_SIGNALS:
            try:
                loop.add_signal_handler(sig, self.request_shutdown, sig)
                self._signals_installed.append(sig)
            except (NotImplementedError, RuntimeError) as e:
                logger.warning("Cannot install signal handler", signal=_signal_name(sig), error=str(e))

    def _remove_signal_handlers(self) -> None:
        loop = asyncio.get_running_loop()
        while self._signals_installed:
            loop.remove_signal_handler(self._signals_installed.pop())

    # --- Entry point ---

    async def run(self, selected: str, handle_signals: bool = True) -> int:
        """Run the selected alias until every process has finished.

        Args:
            selected: Alias name; empty or unknown names list the aliases instead
            handle_signals: Install SIGINT/SIGTERM handlers on the running loop

        Returns:
            Process exit code for the whole run
        """
        definition = self.definitions.get(selected) if selected else None
        if definition is None:
            if selected:
                logger.error("Unknown alias", alias=selected)
            for line in describe_aliases(self.definitions):
                logger.info(line)
            return EXIT_UNKNOWN_ALIAS

        if handle_signals:
            self._install_signal_handlers()

        exit_code = EXIT_OK
        try:
            try:
                if isinstance(definition, CompositeAlias):
                    await CompositeDispatcher(self).dispatch(definition)
                elif definition.detached:
                    await AliasRunner(self, definition).run_detached()
                else:
                    await AliasRunner(self, definition).run()
            except (UndefinedMemberError, ConfigurationError) as e:
                logger.error("Cannot launch alias", alias=selected, code=e.code, error=str(e))
                exit_code = EXIT_FAILURE
            await self.wait()
        finally:
            if handle_signals:
                self._remove_signal_handlers()

        logger.info("All processes finished", alias=selected, launches=self.launches, exit_code=exit_code)
        return exit_code


def _signal_name(sig: Optional[int]) -> Optional[str]:
    if sig is None:
        return None
    try:
        return signal.Signals(sig).name
    except ValueError:
        return str(sig)
