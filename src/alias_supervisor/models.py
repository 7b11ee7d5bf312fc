"""Data models for the alias supervisor."""

from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import TYPE_CHECKING, Optional

from alias_runtime.core.models import CommandAlias

if TYPE_CHECKING:
    from .process_handle import ProcessHandle


class ProcessState(Enum):
    """State of a supervised process."""
    STARTING = "starting"
    RUNNING = "running"
    EXITED = "exited"
    KILLED = "killed"
    FAILED = "failed"


class ExitStatus(Enum):
    """Last known exit state of a supervised process."""
    SUCCESS = "success"
    FAILURE = "failure"
    KILLED = "killed"


TERMINAL_STATES = (ProcessState.EXITED, ProcessState.KILLED, ProcessState.FAILED)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class RunningProcess:
    """One launch of a command alias."""
    
    key: str
    alias: CommandAlias
    generation: int = 0
    handle: Optional["ProcessHandle"] = None
    state: ProcessState = ProcessState.STARTING
    restart_eligible: bool = False
    done: bool = False
    exit_code: Optional[int] = None
    error_message: Optional[str] = None
    error_code: Optional[str] = None
    started_at: Optional[datetime] = None
    stopped_at: Optional[datetime] = None
    
    @property
    def name(self) -> str:
        return self.alias.name
    
    @property
    def pid(self) -> Optional[int]:
        return self.handle.pid if self.handle else None
    
    @property
    def is_running(self) -> bool:
        """Check if process is in running state."""
        return self.state == ProcessState.RUNNING
    
    @property
    def has_exited(self) -> bool:
        return self.state in TERMINAL_STATES
    
    @property
    def exit_status(self) -> Optional[ExitStatus]:
        """Classify the exit code; negative codes mean a signal ended the process."""
        if self.state == ProcessState.FAILED:
            return ExitStatus.FAILURE
        if self.exit_code is None:
            return None
        if self.exit_code == 0:
            return ExitStatus.SUCCESS
        if self.exit_code < 0:
            return ExitStatus.KILLED
        return ExitStatus.FAILURE
    
    def mark_running(self) -> None:
        self.state = ProcessState.RUNNING
        self.started_at = utcnow()
    
    def mark_failed(self, message: str, code: Optional[str] = None) -> None:
        self.state = ProcessState.FAILED
        self.error_message = message
        self.error_code = code
        self.restart_eligible = False
        self.stopped_at = utcnow()
    
    def record_exit(self, exit_code: int) -> None:
        self.exit_code = exit_code
        self.state = ProcessState.KILLED if exit_code < 0 else ProcessState.EXITED
        self.stopped_at = utcnow()
