"""Tests for AliasRunner."""

import os
import shutil

import pytest

from alias_runtime.core.exceptions import ExecutableNotFoundError
from alias_runtime.core.models import parse_definition
from alias_supervisor.models import ExitStatus, ProcessState
from alias_supervisor.runner import AliasRunner, inherits_stdin


def make_runner(make_supervisor, raw, name="job"):
    supervisor = make_supervisor({name: raw})
    return supervisor, AliasRunner(supervisor, supervisor.definitions[name])


class TestCommandMaterialization:
    """Test argv, environment and working directory construction."""

    def test_resolve_executable(self, make_supervisor):
        _, runner = make_runner(make_supervisor, {"command": "sleep"})
        assert runner.resolve_executable() == shutil.which("sleep")

    def test_missing_executable(self, make_supervisor):
        _, runner = make_runner(make_supervisor, {"command": "no-such-command-for-aliases"})
        with pytest.raises(ExecutableNotFoundError) as exc_info:
            runner.resolve_executable()
        assert exc_info.value.alias == "job"
        assert exc_info.value.command == "no-such-command-for-aliases"

    def test_argv(self, make_supervisor):
        _, runner = make_runner(make_supervisor, {
            "command": "echo",
            "args": "one 'two three'",
            "argsArray": ["four five"],
        })
        assert runner.build_argv("/bin/echo") == ["/bin/echo", "one", "two three", "four five"]

    def test_argv_without_args(self, make_supervisor):
        _, runner = make_runner(make_supervisor, {"command": "true"})
        assert runner.build_argv("/bin/true") == ["/bin/true"]

    def test_environment_overrides_win(self, make_supervisor, monkeypatch):
        monkeypatch.setenv("ALIASES_TEST_SHARED", "parent")
        monkeypatch.setenv("ALIASES_TEST_INHERITED", "kept")
        _, runner = make_runner(make_supervisor, {
            "command": "true",
            "environment": {"ALIASES_TEST_SHARED": "child", "ALIASES_TEST_NEW": 1},
        })
        env = runner.build_environment()
        assert env["ALIASES_TEST_SHARED"] == "child"
        assert env["ALIASES_TEST_INHERITED"] == "kept"
        assert env["ALIASES_TEST_NEW"] == "1"
        # the supervisor's own environment is untouched
        assert os.environ["ALIASES_TEST_SHARED"] == "parent"

    def test_working_directory_relative_to_cwd(self, make_supervisor, monkeypatch, tmp_path):
        monkeypatch.chdir(tmp_path)
        _, runner = make_runner(make_supervisor, {"command": "true", "workingDirectory": "sub/../web"})
        assert runner.resolve_working_directory() == os.path.join(os.getcwd(), "web")

    def test_working_directory_default(self, make_supervisor, monkeypatch, tmp_path):
        monkeypatch.chdir(tmp_path)
        _, runner = make_runner(make_supervisor, {"command": "true"})
        assert runner.resolve_working_directory() == os.getcwd()


class TestInheritsStdin:
    """Test the stdin attachment decision."""

    def test_regular_executable(self):
        assert inherits_stdin("/usr/bin/python3")

    @pytest.mark.parametrize("path", ["C:\\tools\\build.cmd", "C:\\tools\\RUN.BAT", "/opt/x/startbat"])
    def test_script_wrappers(self, path):
        assert not inherits_stdin(path)


@pytest.mark.asyncio
class TestRunnerLifecycle:
    """Test launching, registration and restart policy."""

    async def test_start_registers_process(self, make_supervisor):
        supervisor, runner = make_runner(make_supervisor, {"command": "sleep", "args": "0.1"})
        process = await runner.start()
        assert process.state == ProcessState.RUNNING
        assert supervisor.processes["job"] is process
        assert list(supervisor.history) == [process]
        assert process.started_at is not None

        await runner.supervise(process)
        assert process.state == ProcessState.EXITED
        assert process.exit_status == ExitStatus.SUCCESS
        assert process.done
        assert "job" not in supervisor.processes

    async def test_failure_exit_status(self, make_supervisor):
        supervisor, runner = make_runner(make_supervisor, {"command": "sh", "args": "-c 'exit 2'"})
        await runner.run()
        process = supervisor.history[0]
        assert process.exit_code == 2
        assert process.exit_status == ExitStatus.FAILURE

    async def test_missing_executable_is_terminal(self, make_supervisor):
        supervisor, runner = make_runner(make_supervisor, {
            "command": "no-such-command-for-aliases",
            "restart": True,
        })
        process = await runner.start()
        assert process.state == ProcessState.FAILED
        assert process.done
        assert not process.restart_eligible
        assert "not found" in process.error_message

        await runner.supervise(process)
        assert len(supervisor.history) == 1

    async def test_launch_failure_is_terminal(self, make_supervisor, monkeypatch, tmp_path):
        monkeypatch.chdir(tmp_path)
        supervisor, runner = make_runner(make_supervisor, {
            "command": "true",
            "workingDirectory": "does-not-exist",
            "restart": True,
        })
        await runner.run()
        assert len(supervisor.history) == 1
        assert supervisor.history[0].state == ProcessState.FAILED

    async def test_no_launch_while_stopping(self, make_supervisor):
        supervisor, runner = make_runner(make_supervisor, {"command": "sleep", "args": "1"})
        await supervisor.request_shutdown()
        assert supervisor.stopping
        assert await runner.start() is None
        assert list(supervisor.history) == []

    async def test_restart_creates_one_successor_per_exit(self, make_supervisor):
        supervisor, runner = make_runner(make_supervisor, {
            "command": "sh",
            "args": "-c 'exit 1'",
            "restart": True,
        }, name="flaky")
        launches = []
        original_start = runner.start

        async def counting_start(generation=0):
            process = await original_start(generation)
            launches.append(process)
            if len(launches) == 2:
                supervisor.request_shutdown()
            return process

        runner.start = counting_start
        await runner.run()
        await supervisor.wait()

        # the third start attempt is refused because the supervisor is stopping
        started = [p for p in launches if p is not None]
        assert len(started) == 2
        assert [p.generation for p in started] == [0, 1]
        assert all(p.name == "flaky" for p in started)
        assert all(p.done for p in started)
        assert list(supervisor.history) == started

    async def test_detached_returns_while_running(self, make_supervisor):
        supervisor, runner = make_runner(make_supervisor, {
            "command": "sleep",
            "args": "0.3",
            "background": True,
        })
        task = await runner.run_detached()
        assert task is not None
        process = supervisor.history[0]
        assert process.is_running
        await supervisor.wait()
        assert process.state == ProcessState.EXITED
        assert task.done()

    async def test_failure_records_error_code(self, make_supervisor):
        _, runner = make_runner(make_supervisor, {"command": "no-such-command-for-aliases"})
        process = await runner.start()
        assert process.error_code == "executable_not_found"
