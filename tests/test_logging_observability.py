import json

import structlog
from structlog.contextvars import clear_contextvars

from alias_runtime.utils.logging import bind_run_context, setup_logging


def test_structured_logs_include_correlation(capsys):
    setup_logging("INFO", "json")
    bind_run_context("web", "run-1")

    logger = structlog.get_logger()
    logger.info("test_event", foo="bar")
    out = capsys.readouterr().err.strip().splitlines()[-1]
    data = json.loads(out)
    assert data["event"] == "test_event"
    assert data["selectedAlias"] == "web"
    assert data["runId"] == "run-1"
    assert data["foo"] == "bar"
    assert data["level"] == "info"
    clear_contextvars()


def test_redaction(capsys):
    setup_logging("INFO", "json")
    logger = structlog.get_logger()
    logger.info("leak_test", password="secret", token="abc")
    out = capsys.readouterr().err.strip().splitlines()[-1]
    data = json.loads(out)
    assert data["password"] == "[REDACTED]"
    assert data["token"] == "[REDACTED]"


def test_environment_redaction(capsys):
    setup_logging("INFO", "json")
    logger = structlog.get_logger()
    logger.info(
        "Starting process",
        alias="api",
        environment={"PORT": "8000", "DB_PASSWORD": "hunter2", "GITHUB_TOKEN": "ghp"},
    )
    data = json.loads(capsys.readouterr().err.strip().splitlines()[-1])
    assert data["environment"] == {
        "PORT": "8000",
        "DB_PASSWORD": "[REDACTED]",
        "GITHUB_TOKEN": "[REDACTED]",
    }


def test_level_filtering(capsys):
    setup_logging("WARNING", "json")
    logger = structlog.get_logger()
    logger.info("hidden")
    logger.warning("shown")
    lines = capsys.readouterr().err.strip().splitlines()
    assert [json.loads(line)["event"] for line in lines] == ["shown"]
