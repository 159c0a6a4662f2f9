"""Unit tests for logging utilities."""

from __future__ import annotations

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import TYPE_CHECKING

import pytest

from backendctl.config import LogFormat, LoggingConfig, LogLevel
from backendctl.utils import create_supervisor_logger
from backendctl.utils._logging import _create_logger, _log_level_from_string

if TYPE_CHECKING:
    from pyfakefs.fake_filesystem import FakeFilesystem


@pytest.fixture(autouse=True)
def clear_level_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("BACKENDCTL_DEBUG", raising=False)
    monkeypatch.delenv("BACKENDCTL_LOG_LEVEL", raising=False)


def _rotating_handlers(stem: str) -> list[RotatingFileHandler]:
    found: list[RotatingFileHandler] = []
    for name in logging.root.manager.loggerDict:
        if name.startswith(f"backendctl.{stem}."):
            found.extend(
                handler
                for handler in logging.getLogger(name).handlers
                if isinstance(handler, RotatingFileHandler)
            )
    return found


class TestLogLevelFromString:
    @pytest.mark.parametrize(
        ("level", "expected"),
        [
            ("debug", logging.DEBUG),
            ("info", logging.INFO),
            ("WARNING", logging.WARNING),
            ("error", logging.ERROR),
            ("bogus", logging.INFO),
        ],
    )
    def test_maps_names(self, level: str, expected: int) -> None:
        assert _log_level_from_string(level) == expected

    def test_env_ignored_by_default(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("BACKENDCTL_DEBUG", "1")

        assert _log_level_from_string("error") == logging.ERROR

    def test_debug_env_wins(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("BACKENDCTL_DEBUG", "1")
        monkeypatch.setenv("BACKENDCTL_LOG_LEVEL", "error")

        assert _log_level_from_string("info", respect_env=True) == logging.DEBUG

    def test_level_env_overrides(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("BACKENDCTL_LOG_LEVEL", "warning")

        assert _log_level_from_string("debug", respect_env=True) == logging.WARNING


class TestCreateLogger:
    def test_creates_log_directory_if_missing(self, fs: FakeFilesystem) -> None:
        log_path = Path("/logs/backend.log")
        assert not log_path.parent.exists()

        _ = _create_logger(str(log_path))

        assert log_path.parent.exists()

    def test_default_format_is_json(self, fs: FakeFilesystem) -> None:
        logger = _create_logger("/logs/backend.log")

        logger.info("backend_spawned", pid=4242)

        log_content = Path("/logs/backend.log").read_text()
        assert '"event": "backend_spawned"' in log_content
        assert '"pid": 4242' in log_content
        assert '"level": "info"' in log_content

    def test_text_format(self, fs: FakeFilesystem) -> None:
        logger = _create_logger("/logs/backend.log", log_format="text")

        logger.info("backend_spawned", pid=4242)

        log_content = Path("/logs/backend.log").read_text()
        assert "backend_spawned" in log_content
        assert "pid=4242" in log_content

    def test_filters_below_level(self, fs: FakeFilesystem) -> None:
        logger = _create_logger("/logs/backend.log", log_level=logging.ERROR)

        logger.debug("debug_level_message")
        logger.error("error_level_message")

        log_content = Path("/logs/backend.log").read_text()
        assert "debug_level_message" not in log_content
        assert "error_level_message" in log_content

    def test_stderr_when_no_file(self, capsys: pytest.CaptureFixture[str]) -> None:
        logger = _create_logger()

        logger.warning("relay_transport_failed")

        assert "relay_transport_failed" in capsys.readouterr().err

    def test_rotation_uses_stdlib_handler(self, fs: FakeFilesystem) -> None:
        logger = _create_logger("/logs/rotated.log", max_bytes=1000, backup_count=3)
        logger.info("rotated_message")

        handlers = _rotating_handlers("rotated")
        assert handlers
        assert handlers[-1].maxBytes == 1000
        assert handlers[-1].backupCount == 3
        assert "rotated_message" in Path("/logs/rotated.log").read_text()

    def test_rotation_requires_both_params(self, fs: FakeFilesystem) -> None:
        _ = _create_logger("/logs/partial.log", max_bytes=1000)

        assert _rotating_handlers("partial") == []


class TestCreateSupervisorLogger:
    def test_binds_component(self, fs: FakeFilesystem) -> None:
        config = LoggingConfig(file="/logs/supervisor.log")

        logger = create_supervisor_logger(config, component="relay")
        logger.info("relay_server_error")

        assert '"component": "relay"' in Path("/logs/supervisor.log").read_text()

    def test_file_logs_rotate(self, fs: FakeFilesystem) -> None:
        _ = create_supervisor_logger(LoggingConfig(file="/logs/rotating.log"))

        handlers = _rotating_handlers("rotating")
        assert handlers
        assert handlers[-1].maxBytes == 10 * 1024 * 1024
        assert handlers[-1].backupCount == 5

    def test_respects_configured_level_and_format(self, fs: FakeFilesystem) -> None:
        config = LoggingConfig(
            level=LogLevel.ERROR, format=LogFormat.TEXT, file="/logs/text.log"
        )

        logger = create_supervisor_logger(config)
        logger.info("info_level_message")
        logger.error("backend_startup_failed", pid=1)

        content = Path("/logs/text.log").read_text()
        assert "info_level_message" not in content
        assert "backend_startup_failed" in content
        assert "component=supervisor" in content

    def test_defaults_to_stderr(self, capsys: pytest.CaptureFixture[str]) -> None:
        logger = create_supervisor_logger()

        logger.info("backend_healthy", pid=7)

        err = capsys.readouterr().err
        assert '"event": "backend_healthy"' in err
        assert '"component": "supervisor"' in err
