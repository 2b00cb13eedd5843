"""
Tests for logging setup.
"""

import logging
from pathlib import Path

from plopctl.core.observability.logging_config import (
    configure_from_flags,
    resolve_level,
    setup_logging,
)


class TestResolveLevel:
    def test_flags_win(self):
        env = {"PLOPCTL_LOG_LEVEL": "ERROR"}
        assert resolve_level(debug=True, env=env) == "DEBUG"
        assert resolve_level(verbose=True, env=env) == "INFO"
        assert resolve_level(quiet=True, env={}) == "ERROR"

    def test_env_then_default(self):
        assert resolve_level(env={"PLOPCTL_LOG_LEVEL": "INFO"}) == "INFO"
        assert resolve_level(env={}) == "WARNING"


class TestSetupLogging:
    def test_console_level(self):
        setup_logging("INFO")
        root = logging.getLogger()
        assert root.level == logging.INFO
        assert len(root.handlers) == 1

    def test_unknown_level_is_warning(self):
        setup_logging("CHATTY")
        assert logging.getLogger().level == logging.WARNING

    def test_file_handler(self, tmp_path: Path):
        log_file = tmp_path / "plopctl.log"
        setup_logging("WARNING", log_file=str(log_file), log_file_level="DEBUG")
        root = logging.getLogger()
        assert root.level == logging.DEBUG
        logging.getLogger("plopctl.test").debug("hello file")
        for h in root.handlers:
            h.flush()
        assert "hello file" in log_file.read_text()

    def test_werkzeug_quieted(self):
        setup_logging("INFO")
        assert logging.getLogger("werkzeug").level == logging.WARNING

    def test_configure_from_env(self, tmp_path: Path):
        env = {
            "PLOPCTL_LOG_LEVEL": "INFO",
            "PLOPCTL_LOG_FILE": str(tmp_path / "x.log"),
        }
        assert configure_from_flags(env=env) == "INFO"
        assert len(logging.getLogger().handlers) == 2
