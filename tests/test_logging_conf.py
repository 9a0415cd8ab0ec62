# tests/test_logging_conf.py
"""
Logging Configuration Tests

Files that USE this module:
- pytest (test runner executes these tests)

Files that this module USES:
- viberate.shared.logging_conf (setup_logging)
"""
import logging  # Log levels and library loggers

from viberate.shared.logging_conf import setup_logging


class TestSetupLogging:
    def test_log_dir_creates_rotating_file(self, tmp_path):
        log_dir = tmp_path / "logs"
        setup_logging(level=logging.INFO, log_dir=log_dir, max_bytes=1024, backup_count=1)
        assert (log_dir / "viberate.log").exists()

    def test_httpx_is_quieted(self, monkeypatch):
        monkeypatch.setenv("VIBERATE_LOG_STDOUT", "false")
        setup_logging()
        assert logging.getLogger("httpx").level == logging.WARNING
