"""Unit tests for settings and logging setup."""

import json
import logging

from medidoc.core.logging_config import setup_logging

from conftest import make_settings


class TestSettings:
    """Test suite for Settings normalization."""

    def test_normalizes_values(self, tmp_path):
        settings = make_settings(tmp_path, log_level="debug", renderer_type=" DOCX ")
        assert settings.log_level == "DEBUG"
        assert settings.renderer_type == "docx"

    def test_output_dir_created(self, tmp_path):
        settings = make_settings(tmp_path, output_dir=tmp_path / "nested" / "out")
        assert settings.output_dir.is_dir()
        assert settings.output_dir.is_absolute()


class TestSetupLogging:
    """Test suite for log file handlers."""

    def test_writes_json_lines(self, tmp_path):
        """Test that info.log receives structured records and error.log only errors."""
        settings = make_settings(tmp_path)
        root = setup_logging(settings)

        logger = logging.getLogger("medidoc.tests")
        logger.info("patient created")
        logger.error("render failed")
        for handler in root.handlers:
            handler.flush()

        info_lines = (settings.log_dir / "info.log").read_text(encoding="utf-8").splitlines()
        records = [json.loads(line) for line in info_lines]
        assert [r["event"] for r in records][-2:] == ["patient created", "render failed"]
        assert records[-1]["level"] == "error"
        assert records[-1]["logger"] == "medidoc.tests"
        assert "timestamp" in records[-1]

        error_lines = (settings.log_dir / "error.log").read_text(encoding="utf-8").splitlines()
        assert [json.loads(line)["event"] for line in error_lines] == ["render failed"]

    def test_repeated_setup_replaces_handlers(self, tmp_path):
        settings = make_settings(tmp_path)
        setup_logging(settings)
        root = setup_logging(settings)
        assert len(root.handlers) == 3
