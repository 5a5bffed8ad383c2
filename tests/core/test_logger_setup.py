"""Tests for the loguru sink setup."""

import json
import sys

import pytest
from loguru import logger

from resource_planner.core.logger import SERVICE_NAME, setup_logger


@pytest.fixture(autouse=True)
def restore_default_sink():
    yield
    logger.remove()
    logger.configure(extra={})
    logger.add(sys.stderr)


class TestSetupLogger:
    """Tests for setup_logger."""

    def test_stderr_only_returns_no_file_handler(self):
        assert setup_logger(level="WARNING") is None

    def test_file_sink_creates_directories_and_tags_service(self, tmp_path):
        log_file = tmp_path / "logs" / "planner.log"

        handler = setup_logger(level="DEBUG", log_file=str(log_file))
        logger.info("Copied week", operation="copy_week", area_id=1)
        logger.remove(handler)

        text = log_file.read_text()
        assert f"[{SERVICE_NAME}]" in text
        assert "Copied week" in text
        assert "'operation': 'copy_week'" in text

    def test_json_file_sink_keeps_structured_fields(self, tmp_path):
        log_file = tmp_path / "planner.jsonl"

        handler = setup_logger(level="INFO", log_file=str(log_file), json_file=True)
        logger.bind(operation="create_next_week").info("Seeded week")
        logger.debug("Below threshold")
        logger.remove(handler)

        records = [json.loads(line)["record"] for line in log_file.read_text().splitlines()]
        seeded = [r for r in records if r["message"] == "Seeded week"]
        assert len(seeded) == 1
        assert seeded[0]["extra"] == {"service": SERVICE_NAME, "operation": "create_next_week"}
        assert all(r["message"] != "Below threshold" for r in records)
