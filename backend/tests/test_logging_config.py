"""
Tests for log formatting.
"""

import json
import logging

from gantry.logging_config import ColoredFormatter, JsonFormatter, get_logger


def make_record(level=logging.INFO, **extra):
    record = logging.LogRecord("gantry.test", level, __file__, 1, "moved %s", ("A",), None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestFormatters:

    def test_json_includes_context_fields(self):
        record = make_record(project_id="project-1", task_id="A")

        payload = json.loads(JsonFormatter().format(record))

        assert payload["message"] == "moved A"
        assert payload["level"] == "INFO"
        assert payload["project_id"] == "project-1"
        assert payload["task_id"] == "A"
        assert "alert_id" not in payload

    def test_colored_output_wraps_message(self):
        output = ColoredFormatter().format(make_record(logging.WARNING))

        assert "WARNING" in output
        assert "moved A" in output
        assert output.endswith("\x1b[0m")

    def test_logger_names_are_prefixed(self):
        assert get_logger("services.graph").name == "gantry.services.graph"
        assert get_logger("gantry.worker").name == "gantry.worker"
