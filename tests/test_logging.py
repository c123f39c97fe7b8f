"""Test unified logging configuration.

Tests for aquarelle.utils.logging_config:
    - setup_logging is idempotent (handlers replaced, never duplicated)
    - Unknown levels / rotation modes raise
    - Context fields appear in human and JSON output
    - File handler writes JSON lines

Run:
    pytest tests/test_logging.py -v
"""

import json
import logging

import pytest

from aquarelle.utils import logging_config


@pytest.fixture(autouse=True)
def restore_root_logger():
    root = logging.getLogger()
    saved_handlers = list(root.handlers)
    saved_level = root.level
    logging_config.pop_context()
    yield
    for handler in list(root.handlers):
        if handler not in saved_handlers:
            root.removeHandler(handler)
            handler.close()
    for handler in saved_handlers:
        if handler not in root.handlers:
            root.addHandler(handler)
    root.setLevel(saved_level)
    logging_config.pop_context()
    logging.captureWarnings(False)


def _record(msg="Rendered frame", level=logging.INFO):
    return logging.LogRecord("aquarelle.test", level, __file__, 1, msg, None, None)


def test_setup_logging_idempotent():
    first = logging_config.setup_logging("INFO", color=False)
    second = logging_config.setup_logging("DEBUG", color=False)
    root = logging.getLogger()
    assert len(first) == len(second) == 1
    assert not any(h in root.handlers for h in first)
    assert root.level == logging.DEBUG


def test_unknown_level_rejected():
    with pytest.raises(ValueError):
        logging_config.setup_logging("LOUD")


def test_unknown_rotation_rejected(tmp_path):
    with pytest.raises(ValueError):
        logging_config.setup_logging(
            "INFO", log_file=str(tmp_path / "a.log"), to_stderr=False, rotate={'mode': 'weekly'}
        )


def test_human_format_includes_context():
    logging_config.push_context(seed=42.0, size="64x64")
    line = logging_config.ContextFormatter("human", use_color=False).format(_record())
    assert "INFO" in line
    assert "seed=42.0 size=64x64" in line
    assert line.endswith("Rendered frame")


def test_json_format_includes_context():
    logging_config.push_context(seed=7.25)
    payload = json.loads(logging_config.ContextFormatter("json").format(_record(level=logging.WARNING)))
    assert payload['level'] == "WARNING"
    assert payload['seed'] == 7.25
    assert payload['msg'] == "Rendered frame"


def test_pop_context_keys():
    logging_config.push_context(seed=1.0, frame=3)
    logging_config.pop_context(keys=["frame"])
    line = logging_config.ContextFormatter("human", use_color=False).format(_record())
    assert "seed=1.0" in line
    assert "frame=" not in line


def test_bad_format_mode():
    with pytest.raises(ValueError):
        logging_config.ContextFormatter("xml")


def test_file_handler_json_lines(tmp_path):
    log_file = tmp_path / "logs" / "render.log"
    handlers = logging_config.setup_logging(
        "INFO", log_file=str(log_file), json_format=True, to_stderr=False, context={'app': 'test'}
    )
    logging_config.get_logger("aquarelle.test").info("hello")
    for handler in handlers:
        handler.flush()

    lines = log_file.read_text().strip().splitlines()
    record = json.loads(lines[-1])
    assert record['msg'] == "hello"
    assert record['app'] == "test"


def test_log_context_is_scoped():
    logging_config.push_context(seed=42.0)
    fmt = logging_config.ContextFormatter("human", use_color=False)
    with logging_config.log_context(frame=3):
        assert "seed=42.0 frame=3" in fmt.format(_record())
    line = fmt.format(_record())
    assert "seed=42.0" in line
    assert "frame=" not in line
