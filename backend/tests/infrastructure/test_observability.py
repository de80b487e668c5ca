"""Structured Logging — tests for the JSON formatter and logging setup.

Invariants:
    - Base fields always present; known extras only when set
    - setup_logging does not stack handlers when called twice
"""

import json
import logging

from dialectica.infrastructure.observability import JSONFormatter, setup_logging


def _record(**extra):
    record = logging.LogRecord(
        "dialectica.test", logging.INFO, __file__, 1, "Chunk %s analyzed", ("1/3",), None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_json_formatter_base_fields():
    log = json.loads(JSONFormatter().format(_record()))
    assert log["level"] == "INFO"
    assert log["logger"] == "dialectica.test"
    assert log["message"] == "Chunk 1/3 analyzed"
    assert "timestamp" in log
    assert "phase" not in log


def test_json_formatter_includes_known_extras():
    log = json.loads(JSONFormatter().format(_record(
        phase="iterative", chunk_label="Chunk 1/3", axioms_created=2, unrelated="x",
    )))
    assert log["phase"] == "iterative"
    assert log["chunk_label"] == "Chunk 1/3"
    assert log["axioms_created"] == 2
    assert "unrelated" not in log


def test_setup_logging_is_idempotent():
    before = len([h for h in logging.root.handlers if h.get_name() != "dialectica"])
    setup_logging("DEBUG", "text")
    setup_logging("WARNING", "json")
    try:
        assert len(logging.root.handlers) == before + 1
        assert logging.root.level == logging.WARNING
        assert isinstance(logging.root.handlers[-1].formatter, JSONFormatter)
    finally:
        for handler in list(logging.root.handlers):
            if handler.get_name() == "dialectica":
                logging.root.removeHandler(handler)
