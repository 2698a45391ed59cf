"""Unit tests for the run-scoped structured logger."""

import json
import logging

from payroll_validation.logger import JSONFormatter, ProductionLogger, get_logger


def test_json_formatter_includes_run_id_and_extra_fields():
    formatter = JSONFormatter("run-42")
    record = logging.LogRecord("payroll", logging.INFO, __file__, 10, "hello %s", ("world",), None)
    record.extra_data = {"validator": "SalaryValidator"}
    payload = json.loads(formatter.format(record))
    assert payload["run_id"] == "run-42"
    assert payload["message"] == "hello world"
    assert payload["level"] == "INFO"
    assert payload["validator"] == "SalaryValidator"


def test_production_logger_writes_json_lines(tmp_path):
    run_logger = ProductionLogger(run_id="run-test-1", log_dir=tmp_path, console=False)
    try:
        run_logger.log_event("INFO", "Validator finished", validator="TaxIdValidator", result_count=3)
        run_logger.log_event("DEBUG", "not written at INFO level")
    finally:
        run_logger.close()

    lines = (tmp_path / "validation.log").read_text(encoding="utf-8").strip().splitlines()
    assert len(lines) == 1
    entry = json.loads(lines[0])
    assert entry["run_id"] == "run-test-1"
    assert entry["validator"] == "TaxIdValidator"
    assert entry["result_count"] == 3


def test_get_logger_generates_run_id(tmp_path):
    run_logger = get_logger(log_dir=tmp_path / "logs")
    try:
        assert run_logger.run_id
        assert (tmp_path / "logs").is_dir()
    finally:
        run_logger.close()
