import json
import logging

import colorlog
import pytest
import structlog

from suiflow.infrastructure.logging import get_workflow_logger, setup_logging


@pytest.fixture(autouse=True)
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


def test_color_format_is_default(monkeypatch):
    monkeypatch.delenv("SUIFLOW_LOG_FORMAT", raising=False)
    monkeypatch.setenv("SUIFLOW_LOG_LEVEL", "debug")
    root = setup_logging()
    assert root.level == logging.DEBUG
    assert isinstance(root.handlers[0].formatter, colorlog.ColoredFormatter)
    assert logging.getLogger("httpx").level == logging.WARNING


def test_unknown_format_falls_back_to_color(monkeypatch):
    monkeypatch.setenv("SUIFLOW_LOG_FORMAT", "xml")
    root = setup_logging(level="warning")
    assert root.level == logging.WARNING
    assert isinstance(root.handlers[0].formatter, colorlog.ColoredFormatter)


def test_color_format_tolerates_records_without_context(capsys):
    setup_logging(level=logging.INFO, format_type="color")
    logging.getLogger("suiflow.test").info("plain message")
    assert "-/-/- | plain message" in capsys.readouterr().out


def test_json_format_carries_workflow_fields(capsys):
    root = setup_logging(level=logging.INFO, format_type="json")
    assert isinstance(root.handlers[0].formatter, structlog.stdlib.ProcessorFormatter)

    get_workflow_logger("suiflow.test", run_id="wf-1", route="core", network="testnet").info("simulate %s", "ok")
    record = json.loads(capsys.readouterr().out.strip().splitlines()[-1])
    assert record["event"] == "simulate ok"
    assert record["run_id"] == "wf-1"
    assert record["route"] == "core"
    assert record["network"] == "testnet"
    assert record["level"] == "info"


def test_workflow_logger_merges_call_extra(caplog):
    adapter = get_workflow_logger("suiflow.test", run_id="wf-2")
    with caplog.at_level(logging.INFO, logger="suiflow.test"):
        adapter.info("hello", extra={"network": "mainnet"})
    record = caplog.records[-1]
    assert record.run_id == "wf-2"
    assert record.route == "-"
    assert record.network == "mainnet"
