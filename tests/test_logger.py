import json

import pytest
from loguru import logger

from sales_scout.utils.config import LoggingConfig
from sales_scout.utils.logger import setup_logging


@pytest.fixture(autouse=True)
def reset_logger():
    yield
    logger.remove()


def test_text_file_sink(tmp_path):
    log_file = tmp_path / "logs" / "scout.log"

    setup_logging(settings=LoggingConfig(file=str(log_file), compression=None))
    logger.debug("not written at INFO")
    logger.info("batch finished")
    logger.remove()

    lines = log_file.read_text().splitlines()
    assert len(lines) == 1
    assert " INFO " in lines[0]
    assert lines[0].endswith("batch finished")


def test_json_file_sink(tmp_path):
    log_file = tmp_path / "scout.jsonl"
    settings = LoggingConfig(file=str(log_file), format="json", compression=None)

    setup_logging(log_level="warning", settings=settings)
    logger.info("dropped")
    logger.warning("product 3: HTTP 500")
    logger.remove()

    records = [json.loads(line) for line in log_file.read_text().splitlines()]
    assert [r["record"]["message"] for r in records] == ["product 3: HTTP 500"]
    assert records[0]["record"]["level"]["name"] == "WARNING"


def test_empty_file_disables_file_sink(tmp_path):
    log_file = tmp_path / "scout.log"

    setup_logging(log_file="", settings=LoggingConfig(file=str(log_file)))
    logger.info("console only")

    assert not log_file.exists()


def test_unknown_format_rejected():
    with pytest.raises(ValueError):
        LoggingConfig(format="xml")
