"""Tests for the JSONL crawl log."""

import json
import logging

import pytest

from partscrape.logging_config import get_logger, log_crawl_event, setup_logging


@pytest.fixture
def crawl_log(tmp_path):
    logger = setup_logging(level=logging.WARNING, log_dir=tmp_path, run_id="run-1")
    yield tmp_path
    logger.handlers.clear()
    logger.propagate = True


def read_entries(log_dir):
    (path,) = log_dir.glob("crawl_*.jsonl")
    return [json.loads(line) for line in path.read_text(encoding="utf-8").splitlines()]


def test_events_are_flattened_into_entries(crawl_log):
    log_crawl_event("product_error", {"category": "cpus", "url": "https://pcpartpicker.com/product/x"})

    (entry,) = read_entries(crawl_log)
    assert entry["event_type"] == "product_error"
    assert entry["category"] == "cpus"
    assert entry["url"] == "https://pcpartpicker.com/product/x"
    assert entry["run_id"] == "run-1"
    assert entry["message"] == "product_error cpus"


def test_module_logs_reach_file_below_console_level(crawl_log, capsys):
    get_logger("scraper").debug("page parsed")

    (entry,) = read_entries(crawl_log)
    assert entry["logger"] == "partscrape.scraper"
    assert entry["level"] == "DEBUG"
    assert "event_type" not in entry
    assert capsys.readouterr().out == ""
