"""
Unit tests for logging configuration.
"""

import json
import logging

import structlog

from standard_merkle import StandardMerkleTree
from standard_merkle.logging_config import (
    clear_correlation_id,
    get_correlation_id,
    get_logger,
    set_correlation_id,
    setup_logging,
)


class TestCorrelationId:
    """Test correlation ID context handling."""

    def test_set_generates_id(self):
        correlation_id = set_correlation_id()
        try:
            assert correlation_id
            assert get_correlation_id() == correlation_id
        finally:
            clear_correlation_id()

    def test_set_explicit_id(self):
        set_correlation_id("batch-40")
        try:
            assert get_correlation_id() == "batch-40"
        finally:
            clear_correlation_id()
        assert get_correlation_id() is None


class TestSetupLogging:
    """Test structlog setup."""

    def teardown_method(self):
        structlog.reset_defaults()
        logging.getLogger().handlers.clear()

    def test_json_log_file(self, tmp_path):
        log_file = tmp_path / "logs" / "merkle.log"
        setup_logging(level="DEBUG", log_file=log_file, json_format=True)
        set_correlation_id("build-1")
        try:
            StandardMerkleTree.of([["0x2222222222222222222222222222222222222222", 1]], ["address", "uint256"])
        finally:
            clear_correlation_id()

        for handler in logging.getLogger().handlers:
            handler.flush()

        records = [json.loads(line) for line in log_file.read_text().splitlines() if line.strip()]
        built = [r for r in records if r["event"] == "merkle_tree_built"]
        assert built
        assert built[0]["leaves"] == 1
        assert built[0]["correlation_id"] == "build-1"
        assert built[0]["level"] == "debug"

    def test_level_filters_debug(self, tmp_path):
        log_file = tmp_path / "merkle.log"
        setup_logging(level="WARNING", log_file=log_file, json_format=True)

        StandardMerkleTree.of([["0x2222222222222222222222222222222222222222", 1]], ["address", "uint256"])
        for handler in logging.getLogger().handlers:
            handler.flush()

        assert "merkle_tree_built" not in log_file.read_text()

    def test_get_logger(self):
        setup_logging(level="INFO", json_format=False)
        logger = get_logger("standard_merkle.tests")
        logger.info("hello", answer=42)
