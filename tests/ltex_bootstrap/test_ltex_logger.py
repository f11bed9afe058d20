"""
Tests for the JSON logger and its in-memory history.
"""

import json
import logging
import os

from ltex_bootstrap.ltex_logger import LtexLogger
from ltex_bootstrap.runtime_dependency_models import ProcessLaunchInfo


def test_log_emits_json(caplog):
    logger = LtexLogger()

    with caplog.at_level(logging.INFO, logger="ltex_bootstrap"):
        logger.log("Downloading ltex-ls", logging.INFO)

    record = json.loads(caplog.records[-1].getMessage())
    assert record["message"] == "Downloading ltex-ls"
    assert record["level"] == "INFO"
    assert record["caller_name"] == "test_log_emits_json"
    assert record["caller_file"] == "test_ltex_logger.py"


def test_history_content():
    logger = LtexLogger()

    logger.log("first line", logging.INFO)
    logger.log("second\nline", logging.WARNING)

    assert logger.content == "first line\nsecond line\n"

    logger.clear()
    assert logger.content == ""


def test_history_is_pruned(monkeypatch):
    clock = [1000.0]
    monkeypatch.setattr("ltex_bootstrap.ltex_logger.time.time", lambda: clock[0])
    logger = LtexLogger()

    logger.log("old", logging.INFO)
    clock[0] += LtexLogger.PRUNE_DURATION - 1
    logger.log("recent", logging.INFO)
    clock[0] += 2
    logger.log("new", logging.INFO)

    assert logger.content == "recent\nnew\n"


def test_log_executable_only_shows_changed_environment(monkeypatch):
    monkeypatch.setenv("LTEX_TEST_UNCHANGED", "same")
    logger = LtexLogger()
    env = dict(os.environ)
    env["JAVA_OPTS"] = "-Xms64m"
    launch_info = ProcessLaunchInfo(cmd="/opt/ltex/bin/ltex-ls-plus", args=["--version"], env=env)

    logger.log_executable(launch_info)

    assert '"JAVA_OPTS": "-Xms64m"' in logger.content
    assert "LTEX_TEST_UNCHANGED" not in logger.content
    assert '"/opt/ltex/bin/ltex-ls-plus"' in logger.content
    assert '["--version"]' in logger.content
