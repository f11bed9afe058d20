"""
Tests for the MCP tools wrapping the DependencyManager.
"""

import asyncio
import json
import threading
import time

import pytest
from fastmcp import FastMCP

from ltex_bootstrap.language_servers.ltex_ls import ValidationResult
from ltex_bootstrap.mcp import MCPRunner, MCPToolError
from ltex_bootstrap.runtime_dependency_models import VersionInfo
from tests.test_utils import LTEX_LS_VERSION, write_stub_installation

pytest_plugins = ("pytest_asyncio",)


def write_config(workspace, installation_root, extra=""):
    (workspace / "ltex.toml").write_text(
        f'[ltex]\ninstallation-root = "{installation_root.as_posix()}"\n{extra}'
    )


@pytest.mark.asyncio
async def test_status_without_config_file(tmp_path, monkeypatch, logger):
    monkeypatch.setenv("LTEX_BOOTSTRAP_HOME", str(tmp_path / "home"))
    runner = MCPRunner(str(tmp_path), logger)

    status = await runner.status()

    assert runner.config_error is None
    assert "ltex_ls_path: n/a" in status
    assert str(tmp_path / "home") in status


@pytest.mark.asyncio
async def test_invalid_config_file(tmp_path, logger):
    (tmp_path / "ltex.toml").write_text("[ltex\nenabled = ")
    runner = MCPRunner(str(tmp_path), logger)

    status = await runner.status()
    install = json.loads(await runner.install())

    assert runner.config_error
    assert "ltex is not configured correctly" in status
    assert "Expected format" in status
    assert install["success"] is False
    with pytest.raises(MCPToolError):
        runner.get_dependency_manager()


@pytest.mark.asyncio
async def test_executable_before_install(tmp_path, installation_root, logger):
    write_config(tmp_path, installation_root)
    runner = MCPRunner(str(tmp_path), logger)

    executable = json.loads(await runner.executable())

    assert "has not been installed" in executable["error"]


@pytest.mark.asyncio
async def test_install_with_preinstalled_release(tmp_path, installation_root, logger, posix_only):
    write_stub_installation(installation_root / "lib" / f"ltex-ls-plus-{LTEX_LS_VERSION}")
    write_config(tmp_path, installation_root, "\n[ltex.java]\nmaximumHeapSize = 512\n")
    runner = MCPRunner(str(tmp_path), logger)

    install = json.loads(await runner.install())
    executable = json.loads(await runner.executable())
    status = await runner.status()

    assert install["success"] is True, install["message"]
    assert install["states"][-1] == "ready"
    assert install["dependency"]["reported_version"] == LTEX_LS_VERSION
    assert executable["cmd"].endswith("ltex-ls-plus")
    assert executable["env"]["JAVA_OPTS"] == "-Xmx512m"
    assert f"ltex_ls_version: {LTEX_LS_VERSION}" in status


def test_create_mcp_server(tmp_path, logger):
    server = MCPRunner(str(tmp_path), logger).create_mcp_server()

    assert isinstance(server, FastMCP)
    assert server.name == "ltex-bootstrap"


class CountingValidator:
    def __init__(self):
        self.active = 0
        self.max_active = 0
        self.lock = threading.Lock()

    def validate(self, launch_info):
        with self.lock:
            self.active += 1
            self.max_active = max(self.max_active, self.active)
        time.sleep(0.3)
        with self.lock:
            self.active -= 1
        return ValidationResult(
            success=True,
            version_info=VersionInfo(ltex_ls_version=LTEX_LS_VERSION, java_version="21", java_major_version=21),
            exit_code=0,
        )


@pytest.mark.asyncio
async def test_concurrent_installs_run_one_at_a_time(tmp_path, installation_root, logger):
    write_stub_installation(installation_root / "lib" / f"ltex-ls-plus-{LTEX_LS_VERSION}")
    write_config(tmp_path, installation_root)
    runner = MCPRunner(str(tmp_path), logger)
    validator = CountingValidator()
    runner.get_dependency_manager().validator = validator

    results = await asyncio.gather(runner.install(), runner.install())

    assert [json.loads(result)["success"] for result in results] == [True, True]
    assert validator.max_active == 1


@pytest.mark.asyncio
async def test_failed_install_reports_log(tmp_path, installation_root, logger):
    write_config(tmp_path, installation_root, '"ltex-ls.path" = "/nonexistent/ltex-ls"\n')
    runner = MCPRunner(str(tmp_path), logger)

    install = json.loads(await runner.install())

    assert install["success"] is False
    assert "is not a directory" in install["message"]
    assert "/nonexistent/ltex-ls" in install["log"]
