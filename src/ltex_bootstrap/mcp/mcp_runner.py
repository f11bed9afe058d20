"""
MCP (Model Context Protocol) runner for ltex_bootstrap.

This module exposes the acquisition of ltex-ls as MCP tools using the fastmcp
framework. It reads an ``ltex.toml`` configuration file from the workspace root
to find configured paths and Java heap-size hints.

Tools:
1. ltex_install: ensure a working ltex-ls is present (downloads when necessary)
2. ltex_status: report paths and versions of the resolved ltex-ls
3. ltex_executable: return the command line and environment used to start ltex-ls
"""

import asyncio
import json
import logging
import os
from typing import Any, Dict, Optional

from fastmcp import FastMCP

from ltex_bootstrap.language_servers.ltex_ls import DependencyManager
from ltex_bootstrap.ltex_config import LtexConfig, TomlConfigurationProvider
from ltex_bootstrap.ltex_exceptions import ConfigError, LtexBootstrapException
from ltex_bootstrap.ltex_logger import LtexLogger
from ltex_bootstrap.runtime_dependency_models import AcquisitionResult


LTEX_TOML_SCHEMA = """
# ltex_bootstrap configuration

[ltex]
# Directory owned by ltex_bootstrap, installed versions live in <installation-root>/lib
# installation-root = "~/.ltex_bootstrap"

# false, true (default code languages) or a list of code language ids
enabled = true

[ltex.ltex-ls]
# Use this ltex-ls instead of downloading one (optional)
# path = "~/ltex-ls-plus-18.4.0"

[ltex.java]
# Java installation used to run ltex-ls (optional, defaults to the bundled one)
# path = "/usr/lib/jvm/java-21"
# initialHeapSize = 64
# maximumHeapSize = 512
"""


class MCPToolError(Exception):
    """Base exception for MCP tool errors."""

    pass


class MCPRunner:
    """
    MCP runner that owns a DependencyManager and exposes it as MCP tools.

    The configuration is read from ``ltex.toml`` in the workspace root when the
    runner is created. A missing file means default configuration; an invalid file
    is reported by every tool until it is fixed.

    Example usage:
    ```python
    runner = MCPRunner("/path/to/workspace")
    server = runner.create_mcp_server()
    server.run()
    ```
    """

    def __init__(self, workspace_root: Optional[str] = None, logger: Optional[LtexLogger] = None):
        """
        Initialize the MCP runner.

        Args:
            workspace_root: Directory holding ltex.toml. If None, uses current directory.
            logger: Logger shared with the DependencyManager
        """
        self.workspace_root = workspace_root or os.getcwd()
        self.logger = logger or LtexLogger()
        self.config: Optional[LtexConfig] = None
        self.config_error: Optional[str] = None
        self.dependency_manager: Optional[DependencyManager] = None

        self._try_load_config()

    @property
    def config_path(self) -> str:
        return os.path.join(self.workspace_root, "ltex.toml")

    def _try_load_config(self) -> None:
        """
        Attempt to load ltex.toml, but don't fail if it is invalid; the error is
        reported when a tool is called.
        """
        try:
            if os.path.exists(self.config_path):
                provider = TomlConfigurationProvider(self.config_path)
                installation_root = LtexConfig.normalize_path(provider.get("installation-root"))
                self.config = LtexConfig.from_provider(provider, installation_root=installation_root)
                self.logger.log(f"Loaded ltex configuration from '{self.config_path}'", logging.INFO)
            else:
                self.config = LtexConfig()
            self.config_error = None
        except (ConfigError, OSError) as e:
            self.config = None
            self.config_error = str(e)
            self.logger.log(f"Failed to load '{self.config_path}': {e}", logging.ERROR)

    def get_configuration_error_message(self) -> str:
        return (
            f"ltex is not configured correctly: {self.config_error}\n\n"
            f"Please fix '{self.config_path}'. Expected format:\n{LTEX_TOML_SCHEMA}"
        )

    def get_dependency_manager(self) -> DependencyManager:
        """
        Returns the DependencyManager, creating it on first use.

        Raises:
            MCPToolError: if ltex.toml could not be loaded
        """
        if self.config is None:
            self._try_load_config()
        if self.config is None:
            raise MCPToolError(self.get_configuration_error_message())
        if self.dependency_manager is None:
            self.dependency_manager = DependencyManager(self.config, self.logger)
        return self.dependency_manager

    @staticmethod
    def _result_to_dict(result: AcquisitionResult) -> Dict[str, Any]:
        return {
            "success": result.success,
            "message": result.message,
            "attempts": result.attempts,
            "states": [state.value for state in result.states],
            "dependency": result.dependency.model_dump() if result.dependency else None,
            "stdout": result.stdout,
            "stderr": result.stderr,
            "log": result.log,
        }

    async def install(self) -> str:
        try:
            dependency_manager = self.get_dependency_manager()
        except MCPToolError as e:
            return json.dumps({"success": False, "message": str(e)})
        # validation blocks for up to 30 seconds
        result = await asyncio.to_thread(dependency_manager.install)
        return json.dumps(self._result_to_dict(result), indent=2)

    async def status(self) -> str:
        try:
            return self.get_dependency_manager().format_status()
        except MCPToolError as e:
            return str(e)

    async def executable(self) -> str:
        try:
            launch_info = self.get_dependency_manager().get_executable()
        except (MCPToolError, LtexBootstrapException) as e:
            return json.dumps({"error": str(e)})
        return json.dumps(launch_info.to_dict(), indent=2)

    def create_mcp_server(self) -> FastMCP:
        """
        Create and configure a fastmcp server instance with the ltex tools.
        """
        server = FastMCP("ltex-bootstrap")
        self._register_tools(server)
        return server

    def _register_tools(self, server: FastMCP) -> None:
        @server.tool()
        async def ltex_install() -> str:
            """Ensure a working ltex-ls is installed, downloading it if necessary."""
            return await self.install()

        @server.tool()
        async def ltex_status() -> str:
            """Report paths and versions of the resolved ltex-ls."""
            return await self.status()

        @server.tool()
        async def ltex_executable() -> str:
            """Return the command line and environment used to start ltex-ls."""
            return await self.executable()


__all__ = [
    "LTEX_TOML_SCHEMA",
    "MCPRunner",
    "MCPToolError",
]
