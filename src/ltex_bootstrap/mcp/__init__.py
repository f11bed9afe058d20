from .mcp_runner import LTEX_TOML_SCHEMA, MCPRunner, MCPToolError

__all__ = ["LTEX_TOML_SCHEMA", "MCPRunner", "MCPToolError"]
