"""
Configuration parameters for the acquisition of ltex-ls.

Values are read through a narrow key-value interface so that the host application
can plug in its own settings store. An ``ltex.toml`` file backed provider is
included for standalone use.
"""

import inspect
import os
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Protocol, Union

try:
    import tomllib
except ModuleNotFoundError:
    # Python < 3.11
    import tomli as tomllib

from ltex_bootstrap.ltex_exceptions import ConfigError

DEFAULT_CODE_LANGUAGE_IDS = [
    "bibtex",
    "context",
    "context.tex",
    "html",
    "latex",
    "markdown",
    "mdx",
    "typst",
    "org",
    "quarto",
    "restructuredtext",
    "rsweave",
]

# configuration key -> LtexConfig field
CONFIG_KEYS = {
    "ltex-ls.path": "ltex_ls_path",
    "java.path": "java_path",
    "java.initialHeapSize": "java_initial_heap_size",
    "java.maximumHeapSize": "java_maximum_heap_size",
    "enabled": "enabled",
}


class ConfigurationProvider(Protocol):
    """
    Key-value store the configuration is read from.
    """

    def get(self, key: str, default: Any = None) -> Any:
        ...


class DictConfigurationProvider:
    """
    Configuration provider backed by a flat dictionary of dotted keys.
    """

    def __init__(self, values: Optional[Dict[str, Any]] = None):
        self.values = dict(values or {})

    def get(self, key: str, default: Any = None) -> Any:
        return self.values.get(key, default)


class TomlConfigurationProvider:
    """
    Configuration provider reading the ``[ltex]`` table of a TOML file.

    Dotted keys can be written either quoted (``"ltex-ls.path" = "..."``) or as
    nested tables (``[ltex.ltex-ls]`` with ``path = "..."``).
    """

    def __init__(self, toml_path: str, section: str = "ltex"):
        self.toml_path = toml_path
        try:
            with open(toml_path, "rb") as f:
                toml_dict = tomllib.load(f)
        except tomllib.TOMLDecodeError as e:
            raise ConfigError(f"Could not parse {toml_path}: {e}") from e
        section_dict = toml_dict.get(section, {})
        if not isinstance(section_dict, dict):
            raise ConfigError(f"'{section}' in {toml_path} must be a table")
        self.values = section_dict

    def get(self, key: str, default: Any = None) -> Any:
        if key in self.values:
            return self.values[key]

        current: Any = self.values
        for part in key.split("."):
            if isinstance(current, dict) and part in current:
                current = current[part]
            else:
                return default
        return current


@dataclass
class LtexConfig:
    """
    Configuration parameters
    """

    ltex_ls_path: Optional[str] = None
    java_path: Optional[str] = None
    java_initial_heap_size: Optional[int] = None
    java_maximum_heap_size: Optional[int] = None
    enabled: Union[bool, List[str]] = True
    installation_root: Optional[str] = field(default=None)

    def __post_init__(self):
        for name in ("ltex_ls_path", "java_path", "installation_root"):
            value = getattr(self, name)
            if value is not None and not isinstance(value, str):
                raise ConfigError(f"'{name}' must be a string, got {type(value).__name__}")

        for name in ("java_initial_heap_size", "java_maximum_heap_size"):
            value = getattr(self, name)
            if value is None:
                continue
            # bool is a subclass of int
            if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
                raise ConfigError(f"'{name}' must be a positive integer (MB), got {value!r}")

        if not isinstance(self.enabled, bool):
            if not isinstance(self.enabled, list) or not all(
                isinstance(code_language_id, str) for code_language_id in self.enabled
            ):
                raise ConfigError(
                    f"'enabled' must be a boolean or a list of code language ids, got {self.enabled!r}"
                )

    @classmethod
    def from_dict(cls, env: Dict[str, Any]) -> "LtexConfig":
        """
        Create a LtexConfig instance from a dictionary
        """
        return cls(**{k: v for k, v in env.items() if k in inspect.signature(cls).parameters})

    @classmethod
    def from_provider(
        cls, provider: ConfigurationProvider, installation_root: Optional[str] = None
    ) -> "LtexConfig":
        """
        Create a LtexConfig instance from a configuration key-value provider
        """
        values: Dict[str, Any] = {"installation_root": installation_root}
        for key, field_name in CONFIG_KEYS.items():
            value = provider.get(key)
            if value is not None:
                values[field_name] = value
        return cls.from_dict(values)

    def enabled_code_language_ids(self) -> List[str]:
        if self.enabled is True:
            return list(DEFAULT_CODE_LANGUAGE_IDS)
        if self.enabled is False:
            return []
        return list(self.enabled)

    @property
    def is_enabled(self) -> bool:
        return len(self.enabled_code_language_ids()) > 0

    @staticmethod
    def normalize_path(path: Optional[str]) -> Optional[str]:
        """
        Expands a leading ``~`` to the home directory of the current user.
        """
        if path is None:
            return None
        if path == "~" or path.startswith("~/") or path.startswith("~\\"):
            return os.path.expanduser("~") + path[1:]
        return path

    @staticmethod
    def is_valid_path(path: Optional[str]) -> bool:
        return path is not None and len(path) > 0
