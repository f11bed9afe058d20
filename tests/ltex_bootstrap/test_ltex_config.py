"""
Tests for LtexConfig and the configuration providers.
"""

import os

import pytest

from ltex_bootstrap.ltex_config import (
    DEFAULT_CODE_LANGUAGE_IDS,
    DictConfigurationProvider,
    LtexConfig,
    TomlConfigurationProvider,
)
from ltex_bootstrap.ltex_exceptions import ConfigError


class TestLtexConfig:
    def test_defaults(self):
        config = LtexConfig()
        assert config.ltex_ls_path is None
        assert config.java_path is None
        assert config.enabled_code_language_ids() == DEFAULT_CODE_LANGUAGE_IDS
        assert config.is_enabled

    def test_disabled(self):
        config = LtexConfig(enabled=False)
        assert config.enabled_code_language_ids() == []
        assert not config.is_enabled

    def test_enabled_list(self):
        config = LtexConfig(enabled=["latex", "markdown"])
        assert config.enabled_code_language_ids() == ["latex", "markdown"]

    def test_from_dict_ignores_unknown_keys(self):
        config = LtexConfig.from_dict({"ltex_ls_path": "/opt/ltex-ls", "unrelated": 1})
        assert config.ltex_ls_path == "/opt/ltex-ls"

    @pytest.mark.parametrize("heap_size", [0, -512, "512", 1.5, True])
    def test_invalid_heap_size(self, heap_size):
        with pytest.raises(ConfigError):
            LtexConfig(java_maximum_heap_size=heap_size)

    def test_invalid_path_type(self):
        with pytest.raises(ConfigError):
            LtexConfig(ltex_ls_path=["/opt/ltex-ls"])

    def test_invalid_enabled(self):
        with pytest.raises(ConfigError):
            LtexConfig(enabled="latex")

    def test_from_provider(self):
        provider = DictConfigurationProvider(
            {
                "ltex-ls.path": "~/ltex-ls",
                "java.path": "/usr/lib/jvm/java-21",
                "java.initialHeapSize": 64,
                "java.maximumHeapSize": 512,
                "enabled": ["latex"],
            }
        )
        config = LtexConfig.from_provider(provider, installation_root="/tmp/ltex")

        assert config.ltex_ls_path == "~/ltex-ls"
        assert config.java_path == "/usr/lib/jvm/java-21"
        assert config.java_initial_heap_size == 64
        assert config.java_maximum_heap_size == 512
        assert config.enabled == ["latex"]
        assert config.installation_root == "/tmp/ltex"


class TestNormalizePath:
    def test_expands_leading_tilde(self):
        home = os.path.expanduser("~")
        assert LtexConfig.normalize_path("~/ltex-ls") == home + "/ltex-ls"
        assert LtexConfig.normalize_path("~") == home

    def test_keeps_other_paths(self):
        assert LtexConfig.normalize_path("/opt/~ltex") == "/opt/~ltex"
        assert LtexConfig.normalize_path("~user/ltex") == "~user/ltex"
        assert LtexConfig.normalize_path(None) is None

    def test_is_valid_path(self):
        assert LtexConfig.is_valid_path("/opt/ltex-ls")
        assert not LtexConfig.is_valid_path("")
        assert not LtexConfig.is_valid_path(None)


class TestTomlConfigurationProvider:
    def test_nested_tables(self, tmp_path):
        toml_path = tmp_path / "ltex.toml"
        toml_path.write_text(
            "[ltex]\n"
            "enabled = false\n"
            "[ltex.ltex-ls]\n"
            'path = "/opt/ltex-ls-plus-18.4.0"\n'
            "[ltex.java]\n"
            "maximumHeapSize = 1024\n"
        )
        provider = TomlConfigurationProvider(str(toml_path))
        config = LtexConfig.from_provider(provider)

        assert config.ltex_ls_path == "/opt/ltex-ls-plus-18.4.0"
        assert config.java_maximum_heap_size == 1024
        assert config.java_initial_heap_size is None
        assert config.enabled is False

    def test_quoted_dotted_keys(self, tmp_path):
        toml_path = tmp_path / "ltex.toml"
        toml_path.write_text('[ltex]\n"java.path" = "/usr/lib/jvm/java-17"\n')
        provider = TomlConfigurationProvider(str(toml_path))

        assert provider.get("java.path") == "/usr/lib/jvm/java-17"
        assert provider.get("ltex-ls.path") is None
        assert provider.get("ltex-ls.path", "fallback") == "fallback"

    def test_invalid_toml(self, tmp_path):
        toml_path = tmp_path / "ltex.toml"
        toml_path.write_text("[ltex\npath = ")
        with pytest.raises(ConfigError):
            TomlConfigurationProvider(str(toml_path))

    def test_invalid_value_type(self, tmp_path):
        toml_path = tmp_path / "ltex.toml"
        toml_path.write_text('[ltex.java]\ninitialHeapSize = "big"\n')
        with pytest.raises(ConfigError):
            LtexConfig.from_provider(TomlConfigurationProvider(str(toml_path)))
