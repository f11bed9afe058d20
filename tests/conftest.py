"""
Shared fixtures for the ltex_bootstrap tests.
"""

import os

import pytest

from ltex_bootstrap.ltex_logger import LtexLogger


@pytest.fixture
def logger():
    return LtexLogger()


@pytest.fixture
def installation_root(tmp_path):
    root = tmp_path / "ltex_home"
    root.mkdir()
    return root


@pytest.fixture
def posix_only():
    if os.name != "posix":
        pytest.skip("stub launchers are POSIX shell scripts")
