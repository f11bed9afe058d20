"""
Defines the locations and constants used while acquiring ltex-ls.
"""

import os
import pathlib


class LtexSettings:
    """
    Provides the various settings for ltex_bootstrap.
    """

    USER_AGENT = "ltex-bootstrap"
    OFFLINE_INSTRUCTIONS_URL = (
        "https://ltex-plus.github.io/ltex-plus/vscode-ltex-plus/"
        "installation-usage-vscode-ltex-plus.html#offline-installation"
    )
    VALIDATION_TIMEOUT = 30
    PROGRESS_UPDATE_INTERVAL = 0.5
    MAX_REDIRECTS = 10
    DOWNLOAD_CHUNK_SIZE = 64 * 1024
    TEMP_DIR_PREFIX = "tmp-"

    @staticmethod
    def get_installation_root() -> str:
        """
        Returns the directory owned by ltex_bootstrap. ``LTEX_BOOTSTRAP_HOME`` overrides
        the default location in the user's home directory.
        """
        override = os.environ.get("LTEX_BOOTSTRAP_HOME")
        if override:
            return str(pathlib.Path(override).expanduser())
        return str(pathlib.Path.home() / ".ltex_bootstrap")

    @staticmethod
    def get_lib_directory(installation_root: str) -> str:
        """
        Returns the directory holding the installed ltex-ls versions.
        """
        return str(pathlib.PurePath(installation_root, "lib"))
