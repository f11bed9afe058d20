"""
This file contains the exceptions raised while acquiring and validating ltex-ls.
"""

from typing import Optional


class LtexBootstrapException(Exception):
    """
    Base class for all errors raised below the DependencyManager boundary.
    """

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NetworkError(LtexBootstrapException):
    """
    Transport-level failure while talking to the release host.
    """


class HttpStatusError(LtexBootstrapException):
    """
    The release host answered with a status that is neither 2xx nor a followed redirect.
    """

    def __init__(self, status_code: int, url: str):
        super().__init__(f"Request to {url} failed with status code {status_code}")
        self.status_code = status_code
        self.url = url


class RedirectError(LtexBootstrapException):
    """
    A redirect response without a usable location header, or too many redirects.
    """

    def __init__(self, status_code: int, url: str, message: Optional[str] = None):
        super().__init__(
            message
            or f"Received redirection status code {status_code} from {url} without location header"
        )
        self.status_code = status_code
        self.url = url


class DownloadCancelledError(LtexBootstrapException):
    """
    The caller cancelled the download; the partial file has been removed.
    """


class IntegrityError(LtexBootstrapException):
    """
    The SHA-256 digest of a downloaded file does not match the catalog.
    """

    def __init__(self, path: str, expected: str, actual: str):
        super().__init__(
            f"Could not verify downloaded file '{path}': "
            f"expected SHA-256 digest {expected}, got {actual}"
        )
        self.path = path
        self.expected = expected
        self.actual = actual


class ExtractionError(LtexBootstrapException):
    """
    The archive could not be decoded, or holds members that are unsafe to extract.
    """


class LayoutError(LtexBootstrapException):
    """
    The extracted archive did not contain exactly one payload directory.
    """


class ValidationError(LtexBootstrapException):
    """
    The installed executable did not run or did not report its version correctly.
    """

    def __init__(self, message: str, stdout: str = "", stderr: str = ""):
        super().__init__(message)
        self.stdout = stdout
        self.stderr = stderr


class ConfigError(LtexBootstrapException):
    """
    A configured value is malformed or unusable.
    """


class UnsupportedPlatformError(ConfigError):
    """
    No release descriptor is known for the host platform and architecture.
    """
