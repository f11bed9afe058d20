"""
Runtime dependency downloader.

This package handles:
1. Downloading the release archive
2. Verifying its SHA-256 digest
3. Extracting the archive
4. Moving the extracted release into the lib directory
"""

from .downloader import DependencyDownloader
from .installer import DependencyInstaller

__all__ = ["DependencyDownloader", "DependencyInstaller"]
