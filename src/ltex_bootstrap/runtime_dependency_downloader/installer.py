"""
Moves an extracted release from its scratch directory into the lib directory.
"""

import logging
import os
import shutil
from typing import List

from ltex_bootstrap.ltex_exceptions import LayoutError
from ltex_bootstrap.ltex_logger import LtexLogger


class DependencyInstaller:
    """
    Finds the payload directory produced by extraction and renames it into the lib
    directory. Installing never overwrites: an existing target is kept as is.
    """

    def __init__(self, logger: LtexLogger, tolerate_extra_directories: bool = False):
        """
        Args:
            logger: Logger for progress and error messages
            tolerate_extra_directories: keep the first directory and only warn about
                further top-level directories instead of failing
        """
        self.logger = logger
        self.tolerate_extra_directories = tolerate_extra_directories

    def install(self, scratch_dir: str, lib_dir: str) -> str:
        """
        Returns the path of the installed directory.

        Raises:
            LayoutError: if the scratch directory does not hold exactly one directory
        """
        extracted_dir = self.find_extracted_directory(scratch_dir)
        target_dir = os.path.join(lib_dir, os.path.basename(extracted_dir))

        if os.path.exists(target_dir):
            self.logger.log(
                f"Did not move '{extracted_dir}' to '{target_dir}', as target already exists",
                logging.WARNING,
            )
        else:
            self.logger.log(f"Moving '{extracted_dir}' to '{target_dir}'", logging.INFO)
            os.rename(extracted_dir, target_dir)

        self.remove_scratch_directory(scratch_dir)
        return target_dir

    def find_extracted_directory(self, scratch_dir: str) -> str:
        """
        Deletes stray regular files in the scratch directory and returns the single
        top-level directory.
        """
        self.logger.log(f"Searching for directory in '{scratch_dir}'", logging.INFO)
        directories: List[str] = []

        for name in sorted(os.listdir(scratch_dir)):
            path = os.path.join(scratch_dir, name)
            if os.path.isdir(path) and not os.path.islink(path):
                directories.append(path)
                continue

            try:
                self.logger.log(f"Deleting '{path}'", logging.INFO)
                os.remove(path)
            except OSError as e:
                self.logger.log(
                    f"Could not delete '{path}', leaving temporary file on disk: {e}",
                    logging.WARNING,
                )

        if not directories:
            raise LayoutError(f"Could not find a directory after extracting the archive in '{scratch_dir}'")

        if len(directories) > 1:
            if not self.tolerate_extra_directories:
                raise LayoutError(
                    f"Found {len(directories)} directories after extracting the archive "
                    f"in '{scratch_dir}', expected exactly one: "
                    + ", ".join(os.path.basename(path) for path in directories)
                )
            for path in directories[1:]:
                self.logger.log(
                    f"Found multiple directories after extraction: '{directories[0]}' and '{path}', "
                    f"using the former",
                    logging.WARNING,
                )

        self.logger.log(f"Found extracted directory '{directories[0]}'", logging.INFO)
        return directories[0]

    def remove_scratch_directory(self, scratch_dir: str) -> None:
        if not os.path.exists(scratch_dir):
            return
        try:
            self.logger.log(f"Deleting '{scratch_dir}'", logging.INFO)
            shutil.rmtree(scratch_dir)
        except OSError as e:
            self.logger.log(
                f"Could not delete '{scratch_dir}', leaving temporary directory on disk: {e}",
                logging.WARNING,
            )
