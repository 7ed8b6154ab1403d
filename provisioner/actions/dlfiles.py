"""
Downloads the auxiliary files an OS needs next to its install tree.
"""

# SPDX-License-Identifier: GPL-2.0-or-later

import logging
import os
from typing import TYPE_CHECKING, List

import requests

from provisioner import enums
from provisioner.cexceptions import CX, FileFetchFailedError

if TYPE_CHECKING:
    from provisioner.download_manager import DownloadManager
    from provisioner.items.bootenv import BootEnvironment, FileData
    from provisioner.paths import PathResolver

VALIDATION_METHODS = ("", "exists")


class FileDownloader:
    """
    Makes sure every file listed by the OS of a boot environment is present. Files that are already valid are never
    downloaded again.
    """

    def __init__(self, resolver: "PathResolver", dlmgr: "DownloadManager"):
        """
        Constructor

        :param resolver: Used to find the place of each file on disk.
        :param dlmgr: Performs the actual downloads.
        """
        self.resolver = resolver
        self.dlmgr = dlmgr
        self.logger = logging.getLogger()

    def disk_path(self, bootenv: "BootEnvironment", file_data: "FileData") -> str:
        return self.resolver.path_for(bootenv, enums.Protocol.DISK, file_data.name)

    def validate_file(self, bootenv: "BootEnvironment", file_data: "FileData") -> bool:
        """
        Check a file of a boot environment. Only existence checks are supported for now.

        :return: Whether the file is valid.
        """
        file_path = self.disk_path(bootenv, file_data)
        self.logger.info("Validating file: %s", file_path)
        if file_data.validation_method not in VALIDATION_METHODS:
            self.logger.warning(
                'Unsupported validation method "%s" for %s, checking existence only',
                file_data.validation_method,
                file_data.name,
            )
        return os.path.exists(file_path)

    def get_file(self, bootenv: "BootEnvironment", file_data: "FileData") -> None:
        """
        Download a file of a boot environment to its place in the install tree.

        :raises FileFetchFailedError: In case the download fails.
        """
        file_path = self.disk_path(bootenv, file_data)
        self.logger.info("Downloading file: %s", file_data.name)
        try:
            self.dlmgr.download_file(file_data.url, file_path)
        except (requests.RequestException, OSError, CX) as error:
            raise FileFetchFailedError(file_data.name, file_path, error) from error

    def run(self, bootenv: "BootEnvironment") -> List[str]:
        """
        Validate all files of the boot environment, downloading the ones that are not valid.

        :param bootenv: The boot environment.
        :return: The names of the files that were downloaded.
        :raises FileFetchFailedError: In case a file can't be downloaded or is still invalid afterwards.
        """
        downloaded: List[str] = []
        for file_data in bootenv.os.files:
            if self.validate_file(bootenv, file_data):
                continue
            self.get_file(bootenv, file_data)
            downloaded.append(file_data.name)
            if not self.validate_file(bootenv, file_data):
                raise FileFetchFailedError(
                    file_data.name,
                    self.disk_path(bootenv, file_data),
                    "file is still invalid after the download",
                )
        return downloaded
