"""
Extracts the installation ISO of a boot environment into the install tree of its OS.

The extraction runs once per OS. When it is done, the external extraction procedure leaves a canary file in the install
tree, and every later run stops as soon as it sees that file.
"""

# SPDX-License-Identifier: GPL-2.0-or-later

import logging
import os
from typing import TYPE_CHECKING

from provisioner import enums, utils
from provisioner.cexceptions import ChecksumMismatchError, MediaExtractionError
from provisioner.utils import filesystem_helpers

if TYPE_CHECKING:
    from provisioner.items.bootenv import BootEnvironment
    from provisioner.paths import PathResolver
    from provisioner.settings import Settings

CANARY_SUFFIX = ".rebar_canary"


class IsoExploder:
    """
    Handles the one-time extraction of installation media.
    """

    def __init__(self, settings: "Settings", resolver: "PathResolver"):
        """
        Constructor

        :param settings: Provides the install root and the extraction command.
        :param resolver: Used to locate the canary file.
        """
        self.settings = settings
        self.resolver = resolver
        self.logger = logging.getLogger()

    def canary_path(self, bootenv: "BootEnvironment") -> str:
        """
        The file that marks a finished extraction for the OS of a boot environment.
        """
        return self.resolver.path_for(
            bootenv, enums.Protocol.DISK, f".{bootenv.os.name}{CANARY_SUFFIX}"
        )

    def iso_path(self, bootenv: "BootEnvironment") -> str:
        """
        The place the ISO of a boot environment is staged at.
        """
        return os.path.join(self.settings.file_root, "isos", bootenv.os.iso_file)

    def verify_checksum(self, bootenv: "BootEnvironment", iso_path: str) -> None:
        """
        Compare the SHA256 sum of the ISO against the configured one. Nothing is checked if no sum is configured.

        :raises ChecksumMismatchError: In case the sums differ.
        :raises MediaExtractionError: In case the ISO can't be read.
        """
        expected = bootenv.os.iso_sha256
        if not expected:
            return
        try:
            actual = filesystem_helpers.sha256_file(iso_path)
        except OSError as error:
            self.logger.error("Explode ISO: For %s, failed to read iso file %s", bootenv.name, iso_path)
            raise MediaExtractionError(bootenv.name, f"failed to read {iso_path}") from error
        if actual != expected:
            raise ChecksumMismatchError(iso_path, actual, expected)

    def run(self, bootenv: "BootEnvironment") -> bool:
        """
        Extract the ISO of a boot environment unless there is nothing to do.

        :param bootenv: The boot environment.
        :return: True if the extraction procedure ran, False if it was skipped.
        :raises ChecksumMismatchError: In case the ISO is corrupt.
        :raises MediaExtractionError: In case the extraction procedure fails.
        """
        if not bootenv.is_install:
            self.logger.info("Explode ISO: Skipping %s because it is not an install environment", bootenv.name)
            return False
        if not bootenv.os.iso_file:
            self.logger.info("Explode ISO: Skipping %s because no iso image is specified", bootenv.name)
            return False
        canary_path = self.canary_path(bootenv)
        if os.path.exists(canary_path):
            self.logger.info(
                "Explode ISO: Skipping %s because canary file %s is in place", bootenv.name, canary_path
            )
            return False

        iso_path = self.iso_path(bootenv)
        if not os.path.exists(iso_path):
            self.logger.info("Explode ISO: Skipping %s because iso doesn't exist: %s", bootenv.name, iso_path)
            return False

        self.verify_checksum(bootenv, iso_path)

        cmd = [
            self.settings.explode_iso_command,
            bootenv.os.name,
            iso_path,
            os.path.dirname(canary_path),
        ]
        try:
            _, return_code = utils.subprocess_sp(cmd, shell=False)
        except ValueError as error:
            raise MediaExtractionError(bootenv.name, error) from error
        if return_code != 0:
            self.logger.error("Explode ISO: command failed for %s with exit code %s", bootenv.name, return_code)
            raise MediaExtractionError(bootenv.name, f"{cmd[0]} exited with {return_code}")
        self.logger.info("Explode ISO: Extracted %s into %s", iso_path, os.path.dirname(canary_path))
        return True
