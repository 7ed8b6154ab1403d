"""
Expansion of the partial paths of a boot environment into paths and URLs for disk, TFTP and network access.
"""

# SPDX-License-Identifier: GPL-2.0-or-later

import os.path
import posixpath
from typing import TYPE_CHECKING, Union

from provisioner import enums
from provisioner.cexceptions import CX, UnknownProtocolError

if TYPE_CHECKING:
    from provisioner.items.bootenv import BootEnvironment, OsInfo
    from provisioner.settings import Settings


class PathResolver:
    """
    Maps partial paths of a boot environment to the place a file can be reached at.
    """

    def __init__(self, settings: "Settings"):
        """
        Constructor

        :param settings: The settings holding the install root and the base URL.
        """
        self.settings = settings

    @staticmethod
    def install_segment(os_name: str) -> str:
        """
        The directory of an OS below the install root. Only the discovery environment lives directly in its OS
        directory.

        :param os_name: The name of the OS.
        """
        if os_name == enums.DISCOVERY_OS:
            return os_name
        return posixpath.join(os_name, "install")

    def path_for(
        self,
        bootenv: "BootEnvironment",
        protocol: Union[str, enums.Protocol],
        partial_path: str,
    ) -> str:
        """
        Expand a partial path of a boot environment.

        :param bootenv: The boot environment the file belongs to.
        :param protocol: "disk" for the absolute path inside the install root, "tftp" for the path relative to the TFTP
                         root and "network" for the URL the file is served at.
        :param partial_path: The path relative to the install tree of the OS.
        :return: The expanded path or URL.
        :raises UnknownProtocolError: In case the protocol is not one of the above. This is a bug in the caller.
        """
        try:
            protocol = enums.Protocol.to_enum(protocol)
        except (TypeError, ValueError) as error:
            raise UnknownProtocolError(protocol) from error

        relative = self.relative_path(bootenv, partial_path)
        if protocol == enums.Protocol.DISK:
            return os.path.join(self.settings.file_root, relative)
        if protocol == enums.Protocol.TFTP:
            return relative
        return f"{self.settings.provisioner_url}/{relative}"

    def relative_path(self, bootenv: "BootEnvironment", partial_path: str) -> str:
        """
        The clean path of a file below the install root. A leading "/" of the partial path is relative to the install
        tree of the OS as well.

        :param bootenv: The boot environment the file belongs to.
        :param partial_path: The path relative to the install tree of the OS.
        :raises CX: In case the path leaves the install root.
        """
        segment = self.install_segment(bootenv.os.name)
        relative = posixpath.normpath(posixpath.join(segment, partial_path.lstrip("/")))
        if relative == ".." or relative.startswith("../"):
            raise CX("%s of %s leaves the install root", partial_path, bootenv.name)
        return relative

    def join_initrds(
        self, bootenv: "BootEnvironment", protocol: Union[str, enums.Protocol]
    ) -> str:
        """
        Expand all initrds of a boot environment and join them with spaces.

        :param bootenv: The boot environment.
        :param protocol: See ``path_for``.
        """
        return " ".join(
            self.path_for(bootenv, protocol, initrd) for initrd in bootenv.initrds
        )

    def install_url(self, os_info: "OsInfo") -> str:
        """
        The URL the install tree of an OS is served at.

        :param os_info: The OS.
        """
        return f"{self.settings.provisioner_url}/{posixpath.join(os_info.name, 'install')}"
