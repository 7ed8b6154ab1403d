"""
This module is responsible for containing all enums we use in the provisioner. It should not be dependent upon any
other module except the Python standard library.
"""

# SPDX-License-Identifier: GPL-2.0-or-later

import enum
from typing import TypeVar, Union

CONVERTABLEENUM = TypeVar("CONVERTABLEENUM", bound="ConvertableEnum")

DISCOVERY_OS = "discovery"
"""
OS name of the discovery environment. Its files live directly below the OS directory without the "install" part.
"""

INSTALL_SUFFIX = "-install"
"""
Boot environments with this name suffix install an operating system from media.
"""


class ConvertableEnum(enum.Enum):
    """
    Abstract class to convert the enum via our convert method.
    """

    @classmethod
    def to_enum(cls, value: Union[str, CONVERTABLEENUM]) -> CONVERTABLEENUM:
        """
        This method converts the chosen str to the corresponding enum type.

        :param value: str which contains the to be converted value.
        :returns: The enum value.
        :raises TypeError: In case value was not of type str.
        :raises ValueError: In case value was not in the range of valid values.
        """
        try:
            if isinstance(value, str):
                return cls[value.upper()]  # type: ignore
            if isinstance(value, cls):
                return value  # type: ignore
            raise TypeError(f"{value} must be a str or Enum")
        except KeyError:
            raise ValueError(f"{value} must be one of {list(cls)}") from KeyError


class Protocol(ConvertableEnum):
    """
    The ways a file of a boot environment can be reached.
    """

    DISK = "disk"
    """
    Absolute path of the file inside the install root.
    """
    TFTP = "tftp"
    """
    Path relative to the TFTP root.
    """
    NETWORK = "network"
    """
    URL below the provisioner base URL.
    """


class TemplateType(ConvertableEnum):
    """
    The template engines the Templar can compile.
    """

    JINJA2 = "jinja2"
    CHEETAH = "cheetah"
