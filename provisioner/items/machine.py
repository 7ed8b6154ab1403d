"""
All code belonging to machine records.
"""

# SPDX-License-Identifier: GPL-2.0-or-later

import copy
from typing import Any, Dict

from provisioner import utils
from provisioner.items import apply_record

FIELDS = {
    "Name": "name",
    "Uuid": "uuid",
    "Address": "address",
    "BootEnv": "bootenv",
    "Params": "params",
}


class Machine:
    """
    A machine the provisioner renders boot artifacts for. Machines are owned by the record store, the provisioner only
    reads them.
    """

    TYPE_NAME = "machine"

    def __init__(self, **kwargs: Any):
        """
        Constructor

        :param kwargs: Record fields, either in the snake case attribute form or in the JSON form (``Name``,
                       ``Uuid``, ``Address``, ``BootEnv``, ``Params``).
        """
        self._name = ""
        self._uuid = ""
        self._address = ""
        self._bootenv = ""
        self._params: Dict[str, Any] = {}
        if len(kwargs) > 0:
            self.from_dict(kwargs)

    def __repr__(self) -> str:
        return f"Machine(name={self._name!r}, bootenv={self._bootenv!r})"

    @property
    def name(self) -> str:
        """
        The FQDN of the machine.

        :getter: The name of the machine.
        :setter: Raises a ``TypeError`` if the name is not a str.
        """
        return self._name

    @name.setter
    def name(self, name: str) -> None:
        if not isinstance(name, str):
            raise TypeError("name of a machine must be of type str")
        self._name = name

    @property
    def uuid(self) -> str:
        """
        Unique identifier of the machine. Falls back to the name.

        :getter: The identifier.
        :setter: Raises a ``TypeError`` if the value is not a str.
        """
        return self._uuid or self._name

    @uuid.setter
    def uuid(self, uuid: str) -> None:
        if not isinstance(uuid, str):
            raise TypeError("uuid of a machine must be of type str")
        self._uuid = uuid

    @property
    def address(self) -> str:
        """
        IPv4 address of the machine.

        :getter: The address or an empty str.
        :setter: Raises a ``TypeError`` if the value is not a str and a ``ValueError`` if it isn't an IP.
        """
        return self._address

    @address.setter
    def address(self, address: str) -> None:
        if not isinstance(address, str):
            raise TypeError("address of a machine must be of type str")
        if address and not utils.is_ip(address):
            raise ValueError(f'"{address}" is not a valid IP address')
        self._address = address

    @property
    def bootenv(self) -> str:
        """
        Name of the boot environment the machine is bound to.

        :getter: The boot environment name.
        :setter: Raises a ``TypeError`` if the value is not a str.
        """
        return self._bootenv

    @bootenv.setter
    def bootenv(self, bootenv: str) -> None:
        if not isinstance(bootenv, str):
            raise TypeError("bootenv of a machine must be of type str")
        self._bootenv = bootenv

    @property
    def params(self) -> Dict[str, Any]:
        """
        Parameters a machine supplies to the templates of its boot environment.

        :getter: The parameter dictionary.
        :setter: Raises a ``TypeError`` if the value is not a dict.
        """
        return self._params

    @params.setter
    def params(self, params: Dict[str, Any]) -> None:
        if params is None:
            params = {}
        if not isinstance(params, dict):
            raise TypeError("params of a machine must be of type dict")
        self._params = params

    @property
    def hex_address(self) -> str:
        """
        The address as eight upper-case hex digits, the way pxelinux looks up its configuration files.
        """
        if not self._address:
            return ""
        return utils.get_host_ip(self._address, shorten=False)

    @property
    def short_name(self) -> str:
        """
        The host part of the machine name.
        """
        return self._name.split(".", 1)[0]

    def url(self, provisioner_url: str) -> str:
        """
        The URL the machine specific files are published under.

        :param provisioner_url: The base URL of the provisioner.
        """
        return f"{provisioner_url.rstrip('/')}/machines/{self.uuid}"

    def from_dict(self, dictionary: Dict[str, Any]) -> None:
        """
        Initializes the object with attributes from the dictionary.

        :param dictionary: The dictionary with values.
        :raises KeyError: In case a key is not known to the machine record.
        """
        apply_record(self, dictionary, FIELDS)

    def to_dict(self) -> Dict[str, Any]:
        """
        This converts everything in this object to a dictionary in the record format.

        :return: A dictionary with all values present in this object.
        """
        return {
            "Name": self._name,
            "Uuid": self._uuid,
            "Address": self._address,
            "BootEnv": self._bootenv,
            "Params": copy.deepcopy(self._params),
        }

    def to_template_dict(self, provisioner_url: str) -> Dict[str, Any]:
        """
        The view of the machine that templates see as ``Machine``.

        :param provisioner_url: The base URL of the provisioner, used for ``Url``.
        """
        return {
            "Name": self._name,
            "Uuid": self.uuid,
            "Address": self._address,
            "HexAddress": self.hex_address,
            "ShortName": self.short_name,
            "Url": self.url(provisioner_url),
            "BootEnv": self._bootenv,
            "Params": self._params,
        }
