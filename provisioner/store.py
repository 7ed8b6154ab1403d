"""
Access to the boot environment and machine records the provisioner works on.

The records are owned by whoever runs the provisioner. The engine only needs to load boot environments, list machines
and store the boot environments it accepted. ``FileRecordStore`` keeps every record as one JSON file below the records
directory: ``bootenvs/<name>.json`` and ``machines/<name>.json``.
"""

# SPDX-License-Identifier: GPL-2.0-or-later

import glob
import json
import logging
import os
from typing import Any, Callable, Dict, List, TypeVar

from provisioner.cexceptions import CX, RecordNotFoundError
from provisioner.items.bootenv import BootEnvironment
from provisioner.items.machine import Machine
from provisioner.utils import filesystem_helpers

logger = logging.getLogger()

BOOTENVS = "bootenvs"
MACHINES = "machines"

T = TypeVar("T")


class RecordStore:
    """
    Base class for all record stores.
    """

    def load_bootenv(self, name: str) -> BootEnvironment:
        """
        Load a single boot environment.

        :param name: The name of the boot environment.
        :raises RecordNotFoundError: In case there is no such boot environment.
        """
        raise NotImplementedError("The implementation for the configured record store is missing!")

    def list_bootenvs(self) -> List[BootEnvironment]:
        """
        All boot environments.
        """
        raise NotImplementedError("The implementation for the configured record store is missing!")

    def save_bootenv(self, bootenv: BootEnvironment) -> None:
        """
        Persist a boot environment. Existing records with the same name are replaced.

        :param bootenv: The boot environment to persist.
        """
        raise NotImplementedError("The implementation for the configured record store is missing!")

    def delete_bootenv(self, name: str) -> None:
        """
        Remove a boot environment.

        :param name: The name of the boot environment.
        """
        raise NotImplementedError("The implementation for the configured record store is missing!")

    def load_machine(self, name: str) -> Machine:
        """
        Load a single machine.

        :param name: The name of the machine.
        :raises RecordNotFoundError: In case there is no such machine.
        """
        raise NotImplementedError("The implementation for the configured record store is missing!")

    def list_machines(self) -> List[Machine]:
        """
        All machines.
        """
        raise NotImplementedError("The implementation for the configured record store is missing!")

    def list_machines_by_bootenv(self, bootenv_name: str) -> List[Machine]:
        """
        The machines bound to a boot environment, in the order the store lists them.

        :param bootenv_name: The name of the boot environment.
        """
        return [x for x in self.list_machines() if x.bootenv == bootenv_name]


class FileRecordStore(RecordStore):
    """
    JSON-file based record store.
    """

    def __init__(self, records_dir: str):
        self.libpath = records_dir

    def _record_path(self, record_type: str, name: str) -> str:
        if not name or os.path.basename(name) != name or name in (".", ".."):
            raise CX("Invalid %s name %s", record_type, name)
        return os.path.join(self.libpath, record_type, f"{name}.json")

    def _read(self, record_type: str, file_path: str) -> Dict[str, Any]:
        (name, _) = os.path.splitext(os.path.basename(file_path))
        with open(file_path, encoding="UTF-8") as file_descriptor:
            try:
                _dict = json.load(file_descriptor)
            except ValueError as error:
                raise CX("The file %s is not valid JSON: %s", file_path, error) from error
        if not isinstance(_dict, dict):
            raise CX("The file %s does not contain a %s record", file_path, record_type)
        if _dict.get("Name", name) != name:
            raise CX(
                "The file name %s.json does not match the %s %s!", name, _dict["Name"], record_type
            )
        _dict.setdefault("Name", name)
        return _dict

    @staticmethod
    def _build(item_class: Callable[..., T], record_type: str, _dict: Dict[str, Any]) -> T:
        try:
            return item_class(**_dict)
        except (KeyError, TypeError, ValueError) as error:
            raise CX("The %s record %s is invalid: %s", record_type, _dict["Name"], error) from error

    def _read_all(self, record_type: str, item_class: Callable[..., T]) -> List[T]:
        path = os.path.join(self.libpath, record_type)
        return [
            self._build(item_class, record_type, self._read(record_type, x))
            for x in sorted(glob.glob(f"{path}/*.json"))
        ]

    def _read_one(self, record_type: str, item_class: Callable[..., T], name: str) -> T:
        file_path = self._record_path(record_type, name)
        try:
            _dict = self._read(record_type, file_path)
        except FileNotFoundError as error:
            raise RecordNotFoundError(record_type.rstrip("s"), name) from error
        return self._build(item_class, record_type, _dict)

    def load_bootenv(self, name: str) -> BootEnvironment:
        return self._read_one(BOOTENVS, BootEnvironment, name)

    def list_bootenvs(self) -> List[BootEnvironment]:
        return self._read_all(BOOTENVS, BootEnvironment)

    def save_bootenv(self, bootenv: BootEnvironment) -> None:
        file_path = self._record_path(BOOTENVS, bootenv.name)
        filesystem_helpers.mkdir(os.path.dirname(file_path))
        with open(file_path, "w", encoding="UTF-8") as file_descriptor:
            json.dump(bootenv.to_dict(), file_descriptor, sort_keys=True, indent=4)
        logger.info("Saved boot environment %s to %s", bootenv.name, file_path)

    def delete_bootenv(self, name: str) -> None:
        filesystem_helpers.rmfile(self._record_path(BOOTENVS, name))

    def load_machine(self, name: str) -> Machine:
        return self._read_one(MACHINES, Machine, name)

    def list_machines(self) -> List[Machine]:
        return self._read_all(MACHINES, Machine)
