"""
Fixtures that are shared between all tests inside the testsuite.
"""

import logging
import pathlib
from contextlib import contextmanager
from typing import Any, Callable, Dict, List

import pytest

from provisioner.api import ProvisionerAPI
from provisioner.cexceptions import RecordNotFoundError
from provisioner.items.bootenv import BootEnvironment
from provisioner.items.machine import Machine
from provisioner.paths import PathResolver
from provisioner.settings import Settings
from provisioner.store import RecordStore
from provisioner.templar import Templar
from provisioner.template_loader import TemplateLoader

logger = logging.getLogger()


@contextmanager
def does_not_raise():
    """
    Fixture that represents a context manager that will expect that no raise occurs.
    """
    yield


class MemoryRecordStore(RecordStore):
    """
    Record store that keeps everything in dictionaries.
    """

    def __init__(self) -> None:
        self.bootenvs: Dict[str, BootEnvironment] = {}
        self.machines: Dict[str, Machine] = {}

    def load_bootenv(self, name: str) -> BootEnvironment:
        if name not in self.bootenvs:
            raise RecordNotFoundError("bootenv", name)
        return self.bootenvs[name]

    def list_bootenvs(self) -> List[BootEnvironment]:
        return list(self.bootenvs.values())

    def save_bootenv(self, bootenv: BootEnvironment) -> None:
        self.bootenvs[bootenv.name] = bootenv

    def delete_bootenv(self, name: str) -> None:
        self.bootenvs.pop(name, None)

    def load_machine(self, name: str) -> Machine:
        if name not in self.machines:
            raise RecordNotFoundError("machine", name)
        return self.machines[name]

    def list_machines(self) -> List[Machine]:
        return list(self.machines.values())


@pytest.fixture(name="settings", scope="function")
def fixture_settings(tmp_path: pathlib.Path) -> Settings:
    """
    Settings pointing every directory into the temporary directory of the test.
    """
    test_settings = Settings()
    test_settings.file_root = str(tmp_path / "tftpboot")
    test_settings.templates_dir = str(tmp_path / "templates")
    test_settings.records_dir = str(tmp_path / "records")
    test_settings.provisioner_url = "http://192.168.124.10:8091"
    test_settings.command_url = "https://192.168.124.10:3000"
    (tmp_path / "tftpboot").mkdir()
    (tmp_path / "templates").mkdir()
    return test_settings


@pytest.fixture(name="file_root")
def fixture_file_root(settings: Settings) -> pathlib.Path:
    return pathlib.Path(settings.file_root)


@pytest.fixture(name="templar")
def fixture_templar(settings: Settings) -> Templar:
    return Templar(settings)


@pytest.fixture(name="loader")
def fixture_loader(settings: Settings) -> TemplateLoader:
    return TemplateLoader(settings.templates_dir)


@pytest.fixture(name="resolver")
def fixture_resolver(settings: Settings) -> PathResolver:
    return PathResolver(settings)


@pytest.fixture(name="create_template")
def fixture_create_template(settings: Settings) -> Callable[[str, str], pathlib.Path]:
    """
    Write a content template into the template store.
    """

    def _create_template(identifier: str, content: str) -> pathlib.Path:
        path = pathlib.Path(settings.templates_dir) / identifier
        path.write_text(content, encoding="UTF-8")
        return path

    return _create_template


@pytest.fixture(name="create_bootenv")
def fixture_create_bootenv() -> Callable[..., BootEnvironment]:
    """
    Build a boot environment. Without arguments it is an iPXE environment without any files to check.
    """

    def _create_bootenv(**kwargs: Any) -> BootEnvironment:
        record: Dict[str, Any] = {
            "Name": "ubuntu-16.04-install",
            "OS": {"Name": "ubuntu-16.04"},
            "Templates": [
                {"Name": "ipxe", "Path": "{{.Machine.HexAddress}}.ipxe", "UUID": "default.ipxe"}
            ],
        }
        record.update(kwargs)
        return BootEnvironment(**record)

    return _create_bootenv


@pytest.fixture(name="create_machine")
def fixture_create_machine() -> Callable[..., Machine]:
    def _create_machine(**kwargs: Any) -> Machine:
        record: Dict[str, Any] = {
            "Name": "d52-54-00-12-34-56.example.com",
            "Uuid": "7b7ac5f4-61a6-4f2b-a3de-3ea1d1e3e6c4",
            "Address": "192.168.124.81",
            "BootEnv": "ubuntu-16.04-install",
            "Params": {"dns-domain": "example.com"},
        }
        record.update(kwargs)
        return Machine(**record)

    return _create_machine


@pytest.fixture(name="memory_store")
def fixture_memory_store() -> MemoryRecordStore:
    return MemoryRecordStore()


@pytest.fixture(name="provisioner_api")
def fixture_provisioner_api(
    settings: Settings, memory_store: MemoryRecordStore
) -> ProvisionerAPI:
    """
    Fixture that represents the provisioner API for a single test.
    """
    return ProvisionerAPI(settings=settings, store=memory_store)
