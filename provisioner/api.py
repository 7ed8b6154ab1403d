"""
Python API module for the provisioner.

The CLI and anything else embedding the provisioner should only talk to ``ProvisionerAPI``. It wires the settings, the
record store and the engine components together and exposes the operations on boot environments and machines.
"""

# SPDX-License-Identifier: GPL-2.0-or-later

import logging
from typing import List, Optional, Set, Tuple

from provisioner import settings as provisioner_settings
from provisioner.actions import osinventory
from provisioner.actions.dlfiles import FileDownloader
from provisioner.actions.explode_iso import IsoExploder
from provisioner.bootgen import BootGen
from provisioner.cexceptions import RecordNotFoundError
from provisioner.download_manager import DownloadManager
from provisioner.items.bootenv import BootEnvironment
from provisioner.lifecycle import BootEnvLifecycle
from provisioner.paths import PathResolver
from provisioner.store import FileRecordStore, RecordStore
from provisioner.templar import Templar
from provisioner.template_loader import TemplateLoader


class ProvisionerAPI:
    """
    Python API module for the provisioner.
    """

    def __init__(
        self,
        settings: Optional[provisioner_settings.Settings] = None,
        settingsfile_location: str = provisioner_settings.DEFAULT_SETTINGS_FILE,
        store: Optional[RecordStore] = None,
    ):
        """
        Constructor

        :param settings: Ready settings. If not given they are read from ``settingsfile_location``.
        :param settingsfile_location: The location of the settings file on the disk.
        :param store: The record store. Defaults to the JSON files below ``records_dir``.
        """
        self.logger = logging.getLogger()
        if settings is None:
            settings = provisioner_settings.load_settings(settingsfile_location)
        self._settings = settings
        if store is None:
            store = FileRecordStore(settings.records_dir)
        self.store = store

        self.resolver = PathResolver(settings)
        self.templar = Templar(settings)
        self.loader = TemplateLoader(settings.templates_dir)
        self.dlmgr = DownloadManager(settings)
        self.bootgen = BootGen(settings, self.resolver, self.templar, self.loader)
        self.exploder = IsoExploder(settings, self.resolver)
        self.downloader = FileDownloader(self.resolver, self.dlmgr)
        self.lifecycle = BootEnvLifecycle(
            self.store, self.resolver, self.bootgen, self.exploder, self.downloader
        )
        self.logger.debug("API handle initialized")

    def settings(self) -> provisioner_settings.Settings:
        """
        Return the application configuration.
        """
        return self._settings

    def find_bootenv(self, name: str) -> Optional[BootEnvironment]:
        """
        Load a boot environment, returning None if the store doesn't know it.
        """
        try:
            return self.store.load_bootenv(name)
        except RecordNotFoundError:
            return None

    def render_machine(self, name: str) -> List[str]:
        """
        Render the boot environment of a machine for it.

        :param name: The name of the machine.
        :return: The written files.
        :raises RecordNotFoundError: In case the machine or its boot environment is unknown.
        """
        machine = self.store.load_machine(name)
        bootenv = self.store.load_bootenv(machine.bootenv)
        return self.bootgen.render_templates(bootenv, machine)

    def clear_machine(self, name: str, bootenv_name: Optional[str] = None) -> List[str]:
        """
        Remove the files rendered for a machine.

        :param name: The name of the machine.
        :param bootenv_name: The boot environment the files were rendered from. Defaults to the one of the machine.
        :return: The removed files.
        """
        machine = self.store.load_machine(name)
        bootenv = self.store.load_bootenv(bootenv_name or machine.bootenv)
        return self.bootgen.delete_rendered_templates(bootenv, machine)

    def validate_bootenv(
        self, bootenv: BootEnvironment, old: Optional[BootEnvironment] = None
    ) -> None:
        """
        Check a boot environment and prepare its install tree without touching any machine.
        """
        self.lifecycle.validate_and_prepare(bootenv, old)

    def cascade_render(self, bootenv: BootEnvironment, old: BootEnvironment) -> List[str]:
        return self.lifecycle.cascade_render(bootenv, old)

    def change_bootenv(
        self, bootenv: BootEnvironment, old: Optional[BootEnvironment] = None
    ) -> List[str]:
        """
        Activate a new or updated boot environment and store it. The record is only stored after the preparation and
        the cascade passed.

        :param bootenv: The submitted boot environment.
        :param old: The active definition. Looked up in the store by name if not given.
        :return: The names of the re-rendered machines.
        """
        if old is None:
            old = self.find_bootenv(bootenv.name)
        rendered = self.lifecycle.on_change(bootenv, old)
        self.store.save_bootenv(bootenv)
        return rendered

    def delete_bootenv(self, name: str) -> None:
        """
        Retire a boot environment.

        :param name: The name of the boot environment.
        :raises RecordNotFoundError: In case the boot environment is unknown.
        :raises EnvironmentInUseError: In case a machine still uses it.
        """
        bootenv = self.store.load_bootenv(name)
        self.lifecycle.guard_delete(bootenv)
        self.store.delete_bootenv(name)
        self.logger.info("Deleted boot environment %s", name)

    def available_oses(self) -> Tuple[Set[str], str]:
        """
        The OSes that can be installed and the preferred default among them.
        """
        return osinventory.available_oses(self.store.list_bootenvs())
