"""
The steps a boot environment goes through when it is created, updated or deleted.

A submitted definition becomes active only after ``validate_and_prepare`` passed: the structure is sane, the install
media is extracted, the auxiliary files are in place, every template compiles and the kernel and initrds exist on disk.
An update of an active definition is then pushed to all machines bound to it by ``cascade_render``. ``guard_delete``
refuses to retire a definition that machines still use.
"""

# SPDX-License-Identifier: GPL-2.0-or-later

import logging
import os
from typing import TYPE_CHECKING, List, Optional

from provisioner import enums, validate
from provisioner.cexceptions import (
    EnvironmentInUseError,
    ImmutableIdentityError,
    MissingInitrdError,
    MissingKernelError,
)
from provisioner.utils import filesystem_helpers

if TYPE_CHECKING:
    from provisioner.actions.dlfiles import FileDownloader
    from provisioner.actions.explode_iso import IsoExploder
    from provisioner.bootgen import BootGen
    from provisioner.items.bootenv import BootEnvironment
    from provisioner.paths import PathResolver
    from provisioner.store import RecordStore


class BootEnvLifecycle:
    """
    Runs the lifecycle operations of boot environments. Nothing here is triggered implicitly, the owner of the records
    calls the operations when a record changes.
    """

    def __init__(
        self,
        store: "RecordStore",
        resolver: "PathResolver",
        bootgen: "BootGen",
        exploder: "IsoExploder",
        downloader: "FileDownloader",
    ):
        """
        Constructor

        :param store: Lists the machines bound to a boot environment.
        :param resolver: Used to locate kernels and initrds.
        :param bootgen: Renders the templates for the bound machines.
        :param exploder: Extracts the install media.
        :param downloader: Fetches the auxiliary OS files.
        """
        self.store = store
        self.resolver = resolver
        self.bootgen = bootgen
        self.exploder = exploder
        self.downloader = downloader
        self.logger = logging.getLogger()

    def check_boot_file(self, bootenv: "BootEnvironment", partial_path: str, error_class: type) -> None:
        full_path = self.resolver.path_for(bootenv, enums.Protocol.DISK, partial_path)
        if not os.path.exists(full_path):
            raise error_class(bootenv.name, partial_path, full_path, "missing")
        if not filesystem_helpers.is_regular_file(full_path):
            raise error_class(bootenv.name, partial_path, full_path, "invalid")

    def validate_and_prepare(
        self, bootenv: "BootEnvironment", old: Optional["BootEnvironment"] = None
    ) -> None:
        """
        Check a boot environment and prepare everything it needs on disk. The steps run in a fixed order and the first
        failure aborts the rest.

        :param bootenv: The submitted boot environment.
        :param old: The active definition in case this is an update.
        :raises InvalidTemplateSpecError: In case a template entry is incomplete.
        :raises IncompleteBootSupportError: In case the boot loader templates are missing.
        :raises ChecksumMismatchError: In case the ISO doesn't match its checksum.
        :raises MediaExtractionError: In case the ISO can't be extracted.
        :raises FileFetchFailedError: In case an auxiliary file can't be fetched.
        :raises TemplateCompileError: In case a template is invalid.
        :raises TemplateNotFoundError: In case a content template is not in the template store.
        :raises MissingKernelError: In case the kernel is missing or not a regular file.
        :raises MissingInitrdError: In case an initrd is missing or not a regular file.
        :raises ImmutableIdentityError: In case the update renames the boot environment.
        """
        self.logger.info("Validating boot environment %s", bootenv.name)
        validate.validate_bootenv_structure(bootenv)

        if bootenv.os.iso_file:
            self.logger.info("Exploding ISO for %s", bootenv.os.name)
            self.exploder.run(bootenv)

        self.downloader.run(bootenv)

        bootenv.parse_templates(self.bootgen.templar, self.bootgen.loader, force=True)

        if bootenv.kernel:
            self.check_boot_file(bootenv, bootenv.kernel, MissingKernelError)
        for initrd in bootenv.initrds:
            self.check_boot_file(bootenv, initrd, MissingInitrdError)

        if old is not None and old.name != bootenv.name:
            raise ImmutableIdentityError(old.name, bootenv.name)

    def cascade_render(self, bootenv: "BootEnvironment", old: "BootEnvironment") -> List[str]:
        """
        Render the templates of the updated boot environment for every machine bound to the old one. Machines are
        rendered one at a time in the order the store lists them. The first failure aborts the cascade, machines
        rendered before it keep their new files.

        :param bootenv: The updated boot environment.
        :param old: The previously active definition.
        :return: The names of the re-rendered machines.
        """
        machines = self.store.list_machines_by_bootenv(old.name)
        done: List[str] = []
        for machine in machines:
            try:
                self.bootgen.render_templates(bootenv, machine)
            except Exception:
                self.logger.error(
                    "Cascade for %s stopped at machine %s, re-rendered: %s, not re-rendered: %s",
                    bootenv.name,
                    machine.name,
                    done,
                    [x.name for x in machines[len(done) + 1:]],
                )
                raise
            self.logger.info("Re-rendered %s for machine %s", bootenv.name, machine.name)
            done.append(machine.name)
        return done

    def on_change(self, bootenv: "BootEnvironment", old: Optional["BootEnvironment"] = None) -> List[str]:
        """
        Activate a submitted boot environment. See ``validate_and_prepare`` for the possible errors. Errors of the
        cascade are those of ``BootGen.render_templates``.

        :param bootenv: The submitted boot environment.
        :param old: The active definition in case this is an update.
        :return: The names of the re-rendered machines.
        """
        self.validate_and_prepare(bootenv, old)
        if old is None:
            return []
        return self.cascade_render(bootenv, old)

    def guard_delete(self, bootenv: "BootEnvironment") -> None:
        """
        Make sure no machine uses a boot environment before it is deleted.

        :raises EnvironmentInUseError: Naming the first machine found.
        """
        for machine in self.store.list_machines_by_bootenv(bootenv.name):
            raise EnvironmentInUseError(bootenv.name, machine.name)
