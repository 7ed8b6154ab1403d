"""
Generate the per-machine boot artifacts of a boot environment.

The files are written below the install root. Every template of the boot environment yields exactly one file, the
location of which is a template itself. All destinations are expanded before anything touches the disk, so a broken
path template never leaves a half rendered set behind.
"""

# SPDX-License-Identifier: GPL-2.0-or-later

import logging
import os
from typing import TYPE_CHECKING, List, NamedTuple, Optional

from provisioner import validate
from provisioner.cexceptions import CX, ProvisionerException
from provisioner.render_context import RenderContext
from provisioner.utils import filesystem_helpers

if TYPE_CHECKING:
    from provisioner.items.bootenv import BootEnvironment, TemplateInfo
    from provisioner.items.machine import Machine
    from provisioner.paths import PathResolver
    from provisioner.settings import Settings
    from provisioner.templar import Templar
    from provisioner.template_loader import TemplateLoader


class RenderTarget(NamedTuple):
    """
    A template together with the file it is rendered to for one machine.
    """

    template: "TemplateInfo"
    path: str


class BootGen:
    """
    Handles rendering the templates of boot environments for machines.
    """

    def __init__(
        self,
        settings: "Settings",
        resolver: "PathResolver",
        templar: "Templar",
        loader: "TemplateLoader",
    ):
        """
        Constructor

        :param settings: Provides the install root all files are written to.
        :param resolver: Used by the path helpers templates can call.
        :param templar: Compiles the templates.
        :param loader: The template store content templates are read from.
        """
        self.settings = settings
        self.resolver = resolver
        self.templar = templar
        self.loader = loader
        self.logger = logging.getLogger()

    def make_context(self, bootenv: "BootEnvironment", machine: "Machine") -> RenderContext:
        return RenderContext(self.settings, self.resolver, bootenv, machine)

    def destination(self, rendered_path: str) -> str:
        """
        Turn a rendered path template into the absolute file it stands for.

        :param rendered_path: The output of the path template.
        :return: The normalized path below the install root.
        :raises CX: In case the path is empty or leaves the install root.
        """
        file_root = os.path.normpath(self.settings.file_root)
        dest = os.path.normpath(os.path.join(file_root, rendered_path.strip().lstrip("/")))
        if dest == file_root or not filesystem_helpers.is_below(dest, file_root):
            raise CX(
                "Template path %s is not a file below %s", rendered_path, file_root
            )
        return dest

    def render_paths(
        self,
        bootenv: "BootEnvironment",
        machine: "Machine",
        context: Optional[RenderContext] = None,
    ) -> List[RenderTarget]:
        """
        Expand the path templates of a boot environment for a machine.

        :param bootenv: The boot environment with compiled path templates.
        :param machine: The machine.
        :param context: The context to render with. A new one is created if not given.
        :return: One target per template in the order the boot environment declares them.
        :raises TemplateEvaluationError: In case a path template can't be evaluated.
        :raises CX: In case a path leaves the install root.
        """
        if context is None:
            context = self.make_context(bootenv, machine)
        search_table = context.search_table()
        targets: List[RenderTarget] = []
        for template_info in bootenv.templates:
            path_template = template_info.compile_path(self.templar)
            rendered = path_template.render(search_table)
            targets.append(RenderTarget(template_info, self.destination(rendered)))
        return targets

    def write_target(self, target: RenderTarget, context: RenderContext) -> None:
        """
        Render one template into its file. The file is removed again if anything goes wrong, files of other templates
        are left alone.

        :raises TemplateEvaluationError: In case the content template can't be evaluated.
        :raises CX: In case the file can't be written.
        """
        filesystem_helpers.mkdir(os.path.dirname(target.path))
        try:
            with open(target.path, "w", encoding="UTF-8") as dest_fd:
                dest_fd.write(target.template.contents.render(context.search_table()))
                dest_fd.flush()
                os.fsync(dest_fd.fileno())
        except ProvisionerException:
            self.logger.warning(
                "Rendering %s to %s failed, removing it", target.template.name, target.path
            )
            filesystem_helpers.rmfile(target.path)
            raise
        except OSError as error:
            self.logger.warning("Unable to write %s: %s", target.path, error)
            filesystem_helpers.rmfile(target.path)
            raise CX("Unable to write %s: %s", target.path, error) from error

    def render_templates(self, bootenv: "BootEnvironment", machine: "Machine") -> List[str]:
        """
        Write the boot artifacts of a boot environment for a machine. Rendering again with the same inputs overwrites
        the files with identical content.

        :param bootenv: The boot environment.
        :param machine: The machine.
        :return: The paths of the written files.
        :raises TemplateCompileError: In case a template is invalid.
        :raises TemplateNotFoundError: In case a content template is not in the template store.
        :raises MissingRequiredParamsError: In case the machine lacks required params. Nothing is written then.
        :raises TemplateEvaluationError: In case a template can't be evaluated.
        """
        self.logger.info("Rendering templates of %s for %s", bootenv.name, machine.name)
        bootenv.parse_templates(self.templar, self.loader)
        validate.validate_required_params(bootenv, machine)

        context = self.make_context(bootenv, machine)
        targets = self.render_paths(bootenv, machine, context)
        written: List[str] = []
        for target in targets:
            self.write_target(target, context)
            self.logger.debug("Wrote %s", target.path)
            written.append(target.path)
        return written

    def delete_rendered_templates(
        self, bootenv: "BootEnvironment", machine: "Machine"
    ) -> List[str]:
        """
        Remove the files a previous render of the boot environment produced for a machine. Templates whose path can't
        be expanded are skipped.

        :param bootenv: The boot environment.
        :param machine: The machine.
        :return: The paths of the removed files.
        """
        self.logger.info("Removing rendered templates of %s for %s", bootenv.name, machine.name)
        context = self.make_context(bootenv, machine)
        removed: List[str] = []
        for template_info in bootenv.templates:
            try:
                path_template = template_info.compile_path(self.templar)
                dest = self.destination(path_template.render(context.search_table()))
            except ProvisionerException as error:
                self.logger.warning(
                    "Skipping %s of %s: %s", template_info.name, bootenv.name, error
                )
                continue
            if filesystem_helpers.rmfile(dest):
                removed.append(dest)
        return removed
