"""
The variables and helper functions a template sees while it is rendered for one machine.
"""

# SPDX-License-Identifier: GPL-2.0-or-later

import functools
import urllib.parse
from typing import TYPE_CHECKING, Any, Dict, Optional

from provisioner.cexceptions import (
    CX,
    MissingParameterError,
    TemplateEvaluationError,
    UnsupportedSegmentError,
)

if TYPE_CHECKING:
    from provisioner.items.bootenv import BootEnvironment
    from provisioner.items.machine import Machine
    from provisioner.paths import PathResolver
    from provisioner.settings import Settings


class RenderContext:
    """
    Read-only bundle for one machine and one boot environment. A new context is built for every render, it is never
    shared between machines.
    """

    def __init__(
        self,
        settings: "Settings",
        resolver: "PathResolver",
        bootenv: "BootEnvironment",
        machine: "Machine",
    ):
        """
        Constructor

        :param settings: Provides the base URLs and the default tenant.
        :param resolver: Used for the path helpers of ``Env``.
        :param bootenv: The boot environment that provides the templates.
        :param machine: The machine the templates are rendered for.
        """
        self._resolver = resolver
        self._bootenv = bootenv
        self._machine = machine
        self._provisioner_url = settings.provisioner_url
        self._command_url = settings.command_url
        self._tenant_id = bootenv.tenant_id or settings.tenant_id
        self._search_table: Optional[Dict[str, Any]] = None

    @property
    def machine(self) -> "Machine":
        return self._machine

    @property
    def bootenv(self) -> "BootEnvironment":
        return self._bootenv

    @property
    def provisioner_url(self) -> str:
        """
        The URL all files should be fetched from.
        """
        return self._provisioner_url

    @property
    def command_url(self) -> str:
        """
        The URL of the API endpoint the machine talks to for command and control.
        """
        return self._command_url

    @property
    def tenant_id(self) -> int:
        return self._tenant_id

    def boot_params(self) -> str:
        """
        Expand the boot parameter template of the boot environment for this machine.

        :return: The kernel command line or an empty str if the boot environment has none.
        :raises TemplateEvaluationError: In case the template can't be evaluated.
        """
        template = self._bootenv.boot_params_template
        if template is None:
            return ""
        try:
            return template.render(self.search_table())
        except TemplateEvaluationError:
            raise
        except CX as error:
            raise TemplateEvaluationError(template.name, error) from error

    def parse_url(self, segment: str, raw_url: str) -> str:
        """
        Return one part of an URL.

        :param segment: "scheme", "host" or "path".
        :param raw_url: The URL to split.
        :raises UnsupportedSegmentError: For any other segment.
        :raises TemplateEvaluationError: In case the URL can't be parsed.
        """
        try:
            parsed_url = urllib.parse.urlparse(raw_url)
        except ValueError as error:
            raise TemplateEvaluationError("ParseUrl", error) from error
        if segment == "scheme":
            return parsed_url.scheme
        if segment == "host":
            return parsed_url.netloc
        if segment == "path":
            return parsed_url.path
        raise UnsupportedSegmentError(segment, raw_url)

    def param(self, key: str) -> Any:
        """
        Look up a machine parameter.

        :param key: The name of the parameter.
        :raises MissingParameterError: In case the machine doesn't have it.
        """
        try:
            return self._machine.params[key]
        except KeyError as error:
            raise MissingParameterError(key, self._machine.name) from error

    def env_view(self) -> Dict[str, Any]:
        """
        The boot environment as templates see it: the record fields plus the path helpers.
        """
        view = self._bootenv.to_dict()
        view.update(
            {
                "PathFor": functools.partial(self._resolver.path_for, self._bootenv),
                "JoinInitrds": functools.partial(
                    self._resolver.join_initrds, self._bootenv
                ),
                "InstallUrl": self._resolver.install_url(self._bootenv.os),
            }
        )
        return view

    def search_table(self) -> Dict[str, Any]:
        """
        All variables and helpers visible to templates.
        """
        if self._search_table is None:
            self._search_table = {
                "Machine": self._machine.to_template_dict(self._provisioner_url),
                "Env": self.env_view(),
                "ProvisionerURL": self._provisioner_url,
                "CommandURL": self._command_url,
                "TenantId": self._tenant_id,
                "BootParams": self.boot_params,
                "ParseUrl": self.parse_url,
                "Param": self.param,
            }
        return self._search_table
