"""
Checks a boot environment and a machine have to pass before anything is written to disk.
"""

# SPDX-License-Identifier: GPL-2.0-or-later

import logging
from typing import TYPE_CHECKING, List

from provisioner.cexceptions import (
    IncompleteBootSupportError,
    InvalidTemplateSpecError,
    MissingRequiredParamsError,
)

if TYPE_CHECKING:
    from provisioner.items.bootenv import BootEnvironment
    from provisioner.items.machine import Machine

logger = logging.getLogger()


def validate_bootenv_structure(bootenv: "BootEnvironment") -> None:
    """
    Every template needs a name, a path and a content reference, and the boot environment must either boot via iPXE
    or provide both pxelinux and elilo configurations.

    :param bootenv: The boot environment to check.
    :raises InvalidTemplateSpecError: In case a template is incomplete.
    :raises IncompleteBootSupportError: In case the boot loader templates are missing.
    """
    for template_info in bootenv.templates:
        if not template_info.is_complete():
            raise InvalidTemplateSpecError(bootenv.name, template_info)

    names = set(bootenv.template_names())
    if "ipxe" in names:
        return
    if not {"pxelinux", "elilo"}.issubset(names):
        raise IncompleteBootSupportError(bootenv.name)


def missing_required_params(bootenv: "BootEnvironment", machine: "Machine") -> List[str]:
    """
    The required parameters of a boot environment the machine doesn't supply.

    :param bootenv: The boot environment.
    :param machine: The machine.
    :return: The missing parameter names in the order the boot environment declares them.
    """
    return [x for x in bootenv.required_params if x not in machine.params]


def validate_required_params(bootenv: "BootEnvironment", machine: "Machine") -> None:
    """
    Make sure a machine supplies every parameter the boot environment requires.

    :param bootenv: The boot environment.
    :param machine: The machine.
    :raises MissingRequiredParamsError: Naming every missing parameter.
    """
    missing = missing_required_params(bootenv, machine)
    if missing:
        logger.warning(
            "Machine %s lacks required params of %s: %s",
            machine.name,
            bootenv.name,
            missing,
        )
        raise MissingRequiredParamsError(bootenv.name, machine.name, missing)
