"""
Aggregates the install boot environments into the operating systems the provisioner can deploy.
"""

# SPDX-License-Identifier: GPL-2.0-or-later

import logging
from typing import TYPE_CHECKING, Iterable, Set, Tuple

if TYPE_CHECKING:
    from provisioner.items.bootenv import BootEnvironment

logger = logging.getLogger()

# Lower ranks are preferred as the default OS.
PREFERRED_OSES = {
    "centos-7.2.1511": 0,
    "centos-7.1.1503": 1,
    "ubuntu-14.04": 2,
    "ubuntu-15.04": 3,
    "debian-8": 4,
    "centos-6.6": 5,
    "debian-7": 6,
    "redhat-6.5": 7,
    "ubuntu-12.04": 8,
}
UNKNOWN_OS_RANK = 999
NO_DEFAULT_OS = "STRING"


def os_rank(os_name: str) -> int:
    return PREFERRED_OSES.get(os_name, UNKNOWN_OS_RANK)


def available_oses(bootenvs: Iterable["BootEnvironment"]) -> Tuple[Set[str], str]:
    """
    Collect the OS names of all install boot environments and pick the default among them.

    :param bootenvs: The boot environments to look at. Environments that don't install an OS are ignored.
    :return: The set of available OS names and the best ranked one. Ties go to the environment listed first. If there
             is no install environment the default is the placeholder "STRING".
    """
    oses: Set[str] = set()
    default_os = NO_DEFAULT_OS
    default_rank = UNKNOWN_OS_RANK + 1
    for bootenv in bootenvs:
        if not bootenv.is_install:
            continue
        oses.add(bootenv.os.name)
        rank = os_rank(bootenv.os.name)
        if rank < default_rank:
            default_os = bootenv.os.name
            default_rank = rank
    logger.debug("Available OSes: %s, default: %s", sorted(oses), default_os)
    return oses, default_os
