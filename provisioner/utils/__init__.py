"""
Misc heavy lifting functions for the provisioner
"""

# SPDX-License-Identifier: GPL-2.0-or-later

import logging
import subprocess
import sys
import traceback
from typing import Any, List, Tuple, Union

from netaddr.ip import IPAddress, IPNetwork

logger = logging.getLogger()


def log_exc() -> None:
    """
    Log an exception.
    """
    (exception_type, exception_value, exception_traceback) = sys.exc_info()
    logger.info("Exception occurred: %s", exception_type)
    logger.info("Exception value: %s", exception_value)
    logger.info(
        "Exception Info:\n%s",
        "\n".join(traceback.format_list(traceback.extract_tb(exception_traceback))),
    )


def pretty_hex(ip_address: IPAddress, length: int = 8) -> str:
    """
    Pads an IP object with leading zeroes so that the result is _length_ hex digits.  Also do an upper().

    :param ip_address: The IP address to pretty print.
    :param length: The length of the resulting hexstring. If the number is smaller than the resulting hex-string
                   then no front-padding is done.
    """
    hexval = f"{ip_address.value:x}"
    if len(hexval) < length:
        hexval = "0" * (length - len(hexval)) + hexval
    return hexval.upper()


def get_host_ip(ip_address: str, shorten: bool = True) -> str:
    """
    Return the IP encoding needed for the TFTP boot tree.

    :param ip_address: The IP address to pretty print. May carry a prefix length.
    :param shorten: Whether the IP-Address should be shortened or not.
    :return: The IP encoded as a hexadecimal value.
    """
    cidr = IPNetwork(ip_address)

    if len(cidr) == 1:  # Just an IP, e.g. a /32
        return pretty_hex(cidr.ip)

    pretty = pretty_hex(cidr[0])
    if not shorten or len(cidr) <= 8:
        # not enough to make the last nibble insignificant
        return pretty

    cutoff = (32 - cidr.prefixlen) // 4
    return pretty[0:-cutoff]


def is_ip(strdata: str) -> bool:
    """
    Return whether the argument is an IP address.

    :param strdata: The IP in a string format.
    """
    try:
        IPAddress(strdata)
    except Exception:
        return False
    return True


def subprocess_sp(
    cmd: Union[str, List[str]], shell: bool = True, process_input: Any = None
) -> Tuple[str, int]:
    """
    Call a shell process and redirect the output for internal usage.

    :param cmd: The command to execute in a subprocess call.
    :param shell: Whether to use a shell or not for the execution of the command.
    :param process_input: If there is any input needed for that command to stdin.
    :return: A tuple of the output and the return code.
    :raises ValueError: In case the command could not be started.
    """
    logger.info("running: %s", cmd)

    stdin = None
    if process_input:
        stdin = subprocess.PIPE

    try:
        with subprocess.Popen(
            cmd,
            shell=shell,
            stdin=stdin,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            encoding="utf-8",
            close_fds=True,
        ) as subprocess_popen_obj:
            (out, err) = subprocess_popen_obj.communicate(process_input)
            return_code = subprocess_popen_obj.returncode
    except OSError as os_error:
        log_exc()
        raise ValueError(
            f"OS Error, command not found?  While running: {cmd}"
        ) from os_error

    logger.info("received on stdout: %s", out)
    logger.debug("received on stderr: %s", err)
    return out, return_code
