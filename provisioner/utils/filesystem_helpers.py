"""
Filesystem helpers used while preparing install trees and writing rendered files.
"""

# SPDX-License-Identifier: GPL-2.0-or-later

import errno
import hashlib
import logging
import os
import pathlib
from typing import Union

from provisioner.cexceptions import CX
from provisioner.utils import log_exc

logger = logging.getLogger()


def sha256_file(file_path: Union[str, "os.PathLike[str]"], buffer_size: int = 65536) -> str:
    """
    This function is emulating the functionality of the sha256sum tool. The file is read in chunks so that large ISO
    images never have to fit into memory.

    :param file_path: The path to the file that should be hashed.
    :param buffer_size: The buffer-size that should be used to hash the file.
    :return: The SHA256 hash as sha256sum would return it.
    """
    sha256 = hashlib.sha256()
    with open(file_path, "rb") as file_fd:
        while True:
            data = file_fd.read(buffer_size)
            if not data:
                break
            sha256.update(data)
    return sha256.hexdigest()


def rmfile(path: str) -> bool:
    """
    Delete a single file.

    :param path: The file to delete.
    :return: True if the file was removed, False if it was not there or couldn't be removed.
    """
    try:
        pathlib.Path(path).unlink()
        logger.info('Successfully removed "%s"', path)
        return True
    except FileNotFoundError:
        pass
    except OSError as ioe:
        logger.warning('Could not remove file "%s": %s', path, ioe.strerror)
    return False


def mkdir(path: str, mode: int = 0o755) -> None:
    """
    Create directory and all missing parents with a given mode.

    :param path: The path to create the directory at.
    :param mode: The mode to create the directory with.
    :raises CX: Raised in case creating the directory fails with something different from "directory already exists".
    """
    try:
        pathlib.Path(path).mkdir(mode=mode, parents=True)
    except OSError as os_error:
        if os_error.errno != errno.EEXIST:
            log_exc()
            raise CX("Error creating %s", path) from os_error


def is_regular_file(path: str) -> bool:
    """
    Whether the path exists and is a regular file (symlinks are followed).

    :param path: The path to check.
    """
    return pathlib.Path(path).is_file()


def is_below(path: str, root: str) -> bool:
    """
    Check that a normalized path does not escape the given root directory.

    :param path: The path to check.
    :param root: The directory the path must stay in.
    """
    root = os.path.normpath(root)
    path = os.path.normpath(path)
    return os.path.commonpath([root, path]) == root
