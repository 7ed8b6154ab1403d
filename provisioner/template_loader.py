"""
Access to the content templates boot environments reference by identifier.
"""

# SPDX-License-Identifier: GPL-2.0-or-later

import logging
import os
import pathlib

from provisioner.cexceptions import CX, TemplateNotFoundError


class TemplateLoader:
    """
    Reads content templates from a directory. The identifier of a template is its file name below that directory.
    """

    def __init__(self, templates_dir: str):
        """
        Constructor

        :param templates_dir: The directory the templates are stored in.
        """
        self.templates_dir = templates_dir
        self.logger = logging.getLogger()

    def path_for(self, identifier: str) -> str:
        """
        The file a template identifier maps to.

        :param identifier: The identifier of the template.
        :raises CX: In case the identifier would leave the template directory.
        """
        root = os.path.normpath(self.templates_dir)
        path = os.path.normpath(os.path.join(root, identifier))
        if os.path.commonpath([root, path]) != root or path == root:
            raise CX("Invalid template identifier %s", identifier)
        return path

    def load(self, identifier: str) -> str:
        """
        Read the source of a template.

        :param identifier: The identifier of the template.
        :return: The template source.
        :raises TemplateNotFoundError: In case there is no such template.
        """
        path = self.path_for(identifier)
        try:
            source = pathlib.Path(path).read_text(encoding="UTF-8")
        except FileNotFoundError as error:
            raise TemplateNotFoundError(identifier, path) from error
        self.logger.debug("Loaded template %s from %s", identifier, path)
        return source

