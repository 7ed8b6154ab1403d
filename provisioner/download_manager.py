"""
Provisioner DownloadManager
"""

# SPDX-License-Identifier: GPL-2.0-or-later

import logging
import os
from typing import TYPE_CHECKING, Optional

import requests

from provisioner.utils import filesystem_helpers

if TYPE_CHECKING:
    from requests import Response

    from provisioner.settings import Settings


class DownloadManager:
    """
    Fetches remote files with ``requests``, honouring the proxies configured in the settings.
    """

    def __init__(self, settings: "Settings") -> None:
        """
        Constructor

        :param settings: The settings with the proxies and the timeout to use.
        """
        self.logger = logging.getLogger()
        # requests wants a dict like:  protocol: proxy_uri
        self.proxies = settings.proxy_url_ext
        self.timeout: Optional[int] = settings.download_timeout or None

    def urlread(self, url: str, stream: bool = False) -> "Response":
        """
        Read the content of a given URL and pass the requests.Response object to the caller.

        :param url: The URL the request.
        :param stream: Whether the body should be streamed instead of read at once.
        :returns: The Python ``requests.Response`` object.
        """
        return requests.get(url, proxies=self.proxies, timeout=self.timeout, stream=stream)

    def download_file(self, url: str, dest: str, chunk_size: int = 1024 * 1024) -> None:
        """
        Stream a remote file to the disk, creating missing parent directories. A partial file is removed again if the
        transfer fails.

        :param url: The remote location of the file.
        :param dest: The local path to write to.
        :param chunk_size: The amount of bytes written at once.
        :raises requests.RequestException: In case the request fails or returns an error status.
        :raises OSError: In case the file can't be written.
        """
        filesystem_helpers.mkdir(os.path.dirname(dest))
        self.logger.info("downloading %s to %s", url, dest)
        try:
            with self.urlread(url, stream=True) as response:
                response.raise_for_status()
                with open(dest, "wb") as dest_fd:
                    for chunk in response.iter_content(chunk_size=chunk_size):
                        dest_fd.write(chunk)
        except (requests.RequestException, OSError):
            filesystem_helpers.rmfile(dest)
            raise
