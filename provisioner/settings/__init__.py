"""
Provisioner app-wide settings
"""

# SPDX-License-Identifier: GPL-2.0-or-later

import logging
import os.path
import traceback
from typing import Any, Dict, Optional

import yaml
from schema import (  # type: ignore
    Optional as SchemaOptional,
    Schema,
    SchemaError,
    SchemaMissingKeyError,
    SchemaWrongKeyError,
)

DEFAULT_SETTINGS_FILE = "/etc/provisioner/settings.yaml"

schema = Schema(
    {
        SchemaOptional("file_root"): str,
        SchemaOptional("provisioner_url"): str,
        SchemaOptional("command_url"): str,
        SchemaOptional("tenant_id"): int,
        SchemaOptional("templates_dir"): str,
        SchemaOptional("records_dir"): str,
        SchemaOptional("explode_iso_command"): str,
        SchemaOptional("default_template_type"): lambda value: value
        in ("jinja2", "cheetah"),
        SchemaOptional("cheetah_import_whitelist"): [str],
        SchemaOptional("proxy_url_ext"): {SchemaOptional(str): str},
        SchemaOptional("download_timeout"): int,
    },
    ignore_extra_keys=False,
)


class Settings:
    """
    This class contains all app-wide settings of the provisioner. Instances are handed explicitly to the components that
    need them.
    """

    def __init__(self) -> None:
        """
        Constructor.
        """
        self.file_root = "/tftpboot"
        self.provisioner_url = "http://127.0.0.1:8091"
        self.command_url = "https://127.0.0.1:3000"
        self.tenant_id = 1
        self.templates_dir = "/opt/provisioner/templates"
        self.records_dir = "/var/lib/provisioner"
        self.explode_iso_command = "/explode_iso.sh"
        self.default_template_type = "jinja2"
        self.cheetah_import_whitelist = ["re", "random", "time"]
        self.proxy_url_ext: Dict[str, str] = {}
        self.download_timeout = 0

    def to_dict(self) -> Dict[str, Any]:
        """
        Return an easily serializable representation of the config.

        :return: The dict with all user settings combined with settings which are left to the default.
        """
        return dict(self.__dict__)

    def from_dict(self, new_values: Optional[Dict[str, Any]]) -> Optional["Settings"]:
        """
        Modify this object to load values in dictionary.

        :param new_values: The dictionary with settings to replace.
        :return: Returns the settings instance this method was called from.
        :raises ValueError: In case the new values would lead to invalid settings. The old values are kept.
        """
        if new_values is None:
            logging.warning("Not loading empty settings dictionary!")
            return None

        old_settings = dict(self.__dict__)
        self.__dict__.update(new_values)

        if not self.is_valid():
            self.__dict__ = old_settings
            raise ValueError(
                "New settings would not be valid. Please fix the dict you pass."
            )

        return self

    def is_valid(self) -> bool:
        """
        Silently drops all errors and returns ``True`` when everything is valid.

        :return: If this settings object is valid this returns true. Otherwise false.
        """
        try:
            validate_settings(self.__dict__)
        except SchemaError:
            return False
        return True


def validate_settings(settings_content: Dict[str, Any]) -> Dict[str, Any]:
    """
    Perform type validation on all values of all keys of a settings dictionary.

    :param settings_content: The dictionary content from the YAML file.
    :raises SchemaError: In case the data given is invalid.
    :return: The validated settings.
    """
    return schema.validate(settings_content)


def read_yaml_file(filepath: str = DEFAULT_SETTINGS_FILE) -> Dict[str, Any]:
    """
    Reads settings files from ``filepath`` and saves the content in a dictionary.

    :param filepath: Settings file path, defaults to "/etc/provisioner/settings.yaml"
    :raises FileNotFoundError: In case file does not exist or is a directory.
    :raises yaml.YAMLError: In case the file is not a valid YAML file.
    :return: The aggregated dict of all settings.
    """
    if not os.path.isfile(filepath):
        raise FileNotFoundError(
            f'Given path "{filepath}" does not exist or is a directory.'
        )
    try:
        with open(filepath, encoding="UTF-8") as main_settingsfile:
            filecontent: Dict[str, Any] = yaml.safe_load(main_settingsfile.read())
    except yaml.YAMLError as error:
        traceback.print_exc()
        raise yaml.YAMLError(f'"{filepath}" is not a valid YAML file') from error
    return filecontent or {}


def read_settings_file(filepath: str = DEFAULT_SETTINGS_FILE) -> Dict[str, Any]:
    """
    Utilizes ``read_yaml_file()``. If the read settings file is invalid we will return an empty dictionary.

    :param filepath: The path to the settings file.
    :return: A dictionary with the settings.
    """
    filecontent = read_yaml_file(filepath)

    try:
        validate_settings(filecontent)
    except SchemaMissingKeyError:
        logging.exception("Settings file was not returned due to missing keys.")
        logging.debug('The settings to read were: "%s"', filecontent)
        return {}
    except SchemaWrongKeyError:
        logging.exception("Settings file was not returned due to an error in the schema.")
        logging.debug('The settings to read were: "%s"', filecontent)
        return {}
    except SchemaError:
        logging.exception("Settings file was not returned due to an error in the schema.")
        logging.debug('The settings to read were: "%s"', filecontent)
        return {}
    return filecontent


def load_settings(
    filepath: str = DEFAULT_SETTINGS_FILE, ignore_missing: bool = True
) -> Settings:
    """
    Create a settings object with the values of the given file applied on top of the defaults.

    :param filepath: The path to the settings file.
    :param ignore_missing: Whether a missing file falls back to the defaults.
    :raises FileNotFoundError: In case the file is missing and ``ignore_missing`` is false.
    :return: The settings object.
    """
    settings = Settings()
    if not os.path.isfile(filepath):
        if not ignore_missing:
            raise FileNotFoundError(f'Settings file "{filepath}" does not exist.')
        logging.info('Settings file "%s" missing, using defaults', filepath)
        return settings
    settings.from_dict(read_settings_file(filepath))
    return settings

