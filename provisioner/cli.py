"""
Command line interface of the provisioner.
"""

# SPDX-License-Identifier: GPL-2.0-or-later

import argparse
import json
import logging
import logging.config
import os
import sys
from typing import List, Optional

from provisioner.api import ProvisionerAPI
from provisioner.cexceptions import ProvisionerException
from provisioner.items.bootenv import BootEnvironment
from provisioner.settings import DEFAULT_SETTINGS_FILE

LOGGING_CONFIG_FILE = "/etc/provisioner/logging_config.conf"

logger = logging.getLogger()


def setup_logging(log_level: Optional[str] = None, config_file: str = LOGGING_CONFIG_FILE) -> None:
    """
    Configure logging from the logging configuration file if there is one, otherwise log to stderr.

    :param log_level: Overrides the level of the root logger (ie. INFO, WARNING, ERROR, CRITICAL).
    :param config_file: The logging configuration in ``fileConfig`` format.
    """
    if os.path.exists(config_file):
        logging.config.fileConfig(config_file, disable_existing_loggers=False)
    else:
        logging.basicConfig(format="%(asctime)s - %(levelname)s | %(message)s")
    if log_level:
        logger.setLevel(log_level.upper())


def cli_generate_main_parser() -> argparse.ArgumentParser:
    """
    Generates the main CLI parser for the provisioner.
    """
    op = argparse.ArgumentParser(prog="provisioner")
    op.add_argument(
        "--config",
        "-c",
        help="The location of the provisioner configuration file.",
        default=DEFAULT_SETTINGS_FILE,
    )
    op.add_argument(
        "-l",
        "--log-level",
        dest="log_level",
        metavar="LEVEL",
        help="log level (ie. INFO, WARNING, ERROR, CRITICAL)",
    )
    subparsers = op.add_subparsers(dest="subparser_name")
    subparsers.required = True

    render_parser = subparsers.add_parser("render", help="Render the boot files of a machine.")
    render_parser.add_argument("machine", help="The name of the machine.")

    clear_parser = subparsers.add_parser("clear", help="Remove the boot files of a machine.")
    clear_parser.add_argument("machine", help="The name of the machine.")
    clear_parser.add_argument(
        "--bootenv", help="The boot environment the files were rendered from."
    )

    check_parser = subparsers.add_parser(
        "check", help="Validate a boot environment definition and prepare its install tree."
    )
    check_parser.add_argument("file", help="JSON file with the boot environment definition.")

    update_parser = subparsers.add_parser(
        "update",
        help="Activate a boot environment definition and re-render all machines using it.",
    )
    update_parser.add_argument("file", help="JSON file with the boot environment definition.")
    update_parser.add_argument(
        "--old",
        help="Name of the stored boot environment this definition replaces. Defaults to the name in the file.",
    )

    delete_parser = subparsers.add_parser("delete", help="Delete a boot environment.")
    delete_parser.add_argument("bootenv", help="The name of the boot environment.")

    subparsers.add_parser("oses", help="List the installable OSes and the default OS.")
    return op


def read_bootenv_file(path: str) -> BootEnvironment:
    """
    Read a boot environment definition from a JSON file.

    :raises ValueError: In case the file is not a valid definition.
    """
    with open(path, encoding="UTF-8") as bootenv_fd:
        data = json.load(bootenv_fd)
    if not isinstance(data, dict):
        raise ValueError(f"{path} does not contain a boot environment definition")
    try:
        return BootEnvironment(**data)
    except (KeyError, TypeError) as error:
        raise ValueError(f"{path}: {error}") from error


def run(api: ProvisionerAPI, options: argparse.Namespace) -> int:
    """
    Execute the requested action.

    :return: The exit code.
    """
    action = options.subparser_name
    if action == "render":
        for path in api.render_machine(options.machine):
            print(path)
    elif action == "clear":
        for path in api.clear_machine(options.machine, options.bootenv):
            print(path)
    elif action == "check":
        bootenv = read_bootenv_file(options.file)
        api.validate_bootenv(bootenv, api.find_bootenv(bootenv.name))
        print(f"{bootenv.name} is valid")
    elif action == "update":
        bootenv = read_bootenv_file(options.file)
        old = api.find_bootenv(options.old) if options.old else None
        for machine in api.change_bootenv(bootenv, old):
            print(f"re-rendered {machine}")
    elif action == "delete":
        api.delete_bootenv(options.bootenv)
    elif action == "oses":
        oses, default_os = api.available_oses()
        print(json.dumps({"available": sorted(oses), "default": default_os}, indent=4))
    return 0


def main(args: Optional[List[str]] = None) -> int:
    """
    CLI entry point
    """
    op = cli_generate_main_parser()
    options = op.parse_args(args)
    setup_logging(options.log_level)

    try:
        api = ProvisionerAPI(settingsfile_location=options.config)
        return run(api, options)
    except (ProvisionerException, OSError, ValueError) as error:
        logger.error("%s", error)
        print(f"error: {error}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
