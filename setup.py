#!/usr/bin/env python3

"""
Setup module for the provisioner
"""

import os

from setuptools import find_namespace_packages, setup

VERSION = "0.1.0"


def read_readme_file() -> str:
    """
    read the contents of your README file
    """
    this_directory = os.path.abspath(os.path.dirname(__file__))
    with open(os.path.join(this_directory, "README.md"), encoding="utf-8") as f:
        return f.read()


#####################################################################
## Actual Setup.py Script ###########################################
#####################################################################


if __name__ == "__main__":
    setup(
        name="provisioner",
        version=VERSION,
        description="Boot environment rendering and lifecycle engine for network provisioning",
        long_description=read_readme_file(),
        long_description_content_type="text/markdown",
        license="GPLv2+",
        classifiers=[
            "License :: OSI Approved :: GNU General Public License v2 or later (GPLv2+)",
            "Programming Language :: Python :: 3",
            "Topic :: System :: Installation/Setup",
            "Topic :: System :: Systems Administration",
            "Intended Audience :: System Administrators",
            "Natural Language :: English",
            "Operating System :: POSIX :: Linux",
        ],
        keywords=["pxe", "ipxe", "tftp", "provisioning", "bootenv"],
        python_requires=">=3.8",
        install_requires=[
            "requests",
            "pyyaml",
            "netaddr",
            "Cheetah3",
            "Jinja2",
            "schema",
        ],
        extras_require={
            "lint": [
                "pyflakes",
                "pycodestyle",
                "pylint",
                "black",
                "types-requests",
                "types-PyYAML",
                "types-netaddr",
                "types-setuptools",
                "isort",
            ],
            "test": [
                "pytest>6",
                "pytest-cov",
                "coverage",
                "pytest-mock>3.3.0",
            ],
        },
        packages=find_namespace_packages(
            include=["provisioner", "provisioner.*"], exclude=["*tests*"]
        ),
        include_package_data=True,
        entry_points={
            "console_scripts": [
                "provisioner = provisioner.cli:main",
            ]
        },
    )
