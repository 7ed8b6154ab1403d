"""
All code belonging to boot environments.

A boot environment is the machine-agnostic description of what a machine boots into: the OS it installs, the kernel and
initrds it loads, the kernel command line and the templates that get expanded into per-machine files. The compiled
forms of the templates are derived state. They are rebuilt on demand and never end up in ``to_dict()``.
"""

# SPDX-License-Identifier: GPL-2.0-or-later

import logging
from typing import TYPE_CHECKING, Any, Dict, List, Optional

from provisioner import enums
from provisioner.cexceptions import TemplateCompileError
from provisioner.items import apply_record

if TYPE_CHECKING:
    from provisioner.templar import CompiledTemplate, Templar
    from provisioner.template_loader import TemplateLoader


def _check_str(value: Any, field: str) -> str:
    if not isinstance(value, str):
        raise TypeError(f"{field} must be of type str")
    return value


def _check_str_list(value: Any, field: str) -> List[str]:
    if value is None:
        return []
    if not isinstance(value, list) or not all(isinstance(x, str) for x in value):
        raise TypeError(f"{field} must be a list of str")
    return list(value)


class FileData:
    """
    An auxiliary file that has to be downloaded into the install tree of an OS.
    """

    TYPE_NAME = "file"
    FIELDS = {
        "URL": "url",
        "Name": "name",
        "ValidationURL": "validation_url",
        "ValidationMethod": "validation_method",
    }

    def __init__(self, **kwargs: Any):
        self.url = ""
        self.name = ""
        self.validation_url = ""
        self.validation_method = ""
        if len(kwargs) > 0:
            apply_record(self, kwargs, self.FIELDS)

    def __setattr__(self, name: str, value: Any) -> None:
        super().__setattr__(name, _check_str(value, name))

    def __repr__(self) -> str:
        return f"FileData(name={self.name!r}, url={self.url!r})"

    def to_dict(self) -> Dict[str, Any]:
        return {key: getattr(self, attribute) for key, attribute in self.FIELDS.items()}


class OsInfo:
    """
    Information about the operating system a boot environment maps to. Only the name is required.
    """

    TYPE_NAME = "os"
    FIELDS = {
        "Name": "name",
        "Family": "family",
        "Codename": "codename",
        "Version": "version",
        "IsoFile": "iso_file",
        "IsoSha256": "iso_sha256",
        "IsoUrl": "iso_url",
        "Files": "files",
    }

    def __init__(self, **kwargs: Any):
        self.name = ""
        self.family = ""
        self.codename = ""
        self.version = ""
        self.iso_file = ""
        self.iso_sha256 = ""
        self.iso_url = ""
        self.files: List[FileData] = []
        if len(kwargs) > 0:
            apply_record(self, kwargs, self.FIELDS)

    def __setattr__(self, name: str, value: Any) -> None:
        if name == "files":
            if value is None:
                value = []
            if not isinstance(value, list):
                raise TypeError("files must be a list")
            value = [x if isinstance(x, FileData) else FileData(**x) for x in value]
        elif name == "iso_sha256":
            value = _check_str(value, name).lower()
        else:
            value = _check_str(value, name)
        super().__setattr__(name, value)

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {}
        for key, attribute in self.FIELDS.items():
            result[key] = getattr(self, attribute)
        result["Files"] = [x.to_dict() for x in self.files]
        return result


class TemplateInfo:
    """
    A template of a boot environment that gets expanded into a file for each machine.

    ``path`` is itself a template that yields the destination of the file relative to the install root, ``uuid``
    references the content template in the template store.
    """

    TYPE_NAME = "template"
    FIELDS = {"Name": "name", "Path": "path", "UUID": "uuid"}

    def __init__(self, **kwargs: Any):
        self.name = ""
        self.path = ""
        self.uuid = ""
        self.path_template: Optional["CompiledTemplate"] = None
        self.contents: Optional["CompiledTemplate"] = None
        if len(kwargs) > 0:
            apply_record(self, kwargs, self.FIELDS)

    def __setattr__(self, name: str, value: Any) -> None:
        if name in self.FIELDS.values():
            value = _check_str(value, name)
            # A changed definition invalidates what was compiled from it.
            self.__dict__["path_template"] = None
            self.__dict__["contents"] = None
        super().__setattr__(name, value)

    def __repr__(self) -> str:
        return f"TemplateInfo(name={self.name!r}, path={self.path!r}, uuid={self.uuid!r})"

    def is_complete(self) -> bool:
        """
        Whether name, path and content reference are all set.
        """
        return bool(self.name and self.path and self.uuid)

    def compile_path(self, templar: "Templar", force: bool = False) -> "CompiledTemplate":
        """
        Compile the path template unless it is cached already.

        :param templar: The Templar to compile with.
        :param force: Recompile even if the path template is cached.
        :return: The compiled path template.
        :raises TemplateCompileError: In case the path template is invalid.
        """
        if self.path_template is None or force:
            try:
                self.path_template = templar.compile(self.name, self.path)
            except TemplateCompileError as error:
                raise TemplateCompileError(
                    f"{self.name} path", self.path, error.error
                ) from error
        return self.path_template

    def compile(
        self, templar: "Templar", loader: "TemplateLoader", force: bool = False
    ) -> None:
        """
        Compile the path template and the content template. Both are cached until the definition changes or ``force``
        is given.

        :param templar: The Templar to compile with.
        :param loader: The template store the content is fetched from.
        :param force: Recompile even if the templates are cached.
        :raises TemplateCompileError: In case one of the templates is invalid.
        :raises TemplateNotFoundError: In case the content template doesn't exist in the store.
        """
        self.compile_path(templar, force=force)
        if self.contents is None or force:
            source = loader.load(self.uuid)
            self.contents = templar.compile(self.name, source)

    def to_dict(self) -> Dict[str, Any]:
        return {key: getattr(self, attribute) for key, attribute in self.FIELDS.items()}


class BootEnvironment:
    """
    A boot environment encapsulates the machine-agnostic information needed by the provisioner to set up a machine.
    """

    TYPE_NAME = "bootenv"
    FIELDS = {
        "Name": "name",
        "OS": "os",
        "Templates": "templates",
        "Kernel": "kernel",
        "Initrds": "initrds",
        "BootParams": "boot_params",
        "RequiredParams": "required_params",
        "TenantId": "tenant_id",
    }

    def __init__(self, **kwargs: Any):
        """
        Constructor

        :param kwargs: Record fields in the JSON form (``Name``, ``OS``, ``Templates``, ...) or as attribute names.
        """
        self.logger = logging.getLogger()
        self._name = ""
        self._os = OsInfo()
        self._templates: List[TemplateInfo] = []
        self._kernel = ""
        self._initrds: List[str] = []
        self._boot_params = ""
        self._required_params: List[str] = []
        self._tenant_id = 0
        self.boot_params_template: Optional["CompiledTemplate"] = None
        if len(kwargs) > 0:
            self.from_dict(kwargs)

    def __repr__(self) -> str:
        return f"BootEnvironment(name={self._name!r})"

    @property
    def name(self) -> str:
        """
        The unique name of the boot environment. It can't be changed once the environment is persisted.

        :getter: The name.
        :setter: Raises a ``TypeError`` if the value is not a str.
        """
        return self._name

    @name.setter
    def name(self, name: str) -> None:
        self._name = _check_str(name, "name")

    @property
    def os(self) -> OsInfo:
        """
        The OS specific information for the boot environment.

        :getter: The ``OsInfo`` object.
        :setter: Accepts an ``OsInfo`` or its dictionary form.
        """
        return self._os

    @os.setter
    def os(self, os_info: Any) -> None:
        if os_info is None:
            os_info = OsInfo()
        elif isinstance(os_info, dict):
            os_info = OsInfo(**os_info)
        elif not isinstance(os_info, OsInfo):
            raise TypeError("os must be of type OsInfo or dict")
        self._os = os_info

    @property
    def templates(self) -> List[TemplateInfo]:
        """
        The templates that are expanded into files for every machine using this boot environment.

        :getter: The list of ``TemplateInfo`` objects.
        :setter: Accepts ``TemplateInfo`` objects or their dictionary form. Dictionaries become fresh, uncompiled
                 ``TemplateInfo`` objects.
        """
        return self._templates

    @templates.setter
    def templates(self, templates: Any) -> None:
        if templates is None:
            templates = []
        if not isinstance(templates, list):
            raise TypeError("templates must be a list")
        self._templates = [
            x if isinstance(x, TemplateInfo) else TemplateInfo(**x) for x in templates
        ]

    @property
    def kernel(self) -> str:
        """
        The partial path to the kernel inside the install tree of the OS.

        :getter: The partial path or an empty str.
        :setter: Raises a ``TypeError`` if the value is not a str.
        """
        return self._kernel

    @kernel.setter
    def kernel(self, kernel: str) -> None:
        self._kernel = _check_str(kernel, "kernel")

    @property
    def initrds(self) -> List[str]:
        """
        Partial paths to the initrds that should be loaded for the boot environment.

        :getter: The list of partial paths.
        :setter: Raises a ``TypeError`` if the value is not a list of str.
        """
        return self._initrds

    @initrds.setter
    def initrds(self, initrds: List[str]) -> None:
        self._initrds = _check_str_list(initrds, "initrds")

    @property
    def boot_params(self) -> str:
        """
        A template that will be expanded to the full kernel command line.

        :getter: The template source.
        :setter: Raises a ``TypeError`` if the value is not a str. Setting drops the compiled template.
        """
        return self._boot_params

    @boot_params.setter
    def boot_params(self, boot_params: str) -> None:
        self._boot_params = _check_str(boot_params, "boot_params")
        self.boot_params_template = None

    @property
    def required_params(self) -> List[str]:
        """
        Names of the parameters a machine must supply before this boot environment is applied to it.

        :getter: The list of parameter names.
        :setter: Raises a ``TypeError`` if the value is not a list of str.
        """
        return self._required_params

    @required_params.setter
    def required_params(self, required_params: List[str]) -> None:
        self._required_params = _check_str_list(required_params, "required_params")

    @property
    def tenant_id(self) -> int:
        """
        The tenant this boot environment belongs to.
        """
        return self._tenant_id

    @tenant_id.setter
    def tenant_id(self, tenant_id: int) -> None:
        if isinstance(tenant_id, bool) or not isinstance(tenant_id, int):
            raise TypeError("tenant_id must be of type int")
        self._tenant_id = tenant_id

    @property
    def is_install(self) -> bool:
        """
        Whether this boot environment installs an OS from media.
        """
        return self._name.endswith(enums.INSTALL_SUFFIX)

    def template_names(self) -> List[str]:
        """
        The names of all templates in definition order.
        """
        return [x.name for x in self._templates]

    def parse_templates(
        self, templar: "Templar", loader: "TemplateLoader", force: bool = False
    ) -> None:
        """
        Compile all templates of this boot environment and the boot parameter template.

        :param templar: The Templar to compile with.
        :param loader: The template store content templates are fetched from.
        :param force: Recompile content templates even if they are cached.
        :raises TemplateCompileError: In case one of the templates is invalid.
        :raises TemplateNotFoundError: In case a content template doesn't exist in the store.
        """
        for template_info in self._templates:
            template_info.compile(templar, loader, force=force)
        if not self._boot_params:
            self.boot_params_template = None
        elif self.boot_params_template is None or force:
            self.boot_params_template = templar.compile(
                f"{self._name} boot parameters", self._boot_params
            )
        self.logger.debug("Compiled %d templates for %s", len(self._templates), self._name)

    def from_dict(self, dictionary: Dict[str, Any]) -> None:
        """
        Initializes the object with attributes from the dictionary.

        :param dictionary: The dictionary with values.
        :raises KeyError: In case a key is not known to a boot environment.
        """
        apply_record(self, dictionary, self.FIELDS)

    def to_dict(self) -> Dict[str, Any]:
        """
        This converts everything in this object to a dictionary in the record format. Compiled templates are not part
        of it.

        :return: A dictionary with all values present in this object.
        """
        return {
            "Name": self._name,
            "OS": self._os.to_dict(),
            "Templates": [x.to_dict() for x in self._templates],
            "Kernel": self._kernel,
            "Initrds": list(self._initrds),
            "BootParams": self._boot_params,
            "RequiredParams": list(self._required_params),
            "TenantId": self._tenant_id,
        }
