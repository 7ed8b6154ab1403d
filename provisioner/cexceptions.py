"""
Custom exceptions for the provisioner
"""

# SPDX-License-Identifier: GPL-2.0-or-later

from typing import Any, Iterable, List


class ProvisionerException(Exception):
    """
    This is the default provisioner exception where all other exceptions are inheriting from.
    """

    def __init__(self, value: Any, *args: Any):
        """
        Default constructor for the Exception.

        Bad example: ``CX("Boot environment %s not found" % name)``

        Good example: ``CX("Boot environment %s not found", name)``

        :param value: The string representation of the Exception. Do not glue strings and pass them as one. Instead pass
                      them as params and let the constructor of the Exception build the string like (same as it should
                      be done with logging calls). Example see above.
        :param args: Optional arguments which replace a ``%s`` in a Python string.
        """
        self.value = value % args if args else value
        super().__init__(self.value)
        self.from_provisioner = 1

    def __str__(self) -> str:
        """
        This is the string representation of the base provisioner Exception.
        :return: self.value as a string represented.
        """
        return str(self.value)


class CX(ProvisionerException):
    """
    This is a general exception which gets thrown for data and operation errors.
    """


class UnknownProtocolError(ProvisionerException):
    """
    A path was requested for a protocol tag the resolver doesn't know. This is a bug in the caller and not something a
    boot environment definition can trigger, so it deliberately does not inherit from ``CX``.
    """

    def __init__(self, protocol: Any):
        self.protocol = protocol
        super().__init__("Unknown protocol %s", protocol)


class RecordNotFoundError(CX):
    """
    Raised when the record store has no record for the requested key.
    """

    def __init__(self, kind: str, name: str):
        self.kind = kind
        self.name = name
        super().__init__("No %s named %s", kind, name)


class TemplateNotFoundError(CX):
    """
    Raised when a content template identifier can't be found in the template store.
    """

    def __init__(self, identifier: str, location: str):
        self.identifier = identifier
        self.location = location
        super().__init__("Template %s not found at %s", identifier, location)


class TemplateCompileError(CX):
    """
    A template could not be parsed. The raw source is kept for diagnosis.
    """

    def __init__(self, template_name: str, source: str, error: Any):
        self.template_name = template_name
        self.source = source
        self.error = error
        super().__init__(
            "Error compiling template %s: %s\n---template---\n%s",
            template_name,
            error,
            source,
        )


class TemplateEvaluationError(CX):
    """
    A template failed while being evaluated, usually because of a reference to something undefined.
    """

    def __init__(self, template_name: str, error: Any):
        self.template_name = template_name
        self.error = error
        super().__init__("Error rendering template %s: %s", template_name, error)


class UnsupportedSegmentError(CX):
    """
    ``ParseUrl`` was asked for an URL part it doesn't know.
    """

    def __init__(self, segment: str, raw_url: str):
        self.segment = segment
        self.raw_url = raw_url
        super().__init__("No idea how to get URL part %s from %s", segment, raw_url)


class MissingParameterError(CX):
    """
    ``Param`` was asked for a machine parameter the machine doesn't have.
    """

    def __init__(self, key: str, machine: str):
        self.key = key
        self.machine = machine
        super().__init__("No such machine parameter %s on machine %s", key, machine)


class MissingRequiredParamsError(CX):
    """
    The machine lacks parameters the boot environment requires.
    """

    def __init__(self, bootenv: str, machine: str, missing: Iterable[str]):
        self.bootenv = bootenv
        self.machine = machine
        self.missing: List[str] = list(missing)
        super().__init__(
            "Boot environment %s is missing required machine params for %s: %s",
            bootenv,
            machine,
            ", ".join(self.missing),
        )


class InvalidTemplateSpecError(CX):
    """
    A template entry of a boot environment has an empty name, path or content reference.
    """

    def __init__(self, bootenv: str, template: Any):
        self.bootenv = bootenv
        self.template = template
        super().__init__("Boot environment %s has an illegal template: %s", bootenv, template)


class IncompleteBootSupportError(CX):
    """
    The boot environment neither provides an ipxe template nor both pxelinux and elilo templates.
    """

    def __init__(self, bootenv: str):
        self.bootenv = bootenv
        super().__init__("Boot environment %s is missing elilo or pxelinux template", bootenv)


class ChecksumMismatchError(CX):
    """
    The installation ISO does not match the configured SHA256 sum.
    """

    def __init__(self, iso_path: str, actual: str, expected: str):
        self.iso_path = iso_path
        self.actual = actual
        self.expected = expected
        super().__init__(
            "ISO checksum bad. Re-download image: %s: actual: %s expected: %s",
            iso_path,
            actual,
            expected,
        )


class MediaExtractionError(CX):
    """
    The external ISO extraction procedure failed.
    """

    def __init__(self, bootenv: str, detail: Any):
        self.bootenv = bootenv
        self.detail = detail
        super().__init__("Extracting ISO for %s failed: %s", bootenv, detail)


class FileFetchFailedError(CX):
    """
    An auxiliary OS file could not be downloaded or is still invalid after downloading it.
    """

    def __init__(self, name: str, path: str, detail: Any):
        self.name = name
        self.path = path
        self.detail = detail
        super().__init__("Could not fetch file %s to %s: %s", name, path, detail)


class _BootFileError(CX):
    kind = "boot file"

    def __init__(self, bootenv: str, partial_path: str, full_path: str, reason: str = "missing"):
        self.bootenv = bootenv
        self.partial_path = partial_path
        self.full_path = full_path
        self.reason = reason
        super().__init__(
            "Boot environment %s: %s %s %s (%s)",
            bootenv,
            reason,
            self.kind,
            partial_path,
            full_path,
        )


class MissingKernelError(_BootFileError):
    """
    The kernel of a boot environment is missing or not a regular file.
    """

    kind = "kernel"


class MissingInitrdError(_BootFileError):
    """
    An initrd of a boot environment is missing or not a regular file.
    """

    kind = "initrd"


class ImmutableIdentityError(CX):
    """
    An update tried to rename a boot environment.
    """

    def __init__(self, old_name: str, new_name: str):
        self.old_name = old_name
        self.new_name = new_name
        super().__init__("Cannot change name of boot environment %s to %s", old_name, new_name)


class EnvironmentInUseError(CX):
    """
    A boot environment can't be deleted while a machine still references it.
    """

    def __init__(self, bootenv: str, machine: str):
        self.bootenv = bootenv
        self.machine = machine
        super().__init__("Boot environment %s in use by machine %s", bootenv, machine)
