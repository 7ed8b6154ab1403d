"""
The provisioner renders Jinja2 templates by default and Cheetah templates on request. This module hides the
differences between both behind compiled template objects.

Both engines bind variables strictly: a reference to something that isn't defined is an error and never an empty
substitution, so a broken definition can't produce a boot file that only looks fine.
"""

# SPDX-License-Identifier: GPL-2.0-or-later

import logging
import re
from typing import TYPE_CHECKING, Any, Callable, Dict, Optional, Tuple

import jinja2
from Cheetah.Template import Template as CheetahTemplate

from provisioner import enums
from provisioner.cexceptions import (
    ProvisionerException,
    TemplateCompileError,
    TemplateEvaluationError,
)

if TYPE_CHECKING:
    from provisioner.settings import Settings

# Older definitions address variables with a leading dot, e.g. "{{.Machine.HexAddress}}".
LEGACY_DOT_RE = re.compile(r"(\{\{-?\s*)\.(?=[A-Za-z_])")


def call_helper(value: Any) -> Any:
    """
    Output hook of the Jinja2 environment. A helper printed without parentheses, e.g. ``{{ BootParams }}`` or the
    legacy ``{{.BootParams}}``, is called instead of printing the function object. Helpers that need arguments fail the
    render.

    :param value: The value of an expression about to be printed.
    :return: The value to print.
    """
    if callable(value):
        return value()
    return value


class CompiledTemplate:
    """
    A parsed template that can be evaluated any number of times against different search tables.
    """

    def __init__(
        self,
        name: str,
        source: str,
        template_type: enums.TemplateType,
        renderer: Callable[[Dict[str, Any]], str],
    ):
        self.name = name
        self.source = source
        self.template_type = template_type
        self._renderer = renderer

    def __repr__(self) -> str:
        return f"CompiledTemplate(name={self.name!r}, type={self.template_type.value})"

    def render(self, search_table: Dict[str, Any]) -> str:
        """
        Evaluate the template.

        :param search_table: The variables visible to the template.
        :return: The rendered text.
        :raises TemplateEvaluationError: In case the template references something undefined or fails otherwise.
        """
        try:
            return self._renderer(search_table)
        except ProvisionerException:
            # Errors of the template helpers carry their own meaning.
            raise
        except Exception as error:
            raise TemplateEvaluationError(self.name, error) from error


class Templar:
    """
    Wrapper to encapsulate all logic of Cheetah vs. Jinja2.
    """

    def __init__(self, settings: "Settings"):
        """
        Constructor

        :param settings: The settings of the provisioner.
        """
        self.settings = settings
        self.logger = logging.getLogger()
        self.jinja_env = jinja2.Environment(
            undefined=jinja2.StrictUndefined,
            keep_trailing_newline=True,
            autoescape=False,
            finalize=call_helper,
        )

    def check_for_invalid_imports(self, name: str, data: str) -> None:
        """
        Ensure that Cheetah code is not importing Python modules that may allow for advanced privileges by ensuring we
        whitelist the imports that we allow.

        :param name: The name of the template, used for the error.
        :param data: The Cheetah code to check.
        :raises TemplateCompileError: Raised in case there could be a potentially insecure import in the template.
        """
        for line in data.split("\n"):
            if "#import" in line or "#from" in line:
                rest = (
                    line.replace("#import", "")
                    .replace("#from", "")
                    .replace("import", ".")
                    .replace(" ", "")
                    .strip()
                )
                if rest not in self.settings.cheetah_import_whitelist:
                    raise TemplateCompileError(
                        name, data, f"Potentially insecure import in template: {rest}"
                    )

    def detect_type(self, source: str) -> Tuple[enums.TemplateType, str]:
        """
        Find out which engine a template is written for. A first line of ``#template=<type>`` selects the engine and is
        removed from the source, otherwise the configured default applies.

        :param source: The raw template source.
        :return: The template type and the source without the selector line.
        :raises ValueError: In case the selected type is not supported.
        """
        template_type = self.settings.default_template_type
        lines = source.split("\n")
        if len(lines) > 0 and lines[0].find("#template=") == 0:
            template_type = lines[0].split("=", 1)[1].strip().lower()
            source = "\n".join(lines[1:])
        return enums.TemplateType.to_enum(template_type), source

    def compile(
        self, name: str, source: str, template_type: Optional[str] = None
    ) -> CompiledTemplate:
        """
        Parse a template once so it can be rendered for many machines.

        :param name: The name of the template, used for error messages.
        :param source: The template source.
        :param template_type: Force an engine instead of detecting it.
        :return: The compiled template.
        :raises TemplateCompileError: In case the template is not valid.
        """
        if not isinstance(source, str):
            raise TemplateCompileError(name, repr(source), "template source must be of type str")
        try:
            if template_type is None:
                detected_type, raw_data = self.detect_type(source)
            else:
                detected_type, raw_data = enums.TemplateType.to_enum(template_type), source
        except ValueError as error:
            raise TemplateCompileError(name, source, error) from error

        if detected_type == enums.TemplateType.CHEETAH:
            renderer = self.compile_cheetah(name, raw_data)
        else:
            renderer = self.compile_jinja2(name, raw_data)
        return CompiledTemplate(name, source, detected_type, renderer)

    def compile_jinja2(self, name: str, raw_data: str) -> Callable[[Dict[str, Any]], str]:
        """
        Compile a Jinja2 template with strict undefined handling.

        :param name: The name of the template, used for error messages.
        :param raw_data: The template code.
        :return: A function rendering the template for a search table.
        :raises TemplateCompileError: In case of syntax errors.
        """
        raw_data = LEGACY_DOT_RE.sub(r"\1", raw_data)
        try:
            template = self.jinja_env.from_string(raw_data)
        except jinja2.TemplateSyntaxError as error:
            raise TemplateCompileError(name, raw_data, error) from error
        return template.render

    def compile_cheetah(self, name: str, raw_data: str) -> Callable[[Dict[str, Any]], str]:
        """
        Compile a Cheetah template. No error catcher is installed, so Cheetah raises ``NotFound`` for unknown
        placeholders.

        :param name: The name of the template, used for error messages.
        :param raw_data: The template code.
        :return: A function rendering the template for a search table.
        :raises TemplateCompileError: In case of syntax errors or forbidden imports.
        """
        self.check_for_invalid_imports(name, raw_data)
        try:
            template_class = CheetahTemplate.compile(
                source=raw_data,
                compilerSettings={"useStackFrame": False},
            )
        except Exception as error:
            self.logger.error("Cheetah failed to compile %s", name)
            raise TemplateCompileError(name, raw_data, error) from error

        def render(search_table: Dict[str, Any]) -> str:
            return str(template_class(searchList=[search_table]))

        return render
