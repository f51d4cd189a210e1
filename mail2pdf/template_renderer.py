"""Expand the bundled HTML template against a view model."""

from __future__ import annotations

import logging
from typing import Any, Mapping

import jinja2

from mail2pdf.errors import TemplateError


logger = logging.getLogger(__name__)


class TemplateRenderer:
    """A compiled template; compile once per conversion call, render per email."""

    def __init__(self, source: str, name: str = "template") -> None:
        self.name = name
        self._env = jinja2.Environment(
            autoescape=True,
            undefined=jinja2.Undefined,
            keep_trailing_newline=True,
        )
        try:
            self._template = self._env.from_string(source)
        except jinja2.TemplateSyntaxError as exc:
            raise TemplateError(
                f"Template '{name}' is malformed (line {exc.lineno}): {exc.message}"
            ) from exc
        logger.debug("Compiled template '%s'", name)

    def render(self, view_model: Mapping[str, Any]) -> str:
        try:
            return self._template.render(**view_model)
        except jinja2.TemplateError as exc:
            raise TemplateError(f"Rendering template '{self.name}' failed: {exc}") from exc


__all__ = ["TemplateRenderer"]
