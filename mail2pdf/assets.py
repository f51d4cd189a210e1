"""Bundled templates and label translations."""

from __future__ import annotations

import json
import logging
import os
from typing import Dict, Optional, Protocol

from mail2pdf.errors import TemplateError


logger = logging.getLogger(__name__)

RES_DIR = os.path.join(os.path.dirname(__file__), "res")

DEFAULT_LANGUAGE = "en"
DEFAULT_TEMPLATE = "thunderbird"
SUPPORTED_LANGUAGES = ("en", "de")
SUPPORTED_TEMPLATES = ("thunderbird",)


class AssetLoader(Protocol):
    def load_template(self, name: str) -> str: ...
    def load_locale(self, language: str) -> Dict[str, str]: ...


class PackageAssetLoader:
    """Load templates and locale tables shipped inside the package."""

    def __init__(self, res_dir: str = RES_DIR) -> None:
        self.res_dir = res_dir

    def load_template(self, name: str) -> str:
        path = os.path.join(self.res_dir, "templates", f"{name}.html.j2")
        try:
            with open(path, "r", encoding="utf-8") as f:
                return f.read()
        except OSError as exc:
            raise TemplateError(f"Template '{name}' is not available at {path}") from exc

    def load_locale(self, language: str) -> Dict[str, str]:
        path = os.path.join(self.res_dir, "i18n", f"{language}.json")
        try:
            with open(path, "r", encoding="utf-8") as f:
                return json.load(f)
        except (OSError, ValueError) as exc:
            raise TemplateError(f"Locale '{language}' cannot be loaded from {path}") from exc


def resolve_language(language: Optional[str]) -> str:
    if not language:
        return DEFAULT_LANGUAGE
    if language not in SUPPORTED_LANGUAGES:
        logger.warning("Unsupported language '%s'; using '%s'", language, DEFAULT_LANGUAGE)
        return DEFAULT_LANGUAGE
    return language


def resolve_template_name(template_name: Optional[str]) -> str:
    if not template_name:
        return DEFAULT_TEMPLATE
    if template_name not in SUPPORTED_TEMPLATES:
        logger.warning("Unsupported template '%s'; using '%s'", template_name, DEFAULT_TEMPLATE)
        return DEFAULT_TEMPLATE
    return template_name


__all__ = [
    "AssetLoader",
    "DEFAULT_LANGUAGE",
    "DEFAULT_TEMPLATE",
    "PackageAssetLoader",
    "SUPPORTED_LANGUAGES",
    "SUPPORTED_TEMPLATES",
    "resolve_language",
    "resolve_template_name",
]
