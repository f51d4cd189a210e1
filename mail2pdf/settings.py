import logging
import os
import shlex
from dataclasses import dataclass, field
from typing import Dict, Mapping, Optional, Tuple


logger = logging.getLogger(__name__)

PDF_PAGE_FORMAT = "A4"
PDF_MARGINS: Dict[str, str] = {
    "top": "20mm",
    "right": "20mm",
    "bottom": "20mm",
    "left": "20mm",
}

# Chromium does not apply the page stylesheet to header/footer templates, so the
# snippets carry their own inline styles. Without a font size they render tiny.
HEADER_FOOTER_STYLE = (
    "font-size: 10px; margin: 10px 20px; width: 100%; text-align: {align}; "
    "white-space: nowrap; overflow: hidden; text-overflow: ellipsis;"
)

DEFAULT_CHROMIUM_ARGS: Tuple[str, ...] = (
    "--disable-dev-shm-usage",
    "--disable-gpu",
    "--disable-extensions",
    "--no-first-run",
    "--font-render-hinting=none",
)

_TRUTHY = {"1", "true", "yes", "on"}
_FALSY = {"0", "false", "no", "off"}


def header_footer(inner_html: str, align: str = "left") -> str:
    """Wrap *inner_html* in a self-styled single-line header/footer container."""
    style = HEADER_FOOTER_STYLE.format(align=align)
    return f'<div style="{style}">{inner_html}</div>'


HEADER_TEMPLATE = header_footer('<span class="title"></span>')
FOOTER_TEMPLATE = header_footer(
    '<span class="pageNumber"></span>/<span class="totalPages"></span>',
    "right",
)


def _env_flag(environ: Mapping[str, str], name: str, default: bool) -> bool:
    raw = environ.get(name)
    if raw is None or not raw.strip():
        return default

    lowered = raw.strip().lower()
    if lowered in _TRUTHY:
        return True
    if lowered in _FALSY:
        return False

    logger.warning("Invalid boolean value '%s' for %s. Falling back to %s.", raw, name, default)
    return default


@dataclass(frozen=True)
class BrowserSettings:
    """Launch options for the headless Chromium instance."""

    headless: bool = True
    chromium_sandbox: bool = False
    args: Tuple[str, ...] = field(default=DEFAULT_CHROMIUM_ARGS)

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "BrowserSettings":
        env = os.environ if environ is None else environ

        headless = _env_flag(env, "MAIL2PDF_HEADLESS", True)
        sandbox = _env_flag(env, "MAIL2PDF_CHROMIUM_SANDBOX", False)

        args = DEFAULT_CHROMIUM_ARGS
        if not sandbox:
            args += ("--no-sandbox", "--disable-setuid-sandbox")
        args += tuple(shlex.split(env.get("MAIL2PDF_BROWSER_ARGS", "")))

        settings = cls(headless=headless, chromium_sandbox=sandbox, args=args)
        logger.debug("Resolved browser settings: %s", settings)
        return settings

    def launch_kwargs(self) -> Dict[str, object]:
        return {
            "headless": self.headless,
            "chromium_sandbox": self.chromium_sandbox,
            "args": list(self.args),
        }
