"""
Configuration for HTML to PDF conversion.

Settings are resolved once (CLI values, then environment, then defaults) into
immutable request objects that are passed into the conversion workflow.

MIT License - Copyright (c) 2025 HTML to PDF Converter
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

from .errors import ConfigurationError, InputNotFoundError, OutputDirectoryError

# Paper sizes in inches (width, height)
PAPER_SIZES: Dict[str, Tuple[float, float]] = {
    "A4": (8.27, 11.69),
    "LETTER": (8.5, 11.0),
    "LEGAL": (8.5, 14.0),
    "TABLOID": (11.0, 17.0),
    "LEDGER": (11.0, 17.0),
    "A3": (11.69, 16.54),
    "A5": (5.83, 8.27),
}

DEFAULT_PAPER_SIZE = "A4"
FALLBACK_PAPER_SIZE = "LETTER"
PDF_MARGIN_INCHES = 0.4
DEFAULT_TIMEOUT_SECONDS = 60

ENV_BROWSER = "HTML_TO_PDF_BROWSER"
ENV_NO_DOWNLOAD = "HTML_TO_PDF_NO_DOWNLOAD"
ENV_TIMEOUT = "HTML_TO_PDF_TIMEOUT"
ENV_PAPER = "HTML_TO_PDF_PAPER"

_TRUTHY = {"1", "true", "yes", "on"}
_FALSY = {"0", "false", "no", "off", ""}


def paper_dimensions(name: str) -> Tuple[float, float]:
    """Return (width, height) in inches for a paper name, Letter if unknown."""
    key = (name or "").strip().upper()
    return PAPER_SIZES.get(key, PAPER_SIZES[FALLBACK_PAPER_SIZE])


def parse_bool(value: str) -> bool:
    """Parse a flag or environment boolean ("true", "0", "yes", ...)."""
    lowered = str(value).strip().lower()
    if lowered in _TRUTHY:
        return True
    if lowered in _FALSY:
        return False
    raise ConfigurationError(f"invalid boolean value '{value}'")


def _format_inches(value: float) -> str:
    return f"{value}in"


@dataclass(frozen=True)
class ConversionOptions:
    """Rendering and browser options for one conversion."""

    landscape: bool = False
    paper_size: str = DEFAULT_PAPER_SIZE
    scale: float = 1.0
    print_background: bool = True
    browser_path: Optional[str] = None
    allow_download: bool = True

    @property
    def paper_dimensions(self) -> Tuple[float, float]:
        return paper_dimensions(self.paper_size)

    def pdf_arguments(self) -> Dict[str, Any]:
        """Keyword arguments for Page.pdf().

        The scale is passed through untouched; the browser rejects values it
        cannot render.
        """
        width, height = self.paper_dimensions
        margin = _format_inches(PDF_MARGIN_INCHES)
        return {
            "landscape": self.landscape,
            "print_background": self.print_background,
            "scale": self.scale,
            "width": _format_inches(width),
            "height": _format_inches(height),
            "margin": {"top": margin, "right": margin, "bottom": margin, "left": margin},
            "prefer_css_page_size": True,
        }


@dataclass(frozen=True)
class ConversionRequest:
    """One conversion job: input file, output file, options and deadline."""

    input_path: Path
    output_path: Path
    options: ConversionOptions = field(default_factory=ConversionOptions)
    timeout: float = DEFAULT_TIMEOUT_SECONDS

    def validate(self) -> None:
        """Fail if the input HTML file is missing."""
        if not self.input_path.is_file():
            raise InputNotFoundError(f"Input file '{self.input_path}' not found.")

    def ensure_output_dir(self) -> Path:
        """Create the output file's parent directory if it is missing."""
        output_dir = self.output_path.parent
        try:
            output_dir.mkdir(mode=0o755, parents=True, exist_ok=True)
        except OSError as e:
            raise OutputDirectoryError(f"Error creating output directory '{output_dir}': {e}") from e
        return output_dir


class Config:
    """Layered settings: explicit CLI values, then environment, then defaults."""

    def __init__(self, cli_config: Optional[Dict[str, Any]] = None, environ: Optional[Dict[str, str]] = None):
        self.cli_config = {k: v for k, v in (cli_config or {}).items() if v is not None}
        self.environ = os.environ if environ is None else environ

    def _env(self, name: str) -> Optional[str]:
        value = self.environ.get(name)
        if value is None or value.strip() == "":
            return None
        return value.strip()

    def get_browser_path(self) -> Optional[str]:
        value = self.cli_config.get("browser_path")
        if value:
            return value
        return self._env(ENV_BROWSER)

    def get_no_download(self) -> bool:
        if "no_download" in self.cli_config:
            return bool(self.cli_config["no_download"])
        value = self._env(ENV_NO_DOWNLOAD)
        if value is None:
            return False
        try:
            return parse_bool(value)
        except ConfigurationError as e:
            raise ConfigurationError(f"{ENV_NO_DOWNLOAD}: {e.message}") from e

    def get_timeout(self) -> float:
        if "timeout" in self.cli_config:
            timeout = self.cli_config["timeout"]
        else:
            value = self._env(ENV_TIMEOUT)
            if value is None:
                timeout = DEFAULT_TIMEOUT_SECONDS
            else:
                try:
                    timeout = int(value)
                except ValueError:
                    raise ConfigurationError(f"{ENV_TIMEOUT} must be an integer number of seconds, got '{value}'")
        if timeout <= 0:
            raise ConfigurationError(f"timeout must be positive, got {timeout}")
        return timeout

    def get_paper_size(self) -> str:
        return self.cli_config.get("paper_size") or self._env(ENV_PAPER) or DEFAULT_PAPER_SIZE

    def get_scale(self) -> float:
        scale = self.cli_config.get("scale", 1.0)
        if scale <= 0:
            raise ConfigurationError(f"scale must be positive, got {scale}")
        return scale

    def get_options(self) -> ConversionOptions:
        return ConversionOptions(
            landscape=bool(self.cli_config.get("landscape", False)),
            paper_size=self.get_paper_size(),
            scale=self.get_scale(),
            print_background=bool(self.cli_config.get("print_background", True)),
            browser_path=self.get_browser_path(),
            allow_download=not self.get_no_download(),
        )

    def build_request(self, input_path: str, output_path: str) -> ConversionRequest:
        """Build the immutable request for one run."""
        if not input_path or not output_path:
            raise ConfigurationError("both -input and -output are required")
        return ConversionRequest(
            input_path=Path(input_path),
            output_path=Path(output_path),
            options=self.get_options(),
            timeout=self.get_timeout(),
        )
