"""
Exception hierarchy for the HTML to PDF converter.

Every failure is terminal for the run. Each error carries a short stage label
so the top level can print it verbatim.

MIT License - Copyright (c) 2025 HTML to PDF Converter
"""

from typing import Optional


class HtmlToPdfError(Exception):
    """Base exception for all converter errors."""

    stage: Optional[str] = None

    def __init__(self, message: str, stage: Optional[str] = None):
        super().__init__(message)
        self.message = message
        if stage is not None:
            self.stage = stage

    def __str__(self) -> str:
        if self.stage:
            return f"{self.stage}: {self.message}"
        return self.message


class ConfigurationError(HtmlToPdfError):
    """Raised when flags or environment settings are missing or invalid."""
    stage = "config"


class InputNotFoundError(HtmlToPdfError):
    """Raised when the input HTML file does not exist."""
    stage = "input"


class OutputDirectoryError(HtmlToPdfError):
    """Raised when the output directory cannot be created."""
    stage = "output directory"


class BrowserNotFoundError(HtmlToPdfError):
    """Raised when downloading is disallowed and no local browser exists."""
    stage = "browser"


class BrowserLaunchError(HtmlToPdfError):
    """Raised when a browser cannot be fetched or launched.

    Examples:
        - Explicit browser path is not executable
        - Managed browser download failed
        - Browser process exited during startup
    """
    stage = "launch"


class NavigationError(HtmlToPdfError):
    """Raised when the page cannot be loaded or never settles."""
    stage = "navigate"


class RenderError(HtmlToPdfError):
    """Raised when the browser's print-to-PDF call fails."""
    stage = "render"


class WriteError(HtmlToPdfError):
    """Raised when the PDF cannot be written to its destination."""
    stage = "write"


class ConversionTimeoutError(HtmlToPdfError):
    """Raised when the overall deadline elapses before the conversion ends."""

    def __init__(self, seconds: float):
        super().__init__(f"Operation timed out after {seconds:g} seconds")
        self.seconds = seconds
