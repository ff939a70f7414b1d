"""
Browser resolution and launch.

Decides which Chromium-family executable to run (explicit path, local install,
PATH lookup or the Playwright-managed build) and launches it headlessly for
the lifetime of one conversion.

MIT License - Copyright (c) 2025 HTML to PDF Converter
"""

import asyncio
import os
import shutil
import sys
from contextlib import asynccontextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import AsyncIterator, Iterable, Optional, Sequence

from playwright.async_api import Browser, Error as PlaywrightError, Playwright

from .config import ConversionOptions
from .console import ConsoleLogger
from .errors import BrowserLaunchError, BrowserNotFoundError

KNOWN_BROWSER_PATHS: Sequence[str] = (
    # macOS
    "/Applications/Google Chrome.app/Contents/MacOS/Google Chrome",
    "/Applications/Chromium.app/Contents/MacOS/Chromium",
    # Linux
    "/usr/bin/google-chrome",
    "/usr/bin/chromium",
    "/usr/bin/chromium-browser",
    # Windows
    r"C:\Program Files\Google\Chrome\Application\chrome.exe",
    r"C:\Program Files (x86)\Google\Chrome\Application\chrome.exe",
    r"C:\Program Files\Chromium\Application\chrome.exe",
    r"C:\Program Files (x86)\Chromium\Application\chrome.exe",
)

LOOKUP_NAMES: Sequence[str] = (
    "chrome",
    "google-chrome",
    "google-chrome-stable",
    "chromium",
    "chromium-browser",
    "microsoft-edge",
    "msedge",
)

LAUNCH_ARGS = [
    '--disable-dev-shm-usage',  # Use /tmp instead of /dev/shm (prevents OOM crashes)
    '--disable-gpu',             # No GPU in headless mode
    '--no-sandbox',              # Required in some environments
]

SOURCE_EXPLICIT = "explicit"
SOURCE_KNOWN_PATH = "known-path"
SOURCE_LOOKUP = "lookup"
SOURCE_MANAGED = "managed"


@dataclass(frozen=True)
class BrowserResolution:
    """Which executable to launch. ``executable`` is None for the managed build."""

    executable: Optional[str]
    source: str


def find_known_browser(paths: Iterable[str] = KNOWN_BROWSER_PATHS) -> Optional[str]:
    """Return the first well-known install path that exists on disk."""
    for path in paths:
        if os.path.exists(path):
            return path
    return None


def look_path(names: Iterable[str] = LOOKUP_NAMES) -> Optional[str]:
    """Search PATH for any Chromium-family browser."""
    for name in names:
        found = shutil.which(name)
        if found:
            return found
    return None


def resolve_browser(options: ConversionOptions, log: ConsoleLogger) -> BrowserResolution:
    """Pick the browser to launch, in priority order.

    1. An explicit path is always used as-is, with no fallback.
    2. With downloads allowed, the Playwright-managed build is used.
    3. Otherwise the well-known install paths are tried, then a PATH lookup.

    Raises:
        BrowserNotFoundError: downloads are disallowed and nothing was found.
    """
    if options.browser_path:
        log.info(f"Using browser at: {options.browser_path}")
        return BrowserResolution(options.browser_path, SOURCE_EXPLICIT)

    if options.allow_download:
        return BrowserResolution(None, SOURCE_MANAGED)

    log.info("Auto-download disabled, searching for local browser installation...")
    path = find_known_browser()
    if path:
        log.info(f"Found browser at: {path}")
        return BrowserResolution(path, SOURCE_KNOWN_PATH)

    path = look_path()
    if path:
        log.info(f"Found browser using PATH lookup at: {path}")
        return BrowserResolution(path, SOURCE_LOOKUP)

    raise BrowserNotFoundError("no browser download allowed and no local browser found")


async def ensure_managed_browser(playwright: Playwright, log: ConsoleLogger) -> None:
    """Reuse the Playwright-managed Chromium if present, otherwise download it."""
    cached = playwright.chromium.executable_path
    if cached and Path(cached).exists():
        log.debug(f"Reusing managed browser at: {cached}")
        return

    log.info("No managed browser found, downloading Chromium...")
    cmd = [sys.executable, "-m", "playwright", "install", "chromium"]
    try:
        proc = await asyncio.create_subprocess_exec(
            *cmd, stdout=asyncio.subprocess.PIPE, stderr=asyncio.subprocess.STDOUT
        )
    except OSError as e:
        raise BrowserLaunchError(f"failed to start browser download: {e}") from e

    try:
        output, _ = await proc.communicate()
    except asyncio.CancelledError:
        if proc.returncode is None:
            proc.kill()
            await proc.wait()
        raise

    if proc.returncode != 0:
        detail = output.decode(errors="replace").strip().splitlines()
        tail = detail[-1] if detail else f"exit status {proc.returncode}"
        raise BrowserLaunchError(f"browser download failed: {tail}")
    log.success("Chromium downloaded")


@asynccontextmanager
async def launch_browser(playwright: Playwright, resolution: BrowserResolution,
                         log: ConsoleLogger) -> AsyncIterator[Browser]:
    """Launch headless Chromium and close it exactly once on every exit path.

    A failure to close is logged and does not change the run's outcome.
    """
    if resolution.source == SOURCE_MANAGED:
        await ensure_managed_browser(playwright, log)

    launch_kwargs = {"headless": True, "args": LAUNCH_ARGS}
    if resolution.executable:
        launch_kwargs["executable_path"] = resolution.executable

    try:
        browser = await playwright.chromium.launch(**launch_kwargs)
    except PlaywrightError as e:
        target = resolution.executable or "managed Chromium"
        raise BrowserLaunchError(f"failed to launch {target}: {e.message}") from e
    log.debug(f"Browser launched ({resolution.source}), version {browser.version}")

    try:
        yield browser
    finally:
        try:
            await browser.close()
        except PlaywrightError as e:
            log.warning(f"Error closing browser: {e.message}")
        else:
            log.debug("Browser instance closed and cleaned up")
