#!/usr/bin/env python3
"""
HTML to PDF converter driving headless Chromium through Playwright.

Opens one local HTML file in a fresh browser, waits for it to load and for the
network to go idle, and writes the browser's print-to-PDF output to disk.
The whole run is bounded by a single deadline.

MIT License - Copyright (c) 2025 HTML to PDF Converter
"""

import argparse
import asyncio
import os
import sys
from pathlib import Path
from typing import List, Optional, Union
from urllib.parse import quote

from playwright.async_api import Error as PlaywrightError, Page, async_playwright
from tqdm import tqdm

from .browser import launch_browser, resolve_browser
from .config import Config, ConversionRequest, parse_bool
from .console import ConsoleLogger
from .errors import (
    ConfigurationError,
    ConversionTimeoutError,
    HtmlToPdfError,
    InputNotFoundError,
    NavigationError,
    OutputDirectoryError,
    RenderError,
    WriteError,
)

# Time allowed for browser teardown after the deadline cancels a conversion
CANCEL_GRACE_SECONDS = 10.0


def _path_to_file_url(absolute: str, sep: str = "/", altsep: Optional[str] = None) -> str:
    normalized = absolute.replace(sep, "/")
    if altsep:
        normalized = normalized.replace(altsep, "/")
    # Windows UNC path \\server\share\x keeps its host: file://server/share/x
    if "\\" in (sep, altsep) and normalized.startswith("//") and not normalized.startswith("///"):
        return "file:" + quote(normalized, safe="/:")
    # Always exactly three slashes: file:///abs/path or file:///C:/abs/path
    return "file:///" + quote(normalized.lstrip("/"), safe="/:")


def file_url(path: Union[str, os.PathLike]) -> str:
    """Build a file:// URL for a local path, resolving it to an absolute path."""
    return _path_to_file_url(os.path.abspath(os.fspath(path)), os.sep, os.altsep)


class HtmlToPdfConverter:
    """Single-shot HTML to PDF conversion using Playwright."""

    def __init__(self, debug: bool = False):
        self.debug = debug
        self.log = ConsoleLogger(debug)

    async def _render(self, page: Page, request: ConversionRequest, pbar: tqdm) -> bytes:
        """Navigate, wait for load and network idle, then print to PDF."""
        url = file_url(request.input_path)
        self.log.debug(f"Navigating to {url}")
        try:
            await page.goto(url, wait_until="commit")
        except PlaywrightError as e:
            raise NavigationError(f"failed to navigate to file: {e.message}") from e
        pbar.update(1)

        # "load" alone misses late scripts and resources
        try:
            await page.wait_for_load_state("load")
            await page.wait_for_load_state("networkidle")
        except PlaywrightError as e:
            raise NavigationError(f"page did not finish loading: {e.message}", stage="wait") from e
        self.log.debug("Page loaded and network idle")
        pbar.update(1)

        pdf_args = request.options.pdf_arguments()
        self.log.debug(f"Printing to PDF with {pdf_args}")
        try:
            data = await page.pdf(**pdf_args)
        except PlaywrightError as e:
            raise RenderError(f"failed to generate PDF: {e.message}") from e
        pbar.update(1)
        return data

    def write_pdf(self, data: bytes, output_pdf: Path) -> None:
        """Write PDF bytes to the destination, overwriting any existing file.

        A partially written file is removed before the error is raised.
        """
        try:
            f = open(output_pdf, "wb")
        except OSError as e:
            raise WriteError(f"failed to create output file: {e}") from e
        try:
            with f:
                f.write(data)
        except OSError as e:
            try:
                os.unlink(output_pdf)
            except OSError:
                self.log.warning(f"Could not remove partial file {output_pdf}")
            raise WriteError(f"failed to write PDF data: {e}") from e
        self.log.debug(f"Wrote {len(data)} bytes to {output_pdf}")

    async def convert(self, request: ConversionRequest) -> None:
        """Run one conversion against a freshly launched browser.

        The request must already be validated. The browser and Playwright
        driver are torn down on every exit path, including cancellation.
        """
        resolution = resolve_browser(request.options, self.log)

        # Steps: launch, navigate, load + idle, render, write
        with tqdm(total=5, desc=f"  {request.input_path.name}", unit="step", leave=False) as pbar:
            async with async_playwright() as playwright:
                async with launch_browser(playwright, resolution, self.log) as browser:
                    pbar.update(1)
                    try:
                        page = await browser.new_page()
                    except PlaywrightError as e:
                        raise NavigationError(f"failed to open page: {e.message}", stage="page") from e
                    page.set_default_timeout(request.timeout * 1000)
                    try:
                        data = await self._render(page, request, pbar)
                        self.write_pdf(data, request.output_path)
                        pbar.update(1)
                    finally:
                        try:
                            await page.close()
                        except PlaywrightError as e:
                            self.log.warning(f"Error closing page: {e.message}")

    async def run(self, request: ConversionRequest) -> None:
        """Validate the request, then race the conversion against its deadline.

        On expiry the conversion task is cancelled, which closes the browser
        and stops the Playwright driver (killing the browser process). The
        timeout is reported whatever the task does afterwards.

        Raises:
            HtmlToPdfError: any stage failure, or ConversionTimeoutError.
        """
        request.validate()
        request.ensure_output_dir()

        task = asyncio.ensure_future(self.convert(request))
        try:
            done, _ = await asyncio.wait({task}, timeout=request.timeout)
        except asyncio.CancelledError:
            task.cancel()
            raise

        if task in done:
            task.result()
            return

        self.log.debug("Deadline reached, cancelling conversion")
        task.cancel()
        await asyncio.wait({task}, timeout=CANCEL_GRACE_SECONDS)
        if not task.done():
            self.log.warning("Browser cleanup did not finish after timeout")
        elif not task.cancelled() and task.exception() is not None:
            self.log.debug(f"Conversion ended after timeout with: {task.exception()}")
        raise ConversionTimeoutError(request.timeout)


def _flag_bool(value: str) -> bool:
    try:
        return parse_bool(value)
    except ConfigurationError as e:
        raise argparse.ArgumentTypeError(e.message)


def build_parser() -> argparse.ArgumentParser:
    """Flags accept one or two leading dashes (-input or --input)."""
    parser = argparse.ArgumentParser(
        prog="html-to-pdf",
        usage="%(prog)s -input <html-file> -output <pdf-file> [options]",
        description="Convert a local HTML file to PDF with headless Chrome/Chromium",
    )
    parser.add_argument("-input", "--input", dest="input", default="", help="Path to the input HTML file (required)")
    parser.add_argument("-output", "--output", dest="output", default="", help="Path for the output PDF file (required)")
    parser.add_argument("-landscape", "--landscape", dest="landscape", type=_flag_bool, nargs="?", const=True, default=False, metavar="BOOL", help="Set page orientation to landscape")
    parser.add_argument("-paper", "--paper", dest="paper", default=None, help="Paper size: A4, Letter, Legal, Tabloid/Ledger, A3, A5 (default: A4, unknown sizes use Letter)")
    parser.add_argument("-scale", "--scale", dest="scale", type=float, default=1.0, help="Scale factor for rendering (default: 1.0)")
    parser.add_argument("-background", "--background", dest="background", type=_flag_bool, nargs="?", const=True, default=True, metavar="BOOL", help="Print background colors and images (default: true)")
    parser.add_argument("-browser", "--browser", dest="browser", default=None, help="Path to Chrome/Chromium executable (for airgapped environments)")
    parser.add_argument("-no-download", "--no-download", dest="no_download", type=_flag_bool, nargs="?", const=True, default=None, metavar="BOOL", help="Prevent automatic browser download (for airgapped environments)")
    parser.add_argument("-timeout", "--timeout", dest="timeout", type=int, default=None, help="Timeout in seconds for the conversion process (default: 60)")
    parser.add_argument("-debug", "--debug", dest="debug", action="store_true", help="Enable debug logging for detailed output")
    return parser


def main(argv: Optional[List[str]] = None) -> None:
    """Main entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.input or not args.output:
        parser.print_help(sys.stderr)
        sys.exit(1)

    converter = HtmlToPdfConverter(debug=args.debug)

    cli_config = {
        "landscape": args.landscape,
        "paper_size": args.paper,
        "scale": args.scale,
        "print_background": args.background,
        "browser_path": args.browser,
        "no_download": args.no_download,
        "timeout": args.timeout,
    }
    try:
        request = Config(cli_config).build_request(args.input, args.output)
    except ConfigurationError as e:
        converter.log.error(str(e))
        sys.exit(1)

    # Pre-flight checks report on their own, apart from conversion failures
    try:
        request.validate()
        request.ensure_output_dir()
    except (InputNotFoundError, OutputDirectoryError) as e:
        converter.log.error(e.message)
        sys.exit(1)

    try:
        asyncio.run(converter.run(request))
    except ConversionTimeoutError as e:
        converter.log.error(str(e))
        sys.exit(1)
    except HtmlToPdfError as e:
        converter.log.error(f"Error converting HTML to PDF: {e}")
        sys.exit(1)
    except PlaywrightError as e:
        converter.log.error(f"Error converting HTML to PDF: {e.message}")
        sys.exit(1)

    print(f"Successfully converted '{args.input}' to '{args.output}'")


if __name__ == "__main__":
    main()
