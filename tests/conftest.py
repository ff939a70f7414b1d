"""
Shared pytest fixtures for HTML to PDF converter tests.

Fake Playwright objects stand in for a real browser so the workflow can be
exercised without Chromium installed.
"""

import asyncio
from contextlib import asynccontextmanager
from pathlib import Path

import pytest
from playwright.async_api import Error as PlaywrightError

from html_to_pdf.console import ConsoleLogger

PDF_BYTES = b"%PDF-1.4\n1 0 obj\n<<>>\nendobj\ntrailer\n<<>>\n%%EOF\n"

SAMPLE_HTML = """<!DOCTYPE html>
<html>
<head><title>Sample</title></head>
<body><h1>Hello PDF</h1><p>One page of visible text.</p></body>
</html>
"""


class FakePage:
    def __init__(self, browser):
        self.browser = browser
        self.closed = False
        self.default_timeout = None
        self.visited = []
        self.load_states = []
        self.pdf_kwargs = None

    def set_default_timeout(self, timeout):
        self.default_timeout = timeout

    async def goto(self, url, wait_until=None):
        if self.browser.goto_delay:
            await asyncio.sleep(self.browser.goto_delay)
        if self.browser.goto_error:
            raise PlaywrightError(self.browser.goto_error)
        self.visited.append((url, wait_until))

    async def wait_for_load_state(self, state):
        self.load_states.append(state)

    async def pdf(self, **kwargs):
        if self.browser.pdf_error:
            raise PlaywrightError(self.browser.pdf_error)
        self.pdf_kwargs = kwargs
        return PDF_BYTES

    async def close(self):
        self.closed = True


class FakeBrowser:
    version = "120.0.0.0"

    def __init__(self):
        self.pages = []
        self.close_calls = 0
        self.close_error = None
        self.goto_error = None
        self.goto_delay = 0
        self.pdf_error = None

    async def new_page(self):
        page = FakePage(self)
        self.pages.append(page)
        return page

    async def close(self):
        self.close_calls += 1
        if self.close_error:
            raise PlaywrightError(self.close_error)


class FakeBrowserType:
    def __init__(self, browser, executable_path=""):
        self.browser = browser
        self.executable_path = executable_path
        self.launches = []
        self.launch_error = None

    async def launch(self, **kwargs):
        self.launches.append(kwargs)
        if self.launch_error:
            raise PlaywrightError(self.launch_error)
        return self.browser


class FakePlaywright:
    def __init__(self, executable_path=""):
        self.browser = FakeBrowser()
        self.chromium = FakeBrowserType(self.browser, executable_path)
        self.stopped = False


@pytest.fixture
def fake_playwright(tmp_path):
    """A fake Playwright whose managed Chromium already exists on disk."""
    managed = tmp_path / "managed-chromium"
    managed.write_text("")
    return FakePlaywright(executable_path=str(managed))


@pytest.fixture
def patch_playwright(monkeypatch, fake_playwright):
    """Route html_to_pdf.converter.async_playwright to the fake."""

    @asynccontextmanager
    async def fake_async_playwright():
        try:
            yield fake_playwright
        finally:
            fake_playwright.stopped = True

    monkeypatch.setattr("html_to_pdf.converter.async_playwright", fake_async_playwright)
    return fake_playwright


@pytest.fixture
def log():
    return ConsoleLogger(debug=True)


@pytest.fixture
def html_file(tmp_path) -> Path:
    path = tmp_path / "input" / "sample.html"
    path.parent.mkdir()
    path.write_text(SAMPLE_HTML, encoding="utf-8")
    return path
