"""
End-to-end conversion against a real Chromium.

Skipped when no browser can be launched in the test environment.
"""

import pytest
import pytest_asyncio
from playwright.async_api import Error as PlaywrightError, async_playwright

from html_to_pdf.config import ConversionOptions, ConversionRequest
from html_to_pdf.converter import HtmlToPdfConverter

pytestmark = pytest.mark.integration


@pytest_asyncio.fixture
async def require_chromium():
    try:
        async with async_playwright() as p:
            browser = await p.chromium.launch(headless=True, args=["--no-sandbox"])
            await browser.close()
    except PlaywrightError as e:
        pytest.skip(f"Chromium not available: {e.message}")


@pytest.mark.asyncio
async def test_real_conversion(require_chromium, html_file, tmp_path):
    output = tmp_path / "fresh" / "dir" / "out.pdf"
    request = ConversionRequest(html_file, output, ConversionOptions(paper_size="Letter"), timeout=60)

    await HtmlToPdfConverter().run(request)

    data = output.read_bytes()
    assert data.startswith(b"%PDF-")
    assert b"%%EOF" in data[-1024:]


@pytest.mark.asyncio
async def test_second_run_overwrites(require_chromium, html_file, tmp_path):
    output = tmp_path / "out.pdf"
    sentinel = b"stale output from an earlier run"
    output.write_bytes(sentinel)
    converter = HtmlToPdfConverter()

    await converter.run(ConversionRequest(html_file, output, ConversionOptions(), timeout=60))
    portrait = output.read_bytes()
    await converter.run(ConversionRequest(html_file, output, ConversionOptions(landscape=True), timeout=60))
    landscape = output.read_bytes()

    assert portrait.startswith(b"%PDF-")
    assert sentinel not in portrait
    assert landscape.startswith(b"%PDF-")
    assert landscape != portrait

