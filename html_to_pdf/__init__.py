"""
HTML to PDF conversion with headless Chrome/Chromium.

MIT License - Copyright (c) 2025 HTML to PDF Converter
"""

from .config import Config, ConversionOptions, ConversionRequest, paper_dimensions
from .converter import HtmlToPdfConverter, file_url, main

__version__ = "1.0.0"

__all__ = [
    "Config",
    "ConversionOptions",
    "ConversionRequest",
    "HtmlToPdfConverter",
    "file_url",
    "main",
    "paper_dimensions",
]
