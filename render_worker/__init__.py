"""Render Worker: headless-browser content and screenshot capture over HTTP."""

__version__ = "1.0.0"
