"""Command-line interface."""

from media_toolkit.cli.main import app, main

__all__ = ["app", "main"]
