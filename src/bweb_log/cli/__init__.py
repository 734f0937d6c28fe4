"""Command-line interface for bweb-log.

Controls the reporters of a running server through its management API.
"""

from .main import cli, main

__all__ = ["cli", "main"]
