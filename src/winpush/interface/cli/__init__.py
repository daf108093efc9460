"""
CLI package for WinPush.

Contains command-line interface components.
"""

from winpush.interface.cli.cli import main

__all__ = ["main"]
