"""Utilities for simple_sftp."""

from simple_sftp.utils.console import ColorfulFormatter, configure_logging

__all__ = [
    "ColorfulFormatter",
    "configure_logging",
]
