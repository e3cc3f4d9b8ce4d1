"""Command-line interface for mados-iwd.

Inspect and drive the iwd backend from a terminal, without a front-end.
"""

from .command import main

__all__ = ['main']
