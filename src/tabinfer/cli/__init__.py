"""
Main CLI package for tabinfer.
"""

from .commands import create_cli

__all__ = ["create_cli"]
