"""
Utility modules for the tabinfer CLI.
"""

from .console import print_success, print_warning, print_info

__all__ = [
    "print_success",
    "print_warning",
    "print_info",
]
