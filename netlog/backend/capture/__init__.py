"""
capture/__init__.py

Public API for the capture sub-package.
"""

from .parser import parse_line
from .process import CaptureProcess, iter_lines, stdin_lines

__all__ = ["CaptureProcess", "parse_line", "iter_lines", "stdin_lines"]
