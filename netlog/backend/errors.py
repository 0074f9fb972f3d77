"""
backend/errors.py

Exception types shared by storage, aggregation and the API layer.

A capture line that does not match the expected shape is not an error:
the parser returns None and the line is skipped.
"""

from __future__ import annotations


class NetlogError(Exception):
    """Base class for all netlog errors."""


class InvalidRequest(NetlogError):
    """A caller-supplied query parameter is missing or malformed."""


class StorageFailure(NetlogError):
    """The flow store could not complete an operation (I/O error, closed handle)."""


class InternalFailure(NetlogError):
    """A query could not be answered in full."""
