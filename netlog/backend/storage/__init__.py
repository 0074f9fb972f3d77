"""storage/__init__.py"""
from .database import Database
from .repository import FlowStore

__all__ = ["Database", "FlowStore"]
