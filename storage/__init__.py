"""Persistence backends."""

from .brief_store import BriefStore

__all__ = ["BriefStore"]
