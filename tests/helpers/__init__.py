"""Test helper utilities for Job Hunter tests."""

from .builders import make_config, make_posting, make_record
from .static_adapter import StaticAdapter

__all__ = ["StaticAdapter", "make_config", "make_posting", "make_record"]
