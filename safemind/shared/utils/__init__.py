"""Shared utilities for the SafeMind analysis engine."""
from .pii import hash_text_for_audit

__all__ = ["hash_text_for_audit"]
