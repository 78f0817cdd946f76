"""Errors raised by the cart store."""
from typing import Optional, List, Dict, Any


class CartStoreError(Exception):
    """Base class for cart store errors."""
    def __init__(
        self,
        message: str,
        suggestions: Optional[List[str]] = None,
        metadata: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        self.suggestions = suggestions or []
        self.metadata = metadata or {}
        super().__init__(message)


class StaleLineError(CartStoreError):
    """The cart changed between reading a snapshot and writing a plan."""

    def __init__(self, message: str, line_ids: Optional[List[int]] = None, **kwargs):
        self.line_ids = line_ids or []
        super().__init__(message, **kwargs)
