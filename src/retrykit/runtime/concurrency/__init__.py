"""Cancellation primitives for the retry driver.

Key Components:
    - Context: cancel scope with deadlines, parent/child propagation and
      cancellable waits usable from both async and sync code
"""

from __future__ import annotations

from .context import Context

__all__ = ["Context"]
