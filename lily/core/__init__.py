"""
Core components for Lily.

This package contains the directive grammar, the task registry, file
buffers, patch parsing and the patcher that orchestrates a run.
"""

__all__ = []
