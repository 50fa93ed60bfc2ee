"""
MLB API Layer.

This package handles all communication with the MLB stats API and the
image CDN its editorial content points at.
"""

from .client import MlbClient

__all__ = ["MlbClient"]
