"""Error kinds raised by the mesh builders and the adapter."""
from __future__ import annotations


class LiquidGlassError(Exception):
    """Base error for the package."""


class InvalidParameters(LiquidGlassError, ValueError):
    """Malformed geometry parameters (non-positive bounds, bad counts, non-finite input)."""


class Unavailable(LiquidGlassError):
    """The host cannot consume mesh transforms. Raised by the adapter only."""


__all__ = ["LiquidGlassError", "InvalidParameters", "Unavailable"]
