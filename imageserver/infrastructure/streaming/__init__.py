"""Streaming infrastructure."""

from .conduit import ByteConduit, ConduitClosedError

__all__ = ["ByteConduit", "ConduitClosedError"]
