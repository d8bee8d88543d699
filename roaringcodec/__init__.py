"""Encode and decode sets of 32-bit integers in the Roaring bitmap format, and report their container statistics."""

__version__ = "0.1.0"
__all__ = ["serialization", "statistics"]