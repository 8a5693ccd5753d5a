"""
Key set providers for verifying Google identity tokens.

This package contains implementations of the KeySetFetcher protocol.
"""

from .google import KeyCache

__all__ = ["KeyCache"]
