"""
susid_core/errors.py — Exception types raised by SusId.

Both are ValueError subclasses: they signal a bad argument, never a
transient condition, so there is nothing to retry.
"""


class ConfigError(ValueError):
    """Registry construction failed (oversized mapping, out-of-range key,
    bad signature width, unknown digest)."""


class InvalidTypeError(ValueError):
    """generate() was called with a type id that is neither registered
    nor the untyped sentinel (255)."""
