"""
SusId Core — signed, typed, UUID-compatible identifiers.

A SusId is 16 bytes: 48-bit timestamp, random bits, a type id, a secret
id, and a truncated keyed digest. It stores and travels like any other
UUID, but a holder of the same Registry can tell locally whether it was
minted by this issuer with this type.
"""

__version__ = "0.1.0"

from .errors import ConfigError, InvalidTypeError
from .registry import (
    Registry,
    load_registry,
    MAX_SECRETS,
    MAX_TYPES,
    UNTYPED,
    DEFAULT_SIGNATURE_BYTES,
)
from .layout import (
    Layout,
    Segment,
    UnpackedId,
    ID_BYTES,
    to_uuid,
    from_uuid,
    to_halves,
    from_halves,
)
from .crypto import Signer, keyed_digest, truncate, DIGEST_ALGORITHMS
from .entropy import (
    SystemRandomSource,
    SeededRandomSource,
    system_clock_ms,
    fixed_clock,
)
from .susid import SusId, DecodedInfo
