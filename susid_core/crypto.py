"""
susid_core/crypto.py — Keyed digest and truncated signatures for SusId.

Uses the Python `cryptography` library for hash primitives. No custom crypto.
- digest(secret ‖ prefix) with a selectable hash (SHA-256 by default)
- truncation to the first 1–4 bytes of the digest
- verification that fails closed on unknown secret ids

A 1–2 byte tag is a sanity filter against foreign identifiers, not a
cryptographic guarantee.

Every call builds a fresh hash context, so nothing here is shared
between threads.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Callable, Dict

from cryptography.hazmat.primitives import hashes

if TYPE_CHECKING:
    from .registry import Registry

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Hash primitives
# ---------------------------------------------------------------------------

DEFAULT_DIGEST = "sha256"

DIGEST_ALGORITHMS: Dict[str, Callable[[], hashes.HashAlgorithm]] = {
    "sha256": hashes.SHA256,
    "sha384": hashes.SHA384,
    "sha512": hashes.SHA512,
    "sha3_256": hashes.SHA3_256,
    "blake2b": lambda: hashes.BLAKE2b(64),
}


def keyed_digest(
    secret: bytes, message: bytes, algorithm: str = DEFAULT_DIGEST
) -> bytes:
    """Hash secret ‖ message and return the full digest."""
    h = hashes.Hash(DIGEST_ALGORITHMS[algorithm]())
    h.update(secret)
    h.update(message)
    return h.finalize()


def truncate(digest: bytes, length: int) -> bytes:
    """First `length` bytes of digest, order preserved."""
    if length > len(digest):
        raise ValueError(
            f"Cannot truncate {len(digest)}-byte digest to {length} bytes"
        )
    return digest[:length]


# ---------------------------------------------------------------------------
# Signing and verification
# ---------------------------------------------------------------------------

class Signer:
    """Signs and checks identifier prefixes against a Registry's secrets."""

    def __init__(self, registry: "Registry") -> None:
        self._registry = registry

    @property
    def signature_bytes(self) -> int:
        return self._registry.signature_bytes

    def sign(self, prefix: bytes, secret_id: int) -> bytes:
        """Full digest of prefix under secret_id.

        The secret must be registered; KeyError otherwise.
        """
        secret = self._registry.secret(secret_id)
        return keyed_digest(secret, prefix, self._registry.digest)

    def signature(self, prefix: bytes, secret_id: int) -> bytes:
        """Truncated signature as stored in the identifier."""
        return truncate(self.sign(prefix, secret_id), self.signature_bytes)

    def verify(self, prefix: bytes, secret_id: int, stored: bytes) -> bool:
        """True if stored matches the recomputed truncated signature.

        Returns False without signing when secret_id is not registered.
        """
        if not self._registry.has_secret(secret_id):
            logger.debug(
                "Rejecting signature: secret id %d not registered", secret_id
            )
            return False
        return self.signature(prefix, secret_id) == stored
