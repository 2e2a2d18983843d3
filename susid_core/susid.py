"""
susid_core/susid.py — SusId generation and decoding

Generate: clock + random + type + secret → prefix → sign → truncate
          → pack → uuid.UUID
Decode:   uuid.UUID → unpack → recompute signature → DecodedInfo

Decoding never raises for a 128-bit value. Foreign, corrupted, or plain
random UUIDs are expected input and come back with valid=False.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Any, Mapping, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from .crypto import Signer
from .entropy import Clock, SystemRandomSource, system_clock_ms
from .errors import ConfigError, InvalidTypeError
from .layout import Layout, from_uuid, to_uuid
from .registry import DEFAULT_SIGNATURE_BYTES, UNTYPED, Registry


# ---------------------------------------------------------------------------
# Decode result
# ---------------------------------------------------------------------------

class DecodedInfo(BaseModel):
    """Result of decoding a SusId."""

    model_config = ConfigDict(frozen=True)

    valid: bool = Field(
        ...,
        description="Signature matches and the secret id is registered.",
    )
    timestamp: int = Field(
        ...,
        description="48-bit timestamp, ms since Unix epoch.",
        ge=0,
    )
    signature: bytes = Field(
        ...,
        description="Stored truncated signature bytes.",
    )
    type_id: int = Field(..., ge=0, le=255)
    type_desc: str
    secret_id: int = Field(..., ge=0, le=255)

    @property
    def created_at(self) -> datetime:
        """Embedded timestamp as an aware UTC datetime."""
        return datetime.fromtimestamp(self.timestamp / 1000, tz=timezone.utc)


# ---------------------------------------------------------------------------
# Facade
# ---------------------------------------------------------------------------

class SusId:
    """Generates and decodes signed, typed, UUID-compatible identifiers.

    Stateless apart from the immutable Registry; safe to share across
    threads as long as the random source is (the default one is).

    Args:
        registry:      secrets, types and signature width.
        clock:         returns wall-clock ms. Defaults to system time.
        random_source: provides token_bytes(n) and randbelow(n).
                       Defaults to the OS CSPRNG.
    """

    def __init__(
        self,
        registry: Registry,
        *,
        clock: Optional[Clock] = None,
        random_source: Optional[Any] = None,
    ) -> None:
        self._registry = registry
        self._layout = Layout.for_signature_bytes(registry.signature_bytes)
        self._signer = Signer(registry)
        self._clock = clock or system_clock_ms
        self._random = random_source or SystemRandomSource()

    @classmethod
    def create(
        cls,
        secrets: Mapping[int, Union[str, bytes]],
        types: Mapping[int, str],
        signature_bytes: int = DEFAULT_SIGNATURE_BYTES,
        **kwargs: Any,
    ) -> "SusId":
        """Build a Registry from plain mappings and wrap it.

        Raises ConfigError on invalid mappings or signature width.
        """
        registry = Registry(
            secrets=dict(secrets),
            types=dict(types),
            signature_bytes=signature_bytes,
        )
        return cls(registry, **kwargs)

    @property
    def registry(self) -> Registry:
        return self._registry

    @property
    def layout(self) -> Layout:
        return self._layout

    # ------------------------------------------------------------------
    # Generate
    # ------------------------------------------------------------------

    def generate(self, type_id: int = UNTYPED) -> uuid.UUID:
        """Mint a new identifier of the given type (default: untyped).

        Raises:
            InvalidTypeError: type_id is neither 255 nor registered.
            ConfigError: the registry holds no secrets.
        """
        if type_id != UNTYPED and not self._registry.is_registered_type(type_id):
            raise InvalidTypeError(f"Unknown type: {type_id}")

        secret_ids = self._registry.secret_ids
        if not secret_ids:
            raise ConfigError("Registry has no secrets; cannot sign")

        now = self._clock()
        rnd = self._random.token_bytes(self._layout.random_bytes)
        secret_id = secret_ids[self._random.randbelow(len(secret_ids))]

        prefix = self._layout.pack_prefix(now, rnd, type_id, secret_id)
        signature = self._signer.signature(prefix, secret_id)
        return to_uuid(prefix + signature)

    # ------------------------------------------------------------------
    # Decode
    # ------------------------------------------------------------------

    def decode(self, identifier: Union[uuid.UUID, str]) -> DecodedInfo:
        """Unpack an identifier and check its signature.

        A str is parsed with uuid.UUID (ValueError if malformed). Any
        actual 128-bit value decodes; check .valid for the verdict.
        """
        if not isinstance(identifier, uuid.UUID):
            identifier = uuid.UUID(identifier)

        fields = self._layout.unpack(from_uuid(identifier))

        valid = self._signer.verify(
            fields.prefix, fields.secret_id, fields.signature
        )

        return DecodedInfo(
            valid=valid,
            timestamp=fields.timestamp,
            signature=fields.signature,
            type_id=fields.type_id,
            type_desc=self._registry.type_description(fields.type_id),
            secret_id=fields.secret_id,
        )

    def is_valid(self, identifier: Union[uuid.UUID, str]) -> bool:
        """Shorthand for decode(identifier).valid."""
        return self.decode(identifier).valid
