"""
susid_core/registry.py — Secret and type registry

The Registry is the whole configuration of a SusId issuer: which secrets
may sign identifiers, which type ids exist, and how many of the 8
non-timestamp, non-header bytes go to the signature instead of randomness.

It is validated eagerly and frozen. Rotating a secret value invalidates
every identifier previously signed with it; nothing here prevents that,
it is an operational contract.
"""

# NOTE: `from __future__ import annotations` is omitted so Pydantic can
# resolve field annotations at class creation time.

import json
import logging
from pathlib import Path
from types import MappingProxyType
from typing import Any, Mapping, Optional, Tuple, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    PrivateAttr,
    StrictInt,
    ValidationError,
    field_validator,
)

from .crypto import DIGEST_ALGORITHMS, DEFAULT_DIGEST
from .errors import ConfigError

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

MAX_SECRETS = 256
MAX_TYPES = 255

# Reserved type id for identifiers with no domain type.
UNTYPED = 255
UNTYPED_DESC = "Untyped"
UNKNOWN_DESC = "Unknown"

MIN_SIGNATURE_BYTES = 1
MAX_SIGNATURE_BYTES = 4
DEFAULT_SIGNATURE_BYTES = 2

# Bytes shared between randomness and signature.
RANDOM_AND_SIGNATURE_BYTES = 8


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------

class Registry(BaseModel):
    """Immutable secret-id → secret and type-id → description tables.

    Any validation failure raises ConfigError; no partially built
    registry is ever returned.

    Args:
        secrets:        secret id (0–255) → secret material. str values
                        are encoded as UTF-8.
        types:          type id (0–254) → human-readable description.
        signature_bytes: 1–4. Each signature byte costs one random byte.
        digest:         hash primitive used for signing (default sha256).
    """

    model_config = ConfigDict(frozen=True)

    secrets: Mapping[StrictInt, bytes] = Field(
        ...,
        description="Secret id (0-255) to secret material.",
    )
    types: Mapping[StrictInt, str] = Field(
        ...,
        description="Type id (0-254) to description. 255 is reserved.",
    )
    signature_bytes: StrictInt = Field(
        default=DEFAULT_SIGNATURE_BYTES,
        description="Truncated signature width in bytes (1-4).",
    )
    digest: str = Field(
        default=DEFAULT_DIGEST,
        description="Name of the hash primitive used for signing.",
    )

    _secret_ids: Tuple[int, ...] = PrivateAttr(default=())

    def __init__(self, **data) -> None:
        try:
            super().__init__(**data)
        except ValidationError as exc:
            raise ConfigError(f"Invalid SusId registry: {exc}") from exc

    @field_validator("secrets", mode="before")
    @classmethod
    def encode_str_secrets(cls, v):
        if isinstance(v, Mapping):
            return {
                k: s.encode("utf-8") if isinstance(s, str) else s
                for k, s in v.items()
            }
        return v

    @field_validator("secrets")
    @classmethod
    def validate_secrets(cls, v: Mapping[int, bytes]) -> Mapping[int, bytes]:
        if len(v) > MAX_SECRETS:
            raise ValueError(
                f"Too many secrets: {len(v)} (max {MAX_SECRETS})"
            )
        for secret_id in v:
            if not 0 <= secret_id < MAX_SECRETS:
                raise ValueError(f"Secret id out of range 0-255: {secret_id}")
        return MappingProxyType(dict(v))

    @field_validator("types")
    @classmethod
    def validate_types(cls, v: Mapping[int, str]) -> Mapping[int, str]:
        if len(v) > MAX_TYPES:
            raise ValueError(f"Too many types: {len(v)} (max {MAX_TYPES})")
        for type_id in v:
            if not 0 <= type_id < MAX_TYPES:
                raise ValueError(f"Type id out of range 0-254: {type_id}")
        return MappingProxyType(dict(v))

    @field_validator("signature_bytes")
    @classmethod
    def validate_signature_bytes(cls, v: int) -> int:
        if not MIN_SIGNATURE_BYTES <= v <= MAX_SIGNATURE_BYTES:
            raise ValueError(f"Signature length must be 1-4, got {v}")
        return v

    @field_validator("digest")
    @classmethod
    def validate_digest(cls, v: str) -> str:
        if v not in DIGEST_ALGORITHMS:
            raise ValueError(
                f"Unknown digest {v!r}; expected one of "
                f"{sorted(DIGEST_ALGORITHMS)}"
            )
        return v

    def model_post_init(self, __context: Any) -> None:
        self._secret_ids = tuple(sorted(self.secrets))
        logger.debug(
            "SusId registry built: %d secrets, %d types, "
            "signature_bytes=%d, digest=%s",
            len(self.secrets), len(self.types),
            self.signature_bytes, self.digest,
        )

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    @property
    def random_bytes(self) -> int:
        return RANDOM_AND_SIGNATURE_BYTES - self.signature_bytes

    @property
    def secret_ids(self) -> Tuple[int, ...]:
        """Registered secret ids, ascending."""
        return self._secret_ids

    def has_secret(self, secret_id: int) -> bool:
        return secret_id in self.secrets

    def secret(self, secret_id: int) -> bytes:
        """Secret material for secret_id. KeyError if unregistered."""
        return self.secrets[secret_id]

    def is_registered_type(self, type_id: int) -> bool:
        return type_id in self.types

    def type_description(self, type_id: int) -> str:
        """Description for type_id: "Untyped" for 255, "Unknown" if
        unregistered."""
        if type_id == UNTYPED:
            return UNTYPED_DESC
        return self.types.get(type_id, UNKNOWN_DESC)


# ---------------------------------------------------------------------------
# JSON loading
# ---------------------------------------------------------------------------

def load_registry(
    path: Union[str, Path],
    *,
    signature_bytes: Optional[int] = None,
) -> Registry:
    """Build a Registry from a JSON file.

    Expected shape (JSON object keys are parsed as decimal ints):

        {
          "secrets": {"0": "alpha", "1": "beta"},
          "types": {"10": "USER"},
          "signature_bytes": 2,
          "digest": "sha256"
        }

    signature_bytes, when given, overrides the file. File and JSON errors
    propagate unchanged; invalid content raises ConfigError.
    """
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)
    if not isinstance(data, dict):
        raise ConfigError(
            f"Registry file {path} must contain a JSON object, "
            f"got {type(data).__name__}"
        )
    for table in ("secrets", "types"):
        if isinstance(data.get(table), dict):
            data[table] = _int_keys(table, data[table])
    if signature_bytes is not None:
        data["signature_bytes"] = signature_bytes
    return Registry(**data)


def _int_keys(table: str, entries: dict) -> dict:
    """JSON object keys are always strings; ids are ints."""
    converted = {}
    for key, value in entries.items():
        try:
            converted[int(key)] = value
        except ValueError as exc:
            raise ConfigError(
                f"{table} key must be an integer id, got {key!r}"
            ) from exc
    return converted
