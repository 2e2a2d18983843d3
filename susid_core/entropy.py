"""
susid_core/entropy.py — Clock and randomness collaborators.

SusId reads the wall clock and a random source on every generate() call.
Both are injected so tests can pin them; the defaults below are what
production uses.

A random source is any object with:
    token_bytes(n) -> bytes   n random bytes
    randbelow(n)   -> int     uniform int in [0, n)
"""

from __future__ import annotations

import os
import random
import secrets
import time
from typing import Callable

Clock = Callable[[], int]


def system_clock_ms() -> int:
    """Milliseconds since the Unix epoch (wall clock)."""
    return int(time.time() * 1000)


def fixed_clock(timestamp_ms: int) -> Clock:
    """Return a clock that always reads timestamp_ms."""
    return lambda: timestamp_ms


class SystemRandomSource:
    """OS CSPRNG. Stateless, safe to share across threads."""

    def token_bytes(self, n: int) -> bytes:
        return os.urandom(n)

    def randbelow(self, n: int) -> int:
        return secrets.randbelow(n)


class SeededRandomSource:
    """Deterministic source for tests. NOT cryptographically secure."""

    def __init__(self, seed: int = 0) -> None:
        self._rng = random.Random(seed)

    def token_bytes(self, n: int) -> bytes:
        return self._rng.randbytes(n)

    def randbelow(self, n: int) -> int:
        return self._rng.randrange(n)
