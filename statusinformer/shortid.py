"""Short, human-readable identifiers for event record names.

Identifiers are a random prefix followed by an encoded per-process counter.
The counter makes every value unique within one process; the prefix, drawn
from an entropy-seeded generator, keeps restarts from replaying the same
sequence. Cross-process uniqueness is not guaranteed: a collision surfaces
as a write conflict on the event store.
"""

from __future__ import annotations

import os
import random
import threading

DEFAULT_ALPHABET = "0123456789abcdefghijklmnopqrstuvwxyz"

_MIN_ALPHABET = 16
_LEGAL_CHARS = frozenset("0123456789abcdefghijklmnopqrstuvwxyz")


class ShortIdError(Exception):
    """Raised when the generator is misconfigured or cannot produce an id."""


class ShortIdGenerator:
    """Produces identifiers from a fixed alphabet.

    Args:
        alphabet: Characters to draw from. Must contain at least 16 unique
                  lowercase alphanumerics so ids are legal name segments.
        length:   Length of the random prefix.
        seed:     Fixed seed, for reproducible tests. ``None`` seeds from
                  ``os.urandom``.
    """

    def __init__(
        self,
        alphabet: str = DEFAULT_ALPHABET,
        length: int = 8,
        seed: int | None = None,
    ) -> None:
        if len(set(alphabet)) != len(alphabet):
            raise ShortIdError("alphabet contains duplicate characters")
        if len(alphabet) < _MIN_ALPHABET:
            raise ShortIdError(f"alphabet must contain at least {_MIN_ALPHABET} characters")
        if not set(alphabet) <= _LEGAL_CHARS:
            raise ShortIdError("alphabet may only contain lowercase alphanumerics")
        if length < 1:
            raise ShortIdError("length must be positive")

        self._alphabet = alphabet
        self._length = length
        if seed is None:
            seed = int.from_bytes(os.urandom(8), "big")
        self._rng = random.Random(seed)
        self._counter = 0
        self._lock = threading.Lock()

    def generate(self) -> str:
        """Return a new identifier."""
        with self._lock:
            counter = self._counter
            self._counter += 1
            prefix = "".join(self._rng.choice(self._alphabet) for _ in range(self._length))
        return prefix + self._encode(counter)

    def _encode(self, value: int) -> str:
        base = len(self._alphabet)
        digits: list[str] = []
        while True:
            value, rem = divmod(value, base)
            digits.append(self._alphabet[rem])
            if value == 0:
                break
        return "".join(reversed(digits))
