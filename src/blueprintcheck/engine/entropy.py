"""
Randomness sources for the helper generators.

The resolver never touches a global random state; it receives a
RandomSource at construction. The default source is backed by ``secrets``,
which is safe to call from concurrent validations.
"""

from __future__ import annotations

import random
import secrets
from typing import Protocol, Sequence, TypeVar, runtime_checkable

T = TypeVar("T")


@runtime_checkable
class RandomSource(Protocol):
    """Capability used by every random helper."""

    def token_bytes(self, n: int) -> bytes:
        """Return ``n`` random bytes."""
        ...

    def randbelow(self, n: int) -> int:
        """Return a random int in ``[0, n)``."""
        ...

    def choice(self, seq: Sequence[T]) -> T:
        """Return a random element of a non-empty sequence."""
        ...


class SecretsRandom:
    """Default source backed by the operating system's CSPRNG."""

    def token_bytes(self, n: int) -> bytes:
        return secrets.token_bytes(n)

    def randbelow(self, n: int) -> int:
        return secrets.randbelow(n)

    def choice(self, seq: Sequence[T]) -> T:
        return secrets.choice(seq)

    def __repr__(self) -> str:
        return "<SecretsRandom>"


class SeededRandom:
    """
    Deterministic source for tests and reproducible previews.

    Two instances built with the same seed yield the same sequence.
    Not thread-safe; give each validation its own instance.
    """

    def __init__(self, seed: int | str | None = 0) -> None:
        self.seed = seed
        self._rng = random.Random(seed)

    def token_bytes(self, n: int) -> bytes:
        return self._rng.randbytes(n)

    def randbelow(self, n: int) -> int:
        return self._rng.randrange(n)

    def choice(self, seq: Sequence[T]) -> T:
        return self._rng.choice(seq)

    def __repr__(self) -> str:
        return f"<SeededRandom seed={self.seed!r}>"
