"""Interfaces of the external token and entropy collaborators."""

from __future__ import annotations

import secrets
from typing import Protocol, runtime_checkable


@runtime_checkable
class TokenLedger(Protocol):
    """Fungible token held in custody by a lottery.

    ``transfer`` always moves funds out of the custody account the ledger is
    bound to.
    """

    def balance_of(self, subject: str) -> int: ...

    def transfer(self, to: str, amount: int) -> None: ...


@runtime_checkable
class EntropySource(Protocol):
    """Supplier of the seed a draw is derived from."""

    def current_seed(self) -> bytes: ...


class SystemEntropySource:
    """Seeds drawn from the operating system CSPRNG."""

    def __init__(self, nbytes: int = 32) -> None:
        if nbytes <= 0:
            raise ValueError("nbytes must be positive")
        self.nbytes = nbytes

    def current_seed(self) -> bytes:
        return secrets.token_bytes(self.nbytes)


class FixedEntropySource:
    """Replays a known seed, e.g. the ``seed_hex`` recorded on a past draw."""

    def __init__(self, seed: bytes) -> None:
        if not isinstance(seed, (bytes, bytearray)):
            raise TypeError("seed must be bytes")
        self.seed = bytes(seed)

    @classmethod
    def from_hex(cls, seed_hex: str) -> "FixedEntropySource":
        return cls(bytes.fromhex(seed_hex))

    def current_seed(self) -> bytes:
        return self.seed


__all__ = [
    "TokenLedger",
    "EntropySource",
    "SystemEntropySource",
    "FixedEntropySource",
]
