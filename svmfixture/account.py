"""Addresses, accounts and instruction account references."""

from __future__ import annotations

import itertools
from dataclasses import dataclass, field

from .fs import b58encode

_unique_counter = itertools.count(1)


@dataclass(frozen=True, order=True)
class Pubkey:
    """A 32-byte address."""

    value: bytes = bytes(32)

    def __post_init__(self) -> None:
        if len(self.value) != 32:
            raise ValueError("Invalid bytes for pubkey")

    @classmethod
    def new_unique(cls) -> "Pubkey":
        """Return a key not returned before in this process."""
        return cls(next(_unique_counter).to_bytes(8, "big") + bytes(24))

    @classmethod
    def from_bytes(cls, data: bytes) -> "Pubkey":
        return cls(bytes(data))

    def to_bytes(self) -> bytes:
        return self.value

    def __str__(self) -> str:
        return b58encode(self.value)


@dataclass
class Account:
    """Account state."""

    lamports: int = 0
    data: bytes = b""
    owner: Pubkey = field(default_factory=Pubkey)
    executable: bool = False
    rent_epoch: int = 0

    @classmethod
    def new(cls, lamports: int, space: int, owner: Pubkey) -> "Account":
        return cls(lamports=lamports, data=bytes(space), owner=owner)


@dataclass(frozen=True)
class AccountMeta:
    """An account referenced by address in an instruction."""

    pubkey: Pubkey
    is_signer: bool = False
    is_writable: bool = False


@dataclass(frozen=True)
class InstructionAccount:
    """An account referenced by transaction index in an instruction."""

    index_in_transaction: int
    is_signer: bool = False
    is_writable: bool = False