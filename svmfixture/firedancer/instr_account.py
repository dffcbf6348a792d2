"""Instruction accounts referenced by transaction index."""

from __future__ import annotations

from typing import Iterable

from ..account import InstructionAccount
from ..fs import Hasher
from ..protowire import VARINT, DecodeError, Writer, iter_fields

_U32_MASK = (1 << 32) - 1
_U16_MASK = (1 << 16) - 1


def encode_instruction_account(account: InstructionAccount) -> bytes:
    return (
        Writer()
        .varint_field(1, account.index_in_transaction)
        .bool_field(2, account.is_writable)
        .bool_field(3, account.is_signer)
        .getvalue()
    )


def decode_instruction_account(data: bytes) -> InstructionAccount:
    """Decode an instruction account; the index is narrowed to 16 bits."""
    values = {1: 0, 2: 0, 3: 0}
    for number, wire, value in iter_fields(data):
        if number in values:
            if wire != VARINT:
                raise DecodeError(f"field {number}: expected varint")
            values[number] = value
    return InstructionAccount(
        index_in_transaction=values[1] & _U32_MASK & _U16_MASK,
        is_signer=bool(values[3]),
        is_writable=bool(values[2]),
    )


def hash_instruction_accounts(hasher: Hasher, accounts: Iterable[InstructionAccount]) -> None:
    for account in accounts:
        hasher.hash(account.index_in_transaction.to_bytes(4, "little"))
        hasher.hash(bytes([int(account.is_signer)]))
        hasher.hash(bytes([int(account.is_writable)]))