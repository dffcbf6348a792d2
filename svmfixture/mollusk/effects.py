"""Post-invocation effects of an instruction."""

from __future__ import annotations

import base64
from dataclasses import dataclass, field
from typing import Any

from ..account import Account, Pubkey
from ..fs import Hasher
from ..protowire import LENGTH, VARINT, DecodeError, Writer, iter_fields
from .account import (
    account_from_dict,
    account_to_dict,
    decode_account,
    encode_account,
    hash_accounts,
)

_SCALARS = {1: "compute_units_consumed", 2: "execution_time", 3: "program_result"}


@dataclass
class Effects:
    """The effects of a single instruction."""

    compute_units_consumed: int = 0
    execution_time: int = 0
    # Zero is success; errors are non-zero.
    program_result: int = 0
    return_data: bytes = b""
    resulting_accounts: list[tuple[Pubkey, Account]] = field(default_factory=list)

    def encode(self) -> bytes:
        writer = (
            Writer()
            .varint_field(1, self.compute_units_consumed)
            .varint_field(2, self.execution_time)
            .varint_field(3, self.program_result)
            .bytes_field(4, self.return_data)
        )
        for pubkey, account in self.resulting_accounts:
            writer.message_field(5, encode_account(pubkey, account))
        return writer.getvalue()

    @classmethod
    def decode(cls, data: bytes) -> "Effects":
        values: dict[str, Any] = {}
        accounts: list[tuple[Pubkey, Account]] = []
        for number, wire, value in iter_fields(data):
            if number in _SCALARS:
                if wire != VARINT:
                    raise DecodeError(f"field {number}: expected varint")
                values[_SCALARS[number]] = value
            elif number in (4, 5):
                if wire != LENGTH:
                    raise DecodeError(f"field {number}: expected length-delimited")
                if number == 4:
                    values["return_data"] = value
                else:
                    accounts.append(decode_account(value))
        return cls(resulting_accounts=accounts, **values)

    def to_dict(self) -> dict[str, Any]:
        return {
            "compute_units_consumed": self.compute_units_consumed,
            "execution_time": self.execution_time,
            "program_result": self.program_result,
            "return_data": base64.b64encode(self.return_data).decode("ascii"),
            "resulting_accounts": [
                account_to_dict(pubkey, account) for pubkey, account in self.resulting_accounts
            ],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Effects":
        return cls(
            compute_units_consumed=int(data.get("compute_units_consumed", 0)),
            execution_time=int(data.get("execution_time", 0)),
            program_result=int(data.get("program_result", 0)),
            return_data=base64.b64decode(data.get("return_data", "")),
            resulting_accounts=[
                account_from_dict(entry) for entry in data.get("resulting_accounts", [])
            ],
        )


def hash_effects(hasher: Hasher, effects: Effects) -> None:
    """Feed the effects into ``hasher``; return data is not part of the hash."""
    hasher.hash(effects.compute_units_consumed.to_bytes(8, "little"))
    hasher.hash(effects.execution_time.to_bytes(8, "little"))
    hasher.hash(effects.program_result.to_bytes(8, "little"))
    hash_accounts(hasher, effects.resulting_accounts)