"""Post-invocation effects of an instruction."""

from __future__ import annotations

import base64
from dataclasses import dataclass, field
from typing import Any

from ..fs import Hasher
from ..protowire import LENGTH, VARINT, DecodeError, Writer, iter_fields, to_signed
from .account import (
    AccountEntry,
    account_from_dict,
    account_to_dict,
    decode_account,
    encode_account,
    hash_accounts,
)

_U32_MASK = (1 << 32) - 1


@dataclass
class Effects:
    """The effects of a single instruction."""

    # Zero is success; errors are non-zero.
    program_result: int = 0
    program_custom_code: int = 0
    modified_accounts: list[AccountEntry] = field(default_factory=list)
    compute_units_available: int = 0
    return_data: bytes = b""

    def encode(self) -> bytes:
        writer = (
            Writer()
            .int_field(1, self.program_result)
            .varint_field(2, self.program_custom_code)
        )
        for entry in self.modified_accounts:
            writer.message_field(3, encode_account(*entry))
        writer.varint_field(4, self.compute_units_available)
        writer.bytes_field(5, self.return_data)
        return writer.getvalue()

    @classmethod
    def decode(cls, data: bytes) -> "Effects":
        values: dict[str, Any] = {}
        accounts: list[AccountEntry] = []
        for number, wire, value in iter_fields(data):
            if number in (1, 2, 4):
                if wire != VARINT:
                    raise DecodeError(f"field {number}: expected varint")
                if number == 1:
                    values["program_result"] = to_signed(value, 32)
                elif number == 2:
                    values["program_custom_code"] = value & _U32_MASK
                else:
                    values["compute_units_available"] = value
            elif number in (3, 5):
                if wire != LENGTH:
                    raise DecodeError(f"field {number}: expected length-delimited")
                if number == 3:
                    accounts.append(decode_account(value))
                else:
                    values["return_data"] = value
        return cls(modified_accounts=accounts, **values)

    def to_dict(self) -> dict[str, Any]:
        return {
            "result": self.program_result,
            "custom_err": self.program_custom_code,
            "modified_accounts": [account_to_dict(*entry) for entry in self.modified_accounts],
            "cu_avail": self.compute_units_available,
            "return_data": base64.b64encode(self.return_data).decode("ascii"),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Effects":
        return cls(
            program_result=int(data.get("result", 0)),
            program_custom_code=int(data.get("custom_err", 0)),
            modified_accounts=[
                account_from_dict(entry) for entry in data.get("modified_accounts", [])
            ],
            compute_units_available=int(data.get("cu_avail", 0)),
            return_data=base64.b64decode(data.get("return_data", "")),
        )


def hash_effects(hasher: Hasher, effects: Effects) -> None:
    """Feed the effects, including return data, into ``hasher``."""
    hasher.hash(effects.program_result.to_bytes(4, "little", signed=True))
    hasher.hash(effects.program_custom_code.to_bytes(4, "little"))
    hash_accounts(hasher, effects.modified_accounts)
    hasher.hash(effects.compute_units_available.to_bytes(8, "little"))
    hasher.hash(effects.return_data)