"""All test environment inputs for an instruction."""

from __future__ import annotations

import base64
from dataclasses import dataclass, field
from typing import Any, Iterable

from ..account import Account, AccountMeta, Pubkey
from ..feature_set import (
    FeatureSet,
    decode_feature_ids,
    encode_feature_ids,
    hash_feature_ids,
)
from ..fs import Hasher
from ..protowire import LENGTH, VARINT, DecodeError, Writer, iter_fields
from .account import (
    account_from_dict,
    account_to_dict,
    decode_account,
    encode_account,
    hash_accounts,
)
from .compute_budget import ComputeBudget, hash_compute_budget
from .sysvars import Sysvars, hash_sysvars

_B58_ALPHABET = "123456789ABCDEFGHJKLMNPQRSTUVWXYZabcdefghijkmnopqrstuvwxyz"
_U32_MASK = (1 << 32) - 1


def _pubkey_from_base58(text: str) -> Pubkey:
    number = 0
    for char in text:
        number = number * 58 + _B58_ALPHABET.index(char)
    return Pubkey(number.to_bytes(32, "big"))


# SIMD-0268: raises the CPI nesting limit, which changes the default budget.
RAISE_CPI_NESTING_LIMIT_TO_8 = _pubkey_from_base58(
    "6TkHkRmP7JZy1fdM6fg5uXn76wChQBWGokHBJzrLB3mj"
)


@dataclass
class Context:
    """Instruction context fixture."""

    compute_budget: ComputeBudget = field(
        default_factory=lambda: ComputeBudget.new_with_defaults(False)
    )
    feature_set: FeatureSet = field(default_factory=FeatureSet)
    sysvars: Sysvars = field(default_factory=Sysvars)
    program_id: Pubkey = field(default_factory=Pubkey)
    instruction_accounts: list[AccountMeta] = field(default_factory=list)
    instruction_data: bytes = b""
    accounts: list[tuple[Pubkey, Account]] = field(default_factory=list)

    def encode(self) -> bytes:
        writer = (
            Writer()
            .message_field(1, self.compute_budget.encode())
            .message_field(2, encode_feature_ids(self.feature_set.to_ids()))
            .message_field(3, self.sysvars.encode())
            .bytes_field(4, self.program_id.to_bytes())
        )
        for index, meta in _indexed_instruction_accounts(self):
            entry = (
                Writer()
                .varint_field(1, index)
                .bool_field(2, meta.is_signer)
                .bool_field(3, meta.is_writable)
                .getvalue()
            )
            writer.message_field(5, entry)
        writer.bytes_field(6, self.instruction_data)
        for pubkey, account in self.accounts:
            writer.message_field(7, encode_account(pubkey, account))
        return writer.getvalue()

    @classmethod
    def decode(cls, data: bytes, known_features: Iterable[Pubkey] = ()) -> "Context":
        """Decode; features are matched against ``known_features``."""
        budget: ComputeBudget | None = None
        feature_ids: list[int] | None = None
        sysvars: Sysvars | None = None
        program_id = b""
        instr: list[tuple[int, bool, bool]] = []
        instruction_data = b""
        accounts: list[tuple[Pubkey, Account]] = []
        for number, wire, value in iter_fields(data):
            if not 1 <= number <= 7:
                continue
            if wire != LENGTH:
                raise DecodeError(f"field {number}: expected length-delimited")
            if number == 1:
                budget = ComputeBudget.decode(value)
            elif number == 2:
                feature_ids = decode_feature_ids(value)
            elif number == 3:
                sysvars = Sysvars.decode(value)
            elif number == 4:
                program_id = value
            elif number == 5:
                instr.append(_decode_instruction_account(value))
            elif number == 6:
                instruction_data = value
            else:
                accounts.append(decode_account(value))
        return cls._build(
            budget, feature_ids, sysvars, program_id, instr, instruction_data, accounts,
            known_features,
        )

    @classmethod
    def _build(
        cls,
        budget: ComputeBudget | None,
        feature_ids: list[int] | None,
        sysvars: Sysvars | None,
        program_id: bytes,
        instr: list[tuple[int, bool, bool]],
        instruction_data: bytes,
        accounts: list[tuple[Pubkey, Account]],
        known_features: Iterable[Pubkey],
    ) -> "Context":
        feature_set = FeatureSet.from_ids(feature_ids or (), known_features)
        if budget is None:
            budget = ComputeBudget.new_with_defaults(
                feature_set.is_active(RAISE_CPI_NESTING_LIMIT_TO_8)
            )
        try:
            program_key = Pubkey.from_bytes(program_id)
        except ValueError:
            raise ValueError("Invalid bytes for program ID") from None
        metas = []
        for index, is_signer, is_writable in instr:
            if index >= len(accounts):
                raise ValueError("Invalid index for instruction account")
            metas.append(AccountMeta(accounts[index][0], is_signer, is_writable))
        return cls(
            compute_budget=budget,
            feature_set=feature_set,
            sysvars=sysvars if sysvars is not None else Sysvars(),
            program_id=program_key,
            instruction_accounts=metas,
            instruction_data=bytes(instruction_data),
            accounts=accounts,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "compute_budget": self.compute_budget.to_dict(),
            "feature_set": {"features": self.feature_set.to_ids()},
            "sysvars": self.sysvars.to_dict(),
            "program_id": self.program_id.to_bytes().hex(),
            "instr_accounts": [
                {"index": index, "is_signer": meta.is_signer, "is_writable": meta.is_writable}
                for index, meta in _indexed_instruction_accounts(self)
            ],
            "data": base64.b64encode(self.instruction_data).decode("ascii"),
            "accounts": [account_to_dict(pubkey, account) for pubkey, account in self.accounts],
        }

    @classmethod
    def from_dict(
        cls, data: dict[str, Any], known_features: Iterable[Pubkey] = ()
    ) -> "Context":
        budget_data = data.get("compute_budget")
        features = data.get("feature_set")
        sysvars_data = data.get("sysvars")
        return cls._build(
            ComputeBudget.from_dict(budget_data) if budget_data is not None else None,
            [int(i) for i in features.get("features", [])] if features is not None else None,
            Sysvars.from_dict(sysvars_data) if sysvars_data is not None else None,
            bytes.fromhex(data.get("program_id", "")),
            [
                (
                    int(entry.get("index", 0)),
                    bool(entry.get("is_signer", False)),
                    bool(entry.get("is_writable", False)),
                )
                for entry in data.get("instr_accounts", [])
            ],
            base64.b64decode(data.get("data", "")),
            [account_from_dict(entry) for entry in data.get("accounts", [])],
            known_features,
        )


def _decode_instruction_account(data: bytes) -> tuple[int, bool, bool]:
    values = {1: 0, 2: 0, 3: 0}
    for number, wire, value in iter_fields(data):
        if number in values:
            if wire != VARINT:
                raise DecodeError(f"field {number}: expected varint")
            values[number] = value
    return values[1] & _U32_MASK, bool(values[2]), bool(values[3])


def _indexed_instruction_accounts(context: Context) -> list[tuple[int, AccountMeta]]:
    keys = [pubkey for pubkey, _ in context.accounts]
    indexed = []
    for meta in context.instruction_accounts:
        try:
            index = keys.index(meta.pubkey)
        except ValueError:
            raise ValueError(
                f"Instruction account is not among the accounts: {meta.pubkey}"
            ) from None
        indexed.append((index, meta))
    return indexed


def hash_context(hasher: Hasher, context: Context) -> None:
    """Feed the context, in message order, into ``hasher``."""
    hash_compute_budget(hasher, context.compute_budget)
    hash_feature_ids(hasher, context.feature_set.to_ids())
    hash_sysvars(hasher, context.sysvars)
    hasher.hash(context.program_id.to_bytes())
    for index, meta in _indexed_instruction_accounts(context):
        hasher.hash(index.to_bytes(4, "little"))
        hasher.hash(bytes([int(meta.is_signer)]))
        hasher.hash(bytes([int(meta.is_writable)]))
    hasher.hash(context.instruction_data)
    hash_accounts(hasher, context.accounts)