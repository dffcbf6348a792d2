"""Instruction context with slot and epoch contexts."""

from __future__ import annotations

import base64
from dataclasses import dataclass, field
from typing import Any, Iterable

from ..account import InstructionAccount, Pubkey
from ..feature_set import (
    FeatureSet,
    decode_feature_ids,
    encode_feature_ids,
    hash_feature_ids,
)
from ..fs import Hasher
from ..protowire import (
    FIXED64,
    LENGTH,
    VARINT,
    DecodeError,
    Writer,
    encode_varint,
    iter_fields,
)
from .account import (
    AccountEntry,
    account_from_dict,
    account_to_dict,
    decode_account,
    encode_account,
    hash_accounts,
)
from .instr_account import (
    decode_instruction_account,
    encode_instruction_account,
    hash_instruction_accounts,
)

_SLOT_KEY = encode_varint((1 << 3) | FIXED64)


@dataclass
class SlotContext:
    """The slot to use for the simulation."""

    slot: int = 0


@dataclass
class EpochContext:
    """The feature set to use for the simulation."""

    feature_set: FeatureSet = field(default_factory=FeatureSet)


def _encode_slot_context(context: SlotContext) -> bytes:
    if not context.slot:
        return b""
    return _SLOT_KEY + context.slot.to_bytes(8, "little")


def _decode_slot_context(data: bytes) -> SlotContext:
    slot = 0
    for number, wire, value in iter_fields(data):
        if number != 1:
            continue
        if wire == FIXED64:
            slot = int.from_bytes(value, "little")
        elif wire == VARINT:
            slot = value
        else:
            raise DecodeError("slot: expected an integer")
    return SlotContext(slot)


def _decode_epoch_context(data: bytes, known_features: Iterable[Pubkey]) -> EpochContext:
    ids: list[int] = []
    for number, wire, value in iter_fields(data):
        if number != 1:
            continue
        if wire != LENGTH:
            raise DecodeError("features: expected message")
        ids = decode_feature_ids(value)
    return EpochContext(FeatureSet.from_ids(ids, known_features))


def _program_key(raw: bytes) -> Pubkey:
    try:
        return Pubkey.from_bytes(raw)
    except ValueError:
        raise ValueError("Invalid bytes for program ID") from None


@dataclass
class Context:
    """Instruction context fixture."""

    program_id: Pubkey = field(default_factory=Pubkey)
    accounts: list[AccountEntry] = field(default_factory=list)
    instruction_accounts: list[InstructionAccount] = field(default_factory=list)
    instruction_data: bytes = b""
    compute_units_available: int = 0
    slot_context: SlotContext = field(default_factory=SlotContext)
    epoch_context: EpochContext = field(default_factory=EpochContext)

    def encode(self) -> bytes:
        writer = Writer().bytes_field(1, self.program_id.to_bytes())
        for entry in self.accounts:
            writer.message_field(3, encode_account(*entry))
        for account in self.instruction_accounts:
            writer.message_field(4, encode_instruction_account(account))
        writer.bytes_field(5, self.instruction_data)
        writer.varint_field(6, self.compute_units_available)
        writer.message_field(8, _encode_slot_context(self.slot_context))
        features = encode_feature_ids(self.epoch_context.feature_set.to_ids())
        writer.message_field(9, Writer().message_field(1, features).getvalue())
        return writer.getvalue()

    @classmethod
    def decode(cls, data: bytes, known_features: Iterable[Pubkey] = ()) -> "Context":
        """Decode; features are matched against ``known_features``."""
        known = tuple(known_features)
        program_id = b""
        accounts: list[AccountEntry] = []
        instr: list[InstructionAccount] = []
        instruction_data = b""
        cu_avail = 0
        slot_context = SlotContext()
        epoch_context: EpochContext | None = None
        for number, wire, value in iter_fields(data):
            if number == 6:
                if wire != VARINT:
                    raise DecodeError("field 6: expected varint")
                cu_avail = value
                continue
            if number not in (1, 3, 4, 5, 8, 9):
                continue
            if wire != LENGTH:
                raise DecodeError(f"field {number}: expected length-delimited")
            if number == 1:
                program_id = value
            elif number == 3:
                accounts.append(decode_account(value))
            elif number == 4:
                instr.append(decode_instruction_account(value))
            elif number == 5:
                instruction_data = value
            elif number == 8:
                slot_context = _decode_slot_context(value)
            else:
                epoch_context = _decode_epoch_context(value, known)
        if epoch_context is None:
            epoch_context = EpochContext(FeatureSet.from_ids((), known))
        return cls(
            program_id=_program_key(program_id),
            accounts=accounts,
            instruction_accounts=instr,
            instruction_data=bytes(instruction_data),
            compute_units_available=cu_avail,
            slot_context=slot_context,
            epoch_context=epoch_context,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "program_id": self.program_id.to_bytes().hex(),
            "accounts": [account_to_dict(*entry) for entry in self.accounts],
            "instr_accounts": [
                {
                    "index": account.index_in_transaction,
                    "is_writable": account.is_writable,
                    "is_signer": account.is_signer,
                }
                for account in self.instruction_accounts
            ],
            "data": base64.b64encode(self.instruction_data).decode("ascii"),
            "cu_avail": self.compute_units_available,
            "slot_context": {"slot": self.slot_context.slot},
            "epoch_context": {
                "features": {"features": self.epoch_context.feature_set.to_ids()}
            },
        }

    @classmethod
    def from_dict(
        cls, data: dict[str, Any], known_features: Iterable[Pubkey] = ()
    ) -> "Context":
        slot = data.get("slot_context") or {}
        epoch = data.get("epoch_context") or {}
        features = epoch.get("features") or {}
        ids = [int(i) for i in features.get("features", [])]
        return cls(
            program_id=_program_key(bytes.fromhex(data.get("program_id", ""))),
            accounts=[account_from_dict(entry) for entry in data.get("accounts", [])],
            instruction_accounts=[
                InstructionAccount(
                    index_in_transaction=int(entry.get("index", 0)) & 0xFFFF,
                    is_signer=bool(entry.get("is_signer", False)),
                    is_writable=bool(entry.get("is_writable", False)),
                )
                for entry in data.get("instr_accounts", [])
            ],
            instruction_data=base64.b64decode(data.get("data", "")),
            compute_units_available=int(data.get("cu_avail", 0)),
            slot_context=SlotContext(int(slot.get("slot", 0))),
            epoch_context=EpochContext(FeatureSet.from_ids(ids, known_features)),
        )


def hash_context(hasher: Hasher, context: Context) -> None:
    """Feed the context, in message order, into ``hasher``."""
    hasher.hash(context.program_id.to_bytes())
    hash_accounts(hasher, context.accounts)
    hash_instruction_accounts(hasher, context.instruction_accounts)
    hasher.hash(context.instruction_data)
    hasher.hash(context.compute_units_available.to_bytes(8, "little"))
    hasher.hash(context.slot_context.slot.to_bytes(8, "little"))
    hash_feature_ids(hasher, context.epoch_context.feature_set.to_ids())