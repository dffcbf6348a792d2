"""Account state with an optional seed address: ``(Pubkey, Account, SeedAddress | None)``."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable, Optional, Tuple

from ..account import Account, Pubkey
from ..fs import Hasher
from ..mollusk.account import account_from_dict as _pair_from_dict
from ..mollusk.account import account_to_dict as _pair_to_dict
from ..mollusk.account import decode_account as _decode_pair
from ..mollusk.account import encode_account as _encode_pair
from ..mollusk.account import hash_accounts as _hash_pairs
from ..protowire import LENGTH, DecodeError, Writer, iter_fields


@dataclass(frozen=True)
class SeedAddress:
    """A seed-derived address: base (32 bytes), seed (<= 32 bytes), owner (32 bytes)."""

    base: bytes = b""
    seed: bytes = b""
    owner: bytes = b""


AccountEntry = Tuple[Pubkey, Account, Optional[SeedAddress]]


def _encode_seed_address(seed_address: SeedAddress) -> bytes:
    return (
        Writer()
        .bytes_field(1, seed_address.base)
        .bytes_field(2, seed_address.seed)
        .bytes_field(3, seed_address.owner)
        .getvalue()
    )


def _decode_seed_address(data: bytes) -> SeedAddress:
    values = {1: b"", 2: b"", 3: b""}
    for number, wire, value in iter_fields(data):
        if number in values:
            if wire != LENGTH:
                raise DecodeError(f"seed address field {number}: expected bytes")
            values[number] = value
    return SeedAddress(base=values[1], seed=values[2], owner=values[3])


def encode_account(
    pubkey: Pubkey, account: Account, seed_address: SeedAddress | None = None
) -> bytes:
    writer = Writer()
    if seed_address is not None:
        writer.message_field(7, _encode_seed_address(seed_address))
    return _encode_pair(pubkey, account) + writer.getvalue()


def decode_account(data: bytes) -> AccountEntry:
    """Decode an account; raises ValueError if an address is not 32 bytes."""
    pubkey, account = _decode_pair(data)
    seed_address: SeedAddress | None = None
    for number, wire, value in iter_fields(data):
        if number == 7:
            if wire != LENGTH:
                raise DecodeError("field 7: expected message")
            seed_address = _decode_seed_address(value)
    return pubkey, account, seed_address


def account_to_dict(
    pubkey: Pubkey, account: Account, seed_address: SeedAddress | None = None
) -> dict[str, Any]:
    result = _pair_to_dict(pubkey, account)
    result["seed_addr"] = (
        None
        if seed_address is None
        else {
            "base": seed_address.base.hex(),
            "seed": seed_address.seed.hex(),
            "owner": seed_address.owner.hex(),
        }
    )
    return result


def account_from_dict(data: dict[str, Any]) -> AccountEntry:
    pubkey, account = _pair_from_dict(data)
    seed = data.get("seed_addr")
    seed_address = (
        None
        if seed is None
        else SeedAddress(
            base=bytes.fromhex(seed.get("base", "")),
            seed=bytes.fromhex(seed.get("seed", "")),
            owner=bytes.fromhex(seed.get("owner", "")),
        )
    )
    return pubkey, account, seed_address


def hash_accounts(hasher: Hasher, accounts: Iterable[AccountEntry]) -> None:
    for pubkey, account, seed_address in accounts:
        _hash_pairs(hasher, [(pubkey, account)])
        if seed_address is not None:
            hasher.hash(seed_address.base)
            hasher.hash(seed_address.seed)
            hasher.hash(seed_address.owner)