"""Account state messages: ``(Pubkey, Account)`` pairs."""

from __future__ import annotations

import base64
from typing import Any, Iterable

from ..account import Account, Pubkey
from ..fs import Hasher
from ..protowire import Writer, iter_fields


def encode_account(pubkey: Pubkey, account: Account) -> bytes:
    return (
        Writer()
        .bytes_field(1, pubkey.to_bytes())
        .varint_field(2, account.lamports)
        .bytes_field(3, account.data)
        .bool_field(4, account.executable)
        .varint_field(5, account.rent_epoch)
        .bytes_field(6, account.owner.to_bytes())
        .getvalue()
    )


def decode_account(data: bytes) -> tuple[Pubkey, Account]:
    """Decode an account; raises ValueError if an address is not 32 bytes."""
    fields: dict[int, Any] = {}
    for number, _, value in iter_fields(data):
        fields[number] = value
    pubkey = Pubkey.from_bytes(fields.get(1, b""))
    account = Account(
        lamports=fields.get(2, 0),
        data=fields.get(3, b""),
        executable=bool(fields.get(4, 0)),
        rent_epoch=fields.get(5, 0),
        owner=Pubkey.from_bytes(fields.get(6, b"")),
    )
    return pubkey, account


def account_to_dict(pubkey: Pubkey, account: Account) -> dict[str, Any]:
    return {
        "address": pubkey.to_bytes().hex(),
        "owner": account.owner.to_bytes().hex(),
        "lamports": account.lamports,
        "data": base64.b64encode(account.data).decode("ascii"),
        "executable": account.executable,
        "rent_epoch": account.rent_epoch,
    }


def account_from_dict(data: dict[str, Any]) -> tuple[Pubkey, Account]:
    pubkey = Pubkey.from_bytes(bytes.fromhex(data["address"]))
    account = Account(
        lamports=int(data.get("lamports", 0)),
        data=base64.b64decode(data.get("data", "")),
        owner=Pubkey.from_bytes(bytes.fromhex(data["owner"])),
        executable=bool(data.get("executable", False)),
        rent_epoch=int(data.get("rent_epoch", 0)),
    )
    return pubkey, account


def hash_accounts(hasher: Hasher, accounts: Iterable[tuple[Pubkey, Account]]) -> None:
    for pubkey, account in accounts:
        hasher.hash(pubkey.to_bytes())
        hasher.hash(account.owner.to_bytes())
        hasher.hash(account.lamports.to_bytes(8, "little"))
        hasher.hash(account.data)
        hasher.hash(bytes([int(account.executable)]))
        hasher.hash(account.rent_epoch.to_bytes(8, "little"))