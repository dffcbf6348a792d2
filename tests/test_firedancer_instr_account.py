import pytest

from svmfixture.account import InstructionAccount
from svmfixture.firedancer.instr_account import (
    decode_instruction_account,
    encode_instruction_account,
    hash_instruction_accounts,
)
from svmfixture.fs import Hasher
from svmfixture.protowire import DecodeError, Writer


def _digest(accounts):
    hasher = Hasher()
    hash_instruction_accounts(hasher, accounts)
    return hasher.result()


@pytest.mark.parametrize("signer", [False, True])
@pytest.mark.parametrize("writable", [False, True])
def test_round_trip(signer, writable):
    account = InstructionAccount(9, is_signer=signer, is_writable=writable)
    assert decode_instruction_account(encode_instruction_account(account)) == account


def test_wire_layout_writable_before_signer():
    account = InstructionAccount(3, is_signer=True, is_writable=False)
    assert encode_instruction_account(account) == bytes([0x08, 3, 0x18, 1])


def test_index_narrowed_to_sixteen_bits():
    blob = Writer().varint_field(1, 0x10005).getvalue()
    assert decode_instruction_account(blob).index_in_transaction == 5


def test_wrong_wire_type_rejected():
    blob = Writer().bytes_field(2, b"x").getvalue()
    with pytest.raises(DecodeError):
        decode_instruction_account(blob)


def test_hash_is_order_sensitive_and_stable():
    a = InstructionAccount(0, is_signer=True, is_writable=False)
    b = InstructionAccount(1, is_signer=False, is_writable=True)
    assert _digest([a, b]) == _digest([a, b])
    assert _digest([a, b]) != _digest([b, a])