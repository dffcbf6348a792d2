import pytest

from svmfixture.account import Account, Pubkey
from svmfixture.fs import Hasher
from svmfixture.mollusk.effects import Effects, hash_effects
from svmfixture.protowire import DecodeError, Writer


def _sample():
    return Effects(
        compute_units_consumed=150,
        execution_time=7,
        program_result=3,
        return_data=b"ret",
        resulting_accounts=[
            (Pubkey.new_unique(), Account.new(42, 8, Pubkey())),
            (Pubkey.new_unique(), Account(lamports=5, data=b"abc", executable=True)),
        ],
    )


def _digest(effects):
    hasher = Hasher()
    hash_effects(hasher, effects)
    return hasher.result()


def test_default_encodes_to_nothing():
    assert Effects().encode() == b""
    assert Effects.decode(b"") == Effects()


def test_program_result_wire_bytes():
    assert Effects(program_result=1).encode() == b"\x18\x01"


def test_encode_decode_round_trip():
    effects = _sample()
    assert Effects.decode(effects.encode()) == effects


def test_dict_round_trip():
    effects = _sample()
    assert Effects.from_dict(effects.to_dict()) == effects


def test_wrong_wire_type_raises():
    with pytest.raises(DecodeError):
        Effects.decode(Writer().bytes_field(1, b"x").getvalue())


def test_hash_is_deterministic():
    assert _digest(_sample().__class__.decode(_sample().encode())) == _digest(
        Effects.decode(_sample().encode())
    )
    effects = _sample()
    assert _digest(effects) == _digest(effects)


def test_hash_ignores_return_data():
    effects = _sample()
    before = _digest(effects)
    effects.return_data = b"different"
    assert _digest(effects) == before


def test_hash_depends_on_program_result():
    effects = _sample()
    before = _digest(effects)
    effects.program_result += 1
    assert _digest(effects) != before