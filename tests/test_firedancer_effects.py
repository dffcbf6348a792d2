import pytest

from svmfixture.account import Account, Pubkey
from svmfixture.firedancer.account import SeedAddress
from svmfixture.firedancer.effects import Effects, hash_effects
from svmfixture.fs import Hasher
from svmfixture.protowire import DecodeError, Writer


def _effects(**changes):
    values = dict(
        program_result=-3,
        program_custom_code=17,
        modified_accounts=[
            (Pubkey.new_unique(), Account.new(5, 4, Pubkey()), None),
            (Pubkey.new_unique(), Account.new(6, 0, Pubkey()),
             SeedAddress(base=bytes(32), seed=b"s", owner=bytes(32))),
        ],
        compute_units_available=1234,
        return_data=b"ret",
    )
    values.update(changes)
    return Effects(**values)


def _digest(effects):
    hasher = Hasher()
    hash_effects(hasher, effects)
    return hasher.result()


def test_round_trip():
    effects = _effects()
    assert Effects.decode(effects.encode()) == effects


def test_default_effects_encode_empty():
    assert Effects().encode() == b""
    assert Effects.decode(b"") == Effects()


def test_negative_result_survives():
    effects = _effects(program_result=-1, modified_accounts=[])
    assert Effects.decode(effects.encode()).program_result == -1


def test_wrong_wire_type_rejected():
    with pytest.raises(DecodeError):
        Effects.decode(Writer().bytes_field(1, b"x").getvalue())


def test_dict_round_trip():
    effects = _effects()
    assert Effects.from_dict(effects.to_dict()) == effects


def test_hash_includes_return_data():
    effects = _effects()
    assert _digest(effects) == _digest(Effects.decode(effects.encode()))
    assert _digest(effects) != _digest(_effects(modified_accounts=effects.modified_accounts,
                                                return_data=b"other"))