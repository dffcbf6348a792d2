import pytest

from svmfixture.account import Pubkey
from svmfixture.feature_set import (
    FeatureSet,
    decode_feature_ids,
    discriminator,
    encode_feature_ids,
    hash_feature_ids,
)
from svmfixture.fs import Hasher
from svmfixture.protowire import DecodeError


def _key(first):
    return Pubkey(bytes([first]) + bytes(31))


def test_discriminator_reads_little_endian():
    assert discriminator(_key(5)) == 5


def test_from_ids_activates_known():
    known = [_key(1), _key(2), _key(3)]
    fs = FeatureSet.from_ids([2, 99], known)
    assert fs.is_active(_key(2))
    assert not fs.is_active(_key(1))
    assert _key(1) in fs.inactive and _key(2) not in fs.inactive


def test_omitted_not_activated():
    fs = FeatureSet.from_ids([1], [_key(1)], omitted=[_key(1)])
    assert not fs.is_active(_key(1))


def test_to_ids_round_trip():
    known = [_key(1), _key(2), _key(3)]
    fs = FeatureSet.all_enabled(known)
    ids = fs.to_ids(omitted=[_key(3)])
    assert sorted(ids) == [1, 2]
    assert FeatureSet.from_ids(ids, known).active == {_key(1): 0, _key(2): 0}


def test_encode_round_trip():
    ids = [1, 2**63, 7]
    assert decode_feature_ids(encode_feature_ids(ids)) == ids
    assert decode_feature_ids(encode_feature_ids([])) == []


def test_decode_bad_packed():
    with pytest.raises(DecodeError):
        decode_feature_ids(b"\x0a\x03abc")


def test_hash_order_independent():
    a, b = Hasher(), Hasher()
    hash_feature_ids(a, [3, 1, 2])
    hash_feature_ids(b, [1, 2, 3])
    assert a.result() == b.result()