import pytest

from svmfixture.account import Account, AccountMeta, Pubkey
from svmfixture.feature_set import FeatureSet
from svmfixture.fs import FixtureError, FsHandler, b58encode
from svmfixture.mollusk.compute_budget import ComputeBudget
from svmfixture.mollusk.context import RAISE_CPI_NESTING_LIMIT_TO_8, Context
from svmfixture.mollusk.effects import Effects
from svmfixture.mollusk.fixture import Fixture
from svmfixture.mollusk.sysvars import Sysvars
from svmfixture.protowire import DecodeError, Writer

EXTRA_FEATURE = Pubkey.new_unique()


class _KnownFixture(Fixture):
    known_features = (RAISE_CPI_NESTING_LIMIT_TO_8, EXTRA_FEATURE)


def _make_fixture(cls=Fixture):
    instruction_accounts = [AccountMeta(Pubkey.new_unique(), False, True) for _ in range(4)]
    accounts = [(meta.pubkey, Account.new(42, 42, Pubkey())) for meta in instruction_accounts]
    context = Context(
        compute_budget=ComputeBudget.new_with_defaults(True),
        feature_set=FeatureSet.all_enabled(_KnownFixture.known_features),
        sysvars=Sysvars(),
        program_id=Pubkey(),
        instruction_accounts=instruction_accounts,
        instruction_data=bytes([4] * 24),
        accounts=accounts,
    )
    return cls(input=context, output=Effects())


def test_consistent_hashing():
    fixture = _make_fixture()
    last_hash = fixture.hash()
    for _ in range(1000):
        new_hash = fixture.hash()
        assert last_hash == new_hash
        last_hash = new_hash


def test_hash_depends_on_output():
    fixture = _make_fixture()
    before = fixture.hash()
    fixture.output.program_result = 1
    assert fixture.hash() != before


def test_encode_decode_round_trip_with_known_features():
    fixture = _make_fixture(_KnownFixture)
    decoded = _KnownFixture.decode(fixture.encode())
    assert decoded == fixture
    assert decoded.hash() == fixture.hash()


def test_decode_without_known_features_drops_them():
    fixture = _make_fixture()
    decoded = Fixture.decode(fixture.encode())
    assert decoded.input.feature_set.active == {}
    assert decoded.input.accounts == fixture.input.accounts


def test_dict_round_trip():
    fixture = _make_fixture(_KnownFixture)
    assert _KnownFixture.from_dict(fixture.to_dict()) == fixture


def test_decode_requires_output():
    blob = Writer().message_field(1, _make_fixture().input.encode()).getvalue()
    with pytest.raises(DecodeError, match="output"):
        Fixture.decode(blob)


def test_decode_requires_input():
    blob = Writer().message_field(2, b"").getvalue()
    with pytest.raises(DecodeError, match="input"):
        Fixture.decode(blob)


def test_blob_file_round_trip(tmp_path):
    fixture = _make_fixture(_KnownFixture)
    path = FsHandler(fixture).dump_to_blob_file(tmp_path / "out")
    assert path.name == f"instr-{b58encode(fixture.hash())}.fix"
    assert _KnownFixture.load_from_blob_file(str(path)) == fixture


def test_json_file_round_trip(tmp_path):
    fixture = _make_fixture(_KnownFixture)
    path = FsHandler(fixture).dump_to_json_file(tmp_path)
    assert path.suffix == ".json"
    assert _KnownFixture.load_from_json_file(path) == fixture


def test_wrong_extension_raises(tmp_path):
    path = tmp_path / "fixture.bin"
    path.write_bytes(_make_fixture().encode())
    with pytest.raises(FixtureError, match="extension"):
        Fixture.load_from_blob_file(path)


def test_corrupt_blob_raises(tmp_path):
    path = tmp_path / "broken.fix"
    path.write_bytes(b"\x0a\x05ab")
    with pytest.raises(FixtureError):
        Fixture.load_from_blob_file(path)