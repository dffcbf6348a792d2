from dataclasses import dataclass

import pytest

from svmfixture.fs import (
    FixtureError,
    FsHandler,
    Hasher,
    SerializableFixture,
    b58encode,
    load_from_blob_file,
    load_from_json_file,
)
from svmfixture.protowire import DecodeError, Writer, iter_fields


@dataclass
class Sample(SerializableFixture):
    value: int = 0

    def encode(self):
        return Writer().varint_field(1, self.value).getvalue()

    @classmethod
    def decode(cls, blob):
        value = 0
        for number, _, v in iter_fields(blob):
            if number == 1:
                value = v
        return cls(value)

    def hash(self):
        hasher = Hasher()
        hasher.hash(self.value.to_bytes(8, "little"))
        return hasher.result()

    def to_dict(self):
        return {"value": self.value}

    @classmethod
    def from_dict(cls, data):
        return cls(data["value"])


def test_keccak_empty():
    assert Hasher().result().hex() == (
        "c5d2460186f7233c927e7db2dcc703c0e500b653ca82273b7bfad8045d85a470"
    )


def test_hasher_incremental():
    a = Hasher()
    a.hash(b"ab")
    a.hash(b"cd")
    b = Hasher()
    b.hash(b"abcd")
    assert a.result() == b.result()


def test_b58_leading_zeros():
    assert b58encode(b"\x00\x00\x01") == "112"
    assert b58encode(b"") == ""


def test_blob_round_trip(tmp_path):
    path = FsHandler(Sample(42)).dump_to_blob_file(tmp_path / "out")
    assert path.name == f"instr-{b58encode(Sample(42).hash())}.fix"
    assert load_from_blob_file(Sample, path) == Sample(42)


def test_json_round_trip(tmp_path):
    path = FsHandler(Sample(7)).dump_to_json_file(tmp_path)
    assert path.suffix == ".json"
    assert load_from_json_file(Sample, str(path)) == Sample(7)


def test_wrong_extension(tmp_path):
    with pytest.raises(FixtureError):
        load_from_blob_file(Sample, tmp_path / "x.json")
    with pytest.raises(FixtureError):
        load_from_json_file(Sample, tmp_path / "x.fix")


def test_missing_file(tmp_path):
    with pytest.raises(FixtureError):
        load_from_blob_file(Sample, tmp_path / "none.fix")


def test_bad_json(tmp_path):
    path = tmp_path / "bad.json"
    path.write_text("{}")
    with pytest.raises(FixtureError):
        load_from_json_file(Sample, path)


def test_bad_blob(tmp_path):
    path = tmp_path / "bad.fix"
    path.write_bytes(b"\x08\x80")
    with pytest.raises(FixtureError) as info:
        load_from_blob_file(Sample, path)
    assert isinstance(info.value.__cause__, DecodeError)