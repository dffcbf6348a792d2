"""Keccak hashing, base58 and fixture files on disk."""

from __future__ import annotations

import abc
import json
from pathlib import Path
from typing import Any, TypeVar

from Crypto.Hash import keccak

from .protowire import DecodeError

_ALPHABET = "123456789ABCDEFGHJKLMNPQRSTUVWXYZabcdefghijkmnopqrstuvwxyz"

F = TypeVar("F", bound="SerializableFixture")


class FixtureError(Exception):
    """Raised when a fixture file cannot be loaded."""


class Hasher:
    """Incremental Keccak-256 hasher."""

    def __init__(self) -> None:
        self._state = keccak.new(digest_bits=256)

    def hash(self, data: bytes) -> None:
        self._state.update(bytes(data))

    def result(self) -> bytes:
        return self._state.digest()


def b58encode(data: bytes) -> str:
    """Encode bytes as base58 (Bitcoin alphabet)."""
    zeros = len(data) - len(data.lstrip(b"\x00"))
    number = int.from_bytes(data, "big")
    chars = []
    while number:
        number, rem = divmod(number, 58)
        chars.append(_ALPHABET[rem])
    return "1" * zeros + "".join(reversed(chars))


class SerializableFixture(abc.ABC):
    """A fixture with a protobuf encoding, a JSON form and a stable hash."""

    @abc.abstractmethod
    def encode(self) -> bytes:
        """Encode as a protobuf blob."""

    @classmethod
    @abc.abstractmethod
    def decode(cls: type[F], blob: bytes) -> F:
        """Decode a protobuf blob."""

    @abc.abstractmethod
    def hash(self) -> bytes:
        """Return a deterministic Keccak hash of the contents."""

    @abc.abstractmethod
    def to_dict(self) -> dict[str, Any]:
        """Return a JSON-compatible representation."""

    @classmethod
    @abc.abstractmethod
    def from_dict(cls: type[F], data: dict[str, Any]) -> F:
        """Build from the representation made by ``to_dict``."""


def _write_file(directory: Path, file_name: str, data: bytes) -> Path:
    directory.mkdir(parents=True, exist_ok=True)
    path = directory / file_name
    path.write_bytes(data)
    return path


class FsHandler:
    """Writes a fixture to files named after its hash."""

    def __init__(self, fixture: SerializableFixture) -> None:
        self.fixture = fixture

    def _name(self, extension: str) -> str:
        return f"instr-{b58encode(self.fixture.hash())}.{extension}"

    def dump_to_blob_file(self, dir_path: str | Path) -> Path:
        return _write_file(Path(dir_path), self._name("fix"), self.fixture.encode())

    def dump_to_json_file(self, dir_path: str | Path) -> Path:
        text = json.dumps(self.fixture.to_dict(), indent=2)
        return _write_file(Path(dir_path), self._name("json"), text.encode("utf-8"))


def _read(file_path: str | Path, extension: str) -> bytes:
    if not str(file_path).endswith(extension):
        raise FixtureError(f"Invalid fixture file extension: {file_path}")
    try:
        return Path(file_path).read_bytes()
    except OSError as err:
        raise FixtureError(f"Failed to open fixture file: {err}") from err


def load_from_blob_file(fixture_type: type[F], file_path: str | Path) -> F:
    """Load a fixture of ``fixture_type`` from a ``.fix`` protobuf file."""
    blob = _read(file_path, ".fix")
    try:
        return fixture_type.decode(blob)
    except (DecodeError, ValueError) as err:
        raise FixtureError(f"Failed to decode fixture: {err}") from err


def load_from_json_file(fixture_type: type[F], file_path: str | Path) -> F:
    """Load a fixture of ``fixture_type`` from a ``.json`` file."""
    text = _read(file_path, ".json")
    try:
        return fixture_type.from_dict(json.loads(text))
    except (ValueError, KeyError, TypeError) as err:
        raise FixtureError(f"Failed to deserialize fixture from JSON: {err}") from err