"""Program invocation metadata."""

from __future__ import annotations

from dataclasses import dataclass

from ..fs import Hasher
from ..protowire import LENGTH, DecodeError, Writer, iter_fields


@dataclass
class Metadata:
    """The program entrypoint function name."""

    entrypoint: str = ""

    def encode(self) -> bytes:
        return Writer().string_field(1, self.entrypoint).getvalue()

    @classmethod
    def decode(cls, data: bytes) -> "Metadata":
        entrypoint = ""
        for number, wire, value in iter_fields(data):
            if number != 1:
                continue
            if wire != LENGTH:
                raise DecodeError("field 1: expected string")
            try:
                entrypoint = value.decode("utf-8")
            except UnicodeDecodeError as err:
                raise DecodeError(f"invalid UTF-8 in entrypoint: {err}") from err
        return cls(entrypoint)


def hash_metadata(hasher: Hasher, metadata: Metadata) -> None:
    hasher.hash(metadata.entrypoint.encode("utf-8"))