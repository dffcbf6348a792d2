"""A single-instruction fixture: inputs and expected effects."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, ClassVar

from ..account import Pubkey
from ..fs import Hasher, SerializableFixture
from ..fs import load_from_blob_file as _load_blob
from ..fs import load_from_json_file as _load_json
from ..protowire import LENGTH, DecodeError, Writer, iter_fields
from .context import Context, hash_context
from .effects import Effects, hash_effects


@dataclass
class Fixture(SerializableFixture):
    """Invokes one instruction against a simulated program runtime.

    ``known_features`` lists the feature IDs that decoding can recognise.
    """

    input: Context = field(default_factory=Context)
    output: Effects = field(default_factory=Effects)

    known_features: ClassVar[tuple[Pubkey, ...]] = ()

    def encode(self) -> bytes:
        return (
            Writer()
            .message_field(1, self.input.encode())
            .message_field(2, self.output.encode())
            .getvalue()
        )

    @classmethod
    def decode(cls, blob: bytes) -> "Fixture":
        """Decode a blob; both the input and the output must be present."""
        parts: dict[int, bytes] = {}
        for number, wire, value in iter_fields(blob):
            if number in (1, 2):
                if wire != LENGTH:
                    raise DecodeError(f"field {number}: expected message")
                parts[number] = value
        if 1 not in parts:
            raise DecodeError("fixture has no input")
        if 2 not in parts:
            raise DecodeError("fixture has no output")
        return cls(
            input=Context.decode(parts[1], cls.known_features),
            output=Effects.decode(parts[2]),
        )

    def hash(self) -> bytes:
        hasher = Hasher()
        hash_context(hasher, self.input)
        hash_effects(hasher, self.output)
        return hasher.result()

    def to_dict(self) -> dict[str, Any]:
        return {"input": self.input.to_dict(), "output": self.output.to_dict()}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Fixture":
        return cls(
            input=Context.from_dict(data["input"], cls.known_features),
            output=Effects.from_dict(data["output"]),
        )

    @classmethod
    def load_from_blob_file(cls, file_path: str | Path) -> "Fixture":
        return _load_blob(cls, file_path)

    @classmethod
    def load_from_json_file(cls, file_path: str | Path) -> "Fixture":
        return _load_json(cls, file_path)