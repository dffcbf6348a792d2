"""Runtime feature sets and their integer-ID encoding."""

from __future__ import annotations

import struct
from dataclasses import dataclass, field
from typing import Iterable

from .account import Pubkey
from .fs import Hasher
from .protowire import FIXED64, LENGTH, DecodeError, Writer, iter_fields


def discriminator(feature_id: Pubkey) -> int:
    """The feature's integer ID: its first 8 bytes, little endian."""
    return int.from_bytes(feature_id.to_bytes()[:8], "little")


@dataclass
class FeatureSet:
    """Active features with their activation slot, plus known inactive ones."""

    active: dict[Pubkey, int] = field(default_factory=dict)
    inactive: set[Pubkey] = field(default_factory=set)

    def activate(self, feature_id: Pubkey, slot: int) -> None:
        self.inactive.discard(feature_id)
        self.active[feature_id] = slot

    def is_active(self, feature_id: Pubkey) -> bool:
        return feature_id in self.active

    @classmethod
    def all_enabled(cls, known_features: Iterable[Pubkey]) -> "FeatureSet":
        return cls(active={f: 0 for f in known_features})

    @classmethod
    def from_ids(
        cls,
        ids: Iterable[int],
        known_features: Iterable[Pubkey],
        omitted: Iterable[Pubkey] = (),
    ) -> "FeatureSet":
        """Activate each known feature whose discriminator is among ``ids``."""
        known = list(dict.fromkeys(known_features))
        feature_set = cls(inactive=set(known))
        skip = set(omitted)
        candidates = [f for f in known if f not in skip]
        for int_id in ids:
            match = next((f for f in candidates if discriminator(f) == int_id), None)
            if match is not None:
                feature_set.activate(match, 0)
        return feature_set

    def to_ids(self, omitted: Iterable[Pubkey] = ()) -> list[int]:
        skip = set(omitted)
        return [discriminator(f) for f in self.active if f not in skip]


def encode_feature_ids(ids: Iterable[int]) -> bytes:
    """Encode as a message with packed ``repeated fixed64 features = 1``."""
    packed = b"".join(struct.pack("<Q", i) for i in ids)
    return Writer().bytes_field(1, packed).getvalue()


def decode_feature_ids(data: bytes) -> list[int]:
    ids: list[int] = []
    for number, wire_type, value in iter_fields(data):
        if number != 1:
            continue
        if wire_type == LENGTH:
            if len(value) % 8:
                raise DecodeError("packed fixed64 length not a multiple of 8")
            ids.extend(i for (i,) in struct.iter_unpack("<Q", value))
        elif wire_type == FIXED64:
            ids.append(struct.unpack("<Q", value)[0])
        else:
            raise DecodeError("unexpected wire type for features")
    return ids


def hash_feature_ids(hasher: Hasher, ids: Iterable[int]) -> None:
    for int_id in sorted(ids):
        hasher.hash(int_id.to_bytes(8, "little"))