"""Runtime sysvars and their protobuf form."""

from __future__ import annotations

import bisect
import struct
from dataclasses import dataclass, field
from typing import Any, Iterator

from ..fs import Hasher
from ..protowire import (
    FIXED64,
    LENGTH,
    VARINT,
    DecodeError,
    Writer,
    iter_fields,
    to_signed,
)

MAX_ENTRIES = 512
DEFAULT_SLOTS_PER_EPOCH = 432_000
MINIMUM_SLOTS_PER_EPOCH = 32
DEFAULT_LAMPORTS_PER_BYTE_YEAR = 1_000_000_000 // 100 * 365 // (1024 * 1024)
DEFAULT_EXEMPTION_THRESHOLD = 2.0
DEFAULT_BURN_PERCENT = 50


def _warmup_epochs(slots_per_epoch: int) -> tuple[int, int]:
    next_power = 1 << max(slots_per_epoch - 1, 0).bit_length()
    epoch = (next_power.bit_length() - 1) - (MINIMUM_SLOTS_PER_EPOCH.bit_length() - 1)
    return epoch, (2**epoch - 1) * MINIMUM_SLOTS_PER_EPOCH


_FIRST_NORMAL_EPOCH, _FIRST_NORMAL_SLOT = _warmup_epochs(DEFAULT_SLOTS_PER_EPOCH)


@dataclass
class Clock:
    slot: int = 0
    epoch_start_timestamp: int = 0
    epoch: int = 0
    leader_schedule_epoch: int = 0
    unix_timestamp: int = 0


@dataclass
class EpochRewards:
    distribution_starting_block_height: int = 0
    num_partitions: int = 0
    parent_blockhash: bytes = bytes(32)
    total_points: int = 0
    total_rewards: int = 0
    distributed_rewards: int = 0
    active: bool = False

    def __post_init__(self) -> None:
        if len(self.parent_blockhash) != 32:
            raise ValueError("Invalid bytes for parent blockhash")


@dataclass
class EpochSchedule:
    slots_per_epoch: int = DEFAULT_SLOTS_PER_EPOCH
    leader_schedule_slot_offset: int = DEFAULT_SLOTS_PER_EPOCH
    warmup: bool = True
    first_normal_epoch: int = _FIRST_NORMAL_EPOCH
    first_normal_slot: int = _FIRST_NORMAL_SLOT


@dataclass
class Rent:
    lamports_per_byte_year: int = DEFAULT_LAMPORTS_PER_BYTE_YEAR
    exemption_threshold: float = DEFAULT_EXEMPTION_THRESHOLD
    burn_percent: int = DEFAULT_BURN_PERCENT

    def __post_init__(self) -> None:
        if not 0 <= self.burn_percent <= 0xFF:
            raise ValueError("Invalid integer for burn percent")


@dataclass
class SlotHashes:
    """Recent ``(slot, hash)`` pairs, newest slot first."""

    entries: list[tuple[int, bytes]] = field(default_factory=list)

    def __post_init__(self) -> None:
        for _, hash_bytes in self.entries:
            if len(hash_bytes) != 32:
                raise ValueError("Invalid bytes for slot hash")
        self.entries = sorted(
            ((slot, bytes(h)) for slot, h in self.entries),
            key=lambda entry: entry[0],
            reverse=True,
        )

    def __iter__(self) -> Iterator[tuple[int, bytes]]:
        return iter(self.entries)

    def __len__(self) -> int:
        return len(self.entries)


@dataclass
class StakeHistoryEntry:
    effective: int = 0
    activating: int = 0
    deactivating: int = 0


@dataclass
class StakeHistory:
    """Per-epoch stake entries, newest epoch first, at most ``MAX_ENTRIES``."""

    entries: list[tuple[int, StakeHistoryEntry]] = field(default_factory=list)

    def __post_init__(self) -> None:
        given, self.entries = self.entries, []
        for epoch, entry in given:
            self.add(epoch, entry)

    def add(self, epoch: int, entry: StakeHistoryEntry) -> None:
        index = bisect.bisect_left(self.entries, -epoch, key=lambda item: -item[0])
        if index < len(self.entries) and self.entries[index][0] == epoch:
            self.entries[index] = (epoch, entry)
        else:
            self.entries.insert(index, (epoch, entry))
        del self.entries[MAX_ENTRIES:]

    def __iter__(self) -> Iterator[tuple[int, StakeHistoryEntry]]:
        return iter(self.entries)

    def __len__(self) -> int:
        return len(self.entries)


def _fields(data: bytes) -> dict[int, tuple[int, Any]]:
    return {number: (wire, value) for number, wire, value in iter_fields(data)}


def _uint(fields: dict[int, tuple[int, Any]], number: int) -> int:
    wire, value = fields.get(number, (VARINT, 0))
    if wire != VARINT:
        raise DecodeError(f"field {number}: expected varint")
    return value


def _sint(fields: dict[int, tuple[int, Any]], number: int) -> int:
    return to_signed(_uint(fields, number), 64)


def _bytes(fields: dict[int, tuple[int, Any]], number: int) -> bytes:
    wire, value = fields.get(number, (LENGTH, b""))
    if wire != LENGTH:
        raise DecodeError(f"field {number}: expected length-delimited")
    return value


def _double(fields: dict[int, tuple[int, Any]], number: int) -> float:
    wire, value = fields.get(number, (FIXED64, bytes(8)))
    if wire != FIXED64:
        raise DecodeError(f"field {number}: expected fixed64")
    return struct.unpack("<d", value)[0]


def _repeated(data: bytes, number: int) -> Iterator[bytes]:
    for field_number, wire, value in iter_fields(data):
        if field_number != number:
            continue
        if wire != LENGTH:
            raise DecodeError(f"field {number}: expected message")
        yield value


def _u64(value: int) -> bytes:
    return value.to_bytes(8, "little")


def _i64(value: int) -> bytes:
    return value.to_bytes(8, "little", signed=True)


# Clock
def _encode_clock(clock: Clock) -> bytes:
    return (
        Writer()
        .varint_field(1, clock.slot)
        .int_field(2, clock.epoch_start_timestamp)
        .varint_field(3, clock.epoch)
        .varint_field(4, clock.leader_schedule_epoch)
        .int_field(5, clock.unix_timestamp)
        .getvalue()
    )


def _decode_clock(data: bytes) -> Clock:
    f = _fields(data)
    return Clock(_uint(f, 1), _sint(f, 2), _uint(f, 3), _uint(f, 4), _sint(f, 5))


# Epoch rewards
def _encode_epoch_rewards(rewards: EpochRewards) -> bytes:
    return (
        Writer()
        .varint_field(1, rewards.distribution_starting_block_height)
        .varint_field(2, rewards.num_partitions)
        .bytes_field(3, rewards.parent_blockhash)
        .bytes_field(4, rewards.total_points.to_bytes(16, "little"))
        .varint_field(5, rewards.total_rewards)
        .varint_field(6, rewards.distributed_rewards)
        .bool_field(7, rewards.active)
        .getvalue()
    )


def _decode_epoch_rewards(data: bytes) -> EpochRewards:
    f = _fields(data)
    total_points = _bytes(f, 4)
    if len(total_points) != 16:
        raise ValueError("Invalid bytes for total points")
    return EpochRewards(
        distribution_starting_block_height=_uint(f, 1),
        num_partitions=_uint(f, 2),
        parent_blockhash=_bytes(f, 3),
        total_points=int.from_bytes(total_points, "little"),
        total_rewards=_uint(f, 5),
        distributed_rewards=_uint(f, 6),
        active=bool(_uint(f, 7)),
    )


# Epoch schedule
def _encode_epoch_schedule(schedule: EpochSchedule) -> bytes:
    return (
        Writer()
        .varint_field(1, schedule.slots_per_epoch)
        .varint_field(2, schedule.leader_schedule_slot_offset)
        .bool_field(3, schedule.warmup)
        .varint_field(4, schedule.first_normal_epoch)
        .varint_field(5, schedule.first_normal_slot)
        .getvalue()
    )


def _decode_epoch_schedule(data: bytes) -> EpochSchedule:
    f = _fields(data)
    return EpochSchedule(
        slots_per_epoch=_uint(f, 1),
        leader_schedule_slot_offset=_uint(f, 2),
        warmup=bool(_uint(f, 3)),
        first_normal_epoch=_uint(f, 4),
        first_normal_slot=_uint(f, 5),
    )


# Rent
def _encode_rent(rent: Rent) -> bytes:
    return (
        Writer()
        .varint_field(1, rent.lamports_per_byte_year)
        .double_field(2, rent.exemption_threshold)
        .varint_field(3, rent.burn_percent)
        .getvalue()
    )


def _decode_rent(data: bytes) -> Rent:
    f = _fields(data)
    return Rent(
        lamports_per_byte_year=_uint(f, 1),
        exemption_threshold=_double(f, 2),
        burn_percent=_uint(f, 3) & 0xFFFFFFFF,
    )


# Slot hashes
def _encode_slot_hashes(slot_hashes: SlotHashes) -> bytes:
    writer = Writer()
    for slot, hash_bytes in slot_hashes:
        entry = Writer().varint_field(1, slot).bytes_field(2, hash_bytes).getvalue()
        writer.message_field(1, entry)
    return writer.getvalue()


def _decode_slot_hashes(data: bytes) -> SlotHashes:
    entries = []
    for raw in _repeated(data, 1):
        f = _fields(raw)
        entries.append((_uint(f, 1), _bytes(f, 2)))
    return SlotHashes(entries)


# Stake history
def _encode_stake_history(history: StakeHistory) -> bytes:
    writer = Writer()
    for epoch, entry in history:
        message = (
            Writer()
            .varint_field(1, epoch)
            .varint_field(2, entry.effective)
            .varint_field(3, entry.activating)
            .varint_field(4, entry.deactivating)
            .getvalue()
        )
        writer.message_field(1, message)
    return writer.getvalue()


def _decode_stake_history(data: bytes) -> StakeHistory:
    history = StakeHistory()
    for raw in _repeated(data, 1):
        f = _fields(raw)
        history.add(_uint(f, 1), StakeHistoryEntry(_uint(f, 2), _uint(f, 3), _uint(f, 4)))
    return history


@dataclass
class Sysvars:
    """The runtime sysvars used for a simulation."""

    clock: Clock = field(default_factory=Clock)
    epoch_rewards: EpochRewards = field(default_factory=EpochRewards)
    epoch_schedule: EpochSchedule = field(default_factory=EpochSchedule)
    rent: Rent = field(default_factory=Rent)
    slot_hashes: SlotHashes = field(default_factory=SlotHashes)
    stake_history: StakeHistory = field(default_factory=StakeHistory)

    def encode(self) -> bytes:
        return (
            Writer()
            .message_field(1, _encode_clock(self.clock))
            .message_field(2, _encode_epoch_rewards(self.epoch_rewards))
            .message_field(3, _encode_epoch_schedule(self.epoch_schedule))
            .message_field(4, _encode_rent(self.rent))
            .message_field(5, _encode_slot_hashes(self.slot_hashes))
            .message_field(6, _encode_stake_history(self.stake_history))
            .getvalue()
        )

    @classmethod
    def decode(cls, data: bytes) -> "Sysvars":
        """Decode; absent sysvars take their defaults."""
        decoders = {
            1: ("clock", _decode_clock),
            2: ("epoch_rewards", _decode_epoch_rewards),
            3: ("epoch_schedule", _decode_epoch_schedule),
            4: ("rent", _decode_rent),
            5: ("slot_hashes", _decode_slot_hashes),
            6: ("stake_history", _decode_stake_history),
        }
        values: dict[str, Any] = {}
        for number, wire, value in iter_fields(data):
            if number not in decoders:
                continue
            if wire != LENGTH:
                raise DecodeError(f"field {number}: expected message")
            name, decoder = decoders[number]
            values[name] = decoder(value)
        return cls(**values)

    def to_dict(self) -> dict[str, Any]:
        rewards = self.epoch_rewards
        return {
            "clock": {
                "slot": self.clock.slot,
                "epoch_start_timestamp": self.clock.epoch_start_timestamp,
                "epoch": self.clock.epoch,
                "leader_schedule_epoch": self.clock.leader_schedule_epoch,
                "unix_timestamp": self.clock.unix_timestamp,
            },
            "epoch_rewards": {
                "distribution_starting_block_height": rewards.distribution_starting_block_height,
                "num_partitions": rewards.num_partitions,
                "parent_blockhash": rewards.parent_blockhash.hex(),
                "total_points": rewards.total_points,
                "total_rewards": rewards.total_rewards,
                "distributed_rewards": rewards.distributed_rewards,
                "active": rewards.active,
            },
            "epoch_schedule": {
                "slots_per_epoch": self.epoch_schedule.slots_per_epoch,
                "leader_schedule_slot_offset": self.epoch_schedule.leader_schedule_slot_offset,
                "warmup": self.epoch_schedule.warmup,
                "first_normal_epoch": self.epoch_schedule.first_normal_epoch,
                "first_normal_slot": self.epoch_schedule.first_normal_slot,
            },
            "rent": {
                "lamports_per_byte_year": self.rent.lamports_per_byte_year,
                "exemption_threshold": self.rent.exemption_threshold,
                "burn_percent": self.rent.burn_percent,
            },
            "slot_hashes": [
                {"slot": slot, "hash": hash_bytes.hex()} for slot, hash_bytes in self.slot_hashes
            ],
            "stake_history": [
                {
                    "epoch": epoch,
                    "effective": entry.effective,
                    "activating": entry.activating,
                    "deactivating": entry.deactivating,
                }
                for epoch, entry in self.stake_history
            ],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Sysvars":
        values: dict[str, Any] = {}
        if (clock := data.get("clock")) is not None:
            values["clock"] = Clock(
                slot=int(clock.get("slot", 0)),
                epoch_start_timestamp=int(clock.get("epoch_start_timestamp", 0)),
                epoch=int(clock.get("epoch", 0)),
                leader_schedule_epoch=int(clock.get("leader_schedule_epoch", 0)),
                unix_timestamp=int(clock.get("unix_timestamp", 0)),
            )
        if (rewards := data.get("epoch_rewards")) is not None:
            values["epoch_rewards"] = EpochRewards(
                distribution_starting_block_height=int(
                    rewards.get("distribution_starting_block_height", 0)
                ),
                num_partitions=int(rewards.get("num_partitions", 0)),
                parent_blockhash=bytes.fromhex(rewards.get("parent_blockhash", "")),
                total_points=int(rewards.get("total_points", 0)),
                total_rewards=int(rewards.get("total_rewards", 0)),
                distributed_rewards=int(rewards.get("distributed_rewards", 0)),
                active=bool(rewards.get("active", False)),
            )
        if (schedule := data.get("epoch_schedule")) is not None:
            values["epoch_schedule"] = EpochSchedule(
                slots_per_epoch=int(schedule.get("slots_per_epoch", 0)),
                leader_schedule_slot_offset=int(schedule.get("leader_schedule_slot_offset", 0)),
                warmup=bool(schedule.get("warmup", False)),
                first_normal_epoch=int(schedule.get("first_normal_epoch", 0)),
                first_normal_slot=int(schedule.get("first_normal_slot", 0)),
            )
        if (rent := data.get("rent")) is not None:
            values["rent"] = Rent(
                lamports_per_byte_year=int(rent.get("lamports_per_byte_year", 0)),
                exemption_threshold=float(rent.get("exemption_threshold", 0.0)),
                burn_percent=int(rent.get("burn_percent", 0)),
            )
        if (slot_hashes := data.get("slot_hashes")) is not None:
            values["slot_hashes"] = SlotHashes(
                [(int(e.get("slot", 0)), bytes.fromhex(e.get("hash", ""))) for e in slot_hashes]
            )
        if (history := data.get("stake_history")) is not None:
            stake_history = StakeHistory()
            for e in history:
                stake_history.add(
                    int(e.get("epoch", 0)),
                    StakeHistoryEntry(
                        effective=int(e.get("effective", 0)),
                        activating=int(e.get("activating", 0)),
                        deactivating=int(e.get("deactivating", 0)),
                    ),
                )
            values["stake_history"] = stake_history
        return cls(**values)


def hash_sysvars(hasher: Hasher, sysvars: Sysvars) -> None:
    """Feed every sysvar's fields, in message order, into ``hasher``."""
    clock = sysvars.clock
    hasher.hash(_u64(clock.slot))
    hasher.hash(_i64(clock.epoch_start_timestamp))
    hasher.hash(_u64(clock.epoch))
    hasher.hash(_u64(clock.leader_schedule_epoch))
    hasher.hash(_i64(clock.unix_timestamp))

    rewards = sysvars.epoch_rewards
    hasher.hash(_u64(rewards.distribution_starting_block_height))
    hasher.hash(_u64(rewards.num_partitions))
    hasher.hash(rewards.parent_blockhash)
    hasher.hash(rewards.total_points.to_bytes(16, "little"))
    hasher.hash(_u64(rewards.total_rewards))
    hasher.hash(_u64(rewards.distributed_rewards))
    hasher.hash(bytes([int(rewards.active)]))

    schedule = sysvars.epoch_schedule
    hasher.hash(_u64(schedule.slots_per_epoch))
    hasher.hash(_u64(schedule.leader_schedule_slot_offset))
    hasher.hash(bytes([int(schedule.warmup)]))
    hasher.hash(_u64(schedule.first_normal_epoch))
    hasher.hash(_u64(schedule.first_normal_slot))

    rent = sysvars.rent
    hasher.hash(_u64(rent.lamports_per_byte_year))
    hasher.hash(struct.pack("<d", rent.exemption_threshold))
    hasher.hash(rent.burn_percent.to_bytes(4, "little"))

    for slot, hash_bytes in sysvars.slot_hashes:
        hasher.hash(_u64(slot))
        hasher.hash(hash_bytes)

    for epoch, entry in sysvars.stake_history:
        hasher.hash(_u64(epoch))
        hasher.hash(_u64(entry.effective))
        hasher.hash(_u64(entry.activating))
        hasher.hash(_u64(entry.deactivating))