import json

import pytest

from svmfixture.fs import Hasher
from svmfixture.mollusk.sysvars import (
    Clock,
    EpochRewards,
    EpochSchedule,
    Rent,
    SlotHashes,
    StakeHistory,
    StakeHistoryEntry,
    Sysvars,
    hash_sysvars,
)
from svmfixture.protowire import Writer


def _digest(sysvars):
    hasher = Hasher()
    hash_sysvars(hasher, sysvars)
    return hasher.result()


def _populated():
    history = StakeHistory()
    history.add(4, StakeHistoryEntry(10, 20, 30))
    history.add(9, StakeHistoryEntry(1, 2, 3))
    return Sysvars(
        clock=Clock(slot=100, epoch_start_timestamp=-5, epoch=3, leader_schedule_epoch=4,
                    unix_timestamp=-1_700_000_000),
        epoch_rewards=EpochRewards(
            distribution_starting_block_height=7,
            num_partitions=2,
            parent_blockhash=bytes(range(32)),
            total_points=(1 << 100) + 5,
            total_rewards=1000,
            distributed_rewards=400,
            active=True,
        ),
        epoch_schedule=EpochSchedule(8192, 8192, False, 0, 0),
        rent=Rent(lamports_per_byte_year=10, exemption_threshold=1.5, burn_percent=20),
        slot_hashes=SlotHashes([(5, bytes([1]) * 32), (8, bytes([2]) * 32)]),
        stake_history=history,
    )


def test_default_rent():
    rent = Sysvars().rent
    assert rent.lamports_per_byte_year == 3480
    assert rent.burn_percent == 50


def test_default_round_trip():
    assert Sysvars.decode(Sysvars().encode()) == Sysvars()


def test_populated_round_trip():
    sysvars = _populated()
    assert Sysvars.decode(sysvars.encode()) == sysvars


def test_missing_sysvars_take_defaults():
    assert Sysvars.decode(b"") == Sysvars()


def test_negative_timestamps_survive():
    decoded = Sysvars.decode(_populated().encode())
    assert decoded.clock.unix_timestamp == -1_700_000_000
    assert decoded.clock.epoch_start_timestamp == -5


def test_large_total_points_survive():
    decoded = Sysvars.decode(_populated().encode())
    assert decoded.epoch_rewards.total_points == (1 << 100) + 5


def test_slot_hashes_sorted_newest_first():
    h = bytes(32)
    slot_hashes = SlotHashes([(1, h), (3, h), (2, h)])
    assert [slot for slot, _ in slot_hashes] == [3, 2, 1]


def test_slot_hash_wrong_length():
    with pytest.raises(ValueError):
        SlotHashes([(1, b"\x01\x02")])


def test_stake_history_add_orders_and_replaces():
    history = StakeHistory()
    history.add(1, StakeHistoryEntry(1, 0, 0))
    history.add(3, StakeHistoryEntry(3, 0, 0))
    history.add(2, StakeHistoryEntry(2, 0, 0))
    history.add(3, StakeHistoryEntry(30, 0, 0))
    assert [epoch for epoch, _ in history] == [3, 2, 1]
    assert history.entries[0][1] == StakeHistoryEntry(30, 0, 0)


def test_stake_history_truncated():
    history = StakeHistory()
    for epoch in range(600):
        history.add(epoch, StakeHistoryEntry())
    assert len(history) == 512
    assert history.entries[0][0] == 599


def test_invalid_blockhash():
    with pytest.raises(ValueError):
        EpochRewards(parent_blockhash=b"\x00" * 31)


def test_empty_epoch_rewards_message_rejected():
    data = Writer().message_field(2, b"").getvalue()
    with pytest.raises(ValueError):
        Sysvars.decode(data)


def test_burn_percent_out_of_range():
    rent = Writer().varint_field(3, 300).getvalue()
    data = Writer().message_field(4, rent).getvalue()
    with pytest.raises(ValueError):
        Sysvars.decode(data)


def test_dict_round_trip_through_json():
    sysvars = _populated()
    assert Sysvars.from_dict(json.loads(json.dumps(sysvars.to_dict()))) == sysvars


def test_from_dict_empty_is_default():
    assert Sysvars.from_dict({}) == Sysvars()


def test_hash_deterministic_and_sensitive():
    assert _digest(_populated()) == _digest(_populated())
    changed = _populated()
    changed.clock.slot += 1
    assert _digest(changed) != _digest(_populated())
    assert _digest(Sysvars()) != _digest(_populated())