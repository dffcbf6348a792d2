import dataclasses

import pytest

from svmfixture.fs import Hasher
from svmfixture.mollusk.compute_budget import ComputeBudget, hash_compute_budget
from svmfixture.protowire import DecodeError, iter_fields


def _digest(budget):
    hasher = Hasher()
    hash_compute_budget(hasher, budget)
    return hasher.result()


def test_defaults_stack_depth_follows_feature():
    assert ComputeBudget.new_with_defaults(True).max_instruction_stack_depth == 9
    assert ComputeBudget.new_with_defaults(False).max_instruction_stack_depth == 5


def test_defaults_differ_only_in_stack_depth():
    active = ComputeBudget.new_with_defaults(True)
    inactive = ComputeBudget.new_with_defaults(False)
    assert dataclasses.replace(
        active, max_instruction_stack_depth=inactive.max_instruction_stack_depth
    ) == inactive


def test_default_heap_size():
    assert ComputeBudget.new_with_defaults(False).heap_size == 32768


def test_zero_budget_encodes_empty():
    assert ComputeBudget().encode() == b""
    assert ComputeBudget.decode(b"") == ComputeBudget()


def test_single_field_wire():
    encoded = ComputeBudget(compute_unit_limit=12345).encode()
    assert list(iter_fields(encoded)) == [(1, 0, 12345)]


def test_round_trip_defaults():
    budget = ComputeBudget.new_with_defaults(True)
    assert ComputeBudget.decode(budget.encode()) == budget


def test_decode_wrong_wire_type():
    with pytest.raises(DecodeError):
        ComputeBudget.decode(b"\x0a\x00")


def test_decode_ignores_unknown_field():
    data = ComputeBudget(invoke_units=7).encode() + b"\xc8\x3e\x01"
    assert ComputeBudget.decode(data) == ComputeBudget(invoke_units=7)


def test_dict_round_trip():
    budget = ComputeBudget.new_with_defaults(False)
    assert ComputeBudget.from_dict(budget.to_dict()) == budget


def test_from_dict_missing_is_zero():
    budget = ComputeBudget.from_dict({"compute_unit_limit": 12345})
    assert budget == ComputeBudget(compute_unit_limit=12345)


def test_hash_deterministic():
    budget = ComputeBudget.new_with_defaults(True)
    assert _digest(budget) == _digest(ComputeBudget.new_with_defaults(True))
    assert len(_digest(budget)) == 32


def test_hash_changes_with_field():
    base = ComputeBudget.new_with_defaults(True)
    assert _digest(base) != _digest(dataclasses.replace(base, heap_size=base.heap_size + 1))
    assert _digest(base) != _digest(ComputeBudget.new_with_defaults(False))