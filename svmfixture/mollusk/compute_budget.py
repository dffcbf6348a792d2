"""Compute budget for instructions and its protobuf form."""

from __future__ import annotations

from dataclasses import dataclass, fields
from typing import Any

from ..fs import Hasher
from ..protowire import VARINT, DecodeError, Writer, iter_fields

_U32_MASK = (1 << 32) - 1

MAX_INSTRUCTION_STACK_DEPTH = 5
MAX_INSTRUCTION_STACK_DEPTH_SIMD_0268 = 9


@dataclass
class ComputeBudget:
    """Compute unit limits and syscall costs.

    A bare instance holds the protobuf defaults (all zero); use
    ``new_with_defaults`` for the runtime's default budget.
    """

    compute_unit_limit: int = 0
    log_64_units: int = 0
    create_program_address_units: int = 0
    invoke_units: int = 0
    max_instruction_stack_depth: int = 0
    max_instruction_trace_length: int = 0
    sha256_base_cost: int = 0
    sha256_byte_cost: int = 0
    sha256_max_slices: int = 0
    max_call_depth: int = 0
    stack_frame_size: int = 0
    log_pubkey_units: int = 0
    cpi_bytes_per_unit: int = 0
    sysvar_base_cost: int = 0
    secp256k1_recover_cost: int = 0
    syscall_base_cost: int = 0
    curve25519_edwards_validate_point_cost: int = 0
    curve25519_edwards_add_cost: int = 0
    curve25519_edwards_subtract_cost: int = 0
    curve25519_edwards_multiply_cost: int = 0
    curve25519_edwards_msm_base_cost: int = 0
    curve25519_edwards_msm_incremental_cost: int = 0
    curve25519_ristretto_validate_point_cost: int = 0
    curve25519_ristretto_add_cost: int = 0
    curve25519_ristretto_subtract_cost: int = 0
    curve25519_ristretto_multiply_cost: int = 0
    curve25519_ristretto_msm_base_cost: int = 0
    curve25519_ristretto_msm_incremental_cost: int = 0
    heap_size: int = 0
    heap_cost: int = 0
    mem_op_base_cost: int = 0
    alt_bn128_addition_cost: int = 0
    alt_bn128_multiplication_cost: int = 0
    alt_bn128_pairing_one_pair_cost_first: int = 0
    alt_bn128_pairing_one_pair_cost_other: int = 0
    big_modular_exponentiation_base_cost: int = 0
    big_modular_exponentiation_cost_divisor: int = 0
    poseidon_cost_coefficient_a: int = 0
    poseidon_cost_coefficient_c: int = 0
    get_remaining_compute_units_cost: int = 0
    alt_bn128_g1_compress: int = 0
    alt_bn128_g1_decompress: int = 0
    alt_bn128_g2_compress: int = 0
    alt_bn128_g2_decompress: int = 0

    @classmethod
    def new_with_defaults(cls, simd_0268_active: bool) -> "ComputeBudget":
        """The runtime's default budget; SIMD-0268 raises the stack depth."""
        return cls(
            compute_unit_limit=1_400_000,
            log_64_units=100,
            create_program_address_units=1500,
            invoke_units=1000,
            max_instruction_stack_depth=(
                MAX_INSTRUCTION_STACK_DEPTH_SIMD_0268
                if simd_0268_active
                else MAX_INSTRUCTION_STACK_DEPTH
            ),
            max_instruction_trace_length=64,
            sha256_base_cost=85,
            sha256_byte_cost=1,
            sha256_max_slices=20_000,
            max_call_depth=64,
            stack_frame_size=4096,
            log_pubkey_units=100,
            cpi_bytes_per_unit=250,
            sysvar_base_cost=100,
            secp256k1_recover_cost=25_000,
            syscall_base_cost=100,
            curve25519_edwards_validate_point_cost=159,
            curve25519_edwards_add_cost=473,
            curve25519_edwards_subtract_cost=475,
            curve25519_edwards_multiply_cost=2_177,
            curve25519_edwards_msm_base_cost=2_273,
            curve25519_edwards_msm_incremental_cost=758,
            curve25519_ristretto_validate_point_cost=169,
            curve25519_ristretto_add_cost=521,
            curve25519_ristretto_subtract_cost=519,
            curve25519_ristretto_multiply_cost=2_208,
            curve25519_ristretto_msm_base_cost=2303,
            curve25519_ristretto_msm_incremental_cost=788,
            heap_size=32 * 1024,
            heap_cost=8,
            mem_op_base_cost=10,
            alt_bn128_addition_cost=334,
            alt_bn128_multiplication_cost=3_840,
            alt_bn128_pairing_one_pair_cost_first=36_364,
            alt_bn128_pairing_one_pair_cost_other=12_121,
            big_modular_exponentiation_base_cost=190,
            big_modular_exponentiation_cost_divisor=2,
            poseidon_cost_coefficient_a=61,
            poseidon_cost_coefficient_c=542,
            get_remaining_compute_units_cost=100,
            alt_bn128_g1_compress=30,
            alt_bn128_g1_decompress=398,
            alt_bn128_g2_compress=86,
            alt_bn128_g2_decompress=13610,
        )

    def encode(self) -> bytes:
        writer = Writer()
        for number, name in enumerate(_FIELD_NAMES, start=1):
            writer.varint_field(number, getattr(self, name))
        return writer.getvalue()

    @classmethod
    def decode(cls, data: bytes) -> "ComputeBudget":
        values: dict[str, int] = {}
        for number, wire_type, value in iter_fields(data):
            if not 1 <= number <= len(_FIELD_NAMES):
                continue
            if wire_type != VARINT:
                raise DecodeError(f"field {number}: expected varint")
            name = _FIELD_NAMES[number - 1]
            values[name] = value & _U32_MASK if name == "heap_size" else value
        return cls(**values)

    def to_dict(self) -> dict[str, Any]:
        return {name: getattr(self, name) for name in _FIELD_NAMES}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ComputeBudget":
        return cls(**{name: int(data.get(name, 0)) for name in _FIELD_NAMES})


_FIELD_NAMES: tuple[str, ...] = tuple(f.name for f in fields(ComputeBudget))


def hash_compute_budget(hasher: Hasher, budget: ComputeBudget) -> None:
    """Feed every field, in message order, as little-endian bytes."""
    for name in _FIELD_NAMES:
        width = 4 if name == "heap_size" else 8
        hasher.hash(getattr(budget, name).to_bytes(width, "little"))