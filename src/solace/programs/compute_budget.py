"""Compute Budget Program: per-transaction compute unit limit and price."""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Any, Mapping

from ..codex.instruction import Instruction, encode_data, u32, u64
from ..utils import b58decode
from .validation import int_option, set_field, validate_options

PROGRAM_ID = b58decode("ComputeBudget111111111111111111111111111111")


class ComputeBudgetInstruction(enum.IntEnum):
    SET_COMPUTE_UNIT_LIMIT = 2
    SET_COMPUTE_UNIT_PRICE = 3


@dataclass(frozen=True)
class SetComputeUnitLimitParams:
    """``limit``: compute unit limit (positive u32)."""

    limit: Any

    def __post_init__(self) -> None:
        set_field(self, "limit", int_option("limit", self.limit, minimum=1, bits=32))


@dataclass(frozen=True)
class SetComputeUnitPriceParams:
    """``price``: compute unit price in micro-lamports (positive u64)."""

    price: Any

    def __post_init__(self) -> None:
        set_field(self, "price", int_option("price", self.price, minimum=1, bits=64))


def set_compute_unit_limit(opts: Mapping[str, Any]) -> Instruction:
    params = validate_options(SetComputeUnitLimitParams, opts)
    return Instruction(
        program=PROGRAM_ID,
        data=encode_data(ComputeBudgetInstruction.SET_COMPUTE_UNIT_LIMIT, u32(params.limit)),
    )


def set_compute_unit_price(opts: Mapping[str, Any]) -> Instruction:
    params = validate_options(SetComputeUnitPriceParams, opts)
    return Instruction(
        program=PROGRAM_ID,
        data=encode_data(ComputeBudgetInstruction.SET_COMPUTE_UNIT_PRICE, u64(params.price)),
    )
