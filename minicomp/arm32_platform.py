"""ARM32 platform facts: register names, immediate and displacement limits."""

from __future__ import annotations

from dataclasses import dataclass, field

MAX_REG_NUM = 16
"""Number of ARM32 core registers (r0-r15)."""

MAX_USABLE_REG_NUM = 11
"""Number of general purpose registers available for allocation (r0-r10)."""

TMP_REG_NO = 10
"""Scratch register used when an immediate or offset does not fit an instruction."""

FP_REG_NO = 11
SP_REG_NO = 13
LX_REG_NO = 14

REG_NAMES: tuple[str, ...] = (
    "r0",
    "r1",
    "r2",
    "r3",
    "r4",
    "r5",
    "r6",
    "r7",
    "r8",
    "r9",
    "r10",
    "fp",
    "ip",
    "sp",
    "lr",
    "pc",
)

_MASK32 = 0xFFFFFFFF


@dataclass(eq=False)
class RegisterValue:
    """A value that lives permanently in one physical register."""

    name: str
    reg_id: int
    value_type: str = "i32"
    load_reg_id: int = -1
    memory_addr: tuple[int, int] | None = field(default=None, init=False)
    size: int = field(default=4, init=False)


_REGISTER_VALUES: tuple[RegisterValue, ...] = tuple(
    RegisterValue(name, reg_id) for reg_id, name in enumerate(REG_NAMES)
)


def register_value(reg_id: int) -> RegisterValue:
    """Return the shared value bound to register ``reg_id``."""
    if not 0 <= reg_id < MAX_REG_NUM:
        raise ValueError(f"register number out of range: {reg_id}")
    return _REGISTER_VALUES[reg_id]


def _rotate_left_two(num: int) -> int:
    return ((num << 2) | (num >> 30)) & _MASK32


def _encodable(num: int) -> bool:
    value = num & _MASK32
    for _ in range(16):
        if value <= 0xFF:
            return True
        value = _rotate_left_two(value)
    return False


def const_expr(num: int) -> bool:
    """Whether ``num`` (or its negation) is an 8-bit value rotated by an even amount."""
    return _encodable(num) or _encodable(-num)


def is_disp(num: int) -> bool:
    """Whether ``num`` is a valid load/store immediate offset."""
    return -4096 < num < 4096


def is_reg(name: str) -> bool:
    """Whether ``name`` is an ARM32 register name."""
    return name in REG_NAMES