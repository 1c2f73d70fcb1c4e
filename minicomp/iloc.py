"""ARM32 instruction sequences (ILOC) and their assembly text output.

Values handed to the loading and storing helpers are duck typed. They may carry:

* ``reg_id`` -- the register the value lives in, ``-1`` when none;
* ``const_value`` -- an integer when the value is a constant;
* ``is_global`` -- true for global variables, addressed through ``name``;
* ``memory_addr`` -- ``(base_reg_no, offset)`` for stack-resident values.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, TextIO

from minicomp.arm32_platform import FP_REG_NO, REG_NAMES, SP_REG_NO, const_expr, is_disp


@dataclass
class ArmInst:
    """One ARM32 assembly instruction, label or comment."""

    opcode: str
    result: str = ""
    arg1: str = ""
    arg2: str = ""
    cond: str = ""
    addition: str = ""
    dead: bool = False

    def replace(self, opcode, result="", arg1="", arg2="", cond="", addition=""):
        """Overwrite the instruction's contents in place."""
        self.opcode = opcode
        self.result = result
        self.arg1 = arg1
        self.arg2 = arg2
        self.cond = cond
        self.addition = addition

    def set_dead(self):
        """Mark the instruction as not to be emitted."""
        self.dead = True

    @property
    def is_label(self) -> bool:
        return self.result == ":"

    def render(self) -> str:
        """Return the assembly text, or an empty string for dead or empty instructions."""
        if self.dead or not self.opcode:
            return ""
        text = self.opcode + self.cond
        if self.result:
            text += self.result if self.result == ":" else " " + self.result
        for extra in (self.arg1, self.arg2, self.addition):
            if extra:
                text += "," + extra
        return text


def _reg_id(value: Any) -> int:
    return getattr(value, "reg_id", -1)


def _memory_addr(value: Any) -> tuple[int, int]:
    addr = getattr(value, "memory_addr", None)
    if addr is None:
        raise ValueError(f"value {getattr(value, 'name', value)!r} has no memory address")
    return addr


class ILocArm32:
    """A growing sequence of ARM32 instructions for one function."""

    def __init__(self, module=None):
        self.module = module
        self.code: list[ArmInst] = []

    def _emit(self, *fields: str) -> None:
        self.code.append(ArmInst(*fields))

    def comment(self, text):
        """Append an assembly comment."""
        self._emit("@", text)

    def to_str(self, num, flag=True):
        """Format ``num`` as a string, prefixed with ``#`` when ``flag`` is set."""
        return ("#" if flag else "") + str(num)

    def _load_imm(self, rs_reg_no: int, constant: int) -> None:
        reg = REG_NAMES[rs_reg_no]
        self._emit("movw", reg, f"#:lower16:{constant}")
        if (constant >> 16) & 0xFFFF:
            self._emit("movt", reg, f"#:upper16:{constant}")

    def _load_symbol(self, rs_reg_no: int, name: str) -> None:
        reg = REG_NAMES[rs_reg_no]
        self._emit("movw", reg, f"#:lower16:{name}")
        self._emit("movt", reg, f"#:upper16:{name}")

    def _lea_stack(self, rs_reg_no: int, base_reg_no: int, offset: int) -> None:
        rs_name = REG_NAMES[rs_reg_no]
        base_name = REG_NAMES[base_reg_no]
        if const_expr(offset):
            self._emit("add", rs_name, base_name, self.to_str(offset))
        else:
            self._load_imm(rs_reg_no, offset)
            self._emit("add", rs_name, base_name, rs_name)

    def load_base(self, rs_reg_no, base_reg_no, disp):
        """Emit ``ldr rs,[base,#disp]``, going through ``rs`` for large offsets."""
        rs_reg = REG_NAMES[rs_reg_no]
        base = REG_NAMES[base_reg_no]
        if is_disp(disp):
            if disp:
                base += "," + self.to_str(disp)
        else:
            self._load_imm(rs_reg_no, disp)
            base += "," + rs_reg
        self._emit("ldr", rs_reg, f"[{base}]")

    def store_base(self, src_reg_no, base_reg_no, disp, tmp_reg_no):
        """Emit ``str src,[base,#disp]``, going through ``tmp`` for large offsets."""
        base = REG_NAMES[base_reg_no]
        if is_disp(disp):
            if disp:
                base += "," + self.to_str(disp)
        else:
            self._load_imm(tmp_reg_no, disp)
            base += "," + REG_NAMES[tmp_reg_no]
        self._emit("str", REG_NAMES[src_reg_no], f"[{base}]")

    def label(self, name):
        """Append a label definition."""
        self._emit(name, ":")

    def inst(self, op, rs, *args):
        """Append an instruction with up to two source operands."""
        if len(args) > 2:
            raise TypeError(f"inst() takes at most 2 source operands ({len(args)} given)")
        self._emit(op, rs, *args)

    def load_var(self, rs_reg_no, var):
        """Make sure the value of ``var`` ends up in register ``rs_reg_no``."""
        constant = getattr(var, "const_value", None)
        if constant is not None:
            self._load_imm(rs_reg_no, constant)
        elif _reg_id(var) != -1:
            src_reg_no = _reg_id(var)
            if src_reg_no != rs_reg_no:
                self._emit("mov", REG_NAMES[rs_reg_no], REG_NAMES[src_reg_no])
        elif getattr(var, "is_global", False):
            self._load_symbol(rs_reg_no, var.name)
            reg = REG_NAMES[rs_reg_no]
            self._emit("ldr", reg, f"[{reg}]")
        else:
            base_reg_no, offset = _memory_addr(var)
            self.load_base(rs_reg_no, base_reg_no, offset)

    def lea_var(self, rs_reg_no, var):
        """Load the stack address of ``var`` into ``rs_reg_no``."""
        base_reg_no, offset = _memory_addr(var)
        self._lea_stack(rs_reg_no, base_reg_no, offset)

    def store_var(self, src_reg_no, var, tmp_reg_no):
        """Store register ``src_reg_no`` into ``var``, using ``tmp_reg_no`` if needed."""
        dest_reg_no = _reg_id(var)
        if dest_reg_no != -1:
            if src_reg_no != dest_reg_no:
                self._emit("mov", REG_NAMES[dest_reg_no], REG_NAMES[src_reg_no])
        elif getattr(var, "is_global", False):
            self._load_symbol(tmp_reg_no, var.name)
            self._emit("str", REG_NAMES[src_reg_no], f"[{REG_NAMES[tmp_reg_no]}]")
        else:
            base_reg_no, offset = _memory_addr(var)
            self.store_base(src_reg_no, base_reg_no, offset, tmp_reg_no)

    def mov_reg(self, rs_reg_no, src_reg_no):
        """Emit a register to register move."""
        self._emit("mov", REG_NAMES[rs_reg_no], REG_NAMES[src_reg_no])

    def call_fun(self, name):
        """Emit a call to ``name``."""
        self._emit("bl", name)

    def alloc_stack(self, func, tmp_reg_no):
        """Set up the frame pointer and reserve ``func.max_dep`` bytes of stack."""
        off = func.max_dep
        if off == 0:
            return
        self.mov_reg(FP_REG_NO, SP_REG_NO)
        if const_expr(off):
            self._emit("sub", "sp", "sp", self.to_str(off))
        else:
            self._load_imm(tmp_reg_no, off)
            self._emit("sub", "sp", "sp", REG_NAMES[tmp_reg_no])

    def nop(self):
        """Append an empty placeholder instruction."""
        self._emit("")

    def jump(self, label):
        """Emit an unconditional branch to ``label``."""
        self._emit("b", label)

    def output(self, file: TextIO, output_empty=False):
        """Write the assembly text to ``file``."""
        for arm in self.code:
            text = arm.render()
            if arm.is_label:
                file.write(text + "\n")
            elif text:
                file.write("\t" + text + "\n")
            elif output_empty:
                file.write("\n")

    def delete_unused_label(self):
        """Mark labels that no live branch refers to as dead."""
        labels = [
            arm
            for arm in self.code
            if not arm.dead and arm.opcode.startswith(".") and arm.is_label
        ]
        for label_arm in labels:
            used = any(
                not arm.dead and arm.opcode.startswith("b") and arm.result == label_arm.opcode
                for arm in self.code
            )
            if not used:
                label_arm.set_dead()