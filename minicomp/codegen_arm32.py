"""ARM32 assembly generator: frame layout, calling convention and text output.

The module, its functions and values are duck typed.

* The module has ``functions`` and ``global_variables``. A global variable has
  ``name``, ``size``, ``alignment`` and ``in_bss``.
* A function has ``name``, ``alignment``, ``is_builtin``, ``insts`` (its IR
  instruction list), ``params``, ``var_values``, ``exist_func_call``,
  ``max_func_call_arg_cnt``, and writable ``protected_regs``,
  ``protected_reg_str`` and ``max_dep``.
* Values and result-carrying instructions have a writable ``reg_id`` and
  ``memory_addr``, a ``size`` in bytes, and optionally ``name`` and ``ir_name``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from minicomp.arm32_platform import (
    FP_REG_NO,
    LX_REG_NO,
    REG_NAMES,
    SP_REG_NO,
    register_value,
)
from minicomp.codegen import CodeGeneratorAsm
from minicomp.iloc import ILocArm32
from minicomp.inst_selector import InstSelectorArm32, IROp
from minicomp.register_allocator import SimpleRegisterAllocator

LABEL_PREFIX = ".L"
"""Prefix of the file-wide unique label names."""

_ARG_REGS = 4
_WORD = 4


@dataclass(eq=False)
class _StackArg:
    """An outgoing call argument stored at ``sp`` plus a non-negative offset."""

    memory_addr: tuple[int, int]
    size: int = _WORD
    name: str = ""
    ir_name: str = ""
    reg_id: int = -1
    load_reg_id: int = -1


def _display_name(value: Any) -> str:
    return getattr(value, "ir_name", "") or getattr(value, "name", "")


@dataclass(eq=False)
class _MoveInst:
    """A copy of ``operands[1]`` into ``operands[0]``."""

    operands: list[Any] = field(default_factory=list)
    op: IROp = IROp.ASSIGN
    dead: bool = False
    has_result_value: bool = False
    name: str = ""

    @property
    def ir_text(self) -> str:
        dest, src = self.operands
        return f"{_display_name(dest)} = {_display_name(src)}"


def _size(value: Any) -> int:
    return getattr(value, "size", _WORD)


def _word_aligned(size: int) -> int:
    return (size + 3) & ~3


class CodeGeneratorArm32(CodeGeneratorAsm):
    """Generates ARMv7 assembly text for a module."""

    def __init__(self, module: Any):
        super().__init__(module)
        self._allocator = SimpleRegisterAllocator()

    def gen_header(self):
        """Write the architecture directives."""
        self.out.write(".arch armv7ve\n.arm\n.fpu vfpv4\n")

    def gen_data_section(self):
        """Write the .bss and .data sections, then open the .text section."""
        variables = list(self.module.global_variables)
        bss = [var for var in variables if var.in_bss]
        data = [var for var in variables if not var.in_bss]
        if bss:
            self.out.write(".bss\n")
        for var in bss:
            self.out.write(f".comm {var.name}, {var.size}, {var.alignment}\n")
        if data:
            self.out.write(".data\n")
        for var in data:
            self.out.write(f".global {var.name}\n")
            self.out.write(f".align {var.alignment}\n")
            self.out.write(f".type {var.name}, %object\n")
            self.out.write(f"{var.name}:\n")
        self.out.write(".text\n")

    def ir_value_comment(self, val):
        """Return an assembly comment telling where ``val`` lives, or ``""``."""
        name = getattr(val, "name", "")
        ir_name = getattr(val, "ir_name", "")
        show_name = ":".join(part for part in (name, ir_name) if part)
        reg_id = getattr(val, "reg_id", -1)
        if reg_id != -1:
            return f"\t@ {show_name}:{REG_NAMES[reg_id]}"
        addr = getattr(val, "memory_addr", None)
        if addr is not None:
            base, offset = addr
            return f"\t@ {show_name}:[{REG_NAMES[base]},#{offset}]"
        return ""

    def gen_function(self, func):
        """Allocate storage for ``func`` and write its instructions."""
        self.register_allocation(func)

        ir = func.insts
        for inst in ir:
            if inst.op is IROp.LABEL:
                inst.name = f"{LABEL_PREFIX}{self.label_index}"
                self.label_index += 1

        iloc = ILocArm32(self.module)
        selector = InstSelectorArm32(ir, iloc, func, self._allocator)
        selector.show_linear_ir = self.show_linear_ir
        selector.run()
        iloc.delete_unused_label()

        self.out.write(f".align {func.alignment}\n")
        self.out.write(f".global {func.name}\n")
        self.out.write(f".type {func.name}, %function\n")
        self.out.write(f"{func.name}:\n")

        if self.show_linear_ir:
            values = list(func.var_values)
            values += [inst for inst in func.insts if getattr(inst, "has_result_value", False)]
            for value in values:
                text = self.ir_value_comment(value)
                if text:
                    self.out.write(text + "\n")

        iloc.output(self.out)

    def register_allocation(self, func):
        """Choose saved registers, lower calls and lay out the stack frame."""
        if func.is_builtin:
            return
        protected = list(range(4, 11))
        protected.append(FP_REG_NO)
        if func.exist_func_call:
            protected.append(LX_REG_NO)
        func.protected_regs = protected

        self.adjust_func_call_insts(func)
        self.stack_alloc(func)
        self.adjust_formal_param_insts(func)

    def adjust_formal_param_insts(self, func):
        """Put the first four parameters in r0-r3 and the rest above the saved registers."""
        params = func.params
        for k, param in enumerate(params[:_ARG_REGS]):
            param.reg_id = k
        fp_esp = len(func.protected_regs) * _WORD
        for param in params[_ARG_REGS:]:
            param.memory_addr = (FP_REG_NO, fp_esp)
            fp_esp += _size(param)

    def adjust_func_call_insts(self, func):
        """Insert moves passing call arguments in r0-r3 and on the stack, and the result from r0."""
        lowered: list[Any] = []
        for inst in func.insts:
            if inst.op is not IROp.FUNC_CALL:
                lowered.append(inst)
                continue

            operands = inst.operands
            for k in range(_ARG_REGS, len(operands)):
                slot = _StackArg((SP_REG_NO, (k - _ARG_REGS) * _WORD))
                lowered.append(_MoveInst([slot, operands[k]]))
                operands[k] = slot

            for k in range(min(len(operands), _ARG_REGS)):
                reg = register_value(k)
                lowered.append(_MoveInst([reg, operands[k]]))
                operands[k] = reg

            lowered.append(inst)

            if getattr(inst, "has_result_value", False) and inst.reg_id != 0:
                lowered.append(_MoveInst([inst, register_value(0)]))

        func.insts[:] = lowered

    def stack_alloc(self, func):
        """Give every value without a register or address a slot below ``fp``."""
        sp_esp = 0
        for var in func.var_values:
            if var.reg_id == -1 and getattr(var, "memory_addr", None) is None:
                sp_esp += _word_aligned(_size(var))
                var.memory_addr = (FP_REG_NO, -sp_esp)

        for inst in func.insts:
            if getattr(inst, "has_result_value", False) and inst.reg_id == -1:
                sp_esp += _word_aligned(_size(inst))
                inst.memory_addr = (FP_REG_NO, -sp_esp)

        max_args = func.max_func_call_arg_cnt
        if max_args > _ARG_REGS:
            sp_esp += (max_args - _ARG_REGS) * _WORD

        func.max_dep = sp_esp