"""Instruction selection: turn linear IR instructions into ARM32 assembly.

IR instructions and the values they use are duck typed. An instruction has:

* ``op`` -- an :class:`IROp`;
* ``operands`` -- the list of values it uses;
* ``dead`` -- optional, true when the instruction is to be skipped;
* ``name`` -- the label name for labels, the callee name for calls;
* ``target`` -- the destination label instruction of a goto;
* ``has_result_value`` -- true when the instruction itself is a value
  (binary operations and calls with a result), addressed like any value;
* ``ir_text`` -- optional text of the instruction, written as a comment when
  ``show_linear_ir`` is set.

Values carry ``reg_id`` (``-1`` when not in a register), ``memory_addr``
(``(base_reg_no, offset)`` or ``None``), a mutable ``load_reg_id`` used by the
register allocator, and optionally ``const_value``, ``is_global`` and ``name``.

The function being translated has ``protected_regs`` (register numbers to save),
a writable ``protected_reg_str`` and ``max_dep`` (bytes of stack frame).
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto
from typing import Any

from minicomp.arm32_platform import REG_NAMES, SP_REG_NO, TMP_REG_NO, register_value
from minicomp.iloc import ILocArm32
from minicomp.register_allocator import SimpleRegisterAllocator


class IROp(Enum):
    """Operators of linear IR instructions."""

    ENTRY = auto()
    EXIT = auto()
    LABEL = auto()
    GOTO = auto()
    ASSIGN = auto()
    ADD_I = auto()
    SUB_I = auto()
    MUL_I = auto()
    DIV_I = auto()
    MOD_I = auto()
    FUNC_CALL = auto()
    ARG = auto()
    MAX = auto()


@dataclass(eq=False)
class _StackSlot:
    """An outgoing argument slot addressed relative to the stack pointer."""

    memory_addr: tuple[int, int]
    name: str = ""
    reg_id: int = -1
    load_reg_id: int = -1


def _reg(value: Any) -> int:
    return getattr(value, "reg_id", -1)


class InstSelectorArm32:
    """Translates the IR instructions of one function into an :class:`ILocArm32`."""

    def __init__(
        self,
        ir: list[Any],
        iloc: ILocArm32,
        func: Any,
        allocator: SimpleRegisterAllocator,
    ):
        self.ir = ir
        self.iloc = iloc
        self.func = func
        self.allocator = allocator
        self.show_linear_ir = False
        self._real_arg_count = 0
        self._handlers = {
            IROp.ENTRY: self._translate_entry,
            IROp.EXIT: self._translate_exit,
            IROp.LABEL: self._translate_label,
            IROp.GOTO: self._translate_goto,
            IROp.ASSIGN: self._translate_assign,
            IROp.ADD_I: self._translate_add,
            IROp.SUB_I: self._translate_sub,
            IROp.MUL_I: self._translate_mul,
            IROp.DIV_I: self._translate_div,
            IROp.MOD_I: self._translate_mod,
            IROp.FUNC_CALL: self._translate_call,
            IROp.ARG: self._translate_arg,
        }

    def run(self):
        """Translate every live instruction in order."""
        for inst in self.ir:
            if not getattr(inst, "dead", False):
                self.translate(inst)

    def translate(self, inst):
        """Translate one instruction; raises ``ValueError`` for unsupported operators."""
        handler = self._handlers.get(inst.op)
        if handler is None:
            raise ValueError(f"unsupported IR operator: {inst.op}")
        if self.show_linear_ir:
            text = getattr(inst, "ir_text", "")
            if text:
                self.iloc.comment(text)
        handler(inst)

    def _translate_entry(self, inst) -> None:
        reg_str = ",".join(REG_NAMES[no] for no in self.func.protected_regs)
        self.func.protected_reg_str = reg_str
        if reg_str:
            self.iloc.inst("push", "{" + reg_str + "}")
        self.iloc.alloc_stack(self.func, TMP_REG_NO)

    def _translate_exit(self, inst) -> None:
        if inst.operands:
            self.iloc.load_var(0, inst.operands[0])
        self.iloc.inst("mov", "sp", "fp")
        reg_str = self.func.protected_reg_str
        if reg_str:
            self.iloc.inst("pop", "{" + reg_str + "}")
        self.iloc.inst("bx", "lr")

    def _translate_label(self, inst) -> None:
        self.iloc.label(inst.name)

    def _translate_goto(self, inst) -> None:
        self.iloc.jump(inst.target.name)

    def _translate_assign(self, inst) -> None:
        result, source = inst.operands[0], inst.operands[1]
        self._assign(result, source)

    def _assign(self, result: Any, source: Any) -> None:
        source_reg = _reg(source)
        result_reg = _reg(result)
        if source_reg != -1:
            self.iloc.store_var(source_reg, result, TMP_REG_NO)
        elif result_reg != -1:
            self.iloc.load_var(result_reg, source)
        else:
            temp = self.allocator.allocate()
            self.iloc.load_var(temp, source)
            self.iloc.store_var(temp, result, TMP_REG_NO)
            self.allocator.free_register(temp)

    def _load_operand(self, value: Any) -> int:
        reg = _reg(value)
        if reg != -1:
            return reg
        reg = self.allocator.allocate(value)
        self.iloc.load_var(reg, value)
        return reg

    def _result_register(self, inst: Any) -> int:
        reg = _reg(inst)
        return reg if reg != -1 else self.allocator.allocate(inst)

    def _finish(self, inst: Any, result_reg: int, *operands: Any) -> None:
        if _reg(inst) == -1:
            self.iloc.store_var(result_reg, inst, TMP_REG_NO)
        for value in operands:
            self.allocator.free(value)
        self.allocator.free(inst)

    def _binary(self, inst: Any, *opcodes: str) -> None:
        arg1, arg2 = inst.operands[0], inst.operands[1]
        reg1 = self._load_operand(arg1)
        reg2 = self._load_operand(arg2)
        result_reg = self._result_register(inst)
        self.iloc.inst(opcodes[0], REG_NAMES[result_reg], REG_NAMES[reg1], REG_NAMES[reg2])
        self._finish(inst, result_reg, arg1, arg2)

    def _translate_add(self, inst) -> None:
        self._binary(inst, "add")

    def _translate_sub(self, inst) -> None:
        if getattr(inst.operands[0], "const_value", None) == 0:
            self._translate_unary_minus(inst)
        else:
            self._binary(inst, "sub")

    def _translate_unary_minus(self, inst) -> None:
        operand = inst.operands[1]
        operand_reg = self._load_operand(operand)
        result_reg = self._result_register(inst)
        self.iloc.inst("rsb", REG_NAMES[result_reg], REG_NAMES[operand_reg], "#0")
        self._finish(inst, result_reg, operand)

    def _translate_mul(self, inst) -> None:
        self._binary(inst, "mul")

    def _translate_div(self, inst) -> None:
        self._binary(inst, "sdiv")

    def _translate_mod(self, inst) -> None:
        arg1, arg2 = inst.operands[0], inst.operands[1]
        reg1 = self._load_operand(arg1)
        reg2 = self._load_operand(arg2)
        result_reg = self._result_register(inst)
        rd, rn, rm = REG_NAMES[result_reg], REG_NAMES[reg1], REG_NAMES[reg2]
        self.iloc.inst("sdiv", rd, rn, rm)
        self.iloc.inst("mul", rd, rd, rm)
        self.iloc.inst("sub", rd, rn, rd)
        self._finish(inst, result_reg, arg1, arg2)

    def _translate_call(self, inst) -> None:
        operands = list(inst.operands)
        count = len(operands)
        if count != self._real_arg_count and self._real_arg_count != 0:
            raise ValueError(
                f"call to {inst.name!r} has {count} arguments "
                f"but {self._real_arg_count} ARG instructions precede it"
            )

        if count:
            for no in range(4):
                self.allocator.claim(no)
            for k, arg in enumerate(operands[4:]):
                self._assign(_StackSlot((SP_REG_NO, 4 * k)), arg)
            for k, arg in enumerate(operands[:4]):
                self._assign(register_value(k), arg)

        self.iloc.call_fun(inst.name)

        if count:
            for no in range(4):
                self.allocator.free_register(no)

        if getattr(inst, "has_result_value", False):
            self._assign(inst, register_value(0))

        self._real_arg_count = 0

    def _translate_arg(self, inst) -> None:
        src = inst.operands[0]
        position = self._real_arg_count + 1
        reg = _reg(src)
        if self._real_arg_count < 4:
            if reg == -1:
                raise ValueError(f"argument {position} is not in a register")
            if reg != self._real_arg_count:
                raise ValueError(f"argument {position} is in the wrong register: {reg}")
        else:
            addr = getattr(src, "memory_addr", None)
            if addr is None or addr[0] != SP_REG_NO:
                raise ValueError(f"argument {position} is not addressed through sp")
        self._real_arg_count += 1