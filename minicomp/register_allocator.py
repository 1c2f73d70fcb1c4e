"""A simple register allocator that spills the longest-held value when registers run out.

Values are duck typed: anything with a mutable integer ``load_reg_id`` attribute
(``-1`` meaning "not loaded in a register") can be given a register.
"""

from __future__ import annotations

from typing import Any

from minicomp.arm32_platform import MAX_USABLE_REG_NUM


class SimpleRegisterAllocator:
    """Hands out the general purpose registers r0-r10 to values."""

    def __init__(self):
        self._busy: set[int] = set()
        self._used: set[int] = set()
        self._holders: list[Any] = []

    @property
    def busy_registers(self) -> frozenset[int]:
        """Registers currently occupied."""
        return frozenset(self._busy)

    @property
    def used_registers(self) -> frozenset[int]:
        """Every register that has been occupied at some point."""
        return frozenset(self._used)

    @staticmethod
    def _check(no: int) -> None:
        if not 0 <= no < MAX_USABLE_REG_NUM:
            raise ValueError(f"register number out of range: {no}")

    def _occupy(self, no: int) -> None:
        self._busy.add(no)
        self._used.add(no)

    def allocate(self, var=None, no=-1):
        """Give ``var`` a register, preferring ``no``; spill the oldest holder if none is free."""
        if var is not None and var.load_reg_id != -1:
            return var.load_reg_id

        if no != -1:
            self._check(no)

        if no != -1 and no not in self._busy:
            regno = no
        else:
            regno = next((k for k in range(MAX_USABLE_REG_NUM) if k not in self._busy), -1)

        if regno != -1:
            self._occupy(regno)
        else:
            if not self._holders:
                raise RuntimeError("no register is free and no value can be spilled")
            oldest = self._holders.pop(0)
            regno = oldest.load_reg_id
            oldest.load_reg_id = -1

        if var is not None:
            var.load_reg_id = regno
            self._holders.append(var)

        return regno

    def claim(self, no):
        """Occupy register ``no``, forcing out whichever value holds it."""
        self._check(no)
        if no in self._busy:
            self.free_register(no)
        self._occupy(no)

    def free(self, var):
        """Release the register loaded for ``var``, if any."""
        if var is None or var.load_reg_id == -1:
            return
        self._busy.discard(var.load_reg_id)
        if var in self._holders:
            self._holders.remove(var)
        var.load_reg_id = -1

    def free_register(self, no):
        """Release register ``no`` and detach the value that held it."""
        if no == -1:
            return
        self._busy.discard(no)
        holder = next((val for val in self._holders if val.load_reg_id == no), None)
        if holder is not None:
            holder.load_reg_id = -1
            self._holders.remove(holder)