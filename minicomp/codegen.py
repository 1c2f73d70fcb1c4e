"""Common code generator driver and the assembly generator skeleton.

The module handed to a generator is duck typed: it has a ``functions`` iterable
whose items carry an ``is_builtin`` flag.
"""

from __future__ import annotations

import sys
from abc import ABC, abstractmethod
from typing import Any, TextIO


class CodeGenerator(ABC):
    """Produces output for one compilation module."""

    def __init__(self, module: Any):
        self.module = module
        self.out: TextIO | None = None
        self.show_linear_ir = False

    def run(self, out_file_name=""):
        """Generate into ``out_file_name``, or standard output when it is empty.

        Raises ``OSError`` when the file cannot be created.
        """
        if not out_file_name:
            self.out = sys.stdout
            try:
                return self.generate()
            finally:
                self.out = None
        with open(out_file_name, "w", encoding="utf-8") as handle:
            self.out = handle
            try:
                return self.generate()
            finally:
                self.out = None

    @abstractmethod
    def generate(self):
        """Write the output to ``self.out``; return whether it succeeded."""


class CodeGeneratorAsm(CodeGenerator):
    """Assembly generator: header, data section, then code for each function."""

    def __init__(self, module: Any):
        super().__init__(module)
        self.label_index = 0

    @abstractmethod
    def gen_header(self):
        """Write the assembly header."""

    @abstractmethod
    def gen_data_section(self):
        """Write initialised and uninitialised global variables."""

    @abstractmethod
    def gen_function(self, func):
        """Write the instructions of ``func`` into the text section."""

    @abstractmethod
    def register_allocation(self, func):
        """Assign registers and stack slots for ``func``."""

    def gen_code_section(self):
        """Write every non-builtin function; label numbering restarts per file."""
        self.label_index = 0
        for func in self.module.functions:
            if not func.is_builtin:
                self.gen_function(func)

    def generate(self):
        self.gen_header()
        self.gen_data_section()
        self.gen_code_section()
        return True