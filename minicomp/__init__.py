"""Syntax trees with DOT output, and ARM32 instruction selection and assembly generation for a small C subset."""

__version__ = "1.0.1"