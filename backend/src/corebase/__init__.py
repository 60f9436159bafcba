"""Corebase: runtime-defined content types with a generic CRUD and workflow engine."""

__version__ = "0.1.0"
