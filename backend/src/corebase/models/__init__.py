"""Model synthesizer - compiled storage models and their registry."""

from corebase.models.compiler import (
    SYSTEM_FIELDS,
    CompiledField,
    CompiledModel,
    compile_field,
    compile_model,
)
from corebase.models.registry import ModelRegistry

__all__ = [
    "SYSTEM_FIELDS",
    "CompiledField",
    "CompiledModel",
    "ModelRegistry",
    "compile_field",
    "compile_model",
]
