"""
Domain models — Pydantic types for plopctl.

All models are re-exported here for convenient access:

    from plopctl.core.models import GeneratorConfig, GeneratorSummary, RunResult
"""

from plopctl.core.models.action import Action, FailureKind, Receipt
from plopctl.core.models.generator import (
    CacheEntry,
    GeneratorConfig,
    GeneratorDescription,
    GeneratorSummary,
    ModuleKind,
    PromptSpec,
    RunResult,
)

__all__ = [
    # action.py
    "Action",
    "FailureKind",
    "Receipt",
    # generator.py
    "CacheEntry",
    "GeneratorConfig",
    "GeneratorDescription",
    "GeneratorSummary",
    "ModuleKind",
    "PromptSpec",
    "RunResult",
]
