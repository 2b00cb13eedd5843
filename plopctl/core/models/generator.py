"""
Generator models — what the engine reports about a project's plopfile.

These mirror the JSON the bundled engine scripts print on stdout
(see ``plopctl/core/data/scripts``).  Everything here is plain data:
the parser builds these, the cache stores them, hosts render them.
"""

from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class ModuleKind(str, Enum):
    """How the plopfile must be loaded by Node.

    The values are the tokens passed on the engine script command line.
    """

    COMMONJS = "cjs"
    ESM = "esm"


class GeneratorConfig(BaseModel):
    """A resolved plopfile and how to load it."""

    model_config = ConfigDict(frozen=True)

    path: Path
    module_kind: ModuleKind = ModuleKind.COMMONJS
    is_source_dialect: bool = False


class GeneratorSummary(BaseModel):
    """Name and description of one generator (menu entry)."""

    model_config = ConfigDict(frozen=True)

    name: str
    description: str = ""


class PromptSpec(BaseModel):
    """One Inquirer-style question a generator asks.

    ``type`` is passed through untouched; hosts fall back to plain
    text input for types they don't know.
    """

    type: str = "input"
    name: str | None = None
    message: str | None = None
    default: Any = None
    choices: Any = None

    @property
    def display_label(self) -> str:
        return self.message or self.name or self.type


class GeneratorDescription(BaseModel):
    """A generator plus its prompts, in presentation order."""

    name: str = ""
    description: str = ""
    prompts: list[PromptSpec] = Field(default_factory=list)

    @classmethod
    def empty(cls, name: str = "") -> GeneratorDescription:
        return cls(name=name)

    def prompt_names(self) -> list[str]:
        return [p.name for p in self.prompts if p.name]


class RunResult(BaseModel):
    """Outcome of running a generator."""

    success: bool = False
    message: str = ""
    changed_paths: list[str] = Field(default_factory=list)


class CacheEntry(BaseModel):
    """Per-root cache state.

    Frozen: the cache service swaps whole entries, never mutates one,
    so readers always see a consistent snapshot.
    """

    model_config = ConfigDict(frozen=True)

    generators: tuple[GeneratorSummary, ...] = ()
    initialized: bool = False
    refresh_in_flight: bool = False

    @property
    def state(self) -> str:
        """``empty`` | ``refreshing`` | ``populated``."""
        if self.refresh_in_flight:
            return "refreshing"
        if self.initialized:
            return "populated"
        return "empty"
