"""modmap-tools: C++20 module registry aggregation and compiler modmap generation."""

from .aggregate import aggregate, aggregate_files
from .depinfo import DependencyInfo, DependencyKind, ProvidedModule, RequiredDependency
from .errors import (
    ConflictError,
    MalformedInputError,
    ModmapError,
    ModmapIOError,
    UnresolvedDependencyError,
    UnsupportedCompilerError,
)
from .modmap import Compiler, generate_modmap, generate_modmap_file
from .registry import ModuleRegistry, ModuleRegistryEntry

__all__ = [
    "Compiler",
    "ConflictError",
    "DependencyInfo",
    "DependencyKind",
    "MalformedInputError",
    "ModmapError",
    "ModmapIOError",
    "ModuleRegistry",
    "ModuleRegistryEntry",
    "ProvidedModule",
    "RequiredDependency",
    "UnresolvedDependencyError",
    "UnsupportedCompilerError",
    "aggregate",
    "aggregate_files",
    "generate_modmap",
    "generate_modmap_file",
]
