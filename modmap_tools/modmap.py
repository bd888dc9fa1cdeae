"""Render the per-unit module mapping file for a specific compiler."""

from __future__ import annotations

import dataclasses
import enum
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, List, Optional, Sequence

from .depinfo import DependencyInfo, DependencyKind, ProvidedModule, load_dependency_info
from .errors import UnresolvedDependencyError, UnsupportedCompilerError
from .fileio import write_text_atomic
from .registry import ModuleRegistry, is_partition, load_registry

logger = logging.getLogger(__name__)


class Compiler(enum.Enum):
    CLANG = "clang"
    GCC = "gcc"
    MSVC = "msvc"

    @classmethod
    def parse(cls, value: str) -> Compiler:
        try:
            return cls(value.strip().lower())
        except ValueError:
            raise UnsupportedCompilerError(value) from None


@dataclass(frozen=True)
class ResolvedDependency:
    name: str
    kind: DependencyKind
    bmi_path: str


def resolve(info: DependencyInfo, registry: ModuleRegistry) -> list[ResolvedDependency]:
    resolved: list[ResolvedDependency] = []
    for dependency in info.required:
        path = registry.lookup(dependency.name)
        if path is None:
            raise UnresolvedDependencyError(dependency.name, dependency.kind.value)
        resolved.append(ResolvedDependency(dependency.name, dependency.kind, path))
    return resolved


def encode_clang(resolved: Sequence[ResolvedDependency], provided: ProvidedModule | None) -> list[str]:
    lines: list[str] = []
    if provided is not None:
        lines.append("-x c++-module")
        lines.append(f"-fmodule-output={provided.bmi_path}")

    for dep in resolved:
        if dep.kind is DependencyKind.HEADER_UNIT:
            # Header units carry no module name; clang identifies them by BMI alone.
            lines.append(f"-fmodule-file={dep.bmi_path}")
        else:
            lines.append(f"-fmodule-file={dep.name}={dep.bmi_path}")
    return lines


def encode_gcc(resolved: Sequence[ResolvedDependency], provided: ProvidedModule | None) -> list[str]:
    lines = [f"{dep.name} {dep.bmi_path}" for dep in resolved]
    if provided is not None:
        lines.append(f"{provided.name} {provided.bmi_path}")
    return lines


def encode_msvc(resolved: Sequence[ResolvedDependency], provided: ProvidedModule | None) -> list[str]:
    lines: list[str] = []
    if provided is not None:
        if is_partition(provided.name) and not provided.is_interface:
            lines.append("/internalPartition")
        else:
            lines.append("/interface")
        lines.append(f"/ifcOutput {provided.bmi_path}")

    for dep in resolved:
        if dep.kind is DependencyKind.HEADER_UNIT:
            lines.append(f"/headerUnit {dep.name}={dep.bmi_path}")
        else:
            lines.append(f"/reference {dep.name}={dep.bmi_path}")
    return lines


Encoder = Callable[[Sequence[ResolvedDependency], Optional[ProvidedModule]], List[str]]

ENCODERS: dict[Compiler, Encoder] = {
    Compiler.CLANG: encode_clang,
    Compiler.GCC: encode_gcc,
    Compiler.MSVC: encode_msvc,
}


def render(lines: Sequence[str]) -> str:
    return "".join(f"{line}\n" for line in lines)


def generate_modmap(
    compiler: Compiler,
    registry: ModuleRegistry,
    info: DependencyInfo,
    bmi_output: str | None = None,
) -> str:
    resolved = resolve(info, registry)

    provided = info.provided
    if provided is not None and bmi_output:
        provided = dataclasses.replace(provided, bmi_path=bmi_output)

    lines = ENCODERS[compiler](resolved, provided)
    logger.debug("rendered %d %s directive(s)", len(lines), compiler.value)
    return render(lines)


def generate_modmap_file(
    compiler: Compiler | str,
    registry_path: str | Path,
    ddi_path: str | Path,
    output_path: str | Path,
    bmi_output: str | None = None,
) -> str:
    if not isinstance(compiler, Compiler):
        compiler = Compiler.parse(compiler)

    registry = load_registry(registry_path)
    info = load_dependency_info(ddi_path)
    text = generate_modmap(compiler, registry, info, bmi_output=bmi_output)
    write_text_atomic(output_path, text)

    logger.info("wrote %s modmap for %s to %s", compiler.value, ddi_path, output_path)
    return text
