from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Iterator

from .errors import ConflictError, MalformedInputError
from .fileio import read_json, write_text_atomic

logger = logging.getLogger(__name__)

PARTITION_SEPARATOR = ":"
DEFAULT_BMI_SUFFIX = ".bmi"

# CMake module info tables and the field holding the BMI path in each.
CMAKE_TABLES = {"modules": "bmi", "references": "path"}


def is_partition(name: str) -> bool:
    return PARTITION_SEPARATOR in name


def split_partition(name: str) -> tuple[str, str | None]:
    """Split ``Name:Partition`` into its owning module and partition name."""
    module, sep, partition = name.partition(PARTITION_SEPARATOR)
    if not sep:
        return name, None
    return module, partition


def default_bmi_path(name: str) -> str:
    # File systems on Windows reject ':' in file names.
    return name.replace(PARTITION_SEPARATOR, "-") + DEFAULT_BMI_SUFFIX


@dataclass(frozen=True)
class ModuleRegistryEntry:
    name: str
    bmi_path: str
    origin: str | None = None


class ModuleRegistry:
    """Logical module name to BMI path mapping.

    A name maps to at most one path. Inserting the same pair again is a
    no-op; inserting a different path for a known name raises
    ``ConflictError``. Paths are compared textually.
    """

    def __init__(self) -> None:
        self._entries: dict[str, ModuleRegistryEntry] = {}

    def insert(self, name: str, path: str, origin: str | None = None) -> None:
        existing = self._entries.get(name)
        if existing is not None:
            if existing.bmi_path != path:
                raise ConflictError(
                    name,
                    existing.bmi_path,
                    path,
                    existing_origin=existing.origin,
                    new_origin=origin,
                )
            return

        self._entries[name] = ModuleRegistryEntry(name=name, bmi_path=path, origin=origin)
        logger.debug("registered %s -> %s", name, path)

    def lookup(self, name: str) -> str | None:
        entry = self._entries.get(name)
        return entry.bmi_path if entry else None

    def merge(self, other: ModuleRegistry) -> None:
        for entry in other:
            self.insert(entry.name, entry.bmi_path, origin=entry.origin)

    def partitions(self, module: str) -> list[str]:
        return sorted(
            name
            for name in self._entries
            if is_partition(name) and split_partition(name)[0] == module
        )

    def __contains__(self, name: object) -> bool:
        return name in self._entries

    def __iter__(self) -> Iterator[ModuleRegistryEntry]:
        return iter(list(self._entries.values()))

    def __len__(self) -> int:
        return len(self._entries)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ModuleRegistry):
            return NotImplemented
        return self.to_dict() == other.to_dict()

    def __repr__(self) -> str:
        return f"ModuleRegistry({self.to_dict()!r})"

    def to_dict(self) -> dict[str, str]:
        return {name: self._entries[name].bmi_path for name in sorted(self._entries)}

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), indent=2) + "\n"

    @classmethod
    def from_dict(cls, payload: Any, origin: str | None = None) -> ModuleRegistry:
        if not isinstance(payload, dict):
            raise MalformedInputError("module registry must be a JSON object", source=origin)

        if _is_cmake_modules_info(payload):
            pairs = _flatten_cmake_modules(payload, origin)
        else:
            pairs = list(payload.items())

        registry = cls()
        for name, path in pairs:
            if not isinstance(path, str) or not path:
                raise MalformedInputError(
                    f"BMI path for module '{name}' must be a non-empty string",
                    source=origin,
                )
            registry.insert(name, path, origin=origin)
        return registry


def load_registry(path: str | Path) -> ModuleRegistry:
    return ModuleRegistry.from_dict(read_json(path), origin=str(path))


def save_registry(registry: ModuleRegistry, path: str | Path) -> None:
    write_text_atomic(path, registry.to_json())


def _is_cmake_modules_info(payload: dict[str, Any]) -> bool:
    tables = [payload.get(key) for key in CMAKE_TABLES if key in payload]
    return bool(tables) and all(
        isinstance(table, dict) and all(isinstance(value, dict) for value in table.values())
        for table in tables
    )


def _flatten_cmake_modules(
    payload: dict[str, Any], origin: str | None
) -> list[tuple[str, Any]]:
    pairs: list[tuple[str, Any]] = []
    for table, field in CMAKE_TABLES.items():
        for name, entry in payload.get(table, {}).items():
            if field not in entry:
                raise MalformedInputError(
                    f"'{table}' entry '{name}' has no '{field}' field", source=origin
                )
            pairs.append((name, entry[field]))
    return pairs
