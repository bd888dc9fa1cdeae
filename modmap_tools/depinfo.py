"""Per-translation-unit module dependency facts.

Two on-disk shapes are understood: the flat form

    {"provides": {"logical-name": ..., "source-path": ...},
     "requires": [{"logical-name": ..., "kind": "module"}]}

and the P1689 form written by compiler dependency scanners, where the unit is
described by the first entry of ``rules``.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from .errors import MalformedInputError
from .fileio import read_json
from .registry import default_bmi_path, is_partition

logger = logging.getLogger(__name__)

HEADER_LOOKUP_METHODS = {"include-angle", "include-quote"}


class DependencyKind(enum.Enum):
    MODULE = "module"
    PARTITION = "partition"
    HEADER_UNIT = "header-unit"


@dataclass(frozen=True)
class ProvidedModule:
    name: str
    bmi_path: str
    source_path: str | None = None
    is_interface: bool = True


@dataclass(frozen=True)
class RequiredDependency:
    name: str
    kind: DependencyKind


@dataclass(frozen=True)
class DependencyInfo:
    provided: ProvidedModule | None
    required: tuple[RequiredDependency, ...]
    # Modules provided by every rule of a multi-rule scan, ``provided`` included.
    all_provided: tuple[ProvidedModule, ...] = ()

    def __post_init__(self) -> None:
        if self.provided is not None and not self.all_provided:
            object.__setattr__(self, "all_provided", (self.provided,))

    @classmethod
    def parse(cls, raw: Any, source: str | None = None) -> DependencyInfo:
        if not isinstance(raw, dict):
            raise MalformedInputError("dependency info must be a JSON object", source=source)

        if "rules" in raw:
            return _parse_p1689(raw, source)

        if "requires" not in raw:
            raise MalformedInputError("dependency info has no 'requires' list", source=source)

        provided = None
        if raw.get("provides") is not None:
            provided = _parse_provides(raw["provides"], None, source)

        return cls(provided=provided, required=_parse_requires(raw["requires"], source))


def load_dependency_info(path: str | Path) -> DependencyInfo:
    info = DependencyInfo.parse(read_json(path), source=str(path))
    logger.debug(
        "parsed %s: provides=%s, %d requirement(s)",
        path,
        info.provided.name if info.provided else None,
        len(info.required),
    )
    return info


def _parse_p1689(raw: dict[str, Any], source: str | None) -> DependencyInfo:
    rules = raw["rules"]
    if not isinstance(rules, list):
        raise MalformedInputError("'rules' must be a list", source=source)
    if not rules:
        return DependencyInfo(provided=None, required=())

    # The first rule describes the unit; every rule contributes its provided module.
    rule_provides = [_parse_rule_provides(rule, source) for rule in rules]
    all_provided = tuple(provided for provided in rule_provides if provided is not None)
    if len(rules) > 1:
        logger.debug("%s: %d rules, %d provided module(s)", source, len(rules), len(all_provided))

    return DependencyInfo(
        provided=rule_provides[0],
        required=_parse_requires(rules[0].get("requires", []), source),
        all_provided=all_provided,
    )


def _parse_rule_provides(rule: Any, source: str | None) -> ProvidedModule | None:
    if not isinstance(rule, dict):
        raise MalformedInputError("each rule must be a JSON object", source=source)

    primary_output = rule.get("primary-output")
    if primary_output is not None and not isinstance(primary_output, str):
        raise MalformedInputError("'primary-output' must be a string", source=source)

    provides = rule.get("provides", [])
    if not isinstance(provides, list):
        raise MalformedInputError("'provides' must be a list", source=source)
    if len(provides) > 1:
        names = ", ".join(str(p.get("logical-name")) for p in provides if isinstance(p, dict))
        raise MalformedInputError(
            f"a translation unit provides at most one module, found: {names}",
            source=source,
        )

    return _parse_provides(provides[0], primary_output, source) if provides else None


def _parse_provides(
    raw: Any, primary_output: str | None, source: str | None
) -> ProvidedModule:
    if not isinstance(raw, dict):
        raise MalformedInputError("'provides' must be a JSON object", source=source)

    name = _required_str(raw, "logical-name", "provides", source)
    source_path = _optional_str(raw, "source-path", "provides", source)
    bmi_path = (
        _optional_str(raw, "compiled-module-path", "provides", source)
        or primary_output
        or default_bmi_path(name)
    )

    is_interface = raw.get("is-interface", True)
    if not isinstance(is_interface, bool):
        raise MalformedInputError("'is-interface' must be a boolean", source=source)

    return ProvidedModule(
        name=name,
        bmi_path=bmi_path,
        source_path=source_path,
        is_interface=is_interface,
    )


def _parse_requires(raw: Any, source: str | None) -> tuple[RequiredDependency, ...]:
    if not isinstance(raw, list):
        raise MalformedInputError("'requires' must be a list", source=source)

    seen: set[str] = set()
    required: list[RequiredDependency] = []
    for item in raw:
        if not isinstance(item, dict):
            raise MalformedInputError("each 'requires' entry must be a JSON object", source=source)

        dependency = _parse_requirement(item, source)
        if dependency.name in seen:
            continue
        seen.add(dependency.name)
        required.append(dependency)

    return tuple(required)


def _parse_requirement(item: dict[str, Any], source: str | None) -> RequiredDependency:
    name = _required_str(item, "logical-name", "requires", source)
    kind_raw = item.get("kind")

    if kind_raw is not None:
        try:
            kind = DependencyKind(kind_raw)
        except ValueError:
            raise MalformedInputError(
                f"unknown dependency kind {kind_raw!r} for '{name}'", source=source
            ) from None
    elif item.get("lookup-method") in HEADER_LOOKUP_METHODS:
        kind = DependencyKind.HEADER_UNIT
        name = _optional_str(item, "source-path", "requires", source) or name
    elif is_partition(name):
        kind = DependencyKind.PARTITION
    else:
        kind = DependencyKind.MODULE

    return RequiredDependency(name=name, kind=kind)


def _required_str(raw: dict[str, Any], key: str, where: str, source: str | None) -> str:
    value = raw.get(key)
    if not isinstance(value, str) or not value:
        raise MalformedInputError(f"'{where}' entry needs a non-empty string '{key}'", source=source)
    return value


def _optional_str(raw: dict[str, Any], key: str, where: str, source: str | None) -> str | None:
    value = raw.get(key)
    if value is None:
        return None
    if not isinstance(value, str):
        raise MalformedInputError(f"'{key}' in '{where}' must be a string", source=source)
    return value
