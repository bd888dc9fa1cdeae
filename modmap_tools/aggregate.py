from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable, Sequence

from .depinfo import DependencyInfo, load_dependency_info
from .registry import ModuleRegistry, load_registry, save_registry

logger = logging.getLogger(__name__)


def aggregate(
    registries: Iterable[ModuleRegistry],
    dependency_infos: Iterable[tuple[str | None, DependencyInfo]] = (),
) -> ModuleRegistry:
    """Merge registry fragments, then the modules provided by each unit.

    Inputs are applied in the order given, so when two sources disagree the
    reported conflict is the first one in argument order.
    """
    result = ModuleRegistry()

    for fragment in registries:
        result.merge(fragment)

    for origin, info in dependency_infos:
        for provided in info.all_provided:
            result.insert(provided.name, provided.bmi_path, origin=origin)

    return result


def aggregate_files(
    registry_paths: Sequence[str | Path],
    ddi_paths: Sequence[str | Path],
    output_path: str | Path,
) -> ModuleRegistry:
    # Everything is parsed and merged before the output is touched.
    fragments = [load_registry(path) for path in registry_paths]
    infos = [(str(path), load_dependency_info(path)) for path in ddi_paths]

    registry = aggregate(fragments, infos)
    save_registry(registry, output_path)

    logger.info(
        "aggregated %d registry fragment(s) and %d dependency file(s) into %d module(s)",
        len(fragments),
        len(infos),
        len(registry),
    )
    return registry
