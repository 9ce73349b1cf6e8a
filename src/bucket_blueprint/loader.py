"""Loading configuration trees from disk or from in-memory documents."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping

import yaml

from .constants import (
    LOCAL_PARAMETERS_FILENAME,
    MODULE_NAMES,
    MODULES_DIRNAME,
    SCOPE_ROOT,
    UNIT_DEFINITIONS,
    UNIT_FILENAMES,
    UNIT_KINDS,
    UNIT_OUTPUTS,
    UNIT_PARAMETERS,
)
from .errors import ConfigurationMissing

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class UnitSet:
    """Raw text of the three units of the root or of one module.

    A unit whose text is None does not exist.
    """

    scope: str
    location: str
    definitions: str | None = None
    parameters: str | None = None
    outputs: str | None = None

    def text(self, kind: str) -> str | None:
        return {
            UNIT_DEFINITIONS: self.definitions,
            UNIT_PARAMETERS: self.parameters,
            UNIT_OUTPUTS: self.outputs,
        }[kind]

    def path(self, kind: str) -> str:
        return f"{self.location}/{UNIT_FILENAMES[kind]}" if self.location else UNIT_FILENAMES[kind]

    def missing(self) -> tuple[str, ...]:
        return tuple(kind for kind in UNIT_KINDS if self.text(kind) is None)


@dataclass(frozen=True)
class ConfigurationTree:
    """Snapshot of a configuration tree: the root units, module units and local overrides."""

    root: UnitSet
    modules: Mapping[str, UnitSet] = field(default_factory=dict)
    local_parameters: str | None = None
    source: str = "<memory>"

    @classmethod
    def from_documents(
        cls,
        root: Mapping[str, Any | None],
        modules: Mapping[str, Mapping[str, Any | None]],
        local_parameters: Mapping[str, str] | None = None,
    ) -> ConfigurationTree:
        """Build a tree from parsed documents keyed by unit kind.

        A kind that is absent or maps to None produces a missing unit.
        """
        return cls(
            root=_unit_set_from_documents(SCOPE_ROOT, "", root),
            modules={
                name: _unit_set_from_documents(name, f"{MODULES_DIRNAME}/{name}", docs)
                for name, docs in modules.items()
            },
            local_parameters=_dump(local_parameters) if local_parameters is not None else None,
        )


def _dump(document: Any) -> str:
    return yaml.safe_dump(document, sort_keys=False, default_flow_style=False)


def _unit_set_from_documents(scope: str, location: str, documents: Mapping[str, Any | None]) -> UnitSet:
    texts = {
        kind: _dump(documents[kind]) if documents.get(kind) is not None else None
        for kind in UNIT_KINDS
    }
    return UnitSet(scope=scope, location=location, **texts)


def _read_unit_set(scope: str, directory: Path, location: str) -> UnitSet:
    texts: dict[str, str | None] = {}
    for kind in UNIT_KINDS:
        path = directory / UNIT_FILENAMES[kind]
        texts[kind] = path.read_text(encoding="utf-8") if path.is_file() else None
    return UnitSet(scope=scope, location=location, **texts)


def load_configuration(path: str | Path) -> ConfigurationTree:
    """Read the configuration tree rooted at ``path``.

    Missing unit files are recorded as missing units rather than raised, so
    the validator can report them per unit.

    Raises:
        ConfigurationMissing: if ``path`` is not a directory
    """
    root_dir = Path(path)
    if not root_dir.is_dir():
        raise ConfigurationMissing(SCOPE_ROOT, f"configuration directory not found: {root_dir}")

    modules = {}
    for name in MODULE_NAMES:
        module_dir = root_dir / MODULES_DIRNAME / name
        if not module_dir.is_dir():
            logger.debug(f"Module directory not found: {module_dir}")
        modules[name] = _read_unit_set(name, module_dir, f"{MODULES_DIRNAME}/{name}")

    local_path = root_dir / LOCAL_PARAMETERS_FILENAME
    local_parameters = local_path.read_text(encoding="utf-8") if local_path.is_file() else None

    return ConfigurationTree(
        root=_read_unit_set(SCOPE_ROOT, root_dir, ""),
        modules=modules,
        local_parameters=local_parameters,
        source=str(root_dir),
    )
