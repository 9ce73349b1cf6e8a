"""Shared fixtures for unit tests."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import pytest

from bucket_blueprint.loader import ConfigurationTree
from bucket_blueprint.scaffold import canonical_documents, write_configuration_tree


@pytest.fixture
def documents() -> tuple[dict[str, Any], dict[str, dict[str, Any]]]:
    """Fresh canonical root and module documents that tests may mutate."""
    return canonical_documents()


@pytest.fixture
def build_tree():
    """Build an in-memory configuration tree from (possibly mutated) documents."""

    def _build(
        root: dict[str, Any],
        modules: dict[str, dict[str, Any]],
        local_parameters: dict[str, str] | None = None,
    ) -> ConfigurationTree:
        return ConfigurationTree.from_documents(root, modules, local_parameters)

    return _build


@pytest.fixture
def tree_dir(tmp_path: Path) -> Path:
    """Canonical configuration tree written to disk."""
    return write_configuration_tree(tmp_path / "blueprint")
