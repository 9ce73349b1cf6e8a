"""The canonical ten-bucket configuration tree."""

from __future__ import annotations

import copy
import logging
from pathlib import Path
from typing import Any

import yaml

from .constants import (
    LOCAL_PARAMETERS_FILENAME,
    MODULE_ANALYTICS,
    MODULE_APPLICATION,
    MODULE_NAMES,
    MODULE_STORAGE,
    MODULES_DIRNAME,
    UNIT_DEFINITIONS,
    UNIT_FILENAMES,
    UNIT_OUTPUTS,
    UNIT_PARAMETERS,
)
from .loader import ConfigurationTree

logger = logging.getLogger(__name__)

_BLOCKED = {
    "block_public_acls": True,
    "block_public_policy": True,
    "ignore_public_acls": True,
    "restrict_public_buckets": True,
}


def _bucket(**settings: Any) -> dict[str, Any]:
    bucket = {
        "versioning": True,
        "encryption": "AES256",
        "lifecycle_rules": [],
        "cors_enabled": False,
        "public_access_block": dict(_BLOCKED),
        "explicit_deny_policy": True,
    }
    bucket.update(settings)
    return bucket


def _rules(*pairs: tuple[int, str]) -> list[dict[str, Any]]:
    return [{"transition_after_days": days, "action": action} for days, action in pairs]


_MODULE_BUCKETS: dict[str, dict[str, Any]] = {
    MODULE_STORAGE: {
        "data-lake": _bucket(lifecycle_rules=_rules((30, "STANDARD_IA"), (90, "GLACIER"))),
        "backup-storage": _bucket(lifecycle_rules=_rules((30, "GLACIER"), (180, "DEEP_ARCHIVE"))),
        "archive-storage": _bucket(encryption="aws:kms", lifecycle_rules=_rules((1, "DEEP_ARCHIVE"))),
        "temp-storage": _bucket(versioning=False, category="temporary", lifecycle_rules=_rules((7, "EXPIRE"))),
    },
    MODULE_APPLICATION: {
        "web-assets": _bucket(
            cors_enabled=True,
            cors_rules=[{"allowed_methods": ["GET", "HEAD"], "allowed_origins": ["*"], "max_age_seconds": 3000}],
            website=True,
        ),
        "user-uploads": _bucket(
            cors_enabled=True,
            cors_rules=[{"allowed_methods": ["GET", "PUT", "POST"], "allowed_origins": ["*"]}],
            lifecycle_rules=_rules((90, "STANDARD_IA")),
        ),
        "config-files": _bucket(),
    },
    MODULE_ANALYTICS: {
        "raw-logs": _bucket(
            versioning=False,
            lifecycle_rules=_rules((30, "STANDARD_IA"), (90, "GLACIER"), (365, "EXPIRE")),
        ),
        "processed-data": _bucket(lifecycle_rules=_rules((60, "STANDARD_IA"), (180, "GLACIER"))),
        "reports": _bucket(lifecycle_rules=_rules((90, "STANDARD_IA"))),
    },
}

_MODULE_VARIABLES = {
    "variables": {
        "region": {"type": "string", "description": "Region the buckets are created in"},
        "environment": {"type": "string", "description": "Environment name used in bucket names and tags"},
        "project_name": {"type": "string", "description": "Project name used as bucket name prefix"},
    }
}

_ROOT_VARIABLES = {
    "variables": {
        "region": {"type": "string", "description": "Region for all buckets", "default": "us-east-1"},
        "environment": {"type": "string", "description": "Environment name", "default": "dev"},
        "project_name": {"type": "string", "description": "Project name", "default": "data-platform"},
    }
}


def _module_outputs(name: str) -> dict[str, Any]:
    outputs = {
        "bucket_names": {"value": "buckets.*.id", "description": f"Names of the {name} buckets"},
        "bucket_arns": {"value": "buckets.*.arn", "description": f"ARNs of the {name} buckets"},
        "bucket_domain_names": {
            "value": "buckets.*.bucket_regional_domain_name",
            "description": f"Regional domain names of the {name} buckets",
        },
    }
    if name == MODULE_APPLICATION:
        outputs["website_endpoint"] = {
            "value": "buckets.web-assets.website_endpoint",
            "description": "Website endpoint of the static asset bucket",
        }
    return {"outputs": outputs}


def _root_definitions() -> dict[str, Any]:
    return {
        "modules": {
            name: {
                "source": f"./{MODULES_DIRNAME}/{name}",
                "inputs": {
                    "region": "var.region",
                    "environment": "var.environment",
                    "project_name": "var.project_name",
                },
            }
            for name in MODULE_NAMES
        },
        "tags": {"Owner": "platform-team", "CostCenter": "infrastructure"},
    }


def _root_outputs() -> dict[str, Any]:
    outputs: dict[str, Any] = {}
    for name in MODULE_NAMES:
        outputs[f"{name}_bucket_names"] = {"value": f"module.{name}.bucket_names"}
        outputs[f"{name}_bucket_arns"] = {"value": f"module.{name}.bucket_arns"}
        outputs[f"{name}_bucket_domain_names"] = {"value": f"module.{name}.bucket_domain_names"}
    outputs["website_endpoint"] = {"value": f"module.{MODULE_APPLICATION}.website_endpoint"}
    outputs["bucket_summary"] = {"value": "summary.bucket_counts"}
    return {"outputs": outputs}


def canonical_documents() -> tuple[dict[str, Any], dict[str, dict[str, Any]]]:
    """Return fresh copies of the canonical root and module documents keyed by unit kind."""
    root = {
        UNIT_DEFINITIONS: _root_definitions(),
        UNIT_PARAMETERS: copy.deepcopy(_ROOT_VARIABLES),
        UNIT_OUTPUTS: _root_outputs(),
    }
    modules = {
        name: {
            UNIT_DEFINITIONS: {"buckets": copy.deepcopy(_MODULE_BUCKETS[name])},
            UNIT_PARAMETERS: copy.deepcopy(_MODULE_VARIABLES),
            UNIT_OUTPUTS: _module_outputs(name),
        }
        for name in MODULE_NAMES
    }
    return root, modules


def canonical_configuration(local_parameters: dict[str, str] | None = None) -> ConfigurationTree:
    """Build the canonical configuration tree in memory."""
    root, modules = canonical_documents()
    return ConfigurationTree.from_documents(root, modules, local_parameters)


def _write(path: Path, document: Any) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(yaml.safe_dump(document, sort_keys=False, default_flow_style=False), encoding="utf-8")


def write_configuration_tree(
    root_dir: str | Path,
    local_parameters: dict[str, str] | None = None,
) -> Path:
    """Write the canonical configuration tree under ``root_dir``.

    An example override file is always written; the real
    ``parameters.local.yaml`` only when ``local_parameters`` is given.
    """
    root_path = Path(root_dir)
    root, modules = canonical_documents()

    for kind, document in root.items():
        _write(root_path / UNIT_FILENAMES[kind], document)
    for name, units in modules.items():
        for kind, document in units.items():
            _write(root_path / MODULES_DIRNAME / name / UNIT_FILENAMES[kind], document)

    example = {param: spec["default"] for param, spec in _ROOT_VARIABLES["variables"].items()}
    _write(root_path / f"{LOCAL_PARAMETERS_FILENAME}.example", example)
    if local_parameters is not None:
        _write(root_path / LOCAL_PARAMETERS_FILENAME, local_parameters)

    logger.info(f"Wrote configuration tree to {root_path}")
    return root_path
