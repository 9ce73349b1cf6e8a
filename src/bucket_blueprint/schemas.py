"""JSON schemas (Draft 7) for the configuration units."""

from __future__ import annotations

from typing import Any

from .expressions import BUCKET_PATTERN, ROOT_OUTPUT_PATTERN
from .models import BucketCategory, Encryption, LifecycleAction

IDENTIFIER_PATTERN = r"^[a-z_][a-z0-9_]*$"
BUCKET_KEY_PATTERN = r"^[a-z0-9][a-z0-9.-]*[a-z0-9]$"

_VARIABLE = {
    "type": "object",
    "properties": {
        "type": {"type": "string", "enum": ["string"]},
        "description": {"type": "string"},
        "default": {"type": ["string", "null"]},
    },
    "additionalProperties": False,
}

_LIFECYCLE_RULE = {
    "type": "object",
    "required": ["transition_after_days", "action"],
    "properties": {
        "transition_after_days": {"type": "integer", "minimum": 1},
        "action": {"type": "string", "enum": [a.value for a in LifecycleAction]},
    },
    "additionalProperties": False,
}

_CORS_RULE = {
    "type": "object",
    "properties": {
        "allowed_methods": {
            "type": "array",
            "items": {"type": "string", "enum": ["GET", "HEAD", "PUT", "POST", "DELETE"]},
        },
        "allowed_origins": {"type": "array", "items": {"type": "string"}},
        "allowed_headers": {"type": "array", "items": {"type": "string"}},
        "max_age_seconds": {"type": "integer", "minimum": 0},
    },
    "additionalProperties": False,
}

_PUBLIC_ACCESS_BLOCK = {
    "type": "object",
    "properties": {
        "block_public_acls": {"type": "boolean"},
        "block_public_policy": {"type": "boolean"},
        "ignore_public_acls": {"type": "boolean"},
        "restrict_public_buckets": {"type": "boolean"},
    },
    "additionalProperties": False,
}

_BUCKET = {
    "type": "object",
    "properties": {
        "versioning": {"type": "boolean"},
        "encryption": {"type": "string", "enum": [e.value for e in Encryption]},
        "lifecycle_rules": {"type": "array", "items": _LIFECYCLE_RULE},
        "cors_enabled": {"type": "boolean"},
        "cors_rules": {"type": "array", "items": _CORS_RULE},
        "public_access_block": _PUBLIC_ACCESS_BLOCK,
        "explicit_deny_policy": {"type": "boolean"},
        "category": {"type": "string", "enum": [c.value for c in BucketCategory]},
        "website": {"type": "boolean"},
    },
    "additionalProperties": False,
}

VARIABLES_SCHEMA: dict[str, Any] = {
    "type": "object",
    "required": ["variables"],
    "properties": {
        "variables": {
            "type": "object",
            "propertyNames": {"type": "string", "pattern": IDENTIFIER_PATTERN},
            "additionalProperties": _VARIABLE,
        },
    },
    "additionalProperties": False,
}

ROOT_DEFINITIONS_SCHEMA: dict[str, Any] = {
    "type": "object",
    "required": ["modules"],
    "properties": {
        "modules": {
            "type": "object",
            "additionalProperties": {
                "type": "object",
                "required": ["source"],
                "properties": {
                    "source": {"type": "string"},
                    "inputs": {
                        "type": "object",
                        "propertyNames": {"type": "string", "pattern": IDENTIFIER_PATTERN},
                        "additionalProperties": {"type": "string"},
                    },
                },
                "additionalProperties": False,
            },
        },
        "tags": {
            "type": "object",
            "propertyNames": {"type": "string"},
            "additionalProperties": {"type": "string"},
        },
    },
    "additionalProperties": False,
}

ROOT_OUTPUTS_SCHEMA: dict[str, Any] = {
    "type": "object",
    "required": ["outputs"],
    "properties": {
        "outputs": {
            "type": "object",
            "propertyNames": {"type": "string", "pattern": IDENTIFIER_PATTERN},
            "additionalProperties": {
                "type": "object",
                "required": ["value"],
                "properties": {
                    "value": {"type": "string", "pattern": ROOT_OUTPUT_PATTERN},
                    "description": {"type": "string"},
                },
                "additionalProperties": False,
            },
        },
    },
    "additionalProperties": False,
}

MODULE_DEFINITIONS_SCHEMA: dict[str, Any] = {
    "type": "object",
    "required": ["buckets"],
    "properties": {
        "buckets": {
            "type": "object",
            "propertyNames": {"type": "string", "pattern": BUCKET_KEY_PATTERN},
            "additionalProperties": _BUCKET,
        },
    },
    "additionalProperties": False,
}

MODULE_OUTPUTS_SCHEMA: dict[str, Any] = {
    "type": "object",
    "required": ["outputs"],
    "properties": {
        "outputs": {
            "type": "object",
            "propertyNames": {"type": "string", "pattern": IDENTIFIER_PATTERN},
            "additionalProperties": {
                "type": "object",
                "required": ["value"],
                "properties": {
                    "value": {"type": "string", "pattern": BUCKET_PATTERN},
                    "description": {"type": "string"},
                },
                "additionalProperties": False,
            },
        },
    },
    "additionalProperties": False,
}

LOCAL_PARAMETERS_SCHEMA: dict[str, Any] = {
    "type": "object",
    "propertyNames": {"type": "string", "pattern": IDENTIFIER_PATTERN},
    "additionalProperties": {"type": "string"},
}
