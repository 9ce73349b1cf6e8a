"""Reference expressions used by module inputs and output declarations.

Three forms exist:

- ``var.<name>`` in root module inputs
- ``buckets.<key|*>.<attribute>`` in module outputs
- ``module.<module>.<output>`` or ``summary.bucket_counts`` in root outputs
"""

from __future__ import annotations

import re
from dataclasses import dataclass

VAR_PATTERN = r"^var\.[a-z_][a-z0-9_]*$"
BUCKET_PATTERN = r"^buckets\.(\*|[a-z0-9][a-z0-9.-]*)\.[a-z_]+$"
MODULE_PATTERN = r"^module\.[a-z_]+\.[a-z0-9_]+$"
ROOT_OUTPUT_PATTERN = rf"({MODULE_PATTERN})|(^summary\.bucket_counts$)"

_VAR_RE = re.compile(r"^var\.(?P<name>[a-z_][a-z0-9_]*)$")
_BUCKET_RE = re.compile(r"^buckets\.(?P<key>\*|[a-z0-9][a-z0-9.-]*)\.(?P<attribute>[a-z_]+)$")
_MODULE_RE = re.compile(r"^module\.(?P<module>[a-z_]+)\.(?P<output>[a-z0-9_]+)$")

WILDCARD = "*"


@dataclass(frozen=True)
class BucketRef:
    key: str
    attribute: str

    @property
    def is_wildcard(self) -> bool:
        return self.key == WILDCARD


@dataclass(frozen=True)
class ModuleRef:
    module: str
    output: str


def parse_var_ref(expression: str) -> str | None:
    """Return the variable name of a ``var.`` reference, or None for a literal."""
    match = _VAR_RE.match(expression)
    return match.group("name") if match else None


def parse_bucket_ref(expression: str) -> BucketRef | None:
    match = _BUCKET_RE.match(expression)
    if not match:
        return None
    return BucketRef(key=match.group("key"), attribute=match.group("attribute"))


def parse_module_ref(expression: str) -> ModuleRef | None:
    match = _MODULE_RE.match(expression)
    if not match:
        return None
    return ModuleRef(module=match.group("module"), output=match.group("output"))
