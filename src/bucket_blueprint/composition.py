"""Root composition: the three modules instantiated with environment parameters."""

from __future__ import annotations

import re
from collections import Counter
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Mapping, Sequence

from .constants import (
    EXPECTED_TOTAL_BUCKETS,
    MODULE_NAMES,
    PARAMETER_NAMES,
    SCOPE_COMPOSITION,
    SCOPE_ROOT,
    SUMMARY_BUCKET_COUNTS,
    UNIT_DEFINITIONS,
    UNIT_KINDS,
    UNIT_OUTPUTS,
    UNIT_PARAMETERS,
)
from .errors import ConfigurationMissing, DanglingReference
from .expressions import parse_module_ref, parse_var_ref
from .models import Parameters, Severity, Violation, ViolationKind
from .module import Module

# S3 bucket naming rules
BUCKET_NAME_RE = re.compile(r"^[a-z0-9][a-z0-9.-]{1,61}[a-z0-9]$")


def is_valid_bucket_name(name: str) -> bool:
    return bool(BUCKET_NAME_RE.match(name)) and ".." not in name


@dataclass(frozen=True)
class RenderedGraph:
    """Fully expanded resource graph of the composition."""

    parameters: Parameters
    resources: dict[str, dict[str, Any]] = field(default_factory=dict)
    outputs: dict[str, Any] = field(default_factory=dict)

    def bucket_names(self) -> list[str]:
        return [
            attrs["bucket"]
            for address, attrs in self.resources.items()
            if address.split(".")[2] == "aws_s3_bucket"
        ]

    def to_dict(self) -> dict[str, Any]:
        return {
            "parameters": self.parameters.as_dict(),
            "resources": self.resources,
            "outputs": self.outputs,
        }


def resolve_parameters(
    variables: Mapping[str, Any],
    overrides: Mapping[str, str] | None = None,
    explicit: Parameters | Mapping[str, str] | None = None,
) -> Parameters:
    """Resolve root parameters from explicit values, local overrides and defaults.

    Explicit values win over local overrides, which win over declared defaults.

    Raises:
        ConfigurationMissing: if a parameter has no value from any source
    """
    if isinstance(explicit, Parameters):
        explicit = explicit.as_dict()
    explicit = {k: v for k, v in (explicit or {}).items() if v is not None}
    overrides = overrides or {}

    values: dict[str, str] = {}
    missing = []
    for param in PARAMETER_NAMES:
        if param in explicit:
            values[param] = str(explicit[param])
        elif param in overrides:
            values[param] = str(overrides[param])
        elif (variables.get(param) or {}).get("default") is not None:
            values[param] = str(variables[param]["default"])
        else:
            missing.append(param)

    if missing:
        raise ConfigurationMissing(
            SCOPE_ROOT,
            f"no value for parameters: {', '.join(missing)}",
            missing=tuple(missing),
        )
    return Parameters(**values)


class RootComposition:
    """Instantiates the modules with environment parameters and aggregates their outputs."""

    def __init__(
        self,
        definitions: Mapping[str, Any] | None,
        variables: Mapping[str, Any] | None,
        outputs: Mapping[str, Any] | None,
        modules: Sequence[Module],
        parameters: Parameters,
    ) -> None:
        units = {
            UNIT_DEFINITIONS: definitions,
            UNIT_PARAMETERS: variables,
            UNIT_OUTPUTS: outputs,
        }
        missing = tuple(kind for kind in UNIT_KINDS if units[kind] is None)
        if missing:
            raise ConfigurationMissing(
                SCOPE_ROOT,
                f"root is missing required units: {', '.join(missing)}",
                missing=missing,
            )

        by_name = {module.name: module for module in modules}
        absent = [name for name in MODULE_NAMES if name not in by_name]
        if absent:
            raise ConfigurationMissing(SCOPE_ROOT, f"composition is missing modules: {', '.join(absent)}")

        self.modules: tuple[Module, ...] = tuple(by_name[name] for name in MODULE_NAMES)
        self.parameters = parameters
        self.variables: Mapping[str, Any] = MappingProxyType(dict(variables.get("variables") or {}))
        self.module_inputs: Mapping[str, Mapping[str, str]] = MappingProxyType(
            {
                name: dict((block or {}).get("inputs") or {})
                for name, block in (definitions.get("modules") or {}).items()
            }
        )
        self.tags: Mapping[str, str] = MappingProxyType(dict(definitions.get("tags") or {}))
        self.output_declarations: Mapping[str, str] = MappingProxyType(
            {name: decl["value"] for name, decl in (outputs.get("outputs") or {}).items()}
        )

    def module(self, name: str) -> Module:
        for module in self.modules:
            if module.name == name:
                return module
        raise KeyError(name)

    def check_references(self) -> tuple[Violation, ...]:
        """Check that root inputs and outputs resolve against declared variables and module outputs."""
        violations = []

        def dangling(message: str) -> None:
            violations.append(Violation(Severity.FATAL, ViolationKind.DANGLING_REFERENCE, SCOPE_ROOT, message))

        for name in self.module_inputs:
            if name not in MODULE_NAMES:
                dangling(f"definitions instantiate unknown module '{name}'")
        for name in MODULE_NAMES:
            if name not in self.module_inputs:
                dangling(f"definitions do not instantiate module '{name}'")

        for module in self.modules:
            inputs = self.module_inputs.get(module.name, {})
            for var_name, expression in inputs.items():
                ref = parse_var_ref(str(expression))
                if ref is not None and ref not in self.variables:
                    dangling(f"module '{module.name}' input '{var_name}' references undeclared variable '{ref}'")
                if var_name not in module.variables:
                    dangling(f"module '{module.name}' does not declare input variable '{var_name}'")
            for var_name, declaration in module.variables.items():
                if var_name not in inputs and (declaration or {}).get("default") is None:
                    dangling(f"module '{module.name}' variable '{var_name}' has no input and no default")

        for out_name, expression in self.output_declarations.items():
            if expression == SUMMARY_BUCKET_COUNTS:
                continue
            ref = parse_module_ref(expression)
            if ref is None or ref.module not in MODULE_NAMES:
                dangling(f"output '{out_name}' references unknown module in '{expression}'")
                continue
            if ref.output not in self.module(ref.module).output_declarations:
                dangling(f"output '{out_name}' references undeclared output '{ref.module}.{ref.output}'")

        return tuple(violations)

    def module_parameters(self, module: Module, parameters: Parameters | None = None) -> Parameters:
        """Resolve a module's inputs against the root parameters."""
        root = (parameters or self.parameters).as_dict()
        inputs = {}
        for var_name, expression in self.module_inputs.get(module.name, {}).items():
            ref = parse_var_ref(str(expression))
            if ref is None:
                inputs[var_name] = str(expression)
            elif ref in root:
                inputs[var_name] = root[ref]
            else:
                default = (self.variables.get(ref) or {}).get("default")
                if default is not None:
                    inputs[var_name] = str(default)
        return module.resolve_parameters(inputs)

    def bucket_names(self, parameters: Parameters | None = None) -> list[tuple[str, str, str]]:
        """Return (module, key, rendered name) for every bucket."""
        names = []
        for module in self.modules:
            for key, name in module.bucket_names(self.module_parameters(module, parameters)).items():
                names.append((module.name, key, name))
        return names

    def bucket_counts(self) -> dict[str, int]:
        counts = {module.name: len(module.buckets()) for module in self.modules}
        counts["total"] = sum(counts.values())
        return counts

    def render(self, parameters: Parameters | None = None) -> RenderedGraph:
        """Expand every module with the given parameters.

        Pure and deterministic: equal parameters always produce equal graphs.
        """
        parameters = parameters or self.parameters
        resources: dict[str, dict[str, Any]] = {}
        for module in self.modules:
            resources.update(module.render(self.module_parameters(module, parameters), self.tags))
        return RenderedGraph(
            parameters=parameters,
            resources=resources,
            outputs=self.outputs(parameters),
        )

    def outputs(self, parameters: Parameters | None = None) -> dict[str, Any]:
        """Evaluate the root output declarations."""
        module_outputs = {
            module.name: module.outputs(self.module_parameters(module, parameters))
            for module in self.modules
        }
        evaluated: dict[str, Any] = {}
        for out_name, expression in self.output_declarations.items():
            if expression == SUMMARY_BUCKET_COUNTS:
                evaluated[out_name] = self.bucket_counts()
                continue
            ref = parse_module_ref(expression)
            if ref is None or ref.output not in module_outputs.get(ref.module, {}):
                raise DanglingReference(SCOPE_ROOT, f"output '{out_name}' has unresolvable value '{expression}'")
            evaluated[out_name] = module_outputs[ref.module][ref.output]
        return evaluated

    def validate(self) -> tuple[Violation, ...]:
        """Module violations plus the composition-level count and naming checks."""
        violations: list[Violation] = []
        for module in self.modules:
            violations.extend(module.validate())
        violations.extend(self.validate_total_count())
        violations.extend(self.validate_names())
        return tuple(violations)

    def validate_total_count(self) -> tuple[Violation, ...]:
        total = self.bucket_counts()["total"]
        if total == EXPECTED_TOTAL_BUCKETS:
            return ()
        return (
            Violation(
                Severity.ERROR,
                ViolationKind.COUNT_MISMATCH,
                SCOPE_COMPOSITION,
                f"total bucket count mismatch: expected={EXPECTED_TOTAL_BUCKETS}, actual={total}",
            ),
        )

    def validate_names(self) -> tuple[Violation, ...]:
        violations = []
        names = self.bucket_names()
        seen = Counter(name for _, _, name in names)
        for name, count in sorted(seen.items()):
            if count > 1:
                owners = ", ".join(f"{m}/{k}" for m, k, n in names if n == name)
                violations.append(
                    Violation(
                        Severity.ERROR,
                        ViolationKind.NAMING_COLLISION,
                        SCOPE_COMPOSITION,
                        f"bucket name '{name}' is produced {count} times ({owners})",
                    )
                )
        for module_name, key, name in names:
            if not is_valid_bucket_name(name):
                violations.append(
                    Violation(
                        Severity.ERROR,
                        ViolationKind.INVALID_NAME,
                        f"{module_name}/{key}",
                        f"rendered bucket name '{name}' is not a valid bucket name",
                    )
                )
        return tuple(violations)
