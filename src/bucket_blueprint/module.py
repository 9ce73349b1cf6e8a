"""Modules: named, purpose-grouped collections of bucket descriptors."""

from __future__ import annotations

from dataclasses import replace
from types import MappingProxyType
from typing import Any, Mapping

from .builders.bucket import (
    bucket_arn,
    bucket_regional_domain_name,
    bucket_website_endpoint,
    build_bucket_resources,
    create_bucket_descriptor_from_spec,
)
from .constants import (
    EXPECTED_BUCKET_COUNTS,
    MODULE_ANALYTICS,
    OUTPUT_ATTRIBUTES,
    PARAMETER_NAMES,
    PROJECT_NAME,
    TAG_ENVIRONMENT,
    TAG_MANAGED_BY,
    TAG_MODULE,
    TAG_PROJECT,
    UNIT_DEFINITIONS,
    UNIT_KINDS,
    UNIT_OUTPUTS,
    UNIT_PARAMETERS,
)
from .errors import ConfigurationMissing, DanglingReference
from .expressions import parse_bucket_ref
from .models import BucketCategory, BucketDescriptor, Parameters, Severity, Violation, ViolationKind


def render_bucket_name(parameters: Parameters, key: str) -> str:
    """Derive the bucket name from project, environment and logical key."""
    return f"{parameters.project_name}-{parameters.environment}-{key}"


class Module:
    """A named group of bucket descriptors with its parameter and output declarations."""

    def __init__(
        self,
        name: str,
        definitions: Mapping[str, Any] | None,
        parameters: Mapping[str, Any] | None,
        outputs: Mapping[str, Any] | None,
    ) -> None:
        """Build a module from its three parsed units.

        Raises:
            ConfigurationMissing: if the name is unknown or any unit is absent
        """
        if name not in EXPECTED_BUCKET_COUNTS:
            raise ConfigurationMissing(name, f"unknown module '{name}'")

        units = {
            UNIT_DEFINITIONS: definitions,
            UNIT_PARAMETERS: parameters,
            UNIT_OUTPUTS: outputs,
        }
        missing = tuple(kind for kind in UNIT_KINDS if units[kind] is None)
        if missing:
            raise ConfigurationMissing(
                name,
                f"module is missing required units: {', '.join(missing)}",
                missing=missing,
            )

        self.name = name
        default_category = BucketCategory.ANALYTICS if name == MODULE_ANALYTICS else BucketCategory.STANDARD
        self._buckets = MappingProxyType(
            {
                key: create_bucket_descriptor_from_spec(key, spec or {}, default_category)
                for key, spec in (definitions.get("buckets") or {}).items()
            }
        )
        self.variables: Mapping[str, Any] = MappingProxyType(dict(parameters.get("variables") or {}))
        self.output_declarations: Mapping[str, str] = MappingProxyType(
            {out_name: decl["value"] for out_name, decl in (outputs.get("outputs") or {}).items()}
        )

    def __repr__(self) -> str:
        return f"Module(name={self.name!r}, buckets={list(self._buckets)!r})"

    @property
    def expected_count(self) -> int:
        return EXPECTED_BUCKET_COUNTS[self.name]

    def buckets(self) -> Mapping[str, BucketDescriptor]:
        return self._buckets

    def validate(self) -> tuple[Violation, ...]:
        """Validate every bucket and the module's bucket count."""
        violations: list[Violation] = []
        for key, descriptor in self._buckets.items():
            violations.extend(self.validate_bucket(key, descriptor))
        violations.extend(self.validate_count())
        return tuple(violations)

    def validate_bucket(self, key: str, descriptor: BucketDescriptor) -> tuple[Violation, ...]:
        scope = f"{self.name}/{key}"
        return tuple(replace(v, scope=scope) for v in descriptor.validate())

    def validate_count(self) -> tuple[Violation, ...]:
        actual = len(self._buckets)
        if actual == self.expected_count:
            return ()
        return (
            Violation(
                Severity.ERROR,
                ViolationKind.COUNT_MISMATCH,
                self.name,
                f"bucket count mismatch: expected={self.expected_count}, actual={actual}",
            ),
        )

    def check_references(self) -> tuple[Violation, ...]:
        """Check that output declarations and parameters resolve within the module."""
        violations = []
        for param in PARAMETER_NAMES:
            if param not in self.variables:
                violations.append(
                    self._dangling(f"definitions reference undeclared variable '{param}'")
                )

        for out_name, expression in self.output_declarations.items():
            ref = parse_bucket_ref(expression)
            if ref is None:
                violations.append(self._dangling(f"output '{out_name}' has unresolvable value '{expression}'"))
                continue
            if not ref.is_wildcard and ref.key not in self._buckets:
                violations.append(
                    self._dangling(f"output '{out_name}' references unknown bucket '{ref.key}'")
                )
                continue
            if ref.attribute not in OUTPUT_ATTRIBUTES:
                violations.append(
                    self._dangling(f"output '{out_name}' references unknown attribute '{ref.attribute}'")
                )
                continue
            if (
                ref.attribute == "website_endpoint"
                and not ref.is_wildcard
                and not self._buckets[ref.key].website
            ):
                violations.append(
                    self._dangling(
                        f"output '{out_name}' reads website_endpoint of '{ref.key}', "
                        "which is not a static-asset host"
                    )
                )
        return tuple(violations)

    def _dangling(self, message: str) -> Violation:
        return Violation(Severity.FATAL, ViolationKind.DANGLING_REFERENCE, self.name, message)

    def resolve_parameters(self, inputs: Mapping[str, str]) -> Parameters:
        """Combine the caller's inputs with the module's variable defaults."""
        values = {}
        for param in PARAMETER_NAMES:
            if param in inputs:
                values[param] = inputs[param]
            else:
                default = (self.variables.get(param) or {}).get("default")
                if default is None:
                    raise ConfigurationMissing(self.name, f"no value for module variable '{param}'")
                values[param] = str(default)
        return Parameters(**values)

    def bucket_names(self, parameters: Parameters) -> dict[str, str]:
        return {key: render_bucket_name(parameters, key) for key in sorted(self._buckets)}

    def render(self, parameters: Parameters, tags: Mapping[str, str] | None = None) -> dict[str, dict[str, Any]]:
        """Render the module's resources keyed by resource address."""
        base_tags = dict(tags or {})
        base_tags.update(
            {
                TAG_PROJECT: parameters.project_name,
                TAG_ENVIRONMENT: parameters.environment,
                TAG_MODULE: self.name,
                TAG_MANAGED_BY: PROJECT_NAME,
            }
        )

        resources: dict[str, dict[str, Any]] = {}
        for key, bucket_name in self.bucket_names(parameters).items():
            bucket_tags = dict(base_tags, Name=bucket_name)
            rendered = build_bucket_resources(self._buckets[key], bucket_name, parameters.region, bucket_tags)
            for resource_type, attributes in rendered.items():
                resources[f"module.{self.name}.{resource_type}.{key}"] = attributes
        return resources

    def outputs(self, parameters: Parameters) -> dict[str, Any]:
        """Evaluate the module's output declarations.

        Raises:
            DanglingReference: if a declaration does not resolve to a bucket attribute
        """
        names = self.bucket_names(parameters)
        evaluated: dict[str, Any] = {}
        for out_name, expression in self.output_declarations.items():
            ref = parse_bucket_ref(expression)
            if ref is None or ref.attribute not in OUTPUT_ATTRIBUTES:
                raise DanglingReference(self.name, f"output '{out_name}' has unresolvable value '{expression}'")
            if not ref.is_wildcard and ref.key not in names:
                raise DanglingReference(self.name, f"output '{out_name}' references unknown bucket '{ref.key}'")
            if ref.is_wildcard:
                keys = [
                    key for key in names
                    if ref.attribute != "website_endpoint" or self._buckets[key].website
                ]
                evaluated[out_name] = {
                    key: _bucket_attribute(names[key], ref.attribute, parameters.region) for key in keys
                }
            else:
                evaluated[out_name] = _bucket_attribute(names[ref.key], ref.attribute, parameters.region)
        return evaluated


def _bucket_attribute(bucket_name: str, attribute: str, region: str) -> str | None:
    if attribute == "id":
        return bucket_name
    if attribute == "arn":
        return bucket_arn(bucket_name)
    if attribute == "bucket_regional_domain_name":
        return bucket_regional_domain_name(bucket_name, region)
    if attribute == "website_endpoint":
        return bucket_website_endpoint(bucket_name, region)
    return None
