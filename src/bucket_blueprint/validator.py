"""Three-phase invariant validator for configuration trees."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping

from . import metrics
from .composition import RootComposition, resolve_parameters
from .constants import (
    LOCAL_PARAMETERS_FILENAME,
    MODULE_NAMES,
    MODULES_DIRNAME,
    SCOPE_COMPOSITION,
    SCOPE_ROOT,
    UNIT_DEFINITIONS,
    UNIT_KINDS,
    UNIT_OUTPUTS,
    UNIT_PARAMETERS,
)
from .errors import BlueprintError, ConfigurationMissing, ParseFailure
from .loader import ConfigurationTree, UnitSet, load_configuration
from .logging import log_validation_event
from .models import CheckRecord, Parameters, Severity, ValidationResult, Violation, ViolationKind
from .module import Module
from .schemas import (
    LOCAL_PARAMETERS_SCHEMA,
    MODULE_DEFINITIONS_SCHEMA,
    MODULE_OUTPUTS_SCHEMA,
    ROOT_DEFINITIONS_SCHEMA,
    ROOT_OUTPUTS_SCHEMA,
    VARIABLES_SCHEMA,
)
from .syntax import formatting_advisories, parse_unit
from .tracing import record_check_counts, set_span_status, trace_span
from .utils.errors import sanitize_exception

logger = logging.getLogger(__name__)

PHASE_STRUCTURAL = "structural"
PHASE_SYNTAX = "syntax"
PHASE_SEMANTIC = "semantic"

ROOT_SCHEMAS = {
    UNIT_DEFINITIONS: ROOT_DEFINITIONS_SCHEMA,
    UNIT_PARAMETERS: VARIABLES_SCHEMA,
    UNIT_OUTPUTS: ROOT_OUTPUTS_SCHEMA,
}
MODULE_SCHEMAS = {
    UNIT_DEFINITIONS: MODULE_DEFINITIONS_SCHEMA,
    UNIT_PARAMETERS: VARIABLES_SCHEMA,
    UNIT_OUTPUTS: MODULE_OUTPUTS_SCHEMA,
}


@dataclass
class _ParsedTree:
    """Documents that survived the syntax phase."""

    root: dict[str, dict[str, Any]] | None
    modules: dict[str, Module]
    composition: RootComposition | None


def _fatal(kind: ViolationKind, scope: str, message: str) -> Violation:
    return Violation(Severity.FATAL, kind, scope, message)


def _advisory(scope: str, message: str) -> Violation:
    return Violation(Severity.WARNING, ViolationKind.ADVISORY_GAP, scope, message)


class InvariantValidator:
    """Runs the structural, syntax and semantic phases over one configuration snapshot.

    The validator only reads the configuration. Each ``run()`` builds a fresh
    list of check records and returns them as an immutable result.
    """

    def __init__(
        self,
        configuration: ConfigurationTree,
        parameters: Parameters | Mapping[str, str] | None = None,
    ) -> None:
        self.configuration = configuration
        self.parameters = parameters

    def run(self) -> ValidationResult:
        checks: list[CheckRecord] = []
        source = self.configuration.source
        log_validation_event(logger, source, "run", "started", "Validation started")

        with trace_span("bucket_blueprint.validate", attributes={"source": source}):
            surviving = self._structural_phase(checks)
            parsed = self._syntax_phase(checks, surviving)
            if parsed is not None:
                self._semantic_phase(checks, parsed)

            result = ValidationResult(checks=tuple(checks), halted=parsed is None)
            counts = result.counts
            record_check_counts(counts.passed, counts.failed, counts.warned)
            set_span_status(result.ok, f"{len(result.violations)} violation(s)")

        self._record_metrics(result)
        log_validation_event(
            logger,
            source,
            "run",
            "succeeded" if result.ok else "failed",
            "Validation finished",
            level=logging.INFO if result.ok else logging.WARNING,
            passed=counts.passed,
            failed=counts.failed,
            warned=counts.warned,
            halted=result.halted,
        )
        return result

    # Phase 1

    def _structural_phase(self, checks: list[CheckRecord]) -> dict[str, UnitSet]:
        """Check that every unit exists; incomplete units drop out of later phases."""
        surviving: dict[str, UnitSet] = {}
        with trace_span("bucket_blueprint.structural", phase=PHASE_STRUCTURAL), \
                metrics.validation_duration_seconds.labels(phase=PHASE_STRUCTURAL).time():
            unit_sets = [self.configuration.root] + [
                self.configuration.modules.get(name)
                or UnitSet(scope=name, location=f"{MODULES_DIRNAME}/{name}")
                for name in MODULE_NAMES
            ]
            for unit_set in unit_sets:
                complete = True
                for kind in UNIT_KINDS:
                    path = unit_set.path(kind)
                    violations: tuple[Violation, ...] = ()
                    if unit_set.text(kind) is None:
                        complete = False
                        violations = (
                            _fatal(
                                ViolationKind.CONFIGURATION_MISSING,
                                unit_set.scope,
                                f"missing required {kind} unit {path}",
                            ),
                        )
                    checks.append(CheckRecord(f"{unit_set.scope}: required unit {path}", violations))
                if complete:
                    surviving[unit_set.scope] = unit_set

            local_violations: tuple[Violation, ...] = ()
            if self.configuration.local_parameters is None:
                local_violations = (
                    _advisory(
                        SCOPE_ROOT,
                        f"{LOCAL_PARAMETERS_FILENAME} not found; using declared defaults and explicit parameters",
                    ),
                )
            checks.append(CheckRecord(f"{SCOPE_ROOT}: local parameter overrides", local_violations))

        self._log_phase(PHASE_STRUCTURAL, checks)
        return surviving

    # Phase 2

    def _syntax_phase(self, checks: list[CheckRecord], surviving: dict[str, UnitSet]) -> _ParsedTree | None:
        """Parse surviving units and resolve cross-unit references.

        Returns None when a fatal violation halts the run.
        """
        start = len(checks)
        with trace_span("bucket_blueprint.syntax", phase=PHASE_SYNTAX), \
                metrics.validation_duration_seconds.labels(phase=PHASE_SYNTAX).time():
            documents: dict[str, dict[str, dict[str, Any]]] = {}
            for scope, unit_set in surviving.items():
                schemas = ROOT_SCHEMAS if scope == SCOPE_ROOT else MODULE_SCHEMAS
                parsed_units = {}
                for kind in UNIT_KINDS:
                    document = self._parse(checks, unit_set, kind, schemas[kind])
                    if document is not None:
                        parsed_units[kind] = document
                if len(parsed_units) == len(UNIT_KINDS):
                    documents[scope] = parsed_units

            overrides = self._parse_local_parameters(checks)

            if self._has_fatal(checks[start:]):
                self._log_phase(PHASE_SYNTAX, checks[start:], halted=True)
                return None

            modules: dict[str, Module] = {}
            for name in MODULE_NAMES:
                if name not in documents:
                    continue
                units = documents[name]
                module = Module(name, units[UNIT_DEFINITIONS], units[UNIT_PARAMETERS], units[UNIT_OUTPUTS])
                checks.append(CheckRecord(f"{name}: references resolve", module.check_references()))
                modules[name] = module

            root = documents.get(SCOPE_ROOT)
            composition = None
            if root is not None:
                parameters = self._resolve_parameters(checks, root, overrides)
                if parameters is not None and len(modules) == len(MODULE_NAMES):
                    composition = RootComposition(
                        root[UNIT_DEFINITIONS],
                        root[UNIT_PARAMETERS],
                        root[UNIT_OUTPUTS],
                        list(modules.values()),
                        parameters,
                    )
                    checks.append(CheckRecord(f"{SCOPE_ROOT}: references resolve", composition.check_references()))

            if self._has_fatal(checks[start:]):
                self._log_phase(PHASE_SYNTAX, checks[start:], halted=True)
                return None

        self._log_phase(PHASE_SYNTAX, checks[start:])
        return _ParsedTree(root=root, modules=modules, composition=composition)

    def _parse(
        self,
        checks: list[CheckRecord],
        unit_set: UnitSet,
        kind: str,
        schema: dict[str, Any],
    ) -> dict[str, Any] | None:
        text = unit_set.text(kind) or ""
        path = unit_set.path(kind)
        document = None
        violations: tuple[Violation, ...] = ()
        try:
            document = parse_unit(text, schema, unit_set.scope, path)
        except ParseFailure as e:
            violations = (_fatal(ViolationKind.PARSE_FAILURE, unit_set.scope, e.message),)
        checks.append(CheckRecord(f"{unit_set.scope}: {path} parses", violations))

        advisories = tuple(_advisory(unit_set.scope, f"{path}: {nit}") for nit in formatting_advisories(text))
        checks.append(CheckRecord(f"{unit_set.scope}: {path} formatting", advisories))
        return document

    def _parse_local_parameters(self, checks: list[CheckRecord]) -> dict[str, str]:
        text = self.configuration.local_parameters
        if text is None:
            return {}
        violations: tuple[Violation, ...] = ()
        overrides: dict[str, str] = {}
        try:
            overrides = parse_unit(text, LOCAL_PARAMETERS_SCHEMA, SCOPE_ROOT, LOCAL_PARAMETERS_FILENAME)
        except ParseFailure as e:
            violations = (_fatal(ViolationKind.PARSE_FAILURE, SCOPE_ROOT, e.message),)
        checks.append(CheckRecord(f"{SCOPE_ROOT}: {LOCAL_PARAMETERS_FILENAME} parses", violations))
        return overrides

    def _resolve_parameters(
        self,
        checks: list[CheckRecord],
        root: dict[str, dict[str, Any]],
        overrides: dict[str, str],
    ) -> Parameters | None:
        violations: tuple[Violation, ...] = ()
        parameters = None
        try:
            parameters = resolve_parameters(
                root[UNIT_PARAMETERS].get("variables") or {},
                overrides,
                self.parameters,
            )
        except ConfigurationMissing as e:
            violations = (_fatal(ViolationKind.CONFIGURATION_MISSING, e.scope, e.message),)
        checks.append(CheckRecord(f"{SCOPE_ROOT}: parameters resolve", violations))
        return parameters

    # Phase 3

    def _semantic_phase(self, checks: list[CheckRecord], parsed: _ParsedTree) -> None:
        """Run the descriptor, module and composition checks without short-circuiting."""
        start = len(checks)
        with trace_span("bucket_blueprint.semantic", phase=PHASE_SEMANTIC), \
                metrics.validation_duration_seconds.labels(phase=PHASE_SEMANTIC).time():
            for name, module in parsed.modules.items():
                for key, descriptor in module.buckets().items():
                    checks.append(CheckRecord(f"{name}/{key}: bucket invariants", module.validate_bucket(key, descriptor)))
                checks.append(CheckRecord(f"{name}: bucket count", module.validate_count()))

            composition = parsed.composition
            if composition is not None:
                checks.append(CheckRecord(f"{SCOPE_COMPOSITION}: total bucket count", composition.validate_total_count()))
                checks.append(CheckRecord(f"{SCOPE_COMPOSITION}: bucket names", self._guarded(composition.validate_names)))
                checks.append(CheckRecord(f"{SCOPE_COMPOSITION}: static-asset host", self._check_website(composition)))

        self._log_phase(PHASE_SEMANTIC, checks[start:])

    @staticmethod
    def _guarded(check: Any) -> tuple[Violation, ...]:
        try:
            return check()
        except BlueprintError as e:
            return (
                Violation(
                    Severity.ERROR,
                    ViolationKind.CONFIGURATION_MISSING,
                    e.scope,
                    sanitize_exception(e),
                ),
            )

    @staticmethod
    def _check_website(composition: RootComposition) -> tuple[Violation, ...]:
        hosts = [
            f"{module.name}/{key}"
            for module in composition.modules
            for key, descriptor in module.buckets().items()
            if descriptor.website
        ]
        if len(hosts) == 1:
            return ()
        found = ", ".join(hosts) if hosts else "none"
        return (_advisory(SCOPE_COMPOSITION, f"expected exactly one static-asset host bucket, found {found}"),)

    # Helpers

    @staticmethod
    def _has_fatal(checks: list[CheckRecord]) -> bool:
        return any(v.severity is Severity.FATAL for check in checks for v in check.violations)

    def _log_phase(self, phase: str, checks: list[CheckRecord], halted: bool = False) -> None:
        failed = [check.name for check in checks if check.status == "failed"]
        log_validation_event(
            logger,
            self.configuration.source,
            phase,
            "halted" if halted else "completed",
            f"{phase} phase {'halted' if halted else 'completed'}",
            level=logging.WARNING if failed else logging.DEBUG,
            checks=len(checks),
            failed_checks=failed,
        )

    @staticmethod
    def _record_metrics(result: ValidationResult) -> None:
        metrics.validation_runs_total.labels(result="success" if result.ok else "failure").inc()
        for check in result.checks:
            metrics.checks_total.labels(status=check.status).inc()
        for violation in result.violations:
            metrics.violations_total.labels(severity=violation.severity.value, kind=violation.kind.value).inc()


def validate(
    configuration: ConfigurationTree | str | Path,
    parameters: Parameters | Mapping[str, str] | None = None,
) -> ValidationResult:
    """Validate a configuration tree or the tree stored under a directory.

    Never raises for configuration problems: every failure mode is reported as
    a violation in the returned result.
    """
    if not isinstance(configuration, ConfigurationTree):
        try:
            configuration = load_configuration(configuration)
        except (ConfigurationMissing, OSError, UnicodeDecodeError) as e:
            scope = e.scope if isinstance(e, BlueprintError) else SCOPE_ROOT
            violation = _fatal(ViolationKind.CONFIGURATION_MISSING, scope, sanitize_exception(e))
            result = ValidationResult(checks=(CheckRecord(f"{SCOPE_ROOT}: configuration readable", (violation,)),), halted=True)
            InvariantValidator._record_metrics(result)
            return result
    return InvariantValidator(configuration, parameters).run()


def load_parameters_file(path: str | Path) -> dict[str, str]:
    """Read a flat parameter mapping from a YAML file.

    Raises:
        ParseFailure: if the file is not a valid parameter mapping
        OSError: if the file cannot be read
        UnicodeDecodeError: if the file is not UTF-8
    """
    text = Path(path).read_text(encoding="utf-8")
    return parse_unit(text, LOCAL_PARAMETERS_SCHEMA, SCOPE_ROOT, str(path))


def compose(
    configuration: ConfigurationTree | str | Path,
    parameters: Parameters | Mapping[str, str] | None = None,
) -> RootComposition:
    """Parse a configuration tree into a root composition.

    Unlike ``validate()``, this fails fast on the first problem.

    Raises:
        ConfigurationMissing: if a unit or parameter value is absent
        ParseFailure: if a unit does not parse or match its schema
    """
    if not isinstance(configuration, ConfigurationTree):
        configuration = load_configuration(configuration)

    def parse_all(unit_set: UnitSet, schemas: dict[str, dict[str, Any]]) -> dict[str, dict[str, Any] | None]:
        return {
            kind: parse_unit(unit_set.text(kind), schemas[kind], unit_set.scope, unit_set.path(kind))
            if unit_set.text(kind) is not None
            else None
            for kind in UNIT_KINDS
        }

    modules = []
    for name in MODULE_NAMES:
        unit_set = configuration.modules.get(name) or UnitSet(scope=name, location=f"{MODULES_DIRNAME}/{name}")
        units = parse_all(unit_set, MODULE_SCHEMAS)
        modules.append(Module(name, units[UNIT_DEFINITIONS], units[UNIT_PARAMETERS], units[UNIT_OUTPUTS]))

    root = parse_all(configuration.root, ROOT_SCHEMAS)
    if root[UNIT_PARAMETERS] is None:
        raise ConfigurationMissing(SCOPE_ROOT, "root is missing required units: parameters")
    overrides = {}
    if configuration.local_parameters is not None:
        overrides = parse_unit(
            configuration.local_parameters, LOCAL_PARAMETERS_SCHEMA, SCOPE_ROOT, LOCAL_PARAMETERS_FILENAME
        )
    resolved = resolve_parameters(root[UNIT_PARAMETERS].get("variables") or {}, overrides, parameters)
    return RootComposition(root[UNIT_DEFINITIONS], root[UNIT_PARAMETERS], root[UNIT_OUTPUTS], modules, resolved)
