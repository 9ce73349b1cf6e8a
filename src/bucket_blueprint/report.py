"""Human-readable reporting of validation results."""

from __future__ import annotations

from .constants import CHECK_FAILED, CHECK_PASSED
from .models import ValidationResult

STATUS_LABELS = {
    CHECK_PASSED: "PASS",
    CHECK_FAILED: "FAIL",
}


def format_report(result: ValidationResult) -> list[str]:
    """Render one line per check, indented violation details, and a summary."""
    lines = []
    for check in result.checks:
        lines.append(f"[{STATUS_LABELS.get(check.status, 'WARN')}] {check.name}")
        for violation in check.violations:
            lines.append(f"    {violation}")

    counts = result.counts
    lines.append("")
    if result.halted:
        lines.append("Validation halted after a fatal error; later checks were not run.")
    lines.append(f"Tests Passed:  {counts.passed}")
    lines.append(f"Tests Failed:  {counts.failed}")
    lines.append(f"Tests Warned:  {counts.warned}")
    lines.append(f"Total Tests:   {counts.total}")
    if result.ok:
        lines.append("All critical checks passed.")
    else:
        lines.append("Some checks failed. Fix the failing checks before deploying.")
    return lines


def exit_code(result: ValidationResult) -> int:
    """Process exit code: 0 when no ERROR or FATAL violation exists, 1 otherwise."""
    return 0 if result.ok else 1
