"""Unit tests for the data model."""

from __future__ import annotations

import pytest

from bucket_blueprint.models import (
    BucketCategory,
    BucketDescriptor,
    CheckRecord,
    Encryption,
    LifecycleAction,
    LifecycleRule,
    PublicAccessBlock,
    Severity,
    ValidationResult,
    Violation,
    ViolationKind,
)


class TestBucketDescriptorValidate:
    """Test BucketDescriptor.validate()."""

    def test_compliant_descriptor(self) -> None:
        """Test the defaults describe a compliant standard bucket."""
        assert BucketDescriptor(name="config-files").validate() == ()

    def test_public_access_block_flags(self) -> None:
        """Test every disabled flag is named in one violation."""
        descriptor = BucketDescriptor(
            name="web-assets",
            public_access_block=PublicAccessBlock(block_public_policy=False, restrict_public_buckets=False),
        )
        violations = descriptor.validate()

        assert len(violations) == 1
        assert violations[0].kind is ViolationKind.SECURITY_INVARIANT
        assert violations[0].severity is Severity.ERROR
        assert "block_public_policy" in violations[0].message
        assert "restrict_public_buckets" in violations[0].message
        assert "block_public_acls" not in violations[0].message

    def test_explicit_deny_policy_required(self) -> None:
        """Test a missing explicit deny policy is a security violation."""
        violations = BucketDescriptor(name="b1", explicit_deny_policy=False).validate()
        assert [v.kind for v in violations] == [ViolationKind.SECURITY_INVARIANT]
        assert "denying public access" in violations[0].message

    def test_encryption_none_disallowed(self) -> None:
        """Test encryption NONE is a security violation and KMS is accepted."""
        assert len(BucketDescriptor(name="b1", encryption=Encryption.NONE).validate()) == 1
        assert BucketDescriptor(name="b1", encryption=Encryption.KMS).validate() == ()

    @pytest.mark.parametrize("category", [BucketCategory.ANALYTICS, BucketCategory.TEMPORARY])
    def test_lifecycle_required_for_category(self, category: BucketCategory) -> None:
        """Test analytics and temporary buckets need lifecycle rules."""
        violations = BucketDescriptor(name="b1", category=category).validate()
        assert [v.kind for v in violations] == [ViolationKind.LIFECYCLE_MISSING]

        with_rules = BucketDescriptor(
            name="b1",
            category=category,
            lifecycle_rules=(LifecycleRule(30, LifecycleAction.GLACIER),),
        )
        assert with_rules.validate() == ()

    def test_standard_bucket_without_lifecycle(self) -> None:
        """Test standard buckets may have no lifecycle rules."""
        assert BucketDescriptor(name="b1", category=BucketCategory.STANDARD).validate() == ()

    def test_reports_all_violations_in_order(self) -> None:
        """Test validation is total and keeps the documented check order."""
        descriptor = BucketDescriptor(
            name="raw-logs",
            encryption=Encryption.NONE,
            public_access_block=PublicAccessBlock(False, False, False, False),
            explicit_deny_policy=False,
            category=BucketCategory.ANALYTICS,
        )
        violations = descriptor.validate()

        assert len(violations) == 4
        assert "public access block" in violations[0].message
        assert "explicit statement" in violations[1].message
        assert "encryption" in violations[2].message
        assert violations[3].kind is ViolationKind.LIFECYCLE_MISSING
        assert all(v.scope == "raw-logs" for v in violations)


class TestValidationResult:
    """Test the immutable result object."""

    def _violation(self, severity: Severity) -> Violation:
        return Violation(severity, ViolationKind.ADVISORY_GAP, "root", "message")

    def test_empty_result_is_ok(self) -> None:
        """Test a result without checks passes."""
        result = ValidationResult()
        assert result.ok is True
        assert result.counts.total == 0

    def test_counts_and_ok(self) -> None:
        """Test per-check statuses drive counts and warnings do not fail the run."""
        result = ValidationResult(
            checks=(
                CheckRecord("a"),
                CheckRecord("b", (self._violation(Severity.WARNING),)),
                CheckRecord("c"),
            )
        )
        assert result.ok is True
        assert (result.counts.passed, result.counts.failed, result.counts.warned) == (2, 0, 1)

        failing = ValidationResult(checks=(CheckRecord("d", (self._violation(Severity.FATAL),)),))
        assert failing.ok is False
        assert failing.counts.failed == 1

    def test_check_with_error_and_warning_is_failed(self) -> None:
        """Test a check with mixed severities counts as failed."""
        check = CheckRecord("x", (self._violation(Severity.WARNING), self._violation(Severity.ERROR)))
        assert check.status == "failed"

    def test_unpacking(self) -> None:
        """Test the result unpacks into ok, violations and counts."""
        warning = self._violation(Severity.WARNING)
        ok, violations, counts = ValidationResult(checks=(CheckRecord("a", (warning,)),))

        assert ok is True
        assert violations == (warning,)
        assert counts.warned == 1

    def test_filters(self) -> None:
        """Test filtering violations by severity and kind."""
        error = Violation(Severity.ERROR, ViolationKind.COUNT_MISMATCH, "storage", "count")
        result = ValidationResult(checks=(CheckRecord("a", (error, self._violation(Severity.WARNING))),))

        assert result.by_severity(Severity.ERROR) == (error,)
        assert result.by_kind(ViolationKind.COUNT_MISMATCH) == (error,)

    def test_violation_str(self) -> None:
        """Test the violation's display form."""
        violation = Violation(Severity.ERROR, ViolationKind.COUNT_MISMATCH, "storage", "expected=4, actual=5")
        assert str(violation) == "[ERROR] CountMismatch (storage): expected=4, actual=5"
