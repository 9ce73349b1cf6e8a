"""Data model for bucket descriptors and validation results."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from .constants import CHECK_FAILED, CHECK_PASSED, CHECK_WARNED


class Encryption(str, Enum):
    """Server-side encryption algorithm of a bucket."""

    NONE = "NONE"
    AES256 = "AES256"
    KMS = "aws:kms"


class BucketCategory(str, Enum):
    """Purpose of a bucket, used to decide whether lifecycle rules are mandatory."""

    STANDARD = "standard"
    TEMPORARY = "temporary"
    ANALYTICS = "analytics"

    @property
    def requires_lifecycle(self) -> bool:
        return self in (BucketCategory.TEMPORARY, BucketCategory.ANALYTICS)


class LifecycleAction(str, Enum):
    """Target of a lifecycle rule: a storage class transition or expiry."""

    STANDARD_IA = "STANDARD_IA"
    ONEZONE_IA = "ONEZONE_IA"
    INTELLIGENT_TIERING = "INTELLIGENT_TIERING"
    GLACIER = "GLACIER"
    DEEP_ARCHIVE = "DEEP_ARCHIVE"
    EXPIRE = "EXPIRE"


class Severity(str, Enum):
    FATAL = "FATAL"
    ERROR = "ERROR"
    WARNING = "WARNING"

    @property
    def is_failure(self) -> bool:
        return self is not Severity.WARNING


class ViolationKind(str, Enum):
    CONFIGURATION_MISSING = "ConfigurationMissing"
    PARSE_FAILURE = "ParseFailure"
    DANGLING_REFERENCE = "DanglingReference"
    SECURITY_INVARIANT = "SecurityInvariantViolation"
    LIFECYCLE_MISSING = "LifecycleMissing"
    COUNT_MISMATCH = "CountMismatch"
    NAMING_COLLISION = "NamingCollision"
    INVALID_NAME = "InvalidName"
    ADVISORY_GAP = "AdvisoryGap"


@dataclass(frozen=True)
class Violation:
    """One failed or warned invariant check."""

    severity: Severity
    kind: ViolationKind
    scope: str
    message: str

    def __str__(self) -> str:
        return f"[{self.severity.value}] {self.kind.value} ({self.scope}): {self.message}"


@dataclass(frozen=True)
class LifecycleRule:
    transition_after_days: int
    action: LifecycleAction


@dataclass(frozen=True)
class CorsRule:
    allowed_methods: tuple[str, ...] = ("GET", "HEAD")
    allowed_origins: tuple[str, ...] = ("*",)
    allowed_headers: tuple[str, ...] = ("*",)
    max_age_seconds: int = 3000


@dataclass(frozen=True)
class PublicAccessBlock:
    """The four public-access-block flags of a bucket."""

    block_public_acls: bool = True
    block_public_policy: bool = True
    ignore_public_acls: bool = True
    restrict_public_buckets: bool = True

    def disabled_flags(self) -> list[str]:
        """Return the names of flags that are not set."""
        flags = {
            "block_public_acls": self.block_public_acls,
            "block_public_policy": self.block_public_policy,
            "ignore_public_acls": self.ignore_public_acls,
            "restrict_public_buckets": self.restrict_public_buckets,
        }
        return [name for name, enabled in flags.items() if not enabled]

    @property
    def fully_blocked(self) -> bool:
        return not self.disabled_flags()


@dataclass(frozen=True)
class BucketDescriptor:
    """A single storage container specification."""

    name: str
    versioning: bool = False
    encryption: Encryption = Encryption.AES256
    lifecycle_rules: tuple[LifecycleRule, ...] = ()
    cors_enabled: bool = False
    cors_rules: tuple[CorsRule, ...] = ()
    public_access_block: PublicAccessBlock = field(default_factory=PublicAccessBlock)
    explicit_deny_policy: bool = True
    category: BucketCategory = BucketCategory.STANDARD
    website: bool = False

    def validate(self) -> tuple[Violation, ...]:
        """Check the descriptor's security and lifecycle invariants.

        Checks run in a fixed order (public access block, explicit deny
        policy, encryption, lifecycle presence) and every failing check is
        reported. Violations are scoped to the descriptor name; callers
        rescope them to add module context.
        """
        violations: list[Violation] = []

        disabled = self.public_access_block.disabled_flags()
        if disabled:
            violations.append(
                Violation(
                    Severity.ERROR,
                    ViolationKind.SECURITY_INVARIANT,
                    self.name,
                    f"public access block flags not enabled: {', '.join(disabled)}",
                )
            )

        if not self.explicit_deny_policy:
            violations.append(
                Violation(
                    Severity.ERROR,
                    ViolationKind.SECURITY_INVARIANT,
                    self.name,
                    "bucket policy has no explicit statement denying public access",
                )
            )

        if self.encryption is Encryption.NONE:
            violations.append(
                Violation(
                    Severity.ERROR,
                    ViolationKind.SECURITY_INVARIANT,
                    self.name,
                    "server-side encryption is disabled (AES256 or stronger required)",
                )
            )

        if self.category.requires_lifecycle and not self.lifecycle_rules:
            violations.append(
                Violation(
                    Severity.ERROR,
                    ViolationKind.LIFECYCLE_MISSING,
                    self.name,
                    f"{self.category.value} bucket has no lifecycle rules",
                )
            )

        return tuple(violations)


@dataclass(frozen=True)
class Parameters:
    """Environment-specific values substituted into every module."""

    region: str
    environment: str
    project_name: str

    def as_dict(self) -> dict[str, str]:
        return {
            "region": self.region,
            "environment": self.environment,
            "project_name": self.project_name,
        }


@dataclass(frozen=True)
class CheckRecord:
    """Outcome of one named check together with the violations it produced."""

    name: str
    violations: tuple[Violation, ...] = ()

    @property
    def status(self) -> str:
        if any(v.severity.is_failure for v in self.violations):
            return CHECK_FAILED
        if self.violations:
            return CHECK_WARNED
        return CHECK_PASSED


@dataclass(frozen=True)
class ValidationCounts:
    passed: int = 0
    failed: int = 0
    warned: int = 0

    @property
    def total(self) -> int:
        return self.passed + self.failed + self.warned


@dataclass(frozen=True)
class ValidationResult:
    """Immutable outcome of one validation run."""

    checks: tuple[CheckRecord, ...] = ()
    halted: bool = False

    @property
    def violations(self) -> tuple[Violation, ...]:
        return tuple(v for check in self.checks for v in check.violations)

    @property
    def ok(self) -> bool:
        return not any(v.severity.is_failure for v in self.violations)

    @property
    def counts(self) -> ValidationCounts:
        statuses = [check.status for check in self.checks]
        return ValidationCounts(
            passed=statuses.count(CHECK_PASSED),
            failed=statuses.count(CHECK_FAILED),
            warned=statuses.count(CHECK_WARNED),
        )

    def __iter__(self):
        """Allow ``ok, violations, counts = result`` unpacking."""
        return iter((self.ok, self.violations, self.counts))

    def by_severity(self, severity: Severity) -> tuple[Violation, ...]:
        return tuple(v for v in self.violations if v.severity is severity)

    def by_kind(self, kind: ViolationKind) -> tuple[Violation, ...]:
        return tuple(v for v in self.violations if v.kind is kind)
