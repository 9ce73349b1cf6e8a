"""Declarative bucket provisioning specification and invariant validator."""

from .composition import RenderedGraph, RootComposition
from .loader import ConfigurationTree, load_configuration
from .models import (
    BucketCategory,
    BucketDescriptor,
    Encryption,
    Parameters,
    Severity,
    ValidationResult,
    Violation,
    ViolationKind,
)
from .module import Module
from .validator import InvariantValidator, compose, validate

__all__ = [
    "BucketCategory",
    "BucketDescriptor",
    "ConfigurationTree",
    "Encryption",
    "InvariantValidator",
    "Module",
    "Parameters",
    "RenderedGraph",
    "RootComposition",
    "Severity",
    "ValidationResult",
    "Violation",
    "ViolationKind",
    "compose",
    "load_configuration",
    "validate",
]
