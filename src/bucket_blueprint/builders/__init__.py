"""Builders turning configuration units into model objects and resources."""

from .bucket import (
    build_bucket_resources,
    build_deny_public_access_policy,
    create_bucket_descriptor_from_spec,
)

__all__ = [
    "build_bucket_resources",
    "build_deny_public_access_policy",
    "create_bucket_descriptor_from_spec",
]
