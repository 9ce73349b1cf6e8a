"""Builders for bucket descriptors and their rendered resources."""

from __future__ import annotations

from typing import Any

from ..constants import (
    DENY_INSECURE_TRANSPORT_SID,
    DENY_PUBLIC_ACCESS_SID,
    DENY_PUBLIC_ACL_GRANTS_SID,
    POLICY_VERSION,
    PUBLIC_CANNED_ACLS,
    RESOURCE_BUCKET,
    RESOURCE_CORS,
    RESOURCE_ENCRYPTION,
    RESOURCE_LIFECYCLE,
    RESOURCE_POLICY,
    RESOURCE_PUBLIC_ACCESS_BLOCK,
    RESOURCE_VERSIONING,
    RESOURCE_WEBSITE,
)
from ..models import (
    BucketCategory,
    BucketDescriptor,
    CorsRule,
    Encryption,
    LifecycleAction,
    LifecycleRule,
    PublicAccessBlock,
)


def create_bucket_descriptor_from_spec(
    key: str,
    spec: dict[str, Any],
    default_category: BucketCategory = BucketCategory.STANDARD,
) -> BucketDescriptor:
    """Create a bucket descriptor from a module definitions entry.

    Security settings that are absent from the entry are treated as not
    configured, so an omitted ``public_access_block`` or ``encryption`` shows
    up as a violation rather than silently passing.

    Args:
        key: Logical bucket key within the module
        spec: Bucket entry from the module definitions unit
        default_category: Category used when the entry does not name one

    Returns:
        Immutable bucket descriptor
    """
    # Get public access block configuration
    pab = spec.get("public_access_block", {})
    public_access_block = PublicAccessBlock(
        block_public_acls=pab.get("block_public_acls", False),
        block_public_policy=pab.get("block_public_policy", False),
        ignore_public_acls=pab.get("ignore_public_acls", False),
        restrict_public_buckets=pab.get("restrict_public_buckets", False),
    )

    # Get lifecycle configuration
    lifecycle_rules = tuple(
        LifecycleRule(
            transition_after_days=int(rule["transition_after_days"]),
            action=LifecycleAction(rule["action"]),
        )
        for rule in spec.get("lifecycle_rules", [])
    )

    # Get CORS configuration
    cors_enabled = spec.get("cors_enabled", False)
    cors_rules = tuple(
        CorsRule(
            allowed_methods=tuple(rule.get("allowed_methods", ["GET", "HEAD"])),
            allowed_origins=tuple(rule.get("allowed_origins", ["*"])),
            allowed_headers=tuple(rule.get("allowed_headers", ["*"])),
            max_age_seconds=int(rule.get("max_age_seconds", 3000)),
        )
        for rule in spec.get("cors_rules", [])
    )
    if cors_enabled and not cors_rules:
        cors_rules = (CorsRule(),)

    category = spec.get("category")

    return BucketDescriptor(
        name=key,
        versioning=spec.get("versioning", False),
        encryption=Encryption(spec.get("encryption", Encryption.NONE.value)),
        lifecycle_rules=lifecycle_rules,
        cors_enabled=cors_enabled,
        cors_rules=cors_rules if cors_enabled else (),
        public_access_block=public_access_block,
        explicit_deny_policy=spec.get("explicit_deny_policy", False),
        category=BucketCategory(category) if category else default_category,
        website=spec.get("website", False),
    )


def build_deny_public_access_policy(bucket_name: str) -> dict[str, Any]:
    """Build the bucket policy that explicitly denies public access.

    Anonymous requests carry no principal account, so the first statement
    denies every request where ``aws:PrincipalAccount`` is absent. The second
    blocks uploads and ACL changes that grant a public canned ACL, and the
    last rejects plain HTTP.

    Args:
        bucket_name: Rendered bucket name

    Returns:
        Policy document in AWS format
    """
    arn = bucket_arn(bucket_name)
    resources = [arn, f"{arn}/*"]
    return {
        "Version": POLICY_VERSION,
        "Statement": [
            {
                "Sid": DENY_PUBLIC_ACCESS_SID,
                "Effect": "Deny",
                "Principal": "*",
                "Action": "s3:*",
                "Resource": resources,
                "Condition": {"Null": {"aws:PrincipalAccount": "true"}},
            },
            {
                "Sid": DENY_PUBLIC_ACL_GRANTS_SID,
                "Effect": "Deny",
                "Principal": "*",
                "Action": ["s3:PutBucketAcl", "s3:PutObject", "s3:PutObjectAcl"],
                "Resource": resources,
                "Condition": {"StringEquals": {"s3:x-amz-acl": list(PUBLIC_CANNED_ACLS)}},
            },
            {
                "Sid": DENY_INSECURE_TRANSPORT_SID,
                "Effect": "Deny",
                "Principal": "*",
                "Action": "s3:*",
                "Resource": resources,
                "Condition": {"Bool": {"aws:SecureTransport": "false"}},
            },
        ],
    }


def bucket_arn(bucket_name: str) -> str:
    return f"arn:aws:s3:::{bucket_name}"


def bucket_regional_domain_name(bucket_name: str, region: str) -> str:
    return f"{bucket_name}.s3.{region}.amazonaws.com"


def bucket_website_endpoint(bucket_name: str, region: str) -> str:
    return f"{bucket_name}.s3-website-{region}.amazonaws.com"


def build_bucket_resources(
    descriptor: BucketDescriptor,
    bucket_name: str,
    region: str,
    tags: dict[str, str],
) -> dict[str, dict[str, Any]]:
    """Render the provider resources that realise one bucket descriptor.

    Args:
        descriptor: Bucket descriptor
        bucket_name: Rendered bucket name
        region: Target region
        tags: Tags applied to the bucket

    Returns:
        Mapping of resource type to resource attributes
    """
    resources: dict[str, dict[str, Any]] = {
        RESOURCE_BUCKET: {
            "bucket": bucket_name,
            "region": region,
            "arn": bucket_arn(bucket_name),
            "bucket_regional_domain_name": bucket_regional_domain_name(bucket_name, region),
            "tags": dict(sorted(tags.items())),
        },
        RESOURCE_VERSIONING: {
            "bucket": bucket_name,
            "versioning_configuration": {
                "status": "Enabled" if descriptor.versioning else "Suspended",
            },
        },
        RESOURCE_PUBLIC_ACCESS_BLOCK: {
            "bucket": bucket_name,
            "block_public_acls": descriptor.public_access_block.block_public_acls,
            "block_public_policy": descriptor.public_access_block.block_public_policy,
            "ignore_public_acls": descriptor.public_access_block.ignore_public_acls,
            "restrict_public_buckets": descriptor.public_access_block.restrict_public_buckets,
        },
    }

    if descriptor.encryption is not Encryption.NONE:
        resources[RESOURCE_ENCRYPTION] = {
            "bucket": bucket_name,
            "rule": {
                "apply_server_side_encryption_by_default": {
                    "sse_algorithm": descriptor.encryption.value,
                },
            },
        }

    if descriptor.explicit_deny_policy:
        resources[RESOURCE_POLICY] = {
            "bucket": bucket_name,
            "policy": build_deny_public_access_policy(bucket_name),
        }

    if descriptor.lifecycle_rules:
        resources[RESOURCE_LIFECYCLE] = {
            "bucket": bucket_name,
            "rule": [_render_lifecycle_rule(idx, rule) for idx, rule in enumerate(descriptor.lifecycle_rules)],
        }

    if descriptor.cors_enabled:
        resources[RESOURCE_CORS] = {
            "bucket": bucket_name,
            "cors_rule": [
                {
                    "allowed_headers": list(rule.allowed_headers),
                    "allowed_methods": list(rule.allowed_methods),
                    "allowed_origins": list(rule.allowed_origins),
                    "max_age_seconds": rule.max_age_seconds,
                }
                for rule in descriptor.cors_rules
            ],
        }

    if descriptor.website:
        resources[RESOURCE_WEBSITE] = {
            "bucket": bucket_name,
            "index_document": {"suffix": "index.html"},
            "error_document": {"key": "error.html"},
            "website_endpoint": bucket_website_endpoint(bucket_name, region),
        }

    return resources


def _render_lifecycle_rule(idx: int, rule: LifecycleRule) -> dict[str, Any]:
    rendered: dict[str, Any] = {
        "id": f"rule-{idx + 1}-{rule.action.value.lower().replace('_', '-')}",
        "status": "Enabled",
    }
    if rule.action is LifecycleAction.EXPIRE:
        rendered["expiration"] = {"days": rule.transition_after_days}
    else:
        rendered["transition"] = {
            "days": rule.transition_after_days,
            "storage_class": rule.action.value,
        }
    return rendered
