"""Constants for the bucket blueprint."""

# Project
PROJECT_NAME = "bucket-blueprint"
METRICS_NAMESPACE = "bucket_blueprint"

# Modules
MODULE_STORAGE = "storage"
MODULE_APPLICATION = "application"
MODULE_ANALYTICS = "analytics"
MODULE_NAMES = (MODULE_STORAGE, MODULE_APPLICATION, MODULE_ANALYTICS)

# Expected bucket counts
EXPECTED_BUCKET_COUNTS = {
    MODULE_STORAGE: 4,
    MODULE_APPLICATION: 3,
    MODULE_ANALYTICS: 3,
}
EXPECTED_TOTAL_BUCKETS = sum(EXPECTED_BUCKET_COUNTS.values())

# Configuration units
UNIT_DEFINITIONS = "definitions"
UNIT_PARAMETERS = "parameters"
UNIT_OUTPUTS = "outputs"
UNIT_KINDS = (UNIT_DEFINITIONS, UNIT_PARAMETERS, UNIT_OUTPUTS)

UNIT_FILENAMES = {
    UNIT_DEFINITIONS: "main.yaml",
    UNIT_PARAMETERS: "variables.yaml",
    UNIT_OUTPUTS: "outputs.yaml",
}
LOCAL_PARAMETERS_FILENAME = "parameters.local.yaml"
MODULES_DIRNAME = "modules"

# Scopes
SCOPE_ROOT = "root"
SCOPE_COMPOSITION = "composition"

# Parameters
PARAM_REGION = "region"
PARAM_ENVIRONMENT = "environment"
PARAM_PROJECT_NAME = "project_name"
PARAMETER_NAMES = (PARAM_REGION, PARAM_ENVIRONMENT, PARAM_PROJECT_NAME)

# Tags
TAG_PROJECT = "Project"
TAG_ENVIRONMENT = "Environment"
TAG_MODULE = "Module"
TAG_MANAGED_BY = "ManagedBy"

# Policy
DENY_PUBLIC_ACCESS_SID = "DenyPublicAccess"
DENY_PUBLIC_ACL_GRANTS_SID = "DenyPublicAclGrants"
DENY_INSECURE_TRANSPORT_SID = "DenyInsecureTransport"
PUBLIC_CANNED_ACLS = ("public-read", "public-read-write", "authenticated-read")
POLICY_VERSION = "2012-10-17"

# Resource types
RESOURCE_BUCKET = "aws_s3_bucket"
RESOURCE_VERSIONING = "aws_s3_bucket_versioning"
RESOURCE_ENCRYPTION = "aws_s3_bucket_server_side_encryption_configuration"
RESOURCE_PUBLIC_ACCESS_BLOCK = "aws_s3_bucket_public_access_block"
RESOURCE_POLICY = "aws_s3_bucket_policy"
RESOURCE_LIFECYCLE = "aws_s3_bucket_lifecycle_configuration"
RESOURCE_CORS = "aws_s3_bucket_cors_configuration"
RESOURCE_WEBSITE = "aws_s3_bucket_website_configuration"

# Output expressions
OUTPUT_ATTRIBUTES = ("id", "arn", "bucket_regional_domain_name", "website_endpoint")
SUMMARY_BUCKET_COUNTS = "summary.bucket_counts"

# Check outcomes
CHECK_PASSED = "passed"
CHECK_FAILED = "failed"
CHECK_WARNED = "warned"
