"""Unit tests for modules."""

from __future__ import annotations

import pytest

from bucket_blueprint.constants import UNIT_DEFINITIONS, UNIT_OUTPUTS, UNIT_PARAMETERS
from bucket_blueprint.errors import ConfigurationMissing, DanglingReference
from bucket_blueprint.models import BucketCategory, Parameters, Severity, ViolationKind
from bucket_blueprint.module import Module, render_bucket_name

PARAMS = Parameters(region="us-east-1", environment="dev", project_name="proj")


def _module(documents, name: str) -> Module:
    units = documents[1][name]
    return Module(name, units[UNIT_DEFINITIONS], units[UNIT_PARAMETERS], units[UNIT_OUTPUTS])


class TestModuleConstruction:
    """Test module construction."""

    def test_canonical_counts(self, documents) -> None:
        """Test the canonical modules hold 4, 3 and 3 buckets."""
        assert len(_module(documents, "storage").buckets()) == 4
        assert len(_module(documents, "application").buckets()) == 3
        assert len(_module(documents, "analytics").buckets()) == 3

    @pytest.mark.parametrize("missing", [UNIT_DEFINITIONS, UNIT_PARAMETERS, UNIT_OUTPUTS])
    def test_missing_unit_fails_fast(self, documents, missing: str) -> None:
        """Test construction raises when any unit is absent."""
        units = dict(documents[1]["storage"])
        units[missing] = None

        with pytest.raises(ConfigurationMissing) as exc_info:
            Module("storage", units[UNIT_DEFINITIONS], units[UNIT_PARAMETERS], units[UNIT_OUTPUTS])

        assert exc_info.value.scope == "storage"
        assert exc_info.value.missing == (missing,)

    def test_unknown_module_name(self, documents) -> None:
        """Test an unknown module name is rejected."""
        units = documents[1]["storage"]
        with pytest.raises(ConfigurationMissing):
            Module("billing", units[UNIT_DEFINITIONS], units[UNIT_PARAMETERS], units[UNIT_OUTPUTS])

    def test_analytics_default_category(self, documents) -> None:
        """Test analytics buckets default to the analytics category."""
        module = _module(documents, "analytics")
        assert all(b.category is BucketCategory.ANALYTICS for b in module.buckets().values())

    def test_buckets_mapping_is_read_only(self, documents) -> None:
        """Test the buckets mapping cannot be mutated."""
        module = _module(documents, "storage")
        with pytest.raises(TypeError):
            module.buckets()["extra"] = module.buckets()["data-lake"]


class TestModuleValidate:
    """Test Module.validate()."""

    def test_canonical_module_is_clean(self, documents) -> None:
        """Test canonical modules have no violations."""
        for name in ("storage", "application", "analytics"):
            assert _module(documents, name).validate() == ()

    def test_violations_are_scoped_to_module_and_bucket(self, documents) -> None:
        """Test bucket violations carry module and bucket key."""
        documents[1]["analytics"][UNIT_DEFINITIONS]["buckets"]["reports"]["encryption"] = "NONE"
        violations = _module(documents, "analytics").validate()

        assert len(violations) == 1
        assert violations[0].scope == "analytics/reports"
        assert violations[0].kind is ViolationKind.SECURITY_INVARIANT

    def test_count_mismatch(self, documents) -> None:
        """Test an extra bucket produces a count mismatch citing expected and actual."""
        buckets = documents[1]["storage"][UNIT_DEFINITIONS]["buckets"]
        buckets["scratch-storage"] = dict(buckets["data-lake"])
        violations = _module(documents, "storage").validate()

        assert len(violations) == 1
        assert violations[0].kind is ViolationKind.COUNT_MISMATCH
        assert violations[0].severity is Severity.ERROR
        assert "expected=4, actual=5" in violations[0].message

    def test_temporary_bucket_needs_lifecycle(self, documents) -> None:
        """Test removing temp-storage lifecycle rules is reported."""
        documents[1]["storage"][UNIT_DEFINITIONS]["buckets"]["temp-storage"]["lifecycle_rules"] = []
        violations = _module(documents, "storage").validate()

        assert [(v.kind, v.scope) for v in violations] == [(ViolationKind.LIFECYCLE_MISSING, "storage/temp-storage")]


class TestModuleReferences:
    """Test Module.check_references()."""

    def test_canonical_references_resolve(self, documents) -> None:
        """Test canonical outputs resolve."""
        for name in ("storage", "application", "analytics"):
            assert _module(documents, name).check_references() == ()

    def test_unknown_bucket_reference(self, documents) -> None:
        """Test an output pointing to a missing bucket is dangling."""
        documents[1]["storage"][UNIT_OUTPUTS]["outputs"]["lake"] = {"value": "buckets.missing.id"}
        violations = _module(documents, "storage").check_references()

        assert len(violations) == 1
        assert violations[0].kind is ViolationKind.DANGLING_REFERENCE
        assert violations[0].severity is Severity.FATAL
        assert "missing" in violations[0].message

    def test_unknown_attribute(self, documents) -> None:
        """Test an unknown attribute is dangling."""
        documents[1]["storage"][UNIT_OUTPUTS]["outputs"]["sizes"] = {"value": "buckets.*.size"}
        assert len(_module(documents, "storage").check_references()) == 1

    def test_website_endpoint_requires_website_bucket(self, documents) -> None:
        """Test the website endpoint is only available on the static-asset host."""
        documents[1]["application"][UNIT_OUTPUTS]["outputs"]["website_endpoint"] = {
            "value": "buckets.config-files.website_endpoint"
        }
        violations = _module(documents, "application").check_references()

        assert len(violations) == 1
        assert "static-asset host" in violations[0].message

    def test_undeclared_parameter(self, documents) -> None:
        """Test a module must declare the naming parameters."""
        del documents[1]["storage"][UNIT_PARAMETERS]["variables"]["project_name"]
        violations = _module(documents, "storage").check_references()

        assert len(violations) == 1
        assert "project_name" in violations[0].message


class TestModuleOutputs:
    """Test output evaluation and rendering."""

    def test_bucket_name(self) -> None:
        """Test bucket names derive from project, environment and key."""
        assert render_bucket_name(PARAMS, "data-lake") == "proj-dev-data-lake"

    def test_outputs(self, documents) -> None:
        """Test wildcard and single-bucket outputs."""
        outputs = _module(documents, "application").outputs(PARAMS)

        assert outputs["bucket_names"] == {
            "config-files": "proj-dev-config-files",
            "user-uploads": "proj-dev-user-uploads",
            "web-assets": "proj-dev-web-assets",
        }
        assert outputs["bucket_arns"]["web-assets"] == "arn:aws:s3:::proj-dev-web-assets"
        assert outputs["website_endpoint"] == "proj-dev-web-assets.s3-website-us-east-1.amazonaws.com"

    def test_render_tags(self, documents) -> None:
        """Test rendered buckets carry project, environment and module tags."""
        resources = _module(documents, "storage").render(PARAMS, {"Owner": "platform-team"})
        tags = resources["module.storage.aws_s3_bucket.data-lake"]["tags"]

        assert tags["Project"] == "proj"
        assert tags["Environment"] == "dev"
        assert tags["Module"] == "storage"
        assert tags["Owner"] == "platform-team"
        assert tags["Name"] == "proj-dev-data-lake"

    def test_resolve_parameters_uses_defaults(self, documents) -> None:
        """Test module variable defaults fill missing inputs."""
        documents[1]["storage"][UNIT_PARAMETERS]["variables"]["region"]["default"] = "eu-central-1"
        module = _module(documents, "storage")

        params = module.resolve_parameters({"environment": "prod", "project_name": "proj"})
        assert params.region == "eu-central-1"

        with pytest.raises(ConfigurationMissing):
            module.resolve_parameters({"environment": "prod"})

    def test_outputs_raise_on_dangling_reference(self, documents) -> None:
        """Test evaluating an output of an unknown bucket raises."""
        documents[1]["storage"][UNIT_OUTPUTS]["outputs"]["lake"] = {"value": "buckets.missing.id"}

        with pytest.raises(DanglingReference) as exc_info:
            _module(documents, "storage").outputs(PARAMS)

        assert exc_info.value.scope == "storage"
