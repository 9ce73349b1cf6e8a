"""Tests for the command line entry point."""

from __future__ import annotations

import json
from pathlib import Path

import yaml

from bucket_blueprint.cli import build_parser, main


class TestParser:
    """Test argument parsing."""

    def test_validate_arguments(self) -> None:
        args = build_parser().parse_args(["validate", "tree", "--environment", "prod", "--quiet"])
        assert args.command == "validate"
        assert args.path == "tree"
        assert args.environment == "prod"
        assert args.project_name is None
        assert args.quiet is True


class TestInit:
    """Test the init command."""

    def test_init_writes_tree(self, tmp_path: Path, capsys) -> None:
        """Test init writes a tree that validates."""
        target = tmp_path / "blueprint"

        assert main(["init", str(target)]) == 0
        assert (target / "modules" / "storage" / "main.yaml").is_file()
        assert main(["validate", str(target)]) == 0

    def test_init_refuses_to_overwrite(self, tree_dir: Path, capsys) -> None:
        """Test init keeps an existing tree unless forced."""
        assert main(["init", str(tree_dir)]) == 1
        assert "already contains" in capsys.readouterr().err
        assert main(["init", str(tree_dir), "--force"]) == 0


class TestValidate:
    """Test the validate command."""

    def test_validate_prints_report(self, tree_dir: Path, capsys) -> None:
        """Test the report lists checks and the summary."""
        assert main(["validate", str(tree_dir)]) == 0

        out = capsys.readouterr().out
        assert "[PASS] storage: bucket count" in out
        assert "[WARN] root: local parameter overrides" in out
        assert "Tests Failed:  0" in out

    def test_validate_quiet(self, tree_dir: Path, capsys) -> None:
        """Test quiet mode prints only the summary."""
        main(["validate", str(tree_dir), "--quiet"])

        lines = capsys.readouterr().out.strip().splitlines()
        assert lines[0].startswith("Tests Passed:")
        assert lines[-1] == "All critical checks passed."

    def test_validate_failure_exit_code(self, tree_dir: Path, capsys) -> None:
        """Test an insecure bucket fails validation."""
        path = tree_dir / "modules" / "analytics" / "main.yaml"
        document = yaml.safe_load(path.read_text(encoding="utf-8"))
        document["buckets"]["reports"]["encryption"] = "NONE"
        path.write_text(yaml.safe_dump(document, sort_keys=False), encoding="utf-8")

        assert main(["validate", str(tree_dir)]) == 1
        assert "[FAIL] analytics/reports: bucket invariants" in capsys.readouterr().out

    def test_validate_missing_directory(self, tmp_path: Path, capsys) -> None:
        assert main(["validate", str(tmp_path / "missing")]) == 1

    def test_var_file_and_flags(self, tree_dir: Path, tmp_path: Path, capsys) -> None:
        """Test flags win over --var-file values."""
        var_file = tmp_path / "prod.yaml"
        var_file.write_text("environment: prod\nproject_name: Bad_Name\n", encoding="utf-8")

        assert main(["validate", str(tree_dir), "--var-file", str(var_file)]) == 1
        assert main(["validate", str(tree_dir), "--var-file", str(var_file), "--project-name", "acme"]) == 0

    def test_unreadable_var_file(self, tree_dir: Path, tmp_path: Path, capsys) -> None:
        """Test an invalid parameters file is a usage error."""
        var_file = tmp_path / "bad.yaml"
        var_file.write_text("- not a mapping\n", encoding="utf-8")

        assert main(["validate", str(tree_dir), "--var-file", str(var_file)]) == 2
        assert "error:" in capsys.readouterr().err

    def test_var_file_not_utf8(self, tree_dir: Path, tmp_path: Path, capsys) -> None:
        """Test a parameters file in another encoding is a usage error, not a traceback."""
        var_file = tmp_path / "latin1.yaml"
        var_file.write_bytes(b"\xff\xfe environment: prod\n")

        assert main(["validate", str(tree_dir), "--var-file", str(var_file)]) == 2
        assert "error:" in capsys.readouterr().err


class TestRender:
    """Test the render command."""

    def test_render_to_file(self, tree_dir: Path, tmp_path: Path, capsys) -> None:
        """Test the rendered graph is written as JSON."""
        output = tmp_path / "graph.json"

        assert main(["render", str(tree_dir), "--environment", "prod", "--output", str(output)]) == 0

        graph = json.loads(output.read_text(encoding="utf-8"))
        assert graph["parameters"]["environment"] == "prod"
        assert graph["outputs"]["bucket_summary"]["total"] == 10
        assert graph["resources"]["module.storage.aws_s3_bucket.data-lake"]["bucket"] == "data-platform-prod-data-lake"

    def test_render_stdout(self, tree_dir: Path, capsys) -> None:
        assert main(["render", str(tree_dir)]) == 0
        graph = json.loads(capsys.readouterr().out)
        assert len([a for a in graph["resources"] if ".aws_s3_bucket." in a]) == 10

    def test_render_refuses_invalid_tree(self, tree_dir: Path, capsys) -> None:
        """Test render prints the report and fails on an invalid tree."""
        (tree_dir / "modules" / "storage" / "outputs.yaml").unlink()

        assert main(["render", str(tree_dir)]) == 1
        captured = capsys.readouterr()
        assert captured.out == ""
        assert "ConfigurationMissing" in captured.err


class TestMetricsFile:
    """Test writing metrics after a command."""

    def test_metrics_file(self, tree_dir: Path, tmp_path: Path, capsys) -> None:
        metrics_file = tmp_path / "blueprint.prom"

        assert main(["--metrics-file", str(metrics_file), "validate", str(tree_dir)]) == 0

        content = metrics_file.read_text(encoding="utf-8")
        assert "bucket_blueprint_validation_runs_total" in content
        assert "bucket_blueprint_checks_total" in content

    def test_metrics_file_from_environment(self, tree_dir: Path, tmp_path: Path, monkeypatch, capsys) -> None:
        metrics_file = tmp_path / "env.prom"
        monkeypatch.setenv("BUCKET_BLUEPRINT_METRICS_FILE", str(metrics_file))

        main(["validate", str(tree_dir), "--quiet"])
        assert metrics_file.is_file()
