"""End-to-end tests for the modelconv command line."""

from pathlib import Path

import numpy as np
import pytest
import trimesh
import typer
from typer.testing import CliRunner

from modelconv.__main__ import main
from modelconv.cli.app import app, run
from modelconv.core.config import CONFIG_ENV_VAR

pytestmark = pytest.mark.integration


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


def load(path: Path) -> trimesh.Trimesh:
    return trimesh.load_mesh(path, file_type=path.suffix.lstrip("."))


class TestSuccessfulConversions:
    """Conversions that write an output file."""

    def test_default_output(self, runner, sample_script_path):
        result = runner.invoke(app, [str(sample_script_path)])

        output = sample_script_path.with_suffix(".stl")
        assert result.exit_code == 0, result.output
        assert (
            f"converting {sample_script_path} -> {output} (STereoLithography, ASCII)"
            in result.output
        )
        assert "success" in result.output
        assert output.read_bytes().startswith(b"solid modelconv")

    def test_binary_stl_with_parameters(self, runner, sample_script_path):
        result = runner.invoke(
            app, [str(sample_script_path), "-of", "stlb", "--width", "2", "--depth=3"]
        )

        output = sample_script_path.with_suffix(".stl")
        assert result.exit_code == 0, result.output
        assert "(STereoLithography, Binary)" in result.output
        assert not output.read_bytes().startswith(b"solid")
        np.testing.assert_allclose(load(output).extents, [2.0, 3.0, 1.0])

    def test_output_path_sets_format(self, runner, sample_stl_path, temp_dir):
        output = temp_dir / "converted.amf"

        result = runner.invoke(app, [str(sample_stl_path), "-o", str(output)])

        assert result.exit_code == 0, result.output
        assert output.read_bytes().startswith(b"<?xml")
        assert b'type="producer"' in output.read_bytes()

    def test_joined_output_path(self, runner, sample_stl_path, temp_dir):
        output = temp_dir / "converted.jscad"

        result = runner.invoke(app, [str(sample_stl_path), f"-o{output}"])

        assert result.exit_code == 0, result.output
        assert b"def main(params):" in output.read_bytes()

    def test_output_directory_is_created(self, runner, sample_stl_path, temp_dir):
        output = temp_dir / "nested" / "dir" / "model.stl"

        result = runner.invoke(app, [str(sample_stl_path), "-o", str(output)])

        assert result.exit_code == 0, result.output
        assert output.exists()

    def test_version_flag(self, runner, sample_script_path):
        result = runner.invoke(app, ["-v", str(sample_script_path)])

        assert result.exit_code == 0, result.output
        assert "Environment" in result.output
        assert "trimesh" in result.output
        assert "converting" in result.output

    def test_config_from_environment(self, runner, sample_script_path, temp_dir):
        config_path = temp_dir / "modelconv.toml"
        config_path.write_text('[conversion]\ndefault_output_format = "amf"\n')

        result = runner.invoke(
            app, [str(sample_script_path)], env={CONFIG_ENV_VAR: str(config_path)}
        )

        assert result.exit_code == 0, result.output
        assert sample_script_path.with_suffix(".amf").exists()

    def test_run_with_config(self, test_config, sample_script_path, capsys):
        run([str(sample_script_path), "-of", "stlb"], config=test_config)

        header = sample_script_path.with_suffix(".stl").read_bytes()[:80]
        assert header.startswith(b"modelconv-test")
        assert "success" in capsys.readouterr().out


class TestFailures:
    """Invocations that exit with status 1."""

    def test_no_arguments(self, runner):
        result = runner.invoke(app, [])

        assert result.exit_code == 1
        assert "USAGE" in result.output
        assert "ERROR" not in result.output

    def test_missing_input(self, runner, temp_dir):
        result = runner.invoke(app, [str(temp_dir / "missing.jscad")])

        assert result.exit_code == 1
        assert "cannot open file" in result.output
        assert "USAGE" in result.output

    def test_unknown_argument(self, runner, sample_script_path):
        result = runner.invoke(app, [str(sample_script_path), "-x"])

        assert result.exit_code == 1
        assert "invalid file name or argument <-x>" in result.output

    def test_bare_double_dash_is_rejected(self, runner, sample_script_path):
        result = runner.invoke(app, [str(sample_script_path), "--"])

        assert result.exit_code == 1
        assert "invalid file name or argument <-->" in result.output
        assert not sample_script_path.with_suffix(".stl").exists()

    def test_leading_double_dash_is_rejected(self, runner, sample_script_path):
        result = runner.invoke(app, ["--", str(sample_script_path), "-of", "amf"])

        assert result.exit_code == 1
        assert "<-->" in result.output

    def test_unknown_output_extension(self, runner, sample_script_path, temp_dir):
        result = runner.invoke(app, [str(sample_script_path), "-o", str(temp_dir / "out.unknown")])

        assert result.exit_code == 1
        assert "invalid output file" in result.output
        assert not (temp_dir / "out.unknown").exists()

    def test_invalid_output_format(self, runner, sample_script_path):
        result = runner.invoke(app, [str(sample_script_path), "-of", "xstl"])

        assert result.exit_code == 1
        assert "invalid output format" in result.output

    def test_unsupported_output_format(self, runner, sample_script_path):
        result = runner.invoke(app, [str(sample_script_path), "-of", "dxf"])

        assert result.exit_code == 1
        assert "failed" in result.output
        assert "Unsupported output format: dxf" in result.output
        assert not sample_script_path.with_suffix(".dxf").exists()

    def test_unsupported_input_format(self, runner, temp_dir):
        source = temp_dir / "model.scad"
        source.write_text("cube(1);")

        result = runner.invoke(app, [str(source)])

        assert result.exit_code == 1
        assert "Unsupported input format: scad" in result.output

    def test_script_error(self, runner, temp_dir):
        source = temp_dir / "bad.jscad"
        source.write_text("import os\n")

        result = runner.invoke(app, [str(source)])

        assert result.exit_code == 1
        assert "Forbidden import: os" in result.output
        assert not source.with_suffix(".stl").exists()

    def test_write_failure_leaves_no_partial_file(self, runner, sample_stl_path, temp_dir):
        output = temp_dir / "out.stl"
        output.mkdir()

        result = runner.invoke(app, [str(sample_stl_path), "-o", str(output)])

        assert result.exit_code == 1
        assert "failed" in result.output
        assert "Traceback" not in result.output
        assert list(temp_dir.glob(".out.stl.*")) == []

    def test_invalid_config(self, runner, sample_script_path, temp_dir):
        config_path = temp_dir / "modelconv.toml"
        config_path.write_text('[conversion]\ndefault_output_format = "obj"\n')

        result = runner.invoke(
            app, [str(sample_script_path)], env={CONFIG_ENV_VAR: str(config_path)}
        )

        assert result.exit_code == 1
        assert "ERROR" in result.output

    def test_run_raises_exit(self, test_config, temp_dir):
        with pytest.raises(typer.Exit) as exc_info:
            run([str(temp_dir / "missing.stl")], config=test_config)

        assert exc_info.value.exit_code == 1


class TestModuleEntryPoint:
    """python -m modelconv."""

    def test_exit_codes(self, sample_script_path, temp_dir):
        assert main([str(sample_script_path)]) == 0
        assert main([str(temp_dir / "missing.jscad")]) == 1
