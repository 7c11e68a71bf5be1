"""
Tests for CLI commands — generate, status, deps, config check, globals.

The compiler and formatter are swapped for MockAdapters by patching
``build_registry``; test_e2e.py runs the real tools.
"""

import json
import textwrap
from pathlib import Path

import pytest
from click.testing import CliRunner

from protobuild.main import cli


@pytest.fixture
def mocked_tools(monkeypatch, registry):
    monkeypatch.setattr(
        "protobuild.core.use_cases.generate.build_registry", lambda config: registry
    )
    return registry


def _invoke(config: Path, *args: str):
    return CliRunner().invoke(cli, ["--config", str(config), *args])


class TestCLIGlobal:
    def test_help(self):
        result = CliRunner().invoke(cli, ["--help"])
        assert result.exit_code == 0
        assert "protobuf stubs" in result.output

    def test_version(self):
        result = CliRunner().invoke(cli, ["--version"])
        assert result.exit_code == 0
        assert "0.1.0" in result.output


class TestGenerateCommand:
    def test_generate(self, config_file, project, mocked_tools):
        result = _invoke(config_file, "generate")
        assert result.exit_code == 0, result.output
        assert "Generated 3 file(s)" in result.output
        assert "generated/greeter_pb2_grpc.py" in result.output
        assert (project / "generated" / "greeter_pb2.py").is_file()

    def test_second_run_up_to_date(self, config_file, mocked_tools, compiler):
        _invoke(config_file, "generate")
        result = _invoke(config_file, "generate")
        assert result.exit_code == 0
        assert "up to date" in result.output
        assert compiler.call_count == 1

    def test_emit_lines(self, config_file, project, mocked_tools):
        result = _invoke(config_file, "-q", "generate", "--emit", "lines")
        assert result.exit_code == 0
        proto = (project / "protos" / "greeter.proto").resolve()
        assert result.output.strip() == f"protobuild:rerun-if-changed={proto}"

    def test_missing_input(self, project, mocked_tools, compiler):
        config = project / "protobuild.yml"
        config.write_text("inputs: [protos/missing.proto]\n")
        result = _invoke(config, "generate")
        assert result.exit_code == 1
        assert "[resolve]" in result.output
        assert "protos/missing.proto" in result.output
        assert compiler.call_count == 0

    def test_compiler_diagnostics_shown_verbatim(self, config_file, mocked_tools, compiler):
        stderr = "greeter.proto:4:3: Expected \";\".\ngreeter.proto: Import failed.\n"
        compiler.set_failure("generate", stderr=stderr)
        result = _invoke(config_file, "generate")
        assert result.exit_code == 1
        assert "[generate]" in result.output
        assert stderr in result.output

    def test_formatter_failure_warns(self, config_file, mocked_tools, formatter):
        formatter.set_failure("format", stderr="ruff: cannot format\n")
        result = _invoke(config_file, "generate")
        assert result.exit_code == 0
        assert "Formatter failed" in result.output

    def test_formatter_failure_strict(self, config_file, mocked_tools, formatter):
        formatter.set_failure("format", stderr="ruff: cannot format\n")
        result = _invoke(config_file, "generate", "--strict")
        assert result.exit_code == 1
        assert "[format]" in result.output

    def test_json(self, config_file, mocked_tools):
        result = _invoke(config_file, "generate", "--json")
        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data["ok"] is True
        assert len(data["report"]["result"]["generated_files"]) == 3

    def test_dry_run(self, config_file, project, mocked_tools, compiler):
        result = _invoke(config_file, "generate", "--dry-run")
        assert result.exit_code == 0
        assert "[dry-run]" in result.output
        assert compiler.call_count == 0
        assert not (project / "generated").exists()

    def test_inputs_on_command_line(self, tmp_path: Path, proto_dir: Path, mocked_tools, monkeypatch):
        monkeypatch.chdir(tmp_path)
        result = CliRunner().invoke(
            cli, ["generate", "protos/greeter.proto", "-I", "protos", "-o", "out"]
        )
        assert result.exit_code == 0, result.output
        assert (tmp_path / "out" / "greeter_pb2.py").is_file()

    def test_no_config(self, tmp_path: Path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        result = CliRunner().invoke(cli, ["generate"])
        assert result.exit_code == 1
        assert "No protobuild.yml" in result.output


class TestStatusCommand:
    def test_stale_then_fresh(self, config_file, mocked_tools):
        result = _invoke(config_file, "status")
        assert result.exit_code == 0
        assert "Stale" in result.output
        assert "no previous successful run" in result.output

        _invoke(config_file, "generate")
        result = _invoke(config_file, "status")
        assert "Up to date" in result.output

    def test_json(self, config_file):
        result = _invoke(config_file, "status", "--json")
        data = json.loads(result.output)
        assert data["up_to_date"] is False
        assert len(data["watched"]) == 1


class TestDepsCommand:
    def test_lines(self, config_file, project):
        result = _invoke(config_file, "deps")
        assert result.exit_code == 0
        assert result.output.startswith("protobuild:rerun-if-changed=")

    def test_make(self, config_file):
        result = _invoke(config_file, "deps", "--format", "make")
        assert result.exit_code == 0
        assert "stamp.json:" in result.output


class TestConfigCheckCommand:
    def test_valid(self, config_file):
        result = _invoke(config_file, "config", "check")
        assert result.exit_code == 0
        assert "Configuration is valid" in result.output
        assert "Name: greeter" in result.output

    def test_invalid(self, tmp_path: Path):
        config = tmp_path / "protobuild.yml"
        config.write_text(textwrap.dedent("""\
            inputs: [a.proto]
            formatter:
              tool: yapf
        """))
        result = _invoke(config, "config", "check")
        assert result.exit_code == 1
        assert "Configuration errors" in result.output

    def test_json(self, config_file):
        result = _invoke(config_file, "config", "check", "--json")
        data = json.loads(result.output)
        assert data["valid"] is True
        assert data["input_count"] == 1

    def test_missing_formatter_shows_install_hint(self, config_file, monkeypatch):
        from protobuild.adapters.formatters.formatter import FormatterAdapter

        monkeypatch.setattr(FormatterAdapter, "is_available", lambda self: False)
        result = _invoke(config_file, "config", "check")
        assert result.exit_code == 0
        assert "Install it with: pip install ruff" in result.output
