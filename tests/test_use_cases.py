"""
Tests for use cases — generate, status, deps, config check.

The compiler and formatter are MockAdapters, so these exercise the
orchestration (resolution, skipping, stamps, depfiles) without
spawning anything.
"""

import os
import textwrap
from pathlib import Path

from protobuild.adapters.formatters.formatter import FormatterAdapter
from protobuild.adapters.mock import MockAdapter
from protobuild.core.persistence.stamp_file import load_stamp
from protobuild.core.use_cases.config_check import check_config
from protobuild.core.use_cases.deps import DepsResult, describe_dependencies
from protobuild.core.use_cases.generate import load_build, run_generate
from protobuild.core.use_cases.status import get_status


def _touch_input(project: Path) -> None:
    proto = project / "protos" / "greeter.proto"
    st = proto.stat()
    proto.write_text(proto.read_text() + "\n// v2\n")
    os.utime(proto, ns=(st.st_atime_ns, st.st_mtime_ns + 1_000_000_000))


# ── Generate ─────────────────────────────────────────────────────────


class TestRunGenerate:
    def test_first_run_generates_and_records(self, config_file, project, registry):
        result = run_generate(config_path=config_file, registry=registry)
        assert result.ok, result.error
        assert not result.skipped
        assert (project / "generated" / "greeter_pb2_grpc.py").is_file()

        stamp = load_stamp(project / ".protobuild" / "stamp.json")
        assert stamp is not None
        assert list(stamp.inputs) == [str((project / "protos" / "greeter.proto").resolve())]
        assert len(stamp.outputs) == 3

        assert result.depfile_written
        assert "greeter.proto" in (project / ".protobuild" / "generate.d").read_text()

    def test_second_run_is_skipped(self, config_file, registry, compiler: MockAdapter):
        run_generate(config_path=config_file, registry=registry)
        result = run_generate(config_path=config_file, registry=registry)
        assert result.ok
        assert result.skipped
        assert compiler.call_count == 1
        # the declaration is still produced for the host
        assert result.declaration is not None

    def test_force_reruns(self, config_file, registry, compiler: MockAdapter):
        run_generate(config_path=config_file, registry=registry)
        result = run_generate(config_path=config_file, registry=registry, force=True)
        assert not result.skipped
        assert compiler.call_count == 2

    def test_input_change_reruns(self, config_file, project, registry, compiler: MockAdapter):
        run_generate(config_path=config_file, registry=registry)
        _touch_input(project)
        result = run_generate(config_path=config_file, registry=registry)
        assert not result.skipped
        assert compiler.call_count == 2
        assert any(r.startswith("input changed") for r in result.freshness.reasons)

    def test_input_edited_during_run_stays_stale(
        self, config_file, project, registry, compiler: MockAdapter, monkeypatch
    ):
        execute = compiler.execute

        def edit_then_execute(context):
            if compiler.call_count == 0:
                _touch_input(project)
            return execute(context)

        monkeypatch.setattr(compiler, "execute", edit_then_execute)

        assert run_generate(config_path=config_file, registry=registry).ok
        result = run_generate(config_path=config_file, registry=registry)
        assert not result.skipped
        assert compiler.call_count == 2
        assert any(r.startswith("input changed") for r in result.freshness.reasons)

    def test_skipped_run_restores_missing_depfile(self, config_file, project, registry, compiler):
        run_generate(config_path=config_file, registry=registry)
        depfile = project / ".protobuild" / "generate.d"
        expected = depfile.read_text()
        depfile.unlink()

        result = run_generate(config_path=config_file, registry=registry)
        assert result.skipped
        assert compiler.call_count == 1
        assert result.depfile_written
        assert depfile.read_text() == expected

    def test_skipped_run_leaves_current_depfile_alone(self, config_file, project, registry):
        run_generate(config_path=config_file, registry=registry)
        depfile = project / ".protobuild" / "generate.d"
        mtime = depfile.stat().st_mtime_ns

        result = run_generate(config_path=config_file, registry=registry)
        assert result.skipped
        assert depfile.stat().st_mtime_ns == mtime

    def test_deleted_output_reruns(self, config_file, project, registry, compiler: MockAdapter):
        run_generate(config_path=config_file, registry=registry)
        (project / "generated" / "greeter_pb2.py").unlink()
        result = run_generate(config_path=config_file, registry=registry)
        assert not result.skipped
        assert (project / "generated" / "greeter_pb2.py").is_file()

    def test_missing_input_spawns_nothing(self, project, registry, compiler, formatter):
        config = project / "protobuild.yml"
        config.write_text("inputs: [protos/greeter.proto, protos/missing.proto]\n")
        result = run_generate(config_path=config, registry=registry)
        assert not result.ok
        assert result.error_stage == "resolve"
        assert "protos/missing.proto" in result.error
        assert compiler.call_count == 0
        assert formatter.call_count == 0
        assert not (project / "generated").exists()

    def test_compiler_failure(self, config_file, project, registry, compiler, formatter):
        run_generate(config_path=config_file, registry=registry)
        _touch_input(project)
        compiler.set_failure("generate", stderr="greeter.proto:1:1: Syntax error.\n")

        result = run_generate(config_path=config_file, registry=registry)
        assert not result.ok
        assert result.error_stage == "generate"
        assert result.diagnostics == "greeter.proto:1:1: Syntax error.\n"
        assert formatter.call_count == 1  # only from the first run
        # a failed run must not leave a stamp claiming freshness
        assert load_stamp(project / ".protobuild" / "stamp.json") is None

    def test_formatter_failure_is_a_warning(self, config_file, project, registry, formatter):
        formatter.set_failure("format", stderr="ruff: crashed\n")
        result = run_generate(config_path=config_file, registry=registry)
        assert result.ok
        assert result.warnings
        assert not result.report.result.formatted
        assert load_stamp(project / ".protobuild" / "stamp.json") is not None

    def test_strict_formatter_failure(self, config_file, registry, formatter):
        formatter.set_failure("format", stderr="ruff: crashed\n")
        result = run_generate(config_path=config_file, registry=registry, strict=True)
        assert not result.ok
        assert result.error_stage == "format"
        assert result.diagnostics == "ruff: crashed\n"

    def test_strict_from_config(self, project, registry, formatter):
        config = project / "protobuild.yml"
        config.write_text(textwrap.dedent("""\
            inputs: [protos/greeter.proto]
            formatter:
              strict: true
        """))
        formatter.set_failure("format")
        result = run_generate(config_path=config, registry=registry)
        assert result.error_stage == "format"

    def test_dry_run_persists_nothing(self, config_file, project, registry, compiler):
        result = run_generate(config_path=config_file, registry=registry, dry_run=True)
        assert result.ok
        assert compiler.call_count == 0
        assert not (project / "generated").exists()
        assert not (project / ".protobuild").exists()

    def test_inputs_without_config(self, tmp_path: Path, proto_dir: Path, registry):
        result = run_generate(
            inputs=["protos/greeter.proto"],
            output_dir="out",
            registry=registry,
            cwd=tmp_path,
        )
        assert result.ok, result.error
        assert (tmp_path / "out" / "greeter_pb2.py").is_file()

    def test_no_config_no_inputs(self, tmp_path: Path):
        result = run_generate(cwd=tmp_path)
        assert result.error_stage == "resolve"
        assert "No protobuild.yml" in result.error

    def test_to_dict(self, config_file, registry):
        data = run_generate(config_path=config_file, registry=registry).to_dict()
        assert data["ok"] is True
        assert data["skipped"] is False
        assert data["report"]["result"]["formatted"] is True


class TestLoadBuild:
    def test_overrides_relative_to_cwd(self, config_file, project):
        sub = project / "protos"
        build = load_build(config_file, inputs=["greeter.proto"], output_dir="out", cwd=sub)
        assert build.config.inputs == [str(sub.resolve() / "greeter.proto")]
        assert build.config.output_dir == str(sub.resolve() / "out")
        assert build.root == project.resolve()

    def test_fingerprint_tracks_formatter(self, config_file):
        build = load_build(config_file)
        request = build.resolve(create_output_dir=False)
        before = build.fingerprint(request)
        build.config.formatter.tool = "black"
        assert build.fingerprint(request) != before

    def test_relative_config_path_gives_absolute_root(self, project, monkeypatch):
        monkeypatch.chdir(project / "protos")
        build = load_build(Path("../protobuild.yml"))
        assert build.root == project.resolve()
        assert build.stamp_path == project.resolve() / ".protobuild" / "stamp.json"

    def test_fingerprint_tracks_depfile_setting(self, config_file):
        build = load_build(config_file)
        request = build.resolve(create_output_dir=False)
        before = build.fingerprint(request)
        build.config.tracking.depfile = None
        assert build.fingerprint(request) != before

    def test_depfile_setting_change_reruns(self, config_file, project, registry, compiler):
        run_generate(config_path=config_file, registry=registry)
        config_file.write_text(config_file.read_text() + "tracking:\n  depfile: build/greeter.d\n")

        result = run_generate(config_path=config_file, registry=registry)
        assert not result.skipped
        assert compiler.call_count == 2
        assert (project / "build" / "greeter.d").is_file()


# ── Status / deps / config check ─────────────────────────────────────


class TestStatus:
    def test_before_first_run(self, config_file):
        status = get_status(config_path=config_file)
        assert not status.up_to_date
        assert status.reasons == ["no previous successful run"]

    def test_after_run(self, config_file, registry):
        run_generate(config_path=config_file, registry=registry)
        status = get_status(config_path=config_file)
        assert status.up_to_date
        assert status.stamp is not None

    def test_config_error(self, tmp_path: Path):
        (tmp_path / "protobuild.yml").write_text("inputs: [gone.proto]\n")
        status = get_status(config_path=tmp_path / "protobuild.yml")
        assert "gone.proto" in status.error


class TestDeps:
    def test_lines(self, config_file, project):
        result = describe_dependencies(config_path=config_file)
        proto = (project / "protos" / "greeter.proto").resolve()
        assert result.rendered == f"protobuild:rerun-if-changed={proto}\n"

    def test_make(self, config_file, project):
        result = describe_dependencies(config_path=config_file, fmt="make")
        assert result.rendered.startswith(str((project / ".protobuild" / "stamp.json").resolve()))

    def test_no_side_effects(self, config_file, project):
        describe_dependencies(config_path=config_file)
        assert not (project / "generated").exists()

    def test_unknown_format(self, config_file):
        assert "Unknown format" in describe_dependencies(config_path=config_file, fmt="json").error

    def test_to_dict_without_declaration(self):
        assert DepsResult().to_dict() == {"error": "No dependency declaration"}

    def test_to_dict(self, config_file, project):
        data = describe_dependencies(config_path=config_file).to_dict()
        assert data["watched"] == [str((project / "protos" / "greeter.proto").resolve())]


class TestConfigCheck:
    def test_valid(self, config_file):
        result = check_config(config_path=config_file)
        assert result.valid, result.errors

    def test_missing_input_is_an_error(self, tmp_path: Path):
        (tmp_path / "protobuild.yml").write_text("inputs: [gone.proto]\n")
        result = check_config(config_path=tmp_path / "protobuild.yml")
        assert not result.valid
        assert any("gone.proto" in e for e in result.errors)

    def test_unknown_plugin_warns(self, project):
        config = project / "protobuild.yml"
        config.write_text(textwrap.dedent("""\
            inputs: [protos/greeter.proto]
            compiler:
              plugins: [python, grpclib]
        """))
        result = check_config(config_path=config)
        assert result.valid
        assert any("grpclib" in w for w in result.warnings)

    def test_search_path_inside_output_warns(self, project):
        (project / "generated").mkdir()
        config = project / "protobuild.yml"
        config.write_text(textwrap.dedent("""\
            inputs: [protos/greeter.proto]
            search_paths: [generated]
            output_dir: generated
        """))
        result = check_config(config_path=config)
        assert any("inside the output directory" in w for w in result.warnings)

    def test_unavailable_formatter_warning_has_install_hint(self, config_file, monkeypatch):
        monkeypatch.setattr(FormatterAdapter, "is_available", lambda self: False)
        result = check_config(config_path=config_file)
        assert result.valid
        assert any("'formatter'" in w and "pip install ruff" in w for w in result.warnings)

    def test_no_config(self, tmp_path: Path):
        result = check_config(cwd=tmp_path)
        assert not result.valid
