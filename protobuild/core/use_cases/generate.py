"""
Generate use case — the built-in host for the generation step.

This is the top-level orchestrator: it loads config, resolves inputs,
consults the stamp, runs the pipeline when something changed, and
persists the change-tracking artifacts (stamp + depfile). The full
vertical slice from "build invoked" to "stubs on disk".
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path

from protobuild import __version__
from protobuild.adapters.compilers.protoc import ProtocAdapter
from protobuild.adapters.formatters.formatter import FormatterAdapter
from protobuild.adapters.registry import AdapterRegistry
from protobuild.core.config.loader import (
    CONFIG_FILE,
    find_config_file,
    load_config,
    project_root,
)
from protobuild.core.engine.pipeline import PipelineReport, run_pipeline
from protobuild.core.engine.resolver import resolve_request
from protobuild.core.engine.tracking import (
    Freshness,
    build_stamp,
    check_freshness,
    declare_dependencies,
    request_fingerprint,
    snapshot_inputs,
    write_depfile,
)
from protobuild.core.errors import ConfigurationError, GenerationError, PipelineError
from protobuild.core.models.config import BuildConfig
from protobuild.core.models.generation import DependencyDeclaration, GenerationRequest
from protobuild.core.persistence.stamp_file import clear_stamp, load_stamp, save_stamp

logger = logging.getLogger(__name__)


@dataclass
class BuildContext:
    """A loaded config plus the overrides given on the command line."""

    config: BuildConfig
    root: Path
    config_path: Path | None = None

    @property
    def stamp_path(self) -> Path:
        return self.root / self.config.tracking.stamp

    @property
    def depfile_path(self) -> Path | None:
        if not self.config.tracking.depfile:
            return None
        return self.root / self.config.tracking.depfile

    def resolve(self, create_output_dir: bool = True) -> GenerationRequest:
        return resolve_request(
            self.config.inputs,
            self.config.search_paths,
            self.config.output_dir,
            root=self.root,
            plugins=self.config.compiler.plugins,
            extra_args=self.config.compiler.extra_args,
            create_output_dir=create_output_dir,
        )

    def fingerprint(self, request: GenerationRequest) -> str:
        return request_fingerprint(
            request,
            {
                "compiler": self.config.compiler.executable,
                "formatter": self.config.formatter.model_dump(mode="json"),
                "tracking": self.config.tracking.model_dump(mode="json"),
                "protobuild": __version__,
            },
        )


def load_build(
    config_path: Path | None = None,
    inputs: list[str] | None = None,
    search_paths: list[str] | None = None,
    output_dir: str | None = None,
    cwd: Path | None = None,
) -> BuildContext:
    """Load protobuild.yml (if any) and apply command-line overrides.

    Without a config file, command-line inputs alone are enough;
    everything else takes its default and paths resolve against cwd.

    Raises:
        ConfigurationError: No config and no inputs, or an invalid config.
    """
    if config_path is None:
        config_path = find_config_file(cwd)

    if config_path is None:
        if not inputs:
            raise ConfigurationError(
                f"No {CONFIG_FILE} found.",
                "Create one next to your .proto files, pass --config, "
                "or list the inputs on the command line.",
            )
        config = BuildConfig()
        root = (cwd or Path.cwd()).resolve()
    else:
        config = load_config(config_path)
        root = project_root(config_path)

    # Command-line paths are relative to where the command was run
    base = (cwd or Path.cwd()).resolve()
    overrides: dict = {}
    if inputs:
        overrides["inputs"] = [_from_base(base, p) for p in inputs]
    if search_paths:
        overrides["search_paths"] = [_from_base(base, p) for p in search_paths]
    if output_dir:
        overrides["output_dir"] = _from_base(base, output_dir)
    if overrides:
        config = config.model_copy(update=overrides)

    return BuildContext(config=config, root=root, config_path=config_path)


def _from_base(base: Path, entry: str) -> str:
    path = Path(entry).expanduser()
    return str(path if path.is_absolute() else base / path)


def build_registry(config: BuildConfig) -> AdapterRegistry:
    """Register the compiler and (unless disabled) the formatter."""
    registry = AdapterRegistry()
    registry.register(ProtocAdapter(executable=config.compiler.executable))
    if config.formatter.enabled:
        registry.register(
            FormatterAdapter(config.formatter.tool, extra_args=config.formatter.extra_args)
        )
    return registry


@dataclass
class GenerateResult:
    """Result of a generate invocation."""

    report: PipelineReport | None = None
    declaration: DependencyDeclaration | None = None
    freshness: Freshness | None = None
    project_root: Path | None = None
    stamp_path: Path | None = None
    depfile_path: Path | None = None
    depfile_written: bool = False
    skipped: bool = False          # outputs were up to date
    error: str | None = None
    error_stage: str | None = None
    suggestion: str | None = None
    diagnostics: str = ""
    warnings: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.error is None

    def to_dict(self) -> dict:
        result: dict = {"ok": self.ok}
        if self.error:
            result["error"] = self.error
            result["stage"] = self.error_stage
            if self.suggestion:
                result["suggestion"] = self.suggestion
            if self.diagnostics:
                result["diagnostics"] = self.diagnostics
            return result

        result["project_root"] = str(self.project_root)
        result["skipped"] = self.skipped
        if self.freshness is not None:
            result["freshness"] = self.freshness.to_dict()
        if self.declaration is not None:
            result["declaration"] = self.declaration.model_dump(mode="json")
        if self.depfile_path is not None:
            result["depfile"] = str(self.depfile_path)
        if self.report is not None:
            result["report"] = self.report.to_dict()
        result["warnings"] = self.warnings
        return result


def run_generate(
    config_path: Path | None = None,
    inputs: list[str] | None = None,
    search_paths: list[str] | None = None,
    output_dir: str | None = None,
    force: bool = False,
    strict: bool | None = None,
    dry_run: bool = False,
    registry: AdapterRegistry | None = None,
    cwd: Path | None = None,
) -> GenerateResult:
    """Regenerate stubs if (and only if) an input changed.

    Args:
        config_path: Optional explicit path to protobuild.yml.
        inputs: Override the configured IDL inputs.
        search_paths: Override the configured search paths.
        output_dir: Override the configured output directory.
        force: Run even when the stamp says outputs are fresh.
        strict: Make formatter failures fatal (default: from config).
        dry_run: Resolve and describe, but run nothing and persist nothing.
        registry: Optional pre-configured adapter registry.
        cwd: Where to look for protobuild.yml (default: process cwd).

    Returns:
        GenerateResult; ``error`` is set on failure.
    """
    result = GenerateResult()

    try:
        build = load_build(config_path, inputs, search_paths, output_dir, cwd=cwd)
        result.project_root = build.root
        result.stamp_path = build.stamp_path
        result.depfile_path = build.depfile_path

        # ── Input resolution ─────────────────────────────────────
        request = build.resolve(create_output_dir=not dry_run)
        fingerprint = build.fingerprint(request)
        declaration = declare_dependencies(request, build.stamp_path)
        result.declaration = declaration

        # ── Change detection (host side) ─────────────────────────
        result.freshness = check_freshness(declaration, load_stamp(build.stamp_path), fingerprint)
        if result.freshness.up_to_date and not force and not dry_run:
            logger.info("Stubs are up to date, skipping generation")
            result.skipped = True
            if build.depfile_path is not None:
                _refresh_depfile(result, declaration, build.depfile_path)
            return result
        for reason in result.freshness.reasons:
            logger.info("Regenerating: %s", reason)

        if registry is None:
            registry = build_registry(build.config)
        if strict is None:
            strict = build.config.formatter.strict

        # Inputs edited while the compiler runs must stay stale
        inputs_before = snapshot_inputs(declaration)
        if not dry_run:
            clear_stamp(build.stamp_path)

        # ── Pipeline ─────────────────────────────────────────────
        report = run_pipeline(
            request,
            registry,
            target=build.stamp_path,
            strict=strict,
            project_root=str(build.root),
            dry_run=dry_run,
        )
        result.report = report
        if report.result is not None:
            result.warnings.extend(report.result.warnings)

    except GenerationError as e:
        result.error = e.message
        result.error_stage = e.stage
        result.diagnostics = e.diagnostics
        return result
    except PipelineError as e:
        result.error = e.message
        result.error_stage = e.stage
        result.suggestion = e.suggestion
        result.diagnostics = getattr(e, "diagnostics", "")
        return result

    if dry_run:
        return result

    # ── Change-tracking registration ─────────────────────────────
    if report.result is None or report.declaration is None:
        result.error = "Pipeline finished without a generation result"
        result.error_stage = "generate"
        return result
    stamp = build_stamp(report.declaration, report.result, fingerprint, inputs=inputs_before)
    try:
        save_stamp(stamp, build.stamp_path)
    except OSError as e:
        result.warnings.append(f"Could not save stamp {build.stamp_path}: {e}")
    if build.depfile_path is not None:
        result.depfile_written = write_depfile(report.declaration, build.depfile_path)
        if not result.depfile_written:
            result.warnings.append(f"Could not write depfile {build.depfile_path}")

    return result


def _refresh_depfile(
    result: GenerateResult, declaration: DependencyDeclaration, path: Path
) -> None:
    """Put back a depfile that went missing or out of date while outputs stayed fresh."""
    result.depfile_written = write_depfile(declaration, path, only_if_changed=True)
    if not result.depfile_written:
        result.warnings.append(f"Could not write depfile {path}")
