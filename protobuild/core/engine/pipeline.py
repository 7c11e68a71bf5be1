"""
Generation pipeline — the central orchestration sequence.

Flow (strictly linear, one pass per build invocation):

    resolved request → generate stubs → format outputs → declare dependencies

Input resolution happens before this module is entered (see
``resolver.resolve_request``). Each external step is an Action
dispatched through the adapter registry; the returned Receipt is
converted here into either progress or a typed PipelineError.

Failure policy:
    generate  — GenerationError, always fatal; nothing after it runs
    format    — PostProcessError, fatal only in strict mode; otherwise
                logged, recorded on the result, and the run succeeds
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path

from protobuild.adapters.registry import AdapterRegistry
from protobuild.core.engine.tracking import declare_dependencies
from protobuild.core.errors import GenerationError, PostProcessError
from protobuild.core.models.action import Action, Receipt
from protobuild.core.models.generation import (
    DependencyDeclaration,
    GenerationRequest,
    GenerationResult,
)

logger = logging.getLogger(__name__)

COMPILER_ADAPTER = "protoc"
FORMATTER_ADAPTER = "formatter"


@dataclass
class PipelineReport:
    """Everything one pipeline run produced."""

    request: GenerationRequest
    result: GenerationResult | None = None
    declaration: DependencyDeclaration | None = None
    receipts: list[Receipt] = field(default_factory=list)
    post_process_error: PostProcessError | None = None
    dry_run: bool = False

    def to_dict(self) -> dict:
        data: dict = {
            "dry_run": self.dry_run,
            "request": self.request.model_dump(mode="json"),
            "receipts": [r.model_dump(mode="json") for r in self.receipts],
        }
        if self.result is not None:
            data["result"] = self.result.model_dump(mode="json")
        if self.declaration is not None:
            data["declaration"] = self.declaration.model_dump(mode="json")
        if self.post_process_error is not None:
            data["post_process_error"] = self.post_process_error.to_dict()
        return data


# ── Output snapshots ────────────────────────────────────────────


def snapshot_outputs(output_dir: Path) -> dict[Path, tuple[int, int]]:
    """Map every file under ``output_dir`` to its (mtime_ns, size)."""
    snapshot: dict[Path, tuple[int, int]] = {}
    if not output_dir.is_dir():
        return snapshot
    for path in output_dir.rglob("*"):
        try:
            if path.is_file():
                st = path.stat()
                snapshot[path] = (st.st_mtime_ns, st.st_size)
        except OSError:
            continue
    return snapshot


def written_files(
    before: dict[Path, tuple[int, int]],
    after: dict[Path, tuple[int, int]],
) -> list[Path]:
    """Files that are new or were rewritten between two snapshots."""
    return sorted(path for path, state in after.items() if before.get(path) != state)


# ── Stages ──────────────────────────────────────────────────────


def generate_stubs(
    request: GenerationRequest,
    registry: AdapterRegistry,
    project_root: str = ".",
    dry_run: bool = False,
) -> tuple[GenerationResult, Receipt]:
    """Run the schema compiler once for the whole request.

    Raises:
        GenerationError: The compiler failed; carries its stderr verbatim.
    """
    action = Action(
        id="generate",
        description="Generate stubs",
        adapter=COMPILER_ADAPTER,
        params={
            "inputs": [str(p) for p in request.inputs],
            "search_paths": [str(p) for p in request.search_paths],
            "output_dir": str(request.output_dir),
            "plugins": list(request.plugins),
            "extra_args": list(request.extra_args),
        },
    )

    before = snapshot_outputs(request.output_dir)
    logger.info(
        "Generating stubs for %d input(s) into %s", len(request.inputs), request.output_dir
    )
    receipt = registry.execute_action(action, project_root=project_root, dry_run=dry_run)

    if receipt.failed:
        raise GenerationError(
            f"Schema compiler failed: {_first_line(receipt.error)}",
            diagnostics=receipt.diagnostics,
            stdout=receipt.stdout,
            return_code=receipt.return_code,
            command=receipt.command,
        )

    result = GenerationResult(
        output_dir=request.output_dir,
        compiler_exit=receipt.return_code,
    )
    if receipt.skipped:
        return result, receipt

    result.generated_files = written_files(before, snapshot_outputs(request.output_dir))
    if result.generated_files:
        logger.info("Compiler wrote %d file(s)", len(result.generated_files))
    else:
        logger.warning("Compiler succeeded but wrote no files into %s", request.output_dir)
    return result, receipt


def format_outputs(
    result: GenerationResult,
    registry: AdapterRegistry,
    *,
    strict: bool = False,
    project_root: str = ".",
    dry_run: bool = False,
) -> tuple[Receipt | None, PostProcessError | None]:
    """Format the entire output directory tree.

    Skipped (returns ``(None, None)``) when no formatter is registered.

    Raises:
        PostProcessError: Only when ``strict`` and the formatter failed.
    """
    if not registry.has(FORMATTER_ADAPTER):
        logger.debug("No formatter configured, skipping post-processing")
        return None, None

    action = Action(
        id="format",
        description="Format generated code",
        adapter=FORMATTER_ADAPTER,
        params={"target": str(result.output_dir)},
    )
    receipt = registry.execute_action(action, project_root=project_root, dry_run=dry_run)

    if receipt.skipped:
        return receipt, None

    result.formatter_exit = receipt.return_code
    if receipt.ok:
        result.formatted = True
        return receipt, None

    error = PostProcessError(
        f"Formatter failed: {_first_line(receipt.error)}",
        diagnostics=receipt.diagnostics,
        return_code=receipt.return_code,
    )
    if strict:
        raise error

    logger.warning("%s (generated stubs are usable unformatted)", error.message)
    result.warnings.append(error.message)
    return receipt, error


def run_pipeline(
    request: GenerationRequest,
    registry: AdapterRegistry,
    *,
    target: Path,
    strict: bool = False,
    project_root: str = ".",
    dry_run: bool = False,
) -> PipelineReport:
    """Run generate → format → declare for a resolved request.

    Args:
        request: Output of input resolution.
        registry: Holds the 'protoc' adapter and, optionally, 'formatter'.
        target: The artifact the dependency declaration is attached to.
        strict: Make formatter failures fatal.
        project_root: Working directory for the tools.
        dry_run: Validate and describe the commands without running them.

    Raises:
        GenerationError: The compiler failed.
        PostProcessError: The formatter failed in strict mode.
    """
    report = PipelineReport(request=request, dry_run=dry_run)

    result, receipt = generate_stubs(
        request, registry, project_root=project_root, dry_run=dry_run
    )
    report.receipts.append(receipt)
    report.result = result

    fmt_receipt, fmt_error = format_outputs(
        result, registry, strict=strict, project_root=project_root, dry_run=dry_run
    )
    if fmt_receipt is not None:
        report.receipts.append(fmt_receipt)
    report.post_process_error = fmt_error

    report.declaration = declare_dependencies(request, target)
    return report


def _first_line(text: str | None) -> str:
    if not text:
        return "unknown error"
    for line in text.splitlines():
        if line.strip():
            return line.strip()
    return "unknown error"
