"""
Generation models — what the pipeline is asked to do and what it did.

GenerationRequest and GenerationResult are transient: they are
recomputed on every invocation and never persisted. Only their side
effects (files under the output directory) survive a run.
"""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, Field

# protoc output plugins emitted when the config doesn't say otherwise:
# messages (_pb2.py), service stubs (_pb2_grpc.py), type stubs (_pb2.pyi)
DEFAULT_PLUGINS: tuple[str, ...] = ("python", "grpc_python", "pyi")


class GenerationRequest(BaseModel):
    """A fully resolved request for the schema compiler.

    All paths are absolute. ``search_paths`` already includes any
    implicit entries added so that every input resolves under one of
    them.
    """

    inputs: list[Path]
    search_paths: list[Path] = Field(default_factory=list)
    output_dir: Path
    plugins: list[str] = Field(default_factory=lambda: list(DEFAULT_PLUGINS))
    extra_args: list[str] = Field(default_factory=list)


class GenerationResult(BaseModel):
    """Outcome of stub generation, completed by post-processing."""

    output_dir: Path
    generated_files: list[Path] = Field(default_factory=list)
    compiler_exit: int | None = None
    formatter_exit: int | None = None   # None = formatter skipped or never started
    formatted: bool = False
    warnings: list[str] = Field(default_factory=list)


class DependencyDeclaration(BaseModel):
    """The "re-run when any of these change" directive.

    ``target`` is the artifact the host build system associates with
    the generation step (the stamp file); ``watched`` are the IDL
    inputs, in request order.
    """

    target: Path
    watched: list[Path] = Field(default_factory=list)
