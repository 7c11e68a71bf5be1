"""
Deps use case — print the dependency declaration without generating.

Lets a host build system (make, ninja, a CI cache key) learn which
files the generation step watches before it decides to run it.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from protobuild.core.engine.tracking import (
    declare_dependencies,
    render_depfile,
    render_directives,
)
from protobuild.core.errors import PipelineError
from protobuild.core.models.generation import DependencyDeclaration
from protobuild.core.use_cases.generate import load_build

DEPS_FORMATS = ("make", "lines")


@dataclass
class DepsResult:
    declaration: DependencyDeclaration | None = None
    rendered: str = ""
    error: str | None = None

    def to_dict(self) -> dict:
        if self.error or self.declaration is None:
            return {"error": self.error or "No dependency declaration"}
        return {
            "target": str(self.declaration.target),
            "watched": [str(p) for p in self.declaration.watched],
        }


def describe_dependencies(
    config_path: Path | None = None,
    fmt: str = "lines",
    cwd: Path | None = None,
) -> DepsResult:
    """Resolve inputs (no side effects) and render the declaration."""
    result = DepsResult()

    if fmt not in DEPS_FORMATS:
        result.error = f"Unknown format '{fmt}'. Valid: {', '.join(DEPS_FORMATS)}"
        return result

    try:
        build = load_build(config_path, cwd=cwd)
        request = build.resolve(create_output_dir=False)
    except PipelineError as e:
        result.error = e.message
        return result

    declaration = declare_dependencies(request, build.stamp_path)
    result.declaration = declaration
    if fmt == "make":
        result.rendered = render_depfile(declaration)
    else:
        result.rendered = "\n".join(render_directives(declaration)) + "\n"
    return result
