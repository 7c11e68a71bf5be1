"""Engine — input resolution, the generation pipeline, and change tracking."""

from protobuild.core.engine.pipeline import (
    PipelineReport,
    format_outputs,
    generate_stubs,
    run_pipeline,
)
from protobuild.core.engine.resolver import resolve_request
from protobuild.core.engine.tracking import (
    check_freshness,
    declare_dependencies,
    render_depfile,
    render_directives,
)

__all__ = [
    "PipelineReport",
    "check_freshness",
    "declare_dependencies",
    "format_outputs",
    "generate_stubs",
    "render_depfile",
    "render_directives",
    "resolve_request",
    "run_pipeline",
]
