"""
Status use case — are the generated stubs up to date?

Answers the question the host build system asks before every build,
without running anything and without touching the output directory.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from protobuild.core.engine.tracking import check_freshness, declare_dependencies
from protobuild.core.errors import PipelineError
from protobuild.core.models.stamp import Stamp
from protobuild.core.persistence.stamp_file import load_stamp
from protobuild.core.use_cases.generate import load_build


@dataclass
class StatusResult:
    """Freshness of the generation step."""

    up_to_date: bool = False
    reasons: list[str] = field(default_factory=list)
    watched: list[Path] = field(default_factory=list)
    output_dir: Path | None = None
    stamp_path: Path | None = None
    stamp: Stamp | None = None
    error: str | None = None

    def to_dict(self) -> dict:
        if self.error:
            return {"error": self.error}
        return {
            "up_to_date": self.up_to_date,
            "reasons": self.reasons,
            "watched": [str(p) for p in self.watched],
            "output_dir": str(self.output_dir) if self.output_dir else None,
            "stamp": str(self.stamp_path) if self.stamp_path else None,
            "last_run": self.stamp.created_at if self.stamp else None,
        }


def get_status(config_path: Path | None = None, cwd: Path | None = None) -> StatusResult:
    """Compare the current inputs against the last successful run."""
    result = StatusResult()

    try:
        build = load_build(config_path, cwd=cwd)
        request = build.resolve(create_output_dir=False)
    except PipelineError as e:
        result.error = e.message
        return result

    declaration = declare_dependencies(request, build.stamp_path)
    stamp = load_stamp(build.stamp_path)
    freshness = check_freshness(declaration, stamp, build.fingerprint(request))

    result.up_to_date = freshness.up_to_date
    result.reasons = freshness.reasons
    result.watched = declaration.watched
    result.output_dir = request.output_dir
    result.stamp_path = build.stamp_path
    result.stamp = stamp
    return result
