"""
Change tracking — tell the host build system when to re-run generation.

The pipeline itself does no change detection. Its last stage produces
a DependencyDeclaration ("re-run this step when any of these inputs
change") and renders it in whatever form the host consumes:

    depfile     Make syntax, understood by make and ninja (``depfile =``)
    directives  one ``protobuild:rerun-if-changed=<path>`` line per input

The built-in host (``protobuild generate``) persists a Stamp recording
each input's modification state, and consults it with
``check_freshness`` before deciding whether to run the pipeline at all.
"""

from __future__ import annotations

import hashlib
import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from protobuild.core.models.generation import (
    DependencyDeclaration,
    GenerationRequest,
    GenerationResult,
)
from protobuild.core.models.stamp import InputState, Stamp

logger = logging.getLogger(__name__)

DIRECTIVE_PREFIX = "protobuild:rerun-if-changed="


def declare_dependencies(request: GenerationRequest, target: Path) -> DependencyDeclaration:
    """Build the dependency declaration for a resolved request."""
    return DependencyDeclaration(target=target, watched=list(request.inputs))


# ── Emitters ────────────────────────────────────────────────────


def render_directives(declaration: DependencyDeclaration) -> list[str]:
    """One rerun-if-changed line per watched input."""
    return [f"{DIRECTIVE_PREFIX}{path}" for path in declaration.watched]


def _make_escape(path: Path | str) -> str:
    text = str(path)
    return text.replace("$", "$$").replace("#", "\\#").replace(" ", "\\ ")


def render_depfile(declaration: DependencyDeclaration) -> str:
    """Render a Make-syntax depfile.

    Each input also gets an empty rule, so deleting an input makes the
    target stale instead of breaking the host build.
    """
    deps = " \\\n  ".join(_make_escape(p) for p in declaration.watched)
    lines = [f"{_make_escape(declaration.target)}: {deps}".rstrip(), ""]
    for path in declaration.watched:
        lines.append(f"{_make_escape(path)}:")
        lines.append("")
    return "\n".join(lines)


def write_depfile(
    declaration: DependencyDeclaration,
    path: Path,
    only_if_changed: bool = False,
) -> bool:
    """Write the depfile. Failure is logged, never raised.

    With ``only_if_changed`` an identical existing depfile is left
    untouched, so its mtime does not wake up the host build.
    """
    content = render_depfile(declaration)
    if only_if_changed:
        try:
            if path.read_text(encoding="utf-8") == content:
                return True
        except OSError:
            pass  # missing or unreadable: rewrite it
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
    except OSError as e:
        logger.warning("Could not write depfile %s: %s", path, e)
        return False
    logger.debug("Depfile written to %s", path)
    return True


# ── Freshness (host side) ───────────────────────────────────────


def request_fingerprint(request: GenerationRequest, extra: dict[str, Any] | None = None) -> str:
    """Hash everything besides input contents that shapes the output.

    A change to search paths, plugins, compiler or formatter settings
    must regenerate even when no input file changed.
    """
    payload = {
        "request": request.model_dump(mode="json"),
        "extra": extra or {},
    }
    blob = json.dumps(payload, sort_keys=True).encode("utf-8")
    return hashlib.sha256(blob).hexdigest()


def input_state(path: Path) -> InputState | None:
    """Current modification state of a file, or None if it's gone."""
    try:
        st = path.stat()
    except OSError:
        return None
    return InputState(mtime_ns=st.st_mtime_ns, size=st.st_size)


def snapshot_inputs(declaration: DependencyDeclaration) -> dict[str, InputState]:
    """Modification state of every watched input that exists right now."""
    states: dict[str, InputState] = {}
    for path in declaration.watched:
        state = input_state(path)
        if state is not None:
            states[str(path)] = state
    return states


def build_stamp(
    declaration: DependencyDeclaration,
    result: GenerationResult,
    fingerprint: str,
    inputs: dict[str, InputState] | None = None,
) -> Stamp:
    """Record what a successful run was generated from.

    ``inputs`` must be the snapshot taken before the compiler started;
    an input edited while the pipeline ran then stays stale. Without
    it the current state is read.
    """
    if inputs is None:
        inputs = snapshot_inputs(declaration)
    return Stamp(
        fingerprint=fingerprint,
        inputs=inputs,
        outputs=sorted(str(p) for p in result.generated_files),
    )


@dataclass
class Freshness:
    """Whether the generation step may be skipped, and why not."""

    up_to_date: bool = False
    reasons: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {"up_to_date": self.up_to_date, "reasons": self.reasons}


def check_freshness(
    declaration: DependencyDeclaration,
    stamp: Stamp | None,
    fingerprint: str,
) -> Freshness:
    """Compare current input state against the last successful run.

    Stale when: there is no stamp, the configuration changed, a watched
    input was added, changed or deleted, or a recorded output is gone.
    """
    freshness = Freshness()

    if stamp is None:
        freshness.reasons.append("no previous successful run")
        return freshness

    if stamp.fingerprint != fingerprint:
        freshness.reasons.append("configuration changed")

    for path in declaration.watched:
        recorded = stamp.inputs.get(str(path))
        current = input_state(path)
        if current is None:
            freshness.reasons.append(f"input missing: {path}")
        elif recorded is None:
            freshness.reasons.append(f"new input: {path}")
        elif recorded != current:
            freshness.reasons.append(f"input changed: {path}")

    for output in stamp.outputs:
        if not Path(output).is_file():
            freshness.reasons.append(f"output missing: {output}")

    freshness.up_to_date = not freshness.reasons
    return freshness
