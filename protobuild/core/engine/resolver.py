"""
Input resolution — turn configured paths into a GenerationRequest.

This is the first pipeline stage and the only one that can fail
before any process is spawned. It checks that every IDL input exists
and is readable,
that every search path exists, and creates the output directory.

Input entries may be plain paths or glob patterns ("protos/**/*.proto").
Relative paths resolve against the project root.
"""

from __future__ import annotations

import glob
import logging
import os
from pathlib import Path

from protobuild.core.errors import ConfigurationError
from protobuild.core.models.generation import DEFAULT_PLUGINS, GenerationRequest

logger = logging.getLogger(__name__)

_GLOB_CHARS = "*?["


def _absolute(root: Path, entry: str | Path) -> Path:
    path = Path(entry).expanduser()
    if not path.is_absolute():
        path = root / path
    return path.resolve()


def _dedupe(paths: list[Path]) -> list[Path]:
    seen: set[Path] = set()
    unique: list[Path] = []
    for path in paths:
        if path not in seen:
            seen.add(path)
            unique.append(path)
    return unique


def _readable_file(path: Path) -> bool:
    return path.is_file() and os.access(path, os.R_OK)


def expand_inputs(entries: list[str], root: Path) -> tuple[list[Path], list[str]]:
    """Expand input entries into absolute file paths.

    Returns:
        (found, missing). Glob patterns are expanded in sorted order;
        a pattern that matches no file counts as missing, and so does
        any input the current user cannot read.
    """
    found: list[Path] = []
    missing: list[str] = []

    for entry in entries:
        entry = str(entry)
        if any(ch in entry for ch in _GLOB_CHARS):
            pattern = entry if Path(entry).is_absolute() else str(root / entry)
            matches = [
                Path(m).resolve()
                for m in sorted(glob.glob(pattern, recursive=True))
                if Path(m).is_file()
            ]
            if not matches:
                missing.append(entry)
            for match in matches:
                if os.access(match, os.R_OK):
                    found.append(match)
                else:
                    missing.append(str(match))
            continue

        path = _absolute(root, entry)
        if _readable_file(path):
            found.append(path)
        else:
            missing.append(entry)

    return _dedupe(found), missing


def _is_under(path: Path, directory: Path) -> bool:
    try:
        path.relative_to(directory)
    except ValueError:
        return False
    return True


def resolve_request(
    inputs: list[str],
    search_paths: list[str],
    output_dir: str,
    *,
    root: Path,
    plugins: list[str] | None = None,
    extra_args: list[str] | None = None,
    create_output_dir: bool = True,
) -> GenerationRequest:
    """Validate configured paths and build a GenerationRequest.

    Args:
        inputs: IDL files or glob patterns, in order.
        search_paths: Include directories for cross-file imports.
        output_dir: Where generated stubs go (created if absent).
        root: Directory relative paths are resolved against.
        plugins: protoc output plugins (default: python, grpc_python, pyi).
        extra_args: Extra compiler arguments.
        create_output_dir: Set False to resolve without side effects.

    Raises:
        ConfigurationError: Empty input list, a missing input file,
            a missing search path, or an unusable output directory.
    """
    if not inputs:
        raise ConfigurationError(
            "No IDL inputs configured.",
            "List at least one .proto file under 'inputs' or on the command line.",
        )

    files, missing = expand_inputs(inputs, root)
    if missing:
        raise ConfigurationError(
            f"IDL input(s) not found or unreadable: {', '.join(missing)}",
            f"Paths are resolved relative to {root}.",
        )

    includes: list[Path] = []
    bad_includes: list[str] = []
    for entry in search_paths:
        path = _absolute(root, entry)
        if path.is_dir():
            includes.append(path)
        else:
            bad_includes.append(str(entry))
    if bad_includes:
        raise ConfigurationError(
            f"Search path(s) not found: {', '.join(bad_includes)}",
            "Every search path must be an existing directory.",
        )
    includes = _dedupe(includes)

    # An input always resolves against its own directory
    for path in files:
        if not any(_is_under(path, inc) for inc in includes):
            logger.debug("Adding %s as implicit search path for %s", path.parent, path.name)
            includes.append(path.parent)
    includes = _dedupe(includes)

    out = _absolute(root, output_dir)
    if out.exists() and not out.is_dir():
        raise ConfigurationError(f"Output path exists and is not a directory: {out}")
    if create_output_dir and not out.exists():
        try:
            out.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise ConfigurationError(f"Cannot create output directory {out}: {e}") from e
        logger.info("Created output directory %s", out)

    return GenerationRequest(
        inputs=files,
        search_paths=includes,
        output_dir=out,
        plugins=list(plugins) if plugins else list(DEFAULT_PLUGINS),
        extra_args=list(extra_args or []),
    )
