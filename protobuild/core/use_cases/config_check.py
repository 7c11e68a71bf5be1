"""
Config check use case — validate protobuild.yml and report issues.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from protobuild.core.config.loader import find_config_file, load_config, project_root
from protobuild.core.engine.resolver import resolve_request
from protobuild.core.errors import ConfigurationError
from protobuild.core.models.config import KNOWN_PLUGINS, BuildConfig
from protobuild.core.use_cases.generate import build_registry


@dataclass
class ConfigCheckResult:
    """Result of configuration validation."""

    valid: bool = False
    config: BuildConfig | None = None
    config_path: Path | None = None
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "valid": self.valid,
            "config_path": str(self.config_path) if self.config_path else None,
            "errors": self.errors,
            "warnings": self.warnings,
            "name": self.config.name if self.config else None,
            "input_count": len(self.config.inputs) if self.config else 0,
            "formatter": self.config.formatter.tool if self.config else None,
        }


def check_config(config_path: Path | None = None, cwd: Path | None = None) -> ConfigCheckResult:
    """Validate build configuration and report issues.

    Args:
        config_path: Optional explicit path to protobuild.yml.
        cwd: Where to start searching for the config.

    Returns:
        ConfigCheckResult with validation status and any issues.
    """
    result = ConfigCheckResult()

    if config_path is None:
        config_path = find_config_file(cwd)
    if config_path is None:
        result.errors.append("No protobuild.yml found.")
        return result
    result.config_path = config_path

    try:
        config = load_config(config_path)
        result.config = config
    except ConfigurationError as e:
        result.errors.append(e.message)
        return result

    root = project_root(config_path)

    # Resolve paths without creating anything
    try:
        request = resolve_request(
            config.inputs,
            config.search_paths,
            config.output_dir,
            root=root,
            plugins=config.compiler.plugins,
            create_output_dir=False,
        )
    except ConfigurationError as e:
        result.errors.append(e.message)
        request = None

    # Semantic checks
    unknown = [p for p in config.compiler.plugins if p not in KNOWN_PLUGINS]
    if unknown:
        result.warnings.append(
            f"Unknown output plugin(s): {', '.join(unknown)}. "
            "They are passed to the compiler as --<name>_out."
        )

    dupes = sorted({p for p in config.inputs if config.inputs.count(p) > 1})
    if dupes:
        result.warnings.append(f"Duplicate inputs: {', '.join(dupes)}")

    if request is not None:
        for inc in request.search_paths:
            if request.output_dir == inc or inc.is_relative_to(request.output_dir):
                result.warnings.append(
                    f"Search path {inc} is inside the output directory; "
                    "generated files may shadow IDL sources."
                )

    registry = build_registry(config)
    for name, status in registry.adapter_status().items():
        if not status["available"]:
            message = f"Tool for '{name}' is not available ({status['type']})."
            hint = getattr(registry.get(name), "install_hint", None)
            if hint:
                message += f" Install it with: {hint}"
            result.warnings.append(message)

    result.valid = len(result.errors) == 0
    return result
