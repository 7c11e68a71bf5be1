"""
Build configuration model — loaded from protobuild.yml.

Paths are kept as strings, exactly as written; they are resolved
against the project root (the directory holding protobuild.yml) by
the input resolver, not here.
"""

from __future__ import annotations

from pydantic import BaseModel, Field, field_validator

from protobuild.core.models.generation import DEFAULT_PLUGINS

# Formatter tools the post-processing step knows how to run
FORMATTER_TOOLS: tuple[str, ...] = ("ruff-format", "black", "none")

# protoc plugins we know about; anything else is passed through with a warning
KNOWN_PLUGINS: frozenset[str] = frozenset({
    "python",
    "grpc_python",
    "pyi",
    "mypy",
    "mypy_grpc",
    "descriptor_set",
})


class CompilerConfig(BaseModel):
    """How to invoke the schema compiler."""

    executable: str | None = None   # None = python -m grpc_tools.protoc
    plugins: list[str] = Field(default_factory=lambda: list(DEFAULT_PLUGINS))
    extra_args: list[str] = Field(default_factory=list)

    @field_validator("plugins")
    @classmethod
    def _plugins_not_empty(cls, value: list[str]) -> list[str]:
        if not value:
            raise ValueError("at least one output plugin is required")
        return value


class FormatterConfig(BaseModel):
    """How (and whether) to format generated code."""

    tool: str = "ruff-format"
    strict: bool = False            # True = formatter failure fails the run
    extra_args: list[str] = Field(default_factory=list)

    @field_validator("tool")
    @classmethod
    def _known_tool(cls, value: str) -> str:
        if value not in FORMATTER_TOOLS:
            raise ValueError(
                f"unknown formatter '{value}', expected one of: {', '.join(FORMATTER_TOOLS)}"
            )
        return value

    @property
    def enabled(self) -> bool:
        return self.tool != "none"


class TrackingConfig(BaseModel):
    """Where change-tracking artifacts live (relative to project root)."""

    stamp: str = ".protobuild/stamp.json"
    depfile: str | None = ".protobuild/generate.d"


class BuildConfig(BaseModel):
    """Root configuration — one generation step."""

    version: int = 1

    name: str = ""
    inputs: list[str] = Field(default_factory=list)         # files or glob patterns
    search_paths: list[str] = Field(default_factory=list)
    output_dir: str = "generated"

    compiler: CompilerConfig = Field(default_factory=CompilerConfig)
    formatter: FormatterConfig = Field(default_factory=FormatterConfig)
    tracking: TrackingConfig = Field(default_factory=TrackingConfig)
