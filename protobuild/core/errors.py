"""
Pipeline error taxonomy.

Every failure the pipeline reports is one of three kinds, one per stage:

    ConfigurationError  — bad or missing inputs / search paths (resolve)
    GenerationError     — the schema compiler rejected the IDL (generate)
    PostProcessError    — the formatter failed (format)

Adapters never raise these; the engine converts failed receipts into
them. Use cases catch ``PipelineError`` and report it as a result.
"""

from __future__ import annotations

from typing import Any


class PipelineError(Exception):
    """Base class for all pipeline failures."""

    stage = "pipeline"

    def __init__(self, message: str, suggestion: str | None = None):
        super().__init__(message)
        self.message = message
        self.suggestion = suggestion

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"stage": self.stage, "message": self.message}
        if self.suggestion:
            data["suggestion"] = self.suggestion
        return data


class ConfigurationError(PipelineError):
    """Inputs, search paths or the config file are invalid."""

    stage = "resolve"


class GenerationError(PipelineError):
    """The schema compiler exited with an error.

    ``diagnostics`` holds the compiler's stderr exactly as it was
    written — it is never trimmed or reformatted.
    """

    stage = "generate"

    def __init__(
        self,
        message: str,
        *,
        diagnostics: str = "",
        stdout: str = "",
        return_code: int | None = None,
        command: list[str] | None = None,
    ):
        super().__init__(message)
        self.diagnostics = diagnostics
        self.stdout = stdout
        self.return_code = return_code
        self.command = command or []

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data.update({
            "diagnostics": self.diagnostics,
            "stdout": self.stdout,
            "return_code": self.return_code,
            "command": self.command,
        })
        return data


class PostProcessError(PipelineError):
    """The formatter could not run or exited with an error."""

    stage = "format"

    def __init__(
        self,
        message: str,
        *,
        diagnostics: str = "",
        return_code: int | None = None,
    ):
        super().__init__(message)
        self.diagnostics = diagnostics
        self.return_code = return_code

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data.update({"diagnostics": self.diagnostics, "return_code": self.return_code})
        return data
