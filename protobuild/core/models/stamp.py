"""
Stamp model — what the host build system remembers between runs.

A stamp is written after every successful pipeline run and consulted
before the next one. It records the modification state of every
watched input; any difference means the step must re-run.
"""

from __future__ import annotations

from pydantic import BaseModel, Field

from protobuild.core.models.action import _now_iso


class InputState(BaseModel):
    """Modification state of one watched file."""

    mtime_ns: int
    size: int


class Stamp(BaseModel):
    """Record of the last successful generation run."""

    schema_version: int = 1
    fingerprint: str = ""                       # hash of the request configuration
    inputs: dict[str, InputState] = Field(default_factory=dict)
    outputs: list[str] = Field(default_factory=list)
    created_at: str = Field(default_factory=_now_iso)
