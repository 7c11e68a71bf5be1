"""
Domain models — Pydantic types for the generation pipeline.

All models are re-exported here for convenient access:

    from protobuild.core.models import BuildConfig, GenerationRequest, Receipt
"""

from protobuild.core.models.action import Action, Receipt
from protobuild.core.models.config import (
    BuildConfig,
    CompilerConfig,
    FormatterConfig,
    TrackingConfig,
)
from protobuild.core.models.generation import (
    DependencyDeclaration,
    GenerationRequest,
    GenerationResult,
)
from protobuild.core.models.stamp import InputState, Stamp

__all__ = [
    # action.py
    "Action",
    # config.py
    "BuildConfig",
    "CompilerConfig",
    # generation.py
    "DependencyDeclaration",
    "FormatterConfig",
    "GenerationRequest",
    "GenerationResult",
    # stamp.py
    "InputState",
    "Receipt",
    "Stamp",
    "TrackingConfig",
]
