"""Two-phase request pipeline.

This module provides a pipeline abstraction where:
- Each Stage has an inbound step (before the handler) and an outbound step (after)
- Inbound steps run in order; a stage can cancel by returning a cancelled Context
- Outbound steps run in reverse, only for the stages whose inbound step ran
- Context carries immutable request-scoped values between stages
"""

from .context import Context, ContextKey
from .base import (
    FunctionStage,
    InboundStage,
    OutboundStage,
    Pipeline,
    PipelineHandler,
    Stage,
    Traversal,
    inbound,
    outbound,
    stage,
)

__all__ = [
    "Context",
    "ContextKey",
    "FunctionStage",
    "InboundStage",
    "OutboundStage",
    "Pipeline",
    "PipelineHandler",
    "Stage",
    "Traversal",
    "inbound",
    "outbound",
    "stage",
]
