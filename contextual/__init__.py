"""Context-carrying request pipelines for Starlette/FastAPI handlers."""

from .pipeline import (
    Context,
    ContextKey,
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
from .handler import Handler, HandlerFunc, NotFoundHandler, as_handler
from .response import ResponseWriter
from .adapter import PARAMS_KEY, Adapter, ContextRouter, add_route, params
from .errors import PipelineError, StageContractError

__version__ = "0.1.0"

__all__ = [
    "Adapter",
    "Context",
    "ContextKey",
    "ContextRouter",
    "FunctionStage",
    "Handler",
    "HandlerFunc",
    "InboundStage",
    "NotFoundHandler",
    "OutboundStage",
    "PARAMS_KEY",
    "Pipeline",
    "PipelineError",
    "PipelineHandler",
    "ResponseWriter",
    "Stage",
    "StageContractError",
    "Traversal",
    "add_route",
    "as_handler",
    "inbound",
    "outbound",
    "params",
    "stage",
]
