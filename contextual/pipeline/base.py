import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Iterable, Iterator, Optional, Tuple, Union

from ..errors import StageContractError
from ..handler import Handler, HandlerCallable, HandlerFunc, as_handler
from ..response import ResponseWriter
from ..utils import maybe_await
from .context import Context

logger = logging.getLogger(__name__)

# (context, response, request) -> Context, plain or async
InboundFn = Callable[[Context, ResponseWriter, Any], Union[Context, Awaitable[Context]]]
# (context, request) -> None, plain or async
OutboundFn = Callable[[Context, Any], Union[None, Awaitable[None]]]


class Stage:
    """
    Base class for pipeline stages.

    A stage has two independent steps. inbound() runs before the terminal
    handler and returns the context for the next stage; returning a
    cancelled context stops the pipeline. outbound() runs after the
    handler with the final context. Both default to no-ops, so subclasses
    override only what they need.

    Stages must not keep per-request state on self; one instance serves
    every request that goes through its pipeline.
    """

    @property
    def name(self) -> str:
        return type(self).__name__

    async def inbound(self, context: Context, response: ResponseWriter, request: Any) -> Context:
        """Transform the context on the way in. NEVER mutate the input context."""
        return context

    async def outbound(self, context: Context, request: Any) -> None:
        """Finalize after the handler. Side effects only."""
        return None

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.name!r}>"


class FunctionStage(Stage):
    """Stage built from a pair of plain or async functions."""

    def __init__(
        self,
        inbound: Optional[InboundFn] = None,
        outbound: Optional[OutboundFn] = None,
        name: Optional[str] = None,
    ):
        if inbound is None and outbound is None:
            raise ValueError("FunctionStage needs an inbound or an outbound function")
        self._inbound = inbound
        self._outbound = outbound
        self._name = name or _func_name(inbound) or _func_name(outbound)

    @property
    def name(self) -> str:
        return self._name

    async def inbound(self, context: Context, response: ResponseWriter, request: Any) -> Context:
        if self._inbound is None:
            return context
        return await maybe_await(self._inbound(context, response, request))

    async def outbound(self, context: Context, request: Any) -> None:
        if self._outbound is not None:
            await maybe_await(self._outbound(context, request))


class InboundStage(FunctionStage):
    """Stage with only an inbound step."""

    def __init__(self, func: InboundFn, name: Optional[str] = None):
        super().__init__(inbound=func, name=name)


class OutboundStage(FunctionStage):
    """Stage with only an outbound step."""

    def __init__(self, func: OutboundFn, name: Optional[str] = None):
        super().__init__(outbound=func, name=name)


def inbound(func: InboundFn) -> Stage:
    """Wrap a context-transform function as a stage. Usable as a decorator."""
    return InboundStage(func)


def outbound(func: OutboundFn) -> Stage:
    """Wrap a finalizing function as a stage. Usable as a decorator."""
    return OutboundStage(func)


def stage(
    inbound: Optional[InboundFn] = None,
    outbound: Optional[OutboundFn] = None,
    name: Optional[str] = None,
) -> Stage:
    """Build a stage from an inbound function, an outbound function, or both."""
    return FunctionStage(inbound=inbound, outbound=outbound, name=name)


def _func_name(func: Optional[Callable]) -> Optional[str]:
    if func is None:
        return None
    return getattr(func, "__name__", None) or type(func).__name__


@dataclass
class Traversal:
    """
    Bookkeeping for one request's trip through a pipeline.

    high_water_mark is the index of the last stage whose inbound step ran
    (None if none did). It decides where the outbound pass starts. A
    Traversal belongs to a single request and is never stored on the
    Pipeline.
    """

    context: Context
    high_water_mark: Optional[int] = None
    cancelled_at: Optional[int] = None

    @property
    def cancelled(self) -> bool:
        return self.context.is_cancelled()


class Pipeline:
    """
    Ordered stages around a terminal handler.

    Inbound steps run first to last, outbound steps last to first, and only
    for the stages whose inbound step ran. Immutable - append() and
    with_stage() return a new pipeline.

    Usage:
        pipeline = Pipeline([RequestIdStage(), AuthStage(), TimingStage()])
        handler = pipeline.then(my_endpoint)
        await handler.serve(Context.background(), ResponseWriter(), request)
    """

    def __init__(
        self,
        stages: Optional[Iterable[Stage]] = None,
        default_handler: Union[Handler, HandlerCallable, None] = None,
    ):
        """
        Args:
            stages: Stages in inbound order
            default_handler: Used by then() when no handler is given.
                Falls back to NotFoundHandler when omitted.
        """
        self._stages: Tuple[Stage, ...] = tuple(stages or ())
        for item in self._stages:
            if not isinstance(item, Stage):
                raise TypeError(f"Pipeline stages must be Stage instances, got {type(item).__name__}")
        self._default_handler = (
            as_handler(default_handler) if default_handler is not None else None
        )

    @property
    def stages(self) -> Tuple[Stage, ...]:
        return self._stages

    @property
    def default_handler(self) -> Optional[Handler]:
        return self._default_handler

    # ------------------------------------------------------------------
    # Composition
    # ------------------------------------------------------------------

    def append(self, *stages: Stage) -> "Pipeline":
        """Return new pipeline with stages added at the innermost end."""
        return Pipeline(self._stages + stages, default_handler=self._default_handler)

    def with_stage(self, stage: Stage) -> "Pipeline":
        """
        Return new pipeline with stage appended.

        Creates a new pipeline, leaves the original unchanged.
        """
        return self.append(stage)

    def extend(self, other: "Pipeline") -> "Pipeline":
        """Return new pipeline running self's stages, then other's."""
        return Pipeline(self._stages + other.stages, default_handler=self._default_handler)

    def then(self, handler: Union[Handler, HandlerCallable, None] = None) -> Handler:
        """
        Produce a Handler that runs the pipeline around handler.

        A None handler maps to this pipeline's default handler.
        """
        return PipelineHandler(self, as_handler(handler, self._default_handler))

    def then_func(self, func: HandlerCallable) -> Handler:
        """Same as then(), but takes a function directly."""
        return self.then(HandlerFunc(func))

    # ------------------------------------------------------------------
    # Execution
    # ------------------------------------------------------------------

    async def run_inbound(
        self, context: Context, response: ResponseWriter, request: Any
    ) -> Traversal:
        """
        Run inbound steps in order until one cancels.

        Returns:
            Traversal with the final context and the high-water mark

        A dispatcher that must unwind after an inbound fault should create
        its own Traversal and call advance() instead; this method loses the
        Traversal if a stage raises.
        """
        traversal = Traversal(context=context)
        await self.advance(traversal, response, request)
        return traversal

    async def advance(
        self, traversal: Traversal, response: ResponseWriter, request: Any
    ) -> Traversal:
        """
        Run inbound steps on a caller-owned Traversal.

        The high-water mark is updated before each stage runs, so if a stage
        raises, traversal still says which stages need unwinding.

        Usage:
            traversal = Traversal(context=Context.background())
            try:
                await pipeline.advance(traversal, response, request)
                ...
            finally:
                await pipeline.unwind(traversal, request)
        """
        for index, current in enumerate(self._stages):
            # Marked before the call so a fault still unwinds this stage.
            traversal.high_water_mark = index
            logger.debug(f"Inbound [{index}] {current.name}")

            result = await maybe_await(current.inbound(traversal.context, response, request))
            if not isinstance(result, Context):
                raise StageContractError(current.name, result)
            traversal.context = result

            if result.is_cancelled():
                traversal.cancelled_at = index
                logger.info(
                    f"Pipeline cancelled by {current.name} at stage {index}: "
                    f"{result.cancel_reason or 'no reason given'}"
                )
                break
        return traversal

    async def run_outbound(
        self,
        context: Context,
        high_water_mark: Optional[int],
        request: Any,
        raise_errors: bool = True,
    ) -> None:
        """
        Run outbound steps from high_water_mark down to the first stage.

        Every step runs even if an earlier one raises. With raise_errors the
        first exception is re-raised once the unwind finishes; without it,
        failures are only logged.
        """
        if high_water_mark is None:
            return

        first_error: Optional[BaseException] = None
        for index in range(high_water_mark, -1, -1):
            current = self._stages[index]
            logger.debug(f"Outbound [{index}] {current.name}")
            try:
                await maybe_await(current.outbound(context, request))
            except Exception as e:
                logger.exception(f"Outbound step of {current.name} failed: {e}")
                if first_error is None:
                    first_error = e

        if first_error is not None and raise_errors:
            raise first_error

    async def unwind(
        self, traversal: Traversal, request: Any, raise_errors: bool = True
    ) -> None:
        """Run outbound steps for the stages traversal reached."""
        await self.run_outbound(
            traversal.context, traversal.high_water_mark, request, raise_errors=raise_errors
        )

    def __len__(self) -> int:
        return len(self._stages)

    def __iter__(self) -> Iterator[Stage]:
        return iter(self._stages)

    def __repr__(self) -> str:
        stage_names = [s.name for s in self._stages]
        return f"Pipeline(stages={stage_names})"


class PipelineHandler(Handler):
    """Handler produced by Pipeline.then()."""

    def __init__(self, pipeline: Pipeline, handler: Handler):
        self.pipeline = pipeline
        self.handler = handler

    async def serve(
        self, context: Optional[Context], response: ResponseWriter, request: Any
    ) -> None:
        traversal = Traversal(context=context if context is not None else Context.background())
        try:
            await self.pipeline.advance(traversal, response, request)
            if not traversal.cancelled:
                logger.debug(f"Handler {self.handler!r} starting")
                await self.handler.serve(traversal.context, response, request)
                logger.debug(f"Handler {self.handler!r} finished")
        except BaseException:
            # The original fault propagates; outbound failures are only logged.
            await self.pipeline.unwind(traversal, request, raise_errors=False)
            raise
        await self.pipeline.unwind(traversal, request)

    def __repr__(self) -> str:
        return f"PipelineHandler({self.pipeline!r}, {self.handler!r})"
