"""Terminal handlers: the business logic a pipeline wraps."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, Awaitable, Callable, Optional, Union

from .response import ResponseWriter
from .utils import maybe_await

if TYPE_CHECKING:
    from .pipeline.context import Context

logger = logging.getLogger(__name__)

# (context, response, request) -> None, plain or async
HandlerCallable = Callable[["Context", ResponseWriter, Any], Union[None, Awaitable[None]]]


class Handler(ABC):
    """Like a request handler, but also receives the request Context."""

    @abstractmethod
    async def serve(self, context: Context, response: ResponseWriter, request: Any) -> None:
        pass


class HandlerFunc(Handler):
    """Lets a plain or async function act as a Handler."""

    def __init__(self, func: HandlerCallable):
        self.func = func

    async def serve(self, context: Context, response: ResponseWriter, request: Any) -> None:
        await maybe_await(self.func(context, response, request))

    def __repr__(self) -> str:
        return f"HandlerFunc({getattr(self.func, '__name__', self.func)!r})"


class NotFoundHandler(Handler):
    """Fallback that answers every request with 404."""

    BODY = "404 page not found\n"

    async def serve(self, context: Context, response: ResponseWriter, request: Any) -> None:
        logger.debug(f"No handler for {getattr(request, 'url', request)!r}, answering 404")
        response.headers.setdefault("content-type", "text/plain; charset=utf-8")
        response.write_header(404)
        response.write(self.BODY)


def as_handler(
    handler: Union[Handler, HandlerCallable, None],
    default: Optional[Handler] = None,
) -> Handler:
    """
    Normalize handler to a Handler instance.

    Args:
        handler: A Handler, a callable with the handler signature, or None
        default: Used when handler is None (NotFoundHandler if not given)

    Raises:
        TypeError: handler is neither a Handler nor callable
    """
    if handler is None:
        return default if default is not None else NotFoundHandler()
    if isinstance(handler, Handler):
        return handler
    if callable(handler):
        return HandlerFunc(handler)
    raise TypeError(f"Expected a Handler or callable, got {type(handler).__name__}")
