"""Bridges contextual Handlers to Starlette/FastAPI.

The router (FastAPI, Starlette) matches the URL and extracts path
parameters; the Adapter builds the per-request Context and ResponseWriter,
calls the Handler once, and converts what was written into a response.

Usage:
    from fastapi import FastAPI

    app = FastAPI()
    pipeline = Pipeline([request_id, require_token])

    async def hello(ctx, w, r):
        w.write(f"Hello, {params(ctx)['name']}!")

    add_route(app, "/hello/{name}", hello, pipeline=pipeline)

    # Or serve one handler as a bare ASGI application
    asgi_app = Adapter(pipeline.then(hello))
"""

import logging
from typing import Any, Dict, Optional, Sequence, Union

from starlette.requests import Request
from starlette.responses import Response
from starlette.types import Receive, Scope, Send

from .handler import Handler, HandlerCallable, as_handler
from .pipeline.base import Pipeline
from .pipeline.context import Context, ContextKey
from .response import ResponseWriter

logger = logging.getLogger(__name__)

# Key under which the router's path parameters are stored in the Context.
PARAMS_KEY = ContextKey("params")


class Adapter:
    """
    Serves a Handler with a fixed base Context.

    Works both as an ASGI application and, through endpoint(), as a
    Starlette/FastAPI route endpoint.
    """

    def __init__(
        self,
        handler: Union[Handler, HandlerCallable],
        base_context: Optional[Context] = None,
    ):
        if handler is None:
            raise ValueError("Adapter requires a handler")
        self.handler = as_handler(handler)
        self.base_context = base_context if base_context is not None else Context.background()

    async def endpoint(self, request: Request) -> Response:
        """Route endpoint: runs the handler and returns what it wrote."""
        context = self.base_context
        if request.path_params:
            context = context.with_value(PARAMS_KEY, dict(request.path_params))

        response = ResponseWriter()
        await self.handler.serve(context, response, request)

        if not response.written:
            logger.debug(f"{self.handler!r} wrote nothing for {request.url.path}, sending empty 200")
        return response.to_response()

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            logger.debug(f"Ignoring unsupported ASGI scope type {scope['type']!r}")
            return
        request = Request(scope, receive)
        response = await self.endpoint(request)
        await response(scope, receive, send)

    def __repr__(self) -> str:
        return f"Adapter({self.handler!r})"


def params(context: Context) -> Dict[str, Any]:
    """Path parameters the router matched for this request, {} if none."""
    p = context.value(PARAMS_KEY)
    if p is None:
        return {}
    return p


def add_route(
    router: Any,
    path: str,
    handler: Union[Handler, HandlerCallable, None],
    pipeline: Optional[Pipeline] = None,
    methods: Sequence[str] = ("GET",),
    base_context: Optional[Context] = None,
    name: Optional[str] = None,
) -> Adapter:
    """
    Register handler on a FastAPI app or APIRouter.

    Args:
        router: FastAPI application or APIRouter
        path: Route path, e.g. "/hello/{name}"
        handler: Terminal handler; None uses the pipeline's default handler
        pipeline: Optional pipeline wrapped around handler
        methods: HTTP methods to match
        base_context: Context each request starts from
        name: Route name

    Returns:
        The Adapter serving the route
    """
    if pipeline is not None:
        target = pipeline.then(handler)
    else:
        target = as_handler(handler)

    adapter = Adapter(target, base_context)
    router.add_api_route(
        path,
        adapter.endpoint,
        methods=list(methods),
        name=name,
        include_in_schema=False,
    )
    logger.debug(f"Registered {list(methods)} {path} -> {target!r}")
    return adapter


class ContextRouter:
    """
    Registers handlers on a FastAPI app or APIRouter with one shared pipeline.

    Every route added through this object is wrapped by the same pipeline
    and starts from the same base Context, unless a route overrides it.

    Usage:
        api = ContextRouter(APIRouter(prefix="/api"), pipeline=Pipeline([auth]))
        api.get("/me", me)
        api.post("/items", create_item)
        app.include_router(api.router)
    """

    def __init__(
        self,
        router: Any,
        pipeline: Optional[Pipeline] = None,
        base_context: Optional[Context] = None,
    ):
        self.router = router
        self.pipeline = pipeline
        self.base_context = base_context

    def handle(
        self,
        method: str,
        path: str,
        handler: Union[Handler, HandlerCallable, None],
        pipeline: Optional[Pipeline] = None,
        name: Optional[str] = None,
    ) -> Adapter:
        """Add a method/path handler; pipeline overrides the router's own."""
        return add_route(
            self.router,
            path,
            handler,
            pipeline=pipeline if pipeline is not None else self.pipeline,
            methods=(method,),
            base_context=self.base_context,
            name=name,
        )

    def get(self, path: str, handler, **kwargs) -> Adapter:
        return self.handle("GET", path, handler, **kwargs)

    def head(self, path: str, handler, **kwargs) -> Adapter:
        return self.handle("HEAD", path, handler, **kwargs)

    def post(self, path: str, handler, **kwargs) -> Adapter:
        return self.handle("POST", path, handler, **kwargs)

    def put(self, path: str, handler, **kwargs) -> Adapter:
        return self.handle("PUT", path, handler, **kwargs)

    def patch(self, path: str, handler, **kwargs) -> Adapter:
        return self.handle("PATCH", path, handler, **kwargs)

    def delete(self, path: str, handler, **kwargs) -> Adapter:
        return self.handle("DELETE", path, handler, **kwargs)

    def options(self, path: str, handler, **kwargs) -> Adapter:
        return self.handle("OPTIONS", path, handler, **kwargs)

    def __repr__(self) -> str:
        return f"ContextRouter({self.pipeline!r})"
