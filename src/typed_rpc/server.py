"""API server for typed-rpc.

``APICreate`` is the declaration entry point: it hands out the root procedure
builder and compiles declarations into routers. ``APIServer`` puts a compiled
router to work:

- ``handler``: Starlette endpoint serving the API over HTTP;
- ``handle(exchange)``: the same, for any :class:`Exchange`, returning the
  dispatch result instead of an HTTP response;
- ``ssr``: a stub tree mirroring the declaration for direct, in-process calls
  (``await server.ssr.user.POST(exchange, data)``);
- ``actions``: a stub tree of form handlers (``await server.actions.login(exchange)``)
  that read the exchange's form data and dispatch it;
- ``hydrate_to_client()``: the hydration shape to embed in rendered pages.

Example::

    api = APICreate()
    procedure = api.procedure

    router = api.router({
        "hello": procedure.GET.query(lambda: "Hello from GET"),
        "echo": procedure.POST.input(str).query(lambda input: f"Hello {input}"),
    })

    async def context(exchange):
        return {"name": exchange.cookies.get("name")}

    server = APIServer(router, context, path="/api")
    await server.ssr.echo(exchange, "Pepa")  # "Hello Pepa"
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Mapping
from typing import Any
from urllib.parse import unquote, urlsplit

from starlette.requests import Request
from starlette.responses import Response

from .config import ServerConfig
from .core.dispatcher import ContextFactory, Dispatcher, RequestBody
from .core.exchange import Exchange
from .core.hydration import StubTree, build_stub_tree, encode
from .core.procedure import BaseProcedure, Method
from .core.router import Router
from .exceptions import internal_error, invalid_api_path, invalid_input
from .http import StarletteExchange, create_response

__all__ = ["APICreate", "APIServer"]


class APICreate:
    """Factory for the root procedure builder and for routers."""

    __slots__ = ()

    def router(self, endpoints: Mapping[str, Any]) -> Router:
        """Compile ``endpoints`` into a :class:`Router`."""
        return Router(endpoints)

    @property
    def procedure(self) -> BaseProcedure:
        """A fresh builder without middleware."""
        return BaseProcedure()


class APIServer:
    """Serve a compiled router over HTTP and in-process.

    Args:
        router: The compiled router.
        context: ``context(exchange)`` (sync or async) building the initial
            context of every request.
        config: Explicit :class:`ServerConfig`. When omitted, ``**options``
            are validated into one.
        logger: Logger for dispatch errors; defaults to the logger named by
            ``config.logger_name``.
    """

    def __init__(
        self,
        router: Router,
        context: ContextFactory | None = None,
        *,
        config: ServerConfig | None = None,
        logger: logging.Logger | None = None,
        **options: Any,
    ) -> None:
        if not isinstance(router, Router):
            raise TypeError(f"APIServer requires a Router, got {type(router).__name__}")
        if config is not None and options:
            raise TypeError("Pass either config or keyword options, not both")
        self.config = config or ServerConfig(**options)
        self.router = router
        self.logger = logger or logging.getLogger(self.config.logger_name)
        self.dispatcher = Dispatcher(router, context, logger=self.logger)
        shape = encode(router.endpoints)
        self.ssr: StubTree = build_stub_tree(shape, self._ssr_stub)
        self.actions: StubTree = build_stub_tree(shape, self._action_stub)

    @property
    def api_path(self) -> str:
        return self.config.path

    # ------------------------------------------------------------------
    # HTTP
    # ------------------------------------------------------------------
    async def handle(self, exchange: Exchange) -> Any:
        """Dispatch an HTTP exchange and return the response value."""
        full_path = unquote(urlsplit(exchange.url).path)
        if not full_path.startswith(self.api_path):
            self.logger.debug("Request outside API path: %s", full_path)
            return invalid_api_path()
        path = full_path[len(self.api_path) :]
        method = exchange.method.upper()
        t0 = time.perf_counter()
        result = await self.dispatcher.dispatch(path, method, RequestBody(exchange), exchange)
        elapsed = (time.perf_counter() - t0) * 1000
        self.logger.debug("%s %s end (%.2f ms)", method, path, elapsed)
        return result

    async def handler(self, request: Request) -> Response:
        """Starlette endpoint for every API path."""
        exchange = request if isinstance(request, Exchange) else StarletteExchange(request)
        result = await self.handle(exchange)
        try:
            return create_response(result)
        except (TypeError, ValueError):
            # middleware payloads are returned verbatim and may not encode
            self.logger.exception("Unserializable response for %s", exchange.url)
            return create_response(internal_error())

    # ------------------------------------------------------------------
    # Direct invocation
    # ------------------------------------------------------------------
    def _ssr_stub(self, path: str, method: Method) -> Callable:
        async def call(exchange: Any, data: Any = None) -> Any:
            return await self.dispatcher.dispatch(path, method, data, exchange)

        call.__name__ = call.__qualname__ = f"ssr[{method.value} {path}]"
        return call

    def _action_stub(self, path: str, method: Method) -> Callable:
        async def action(exchange: Exchange) -> Any:
            try:
                data = await exchange.form()
            except Exception as exc:
                self.logger.debug("Unreadable form data for %s: %s", path, exc)
                return invalid_input()
            return await self.dispatcher.dispatch(path, method, data, exchange)

        action.__name__ = action.__qualname__ = f"action[{method.value} {path}]"
        return action

    # ------------------------------------------------------------------
    # Hydration
    # ------------------------------------------------------------------
    def hydrate_to_client(self) -> dict[str, Any]:
        """Return the hydration shape of the served declaration."""
        return encode(self.router.endpoints)
