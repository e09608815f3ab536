"""Starlette integration for typed-rpc.

``StarletteExchange`` adapts a ``starlette.requests.Request`` to the
:class:`~typed_rpc.core.exchange.Exchange` interface, ``create_response``
turns a dispatch result into a Starlette response and ``api_route`` mounts an
:class:`~typed_rpc.server.APIServer` below its configured path.

Responses:
    - ``str`` -> ``text/plain``
    - ``None`` -> empty body
    - anything else -> JSON

Example::

    from starlette.applications import Starlette
    from typed_rpc.http import api_route

    app = Starlette(routes=[api_route(server)])
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

from starlette.requests import Request
from starlette.responses import JSONResponse, PlainTextResponse, Response
from starlette.routing import Route

from typed_rpc.core.exchange import Exchange
from typed_rpc.core.procedure import Method

if TYPE_CHECKING:  # pragma: no cover
    from typed_rpc.server import APIServer

__all__ = ["StarletteExchange", "api_route", "create_response"]


class StarletteExchange(Exchange):
    """Exchange backed by a Starlette request."""

    def __init__(self, request: Request) -> None:
        self.request = request

    @property
    def method(self) -> str:
        return self.request.method

    @property
    def url(self) -> str:
        return str(self.request.url)

    @property
    def cookies(self) -> Mapping[str, str]:
        return self.request.cookies

    async def text(self) -> str:
        body = await self.request.body()
        return body.decode("utf-8")

    async def form(self) -> Mapping[str, Any]:
        return await self.request.form()


def create_response(data: Any) -> Response:
    """Build the HTTP response for a dispatch result."""
    if isinstance(data, str):
        return PlainTextResponse(data)
    if data is None:
        return Response()
    return JSONResponse(data)


def api_route(server: APIServer) -> Route:
    """Return a Starlette route serving every path below ``server.api_path``."""
    return Route(
        f"{server.api_path}{{path:path}}",
        endpoint=server.handler,
        methods=[method.value for method in Method],
    )
