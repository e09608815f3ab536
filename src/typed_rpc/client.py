"""Client stubs rebuilt from a hydration shape.

The server publishes its hydration shape (``APIServer.hydrate_to_client()``);
the client turns it into a :class:`~typed_rpc.core.hydration.StubTree` whose
leaves perform the network calls. The only side effect goes through the
injected ``transport``::

    async def transport(url: str, method: Method, body: Any = None) -> str: ...

so stubs can be tested without a network. Responses are parsed as JSON when
possible and returned as raw text otherwise.

Example::

    client = create_api_client(shape, "http://localhost:8000/api", httpx_timeout=5)
    await client.hello()             # "Hello from GET"
    await client.echo("Pepa")        # "Hello Pepa"
    await client.user.POST({"name": "x"})
"""

from __future__ import annotations

import json
from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass
from typing import Any

import httpx
from genro_toolbox import dictExtract

from .core.hydration import StubTree, build_stub_tree
from .core.procedure import Method

__all__ = ["FormBody", "HttpxTransport", "build", "create_api_client", "decode_response"]

Transport = Callable[[str, Method, Any], Awaitable[str]]


@dataclass(frozen=True)
class FormBody:
    """Stub argument sent form-encoded instead of as JSON."""

    fields: Mapping[str, Any]


def decode_response(text: str) -> Any:
    """Parse ``text`` as JSON, or return it unchanged."""
    try:
        return json.loads(text)
    except ValueError:
        return text


class HttpxTransport:
    """Transport performing requests with ``httpx.AsyncClient``.

    Args:
        client: Client to reuse. When omitted, a short-lived client is opened
            per call with ``client_options``.
        **client_options: Keyword arguments for ``httpx.AsyncClient``.
    """

    def __init__(self, client: httpx.AsyncClient | None = None, **client_options: Any) -> None:
        self.client = client
        self.client_options = client_options

    @staticmethod
    def _request_kwargs(method: Method, body: Any) -> dict[str, Any]:
        if method is Method.GET or body is None:
            return {}
        if isinstance(body, FormBody):
            return {"data": dict(body.fields)}
        return {"json": body}

    async def __call__(self, url: str, method: Method, body: Any = None) -> str:
        kwargs = self._request_kwargs(method, body)
        if self.client is not None:
            response = await self.client.request(method.value, url, **kwargs)
        else:
            async with httpx.AsyncClient(**self.client_options) as client:
                response = await client.request(method.value, url, **kwargs)
        return response.text


def build(shape: Mapping[str, Any], base_path: str, transport: Transport) -> StubTree:
    """Build network stubs for ``shape`` below ``base_path``.

    Each stub is ``async stub(body=None)``; it calls
    ``transport(base_path + "/" + path, method, body)`` and decodes the text.
    """
    prefix = base_path.rstrip("/")

    def make_leaf(path: str, method: Method) -> Callable[..., Awaitable[Any]]:
        url = f"{prefix}/{path}"

        async def stub(body: Any = None) -> Any:
            return decode_response(await transport(url, method, body))

        stub.__name__ = stub.__qualname__ = f"stub[{method.value} {path}]"
        return stub

    return build_stub_tree(shape, make_leaf)


def create_api_client(
    shape: Mapping[str, Any],
    base_path: str = "/api",
    *,
    transport: Transport | None = None,
    **options: Any,
) -> StubTree:
    """Build client stubs, using httpx unless a transport is given.

    Options prefixed with ``httpx_`` (``httpx_timeout=5``,
    ``httpx_base_url=...``) are forwarded to ``httpx.AsyncClient``.
    """
    httpx_options = dictExtract(options, "httpx_", slice_prefix=True, pop=True)
    if options:
        raise TypeError(f"Unexpected options: {', '.join(sorted(options))}")
    return build(shape, base_path, transport or HttpxTransport(**httpx_options))
