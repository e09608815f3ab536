"""typed-rpc - Typed remote procedures with hydrated client stubs.

Public API surface for declaring procedures, compiling them into a router,
serving them over HTTP or in-process, and rebuilding callable stubs on the
client from a compact hydration shape.

Public exports:
    - ``APICreate``: Root procedure builder and router factory
    - ``APIServer``: HTTP handler, direct-call tree and hydration source
    - ``Router``: Compiled path -> method -> procedure index
    - ``BaseProcedure`` / ``Procedure`` / ``TypedProcedure``: Procedure model
    - ``Method``: Supported HTTP verbs
    - ``MiddlewareError`` / ``ShortCircuit``: Middleware early exit
    - ``AnyFormDataInput`` / ``FormDataInput``: Form-data input schemas
    - ``create_api_client``: Client stubs from a hydration shape

Example::

    from typed_rpc import APICreate, APIServer

    api = APICreate()
    router = api.router({
        "hello": api.procedure.GET.query(lambda: "hi"),
    })
    server = APIServer(router, path="/api")
    shape = server.hydrate_to_client()  # {"hello": "GET"}
"""

__version__ = "0.1.0"

from .client import FormBody, create_api_client
from .config import ServerConfig
from .core import (
    AnyFormDataInput,
    BaseProcedure,
    Continue,
    Dispatcher,
    Exchange,
    FormDataInput,
    Method,
    Procedure,
    Router,
    ShortCircuit,
    StubTree,
    TypedProcedure,
    dispatch,
    encode,
)
from .exceptions import DeclarationError, ErrorApiResponse, MiddlewareError, ShapeError
from .middleware import logging_middleware
from .server import APICreate, APIServer

__all__ = [
    "APICreate",
    "APIServer",
    "AnyFormDataInput",
    "BaseProcedure",
    "Continue",
    "DeclarationError",
    "Dispatcher",
    "ErrorApiResponse",
    "Exchange",
    "FormBody",
    "FormDataInput",
    "Method",
    "MiddlewareError",
    "Procedure",
    "Router",
    "ServerConfig",
    "ShapeError",
    "ShortCircuit",
    "StubTree",
    "TypedProcedure",
    "create_api_client",
    "dispatch",
    "encode",
    "logging_middleware",
]
