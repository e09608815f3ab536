"""Request dispatcher for typed-rpc.

The dispatcher runs one request against a compiled :class:`Router`:

1. path lookup (404 ``Not found``)
2. method lookup (403 ``Method not supported``)
3. non-GET method on an untyped procedure (403)
4. input resolution and validation for typed procedures (400)
5. context creation through the context factory
6. middleware pipeline, in declaration order
7. handler invocation
8. result shaping

Every step may end the request early, and the outcome is always a value:
``None`` (empty response), a ``str`` (raw text), a structured value, or an
error payload (``{"status": False, "code": ..., "message": ...}``).
``dispatch`` never raises. Unexpected exceptions are logged on the
``typed_rpc`` logger and answered with a 500 payload; ``MiddlewareError``
and ``ShortCircuit`` answers are returned verbatim.

Input sources
-------------
``raw_input`` is either a :class:`RequestBody` (HTTP origin, read lazily from
the exchange: form data for form schemas, JSON otherwise with a fallback to
the raw text) or an already materialised value (direct server-side calls),
which is validated as is.
"""

from __future__ import annotations

import inspect
import json
import logging
from collections.abc import Callable, Mapping
from typing import Any

from pydantic import BaseModel
from pydantic_core import to_jsonable_python

from typed_rpc.exceptions import (
    ErrorApiResponse,
    MiddlewareError,
    internal_error,
    invalid_input,
    method_not_supported,
    not_found,
)

from .procedure import Continue, Method, Procedure, ShortCircuit, TypedProcedure, make_next
from .router import Router
from .schema import Schema, ValidationOutcome

__all__ = ["Dispatcher", "RequestBody", "dispatch", "shape_result"]

ContextFactory = Callable[[Any], Any]


class RequestBody:
    """Request body not read yet, decoded according to the target schema."""

    __slots__ = ("exchange",)

    def __init__(self, exchange: Any) -> None:
        self.exchange = exchange

    async def read(self, schema: Schema) -> Any:
        if schema.is_form_data:
            return await self.exchange.form()
        text = await self.exchange.text()
        try:
            return json.loads(text)
        except ValueError:
            return text


def shape_result(result: Any) -> Any:
    """Turn a handler result into a JSON-ready response value.

    Structured results are converted with pydantic's JSON serializer, so
    nested datetimes, sets, decimals and models come back as JSON types.

    Raises:
        TypeError: For results that are neither empty, text nor structured.
        pydantic_core.PydanticSerializationError: For structured results
            holding values JSON cannot represent.
    """
    if result is None or isinstance(result, str):
        return result
    if isinstance(result, (BaseModel, Mapping, list, tuple)):
        return to_jsonable_python(result, inf_nan_mode="null")
    raise TypeError(f"Unsupported handler result of type {type(result).__name__}")


def _default_context(exchange: Any) -> dict[str, Any]:
    return {}


class Dispatcher:
    """Run requests against a compiled router.

    Args:
        router: The compiled router.
        create_context: ``create_context(exchange)``, sync or async, called
            once per request to build the initial context.
        logger: Logger for internal errors (default ``typed_rpc``).
    """

    __slots__ = ("router", "create_context", "logger")

    def __init__(
        self,
        router: Router,
        create_context: ContextFactory | None = None,
        *,
        logger: logging.Logger | None = None,
    ) -> None:
        self.router = router
        self.create_context = create_context or _default_context
        self.logger = logger or logging.getLogger("typed_rpc")

    def resolve(
        self, path: str, method: str | Method
    ) -> tuple[Procedure | TypedProcedure | None, ErrorApiResponse | None]:
        """Find the procedure for ``(path, method)`` or the error to answer."""
        methods = self.router.get_path(path.strip("/"))
        if methods is None:
            self.logger.debug("No procedure at path %r", path)
            return None, not_found()
        verb = Method.parse(method)
        procedure = methods.get(verb) if verb is not None else None
        if procedure is None:
            self.logger.debug("Method %r not supported at %r", method, path)
            return None, method_not_supported()
        if verb is not Method.GET and not procedure.typed:
            return None, method_not_supported()
        return procedure, None

    async def dispatch(
        self,
        path: str,
        method: str | Method,
        raw_input: Any = None,
        exchange: Any = None,
    ) -> Any:
        """Run the request and return the response value."""
        procedure, error = self.resolve(path, method)
        if error is not None:
            return error
        assert procedure is not None
        value = None
        if isinstance(procedure, TypedProcedure):
            outcome = await self.validate(procedure, raw_input)
            if not outcome.success:
                return invalid_input(outcome.message)
            value = outcome.data
        return await self.run(procedure, value, exchange)

    async def validate(self, procedure: TypedProcedure, raw_input: Any) -> ValidationOutcome:
        """Read (if needed) and validate the procedure input."""
        schema = procedure.input_schema
        try:
            if isinstance(raw_input, RequestBody):
                raw_input = await raw_input.read(schema)
            return schema.validate(raw_input)
        except Exception as exc:
            self.logger.debug("Unreadable input: %s", exc)
            return ValidationOutcome(False)

    async def run(
        self, procedure: Procedure | TypedProcedure, value: Any, exchange: Any
    ) -> Any:
        """Create the context, run the middlewares and the handler."""
        try:
            ctx = self.create_context(exchange)
            if inspect.isawaitable(ctx):
                ctx = await ctx
            for middleware in procedure.middleware_calls:
                outcome = await middleware(
                    ctx=ctx, input=value, exchange=exchange, next=make_next(ctx)
                )
                if isinstance(outcome, ShortCircuit):
                    return outcome.response
                if not isinstance(outcome, Continue):
                    raise TypeError(
                        f"Middleware {middleware.func!r} must return next() or ShortCircuit, "
                        f"got {type(outcome).__name__}"
                    )
                ctx = outcome.ctx
            result = await procedure.invoke(ctx=ctx, input=value, exchange=exchange)
            return shape_result(result)
        except MiddlewareError as exc:
            return exc.data
        except Exception:
            self.logger.exception("Internal error in %r", procedure)
            return internal_error()


async def dispatch(
    router: Router,
    path: str,
    method: str | Method,
    raw_input: Any = None,
    exchange: Any = None,
    *,
    create_context: ContextFactory | None = None,
    logger: logging.Logger | None = None,
) -> Any:
    """Dispatch one request; see :class:`Dispatcher`."""
    dispatcher = Dispatcher(router, create_context, logger=logger)
    return await dispatcher.dispatch(path, method, raw_input, exchange)
