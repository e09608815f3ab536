"""Procedure model for typed-rpc.

Objects
-------
``Method``
    The five supported HTTP verbs. The enum values are the wire vocabulary
    used in hydration shapes.

``BaseProcedure``
    Builder holding an ordered tuple of middlewares. ``use(middleware)``
    returns a new builder (the parent is never touched), so a base builder
    can be shared by any number of derived procedures. The ``GET`` ... ``PATCH``
    properties produce a :class:`Procedure` bound to that verb.

``Procedure`` / ``TypedProcedure``
    One endpoint. A ``Procedure`` has no input schema; ``input(schema)``
    turns a non-GET procedure into a ``TypedProcedure``. ``query(callback)``
    sets the handler and returns the procedure, so it doubles as a decorator.

Middleware contract
-------------------
A middleware is a sync or async callable receiving the keywords ``ctx``,
``input``, ``exchange`` and ``next`` (only those its signature names are
passed). It must return the value of ``next()`` (keep the context) or
``next(new_ctx)`` (replace it), or stop the pipeline by raising
``MiddlewareError`` or returning ``ShortCircuit(response)``.

Example::

    async def authenticated(ctx, next):
        if ctx.get("user") is None:
            raise MiddlewareError({"status": False, "code": 401, "message": "Unauthorized"})
        return next({**ctx, "role": "member"})

    protected = procedure.use(authenticated)

    @protected.GET.query
    def whoami(ctx):
        return ctx["user"]
"""

from __future__ import annotations

import inspect
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from enum import Enum
from typing import Any

from typed_rpc.exceptions import DeclarationError

from .schema import Schema, as_schema

__all__ = [
    "BaseProcedure",
    "Continue",
    "FlexibleCall",
    "Method",
    "Procedure",
    "ShortCircuit",
    "TypedProcedure",
    "is_procedure",
    "make_next",
]


class Method(str, Enum):
    """HTTP verbs a procedure can be bound to."""

    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    DELETE = "DELETE"
    PATCH = "PATCH"

    @classmethod
    def parse(cls, value: str | Method | None) -> Method | None:
        """Return the matching member (case-insensitive), or None."""
        if isinstance(value, Method):
            return value
        if not isinstance(value, str):
            return None
        try:
            return cls(value.upper())
        except ValueError:
            return None

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class Continue:
    """Middleware outcome: go on with ``ctx``."""

    ctx: Any


@dataclass(frozen=True)
class ShortCircuit:
    """Middleware outcome: stop and answer with ``response``."""

    response: Any


_KEEP = object()


def make_next(ctx: Any) -> Callable[..., Continue]:
    """Build the ``next`` continuation handed to a middleware."""

    def next(new_ctx: Any = _KEEP) -> Continue:  # noqa: A001 - mirrors the middleware keyword
        return Continue(ctx if new_ctx is _KEEP else new_ctx)

    return next


class FlexibleCall:
    """Call a sync or async function with the keywords it accepts.

    The signature is inspected once. Functions declaring ``**kwargs``
    receive every keyword.
    """

    __slots__ = ("func", "accepted")

    def __init__(self, func: Callable) -> None:
        if not callable(func):
            raise TypeError(f"Expected a callable, got {type(func).__name__}")
        self.func = func
        self.accepted: frozenset[str] | None = self._accepted_names(func)

    @staticmethod
    def _accepted_names(func: Callable) -> frozenset[str] | None:
        try:
            sig = inspect.signature(func)
        except (TypeError, ValueError):
            return None
        names = set()
        for param in sig.parameters.values():
            if param.kind == inspect.Parameter.VAR_KEYWORD:
                return None
            if param.kind in (
                inspect.Parameter.POSITIONAL_OR_KEYWORD,
                inspect.Parameter.KEYWORD_ONLY,
            ):
                names.add(param.name)
        return frozenset(names)

    async def __call__(self, **kwargs: Any) -> Any:
        if self.accepted is not None:
            kwargs = {key: value for key, value in kwargs.items() if key in self.accepted}
        result = self.func(**kwargs)
        if inspect.isawaitable(result):
            result = await result
        return result


class BaseProcedure:
    """Builder of procedures sharing a middleware chain."""

    __slots__ = ("middlewares",)

    def __init__(self, middlewares: Iterable[Callable] = ()) -> None:
        self.middlewares: tuple[Callable, ...] = tuple(middlewares)

    def use(self, middleware: Callable) -> BaseProcedure:
        """Return a new builder with ``middleware`` appended."""
        if not callable(middleware):
            raise TypeError(f"Middleware must be callable, got {type(middleware).__name__}")
        return BaseProcedure((*self.middlewares, middleware))

    @property
    def GET(self) -> Procedure:  # noqa: N802
        return Procedure(Method.GET, self.middlewares)

    @property
    def POST(self) -> Procedure:  # noqa: N802
        return Procedure(Method.POST, self.middlewares)

    @property
    def PUT(self) -> Procedure:  # noqa: N802
        return Procedure(Method.PUT, self.middlewares)

    @property
    def DELETE(self) -> Procedure:  # noqa: N802
        return Procedure(Method.DELETE, self.middlewares)

    @property
    def PATCH(self) -> Procedure:  # noqa: N802
        return Procedure(Method.PATCH, self.middlewares)

    def __repr__(self) -> str:
        return f"BaseProcedure(middlewares={len(self.middlewares)})"


class _BoundProcedure:
    """Fields and behaviour shared by both procedure kinds."""

    __slots__ = ("method", "middlewares", "callback", "_callback_call", "_middleware_calls")

    typed = False

    def __init__(self, method: Method, middlewares: Iterable[Callable] = ()) -> None:
        self.method = Method(method)
        self.middlewares: tuple[Callable, ...] = tuple(middlewares)
        self._middleware_calls = tuple(FlexibleCall(mw) for mw in self.middlewares)
        self.callback: Callable | None = None
        self._callback_call: FlexibleCall | None = None

    def query(self, callback: Callable) -> Any:
        """Set the handler and return this procedure."""
        self._callback_call = FlexibleCall(callback)
        self.callback = callback
        return self

    @property
    def middleware_calls(self) -> tuple[FlexibleCall, ...]:
        return self._middleware_calls

    async def invoke(self, *, ctx: Any, input: Any, exchange: Any) -> Any:  # noqa: A002
        """Run the handler with the resolved context and input."""
        if self._callback_call is None:
            raise RuntimeError(f"{self!r} has no callback; call query() first")
        if self.typed:
            return await self._callback_call(ctx=ctx, input=input, exchange=exchange)
        return await self._callback_call(ctx=ctx, exchange=exchange)

    def __repr__(self) -> str:
        name = getattr(self.callback, "__name__", None)
        return f"{type(self).__name__}({self.method.value}, callback={name!r})"


class Procedure(_BoundProcedure):
    """Endpoint without an input schema."""

    __slots__ = ()

    def input(self, schema: Any) -> TypedProcedure:
        """Return a typed copy validating its input against ``schema``.

        Raises:
            DeclarationError: On GET procedures, which carry no body, and
                for a missing schema.
        """
        if self.method is Method.GET:
            raise DeclarationError("GET method does not support input")
        if schema is None:
            raise DeclarationError(f"{self.method.value} procedure input requires a schema")
        return TypedProcedure(self.method, self.middlewares, schema)


class TypedProcedure(_BoundProcedure):
    """Endpoint whose input is validated by ``input_schema``."""

    __slots__ = ("input_schema",)

    typed = True

    def __init__(
        self, method: Method, middlewares: Iterable[Callable], schema: Any
    ) -> None:
        super().__init__(method, middlewares)
        self.input_schema: Schema = as_schema(schema)


def is_procedure(value: Any) -> bool:
    return isinstance(value, (Procedure, TypedProcedure))
