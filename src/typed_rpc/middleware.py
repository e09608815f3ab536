"""Built-in middleware for typed-rpc.

``logging_middleware`` logs every call passing through a procedure builder
and forwards the context unchanged.

Configuration
-------------
Options are validated with pydantic when the middleware is created:
    - ``logger``: Logger to use (default ``typed_rpc``)
    - ``label``: Text at the start of each line (default ``"call"``)
    - ``level``: Logging level name (default ``"INFO"``)
    - ``include_input``: Add the validated input to the line (default False)
    - ``print``: Always use print() instead of the logger (default False)

Example::

    logged = procedure.use(logging_middleware(label="admin", include_input=True))
"""

from __future__ import annotations

import builtins
import logging
from collections.abc import Callable
from typing import Any, Literal

from pydantic import ConfigDict, validate_call

from .core.procedure import Continue

__all__ = ["logging_middleware"]

Level = Literal["DEBUG", "INFO", "WARNING", "ERROR"]


@validate_call(config=ConfigDict(arbitrary_types_allowed=True))
def logging_middleware(
    logger: logging.Logger | None = None,
    *,
    label: str = "call",
    level: Level = "INFO",
    include_input: bool = False,
    print: bool = False,  # noqa: A002 - shadowing builtin intentionally
) -> Callable[..., Continue]:
    """Return a middleware logging each call it sees."""
    target = logger or logging.getLogger("typed_rpc")
    use_print = print
    numeric_level = logging.getLevelName(level)

    def emit(message: str) -> None:
        if use_print:
            builtins.print(message)
            return
        target.log(numeric_level, message)

    def middleware(input: Any, next: Callable[..., Continue]) -> Continue:  # noqa: A002
        message = label
        if include_input:
            message = f"{message} input={input!r}"
        emit(message)
        return next()

    return middleware
