# Copyright 2025 Softwell S.r.l.
# Licensed under the Apache License, Version 2.0

"""Server configuration for typed-rpc.

``ServerConfig`` is validated by pydantic when an :class:`APIServer` is
created, either from an explicit instance or from keyword options::

    APIServer(router, context, path="/api")
    APIServer(router, context, config=ServerConfig(path="/api/", logger_name="myapp.rpc"))

Fields:
    - ``path``: URL prefix of the API. A leading ``/`` is added and a
      trailing ``/`` enforced, so ``"api"`` and ``"/api/"`` are equivalent.
    - ``logger_name``: Logger used for dispatch errors (default ``typed_rpc``).
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, field_validator

__all__ = ["ServerConfig"]


class ServerConfig(BaseModel):
    """Validated options of an API server."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    path: str = "/api/"
    logger_name: str = "typed_rpc"

    @field_validator("path")
    @classmethod
    def _normalise_path(cls, value: str) -> str:
        value = value.strip()
        if not value.startswith("/"):
            value = f"/{value}"
        if not value.endswith("/"):
            value = f"{value}/"
        return value
