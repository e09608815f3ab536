# Copyright 2025 Softwell S.r.l. - All Rights Reserved
# SPDX-License-Identifier: Apache-2.0
"""Exceptions and error payloads for typed-rpc.

Two kinds of failure exist:

- construction-time failures (``DeclarationError``) are raised while a
  procedure or a router is being declared and abort the whole construction;
- per-request failures are returned as data. ``ErrorApiResponse`` is the wire
  shape; the helpers below build the payloads produced by the dispatcher.

``MiddlewareError`` is the explicit early-exit channel for middleware: its
payload becomes the response verbatim.
"""

from __future__ import annotations

from typing import TypedDict

__all__ = [
    "DeclarationError",
    "ErrorApiResponse",
    "MiddlewareError",
    "ShapeError",
    "internal_error",
    "invalid_api_path",
    "invalid_input",
    "method_not_supported",
    "not_found",
]


class ErrorApiResponse(TypedDict):
    """Wire shape of every error response."""

    status: bool
    code: int
    message: str | list[str]


class DeclarationError(ValueError):
    """Raised when a procedure or route declaration is malformed.

    Attributes:
        path: Declaration path where the problem was found (may be empty).
    """

    def __init__(self, message: str, path: str = "") -> None:
        self.path = path
        if path:
            message = f"{message} (at '{path}')"
        super().__init__(message)


class MiddlewareError(Exception):
    """Raised by a middleware to stop the pipeline with a chosen response.

    Attributes:
        data: The error payload returned to the caller unchanged.
    """

    def __init__(self, data: ErrorApiResponse) -> None:
        self.data = data
        message = data.get("message", "") if isinstance(data, dict) else ""
        super().__init__(message if isinstance(message, str) else ", ".join(message))


def _error(code: int, message: str | list[str]) -> ErrorApiResponse:
    return {"status": False, "code": code, "message": message}


def not_found() -> ErrorApiResponse:
    return _error(404, "Not found")


def invalid_api_path() -> ErrorApiResponse:
    return _error(404, "Invalid API path")


def method_not_supported() -> ErrorApiResponse:
    return _error(403, "Method not supported")


def invalid_input(message: str | list[str] = "Invalid input") -> ErrorApiResponse:
    return _error(400, message)


def internal_error() -> ErrorApiResponse:
    return _error(500, "Internal server error")


class ShapeError(ValueError):
    """Raised when a hydration shape is malformed.

    Attributes:
        path: Shape path where the problem was found.
    """

    def __init__(self, message: str, path: str = "") -> None:
        self.path = path
        if path:
            message = f"{message} (at '{path}')"
        super().__init__(message)
