# Copyright 2025 Softwell S.r.l.
# Licensed under the Apache License, Version 2.0

"""Exchange - Abstract host request/response context.

The dispatcher treats the exchange as opaque: it is handed unchanged to the
context factory, to every middleware and to the handler. Only the HTTP entry
point and the request-body reader use the members below. Each host adapter
(Starlette, tests, ...) provides its own concrete implementation.

Example::

    from typed_rpc import Exchange

    class FakeExchange(Exchange):
        def __init__(self, method, url, body="", form=None, cookies=None):
            self._method = method
            self._url = url
            self._body = body
            self._form = form or {}
            self._cookies = cookies or {}

        @property
        def method(self):
            return self._method

        @property
        def url(self):
            return self._url

        @property
        def cookies(self):
            return self._cookies

        async def text(self):
            return self._body

        async def form(self):
            return self._form
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Mapping
from typing import Any

__all__ = ["Exchange"]


class Exchange(ABC):
    """Abstract request exchange supplied by the host web framework.

    Properties:
        method: HTTP method of the request (any case).
        url: Full request URL.
        cookies: Request cookies.
    """

    @property
    @abstractmethod
    def method(self) -> str:
        """HTTP method of the request."""
        ...

    @property
    @abstractmethod
    def url(self) -> str:
        """Full request URL."""
        ...

    @property
    @abstractmethod
    def cookies(self) -> Mapping[str, str]:
        """Request cookies."""
        ...

    @abstractmethod
    async def text(self) -> str:
        """Read the request body as text."""
        ...

    @abstractmethod
    async def form(self) -> Mapping[str, Any]:
        """Read the request body as form data."""
        ...
