# Copyright 2025 Softwell S.r.l.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""Shared fixtures: an in-memory exchange and a sample declaration."""

from __future__ import annotations

import pytest
from pydantic import BaseModel

from typed_rpc import AnyFormDataInput, APICreate, Exchange, FormDataInput, MiddlewareError


class FakeExchange(Exchange):
    """Exchange serving canned request data."""

    def __init__(
        self,
        method: str = "GET",
        url: str = "http://testserver/api/",
        body: str = "",
        form=None,
        cookies=None,
    ):
        self._method = method
        self._url = url
        self._body = body
        self._form = form
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
        if isinstance(self._form, Exception):
            raise self._form
        return self._form if self._form is not None else {}


class Credentials(BaseModel):
    username: str
    password: str


api = APICreate()
procedure = api.procedure


async def require_name(ctx, next):
    if ctx.get("name") != "patrick115":
        raise MiddlewareError({"status": False, "code": 401, "message": "Unauthorized"})
    return next(ctx)


protected_procedure = procedure.use(require_name)


def sample_declaration():
    def login(input):
        return {"status": input.username == "admin" and input.password == "admin"}

    return {
        "testGET": procedure.GET.query(lambda: "Hello from GET"),
        "testPOST": procedure.POST.input(str).query(lambda input: "Hello " + input),
        "multipleMethods": [
            procedure.GET.query(lambda: "GET"),
            procedure.POST.input(str).query(lambda input: input),
        ],
        "formData": procedure.PUT.input(AnyFormDataInput).query(lambda input: dict(input)),
        "protected": protected_procedure.GET.query(lambda: "OK"),
        "experiment": [
            procedure.GET.query(lambda: "test1"),
            {"aa": procedure.GET.query(lambda: "test2")},
        ],
        "form": procedure.POST.input(FormDataInput(Credentials)).query(login),
    }


async def cookie_context(exchange):
    return {"name": exchange.cookies.get("name")}


@pytest.fixture
def declaration():
    return sample_declaration()


@pytest.fixture
def router(declaration):
    return api.router(declaration)


@pytest.fixture
def make_exchange():
    return FakeExchange


@pytest.fixture
def context_factory():
    return cookie_context
