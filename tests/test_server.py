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

"""Tests for APIServer: HTTP handling, direct calls and hydration."""

import logging
from datetime import datetime

import pytest
from pydantic import ValidationError
from starlette.applications import Starlette
from starlette.responses import JSONResponse, PlainTextResponse
from starlette.testclient import TestClient

from typed_rpc import APICreate, APIServer, Router, ServerConfig, ShortCircuit
from typed_rpc.http import api_route, create_response

INVALID_PATH = {"status": False, "code": 404, "message": "Invalid API path"}
INTERNAL = {"status": False, "code": 500, "message": "Internal server error"}

procedure = APICreate().procedure


def serve(declaration):
    server = APIServer(Router(declaration))
    return TestClient(Starlette(routes=[api_route(server)]), raise_server_exceptions=False)


@pytest.fixture
def server(router, context_factory):
    return APIServer(router, context_factory, path="/api")


@pytest.fixture
def client(server):
    return TestClient(Starlette(routes=[api_route(server)]))


class TestHTTP:
    def test_get_text(self, client):
        response = client.get("/api/testGET")
        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/plain")
        assert response.text == "Hello from GET"

    def test_post_json(self, client):
        response = client.post("/api/testPOST", json="Pepa")
        assert response.text == "Hello Pepa"

    def test_post_raw_text(self, client):
        response = client.post("/api/testPOST", content="Pepa")
        assert response.text == "Hello Pepa"

    def test_post_invalid_input(self, client):
        response = client.post("/api/testPOST", json=42)
        assert response.status_code == 200
        assert response.json() == {"status": False, "code": 400, "message": "Invalid input"}

    def test_method_not_supported(self, client):
        assert client.post("/api/testGET", json="x").json()["code"] == 403

    def test_not_found(self, client):
        assert client.get("/api/unknown/path").json()["code"] == 404

    def test_form_data(self, client):
        response = client.put("/api/formData", data={"a": "1", "b": "2"})
        assert response.json() == {"a": "1", "b": "2"}

    def test_checked_form(self, client):
        ok = client.post("/api/form", data={"username": "admin", "password": "admin"})
        missing = client.post("/api/form", data={"username": "admin"})
        assert ok.json() == {"status": True}
        assert missing.json()["message"] == ["password: Field required"]

    def test_protected_route(self, client):
        assert client.get("/api/protected").json()["code"] == 401
        client.cookies.set("name", "patrick115")
        assert client.get("/api/protected").text == "OK"

    def test_array_and_nested_paths(self, client):
        assert client.get("/api/experiment").text == "test1"
        assert client.get("/api/experiment/aa").text == "test2"
        assert client.post("/api/multipleMethods", json="POST").text == "POST"

    def test_url_encoded_path(self, client):
        assert client.get("/api/test%47ET").text == "Hello from GET"

    def test_empty_result(self):
        client = serve({"nothing": procedure.GET.query(lambda: None)})
        response = client.get("/api/nothing")
        assert response.status_code == 200
        assert response.content == b""

    def test_nested_datetime_is_json(self):
        client = serve({"s": procedure.GET.query(lambda: {"at": datetime(2024, 1, 1)})})
        response = client.get("/api/s")
        assert response.status_code == 200
        assert response.json() == {"at": "2024-01-01T00:00:00"}

    def test_unserializable_result_keeps_error_shape(self):
        client = serve({"s": procedure.GET.query(lambda: {"obj": object()})})
        response = client.get("/api/s")
        assert response.status_code == 200
        assert response.json() == INTERNAL

    def test_unserializable_short_circuit_keeps_error_shape(self):
        stop = procedure.use(lambda next: ShortCircuit({"tags": {1, 2}}))
        client = serve({"s": stop.GET.query(lambda: "never")})
        assert client.get("/api/s").json() == INTERNAL


class TestHandle:
    @pytest.mark.asyncio
    async def test_outside_api_path(self, server, make_exchange):
        exchange = make_exchange("GET", url="http://testserver/other/testGET")
        assert await server.handle(exchange) == INVALID_PATH

    @pytest.mark.asyncio
    async def test_prefix_without_trailing_slash(self, server, make_exchange):
        exchange = make_exchange("GET", url="http://testserver/api")
        assert await server.handle(exchange) == INVALID_PATH

    @pytest.mark.asyncio
    async def test_reads_exchange(self, server, make_exchange):
        exchange = make_exchange("POST", url="http://testserver/api/testPOST?x=1", body='"Pepa"')
        assert await server.handle(exchange) == "Hello Pepa"

    @pytest.mark.asyncio
    async def test_handler_accepts_exchange(self, server, make_exchange):
        response = await server.handler(make_exchange("GET", url="http://testserver/api/testGET"))
        assert response.body == b"Hello from GET"

    @pytest.mark.asyncio
    async def test_timing_is_logged(self, server, make_exchange, caplog):
        exchange = make_exchange("GET", url="http://testserver/api/testGET")
        with caplog.at_level(logging.DEBUG, logger="typed_rpc"):
            await server.handle(exchange)
        assert "GET testGET end" in caplog.text


class TestDirectCalls:
    @pytest.mark.asyncio
    async def test_ssr_calls(self, server, make_exchange):
        exchange = make_exchange(cookies={"name": "patrick115"})
        assert await server.ssr.testGET(exchange) == "Hello from GET"
        assert await server.ssr.testPOST(exchange, "Pepa") == "Hello Pepa"
        assert await server.ssr.multipleMethods.POST(exchange, "POST") == "POST"
        assert await server.ssr.experiment.aa(exchange) == "test2"
        assert await server.ssr.protected(exchange) == "OK"

    @pytest.mark.asyncio
    async def test_ssr_runs_full_pipeline(self, server, make_exchange):
        exchange = make_exchange()
        assert (await server.ssr.protected(exchange))["code"] == 401
        assert (await server.ssr.testPOST(exchange, 42))["code"] == 400

    @pytest.mark.asyncio
    async def test_actions_read_form(self, server, make_exchange):
        good = make_exchange("POST", form={"username": "admin", "password": "admin"})
        bad = make_exchange("POST", form={"username": "admin", "password": "nope"})
        assert await server.actions.form(good) == {"status": True}
        assert await server.actions.form(bad) == {"status": False}

    @pytest.mark.asyncio
    async def test_action_with_unreadable_form(self, server, make_exchange):
        exchange = make_exchange("POST", form=RuntimeError("no body"))
        assert (await server.actions.form(exchange))["code"] == 400

    def test_stub_trees_mirror_declaration(self, server, declaration):
        assert list(server.ssr) == list(declaration)
        assert list(server.actions) == list(declaration)


class TestConfiguration:
    def test_hydrate_to_client(self, server, declaration):
        assert server.hydrate_to_client()["experiment"] == ["GET", {"aa": "GET"}]
        assert list(server.hydrate_to_client()) == list(declaration)

    @pytest.mark.parametrize("path", ["api", "/api", "api/", "/api/"])
    def test_path_normalisation(self, router, path):
        assert APIServer(router, path=path).api_path == "/api/"

    def test_default_config(self, router):
        server = APIServer(router)
        assert server.config == ServerConfig()
        assert server.logger.name == "typed_rpc"

    def test_explicit_config(self, router):
        config = ServerConfig(path="/rpc", logger_name="tests.rpc")
        server = APIServer(router, config=config)
        assert server.api_path == "/rpc/"
        assert server.logger.name == "tests.rpc"

    def test_config_and_options_conflict(self, router):
        with pytest.raises(TypeError):
            APIServer(router, config=ServerConfig(), path="/x")

    def test_unknown_option(self, router):
        with pytest.raises(ValidationError):
            APIServer(router, prefix="/x")

    def test_requires_router(self, declaration):
        with pytest.raises(TypeError, match="requires a Router"):
            APIServer(declaration)

    def test_config_is_frozen(self):
        config = ServerConfig()
        with pytest.raises(ValidationError):
            config.path = "/x/"

    def test_router_factory(self, declaration):
        router = APICreate().router(declaration)
        assert isinstance(router, Router)
        assert "experiment/aa" in router


class TestCreateResponse:
    def test_text(self):
        assert isinstance(create_response("x"), PlainTextResponse)

    def test_json(self):
        response = create_response({"a": [1]})
        assert isinstance(response, JSONResponse)
        assert response.body == b'{"a":[1]}'

    def test_empty(self):
        assert create_response(None).body == b""
