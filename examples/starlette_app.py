"""Serve a typed-rpc API with Starlette.

Run with any ASGI server, e.g. ``uvicorn examples.starlette_app:app``, then::

    curl http://localhost:8000/api/hello
    curl -X POST http://localhost:8000/api/echo -d '"Pepa"'
    curl -X POST http://localhost:8000/api/login -d 'username=admin&password=admin'
    curl http://localhost:8000/hydration
"""

from __future__ import annotations

from pydantic import BaseModel
from starlette.applications import Starlette
from starlette.responses import JSONResponse
from starlette.routing import Route

from typed_rpc import APICreate, APIServer, FormDataInput
from typed_rpc.http import api_route

api = APICreate()
procedure = api.procedure


class Login(BaseModel):
    username: str
    password: str


router = api.router({
    "hello": procedure.GET.query(lambda: "Hello from GET"),
    "echo": procedure.POST.input(str).query(lambda input: f"Hello {input}"),
    "login": procedure.POST.input(FormDataInput(Login)).query(
        lambda input: {"status": input.username == input.password == "admin"}
    ),
})

server = APIServer(router, lambda exchange: {"name": exchange.cookies.get("name")}, path="/api")


async def hydration(request):
    return JSONResponse(server.hydrate_to_client())


app = Starlette(routes=[Route("/hydration", hydration), api_route(server)])
