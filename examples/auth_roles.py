from __future__ import annotations

import asyncio

from typed_rpc import APICreate, APIServer, MiddlewareError

api = APICreate()
procedure = api.procedure

USERS = {"alice": "user", "root": "admin"}


def session(exchange):
    # The context is built once per request from the caller's cookies
    user = exchange.cookies.get("user")
    return {"user": user, "role": USERS.get(user)}


def require(role):
    def middleware(ctx, next):
        if ctx["user"] is None:
            raise MiddlewareError({"status": False, "code": 401, "message": "Not authenticated"})
        if role == "admin" and ctx["role"] != "admin":
            raise MiddlewareError({"status": False, "code": 403, "message": "Not authorized"})
        return next()

    return middleware


user_only = procedure.use(require("user"))
admin_only = procedure.use(require("admin"))

router = api.router({
    "public_info": procedure.GET.query(lambda: {"status": "online", "access": "public"}),
    "user_profile": user_only.GET.query(lambda ctx: {"profile": ctx["user"], "access": "restricted"}),
    "admin_settings": admin_only.GET.query(lambda: {"settings": "System Config", "access": "admin_only"}),
})


class CookieExchange:
    """Minimal exchange for direct calls."""

    method = "GET"
    url = "http://localhost/api/"

    def __init__(self, user=None):
        self.cookies = {"user": user} if user else {}


async def main():
    server = APIServer(router, session)

    print("--- 1. Public Access ---")
    print(f"Result: {await server.ssr.public_info(CookieExchange())}")

    print("\n--- 2. User Data WITHOUT login ---")
    print(f"Result: {await server.ssr.user_profile(CookieExchange())}")

    print("\n--- 3. User Data as 'alice' ---")
    print(f"Result: {await server.ssr.user_profile(CookieExchange('alice'))}")

    print("\n--- 4. Admin Data as 'alice' ---")
    print(f"Result: {await server.ssr.admin_settings(CookieExchange('alice'))}")

    print("\n--- 5. Admin Data as 'root' ---")
    print(f"Result: {await server.ssr.admin_settings(CookieExchange('root'))}")


if __name__ == "__main__":
    asyncio.run(main())
