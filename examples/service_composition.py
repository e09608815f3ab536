from __future__ import annotations

import asyncio
import json

from pydantic import BaseModel

from typed_rpc import APICreate, APIServer, create_api_client, logging_middleware

api = APICreate()
procedure = api.procedure.use(logging_middleware(label="composed", print=True))


class StockQuery(BaseModel):
    item_id: str


# Each module is a plain declaration; composing them is nesting mappings
billing = {
    "invoice_list": procedure.GET.query(lambda: ["Inv-001", "Inv-002"]),
}

inventory = {
    "stock_level": procedure.POST.input(StockQuery).query(
        lambda input: {"item": input.item_id, "qty": 42}
    ),
}

router = api.router({"billing": billing, "inventory": inventory})


class LocalTransport:
    """Transport answering from an in-process server instead of the network."""

    def __init__(self, server):
        self.server = server

    async def __call__(self, url, method, body=None):
        path = url.split("/api/", 1)[1]
        result = await self.server.dispatcher.dispatch(path, method, body)
        return result if isinstance(result, str) else json.dumps(result)


async def main():
    server = APIServer(router)

    print("--- Service Composition Demo ---")
    print(f"Invoices: {await server.ssr.billing.invoice_list(None)}")
    print(f"Stock: {await server.ssr.inventory.stock_level(None, {'item_id': 'part-123'})}")

    print("\nFull paths discovered:")
    for path, methods in router.path_table.items():
        print(f" - {path} {sorted(methods)}")

    shape = server.hydrate_to_client()
    print(f"\nHydration shape: {shape}")

    client = create_api_client(shape, "http://localhost/api", transport=LocalTransport(server))
    print(f"Client stock call: {await client.inventory.stock_level({'item_id': 'bolt'})}")


if __name__ == "__main__":
    asyncio.run(main())
