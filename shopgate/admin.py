"""
Thin domain helpers over the gateway primitives.

Each method only builds a REST path/body or picks a GraphQL document and
calls ``AdminAPIGateway.request`` / ``graphql_request``, unwrapping the
resource key from the response. Business rules live in the callers.
"""

from __future__ import annotations

from typing import Any, Iterable, Mapping, Optional
from urllib.parse import urlencode

from shopgate.gateway import AdminAPIGateway
from shopgate.graphql import (
    CUSTOMER_ANALYTICS_QUERY,
    INVENTORY_LEVELS_QUERY,
    ORDERS_QUERY,
    SEARCH_PRODUCTS_QUERY,
    build_bulk_product_update,
    product_id_search,
)


class ShopifyAdminAPI:
    """Resource-level helpers for agents that manage a store."""

    def __init__(self, gateway: AdminAPIGateway):
        self.gateway = gateway

    async def _get(self, endpoint: str, key: str) -> Any:
        response = await self.gateway.request(endpoint)
        return response.get(key)

    async def _write(self, method: str, endpoint: str, key: str, payload: Any) -> Any:
        response = await self.gateway.request(endpoint, method=method, body={key: payload})
        return response.get(key)

    # Shop
    async def get_shop(self) -> dict[str, Any]:
        return await self._get("/shop.json", "shop")

    # Products
    async def get_products(self, limit: int = 50) -> list[dict[str, Any]]:
        return await self._get(f"/products.json?limit={limit}", "products")

    async def get_product(self, product_id: int) -> dict[str, Any]:
        return await self._get(f"/products/{product_id}.json", "product")

    async def create_product(self, product: Mapping[str, Any]) -> dict[str, Any]:
        return await self._write("POST", "/products.json", "product", dict(product))

    async def update_product(self, product_id: int, product: Mapping[str, Any]) -> dict[str, Any]:
        return await self._write("PUT", f"/products/{product_id}.json", "product", dict(product))

    # Orders
    async def get_orders(self, limit: int = 50, status: str = "any") -> list[dict[str, Any]]:
        return await self._get(f"/orders.json?{urlencode({'limit': limit, 'status': status})}", "orders")

    async def get_order(self, order_id: int) -> dict[str, Any]:
        return await self._get(f"/orders/{order_id}.json", "order")

    # Customers
    async def get_customers(self, limit: int = 50) -> list[dict[str, Any]]:
        return await self._get(f"/customers.json?limit={limit}", "customers")

    async def get_customer(self, customer_id: int) -> dict[str, Any]:
        return await self._get(f"/customers/{customer_id}.json", "customer")

    async def create_customer(self, customer: Mapping[str, Any]) -> dict[str, Any]:
        return await self._write("POST", "/customers.json", "customer", dict(customer))

    async def update_customer(
        self, customer_id: int, customer: Mapping[str, Any]
    ) -> dict[str, Any]:
        return await self._write(
            "PUT", f"/customers/{customer_id}.json", "customer", dict(customer)
        )

    # Inventory
    async def get_inventory_levels(
        self,
        inventory_item_ids: Optional[Iterable[int]] = None,
        location_ids: Optional[Iterable[int]] = None,
    ) -> list[dict[str, Any]]:
        params = {}
        item_ids = [str(i) for i in inventory_item_ids or []]
        loc_ids = [str(i) for i in location_ids or []]
        if item_ids:
            params["inventory_item_ids"] = ",".join(item_ids)
        if loc_ids:
            params["location_ids"] = ",".join(loc_ids)
        endpoint = "/inventory_levels.json"
        if params:
            endpoint += f"?{urlencode(params)}"
        return await self._get(endpoint, "inventory_levels")

    async def set_inventory_level(
        self, inventory_item_id: int, location_id: int, available: int
    ) -> dict[str, Any]:
        response = await self.gateway.request(
            "/inventory_levels/set.json",
            method="POST",
            body={
                "inventory_item_id": inventory_item_id,
                "location_id": location_id,
                "available": available,
            },
        )
        return response.get("inventory_level")

    # Fulfillments
    async def get_fulfillments(self, order_id: int) -> list[dict[str, Any]]:
        return await self._get(f"/orders/{order_id}/fulfillments.json", "fulfillments")

    async def create_fulfillment(
        self, order_id: int, fulfillment: Mapping[str, Any]
    ) -> dict[str, Any]:
        return await self._write(
            "POST", f"/orders/{order_id}/fulfillments.json", "fulfillment", dict(fulfillment)
        )

    # Webhooks
    async def get_webhooks(self) -> list[dict[str, Any]]:
        return await self._get("/webhooks.json", "webhooks")

    async def create_webhook(self, webhook: Mapping[str, Any]) -> dict[str, Any]:
        return await self._write("POST", "/webhooks.json", "webhook", dict(webhook))

    async def delete_webhook(self, webhook_id: int) -> None:
        await self.gateway.request(f"/webhooks/{webhook_id}.json", method="DELETE")

    # Counts
    async def get_orders_count(self, status: Optional[str] = None) -> int:
        endpoint = "/orders/count.json"
        if status:
            endpoint += f"?{urlencode({'status': status})}"
        return await self._get(endpoint, "count")

    async def get_products_count(self) -> int:
        return await self._get("/products/count.json", "count")

    async def get_customers_count(self) -> int:
        return await self._get("/customers/count.json", "count")

    # GraphQL
    async def search_products(self, search_query: str, limit: int = 50) -> Any:
        return await self.gateway.graphql_request(
            SEARCH_PRODUCTS_QUERY, {"query": search_query, "first": limit}
        )

    async def get_orders_graphql(self, first: int = 50, query: Optional[str] = None) -> Any:
        return await self.gateway.graphql_request(ORDERS_QUERY, {"first": first, "query": query})

    async def get_inventory_levels_graphql(
        self, product_ids: Optional[Iterable[int | str]] = None, first: int = 250
    ) -> Any:
        search = product_id_search(product_ids) if product_ids else None
        return await self.gateway.graphql_request(
            INVENTORY_LEVELS_QUERY, {"query": search, "first": first}
        )

    async def get_customer_analytics(self, customer_id: str) -> Any:
        return await self.gateway.graphql_request(
            CUSTOMER_ANALYTICS_QUERY, {"customerId": customer_id}
        )

    async def bulk_update_products(self, products: Iterable[Mapping[str, Any]]) -> Any:
        return await self.gateway.graphql_request(build_bulk_product_update(products))
