"""
GraphQL documents and builders for the Admin API.

The documents here are plain strings handed to
``AdminAPIGateway.graphql_request``; nothing in this module performs I/O.
"""

from __future__ import annotations

import json
from typing import Any, Iterable, Mapping

PRODUCT_GID_PREFIX = "gid://shopify/Product/"


def product_gid(product_id: int | str) -> str:
    """Return the global id for a numeric product id (gids pass through)."""
    text = str(product_id)
    if text.startswith("gid://"):
        return text
    return f"{PRODUCT_GID_PREFIX}{text}"


def to_graphql_literal(value: Any) -> str:
    """Render a Python value as a GraphQL input literal.

    Object keys are emitted unquoted; strings use JSON escaping, which is
    valid GraphQL string syntax.
    """
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return json.dumps(value)
    if isinstance(value, str):
        return json.dumps(value)
    if isinstance(value, Mapping):
        inner = ", ".join(f"{key}: {to_graphql_literal(val)}" for key, val in value.items())
        return f"{{{inner}}}"
    if isinstance(value, Iterable):
        return f"[{', '.join(to_graphql_literal(v) for v in value)}]"
    raise TypeError(f"Cannot render {type(value).__name__} as a GraphQL literal")


def build_bulk_product_update(products: Iterable[Mapping[str, Any]]) -> str:
    """Build one mutation document updating several products at once.

    Each item needs an ``id`` (numeric or gid) and an ``updates`` mapping of
    ProductInput fields. Every update is aliased ``product<N>`` so results can
    be matched back to the input order.

    Raises:
        ValueError: If no products are given or an item has no id.
    """
    blocks = []
    for index, item in enumerate(products):
        if "id" not in item:
            raise ValueError(f"Product update #{index} has no id")
        fields = [f"id: {json.dumps(product_gid(item['id']))}"]
        fields.extend(
            f"{key}: {to_graphql_literal(value)}"
            for key, value in (item.get("updates") or {}).items()
        )
        input_body = "\n        ".join(fields)
        blocks.append(
            f"""
  product{index}: productUpdate(input: {{
        {input_body}
  }}) {{
    product {{
      id
      title
      status
    }}
    userErrors {{
      field
      message
    }}
  }}"""
        )
    if not blocks:
        raise ValueError("At least one product update is required")
    return "mutation BulkUpdateProducts {" + "".join(blocks) + "\n}\n"


def product_id_search(product_ids: Iterable[int | str]) -> str:
    """Build a products search string matching any of ``product_ids``."""
    ids = [str(pid).rsplit("/", 1)[-1] for pid in product_ids]
    return " OR ".join(f"id:{pid}" for pid in ids)


SEARCH_PRODUCTS_QUERY = """
query SearchProducts($query: String!, $first: Int!) {
  products(first: $first, query: $query) {
    edges {
      node {
        id
        title
        handle
        status
        productType
        vendor
        tags
        createdAt
        updatedAt
        variants(first: 10) {
          edges {
            node {
              id
              title
              price
              sku
              inventoryQuantity
            }
          }
        }
      }
    }
    pageInfo {
      hasNextPage
      hasPreviousPage
    }
  }
}
"""

ORDERS_QUERY = """
query GetOrders($first: Int!, $query: String) {
  orders(first: $first, query: $query) {
    edges {
      node {
        id
        name
        email
        createdAt
        updatedAt
        totalPriceSet {
          shopMoney {
            amount
            currencyCode
          }
        }
        displayFinancialStatus
        displayFulfillmentStatus
        customer {
          id
          email
          firstName
          lastName
        }
        lineItems(first: 10) {
          edges {
            node {
              id
              title
              quantity
              variant {
                id
                title
                sku
                price
              }
            }
          }
        }
      }
    }
    pageInfo {
      hasNextPage
      hasPreviousPage
      startCursor
      endCursor
    }
  }
}
"""

INVENTORY_LEVELS_QUERY = """
query GetInventoryLevels($query: String, $first: Int!) {
  products(first: $first, query: $query) {
    edges {
      node {
        id
        title
        variants(first: 100) {
          edges {
            node {
              id
              sku
              inventoryItem {
                id
                inventoryLevels(first: 10) {
                  edges {
                    node {
                      id
                      location {
                        id
                        name
                      }
                    }
                  }
                }
              }
            }
          }
        }
      }
    }
  }
}
"""

CUSTOMER_ANALYTICS_QUERY = """
query GetCustomerAnalytics($customerId: ID!) {
  customer(id: $customerId) {
    id
    email
    firstName
    lastName
    createdAt
    updatedAt
    numberOfOrders
    amountSpent {
      amount
      currencyCode
    }
    tags
    addresses {
      id
      address1
      city
      province
      country
      zip
    }
    orders(first: 50) {
      edges {
        node {
          id
          name
          createdAt
          totalPriceSet {
            shopMoney {
              amount
              currencyCode
            }
          }
          displayFinancialStatus
        }
      }
    }
  }
}
"""
