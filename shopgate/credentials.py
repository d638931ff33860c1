"""
Credential resolution boundary.

The gateway never decrypts or loads tokens itself. It asks a
CredentialResolver for the tenant's ``{access_token, shop_domain}`` pair;
storage and decryption live behind that protocol.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass
from typing import Optional, Protocol, runtime_checkable


@dataclass(frozen=True)
class ResolvedCredentials:
    """A usable Admin API connection for one shop."""

    access_token: str
    shop_domain: str

    def __repr__(self) -> str:
        # Never print the token
        return f"ResolvedCredentials(shop_domain={self.shop_domain!r}, access_token='***')"


@runtime_checkable
class CredentialResolver(Protocol):
    """Looks up the connected shop for a user.

    Implementations return None when the user has no usable connection and
    may raise CredentialError for lookup or decryption failures.
    """

    async def resolve(
        self, user_id: str, shop_domain: Optional[str] = None
    ) -> Optional[ResolvedCredentials]:
        ...


class InMemoryCredentialResolver:
    """
    CredentialResolver backed by a dict of user_id -> connections.

    Without a shop_domain the first registered connection wins, matching how
    the connection store returns a user's first active shop.

    Usage:
        resolver = InMemoryCredentialResolver()
        resolver.add("user-1", ResolvedCredentials("shpat_x", "demo.myshopify.com"))
        creds = await resolver.resolve("user-1")
    """

    def __init__(self, connections: Optional[dict[str, list[ResolvedCredentials]]] = None):
        self._connections: dict[str, list[ResolvedCredentials]] = {
            user_id: list(items) for user_id, items in (connections or {}).items()
        }
        self._lock = threading.Lock()

    def add(self, user_id: str, credentials: ResolvedCredentials) -> None:
        with self._lock:
            self._connections.setdefault(user_id, []).append(credentials)

    def remove(self, user_id: str, shop_domain: str) -> bool:
        """Remove a user's connection to ``shop_domain``. Returns True if found."""
        with self._lock:
            items = self._connections.get(user_id, [])
            kept = [c for c in items if c.shop_domain != shop_domain]
            self._connections[user_id] = kept
            return len(kept) != len(items)

    async def resolve(
        self, user_id: str, shop_domain: Optional[str] = None
    ) -> Optional[ResolvedCredentials]:
        with self._lock:
            items = list(self._connections.get(user_id, []))
        for creds in items:
            if not creds.access_token:
                continue
            if shop_domain is None or creds.shop_domain == shop_domain:
                return creds
        return None
