"""aiohttp doubles shared by the gateway and transport tests."""

import json
from typing import Any, Optional
from unittest.mock import AsyncMock, MagicMock

from multidict import CIMultiDict, CIMultiDictProxy

from shopgate.config import GatewayConfig
from shopgate.gateway import AdminAPIGateway

SHOP = "demo.myshopify.com"
TOKEN = "shpat_test_token"
BASE_URL = f"https://{SHOP}/admin/api/2024-01"


def make_response(
    status: int = 200,
    body: Any = None,
    headers: Optional[dict[str, str]] = None,
    reason: str = "OK",
) -> MagicMock:
    """Build the async context manager returned by ``session.request``.

    ``body`` may be raw bytes, a string (sent verbatim) or any JSON-serializable
    value. ``text()`` decodes like aiohttp does, honouring ``errors``.
    """
    resp = MagicMock()
    resp.status = status
    resp.reason = reason
    if isinstance(body, bytes):
        raw = body
    elif isinstance(body, str):
        raw = body.encode()
    else:
        raw = json.dumps(body if body is not None else {}).encode()

    def decode(encoding: Optional[str] = None, errors: str = "strict") -> str:
        return raw.decode(encoding or "utf-8", errors)

    resp.text = AsyncMock(side_effect=decode)
    resp.headers = CIMultiDictProxy(CIMultiDict(headers or {}))

    ctx = MagicMock()
    ctx.__aenter__ = AsyncMock(return_value=resp)
    ctx.__aexit__ = AsyncMock(return_value=False)
    return ctx


def make_session(*responses: Any) -> MagicMock:
    """Session whose request() yields ``responses`` in order.

    An exception instance in ``responses`` is raised from that call instead.
    """
    session = MagicMock()
    session.closed = False
    session.request = MagicMock(side_effect=list(responses))
    session.close = AsyncMock()
    return session


def make_gateway(session: MagicMock, **config_overrides: Any) -> AdminAPIGateway:
    """Configured gateway with fast queue pacing."""
    settings = {"min_dispatch_interval_ms": 10}
    settings.update(config_overrides)
    gateway = AdminAPIGateway("user-1", config=GatewayConfig(**settings), session=session)
    gateway.configure(TOKEN, SHOP)
    return gateway


def sent_json(session: MagicMock, call_index: int = -1) -> Any:
    """Decode the JSON body of a recorded ``session.request`` call."""
    return json.loads(session.request.call_args_list[call_index].kwargs["data"])


def sent_url(session: MagicMock, call_index: int = -1) -> str:
    return session.request.call_args_list[call_index].args[1]
