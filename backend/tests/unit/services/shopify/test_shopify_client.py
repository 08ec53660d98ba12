import json

import httpx
import pytest

from bundlegen.core.errors import BackendError, BackendNotConfigured
from bundlegen.services.shopify.client import ShopifyClient
from bundlegen.services.shopify.config import ShopifyConfig

CONFIG = ShopifyConfig(shop_domain="grotte.myshopify.com", admin_token="tok", storefront_token="sf", api_version="2024-07")


def _client(handler, config=CONFIG):
    return ShopifyClient(config, httpx.AsyncClient(transport=httpx.MockTransport(handler)))


@pytest.mark.asyncio
async def test_admin_graphql_sends_token_and_returns_data():
    seen = {}

    def handler(request):
        seen["url"] = str(request.url)
        seen["token"] = request.headers["X-Shopify-Access-Token"]
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"data": {"shop": {"name": "Grotte"}}})

    data = await _client(handler).admin_graphql("query { shop { name } }", {"a": 1})

    assert data == {"shop": {"name": "Grotte"}}
    assert seen["url"] == "https://grotte.myshopify.com/admin/api/2024-07/graphql.json"
    assert seen["token"] == "tok"
    assert seen["body"] == {"query": "query { shop { name } }", "variables": {"a": 1}}


@pytest.mark.asyncio
async def test_storefront_graphql_uses_storefront_endpoint():
    def handler(request):
        assert str(request.url) == "https://grotte.myshopify.com/api/2024-07/graphql.json"
        assert request.headers["X-Shopify-Storefront-Access-Token"] == "sf"
        return httpx.Response(200, json={"data": {"collection": None}})

    assert await _client(handler).storefront_graphql("query { x }") == {"collection": None}


@pytest.mark.asyncio
@pytest.mark.parametrize("response, message", [
    (httpx.Response(500, text="boom"), "HTTP 500: boom"),
    (httpx.Response(200, text="<html>"), "Invalid JSON"),
    (httpx.Response(200, json={"errors": [{"message": "Throttled"}]}), "errors: Throttled"),
    (httpx.Response(200, json={"data": None}), "empty data"),
])
async def test_admin_graphql_failures_keep_upstream_message(response, message):
    with pytest.raises(BackendError) as exc:
        await _client(lambda request: response).admin_graphql("query { x }")

    assert message in str(exc.value)


@pytest.mark.asyncio
async def test_transport_error_becomes_backend_error():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(BackendError, match="connection refused"):
        await _client(handler).admin_graphql("query { x }")


@pytest.mark.asyncio
async def test_not_configured_raises_before_any_request():
    def handler(request):
        raise AssertionError("no request expected")

    client = _client(handler, ShopifyConfig(shop_domain="", admin_token="", storefront_token=""))

    with pytest.raises(BackendNotConfigured):
        await client.admin_graphql("query { x }")
    with pytest.raises(BackendNotConfigured):
        await client.storefront_graphql("query { x }")


@pytest.mark.asyncio
async def test_admin_rest_get():
    def handler(request):
        assert request.url.path == "/admin/api/2024-07/themes.json"
        return httpx.Response(200, json={"themes": [{"id": 1, "role": "main"}]})

    assert await _client(handler).admin_rest_get("/themes.json") == {"themes": [{"id": 1, "role": "main"}]}
