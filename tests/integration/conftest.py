"""Shared fixtures for integration tests."""

import json
import os

import jwt as pyjwt
import pytest
from fastapi.testclient import TestClient

from wishlist_proxy.api.wishlist import PROXY_PATH_PREFIX
from wishlist_proxy.auth.proxy import SHOP_DOMAIN_HEADER, SIGNATURE_HEADER, compute_proxy_signature

SHOP = "test-store.myshopify.com"


@pytest.fixture
def test_client(db_session):
    """Create FastAPI TestClient with test database."""
    # Import here to ensure environment is set
    from wishlist_proxy.server import app
    from wishlist_proxy.api.deps import get_db

    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db

    with TestClient(app) as client:
        yield client

    app.dependency_overrides.clear()


class ProxyClient:
    """Sends requests the way the upstream app proxy relays them: signed and shop-scoped."""

    def __init__(self, client: TestClient, shop: str | None = SHOP):
        self.client = client
        self.shop = shop
        self.secret = os.environ["SHOPIFY_API_SECRET"]

    def request(
        self,
        method: str,
        path: str = "",
        payload: dict | None = None,
        token: str | None = None,
        body: bytes | None = None,
        signed: bool = True,
        headers: dict | None = None,
        params: dict | None = None,
    ):
        if body is None:
            body = json.dumps(payload).encode() if payload is not None else b""

        request_headers = {"Content-Type": "application/json"}
        if self.shop:
            request_headers[SHOP_DOMAIN_HEADER] = self.shop
        if signed:
            request_headers[SIGNATURE_HEADER] = compute_proxy_signature(body, self.secret)
        if token:
            request_headers["Authorization"] = f"Bearer {token}"
        request_headers.update(headers or {})

        return self.client.request(
            method,
            f"{PROXY_PATH_PREFIX}{path}",
            content=body,
            headers=request_headers,
            params=params,
        )

    def get(self, path: str = "", **kwargs):
        return self.request("GET", path, **kwargs)

    def post(self, path: str, payload: dict | None = None, **kwargs):
        return self.request("POST", path, payload=payload if payload is not None else {}, **kwargs)

    def delete(self, path: str, **kwargs):
        return self.request("DELETE", path, **kwargs)

    def guest_session(self, guest_id: str | None = None) -> dict:
        payload = {"guestId": guest_id} if guest_id else {}
        response = self.post("/session/guest", payload)
        assert response.status_code == 200, response.text
        return response.json()

    def customer_session(self, customer_id: int = 1001, email: str | None = None) -> dict:
        response = self.post("/session/customer", {"customer": {"id": customer_id, "email": email}})
        assert response.status_code == 200, response.text
        return response.json()


def decode_token(token: str) -> dict:
    """Decode a storefront token issued by the server."""
    return pyjwt.decode(token, os.environ["JWT_SECRET"], algorithms=["HS256"])


@pytest.fixture
def proxy(test_client) -> ProxyClient:
    """Signed app proxy client for the test shop."""
    return ProxyClient(test_client)


@pytest.fixture
def decode():
    return decode_token


@pytest.fixture
def proxy_for(test_client):
    """Build a signed proxy client for another shop (or none)."""

    def factory(shop: str | None) -> ProxyClient:
        return ProxyClient(test_client, shop=shop)

    return factory
