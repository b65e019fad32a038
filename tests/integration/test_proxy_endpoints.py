"""End-to-end tests for the app proxy endpoints."""

import uuid


class TestHealth:
    """Tests for the health endpoint."""

    def test_health(self, test_client):
        response = test_client.get("/api/health")

        assert response.status_code == 200
        assert response.json()["status"] == "ok"


class TestProxyVerification:
    """Tests for upstream signature and shop scope checks."""

    def test_unsigned_request_rejected(self, proxy):
        response = proxy.post("/session/guest", signed=False)

        assert response.status_code == 401
        assert response.json()["detail"]["code"] == "INVALID_SIGNATURE"

    def test_bad_signature_rejected(self, proxy):
        response = proxy.post(
            "/session/guest",
            headers={"X-Shopify-Hmac-Sha256": "AAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAA="},
        )

        assert response.status_code == 401
        assert response.json()["detail"]["code"] == "INVALID_SIGNATURE"

    def test_missing_shop_rejected(self, proxy_for):
        response = proxy_for(None).post("/session/guest")

        assert response.status_code == 400
        assert response.json()["detail"]["error"] == "Shop domain required"

    def test_shop_from_query(self, proxy_for):
        response = proxy_for(None).post(
            "/session/guest", params={"shop": "query-store.myshopify.com"}
        )

        assert response.status_code == 200

    def test_invalid_json_rejected(self, proxy):
        response = proxy.request("POST", "/session/guest", body=b"{not json")

        assert response.status_code == 400
        assert response.json()["detail"]["code"] == "VALIDATION_ERROR"

    def test_missing_secret_is_configuration_error(self, proxy, monkeypatch):
        monkeypatch.setenv("SHOPIFY_API_SECRET", "")

        response = proxy.post("/session/guest")

        assert response.status_code == 500
        assert response.json()["detail"]["code"] == "CONFIGURATION_ERROR"

    def test_missing_jwt_secret_is_configuration_error(self, proxy, monkeypatch):
        monkeypatch.setenv("JWT_SECRET", "")

        response = proxy.post("/session/guest")

        assert response.status_code == 500
        assert response.json()["detail"]["code"] == "CONFIGURATION_ERROR"


class TestSessions:
    """Tests for session endpoints."""

    def test_guest_session(self, proxy, decode):
        data = proxy.guest_session()

        assert data["success"] is True
        assert data["guest"]["isGuest"] is True
        assert data["expiresIn"] == 86400
        claims = decode(data["token"])
        assert claims["subjectId"] == f"guest_{data['guest']['id']}"
        assert claims["shop"] == "test-store.myshopify.com"

    def test_guest_session_resumes_key(self, proxy):
        assert proxy.guest_session("abc")["guest"]["id"] == "abc"

    def test_customer_session(self, proxy, decode):
        data = proxy.customer_session(1001, "c1@example.com")

        assert data["customer"]["shopCustomerId"] == "1001"
        assert data["customer"]["email"] == "c1@example.com"
        assert data["expiresIn"] == 3600
        assert decode(data["token"])["subjectId"] == "1001"

    def test_customer_session_is_idempotent(self, proxy):
        first = proxy.customer_session(1001)
        second = proxy.customer_session(1001)

        assert first["customer"]["id"] == second["customer"]["id"]

    def test_customer_session_requires_id(self, proxy):
        response = proxy.post("/session/customer", {"customer": {"email": "x@example.com"}})

        assert response.status_code == 400

    def test_customer_session_requires_numeric_id(self, proxy):
        response = proxy.post("/session/customer", {"customer": {"id": "abc"}})

        assert response.status_code == 400
        assert response.json()["detail"]["code"] == "VALIDATION_ERROR"

    def test_customer_session_id_out_of_range(self, proxy):
        response = proxy.post("/session/customer", {"customer": {"id": 2**64}})

        assert response.json()["detail"]["code"] == "VALIDATION_ERROR"
        assert response.json()["detail"]["error"] == "Customer id out of range"

    def test_refresh(self, proxy, decode):
        session = proxy.customer_session(1001)

        response = proxy.post("/session/refresh", token=session["token"])

        assert response.status_code == 200
        data = response.json()
        assert data["expiresIn"] == 3600
        assert data["customerId"] == "1001"
        assert decode(data["token"])["subjectId"] == "1001"

    def test_refresh_guest(self, proxy):
        session = proxy.guest_session("g1")

        data = proxy.post("/session/refresh", token=session["token"]).json()

        assert data["expiresIn"] == 86400
        assert data["customerId"] == "guest_g1"

    def test_refresh_requires_token(self, proxy):
        response = proxy.post("/session/refresh")

        assert response.status_code == 401
        assert response.json()["detail"]["code"] == "AUTH_REQUIRED"

    def test_refresh_rejects_garbage(self, proxy):
        response = proxy.post("/session/refresh", token="garbage")

        assert response.status_code == 401
        assert response.json()["detail"]["code"] == "INVALID_TOKEN"


class TestWishlistEndpoints:
    """Tests for wishlist read, add and remove."""

    def test_anonymous_fetch_links_new_guest_wishlist(self, proxy, decode):
        proxy.guest_session()

        response = proxy.get()

        assert response.status_code == 200
        data = response.json()
        assert data["wishlist"]["items"] == []
        share_uuid = data["wishlist"]["shareUUID"]
        assert decode(data["token"])["subjectId"] == f"guest_{share_uuid}"

    def test_guest_fetch_uses_token_key(self, proxy):
        session = proxy.guest_session("g1")

        data = proxy.get(token=session["token"]).json()

        assert data["wishlist"]["shareUUID"] == "g1"

    def test_fetch_unknown_shop(self, proxy):
        response = proxy.get()

        assert response.status_code == 404
        assert response.json()["detail"]["code"] == "NOT_FOUND"

    def test_fetch_with_upstream_customer_header(self, proxy):
        session = proxy.customer_session(1001)
        token = session["token"]
        proxy.post("/items", {"productId": 1, "variantId": 10, "handle": "shirt"}, token=token)

        data = proxy.get(headers={"X-Shopify-Customer-Id": "1001"}).json()

        assert [item["handle"] for item in data["wishlist"]["items"]] == ["shirt"]

    def test_guest_key_used_by_other_shop_is_conflict(self, proxy_for, proxy):
        first = proxy.guest_session("shared")
        assert proxy.get(token=first["token"]).status_code == 200
        other = proxy_for("other-store.myshopify.com")
        second = other.guest_session("shared")

        response = other.get(token=second["token"])

        assert response.status_code == 409
        assert response.json()["detail"]["error"] == "Guest key unavailable"

    def test_unknown_upstream_customer_id_out_of_range(self, proxy):
        proxy.guest_session()

        response = proxy.get(headers={"X-Shopify-Customer-Id": str(2**64)})

        assert response.status_code == 404

    def test_token_for_other_shop_rejected(self, proxy_for, proxy):
        other = proxy_for("other-store.myshopify.com").guest_session("g1")
        proxy.guest_session("g1")

        response = proxy.get(token=other["token"])

        assert response.status_code == 401
        assert response.json()["detail"]["code"] == "INVALID_TOKEN"

    def test_add_item(self, proxy, decode):
        token = proxy.customer_session(1001)["token"]

        response = proxy.post(
            "/items",
            {"productId": 7000000000001, "variantId": 42, "handle": "  shirt  "},
            token=token,
        )

        assert response.status_code == 201
        data = response.json()
        assert data["success"] is True
        assert data["item"]["productId"] == "7000000000001"
        assert data["item"]["variantId"] == "42"
        assert data["item"]["handle"] == "shirt"
        assert decode(data["token"])["subjectId"] == "1001"

    def test_add_requires_token(self, proxy):
        proxy.guest_session()

        response = proxy.post("/items", {"productId": 1, "variantId": 10, "handle": "shirt"})

        assert response.status_code == 401
        assert response.json()["detail"]["code"] == "AUTH_REQUIRED"

    def test_add_missing_fields(self, proxy):
        token = proxy.customer_session(1001)["token"]

        response = proxy.post("/items", {"productId": 1}, token=token)

        assert response.status_code == 400
        assert response.json()["detail"]["error"] == "Missing required fields: productId, variantId, handle"

    def test_add_oversized_id_rejected(self, proxy):
        token = proxy.customer_session(1001)["token"]

        response = proxy.post("/items", {"productId": 2**64, "variantId": 1, "handle": "x"}, token=token)

        assert response.status_code == 400
        assert response.json()["detail"]["code"] == "VALIDATION_ERROR"

    def test_add_duplicate_returns_conflict_with_existing(self, proxy):
        token = proxy.customer_session(1001)["token"]
        payload = {"productId": 1, "variantId": 10, "handle": "shirt"}
        created = proxy.post("/items", payload, token=token).json()["item"]

        response = proxy.post("/items", payload, token=token)

        assert response.status_code == 409
        detail = response.json()["detail"]
        assert detail["code"] == "CONFLICT"
        assert detail["item"]["id"] == created["id"]

    def test_remove_item(self, proxy):
        token = proxy.guest_session("g1")["token"]
        item = proxy.post("/items", {"productId": 1, "variantId": 10, "handle": "shirt"}, token=token).json()["item"]

        response = proxy.delete(f"/items/{item['id']}", token=token)

        assert response.status_code == 200
        assert response.json()["message"] == "Item removed from wishlist"
        assert proxy.get(token=token).json()["wishlist"]["items"] == []

    def test_remove_other_owner_forbidden(self, proxy):
        owner = proxy.customer_session(1001)["token"]
        intruder = proxy.customer_session(1002)["token"]
        item = proxy.post("/items", {"productId": 1, "variantId": 10, "handle": "shirt"}, token=owner).json()["item"]

        response = proxy.delete(f"/items/{item['id']}", token=intruder)

        assert response.status_code == 403
        assert response.json()["detail"]["code"] == "ACCESS_DENIED"

    def test_remove_unknown_item(self, proxy):
        token = proxy.customer_session(1001)["token"]

        response = proxy.delete(f"/items/{uuid.uuid4()}", token=token)

        assert response.status_code == 404


class TestMigrateEndpoint:
    """Tests for guest wishlist migration on login."""

    def test_guest_to_customer_flow(self, proxy, decode):
        guest = proxy.guest_session("g1")
        for product_id, variant_id, handle in [(1, 10, "shirt"), (2, 20, "hat")]:
            response = proxy.post(
                "/items",
                {"productId": product_id, "variantId": variant_id, "handle": handle},
                token=guest["token"],
            )
            assert response.status_code == 201

        customer = proxy.customer_session(1001, "c1@example.com")
        proxy.post("/items", {"productId": 2, "variantId": 20, "handle": "hat"}, token=customer["token"])

        response = proxy.post("/migrate", {"guestToken": guest["token"]}, token=customer["token"])

        assert response.status_code == 200
        data = response.json()
        assert data["migrated"] is True
        assert data["migratedCount"] == 1
        assert data["message"] == "Migrated 1 items to your account"
        assert decode(data["token"])["subjectId"] == "1001"

        items = proxy.get(token=customer["token"]).json()["wishlist"]["items"]
        assert sorted((i["productId"], i["variantId"]) for i in items) == [("1", "10"), ("2", "20")]

        again = proxy.post("/migrate", {"guestToken": guest["token"]}, token=customer["token"]).json()
        assert again["migrated"] is False
        assert again["migratedCount"] == 0
        assert again["message"] == "No guest wishlist to migrate"

    def test_guest_caller_rejected(self, proxy):
        guest = proxy.guest_session("g1")

        response = proxy.post("/migrate", {"guestToken": guest["token"]}, token=guest["token"])

        assert response.status_code == 400
        assert response.json()["detail"]["error"] == "Must be registered to migrate wishlist"

    def test_missing_guest_token(self, proxy):
        customer = proxy.customer_session(1001)

        response = proxy.post("/migrate", {}, token=customer["token"])

        assert response.status_code == 400
        assert response.json()["detail"]["error"] == "Guest token required"
