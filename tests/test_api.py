# tests/test_api.py

import uuid

from conftest import headers_for


class TestAuthentication:

    async def test_health_needs_no_identity(self, client):
        response = await client.get("/health")
        assert response.status_code == 200
        assert response.json() == {"status": "ok"}
        assert response.headers["Cache-Control"].startswith("no-cache")

    async def test_missing_headers(self, client, world):
        response = await client.get("/api/posts")
        assert response.status_code == 401

    async def test_malformed_identity(self, client, world):
        response = await client.get("/api/posts", headers={"X-User-Id": "nope", "X-User-Role": "user"})
        assert response.status_code == 401
        response = await client.get("/api/posts", headers={"X-User-Id": str(uuid.uuid4()), "X-User-Role": "root"})
        assert response.status_code == 401

    async def test_admin_routes_reject_regular_users(self, client, world):
        response = await client.get(f"/api/access/posts/{world.posts['A']}", headers=headers_for(world.alice))
        assert response.status_code == 403
        response = await client.post("/api/seed", headers=headers_for(world.alice))
        assert response.status_code == 403

    async def test_request_id_is_echoed(self, client, world):
        response = await client.get("/api/posts", headers={**headers_for(world.alice), "X-Request-Id": "abc123"})
        assert response.headers["X-Request-Id"] == "abc123"


class TestReadEndpoints:

    async def test_post_list_is_paginated(self, client, world):
        response = await client.get("/api/posts", params={"limit": "-3", "order_by": "bogus"}, headers=headers_for(world.admin))
        assert response.status_code == 200
        body = response.json()
        assert body["total"] == 3
        assert body["limit"] == 100
        assert len(body["items"]) == 3

    async def test_denied_post_is_404(self, client, world):
        response = await client.get(f"/api/posts/{world.posts['B']}", headers=headers_for(world.alice))
        assert response.status_code == 404

    async def test_single_post_includes_sentiments_by_default(self, client, world):
        response = await client.get(f"/api/posts/{world.posts['A']}", headers=headers_for(world.alice))
        assert response.status_code == 200
        body = response.json()
        assert [s["id"] for s in body["sentiments"]] == [str(world.sentiments["A"])]
        assert len(body["reactions"]) == 1
        assert body["engagement_score"] == 3

    async def test_single_post_include_flags_can_be_turned_off(self, client, world):
        response = await client.get(
            f"/api/posts/{world.posts['A']}",
            params={"include_sentiments": "false"},
            headers=headers_for(world.alice),
        )
        assert response.json()["sentiments"] is None

    async def test_user_lookup_by_profile_id(self, client, world):
        response = await client.get("/api/users/1001", headers=headers_for(world.alice))
        assert response.status_code == 200
        assert response.json()["display_name"] == "Ann Lee"
        response = await client.get("/api/users/1001", headers=headers_for(world.bob))
        assert response.status_code == 404

    async def test_post_sentiment_summary_endpoint(self, client, world):
        response = await client.get(
            f"/api/analytics/posts/{world.posts['A']}/sentiment-summary", headers=headers_for(world.alice)
        )
        assert response.status_code == 200
        assert response.json()["total"]["total_sentiments"] == 3
        response = await client.get(
            f"/api/analytics/posts/{world.posts['B']}/sentiment-summary", headers=headers_for(world.alice)
        )
        assert response.status_code == 404

    async def test_dashboard(self, client, world):
        response = await client.get("/api/dashboard/stats", headers=headers_for(world.admin))
        assert response.status_code == 200
        body = response.json()
        assert body["total_posts"] == 3
        assert len(body["sentiment_trend"]) == 24


class TestAccessEndpoints:

    async def test_grant_then_revoke(self, client, world):
        admin = headers_for(world.admin)
        body = {"auth_user_id": str(world.bob.user_id), "post_id": str(world.posts["C"])}

        response = await client.post("/api/access/grants", json=body, headers=admin)
        assert response.status_code == 201
        assert response.json()["granted_by"] == str(world.admin.user_id)

        response = await client.get(f"/api/posts/{world.posts['C']}", headers=headers_for(world.bob))
        assert response.status_code == 200

        response = await client.delete(f"/api/access/grants/{world.bob.user_id}/{world.posts['C']}", headers=admin)
        assert response.status_code == 200
        response = await client.delete(f"/api/access/grants/{world.bob.user_id}/{world.posts['C']}", headers=admin)
        assert response.status_code == 200
        assert response.json()["message"] == "No grant to revoke."

        response = await client.get(f"/api/posts/{world.posts['C']}", headers=headers_for(world.bob))
        assert response.status_code == 404

    async def test_bulk_with_empty_list_is_400(self, client, world):
        response = await client.post(
            "/api/access/bulk/post",
            json={"post_id": str(world.posts["A"]), "auth_user_ids": []},
            headers=headers_for(world.admin),
        )
        assert response.status_code == 400
        assert response.json()["field"] == "auth_user_ids"

    async def test_bulk_with_unknown_post_is_rejected(self, client, world):
        missing = str(uuid.uuid4())
        response = await client.post(
            "/api/access/bulk/user",
            json={"auth_user_id": str(world.bob.user_id), "post_ids": [str(world.posts["A"]), missing]},
            headers=headers_for(world.admin),
        )
        assert response.status_code == 404
        body = response.json()
        assert body["missing_posts"] == [missing]
        assert body["missing_users"] == []

        response = await client.get(f"/api/access/users/{world.bob.user_id}", headers=headers_for(world.admin))
        assert response.json()["post_ids"] == []

    async def test_post_grants_list(self, client, world):
        response = await client.get(f"/api/access/posts/{world.posts['A']}", headers=headers_for(world.admin))
        assert response.status_code == 200
        assert [g["username"] for g in response.json()] == ["alice"]
