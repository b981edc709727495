"""Tests for brewlog/services/api_client.py - async REST client.

Uses httpx.MockTransport so no server is needed.
"""
import asyncio
import uuid

import httpx

from brewlog.services.api_client import TIMEOUT_MESSAGE, RecipeApiClient


def _client(handler, **kwargs) -> RecipeApiClient:
    kwargs.setdefault("retry_delay", 0)
    return RecipeApiClient(
        base_url="http://testserver", transport=httpx.MockTransport(handler), **kwargs
    )


def _run(coro):
    return asyncio.run(coro)


def _recipe_json(recipe_id: str) -> dict:
    return {
        "recipeId": recipe_id,
        "recipeName": "Remote V60",
        "dateCreated": "2026-10-01T08:00:00",
        "dateModified": "2026-10-01T08:00:00",
        "isFavorite": False,
        "collections": [],
        "beanInfo": {"origin": "Kenya", "processingMethod": "Washed"},
        "brewingParameters": {"grinderModel": "Ode", "grinderUnit": "4"},
        "measurements": {"coffeeBeans": 15, "water": 250},
        "sensationRecord": {"overallImpression": 7},
    }


class TestRequest:
    def test_json_success(self):
        def handler(request):
            assert request.url.path == "/api/recipes/stats/count"
            return httpx.Response(200, json={"count": 3})

        async def call():
            async with _client(handler) as client:
                return await client.get("/api/recipes/stats/count")

        response = _run(call())
        assert response.success is True
        assert response.data == {"count": 3}
        assert response.status == 200

    def test_error_detail_used(self):
        def handler(request):
            return httpx.Response(404, json={"detail": "Recipe not found"})

        response = _run(_client(handler).get("/api/recipes/x"))
        assert response.success is False
        assert response.error == "Recipe not found"
        assert response.status == 404

    def test_error_without_body(self):
        def handler(request):
            return httpx.Response(500, text="oops")

        response = _run(_client(handler).get("/api/recipes"))
        assert response.error == "HTTP 500: Internal Server Error"
        assert response.data == "oops"

    def test_timeout(self):
        def handler(request):
            raise httpx.ReadTimeout("timed out", request=request)

        response = _run(_client(handler).get("/api/recipes"))
        assert response.success is False
        assert response.error == TIMEOUT_MESSAGE

    def test_network_error(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        response = _run(_client(handler).post("/api/recipes", {"recipeName": "x"}))
        assert response.success is False
        assert response.error == "connection refused"

    def test_envelope_passed_through(self):
        def handler(request):
            return httpx.Response(200, json={"success": False, "error": "Not allowed"})

        response = _run(_client(handler).delete("/api/drafts/new"))
        assert response.success is False
        assert response.error == "Not allowed"

    def test_sends_json_body(self):
        seen = {}

        def handler(request):
            seen["method"] = request.method
            seen["body"] = request.content
            return httpx.Response(201, json={"ok": True})

        response = _run(_client(handler).put("/api/drafts/new", {"recipeName": "x"}))
        assert response.success is True
        assert seen["method"] == "PUT"
        assert b'"recipeName"' in seen["body"]


class TestRetry:
    def test_retries_server_errors(self):
        calls = []

        def handler(request):
            calls.append(request)
            if len(calls) < 3:
                return httpx.Response(503, json={"error": "busy"})
            return httpx.Response(200, json=[])

        response = _run(_client(handler, max_retries=3).get_with_retry("/api/recipes"))
        assert response.success is True
        assert len(calls) == 3

    def test_gives_up_after_max_retries(self):
        calls = []

        def handler(request):
            calls.append(request)
            return httpx.Response(502, text="bad gateway")

        response = _run(_client(handler, max_retries=2).get_with_retry("/api/recipes"))
        assert response.success is False
        assert response.status == 502
        assert len(calls) == 2

    def test_client_errors_not_retried(self):
        calls = []

        def handler(request):
            calls.append(request)
            return httpx.Response(404, json={"detail": "Recipe not found"})

        _run(_client(handler, max_retries=3).get_with_retry("/api/recipes/x"))
        assert len(calls) == 1

    def test_request_timeout_status_retried(self):
        calls = []

        def handler(request):
            calls.append(request)
            return httpx.Response(408 if len(calls) == 1 else 200, json={})

        response = _run(_client(handler, max_retries=3).get_with_retry("/api/recipes"))
        assert response.success is True
        assert len(calls) == 2


class TestRecipeHelpers:
    def test_health_check(self):
        def handler(request):
            assert request.url.path == "/api/health"
            return httpx.Response(200, json={"status": "healthy"})

        assert _run(_client(handler).health_check()) is True

    def test_summary_filters_drop_none(self):
        def handler(request):
            assert dict(request.url.params) == {"origin": "Kenya"}
            return httpx.Response(200, json=[])

        response = _run(_client(handler).list_recipe_summaries(origin="Kenya", q=None))
        assert response.success is True

    def test_fetch_details_skips_failures(self):
        good, bad = str(uuid.uuid4()), str(uuid.uuid4())

        def handler(request):
            if request.url.path.endswith(good):
                return httpx.Response(200, json=_recipe_json(good))
            return httpx.Response(404, json={"detail": "Recipe not found"})

        recipes = _run(_client(handler).fetch_recipe_details([good, bad]))
        assert [str(r.recipe_id) for r in recipes] == [good]
        assert recipes[0].bean_info.origin.value == "Kenya"
