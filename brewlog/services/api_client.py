"""Async HTTP client for the brewlog REST API.

Every call returns an ApiResponse instead of raising, so callers branch on
`success`. Only GETs are retried.

Usage:
    async with RecipeApiClient() as client:
        response = await client.get("/api/recipes")
        if response.success:
            ...
"""
import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Optional
from uuid import UUID

import httpx

from brewlog.config import get_settings
from brewlog.schemas.recipe import RecipeResponse
from brewlog.services.constants import DETAIL_FETCH_BATCH_SIZE

logger = logging.getLogger(__name__)

TIMEOUT_MESSAGE = "Request timeout - please check your connection and try again"


@dataclass
class ApiResponse:
    """Uniform result of an API call."""

    success: bool
    data: Any = None
    error: Optional[str] = None
    status: Optional[int] = None


def _error_message(data: Any, response: httpx.Response) -> str:
    if isinstance(data, dict):
        for key in ("error", "message", "detail"):
            if isinstance(data.get(key), str) and data[key]:
                return data[key]
    return f"HTTP {response.status_code}: {response.reason_phrase}"


class RecipeApiClient:
    """Client for the recipe, collection and backup endpoints."""

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        max_retries: Optional[int] = None,
        retry_delay: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        settings = get_settings()
        self.base_url = base_url or settings.API_BASE_URL
        self.timeout = timeout if timeout is not None else settings.API_TIMEOUT_SECONDS
        self.max_retries = max_retries if max_retries is not None else settings.API_MAX_RETRIES
        self.retry_delay = retry_delay if retry_delay is not None else settings.API_RETRY_DELAY_SECONDS
        self._transport = transport
        self._http_client: Optional[httpx.AsyncClient] = None

    async def __aenter__(self) -> "RecipeApiClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    async def get_http_client(self) -> httpx.AsyncClient:
        """Get or create the underlying HTTP client."""
        if self._http_client is None:
            self._http_client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout,
                headers={"Content-Type": "application/json"},
                transport=self._transport,
            )
        return self._http_client

    async def close(self) -> None:
        """Close HTTP client and cleanup resources."""
        if self._http_client:
            await self._http_client.aclose()
            self._http_client = None

    async def request(
        self,
        method: str,
        endpoint: str,
        json: Any = None,
        params: Optional[dict] = None,
        timeout: Optional[float] = None,
    ) -> ApiResponse:
        client = await self.get_http_client()
        kwargs: dict[str, Any] = {"json": json, "params": params}
        if timeout is not None:
            kwargs["timeout"] = timeout

        try:
            response = await client.request(method, endpoint, **kwargs)
        except httpx.TimeoutException:
            logger.warning(f"{method} {endpoint} timed out")
            return ApiResponse(success=False, error=TIMEOUT_MESSAGE)
        except httpx.HTTPError as e:
            logger.warning(f"{method} {endpoint} failed: {e}")
            return ApiResponse(success=False, error=str(e) or "Network error occurred")

        if "application/json" in response.headers.get("content-type", ""):
            try:
                data = response.json()
            except ValueError:
                data = response.text
        else:
            data = response.text

        if not response.is_success:
            return ApiResponse(
                success=False,
                data=data,
                error=_error_message(data, response),
                status=response.status_code,
            )

        # Pass through bodies that are already in the {success, data, error} shape
        if isinstance(data, dict) and "success" in data:
            return ApiResponse(
                success=bool(data["success"]),
                data=data.get("data"),
                error=data.get("error"),
                status=response.status_code,
            )
        return ApiResponse(success=True, data=data, status=response.status_code)

    async def get(self, endpoint: str, params: Optional[dict] = None, **kwargs) -> ApiResponse:
        return await self.request("GET", endpoint, params=params, **kwargs)

    async def post(self, endpoint: str, body: Any = None, **kwargs) -> ApiResponse:
        return await self.request("POST", endpoint, json=body, **kwargs)

    async def put(self, endpoint: str, body: Any = None, **kwargs) -> ApiResponse:
        return await self.request("PUT", endpoint, json=body, **kwargs)

    async def patch(self, endpoint: str, body: Any = None, **kwargs) -> ApiResponse:
        return await self.request("PATCH", endpoint, json=body, **kwargs)

    async def delete(self, endpoint: str, **kwargs) -> ApiResponse:
        return await self.request("DELETE", endpoint, **kwargs)

    async def get_with_retry(
        self,
        endpoint: str,
        params: Optional[dict] = None,
        max_retries: Optional[int] = None,
        delay: Optional[float] = None,
    ) -> ApiResponse:
        """GET with exponential backoff. Client errors other than 408 are not retried."""
        max_retries = max_retries if max_retries is not None else self.max_retries
        delay = delay if delay is not None else self.retry_delay

        response = ApiResponse(success=False, error="No attempts made")
        for attempt in range(1, max_retries + 1):
            response = await self.get(endpoint, params=params)
            if response.success:
                return response

            status = response.status
            if status is not None and 400 <= status < 500 and status != 408:
                break

            if attempt < max_retries:
                wait = delay * 2 ** (attempt - 1)
                logger.warning(f"GET {endpoint} failed (attempt {attempt}/{max_retries}), retrying in {wait}s")
                await asyncio.sleep(wait)

        return response

    async def health_check(self) -> bool:
        response = await self.get("/api/health")
        return response.success

    # ========================================================================
    # Recipe helpers
    # ========================================================================

    async def get_recipe(self, recipe_id: UUID) -> ApiResponse:
        return await self.get_with_retry(f"/api/recipes/{recipe_id}")

    async def list_recipe_summaries(self, **filters) -> ApiResponse:
        params = {k: v for k, v in filters.items() if v is not None}
        return await self.get_with_retry("/api/recipes/summary", params=params or None)

    async def fetch_recipe_details(self, recipe_ids: list[UUID]) -> list[RecipeResponse]:
        """Load full recipes, DETAIL_FETCH_BATCH_SIZE requests at a time.

        Recipes that fail to load are logged and left out.
        """
        recipes: list[RecipeResponse] = []
        for start in range(0, len(recipe_ids), DETAIL_FETCH_BATCH_SIZE):
            batch = recipe_ids[start:start + DETAIL_FETCH_BATCH_SIZE]
            responses = await asyncio.gather(*(self.get(f"/api/recipes/{rid}") for rid in batch))
            for recipe_id, response in zip(batch, responses):
                if response.success and response.data:
                    recipes.append(RecipeResponse.model_validate(response.data))
                else:
                    logger.warning(f"Failed to load recipe {recipe_id}: {response.error}")
        return recipes
