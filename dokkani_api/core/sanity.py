"""Sanity content lake HTTP client and singleton."""

import json
import logging
from functools import lru_cache
from typing import Any

import httpx

from dokkani_api.core.config import get_settings

logger = logging.getLogger(__name__)


class SanityError(Exception):
    """Raised when a Sanity API call fails or returns an unusable payload."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        self.message = message
        self.status_code = status_code
        super().__init__(message)


class SanityClient:
    """Minimal async client for the Sanity HTTP API.

    Covers the two operations this service needs: creating a document
    through the mutate endpoint and running a GROQ query.
    """

    def __init__(
        self,
        project_id: str,
        dataset: str = "production",
        api_version: str = "2024-01-01",
        token: str | None = None,
        use_cdn: bool = False,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the Sanity client.

        Args:
            project_id: Sanity project ID.
            dataset: Dataset to read and write.
            api_version: Dated API version, without the leading "v".
            token: API token; required for writes and private datasets.
            use_cdn: Send queries to the API CDN instead of the live API.
            timeout: Request timeout in seconds.
            transport: Optional httpx transport, used by tests.
        """
        if not project_id:
            raise SanityError("Sanity project ID is not configured. Please set SANITY_PROJECT_ID.")

        self.project_id = project_id
        self.dataset = dataset
        self.api_version = api_version.lstrip("v")
        self.use_cdn = use_cdn

        headers = {"Content-Type": "application/json"}
        if token:
            headers["Authorization"] = f"Bearer {token}"

        self._client = httpx.AsyncClient(
            headers=headers,
            timeout=timeout,
            transport=transport,
        )

    def _url(self, endpoint: str, cdn: bool = False) -> str:
        host = "apicdn.sanity.io" if cdn else "api.sanity.io"
        return f"https://{self.project_id}.{host}/v{self.api_version}/data/{endpoint}/{self.dataset}"

    async def _request(self, method: str, url: str, **kwargs: Any) -> dict[str, Any]:
        try:
            response = await self._client.request(method, url, **kwargs)
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            logger.error("Sanity request failed: %s", str(e))
            raise SanityError(f"Sanity request failed: {e}") from e

        if response.is_error:
            raise SanityError(_error_message(response), status_code=response.status_code)

        try:
            body = response.json()
        except ValueError as e:
            raise SanityError("Sanity returned a non-JSON response", status_code=response.status_code) from e

        if not isinstance(body, dict):
            raise SanityError("Sanity returned an unexpected response body", status_code=response.status_code)
        return body

    async def create(self, document: dict[str, Any]) -> dict[str, Any]:
        """Create a document and return it as stored, including its generated _id.

        Args:
            document: Document body; must contain `_type`.

        Returns:
            dict: The created document.

        Raises:
            SanityError: If the mutation fails.
        """
        body = await self._request(
            "POST",
            self._url("mutate"),
            params={"returnIds": "true", "returnDocuments": "true", "visibility": "sync"},
            json={"mutations": [{"create": document}]},
        )

        results = body.get("results")
        if not isinstance(results, list) or not results or not isinstance(results[0], dict):
            raise SanityError("Sanity mutation returned no results")

        result = results[0]
        created = result.get("document")
        if not isinstance(created, dict):
            created = {**document, "_id": result.get("id")}
        logger.debug("Sanity document created: %s", created.get("_id"))
        return created

    async def fetch(self, query: str, params: dict[str, Any] | None = None) -> Any:
        """Run a GROQ query.

        Args:
            query: GROQ query string.
            params: Query parameters, referenced in the query as $name.

        Returns:
            The query result (usually a list of projected documents).

        Raises:
            SanityError: If the query fails.
        """
        query_params = {"query": query}
        for name, value in (params or {}).items():
            query_params[f"${name}"] = json.dumps(value)

        body = await self._request("GET", self._url("query", cdn=self.use_cdn), params=query_params)
        return body.get("result")

    async def aclose(self) -> None:
        """Close the underlying HTTP connection pool."""
        await self._client.aclose()


def _error_message(response: httpx.Response) -> str:
    """Extract a readable message from a Sanity error response."""
    try:
        body = response.json()
    except ValueError:
        return f"Sanity API error {response.status_code}: {response.text[:200]}"

    error = body.get("error") if isinstance(body, dict) else None
    if isinstance(error, dict):
        message = error.get("description") or error.get("message")
    else:
        message = body.get("message") if isinstance(body, dict) else None
        message = message or error
    return f"Sanity API error {response.status_code}: {message or response.reason_phrase}"


@lru_cache
def get_sanity_client() -> SanityClient:
    """Get cached Sanity client singleton.

    Returns:
        SanityClient: Client configured from settings.
    """
    settings = get_settings()
    return SanityClient(
        project_id=settings.sanity_project_id,
        dataset=settings.sanity_dataset,
        api_version=settings.sanity_api_version,
        token=settings.sanity_token or None,
        use_cdn=settings.sanity_use_cdn,
        timeout=settings.sanity_timeout_seconds,
    )


async def close_sanity_client() -> None:
    """Close the cached Sanity client, if one was created, and drop it from the cache."""
    if get_sanity_client.cache_info().currsize:
        await get_sanity_client().aclose()
        get_sanity_client.cache_clear()
