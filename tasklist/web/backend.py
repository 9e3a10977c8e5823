import json
import logging
from typing import List, Optional

import httpx

from ..errors import ConfigurationError, ProxyRequestFailed, UpstreamError

logger = logging.getLogger(__name__)

TASKS_PATH = "api/todos"
BODYLESS_METHODS = ("GET", "HEAD")


class BackendClient:
    """Issues requests to the backend API on behalf of a signed-in user."""

    def __init__(self, base_url: Optional[str], http_client: httpx.AsyncClient):
        self.base_url = base_url.rstrip("/") if base_url else None
        self.http = http_client

    @property
    def configured(self) -> bool:
        return bool(self.base_url)

    async def forward(
        self,
        method: str,
        path: str,
        access_token: str,
        query: str = "",
        body: Optional[bytes] = None,
        content_type: Optional[str] = None,
    ) -> httpx.Response:
        """Re-issue a request to the backend with the bearer credential attached.

        The body is dropped for GET/HEAD. Transport failures raise
        ProxyRequestFailed; HTTP error statuses are returned as-is.
        """
        if not self.configured:
            logger.error("Proxy Error: BACKEND_URL is not configured.")
            raise ConfigurationError("Proxy configuration error")

        url = f"{self.base_url}/{path.lstrip('/')}"
        if query:
            url = f"{url}?{query}"

        method = method.upper()
        headers = {"Authorization": f"Bearer {access_token}"}
        content = None
        if method not in BODYLESS_METHODS:
            content = body
            if content_type:
                headers["Content-Type"] = content_type

        try:
            return await self.http.request(method, url, headers=headers, content=content)
        except httpx.HTTPError as exc:
            logger.error("Proxy: Error fetching backend %s %s: %s", method, url, exc)
            raise ProxyRequestFailed() from exc

    async def _call(self, method: str, path: str, access_token: str, json_body=None) -> httpx.Response:
        body = None
        content_type = None
        if json_body is not None:
            body = json.dumps(json_body).encode("utf-8")
            content_type = "application/json"
        response = await self.forward(method, path, access_token, body=body, content_type=content_type)
        if response.is_error:
            logger.error("Backend error %s on %s %s: %s", response.status_code, method, path, response.text)
            raise UpstreamError(f"Backend error {response.status_code}")
        return response

    @staticmethod
    def _json(response: httpx.Response):
        try:
            return response.json()
        except ValueError as exc:
            logger.error("Backend returned a non-JSON body (status %s)", response.status_code)
            raise UpstreamError("Invalid backend response") from exc

    async def list_tasks(self, access_token: str) -> List[dict]:
        response = await self._call("GET", TASKS_PATH, access_token)
        return self._json(response)

    async def create_task(self, access_token: str, text: str) -> dict:
        response = await self._call("POST", TASKS_PATH, access_token, json_body={"text": text})
        return self._json(response)

    async def delete_task(self, access_token: str, task_id) -> None:
        await self._call("DELETE", f"{TASKS_PATH}/{task_id}", access_token)
