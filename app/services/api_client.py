# file: app/services/api_client.py

import httpx
import logging
from typing import Any, Optional

from app import config
from app.services.auth_session import AuthSession

logger = logging.getLogger(__name__)

NETWORK_ERROR_STATUS = 0
UNEXPECTED_ERROR_STATUS = -1


class ApiError(Exception):
    """
    A failed backend call. `status` is the HTTP status for error responses,
    0 for transport failures and -1 for anything else.
    """

    def __init__(self, message: str, status: int, data: Optional[Any] = None):
        super().__init__(message)
        self.message = message
        self.status = status
        self.data = data

    @property
    def is_transient(self) -> bool:
        return self.status <= NETWORK_ERROR_STATUS or self.status >= 500


class ApiClient:
    """Bearer-authenticated JSON client for the CareCompanion backend."""

    def __init__(self, session: AuthSession, base_url: str = config.API_BASE_URL,
                 timeout: float = config.API_TIMEOUT_SECONDS,
                 transport: Optional[httpx.AsyncBaseTransport] = None):
        self.session = session
        self.base_url = base_url
        self.timeout = timeout
        self._transport = transport

    async def request(self, method: str, endpoint: str, json: Optional[dict] = None,
                      params: Optional[dict] = None) -> dict:
        headers = {"Content-Type": "application/json"}
        if self.session.token:
            headers["Authorization"] = f"Bearer {self.session.token}"
        else:
            logger.warning(f"No session token for {method} {endpoint}")

        logger.info(f"Making {method} request to: {self.base_url}{endpoint}")
        try:
            async with httpx.AsyncClient(base_url=self.base_url, timeout=self.timeout,
                                         transport=self._transport) as client:
                response = await client.request(method, endpoint, json=json, params=params, headers=headers)
                response.raise_for_status()
                return response.json() if response.content else {}
        except httpx.HTTPStatusError as e:
            if e.response.status_code == 401:
                await self.session.sign_out()
            raise self._from_response(e.response) from e
        except httpx.RequestError as e:
            logger.error(f"Network error calling {endpoint}: {e}")
            raise ApiError("Network error. Please check your connection.", NETWORK_ERROR_STATUS) from e
        except ValueError as e:
            logger.error(f"Invalid JSON from {endpoint}: {e}")
            raise ApiError(str(e) or "An unexpected error occurred", UNEXPECTED_ERROR_STATUS) from e

    @staticmethod
    def _from_response(response: httpx.Response) -> ApiError:
        try:
            body = response.json()
        except ValueError:
            body = None
        message = "Server error"
        if isinstance(body, dict):
            message = body.get("message") or body.get("error") or message
        logger.error(f"API request failed with {response.status_code}: {message}")
        return ApiError(message, response.status_code, body)

    async def get(self, endpoint: str, params: Optional[dict] = None) -> dict:
        return await self.request("GET", endpoint, params=params)

    async def post(self, endpoint: str, json: Optional[dict] = None) -> dict:
        return await self.request("POST", endpoint, json=json)

    async def put(self, endpoint: str, json: Optional[dict] = None) -> dict:
        return await self.request("PUT", endpoint, json=json)

    async def delete(self, endpoint: str) -> dict:
        return await self.request("DELETE", endpoint)
