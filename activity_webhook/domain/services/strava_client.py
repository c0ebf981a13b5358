"""
Strava API Client - fetch and update activities.

Wraps the two Strava endpoints the processor needs behind one class, with
retry on transient failures, exponential backoff and a circuit breaker.
"""
from __future__ import annotations

import asyncio
from datetime import datetime
from typing import Optional

import httpx
from pydantic import BaseModel, ConfigDict, Field

from activity_webhook.core.circuit_breaker import CircuitBreaker, get_strava_circuit_breaker
from activity_webhook.core.config import settings
from activity_webhook.core.exceptions import ActivityNotFoundError, StravaError
from activity_webhook.core.logging import get_logger

logger = get_logger(__name__)


class Activity(BaseModel):
    """Activity as returned by GET /activities/{id} (only the fields we use)"""

    model_config = ConfigDict(populate_by_name=True)

    id: int
    name: str = ""
    activity_type: str = Field(alias="type")
    start_date_local: datetime
    # [lat, lng]; Strava sends [] for activities without GPS
    start_latlng: Optional[list[float]] = None


class StravaClient:
    """
    Thin async client for the Strava v3 API.

    - GET /activities/{id} - activity details
    - PUT /activities/{id} - rename / change visibility (form-encoded)
    """

    def __init__(
        self,
        access_token: str | None = None,
        base_url: str | None = None,
        circuit_breaker: CircuitBreaker | None = None,
    ) -> None:
        self._access_token = access_token if access_token is not None else settings.STRAVA_ACCESS_TOKEN
        self._base_url = (base_url or settings.STRAVA_API_BASE_URL).rstrip("/")
        self._circuit_breaker = circuit_breaker or get_strava_circuit_breaker()
        self._max_retries = settings.STRAVA_MAX_RETRIES
        self._timeout = settings.STRAVA_TIMEOUT_SECONDS
        self._transient_status_codes = settings.transient_status_codes

    def _headers(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {self._access_token}"}

    async def _request_with_retry(
        self,
        method: str,
        path: str,
        operation_name: str,
        activity_id: int,
        data: dict | None = None,
    ) -> httpx.Response:
        """Send a request, retrying transient failures with exponential backoff.

        Returns the final response for the caller to interpret. Raises
        StravaError when every attempt times out or fails at the network level.
        """
        url = f"{self._base_url}{path}"

        async with httpx.AsyncClient(timeout=self._timeout) as client:
            for attempt in range(self._max_retries):
                try:
                    response = await client.request(
                        method,
                        url,
                        headers=self._headers(),
                        data=data,
                    )
                except httpx.TimeoutException:
                    if attempt < self._max_retries - 1:
                        backoff = 2 ** attempt
                        logger.warning(
                            f"{operation_name} timeout, retrying",
                            extra_data={
                                "activity_id": activity_id,
                                "attempt": attempt + 1,
                                "backoff_seconds": backoff,
                            },
                        )
                        await asyncio.sleep(backoff)
                        continue
                    raise StravaError(
                        message=f"{operation_name} timeout after {self._max_retries} attempts",
                        details={
                            "operation": operation_name,
                            "activity_id": activity_id,
                            "timeout": True,
                            "attempts": self._max_retries,
                        },
                    )
                except httpx.RequestError as exc:
                    if attempt < self._max_retries - 1:
                        backoff = 2 ** attempt
                        logger.warning(
                            f"Network error in {operation_name}, retrying",
                            extra_data={
                                "activity_id": activity_id,
                                "error": str(exc),
                                "attempt": attempt + 1,
                                "backoff_seconds": backoff,
                            },
                        )
                        await asyncio.sleep(backoff)
                        continue
                    raise StravaError(
                        message=f"{operation_name} network error: {exc}",
                        details={
                            "operation": operation_name,
                            "activity_id": activity_id,
                            "network_error": True,
                            "attempts": self._max_retries,
                        },
                    )

                if (
                    response.status_code in self._transient_status_codes
                    and attempt < self._max_retries - 1
                ):
                    backoff = 2 ** attempt
                    logger.warning(
                        f"Transient error in {operation_name}, retrying",
                        extra_data={
                            "activity_id": activity_id,
                            "status_code": response.status_code,
                            "attempt": attempt + 1,
                            "max_retries": self._max_retries,
                            "backoff_seconds": backoff,
                        },
                    )
                    await asyncio.sleep(backoff)
                    continue

                return response

        # range() is never empty (STRAVA_MAX_RETRIES >= 1)
        raise StravaError(message=f"{operation_name} made no attempts")

    async def _get_activity(self, activity_id: int) -> Activity:
        response = await self._request_with_retry(
            "GET",
            f"/activities/{activity_id}",
            "get_activity",
            activity_id,
        )
        if response.status_code == 404:
            raise ActivityNotFoundError(activity_id)
        if response.status_code != 200:
            raise StravaError.from_response("get_activity", response)
        return Activity.model_validate(response.json())

    async def _update_activity(self, activity_id: int, name: str, private: bool) -> None:
        response = await self._request_with_retry(
            "PUT",
            f"/activities/{activity_id}",
            "update_activity",
            activity_id,
            data={"name": name, "private": "1" if private else "0"},
        )
        if response.status_code == 404:
            raise ActivityNotFoundError(activity_id)
        if not response.is_success:
            raise StravaError.from_response("update_activity", response)

    async def get_activity(self, activity_id: int) -> Activity:
        """Fetch activity details. Raises ActivityNotFoundError on 404."""
        return await self._circuit_breaker.execute(self._get_activity, activity_id)

    async def update_activity(self, activity_id: int, name: str, private: bool = True) -> None:
        """Rename an activity and set its visibility."""
        await self._circuit_breaker.execute(self._update_activity, activity_id, name, private)
        logger.info(
            "Activity updated",
            extra_data={"activity_id": activity_id, "name": name, "private": private},
        )


def get_strava_client() -> StravaClient:
    """Client configured from settings"""
    return StravaClient()
