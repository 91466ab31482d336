"""
Remote Fraud API Client.

Async HTTP client for the backend's duplicate-check and account-verification
endpoints. Responses are validated at the boundary; anything unexpected is
raised as FraudApiError so each check can apply its own failure posture.
"""

from __future__ import annotations

import asyncio
from datetime import datetime
from typing import Any

import httpx
from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    ValidatorFunctionWrapHandler,
    field_validator,
)

from shared.config import FraudApiSettings
from shared.logging import get_logger
from shared.models import BaseResponse


logger = get_logger(__name__)


class FraudApiError(Exception):
    """Remote fraud API call failed, timed out or returned an invalid body."""


class DuplicateCheckResponse(BaseModel):
    """Body returned by the duplicate-check endpoint."""

    model_config = ConfigDict(
        populate_by_name=True,
        extra="ignore",
        coerce_numbers_to_str=True,
    )

    is_duplicate: bool = Field(..., alias="isDuplicate")
    existing_submission_id: str | None = Field(default=None, alias="existingSubmissionId")
    submitted_at: datetime | None = Field(default=None, alias="submittedAt")

    @field_validator("submitted_at", mode="wrap")
    @classmethod
    def drop_unparseable_date(cls, value: Any, handler: ValidatorFunctionWrapHandler) -> Any:
        """An unreadable date must not void the duplicate verdict."""
        try:
            return handler(value)
        except ValidationError:
            logger.warning("duplicate_check_date_unparseable", value=repr(value))
            return None


class AccountVerificationResponse(BaseModel):
    """Body returned by the account-verification endpoint."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    is_verified: bool = Field(..., alias="isVerified")
    account_age: int = Field(..., ge=0, alias="accountAge")
    follower_count: int = Field(..., ge=0, alias="followerCount")
    post_count: int = Field(..., ge=0, alias="postCount")
    verification_badge: bool = Field(default=False, alias="verificationBadge")
    following_count: int | None = Field(default=None, ge=0, alias="followingCount")


class FraudApiClient:
    """
    Client for the remote fraud API.

    Every call is bounded by a total deadline on top of httpx's own
    connect/read timeouts.
    """

    def __init__(
        self,
        config: FraudApiSettings | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.config = config or FraudApiSettings()
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None:
            timeout = httpx.Timeout(
                self.config.timeout_seconds,
                connect=self.config.connect_timeout_seconds,
            )

            headers = {"Accept": "application/json"}
            api_key = self.config.api_key.get_secret_value()
            if api_key:
                headers["Authorization"] = f"Bearer {api_key}"

            self._client = httpx.AsyncClient(
                base_url=self.config.base_url,
                timeout=timeout,
                headers=headers,
                transport=self._transport,
            )

        return self._client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None

    async def _post(self, path: str, payload: dict[str, Any]) -> Any:
        client = await self._get_client()

        try:
            response = await asyncio.wait_for(
                client.post(path, json=payload),
                timeout=self.config.timeout_seconds,
            )
            response.raise_for_status()
        except asyncio.TimeoutError as e:
            raise FraudApiError(f"POST {path} timed out") from e
        except httpx.HTTPStatusError as e:
            raise FraudApiError(
                f"POST {path} returned {e.response.status_code}"
            ) from e
        except httpx.HTTPError as e:
            raise FraudApiError(f"POST {path} failed: {e}") from e

        try:
            body = response.json()
        except ValueError as e:
            raise FraudApiError(f"POST {path} returned a non-JSON body") from e

        logger.debug("fraud_api_request", path=path, status=response.status_code)
        return BaseResponse.unwrap(body)

    async def check_duplicate(self, url: str, post_id: str) -> DuplicateCheckResponse:
        """
        Ask the backend whether this post was already submitted by anyone.

        Raises:
            FraudApiError: on transport failure, timeout or invalid body.
        """
        body = await self._post(
            self.config.duplicate_check_path,
            {"url": url, "postId": post_id},
        )
        try:
            return DuplicateCheckResponse.model_validate(body)
        except ValidationError as e:
            raise FraudApiError(f"Invalid duplicate-check response: {e}") from e

    async def verify_account(self, url: str) -> AccountVerificationResponse:
        """
        Fetch account signals for the account behind a post URL.

        Raises:
            FraudApiError: on transport failure, timeout or invalid body.
        """
        body = await self._post(
            self.config.account_verification_path,
            {"url": url},
        )
        try:
            return AccountVerificationResponse.model_validate(body)
        except ValidationError as e:
            raise FraudApiError(f"Invalid account-verification response: {e}") from e
