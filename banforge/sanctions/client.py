"""HTTP client for the Epic Online Services sanctions API."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any

import httpx

from ..config import SanctionsConfig
from ..domain.bans import SanctionsAuthority
from ..domain.exceptions import ExternalSanctionFailed
from .tokens import TokenCache

logger = logging.getLogger(__name__)


class EOSSanctionsClient(SanctionsAuthority):
    """Create and remove sanctions through the EOS web API.

    Every request carries a bearer token from a shared :class:`TokenCache`; a
    401 reply drops the cached token and the request is retried once.
    """

    def __init__(
        self,
        config: SanctionsConfig,
        *,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self._config = config
        self._owns_client = http_client is None
        self._http = http_client or httpx.AsyncClient(timeout=config.timeout_seconds)
        self.tokens = TokenCache(self._fetch_token, refresh_margin=config.token_refresh_margin_seconds)

    @property
    def _base(self) -> str:
        return self._config.api_url.rstrip("/")

    @property
    def _sanctions_url(self) -> str:
        return f"{self._base}/sanctions/v1/{self._config.deployment_id}/sanctions"

    async def create_sanction(
        self, subject_id: str, *, justification: str, expires_at: datetime | None
    ) -> str | None:
        sanction: dict[str, Any] = {
            "subjectId": subject_id,
            "action": self._config.action,
            "justification": justification,
            "source": "MANUAL",
            "tags": ["banned"],
        }
        if expires_at is not None:
            sanction["expirationTimestamp"] = int(expires_at.timestamp())
        logger.debug("Sending sanction payload: %s", sanction)
        response = await self._authorized("POST", self._sanctions_url, json=[sanction])
        try:
            body = response.json()
        except ValueError:
            body = None
        reference_id = _extract_reference_id(body)
        logger.info("Sanction created for %s (reference %s).", subject_id, reference_id)
        return reference_id

    async def remove_sanction(self, reference_id: str) -> None:
        await self._authorized(
            "DELETE", f"{self._sanctions_url}/{reference_id}", allow_statuses=(404,)
        )
        logger.info("Sanction %s removed.", reference_id)

    async def aclose(self) -> None:
        if self._owns_client:
            await self._http.aclose()

    async def _fetch_token(self) -> tuple[str, float]:
        try:
            response = await self._http.post(
                f"{self._base}/auth/v1/oauth/token",
                data={
                    "grant_type": "client_credentials",
                    "deployment_id": self._config.deployment_id,
                },
                auth=(self._config.client_id, self._config.client_secret),
                timeout=self._config.timeout_seconds,
            )
        except httpx.HTTPError as exc:
            raise ExternalSanctionFailed(f"Token request failed: {exc}") from exc
        if response.is_error:
            raise ExternalSanctionFailed(
                "Token request rejected",
                status_code=response.status_code,
                detail=_error_detail(response),
            )
        try:
            body = response.json()
            return str(body["access_token"]), float(body.get("expires_in", 3600))
        except (KeyError, TypeError, ValueError, AttributeError) as exc:
            raise ExternalSanctionFailed(
                f"Malformed token response: {response.text[:200]!r}"
            ) from exc

    async def _authorized(
        self,
        method: str,
        url: str,
        *,
        allow_statuses: tuple[int, ...] = (),
        **kwargs: Any,
    ) -> httpx.Response:
        response = await self._send(method, url, **kwargs)
        if response.status_code == 401:
            logger.info("Sanctions API returned 401; refreshing token and retrying.")
            self.tokens.invalidate()
            response = await self._send(method, url, **kwargs)
        if response.is_error and response.status_code not in allow_statuses:
            detail = _error_detail(response)
            logger.error("Sanctions API %s %s failed: %s", method, url, detail)
            raise ExternalSanctionFailed(
                "Sanctions API rejected the request",
                status_code=response.status_code,
                detail=detail,
            )
        return response

    async def _send(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        token = await self.tokens.get()
        try:
            return await self._http.request(
                method,
                url,
                headers={"Authorization": f"Bearer {token}"},
                timeout=self._config.timeout_seconds,
                **kwargs,
            )
        except httpx.HTTPError as exc:
            raise ExternalSanctionFailed(f"{method} {url} failed: {exc}") from exc


def _error_detail(response: httpx.Response) -> dict[str, Any] | str:
    try:
        body = response.json()
    except ValueError:
        return response.text[:500]
    if isinstance(body, dict):
        detail = {
            key: body[key]
            for key in ("errorCode", "errorMessage", "validationFailures", "error", "error_description")
            if key in body
        }
        return detail or body
    return str(body)[:500]


def _extract_reference_id(body: Any) -> str | None:
    if isinstance(body, list):
        return _extract_reference_id(body[0]) if body else None
    if isinstance(body, dict):
        if body.get("referenceId"):
            return str(body["referenceId"])
        elements = body.get("elements")
        if isinstance(elements, list):
            return _extract_reference_id(elements)
    return None
