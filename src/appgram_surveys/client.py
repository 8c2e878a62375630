"""AppgramClient — async HTTP client for the portal's survey endpoints.

Thin ``httpx.AsyncClient`` wrapper.  It implements both
:class:`~appgram_surveys.interfaces.SurveySource` and
:class:`~appgram_surveys.interfaces.ResponseSubmitter`, so one instance can
feed a :class:`~appgram_surveys.navigator.SurveyNavigator` end to end.

The portal answers either with a wrapped envelope
``{"success": bool, "data": ..., "error": {"code", "message"}}`` or with the
bare data object; both are accepted.  Failures raise
:class:`~appgram_surveys.errors.AppgramError` subclasses and are never
retried here.

Usage::

    async with AppgramClient("https://api.appgram.dev", project_id="p1") as client:
        definition = await client.get_public_survey("product-feedback")
"""

from __future__ import annotations

import logging
from typing import Any

import httpx
from pydantic import ValidationError

from appgram_surveys.config import ClientSettings, load_settings
from appgram_surveys.errors import AppgramError, NetworkError, NotFoundError
from appgram_surveys.interfaces import ResponseSubmitter, SurveySource
from appgram_surveys.models.survey import (
    SubmissionPayload,
    SurveyDefinition,
    SurveyResponse,
)

logger = logging.getLogger(__name__)


class AppgramClient(SurveySource, ResponseSubmitter):
    """Async client for ``/portal/surveys`` endpoints.

    Args:
        base_url: portal API root; a trailing slash is ignored
        project_id: Appgram project the surveys belong to
        org_slug / project_slug: optional portal routing hints
        timeout: per-request timeout in seconds
        transport: optional httpx transport (tests pass a ``MockTransport``
            or an ``ASGITransport``)
    """

    def __init__(
        self,
        base_url: str,
        project_id: str = "",
        *,
        org_slug: str | None = None,
        project_slug: str | None = None,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self.project_id = project_id
        self.org_slug = org_slug
        self.project_slug = project_slug
        self._timeout = timeout
        self._transport = transport
        self._client: httpx.AsyncClient | None = None
        self._owns_client = False

    @classmethod
    def from_settings(
        cls,
        settings: ClientSettings | None = None,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> AppgramClient:
        """Build a client from :class:`ClientSettings` (env by default)."""
        if settings is None:
            settings = load_settings()
        return cls(
            settings.base_url,
            settings.project_id,
            org_slug=settings.org_slug,
            project_slug=settings.project_slug,
            timeout=settings.timeout,
            transport=transport,
        )

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def __aenter__(self) -> AppgramClient:
        self._ensure_client()
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
        self._client = None
        self._owns_client = False

    def _ensure_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self._base_url,
                timeout=self._timeout,
                headers={"Content-Type": "application/json"},
                transport=self._transport,
            )
            self._owns_client = True
        return self._client

    # ------------------------------------------------------------------
    # Surveys
    # ------------------------------------------------------------------

    async def get_public_survey(self, slug: str) -> SurveyDefinition:
        """GET ``/portal/surveys/{slug}`` — survey metadata plus nodes."""
        params = {"project_id": self.project_id} if self.project_id else None
        data = await self._request("GET", f"/portal/surveys/{slug}", params=params)
        if not isinstance(data, dict):
            raise AppgramError("Malformed survey payload", code="BAD_RESPONSE")
        try:
            definition = SurveyDefinition.from_api(data)
        except ValidationError as exc:
            logger.warning("Survey %s failed validation: %s", slug, exc)
            raise AppgramError("Malformed survey payload", code="BAD_RESPONSE") from exc
        logger.info(
            "Fetched survey %s (%s) with %d node(s)",
            definition.survey.slug, definition.survey.id, len(definition.nodes),
        )
        return definition

    async def submit_survey_response(
        self, survey_id: str, data: SubmissionPayload
    ) -> SurveyResponse:
        """POST ``/portal/surveys/{survey_id}/responses``."""
        body = await self._request(
            "POST", f"/portal/surveys/{survey_id}/responses", json=data.to_wire(),
        )
        if not isinstance(body, dict):
            raise AppgramError("Malformed survey response payload", code="BAD_RESPONSE")
        try:
            return SurveyResponse(**body)
        except ValidationError as exc:
            raise AppgramError("Malformed survey response payload", code="BAD_RESPONSE") from exc

    async def get_public_survey_customization(self, survey_id: str) -> dict[str, Any]:
        """GET ``/portal/surveys/customization/{survey_id}`` — display settings."""
        data = await self._request("GET", f"/portal/surveys/customization/{survey_id}")
        return data if isinstance(data, dict) else {}

    # --- Collaborator interfaces ---

    async def get_survey(self, slug: str) -> SurveyDefinition:
        return await self.get_public_survey(slug)

    async def submit_response(
        self, survey_id: str, payload: SubmissionPayload
    ) -> SurveyResponse:
        return await self.submit_survey_response(survey_id, payload)

    # ------------------------------------------------------------------
    # HTTP plumbing
    # ------------------------------------------------------------------

    async def _request(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, str] | None = None,
        json: Any = None,
    ) -> Any:
        """Send one request and return the unwrapped ``data``.

        Raises:
            NetworkError: no HTTP response was received
            NotFoundError: HTTP 404
            AppgramError: any other non-2xx status, a ``success: false``
                envelope, or a body that is not JSON
        """
        client = self._ensure_client()
        # Drop empty query params, like the portal's URL builder does
        if params:
            params = {k: v for k, v in params.items() if v not in (None, "")}

        try:
            resp = await client.request(method, path, params=params or None, json=json)
        except httpx.HTTPError as exc:
            logger.warning("%s %s failed: %s", method, path, exc)
            raise NetworkError(str(exc) or "Network error") from exc

        try:
            body = resp.json()
        except ValueError:
            body = None

        if not resp.is_success:
            message = "An error occurred"
            if isinstance(body, dict):
                message = body.get("message") or body.get("error") or body.get("detail") or message
                if isinstance(message, dict):
                    message = message.get("message") or "An error occurred"
            logger.warning("%s %s -> %d: %s", method, path, resp.status_code, message)
            if resp.status_code == 404:
                raise NotFoundError(str(message))
            raise AppgramError(str(message), code=str(resp.status_code))

        if body is None:
            raise AppgramError("Response body is not JSON", code="BAD_RESPONSE")

        # Wrapped {success, data, error} envelope
        if isinstance(body, dict) and "success" in body:
            if not body.get("success"):
                error = body.get("error") or {}
                if not isinstance(error, dict):
                    error = {"message": str(error)}
                code = str(error.get("code") or "UNKNOWN")
                message = error.get("message") or "An error occurred"
                if code in ("404", "NOT_FOUND"):
                    raise NotFoundError(message, code=code)
                raise AppgramError(message, code=code)
            return body.get("data")

        return body
