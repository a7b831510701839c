"""HTTP client the respondent side uses to talk to the quizform API."""

from typing import Any

import httpx
from loguru import logger

from quizform.config import settings
from quizform.exceptions import (
    DomainValidationError,
    ExternalServiceError,
    ForbiddenError,
    NotFoundError,
    UnauthorizedError,
)
from quizform.schemas.form import PublicFormResponse
from quizform.schemas.response import (
    RespondentResponseStatus,
    ResponseRead,
    SubmissionResponse,
)

SERVICE_NAME = "quizform API"


def _error_detail(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text or response.reason_phrase
    if isinstance(body, dict) and body.get("detail"):
        return str(body["detail"])
    return response.reason_phrase


class FormsClient:
    """Authenticated respondent client for forms and submissions."""

    def __init__(
        self,
        access_token: str,
        base_url: str = settings.api_base_url,
        timeout: float = settings.request_timeout_seconds,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._client = httpx.AsyncClient(
            base_url=base_url,
            headers={"Authorization": f"Bearer {access_token}"},
            timeout=timeout,
            transport=transport,
        )

    async def __aenter__(self) -> "FormsClient":
        return self

    async def __aexit__(self, *_exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def get_form(self, form_id: str) -> PublicFormResponse:
        """Fetch a form to fill out."""
        response = await self._request("GET", f"/forms/{form_id}", form_id=form_id)
        return PublicFormResponse.model_validate(response.json())

    async def submit(self, form_id: str, answers: dict[str, Any]) -> SubmissionResponse:
        """Submit answers; 201 and 409 both carry the authoritative response.

        Safe to retry after a transient failure: the server stores at most one
        response per respondent.
        """
        response = await self._request(
            "POST",
            f"/forms/{form_id}/responses",
            form_id=form_id,
            json={"answers": answers},
            accept=(201, 409),
        )
        return SubmissionResponse.model_validate(response.json())

    async def get_my_response(self, form_id: str) -> ResponseRead | None:
        """Return the caller's stored response, or None if not submitted."""
        response = await self._request(
            "GET", f"/forms/{form_id}/responses/me", form_id=form_id
        )
        return RespondentResponseStatus.model_validate(response.json()).response

    async def _request(
        self,
        method: str,
        path: str,
        form_id: str,
        json: dict[str, Any] | None = None,
        accept: tuple[int, ...] = (200,),
    ) -> httpx.Response:
        try:
            response = await self._client.request(method, path, json=json)
        except httpx.RequestError as exc:
            logger.warning("API request failed", method=method, path=path, error=str(exc))
            raise ExternalServiceError(SERVICE_NAME, str(exc)) from exc

        if response.status_code in accept:
            return response

        detail = _error_detail(response)
        match response.status_code:
            case 401:
                raise UnauthorizedError(detail)
            case 403:
                raise ForbiddenError(detail, details={"form_id": form_id})
            case 404:
                raise NotFoundError(resource="Form", resource_id=form_id)
            case 400 | 422:
                raise DomainValidationError(detail)
            case _:
                raise ExternalServiceError(
                    SERVICE_NAME,
                    detail,
                    details={"status_code": response.status_code},
                )
