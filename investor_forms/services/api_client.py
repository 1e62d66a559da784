"""
HTTP client for the remote investor API.

Wraps one shared ``httpx.AsyncClient`` (created in the application lifespan)
and translates transport-level outcomes into domain exceptions:

- the server answered with 4xx/5xx → :class:`RemoteServerError`, carrying the
  server's ``message`` when the body has one;
- no response at all (DNS, refused, timeout) → :class:`RemoteUnavailableError`.

Create/update return the raw response so the caller decides what counts as
success (the forms only accept HTTP 200).  No retries: every failure is
terminal for that attempt.
"""

import logging
from typing import Optional
from urllib.parse import quote

import httpx

from investor_forms.core.config import settings
from investor_forms.core.exceptions import (
    RemoteServerError,
    RemoteUnavailableError,
    UploadFailedError,
)
from investor_forms.schemas.investor import (
    InvestorEnvelope,
    InvestorPayload,
    InvestorRecord,
    UploadResponse,
)

logger = logging.getLogger(__name__)

UPLOAD_REJECTED_MESSAGE = "Image upload failed. Please try again."


def _server_message(response: httpx.Response) -> str:
    """Best-effort extraction of ``{"message": ...}`` from an error body."""
    try:
        body = response.json()
    except ValueError:
        return ""
    if isinstance(body, dict) and body.get("message"):
        return str(body["message"])
    return ""


class InvestorApiClient:
    """Calls the four remote endpoints the forms depend on."""

    CREATE_PATH = "/api/create-investor"
    GET_PATH = "/api/get-investor/{investor_id}"
    UPDATE_PATH = "/api/update-investor/{investor_id}"

    def __init__(
        self,
        http: httpx.AsyncClient,
        base_url: Optional[str] = None,
        upload_url: Optional[str] = None,
    ):
        self._http = http
        self.base_url = (base_url or settings.INVESTOR_API_BASE_URL).rstrip("/")
        self.upload_url = upload_url or settings.FILE_UPLOAD_URL

    def _url(self, template: str, **params: str) -> str:
        quoted = {key: quote(str(value), safe="") for key, value in params.items()}
        return self.base_url + template.format(**quoted)

    async def _request(self, method: str, url: str, **kwargs) -> httpx.Response:
        try:
            response = await self._http.request(method, url, **kwargs)
        except httpx.RequestError as exc:
            logger.warning("%s %s failed without a response: %s", method, url, exc)
            raise RemoteUnavailableError() from exc

        if response.is_error:
            message = _server_message(response)
            logger.warning(
                "%s %s answered %d: %s",
                method,
                url,
                response.status_code,
                message or "<no message>",
                extra={"status_code": response.status_code},
            )
            raise RemoteServerError(message, upstream_status=response.status_code)
        return response

    # ── Investors ──

    async def create_investor(self, payload: InvestorPayload) -> httpx.Response:
        return await self._request("POST", self._url(self.CREATE_PATH), json=payload.to_wire())

    async def update_investor(self, investor_id: str, payload: InvestorPayload) -> httpx.Response:
        return await self._request(
            "PUT",
            self._url(self.UPDATE_PATH, investor_id=investor_id),
            json=payload.to_wire(),
        )

    async def get_investor(self, investor_id: str) -> InvestorRecord:
        """Fetch one investor; a body without an ``investor`` object is a server error."""
        response = await self._request("GET", self._url(self.GET_PATH, investor_id=investor_id))
        try:
            envelope = InvestorEnvelope.model_validate(response.json())
        except ValueError as exc:  # JSONDecodeError and ValidationError both subclass it
            logger.warning(
                "Malformed investor body for %s: %s",
                investor_id,
                exc,
                extra={"investor_id": investor_id},
            )
            raise RemoteServerError(
                "Malformed investor record", upstream_status=response.status_code
            ) from exc
        return envelope.investor

    # ── Files ──

    async def upload_file(self, filename: str, content: bytes, content_type: str) -> str:
        """
        Upload one file as multipart field ``file`` and return its public URL.

        Raises :class:`UploadFailedError` when the endpoint answers but does not
        report success with at least one URL.
        """
        response = await self._request(
            "POST",
            self.upload_url,
            files={"file": (filename, content, content_type)},
        )
        try:
            body = UploadResponse.model_validate(response.json())
        except ValueError as exc:
            raise UploadFailedError(UPLOAD_REJECTED_MESSAGE) from exc

        url = body.first_url
        if not url:
            raise UploadFailedError(UPLOAD_REJECTED_MESSAGE)
        logger.debug("Uploaded %s (%d bytes) -> %s", filename, len(content), url)
        return url
