"""
Image slot handling: mode switching, literal URLs and uploads.

A slot's preview is derived from its state (see
:class:`~investor_forms.models.investor.ImageSlot`): while an upload is in
flight the form shows a local ``data:`` URI of the raw file; afterwards it
shows whatever value is stored.  A failed upload therefore never leaves a
stale preview behind.

Uploads to different slots are independent.  Each upload holds a reference
to *its* slot object and the token issued when it started; if the slot was
reset or re-uploaded meanwhile, the late result is discarded.
"""

import base64
import logging
from typing import Optional

from investor_forms.core.config import settings
from investor_forms.core.exceptions import (
    BusinessRuleViolation,
    RemoteServerError,
    RemoteUnavailableError,
    UploadFailedError,
)
from investor_forms.models.investor import ImageSlot, ImageSource
from investor_forms.services.api_client import InvestorApiClient

logger = logging.getLogger(__name__)

UPLOAD_ERROR_MESSAGE = "An error occurred while uploading the image."
UPLOAD_SUCCESS_MESSAGE = "Image uploaded successfully!"


def local_preview(content: bytes, content_type: str) -> str:
    """Inline ``data:`` URI for showing a file before the upload completes."""
    encoded = base64.b64encode(content).decode("ascii")
    return f"data:{content_type or 'application/octet-stream'};base64,{encoded}"


class ImageResolver:
    """Operates on any :class:`ImageSlot` of one form."""

    def __init__(self, api: InvestorApiClient, max_upload_bytes: Optional[int] = None):
        self._api = api
        self._max_upload_bytes = max_upload_bytes or settings.MAX_UPLOAD_BYTES

    def set_mode(self, slot: ImageSlot, mode: ImageSource) -> None:
        """Switch between URL entry and upload. Clears the slot's value."""
        slot.reset(ImageSource(mode))

    def set_url_value(self, slot: ImageSlot, value: str) -> None:
        if slot.mode is not ImageSource.URL:
            raise BusinessRuleViolation("Switch the image to URL mode before entering a URL")
        slot.value = value
        slot.error = ""

    async def upload_file(
        self,
        slot: ImageSlot,
        filename: str,
        content: bytes,
        content_type: str,
        slot_name: str = "image",
    ) -> str:
        """
        Upload ``content`` and store the resulting URL in ``slot``.

        Returns the stored URL, or ``""`` if the slot moved on before the
        upload finished.  Raises :class:`UploadFailedError` on failure.
        """
        if slot.mode is not ImageSource.UPLOAD:
            raise BusinessRuleViolation("Switch the image to upload mode before uploading a file")
        if not content:
            raise BusinessRuleViolation("No file was selected")
        if len(content) > self._max_upload_bytes:
            raise BusinessRuleViolation(
                f"File is too large ({len(content)} bytes, limit {self._max_upload_bytes})"
            )

        token = slot.begin_upload(local_preview(content, content_type))
        try:
            url = await self._api.upload_file(filename, content, content_type)
        except UploadFailedError as exc:
            self._record_failure(slot, token, exc.message, slot_name)
            raise
        except (RemoteServerError, RemoteUnavailableError) as exc:
            self._record_failure(slot, token, UPLOAD_ERROR_MESSAGE, slot_name)
            raise UploadFailedError(UPLOAD_ERROR_MESSAGE) from exc

        if not slot.complete_upload(token, url):
            logger.info(
                "Discarding superseded upload of %s for %s",
                filename,
                slot_name,
                extra={"slot": slot_name},
            )
            return ""
        logger.info("Stored uploaded image for %s", slot_name, extra={"slot": slot_name})
        return url

    @staticmethod
    def _record_failure(slot: ImageSlot, token: int, message: str, slot_name: str) -> None:
        if slot.fail_upload(token, message):
            logger.warning("Upload failed for %s: %s", slot_name, message, extra={"slot": slot_name})
