"""
Create and update investor forms.

Each form owns one draft and composes the field manager, the image resolver
and the submission controller around it.  The two forms differ only in:

- which fields must be filled before submit;
- which remote call submit makes (POST vs. PUT with the investor id);
- what success does: create resets the draft and asks for the listing page,
  update keeps the draft and stays put.
"""

import logging
from enum import Enum
from typing import List, Optional
from uuid import uuid4

import httpx

from investor_forms.core.config import settings
from investor_forms.core.exceptions import UploadFailedError
from investor_forms.models.investor import ImageSlot, InvestorDraft
from investor_forms.schemas.investor import InvestorPayload
from investor_forms.services.api_client import InvestorApiClient
from investor_forms.services.field_state import FieldStateManager
from investor_forms.services.image_resolver import UPLOAD_SUCCESS_MESSAGE, ImageResolver
from investor_forms.services.loader import RecordLoader
from investor_forms.services.submission import FormSubmissionController

logger = logging.getLogger(__name__)

PROFILE_IMAGE_SLOT = "image"


class FormKind(str, Enum):
    CREATE = "create"
    UPDATE = "update"


def _blank(value: str) -> bool:
    return not value or not value.strip()


class InvestorForm:
    """State shared by both forms. Subclasses define ``send`` and success handling."""

    kind: FormKind
    required_fields: tuple = ("name", "website", "description")
    success_message: str = ""
    server_error_fallback: str = ""

    def __init__(self, api: InvestorApiClient, form_id: Optional[str] = None):
        self.id = form_id or uuid4().hex
        self.draft = InvestorDraft()
        self.error = ""
        self.success = ""
        self._api = api
        self.fields = FieldStateManager(self)
        self.images = ImageResolver(api)
        self.submission = FormSubmissionController(self)

    @property
    def investor_id(self) -> Optional[str]:
        return None

    # ── Slots ──

    def profile_image(self) -> ImageSlot:
        return self.draft.image

    def portfolio_logo(self, index: int) -> ImageSlot:
        return self.fields.entry("portfolio_companies", index).logo

    async def upload_image(
        self,
        slot: ImageSlot,
        filename: str,
        content: bytes,
        content_type: str,
        slot_name: str = PROFILE_IMAGE_SLOT,
    ) -> str:
        """Upload into ``slot``, reporting the outcome on the form as well."""
        try:
            url = await self.images.upload_file(
                slot, filename, content, content_type, slot_name=slot_name
            )
        except UploadFailedError as exc:
            self.error = exc.message
            raise
        self.error = ""
        self.success = UPLOAD_SUCCESS_MESSAGE
        return url

    # ── Submission hooks ──

    def missing_fields(self) -> List[str]:
        """Names of required fields that are empty, in form order."""
        return [name for name in self.required_fields if _blank(getattr(self.draft, name))]

    async def send(self, payload: InvestorPayload) -> httpx.Response:
        raise NotImplementedError

    def server_error_message(self, message: str) -> str:
        """How a non-empty message from a rejecting server is shown."""
        return message

    def on_submit_success(self) -> Optional[str]:
        """Apply post-success changes; return the path to navigate to, if any."""
        return None

    async def submit(self):
        return await self.submission.submit()

    def __repr__(self) -> str:
        return f"<{type(self).__name__} id={self.id} draft={self.draft!r}>"


class CreateForm(InvestorForm):
    kind = FormKind.CREATE
    required_fields = (
        "name",
        "website",
        "description",
        "check_size",
        "headquarter",
        "contact_link",
    )
    success_message = "Investor added successfully!"
    server_error_fallback = "Error occurred while submitting the form."

    def missing_fields(self) -> List[str]:
        missing = super().missing_fields()
        for index, entry in enumerate(self.draft.portfolio_companies):
            if _blank(entry.name):
                missing.append(f"portfolio_companies[{index}].name")
            if _blank(entry.link):
                missing.append(f"portfolio_companies[{index}].link")
        return missing

    def server_error_message(self, message: str) -> str:
        return f"Server error: {message}"

    async def send(self, payload: InvestorPayload) -> httpx.Response:
        return await self._api.create_investor(payload)

    def on_submit_success(self) -> Optional[str]:
        self.draft = InvestorDraft()
        return settings.LISTING_PATH


class UpdateForm(InvestorForm):
    kind = FormKind.UPDATE
    success_message = "Investor updated successfully!"
    server_error_fallback = "An error occurred while updating the investor."

    def __init__(self, api: InvestorApiClient, investor_id: str, form_id: Optional[str] = None):
        super().__init__(api, form_id=form_id)
        self._investor_id = investor_id
        self.loaded = False
        self._loader = RecordLoader(api)

    @property
    def investor_id(self) -> str:
        return self._investor_id

    async def load(self) -> bool:
        return await self._loader.load(self)

    async def send(self, payload: InvestorPayload) -> httpx.Response:
        return await self._api.update_investor(self._investor_id, payload)
