"""
Submit state machine shared by the create and update forms.

    idle → validating → submitting → success | failed → idle

Validation failures never reach the network.  While a submission is in
flight further submits are ignored (``submit`` returns ``None``).  Failures
are classified for the user:

- the remote API answered with an error → the server's message as the form
  words it (create prefixes ``"Server error: "``, update shows it verbatim),
  or a form-specific fallback when the server sent no message;
- no response → connectivity message;
- anything else → generic message, logged with traceback.

Nothing is retried; the user re-triggers submit.  Navigation is only
requested after a confirmed HTTP 200.
"""

import logging
from enum import Enum
from typing import TYPE_CHECKING, List, Optional

from pydantic import BaseModel, Field

from investor_forms.core.exceptions import (
    DraftValidationError,
    RemoteServerError,
    RemoteUnavailableError,
    SubmissionError,
)
from investor_forms.schemas.investor import InvestorPayload

if TYPE_CHECKING:
    from investor_forms.services.forms import InvestorForm

logger = logging.getLogger(__name__)

VALIDATION_MESSAGE = "Please fill out all required fields."
NETWORK_MESSAGE = "Network error: Please check your internet connection."
UNEXPECTED_MESSAGE = "An unexpected error occurred."


class SubmissionState(str, Enum):
    IDLE = "idle"
    VALIDATING = "validating"
    SUBMITTING = "submitting"
    SUCCESS = "success"
    FAILED = "failed"


class SubmissionOutcome(BaseModel):
    """Result of the most recent submit attempt."""

    state: SubmissionState
    message: str
    redirect_to: Optional[str] = None
    missing_fields: List[str] = Field(default_factory=list)


class FormSubmissionController:
    """Runs one submit attempt at a time for ``form``."""

    def __init__(self, form: "InvestorForm"):
        self._form = form
        self.state = SubmissionState.IDLE
        self.last_outcome: Optional[SubmissionOutcome] = None

    @property
    def in_flight(self) -> bool:
        return self.state is not SubmissionState.IDLE

    async def submit(self) -> Optional[SubmissionOutcome]:
        """
        Validate and send the draft.

        Returns the success outcome, ``None`` if a submission was already in
        flight, and raises an :class:`AppException` subclass on failure (the
        failure is also recorded in ``last_outcome`` and ``form.error``).
        """
        if self.in_flight:
            logger.info(
                "Ignoring submit for form %s: already %s",
                self._form.id,
                self.state.value,
                extra={"form_id": self._form.id},
            )
            return None
        try:
            return await self._attempt()
        finally:
            self.state = SubmissionState.IDLE

    async def _attempt(self) -> SubmissionOutcome:
        form = self._form
        form.error = ""
        form.success = ""

        self.state = SubmissionState.VALIDATING
        missing = form.missing_fields()
        if missing:
            self._fail(VALIDATION_MESSAGE, missing)
            raise DraftValidationError(VALIDATION_MESSAGE, missing)

        self.state = SubmissionState.SUBMITTING
        payload = InvestorPayload.from_draft(form.draft)
        try:
            response = await form.send(payload)
        except RemoteServerError as exc:
            message = form.server_error_message(exc.message) if exc.message else form.server_error_fallback
            self._fail(message)
            raise RemoteServerError(message, upstream_status=exc.upstream_status) from exc
        except RemoteUnavailableError as exc:
            self._fail(NETWORK_MESSAGE)
            raise RemoteUnavailableError(NETWORK_MESSAGE) from exc
        except Exception as exc:
            logger.exception("Unexpected failure submitting form %s", form.id, extra={"form_id": form.id})
            self._fail(UNEXPECTED_MESSAGE)
            raise SubmissionError(UNEXPECTED_MESSAGE) from exc

        if response.status_code != 200:
            # 2xx other than 200 is not a confirmed success for this API.
            self._fail(form.server_error_fallback)
            raise RemoteServerError(form.server_error_fallback, upstream_status=response.status_code)

        redirect_to = form.on_submit_success()
        self.state = SubmissionState.SUCCESS
        form.success = form.success_message
        self.last_outcome = SubmissionOutcome(
            state=SubmissionState.SUCCESS,
            message=form.success_message,
            redirect_to=redirect_to,
        )
        logger.info(
            "Submitted %s form %s", form.kind.value, form.id, extra={"form_id": form.id}
        )
        return self.last_outcome

    def _fail(self, message: str, missing_fields: Optional[List[str]] = None) -> None:
        self.state = SubmissionState.FAILED
        self._form.error = message
        self.last_outcome = SubmissionOutcome(
            state=SubmissionState.FAILED,
            message=message,
            missing_fields=missing_fields or [],
        )
