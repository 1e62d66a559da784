"""
Fetch-on-open for update forms.

The record is fetched once and mapped onto a fresh draft with
:func:`~investor_forms.schemas.investor.record_to_draft`.  A failed fetch is
not fatal: the form keeps its empty draft, reports the error, and stays
editable.
"""

import logging
from typing import TYPE_CHECKING

from investor_forms.core.exceptions import AppException
from investor_forms.schemas.investor import record_to_draft
from investor_forms.services.api_client import InvestorApiClient

if TYPE_CHECKING:
    from investor_forms.services.forms import UpdateForm

logger = logging.getLogger(__name__)

LOAD_ERROR_MESSAGE = "Failed to fetch investor data."


class RecordLoader:
    def __init__(self, api: InvestorApiClient):
        self._api = api

    async def load(self, form: "UpdateForm") -> bool:
        """Hydrate ``form.draft`` from the remote record. Returns True on success."""
        if form.loaded:
            return True

        try:
            record = await self._api.get_investor(form.investor_id)
        except AppException as exc:
            logger.warning(
                "Could not load investor %s: %s",
                form.investor_id,
                exc.message,
                extra={"form_id": form.id, "investor_id": form.investor_id},
            )
            form.error = LOAD_ERROR_MESSAGE
            return False

        form.draft = record_to_draft(record)
        form.loaded = True
        form.error = ""
        logger.info(
            "Loaded investor %s into form %s",
            form.investor_id,
            form.id,
            extra={"form_id": form.id, "investor_id": form.investor_id},
        )
        return True
