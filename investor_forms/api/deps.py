"""FastAPI dependency injection."""

from fastapi import Depends, Request

from investor_forms.core.exceptions import NotFoundException
from investor_forms.core.sessions import FormSessionStore, form_sessions
from investor_forms.services.api_client import InvestorApiClient
from investor_forms.services.forms import InvestorForm


def get_form_store() -> FormSessionStore:
    return form_sessions


def get_api_client(request: Request) -> InvestorApiClient:
    """Client bound to the shared ``httpx.AsyncClient`` opened in the lifespan."""
    return InvestorApiClient(request.app.state.http_client)


def get_form(form_id: str, store: FormSessionStore = Depends(get_form_store)) -> InvestorForm:
    """Resolve an open form session or answer 404."""
    form = store.get(form_id)
    if form is None:
        raise NotFoundException("Form", form_id)
    return form
