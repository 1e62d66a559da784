"""
Form-session endpoints.

Opening / closing:
- POST   /forms/create                 : open an empty create form
- POST   /forms/update/{investor_id}   : open an update form, loading the record
- GET    /forms/{form_id}              : current state
- DELETE /forms/{form_id}              : close (navigate away)

Editing:
- PATCH  /forms/{form_id}/fields                   : set a scalar
- POST   /forms/{form_id}/tags/{field}             : toggle a tag
- DELETE /forms/{form_id}/tags/{field}?value=...   : remove a tag
- POST   /forms/{form_id}/portfolio                : add a portfolio company
- PATCH  /forms/{form_id}/portfolio/{index}        : edit name / link
- DELETE /forms/{form_id}/portfolio/{index}        : remove a portfolio company

Images (profile image, and ``/portfolio/{index}/logo/...`` for logos):
- PUT    .../image/mode    : switch URL / upload (clears the value)
- PUT    .../image/url     : enter a literal URL
- POST   .../image/upload  : multipart upload

Submit:
- POST   /forms/{form_id}/submit

Every editing endpoint returns the full form state.
"""

from fastapi import APIRouter, Depends, File, Query, Response, UploadFile

from investor_forms.api.deps import get_api_client, get_form, get_form_store
from investor_forms.core.config import settings
from investor_forms.core.exceptions import BusinessRuleViolation, ConflictException
from investor_forms.core.sessions import FormSessionStore
from investor_forms.schemas.common import ErrorResponse, ValidationErrorResponse
from investor_forms.schemas.forms import (
    EntryFieldUpdate,
    FormStateResponse,
    ImageModeUpdate,
    ImageUrlUpdate,
    ScalarFieldUpdate,
    SubmissionResponse,
    TagValue,
)
from investor_forms.services.api_client import InvestorApiClient
from investor_forms.services.forms import CreateForm, InvestorForm, UpdateForm

router = APIRouter()

PORTFOLIO = "portfolio_companies"

_UNPROCESSABLE = {422: {"model": ValidationErrorResponse, "description": "Rejected edit"}}
_NOT_FOUND = {404: {"model": ErrorResponse, "description": "Form session not found or expired"}}
_UPLOAD_ERRORS = {
    **_NOT_FOUND,
    **_UNPROCESSABLE,
    502: {"model": ErrorResponse, "description": "Upload failed"},
}


async def _read_upload(file: UploadFile) -> tuple:
    """Read at most ``MAX_UPLOAD_BYTES``; larger files are rejected before buffering."""
    limit = settings.MAX_UPLOAD_BYTES
    too_large = BusinessRuleViolation(f"File is too large (limit {limit} bytes)")
    if file.size is not None and file.size > limit:
        raise too_large
    content = await file.read(limit + 1)
    if len(content) > limit:
        raise too_large
    return (
        file.filename or "upload",
        content,
        file.content_type or "application/octet-stream",
    )


# ── Open / close ──


@router.post(
    "/create",
    response_model=FormStateResponse,
    status_code=201,
    summary="Open a create form",
)
async def open_create_form(
    api: InvestorApiClient = Depends(get_api_client),
    store: FormSessionStore = Depends(get_form_store),
) -> FormStateResponse:
    form = store.add(CreateForm(api))
    return FormStateResponse.from_form(form)


@router.post(
    "/update/{investor_id}",
    response_model=FormStateResponse,
    status_code=201,
    summary="Open an update form",
    description=(
        "Fetches the investor once and hydrates the draft.  If the fetch "
        "fails the form is still opened, empty, with ``error`` set."
    ),
)
async def open_update_form(
    investor_id: str,
    api: InvestorApiClient = Depends(get_api_client),
    store: FormSessionStore = Depends(get_form_store),
) -> FormStateResponse:
    form = UpdateForm(api, investor_id)
    await form.load()
    store.add(form)
    return FormStateResponse.from_form(form)


@router.get("/{form_id}", response_model=FormStateResponse, responses=_NOT_FOUND)
async def get_form_state(form: InvestorForm = Depends(get_form)) -> FormStateResponse:
    return FormStateResponse.from_form(form)


@router.delete("/{form_id}", status_code=204, responses=_NOT_FOUND)
async def close_form(
    form: InvestorForm = Depends(get_form),
    store: FormSessionStore = Depends(get_form_store),
) -> Response:
    store.discard(form.id)
    return Response(status_code=204)


# ── Scalars & tags ──


@router.patch(
    "/{form_id}/fields",
    response_model=FormStateResponse,
    responses={**_NOT_FOUND, **_UNPROCESSABLE},
)
async def set_scalar_field(
    body: ScalarFieldUpdate, form: InvestorForm = Depends(get_form)
) -> FormStateResponse:
    form.fields.set_scalar(body.field, body.value)
    return FormStateResponse.from_form(form)


@router.post(
    "/{form_id}/tags/{field}",
    response_model=FormStateResponse,
    responses={**_NOT_FOUND, **_UNPROCESSABLE},
    summary="Toggle a tag",
)
async def toggle_tag(
    field: str, body: TagValue, form: InvestorForm = Depends(get_form)
) -> FormStateResponse:
    form.fields.toggle_set_member(field, body.value)
    return FormStateResponse.from_form(form)


@router.delete(
    "/{form_id}/tags/{field}",
    response_model=FormStateResponse,
    responses={**_NOT_FOUND, **_UNPROCESSABLE},
    summary="Remove a tag",
)
async def remove_tag(
    field: str,
    value: str = Query(..., min_length=1),
    form: InvestorForm = Depends(get_form),
) -> FormStateResponse:
    form.fields.remove_set_member(field, value)
    return FormStateResponse.from_form(form)


# ── Portfolio companies ──


@router.post(
    "/{form_id}/portfolio",
    response_model=FormStateResponse,
    status_code=201,
    responses=_NOT_FOUND,
)
async def add_portfolio_company(form: InvestorForm = Depends(get_form)) -> FormStateResponse:
    form.fields.add_repeating_entry(PORTFOLIO)
    return FormStateResponse.from_form(form)


@router.patch(
    "/{form_id}/portfolio/{index}",
    response_model=FormStateResponse,
    responses={**_NOT_FOUND, **_UNPROCESSABLE},
)
async def edit_portfolio_company(
    index: int, body: EntryFieldUpdate, form: InvestorForm = Depends(get_form)
) -> FormStateResponse:
    form.fields.set_repeating_entry_field(PORTFOLIO, index, body.field, body.value)
    return FormStateResponse.from_form(form)


@router.delete(
    "/{form_id}/portfolio/{index}",
    response_model=FormStateResponse,
    responses={**_NOT_FOUND, **_UNPROCESSABLE},
)
async def remove_portfolio_company(
    index: int, form: InvestorForm = Depends(get_form)
) -> FormStateResponse:
    form.fields.remove_repeating_entry(PORTFOLIO, index)
    return FormStateResponse.from_form(form)


# ── Profile image ──


@router.put(
    "/{form_id}/image/mode",
    response_model=FormStateResponse,
    responses={**_NOT_FOUND, **_UNPROCESSABLE},
)
async def set_image_mode(
    body: ImageModeUpdate, form: InvestorForm = Depends(get_form)
) -> FormStateResponse:
    form.images.set_mode(form.profile_image(), body.mode)
    return FormStateResponse.from_form(form)


@router.put(
    "/{form_id}/image/url",
    response_model=FormStateResponse,
    responses={**_NOT_FOUND, **_UNPROCESSABLE},
)
async def set_image_url(
    body: ImageUrlUpdate, form: InvestorForm = Depends(get_form)
) -> FormStateResponse:
    form.images.set_url_value(form.profile_image(), body.value)
    return FormStateResponse.from_form(form)


@router.post(
    "/{form_id}/image/upload",
    response_model=FormStateResponse,
    responses=_UPLOAD_ERRORS,
)
async def upload_image(
    file: UploadFile = File(...), form: InvestorForm = Depends(get_form)
) -> FormStateResponse:
    filename, content, content_type = await _read_upload(file)
    await form.upload_image(form.profile_image(), filename, content, content_type)
    return FormStateResponse.from_form(form)


# ── Portfolio logos ──


@router.put(
    "/{form_id}/portfolio/{index}/logo/mode",
    response_model=FormStateResponse,
    responses={**_NOT_FOUND, **_UNPROCESSABLE},
)
async def set_logo_mode(
    index: int, body: ImageModeUpdate, form: InvestorForm = Depends(get_form)
) -> FormStateResponse:
    form.fields.set_repeating_entry_logo_source(PORTFOLIO, index, body.mode)
    return FormStateResponse.from_form(form)


@router.put(
    "/{form_id}/portfolio/{index}/logo/url",
    response_model=FormStateResponse,
    responses={**_NOT_FOUND, **_UNPROCESSABLE},
)
async def set_logo_url(
    index: int, body: ImageUrlUpdate, form: InvestorForm = Depends(get_form)
) -> FormStateResponse:
    form.images.set_url_value(form.portfolio_logo(index), body.value)
    return FormStateResponse.from_form(form)


@router.post(
    "/{form_id}/portfolio/{index}/logo/upload",
    response_model=FormStateResponse,
    responses=_UPLOAD_ERRORS,
)
async def upload_logo(
    index: int, file: UploadFile = File(...), form: InvestorForm = Depends(get_form)
) -> FormStateResponse:
    slot = form.portfolio_logo(index)
    filename, content, content_type = await _read_upload(file)
    await form.upload_image(
        slot, filename, content, content_type, slot_name=f"{PORTFOLIO}[{index}].logo"
    )
    return FormStateResponse.from_form(form)


# ── Submit ──


@router.post(
    "/{form_id}/submit",
    response_model=SubmissionResponse,
    summary="Submit the draft",
    description=(
        "Validates required fields, then creates (POST) or updates (PUT) the "
        "investor.  A successful create resets the draft, returns "
        "``redirect_to`` and closes the session."
    ),
    responses={
        **_NOT_FOUND,
        409: {"model": ErrorResponse, "description": "Submission already in progress"},
        422: {"model": ValidationErrorResponse, "description": "Required fields missing"},
        500: {"model": ErrorResponse, "description": "Unexpected failure"},
        502: {"model": ErrorResponse, "description": "Remote API rejected the request"},
        503: {"model": ErrorResponse, "description": "Remote API unreachable"},
    },
)
async def submit_form(
    form: InvestorForm = Depends(get_form),
    store: FormSessionStore = Depends(get_form_store),
) -> SubmissionResponse:
    outcome = await form.submit()
    if outcome is None:
        raise ConflictException("A submission is already in progress for this form")

    state = FormStateResponse.from_form(form)
    if outcome.redirect_to:
        store.discard(form.id)
    return SubmissionResponse(outcome=outcome, form=state)
