"""
Pydantic schemas for the form-session endpoints.
"""

from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from investor_forms.models.investor import (
    SELECT_VOCABULARIES,
    TAG_VOCABULARIES,
    ImageSlot,
    ImageSource,
    InvestorDraft,
)
from investor_forms.services.forms import FormKind, InvestorForm
from investor_forms.services.submission import SubmissionOutcome, SubmissionState


class ScalarFieldUpdate(BaseModel):
    """Body of ``PATCH /forms/{form_id}/fields``."""

    field: str = Field(..., description="Scalar field name, snake_case or camelCase", examples=["checkSize"])
    value: str = Field(..., description="New value; validated only on submit")


class TagValue(BaseModel):
    value: str = Field(..., min_length=1, examples=["Fintech"])


class EntryFieldUpdate(BaseModel):
    """Body of ``PATCH /forms/{form_id}/portfolio/{index}``."""

    field: str = Field(..., description="``name`` or ``link``", examples=["link"])
    value: str


class ImageModeUpdate(BaseModel):
    mode: ImageSource


class ImageUrlUpdate(BaseModel):
    value: str = Field(..., examples=["https://example.com/logo.png"])


class ImageSlotView(BaseModel):
    mode: ImageSource
    value: str
    preview: str = Field(..., description="Local data URI while uploading, else the stored value")
    pending: bool
    error: str = ""

    @classmethod
    def from_slot(cls, slot: ImageSlot) -> "ImageSlotView":
        return cls(
            mode=slot.mode,
            value=slot.value,
            preview=slot.preview,
            pending=slot.pending,
            error=slot.error,
        )


class PortfolioEntryView(BaseModel):
    name: str
    link: str
    logo: ImageSlotView


class DraftView(BaseModel):
    """Draft as shown to the form UI, previews included."""

    name: str
    website: str
    image: ImageSlotView
    description: str
    geography: str
    investment_stages: str
    business_model: List[str]
    investor_type: str
    sector_interested: List[str]
    check_size: str
    headquarter: str
    contact_link: str
    portfolio_companies: List[PortfolioEntryView]

    @classmethod
    def from_draft(cls, draft: InvestorDraft) -> "DraftView":
        return cls(
            **draft.model_dump(exclude={"image", "portfolio_companies"}),
            image=ImageSlotView.from_slot(draft.image),
            portfolio_companies=[
                PortfolioEntryView(
                    name=entry.name,
                    link=entry.link,
                    logo=ImageSlotView.from_slot(entry.logo),
                )
                for entry in draft.portfolio_companies
            ],
        )


class FormStateResponse(BaseModel):
    """Full state of one open form, returned by every form endpoint."""

    id: str
    kind: FormKind
    investor_id: Optional[str] = None
    draft: DraftView
    submission_state: SubmissionState
    error: str = ""
    success: str = ""

    @classmethod
    def from_form(cls, form: InvestorForm) -> "FormStateResponse":
        return cls(
            id=form.id,
            kind=form.kind,
            investor_id=form.investor_id,
            draft=DraftView.from_draft(form.draft),
            submission_state=form.submission.state,
            error=form.error,
            success=form.success,
        )


class SubmissionResponse(BaseModel):
    """Body of a successful ``POST /forms/{form_id}/submit``."""

    outcome: SubmissionOutcome
    form: FormStateResponse


class VocabularyResponse(BaseModel):
    """Option lists for the tag and select inputs."""

    tags: Dict[str, List[str]]
    selects: Dict[str, List[str]]

    @classmethod
    def build(cls) -> "VocabularyResponse":
        return cls(
            tags={name: list(values) for name, values in TAG_VOCABULARIES.items()},
            selects={name: list(values) for name, values in SELECT_VOCABULARIES.items()},
        )
