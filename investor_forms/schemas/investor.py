"""
Pydantic schemas for the remote investor API's wire format.

The remote API speaks camelCase (``investmentStages``, ``portfolioCompanies``,
``logoSource`` ...).  Models here use snake_case attributes with camelCase
aliases; dump with ``by_alias=True`` when building request bodies.
"""

from typing import Any, List

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from investor_forms.models.investor import (
    ImageSlot,
    ImageSource,
    InvestorDraft,
    PortfolioEntry,
)


class _WireModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")


# ────────────────────────────────────────────────────────────────────────────
# Outgoing payloads (create / update body)
# ────────────────────────────────────────────────────────────────────────────


class PortfolioCompanyPayload(_WireModel):
    name: str = ""
    logo: str = ""
    logo_source: ImageSource = ImageSource.UPLOAD
    link: str = ""


class InvestorPayload(_WireModel):
    """Body of ``POST /api/create-investor`` and ``PUT /api/update-investor/{id}``."""

    name: str = ""
    website: str = ""
    image: str = ""
    image_source: ImageSource = ImageSource.URL
    description: str = ""
    geography: str = ""
    investment_stages: str = ""
    business_model: List[str] = Field(default_factory=list)
    investor_type: str = ""
    sector_interested: List[str] = Field(default_factory=list)
    check_size: str = ""
    headquarter: str = ""
    contact_link: str = ""
    portfolio_companies: List[PortfolioCompanyPayload] = Field(default_factory=list)

    @classmethod
    def from_draft(cls, draft: InvestorDraft) -> "InvestorPayload":
        """Flatten a draft; only slot values travel, previews stay local."""
        return cls(
            name=draft.name,
            website=draft.website,
            image=draft.image.value,
            image_source=draft.image.mode,
            description=draft.description,
            geography=draft.geography,
            investment_stages=draft.investment_stages,
            business_model=list(draft.business_model),
            investor_type=draft.investor_type,
            sector_interested=list(draft.sector_interested),
            check_size=draft.check_size,
            headquarter=draft.headquarter,
            contact_link=draft.contact_link,
            portfolio_companies=[
                PortfolioCompanyPayload(
                    name=entry.name,
                    logo=entry.logo.value,
                    logo_source=entry.logo.mode,
                    link=entry.link,
                )
                for entry in draft.portfolio_companies
            ],
        )

    def to_wire(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)


# ────────────────────────────────────────────────────────────────────────────
# Incoming records (GET /api/get-investor/{id})
# ────────────────────────────────────────────────────────────────────────────


def _none_to_empty_str(v: Any) -> Any:
    return "" if v is None else v


def _none_to_empty_list(v: Any) -> Any:
    return [] if v is None else v


class PortfolioCompanyRecord(_WireModel):
    name: str = ""
    logo: str = ""
    link: str = ""

    nulls_to_empty = field_validator("name", "logo", "link", mode="before")(_none_to_empty_str)


class InvestorRecord(_WireModel):
    """
    An investor as stored by the remote API.

    Every field is optional with an empty default; ``null`` is treated like a
    missing key.  The identifier arrives as ``_id``; other unknown keys
    (timestamps, ``__v`` ...) are ignored.
    """

    id: str = Field(default="", alias="_id")
    name: str = ""
    website: str = ""
    image: str = ""
    description: str = ""
    geography: str = ""
    investment_stages: str = ""
    business_model: List[str] = Field(default_factory=list)
    investor_type: str = ""
    sector_interested: List[str] = Field(default_factory=list)
    check_size: str = ""
    headquarter: str = ""
    contact_link: str = ""
    portfolio_companies: List[PortfolioCompanyRecord] = Field(default_factory=list)

    nulls_to_empty = field_validator(
        "id",
        "name",
        "website",
        "image",
        "description",
        "geography",
        "investment_stages",
        "investor_type",
        "check_size",
        "headquarter",
        "contact_link",
        mode="before",
    )(_none_to_empty_str)
    null_lists_to_empty = field_validator(
        "business_model", "sector_interested", "portfolio_companies", mode="before"
    )(_none_to_empty_list)


class InvestorEnvelope(BaseModel):
    """Response body of ``GET /api/get-investor/{id}``."""

    investor: InvestorRecord


def _slot_for(url: str) -> ImageSlot:
    # A stored URL can only be shown as a URL; an empty one invites an upload.
    return ImageSlot(mode=ImageSource.URL if url else ImageSource.UPLOAD, value=url)


def record_to_draft(record: InvestorRecord) -> InvestorDraft:
    """
    Map a fetched record onto a fresh draft.

    Total over every draft field:

    ==================  ============================  ==================
    draft field         source                        default
    ==================  ============================  ==================
    scalar strings      same-named record field       ``""``
    image.value         ``image``                     ``""``
    image.mode          ``url`` if image else upload  ``upload``
    business_model      ``businessModel``             ``[]``
    sector_interested   ``sectorInterested``          ``[]``
    portfolio entry     name / link / logo            ``""``
    entry logo.mode     ``url`` if logo else upload   ``upload``
    ==================  ============================  ==================

    Tags are copied as-is, duplicates dropped, order kept.
    """
    return InvestorDraft(
        name=record.name,
        website=record.website,
        image=_slot_for(record.image),
        description=record.description,
        geography=record.geography,
        investment_stages=record.investment_stages,
        business_model=list(dict.fromkeys(record.business_model)),
        investor_type=record.investor_type,
        sector_interested=list(dict.fromkeys(record.sector_interested)),
        check_size=record.check_size,
        headquarter=record.headquarter,
        contact_link=record.contact_link,
        portfolio_companies=[
            PortfolioEntry(name=company.name, link=company.link, logo=_slot_for(company.logo))
            for company in record.portfolio_companies
        ],
    )


# ────────────────────────────────────────────────────────────────────────────
# File upload
# ────────────────────────────────────────────────────────────────────────────


class UploadedFile(BaseModel):
    model_config = ConfigDict(extra="ignore")

    url: str = ""


class UploadResponse(BaseModel):
    """Response body of ``POST /api/fileUpload``."""

    model_config = ConfigDict(extra="ignore")

    status: bool = False
    data: List[UploadedFile] = Field(default_factory=list)

    @property
    def first_url(self) -> str:
        if not self.status or not self.data:
            return ""
        return self.data[0].url
