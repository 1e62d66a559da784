"""
Investor draft domain model.

The draft is the in-memory, not-yet-persisted investor record a form edits.
It is never stored locally; it is serialised into the remote API's shape
only at submit time (see :mod:`investor_forms.schemas.investor`).

Each image-bearing field (the profile image and every portfolio logo) is an
:class:`ImageSlot`: one ``{mode, value, pending, preview}`` tuple instead of
separate URL-preview and upload-preview collections.
"""

from enum import Enum
from typing import Dict, List, Tuple

from pydantic import BaseModel, Field, PrivateAttr


class ImageSource(str, Enum):
    """How a slot's value is produced."""

    URL = "url"
    UPLOAD = "upload"


# ── Tag vocabulary ──


class Geography(str, Enum):
    GLOBAL = "Global"
    NORTH_AMERICA = "North America"
    LATIN_AMERICA = "Latin America"
    EUROPE = "Europe"
    MIDDLE_EAST = "Middle East"
    AFRICA = "Africa"
    INDIA = "India"
    SOUTHEAST_ASIA = "Southeast Asia"
    EAST_ASIA = "East Asia"
    OCEANIA = "Oceania"


class InvestmentStage(str, Enum):
    PRE_SEED = "Pre-Seed"
    SEED = "Seed"
    SERIES_A = "Series A"
    SERIES_B = "Series B"
    SERIES_C_PLUS = "Series C+"
    GROWTH = "Growth"
    LATE_STAGE = "Late Stage"


class InvestorType(str, Enum):
    ANGEL = "Angel Investor"
    VENTURE_CAPITAL = "Venture Capital"
    MICRO_VC = "Micro VC"
    CORPORATE_VC = "Corporate VC"
    FAMILY_OFFICE = "Family Office"
    ACCELERATOR = "Accelerator"
    INCUBATOR = "Incubator"
    PRIVATE_EQUITY = "Private Equity"


class BusinessModel(str, Enum):
    B2B = "B2B"
    B2C = "B2C"
    B2B2C = "B2B2C"
    D2C = "D2C"
    SAAS = "SaaS"
    MARKETPLACE = "Marketplace"
    SUBSCRIPTION = "Subscription"
    E_COMMERCE = "E-commerce"
    FREEMIUM = "Freemium"
    HARDWARE = "Hardware"


class Sector(str, Enum):
    AI_ML = "AI/ML"
    FINTECH = "Fintech"
    HEALTHTECH = "Healthtech"
    EDTECH = "Edtech"
    AGRITECH = "Agritech"
    CLIMATE_TECH = "Climate Tech"
    CONSUMER = "Consumer"
    DEEPTECH = "Deeptech"
    ENTERPRISE_SOFTWARE = "Enterprise Software"
    GAMING = "Gaming"
    LOGISTICS = "Logistics"
    MOBILITY = "Mobility"
    MEDIA = "Media & Entertainment"
    PROPTECH = "Proptech"
    WEB3 = "Web3"


def _values(enum_cls) -> Tuple[str, ...]:
    return tuple(member.value for member in enum_cls)


# Set-valued draft fields and the vocabulary their members must come from.
TAG_VOCABULARIES: Dict[str, Tuple[str, ...]] = {
    "business_model": _values(BusinessModel),
    "sector_interested": _values(Sector),
}

# Options for the single-choice selectors (not enforced on write).
SELECT_VOCABULARIES: Dict[str, Tuple[str, ...]] = {
    "geography": _values(Geography),
    "investment_stages": _values(InvestmentStage),
    "investor_type": _values(InvestorType),
}

SCALAR_FIELDS: Tuple[str, ...] = (
    "name",
    "website",
    "description",
    "geography",
    "investment_stages",
    "investor_type",
    "check_size",
    "headquarter",
    "contact_link",
)
SET_FIELDS: Tuple[str, ...] = tuple(TAG_VOCABULARIES)
REPEATING_FIELDS: Tuple[str, ...] = ("portfolio_companies",)
ENTRY_TEXT_FIELDS: Tuple[str, ...] = ("name", "link")


class ImageSlot(BaseModel):
    """
    One image-bearing field.

    ``value`` is what gets submitted. ``preview`` is derived: while an upload
    is pending it is the local preview of the raw file, otherwise it is the
    stored value. Every reset or new upload bumps an internal generation so
    completions of superseded uploads can be recognised and dropped.
    """

    mode: ImageSource = ImageSource.URL
    value: str = ""
    pending: bool = False
    error: str = ""

    _local_preview: str = PrivateAttr(default="")
    _generation: int = PrivateAttr(default=0)

    @property
    def preview(self) -> str:
        if self.pending:
            return self._local_preview
        return self.value

    @property
    def generation(self) -> int:
        return self._generation

    def reset(self, mode: ImageSource) -> None:
        """Switch mode and forget everything about the previous value."""
        self.mode = mode
        self.value = ""
        self.pending = False
        self.error = ""
        self._local_preview = ""
        self._generation += 1

    def begin_upload(self, local_preview: str) -> int:
        """Mark an upload in flight; returns the token its completion must present."""
        self._generation += 1
        self.value = ""
        self.pending = True
        self.error = ""
        self._local_preview = local_preview
        return self._generation

    def complete_upload(self, token: int, url: str) -> bool:
        """Store the uploaded URL unless the upload was superseded."""
        if token != self._generation:
            return False
        self.value = url
        self.pending = False
        self._local_preview = ""
        return True

    def fail_upload(self, token: int, message: str) -> bool:
        """Record an upload failure unless the upload was superseded."""
        if token != self._generation:
            return False
        self.pending = False
        self.error = message
        self._local_preview = ""
        return True


def _upload_slot() -> ImageSlot:
    return ImageSlot(mode=ImageSource.UPLOAD)


class PortfolioEntry(BaseModel):
    """One portfolio company; new entries expect an uploaded logo."""

    name: str = ""
    link: str = ""
    logo: ImageSlot = Field(default_factory=_upload_slot)


class InvestorDraft(BaseModel):
    """The record being edited by a create or update form."""

    name: str = ""
    website: str = ""
    image: ImageSlot = Field(default_factory=ImageSlot)
    description: str = ""
    geography: str = ""
    investment_stages: str = ""
    business_model: List[str] = Field(default_factory=list)
    investor_type: str = ""
    sector_interested: List[str] = Field(default_factory=list)
    check_size: str = ""
    headquarter: str = ""
    contact_link: str = ""
    portfolio_companies: List[PortfolioEntry] = Field(default_factory=list)

    def __repr__(self) -> str:
        return (
            f"<InvestorDraft name='{self.name}' "
            f"portfolio={len(self.portfolio_companies)}>"
        )
